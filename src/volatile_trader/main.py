"""Entry point: serve the HTTP API and (optionally) run the trading engine."""

import asyncio
import signal
import sys

import structlog
import uvicorn

from volatile_trader.api.app import create_app
from volatile_trader.config import Settings
from volatile_trader.engine.trading_engine import TradingEngine
from volatile_trader.services.container import build_services

logger = structlog.get_logger()


async def main() -> None:
    settings = Settings()
    services = build_services(settings)

    engine = TradingEngine(settings=settings, services=services) if settings.ENGINE_ENABLED else None
    app = create_app(settings, services, engine=engine)

    server = uvicorn.Server(
        uvicorn.Config(app, host=settings.HTTP_HOST, port=settings.HTTP_PORT, log_config=None)
    )
    loop = asyncio.get_running_loop()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        server.should_exit = True
        if engine is not None:
            engine.running = False

    if sys.platform != "win32":
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, _signal_handler)
    else:
        signal.signal(signal.SIGINT, lambda *_: _signal_handler())

    async def _serve() -> None:
        await server.serve()
        # uvicorn may consume the signal itself
        if engine is not None:
            await engine.stop()

    tasks = [_serve()]
    if engine is not None:
        tasks.append(engine.start())

    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        pass
    finally:
        if engine is not None:
            await engine.stop()
        await app.state.auth.aclose()
        await services.aclose()
        logger.info("shutdown_complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
