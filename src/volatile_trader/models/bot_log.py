"""BotLog Pydantic model."""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

LOG_LEVELS = {"INFO", "WARNING", "ERROR", "SUCCESS"}


class BotLog(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    level: str  # INFO, WARNING, ERROR, SUCCESS
    message: str
    details: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
