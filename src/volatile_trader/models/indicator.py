"""Indicator result models."""

from pydantic import BaseModel


class BollingerBandsResult(BaseModel):
    upper: float
    middle: float
    lower: float
    bandwidth: float

    @property
    def bandwidth_percent(self) -> float:
        if self.middle == 0:
            return 0.0
        return (self.upper - self.lower) / self.middle * 100


class RSIResult(BaseModel):
    value: float
    is_overbought: bool
    is_oversold: bool
