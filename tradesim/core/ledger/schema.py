from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class DeclineReason(str, Enum):
    INSUFFICIENT_CASH = "INSUFFICIENT_CASH"
    INSUFFICIENT_SHARES = "INSUFFICIENT_SHARES"
    INVALID_SHARES = "INVALID_SHARES"


DECLINE_MESSAGES = {
    DeclineReason.INSUFFICIENT_CASH: "Not enough cash to complete this purchase.",
    DeclineReason.INSUFFICIENT_SHARES: "Not enough shares to sell.",
    DeclineReason.INVALID_SHARES: "Please enter a valid number of shares.",
}


class Holding(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    shares: int = Field(gt=0)
    average_cost: Decimal = Field(gt=0)

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, value: str) -> str:
        ticker = value.strip().upper()
        if not ticker:
            raise ValueError("ticker cannot be empty")
        return ticker


@dataclass(frozen=True)
class TradeResult:
    accepted: bool
    side: TradeSide
    ticker: str
    shares: int
    price: Decimal
    reason: DeclineReason | None = None
    message: str = ""

    @property
    def value(self) -> Decimal:
        return self.price * self.shares if self.accepted else Decimal("0")
