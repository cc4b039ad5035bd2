from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Instrument(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    name: str
    industry: str
    price: Decimal = Field(gt=0)
    change: Decimal = Decimal("0")
    change_percent: Decimal = Decimal("0")

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, value: str) -> str:
        ticker = value.strip().upper()
        if not ticker:
            raise ValueError("ticker cannot be empty")
        return ticker


class PricePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    price: float
