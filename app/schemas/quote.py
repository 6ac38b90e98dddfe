from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    market_center: str
    bid_quantity: int
    ask_quantity: int
    bid_price: Decimal
    ask_price: Decimal
    start_time: datetime
    end_time: datetime
    quote_conditions: str = ""
    sip_feed_seq: str = ""
    sip_feed: str = ""

    @field_validator("symbol")
    @classmethod
    def require_symbol(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("symbol must not be empty")
        return value

    @field_validator("bid_quantity", "ask_quantity", "bid_price", "ask_price")
    @classmethod
    def require_non_negative(cls, value):
        if value < 0:
            raise ValueError("must be non-negative")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def check_window(self) -> "Quote":
        if self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time")
        return self


class QueryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    point_in_time: datetime
    live_count: int
    best_bids: list[Quote]
    best_asks: list[Quote]
