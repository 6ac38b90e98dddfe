from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence, TypeVar

from app.schemas.quote import Quote

T = TypeVar("T")

WINDOW_POLICIES = ("inclusive", "exclusive")


def _bid_key(quote: Quote):
    return quote.bid_price


def _ask_key(quote: Quote):
    return quote.ask_price


def is_live(quote: Quote, point_in_time: datetime, window_policy: str = "inclusive") -> bool:
    if window_policy == "inclusive":
        return quote.start_time <= point_in_time <= quote.end_time
    if window_policy == "exclusive":
        return quote.start_time < point_in_time < quote.end_time
    raise ValueError(f"window_policy must be one of: {', '.join(WINDOW_POLICIES)}")


def live_quotes(
    store: Iterable[Quote],
    symbol: str,
    point_in_time: datetime,
    window_policy: str = "inclusive",
) -> list[Quote]:
    """Quotes for `symbol` whose validity window contains `point_in_time`, in store order."""
    if window_policy not in WINDOW_POLICIES:
        raise ValueError(f"window_policy must be one of: {', '.join(WINDOW_POLICIES)}")
    return [
        q for q in store
        if q.symbol == symbol and is_live(q, point_in_time, window_policy)
    ]


def rank_best_bids(quotes: Iterable[Quote]) -> list[Quote]:
    # sorted() stays stable with reverse=True, equal bids keep input order
    return sorted(quotes, key=_bid_key, reverse=True)


def rank_best_asks(quotes: Iterable[Quote]) -> list[Quote]:
    return sorted(quotes, key=_ask_key)


def top_n(sequence: Sequence[T], limit: int) -> list[T]:
    if limit < 0:
        raise ValueError("limit must be non-negative")
    return list(sequence[:limit])
