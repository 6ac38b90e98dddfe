from __future__ import annotations

from datetime import datetime

from app.errors import InvalidTimestampError
from app.schemas.quote import QueryResult
from app.services.formatter import format_report
from app.services.nbbo import WINDOW_POLICIES, live_quotes, rank_best_asks, rank_best_bids, top_n
from app.services.quote_store import QuoteStoreHolder
from app.services.timestamps import coerce_timestamp


class OrderBookService:
    """Point-in-time NBBO queries against the holder's current snapshot."""

    def __init__(
        self,
        *,
        store_holder: QuoteStoreHolder,
        window_policy: str = "inclusive",
    ) -> None:
        if window_policy not in WINDOW_POLICIES:
            raise ValueError(f"window_policy must be one of: {', '.join(WINDOW_POLICIES)}")
        self.store_holder = store_holder
        self.window_policy = window_policy

        self.queries = 0
        self.empty_results = 0
        self.invalid_timestamps = 0

    def query(self, symbol: str, point_in_time: datetime | str, limit: int) -> QueryResult:
        if limit < 0:
            raise ValueError("limit must be non-negative")
        try:
            at = coerce_timestamp(point_in_time)
        except InvalidTimestampError:
            self.invalid_timestamps += 1
            raise

        store = self.store_holder.current()
        live = live_quotes(store, symbol, at, self.window_policy)

        self.queries += 1
        if not live:
            self.empty_results += 1

        return QueryResult(
            symbol=symbol,
            point_in_time=at,
            live_count=len(live),
            best_bids=top_n(rank_best_bids(live), limit),
            best_asks=top_n(rank_best_asks(live), limit),
        )

    def point_in_time_results(
        self,
        symbol: str,
        point_in_time: datetime | str,
        limit: int,
        line_separator: str = "\n",
    ) -> str:
        return format_report(self.query(symbol, point_in_time, limit), line_separator=line_separator)

    def metrics(self) -> dict[str, int | str | None]:
        store = self.store_holder.current()
        return {
            "queries": self.queries,
            "empty_results": self.empty_results,
            "invalid_timestamps": self.invalid_timestamps,
            "quote_count": len(store),
            "symbol_count": len(store.symbols),
            "store_source": store.source,
            "store_builds": self.store_holder.builds,
            "last_build_error": self.store_holder.last_build_error,
            "window_policy": self.window_policy,
        }
