from __future__ import annotations

import csv
import threading
from pathlib import Path
from typing import Callable, Iterable, Iterator

from pydantic import ValidationError

from app.errors import InvalidTimestampError, QuoteIngestError
from app.schemas.quote import Quote
from app.services.timestamps import parse_timestamp

QUOTE_CSV_HEADERS = (
    "symbol",
    "marketCenter",
    "bidQuantity",
    "askQuantity",
    "bidPrice",
    "askPrice",
    "startTime",
    "endTime",
    "quoteConditions",
    "sipfeedSeq",
    "sipfeed",
)


class QuoteStore:
    """Immutable, insertion-ordered snapshot of ingested quotes."""

    def __init__(self, quotes: Iterable[Quote] = (), *, source: str | None = None) -> None:
        self._quotes: tuple[Quote, ...] = tuple(quotes)
        self._symbols = frozenset(q.symbol for q in self._quotes)
        self._source = source

    @property
    def quotes(self) -> tuple[Quote, ...]:
        return self._quotes

    @property
    def symbols(self) -> frozenset[str]:
        return self._symbols

    @property
    def source(self) -> str | None:
        return self._source

    def __len__(self) -> int:
        return len(self._quotes)

    def __iter__(self) -> Iterator[Quote]:
        return iter(self._quotes)


EMPTY_STORE = QuoteStore()


def parse_quote_row(row: dict) -> Quote:
    return Quote(
        symbol=str(row["symbol"] or "").strip(),
        market_center=str(row["marketCenter"] or "").strip(),
        bid_quantity=row["bidQuantity"],
        ask_quantity=row["askQuantity"],
        bid_price=str(row["bidPrice"] or "").strip(),
        ask_price=str(row["askPrice"] or "").strip(),
        start_time=parse_timestamp(row["startTime"]),
        end_time=parse_timestamp(row["endTime"]),
        quote_conditions=str(row["quoteConditions"] or ""),
        sip_feed_seq=str(row["sipfeedSeq"] or ""),
        sip_feed=str(row["sipfeed"] or ""),
    )


def load_quotes_csv(path: str | Path) -> QuoteStore:
    """Build a QuoteStore from a headed quote CSV; any bad row fails the build."""
    csv_path = Path(path)
    try:
        handle = csv_path.open("r", encoding="utf-8", newline="")
    except OSError as exc:
        raise QuoteIngestError(f"cannot open quote file {csv_path}: {exc}") from exc

    quotes: list[Quote] = []
    with handle:
        reader = csv.DictReader(handle)
        try:
            fieldnames = reader.fieldnames or []
            missing = [h for h in QUOTE_CSV_HEADERS if h not in fieldnames]
            if missing:
                raise QuoteIngestError(f"quote file {csv_path} missing columns: {','.join(missing)}")

            for row in reader:
                try:
                    quotes.append(parse_quote_row(row))
                except (InvalidTimestampError, ValidationError) as exc:
                    raise QuoteIngestError(
                        f"quote file {csv_path} line {reader.line_num}: {exc}"
                    ) from exc
        except (UnicodeDecodeError, csv.Error) as exc:
            raise QuoteIngestError(
                f"quote file {csv_path} is not readable: {exc}"
            ) from exc

    return QuoteStore(quotes, source=str(csv_path))


class QuoteStoreHolder:
    """Owns the live snapshot reference; rebuilds swap it wholesale."""

    def __init__(self, store: QuoteStore | None = None) -> None:
        self._lock = threading.Lock()
        self._store = store if store is not None else EMPTY_STORE
        self.builds = 0
        self.last_build_error: str | None = None

    def current(self) -> QuoteStore:
        with self._lock:
            return self._store

    def replace(self, store: QuoteStore) -> QuoteStore:
        with self._lock:
            previous = self._store
            self._store = store
            self.builds += 1
            self.last_build_error = None
        return previous

    def rebuild(self, loader: Callable[[], QuoteStore]) -> QuoteStore:
        try:
            store = loader()
        except QuoteIngestError as exc:
            with self._lock:
                self.last_build_error = str(exc)
            print(f"[BOOK][store_build_failed] error={exc}", flush=True)
            raise
        self.replace(store)
        print(
            f"[BOOK][store_built] quotes={len(store)} symbols={len(store.symbols)} "
            f"source={store.source}",
            flush=True,
        )
        return store
