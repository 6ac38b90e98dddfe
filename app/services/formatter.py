from __future__ import annotations

from app.schemas.quote import QueryResult
from app.services.timestamps import format_timestamp

HTML_LINE_SEPARATOR = "<br />\n"


def format_report(result: QueryResult, line_separator: str = "\n") -> str:
    bids = "; ".join(f"{q.bid_price:f}({q.bid_quantity})" for q in result.best_bids)
    asks = "; ".join(f"{q.ask_price:f}({q.ask_quantity})" for q in result.best_asks)
    header = f"${result.symbol} ({format_timestamp(result.point_in_time)})"
    return line_separator.join(
        [
            header,
            f"Best Bids: {bids}".rstrip(),
            f"Best Asks: {asks}".rstrip(),
        ]
    )
