from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from app.api.routes import root_router, router
from app.config.settings import get_settings
from app.errors import QuoteIngestError
from app.services.order_book import OrderBookService
from app.services.quote_store import QuoteStoreHolder, load_quotes_csv


def _bind_runtime_services(app: FastAPI) -> None:
    settings = app.state.get_settings()
    app.state.order_book_service.window_policy = settings.BOOK_WINDOW_POLICY
    print(
        f"[BOOK][startup_bind] quotes_file={settings.BOOK_QUOTES_FILE} "
        f"limit={settings.BOOK_RESULT_LIMIT} window_policy={settings.BOOK_WINDOW_POLICY}",
        flush=True,
    )
    app.state.quote_store_holder.rebuild(lambda: load_quotes_csv(settings.BOOK_QUOTES_FILE))


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        _bind_runtime_services(app)
    except (ValidationError, QuoteIngestError) as exc:
        # queries keep answering from the empty store until a rebuild succeeds
        print(f"[BOOK][startup_degraded] error={exc}", flush=True)
    yield


app = FastAPI(title="NBBO Quote Service", version="0.1.0", lifespan=lifespan)
app.include_router(root_router)
app.include_router(router, prefix="/v1")

# NOTE: lazy-loaded so app import does not require env during tests.
app.state.get_settings = get_settings
app.state.quote_store_holder = QuoteStoreHolder()
app.state.order_book_service = OrderBookService(store_holder=app.state.quote_store_holder)
