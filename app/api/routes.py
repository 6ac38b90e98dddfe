from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import ValidationError

from app.errors import InvalidTimestampError, QuoteIngestError
from app.services.formatter import HTML_LINE_SEPARATOR
from app.services.quote_store import load_quotes_csv

router = APIRouter()
root_router = APIRouter()


def _settings(request: Request):
    try:
        return request.app.state.get_settings()
    except ValidationError as exc:
        raise HTTPException(status_code=503, detail='SETTINGS_NOT_CONFIGURED') from exc


def _resolve_limit(request: Request, limit: int | None) -> int:
    if limit is not None:
        return limit
    return _settings(request).BOOK_RESULT_LIMIT


def _run_query(request: Request, symbol: str, at: str, limit: int | None):
    service = request.app.state.order_book_service
    try:
        return service.query(symbol, at, _resolve_limit(request, limit))
    except InvalidTimestampError as exc:
        raise HTTPException(status_code=400, detail='INVALID_TIMESTAMP') from exc


@root_router.get('/', response_class=HTMLResponse)
def default_report(request: Request):
    settings = _settings(request)
    service = request.app.state.order_book_service
    try:
        return service.point_in_time_results(
            settings.BOOK_DEFAULT_SYMBOL,
            settings.BOOK_DEFAULT_POINT_IN_TIME,
            settings.BOOK_RESULT_LIMIT,
            line_separator=HTML_LINE_SEPARATOR,
        )
    except InvalidTimestampError as exc:
        raise HTTPException(status_code=400, detail='INVALID_TIMESTAMP') from exc


@router.get('/book/{symbol}')
def get_book(symbol: str, request: Request, at: str, limit: int | None = Query(default=None, ge=0)):
    result = _run_query(request, symbol, at, limit)
    return result.model_dump(mode='json')


@router.get('/book/{symbol}/report', response_class=PlainTextResponse)
def get_book_report(symbol: str, request: Request, at: str, limit: int | None = Query(default=None, ge=0)):
    service = request.app.state.order_book_service
    try:
        return service.point_in_time_results(symbol, at, _resolve_limit(request, limit))
    except InvalidTimestampError as exc:
        raise HTTPException(status_code=400, detail='INVALID_TIMESTAMP') from exc


@router.post('/book/rebuild')
def rebuild_book(request: Request):
    settings = _settings(request)
    holder = request.app.state.quote_store_holder
    try:
        store = holder.rebuild(lambda: load_quotes_csv(settings.BOOK_QUOTES_FILE))
    except QuoteIngestError as exc:
        raise HTTPException(status_code=503, detail='QUOTE_STORE_REBUILD_FAILED') from exc
    return {
        'ok': True,
        'quote_count': len(store),
        'source': store.source,
    }


@router.get('/metrics/book')
def book_metrics(request: Request):
    return request.app.state.order_book_service.metrics()
