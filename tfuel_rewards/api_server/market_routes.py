"""FastAPI router: GET /price, /quote, /fees, /history, /simpleswap/currencies."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from tfuel_rewards.api_server.dependencies import Services, get_services
from tfuel_rewards.market.service import MarketResult

router = APIRouter(tags=["market"])


def _respond(result: MarketResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.get("/price")
async def get_price(
    symbol: str | None = Query(None),
    services: Services = Depends(get_services),
) -> JSONResponse:
    return _respond(await services.market.price(symbol))


@router.get("/quote")
async def get_quote(
    symbol: str | None = Query(None),
    amount: str | None = Query(None),
    network: str | None = Query(None, description="sol (default) or eth"),
    services: Services = Depends(get_services),
) -> JSONResponse:
    return _respond(await services.market.quote(symbol, amount, network))


@router.get("/fees")
async def get_fees(
    symbol: str | None = Query(None),
    amount: str | None = Query(None, description="Defaults to 100"),
    services: Services = Depends(get_services),
) -> JSONResponse:
    return _respond(await services.market.fees(symbol, amount))


@router.get("/history")
async def get_history(
    symbol: str | None = Query(None),
    days: str | None = Query(None, description="1..90, default 30"),
    services: Services = Depends(get_services),
) -> JSONResponse:
    return _respond(await services.market.history(symbol, days))


@router.get("/simpleswap/currencies")
async def get_currencies(
    q: str | None = Query(None),
    services: Services = Depends(get_services),
) -> JSONResponse:
    return _respond(await services.market.currencies(q))
