"""
FastAPI server: staking rewards and market data for the dashboard.

GET /rewards and GET /earned aggregate the Theta explorer's coinbase feed;
/price, /quote, /fees, /history and /simpleswap/currencies proxy market data.
Config via env (see tfuel_rewards.config).
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tfuel_rewards import __version__
from tfuel_rewards.api_server.dependencies import build_services
from tfuel_rewards.api_server.market_routes import router as market_router
from tfuel_rewards.api_server.middleware import log_requests
from tfuel_rewards.api_server.rewards_routes import router as rewards_router
from tfuel_rewards.config import Settings, get_settings
from tfuel_rewards.core.addresses import parse_address_list
from tfuel_rewards.core.exceptions import InputValidationError, UpstreamError
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

NO_STORE = {"cache-control": "no-store"}
ERROR_MESSAGE_LEN = 300


def _fetch_error_code(request: Request) -> str:
    """/earned -> earned_fetch_failed."""
    segment = request.url.path.rstrip("/").rsplit("/", 1)[-1] or "request"
    return f"{segment}_fetch_failed"


def input_validation_handler(request: Request, exc: InputValidationError) -> JSONResponse:
    """400 with {"error": message}; never cached by intermediaries."""
    return JSONResponse(status_code=400, content={"error": exc.message}, headers=NO_STORE)


def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """502 with an error code and a truncated diagnostic message."""
    logger.warning(
        "upstream_failure",
        path=request.url.path,
        address_count=len(parse_address_list(request.query_params.get("addresses"))),
        service=exc.service,
        status=exc.status_code,
        error=str(exc)[:ERROR_MESSAGE_LEN],
    )
    return JSONResponse(
        status_code=502,
        content={"error": _fetch_error_code(request), "message": str(exc)[:ERROR_MESSAGE_LEN]},
        headers=NO_STORE,
    )


def create_app(settings: Settings | None = None, http: httpx.AsyncClient | None = None) -> FastAPI:
    """
    Build the ASGI app with its own services (clients + caches).

    Pass `http` to route upstream traffic through a caller-owned client
    (tests use httpx.MockTransport).
    """
    settings = settings or get_settings()
    services = build_services(settings, http)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "api_started",
            explorer=settings.explorer_api_url,
            rewards_ttl_sec=settings.rewards_cache_ttl_sec,
            earned_ttl_sec=settings.earned_cache_ttl_sec,
        )
        yield
        await services.aclose()
        logger.info("api_stopped")

    app = FastAPI(
        title="TFUEL Rewards API",
        description="Theta staking rewards, prices and swap quotes for the rewards dashboard.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services
    app.middleware("http")(log_requests)
    app.add_exception_handler(InputValidationError, input_validation_handler)
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.include_router(rewards_router)
    app.include_router(market_router)

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness check: API is up."""
        return {"status": "ok"}

    return app


app = create_app()
