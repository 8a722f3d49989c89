"""FastAPI application entry point.

Run locally with ``python -m api.main`` or ``starlight-server``.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from api.routes import game
from api.websocket import manager, router as ws_router
from config import config

logging.basicConfig(level=config.logging.level, format=config.logging.format)
logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[config.rate_limit.limit],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Table open: bankroll=%d dealer stands on %d, doubling %s",
        config.game.starting_bankroll,
        config.game.dealer_stands_on,
        "allowed" if config.game.allow_double else "disabled",
    )
    yield
    logger.info("Table closed with %d live connection(s)", manager.active_connections)


async def on_rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit hit by %s on %s", get_remote_address(request), request.url.path)
    return JSONResponse(status_code=429, content={"detail": f"Too many requests: {exc.detail}"})


app = FastAPI(
    title="Starlight Blackjack",
    description="Single-player blackjack table: betting, dealing and round resolution",
    version="0.1.0",
    debug=config.debug,
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, on_rate_limited)
# Applies default_limits to every HTTP route without its own @limiter.limit
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)

app.include_router(game.router, prefix="/api/game", tags=["game"])
app.include_router(ws_router, prefix="/ws", tags=["websocket"])


@app.get("/api/health")
@limiter.limit(config.rate_limit.limit)
async def health_check(request: Request) -> dict[str, str]:
    return {"status": "healthy"}


def run() -> None:
    """Serve the app with uvicorn using the configured host and port."""
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    run()
