"""FastAPI entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from protohub.config import get_settings, validate_settings_for_env
from protohub.errors import ProtoHubError
from protohub.logging import configure_logging
from protohub.ratelimit import limiter
from protohub.routes.api import router as api_router
from protohub.routes.health import router as health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    validate_settings_for_env(settings)
    configure_logging(settings.log_level, app_env=settings.app_env)
    if not settings.vercel_token.strip():
        logger.warning("VERCEL_TOKEN not set; deploy routes will answer 500")
    if not settings.github_token.strip():
        logger.info("GITHUB_TOKEN not set; GitHub deploys use unauthenticated rate limits")
    yield


app = FastAPI(title="Proto Hub", version="0.1.0", lifespan=lifespan)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.info("Rate limit hit on %s (%s)", request.url.path, exc.detail)
    return JSONResponse(
        status_code=429,
        content={"error": "rate limit exceeded"},
    )


@app.exception_handler(ProtoHubError)
async def _protohub_error_handler(request: Request, exc: ProtoHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "invalid request"))
    return JSONResponse(
        status_code=400,
        content={"error": f"{location}: {message}" if location else message},
    )


settings = get_settings()
cors_origins = [item.strip() for item in settings.web_cors_origins.split(",") if item.strip()]
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
app.include_router(health_router)
app.include_router(api_router)
