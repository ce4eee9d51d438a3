"""
Irene — FastAPI Application Entry Point

Stateless compatibility service with:
- JSON structured logging with per-request context (request id, method, path)
- Request timeout enforcement
- CORS and a liveness health-check endpoint
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from irene.config import Settings, get_settings

REQUEST_ID_HEADER = "X-Request-ID"

settings = get_settings()


def configure_logging(level: str) -> None:
    """Render every event as one JSON line, merged with request-scoped context."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(settings.LOG_LEVEL)

logger: structlog.stdlib.BoundLogger = structlog.get_logger("irene")


def _point_budget(cfg: Settings) -> dict[str, float]:
    return {
        "personality": cfg.PERSONALITY_POINTS,
        "interests": cfg.INTEREST_POINTS,
        "geography": cfg.GEOGRAPHY_POINTS,
        "demographics": cfg.DEMOGRAPHIC_POINTS,
        "activity": cfg.ACTIVITY_POINTS,
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "startup_complete",
        environment=settings.ENVIRONMENT,
        log_level=settings.LOG_LEVEL,
        min_compatibility=settings.MIN_COMPATIBILITY,
        match_limit=settings.MATCH_LIMIT,
        point_budget=_point_budget(settings),
    )
    yield
    logger.info("shutdown_complete")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request context for every log line, enforce the timeout, log the outcome.

    The caller's ``X-Request-ID`` is reused when present, otherwise one is
    generated; either way it is echoed on the response.
    """

    def __init__(self, app, timeout_seconds: float = 30.0) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start = time.perf_counter()

        try:
            response = await asyncio.wait_for(
                call_next(request), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning("request_timeout", timeout=self.timeout_seconds)
            response = JSONResponse(
                status_code=504,
                content={"detail": "Request timed out"},
            )
        except Exception:
            logger.exception(
                "request_error",
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)

        logger.info(
            "request_handled",
            status=response.status_code,
            duration_ms=duration_ms,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


app = FastAPI(
    title="Irene Compatibility",
    description="Profile compatibility scoring and match generation",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Last added runs first: CORS wraps the request-context middleware.
app.add_middleware(
    RequestContextMiddleware, timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.get("/health", tags=["health"])
async def health_liveness() -> dict:
    """Liveness check; healthy whenever the process is serving."""
    return {"status": "healthy"}


from irene.api.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
