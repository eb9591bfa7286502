import logging

import uvicorn
from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from abacus.api.routes.graph import router as graph_router
from abacus.api.routes.stats import router as stats_router
from abacus.core.middleware import PreferTimezoneMiddleware
from abacus.core.middleware import ResponseCacheMiddleware
from abacus.core.observability import configure_logging
from abacus.core.observability import init_sentry
from abacus.core.observability import mask_database_url
from abacus.db import check_connection
from abacus.db import engine
from abacus.settings import Settings


logger = logging.getLogger(__name__)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = "Not found" if exc.status_code == 404 else exc.detail
    return JSONResponse(
        status_code=exc.status_code, content={"error": detail}, headers=exc.headers
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Error handling request %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc)},
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the API application with middleware and routes."""

    app_settings = app_settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    app = FastAPI(title="Command Abacus")
    # Added innermost first: CORS wraps timezone resolution, which wraps caching.
    app.add_middleware(
        ResponseCacheMiddleware,
        ttl_seconds=app_settings.cache_ttl_seconds,
        max_entries=app_settings.cache_max_entries,
    )
    app.add_middleware(
        PreferTimezoneMiddleware, default_timezone=app_settings.default_timezone
    )
    app.add_middleware(
        CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"]
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(stats_router)
    app.include_router(graph_router)

    logger.info("Database: %s", mask_database_url(app_settings.database_url))
    logger.info("Cache TTL: %ss", app_settings.cache_ttl_seconds)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""

    settings = Settings()
    if not check_connection(engine):
        logger.error(
            "Cannot connect to database %s", mask_database_url(settings.database_url)
        )
        raise SystemExit(1)

    logger.info("Starting Command Abacus on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
