"""
Social Handle Directory Backend
===============================
FastAPI application for a shared, contributor-fed directory of social
media handles:
- Bulk import of pasted handles, URLs and tables
- Similarity-based folding of brand/person name variants
- Handle → brand and brand → handles search

Layout:
- app/core/: Settings, store wiring, API key check
- app/middleware/: CORS, rate limiting
- app/models/schemas/: Directory records and API payloads
- app/services/handles/: Platform detection and text parsing
- app/services/identity/: Brand normalization and name similarity
- app/services/directory/: Store adapter, upsert, search, bulk import
- app/api/v1/routes/: HTTP endpoints

Version: 1.0.0
"""
import sys
import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Fail fast with a readable message if settings or imports are broken
try:
    from app.core.config import settings
    from app.core.dependencies import initialize_clients, pattern_library, shutdown_clients
    from app.middleware.cors import get_cors_middleware
    from app.api.v1.routes import (
        health_router,
        search_router,
        handles_router,
    )
    from app.services.directory.errors import (
        InvalidHandleFormat,
        RecordNotFound,
        StoreError,
        StoreUnavailable,
        ValidationError,
    )
except Exception as e:
    print(f"🚨 Handle directory failed to start: {e}", file=sys.stderr)
    print(traceback.format_exc(), file=sys.stderr)
    sys.exit(1)

logging.basicConfig(
    level=logging.DEBUG if settings.debug or settings.environment != "production" else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ============================================================================
# SENTRY
# ============================================================================

if settings.sentry_dsn:
    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        # Store failures are logged at ERROR, which turns them into Sentry events
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            integrations=[
                FastApiIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
        )
        logger.info(f"✅ Sentry enabled ({settings.environment}, traces {settings.sentry_traces_sample_rate:.0%})")
    except Exception as e:
        logger.warning(f"⚠️  Sentry init failed, continuing without it: {e}")
else:
    logger.info("ℹ️  SENTRY_DSN not set, error tracking off")


# ============================================================================
# LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the directory store on startup, release it on shutdown."""
    logger.info("=" * 80)
    logger.info(f"Social Handle Directory starting ({settings.environment}, port {settings.port}, debug={settings.debug})")
    logger.info(f"Platform priority: {', '.join(p.value for p in pattern_library.priority)}")
    logger.info(
        f"Name folding ≥ {settings.dedup_similarity_threshold}, "
        f"autocomplete > {settings.suggest_similarity_threshold}, "
        f"search limit {settings.search_default_limit}/{settings.search_max_limit}"
    )

    await initialize_clients()

    logger.info("✅ Handle directory ready")
    logger.info("=" * 80)

    yield

    logger.info("Handle directory shutting down...")
    await shutdown_clients()
    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="Social Handle Directory API",
    description="Shared directory of brand and person handles across social platforms",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# ============================================================================
# RATE LIMITING (slowapi, per client IP)
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from app.middleware.rate_limit import limiter, search_rate_limit

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
logger.info(f"✅ Search endpoints limited to {search_rate_limit} per client")

# ============================================================================
# DIRECTORY ERRORS → HTTP
# ============================================================================


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": exc.message, "field": exc.field})


async def invalid_handle_handler(request: Request, exc: InvalidHandleFormat):
    return JSONResponse(
        status_code=400,
        content={"error": str(exc), "platform": exc.platform, "handle": exc.handle}
    )


async def record_not_found_handler(request: Request, exc: RecordNotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})


async def store_error_handler(request: Request, exc: StoreError):
    # Store details stay in the logs, not in the response
    logger.error(f"Store failure on {request.url.path}: {exc}", exc_info=exc)
    if isinstance(exc, StoreUnavailable):
        return JSONResponse(status_code=503, content={"error": "Directory store unavailable"})
    return JSONResponse(status_code=502, content={"error": "Directory store error"})


app.add_exception_handler(ValidationError, validation_error_handler)
app.add_exception_handler(InvalidHandleFormat, invalid_handle_handler)
app.add_exception_handler(RecordNotFound, record_not_found_handler)
app.add_exception_handler(StoreError, store_error_handler)

cors_middleware, cors_config = get_cors_middleware()
app.add_middleware(cors_middleware, **cors_config)

app.include_router(health_router)
app.include_router(search_router)
app.include_router(handles_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
