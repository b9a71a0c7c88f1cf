"""
Wedding Market API application

Run with `uvicorn wedding_market.main:app` or `python -m wedding_market.main`.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from wedding_market import __version__
from wedding_market.api.v1 import ROUTES
from wedding_market.config import settings
from wedding_market.exceptions import (
    MarketplaceError,
    database_error_handler,
    http_exception_handler,
    marketplace_error_handler,
    request_validation_handler,
)
from wedding_market.middleware.rate_limit import enforce_global_limit, limiter, rate_limit_exceeded_handler
from wedding_market.services.email_service import email_service

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"{settings.APP_NAME} {__version__} starting "
        f"(environment={settings.ENVIRONMENT}, rate_limiting={settings.RATE_LIMIT_ENABLED})"
    )
    yield
    # Let queued e-mails finish before the process exits
    email_service.shutdown()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Wedding services marketplace API: listings, bookings, reviews and moderation",
    version=__version__,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    lifespan=lifespan,
    dependencies=[Depends(enforce_global_limit)],
    debug=settings.DEBUG
)

# ============================================================================
# ERROR HANDLERS
# ============================================================================
# Every error body is {"error": ..., "message": ...}

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(MarketplaceError, marketplace_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_error_handler)

# ============================================================================
# MIDDLEWARE (last added runs first)
# ============================================================================

app.add_middleware(SlowAPIMiddleware)

logger.info(f"Allowed CORS origins: {settings.cors_origins}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,  # auth cookie
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ============================================================================
# ROUTES
# ============================================================================

for router, path, tag in ROUTES:
    app.include_router(router, prefix=f"{settings.API_V1_PREFIX}{path}", tags=[tag])


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": __version__,
        "api": settings.API_V1_PREFIX,
        "docs": app.docs_url,
    }


@app.get("/health")
async def health_check():
    """Liveness probe"""
    return {"status": "healthy", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wedding_market.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
