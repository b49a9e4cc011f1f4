from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import auth, emails, gmail_oauth, users
from core.config import get_settings
from core.database import engine, get_db
from core.exceptions import IngestionFailedError, SentinelException
from core.logging import get_logger, setup_logging
from core.rate_limit import limiter
from middleware.authentication import AuthenticationMiddleware
from middleware.correlation import CorrelationIDMiddleware

logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging()

    # Tables are created by scripts/init_db.py
    if not settings.gmail_configured:
        logger.warning("Gmail OAuth client is not configured; linking is disabled")

    yield

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(SentinelException)
async def sentinel_exception_handler(request: Request, exc: SentinelException):
    content: dict[str, Any] = {"message": exc.message}
    if isinstance(exc, IngestionFailedError):
        content["email_account_id"] = exc.email_account_id
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# Middleware (applied in reverse order of registration)
# 1. Authentication binds request.state.identity
app.add_middleware(AuthenticationMiddleware)

# 2. Correlation ID for request tracing, wraps authentication so its logs carry the id
app.add_middleware(CorrelationIDMiddleware)

# 3. CORS middleware
# Using allow_credentials=True requires specific origins (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router, prefix="/auth", tags=["authentication"])
app.include_router(gmail_oauth.router)
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(emails.router, prefix="/api", tags=["emails"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
    - 200 OK if the API and database respond
    - 503 Service Unavailable otherwise
    """
    checks: dict[str, Any] = {"api": True, "database": False}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        checks["error"] = str(e)
        return JSONResponse(
            status_code=503, content={"status": "unhealthy", "checks": checks}
        )

    return {"status": "healthy", "checks": checks}
