"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health
from api.routes.v1 import auth, candidates, companies, departments, positions, users
from core.config import settings
from core.middleware import (
    AuthenticationMiddleware,
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    StructuredLoggingMiddleware,
    setup_error_handlers,
    setup_logging,
)
from database.engine import close_db, init_db

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant recruitment backend: companies, departments, positions and candidate CVs",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Route-level handlers for domain, validation and database errors
setup_error_handlers(app)

# Middleware executes in reverse order of registration: the last one added
# is the outermost.
# 1. Authentication (innermost - injects the acting user)
app.add_middleware(
    AuthenticationMiddleware,
    jwt_secret=settings.jwt_secret_key,
    jwt_algorithm=settings.jwt_algorithm,
)

# 2. Rate limiting (rejected requests never reach authentication or handlers)
if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        redis_url=settings.redis_url,
        rate=settings.rate_limit_per_second,
        burst=settings.rate_limit_burst,
        enable_headers=True,
    )

# 3. Structured logging (logs all requests/responses, including 401/429)
app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    max_body_size=settings.log_max_body_size,
)

# 4. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 5. Error handling (outermost - catches everything the handlers did not)
app.add_middleware(
    ErrorHandlingMiddleware,
    debug=settings.debug,
)

# Health check routes
app.include_router(health.router, tags=["Health"])

# API v1 routes
app.include_router(
    auth.router,
    prefix=f"{settings.api_v1_prefix}/auth",
    tags=["Authentication"],
)
app.include_router(
    companies.router,
    prefix=f"{settings.api_v1_prefix}/companies",
    tags=["Companies"],
)
app.include_router(
    departments.router,
    prefix=f"{settings.api_v1_prefix}/departments",
    tags=["Departments"],
)
app.include_router(
    positions.router,
    prefix=f"{settings.api_v1_prefix}/positions",
    tags=["Positions"],
)
app.include_router(
    candidates.router,
    prefix=f"{settings.api_v1_prefix}/candidates",
    tags=["Candidates"],
)
app.include_router(
    users.router,
    prefix=f"{settings.api_v1_prefix}/users",
    tags=["Users"],
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
