"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from core.config import settings
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import applications, auth, profile, uploads, vacancies
from api.routes.v1.admin import (
    applications as admin_applications,
    dashboard as admin_dashboard,
    users as admin_users,
    vacancies as admin_vacancies,
)

from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
    AuthenticationMiddleware,
)

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
    description="Recruitment portal: vacancies, applications and applicant review",
    version=health.VERSION,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

setup_error_handlers(app, debug=settings.debug)

# Middleware added last runs first.
# 1. Authentication (innermost - decodes the session token)
app.add_middleware(
    AuthenticationMiddleware,
    jwt_secret=settings.jwt_secret_key,
    jwt_algorithm=settings.jwt_algorithm,
    api_prefix=settings.api_v1_prefix,
)

# 2. Structured logging (request id, timing, PII masking)
app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    log_response_body=settings.log_response_body,
    max_body_size=settings.log_max_body_size,
)

# 3. Error handling (catches anything the inner layers raise)
app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)

# 4. CORS (outermost - error responses carry CORS headers too)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check routes
app.include_router(health.router, tags=["Health"])

# API v1 routes
for router in (
    auth.router,
    vacancies.router,
    applications.router,
    profile.router,
    uploads.router,
    admin_vacancies.router,
    admin_applications.router,
    admin_users.router,
    admin_dashboard.router,
):
    app.include_router(router, prefix=settings.api_v1_prefix)

# Uploaded resumes are served publicly under their random names
Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
