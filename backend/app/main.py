from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from app.core.access import AccessEvaluator, Decision, build_rules
from app.core.config import settings
from app.core.errors import (
    AppError,
    app_error_handler,
    error_response,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.logging_config import configure_logging
from app.core.security import bearer_token, validate_token
from app.db.base import Base
from app.db.session import engine

# Import all models so SQLAlchemy can discover them for table creation
from app.models import User, Job, JobApplication, Notification  # noqa: F401

# Import API routers
from app.api.api import api_router
from app.api.v1 import realtime

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup."""
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Job board with role-based access and real-time notifications",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

access_evaluator = AccessEvaluator(build_rules(settings.API_PREFIX))


@app.middleware("http")
async def enforce_access_rules(request: Request, call_next):
    """Allow or reject the request by path and token role before routing."""
    if request.method == "OPTIONS":
        return await call_next(request)

    token = bearer_token(request.headers.get("Authorization"))
    principal = validate_token(token) if token else None

    decision = access_evaluator.evaluate(request.url.path, principal.role if principal else None)
    if decision is Decision.UNAUTHENTICATED:
        return error_response(401, "Authentication required")
    if decision is Decision.FORBIDDEN:
        return error_response(403, "Access denied")

    request.state.principal = principal
    return await call_next(request)


# CORS Middleware - allowlist from env (comma-separated); outermost so preflights
# are answered before the access rules run
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in settings.BACKEND_CORS_ORIGINS.split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Authorization", "Content-Type", "Content-Disposition"],
)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": f"Welcome to {settings.APP_NAME} API"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Include API router under the configured prefix
app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(realtime.router, prefix="/ws", tags=["Realtime"])
