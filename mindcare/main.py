"""MindCare FastAPI Application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from mindcare.config import settings, validate_secret_key
from mindcare.core.exceptions import (
    MindCareError,
    mindcare_error_handler,
    request_validation_handler,
    unhandled_error_handler,
)
from mindcare.logging_config import get_logger, setup_logging
from mindcare.middleware import CorrelationIdMiddleware
from mindcare.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from mindcare.routers import auth, chat, crisis, health, patient, psychologist
from mindcare.store import close_store

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    validate_secret_key()
    logger.info("MindCare API started", store_backend=settings.store_backend)

    yield

    logger.info("Shutting down MindCare API...")
    await close_store()
    logger.info("MindCare API shutdown complete")


app = FastAPI(
    title="MindCare API",
    description="Crisis support between patients and their psychologists",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter

app.add_exception_handler(MindCareError, mindcare_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Middleware (order matters: first added = last executed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(psychologist.router)
app.include_router(patient.router)
app.include_router(crisis.router)
app.include_router(chat.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "MindCare API",
        "version": "0.1.0",
        "docs": "/docs",
    }
