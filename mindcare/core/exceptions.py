"""Domain errors and their HTTP mapping.

Services raise these; the exception handler registered in ``main`` turns
them into ``{"error": message}`` responses with the class status code.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mindcare.logging_config import get_logger

logger = get_logger(__name__)


class MindCareError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(MindCareError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(MindCareError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You don't have permission to access this resource"


class InvalidInvite(MindCareError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or already used invite code"


class AccountExists(MindCareError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "An account with this email already exists"


class PatientNotFound(MindCareError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Patient not found"


class PsychologistNotFound(MindCareError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Psychologist not found"


class CrisisNotFound(MindCareError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Crisis not found"


class SenderNotFound(MindCareError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Sender not found"


class ValidationFailure(MindCareError):
    status_code = 422
    default_message = "Invalid request"


class StoreFailure(MindCareError):
    """The key-value store rejected or failed an operation.

    Retryable by the caller; never retried automatically.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage temporarily unavailable"


async def mindcare_error_handler(request: Request, exc: MindCareError) -> JSONResponse:
    """Render a domain error as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error(
            "Request failed with store error",
            path=request.url.path,
            error=exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render pydantic validation errors with the same ``{"error"}`` shape."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=422,
        content={"error": message},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler so no failure escapes without a JSON body."""
    logger.exception(
        "Unhandled error",
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )
