"""Error taxonomy for the Files API and the FastAPI handlers that render it."""

import logging
from enum import Enum

import pydantic
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Closed set of error kinds returned by lifecycle operations"""
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    INVALID_INPUT = "INVALID_INPUT"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


ERROR_STATUS_CODES = {
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_IDENTIFIER: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNSUPPORTED_MEDIA_TYPE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PAYLOAD_TOO_LARGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.STORAGE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.TIMEOUT: status.HTTP_502_BAD_GATEWAY,
}


class FileError(Exception):
    """Base class for every error a lifecycle operation can report."""

    code: ErrorCode = ErrorCode.STORAGE_UNAVAILABLE
    default_message = "File operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_CODES[self.code]

    def to_dict(self) -> dict:
        return {"error": {"code": self.code.value, "message": self.message}}


class UnauthenticatedError(FileError):
    code = ErrorCode.UNAUTHENTICATED
    default_message = "Authentication required"


class InvalidIdentifierError(FileError):
    code = ErrorCode.INVALID_IDENTIFIER
    default_message = "Invalid file ID"


class InvalidInputError(FileError):
    code = ErrorCode.INVALID_INPUT
    default_message = "Invalid input"


class UnsupportedMediaTypeError(FileError):
    code = ErrorCode.UNSUPPORTED_MEDIA_TYPE
    default_message = "Invalid file type"


class PayloadTooLargeError(FileError):
    code = ErrorCode.PAYLOAD_TOO_LARGE
    default_message = "File too large"


class NotFoundError(FileError):
    code = ErrorCode.NOT_FOUND
    default_message = "File not found"


class StorageUnavailableError(FileError):
    code = ErrorCode.STORAGE_UNAVAILABLE
    default_message = "Storage backend unavailable"


class StorageTimeoutError(FileError):
    code = ErrorCode.TIMEOUT
    default_message = "Storage backend timed out"


class LinkCollisionError(Exception):
    """Raised by a record store when a generated link is already taken."""


async def handle_file_errors(request: Request, exc: FileError) -> JSONResponse:
    """Render a taxonomy error as a JSON error descriptor."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code.value}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code.value}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_pydantic_validation_errors(
    request: Request, exc: RequestValidationError | pydantic.ValidationError
) -> JSONResponse:
    """Request shape problems are reported as INVALID_INPUT."""
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in errors
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=InvalidInputError(message or None).to_dict(),
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates past the route handlers."""
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
        )


# Room for multipart boundaries, part headers and the tags field
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def reject_oversized_uploads(upload_path: str, max_upload_bytes: int):
    """Build a middleware that refuses uploads whose declared Content-Length cannot fit.

    Runs before the multipart body is parsed, so such requests are never spooled.
    Bodies without a Content-Length are still bounded by the route's read limit.
    """
    limit = max_upload_bytes + MULTIPART_OVERHEAD_BYTES

    async def middleware(request: Request, call_next):
        if request.method == "POST" and request.url.path == upload_path:
            content_length = request.headers.get("content-length", "")
            if content_length.isdigit() and int(content_length) > limit:
                logger.info(f"Rejected upload with Content-Length {content_length} (limit {limit})")
                error = PayloadTooLargeError(f"File exceeds the {max_upload_bytes} byte limit")
                return JSONResponse(status_code=error.status_code, content=error.to_dict())
        return await call_next(request)

    return middleware
