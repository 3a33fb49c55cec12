"""
    Centralized exception handling for the FastAPI application.

    Every error is rendered in the same envelope as successful responses:
    ``{"success": false, "error": <message>, "code": <code>}``.
"""
from fastapi import Request
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

log = logging.getLogger(__name__)

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str, code: str):
        self.status_code = status_code
        self.detail = detail
        self.code = code
        super().__init__(self.detail)

# -------------------------
# Validation (4xx)
# -------------------------
class ValidationError(APIException):
    """A request violated an upload or routing constraint."""
    def __init__(self, detail: str, code: str = "VALIDATION_ERROR", status_code: int = 400):
        super().__init__(status_code=status_code, detail=detail, code=code)

class NoFileError(ValidationError):
    def __init__(self):
        super().__init__(detail="No file uploaded", code="NO_FILE")

class InvalidTypeError(ValidationError):
    """Exception for files outside the accepted MIME types."""
    def __init__(self, content_type: str = None, detail: str = "Invalid file type"):
        self.content_type = content_type
        super().__init__(detail=detail, code="INVALID_FILE_TYPE")

class TooLargeError(ValidationError):
    """Exception for files over the configured size limit."""
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        detail = f"File too large: {size / (1024 * 1024):.2f} MB exceeds the {limit / (1024 * 1024):g} MB limit"
        super().__init__(detail=detail, code="FILE_TOO_LARGE", status_code=413)

class InvalidImageIdError(ValidationError):
    def __init__(self, raw_id: str):
        self.raw_id = raw_id
        super().__init__(detail="Invalid image ID", code="INVALID_IMAGE_ID")

# -------------------------
# Access gate (401/403)
# -------------------------
class AuthError(APIException):
    """Missing or wrong API key. Never carries the configured key."""

class MissingApiKeyError(AuthError):
    def __init__(self):
        super().__init__(status_code=401, detail="API key is required", code="API_KEY_REQUIRED")

class InvalidApiKeyError(AuthError):
    def __init__(self):
        super().__init__(status_code=403, detail="Invalid API key", code="INVALID_API_KEY")

class ConfigError(APIException):
    """The server has no API key configured and cannot decide access."""
    def __init__(self, detail: str = "Server configuration error"):
        super().__init__(status_code=500, detail=detail, code="CONFIG_ERROR")

# -------------------------
# Lookups (404)
# -------------------------
class NotFoundError(APIException):
    def __init__(self, detail: str, code: str = "NOT_FOUND"):
        super().__init__(status_code=404, detail=detail, code=code)

class ImageNotFoundError(NotFoundError):
    """Exception for when an image record is not found."""
    def __init__(self, image_id: int, detail: str = "Image not found"):
        self.image_id = image_id
        super().__init__(detail=detail, code="IMAGE_NOT_FOUND")

class BlobNotFoundError(NotFoundError):
    """Exception for when no blob is stored under a key."""
    def __init__(self, key: str):
        self.key = key
        super().__init__(detail="File not found", code="FILE_NOT_FOUND")

# -------------------------
# Storage (500)
# -------------------------
class StorageError(APIException):
    """Exception for object store or metadata failures.

    ``detail`` is the generic message sent to clients; ``reason`` holds the
    underlying cause for the server log.
    """
    def __init__(self, detail: str = "Storage operation failed", reason: str = None):
        self.reason = reason
        super().__init__(status_code=500, detail=detail, code="STORAGE_ERROR")

class StorageWriteError(StorageError):
    def __init__(self, key: str, reason: str = None):
        self.key = key
        super().__init__(detail="Failed to upload file", reason=reason)


def _envelope(exc_status: int, error: str, code: str = None) -> JSONResponse:
    content = {"success": False, "error": error}
    if code:
        content["code"] = code
    return JSONResponse(status_code=exc_status, content=content)

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    if exc.status_code >= 500:
        log.error(f"API Exception: {exc.detail} ({getattr(exc, 'reason', None)})", exc_info=exc)
    else:
        log.warning(f"API Exception: {exc.status_code} {exc.detail}")
    return _envelope(exc.status_code, exc.detail, exc.code)

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}", exc_info=exc)
    return _envelope(exc.status_code, str(exc.detail))

async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Renders FastAPI request validation failures as 400s."""
    fields = [".".join(str(part) for part in err.get("loc", [])) for err in exc.errors()]
    log.warning(f"Request validation failed: {fields}")
    return _envelope(400, f"Invalid request: {', '.join(fields) or 'body'}", "VALIDATION_ERROR")

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return _envelope(500, "An unexpected error occurred.")

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
