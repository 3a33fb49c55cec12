import pytest
import json
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from gallery import exceptions


@pytest.mark.asyncio
async def test_api_exception_handler():
    exc = exceptions.ImageNotFoundError(123)
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.api_exception_handler(request, exc)

    assert response.status_code == 404
    # JSONResponse body is bytes, need to decode and parse
    body = json.loads(response.body.decode())
    assert body == {"success": False, "error": "Image not found", "code": "IMAGE_NOT_FOUND"}


@pytest.mark.asyncio
async def test_storage_error_hides_reason():
    exc = exceptions.StorageWriteError("images/1-a.png", reason="AccessDenied for arn:aws:s3:::bucket")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.api_exception_handler(request, exc)

    assert response.status_code == 500
    body = json.loads(response.body.decode())
    assert body == {"success": False, "error": "Failed to upload file", "code": "STORAGE_ERROR"}


@pytest.mark.asyncio
async def test_http_exception_handler():
    exc = HTTPException(status_code=405, detail="Method Not Allowed")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.http_exception_handler(request, exc)

    assert response.status_code == 405
    body = json.loads(response.body.decode())
    assert body == {"success": False, "error": "Method Not Allowed"}


@pytest.mark.asyncio
async def test_generic_exception_handler():
    exc = ValueError("Something went wrong")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.generic_exception_handler(request, exc)

    assert response.status_code == 500
    body = json.loads(response.body.decode())
    assert body == {"success": False, "error": "An unexpected error occurred."}


@pytest.mark.asyncio
async def test_request_validation_handler():
    exc = RequestValidationError([{"loc": ("body", "file"), "msg": "Expected UploadFile", "type": "value_error"}])
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.request_validation_handler(request, exc)

    assert response.status_code == 400
    body = json.loads(response.body.decode())
    assert body == {"success": False, "error": "Invalid request: body.file", "code": "VALIDATION_ERROR"}


@pytest.mark.parametrize("exc, status, code", [
    (exceptions.NoFileError(), 400, "NO_FILE"),
    (exceptions.InvalidTypeError("text/plain"), 400, "INVALID_FILE_TYPE"),
    (exceptions.TooLargeError(size=6, limit=5), 413, "FILE_TOO_LARGE"),
    (exceptions.InvalidImageIdError("abc"), 400, "INVALID_IMAGE_ID"),
    (exceptions.MissingApiKeyError(), 401, "API_KEY_REQUIRED"),
    (exceptions.InvalidApiKeyError(), 403, "INVALID_API_KEY"),
    (exceptions.ConfigError(), 500, "CONFIG_ERROR"),
    (exceptions.BlobNotFoundError("k"), 404, "FILE_NOT_FOUND"),
])
def test_custom_exceptions_inherit_api_exception(exc, status, code):
    assert isinstance(exc, exceptions.APIException)
    assert exc.status_code == status
    assert exc.code == code


def test_error_families():
    assert isinstance(exceptions.TooLargeError(size=6, limit=5), exceptions.ValidationError)
    assert isinstance(exceptions.InvalidApiKeyError(), exceptions.AuthError)
    assert not isinstance(exceptions.ConfigError(), exceptions.AuthError)
    assert isinstance(exceptions.StorageWriteError("k"), exceptions.StorageError)
