"""Python client for the gallery API.

Validates files locally before sending them (the server remains the
authority), reports upload progress and keeps a cached copy of the gallery
listing that is dropped whenever an upload or delete succeeds.
"""
from __future__ import annotations

import logging
import mimetypes
import os
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Union

import httpx

from gallery.exceptions import InvalidTypeError, TooLargeError
from gallery.image_service.models import ImageRecord
from gallery.settings import Settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

_DEFAULTS = Settings.model_fields


class GalleryClientError(Exception):
    """Raised when the API answers with an error envelope."""

    def __init__(self, status: int, error: str, code: Optional[str] = None):
        super().__init__(f"Gallery API error {status}: {error}")
        self.status = status
        self.error = error
        self.code = code


class _ProgressReader:
    """File wrapper that reports how many bytes httpx has read so far."""

    def __init__(self, fileobj: BinaryIO, total: int, on_progress: Optional[ProgressCallback]):
        self._fileobj = fileobj
        self._total = total
        self._sent = 0
        self._on_progress = on_progress

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        position = self._fileobj.seek(offset, whence)
        self._sent = position
        return position

    def tell(self) -> int:
        return self._fileobj.tell()

    def read(self, size: int = -1) -> bytes:
        chunk = self._fileobj.read(size)
        if chunk:
            self._sent += len(chunk)
            if self._on_progress:
                self._on_progress(self._sent, self._total)
        return chunk


class GalleryClient:
    """Synchronous client for the upload, listing and delete endpoints."""

    def __init__(
        self,
        base_url: Union[str, httpx.Client] = "http://localhost:8000",
        *,
        api_key: Optional[str] = None,
        accepted_types: Optional[List[str]] = None,
        max_file_size: Optional[int] = None,
        timeout: float = 30.0,
    ) -> None:
        if isinstance(base_url, httpx.Client):
            self._client = base_url
        else:
            self._client = httpx.Client(base_url=base_url, timeout=timeout)
        self._api_key = api_key
        self._accepted_types = set(accepted_types or _DEFAULTS["accepted_image_types"].default)
        self._max_file_size = max_file_size or _DEFAULTS["max_file_size"].default
        self._gallery: Optional[List[ImageRecord]] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, path: str) -> str:
        """Check type and size locally; returns the guessed content type."""
        content_type, _ = mimetypes.guess_type(path)
        if content_type not in self._accepted_types:
            raise InvalidTypeError(content_type, detail="Please upload a valid image file (JPG, PNG, WebP)")
        size = os.path.getsize(path)
        if size > self._max_file_size:
            raise TooLargeError(size=size, limit=self._max_file_size)
        return content_type

    def upload(self, path: str, on_progress: Optional[ProgressCallback] = None) -> ImageRecord:
        content_type = self.validate(path)
        total = os.path.getsize(path)
        with open(path, "rb") as fh:
            reader = _ProgressReader(fh, total, on_progress)
            files = {"file": (os.path.basename(path), reader, content_type)}
            data = self._request("POST", "/api/upload", files=files, headers=self._auth_headers())
        self.invalidate()
        image = ImageRecord.model_validate(data)
        logger.info("Uploaded %s as image %s", path, image.id)
        return image

    def list_images(self, refresh: bool = False) -> List[ImageRecord]:
        if self._gallery is None or refresh:
            data = self._request("GET", "/api/images")
            self._gallery = [ImageRecord.model_validate(item) for item in data]
        return list(self._gallery)

    def get_image(self, image_id: int) -> ImageRecord:
        return ImageRecord.model_validate(self._request("GET", f"/api/images/{image_id}"))

    def delete_image(self, image_id: int) -> int:
        data = self._request("DELETE", f"/api/images/{image_id}", headers=self._auth_headers())
        self.invalidate()
        return data["id"]

    def download(self, image: ImageRecord) -> bytes:
        resp = self._client.get(image.url)
        if resp.status_code != 200:
            self._raise_for_envelope(resp)
        return resp.content

    def invalidate(self) -> None:
        self._gallery = None

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _auth_headers(self) -> Dict[str, str]:
        return {"x-api-key": self._api_key} if self._api_key else {}

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        resp = self._client.request(method, url, **kwargs)
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or not body.get("success"):
            self._raise_for_envelope(resp, body)
        return body.get("data")

    @staticmethod
    def _raise_for_envelope(resp: httpx.Response, body: Optional[Dict[str, Any]] = None) -> None:
        if body is None:
            try:
                body = resp.json()
            except ValueError:
                body = {}
        error = body.get("error") or resp.text or "Request failed"
        logger.error("Gallery API %s %s -> %s: %s", resp.request.method, resp.request.url, resp.status_code, error)
        raise GalleryClientError(resp.status_code, error, body.get("code"))
