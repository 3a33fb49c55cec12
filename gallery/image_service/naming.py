"""Storage key naming: sanitizing, disambiguating and addressing keys."""
import re
import threading
import time
from typing import Optional
from urllib.parse import quote

MAX_NAME_LENGTH = 50
DEFAULT_EXTENSION = "bin"
DEFAULT_NAME = "image"

EXTENSION_CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}
FALLBACK_CONTENT_TYPE = "application/octet-stream"

_UNSAFE_RUN = re.compile(r"[^a-z0-9.]+")
_KEY_TIMESTAMP = re.compile(r"^(?:.*/)?(\d+)-[^/]*$")


def sanitize_filename(original_name: str) -> str:
    """Normalize a user supplied file name into ``name.extension``.

    >>> sanitize_filename("My Photo!!.PNG")
    'my-photo.png'
    >>> sanitize_filename("README")
    'readme.bin'
    """
    cleaned = _UNSAFE_RUN.sub("-", (original_name or "").lower())
    name, _, extension = cleaned.partition(".")
    name = name.strip("-")[:MAX_NAME_LENGTH].rstrip("-") or DEFAULT_NAME
    extension = extension.strip("-.") or DEFAULT_EXTENSION
    return f"{name}.{extension}"


class Disambiguator:
    """Strictly increasing millisecond timestamps.

    Two calls within the same millisecond still get distinct values, so
    uploads sharing an original name never map to the same key.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            now = int(self._clock() * 1000)
            self._last = now if now > self._last else self._last + 1
            return self._last


def build_storage_key(prefix: str, stamp: int, original_name: str) -> str:
    return f"{prefix}{stamp}-{sanitize_filename(original_name)}"


def storage_url(public_prefix: str, key: str) -> str:
    return f"{public_prefix.rstrip('/')}/{quote(key, safe='')}"


def key_timestamp(key: str) -> Optional[int]:
    """Millisecond timestamp embedded in ``key``, or None if it has none."""
    match = _KEY_TIMESTAMP.match(key or "")
    return int(match.group(1)) if match else None


def content_type_for_key(key: str) -> str:
    _, dot, extension = key.rpartition(".")
    if not dot:
        return FALLBACK_CONTENT_TYPE
    return EXTENSION_CONTENT_TYPES.get(extension.lower(), FALLBACK_CONTENT_TYPE)
