import threading
from typing import Dict, List
from gallery.exceptions import BlobNotFoundError
from gallery.storage.base import ObjectStore
import logging

log = logging.getLogger(__name__)

# -------------------------
# In-memory Object Store
# -------------------------
class InMemoryObjectStore(ObjectStore):
    """Process-local blob store for development; contents are lost on restart."""

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        log.info("Initialized in-memory object store")

    def put(self, key: str, data: bytes, content_type: str) -> None:
        with self._lock:
            self._blobs[key] = bytes(data)
        log.debug("Stored %s (%d bytes, %s)", key, len(data), content_type)

    def get(self, key: str) -> bytes:
        with self._lock:
            try:
                return self._blobs[key]
            except KeyError:
                raise BlobNotFoundError(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._blobs.pop(key, None)
        log.debug("Deleted %s", key)

    def list(self, prefix: str = "") -> List[str]:
        with self._lock:
            return [key for key in self._blobs if key.startswith(prefix)]
