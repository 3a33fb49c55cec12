"""Backend-agnostic contract for blob storage."""
from abc import ABC, abstractmethod
from typing import List


class ObjectStore(ABC):
    """Durable key -> bytes storage.

    Implementations raise ``BlobNotFoundError`` from :meth:`get` when a key is
    absent and ``StorageError`` for any other backend failure.
    """

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store ``data`` under ``key``, replacing any existing blob."""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the bytes stored under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``. Deleting a missing key is not an error."""

    @abstractmethod
    def list(self, prefix: str = "") -> List[str]:
        """Return every key starting with ``prefix``."""

    def close(self) -> None:
        pass
