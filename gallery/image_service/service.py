from io import BytesIO
from typing import Iterable, List, Optional, Tuple
import logging
from PIL import Image, UnidentifiedImageError

from gallery.exceptions import (
    BlobNotFoundError,
    ImageNotFoundError,
    InvalidTypeError,
    NoFileError,
    StorageError,
    StorageWriteError,
    TooLargeError,
)
from gallery.image_service import naming
from gallery.image_service.models import ImageCreate, ImageRecord
from gallery.repository import ImageRepository
from gallery.storage.base import ObjectStore

log = logging.getLogger(__name__)

PIL_FORMAT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}
# Aliases that name the same format
EQUIVALENT_TYPES = {"image/jpg": "image/jpeg"}

def sniff_content_type(data: bytes) -> Optional[str]:
    """Detect the MIME type of image bytes, or None if they are not an image."""
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
            return PIL_FORMAT_TYPES.get((img.format or "").upper())
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        return None


class UploadPipeline:
    """Validates an upload, writes the blob and records its metadata.

    Either both the blob and the metadata record exist afterwards and the
    record is returned, or an exception is raised and neither does. The
    one exception is a failed compensating delete, which is logged.
    """

    def __init__(
        self,
        store: ObjectStore,
        repository: ImageRepository,
        accepted_types: Iterable[str],
        max_file_size: int,
        key_prefix: str = "images/",
        public_url_prefix: str = "/api/storage",
        verify_content: bool = True,
        disambiguator: Optional[naming.Disambiguator] = None,
    ):
        self.store = store
        self.repository = repository
        self.accepted_types = frozenset(accepted_types)
        self.max_file_size = max_file_size
        self.key_prefix = key_prefix
        self.public_url_prefix = public_url_prefix
        self.verify_content = verify_content
        self.disambiguator = disambiguator or naming.Disambiguator()

    def check_declared(self, content_type: str, size: Optional[int]) -> None:
        """Checks what the client declared, before any bytes are read."""
        if content_type not in self.accepted_types:
            raise InvalidTypeError(content_type)
        if size is not None and size > self.max_file_size:
            raise TooLargeError(size=size, limit=self.max_file_size)

    def validate(self, data: Optional[bytes], content_type: str, size: int) -> None:
        """Raises a ValidationError subclass; performs no side effects."""
        if not data:
            raise NoFileError()
        self.check_declared(content_type, size)
        if self.verify_content:
            detected = sniff_content_type(data)
            declared = EQUIVALENT_TYPES.get(content_type, content_type)
            if detected != declared:
                log.info("Declared %s but content sniffed as %s", content_type, detected)
                raise InvalidTypeError(content_type)

    def upload(
        self,
        data: Optional[bytes],
        content_type: str,
        size: Optional[int],
        original_name: str,
    ) -> ImageRecord:
        if size is None and data is not None:
            size = len(data)
        self.validate(data, content_type, size)

        key = naming.build_storage_key(self.key_prefix, self.disambiguator.next(), original_name)
        try:
            self.store.put(key, data, content_type)
        except StorageError as e:
            log.error(f"Blob write failed for {key}: {e.reason}")
            raise StorageWriteError(key, reason=e.reason)

        try:
            record = self.repository.insert(ImageCreate(
                filename=key,
                url=naming.storage_url(self.public_url_prefix, key),
                content_type=content_type,
                size=len(data),
            ))
        except Exception as e:
            log.error(f"Metadata insert failed after writing {key}; removing orphan blob", exc_info=e)
            self._discard_blob(key)
            raise StorageError(detail="Failed to upload file", reason=str(e))

        log.info("Saved image %s as %s (%d bytes)", record.id, key, record.size)
        return record

    def _discard_blob(self, key: str) -> None:
        try:
            self.store.delete(key)
        except StorageError as e:
            log.error(f"Orphan blob {key} left in storage, manual cleanup needed: {e.reason}")


def _display_sort_key(record: ImageRecord) -> Tuple[bool, int]:
    stamp = naming.key_timestamp(record.filename)
    return (stamp is None, -(stamp or 0))


class GalleryService:
    """Read side of the gallery, plus deletion."""

    def __init__(self, store: ObjectStore, repository: ImageRepository, key_prefix: str = "images/"):
        self.store = store
        self.repository = repository
        self.key_prefix = key_prefix

    def list_for_display(self) -> List[ImageRecord]:
        """Newest upload first; records with unparseable keys keep their order at the end."""
        return sorted(self.repository.list(), key=_display_sort_key)

    def get_image(self, image_id: int) -> ImageRecord:
        record = self.repository.get(image_id)
        if record is None:
            raise ImageNotFoundError(image_id)
        return record

    def fetch_bytes(self, key: str) -> Tuple[bytes, str]:
        data = self.store.get(key)
        return data, naming.content_type_for_key(key)

    def delete_image(self, image_id: int) -> bool:
        """Removes blob then metadata. Returns False if the id is unknown."""
        record = self.repository.get(image_id)
        if record is None:
            return False
        try:
            self.store.delete(record.filename)
        except BlobNotFoundError:
            log.warning("Blob %s already missing while deleting image %s", record.filename, image_id)
        except StorageError as e:
            log.error(f"Blob delete failed for image {image_id}: {e.reason}")
            raise
        deleted = self.repository.delete(image_id)
        if deleted:
            log.info("Deleted image %s (%s)", image_id, record.filename)
        return deleted

    def orphaned_keys(self) -> List[str]:
        """Stored keys that no metadata record points at."""
        known = {record.filename for record in self.repository.list()}
        orphans = [key for key in self.store.list(self.key_prefix) if key not in known]
        for key in orphans:
            log.warning("Orphan blob %s has no metadata record", key)
        return orphans
