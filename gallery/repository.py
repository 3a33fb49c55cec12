import itertools
import threading
from typing import Dict, List, Optional
import logging

from gallery.image_service.models import ImageCreate, ImageRecord

log = logging.getLogger(__name__)

class ImageRepository:
    """In-memory image metadata, keyed by integer id.

    Ids start at 1 and are never reused, even after a delete. Listing
    returns records in insertion order; display ordering belongs to
    ``GalleryService``.
    """

    def __init__(self):
        self._images: Dict[int, ImageRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, image: ImageCreate) -> ImageRecord:
        with self._lock:
            record = ImageRecord(id=next(self._ids), **image.model_dump())
            self._images[record.id] = record
        log.debug("Inserted metadata %s -> %s", record.id, record.filename)
        return record

    def get(self, image_id: int) -> Optional[ImageRecord]:
        with self._lock:
            return self._images.get(image_id)

    def list(self) -> List[ImageRecord]:
        with self._lock:
            return list(self._images.values())

    def delete(self, image_id: int) -> bool:
        with self._lock:
            removed = self._images.pop(image_id, None)
        if removed is not None:
            log.debug("Deleted metadata %s", image_id)
        return removed is not None

    def __len__(self):
        with self._lock:
            return len(self._images)
