from fastapi import APIRouter, Depends, File, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from typing import Optional
import logging
import re

from gallery.auth import require_api_key
from gallery.dependencies import get_gallery_service, get_upload_pipeline
from gallery.exceptions import ImageNotFoundError, InvalidImageIdError, TooLargeError
from gallery.image_service.models import (
    DeletedImage,
    DeleteResponse,
    ImageListResponse,
    ImageResponse,
)
from gallery.image_service.service import GalleryService, UploadPipeline

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["image-gallery"]
)

STORAGE_CACHE_CONTROL = "public, max-age=31536000"
_IMAGE_ID = re.compile(r"-?[0-9]+")

def parse_image_id(raw_id: str) -> int:
    """Path ids must be plain integers; anything else is a 400, not a 422."""
    if not _IMAGE_ID.fullmatch(raw_id):
        raise InvalidImageIdError(raw_id)
    return int(raw_id)

async def read_limited(file: UploadFile, limit: int) -> bytes:
    """Reads at most ``limit + 1`` bytes so an oversized body is never fully loaded."""
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise TooLargeError(size=file.size if file.size is not None else len(data), limit=limit)
    return data

@router.get("/images", response_model=ImageListResponse, response_model_exclude_none=True)
def list_images(gallery: GalleryService = Depends(get_gallery_service)):
    """Lists images, newest first."""
    images = gallery.list_for_display()
    log.info("Retrieved %d images", len(images))
    return ImageListResponse(data=images)

@router.get("/images/{image_id}", response_model=ImageResponse, response_model_exclude_none=True)
def get_image(image_id: str, gallery: GalleryService = Depends(get_gallery_service)):
    """Gets image metadata."""
    return ImageResponse(data=gallery.get_image(parse_image_id(image_id)))

@router.delete(
    "/images/{image_id}",
    response_model=DeleteResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key)],
)
def delete_image(image_id: str, gallery: GalleryService = Depends(get_gallery_service)):
    """Deletes an image and its stored bytes."""
    parsed = parse_image_id(image_id)
    if not gallery.delete_image(parsed):
        raise ImageNotFoundError(parsed, detail="Image not found or could not be deleted")
    return DeleteResponse(data=DeletedImage(id=parsed))

@router.post(
    "/upload",
    response_model=ImageResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key)],
)
async def upload_image(
    file: Optional[UploadFile] = File(None),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
):
    """Uploads an image from the multipart field ``file``."""
    if file is None:
        contents, content_type, size, filename = None, None, None, None
    else:
        log.info(f"File received: {file.filename}, size: {file.size}, type: {file.content_type}")
        content_type, filename = file.content_type, file.filename
        pipeline.check_declared(content_type, file.size)
        contents = await read_limited(file, pipeline.max_file_size)
        size = file.size if file.size is not None else len(contents)

    # Validation, the blob write and the metadata insert all block
    image = await run_in_threadpool(pipeline.upload, contents, content_type, size, filename or "")
    return ImageResponse(data=image)

@router.get("/storage/{key:path}")
def serve_file(key: str, gallery: GalleryService = Depends(get_gallery_service)):
    """Streams stored bytes back with a long cache lifetime."""
    data, content_type = gallery.fetch_bytes(key)
    return Response(
        content=data,
        media_type=content_type,
        headers={"Cache-Control": STORAGE_CACHE_CONTROL},
    )
