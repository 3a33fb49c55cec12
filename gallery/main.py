from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
import logging

from gallery.image_service.service import GalleryService, UploadPipeline
from gallery.repository import ImageRepository
from gallery.settings import Settings, settings as default_settings
from gallery.storage.base import ObjectStore
from gallery.storage.memory import InMemoryObjectStore
from gallery.storage.s3 import S3ObjectStore
from gallery.routers.images import router as image_router
from gallery.exceptions import add_exception_handlers

logging.basicConfig(level=default_settings.log_level)
log = logging.getLogger("image-gallery")

def build_store(settings: Settings) -> ObjectStore:
    if settings.storage_backend == "memory":
        return InMemoryObjectStore()
    return S3ObjectStore(settings)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Async context manager for FastAPI application lifecycle events.
        Builds the object store, the metadata repository and the services
        sharing them, and closes the store on shutdown.
    """
    settings: Settings = app.state.settings
    if not settings.api_key:
        log.warning("API_KEY is not set; uploads and deletes will be refused")

    store = build_store(settings)
    repository = ImageRepository()
    app.state.store = store
    app.state.repository = repository
    app.state.pipeline = UploadPipeline(
        store=store,
        repository=repository,
        accepted_types=settings.accepted_image_types,
        max_file_size=settings.max_file_size,
        key_prefix=settings.key_prefix,
        public_url_prefix=settings.public_url_prefix,
        verify_content=settings.verify_image_content,
    )
    app.state.gallery = GalleryService(store=store, repository=repository, key_prefix=settings.key_prefix)
    yield
    # Cleanup resources
    store.close()

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(
        title=settings.app_title,
        lifespan=lifespan,
        description="Image upload and gallery service",
    )
    app.state.settings = settings

    # Add exception handlers
    add_exception_handlers(app)

    # CORS - Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add the routers
    app.include_router(image_router)

    # Check Health
    @app.get("/")
    def read_root():
        """
            Default end point
        """
        return "Image Gallery Service is running."

    return app

app = create_app()

if __name__ == "__main__":
    uvicorn.run("gallery.main:app", host="0.0.0.0", port=8000, reload=True)
