from fastapi import Request
from gallery.image_service.service import GalleryService, UploadPipeline
from gallery.settings import Settings

def get_settings(request: Request) -> Settings:
    """Dependency provider for the application Settings"""
    return request.app.state.settings

def get_upload_pipeline(request: Request) -> UploadPipeline:
    """Dependency provider for UploadPipeline"""
    return request.app.state.pipeline

def get_gallery_service(request: Request) -> GalleryService:
    """Dependency provider for GalleryService"""
    return request.app.state.gallery
