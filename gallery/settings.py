from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional

class Settings(BaseSettings):
    # Shared secret for mutating endpoints; None means the server is misconfigured
    api_key: Optional[str] = None

    # Upload policy
    max_file_size: int = Field(5 * 1024 * 1024, ge=0)
    accepted_image_types: List[str] = ["image/jpeg", "image/jpg", "image/png", "image/webp"]
    verify_image_content: bool = True

    # Storage layout
    storage_backend: str = Field("s3", pattern="^(s3|memory)$")
    key_prefix: str = "images/"
    public_url_prefix: str = "/api/storage"

    aws_region: str = "us-east-1"
    s3_bucket: str = "image-gallery-bucket"
    aws_endpoint_url: Optional[str] = None
    aws_access_key_id: str = "test"
    aws_secret_access_key: str = "test"

    app_title: str = "Image Gallery"
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
