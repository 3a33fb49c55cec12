from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

class ImageCreate(BaseModel):
    """Metadata for a freshly written blob, before an id is assigned."""
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    url: str
    content_type: str = Field(alias="contentType")
    size: int = Field(ge=0)

class ImageRecord(ImageCreate):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(gt=0)

class DeletedImage(BaseModel):
    id: int

class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None

ImageResponse = ApiResponse[ImageRecord]
ImageListResponse = ApiResponse[List[ImageRecord]]
DeleteResponse = ApiResponse[DeletedImage]
