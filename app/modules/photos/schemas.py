from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class PhotoUpload(BaseModel):
    """File content read from the request, before it reaches blob storage"""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class PhotoFeatureUpdate(BaseModel):
    is_featured: bool


class PhotoResponse(BaseModel):
    id: str
    dish_id: str
    uploaded_by: str
    storage_path: str
    caption: Optional[str] = None
    is_featured: bool = False
    public_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
