from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.modules.photos.schemas import PhotoFeatureUpdate, PhotoResponse, PhotoUpload
from app.modules.photos.service import PhotoService
from app.core.dependencies import get_blob_store, get_current_profile, get_current_user, get_store
from app.database.blob_storage import BlobStore
from app.database.store import DataStore
from typing import Dict, List, Optional

router = APIRouter(tags=["photos"])


def get_photo_service(
    store: DataStore = Depends(get_store),
    blob_store: BlobStore = Depends(get_blob_store)
) -> PhotoService:
    return PhotoService(store, blob_store)


@router.post("/dishes/{dish_id}/photos", response_model=PhotoResponse, status_code=201)
async def upload_photo(
    dish_id: str,
    file: UploadFile = File(...),
    caption: Optional[str] = Form(None),
    is_featured: bool = Form(False),
    user_data: Dict = Depends(get_current_profile),
    service: PhotoService = Depends(get_photo_service)
):
    """Upload a photo of a dish"""
    upload = PhotoUpload(
        filename=file.filename or "photo",
        content=await file.read(),
        content_type=file.content_type or "application/octet-stream",
    )
    return service.upload_photo(dish_id, user_data["id"], upload, caption=caption, is_featured=is_featured)


@router.get("/dishes/{dish_id}/photos", response_model=List[PhotoResponse])
async def list_photos(
    dish_id: str,
    user_data: Dict = Depends(get_current_user),
    service: PhotoService = Depends(get_photo_service)
):
    """Photos of a dish, featured first then newest first"""
    return service.list_photos(dish_id)


@router.patch("/photos/{photo_id}", response_model=PhotoResponse)
async def set_photo_featured(
    photo_id: str,
    update: PhotoFeatureUpdate,
    user_data: Dict = Depends(get_current_user),
    service: PhotoService = Depends(get_photo_service)
):
    return service.set_featured(photo_id, user_data["id"], update.is_featured)


@router.delete("/photos/{photo_id}", status_code=204)
async def delete_photo(
    photo_id: str,
    user_data: Dict = Depends(get_current_user),
    service: PhotoService = Depends(get_photo_service)
):
    service.delete_photo(photo_id, user_data["id"])
    return None
