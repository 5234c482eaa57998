from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.modules.dishes.schemas import (
    DishCategory, DishCreate, DishCreateResponse, DishResponse, DishUpdate, DishWithRatingsResponse
)
from app.modules.dishes.service import DishService
from app.modules.photos.schemas import PhotoUpload
from app.core.dependencies import get_blob_store, get_current_profile, get_current_user, get_store
from app.database.blob_storage import BlobStore
from app.database.store import DataStore
from typing import Dict, Optional

router = APIRouter(prefix="/dishes", tags=["dishes"])


def get_dish_service(
    store: DataStore = Depends(get_store),
    blob_store: BlobStore = Depends(get_blob_store)
) -> DishService:
    return DishService(store, blob_store)


@router.post("", response_model=DishCreateResponse, status_code=201)
async def create_dish(
    restaurant_id: str = Form(...),
    name: str = Form(...),
    description: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    category: DishCategory = Form(DishCategory.MAIN),
    flavor_rating: Optional[int] = Form(None),
    texture_rating: Optional[int] = Form(None),
    presentation_rating: Optional[int] = Form(None),
    value_rating: Optional[int] = Form(None),
    comment: Optional[str] = Form(None),
    caption: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    user_data: Dict = Depends(get_current_profile),
    service: DishService = Depends(get_dish_service)
):
    """
    Create a dish, optionally with the creator's first rating and a photo.
    If the rating or photo step fails the dish still exists; the 502 response
    names the failed step and the dish id.
    """
    dish_data = DishCreate(
        restaurant_id=restaurant_id,
        name=name,
        description=description,
        price=price,
        category=category,
        flavor_rating=flavor_rating,
        texture_rating=texture_rating,
        presentation_rating=presentation_rating,
        value_rating=value_rating,
        comment=comment,
    )
    upload = None
    if photo is not None and photo.filename:
        upload = PhotoUpload(
            filename=photo.filename,
            content=await photo.read(),
            content_type=photo.content_type or "application/octet-stream",
        )
    return service.create_dish(dish_data, user_data["id"], photo=upload, caption=caption)


@router.get("/{dish_id}", response_model=DishWithRatingsResponse)
async def get_dish(
    dish_id: str,
    user_data: Dict = Depends(get_current_user),
    service: DishService = Depends(get_dish_service)
):
    return service.get_dish(dish_id)


@router.put("/{dish_id}", response_model=DishResponse)
async def update_dish(
    dish_id: str,
    dish_data: DishUpdate,
    user_data: Dict = Depends(get_current_user),
    service: DishService = Depends(get_dish_service)
):
    """Update dish (creator only)"""
    return service.update_dish(dish_id, dish_data, user_data["id"])


@router.delete("/{dish_id}", status_code=204)
async def delete_dish(
    dish_id: str,
    user_data: Dict = Depends(get_current_user),
    service: DishService = Depends(get_dish_service)
):
    """Delete dish (creator only)"""
    service.delete_dish(dish_id, user_data["id"])
    return None
