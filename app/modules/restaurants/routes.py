from fastapi import APIRouter, Depends
from app.modules.restaurants.schemas import (
    RestaurantCreate, RestaurantDetailResponse, RestaurantResponse,
    RestaurantSummaryResponse, RestaurantUpdate
)
from app.modules.restaurants.service import RestaurantService
from app.core.dependencies import get_blob_store, get_current_profile, get_current_user, get_store
from app.database.blob_storage import BlobStore
from app.database.store import DataStore
from typing import Dict, List, Optional

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


def get_restaurant_service(
    store: DataStore = Depends(get_store),
    blob_store: BlobStore = Depends(get_blob_store)
) -> RestaurantService:
    return RestaurantService(store, blob_store)


@router.post("", response_model=RestaurantResponse, status_code=201)
async def create_restaurant(
    restaurant_data: RestaurantCreate,
    user_data: Dict = Depends(get_current_profile),
    service: RestaurantService = Depends(get_restaurant_service)
):
    return service.create_restaurant(restaurant_data, user_data["id"])


@router.get("", response_model=List[RestaurantSummaryResponse])
async def list_restaurants(
    sort: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(get_current_user),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Restaurants created by the caller, with average rating and review count"""
    return service.list_restaurants(user_data["id"], sort=sort, limit=limit, offset=offset)


@router.get("/{restaurant_id}", response_model=RestaurantDetailResponse)
async def get_restaurant(
    restaurant_id: str,
    sort: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Restaurant with dishes, reviews and photos. sort=rating_desc|rating_asc"""
    return service.get_restaurant_detail(restaurant_id, sort=sort)


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: str,
    restaurant_data: RestaurantUpdate,
    user_data: Dict = Depends(get_current_user),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Update restaurant (creator only)"""
    return service.update_restaurant(restaurant_id, restaurant_data, user_data["id"])


@router.delete("/{restaurant_id}", status_code=204)
async def delete_restaurant(
    restaurant_id: str,
    user_data: Dict = Depends(get_current_user),
    service: RestaurantService = Depends(get_restaurant_service)
):
    """Delete restaurant (creator only)"""
    service.delete_restaurant(restaurant_id, user_data["id"])
    return None
