from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.modules.dishes.schemas import DishWithRatingsResponse


class RestaurantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    city: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class RestaurantUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    city: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class RestaurantResponse(BaseModel):
    id: str
    name: str
    city: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_by: str
    maps_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RestaurantSummaryResponse(RestaurantResponse):
    avg_rating: Optional[float] = None
    review_count: int = 0
    dish_count: int = 0


class RestaurantDetailResponse(RestaurantSummaryResponse):
    dishes: List[DishWithRatingsResponse] = []
