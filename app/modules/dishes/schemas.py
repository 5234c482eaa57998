from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

from app.modules.photos.schemas import PhotoResponse
from app.modules.reviews.schemas import ReviewResponse


class DishCategory(str, Enum):
    STARTER = "starter"
    MAIN = "main"
    DESSERT = "dessert"
    DRINK = "drink"


class DishCreate(BaseModel):
    restaurant_id: str
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: DishCategory = DishCategory.MAIN
    # Optional first review by the creator
    flavor_rating: Optional[int] = None
    texture_rating: Optional[int] = None
    presentation_rating: Optional[int] = None
    value_rating: Optional[int] = None
    comment: Optional[str] = None


class DishUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[DishCategory] = None


class DishResponse(BaseModel):
    id: str
    restaurant_id: str
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    category: DishCategory = DishCategory.MAIN
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DishWithRatingsResponse(DishResponse):
    avg_rating: Optional[float] = None
    review_count: int = 0
    reviews: List[ReviewResponse] = []
    photos: List[PhotoResponse] = []


class DishCreateResponse(BaseModel):
    dish: DishResponse
    review: Optional[ReviewResponse] = None
    photo: Optional[PhotoResponse] = None
