from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ReviewUpsert(BaseModel):
    """Either all four axes, or a single overall rating for legacy clients"""
    flavor_rating: Optional[int] = None
    texture_rating: Optional[int] = None
    presentation_rating: Optional[int] = None
    value_rating: Optional[int] = None
    rating: Optional[float] = None
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    id: str
    dish_id: str
    user_id: str
    rating: Optional[float] = None
    flavor_rating: Optional[int] = None
    texture_rating: Optional[int] = None
    presentation_rating: Optional[int] = None
    value_rating: Optional[int] = None
    effective_rating: Optional[float] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RatingSummaryResponse(BaseModel):
    avg_rating: Optional[float] = None
    review_count: int = 0
