from fastapi import APIRouter, Depends
from app.modules.reviews.schemas import RatingSummaryResponse, ReviewResponse, ReviewUpsert
from app.modules.reviews.service import ReviewService
from app.core.dependencies import get_current_profile, get_current_user, get_store
from app.database.store import DataStore
from typing import Dict, List, Optional

router = APIRouter(prefix="/dishes/{dish_id}", tags=["reviews"])


def get_review_service(store: DataStore = Depends(get_store)) -> ReviewService:
    return ReviewService(store)


@router.put("/reviews/me", response_model=ReviewResponse)
async def upsert_my_review(
    dish_id: str,
    review_data: ReviewUpsert,
    user_data: Dict = Depends(get_current_profile),
    service: ReviewService = Depends(get_review_service)
):
    """Create or replace the caller's review (one review per dish and user)"""
    return service.upsert_review(dish_id, user_data["id"], review_data)


@router.get("/reviews/me", response_model=Optional[ReviewResponse])
async def get_my_review(
    dish_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    """The caller's review, or null"""
    return service.get_own_review(dish_id, user_data["id"])


@router.delete("/reviews/me", status_code=204)
async def delete_my_review(
    dish_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    service.delete_own_review(dish_id, user_data["id"])
    return None


@router.get("/reviews", response_model=List[ReviewResponse])
async def list_reviews(
    dish_id: str,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    return service.list_reviews(dish_id, limit=limit, offset=offset)


@router.get("/rating", response_model=RatingSummaryResponse)
async def get_dish_rating(
    dish_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    """Average and review count for a dish"""
    return service.dish_rating(dish_id)
