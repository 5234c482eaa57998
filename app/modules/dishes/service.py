from app.core.errors import NotFound, PermissionDenied, StorageFailure
from app.core.permissions import is_resource_owner
from app.database.blob_storage import BlobStore
from app.database.store import DataStore, StoreError
from app.modules.dishes.schemas import (
    DishCreate, DishCreateResponse, DishResponse, DishUpdate, DishWithRatingsResponse
)
from app.modules.photos.schemas import PhotoUpload
from app.modules.photos.service import PhotoService, validate_photo
from app.modules.ratings.aggregator import AXES, summarize_dish, validate_scores
from app.modules.reviews.schemas import ReviewUpsert
from app.modules.reviews.service import ReviewService, reviews_by_dish, to_review_response
from datetime import datetime, timezone
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class DishService:
    def __init__(self, store: DataStore, blob_store: Optional[BlobStore] = None):
        self.store = store
        self.blob_store = blob_store

    def create_dish(
        self,
        dish_data: DishCreate,
        user_id: str,
        photo: Optional[PhotoUpload] = None,
        caption: Optional[str] = None,
    ) -> DishCreateResponse:
        """
        Create a dish, then optionally the creator's first review and a photo.

        Everything that can be checked up front is checked before the dish is
        inserted. A later step failing leaves the dish in place and raises
        StorageFailure naming that step (initial_review, photo_upload or
        photo_record) together with the dish id.
        """
        axes = {name: getattr(dish_data, name) for name in AXES}
        has_review = any(value is not None for value in axes.values())
        if has_review:
            validate_scores(axes)
        if photo is not None:
            validate_photo(photo)

        try:
            if not self.store.select("restaurants", {"id": dish_data.restaurant_id}):
                raise NotFound("Restaurant not found")
            row = self.store.insert("dishes", {
                "restaurant_id": dish_data.restaurant_id,
                "name": dish_data.name.strip(),
                "description": dish_data.description or None,
                "price": dish_data.price,
                "category": dish_data.category.value,
                "created_by": user_id,
            })
        except HTTPException:
            raise
        except StoreError as e:
            logger.error(f"Error creating dish: {e.message}")
            raise HTTPException(status_code=500, detail=f"Failed to create dish: {e.message}")

        dish = DishResponse(**row)
        logger.info(f"Dish {dish.id} created in restaurant {dish.restaurant_id}")
        result = DishCreateResponse(dish=dish)

        if has_review:
            try:
                result.review = ReviewService(self.store).upsert_review(
                    dish.id, user_id, ReviewUpsert(**axes, comment=dish_data.comment)
                )
            except HTTPException as e:
                logger.warning(f"Dish {dish.id} created but initial review failed: {e.detail}")
                raise StorageFailure("initial_review", f"Dish created, but saving the rating failed: {e.detail}", entity_id=dish.id)

        if photo is not None:
            if self.blob_store is None:
                raise StorageFailure("photo_upload", "Dish created, but photo storage is not available", entity_id=dish.id)
            try:
                result.photo = PhotoService(self.store, self.blob_store).upload_photo(
                    dish.id, user_id, photo, caption=caption
                )
            except StorageFailure as e:
                raise StorageFailure(e.failed_step, f"Dish created, but {e.detail['message']}", entity_id=dish.id)

        return result

    def _load(self, dish_id: str) -> Dict[str, Any]:
        rows = self.store.select("dishes", {"id": dish_id})
        if not rows:
            raise NotFound("Dish not found")
        return rows[0]

    def get_dish(self, dish_id: str) -> DishWithRatingsResponse:
        try:
            dish = self._load(dish_id)
            return self.with_ratings([dish])[0]
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def with_ratings(self, dishes: List[Dict[str, Any]]) -> List[DishWithRatingsResponse]:
        """Attach reviews, photos and the recomputed average to each dish"""
        dish_ids = [d["id"] for d in dishes]
        reviews = reviews_by_dish(self.store, dish_ids)
        photos = PhotoService(self.store, self.blob_store).photos_by_dish(dish_ids) if self.blob_store else {}
        result = []
        for dish in dishes:
            dish_reviews = reviews.get(dish["id"], [])
            summary = summarize_dish(dish_reviews)
            result.append(DishWithRatingsResponse(
                **dish,
                avg_rating=summary.average,
                review_count=summary.review_count,
                reviews=[to_review_response(r) for r in dish_reviews],
                photos=photos.get(dish["id"], []),
            ))
        return result

    def list_dishes(self, restaurant_id: str) -> List[DishWithRatingsResponse]:
        """Dishes of a restaurant, newest first"""
        try:
            dishes = self.store.select("dishes", {"restaurant_id": restaurant_id}, order_by="created_at", desc=True)
            return self.with_ratings(dishes)
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def update_dish(self, dish_id: str, dish_data: DishUpdate, user_id: str) -> DishResponse:
        """Update a dish (creator only)"""
        try:
            dish = self._load(dish_id)
            if not is_resource_owner(dish, user_id):
                raise PermissionDenied("Only the creator can edit this dish")
            update_data: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if dish_data.name:
                update_data["name"] = dish_data.name.strip()
            if dish_data.description is not None:
                update_data["description"] = dish_data.description or None
            if dish_data.price is not None:
                update_data["price"] = dish_data.price
            if dish_data.category is not None:
                update_data["category"] = dish_data.category.value

            rows = self.store.update("dishes", {"id": dish_id, "created_by": user_id}, update_data)
            if not rows:
                raise PermissionDenied("Only the creator can edit this dish")
            return DishResponse(**rows[0])
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def delete_dish(self, dish_id: str, user_id: str) -> bool:
        """Delete a dish (creator only); reviews and photo rows cascade"""
        try:
            dish = self._load(dish_id)
            if not is_resource_owner(dish, user_id):
                raise PermissionDenied("Only the creator can delete this dish")
            deleted = self.store.delete("dishes", {"id": dish_id, "created_by": user_id})
            if not deleted:
                raise PermissionDenied("Only the creator can delete this dish")
            logger.info(f"Dish {dish_id} deleted by {user_id}")
            return True
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
