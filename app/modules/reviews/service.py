from app.core.errors import NotFound, PermissionDenied
from app.database.store import DataStore, StoreError
from app.modules.ratings.aggregator import AXES, effective_score, summarize_dish, validate_scores
from app.modules.reviews.schemas import RatingSummaryResponse, ReviewResponse, ReviewUpsert
from datetime import datetime, timezone
from fastapi import HTTPException
from typing import Any, Dict, Iterable, List, Optional
import logging

logger = logging.getLogger(__name__)


def to_review_response(row: Dict[str, Any]) -> ReviewResponse:
    return ReviewResponse(**{**row, "effective_rating": effective_score(row)})


def reviews_by_dish(store: DataStore, dish_ids: Iterable[str]) -> Dict[str, List[Dict[str, Any]]]:
    """Load every review for the given dishes in one query, grouped by dish_id"""
    dish_ids = list(dish_ids)
    grouped: Dict[str, List[Dict[str, Any]]] = {dish_id: [] for dish_id in dish_ids}
    if not dish_ids:
        return grouped
    rows = store.select("reviews", {"dish_id": dish_ids}, order_by="created_at", desc=True)
    for row in rows:
        grouped.setdefault(row["dish_id"], []).append(row)
    return grouped


class ReviewService:
    def __init__(self, store: DataStore):
        self.store = store

    def _require_dish(self, dish_id: str) -> Dict[str, Any]:
        dishes = self.store.select("dishes", {"id": dish_id})
        if not dishes:
            raise NotFound("Dish not found")
        return dishes[0]

    def upsert_review(self, dish_id: str, user_id: str, review_data: ReviewUpsert) -> ReviewResponse:
        """
        Create or replace the caller's review of a dish.

        Scores are validated before anything is written. The row is written with
        a single upsert on (dish_id, user_id) so concurrent submissions from the
        same user never produce two rows.
        """
        axes = {name: getattr(review_data, name) for name in AXES}
        validate_scores(axes, review_data.rating)
        try:
            self._require_dish(dish_id)
            row: Dict[str, Any] = {
                "dish_id": dish_id,
                "user_id": user_id,
                "comment": review_data.comment or None,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
            # Always write every axis column so a legacy rating clears old axes
            row.update(axes)
            row["rating"] = effective_score({**axes, "rating": review_data.rating})

            saved = self.store.upsert("reviews", row, on_conflict="dish_id,user_id")
            if not saved:
                raise PermissionDenied("You cannot review this dish")
            logger.info(f"Review saved for dish {dish_id} by {user_id} (rating {row['rating']})")
            return to_review_response(saved)
        except HTTPException:
            raise
        except StoreError as e:
            logger.error(f"Error saving review for dish {dish_id}: {e.message}")
            raise HTTPException(status_code=500, detail=f"Failed to save review: {e.message}")

    def get_own_review(self, dish_id: str, user_id: str) -> Optional[ReviewResponse]:
        """The caller's review, or None when they have not reviewed the dish yet"""
        try:
            rows = self.store.select("reviews", {"dish_id": dish_id, "user_id": user_id})
            return to_review_response(rows[0]) if rows else None
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def list_reviews(self, dish_id: str, limit: int = 50, offset: int = 0) -> List[ReviewResponse]:
        """Reviews of a dish, newest first"""
        try:
            self._require_dish(dish_id)
            rows = self.store.select(
                "reviews", {"dish_id": dish_id}, order_by="created_at", desc=True, limit=limit, offset=offset
            )
            return [to_review_response(row) for row in rows]
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def delete_own_review(self, dish_id: str, user_id: str) -> bool:
        try:
            deleted = self.store.delete("reviews", {"dish_id": dish_id, "user_id": user_id})
            if not deleted:
                raise NotFound("Review not found")
            return True
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def dish_rating(self, dish_id: str) -> RatingSummaryResponse:
        """Average recomputed from the current reviews on every call"""
        try:
            self._require_dish(dish_id)
            summary = summarize_dish(self.store.select("reviews", {"dish_id": dish_id}))
            return RatingSummaryResponse(avg_rating=summary.average, review_count=summary.review_count)
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
