from app.core.errors import NotFound, PermissionDenied, ValidationError
from app.core.permissions import is_resource_owner
from app.database.blob_storage import BlobStore
from app.database.store import DataStore, StoreError
from app.modules.dishes.service import DishService
from app.modules.ratings.aggregator import RATING_ASC, RATING_DESC, average_for_restaurant, sort_by_rating
from app.modules.restaurants.schemas import (
    RestaurantCreate, RestaurantDetailResponse, RestaurantResponse,
    RestaurantSummaryResponse, RestaurantUpdate
)
from app.modules.reviews.service import reviews_by_dish
from datetime import datetime, timezone
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging

logger = logging.getLogger(__name__)

SORT_OPTIONS = (RATING_DESC, RATING_ASC)


def build_maps_link(name: Optional[str] = None, address: Optional[str] = None, city: Optional[str] = None) -> Optional[str]:
    """Google Maps search URL for a place, or None when nothing is known about it"""
    parts = [value.strip() for value in (name, address, city) if value and value.strip()]
    if not parts:
        return None
    return f"https://www.google.com/maps/search/?api=1&query={quote(', '.join(parts), safe='')}"


def to_restaurant_response(row: Dict[str, Any]) -> RestaurantResponse:
    return RestaurantResponse(**row, maps_url=build_maps_link(row.get("name"), row.get("address"), row.get("city")))


class RestaurantService:
    def __init__(self, store: DataStore, blob_store: Optional[BlobStore] = None):
        self.store = store
        self.blob_store = blob_store

    def create_restaurant(self, restaurant_data: RestaurantCreate, user_id: str) -> RestaurantResponse:
        """Create a restaurant owned by the caller"""
        name = restaurant_data.name.strip()
        if not name:
            raise ValidationError("Restaurant name is required")
        try:
            row = self.store.insert("restaurants", {
                "name": name,
                "city": (restaurant_data.city or "").strip() or None,
                "address": (restaurant_data.address or "").strip() or None,
                "latitude": restaurant_data.latitude,
                "longitude": restaurant_data.longitude,
                "created_by": user_id,
            })
            logger.info(f"Restaurant {row['id']} created by {user_id}")
            return to_restaurant_response(row)
        except StoreError as e:
            logger.error(f"Error creating restaurant: {e.message}")
            raise HTTPException(status_code=500, detail=f"Failed to create restaurant: {e.message}")

    def _load(self, restaurant_id: str) -> Dict[str, Any]:
        rows = self.store.select("restaurants", {"id": restaurant_id})
        if not rows:
            raise NotFound("Restaurant not found")
        return rows[0]

    def summarize(self, restaurants: List[Dict[str, Any]]) -> List[RestaurantSummaryResponse]:
        """
        Attach restaurant-level averages. Every review counts once, so the
        figure is weighted by review count rather than averaging dish averages.
        """
        restaurant_ids = [r["id"] for r in restaurants]
        dishes = self.store.select("dishes", {"restaurant_id": restaurant_ids}) if restaurant_ids else []
        reviews = reviews_by_dish(self.store, [d["id"] for d in dishes])

        dishes_by_restaurant: Dict[str, List[str]] = {rid: [] for rid in restaurant_ids}
        for dish in dishes:
            dishes_by_restaurant.setdefault(dish["restaurant_id"], []).append(dish["id"])

        result = []
        for restaurant in restaurants:
            dish_ids = dishes_by_restaurant.get(restaurant["id"], [])
            summary = average_for_restaurant(reviews.get(dish_id, []) for dish_id in dish_ids)
            base = to_restaurant_response(restaurant)
            result.append(RestaurantSummaryResponse(
                **base.model_dump(),
                avg_rating=summary.average,
                review_count=summary.review_count,
                dish_count=len(dish_ids),
            ))
        return result

    def get_restaurant_detail(self, restaurant_id: str, sort: Optional[str] = None) -> RestaurantDetailResponse:
        """Restaurant with its dishes; dishes newest first unless sorted by rating"""
        if sort is not None and sort not in SORT_OPTIONS:
            raise ValidationError(f"sort must be one of: {', '.join(SORT_OPTIONS)}")
        try:
            restaurant = self._load(restaurant_id)
            dishes = DishService(self.store, self.blob_store).list_dishes(restaurant_id)
            if sort:
                ranked = sort_by_rating([d.model_dump() for d in dishes], sort)
                by_id = {d.id: d for d in dishes}
                dishes = [by_id[item["id"]] for item in ranked]

            summary = self.summarize([restaurant])[0]
            return RestaurantDetailResponse(**summary.model_dump(), dishes=dishes)
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def list_restaurants(
        self,
        user_id: str,
        sort: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[RestaurantSummaryResponse]:
        """Restaurants the caller created, with their aggregates"""
        if sort is not None and sort not in SORT_OPTIONS:
            raise ValidationError(f"sort must be one of: {', '.join(SORT_OPTIONS)}")
        try:
            if not sort:
                rows = self.store.select(
                    "restaurants", {"created_by": user_id}, order_by="created_at", desc=True, limit=limit, offset=offset
                )
                return self.summarize(rows)

            # ratings are computed here, so the page is cut after ranking everything
            rows = self.store.select("restaurants", {"created_by": user_id}, order_by="created_at", desc=True)
            ranked = sort_by_rating([s.model_dump() for s in self.summarize(rows)], sort)
            return [RestaurantSummaryResponse(**item) for item in ranked[offset:offset + limit]]
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def update_restaurant(self, restaurant_id: str, restaurant_data: RestaurantUpdate, user_id: str) -> RestaurantResponse:
        """Update restaurant (creator only)"""
        try:
            restaurant = self._load(restaurant_id)
            if not is_resource_owner(restaurant, user_id):
                raise PermissionDenied("Only the creator can edit this restaurant")
            update_data: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if restaurant_data.name is not None:
                if not restaurant_data.name.strip():
                    raise ValidationError("Restaurant name is required")
                update_data["name"] = restaurant_data.name.strip()
            for field in ("city", "address"):
                value = getattr(restaurant_data, field)
                if value is not None:
                    update_data[field] = value.strip() or None
            for field in ("latitude", "longitude"):
                value = getattr(restaurant_data, field)
                if value is not None:
                    update_data[field] = value

            rows = self.store.update("restaurants", {"id": restaurant_id, "created_by": user_id}, update_data)
            if not rows:
                raise PermissionDenied("Only the creator can edit this restaurant")
            return to_restaurant_response(rows[0])
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def delete_restaurant(self, restaurant_id: str, user_id: str) -> bool:
        """Delete restaurant (creator only); dishes and group links cascade"""
        try:
            restaurant = self._load(restaurant_id)
            if not is_resource_owner(restaurant, user_id):
                raise PermissionDenied("Only the creator can delete this restaurant")
            deleted = self.store.delete("restaurants", {"id": restaurant_id, "created_by": user_id})
            if not deleted:
                raise PermissionDenied("Only the creator can delete this restaurant")
            logger.info(f"Restaurant {restaurant_id} deleted by {user_id}")
            return True
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
