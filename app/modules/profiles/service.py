from app.core.errors import NotFound, Unauthenticated, ValidationError
from app.database.store import DataStore, StoreError
from app.modules.profiles.schemas import ProfileResponse, ProfileUpdate
from datetime import datetime, timezone
from fastapi import HTTPException
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, store: DataStore):
        self.store = store

    def _find(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self.store.select("profiles", {"id": user_id})
        return rows[0] if rows else None

    def ensure_profile(self, user_data: Optional[Dict[str, Any]]) -> ProfileResponse:
        """
        Return the caller's profile, creating it on first use.

        The username stays null so two new users can never collide on it; it is
        set later through update_profile. Two concurrent first requests race on
        the primary key, and the loser re-reads the winner's row.
        """
        if not user_data or not user_data.get("id"):
            raise Unauthenticated()
        user_id = user_data["id"]
        try:
            existing = self._find(user_id)
            if existing:
                return ProfileResponse(**existing)

            try:
                created = self.store.insert("profiles", {
                    "id": user_id,
                    "email": user_data.get("email"),
                    "username": None,
                })
                logger.info(f"Created profile for user {user_id}")
                return ProfileResponse(**created)
            except StoreError as e:
                if not e.is_unique_violation:
                    raise
                existing = self._find(user_id)
                if not existing:
                    raise
                return ProfileResponse(**existing)
        except HTTPException:
            raise
        except StoreError as e:
            logger.error(f"Error ensuring profile for {user_id}: {e.message}")
            raise HTTPException(status_code=500, detail=f"Could not load profile: {e.message}")

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by ID"""
        try:
            profile = self._find(user_id)
            if not profile:
                raise NotFound("Profile not found")
            return ProfileResponse(**profile)
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def update_profile(self, user_data: Dict[str, Any], profile_data: ProfileUpdate) -> ProfileResponse:
        """Update the caller's own profile; a username someone else holds is rejected"""
        current = self.ensure_profile(user_data)
        update_data: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if profile_data.username is not None:
            update_data["username"] = profile_data.username
        if profile_data.avatar_url is not None:
            update_data["avatar_url"] = profile_data.avatar_url
        try:
            if "username" in update_data:
                taken = self.store.select("profiles", {"username": update_data["username"]})
                if any(row["id"] != current.id for row in taken):
                    raise ValidationError("Username is already taken")
            try:
                rows = self.store.update("profiles", {"id": current.id}, update_data)
            except StoreError as e:
                if e.is_unique_violation:
                    raise ValidationError("Username is already taken")
                raise
            if not rows:
                raise NotFound("Profile not found")
            return ProfileResponse(**rows[0])
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
