from fastapi import APIRouter, Depends
from app.modules.profiles.schemas import ProfileResponse, ProfileUpdate
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_user, get_store
from app.database.store import DataStore
from typing import Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(store: DataStore = Depends(get_store)) -> ProfileService:
    return ProfileService(store)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Get the caller's profile, creating it on first use"""
    return service.ensure_profile(user_data)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Set username or avatar"""
    return service.update_profile(user_data, profile_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Get a profile by ID (visibility is enforced by row-level security)"""
    return service.get_profile(user_id)
