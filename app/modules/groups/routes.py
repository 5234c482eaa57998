from fastapi import APIRouter, Depends
from app.modules.groups.schemas import (
    CreateAndLinkResponse, GroupCreate, GroupDetailResponse, GroupListItem,
    GroupMemberResponse, GroupMemberRoleUpdate, GroupRestaurantLink,
    GroupRestaurantResponse, GroupResponse, GroupUpdate
)
from app.modules.groups.service import GroupService
from app.modules.invites.schemas import InviteCreate, InviteResponse
from app.modules.invites.service import InviteService
from app.modules.restaurants.schemas import RestaurantCreate, RestaurantSummaryResponse
from app.core.dependencies import get_current_profile, get_current_user, get_store
from app.database.store import DataStore
from typing import Dict, List, Optional

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(store: DataStore = Depends(get_store)) -> GroupService:
    return GroupService(store)


def get_invite_service(store: DataStore = Depends(get_store)) -> InviteService:
    return InviteService(store)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    user_data: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the caller becomes its owner"""
    return service.create_group(group_data, user_data["id"])


@router.get("", response_model=List[GroupListItem])
async def list_groups(
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Groups the caller created or belongs to"""
    return service.list_groups(user_data["id"], limit=limit, offset=offset)


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Group detail with the caller's role and permissions (members only)"""
    return service.get_group_detail(group_id, user_data["id"])


@router.put("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    group_data: GroupUpdate,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Update group (creator, owner or admin)"""
    return service.update_group(group_id, group_data, user_data["id"])


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Delete group (creator or owner)"""
    service.delete_group(group_id, user_data["id"])
    return None


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
async def list_members(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """List all members of a group (members only)"""
    return service.list_members(group_id, user_data["id"])


@router.put("/{group_id}/members/{user_id}", response_model=GroupMemberResponse)
async def update_member_role(
    group_id: str,
    user_id: str,
    role_data: GroupMemberRoleUpdate,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Change a member's role (owners only)"""
    return service.update_member_role(group_id, user_id, role_data.role, user_data["id"])


@router.delete("/{group_id}/members/{user_id}", status_code=204)
async def remove_member(
    group_id: str,
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Remove a member, or leave the group when user_id is the caller"""
    service.remove_member(group_id, user_id, user_data["id"])
    return None


@router.get("/{group_id}/restaurants", response_model=List[RestaurantSummaryResponse])
async def list_group_restaurants(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    return service.list_group_restaurants(group_id, user_data["id"])


@router.post("/{group_id}/restaurants", response_model=GroupRestaurantResponse, status_code=201)
async def link_restaurant(
    group_id: str,
    link_data: GroupRestaurantLink,
    user_data: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Add an existing restaurant to the group (any member; idempotent)"""
    return service.link_restaurant(group_id, link_data.restaurant_id, user_data["id"])


@router.post("/{group_id}/restaurants/new", response_model=CreateAndLinkResponse, status_code=201)
async def create_and_link_restaurant(
    group_id: str,
    restaurant_data: RestaurantCreate,
    user_data: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Create a restaurant and add it to the group in one call"""
    return service.create_and_link_restaurant(group_id, restaurant_data, user_data["id"])


@router.delete("/{group_id}/restaurants/{restaurant_id}", status_code=204)
async def unlink_restaurant(
    group_id: str,
    restaurant_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    service.unlink_restaurant(group_id, restaurant_id, user_data["id"])
    return None


@router.post("/{group_id}/invites", response_model=InviteResponse, status_code=201)
async def create_invite(
    group_id: str,
    invite_data: Optional[InviteCreate] = None,
    user_data: Dict = Depends(get_current_profile),
    service: InviteService = Depends(get_invite_service)
):
    """Create a shareable invite link (owners and admins)"""
    return service.create_invite(group_id, user_data["id"], invite_data)


@router.get("/{group_id}/invites", response_model=List[InviteResponse])
async def list_invites(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InviteService = Depends(get_invite_service)
):
    """Invites of the group, newest first (owners and admins)"""
    return service.list_invites(group_id, user_data["id"])
