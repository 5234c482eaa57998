from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.core.permissions import GroupRole
from app.modules.restaurants.schemas import RestaurantResponse, RestaurantSummaryResponse


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupPermissions(BaseModel):
    can_edit: bool = False
    can_delete: bool = False
    can_manage_restaurants: bool = False
    can_manage_members: bool = False


class GroupListItem(GroupResponse):
    role: Optional[GroupRole] = None


class GroupDetailResponse(GroupResponse):
    role: Optional[GroupRole] = None
    permissions: GroupPermissions
    member_count: int = 0
    restaurants: List[RestaurantSummaryResponse] = []
    linkable_restaurants: List[RestaurantResponse] = []


class GroupMemberResponse(BaseModel):
    group_id: str
    user_id: str
    role: GroupRole
    invited_by: Optional[str] = None
    joined_at: Optional[datetime] = None
    username: Optional[str] = None
    email: Optional[str] = None
    # True for a creator who has no group_members row
    implicit: bool = False


class GroupMemberRoleUpdate(BaseModel):
    role: GroupRole


class GroupRestaurantLink(BaseModel):
    restaurant_id: str


class GroupRestaurantResponse(BaseModel):
    group_id: str
    restaurant_id: str
    added_by: Optional[str] = None
    created_at: Optional[datetime] = None
    already_linked: bool = False


class CreateAndLinkResponse(BaseModel):
    restaurant: RestaurantResponse
    link: GroupRestaurantResponse
