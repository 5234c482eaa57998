"""
Permission gate for groups and owned resources.

Pure functions over rows that were already loaded; nothing here touches the
data store. A group's creator counts as an owner even when no group_members row
exists for them, so every check goes through resolve_effective_role.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from app.core.errors import PermissionDenied


class GroupRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


_EDIT_ROLES = {GroupRole.OWNER, GroupRole.ADMIN}
_DELETE_ROLES = {GroupRole.OWNER}


def resolve_effective_role(
    group: Mapping[str, Any],
    membership: Optional[Mapping[str, Any]],
    user_id: Optional[str],
) -> Optional[GroupRole]:
    """Role the user acts with in this group, or None for outsiders."""
    if not user_id:
        return None
    if group.get("created_by") == user_id:
        return GroupRole.OWNER
    if membership and membership.get("user_id", user_id) == user_id and membership.get("role"):
        return GroupRole(membership["role"])
    return None


def can_edit_group(group: Mapping[str, Any], membership: Optional[Mapping[str, Any]], user_id: Optional[str]) -> bool:
    return resolve_effective_role(group, membership, user_id) in _EDIT_ROLES


def can_delete_group(group: Mapping[str, Any], membership: Optional[Mapping[str, Any]], user_id: Optional[str]) -> bool:
    return resolve_effective_role(group, membership, user_id) in _DELETE_ROLES


def can_manage_group_resources(
    group: Mapping[str, Any], membership: Optional[Mapping[str, Any]], user_id: Optional[str]
) -> bool:
    """Any member, whatever the role, may link or create restaurants in the group."""
    return resolve_effective_role(group, membership, user_id) is not None


def can_manage_members(group: Mapping[str, Any], membership: Optional[Mapping[str, Any]], user_id: Optional[str]) -> bool:
    # changing roles is owner-level, same as deleting the group
    return resolve_effective_role(group, membership, user_id) in _DELETE_ROLES


def permission_flags(
    group: Mapping[str, Any], membership: Optional[Mapping[str, Any]], user_id: Optional[str]
) -> Dict[str, bool]:
    return {
        "can_edit": can_edit_group(group, membership, user_id),
        "can_delete": can_delete_group(group, membership, user_id),
        "can_manage_restaurants": can_manage_group_resources(group, membership, user_id),
        "can_manage_members": can_manage_members(group, membership, user_id),
    }


def require(allowed: bool, detail: str) -> None:
    if not allowed:
        raise PermissionDenied(detail)


def is_resource_owner(row: Mapping[str, Any], user_id: Optional[str], owner_field: str = "created_by") -> bool:
    return bool(user_id) and row.get(owner_field) == user_id
