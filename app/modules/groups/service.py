from app.core.errors import NotFound, PermissionDenied, StorageFailure, ValidationError
from app.core.permissions import (
    GroupRole, can_edit_group, can_delete_group, can_manage_group_resources,
    can_manage_members, permission_flags, require, resolve_effective_role
)
from app.database.store import DataStore, StoreError
from app.modules.groups.schemas import (
    CreateAndLinkResponse, GroupCreate, GroupDetailResponse, GroupListItem,
    GroupMemberResponse, GroupPermissions, GroupRestaurantResponse, GroupResponse, GroupUpdate
)
from app.modules.restaurants.schemas import RestaurantCreate, RestaurantSummaryResponse
from app.modules.restaurants.service import RestaurantService, to_restaurant_response
from datetime import datetime, timezone
from fastapi import HTTPException
from typing import Any, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

GroupAccess = Tuple[Dict[str, Any], Optional[Dict[str, Any]]]


def load_group_access(store: DataStore, group_id: str, user_id: str) -> GroupAccess:
    """Load a group and the caller's membership row (None when they have none)"""
    groups = store.select("groups", {"id": group_id})
    if not groups:
        raise NotFound("Group not found")
    members = store.select("group_members", {"group_id": group_id, "user_id": user_id})
    return groups[0], (members[0] if members else None)


class GroupService:
    def __init__(self, store: DataStore):
        self.store = store

    def create_group(self, group_data: GroupCreate, user_id: str) -> GroupResponse:
        """Create a group and record the creator as owner"""
        name = group_data.name.strip()
        if not name:
            raise ValidationError("Group name is required")
        try:
            group = self.store.insert("groups", {
                "name": name,
                "description": (group_data.description or "").strip() or None,
                "created_by": user_id,
            })
        except StoreError as e:
            logger.error(f"Error creating group: {e.message}")
            raise HTTPException(status_code=500, detail=f"Failed to create group: {e.message}")

        try:
            self.store.upsert("group_members", {
                "group_id": group["id"],
                "user_id": user_id,
                "role": GroupRole.OWNER.value,
            }, on_conflict="group_id,user_id", ignore_duplicates=True)
        except StoreError as e:
            # The creator keeps owner rights through created_by
            logger.warning(f"Group {group['id']} created without an owner membership row: {e.message}")

        logger.info(f"Group {group['id']} created by {user_id}")
        return GroupResponse(**group)

    def list_groups(self, user_id: str, limit: int = 50, offset: int = 0) -> List[GroupListItem]:
        """Groups the caller created or belongs to, newest first"""
        try:
            memberships = self.store.select("group_members", {"user_id": user_id})
            roles = {m["group_id"]: m["role"] for m in memberships}
            groups = {g["id"]: g for g in self.store.select("groups", {"created_by": user_id})}
            if roles:
                for g in self.store.select("groups", {"id": list(roles)}):
                    groups[g["id"]] = g

            ordered = sorted(groups.values(), key=lambda g: str(g.get("created_at") or ""), reverse=True)
            result = []
            for group in ordered[offset:offset + limit]:
                membership = {"user_id": user_id, "role": roles[group["id"]]} if group["id"] in roles else None
                result.append(GroupListItem(**group, role=resolve_effective_role(group, membership, user_id)))
            return result
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def get_group_detail(self, group_id: str, user_id: str) -> GroupDetailResponse:
        """Group with the caller's role, what they may do, and its restaurants"""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            role = resolve_effective_role(group, membership, user_id)
            require(role is not None, "You must be a member of this group")

            members = self.store.select("group_members", {"group_id": group_id})
            member_count = len(members)
            if not any(m["user_id"] == group["created_by"] for m in members):
                member_count += 1

            restaurants = self._linked_restaurants(group_id)
            linked_ids = {r.id for r in restaurants}
            own = self.store.select("restaurants", {"created_by": user_id}, order_by="created_at", desc=True)
            linkable = [to_restaurant_response(r) for r in own if r["id"] not in linked_ids]

            return GroupDetailResponse(
                **group,
                role=role,
                permissions=GroupPermissions(**permission_flags(group, membership, user_id)),
                member_count=member_count,
                restaurants=restaurants,
                linkable_restaurants=linkable,
            )
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def update_group(self, group_id: str, group_data: GroupUpdate, user_id: str) -> GroupResponse:
        """Update group (creator, owner or admin)"""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            require(can_edit_group(group, membership, user_id), "Only group owners and admins can edit this group")

            update_data: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if group_data.name is not None:
                if not group_data.name.strip():
                    raise ValidationError("Group name is required")
                update_data["name"] = group_data.name.strip()
            if group_data.description is not None:
                update_data["description"] = group_data.description.strip() or None

            rows = self.store.update("groups", {"id": group_id}, update_data)
            if not rows:
                raise PermissionDenied("Only group owners and admins can edit this group")
            return GroupResponse(**rows[0])
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def delete_group(self, group_id: str, user_id: str) -> bool:
        """Delete group (creator or owner); members, invites and links cascade"""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            require(can_delete_group(group, membership, user_id), "Only group owners can delete this group")
            deleted = self.store.delete("groups", {"id": group_id})
            if not deleted:
                raise PermissionDenied("Only group owners can delete this group")
            logger.info(f"Group {group_id} deleted by {user_id}")
            return True
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def list_members(self, group_id: str, user_id: str) -> List[GroupMemberResponse]:
        """Members of a group; a creator without a row is listed as an implicit owner"""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            require(resolve_effective_role(group, membership, user_id) is not None, "You must be a member of this group")

            rows = self.store.select("group_members", {"group_id": group_id}, order_by="joined_at")
            user_ids = [r["user_id"] for r in rows]
            if group["created_by"] not in user_ids:
                user_ids.append(group["created_by"])
            profiles = {p["id"]: p for p in self.store.select("profiles", {"id": user_ids})}

            members = []
            if not any(r["user_id"] == group["created_by"] for r in rows):
                creator = profiles.get(group["created_by"], {})
                members.append(GroupMemberResponse(
                    group_id=group_id,
                    user_id=group["created_by"],
                    role=GroupRole.OWNER,
                    joined_at=group.get("created_at"),
                    username=creator.get("username"),
                    email=creator.get("email"),
                    implicit=True,
                ))
            for row in rows:
                profile = profiles.get(row["user_id"], {})
                # the creator is always shown as owner whatever their row says
                role = GroupRole.OWNER if row["user_id"] == group["created_by"] else row["role"]
                members.append(GroupMemberResponse(
                    group_id=group_id,
                    user_id=row["user_id"],
                    role=role,
                    invited_by=row.get("invited_by"),
                    joined_at=row.get("joined_at"),
                    username=profile.get("username"),
                    email=profile.get("email"),
                ))
            return members
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def remove_member(self, group_id: str, member_user_id: str, user_id: str) -> bool:
        """
        Anyone may leave; editors may remove members; removing an owner or admin
        takes owner rights. The creator cannot be removed.
        """
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            if member_user_id == group["created_by"]:
                raise ValidationError("The group creator cannot be removed")

            target = self.store.select("group_members", {"group_id": group_id, "user_id": member_user_id})
            if not target:
                raise NotFound("Member not found")

            if member_user_id != user_id:
                if target[0]["role"] == GroupRole.MEMBER.value:
                    require(can_edit_group(group, membership, user_id), "Only group owners and admins can remove members")
                else:
                    require(can_manage_members(group, membership, user_id), "Only group owners can remove owners and admins")

            deleted = self.store.delete("group_members", {"group_id": group_id, "user_id": member_user_id})
            if not deleted:
                raise PermissionDenied("You cannot remove this member")
            logger.info(f"User {member_user_id} removed from group {group_id} by {user_id}")
            return True
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def update_member_role(self, group_id: str, member_user_id: str, role: GroupRole, user_id: str) -> GroupMemberResponse:
        """Change a member's role (owner rights required)"""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            require(can_manage_members(group, membership, user_id), "Only group owners can change roles")
            if member_user_id == group["created_by"]:
                raise ValidationError("The group creator is always an owner")

            if not self.store.select("group_members", {"group_id": group_id, "user_id": member_user_id}):
                raise NotFound("Member not found")
            rows = self.store.update(
                "group_members", {"group_id": group_id, "user_id": member_user_id}, {"role": GroupRole(role).value}
            )
            if not rows:
                raise PermissionDenied("Only group owners can change roles")
            logger.info(f"User {member_user_id} is now {GroupRole(role).value} in group {group_id}")
            return GroupMemberResponse(**rows[0])
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def _linked_restaurants(self, group_id: str) -> List[RestaurantSummaryResponse]:
        links = self.store.select("group_restaurants", {"group_id": group_id}, order_by="created_at", desc=True)
        if not links:
            return []
        rows = {r["id"]: r for r in self.store.select("restaurants", {"id": [l["restaurant_id"] for l in links]})}
        ordered = [rows[l["restaurant_id"]] for l in links if l["restaurant_id"] in rows]
        return RestaurantService(self.store).summarize(ordered)

    def list_group_restaurants(self, group_id: str, user_id: str) -> List[RestaurantSummaryResponse]:
        """Restaurants linked to a group, most recently linked first"""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            require(resolve_effective_role(group, membership, user_id) is not None, "You must be a member of this group")
            return self._linked_restaurants(group_id)
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def _link(self, group_id: str, restaurant_id: str, user_id: str) -> GroupRestaurantResponse:
        saved = self.store.upsert("group_restaurants", {
            "group_id": group_id,
            "restaurant_id": restaurant_id,
            "added_by": user_id,
        }, on_conflict="group_id,restaurant_id", ignore_duplicates=True)
        if saved:
            return GroupRestaurantResponse(**saved)
        existing = self.store.select("group_restaurants", {"group_id": group_id, "restaurant_id": restaurant_id})
        if not existing:
            raise PermissionDenied("You cannot add restaurants to this group")
        return GroupRestaurantResponse(**existing[0], already_linked=True)

    def link_restaurant(self, group_id: str, restaurant_id: str, user_id: str) -> GroupRestaurantResponse:
        """Link a restaurant to a group. Linking the same restaurant twice is a no-op."""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            require(can_manage_group_resources(group, membership, user_id), "Only group members can add restaurants")
            if not self.store.select("restaurants", {"id": restaurant_id}):
                raise NotFound("Restaurant not found")
            return self._link(group_id, restaurant_id, user_id)
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def create_and_link_restaurant(
        self, group_id: str, restaurant_data: RestaurantCreate, user_id: str
    ) -> CreateAndLinkResponse:
        """
        Create a restaurant owned by the caller and link it to the group.

        If linking fails the restaurant is kept and StorageFailure carries its id,
        so the caller can tell "created but not linked" from "nothing happened".
        """
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        require(can_manage_group_resources(group, membership, user_id), "Only group members can add restaurants")

        restaurant = RestaurantService(self.store).create_restaurant(restaurant_data, user_id)
        try:
            link = self._link(group_id, restaurant.id, user_id)
        except (HTTPException, StoreError) as e:
            message = e.message if isinstance(e, StoreError) else e.detail
            logger.warning(f"Restaurant {restaurant.id} created but not linked to group {group_id}: {message}")
            raise StorageFailure(
                "link_restaurant",
                f"Restaurant created, but adding it to the group failed: {message}",
                entity_id=restaurant.id,
            )
        return CreateAndLinkResponse(restaurant=restaurant, link=link)

    def unlink_restaurant(self, group_id: str, restaurant_id: str, user_id: str) -> bool:
        """Editors may unlink any restaurant; members only the ones they added"""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            links = self.store.select("group_restaurants", {"group_id": group_id, "restaurant_id": restaurant_id})
            if not links:
                raise NotFound("Restaurant is not linked to this group")
            allowed = can_edit_group(group, membership, user_id) or (
                can_manage_group_resources(group, membership, user_id) and links[0].get("added_by") == user_id
            )
            require(allowed, "You cannot remove this restaurant from the group")
            deleted = self.store.delete("group_restaurants", {"group_id": group_id, "restaurant_id": restaurant_id})
            if not deleted:
                raise PermissionDenied("You cannot remove this restaurant from the group")
            return True
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
