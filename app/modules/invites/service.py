from app.config import settings
from app.core.errors import InviteAlreadyUsed, InviteNotFound, PermissionDenied
from app.core.permissions import can_edit_group, require
from app.database.store import DataStore, StoreError
from app.modules.groups.service import load_group_access
from app.modules.invites.lifecycle import (
    AcceptOutcome, InviteStatus, build_invite_link, compute_expiry, ensure_transition,
    generate_token, is_joinable, is_terminal, raise_for_outcome, share_message, utcnow
)
from app.modules.invites.schemas import (
    InviteAcceptResponse, InviteCreate, InviteResolveResponse, InviteResponse
)
from app.modules.profiles.service import ProfileService
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

TOKEN_ATTEMPTS = 3


class InviteService:
    def __init__(self, store: DataStore, base_url: Optional[str] = None, validity_days: Optional[int] = None):
        self.store = store
        self.base_url = base_url or settings.public_base_url
        self.validity_days = validity_days or settings.invite_validity_days

    def to_response(self, row: Dict[str, Any], group_name: Optional[str] = None) -> InviteResponse:
        link = build_invite_link(self.base_url, row["token"])
        return InviteResponse(**row, link=link, share_message=share_message(link, group_name))

    def create_invite(self, group_id: str, user_id: str, invite_data: Optional[InviteCreate] = None) -> InviteResponse:
        """
        Issue a pending invite valid for validity_days. The token is the only key:
        anyone holding the link can join until the invite leaves pending.
        """
        email = invite_data.email if invite_data else None
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            require(can_edit_group(group, membership, user_id), "Only group owners and admins can invite")

            for attempt in range(TOKEN_ATTEMPTS):
                try:
                    row = self.store.insert("group_invites", {
                        "group_id": group_id,
                        "email": str(email).lower() if email else None,
                        "invited_by": user_id,
                        "token": generate_token(),
                        "status": InviteStatus.PENDING.value,
                        "expires_at": compute_expiry(utcnow(), self.validity_days).isoformat(),
                    })
                    break
                except StoreError as e:
                    if not e.is_unique_violation or attempt == TOKEN_ATTEMPTS - 1:
                        raise
                    logger.warning("Invite token collision, generating a new one")

            logger.info(f"Invite {row['id']} created for group {group_id} by {user_id}")
            return self.to_response(row, group.get("name"))
        except HTTPException:
            raise
        except StoreError as e:
            logger.error(f"Error creating invite for group {group_id}: {e.message}")
            raise HTTPException(status_code=500, detail=f"Failed to create invite: {e.message}")

    def resolve_invite(self, token: str) -> InviteResolveResponse:
        """Look an invite up by token. Expiry is reported, not raised; accept enforces it."""
        try:
            # callers who are not members yet cannot read group_invites directly
            rows = self.store.rpc("get_group_invite", {"_token": token})
            if isinstance(rows, dict):
                rows = [rows]
            if not rows:
                raise InviteNotFound()
            invite = rows[0]
            return InviteResolveResponse(
                id=invite["id"],
                group_id=invite["group_id"],
                group_name=invite.get("group_name"),
                email=invite.get("email"),
                status=invite["status"],
                expires_at=invite["expires_at"],
                is_joinable=is_joinable(invite, utcnow()),
            )
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def accept_invite(self, token: str, user_data: Optional[Dict[str, Any]]) -> InviteAcceptResponse:
        """
        Join the invite's group in one server-side transaction.

        Validation, the membership insert and the status change all happen inside
        accept_group_invite, so two callers racing on one token cannot both win.
        An expired invite is marked expired before InviteExpired is raised.
        """
        profile = ProfileService(self.store).ensure_profile(user_data)
        try:
            result = self.store.rpc("accept_group_invite", {"_token": token})
        except StoreError as e:
            logger.error(f"accept_group_invite failed: {e.message}")
            raise HTTPException(status_code=500, detail=f"Failed to accept invite: {e.message}")

        if isinstance(result, list):
            result = result[0] if result else {}
        outcome = AcceptOutcome((result or {}).get("outcome", AcceptOutcome.NOT_FOUND.value))
        group_id = (result or {}).get("group_id")

        if outcome == AcceptOutcome.EXPIRED:
            logger.info(f"Invite for group {group_id} expired on accept by {profile.id}")
        raise_for_outcome(outcome)

        logger.info(f"User {profile.id} joined group {group_id} via invite")
        return InviteAcceptResponse(group_id=group_id)

    def revoke_invite(self, invite_id: str, user_id: str) -> InviteResponse:
        """Withdraw a pending invite (group owners and admins)"""
        try:
            rows = self.store.select("group_invites", {"id": invite_id})
            if not rows:
                raise InviteNotFound()
            invite = rows[0]
            group, membership = load_group_access(self.store, invite["group_id"], user_id)
            require(can_edit_group(group, membership, user_id), "Only group owners and admins can revoke invites")
            ensure_transition(invite["status"], InviteStatus.REVOKED)

            updated = self.store.update(
                "group_invites",
                {"id": invite_id, "status": InviteStatus.PENDING.value},
                {"status": InviteStatus.REVOKED.value, "updated_at": utcnow().isoformat()},
            )
            if not updated:
                current = self.store.select("group_invites", {"id": invite_id})
                # an accept or expiry won the race since the read above
                if current and is_terminal(current[0]["status"]):
                    raise InviteAlreadyUsed(f"Invite is already {current[0]['status']}")
                raise PermissionDenied("Only group owners and admins can revoke invites")

            logger.info(f"Invite {invite_id} revoked by {user_id}")
            return self.to_response(updated[0], group.get("name"))
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def list_invites(self, group_id: str, user_id: str) -> List[InviteResponse]:
        """Invites of a group, newest first (owners and admins)"""
        try:
            group, membership = load_group_access(self.store, group_id, user_id)
            require(can_edit_group(group, membership, user_id), "Only group owners and admins can see invites")
            rows = self.store.select("group_invites", {"group_id": group_id}, order_by="created_at", desc=True)
            return [self.to_response(row, group.get("name")) for row in rows]
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
