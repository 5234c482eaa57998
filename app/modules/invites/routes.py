from fastapi import APIRouter, Depends
from app.modules.invites.schemas import InviteAcceptResponse, InviteResolveResponse, InviteResponse
from app.modules.invites.service import InviteService
from app.core.dependencies import get_current_user, get_store
from app.database.store import DataStore
from typing import Dict

router = APIRouter(prefix="/invites", tags=["invites"])


def get_invite_service(store: DataStore = Depends(get_store)) -> InviteService:
    return InviteService(store)


@router.get("/{token}", response_model=InviteResolveResponse)
async def resolve_invite(
    token: str,
    user_data: Dict = Depends(get_current_user),
    service: InviteService = Depends(get_invite_service)
):
    """Invite details for the join page"""
    return service.resolve_invite(token)


@router.post("/{token}/accept", response_model=InviteAcceptResponse)
async def accept_invite(
    token: str,
    user_data: Dict = Depends(get_current_user),
    service: InviteService = Depends(get_invite_service)
):
    """Join the invite's group. 410 when expired, 409 when already used or revoked."""
    return service.accept_invite(token, user_data)


@router.post("/{invite_id}/revoke", response_model=InviteResponse)
async def revoke_invite(
    invite_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InviteService = Depends(get_invite_service)
):
    """Revoke a pending invite (group owners and admins)"""
    return service.revoke_invite(invite_id, user_data["id"])
