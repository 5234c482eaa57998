from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime

from app.modules.invites.lifecycle import InviteStatus


class InviteCreate(BaseModel):
    email: Optional[EmailStr] = None


class InviteResponse(BaseModel):
    id: str
    group_id: str
    email: Optional[str] = None
    invited_by: str
    token: str
    status: InviteStatus
    expires_at: datetime
    link: str
    share_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InviteResolveResponse(BaseModel):
    id: str
    group_id: str
    group_name: Optional[str] = None
    email: Optional[str] = None
    status: InviteStatus
    expires_at: datetime
    is_joinable: bool


class InviteAcceptResponse(BaseModel):
    group_id: str
    status: InviteStatus = InviteStatus.ACCEPTED
