"""
Invite state machine.

    pending -> accepted   (someone joined with the token)
    pending -> revoked    (an editor withdrew it)
    pending -> expired    (an accept attempt found expires_at in the past)

accepted, revoked and expired are terminal. The accept_group_invite SQL function
applies evaluate_acceptance inside one transaction; the rules live here so the
API and the tests agree with it.
"""

import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import TypeAdapter

from app.core.errors import InviteAlreadyUsed, InviteExpired, InviteNotFound

TOKEN_BYTES = 32

_TIMESTAMP = TypeAdapter(datetime)


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"
    EXPIRED = "expired"


TERMINAL_STATUSES = frozenset({InviteStatus.ACCEPTED, InviteStatus.REVOKED, InviteStatus.EXPIRED})

_TRANSITIONS = {
    InviteStatus.PENDING: frozenset({InviteStatus.ACCEPTED, InviteStatus.REVOKED, InviteStatus.EXPIRED}),
}


class AcceptOutcome(str, Enum):
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    NOT_FOUND = "not_found"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def compute_expiry(issued_at: datetime, validity_days: int) -> datetime:
    return issued_at + timedelta(days=validity_days)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """PostgREST timestamps trim trailing zeros from the fraction; pydantic accepts any width"""
    value = _TIMESTAMP.validate_python(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def is_terminal(status: Union[str, InviteStatus]) -> bool:
    return InviteStatus(status) in TERMINAL_STATUSES


def ensure_transition(current: Union[str, InviteStatus], target: Union[str, InviteStatus]) -> None:
    current, target = InviteStatus(current), InviteStatus(target)
    if target in _TRANSITIONS.get(current, frozenset()):
        return
    if current == InviteStatus.EXPIRED:
        raise InviteExpired()
    raise InviteAlreadyUsed(f"Invite is already {current.value}")


def evaluate_acceptance(invite: Optional[Mapping[str, Any]], now: datetime) -> AcceptOutcome:
    if not invite:
        return AcceptOutcome.NOT_FOUND
    status = InviteStatus(invite["status"])
    if status in (InviteStatus.ACCEPTED, InviteStatus.REVOKED):
        return AcceptOutcome.ALREADY_USED
    if status == InviteStatus.EXPIRED or parse_timestamp(invite["expires_at"]) <= now:
        return AcceptOutcome.EXPIRED
    return AcceptOutcome.ACCEPTED


def raise_for_outcome(outcome: Union[str, AcceptOutcome]) -> None:
    outcome = AcceptOutcome(outcome)
    if outcome == AcceptOutcome.NOT_FOUND:
        raise InviteNotFound()
    if outcome == AcceptOutcome.EXPIRED:
        raise InviteExpired()
    if outcome == AcceptOutcome.ALREADY_USED:
        raise InviteAlreadyUsed()


def is_joinable(invite: Mapping[str, Any], now: datetime) -> bool:
    return evaluate_acceptance(invite, now) == AcceptOutcome.ACCEPTED


def build_invite_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/invite/{token}"


def share_message(link: str, group_name: Optional[str] = None) -> str:
    if group_name:
        return f"Join my group \"{group_name}\" on Catadish: {link}"
    return f"Join my group on Catadish: {link}"
