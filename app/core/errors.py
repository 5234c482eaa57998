"""
Error taxonomy shared by every module.

Each error is an HTTPException so services can raise it directly and FastAPI
renders it as {"detail": ...} with the right status code.
"""

from fastapi import HTTPException, status
from typing import Optional


class Unauthenticated(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDenied(HTTPException):
    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InviteNotFound(NotFound):
    def __init__(self, detail: str = "Invite not found"):
        super().__init__(detail=detail)


class InviteExpired(HTTPException):
    def __init__(self, detail: str = "This invite has expired"):
        super().__init__(status_code=status.HTTP_410_GONE, detail=detail)


class InviteAlreadyUsed(HTTPException):
    def __init__(self, detail: str = "This invite has already been used or revoked"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ValidationError(HTTPException):
    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status_code=422, detail=detail)


class IncompleteRating(ValidationError):
    def __init__(self, detail: str = "All four rating axes (flavor, texture, presentation, value) are required"):
        super().__init__(detail=detail)


class StorageFailure(HTTPException):
    """A write failed after an earlier step already committed; nothing is rolled back."""

    def __init__(self, failed_step: str, message: str, entity_id: Optional[str] = None):
        self.failed_step = failed_step
        self.entity_id = entity_id
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": message,
                "failed_step": failed_step,
                "entity_id": entity_id,
            },
        )
