"""
Core dependencies: caller identity and per-request data/blob stores
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.core.errors import Unauthenticated
from app.database.blob_storage import BlobStore, S3BlobStore, SupabaseBlobStore
from app.database.store import DataStore, SupabaseStore
from app.database.supabase_client import get_supabase, create_user_client
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from supabase import Client
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """Bearer token from the Authorization header"""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Resolve the caller from their access token"""
    return auth_service.get_current_user(token)


def get_user_client(token: str = Depends(get_access_token)) -> Client:
    """One Supabase client per request, acting as the caller"""
    return create_user_client(token)


def get_store(client: Client = Depends(get_user_client)) -> DataStore:
    return SupabaseStore(client)


def get_blob_store(client: Client = Depends(get_user_client)) -> BlobStore:
    """S3 when configured, otherwise the Supabase Storage photo bucket"""
    if settings.s3_configured:
        try:
            return S3BlobStore()
        except Exception as e:
            logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")
    return SupabaseBlobStore(client, settings.photo_bucket)


def get_current_profile(
    user_data: Dict[str, Any] = Depends(get_current_user),
    store: DataStore = Depends(get_store)
) -> Dict[str, Any]:
    """Caller identity, after making sure their profile row exists (needed before any owned write)"""
    ProfileService(store).ensure_profile(user_data)
    return user_data
