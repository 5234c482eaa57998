import hashlib
import time
from supabase import Client
from app.modules.auth.schemas import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.modules.profiles.schemas import ProfileUpdate
from app.modules.profiles.service import ProfileService
from app.core.errors import Unauthenticated, ValidationError
from app.database.store import DataStore, SupabaseStore
from app.database.supabase_client import create_user_client
from fastapi import HTTPException
from typing import Any, Callable, Dict, Optional
import logging

logger = logging.getLogger(__name__)

# Identities resolved from access tokens, keyed by token hash.
# Many parallel requests from one page carry the same token.
_IDENTITY_CACHE: Dict[str, tuple] = {}
_IDENTITY_TTL_SEC = 60
_IDENTITY_CACHE_MAX = 500


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _store_for_token(access_token: str) -> DataStore:
    return SupabaseStore(create_user_client(access_token))


def _identity(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "created_at": user.created_at,
    }


def _session_tokens(session, user, fallback_email: str = "") -> TokenResponse:
    return TokenResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        token_type="bearer",
        user_id=user.id,
        email=user.email or fallback_email,
    )


class AuthService:
    """
    Thin layer over Supabase Auth.

    Sign-up also claims the chosen username on the caller's profile when
    Supabase hands back a session straight away. With email confirmation on
    there is no session yet, so the username only lives in the user metadata
    until the user sets it from their profile.
    """

    def __init__(self, supabase: Client, store_factory: Optional[Callable[[str], DataStore]] = None):
        self.supabase = supabase
        self.store_factory = store_factory or _store_for_token

    def _claim_username(self, session, user, username: str) -> Optional[str]:
        profiles = ProfileService(self.store_factory(session.access_token))
        user_data = _identity(user)
        try:
            profiles.ensure_profile(user_data)
            profiles.update_profile(user_data, ProfileUpdate(username=username))
            return username
        except ValidationError:
            logger.warning(f"Username {username} already taken, user {user.id} registered without one")
            return None

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Create a Supabase Auth user and, when signed in right away, their profile"""
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {"data": {"username": register_data.username}},
            })
            user = auth_response.user
            if not user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            session = auth_response.session
            if session is None:
                logger.info(f"User {user.id} registered, waiting for email confirmation")
                return RegisterResponse(
                    user_id=user.id,
                    email=user.email or register_data.email,
                    confirmation_required=True,
                    message="Account created. Check your email to confirm access.",
                )

            username = self._claim_username(session, user, register_data.username)
            return RegisterResponse(
                user_id=user.id,
                email=user.email or register_data.email,
                username=username,
                tokens=_session_tokens(session, user, register_data.email),
                message="Account created." if username else "Account created. That username is taken, pick another one.",
            )
        except HTTPException:
            raise
        except Exception as e:
            lowered = str(e).lower()
            if "already registered" in lowered or "already exists" in lowered:
                raise ValidationError("An account with this email already exists")
            logger.error(f"Registration failed: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {str(e)}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Email and password sign-in"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
            if not auth_response.user or not auth_response.session:
                raise Unauthenticated("Invalid email or password")
            return _session_tokens(auth_response.session, auth_response.user, login_data.email)
        except HTTPException:
            raise
        except Exception as e:
            lowered = str(e).lower()
            if "invalid" in lowered or "credentials" in lowered or "not confirmed" in lowered:
                raise Unauthenticated("Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {str(e)}")

    def refresh(self, refresh_data: RefreshRequest) -> TokenResponse:
        """Trade a refresh token for a new session"""
        try:
            auth_response = self.supabase.auth.refresh_session(refresh_data.refresh_token)
            if not auth_response.user or not auth_response.session:
                raise Unauthenticated("Session expired, sign in again")
            return _session_tokens(auth_response.session, auth_response.user)
        except HTTPException:
            raise
        except Exception as e:
            logger.info(f"Refresh rejected: {str(e)}")
            raise Unauthenticated("Session expired, sign in again")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Identity behind an access token, served from a short-lived cache when possible"""
        key = _token_key(token)
        now = time.monotonic()
        cached = _IDENTITY_CACHE.get(key)
        if cached is not None:
            user_data, expires = cached
            if now < expires:
                return user_data
            _IDENTITY_CACHE.pop(key, None)

        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.debug(f"Token rejected by Supabase Auth: {str(e)}")
            raise Unauthenticated("Invalid or expired token")
        if not user_response or not user_response.user:
            raise Unauthenticated("Invalid or expired token")

        user_data = _identity(user_response.user)
        if len(_IDENTITY_CACHE) < _IDENTITY_CACHE_MAX:
            _IDENTITY_CACHE[key] = (user_data, now + _IDENTITY_TTL_SEC)
        return user_data

    def logout(self, token: str) -> bool:
        """Forget the cached identity and end the Supabase session"""
        _IDENTITY_CACHE.pop(_token_key(token), None)
        try:
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Supabase sign-out failed: {str(e)}")
            return False
