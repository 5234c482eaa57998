from supabase import create_client, Client
from app.config import settings


class SupabaseClient:
    """Process-wide anon-key client, used only for Supabase Auth calls"""
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def create_user_client(access_token: str) -> Client:
    """
    Client acting as the caller. Table queries, RPCs and storage uploads all
    carry the caller's JWT, so row-level security decides what they may touch.
    The postgrest and storage sub-clients are built lazily from options.headers,
    which is why the header is set before either is used.
    """
    client = create_client(settings.supabase_url, settings.supabase_key)
    client.options.headers["Authorization"] = f"Bearer {access_token}"
    client.postgrest.auth(access_token)
    return client
