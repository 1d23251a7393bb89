"""
Supabase Client
===============
Configured Supabase client shared by the entry stores, the affirmation
service and the auth helpers.

Uses the service_role key because the backend reads and writes entries
on behalf of the authenticated user after verifying their JWT itself.
Ownership is enforced in the API layer, not by RLS.
"""

from functools import lru_cache

from supabase import Client, create_client

from app.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_service_key)
