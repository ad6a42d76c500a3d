from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client

from .config import get_config


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Service-role client shared by the Supabase-backed stores."""
    cfg = get_config()
    if not cfg.supabase_url or not cfg.supabase_service_role_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(cfg.supabase_url, cfg.supabase_service_role_key)
