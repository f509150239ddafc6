# Relational store

from supabase import Client, create_client

from app.config import SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL
from app.db.base import Database, Page, TableGateway


def create_supabase_client() -> Client:
    """Service-role client shared by the relational store and Supabase storage."""
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)


def create_database(client: Client) -> Database:
    from app.db.supabase_db import SupabaseDatabase

    return SupabaseDatabase(client)


__all__ = ["create_database", "create_supabase_client", "Database", "Page", "TableGateway"]
