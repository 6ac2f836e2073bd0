"""Supabase client construction and request-scoped accessors."""

from fastapi import Request
from supabase import Client, create_client

from dental_api.config.settings import Settings


def build_supabase(settings: Settings) -> Client:
    """Service-role client used for tables, storage and the auth admin API."""
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def get_supabase(request: Request) -> Client:
    return request.app.state.supabase
