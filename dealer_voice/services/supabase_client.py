"""
Service-role Supabase client.

The service-role key bypasses row-level security, so every query made with this
client on behalf of a user must filter on the user's ``tenant_id`` itself.
"""

import logging
from functools import lru_cache

from supabase import Client, create_client

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.config.settings import get_settings
from dealer_voice.services.errors import ServiceError

logger = logging.getLogger(LOGGER_NAME)


class SupabaseNotConfigured(ServiceError):
    """Raised when SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)


@lru_cache
def get_supabase_admin() -> Client:
    """
    Create the process-wide service-role client.

    Returns:
        A supabase Client authenticated with the service role key

    Raises:
        SupabaseNotConfigured: If the URL or key is not set
    """
    settings = get_settings()
    if not settings.has_supabase_config:
        raise SupabaseNotConfigured("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    logger.info(f"Creating Supabase service client for {settings.supabase_url}")
    return create_client(settings.supabase_url, settings.supabase_service_role_key)
