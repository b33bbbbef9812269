"""
Environment-backed settings for the voice agent backend.

All environment variables are read once, when a Settings object is built.
Routes receive the cached instance through the ``get_settings`` dependency so
tests can swap in their own values with ``app.dependency_overrides``.
"""

import os
from functools import lru_cache
from typing import Optional

from dealer_voice.config.constants import (
    DEFAULT_PUBLIC_BASE_URL,
    DEFAULT_SESSION_SERVER_URL,
    DEFAULT_VAPI_ASSISTANT_ID,
    DEFAULT_VAPI_BASE_URL,
    DEFAULT_VAPI_WS_URL,
)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Settings:
    """Configuration for the relay, the webhooks and the REST API."""

    def __init__(self) -> None:
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "8080"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_dir = os.getenv("LOG_DIR", "logs")
        self.log_to_file = _env_flag("LOG_TO_FILE", "true")
        self.environment = os.getenv("ENV", "production").lower()

        # Vapi
        self.vapi_api_key: Optional[str] = os.getenv("VAPI_API_KEY")
        self.vapi_assistant_id = os.getenv("VAPI_ASSISTANT_ID", DEFAULT_VAPI_ASSISTANT_ID)
        self.vapi_ws_url = os.getenv("VAPI_WS_URL", DEFAULT_VAPI_WS_URL)
        self.vapi_base_url = os.getenv("VAPI_BASE_URL", DEFAULT_VAPI_BASE_URL).rstrip("/")

        # Twilio
        self.session_server_url = os.getenv("SESSION_SERVER_URL", DEFAULT_SESSION_SERVER_URL)
        self.public_base_url = os.getenv("PUBLIC_BASE_URL", DEFAULT_PUBLIC_BASE_URL).rstrip("/")
        self.twilio_auth_token: Optional[str] = os.getenv("TWILIO_AUTH_TOKEN")
        self.validate_twilio = _env_flag("VALIDATE_TWILIO")

        # Supabase (service role client bypasses row-level security)
        self.supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
        self.supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

        # Speech and language vendors, only checked by the key verification script
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
        self.deepgram_api_key: Optional[str] = os.getenv("DEEPGRAM_API_KEY")
        self.cartesia_api_key: Optional[str] = os.getenv("CARTESIA_API_KEY")
        self.cartesia_default_voice_id: Optional[str] = os.getenv("CARTESIA_DEFAULT_VOICE_ID")

    @property
    def has_vapi_key(self) -> bool:
        return bool(self.vapi_api_key)

    @property
    def has_supabase_config(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    @property
    def twilio_voice_webhook_url(self) -> str:
        return f"{self.public_base_url}/api/twilio/voice"

    @property
    def twilio_status_callback_url(self) -> str:
        return f"{self.public_base_url}/api/twilio/status"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance."""
    return Settings()
