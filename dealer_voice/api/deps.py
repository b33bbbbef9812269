"""
FastAPI dependencies shared by the routers.

Tests replace ``get_db`` and ``get_settings`` through ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.config.settings import Settings, get_settings
from dealer_voice.api.errors import ApiError
from dealer_voice.services import dealership_service, twilio_service
from dealer_voice.services.supabase_client import get_supabase_admin

logger = logging.getLogger(LOGGER_NAME)


def get_db():
    """Service-role Supabase client."""
    return get_supabase_admin()


def require_user(
    authorization: Optional[str] = Header(None),
    db=Depends(get_db),
):
    """
    Authenticate the request with its ``Authorization: Bearer <token>`` header.

    Raises:
        ApiError: 401 if the header is missing or the token is not valid
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise ApiError(401, "Unauthorized")

    token = authorization[len("bearer "):].strip()
    user = dealership_service.get_user_from_token(db, token) if token else None
    if user is None:
        raise ApiError(401, "Unauthorized")
    return user


def require_tenant_id(user=Depends(require_user), db=Depends(get_db)) -> str:
    tenant_id = dealership_service.get_user_tenant_id(db, user.id)
    if not tenant_id:
        raise ApiError(404, "User profile not found")
    return tenant_id


def public_request_url(request: Request, settings: Settings) -> str:
    """URL Twilio called, as seen from outside any proxy."""
    url = f"{settings.public_base_url}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


async def verify_twilio_signature(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject webhook requests without a valid ``X-Twilio-Signature`` when validation is on."""
    if not settings.validate_twilio:
        return
    if not settings.twilio_auth_token:
        logger.warning("Twilio validation enabled but TWILIO_AUTH_TOKEN is not set")
        return

    form = await request.form()
    params = {key: value for key, value in form.items() if isinstance(value, str)}
    signature = request.headers.get("X-Twilio-Signature")
    url = public_request_url(request, settings)

    if not twilio_service.is_valid_signature(settings.twilio_auth_token, url, params, signature):
        logger.warning(f"Invalid Twilio signature for {url}")
        raise ApiError(403, "Invalid Twilio signature")
