"""
Tenant-scoped dealership operations.

Requests are authenticated with a Supabase access token; the caller's tenant is
read from ``user_profiles`` and every dealership lookup is filtered on it, so a
dealership belonging to another tenant is indistinguishable from a missing one.

Twilio credentials are stored per tenant (``tenants.twilio_account_sid``,
``twilio_auth_token_encrypted``, ``twilio_configured``); phone numbers belong to
the tenant and point at one dealership.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.config.settings import Settings
from dealer_voice.models.records import PhoneNumber, insert_row, rows
from dealer_voice.services import twilio_service
from dealer_voice.services.errors import NotFoundError, ServiceError

logger = logging.getLogger(LOGGER_NAME)

DEALERSHIP_NOT_FOUND = "Dealership not found"


def format_phone_to_e164(phone: str) -> str:
    """
    Normalise a phone number to E.164.

    Non-digits are stripped; a 10-digit number is taken to be North American
    and gets the ``1`` country code.
    """
    cleaned = re.sub(r"\D", "", phone)
    if len(cleaned) == 10:
        cleaned = "1" + cleaned
    return "+" + cleaned


def get_user_from_token(db, access_token: str):
    """Resolve a Supabase access token to its user, or None if it is not valid."""
    try:
        response = db.auth.get_user(access_token)
    except Exception as e:
        logger.warning(f"Rejected access token: {e}")
        return None
    return getattr(response, "user", None)


def get_user_tenant_id(db, user_id: str) -> Optional[str]:
    result = (
        db.table("user_profiles").select("tenant_id").eq("user_id", user_id).limit(1).execute()
    )
    profiles = rows(result.data)
    return profiles[0]["tenant_id"] if profiles else None


def get_dealership(db, dealership_id: str, tenant_id: str) -> Dict[str, Any]:
    """
    Load one of the tenant's dealerships.

    Raises:
        NotFoundError: If no dealership with this id belongs to the tenant
    """
    result = (
        db.table("dealerships")
        .select("id, tenant_id, name")
        .eq("id", dealership_id)
        .eq("tenant_id", tenant_id)
        .limit(1)
        .execute()
    )
    dealerships = rows(result.data)
    if not dealerships:
        raise NotFoundError(DEALERSHIP_NOT_FOUND)
    return dealerships[0]


def _get_tenant(db, tenant_id: str, columns: str) -> Dict[str, Any]:
    result = db.table("tenants").select(columns).eq("id", tenant_id).limit(1).execute()
    tenants = rows(result.data)
    return tenants[0] if tenants else {}


def list_phone_numbers(db, tenant_id: str) -> List[Dict[str, Any]]:
    result = (
        db.table("phone_numbers")
        .select("*")
        .eq("tenant_id", tenant_id)
        .order("created_at", desc=True)
        .execute()
    )
    return rows(result.data)


def get_twilio_config(db, tenant_id: str) -> Dict[str, Any]:
    tenant = _get_tenant(db, tenant_id, "twilio_account_sid, twilio_configured")
    return {
        "configured": bool(tenant.get("twilio_configured")),
        "accountSid": tenant.get("twilio_account_sid"),
        "phoneNumbers": list_phone_numbers(db, tenant_id),
    }


def save_twilio_credentials(
    db, tenant_id: str, account_sid: Optional[str], auth_token: Optional[str]
) -> Dict[str, Any]:
    """
    Verify a tenant's Twilio credentials with Twilio and store them.

    Raises:
        ServiceError: Missing (400) or rejected (400) credentials, or a failed
            update (500)
    """
    if not account_sid or not auth_token:
        raise ServiceError("Account SID and Auth Token are required")

    if not twilio_service.validate_credentials(account_sid, auth_token):
        raise ServiceError("Invalid Twilio credentials")

    try:
        db.table("tenants").update(
            {
                "twilio_account_sid": account_sid,
                "twilio_auth_token_encrypted": twilio_service.encode_auth_token(auth_token),
                "twilio_configured": True,
            }
        ).eq("id", tenant_id).execute()
    except Exception as e:
        logger.error(f"[Twilio Config POST] Update error: {e}")
        raise ServiceError("Failed to save Twilio credentials", status_code=500)

    logger.info(f"[Twilio Config POST] Stored Twilio credentials for tenant {tenant_id}")
    return {"success": True, "message": "Twilio credentials saved successfully"}


def remove_twilio_credentials(db, tenant_id: str) -> Dict[str, Any]:
    try:
        db.table("tenants").update(
            {
                "twilio_account_sid": None,
                "twilio_auth_token_encrypted": None,
                "twilio_configured": False,
            }
        ).eq("id", tenant_id).execute()
    except Exception as e:
        logger.error(f"[Twilio Config DELETE] Update error: {e}")
        raise ServiceError("Failed to remove Twilio credentials", status_code=500)

    return {"success": True, "message": "Twilio credentials removed successfully"}


def add_phone_number(
    db,
    settings: Settings,
    tenant_id: str,
    dealership_id: str,
    phone_number: Optional[str],
    twilio_sid: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Register a phone number for a dealership and, when its Twilio SID is known,
    point the number's webhooks at this backend.

    Args:
        db: Supabase client
        settings: Supplies the public base URL for the webhook
        tenant_id: Caller's tenant
        dealership_id: Dealership the number rings
        phone_number: Number in any common format
        twilio_sid: Optional ``PN...`` SID of the Twilio number

    Returns:
        ``{"success", "phoneNumber", "webhookUrl", "message"}``

    Raises:
        ServiceError: Missing number, missing Twilio credentials, duplicate
            number (400) or failed insert (500)
    """
    if not phone_number:
        raise ServiceError("Phone number is required")

    tenant = _get_tenant(db, tenant_id, "twilio_account_sid, twilio_auth_token_encrypted")
    if not tenant.get("twilio_account_sid"):
        raise ServiceError("Twilio credentials not configured")

    phone_e164 = format_phone_to_e164(phone_number)

    existing = db.table("phone_numbers").select("id").eq("phone_e164", phone_e164).limit(1).execute()
    if rows(existing.data):
        raise ServiceError("Phone number already exists in system")

    webhook_url = settings.twilio_voice_webhook_url
    webhook_configured = False
    if twilio_sid and tenant.get("twilio_auth_token_encrypted"):
        webhook_configured = twilio_service.configure_number_webhook(
            tenant["twilio_account_sid"],
            twilio_service.decode_auth_token(tenant["twilio_auth_token_encrypted"]),
            twilio_sid,
            webhook_url,
            settings.twilio_status_callback_url,
        )

    number = PhoneNumber(
        tenant_id=tenant_id,
        dealership_id=dealership_id,
        phone_e164=phone_e164,
        twilio_sid=twilio_sid or None,
        webhook_set=webhook_configured,
        webhook_url=webhook_url,
    )
    try:
        result = db.table("phone_numbers").insert(insert_row(number)).execute()
    except Exception as e:
        logger.error(f"[Phone Numbers POST] Insert error: {e}")
        raise ServiceError("Failed to add phone number", status_code=500)

    created = rows(result.data)
    return {
        "success": True,
        "phoneNumber": created[0] if created else None,
        "webhookUrl": webhook_url,
        "message": (
            "Phone number added and webhook configured"
            if webhook_configured
            else "Phone number added. Configure webhook manually in Twilio console."
        ),
    }
