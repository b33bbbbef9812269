"""
Vapi endpoints: phone number proxy, event webhook and call history.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.config.settings import Settings, get_settings
from dealer_voice.api.deps import get_db, require_tenant_id
from dealer_voice.api.errors import ApiError
from dealer_voice.models.api_schemas import VapiPhoneNumberRequest
from dealer_voice.services.call_events import VapiEventHandler, list_recent_calls
from dealer_voice.services.errors import ServiceError
from dealer_voice.services.vapi_client import VapiClient, VapiError, build_phone_number_payload

logger = logging.getLogger(LOGGER_NAME)

router = APIRouter(prefix="/api/vapi", tags=["vapi"])


def get_vapi_client(settings: Settings = Depends(get_settings)) -> VapiClient:
    if not settings.has_vapi_key:
        raise ApiError(500, "VAPI_API_KEY not configured")
    return VapiClient(settings.vapi_api_key, settings.vapi_base_url)


@router.get("/phone-numbers")
def list_phone_numbers(client: VapiClient = Depends(get_vapi_client)):
    try:
        return client.list_phone_numbers()
    except VapiError as e:
        logger.error(f"Error fetching phone numbers: {e}")
        raise ApiError(500, "Failed to fetch phone numbers")


@router.post("/phone-numbers")
def create_phone_number(
    body: VapiPhoneNumberRequest,
    client: VapiClient = Depends(get_vapi_client),
):
    """Import a phone number into Vapi; the payload depends on the provider."""
    payload = build_phone_number_payload(
        body.provider,
        phone_number=body.phoneNumber,
        twilio_account_sid=body.twilioAccountSid,
        twilio_auth_token=body.twilioAuthToken,
        sip_uri=body.sipUri,
        assistant_id=body.assistantId,
    )
    try:
        return client.create_phone_number(payload)
    except VapiError as e:
        logger.error(f"Error creating phone number: {e}")
        raise ApiError(500, str(e) or "Failed to create phone number")


@router.post("/webhook")
async def vapi_webhook(request: Request, db=Depends(get_db)):
    """
    Receive Vapi call events.

    Events carry the call metadata set when the call was routed, which scopes
    every write to the right tenant and call log.
    """
    try:
        body = await request.json()
        if not isinstance(body, dict):
            raise ValueError("Webhook body must be a JSON object")
        return await run_in_threadpool(VapiEventHandler(db).handle, body)
    except Exception as e:
        logger.error(f"[Vapi Webhook] Error: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


@router.get("/calls")
def list_calls(tenant_id: str = Depends(require_tenant_id), db=Depends(get_db)):
    """Latest calls of the caller's tenant, newest first, in Vapi's call shape."""
    try:
        return list_recent_calls(db, tenant_id)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error fetching calls: {e}", exc_info=True)
        raise ApiError(500, "Failed to fetch calls")
