"""
Twilio voice webhooks.

Twilio requests one of the voice webhooks when a call arrives and follows the
returned TwiML, which connects the call's audio to the media relay over a Media
Stream. The multi-tenant webhook first finds the dealership that owns the dialled
number and logs the call.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, Response

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.config.settings import Settings, get_settings
from dealer_voice.api.deps import get_db, verify_twilio_signature
from dealer_voice.services import call_events, twilio_service
from dealer_voice.services.agent_config import build_agent_config, create_vapi_session

logger = logging.getLogger(LOGGER_NAME)

router = APIRouter(tags=["twilio"])

signed = [Depends(verify_twilio_signature)]

TWIML_MEDIA_TYPE = "text/xml"


def twiml_response(twiml: str, status_code: int = 200) -> Response:
    return Response(content=twiml, media_type=TWIML_MEDIA_TYPE, status_code=status_code)


@router.post("/twilio/voice", dependencies=signed)
def session_voice_webhook(
    CallSid: Optional[str] = Form(None),
    From: Optional[str] = Form(None),
    To: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
):
    """Connect the call straight to the session server with its call details as parameters."""
    logger.info(f"[Session Webhook] CallSid: {CallSid}, From: {From}, To: {To}")
    twiml = twilio_service.build_stream_twiml(
        settings.session_server_url,
        {"callSid": CallSid, "from": From, "to": To},
    )
    return twiml_response(twiml)


@router.post("/api/twilio/voice", dependencies=signed)
def tenant_voice_webhook(
    CallSid: Optional[str] = Form(None),
    From: Optional[str] = Form(None),
    To: Optional[str] = Form(None),
    CallStatus: Optional[str] = Form(None),
    db=Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Route an incoming call to the assistant of the tenant that owns the dialled number.

    Steps:
    1. Look up the tenant and dealership for ``To``
    2. Log the call
    3. Build the tenant's assistant configuration and session
    4. Answer with TwiML connecting the call to the media relay

    Unknown numbers hear a short message and are hung up on.
    """
    try:
        logger.info(f"[Twilio Webhook] CallSid: {CallSid}, From: {From}, To: {To}, Status: {CallStatus}")

        tenant = call_events.lookup_tenant_by_phone(db, To)
        if tenant is None:
            logger.error(f"[Twilio Webhook] No tenant found for number: {To}")
            return twiml_response(
                twilio_service.build_say_hangup_twiml(twilio_service.NUMBER_NOT_CONFIGURED_MESSAGE)
            )

        logger.info(f"[Twilio Webhook] Matched tenant: {tenant.tenant_name} ({tenant.tenant_id})")

        call_log = call_events.create_call_log(db, tenant, CallSid, From, To, CallStatus)

        agent_config = build_agent_config(tenant)
        session = create_vapi_session(
            agent_config,
            {
                "tenant_id": tenant.tenant_id,
                "dealership_id": tenant.dealership_id,
                "call_sid": CallSid,
                "call_log_id": call_log.get("id") if call_log else None,
                "from_number": From,
                "to_number": To,
            },
            settings.session_server_url,
        )

        twiml = twilio_service.build_stream_twiml(
            session["streamUrl"],
            {
                "tenant_id": tenant.tenant_id,
                "call_sid": CallSid,
                "dealership_id": tenant.dealership_id,
            },
        )
        logger.info("[Twilio Webhook] Returning TwiML for Vapi connection")
        return twiml_response(twiml)
    except Exception as e:
        logger.error(f"[Twilio Webhook] Error: {e}", exc_info=True)
        return twiml_response(
            twilio_service.build_say_hangup_twiml(twilio_service.GENERIC_ERROR_MESSAGE),
            status_code=500,
        )


@router.post("/api/twilio/status", dependencies=signed)
def status_callback(
    CallSid: Optional[str] = Form(None),
    CallStatus: Optional[str] = Form(None),
    CallDuration: Optional[str] = Form(None),
    db=Depends(get_db),
):
    logger.info(f"[Twilio Status] CallSid: {CallSid}, Status: {CallStatus}")
    try:
        call_events.record_call_status(db, CallSid, CallStatus, CallDuration)
    except Exception as e:
        logger.error(f"[Twilio Status] Failed to update call {CallSid}: {e}")
    return {"status": "received"}


@router.get("/api/twilio/test")
def webhook_test():
    """Lets an operator check that Twilio can reach the server."""
    return {
        "status": "ok",
        "message": "Webhook endpoint is reachable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/api/twilio/test")
async def webhook_test_post(request: Request):
    body = (await request.body()).decode("utf-8", errors="replace")
    logger.info(f"[Twilio Test] Received POST: {body}")
    return {
        "status": "ok",
        "message": "POST received",
        "receivedBody": body,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
