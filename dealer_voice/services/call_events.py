"""
Call log persistence and Vapi webhook event handling.

A ``calls`` row is created by the Twilio voice webhook when a call arrives and
then enriched by Vapi events as the conversation progresses. Every Vapi event
carries the call metadata set at routing time (tenant, dealership, call log id),
which is how rows stay scoped to their tenant.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dealer_voice.config.constants import (
    CALL_HISTORY_LIMIT,
    LOGGER_NAME,
    TERMINAL_CALL_STATUSES,
)
from dealer_voice.models.records import (
    Call,
    Summary,
    TenantLookup,
    Transcript,
    TranscriptRole,
    insert_row,
    rows,
)
from dealer_voice.services.tool_router import run_tool_calls

logger = logging.getLogger(LOGGER_NAME)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable timestamp: {value}")
        return None


def lookup_tenant_by_phone(db, phone: Optional[str]) -> Optional[TenantLookup]:
    """
    Find the tenant that owns a dialled number.

    Args:
        db: Supabase client
        phone: The ``To`` number of the incoming call

    Returns:
        The first matching tenant, or None when the number is unknown or the
        lookup failed
    """
    if not phone:
        return None
    try:
        result = db.rpc("get_tenant_by_phone", {"phone": phone}).execute()
    except Exception as e:
        logger.error(f"[Twilio Webhook] Tenant lookup failed for {phone}: {e}")
        return None

    matches = rows(result.data)
    if not matches:
        return None
    return TenantLookup(**matches[0])


def create_call_log(
    db,
    tenant: TenantLookup,
    call_sid: Optional[str],
    from_number: Optional[str],
    to_number: Optional[str],
    call_status: Optional[str],
) -> Optional[Dict[str, Any]]:
    """Insert the ``calls`` row for a new call; failures are logged and return None."""
    call = Call(
        tenant_id=tenant.tenant_id,
        dealership_id=tenant.dealership_id,
        twilio_call_sid=call_sid,
        started_at=utc_now_iso(),
        meta={"from_number": from_number, "to_number": to_number, "call_status": call_status},
    )
    try:
        result = db.table("calls").insert(insert_row(call)).execute()
    except Exception as e:
        logger.error(f"[Twilio Webhook] Failed to create call log: {e}")
        return None

    created = rows(result.data)
    return created[0] if created else None


def record_call_status(
    db, call_sid: Optional[str], call_status: Optional[str], duration: Optional[str]
) -> bool:
    """
    Apply a Twilio status callback to the call log.

    Only terminal statuses change the row.

    Returns:
        True if an update was issued
    """
    if not call_sid or call_status not in TERMINAL_CALL_STATUSES:
        return False

    update: Dict[str, Any] = {"ended_at": utc_now_iso()}
    if duration:
        try:
            update["duration_s"] = int(duration)
        except ValueError:
            logger.warning(f"[Twilio Status] Ignoring invalid CallDuration: {duration}")

    db.table("calls").update(update).eq("twilio_call_sid", call_sid).execute()
    logger.info(f"[Twilio Status] Call {call_sid} ended with status {call_status}")
    return True


class VapiEventHandler:
    """
    Handles the events Vapi posts to the webhook.

    ``handle`` returns the JSON body to answer with; database errors propagate
    to the caller.
    """

    def __init__(self, db):
        self.db = db

    def handle(self, body: Dict[str, Any]) -> Dict[str, Any]:
        message = body.get("message") or {}
        event_type = message.get("type") or body.get("type")
        call = message.get("call") or {}

        logger.info(f"[Vapi Webhook] Event: {event_type} (call {call.get('id')})")

        if event_type == "assistant-request":
            return self.handle_assistant_request(message)
        if event_type == "status-update":
            if message.get("status") == "started":
                return self.handle_call_started(message)
            return {"success": True}
        if event_type == "transcript":
            return self.handle_transcript(message)
        if event_type == "tool-calls":
            return self.handle_tool_calls(message)
        if event_type == "end-of-call-report":
            return self.handle_call_ended(message)

        logger.info(f"[Vapi Webhook] Unhandled event type: {event_type}")
        return {"success": True}

    def handle_assistant_request(self, message: Dict[str, Any]) -> Dict[str, Any]:
        metadata = (message.get("call") or {}).get("metadata") or {}
        if metadata.get("tenant_id"):
            logger.info(f"[Vapi Webhook] Assistant request for tenant: {metadata['tenant_id']}")
        return {"assistant": message.get("assistant") or {}}

    def handle_call_started(self, message: Dict[str, Any]) -> Dict[str, Any]:
        call = message.get("call") or {}
        metadata = call.get("metadata") or {}
        call_log_id = metadata.get("call_log_id")
        if not call_log_id:
            logger.error("[Vapi Webhook] No call_log_id in metadata")
            return {"success": True}

        meta = {**metadata, "vapi_call_id": call.get("id"), "status": "in_progress"}
        self.db.table("calls").update({"meta": meta}).eq("id", call_log_id).execute()

        logger.info(f"[Vapi Webhook] Call started: {call.get('id')}")
        return {"success": True}

    def handle_transcript(self, message: Dict[str, Any]) -> Dict[str, Any]:
        metadata = (message.get("call") or {}).get("metadata") or {}
        transcript = message.get("transcript")
        if not metadata.get("call_log_id") or not isinstance(transcript, dict):
            return {"success": True}

        role = TranscriptRole.AGENT if transcript.get("role") == "assistant" else TranscriptRole.CALLER
        row = Transcript(
            call_id=metadata["call_log_id"],
            tenant_id=metadata.get("tenant_id"),
            turn=transcript.get("turn") or 0,
            role=role,
            text=transcript.get("text"),
            ts=utc_now_iso(),
        )
        self.db.table("transcripts").insert(insert_row(row)).execute()
        return {"success": True}

    def handle_tool_calls(self, message: Dict[str, Any]) -> Dict[str, Any]:
        tool_calls = message.get("toolCalls") or []
        metadata = (message.get("call") or {}).get("metadata") or {}
        names = [(tc.get("function") or {}).get("name") for tc in tool_calls]
        logger.info(f"[Vapi Webhook] Tool calls: {names}")
        return {"results": run_tool_calls(tool_calls, metadata, self.db)}

    def handle_call_ended(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Store duration, outcome and analysis; add a summary row when Vapi produced one."""
        call = message.get("call") or {}
        metadata = call.get("metadata") or {}
        call_log_id = metadata.get("call_log_id")
        if not call_log_id:
            logger.error("[Vapi Webhook] No call_log_id in end-of-call-report")
            return {"success": True}

        ended_at = call.get("endedAt") or utc_now_iso()
        started = parse_timestamp(call.get("startedAt"))
        ended = parse_timestamp(ended_at)
        duration_s = int((ended - started).total_seconds()) if started and ended else None

        analysis = message.get("analysis") or {}
        structured_data = analysis.get("structuredData")
        outcome = (structured_data or {}).get("final_outcome") or "unknown"

        self.db.table("calls").update(
            {
                "ended_at": ended_at,
                "duration_s": duration_s,
                "outcome": outcome,
                "meta": {
                    **metadata,
                    "vapi_call_id": call.get("id"),
                    "ended_reason": message.get("endedReason"),
                    "analysis": message.get("analysis"),
                    "costs": message.get("costs"),
                },
            }
        ).eq("id", call_log_id).execute()

        if analysis.get("summary"):
            summary = Summary(
                call_id=call_log_id,
                tenant_id=metadata.get("tenant_id"),
                summary_text=analysis["summary"],
                intents_json=structured_data or {},
            )
            self.db.table("summaries").insert(insert_row(summary)).execute()

        logger.info(
            f"[Vapi Webhook] Call ended: {call.get('id')}, outcome: {outcome}, duration: {duration_s}s"
        )
        return {"success": True}


def transform_call(call: Dict[str, Any]) -> Dict[str, Any]:
    """Map a ``calls`` row to the call object shape the dashboard expects from Vapi."""
    meta = call.get("meta") or {}
    return {
        "id": meta.get("vapi_call_id") or call.get("id"),
        "orgId": "self-hosted",
        "type": "inboundPhoneCall",
        "phoneCallProvider": "twilio",
        "phoneCallTransport": "pstn",
        "status": "ended" if call.get("ended_at") else "in-progress",
        "endedReason": meta.get("ended_reason"),
        "startedAt": call.get("started_at"),
        "endedAt": call.get("ended_at"),
        "customer": {"number": meta.get("from_number") or "Unknown"},
        "analysis": meta.get("analysis") or {},
    }


def list_recent_calls(db, tenant_id: str, limit: int = CALL_HISTORY_LIMIT) -> List[Dict[str, Any]]:
    """Newest calls of one tenant, transformed for the dashboard."""
    result = (
        db.table("calls")
        .select("id, twilio_call_sid, started_at, ended_at, duration_s, outcome, meta")
        .eq("tenant_id", tenant_id)
        .order("started_at", desc=True)
        .limit(limit)
        .execute()
    )
    return [transform_call(call) for call in rows(result.data)]
