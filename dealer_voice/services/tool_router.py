"""
Tools the voice assistant can call during a conversation.

Vapi delivers tool calls in the ``tool-calls`` webhook event; each call names a
function and passes its arguments as a JSON string. Tools are looked up by name
in ``TOOL_REGISTRY`` and receive the parsed arguments, the call metadata (tenant
and dealership ids) and the database client.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.models.records import Booking

logger = logging.getLogger(LOGGER_NAME)

ToolFunc = Callable[[Dict[str, Any], Dict[str, Any], Any], Dict[str, Any]]

AVAILABLE_SLOTS = [
    "Today at 2:00 PM",
    "Tomorrow at 10:00 AM",
    "Tomorrow at 3:00 PM",
]


def transfer_call(arguments: Dict[str, Any], metadata: Dict[str, Any], db) -> Dict[str, Any]:
    return {"success": True, "message": "Transferring to human advisor"}


def book_appointment(arguments: Dict[str, Any], metadata: Dict[str, Any], db) -> Dict[str, Any]:
    """Insert a booking for the caller and confirm it."""
    if not metadata.get("tenant_id"):
        logger.error("[Tools] book_appointment called without tenant_id in call metadata")
        return {"success": False, "message": "Missing tenant context for booking"}

    booking = Booking(
        tenant_id=metadata.get("tenant_id"),
        dealership_id=metadata.get("dealership_id"),
        customer_name=arguments.get("customer_name"),
        phone=arguments.get("phone"),
        appt_start=arguments.get("appointment_time"),
        notes=arguments.get("service_request"),
    )
    db.table("bookings").insert(booking.model_dump()).execute()

    logger.info(f"[Tools] Booked appointment for tenant {booking.tenant_id}")
    return {
        "success": True,
        "message": f"Appointment booked for {booking.customer_name} at {booking.appt_start}",
    }


def check_availability(arguments: Dict[str, Any], metadata: Dict[str, Any], db) -> Dict[str, Any]:
    # Fixed slots until a scheduling backend is connected
    return {"available_slots": list(AVAILABLE_SLOTS)}


TOOL_REGISTRY: Dict[str, ToolFunc] = {
    "transfer_call": transfer_call,
    "book_appointment": book_appointment,
    "check_availability": check_availability,
}


def parse_arguments(raw: Any) -> Dict[str, Any]:
    """Tool arguments arrive as a JSON string or an already-decoded object."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    parsed = json.loads(raw)
    return parsed if isinstance(parsed, dict) else {}


def run_tool_call(tool_call: Dict[str, Any], metadata: Optional[Dict[str, Any]], db) -> Dict[str, Any]:
    """
    Execute one tool call.

    Args:
        tool_call: ``{"id", "function": {"name", "arguments"}}`` from Vapi
        metadata: Call metadata with ``tenant_id`` and ``dealership_id``
        db: Supabase client

    Returns:
        ``{"toolCallId", "result"}``
    """
    function = tool_call.get("function") or {}
    name = function.get("name")
    tool_call_id = tool_call.get("id")

    tool = TOOL_REGISTRY.get(name)
    if tool is None:
        logger.warning(f"[Tools] Unknown tool requested: {name}")
        return {"toolCallId": tool_call_id, "result": {"error": f"Unknown tool: {name}"}}

    arguments = parse_arguments(function.get("arguments"))
    result = tool(arguments, metadata or {}, db)
    return {"toolCallId": tool_call_id, "result": result}


def run_tool_calls(tool_calls: List[Dict[str, Any]], metadata: Optional[Dict[str, Any]], db) -> List[Dict[str, Any]]:
    return [run_tool_call(tool_call, metadata, db) for tool_call in tool_calls]
