"""
Per-tenant assistant configuration.

A tenant's ``agent_config`` (stored with its dealership) may override the system
prompt, the voice and the greeting; everything else is the same for every
dealership.
"""

import logging
from typing import Any, Dict, Optional

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.models.records import TenantLookup

logger = logging.getLogger(LOGGER_NAME)

# Model and vendor defaults
MODEL_PROVIDER = "openai"
MODEL_NAME = "gpt-4o"
MODEL_TEMPERATURE = 0.5
VOICE_PROVIDER = "cartesia"
DEFAULT_VOICE_ID = "57dcab65-68ac-45a6-8480-6c4c52ec1cd1"
VOICE_MODEL = "sonic-3"
TRANSCRIBER_PROVIDER = "deepgram"
TRANSCRIBER_MODEL = "nova-3"
TRANSCRIBER_ENDPOINTING_MS = 150

DEFAULT_GREETING = "Hi, thanks for calling! How can I help you today?"

CALL_OUTCOMES = (
    "appointment_booked",
    "transferred_to_human",
    "info_provided",
    "call_ended_no_resolution",
)

SUMMARY_PROMPT = (
    "Summarize this call in 2-3 sentences. Include caller name, their need, and the outcome."
)
STRUCTURED_DATA_PROMPT = (
    "Extract structured data from this call transcript based on the schema provided."
)


def default_system_prompt(dealership_name: str) -> str:
    return (
        f"You are the service agent for {dealership_name}.\n"
        "\n"
        "Your job is to:\n"
        "- Answer calls professionally and warmly\n"
        "- Help customers book service appointments\n"
        "- Answer questions about service hours and availability\n"
        "- Transfer to a human advisor when needed\n"
        "\n"
        "Keep responses short and helpful. Speak naturally like a real person.\n"
        "Ask only necessary questions. Confirm details before booking."
    )


def structured_data_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "caller_name": {"type": "string"},
            "vehicle_make": {"type": "string"},
            "vehicle_year": {"type": "string"},
            "vehicle_model": {"type": "string"},
            "service_request": {"type": "string"},
            "final_outcome": {"type": "string", "enum": list(CALL_OUTCOMES)},
        },
    }


def build_agent_config(tenant: TenantLookup) -> Dict[str, Any]:
    """
    Build the Vapi assistant configuration for a tenant's dealership.

    Args:
        tenant: Row from the ``get_tenant_by_phone`` lookup

    Returns:
        Assistant configuration in Vapi's schema
    """
    config = tenant.agent_config or {}

    return {
        "model": {
            "provider": MODEL_PROVIDER,
            "model": MODEL_NAME,
            "temperature": MODEL_TEMPERATURE,
            "messages": [
                {
                    "role": "system",
                    "content": config.get("systemPrompt")
                    or default_system_prompt(tenant.dealership_name),
                }
            ],
        },
        "voice": {
            "provider": VOICE_PROVIDER,
            "voiceId": config.get("voiceId") or DEFAULT_VOICE_ID,
            "model": VOICE_MODEL,
        },
        "name": f"{tenant.dealership_name} Service Agent",
        "firstMessage": config.get("greeting") or DEFAULT_GREETING,
        "transcriber": {
            "provider": TRANSCRIBER_PROVIDER,
            "model": TRANSCRIBER_MODEL,
            "language": "en",
            "endpointing": TRANSCRIBER_ENDPOINTING_MS,
        },
        "analysisPlan": {
            "summaryPlan": {
                "enabled": True,
                "messages": [{"role": "system", "content": SUMMARY_PROMPT}],
            },
            "structuredDataPlan": {
                "schema": structured_data_schema(),
                "messages": [{"role": "system", "content": STRUCTURED_DATA_PROMPT}],
            },
        },
    }


def create_vapi_session(
    agent_config: Dict[str, Any],
    metadata: Dict[str, Optional[str]],
    stream_url: str,
) -> Dict[str, Any]:
    """
    Describe where Twilio should stream the call.

    Calls are routed through the session server, which holds the assistant, so
    no Vapi API request is made here.

    Args:
        agent_config: Assistant configuration from ``build_agent_config``
        metadata: Tenant, dealership and call identifiers
        stream_url: Media relay WebSocket URL

    Returns:
        ``{"streamUrl", "sessionId", "assistant", "metadata"}``
    """
    logger.info(
        f"Routing call {metadata.get('call_sid')} for tenant {metadata.get('tenant_id')} "
        f"to {stream_url}"
    )
    return {
        "streamUrl": stream_url,
        "sessionId": metadata.get("call_sid"),
        "assistant": agent_config,
        "metadata": metadata,
    }
