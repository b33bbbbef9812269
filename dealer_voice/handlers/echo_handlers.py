"""
Handles messages on the echo / latency-test WebSocket.

This socket has no speech pipeline behind it: audio is echoed back unchanged so
the dashboard can measure transport latency before the real pipeline exists.
Every reply carries the server's receive time in epoch milliseconds.
"""

import logging
import time
from typing import Any, Dict, Optional

from pydantic import BaseModel

from dealer_voice.config.constants import (
    ECHO_MESSAGE_AUDIO,
    ECHO_MESSAGE_ECHO,
    ECHO_MESSAGE_START,
    ECHO_MESSAGE_STOP,
    LOGGER_NAME,
)
from dealer_voice.models.echo_schemas import (
    AudioEchoResponse,
    ConnectedResponse,
    EchoResponse,
    LatencyResponse,
)

logger = logging.getLogger(LOGGER_NAME)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def connected_message() -> ConnectedResponse:
    return ConnectedResponse(serverTime=now_ms())


def handle_echo(message: Dict[str, Any], received_at: int) -> EchoResponse:
    """Reply with the client's timestamp and the one-way delay it implies."""
    client_time = message.get("timestamp")
    if isinstance(client_time, (int, float)) and not isinstance(client_time, bool):
        client_time = int(client_time)
    else:
        client_time = None
    return EchoResponse(
        clientTime=client_time,
        serverTime=received_at,
        roundTripMs=received_at - client_time if client_time is not None else None,
    )


def handle_audio(message: Dict[str, Any], received_at: int) -> AudioEchoResponse:
    return AudioEchoResponse(data=message.get("data"), serverTime=received_at)


def handle_start(message: Dict[str, Any], received_at: int) -> LatencyResponse:
    logger.info("[Echo] Client started conversation")
    return LatencyResponse(message="Conversation started", serverTime=received_at)


def handle_stop(message: Dict[str, Any], received_at: int) -> LatencyResponse:
    logger.info("[Echo] Client stopped conversation")
    return LatencyResponse(message="Conversation stopped", serverTime=received_at)


ECHO_HANDLERS = {
    ECHO_MESSAGE_ECHO: handle_echo,
    ECHO_MESSAGE_AUDIO: handle_audio,
    ECHO_MESSAGE_START: handle_start,
    ECHO_MESSAGE_STOP: handle_stop,
}


def dispatch_echo(message: Dict[str, Any], received_at: int) -> Optional[BaseModel]:
    """
    Route one decoded message to its handler.

    Args:
        message: Decoded JSON message from the client
        received_at: Server receive time in epoch ms

    Returns:
        The response model, or None for unknown message types
    """
    message_type = message.get("type")
    handler = ECHO_HANDLERS.get(message_type)
    if handler is None:
        logger.warning(f"[Echo] Unknown message type: {message_type}")
        return None
    return handler(message, received_at)
