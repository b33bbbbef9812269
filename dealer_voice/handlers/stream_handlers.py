"""
Handles Twilio Media Stream frames for the Twilio to Vapi relay.

Each handler receives the decoded frame, the Twilio WebSocket and the session of
that connection. ``start`` opens the upstream Vapi connection, ``media`` forwards
caller audio, ``stop`` tears the upstream down. Frames that need no action
(connected, mark, dtmf) are only logged.
"""

import json
import logging
from typing import Any, Dict

from fastapi import WebSocket
from pydantic import ValidationError

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.models.stream_schemas import (
    DtmfMessage,
    StartMessage,
    StopMessage,
    build_twilio_media,
)
from dealer_voice.models.stream_session import StreamSession

logger = logging.getLogger(LOGGER_NAME)


async def handle_connected(
    message: Dict[str, Any],
    websocket: WebSocket,
    session: StreamSession,
) -> None:
    """Log the protocol handshake Twilio sends before ``start``."""
    logger.info(
        f"Twilio media stream connected (protocol {message.get('protocol')}, "
        f"version {message.get('version')})"
    )


async def handle_start(
    message: Dict[str, Any],
    websocket: WebSocket,
    session: StreamSession,
) -> None:
    """
    Handle the start frame of a Twilio Media Stream.

    Captures the stream and call identifiers, then opens the upstream Vapi
    connection. The connection completes in the background; media frames that
    arrive before it is open are dropped by ``handle_media``.

    Args:
        message: The start frame
        websocket: The Twilio WebSocket, used for audio coming back from Vapi
        session: State of this connection
    """
    try:
        start = StartMessage(**message)
    except ValidationError as e:
        logger.error(f"Invalid start message: {e}")
        return

    session.stream_sid = start.start.streamSid
    session.call_sid = start.start.callSid
    session.custom_parameters = dict(start.start.customParameters)
    session.state = "started"
    logger.info(f"Stream started: {session.stream_sid}, Call: {session.call_sid}")

    if session.upstream is not None:
        logger.warning(f"Duplicate start on stream {session.stream_sid}, replacing Vapi connection")
        await session.close_upstream()
        session.upstream = None

    settings = session.settings
    if not settings.vapi_api_key:
        logger.warning("VAPI_API_KEY not set, call audio will not be relayed")
        return

    async def forward_to_twilio(audio: str) -> None:
        outbound = build_twilio_media(session.stream_sid, audio)
        await websocket.send_text(json.dumps(outbound.model_dump()))

    session.upstream = session.upstream_factory(
        settings.vapi_api_key,
        settings.vapi_assistant_id,
        settings.vapi_ws_url,
    )
    await session.upstream.start(session.call_sid, forward_to_twilio)


async def handle_media(
    message: Dict[str, Any],
    websocket: WebSocket,
    session: StreamSession,
) -> None:
    """
    Handle a media frame by forwarding its payload to Vapi.

    Fast path: the frame is not validated, the payload is forwarded verbatim.
    Frames are dropped (not queued) while the upstream is missing or not open.
    """
    session.media_received += 1
    upstream = session.upstream
    if upstream is None or not upstream.is_open:
        return

    payload = (message.get("media") or {}).get("payload")
    if not payload:
        logger.warning("Media frame without payload")
        return

    if await upstream.send_audio(payload):
        session.media_forwarded += 1


async def handle_mark(
    message: Dict[str, Any],
    websocket: WebSocket,
    session: StreamSession,
) -> None:
    logger.debug(f"Mark received on stream {session.stream_sid}: {message.get('mark')}")


async def handle_dtmf(
    message: Dict[str, Any],
    websocket: WebSocket,
    session: StreamSession,
) -> None:
    try:
        dtmf = DtmfMessage(**message)
        logger.info(f"DTMF on stream {session.stream_sid}: {dtmf.dtmf.get('digit')}")
    except ValidationError as e:
        logger.error(f"Invalid dtmf message: {e}")


async def handle_stop(
    message: Dict[str, Any],
    websocket: WebSocket,
    session: StreamSession,
) -> None:
    """
    Handle the stop frame: the call's audio has ended, close the Vapi connection.
    """
    try:
        StopMessage(**message)
    except ValidationError as e:
        # Close anyway, a malformed stop still means the stream is over
        logger.error(f"Invalid stop message: {e}")

    logger.info(
        f"Stream stopped: {session.stream_sid} "
        f"({session.media_forwarded}/{session.media_received} media frames relayed)"
    )
    session.state = "stopped"
    await session.close_upstream()
