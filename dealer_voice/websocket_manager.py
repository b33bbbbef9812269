"""
WebSocket connection manager for the Twilio Media Streams relay and the echo socket.

This module implements the server side of both sockets:
- Accept and track WebSocket connections
- Route incoming Twilio frames to the handler for their ``event``
- Keep per-connection relay state in a StreamSession
- Guarantee the upstream Vapi connection is closed when the Twilio socket goes away

The TwilioStreamManager class is the central component that drives one call's
audio between Twilio and Vapi.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from dealer_voice.config.constants import (
    LOGGER_NAME,
    TWILIO_EVENT_CONNECTED,
    TWILIO_EVENT_DTMF,
    TWILIO_EVENT_MARK,
    TWILIO_EVENT_MEDIA,
    TWILIO_EVENT_START,
    TWILIO_EVENT_STOP,
)
from dealer_voice.config.settings import Settings, get_settings
from dealer_voice.handlers.echo_handlers import connected_message, dispatch_echo, now_ms
from dealer_voice.handlers.stream_handlers import (
    handle_connected,
    handle_dtmf,
    handle_mark,
    handle_media,
    handle_start,
    handle_stop,
)
from dealer_voice.models.echo_schemas import ErrorResponse
from dealer_voice.models.stream_session import StreamSession, StreamSessionManager
from dealer_voice.relay.vapi_relay import VapiRelayClient

logger = logging.getLogger(LOGGER_NAME)

# Type hint for handler functions
HandlerFunc = Callable[[Dict[str, Any], WebSocket, StreamSession], Awaitable[None]]


class TwilioStreamManager:
    """Manages Twilio Media Stream connections and relays them to Vapi.

    Each connection gets its own StreamSession; nothing is shared between calls.
    Frames are routed by their ``event`` field. Errors in one frame (bad JSON,
    failed validation, handler exceptions) are logged and the connection keeps
    going; only a disconnect ends it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        upstream_factory: Callable[..., Any] = VapiRelayClient,
    ):
        self.settings = settings
        self.upstream_factory = upstream_factory
        self.session_manager = StreamSessionManager()

        self.handlers: Dict[str, HandlerFunc] = {
            TWILIO_EVENT_CONNECTED: handle_connected,
            TWILIO_EVENT_START: handle_start,
            TWILIO_EVENT_MEDIA: handle_media,
            TWILIO_EVENT_MARK: handle_mark,
            TWILIO_EVENT_DTMF: handle_dtmf,
            TWILIO_EVENT_STOP: handle_stop,
        }

    def create_session(self, websocket: WebSocket) -> StreamSession:
        return StreamSession(
            websocket,
            self.settings or get_settings(),
            self.upstream_factory,
        )

    async def process_message(self, data: str, websocket: WebSocket, session: StreamSession) -> None:
        """
        Decode one Twilio frame and route it to its handler.

        Args:
            data: Raw text frame
            websocket: The Twilio WebSocket
            session: State of this connection
        """
        try:
            message = json.loads(data)
        except json.JSONDecodeError as e:
            logger.error(f"Error processing message: {e}")
            return

        if not isinstance(message, dict):
            logger.error(f"Error processing message: expected a JSON object, got {type(message).__name__}")
            return

        event = message.get("event")
        handler = self.handlers.get(event)
        if handler is None:
            logger.warning(f"Unhandled Twilio event received: {event}")
            return

        try:
            await handler(message, websocket, session)
        except Exception as e:
            logger.error(f"Error processing {event} message: {e}", exc_info=True)

    async def handle_websocket(self, websocket: WebSocket):
        """Handle a Twilio Media Stream connection throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        This method:
        1. Accepts the WebSocket connection and creates its session
        2. Processes incoming frames in a loop
        3. Closes the upstream Vapi connection when the socket closes
        """
        await websocket.accept()
        session = self.create_session(websocket)
        self.session_manager.add_session(session)
        logger.info("Twilio WS connected")

        try:
            while True:
                data = await websocket.receive_text()
                await self.process_message(data, websocket, session)
        except WebSocketDisconnect:
            logger.info("Twilio WS disconnected")
        except Exception as e:
            logger.error(f"Error in Twilio WebSocket connection: {e}", exc_info=True)
        finally:
            await session.close_upstream()
            self.session_manager.remove_session(session)
            logger.info(f"Relay session cleaned up for stream: {session.stream_sid}")


class EchoSocketManager:
    """Serves the echo / latency-test socket; keeps no state between messages."""

    def __init__(self):
        self.active_connections = 0

    async def handle_websocket(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections += 1
        logger.info("[Echo] Client connected")

        try:
            await websocket.send_text(connected_message().model_dump_json())
            while True:
                data = await websocket.receive_text()
                received_at = now_ms()
                try:
                    message = json.loads(data)
                    if not isinstance(message, dict):
                        raise ValueError("expected a JSON object")
                except ValueError as e:
                    logger.error(f"[Echo] Message parsing error: {e}")
                    await websocket.send_text(
                        ErrorResponse(message="Invalid message format").model_dump_json()
                    )
                    continue

                try:
                    response = dispatch_echo(message, received_at)
                    if response is not None:
                        await websocket.send_text(response.model_dump_json())
                except WebSocketDisconnect:
                    raise
                except Exception as e:
                    logger.error(f"[Echo] Error handling {message.get('type')} message: {e}", exc_info=True)
        except WebSocketDisconnect:
            logger.info("[Echo] Client disconnected")
        except Exception as e:
            logger.error(f"[Echo] WebSocket error: {e}", exc_info=True)
        finally:
            self.active_connections -= 1
