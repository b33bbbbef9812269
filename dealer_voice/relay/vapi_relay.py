"""
Upstream side of the media relay: one WebSocket connection to Vapi per call.

The connection is opened in a background task so that the Twilio receive loop is
never blocked while Vapi is still handshaking. Until the socket is open, audio
handed to ``send_audio`` is dropped rather than queued.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from dealer_voice.config.constants import (
    DEFAULT_VAPI_WS_URL,
    LOGGER_NAME,
    VAPI_MESSAGE_AUDIO,
)
from dealer_voice.models.stream_schemas import VapiAudioMessage, VapiStartMessage

logger = logging.getLogger(LOGGER_NAME)

# WebSocket configuration for audio frames
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB
WS_PING_INTERVAL = 5  # seconds
CONNECTION_TIMEOUT = 30  # seconds

AudioHandler = Callable[[str], Awaitable[None]]


class VapiRelayClient:
    """
    Client for the Vapi voice WebSocket, used by exactly one Twilio stream.

    Lifecycle: ``start`` spawns the connect/receive task, ``send_audio`` forwards
    caller audio while the socket is open, and ``close`` tears everything down.
    ``close`` is idempotent, so the socket is closed at most once.
    """

    def __init__(
        self,
        api_key: str,
        assistant_id: str,
        url: str = DEFAULT_VAPI_WS_URL,
        connector: Callable[..., Awaitable[Any]] = websockets.connect,
    ):
        self.api_key = api_key
        self.assistant_id = assistant_id
        self.url = url
        self.ws = None
        self._connector = connector
        self._task: Optional[asyncio.Task] = None
        self._open = False
        self._closed = False

    @property
    def is_open(self) -> bool:
        """True once the socket is connected and until it is closed."""
        return self._open and not self._closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def start(self, call_sid: Optional[str], on_audio: AudioHandler) -> None:
        """
        Begin connecting to Vapi in the background.

        Args:
            call_sid: Twilio call SID, passed to Vapi in the start frame
            on_audio: Coroutine called with each base64 audio payload from Vapi
        """
        if self._task is not None:
            logger.warning("Vapi relay already started")
            return
        self._task = asyncio.create_task(self._run(call_sid, on_audio))

    async def _run(self, call_sid: Optional[str], on_audio: AudioHandler) -> None:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            ws = await asyncio.wait_for(
                self._connector(
                    self.url,
                    additional_headers=headers,
                    max_size=WS_MAX_SIZE,
                    ping_interval=WS_PING_INTERVAL,
                ),
                timeout=CONNECTION_TIMEOUT,
            )
        except asyncio.TimeoutError:
            logger.error(f"Timeout while connecting to Vapi (after {CONNECTION_TIMEOUT}s)")
            return
        except Exception as e:
            logger.error(f"Vapi WebSocket error: {e}")
            return

        self.ws = ws
        if self._closed:
            # Call ended while the handshake was in flight
            await ws.close()
            return

        self._open = True
        logger.info(f"Connected to Vapi for call: {call_sid}")

        try:
            start_message = VapiStartMessage(assistantId=self.assistant_id, callSid=call_sid)
            await ws.send(json.dumps(start_message.model_dump()))

            async for raw in ws:
                await self._dispatch(raw, on_audio)
        except ConnectionClosed as e:
            logger.info(f"Vapi connection closed: {e}")
        except Exception as e:
            logger.error(f"Vapi WebSocket error: {e}", exc_info=True)
        finally:
            self._open = False

    async def _dispatch(self, raw: Any, on_audio: AudioHandler) -> None:
        """Translate one Vapi frame; only non-empty audio frames are forwarded."""
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Error parsing Vapi message: {e}")
            return

        if not isinstance(message, dict):
            return
        if message.get("type") == VAPI_MESSAGE_AUDIO and message.get("audio"):
            try:
                await on_audio(message["audio"])
            except Exception as e:
                logger.error(f"Error forwarding Vapi audio to Twilio: {e}")

    async def send_audio(self, payload: str) -> bool:
        """
        Forward one base64 audio payload to Vapi.

        Args:
            payload: Base64 audio exactly as received from Twilio

        Returns:
            True if the frame was sent, False if it was dropped because the
            socket is not open
        """
        if not self.is_open:
            return False
        await self.ws.send(json.dumps(VapiAudioMessage(audio=payload).model_dump()))
        return True

    async def close(self) -> None:
        """Close the Vapi socket and stop the receive task."""
        if self._closed:
            return
        self._closed = True
        self._open = False

        if self.ws is not None:
            try:
                await self.ws.close()
                logger.info("Closed Vapi connection")
            except Exception as e:
                logger.warning(f"Error closing Vapi connection: {e}")

        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
