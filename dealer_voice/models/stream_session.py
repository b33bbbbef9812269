"""
Per-call state for the Twilio to Vapi media relay.

This module provides the StreamSession class, which holds everything one Twilio
Media Stream connection needs (stream and call identifiers, the upstream Vapi
connection), and the StreamSessionManager, a registry of live sessions used for
health reporting. Sessions never share state with each other.
"""

from typing import Any, Callable, Dict, Optional

from fastapi import WebSocket

from dealer_voice.config.settings import Settings


class StreamSession:
    """
    State for one Twilio Media Stream connection.

    The session moves through idle -> started -> stopped. ``upstream`` is the
    Vapi connection opened on ``start``; it stays None when no Vapi API key is
    configured.
    """

    def __init__(
        self,
        websocket: WebSocket,
        settings: Settings,
        upstream_factory: Callable[..., Any],
    ):
        self.websocket = websocket
        self.settings = settings
        self.upstream_factory = upstream_factory
        self.stream_sid: Optional[str] = None
        self.call_sid: Optional[str] = None
        self.custom_parameters: Dict[str, str] = {}
        self.upstream = None
        self.state = "idle"
        self.media_received = 0
        self.media_forwarded = 0

    @property
    def session_id(self) -> str:
        return self.stream_sid or f"pending-{id(self):x}"

    async def close_upstream(self) -> None:
        """Close the Vapi connection if one was opened; safe to call repeatedly."""
        if self.upstream is not None:
            await self.upstream.close()


class StreamSessionManager:
    """
    Registry of live relay sessions, keyed by an identifier unique per connection.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self.active_sessions: Dict[int, StreamSession] = {}

    def add_session(self, session: StreamSession):
        """
        Register a session when its WebSocket is accepted.

        Args:
            session: The session for the new connection
        """
        self.active_sessions[id(session)] = session

    def get_session_by_stream(self, stream_sid: str) -> Optional[StreamSession]:
        """
        Find a session by the Twilio stream SID captured at start.

        Args:
            stream_sid: Stream identifier from the start frame

        Returns:
            The matching session, or None
        """
        for session in self.active_sessions.values():
            if session.stream_sid == stream_sid:
                return session
        return None

    def remove_session(self, session: StreamSession):
        """
        Remove a session from the registry; unknown sessions are ignored.

        Args:
            session: The session to remove
        """
        self.active_sessions.pop(id(session), None)

    def count(self) -> int:
        return len(self.active_sessions)
