"""
Pydantic models for the echo / latency-test WebSocket.

The browser sends ``echo``, ``audio``, ``start`` and ``stop`` messages and the
server answers immediately, stamping its own receive time so the client can
compute round-trip latency.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ConnectedResponse(BaseModel):
    type: Literal["connected"] = "connected"
    serverTime: int
    message: str = "WebSocket connection established"


class EchoResponse(BaseModel):
    type: Literal["echo"] = "echo"
    clientTime: Optional[int] = None
    serverTime: int
    roundTripMs: Optional[int] = None


class AudioEchoResponse(BaseModel):
    type: Literal["audio"] = "audio"
    data: Any = Field(None, description="Base64 audio or JSON payload, echoed unchanged")
    serverTime: int


class LatencyResponse(BaseModel):
    type: Literal["latency"] = "latency"
    message: str
    serverTime: int


class ErrorResponse(BaseModel):
    type: Literal["error"] = "error"
    message: str
