"""
Pydantic models for the Twilio Media Streams protocol and the Vapi audio frames.

This module defines structured data models for the frames that cross the relay:
what Twilio sends over its Media Stream WebSocket, what the relay sends back to
Twilio, and the small set of frames exchanged with the Vapi WebSocket.
"""

import base64
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


# Base Models
class TwilioMessage(BaseModel):
    """Base model for all Twilio Media Stream frames."""

    event: str = Field(..., description="Event name")
    sequenceNumber: Optional[str] = Field(
        None, description="Per-stream sequence number as a string"
    )
    streamSid: Optional[str] = Field(None, description="Unique stream identifier")


# Twilio -> relay
class ConnectedMessage(TwilioMessage):
    """First frame Twilio sends after the socket opens."""

    event: Literal["connected"]
    protocol: Optional[str] = None
    version: Optional[str] = None


class MediaFormat(BaseModel):
    """Audio format of the stream (mulaw 8 kHz mono on the PSTN)."""

    encoding: str = "audio/x-mulaw"
    sampleRate: int = 8000
    channels: int = 1


class StartMetadata(BaseModel):
    """Payload of the start frame."""

    streamSid: str = Field(..., description="Stream identifier used for outbound media")
    callSid: str = Field(..., description="Twilio call SID")
    accountSid: Optional[str] = None
    tracks: List[str] = Field(default_factory=lambda: ["inbound"])
    customParameters: Dict[str, str] = Field(
        default_factory=dict, description="<Parameter> values from the TwiML"
    )
    mediaFormat: Optional[MediaFormat] = None

    @field_validator("streamSid", "callSid")
    def validate_sid(cls, v):
        """Validate that identifiers are not blank."""
        if not v.strip():
            raise ValueError("Identifier cannot be empty")
        return v


class StartMessage(TwilioMessage):
    """Model for the start frame that opens a Media Stream."""

    event: Literal["start"]
    start: StartMetadata


class MediaPayload(BaseModel):
    """Audio carried by a media frame."""

    payload: str = Field(..., description="Base64-encoded audio")
    track: Optional[str] = None
    chunk: Optional[str] = None
    timestamp: Optional[str] = None

    @field_validator("payload")
    def validate_payload(cls, v):
        """Validate that the payload is valid base64."""
        try:
            if v:
                base64.b64decode(v, validate=True)
            else:
                raise ValueError("Audio payload cannot be empty")
        except Exception:
            raise ValueError("Invalid base64 encoded audio data")
        return v


class MediaMessage(TwilioMessage):
    """Model for a media frame, in either direction."""

    event: Literal["media"]
    media: MediaPayload


class MarkMessage(TwilioMessage):
    """Model for a mark frame acknowledging played audio."""

    event: Literal["mark"]
    mark: Dict[str, str] = Field(default_factory=dict)


class DtmfMessage(TwilioMessage):
    """Model for a DTMF keypress frame."""

    event: Literal["dtmf"]
    dtmf: Dict[str, str] = Field(default_factory=dict)


class StopMetadata(BaseModel):
    accountSid: Optional[str] = None
    callSid: Optional[str] = None


class StopMessage(TwilioMessage):
    """Model for the stop frame that ends a Media Stream."""

    event: Literal["stop"]
    stop: Optional[StopMetadata] = None


# Relay -> Twilio
class OutboundMediaPayload(BaseModel):
    payload: str


class OutboundMediaMessage(BaseModel):
    """Media frame sent back to Twilio for playback to the caller."""

    event: Literal["media"] = "media"
    streamSid: Optional[str]
    media: OutboundMediaPayload


# Relay <-> Vapi
class VapiStartMessage(BaseModel):
    """First frame sent once the Vapi socket is open."""

    type: Literal["start"] = "start"
    assistantId: str
    callSid: Optional[str] = None


class VapiAudioMessage(BaseModel):
    """Audio frame, in either direction; audio is base64 and never re-encoded."""

    type: Literal["audio"] = "audio"
    audio: str


def build_twilio_media(stream_sid: Optional[str], audio: str) -> OutboundMediaMessage:
    """Wrap a Vapi audio payload in a Twilio media frame for ``stream_sid``."""
    return OutboundMediaMessage(
        streamSid=stream_sid, media=OutboundMediaPayload(payload=audio)
    )
