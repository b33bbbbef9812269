import base64

import pytest
from pydantic import ValidationError

from dealer_voice.models.stream_schemas import (
    MediaMessage,
    StartMessage,
    StopMessage,
    VapiAudioMessage,
    VapiStartMessage,
    build_twilio_media,
)


def test_start_message():
    message = StartMessage(
        event="start",
        sequenceNumber="1",
        streamSid="MZ1",
        start={
            "streamSid": "MZ1",
            "callSid": "CA1",
            "customParameters": {"tenant_id": "tenant-1"},
            "mediaFormat": {"encoding": "audio/x-mulaw", "sampleRate": 8000, "channels": 1},
        },
    )

    assert message.start.callSid == "CA1"
    assert message.start.customParameters == {"tenant_id": "tenant-1"}
    assert message.start.tracks == ["inbound"]
    assert message.start.mediaFormat.sampleRate == 8000


def test_start_message_rejects_blank_sid():
    with pytest.raises(ValidationError):
        StartMessage(event="start", start={"streamSid": "  ", "callSid": "CA1"})


def test_start_message_rejects_other_events():
    with pytest.raises(ValidationError):
        StartMessage(event="media", start={"streamSid": "MZ1", "callSid": "CA1"})


def test_media_message_validates_base64():
    payload = base64.b64encode(b"\xff\x7f" * 80).decode()
    assert MediaMessage(event="media", media={"payload": payload}).media.payload == payload

    with pytest.raises(ValidationError):
        MediaMessage(event="media", media={"payload": "not base64!"})

    with pytest.raises(ValidationError):
        MediaMessage(event="media", media={"payload": ""})


def test_stop_message_without_details():
    assert StopMessage(event="stop").stop is None


def test_outbound_media_frame():
    frame = build_twilio_media("MZ1", "QUJD")

    assert frame.model_dump() == {"event": "media", "streamSid": "MZ1", "media": {"payload": "QUJD"}}


def test_vapi_frames():
    assert VapiStartMessage(assistantId="asst-1", callSid="CA1").model_dump() == {
        "type": "start",
        "assistantId": "asst-1",
        "callSid": "CA1",
    }
    assert VapiAudioMessage(audio="QUJD").model_dump() == {"type": "audio", "audio": "QUJD"}
