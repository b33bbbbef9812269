import json
from unittest.mock import AsyncMock

import pytest

from dealer_voice.handlers.stream_handlers import (
    handle_connected,
    handle_dtmf,
    handle_mark,
    handle_media,
    handle_start,
    handle_stop,
)
from dealer_voice.models.stream_session import StreamSession


def start_frame(stream_sid="MZ100", call_sid="CA100", **parameters):
    return {
        "event": "start",
        "sequenceNumber": "1",
        "streamSid": stream_sid,
        "start": {
            "streamSid": stream_sid,
            "callSid": call_sid,
            "accountSid": "AC123",
            "tracks": ["inbound"],
            "customParameters": parameters,
            "mediaFormat": {"encoding": "audio/x-mulaw", "sampleRate": 8000, "channels": 1},
        },
    }


def media_frame(payload, stream_sid="MZ100"):
    return {"event": "media", "streamSid": stream_sid, "media": {"track": "inbound", "payload": payload}}


@pytest.fixture
def websocket():
    return AsyncMock()


@pytest.fixture
def session(websocket, settings, upstreams):
    return StreamSession(websocket, settings, upstreams)


@pytest.mark.asyncio
class TestStreamHandlers:

    async def test_handle_start_opens_upstream(self, websocket, session, upstreams, settings):
        # Execute
        await handle_start(start_frame(tenant_id="tenant-1"), websocket, session)

        # Assert
        assert session.stream_sid == "MZ100"
        assert session.call_sid == "CA100"
        assert session.custom_parameters == {"tenant_id": "tenant-1"}
        assert session.state == "started"
        assert len(upstreams.created) == 1
        upstream = upstreams.created[0]
        assert upstream is session.upstream
        assert upstream.api_key == "test-vapi-key"
        assert upstream.assistant_id == settings.vapi_assistant_id
        assert upstream.call_sid == "CA100"

    async def test_handle_start_without_api_key(self, websocket, session, upstreams):
        session.settings.vapi_api_key = None

        await handle_start(start_frame(), websocket, session)

        assert session.stream_sid == "MZ100"
        assert session.upstream is None
        assert upstreams.created == []

    async def test_handle_start_validation_error(self, websocket, session, upstreams):
        # Missing callSid
        message = {"event": "start", "start": {"streamSid": "MZ100"}}

        await handle_start(message, websocket, session)

        assert session.stream_sid is None
        assert session.upstream is None

    async def test_duplicate_start_replaces_upstream(self, websocket, session, upstreams):
        await handle_start(start_frame(), websocket, session)
        await handle_start(start_frame(), websocket, session)

        first, second = upstreams.created
        assert first.close_calls == 1
        assert session.upstream is second

    async def test_handle_media_forwards_payloads_in_order(self, websocket, session, upstreams):
        await handle_start(start_frame(), websocket, session)

        for payload in ("AAAA", "BBBB", "CCCC"):
            await handle_media(media_frame(payload), websocket, session)

        assert session.upstream.sent == ["AAAA", "BBBB", "CCCC"]
        assert session.media_received == 3
        assert session.media_forwarded == 3

    async def test_handle_media_drops_frames_before_upstream_is_open(self, websocket, session, upstreams):
        upstreams.open_on_start = False
        await handle_start(start_frame(), websocket, session)

        await handle_media(media_frame("AAAA"), websocket, session)
        session.upstream.is_open = True
        await handle_media(media_frame("BBBB"), websocket, session)

        # The first frame is dropped, not queued
        assert session.upstream.sent == ["BBBB"]
        assert session.media_received == 2
        assert session.media_forwarded == 1

    async def test_handle_media_without_upstream(self, websocket, session):
        await handle_media(media_frame("AAAA"), websocket, session)

        assert session.media_received == 1
        assert session.media_forwarded == 0

    async def test_handle_media_without_payload(self, websocket, session):
        await handle_start(start_frame(), websocket, session)

        await handle_media({"event": "media", "media": {}}, websocket, session)

        assert session.upstream.sent == []

    async def test_upstream_audio_is_sent_to_twilio(self, websocket, session):
        await handle_start(start_frame(), websocket, session)

        await session.upstream.on_audio("QUJD")

        websocket.send_text.assert_awaited_once()
        sent = json.loads(websocket.send_text.call_args[0][0])
        assert sent == {"event": "media", "streamSid": "MZ100", "media": {"payload": "QUJD"}}

    async def test_handle_stop_closes_upstream(self, websocket, session):
        await handle_start(start_frame(), websocket, session)

        await handle_stop({"event": "stop", "streamSid": "MZ100", "stop": {"callSid": "CA100"}}, websocket, session)

        assert session.state == "stopped"
        assert session.upstream.close_calls == 1

    async def test_handle_stop_validation_error_still_closes(self, websocket, session):
        await handle_start(start_frame(), websocket, session)

        await handle_stop({"event": "stop", "stop": "not-an-object"}, websocket, session)

        assert session.upstream.close_calls == 1

    async def test_informational_frames_need_no_upstream(self, websocket, session):
        await handle_connected({"event": "connected", "protocol": "Call", "version": "1.0.0"}, websocket, session)
        await handle_mark({"event": "mark", "mark": {"name": "greeting"}}, websocket, session)
        await handle_dtmf({"event": "dtmf", "dtmf": {"track": "inbound_track", "digit": "1"}}, websocket, session)

        websocket.send_text.assert_not_awaited()
        assert session.upstream is None
