import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from dealer_voice.relay.vapi_relay import VapiRelayClient


class FakeUpstreamSocket:
    """Vapi WebSocket stand-in: frames queued with ``feed`` are yielded by iteration."""

    def __init__(self):
        self.sent = []
        self.close_calls = 0
        self.incoming = asyncio.Queue()

    async def send(self, data):
        self.sent.append(json.loads(data))

    def feed(self, frame):
        self.incoming.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    async def close(self):
        self.close_calls += 1
        self.incoming.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        frame = await self.incoming.get()
        if frame is None:
            raise StopAsyncIteration
        return frame


class FakeConnector:
    """Replaces websockets.connect; optionally holds the handshake until released."""

    def __init__(self, socket, gated=False, error=None):
        self.socket = socket
        self.error = error
        self.calls = []
        self.gate = asyncio.Event()
        if not gated:
            self.gate.set()

    async def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        await self.gate.wait()
        if self.error:
            raise self.error
        return self.socket


async def wait_until(predicate, attempts=100):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("condition not reached")


def make_client(connector):
    return VapiRelayClient("vapi-key", "assistant-1", "wss://vapi.test", connector=connector)


@pytest.mark.asyncio
async def test_start_connects_and_sends_start_frame():
    upstream_socket = FakeUpstreamSocket()
    connector = FakeConnector(upstream_socket)
    client = make_client(connector)

    await client.start("CA100", AsyncMock())
    await wait_until(lambda: client.is_open)

    url, kwargs = connector.calls[0]
    assert url == "wss://vapi.test"
    assert kwargs["additional_headers"] == {"Authorization": "Bearer vapi-key"}
    await wait_until(lambda: upstream_socket.sent)
    assert upstream_socket.sent[0] == {"type": "start", "assistantId": "assistant-1", "callSid": "CA100"}

    await client.close()


@pytest.mark.asyncio
async def test_send_audio_is_dropped_before_open():
    upstream_socket = FakeUpstreamSocket()
    connector = FakeConnector(upstream_socket, gated=True)
    client = make_client(connector)
    await client.start("CA100", AsyncMock())

    assert await client.send_audio("AAAA") is False

    connector.gate.set()
    await wait_until(lambda: client.is_open)
    assert await client.send_audio("BBBB") is True

    audio = [frame for frame in upstream_socket.sent if frame["type"] == "audio"]
    assert audio == [{"type": "audio", "audio": "BBBB"}]

    await client.close()


@pytest.mark.asyncio
async def test_audio_frames_are_forwarded_to_handler():
    upstream_socket = FakeUpstreamSocket()
    on_audio = AsyncMock()
    client = make_client(FakeConnector(upstream_socket))
    await client.start("CA100", on_audio)
    await wait_until(lambda: client.is_open)

    upstream_socket.feed({"type": "audio", "audio": "QUJD"})
    upstream_socket.feed({"type": "transcript", "text": "hello"})
    upstream_socket.feed({"type": "audio", "audio": ""})
    upstream_socket.feed("not json")
    upstream_socket.feed({"type": "audio", "audio": "REVG"})

    await wait_until(lambda: on_audio.await_count == 2)
    assert [c.args[0] for c in on_audio.await_args_list] == ["QUJD", "REVG"]

    await client.close()


@pytest.mark.asyncio
async def test_handler_error_does_not_stop_the_relay():
    upstream_socket = FakeUpstreamSocket()
    on_audio = AsyncMock(side_effect=[RuntimeError("twilio gone"), None])
    client = make_client(FakeConnector(upstream_socket))
    await client.start("CA100", on_audio)
    await wait_until(lambda: client.is_open)

    upstream_socket.feed({"type": "audio", "audio": "QUJD"})
    upstream_socket.feed({"type": "audio", "audio": "REVG"})

    await wait_until(lambda: on_audio.await_count == 2)
    assert client.is_open

    await client.close()


@pytest.mark.asyncio
async def test_close_is_idempotent():
    upstream_socket = FakeUpstreamSocket()
    client = make_client(FakeConnector(upstream_socket))
    await client.start("CA100", AsyncMock())
    await wait_until(lambda: client.is_open)

    await client.close()
    await client.close()

    assert upstream_socket.close_calls == 1
    assert client.is_closed
    assert not client.is_open
    assert await client.send_audio("AAAA") is False


@pytest.mark.asyncio
async def test_close_during_handshake_closes_socket_once():
    upstream_socket = FakeUpstreamSocket()
    connector = FakeConnector(upstream_socket, gated=True)
    client = make_client(connector)
    await client.start("CA100", AsyncMock())
    await asyncio.sleep(0.01)

    await client.close()
    connector.gate.set()
    await asyncio.sleep(0.05)

    # The receive task was cancelled while waiting, so the socket was never used
    assert upstream_socket.sent == []
    assert upstream_socket.close_calls <= 1
    assert not client.is_open


@pytest.mark.asyncio
async def test_connection_failure_leaves_client_closed():
    upstream_socket = FakeUpstreamSocket()
    client = make_client(FakeConnector(upstream_socket, error=OSError("connection refused")))

    await client.start("CA100", AsyncMock())
    await asyncio.sleep(0.05)

    assert not client.is_open
    assert await client.send_audio("AAAA") is False
    await client.close()
    assert upstream_socket.close_calls == 0


@pytest.mark.asyncio
async def test_upstream_closing_marks_client_not_open():
    upstream_socket = FakeUpstreamSocket()
    client = make_client(FakeConnector(upstream_socket))
    await client.start("CA100", AsyncMock())
    await wait_until(lambda: client.is_open)

    # Vapi ends the stream
    upstream_socket.incoming.put_nowait(None)
    await wait_until(lambda: not client.is_open)

    assert await client.send_audio("AAAA") is False
    await client.close()


@pytest.mark.asyncio
async def test_start_twice_is_ignored():
    upstream_socket = FakeUpstreamSocket()
    connector = FakeConnector(upstream_socket)
    client = make_client(connector)

    await client.start("CA100", AsyncMock())
    await client.start("CA100", AsyncMock())
    await wait_until(lambda: client.is_open)

    assert len(connector.calls) == 1
    await client.close()
