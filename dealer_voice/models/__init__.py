"""
Models module for data structures and state management in the voice agent backend.

Key components:
- stream_schemas: Pydantic models for Twilio Media Stream frames and the Vapi
  audio frames the relay exchanges.
- echo_schemas: Messages of the echo / latency-test WebSocket.
- stream_session: Per-connection relay state and the registry of live sessions.
- records: Row models for the tenant-scoped Postgres tables.
- api_schemas: Request bodies accepted by the REST API.

Usage examples:
```python
from dealer_voice.models.stream_schemas import StartMessage

start = StartMessage(**{
    "event": "start",
    "streamSid": "MZ123",
    "start": {"streamSid": "MZ123", "callSid": "CA456"},
})
print(start.start.callSid)
```
"""

from dealer_voice.models.stream_schemas import (
    ConnectedMessage,
    DtmfMessage,
    MarkMessage,
    MediaMessage,
    OutboundMediaMessage,
    StartMessage,
    StopMessage,
    TwilioMessage,
    VapiAudioMessage,
    VapiStartMessage,
)
from dealer_voice.models.stream_session import StreamSession, StreamSessionManager
