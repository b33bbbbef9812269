"""
Handlers module for the WebSocket endpoints of the voice agent backend.

Key components:
- stream_handlers: One handler per Twilio Media Stream event (connected, start,
  media, mark, dtmf, stop). ``start`` opens the Vapi connection, ``media``
  forwards caller audio, ``stop`` closes the upstream.
- echo_handlers: Handlers for the echo / latency-test socket used by the dashboard.

Usage examples:
```python
from dealer_voice.handlers import stream_handlers

await stream_handlers.handle_start(message, websocket, session)
await stream_handlers.handle_media(message, websocket, session)
```
"""
