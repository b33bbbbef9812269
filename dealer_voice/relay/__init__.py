"""
Relay module bridging Twilio Media Streams to the Vapi voice WebSocket.

Key components:
- VapiRelayClient: One upstream Vapi connection per call. It connects in the
  background, sends the assistant start frame once open, forwards caller audio
  while open (dropping it before that), and hands every Vapi audio frame back to
  the Twilio side through a callback.

Usage examples:
```python
from dealer_voice.relay import VapiRelayClient

async def relay(call_sid, twilio_send):
    client = VapiRelayClient(api_key, assistant_id)
    await client.start(call_sid, on_audio=twilio_send)
    await client.send_audio(base64_payload)  # dropped until connected
    await client.close()
```
"""

from dealer_voice.relay.vapi_relay import VapiRelayClient

__all__ = ["VapiRelayClient"]
