"""
FastAPI server for the dealership voice agent backend.

This module initializes the application that serves:
- The media relay between Twilio Media Streams and Vapi (``/twilio``)
- The Twilio voice webhooks that route incoming calls to the relay
- The REST API used by the dashboard (signup, dealerships, Vapi proxy)
- The echo socket used to measure transport latency (``/api/voice/stream``)
"""

from datetime import datetime, timezone
from pathlib import Path

import dotenv
from fastapi import Depends, FastAPI, WebSocket

from dealer_voice.api import auth, dealerships, tools, twilio, vapi
from dealer_voice.api.errors import register_error_handlers
from dealer_voice.config.constants import SERVICE_NAME
from dealer_voice.config.logging_config import configure_logging
from dealer_voice.config.settings import Settings, get_settings
from dealer_voice.websocket_manager import EchoSocketManager, TwilioStreamManager

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

# Configure logging
logger = configure_logging()

# Create FastAPI application
app = FastAPI(
    title="Dealer Voice",
    description="Twilio to Vapi media relay and multi-tenant dealership voice agent API",
    version="1.0.0",
)

register_error_handlers(app)

app.include_router(auth.router)
app.include_router(dealerships.router)
app.include_router(twilio.router)
app.include_router(vapi.router)
app.include_router(tools.router)

# Create WebSocket managers
stream_manager = TwilioStreamManager()
echo_manager = EchoSocketManager()


@app.websocket("/twilio")
async def twilio_media_stream(websocket: WebSocket):
    """WebSocket endpoint for Twilio Media Streams.

    Each connection is one phone call. Caller audio is relayed to a Vapi
    assistant and the assistant's audio is relayed back to the caller.
    """
    await stream_manager.handle_websocket(websocket)


@app.websocket("/api/voice/stream")
async def voice_echo_stream(websocket: WebSocket):
    """Echo socket for measuring round-trip latency from the dashboard."""
    await echo_manager.handle_websocket(websocket)


@app.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Number of active media streams and whether the Vapi key is set.
    """
    return {
        "status": "ok",
        "active_streams": stream_manager.session_manager.count(),
        "vapi_api_key_configured": settings.has_vapi_key,
    }


@app.get("/")
async def root():
    """Liveness endpoint used by the load balancer."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "time": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info(f"Starting server on http://{settings.host}:{settings.port}")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        websocket_ping_interval=5,
        websocket_max_size=16777216,  # 16MB
        websocket_ping_timeout=20,
        http="h11",
    )
