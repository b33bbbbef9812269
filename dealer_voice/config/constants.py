"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for protocol names and defaults so the relay, the
webhooks and the REST API agree on them.
"""

# Logger name used throughout the application
LOGGER_NAME = "dealer_voice"

SERVICE_NAME = "lance-session-server"

# Vapi endpoints and defaults
DEFAULT_VAPI_WS_URL = "wss://api.vapi.ai"
DEFAULT_VAPI_BASE_URL = "https://api.vapi.ai"
DEFAULT_VAPI_ASSISTANT_ID = "732ba29e-4aeb-48ad-bd47-440d3fce8b26"  # service agent

# Where Twilio is told to open its Media Stream
DEFAULT_SESSION_SERVER_URL = "wss://session.lance.live/twilio"
DEFAULT_PUBLIC_BASE_URL = "http://localhost:3000"

# Twilio Media Stream events
TWILIO_EVENT_CONNECTED = "connected"
TWILIO_EVENT_START = "start"
TWILIO_EVENT_MEDIA = "media"
TWILIO_EVENT_MARK = "mark"
TWILIO_EVENT_DTMF = "dtmf"
TWILIO_EVENT_STOP = "stop"

# Vapi frame types
VAPI_MESSAGE_START = "start"
VAPI_MESSAGE_AUDIO = "audio"

# Echo socket message types
ECHO_MESSAGE_ECHO = "echo"
ECHO_MESSAGE_AUDIO = "audio"
ECHO_MESSAGE_START = "start"
ECHO_MESSAGE_STOP = "stop"

# Twilio call statuses after which a call is over
TERMINAL_CALL_STATUSES = ("completed", "busy", "failed", "no-answer", "canceled")

# Agent types a dealership can configure
AGENT_TYPES = ("reception", "service", "sales")

# Number of calls returned by the call history endpoint
CALL_HISTORY_LIMIT = 100
