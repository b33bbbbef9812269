"""
Configuration module for the dealership voice agent backend.

This module provides centralized configuration management for the whole service,
including protocol constants, logging setup, and environment-based settings.

Key components:
- constants: Defines application-wide constants, including Twilio Media Stream
  event names, Vapi frame types, default URLs and the shared logger name.
- logging_config: Provides a consistent logging infrastructure with console and
  rotating file output.
- settings: Reads environment variables (API keys, URLs, feature flags) into a
  single cached Settings object that routes receive as a FastAPI dependency.

Usage examples:
```python
from dealer_voice.config.constants import LOGGER_NAME, TWILIO_EVENT_MEDIA
from dealer_voice.config.logging_config import configure_logging
from dealer_voice.config.settings import get_settings

logger = configure_logging()
settings = get_settings()
logger.info(f"Relaying to {settings.vapi_ws_url}")
```
"""
