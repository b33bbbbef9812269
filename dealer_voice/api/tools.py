"""Tool router endpoint."""

import json
import logging

from fastapi import APIRouter, Request

from dealer_voice.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

router = APIRouter(tags=["tools"])


@router.post("/tool-router")
async def tool_router(request: Request):
    """Placeholder that acknowledges tool invocations and echoes the body."""
    raw = await request.body()
    try:
        received = json.loads(raw) if raw else {}
    except json.JSONDecodeError:
        logger.warning("[Tool Router] Body is not valid JSON")
        received = {}

    return {"ok": True, "message": "Tool router placeholder is working", "received": received}
