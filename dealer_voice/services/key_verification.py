"""
Checks that the speech and language vendor API keys work.

Each check makes one cheap authenticated request and returns a CheckResult; no
check raises. ``verify_api_keys.py`` at the repository root runs them all.
"""

import logging
from typing import Callable, Dict, List, Optional

import requests
from pydantic import BaseModel

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.config.settings import Settings

logger = logging.getLogger(LOGGER_NAME)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
DEEPGRAM_PROJECTS_URL = "https://api.deepgram.com/v1/projects"
CARTESIA_VOICES_URL = "https://api.cartesia.ai/voices"
CARTESIA_VERSION = "2024-06-10"
REQUEST_TIMEOUT = 20  # seconds


class CheckResult(BaseModel):
    service: str
    ok: bool
    detail: str = ""
    notes: List[str] = []


def _missing(service: str, variable: str) -> CheckResult:
    return CheckResult(service=service, ok=False, detail=f"{variable} is not set")


def _http_error(response: requests.Response) -> str:
    return f"HTTP {response.status_code}: {response.text[:200]}"


def check_openai(api_key: Optional[str], session=requests) -> CheckResult:
    """Ask gpt-4o-mini for a tiny completion."""
    service = "OpenAI"
    if not api_key:
        return _missing(service, "OPENAI_API_KEY")
    try:
        response = session.post(
            OPENAI_CHAT_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "model": "gpt-4o-mini",
                "messages": [{"role": "user", "content": 'Say "API key works!" in 3 words'}],
                "max_tokens": 10,
            },
            timeout=REQUEST_TIMEOUT,
        )
        if not response.ok:
            return CheckResult(service=service, ok=False, detail=_http_error(response))
        content = response.json()["choices"][0]["message"]["content"]
        return CheckResult(service=service, ok=True, detail=f"(GPT-4o mini): {content}")
    except (requests.RequestException, KeyError, IndexError, ValueError) as e:
        return CheckResult(service=service, ok=False, detail=str(e))


def check_deepgram(api_key: Optional[str], session=requests) -> CheckResult:
    """List projects; this does not consume credits."""
    service = "Deepgram"
    if not api_key:
        return _missing(service, "DEEPGRAM_API_KEY")
    try:
        response = session.get(
            DEEPGRAM_PROJECTS_URL,
            headers={"Authorization": f"Token {api_key}"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        return CheckResult(service=service, ok=False, detail=str(e))
    if not response.ok:
        return CheckResult(service=service, ok=False, detail=_http_error(response))
    return CheckResult(service=service, ok=True, detail="API key valid")


def check_cartesia(
    api_key: Optional[str], voice_id: Optional[str], session=requests
) -> CheckResult:
    """List voices and look for the configured default voice."""
    service = "Cartesia"
    if not api_key:
        return _missing(service, "CARTESIA_API_KEY")
    try:
        response = session.get(
            CARTESIA_VOICES_URL,
            headers={"X-API-Key": api_key, "Cartesia-Version": CARTESIA_VERSION},
            timeout=REQUEST_TIMEOUT,
        )
        if not response.ok:
            return CheckResult(service=service, ok=False, detail=_http_error(response))
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        return CheckResult(service=service, ok=False, detail=str(e))

    # Newer API versions wrap the list in {"data": [...]}
    voices = payload.get("data", []) if isinstance(payload, dict) else payload
    result = CheckResult(
        service=service, ok=True, detail=f"API key valid ({len(voices)} voices available)"
    )

    voice = next((v for v in voices if v.get("id") == voice_id), None)
    if voice is not None:
        result.notes.append(f'✅ Voice ID valid: "{voice.get("name")}"')
    else:
        result.notes.append("⚠️  Voice ID not found")
        result.notes.append("Available voice IDs:")
        for v in voices[:5]:
            result.notes.append(f"  - {v.get('id')} ({v.get('name')})")
    return result


def run_all_checks(settings: Settings, session=requests) -> Dict[str, CheckResult]:
    checks: Dict[str, Callable[[], CheckResult]] = {
        "openai": lambda: check_openai(settings.openai_api_key, session),
        "deepgram": lambda: check_deepgram(settings.deepgram_api_key, session),
        "cartesia": lambda: check_cartesia(
            settings.cartesia_api_key, settings.cartesia_default_voice_id, session
        ),
    }
    results = {}
    for name, check in checks.items():
        results[name] = check()
        logger.debug(f"API key check {name}: {results[name].ok}")
    return results
