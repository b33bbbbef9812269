"""
Client for the Vapi REST API.

Covers the endpoints the backend proxies or manages: phone numbers and
assistants. Every call authenticates with the account's bearer key.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from dealer_voice.config.constants import DEFAULT_VAPI_BASE_URL, LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

REQUEST_TIMEOUT = 15  # seconds


class VapiError(Exception):
    """Raised when Vapi answers with a non-2xx status or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VapiClient:
    """
    Thin wrapper over the Vapi REST API.

    Args:
        api_key: Vapi private API key
        base_url: API root, ``https://api.vapi.ai`` by default
        session: Optional requests session (tests pass a mock)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_VAPI_BASE_URL,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            response = self.session.request(
                method, url, headers=headers, json=payload, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            raise VapiError(f"Vapi API error: {e}") from e

        if not response.ok:
            logger.error(f"Vapi {method} {path} failed with {response.status_code}: {response.text}")
            raise VapiError(f"Vapi API error: {response.text or response.reason}", response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Vapi {method} {path} returned an unreadable body: {e}")
            raise VapiError("Vapi API error: invalid JSON response", response.status_code) from e

    def list_phone_numbers(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/phone-number")

    def create_phone_number(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Import or create a phone number; ``payload`` is provider specific."""
        return self._request("POST", "/phone-number", payload)

    def create_assistant(self, config: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/assistant", config)

    def update_assistant(self, assistant_id: str, config: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/assistant/{assistant_id}", config)

    def get_assistant(self, assistant_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/assistant/{assistant_id}")

    def list_assistants(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/assistant")


def build_phone_number_payload(
    provider: str,
    phone_number: Optional[str] = None,
    twilio_account_sid: Optional[str] = None,
    twilio_auth_token: Optional[str] = None,
    sip_uri: Optional[str] = None,
    assistant_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the body for creating a phone number with the given provider.

    Args:
        provider: One of twilio, vonage, vapi or byosip

    Returns:
        Payload for ``VapiClient.create_phone_number``

    Raises:
        ValueError: For an unsupported provider
    """
    if provider == "twilio":
        return {
            "provider": "twilio",
            "number": phone_number,
            "twilioAccountSid": twilio_account_sid,
            "twilioAuthToken": twilio_auth_token,
            "assistantId": assistant_id,
        }
    if provider == "vonage":
        return {"provider": "vonage", "number": phone_number, "assistantId": assistant_id}
    if provider == "vapi":
        return {"provider": "vapi", "assistantId": assistant_id}
    if provider == "byosip":
        return {"provider": "byosip", "sipUri": sip_uri, "assistantId": assistant_id}
    raise ValueError(f"Unsupported phone number provider: {provider}")
