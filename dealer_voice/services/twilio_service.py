"""Twilio voice utilities.

This module covers everything the backend does with Twilio:

- TwiML generation for connecting a call to the media relay
- TwiML for spoken errors followed by a hangup
- Webhook signature validation
- Credential checks and phone number webhook configuration via the REST API
- Storage encoding for a tenant's auth token
"""

import base64
import logging
from typing import Mapping, Optional

from twilio.base.exceptions import TwilioException
from twilio.request_validator import RequestValidator
from twilio.rest import Client as TwilioClient
from twilio.twiml.voice_response import Connect, Stream, VoiceResponse

from dealer_voice.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

NUMBER_NOT_CONFIGURED_MESSAGE = "Sorry, this phone number is not configured. Please contact support."
GENERIC_ERROR_MESSAGE = "Sorry, we encountered an error. Please try again later."


def build_stream_twiml(stream_url: str, parameters: Mapping[str, Optional[str]]) -> str:
    """Build TwiML that connects the call to a Media Stream.

    Args:
        stream_url: WebSocket URL Twilio opens the stream to.
        parameters: Custom parameters delivered in the stream's ``start`` frame.

    Returns:
        TwiML document as a string. Attribute values are XML-escaped.
    """
    response = VoiceResponse()
    connect = Connect()
    stream = Stream(url=stream_url)
    for name, value in parameters.items():
        stream.parameter(name=name, value=value if value is not None else "")
    connect.append(stream)
    response.append(connect)
    return str(response)


def build_say_hangup_twiml(message: str) -> str:
    """Build TwiML that speaks ``message`` and hangs up."""
    response = VoiceResponse()
    response.say(message)
    response.hangup()
    return str(response)


def is_valid_signature(
    auth_token: str, url: str, params: Mapping[str, str], signature: Optional[str]
) -> bool:
    """Check an ``X-Twilio-Signature`` header against the request URL and form body."""
    if not signature:
        return False
    validator = RequestValidator(auth_token)
    return validator.validate(url, dict(params), signature)


def encode_auth_token(auth_token: str) -> str:
    """Encode an auth token for the tenants table.

    This is an encoding, not encryption; the column should move to a secrets store.
    """
    return base64.b64encode(auth_token.encode("utf-8")).decode("ascii")


def decode_auth_token(encoded: str) -> str:
    return base64.b64decode(encoded.encode("ascii")).decode("utf-8")


def create_client(account_sid: str, auth_token: str) -> TwilioClient:
    return TwilioClient(account_sid, auth_token)


def validate_credentials(account_sid: str, auth_token: str) -> bool:
    """Fetch the account with the given credentials.

    Args:
        account_sid: Twilio account SID.
        auth_token: Twilio auth token.

    Returns:
        True if Twilio accepted the credentials.
    """
    try:
        create_client(account_sid, auth_token).api.accounts(account_sid).fetch()
        return True
    except TwilioException as e:
        logger.warning(f"[Twilio Validation] Credentials rejected for {account_sid}: {e}")
        return False
    except Exception as e:
        logger.error(f"[Twilio Validation] Error: {e}")
        return False


def configure_number_webhook(
    account_sid: str,
    auth_token: str,
    phone_sid: str,
    voice_url: str,
    status_callback_url: str,
) -> bool:
    """Point a Twilio number's voice webhook and status callback at this backend.

    Args:
        account_sid: Tenant's Twilio account SID.
        auth_token: Tenant's Twilio auth token (decoded).
        phone_sid: SID of the incoming phone number (``PN...``).
        voice_url: URL for incoming call webhooks.
        status_callback_url: URL for call status callbacks.

    Returns:
        True if the number was updated.
    """
    try:
        create_client(account_sid, auth_token).incoming_phone_numbers(phone_sid).update(
            voice_url=voice_url,
            voice_method="POST",
            status_callback=status_callback_url,
            status_callback_method="POST",
        )
    except Exception as e:
        logger.error(f"[Twilio Webhook Config] Failed for {phone_sid}: {e}")
        return False

    logger.info(f"[Twilio Webhook Config] Configured webhook for {phone_sid}")
    return True

