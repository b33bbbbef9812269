"""Account signup."""

import logging

from fastapi import APIRouter, Depends

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.api.deps import get_db
from dealer_voice.api.errors import ApiError
from dealer_voice.models.api_schemas import SignupRequest
from dealer_voice.services.errors import ServiceError
from dealer_voice.services.signup_service import SignupService

logger = logging.getLogger(LOGGER_NAME)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup")
def signup(body: SignupRequest, db=Depends(get_db)):
    """Create the auth user, tenant, owner profile and first dealership.

    Returns:
        dict: ``{"success": true, "user": {"id", "email"}}``

    A failure while creating the user, tenant or profile answers 400 after the
    records created so far have been removed.
    """
    try:
        return SignupService(db).signup(body)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Signup error: {e}", exc_info=True)
        raise ApiError(500, str(e) or "An error occurred during signup")
