"""
Account signup: auth user, tenant, owner profile, dealership and optional Twilio records.

The steps run one after another against the service-role client; there is no
database transaction. When one of the required steps fails, the records created
before it are removed again by compensating actions run in reverse order. Later,
optional steps (dealership, Twilio credentials, phone number) only log failures.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.models.api_schemas import SignupRequest
from dealer_voice.models.records import (
    Dealership,
    PhoneNumber,
    Tenant,
    TwilioCredentials,
    UserProfile,
    UserRole,
    insert_row,
    rows,
)
from dealer_voice.services.errors import ServiceError

logger = logging.getLogger(LOGGER_NAME)


class SignupError(ServiceError):
    """A required signup step failed; the prior steps have been rolled back."""


def error_message(error: Exception) -> str:
    """Best human-readable text for a Supabase client error."""
    message = getattr(error, "message", None)
    return message if isinstance(message, str) and message else str(error)


class SignupService:
    """
    Runs the signup steps and keeps the stack of compensating actions.

    One instance handles one signup request.
    """

    def __init__(self, db):
        self.db = db
        self._compensations: List[Tuple[str, Callable[[], Any]]] = []

    def _push_compensation(self, description: str, action: Callable[[], Any]) -> None:
        self._compensations.append((description, action))

    def rollback(self) -> None:
        """Run the registered compensations newest first; failures are logged and skipped."""
        while self._compensations:
            description, action = self._compensations.pop()
            try:
                action()
                logger.info(f"[Signup] Rolled back: {description}")
            except Exception as e:
                logger.error(f"[Signup] Rollback step failed ({description}): {e}")

    def _fail(self, message: str) -> SignupError:
        self.rollback()
        return SignupError(message)

    def create_auth_user(self, request: SignupRequest):
        try:
            response = self.db.auth.admin.create_user(
                {
                    "email": request.email,
                    "password": request.password,
                    "email_confirm": True,
                    "user_metadata": {"full_name": request.fullName},
                }
            )
        except Exception as e:
            raise self._fail(error_message(e))

        user = getattr(response, "user", None)
        if user is None:
            raise self._fail("Failed to create user")

        self._push_compensation(
            f"auth user {user.id}", lambda: self.db.auth.admin.delete_user(user.id)
        )
        return user

    def create_tenant(self, company_name: str) -> Dict[str, Any]:
        try:
            result = self.db.table("tenants").insert(insert_row(Tenant(name=company_name))).execute()
        except Exception as e:
            raise self._fail(f"Failed to create tenant: {error_message(e)}")

        created = rows(result.data)
        if not created:
            raise self._fail("Failed to create tenant: no row returned")

        tenant = created[0]
        self._push_compensation(
            f"tenant {tenant['id']}",
            lambda: self.db.table("tenants").delete().eq("id", tenant["id"]).execute(),
        )
        return tenant

    def create_profile(self, user_id: str, tenant_id: str) -> None:
        profile = UserProfile(user_id=user_id, tenant_id=tenant_id, role=UserRole.OWNER)
        try:
            self.db.table("user_profiles").insert(insert_row(profile)).execute()
        except Exception as e:
            raise self._fail(f"Failed to create profile: {error_message(e)}")

    def create_dealership(
        self, tenant_id: str, name: str, phone: Optional[str]
    ) -> Optional[Dict[str, Any]]:
        dealership = Dealership(tenant_id=tenant_id, name=name, phone_e164=phone or None)
        try:
            result = self.db.table("dealerships").insert(insert_row(dealership)).execute()
        except Exception as e:
            # Dealership can be added later from the dashboard
            logger.error(f"[Signup] Failed to create dealership: {error_message(e)}")
            return None

        created = rows(result.data)
        return created[0] if created else None

    def store_twilio_credentials(self, tenant_id: str, account_sid: str, auth_token: str) -> None:
        credentials = TwilioCredentials(
            tenant_id=tenant_id,
            account_sid=account_sid,
            auth_token=auth_token,
            secret_ref=f"twilio/{tenant_id}",
        )
        try:
            self.db.table("twilio_credentials").insert(insert_row(credentials)).execute()
        except Exception as e:
            logger.error(f"[Signup] Failed to store Twilio credentials: {error_message(e)}")

    def add_phone_number(self, tenant_id: str, dealership_id: str, phone: str) -> None:
        number = PhoneNumber(
            tenant_id=tenant_id, dealership_id=dealership_id, phone_e164=phone, webhook_set=False
        )
        try:
            self.db.table("phone_numbers").insert(insert_row(number)).execute()
        except Exception as e:
            logger.error(f"[Signup] Failed to add phone number: {error_message(e)}")

    def signup(self, request: SignupRequest) -> Dict[str, Any]:
        """
        Create a new account.

        Args:
            request: Validated signup body

        Returns:
            ``{"success": True, "user": {"id", "email"}}``

        Raises:
            SignupError: If the auth user, tenant or profile could not be created
        """
        user = self.create_auth_user(request)
        tenant = self.create_tenant(request.companyName)
        self.create_profile(user.id, tenant["id"])

        dealership = self.create_dealership(
            tenant["id"], request.companyName, request.twilioPhoneNumber
        )

        if request.twilioAccountSid and request.twilioAuthToken and dealership:
            self.store_twilio_credentials(
                tenant["id"], request.twilioAccountSid, request.twilioAuthToken
            )
            if request.twilioPhoneNumber:
                self.add_phone_number(tenant["id"], dealership["id"], request.twilioPhoneNumber)

        # Account is complete; nothing left to undo
        self._compensations.clear()
        logger.info(f"[Signup] Created account for {user.email} (tenant {tenant['id']})")

        return {"success": True, "user": {"id": user.id, "email": user.email}}
