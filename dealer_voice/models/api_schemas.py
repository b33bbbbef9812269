"""
Request bodies accepted by the REST API.

Field names follow the JSON the dashboard already sends (camelCase).
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class SignupRequest(BaseModel):
    """Body of POST /api/auth/signup."""

    email: str
    password: str
    fullName: Optional[str] = None
    companyName: str
    twilioAccountSid: Optional[str] = None
    twilioAuthToken: Optional[str] = None
    twilioPhoneNumber: Optional[str] = None

    @field_validator("email")
    def validate_email(cls, v):
        """Validate that the email looks like an address."""
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v.strip()

    @field_validator("companyName")
    def validate_company_name(cls, v):
        """Validate that company name is not empty."""
        if not v.strip():
            raise ValueError("Company name cannot be empty")
        return v


class TwilioCredentialsRequest(BaseModel):
    accountSid: Optional[str] = None
    authToken: Optional[str] = None


class PhoneNumberRequest(BaseModel):
    phoneNumber: Optional[str] = None
    twilioSid: Optional[str] = None


class VapiPhoneNumberRequest(BaseModel):
    """Body of POST /api/vapi/phone-numbers."""

    provider: Literal["twilio", "vonage", "vapi", "byosip"]
    phoneNumber: Optional[str] = None
    twilioAccountSid: Optional[str] = None
    twilioAuthToken: Optional[str] = None
    sipUri: Optional[str] = None
    assistantId: Optional[str] = None


class CdkCredentialsRequest(BaseModel):
    apiKey: Optional[str] = Field(None, description="CDK API key")
    dealerCode: Optional[str] = Field(None, description="CDK dealer code")
