"""
Row models for the multi-tenant Postgres schema.

Every table except ``tenants`` carries a ``tenant_id``; queries made on behalf
of a signed-in user are always filtered on it. These models describe the rows
the API reads and writes; they perform no persistence themselves.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    STAFF = "staff"
    AGENT = "agent"
    VIEWER = "viewer"


class AgentType(str, Enum):
    RECEPTION = "reception"
    SERVICE = "service"
    SALES = "sales"


class TranscriptRole(str, Enum):
    CALLER = "caller"
    AGENT = "agent"


class Tenant(BaseModel):
    id: Optional[str] = None
    name: str
    timezone: Optional[str] = None
    twilio_account_sid: Optional[str] = None
    twilio_auth_token_encrypted: Optional[str] = None
    twilio_configured: bool = False
    created_at: Optional[str] = None


class UserProfile(BaseModel):
    user_id: str
    tenant_id: str
    role: UserRole = UserRole.OWNER
    created_at: Optional[str] = None


class Dealership(BaseModel):
    id: Optional[str] = None
    tenant_id: str
    name: str
    phone_e164: Optional[str] = None
    address: Optional[str] = None
    hours_json: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None


class TwilioCredentials(BaseModel):
    tenant_id: str
    account_sid: str
    auth_token: Optional[str] = None
    secret_ref: str
    created_at: Optional[str] = None


class PhoneNumber(BaseModel):
    id: Optional[str] = None
    tenant_id: str
    dealership_id: Optional[str] = None
    phone_e164: str
    twilio_sid: Optional[str] = None
    webhook_set: bool = False
    webhook_url: Optional[str] = None
    created_at: Optional[str] = None


class Call(BaseModel):
    """Call log row; ``meta`` mirrors the shape of Vapi's call object."""

    id: Optional[str] = None
    tenant_id: str
    dealership_id: Optional[str] = None
    twilio_call_sid: Optional[str] = None
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    duration_s: Optional[int] = None
    outcome: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)


class Transcript(BaseModel):
    call_id: str
    tenant_id: Optional[str] = None
    turn: int = 0
    role: TranscriptRole
    text: Optional[str] = None
    ts: Optional[str] = None


class Summary(BaseModel):
    call_id: str
    tenant_id: Optional[str] = None
    summary_text: str
    intents_json: Any = Field(default_factory=dict)


class Booking(BaseModel):
    tenant_id: str
    dealership_id: Optional[str] = None
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    appt_start: Optional[str] = None
    notes: Optional[str] = None
    status: str = "scheduled"
    source: str = "voice_agent"


class TenantLookup(BaseModel):
    """Row returned by the ``get_tenant_by_phone`` database function."""

    tenant_id: str
    tenant_name: str
    dealership_id: str
    dealership_name: str
    agent_config: Optional[Dict[str, Any]] = None


def rows(data: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Normalise a query result's ``data`` to a list."""
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


def insert_row(model: BaseModel) -> Dict[str, Any]:
    """Column values for an insert; fields never set are left to their database defaults."""
    return model.model_dump(mode="json", exclude_unset=True)
