import pytest
from pydantic import ValidationError

from dealer_voice.models.records import (
    Booking,
    PhoneNumber,
    Summary,
    Tenant,
    Transcript,
    TranscriptRole,
    UserProfile,
    UserRole,
    insert_row,
    rows,
)


def test_insert_row_skips_unset_fields():
    assert insert_row(Tenant(name="Main Street Motors")) == {"name": "Main Street Motors"}


def test_insert_row_keeps_explicit_none():
    number = PhoneNumber(tenant_id="tenant-1", phone_e164="+15551234567", twilio_sid=None)

    assert insert_row(number) == {"tenant_id": "tenant-1", "phone_e164": "+15551234567", "twilio_sid": None}


def test_insert_row_serialises_enums():
    profile = UserProfile(user_id="user-1", tenant_id="tenant-1", role=UserRole.OWNER)
    transcript = Transcript(call_id="call-1", role=TranscriptRole.AGENT, text="Hello")

    assert insert_row(profile)["role"] == "owner"
    assert insert_row(transcript) == {"call_id": "call-1", "role": "agent", "text": "Hello"}


def test_summary_intents_accept_any_json():
    summary = Summary(call_id="call-1", summary_text="Booked", intents_json=["oil_change"])

    assert insert_row(summary)["intents_json"] == ["oil_change"]


def test_transcript_rejects_unknown_role():
    with pytest.raises(ValidationError):
        Transcript(call_id="call-1", role="narrator", text="...")


def test_booking_defaults():
    booking = Booking(tenant_id="tenant-1")

    assert booking.status == "scheduled"
    assert booking.source == "voice_agent"


def test_rows_normalises_query_data():
    assert rows(None) == []
    assert rows({"id": "a"}) == [{"id": "a"}]
    assert rows([{"id": "a"}, {"id": "b"}]) == [{"id": "a"}, {"id": "b"}]
