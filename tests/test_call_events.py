from dealer_voice.services.call_events import (
    VapiEventHandler,
    create_call_log,
    list_recent_calls,
    lookup_tenant_by_phone,
    parse_timestamp,
    record_call_status,
    transform_call,
)
from dealer_voice.models.records import TenantLookup


TENANT = TenantLookup(
    tenant_id="tenant-1",
    tenant_name="Main Street Motors",
    dealership_id="dealer-1",
    dealership_name="Main Street Motors",
)


def test_lookup_tenant_by_phone(fake_db):
    fake_db.rpc_handlers["get_tenant_by_phone"] = lambda params: [TENANT.model_dump()]

    assert lookup_tenant_by_phone(fake_db, "+15551234567") == TENANT
    assert lookup_tenant_by_phone(fake_db, None) is None
    assert len(fake_db.rpc_calls) == 1


def test_lookup_unknown_phone(fake_db):
    assert lookup_tenant_by_phone(fake_db, "+15550000000") is None


def test_create_call_log_failure_returns_none(fake_db):
    fake_db.fail("calls", "insert")

    assert create_call_log(fake_db, TENANT, "CA1", "+1", "+2", "ringing") is None


def test_record_call_status_invalid_duration(fake_db):
    fake_db.tables["calls"] = [{"id": "call-1", "twilio_call_sid": "CA1"}]

    assert record_call_status(fake_db, "CA1", "busy", "soon") is True

    call = fake_db.tables["calls"][0]
    assert "duration_s" not in call
    assert call["ended_at"]


def test_record_call_status_requires_sid(fake_db):
    assert record_call_status(fake_db, None, "completed", "10") is False
    assert fake_db.operations == []


def test_parse_timestamp():
    assert parse_timestamp("2024-05-01T10:00:00Z").tzinfo is not None
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None


def test_end_of_call_without_analysis(fake_db):
    fake_db.tables["calls"] = [{"id": "call-1", "meta": {}}]

    VapiEventHandler(fake_db).handle(
        {
            "message": {
                "type": "end-of-call-report",
                "call": {"id": "vapi-1", "metadata": {"call_log_id": "call-1", "tenant_id": "tenant-1"}},
            }
        }
    )

    call = fake_db.tables["calls"][0]
    assert call["outcome"] == "unknown"
    assert call["duration_s"] is None
    assert "summaries" not in fake_db.tables


def test_events_without_call_log_are_acknowledged(fake_db):
    handler = VapiEventHandler(fake_db)

    for event_type in ("end-of-call-report", "transcript"):
        assert handler.handle({"message": {"type": event_type, "call": {}}}) == {"success": True}
    assert handler.handle({"message": {"type": "status-update", "status": "started"}}) == {"success": True}
    assert fake_db.operations == []


def test_assistant_request_returns_assistant(fake_db):
    response = VapiEventHandler(fake_db).handle(
        {"message": {"type": "assistant-request", "assistant": {"name": "Agent"}}}
    )

    assert response == {"assistant": {"name": "Agent"}}


def test_transform_call_falls_back_to_row_id():
    call = transform_call({"id": "call-9", "started_at": "2024-05-01T10:00:00+00:00", "meta": None})

    assert call["id"] == "call-9"
    assert call["status"] == "in-progress"
    assert call["analysis"] == {}


def test_list_recent_calls_applies_limit(fake_db):
    fake_db.tables["calls"] = [
        {"id": f"call-{i}", "tenant_id": "tenant-1", "started_at": f"2024-05-0{i}T00:00:00+00:00", "meta": {}}
        for i in range(1, 6)
    ]

    calls = list_recent_calls(fake_db, "tenant-1", limit=2)

    assert [c["id"] for c in calls] == ["call-5", "call-4"]


def test_tool_call_without_function_is_answered(fake_db):
    response = VapiEventHandler(fake_db).handle(
        {"message": {"type": "tool-calls", "toolCalls": [{"id": "tc-1", "function": None}]}}
    )

    assert response == {"results": [{"toolCallId": "tc-1", "result": {"error": "Unknown tool: None"}}]}


def test_create_call_log_leaves_generated_columns_to_the_database(fake_db):
    create_call_log(fake_db, TENANT, "CA1", "+15550001111", "+15551234567", "ringing")

    (table, op, payload, _), = fake_db.operations
    assert (table, op) == ("calls", "insert")
    assert set(payload) == {"tenant_id", "dealership_id", "twilio_call_sid", "started_at", "meta"}
    assert payload["meta"] == {
        "from_number": "+15550001111",
        "to_number": "+15551234567",
        "call_status": "ringing",
    }


def test_transcript_row_without_text(fake_db):
    VapiEventHandler(fake_db).handle(
        {
            "message": {
                "type": "transcript",
                "transcript": {"role": "user"},
                "call": {"metadata": {"call_log_id": "call-1", "tenant_id": "tenant-1"}},
            }
        }
    )

    row = fake_db.tables["transcripts"][0]
    assert row["role"] == "caller"
    assert row["turn"] == 0
    assert row["text"] is None
