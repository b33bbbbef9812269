import copy
import itertools
import logging
from types import SimpleNamespace

import pytest

from dealer_voice.config.settings import Settings


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


class FakeAPIError(Exception):
    """Stands in for the error the Supabase client raises on a failed query."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class FakeQuery:
    """Chainable query builder over the in-memory tables of FakeSupabase."""

    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.op = None
        self.payload = None
        self.filters = []
        self.order_by = None
        self.limit_count = None

    def select(self, columns="*"):
        if self.op is None:
            self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        self.db.operations.append((self.table_name, self.op, copy.deepcopy(self.payload), list(self.filters)))
        failure = self.db.failures.get((self.table_name, self.op))
        if failure:
            raise FakeAPIError(failure)

        table = self.db.tables.setdefault(self.table_name, [])

        if self.op == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for payload in payloads:
                row = {"id": f"{self.table_name}-{next(self.db.ids)}", "created_at": self.db.timestamp()}
                row.update(copy.deepcopy(payload))
                table.append(row)
                created.append(copy.deepcopy(row))
            return SimpleNamespace(data=created)

        matched = [row for row in table if self._matches(row)]

        if self.op == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self.op == "delete":
            self.db.tables[self.table_name] = [row for row in table if not self._matches(row)]
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda row: row.get(column) or "", reverse=desc)
        if self.limit_count is not None:
            matched = matched[: self.limit_count]
        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        failure = self.db.failures.get(("rpc", self.name))
        if failure:
            raise FakeAPIError(failure)
        handler = self.db.rpc_handlers.get(self.name)
        return SimpleNamespace(data=handler(self.params) if handler else [])


class FakeAdminAuth:
    def __init__(self, db):
        self.db = db
        self.created_users = []
        self.deleted_users = []
        self.create_error = None
        self.return_no_user = False

    def create_user(self, attributes):
        if self.create_error:
            raise FakeAPIError(self.create_error)
        if self.return_no_user:
            return SimpleNamespace(user=None)
        user = SimpleNamespace(id=f"user-{next(self.db.ids)}", email=attributes["email"])
        self.created_users.append(attributes)
        return SimpleNamespace(user=user)

    def delete_user(self, user_id):
        self.deleted_users.append(user_id)


class FakeAuth:
    def __init__(self, db):
        self.admin = FakeAdminAuth(db)
        self.tokens = {}

    def get_user(self, jwt):
        if jwt not in self.tokens:
            raise FakeAPIError("invalid JWT")
        return SimpleNamespace(user=self.tokens[jwt])


class FakeSupabase:
    """In-memory replacement for the service-role Supabase client."""

    def __init__(self):
        self.tables = {}
        self.failures = {}
        self.operations = []
        self.rpc_calls = []
        self.rpc_handlers = {}
        self.ids = itertools.count(1)
        self._clock = itertools.count(1)
        self.auth = FakeAuth(self)

    def timestamp(self):
        return f"2024-01-01T00:00:{next(self._clock):02d}+00:00"

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def fail(self, table, op, message="boom"):
        self.failures[(table, op)] = message

    def ops(self, table=None, op=None):
        return [
            entry for entry in self.operations
            if (table is None or entry[0] == table) and (op is None or entry[1] == op)
        ]


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def settings(monkeypatch):
    """Settings built from a controlled environment."""
    for name in (
        "VAPI_API_KEY", "VAPI_ASSISTANT_ID", "VAPI_WS_URL", "VAPI_BASE_URL",
        "SESSION_SERVER_URL", "PUBLIC_BASE_URL", "TWILIO_AUTH_TOKEN", "VALIDATE_TWILIO",
        "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VAPI_API_KEY", "test-vapi-key")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://dealer.example.com")
    return Settings()


@pytest.fixture
def signed_in(fake_db):
    """A user with a tenant and a dealership; returns the auth headers and ids."""
    user = SimpleNamespace(id="user-1", email="owner@dealer.com")
    fake_db.auth.tokens["good-token"] = user
    fake_db.tables["user_profiles"] = [{"user_id": "user-1", "tenant_id": "tenant-1", "role": "owner"}]
    fake_db.tables["tenants"] = [{"id": "tenant-1", "name": "Main Street Motors", "twilio_configured": False}]
    fake_db.tables["dealerships"] = [
        {"id": "dealer-1", "tenant_id": "tenant-1", "name": "Main Street Motors"},
        {"id": "dealer-other", "tenant_id": "tenant-2", "name": "Other Motors"},
    ]
    return SimpleNamespace(
        headers={"Authorization": "Bearer good-token"},
        user=user,
        tenant_id="tenant-1",
        dealership_id="dealer-1",
    )


@pytest.fixture
def client(fake_db, settings):
    """TestClient with the database and settings replaced."""
    from fastapi.testclient import TestClient

    from dealer_voice.api.deps import get_db
    from dealer_voice.config.settings import get_settings
    from dealer_voice.main import app

    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeUpstream:
    """Records what the relay hands to the Vapi side of a call."""

    def __init__(self, api_key, assistant_id, url, open_on_start=True):
        self.api_key = api_key
        self.assistant_id = assistant_id
        self.url = url
        self.open_on_start = open_on_start
        self.is_open = False
        self.call_sid = None
        self.on_audio = None
        self.sent = []
        self.close_calls = 0

    async def start(self, call_sid, on_audio):
        self.call_sid = call_sid
        self.on_audio = on_audio
        self.is_open = self.open_on_start

    async def send_audio(self, payload):
        if not self.is_open:
            return False
        self.sent.append(payload)
        return True

    async def close(self):
        self.close_calls += 1
        self.is_open = False


@pytest.fixture
def upstreams():
    """Factory for FakeUpstream that keeps every instance it creates."""
    created = []

    def factory(api_key, assistant_id, url):
        upstream = FakeUpstream(api_key, assistant_id, url, open_on_start=factory.open_on_start)
        created.append(upstream)
        return upstream

    factory.open_on_start = True
    factory.created = created
    return factory
