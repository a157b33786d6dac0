"""
Shared fixtures for unit tests
In-memory stand-in for the Supabase client query builder
"""
import copy
import re
import uuid
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest


ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"
USER_ID = "user-1"
CONTACT_ID = "contact-juan"

_EMBED_PATTERN = re.compile(r"(\w+)\(([^)]*)\)")


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable query mirroring the supabase-py builder methods the app uses."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.columns = "*"
        self.payload: Any = None
        self.filters = []
        self._order = None
        self._limit = None

    def select(self, columns: str = "*", count: Optional[str] = None):
        self.op = "select"
        self.columns = columns
        return self

    def insert(self, data):
        self.op = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.op = "update"
        self.payload = data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def is_(self, column, value):
        if value in ("null", None):
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: row.get(column) == value)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row) -> bool:
        return all(f(row) for f in self.filters)

    def _embed(self, row):
        for table, columns in _EMBED_PATTERN.findall(self.columns):
            foreign_key = f"{table[:-1]}_id" if table.endswith("s") else f"{table}_id"
            related = next(
                (r for r in self.db.tables.get(table, []) if r.get("id") == row.get(foreign_key)),
                None,
            )
            if related is None:
                row[table] = None
            else:
                row[table] = {c.strip(): related.get(c.strip()) for c in columns.split(",")}
        return row

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table_name, self.op))
        failure = self.db.failures.get((self.table_name, self.op))
        if failure is not None:
            raise failure

        rows = self.db.tables.setdefault(self.table_name, [])

        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in payload:
                row = copy.deepcopy(item)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        matched = [row for row in rows if self._matches(row)]

        if self.op == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse([copy.deepcopy(row) for row in matched])

        if self.op == "delete":
            for row in matched:
                rows.remove(row)
            return FakeResponse([copy.deepcopy(row) for row in matched])

        result = [self._embed(copy.deepcopy(row)) for row in matched]
        if self._order:
            column, desc = self._order
            result.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if self._limit is not None:
            result = result[:self._limit]
        return FakeResponse(result, count=len(result))


class FakeAuth:
    def __init__(self):
        self.users: Dict[str, SimpleNamespace] = {}

    def get_user(self, token: str):
        return SimpleNamespace(user=self.users.get(token))


class FakeSupabase:
    """
    Minimal in-memory Supabase client.

    failures maps (table, operation) to an exception raised on execute().
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[tuple, Exception] = {}
        self.calls: List[tuple] = []
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, *rows: Dict[str, Any]) -> None:
        self.tables.setdefault(table, []).extend(copy.deepcopy(list(rows)))

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])

    def fail(self, table: str, op: str, error: Exception) -> None:
        self.failures[(table, op)] = error

    def add_user(self, token: str, user_id: str, email: str) -> None:
        self.auth.users[token] = SimpleNamespace(id=user_id, email=email)


@pytest.fixture
def fake_supabase():
    """Two organizations, an active contact in the first one and an operator user."""
    db = FakeSupabase()
    db.seed(
        "organizations",
        {"id": ORG_ID, "name": "CEA Querétaro", "notification_cc_emails": ["coordinacion@cea.gob.mx"]},
        {"id": OTHER_ORG_ID, "name": "Otra organización", "notification_cc_emails": []},
    )
    db.seed(
        "contacts",
        {
            "id": CONTACT_ID,
            "organization_id": ORG_ID,
            "name": "Juan Pérez",
            "email": "juan.perez@cea.gob.mx",
            "phone": "+524421234567",
            "status": "active",
        },
        {
            "id": "contact-inactive",
            "organization_id": ORG_ID,
            "name": "Ana López",
            "email": "ana.lopez@cea.gob.mx",
            "status": "inactive",
        },
        {
            "id": "contact-other-org",
            "organization_id": OTHER_ORG_ID,
            "name": "Pedro Ruiz",
            "email": "pedro.ruiz@otra.gob.mx",
            "status": "active",
        },
    )
    db.seed(
        "profiles",
        {"id": USER_ID, "name": "Operador CEA", "organization_id": ORG_ID, "role": "admin"},
    )
    db.add_user("valid-token", USER_ID, "operador@cea.gob.mx")
    return db


def make_call_row(
    call_id: str = "call-1",
    organization_id: str = ORG_ID,
    status: str = "scheduled",
    correlation_id: Optional[str] = None,
    **overrides
) -> Dict[str, Any]:
    row = {
        "id": call_id,
        "organization_id": organization_id,
        "contact_id": CONTACT_ID,
        "process_id": None,
        "scheduled_date": "2025-03-04T10:00:00",
        "status": status,
        "duration_minutes": 30,
        "notes": None,
        "email_sent": True,
        "agent_id": "agent-123",
        "bot_connection_url": "https://elevenlabs.io/app/conversational-ai/agent-123",
        "correlation_id": correlation_id or f"{organization_id}:{call_id}-token",
        "transcription_data": None,
        "created_by": USER_ID,
        "created_at": "2025-03-01T09:00:00",
        "updated_at": "2025-03-01T09:00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def call_factory():
    return make_call_row
