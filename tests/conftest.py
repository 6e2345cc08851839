from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest
from fastapi.testclient import TestClient

from staffdesk.auth import get_current_user
from staffdesk.db import get_supabase_client
from staffdesk.main import app, get_now, get_today
from staffdesk.models import AuthUser

TODAY = date(2024, 6, 5)
NOW = datetime(2024, 6, 5, 12, 0, tzinfo=timezone.utc)

ANA = "11111111-1111-1111-1111-111111111111"
BRUNO = "22222222-2222-2222-2222-222222222222"
CARLA = "33333333-3333-3333-3333-333333333333"
DIEGO = "44444444-4444-4444-4444-444444444444"
EVA = "55555555-5555-5555-5555-555555555555"


class FakeQuery:
    """Just enough of the supabase-py query builder for the API under test."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload: Any = None
        self.filters: list[Callable[[dict], bool]] = []
        self.sort: Optional[tuple[str, bool]] = None
        self.window: Optional[tuple[int, int]] = None
        self.count_mode: Optional[str] = None

    def select(self, *columns, count=None):
        self.count_mode = count
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and str(row[column]) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and str(row[column]) <= value)
        return self

    def order(self, column, desc=False):
        self.sort = (column, desc)
        return self

    def range(self, start, end):
        self.window = (start, end)
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def _matching(self) -> list[dict]:
        return [row for row in self.db.tables.setdefault(self.table, []) if all(f(row) for f in self.filters)]

    def execute(self):
        if self.db.fail:
            raise RuntimeError("connection refused")
        self.db.calls.append((self.table, self.action, copy.deepcopy(self.payload)))
        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            inserted = []
            for item in self.payload if isinstance(self.payload, list) else [self.payload]:
                row = {"id": str(uuid.uuid4()), **item}
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted, count=None)

        if self.action == "update":
            matched = self._matching()
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        if self.action == "delete":
            matched = self._matching()
            self.db.tables[self.table] = [row for row in rows if row not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        data = self._matching()
        if self.sort:
            column, desc = self.sort
            data = sorted(data, key=lambda row: str(row.get(column) or ""), reverse=desc)
        total = len(data)
        if self.window:
            data = data[self.window[0]:self.window[1] + 1]
        return SimpleNamespace(data=copy.deepcopy(data), count=total if self.count_mode else None)


class FakeBucket:
    def __init__(self, name: str):
        self.name = name

    def create_signed_url(self, path, expires_in):
        return {"signedURL": f"https://storage.test/{self.name}/{path}?expires={expires_in}"}


@dataclass
class FakeSupabase:
    tables: dict[str, list[dict]] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)
    fail: bool = False

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    @property
    def storage(self):
        return SimpleNamespace(from_=FakeBucket)


def seed_tables() -> dict[str, list[dict]]:
    return {
        "profiles": [
            {"id": "admin-user", "role": "admin"},
            {"id": "employee-user", "role": "employee"},
        ],
        "employees": [
            {"id": ANA, "user_id": "employee-user", "employee_number": "A-01", "first_name": "Ana", "last_name": "Gomez",
             "email": "ana@example.com", "status": "active", "vacation_start": "2024-06-01", "vacation_end": "2024-06-10",
             "start_date": "2020-03-02"},
            {"id": BRUNO, "user_id": None, "employee_number": "B-02", "first_name": "Bruno", "last_name": "Diaz",
             "email": "bruno@example.com", "status": None, "vacation_start": None, "vacation_end": None},
            {"id": CARLA, "user_id": None, "employee_number": "C-03", "first_name": "Carla", "last_name": "Ruiz",
             "email": "carla@example.com", "status": "disabled", "vacation_start": None, "vacation_end": None},
            {"id": DIEGO, "user_id": None, "employee_number": "D-04", "first_name": "Diego", "last_name": "Sosa",
             "email": "diego@example.com", "status": "on_leave", "vacation_start": None, "vacation_end": None},
            {"id": EVA, "user_id": None, "employee_number": "E-05", "first_name": "Eva", "last_name": "Luna",
             "email": "eva@example.com", "status": "active", "vacation_start": "2024-06-01", "vacation_end": None},
        ],
        "salaries": [
            {"id": "s1", "employee_id": ANA, "base_salary": 1000, "bonuses": 100, "deductions": 50, "is_current": True,
             "effective_date": "2024-01-01", "end_date": None},
            {"id": "s2", "employee_id": BRUNO, "base_salary": "2000", "bonuses": None, "deductions": 200, "is_current": True,
             "effective_date": "2023-07-01", "end_date": None},
            {"id": "s3", "employee_id": CARLA, "base_salary": 999, "bonuses": 0, "deductions": 0, "is_current": False,
             "effective_date": "2022-01-01", "end_date": "2023-01-01"},
        ],
        "salary_receipts": [
            {"id": "r1", "employee_id": ANA, "signed_at": None, "status": "pending", "period_start": "2024-05-01",
             "period_end": "2024-05-31", "payment_date": "2024-06-01", "receipt_file_url": "ana/2024-05.pdf"},
            {"id": "r2", "employee_id": ANA, "signed_at": "2024-05-02T10:00:00Z", "status": "paid", "period_start": "2024-04-01",
             "period_end": "2024-04-30", "payment_date": "2024-05-01", "receipt_file_url": "ana/2024-04.pdf"},
            {"id": "r3", "employee_id": BRUNO, "signed_at": None, "status": "pending", "period_start": "2024-05-01",
             "period_end": "2024-05-31", "payment_date": "2024-06-01", "receipt_file_url": None},
        ],
        "employee_documents": [
            {"id": "d1", "employee_id": ANA, "document_type": "certificado_medico",
             "uploaded_at": "2024-01-10T09:00:00Z", "file_url": "ana/cert-2024.pdf", "signed_at": None},
            {"id": "d2", "employee_id": ANA, "document_type": "medical_certificate",
             "uploaded_at": "2022-05-01T00:00:00+00:00", "file_url": "ana/cert-2022.pdf", "signed_at": None},
            {"id": "d3", "employee_id": BRUNO, "document_type": "certificados_medicos",
             "uploaded_at": "2023-02-01T00:00:00Z", "file_url": "bruno/cert.pdf", "signed_at": None},
            {"id": "d4", "employee_id": ANA, "document_type": "uniforme",
             "uploaded_at": "2024-02-01T00:00:00Z", "file_url": "ana/uniform.pdf", "signed_at": None},
            {"id": "d5", "employee_id": BRUNO, "document_type": "uniform",
             "uploaded_at": "2024-02-01T00:00:00Z", "file_url": "bruno/uniform.pdf", "signed_at": "2024-03-01"},
            {"id": "d6", "employee_id": DIEGO, "document_type": "medical_certificate",
             "uploaded_at": None, "file_url": None, "signed_at": None},
        ],
        "attendance_records": [
            {"id": "a1", "employee_id": ANA, "attendance_date": "2024-06-03", "status": "present",
             "check_in": "09:00", "check_out": "17:00", "break_minutes": 60, "source": "manual", "notes": None},
            {"id": "a2", "employee_id": BRUNO, "attendance_date": "2024-06-04", "status": "late",
             "check_in": "10:15:00", "check_out": "18:00:00", "break_minutes": 30, "source": "import", "notes": "bus, late"},
            {"id": "a3", "employee_id": ANA, "attendance_date": "2024-06-04", "status": "present",
             "check_in": "09:00", "check_out": None, "break_minutes": 0, "source": "manual", "notes": None},
            {"id": "a4", "employee_id": BRUNO, "attendance_date": "2024-06-01", "status": "present",
             "check_in": "22:00", "check_out": "06:00", "break_minutes": 0, "source": "manual", "notes": None},
        ],
    }


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase(tables=seed_tables())


@pytest.fixture
def acting_user() -> dict:
    return {"user": AuthUser(id="admin-user", email="admin@example.com")}


@pytest.fixture
def client(supabase, acting_user):
    app.dependency_overrides[get_supabase_client] = lambda: supabase
    app.dependency_overrides[get_today] = lambda: TODAY
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_current_user] = lambda: acting_user["user"]
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
