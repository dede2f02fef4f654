"""
Shared fixtures: in-memory stores, seeded records, and an HTTP client
running the app on the in-memory backend.
"""
import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from contoso.concurrency.conflict_resolver import ConflictResolver
from contoso.concurrency.edit_workflow import EditWorkflow
from contoso.entities import DEPARTMENT
from contoso.store.impl.memory_record_io import InMemoryRecordIO
from contoso.store.versioned_store import VersionedRecordStore
from contoso.web.config import get_config


def department_fields(name="English", budget="350000", start="2007-09-01", instructor_id=None):
    """Standard department test record."""
    return {
        "name": name,
        "budget": Decimal(budget),
        "start_date": datetime.date.fromisoformat(start),
        "instructor_id": instructor_id,
    }


@pytest.fixture
def make_department():
    return department_fields


@pytest.fixture
def department_io():
    return InMemoryRecordIO("departments")


@pytest.fixture
def department_store(department_io):
    return VersionedRecordStore(record_io=department_io)


@pytest.fixture
def seeded_department(department_store):
    """Record with fields {name: "A", budget: 100}."""
    result = department_store.create(department_fields(name="A", budget="100"))
    assert result.ok
    return result.value


@pytest.fixture
def department_workflow(department_store):
    return EditWorkflow(
        schema=DEPARTMENT,
        store=department_store,
        resolver=ConflictResolver(DEPARTMENT),
    )


@pytest.fixture
def client(monkeypatch):
    from contoso.web.main import app

    monkeypatch.setattr(get_config(), "storage_backend", "memory")
    with TestClient(app) as c:
        yield c
