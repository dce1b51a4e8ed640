"""SQL emitted by the remote stores, compiled for PostgreSQL."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError

from salescoach.domain.models import KnowledgeBase, ManagerReview
from salescoach.infrastructure.persistence.repositories_sqlalchemy import (
    RemoteStoreError,
    SQLAlchemyCatalogStore,
    SQLAlchemyRecordingStore,
    recording_to_values,
)
from salescoach.models import KnowledgeBaseRow
from tests.fakes import make_recording

REVIEWED_AT = datetime(2026, 10, 16, 8, 0, tzinfo=timezone.utc)


class _Result:
    def __init__(self, row=None, rowcount=0):
        self._row = row
        self.rowcount = rowcount

    def scalar_one_or_none(self):
        return self._row


class CapturingSession:
    """Records what a store asks of its session instead of talking to a database."""

    def __init__(self, *, error=None, row=None, rowcount=0):
        self.calls = []
        self.error = error
        self.row = row
        self.rowcount = rowcount

    async def execute(self, statement):
        if self.error is not None:
            raise self.error
        self.calls.append(("execute", statement))
        return _Result(self.row, self.rowcount)

    def add(self, instance):
        self.calls.append(("add", instance))

    async def commit(self):
        self.calls.append(("commit", None))

    @property
    def statements(self):
        return [payload for kind, payload in self.calls if kind == "execute"]


def scope_for(session):
    @asynccontextmanager
    async def scope():
        yield session

    return scope


def compiled(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


def conflict_clause(sql: str):
    """``(target, {column: value})`` from an ``ON CONFLICT ... DO UPDATE SET`` statement."""

    head, _, assignments = sql.partition(" DO UPDATE SET ")
    target = head.rsplit("ON CONFLICT ", 1)[1].strip()
    updates = dict(part.split(" = ", 1) for part in assignments.split(", "))
    return target, updates


def test_recording_upsert_conflicts_on_id_and_refreshes_every_column():
    session = CapturingSession()
    recording = make_recording("rec-1")

    asyncio.run(SQLAlchemyRecordingStore(scope_for(session)).upsert(recording))

    (statement,) = session.statements
    sql = compiled(statement)
    assert sql.startswith("INSERT INTO recordings ")
    target, updates = conflict_clause(sql)
    assert target == "(id)"

    expected = {key for key in recording_to_values(recording) if key != "id"}
    assert set(updates) == expected | {"updated_at"}
    for column in expected:
        assert updates[column] == f"excluded.{column}"
    assert session.calls[-1] == ("commit", None)


def test_review_upsert_conflicts_on_recording_id():
    session = CapturingSession()
    review = ManagerReview(
        reviewer_id="mgr-1",
        reviewer_name="Dana",
        rating=4,
        comments="Solid discovery",
        reviewed_at=REVIEWED_AT,
    )

    asyncio.run(SQLAlchemyRecordingStore(scope_for(session)).upsert_review("rec-1", review))

    (statement,) = session.statements
    sql = compiled(statement)
    assert sql.startswith("INSERT INTO manager_reviews ")
    target, updates = conflict_clause(sql)
    assert target == "(recording_id)"
    assert set(updates) == {
        "reviewer_id",
        "reviewer_name",
        "rating",
        "comments",
        "key_takeaways",
        "action_items",
        "reviewed_at",
        "updated_at",
    }
    assert updates["rating"] == "excluded.rating"

    params = statement.compile(dialect=postgresql.dialect()).params
    assert params["key_takeaways"] == []
    assert params["reviewed_at"] == REVIEWED_AT


def test_delete_recording_is_scoped_to_owner():
    session = CapturingSession(rowcount=1)

    deleted = asyncio.run(SQLAlchemyRecordingStore(scope_for(session)).delete("rep-1", "rec-1"))

    assert deleted is True
    sql = compiled(session.statements[0])
    assert sql.startswith("DELETE FROM recordings ")
    assert "recordings.user_id = " in sql
    assert "recordings.id = " in sql


def test_delete_process_never_removes_the_default():
    session = CapturingSession()

    asyncio.run(SQLAlchemyCatalogStore(scope_for(session)).delete_process("standard"))

    sql = compiled(session.statements[0])
    assert sql.startswith("DELETE FROM sales_processes ")
    assert "sales_processes.is_default IS false" in sql
    assert "sales_processes.id = " in sql


def test_saving_knowledge_base_deactivates_previous_versions():
    session = CapturingSession()
    knowledge_base = KnowledgeBase(company_info="Acme sells widgets", products=["Widget Pro"])

    asyncio.run(SQLAlchemyCatalogStore(scope_for(session)).save_knowledge_base(knowledge_base, "mgr-1"))

    kinds = [kind for kind, _ in session.calls]
    assert kinds == ["execute", "add", "commit"]

    sql = compiled(session.statements[0])
    assert sql.startswith("UPDATE knowledge_bases SET is_active=")
    assert "WHERE knowledge_bases.is_active IS true" in sql

    added = session.calls[1][1]
    assert isinstance(added, KnowledgeBaseRow)
    assert added.is_active is True
    assert added.company_info == "Acme sells widgets"
    assert added.products == ["Widget Pro"]
    assert added.last_updated_by == "mgr-1"


def test_active_knowledge_base_maps_the_stored_row():
    updated = datetime(2026, 10, 10, tzinfo=timezone.utc)
    row = KnowledgeBaseRow(
        company_info="Acme",
        products=None,
        industry_context="Manufacturing",
        last_updated_by="mgr-1",
        updated_at=updated,
        is_active=True,
    )
    session = CapturingSession(row=row)

    knowledge_base = asyncio.run(SQLAlchemyCatalogStore(scope_for(session)).get_active_knowledge_base())

    assert knowledge_base.company_info == "Acme"
    assert knowledge_base.products == []
    assert knowledge_base.industry_context == "Manufacturing"
    assert knowledge_base.last_updated == updated
    assert knowledge_base.updated_by == "mgr-1"
    sql = compiled(session.statements[0])
    assert "knowledge_bases.is_active IS true" in sql
    assert "LIMIT" in sql


def test_driver_errors_are_wrapped_as_remote_store_errors():
    session = CapturingSession(error=SQLAlchemyError("connection reset"))
    store = SQLAlchemyRecordingStore(scope_for(session))

    with pytest.raises(RemoteStoreError, match="Failed to upsert recording rec-1") as excinfo:
        asyncio.run(store.upsert(make_recording("rec-1")))

    assert isinstance(excinfo.value.__cause__, SQLAlchemyError)


def test_session_errors_are_wrapped_as_remote_store_errors():
    @asynccontextmanager
    async def unavailable():
        raise SQLAlchemyError("could not connect")
        yield

    with pytest.raises(RemoteStoreError, match="Failed to list recordings for rep-1"):
        asyncio.run(SQLAlchemyRecordingStore(unavailable).list_for_owner("rep-1"))

    with pytest.raises(RemoteStoreError, match="Failed to delete sales process custom"):
        asyncio.run(SQLAlchemyCatalogStore(unavailable).delete_process("custom"))
