"""Tests for engine setup and the session_scope transaction helper."""

import os
from uuid import uuid4

import pytest
from sqlalchemy import select, text

from inventory_kernel.db.engine import (
    get_engine,
    get_session,
    reset_engine,
    session_scope,
)
from inventory_kernel.models.registry import Location


def _location(actor):
    return Location(id=uuid4(), code=f"LOC-{uuid4().hex[:6]}", name="Overflow",
                    is_active=True, created_by_id=actor)


class TestSessionScope:

    def test_commits_on_success(self, db_engine, test_actor_id):
        with session_scope() as session:
            location = _location(test_actor_id)
            session.add(location)

        check = get_session()
        try:
            assert check.get(Location, location.id) is not None
        finally:
            check.close()

    def test_rolls_back_and_reraises(self, db_engine, test_actor_id, captured_logs):
        location = _location(test_actor_id)
        with pytest.raises(RuntimeError, match="scan station offline"):
            with session_scope() as session:
                session.add(location)
                session.flush()
                raise RuntimeError("scan station offline")

        check = get_session()
        try:
            assert check.execute(select(Location).where(Location.id == location.id)).first() is None
        finally:
            check.close()
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())


class TestEngineLifecycle:

    def test_sqlite_runs_in_wal_mode(self, db_engine):
        if db_engine.dialect.name != "sqlite":
            pytest.skip("SQLite only")
        with db_engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    @pytest.mark.skipif(bool(os.environ.get("DATABASE_URL")), reason="drops tables on teardown")
    def test_uninitialized_engine_raises(self, db_engine):
        reset_engine()

        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_session()
