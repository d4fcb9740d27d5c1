"""Tests for mapping SQLite failures onto store errors."""

from __future__ import annotations

import aiosqlite
import pytest

from contextledger.models.config import StoreConfig
from contextledger.store.contexts import ContextStore
from contextledger.store.database import Database
from contextledger.store.errors import (
    DatabaseError,
    DuplicateVersionError,
    ForeignKeyError,
    LedgerStoreError,
    StoreNotInitializedError,
    translate_database_error,
)


class TestTranslateDatabaseError:
    def test_unique_violation(self):
        err = translate_database_error(
            aiosqlite.IntegrityError(
                "UNIQUE constraint failed: messages.context_id, messages.version"
            )
        )
        assert isinstance(err, DuplicateVersionError)
        assert err.code == "DUPLICATE"
        assert err.constraint == "messages.context_id, messages.version"

    def test_foreign_key_violation(self):
        err = translate_database_error(aiosqlite.IntegrityError("FOREIGN KEY constraint failed"))
        assert isinstance(err, ForeignKeyError)
        assert err.code == "FOREIGN_KEY"

    def test_other_errors_are_generic(self):
        err = translate_database_error(aiosqlite.OperationalError("disk I/O error at /secret/path"))
        assert isinstance(err, DatabaseError)
        assert err.code == "DATABASE_ERROR"
        assert "secret" not in str(err)

    async def test_real_foreign_key_violation(self, db):
        """Inserting a message for an unknown context is caught by the schema."""
        with pytest.raises(aiosqlite.IntegrityError) as exc_info:
            async with db.transaction() as conn:
                await conn.execute(
                    "INSERT INTO messages (id, context_id, version, created_at, role, content)"
                    " VALUES ('msg_orphan', 'ctx_missing', 1, 0, 'user', 'x')"
                )
        assert isinstance(translate_database_error(exc_info.value), ForeignKeyError)


class TestUninitializedStore:
    async def test_reads_raise(self, tmp_path):
        store = ContextStore(Database(StoreConfig(db_path=str(tmp_path / "x.db"))))
        with pytest.raises(StoreNotInitializedError):
            await store.find_by_id("ctx_any")

    async def test_writes_raise(self, tmp_path):
        store = ContextStore(Database(StoreConfig(db_path=str(tmp_path / "x.db"))))
        with pytest.raises(LedgerStoreError):
            await store.create("never")
