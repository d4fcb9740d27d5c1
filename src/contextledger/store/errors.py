"""Typed store errors and the mapping from SQLite failures onto them."""

from __future__ import annotations

from typing import Literal

import aiosqlite

ErrorCode = Literal["NOT_FOUND", "DUPLICATE", "FOREIGN_KEY", "DATABASE_ERROR"]


class LedgerStoreError(Exception):
    """Base class for store errors. ``code`` names the error kind."""

    code: ErrorCode = "DATABASE_ERROR"

    def __init__(self, message: str, *, constraint: str | None = None) -> None:
        super().__init__(message)
        self.constraint = constraint


class ContextNotFoundError(LedgerStoreError):
    """Raised when a write targets a context that is missing or soft-deleted."""

    code: ErrorCode = "NOT_FOUND"

    def __init__(self, context_id: str) -> None:
        super().__init__(f"Context not found: {context_id!r}")
        self.context_id = context_id


class DuplicateVersionError(LedgerStoreError):
    """Raised on a uniqueness violation. Indicates a bypassed append lock."""

    code: ErrorCode = "DUPLICATE"


class ForeignKeyError(LedgerStoreError):
    """Raised when an insert references a context row that no longer exists."""

    code: ErrorCode = "FOREIGN_KEY"


class DatabaseError(LedgerStoreError):
    """Any other storage fault. The message never carries driver detail."""

    code: ErrorCode = "DATABASE_ERROR"


class LockTimeoutError(DatabaseError):
    """Raised when an append cannot acquire its context lock before the deadline."""

    def __init__(self, context_id: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout}s waiting for context lock: {context_id!r}")
        self.context_id = context_id
        self.timeout = timeout


class StoreNotInitializedError(LedgerStoreError):
    """Raised when a store is used before ``initialize()``."""

    def __init__(self) -> None:
        super().__init__("Store is not initialized. Call initialize() first.")


def translate_database_error(exc: aiosqlite.Error) -> LedgerStoreError:
    """
    Map a SQLite error onto the store error hierarchy.

    ``UNIQUE`` and ``PRIMARY KEY`` violations become ``DuplicateVersionError``,
    ``FOREIGN KEY`` violations become ``ForeignKeyError`` and everything else
    becomes a generic ``DatabaseError``. The caller raises the result
    ``from exc`` so the driver error stays available for debugging.
    """
    text = str(exc)
    if isinstance(exc, aiosqlite.IntegrityError):
        if "UNIQUE" in text or "PRIMARY KEY" in text:
            constraint = text.split(":", 1)[1].strip() if ":" in text else None
            return DuplicateVersionError("Duplicate entry", constraint=constraint)
        if "FOREIGN KEY" in text:
            return ForeignKeyError("Referenced record not found")
    return DatabaseError("Database error")
