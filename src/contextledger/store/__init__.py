"""Context ledger persistence layer."""

from contextledger.store.contexts import ContextStore
from contextledger.store.database import Database, make_id
from contextledger.store.errors import (
    ContextNotFoundError,
    DatabaseError,
    DuplicateVersionError,
    ForeignKeyError,
    LedgerStoreError,
    LockTimeoutError,
    StoreNotInitializedError,
    translate_database_error,
)
from contextledger.store.ledger import MessageLedger
from contextledger.store.locks import ContextLocks
from contextledger.store.pagination import PaginationReader
from contextledger.store.pool import StorePool

__all__ = [
    "ContextLocks",
    "ContextStore",
    "Database",
    "MessageLedger",
    "PaginationReader",
    "StorePool",
    "make_id",
    "LedgerStoreError",
    "ContextNotFoundError",
    "DuplicateVersionError",
    "ForeignKeyError",
    "DatabaseError",
    "LockTimeoutError",
    "StoreNotInitializedError",
    "translate_database_error",
]
