"""
contextledger: versioned, append-only message logs for LLM conversations.

Primary entry point::

    from contextledger import ContextLedger, MessageInput

    async with await ContextLedger.open(db_path="ledger.db") as ledger:
        ctx = await ledger.create_context("demo")
        await ledger.append_messages(ctx.id, [MessageInput(role="user", content="Hello!")])
        page = await ledger.list_messages(ctx.id, limit=20)
"""

from contextledger.context.window import BudgetWindowSelector
from contextledger.events.bus import EventBus, LedgerEvent
from contextledger.models import (
    ActiveState,
    CompactionPolicy,
    Context,
    DeletedState,
    LedgerConfig,
    Message,
    MessageInput,
    Page,
    PaginationConfig,
    StoreConfig,
    resolve_policy,
)
from contextledger.service import ContextLedger
from contextledger.store import (
    ContextNotFoundError,
    ContextStore,
    Database,
    DatabaseError,
    DuplicateVersionError,
    ForeignKeyError,
    LedgerStoreError,
    LockTimeoutError,
    MessageLedger,
    PaginationReader,
    StorePool,
    make_id,
)
from contextledger.tokens.estimator import TokenEstimator, count_message_tokens

__version__ = "0.1.0"

__all__ = [
    # Core
    "ContextLedger",
    "make_id",
    # Config
    "LedgerConfig",
    "StoreConfig",
    "PaginationConfig",
    "CompactionPolicy",
    "resolve_policy",
    # Models
    "Context",
    "ActiveState",
    "DeletedState",
    "Message",
    "MessageInput",
    "Page",
    # Components
    "Database",
    "StorePool",
    "ContextStore",
    "MessageLedger",
    "PaginationReader",
    "BudgetWindowSelector",
    # Errors
    "LedgerStoreError",
    "ContextNotFoundError",
    "DuplicateVersionError",
    "ForeignKeyError",
    "DatabaseError",
    "LockTimeoutError",
    # Events
    "EventBus",
    "LedgerEvent",
    # Tokens
    "TokenEstimator",
    "count_message_tokens",
]
