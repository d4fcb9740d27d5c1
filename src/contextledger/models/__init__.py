"""Context ledger data models."""

from contextledger.models.config import (
    DEFAULT_POLICY,
    CompactionPolicy,
    LedgerConfig,
    PaginationConfig,
    StoreConfig,
    resolve_policy,
)
from contextledger.models.context import ActiveState, Context, ContextState, DeletedState
from contextledger.models.message import Message, MessageInput, Page, Role, SortOrder

__all__ = [
    # Config
    "CompactionPolicy",
    "DEFAULT_POLICY",
    "LedgerConfig",
    "PaginationConfig",
    "StoreConfig",
    "resolve_policy",
    # Context
    "ActiveState",
    "Context",
    "ContextState",
    "DeletedState",
    # Message
    "Message",
    "MessageInput",
    "Page",
    "Role",
    "SortOrder",
]
