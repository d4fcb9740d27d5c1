"""Ledger entry models: stored messages, batch input, and result pages."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system", "tool"]

SortOrder = Literal["asc", "desc"]

MAX_TOKEN_COUNT = 2**63 - 1
"""Largest value a SQLite INTEGER column can hold."""


class MessageInput(BaseModel):
    """One element of an append batch, as supplied by the caller."""

    role: Role
    content: str
    token_count: int | None = Field(
        default=None,
        ge=0,
        le=MAX_TOKEN_COUNT,
        description="Token count computed by the caller. None = unknown, counted as 0.",
    )
    tool_call_id: str | None = None
    tool_name: str | None = None
    model: str | None = None


class Message(BaseModel):
    """An immutable, versioned entry in a context's ledger."""

    id: str
    context_id: str
    version: int = Field(ge=1)
    role: Role
    content: str
    token_count: int | None = None
    tool_call_id: str | None = None
    tool_name: str | None = None
    model: str | None = None
    created_at: int
    deleted_at: int | None = None
    """Reserved per-message tombstone. No ledger operation sets it."""

    compacted_at: int | None = None
    """Reserved for compaction. Not read or written by the ledger."""
    compacted_into_version: int | None = None
    """Reserved for compaction. Not read or written by the ledger."""

    @property
    def effective_tokens(self) -> int:
        """Token count for budget arithmetic, treating unknown as 0."""
        return self.token_count or 0


class Page(BaseModel):
    """One page of a cursor-paginated message listing."""

    data: list[Message] = Field(default_factory=list)
    next_cursor: int | None = None
    has_more: bool = False
