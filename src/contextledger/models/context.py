"""Context entity and its lifecycle state."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class ActiveState(BaseModel):
    """A live context, visible to every read and write path."""

    kind: Literal["active"] = "active"


class DeletedState(BaseModel):
    """A soft-deleted context. The row is retained but unreachable."""

    kind: Literal["deleted"] = "deleted"
    at: int
    """Unix millisecond timestamp of the soft delete."""


ContextState = Annotated[ActiveState | DeletedState, Field(discriminator="kind")]


class Context(BaseModel):
    """An independently owned, ordered log of messages."""

    id: str
    name: str | None = None
    created_at: int
    updated_at: int
    message_count: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)
    latest_version: int = Field(default=0, ge=0)
    state: ContextState = Field(default_factory=ActiveState)

    parent_id: str | None = None
    """Reserved for context forking. Not read or written by the ledger."""
    fork_version: int | None = None
    """Reserved for context forking. Not read or written by the ledger."""

    @property
    def deleted_at(self) -> int | None:
        """Tombstone timestamp, or None while the context is active."""
        if isinstance(self.state, DeletedState):
            return self.state.at
        return None

    @property
    def is_active(self) -> bool:
        return isinstance(self.state, ActiveState)
