"""Configuration models for the context ledger and its components."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class StoreConfig(BaseModel):
    """Configuration for the SQLite persistence layer."""

    db_path: str = Field(
        default="~/.contextledger/ledger.db",
        description="Path to the SQLite database file. ~ is expanded at runtime.",
    )

    wal_mode: bool = True
    """Use WAL journal mode so readers see committed snapshots while a writer is active."""

    connection_timeout: float = 30.0
    """Seconds SQLite waits on a busy database before raising."""

    lock_timeout: float | None = Field(
        default=30.0,
        gt=0,
        description=(
            "Seconds an append waits for its context's exclusive lock. "
            "None waits indefinitely."
        ),
    )


class PaginationConfig(BaseModel):
    """Defaults for cursor pagination over a context's messages."""

    default_limit: int = Field(
        default=50,
        ge=1,
        le=1_000,
        description="Page size used when the caller does not pass a limit.",
    )

    max_limit: int = Field(
        default=1_000,
        ge=1,
        le=1_000,
        description="Ceiling applied to caller-supplied limits.",
    )

    @model_validator(mode="after")
    def validate_limits(self) -> PaginationConfig:
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit must not exceed max_limit")
        return self


class CompactionPolicy(BaseModel):
    """
    Stored compaction policy for a deployment.

    Nothing in the ledger acts on these values yet; they are carried so that
    callers share one validated source of truth.
    """

    threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Fraction of the token budget at which compaction would trigger.",
    )

    preserve_recent_count: int = Field(
        default=10,
        ge=0,
        description="Number of most recent messages that compaction must never touch.",
    )

    enabled: bool = True


DEFAULT_POLICY = CompactionPolicy()


def resolve_policy(value: CompactionPolicy | dict[str, Any] | None) -> CompactionPolicy:
    """
    Merge a partial policy with the defaults.

    Args:
        value: A ``CompactionPolicy``, a dict of overrides, or None.

    Returns:
        A fully populated ``CompactionPolicy``.

    Raises:
        pydantic.ValidationError: If any supplied value is out of range.
    """
    if value is None:
        return DEFAULT_POLICY
    if isinstance(value, CompactionPolicy):
        return value
    return CompactionPolicy.model_validate(value)


class LedgerConfig(BaseModel):
    """
    Top-level configuration for a ``ContextLedger``.

    Example::

        config = LedgerConfig(
            store=StoreConfig(db_path="/var/lib/app/ledger.db", lock_timeout=5.0),
            pagination=PaginationConfig(default_limit=100),
        )
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    compaction: CompactionPolicy = Field(default_factory=CompactionPolicy)

    @classmethod
    def default(cls) -> LedgerConfig:
        """Return a config instance with all defaults."""
        return cls()
