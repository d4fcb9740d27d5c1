"""Tests for configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from contextledger.models.config import (
    DEFAULT_POLICY,
    CompactionPolicy,
    LedgerConfig,
    PaginationConfig,
    StoreConfig,
    resolve_policy,
)


class TestStoreConfig:
    def test_defaults(self) -> None:
        cfg = StoreConfig()
        assert cfg.db_path == "~/.contextledger/ledger.db"
        assert cfg.wal_mode is True
        assert cfg.lock_timeout == 30.0

    def test_lock_timeout_may_be_disabled(self) -> None:
        assert StoreConfig(lock_timeout=None).lock_timeout is None

    def test_lock_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            StoreConfig(lock_timeout=0)


class TestPaginationConfig:
    def test_defaults(self) -> None:
        cfg = PaginationConfig()
        assert cfg.default_limit == 50
        assert cfg.max_limit == 1_000

    def test_max_limit_ceiling(self) -> None:
        with pytest.raises(ValidationError):
            PaginationConfig(max_limit=1_001)

    def test_default_cannot_exceed_max(self) -> None:
        with pytest.raises(ValidationError):
            PaginationConfig(default_limit=100, max_limit=10)


class TestCompactionPolicy:
    def test_defaults(self) -> None:
        assert DEFAULT_POLICY == CompactionPolicy(
            threshold=0.8, preserve_recent_count=10, enabled=True
        )

    def test_resolve_none_returns_defaults(self) -> None:
        assert resolve_policy(None) == DEFAULT_POLICY

    def test_resolve_merges_partial_input(self) -> None:
        policy = resolve_policy({"threshold": 0.5})
        assert policy.threshold == 0.5
        assert policy.preserve_recent_count == 10
        assert policy.enabled is True

    def test_resolve_passes_through_instances(self) -> None:
        policy = CompactionPolicy(enabled=False)
        assert resolve_policy(policy) is policy

    @pytest.mark.parametrize(
        "overrides",
        [{"threshold": 1.5}, {"threshold": -0.1}, {"preserve_recent_count": -1}],
    )
    def test_resolve_rejects_out_of_range(self, overrides) -> None:
        with pytest.raises(ValidationError):
            resolve_policy(overrides)


class TestLedgerConfig:
    def test_default_has_all_sections(self) -> None:
        cfg = LedgerConfig.default()
        assert isinstance(cfg.store, StoreConfig)
        assert isinstance(cfg.pagination, PaginationConfig)
        assert isinstance(cfg.compaction, CompactionPolicy)
