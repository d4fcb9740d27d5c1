"""Tests for BudgetWindowSelector."""

from __future__ import annotations

import math

import pytest

from contextledger.context.window import BudgetWindowSelector, is_valid_budget
from contextledger.models.config import StoreConfig
from contextledger.store.database import Database
from tests.conftest import make_inputs


class TestBudgetWindow:
    async def test_returns_trailing_messages_within_budget(self, ledger, window, context_id):
        """10, 20, 15, 25 with budget 40 keeps the last two, oldest first."""
        await ledger.append(context_id, make_inputs(10, 20, 15, 25))
        result = await window.get_by_token_budget(context_id, 40)
        assert [m.token_count for m in result] == [15, 25]
        assert [m.version for m in result] == [3, 4]

    async def test_single_oversized_message_is_returned(self, ledger, window, context_id):
        await ledger.append(context_id, make_inputs(100))
        result = await window.get_by_token_budget(context_id, 10)
        assert len(result) == 1
        assert result[0].token_count == 100

    async def test_newest_message_always_included(self, ledger, window, context_id):
        """Only the newest message is kept when it alone exceeds the budget."""
        await ledger.append(context_id, make_inputs(1, 1, 500))
        result = await window.get_by_token_budget(context_id, 0.5)
        assert [m.version for m in result] == [3]

    async def test_budget_boundary_is_inclusive(self, ledger, window, context_id):
        await ledger.append(context_id, make_inputs(10, 20, 15, 25))
        result = await window.get_by_token_budget(context_id, 60)
        assert [m.token_count for m in result] == [20, 15, 25]

    async def test_scan_stops_at_first_overflow(self, ledger, window, context_id):
        """An older small message is not pulled in past a larger one that overflowed."""
        await ledger.append(context_id, make_inputs(1, 50, 10))
        result = await window.get_by_token_budget(context_id, 20)
        assert [m.version for m in result] == [3]

    async def test_unknown_token_counts_count_as_zero(self, ledger, window, context_id):
        await ledger.append(context_id, make_inputs(30, None, None, 10))
        result = await window.get_by_token_budget(context_id, 10)
        assert [m.version for m in result] == [2, 3, 4]

    async def test_whole_ledger_fits(self, ledger, window, context_id):
        await ledger.append(context_id, make_inputs(1, 2, 3))
        result = await window.get_by_token_budget(context_id, 1_000)
        assert [m.version for m in result] == [1, 2, 3]

    async def test_huge_integer_budget(self, ledger, window, context_id):
        """An int too large for a float is still a valid, finite budget."""
        await ledger.append(context_id, make_inputs(3, 4))
        result = await window.get_by_token_budget(context_id, 10**400)
        assert [m.version for m in result] == [1, 2]

    async def test_fractional_budget(self, ledger, window, context_id):
        await ledger.append(context_id, make_inputs(5, 5))
        result = await window.get_by_token_budget(context_id, 9.5)
        assert [m.version for m in result] == [2]

    @pytest.mark.parametrize("budget", [math.nan, math.inf, -math.inf, 0, -1, True, "10", None])
    async def test_invalid_budget_returns_empty(self, ledger, window, context_id, budget):
        await ledger.append(context_id, make_inputs(1))
        assert await window.get_by_token_budget(context_id, budget) == []

    async def test_invalid_budget_never_touches_storage(self, tmp_path):
        """An uninitialized database would raise on any read."""
        selector = BudgetWindowSelector(Database(StoreConfig(db_path=str(tmp_path / "x.db"))))
        assert await selector.get_by_token_budget("ctx_any", math.nan) == []
        assert await selector.get_by_token_budget("ctx_any", math.inf) == []

    async def test_missing_context_returns_empty(self, window):
        assert await window.get_by_token_budget("ctx_nonexistent", 100) == []

    async def test_empty_context_returns_empty(self, window, context_id):
        assert await window.get_by_token_budget(context_id, 100) == []

    async def test_soft_deleted_context_returns_empty(
        self, contexts, ledger, window, context_id
    ):
        await ledger.append(context_id, make_inputs(1))
        await contexts.soft_delete(context_id)
        assert await window.get_by_token_budget(context_id, 100) == []


class TestIsValidBudget:
    def test_accepts_positive_finite_numbers(self):
        assert is_valid_budget(1)
        assert is_valid_budget(0.001)
        assert is_valid_budget(10**9)
        assert is_valid_budget(10**400)

    def test_rejects_everything_else(self):
        for value in (0, -3, math.nan, math.inf, True, False, "5", None):
            assert not is_valid_budget(value)
