"""Context window selection."""

from contextledger.context.window import BudgetWindowSelector, is_valid_budget

__all__ = ["BudgetWindowSelector", "is_valid_budget"]
