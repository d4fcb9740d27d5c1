"""Token-budgeted trailing window over a context's ledger."""

from __future__ import annotations

import math

import aiosqlite
import structlog

from contextledger.models.message import Message
from contextledger.store.database import Database
from contextledger.store.errors import translate_database_error
from contextledger.store.ledger import LIVE_MESSAGES, row_to_message


def is_valid_budget(budget: object) -> bool:
    """A budget must be a finite real number strictly greater than zero."""
    if isinstance(budget, bool) or not isinstance(budget, (int, float)):
        return False
    # Ints are always finite and may be too large to convert to float.
    if isinstance(budget, int):
        return budget > 0
    return math.isfinite(budget) and budget > 0


class BudgetWindowSelector:
    """
    Selects the most recent messages that fit a token budget.

    Invariants:
    1. Messages are scanned newest-first and the window is a contiguous tail.
    2. A message whose tokens would push the running total *above* the budget
       ends the scan; landing exactly on the budget is allowed.
    3. The newest message is always included, even if it alone exceeds the
       budget, so a non-empty context never yields an empty window.
    4. Unknown token counts contribute 0.
    5. The result is returned oldest-first.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._logger = structlog.get_logger("contextledger.context.window")

    async def get_by_token_budget(self, context_id: str, budget: float) -> list[Message]:
        """
        Return the trailing window of ``context_id`` that fits ``budget`` tokens.

        An invalid budget (non-finite, NaN, zero or negative) returns ``[]``
        without reading storage. A missing, soft-deleted or empty context
        also returns ``[]``.
        """
        if not is_valid_budget(budget):
            self._logger.debug("window_invalid_budget", context_id=context_id, budget=budget)
            return []

        window: list[Message] = []
        tokens_used = 0
        try:
            async with self._db.reader().execute(
                f"{LIVE_MESSAGES} ORDER BY m.version DESC",
                (context_id,),
            ) as cursor:
                async for row in cursor:
                    msg = row_to_message(row)
                    msg_tokens = msg.effective_tokens
                    if window and tokens_used + msg_tokens > budget:
                        break
                    window.append(msg)
                    tokens_used += msg_tokens
        except aiosqlite.Error as exc:
            raise translate_database_error(exc) from exc

        window.reverse()
        self._logger.debug(
            "window_selected",
            context_id=context_id,
            budget=budget,
            messages=len(window),
            tokens=tokens_used,
        )
        return window
