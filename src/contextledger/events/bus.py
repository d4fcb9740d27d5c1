"""In-process pub/sub event bus for ledger lifecycle events."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping
from enum import StrEnum
from functools import partial
from typing import Any

import structlog

Handler = Callable[["LedgerEvent", Mapping[str, Any]], None | Awaitable[None]]


class LedgerEvent(StrEnum):
    """All event types published by ``ContextLedger``.

    Typed payload definitions live in :mod:`contextledger.events.payloads`.

    ``CONTEXT_CREATED``
        :class:`~contextledger.events.payloads.ContextCreatedPayload`

    ``CONTEXT_DELETED``
        :class:`~contextledger.events.payloads.ContextDeletedPayload`:
        published only when a soft delete actually tombstoned the context.

    ``MESSAGES_APPENDED``
        :class:`~contextledger.events.payloads.MessagesAppendedPayload`:
        published after the append transaction commits.
    """

    CONTEXT_CREATED = "context.created"
    CONTEXT_DELETED = "context.deleted"
    MESSAGES_APPENDED = "messages.appended"


class EventBus:
    """
    Delivers ledger events to subscribed handlers after the write commits.

    Sync handlers run inline. Async handlers run as tasks on the current
    loop. A handler that raises is logged and skipped, so a subscriber can
    never turn a committed write into a failed one.

    Example::

        bus = EventBus()
        bus.subscribe(
            LedgerEvent.MESSAGES_APPENDED,
            lambda event, payload: print(payload["count"], payload["last_version"]),
        )
    """

    def __init__(self) -> None:
        self._handlers: dict[LedgerEvent, list[Handler]] = {event: [] for event in LedgerEvent}
        self._tasks: set[asyncio.Task[None]] = set()
        self._logger = structlog.get_logger("contextledger.events")

    def subscribe(self, event: LedgerEvent, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def unsubscribe(self, event: LedgerEvent, handler: Handler) -> None:
        """Remove ``handler`` from ``event``. Unknown handlers are ignored."""
        if handler in self._handlers[event]:
            self._handlers[event].remove(handler)

    def publish(self, event: LedgerEvent, payload: Mapping[str, Any]) -> None:
        for handler in list(self._handlers[event]):
            try:
                result = handler(event, payload)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._tasks.add(task)
                    task.add_done_callback(partial(self._task_done, event, handler))
            except Exception as exc:
                self._log_failure(event, handler, exc)

    def _task_done(self, event: LedgerEvent, handler: Handler, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self._log_failure(event, handler, task.exception())

    def _log_failure(self, event: LedgerEvent, handler: Handler, exc: BaseException | None) -> None:
        self._logger.error(
            "event_handler_error",
            event=str(event),
            handler=getattr(handler, "__qualname__", repr(handler)),
            error=str(exc),
        )
