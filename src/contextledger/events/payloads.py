"""Typed payload definitions for each LedgerEvent.

Usage example::

    from contextledger.events.bus import EventBus, LedgerEvent
    from contextledger.events.payloads import MessagesAppendedPayload

    def on_append(event: LedgerEvent, payload: MessagesAppendedPayload) -> None:
        print(f"v{payload['first_version']}..v{payload['last_version']}")

    bus.subscribe(LedgerEvent.MESSAGES_APPENDED, on_append)  # type: ignore[arg-type]
"""

from __future__ import annotations

from typing import TypedDict


class ContextCreatedPayload(TypedDict):
    """Payload for :attr:`LedgerEvent.CONTEXT_CREATED`."""

    context_id: str
    name: str | None


class ContextDeletedPayload(TypedDict):
    """Payload for :attr:`LedgerEvent.CONTEXT_DELETED`."""

    context_id: str
    deleted_at: int
    """Unix millisecond timestamp of the tombstone."""


class MessagesAppendedPayload(TypedDict):
    """Payload for :attr:`LedgerEvent.MESSAGES_APPENDED`."""

    context_id: str
    count: int
    first_version: int
    last_version: int
    tokens: int
    """Sum of known token counts in the batch."""
