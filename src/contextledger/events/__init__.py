"""Ledger event bus and typed payloads."""

from contextledger.events.bus import EventBus, Handler, LedgerEvent
from contextledger.events.payloads import (
    ContextCreatedPayload,
    ContextDeletedPayload,
    MessagesAppendedPayload,
)

__all__ = [
    "EventBus",
    "Handler",
    "LedgerEvent",
    "ContextCreatedPayload",
    "ContextDeletedPayload",
    "MessagesAppendedPayload",
]
