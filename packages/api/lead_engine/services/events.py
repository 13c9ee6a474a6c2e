# This project was developed with assistance from AI tools.
"""Fire-and-forget domain events.

Dispatch failures are logged and never change the outcome of the operation
that raised the event.
"""

import enum
import logging
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    STATUS_CHANGED = "status_changed"
    LENDER_ACCEPTED = "lender_accepted"
    LENDER_DEFERRED = "lender_deferred"


class DomainEvent(BaseModel):
    event_type: EventType
    lead_id: str
    actor_id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class EventDispatcher(Protocol):
    async def dispatch(self, event: DomainEvent) -> None: ...


class LoggingDispatcher:
    """Default dispatcher: writes each event to the application log."""

    async def dispatch(self, event: DomainEvent) -> None:
        logger.info(
            "Event %s lead=%s actor=%s payload=%s",
            event.event_type.value,
            event.lead_id,
            event.actor_id,
            event.payload,
        )


_dispatcher: EventDispatcher = LoggingDispatcher()


def get_dispatcher() -> EventDispatcher:
    return _dispatcher


def set_dispatcher(dispatcher: EventDispatcher) -> None:
    """Swap the process-wide dispatcher (notification service, tests)."""
    global _dispatcher  # noqa: PLW0603
    _dispatcher = dispatcher


async def emit(event: DomainEvent, dispatcher: EventDispatcher | None = None) -> None:
    """Dispatch an event, swallowing and logging any dispatcher failure."""
    target = dispatcher or _dispatcher
    try:
        await target.dispatch(event)
    except Exception:
        logger.exception(
            "Event dispatch failed: %s lead=%s", event.event_type.value, event.lead_id
        )
