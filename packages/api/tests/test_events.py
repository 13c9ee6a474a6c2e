# This project was developed with assistance from AI tools.
"""Tests for domain event dispatch."""

import logging
from unittest.mock import AsyncMock

import pytest

from lead_engine.services.events import (
    DomainEvent,
    EventType,
    LoggingDispatcher,
    emit,
    get_dispatcher,
    set_dispatcher,
)


def _event() -> DomainEvent:
    return DomainEvent(
        event_type=EventType.STATUS_CHANGED,
        lead_id="lead-1",
        actor_id="admin-1",
        payload={"new_status": "first_contact"},
    )


@pytest.fixture
def restore_dispatcher():
    original = get_dispatcher()
    yield
    set_dispatcher(original)


async def test_emit_uses_given_dispatcher():
    dispatcher = AsyncMock()
    await emit(_event(), dispatcher)
    dispatcher.dispatch.assert_awaited_once()


async def test_emit_swallows_dispatcher_failure(caplog):
    dispatcher = AsyncMock()
    dispatcher.dispatch.side_effect = RuntimeError("smtp down")

    with caplog.at_level(logging.ERROR):
        await emit(_event(), dispatcher)

    assert "Event dispatch failed" in caplog.text


async def test_set_dispatcher_swaps_default(restore_dispatcher):
    dispatcher = AsyncMock()
    set_dispatcher(dispatcher)
    await emit(_event())
    dispatcher.dispatch.assert_awaited_once()


async def test_logging_dispatcher_logs(caplog):
    with caplog.at_level(logging.INFO, logger="lead_engine.services.events"):
        await LoggingDispatcher().dispatch(_event())
    assert "status_changed" in caplog.text
