"""Tests for the event emitter."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from driveup.utils.events import EventEmitter


@pytest.mark.asyncio
async def test_emit_calls_sync_and_async_listeners():
    events = EventEmitter()
    sync_listener = MagicMock()
    async_listener = AsyncMock()
    events.on("task_update", sync_listener)
    events.on("task_update", async_listener)

    await events.emit("task_update", 1, key="value")

    sync_listener.assert_called_once_with(1, key="value")
    async_listener.assert_awaited_once_with(1, key="value")


@pytest.mark.asyncio
async def test_listener_errors_are_contained():
    events = EventEmitter()
    after = MagicMock()
    events.on("task_done", MagicMock(side_effect=RuntimeError("boom")))
    events.on("task_done", after)

    await events.emit("task_done")

    after.assert_called_once_with()


@pytest.mark.asyncio
async def test_off_and_duplicates():
    events = EventEmitter()
    listener = MagicMock()
    events.on("finish", listener)
    events.on("finish", listener)
    assert events.listener_count("finish") == 1

    events.off("finish", listener)
    await events.emit("finish")
    listener.assert_not_called()
