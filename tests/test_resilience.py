"""Tests for supervised tasks and handler invocation."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from udpnode.resilience import call_handler, supervised_task


# ---------------------------------------------------------------------------
# supervised_task
# ---------------------------------------------------------------------------

class TestSupervisedTask:
    @pytest.mark.asyncio
    async def test_normal_completion(self):
        async def good():
            return 42

        task = supervised_task(good(), name="test-good")
        assert await task == 42
        assert task.get_name() == "test-good"

    @pytest.mark.asyncio
    async def test_exception_logged(self):
        async def bad():
            raise RuntimeError("oops")

        task = supervised_task(bad(), name="test-bad")
        with pytest.raises(RuntimeError):
            await task

    @pytest.mark.asyncio
    async def test_cancelled_no_error(self):
        async def slow():
            await asyncio.sleep(100)

        task = supervised_task(slow(), name="test-cancel")
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


# ---------------------------------------------------------------------------
# call_handler
# ---------------------------------------------------------------------------

class TestCallHandler:
    @pytest.mark.asyncio
    async def test_sync_handler(self):
        handler = MagicMock()
        assert await call_handler(handler, 1, 2) is True
        handler.assert_called_once_with(1, 2)

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self):
        handler = AsyncMock()
        assert await call_handler(handler, "x") is True
        handler.assert_awaited_once_with("x")

    @pytest.mark.asyncio
    async def test_raising_handler_returns_false(self):
        handler = MagicMock(side_effect=ValueError("bad"))
        assert await call_handler(handler, label="test handler") is False

    @pytest.mark.asyncio
    async def test_raising_async_handler_returns_false(self):
        handler = AsyncMock(side_effect=ValueError("bad"))
        assert await call_handler(handler) is False

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        handler = AsyncMock(side_effect=asyncio.CancelledError())
        with pytest.raises(asyncio.CancelledError):
            await call_handler(handler)
