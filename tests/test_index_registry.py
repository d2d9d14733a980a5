"""
Tests for the build-once registry.
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from mongo_repository.database.index_registry import IndexBuildRegistry


@pytest.mark.asyncio
async def test_build_runs_once_per_key():
    registry = IndexBuildRegistry()
    build = AsyncMock()

    assert await registry.get_or_build("Orders@Shop", build) is True
    assert await registry.get_or_build("Orders@Shop", build) is False
    assert await registry.get_or_build("Items@Shop", build) is True

    assert build.await_count == 2
    assert registry.is_built("Orders@Shop")


@pytest.mark.asyncio
async def test_concurrent_first_callers_build_at_least_once():
    registry = IndexBuildRegistry()
    calls = []

    async def build():
        calls.append(1)
        await asyncio.sleep(0)

    await asyncio.gather(*(registry.get_or_build("Orders@Shop", build) for _ in range(10)))

    assert len(calls) >= 1
    assert registry.is_built("Orders@Shop")
    assert await registry.get_or_build("Orders@Shop", build) is False


@pytest.mark.asyncio
async def test_reset_makes_next_call_build_again():
    registry = IndexBuildRegistry()
    build = AsyncMock()
    await registry.get_or_build("Orders@Shop", build)

    registry.reset()

    assert not registry.is_built("Orders@Shop")
    assert await registry.get_or_build("Orders@Shop", build) is True
    assert build.await_count == 2


@pytest.mark.asyncio
async def test_failed_build_is_not_recorded():
    registry = IndexBuildRegistry()
    failing = AsyncMock(side_effect=RuntimeError("not primary"))

    with pytest.raises(RuntimeError):
        await registry.get_or_build("Orders@Shop", failing)

    assert not registry.is_built("Orders@Shop")
    succeeding = AsyncMock()
    assert await registry.get_or_build("Orders@Shop", succeeding) is True
    succeeding.assert_awaited_once()
