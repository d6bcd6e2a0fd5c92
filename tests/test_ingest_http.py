import asyncio

import pytest

from dynval.ingest import gather_all


async def test_gather_all_returns_results_in_order():
    async def value(v, delay):
        await asyncio.sleep(delay)
        return v

    assert await gather_all(value("a", 0.02), value("b", 0.0)) == ["a", "b"]


async def test_gather_all_cancels_pending_siblings():
    state = {"cancelled": False}

    async def boom():
        raise RuntimeError("boom")

    async def slow():
        try:
            await asyncio.sleep(1)
        except asyncio.CancelledError:
            state["cancelled"] = True
            raise

    with pytest.raises(RuntimeError, match="boom"):
        await gather_all(slow(), boom())

    assert state["cancelled"] is True
