import asyncio

import pytest

from promptsmith.pipeline.singleflight import SingleFlight


def test_concurrent_callers_share_one_computation() -> None:
    calls = []

    async def compute() -> str:
        calls.append(1)
        await asyncio.sleep(0.01)
        return "done"

    async def scenario() -> list[tuple[str, bool]]:
        flight: SingleFlight[str] = SingleFlight()
        results = await asyncio.gather(*(flight.do("key", compute) for _ in range(5)))
        assert len(flight) == 0
        return results

    results = asyncio.run(scenario())

    assert len(calls) == 1
    assert [value for value, _ in results] == ["done"] * 5
    assert sum(1 for _, shared in results if not shared) == 1


def test_distinct_keys_run_independently() -> None:
    calls = []

    async def compute() -> int:
        calls.append(1)
        await asyncio.sleep(0)
        return len(calls)

    async def scenario() -> None:
        flight: SingleFlight[int] = SingleFlight()
        await asyncio.gather(flight.do("a", compute), flight.do("b", compute))

    asyncio.run(scenario())
    assert len(calls) == 2


def test_failure_reaches_every_waiter_and_releases_key() -> None:
    async def fail() -> str:
        await asyncio.sleep(0.01)
        raise ValueError("boom")

    async def ok() -> str:
        return "recovered"

    async def scenario() -> None:
        flight: SingleFlight[str] = SingleFlight()
        results = await asyncio.gather(flight.do("k", fail), flight.do("k", fail), return_exceptions=True)
        assert all(isinstance(result, ValueError) for result in results)
        assert await flight.do("k", ok) == ("recovered", False)

    asyncio.run(scenario())


def test_sequential_calls_do_not_share() -> None:
    async def compute() -> int:
        return 1

    async def scenario() -> None:
        flight: SingleFlight[int] = SingleFlight()
        assert await flight.do("k", compute) == (1, False)
        assert await flight.do("k", compute) == (1, False)

    asyncio.run(scenario())


def test_leader_error_propagates() -> None:
    async def fail() -> int:
        raise KeyError("x")

    with pytest.raises(KeyError):
        asyncio.run(SingleFlight().do("k", fail))
