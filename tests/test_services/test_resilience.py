"""Tests for CircuitBreaker."""

import asyncio

import pytest

from rwalens.services.resilience import CircuitBreaker, CircuitOpenError, CircuitState


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


async def _fail():
    raise RuntimeError("upstream down")


async def _ok():
    return "ok"


async def _hang():
    await asyncio.sleep(10)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock) -> CircuitBreaker:
    return CircuitBreaker("test", failure_threshold=3, window_seconds=60, recovery_timeout=30, clock=clock)


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_starts_closed(self, breaker):
        assert breaker.state == CircuitState.CLOSED
        assert await breaker.call(_ok) == "ok"

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, breaker):
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            await breaker.call(_ok)

    @pytest.mark.asyncio
    async def test_failures_outside_window_are_forgotten(self, breaker, clock):
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)
        clock.now += 120
        with pytest.raises(RuntimeError):
            await breaker.call(_fail)

        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_probe_success_closes(self, breaker, clock):
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)
        clock.now += 31

        assert breaker.state == CircuitState.HALF_OPEN
        assert await breaker.call(_ok) == "ok"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_probe_failure_reopens(self, breaker, clock):
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)
        clock.now += 31

        with pytest.raises(RuntimeError):
            await breaker.call(_fail)
        assert breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, breaker):
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)
        await breaker.call(_ok)
        with pytest.raises(RuntimeError):
            await breaker.call(_fail)

        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_timed_out_probe_reopens_and_allows_next_probe(self, breaker, clock):
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)
        clock.now += 31

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(breaker.call(_hang), 0.05)
        assert breaker.state == CircuitState.OPEN

        clock.now += 31
        assert breaker.state == CircuitState.HALF_OPEN
        assert await breaker.call(_ok) == "ok"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_cancelled_call_counts_as_failure(self, breaker):
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)

        task = asyncio.create_task(breaker.call(_hang))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert breaker.state == CircuitState.OPEN
