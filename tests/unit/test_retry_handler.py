"""Unit tests for retry_handler.

Sleep is injected so no test waits on real time.
"""

import pytest

from variant_scout.errors import ExhaustedRetries, ValidationError
from variant_scout.utils.retry_handler import backoff_delay, retry_with_backoff


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.unit
@pytest.mark.parametrize(
    "attempt,base,cap,expected",
    [(1, 4.0, 60.0, 4.0), (2, 4.0, 60.0, 8.0), (3, 4.0, 60.0, 12.0), (20, 4.0, 60.0, 60.0)],
)
def test_backoff_delay(attempt: int, base: float, cap: float, expected: float):
    """Delay grows linearly with the attempt number and is capped."""
    assert backoff_delay(attempt, base, cap) == expected


@pytest.mark.unit
@pytest.mark.asyncio
async def test_retry_succeeds_on_first_attempt():
    """Should return result immediately if function succeeds on first try."""
    sleep = RecordingSleep()
    call_count = 0

    async def successful_func():
        nonlocal call_count
        call_count += 1
        return "success"

    result = await retry_with_backoff(successful_func, max_attempts=3, sleep=sleep)

    assert result == "success"
    assert call_count == 1
    assert sleep.delays == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_retry_succeeds_after_failures():
    """Should retry with 4s then 8s waits and eventually succeed."""
    sleep = RecordingSleep()
    call_count = 0

    async def eventually_successful():
        nonlocal call_count
        call_count += 1
        if call_count < 3:
            raise RuntimeError("Not yet")
        return "success"

    result = await retry_with_backoff(eventually_successful, max_attempts=3, sleep=sleep)

    assert result == "success"
    assert call_count == 3
    assert sleep.delays == [4.0, 8.0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_retry_exhausts_and_raises():
    """Should raise ExhaustedRetries carrying the last error after all attempts."""
    sleep = RecordingSleep()
    call_count = 0

    async def always_fails():
        nonlocal call_count
        call_count += 1
        raise RuntimeError(f"Attempt {call_count}")

    with pytest.raises(ExhaustedRetries, match="All 3 attempts failed: Attempt 3") as exc_info:
        await retry_with_backoff(always_fails, max_attempts=3, sleep=sleep)

    assert call_count == 3
    assert exc_info.value.attempts == 3
    assert str(exc_info.value.last_error) == "Attempt 3"
    assert exc_info.value.__cause__ is exc_info.value.last_error
    assert sleep.delays == [4.0, 8.0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_give_up_on_is_not_retried():
    """Listed exception types propagate on the first failure."""
    sleep = RecordingSleep()
    call_count = 0

    async def invalid():
        nonlocal call_count
        call_count += 1
        raise ValidationError("URL required")

    with pytest.raises(ValidationError, match="URL required"):
        await retry_with_backoff(
            invalid, max_attempts=3, give_up_on=(ValidationError,), sleep=sleep
        )

    assert call_count == 1
    assert sleep.delays == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_on_failure_receives_attempt_and_final_flag():
    """The failure hook sees every failed attempt and which one was last."""
    calls = []

    async def always_fails():
        raise RuntimeError("boom")

    async def on_failure(error: Exception, attempt: int, final: bool) -> None:
        calls.append((str(error), attempt, final))

    with pytest.raises(ExhaustedRetries):
        await retry_with_backoff(
            always_fails, max_attempts=3, on_failure=on_failure, sleep=RecordingSleep()
        )

    assert calls == [("boom", 1, False), ("boom", 2, False), ("boom", 3, True)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_max_delay_caps_wait():
    """Waits never exceed max_delay."""
    sleep = RecordingSleep()

    async def always_fails():
        raise RuntimeError("boom")

    with pytest.raises(ExhaustedRetries):
        await retry_with_backoff(
            always_fails, max_attempts=4, base_delay=10.0, max_delay=15.0, sleep=sleep
        )

    assert sleep.delays == [10.0, 15.0, 15.0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_attempt_budget():
    """At least one attempt is required."""

    async def never_called():
        raise AssertionError("should not run")

    with pytest.raises(ValueError, match="max_attempts"):
        await retry_with_backoff(never_called, max_attempts=0)
