"""
Unit tests for retry with exponential backoff.
"""
import pytest

from studyforge.services.retry import RetryConfig, retry_with_backoff

CONFIG = RetryConfig(max_attempts=3, delay_seconds=1.0, backoff_multiplier=2)


class Flaky:
    """Fails a fixed number of times, then returns a value."""

    def __init__(self, failures, result="ok"):
        self.failures = failures
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        return self.result


def test_success_on_first_attempt_does_not_sleep():
    sleeps = []
    fn = Flaky(failures=0)
    assert retry_with_backoff(fn, CONFIG, sleep=sleeps.append) == "ok"
    assert fn.calls == 1
    assert sleeps == []


def test_fails_twice_then_succeeds():
    sleeps = []
    fn = Flaky(failures=2)
    assert retry_with_backoff(fn, CONFIG, sleep=sleeps.append) == "ok"
    assert fn.calls == 3
    assert sleeps == [1.0, 2.0]


def test_always_failing_raises_last_error():
    sleeps = []
    fn = Flaky(failures=10)
    with pytest.raises(RuntimeError, match="failure 3"):
        retry_with_backoff(fn, CONFIG, sleep=sleeps.append)
    assert fn.calls == 3
    # No sleep after the final attempt
    assert sleeps == [1.0, 2.0]


def test_single_attempt_never_sleeps():
    sleeps = []
    fn = Flaky(failures=1)
    with pytest.raises(RuntimeError):
        retry_with_backoff(fn, RetryConfig(max_attempts=1, delay_seconds=1.0), sleep=sleeps.append)
    assert fn.calls == 1
    assert sleeps == []


def test_invalid_max_attempts():
    with pytest.raises(ValueError):
        retry_with_backoff(lambda: None, RetryConfig(max_attempts=0), sleep=lambda s: None)


def test_delay_schedule():
    config = RetryConfig(max_attempts=5, delay_seconds=0.5, backoff_multiplier=3)
    assert [config.delay_for(a) for a in range(4)] == [0.5, 1.5, 4.5, 13.5]
