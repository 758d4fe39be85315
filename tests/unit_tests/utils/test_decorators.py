import pytest

from portal_api.errors import InvalidInput, StorageUnavailable
from portal_api.utils.decorators import async_log_execution_time, async_retry, retry


def test_retry_backs_off_with_a_cap(no_sleep):
    calls = []

    @retry(max_attempts=5, delay=0.3, backoff=2.0, max_delay=1.0, exceptions=(StorageUnavailable,))
    def flaky():
        calls.append(1)
        if len(calls) < 5:
            raise StorageUnavailable("try again")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 5
    assert no_sleep == pytest.approx([0.3, 0.6, 1.0, 1.0])


def test_retry_gives_up_after_max_attempts(no_sleep):
    calls = []

    @retry(max_attempts=3, delay=0.1, exceptions=(StorageUnavailable,))
    def always_down():
        calls.append(1)
        raise StorageUnavailable("down")

    with pytest.raises(StorageUnavailable):
        always_down()
    assert len(calls) == 3
    assert len(no_sleep) == 2


async def test_async_retry_does_not_retry_other_errors(no_sleep):
    calls = []

    @async_retry(max_attempts=5, delay=0.3, exceptions=(StorageUnavailable,))
    async def bad_input():
        calls.append(1)
        raise InvalidInput("bad")

    with pytest.raises(InvalidInput):
        await bad_input()
    assert len(calls) == 1
    assert no_sleep == []


async def test_async_retry_recovers(no_sleep):
    calls = []

    @async_retry(max_attempts=5, delay=0.3, backoff=2.0, max_delay=5.0, exceptions=(StorageUnavailable,))
    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise StorageUnavailable("try again")
        return len(calls)

    assert await flaky() == 3
    assert no_sleep == pytest.approx([0.3, 0.6])


async def test_async_log_execution_time_logs_and_reraises(caplog):
    @async_log_execution_time
    async def boom():
        raise InvalidInput("nope")

    with caplog.at_level("ERROR", logger="portal_api.utils.decorators"):
        with pytest.raises(InvalidInput):
            await boom()
    assert "boom failed after" in caplog.text
