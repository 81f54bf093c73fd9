import asyncio

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.db_utils import is_transient_error, with_db_retry
from app.core.exceptions import NotFoundError, TransientStoreError


def locked():
    return OperationalError("UPDATE jars", {}, Exception("database is locked"))


class SerializationFailure(Exception):
    sqlstate = "40001"


def test_classifies_store_errors():
    assert is_transient_error(locked())
    assert is_transient_error(IntegrityError("INSERT", {}, SerializationFailure()))
    assert not is_transient_error(IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed")))
    assert not is_transient_error(NotFoundError("Jar with ID 1 not found"))
    assert not is_transient_error(ValueError("boom"))


@pytest.mark.asyncio
async def test_retries_until_success():
    calls = []

    @with_db_retry(max_retries=3, retry_delay=0)
    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise locked()
        return "ok"

    assert await flaky() == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_gives_up_with_transient_store_error():
    calls = []

    @with_db_retry(max_retries=2, retry_delay=0)
    async def always_locked():
        calls.append(1)
        raise locked()

    with pytest.raises(TransientStoreError) as excinfo:
        await always_locked()
    assert len(calls) == 3
    assert isinstance(excinfo.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_business_errors_are_not_retried():
    calls = []

    @with_db_retry(max_retries=3, retry_delay=0)
    async def missing():
        calls.append(1)
        raise NotFoundError("Jar with ID 9 not found")

    with pytest.raises(NotFoundError):
        await missing()
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_cancellation_is_not_retried():
    @with_db_retry(max_retries=3, retry_delay=0)
    async def slow():
        await asyncio.sleep(10)

    task = asyncio.create_task(slow())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
