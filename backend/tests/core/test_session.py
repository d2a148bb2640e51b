"""Session tests — keyed access, argument checks, scoped locking and activity clock.

Tests cover:
    - get/set/delete semantics and None-key rejection
    - with_lock with plain and coroutine functions
    - Concurrent read-modify-write through with_lock never loses an update
    - touch/is_idle against an injected clock
"""

import asyncio

import pytest

from session_cache.core.errors import ArgumentError
from session_cache.core.session import Session


class Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


# --- Keyed access -------------------------------------------------------------

async def test_set_then_get():
    session = Session("s1")
    await session.set("up", "tralala")
    assert await session.get("up") == "tralala"


async def test_get_missing_returns_default():
    session = Session("s1")
    assert await session.get("missing") is None
    assert await session.get("missing", 7) == 7


async def test_non_string_keys_supported():
    session = Session("s1")
    await session.set(12, 12)
    await session.set(("a", 1), "tuple")
    assert await session.get(12) == 12
    assert await session.get(("a", 1)) == "tuple"


async def test_delete_removes_key_and_ignores_absent():
    session = Session("s1", {"k": 1})
    await session.delete("k")
    await session.delete("k")
    assert await session.snapshot() == {}


@pytest.mark.parametrize("call", [
    lambda s: s.get(None),
    lambda s: s.set(None, 1),
    lambda s: s.delete(None),
])
async def test_none_key_is_argument_error(call):
    session = Session("s1")
    with pytest.raises(ArgumentError) as exc_info:
        await call(session)
    assert exc_info.value.context.session_id == "s1"
    assert exc_info.value.http_status == 400


async def test_snapshot_is_a_copy():
    session = Session("s1", {"k": 1})
    snap = await session.snapshot()
    snap["k"] = 2
    assert await session.get("k") == 1


# --- Scoped locking -----------------------------------------------------------

async def test_with_lock_plain_function_result():
    session = Session("s1", {"n": 1})
    result = await session.with_lock(lambda data, by: data.update(n=data["n"] + by) or data["n"], 4)
    assert result == 5
    assert await session.get("n") == 5


async def test_with_lock_coroutine_function():
    session = Session("s1")

    async def fill(data, key, value):
        await asyncio.sleep(0)
        data[key] = value
        return "done"

    assert await session.with_lock(fill, "k", "v") == "done"
    assert await session.get("k") == "v"


async def test_with_lock_propagates_errors_and_releases_lock():
    session = Session("s1")

    def boom(data):
        raise ValueError("nope")

    with pytest.raises(ValueError):
        await session.with_lock(boom)
    await asyncio.wait_for(session.set("after", 1), timeout=1)


async def test_concurrent_increments_are_atomic():
    session = Session("827364g3656g")
    workers, rounds = 100, 200

    async def increment(data):
        current = data.get("store", 0)
        # Yield inside the critical section so other workers get scheduled
        await asyncio.sleep(0)
        data["store"] = current + 1

    async def worker():
        for _ in range(rounds):
            await session.with_lock(increment)

    await asyncio.gather(*(worker() for _ in range(workers)))

    assert await session.get("store") == workers * rounds


async def test_get_and_set_wait_for_with_lock():
    session = Session("s1", {"n": 0})
    entered = asyncio.Event()
    release = asyncio.Event()

    async def hold(data):
        entered.set()
        await release.wait()
        data["n"] = 1

    holder = asyncio.create_task(session.with_lock(hold))
    await entered.wait()
    reader = asyncio.create_task(session.get("n"))
    await asyncio.sleep(0)
    assert not reader.done()

    release.set()
    await holder
    assert await reader == 1


# --- Activity clock -----------------------------------------------------------

async def test_new_session_is_active_now():
    clock = Clock()
    session = Session("s1", clock=clock)
    assert await session.last_active() == 1000.0


async def test_touch_refreshes_last_active():
    clock = Clock()
    session = Session("s1", clock=clock)
    clock.now = 1500.0
    await session.touch()
    assert await session.last_active() == 1500.0


async def test_is_idle_is_strict():
    session = Session("s1", last_active=940.0)
    assert await session.is_idle(941.0)
    assert not await session.is_idle(940.0)
