import asyncio

import pytest

from app.core.locks import KeyedMutex, _sort_key, coins_key, gacha_key
from app.core.transaction import TransactionManager
from app.models.player import Player


async def test_same_key_is_serialized():
    mutex = KeyedMutex()
    events: list[str] = []

    async def worker(name: str) -> None:
        async with mutex.hold("coins_1"):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a-start", "a-end", "b-start", "b-end"],
        ["b-start", "b-end", "a-start", "a-end"],
    )
    assert len(mutex) == 0


async def test_different_keys_run_concurrently():
    mutex = KeyedMutex()
    inside = asyncio.Event()

    async def holder() -> None:
        async with mutex.hold("coins_1"):
            await inside.wait()

    task = asyncio.create_task(holder())
    await asyncio.sleep(0)
    async with mutex.hold("coins_2"):
        assert mutex.locked("coins_1")
        inside.set()
    await task


async def test_lock_released_on_failure():
    mutex = KeyedMutex()

    with pytest.raises(RuntimeError):
        async with mutex.hold("gacha_1", "coins_1"):
            raise RuntimeError("boom")

    assert not mutex.locked("gacha_1")
    assert not mutex.locked("coins_1")
    assert len(mutex) == 0


async def test_opposite_key_order_does_not_deadlock():
    mutex = KeyedMutex()

    async def transfer(*keys: str) -> None:
        async with mutex.hold(*keys):
            await asyncio.sleep(0.01)

    await asyncio.wait_for(
        asyncio.gather(
            transfer(coins_key(9), coins_key(10)), transfer(coins_key(10), coins_key(9))
        ),
        timeout=1,
    )


def test_numeric_suffixes_sort_as_numbers():
    keys = [coins_key(10), coins_key(9), gacha_key(1)]
    assert sorted(keys, key=_sort_key) == ["coins_9", "coins_10", "gacha_1"]


async def test_commit_on_success(txn: TransactionManager, load_player):
    async def operation(session) -> int:
        session.add(Player(id=7, name="levi", coins=10))
        return 7

    assert await txn.with_lock(coins_key(7), operation) == 7
    assert (await load_player(7)).coins == 10


async def test_rollback_on_failure(txn: TransactionManager, session_factory):
    async def operation(session) -> None:
        session.add(Player(id=8, name="hange"))
        await session.flush()
        raise RuntimeError("storage hiccup")

    with pytest.raises(RuntimeError):
        await txn.with_lock(coins_key(8), operation)

    async with session_factory() as session:
        assert await session.get(Player, 8) is None
    assert not txn.mutex.locked(coins_key(8))


async def test_reads_see_previous_holder_writes(txn: TransactionManager, make_player, load_player):
    await make_player(1, coins=0)

    async def increment(session) -> None:
        player = await session.get(Player, 1)
        coins = player.coins
        await asyncio.sleep(0)
        player.coins = coins + 1
        session.add(player)

    await asyncio.gather(*(txn.with_lock(coins_key(1), increment) for _ in range(20)))

    assert (await load_player(1)).coins == 20


async def test_cancelled_caller_does_not_abort_transaction(txn: TransactionManager, load_player):
    release = asyncio.Event()

    async def slow(session) -> None:
        await release.wait()
        session.add(Player(id=9, name="erwin", coins=99))

    with pytest.raises(TimeoutError):
        await asyncio.wait_for(txn.with_lock(coins_key(9), slow), timeout=0.05)

    assert txn.inflight == 1
    assert txn.mutex.locked(coins_key(9))

    release.set()
    await txn.drain()

    assert txn.inflight == 0
    assert not txn.mutex.locked(coins_key(9))
    assert (await load_player(9)).coins == 99
