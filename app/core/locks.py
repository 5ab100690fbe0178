import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from loguru import logger


def coins_key(player_id: int) -> str:
    return f"coins_{player_id}"


def bank_key(player_id: int) -> str:
    return f"bank_{player_id}"


def gacha_key(player_id: int) -> str:
    return f"gacha_{player_id}"


def equip_key(player_id: int) -> str:
    return f"equip_{player_id}"


def arena_key(player_id: int) -> str:
    return f"arena_{player_id}"


def _sort_key(key: str) -> tuple[str, int]:
    # Numeric suffixes compare as numbers so coins_9 sorts before coins_10
    prefix, _, suffix = key.rpartition("_")
    if suffix.isdigit():
        return prefix, int(suffix)
    return key, -1


class KeyedMutex:
    """Process-wide registry of asyncio locks, one per resource key.

    Entries live only while someone holds or waits for them.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    async def _acquire(self, key: str) -> None:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._forget(key)
            raise
        logger.debug(f"Lock acquired: {key}")

    def _release(self, key: str) -> None:
        self._locks[key].release()
        self._forget(key)
        logger.debug(f"Lock released: {key}")

    def _forget(self, key: str) -> None:
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncGenerator[None]:
        """Hold every given key for the duration of the block.

        Keys are acquired in a deterministic order so two callers locking the same pair
        can never deadlock each other.
        """
        ordered = sorted(set(keys), key=_sort_key)
        acquired: list[str] = []
        try:
            for key in ordered:
                await self._acquire(key)
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._release(key)
