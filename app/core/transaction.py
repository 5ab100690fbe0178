import asyncio
from collections.abc import Awaitable, Callable, Sequence

from loguru import logger
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.locks import KeyedMutex

type Operation[T] = Callable[[AsyncSession], Awaitable[T]]


class TransactionManager:
    """Runs read-modify-write operations under per-key locks inside one DB transaction.

    The operation gets a fresh session, so every read inside the critical section sees the
    state left by the previous holder. It commits when the operation returns and rolls back
    when it raises. The critical section runs in its own task, so a caller that is cancelled
    or times out does not abort it and the keys are released once it finishes.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        mutex: KeyedMutex | None = None,
        *,
        supports_atomic_batches: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self.mutex = mutex or KeyedMutex()
        self.supports_atomic_batches = supports_atomic_batches
        """False when the store cannot roll back a multi-row batch as one unit"""
        self._inflight: set[asyncio.Task] = set()
        self._abandoned: set[asyncio.Task] = set()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def with_lock[T](self, keys: str | Sequence[str], operation: Operation[T]) -> T:
        lock_keys = (keys,) if isinstance(keys, str) else tuple(keys)
        task = asyncio.create_task(self._run_locked(lock_keys, operation))
        self._inflight.add(task)
        task.add_done_callback(self._on_done)

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.done():
                self._abandoned.add(task)
                logger.warning(
                    f"Caller gave up on transaction {lock_keys}, letting it finish in background"
                )
            raise

    async def _run_locked[T](self, keys: tuple[str, ...], operation: Operation[T]) -> T:
        async with self.mutex.hold(*keys), self._session_factory() as session:
            try:
                result = await operation(session)
                await session.commit()
            except BaseException:
                await session.rollback()
                raise
            return result

    def _on_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        abandoned = task in self._abandoned
        self._abandoned.discard(task)

        if task.cancelled():
            return
        error = task.exception()
        if error is not None and abandoned:
            logger.opt(exception=error).error("Background transaction failed after caller left")

    async def drain(self) -> None:
        """Wait for every in-flight transaction, used on shutdown."""
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
