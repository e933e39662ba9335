"""Per-user advisory locks for the index."""

import asyncio

MAX_IDLE_LOCKS = 1024


class UserLockRegistry:
    """Hands out one asyncio.Lock per user.

    Writers (sync) hold the lock while storing a file's chunks, readers
    (search, clustering) while scanning a user's index. Different users never
    contend. Once max_idle_locks users are tracked, locks nobody holds or
    waits for are discarded before a new one is created.
    """

    def __init__(self, max_idle_locks: int = MAX_IDLE_LOCKS) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._max_idle_locks = max_idle_locks

    def get_lock(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            if len(self._locks) >= self._max_idle_locks:
                self._prune_idle()
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def _prune_idle(self) -> None:
        # a waited-on lock is always locked, so only unused locks go
        idle = [user_id for user_id, lock in self._locks.items() if not lock.locked()]
        for user_id in idle:
            del self._locks[user_id]
