"""Tests for the per-user lock registry."""

import asyncio

from shared.helper.UserLockRegistry import UserLockRegistry


def test_same_user_gets_same_lock():
    registry = UserLockRegistry()

    assert registry.get_lock("user-1") is registry.get_lock("user-1")
    assert registry.get_lock("user-1") is not registry.get_lock("user-2")


def test_idle_locks_are_pruned_when_full():
    """Held locks survive pruning, unused ones are dropped."""
    registry = UserLockRegistry(max_idle_locks=2)

    async def run():
        async with registry.get_lock("a"):
            registry.get_lock("b")
            registry.get_lock("c")
            return set(registry._locks)

    assert asyncio.run(run()) == {"a", "c"}
