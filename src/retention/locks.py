"""
Per-skill write serialization.

Decay adjustment and practice marks both read-modify-write the skill record;
every such write holds the skill's lock so concurrent submissions cannot
drop each other's update.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger


class SkillLockRegistry:
    """Registry of re-entrant locks keyed by skill id, created on demand."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def get(self, skill_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(skill_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[skill_id] = lock
            return lock

    @contextmanager
    def hold(self, skill_id: str) -> Iterator[None]:
        lock = self.get(skill_id)
        with lock:
            logger.debug(f"Acquired skill lock {skill_id}")
            yield

    def discard(self, skill_id: str) -> None:
        """Forget the lock of a deleted skill."""
        with self._guard:
            self._locks.pop(skill_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
