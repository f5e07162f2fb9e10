"""
In-memory storage collaborator.

Dict-backed; records are deep-copied on the way in and out so callers never
share mutable state with the store. Inside ``transaction()`` every write first
records the previous value of the key it touches; a failed transaction replays
that undo log in reverse.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any

from loguru import logger

from src.db.storage import TrackerStorage
from src.retention.models import QuickTest, Skill, SkillUpdate, TestCompletion, utc_now

_MISSING = object()


class InMemoryStorage(TrackerStorage):
    def __init__(self, clock=utc_now):
        self._clock = clock
        self._lock = threading.RLock()
        self._skills: dict[str, Skill] = {}
        self._tests: dict[str, QuickTest] = {}
        self._undo: list[tuple[dict[str, Any], str, Any]] | None = None

    # ---------------------------------------------------------------- skills

    def create_skill(self, skill: Skill) -> Skill:
        with self._lock:
            self._remember(self._skills, skill.id)
            self._skills[skill.id] = copy.deepcopy(skill)
            return copy.deepcopy(skill)

    def find_skill_by_id(self, skill_id: str) -> Skill | None:
        with self._lock:
            skill = self._skills.get(skill_id)
            return copy.deepcopy(skill) if skill else None

    def find_skills_by_user_id(self, user_id: str) -> list[Skill]:
        with self._lock:
            return [copy.deepcopy(s) for s in self._skills.values() if s.owner_id == user_id]

    def update_skill(self, skill_id: str, update: SkillUpdate) -> Skill | None:
        with self._lock:
            skill = self._skills.get(skill_id)
            if skill is None:
                return None
            updated = replace(skill, **update.changes(), updated_at=self._now())
            self._remember(self._skills, skill_id)
            self._skills[skill_id] = updated
            return copy.deepcopy(updated)

    def delete_skill(self, skill_id: str) -> bool:
        with self._lock:
            self._remember(self._skills, skill_id)
            return self._skills.pop(skill_id, None) is not None

    # ----------------------------------------------------------------- tests

    def create_test(self, test: QuickTest) -> QuickTest:
        with self._lock:
            self._remember(self._tests, test.id)
            self._tests[test.id] = copy.deepcopy(test)
            return copy.deepcopy(test)

    def find_test_by_id(self, test_id: str) -> QuickTest | None:
        with self._lock:
            test = self._tests.get(test_id)
            return copy.deepcopy(test) if test else None

    def update_test(self, test_id: str, completion: TestCompletion) -> QuickTest | None:
        with self._lock:
            test = self._tests.get(test_id)
            if test is None:
                return None
            updated = replace(test, **completion.changes())
            self._remember(self._tests, test_id)
            self._tests[test_id] = updated
            return copy.deepcopy(updated)

    def find_tests_by_skill_id(self, skill_id: str) -> list[QuickTest]:
        with self._lock:
            return [copy.deepcopy(t) for t in self._tests.values() if t.skill_id == skill_id]

    def find_tests_by_user_id(self, user_id: str) -> list[QuickTest]:
        with self._lock:
            return [copy.deepcopy(t) for t in self._tests.values() if t.owner_id == user_id]

    def delete_tests_by_skill_id(self, skill_id: str) -> int:
        with self._lock:
            doomed = [tid for tid, t in self._tests.items() if t.skill_id == skill_id]
            for tid in doomed:
                self._remember(self._tests, tid)
                del self._tests[tid]
            return len(doomed)

    # ---------------------------------------------------------- transactions

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._undo is not None:
                # Nested: the outermost transaction owns the undo log
                yield
                return
            self._undo = []
            try:
                yield
            except Exception:  # Intentionally broad - undo every write on any error before re-raising
                self._rollback()
                raise
            finally:
                self._undo = None

    def _remember(self, table: dict[str, Any], key: str) -> None:
        # Stored records are replaced, never mutated, so keeping the reference is enough
        if self._undo is not None:
            self._undo.append((table, key, table.get(key, _MISSING)))

    def _rollback(self) -> None:
        undo = self._undo or []
        for table, key, previous in reversed(undo):
            if previous is _MISSING:
                table.pop(key, None)
            else:
                table[key] = previous
        logger.warning(f"In-memory transaction rolled back ({len(undo)} writes undone)")

    def _now(self) -> datetime:
        return self._clock()
