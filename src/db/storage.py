"""
Storage contract consumed by the retention engine.

All lookups are keyed by identifier and return None on a miss. Listings come
back in insertion order. Writes performed inside ``transaction()`` are
applied together or not at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from src.retention.models import QuickTest, Skill, SkillUpdate, TestCompletion


class TrackerStorage(ABC):
    """Skill and quick-test persistence."""

    # ---------------------------------------------------------------- skills

    @abstractmethod
    def create_skill(self, skill: Skill) -> Skill: ...

    @abstractmethod
    def find_skill_by_id(self, skill_id: str) -> Skill | None: ...

    @abstractmethod
    def find_skills_by_user_id(self, user_id: str) -> list[Skill]: ...

    @abstractmethod
    def update_skill(self, skill_id: str, update: SkillUpdate) -> Skill | None:
        """Apply an update command; returns the stored skill or None if missing."""

    @abstractmethod
    def delete_skill(self, skill_id: str) -> bool: ...

    # ----------------------------------------------------------------- tests

    @abstractmethod
    def create_test(self, test: QuickTest) -> QuickTest: ...

    @abstractmethod
    def find_test_by_id(self, test_id: str) -> QuickTest | None: ...

    @abstractmethod
    def update_test(self, test_id: str, completion: TestCompletion) -> QuickTest | None: ...

    @abstractmethod
    def find_tests_by_skill_id(self, skill_id: str) -> list[QuickTest]: ...

    @abstractmethod
    def find_tests_by_user_id(self, user_id: str) -> list[QuickTest]: ...

    @abstractmethod
    def delete_tests_by_skill_id(self, skill_id: str) -> int: ...

    # ---------------------------------------------------------- transactions

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group writes so they commit together or roll back together."""

