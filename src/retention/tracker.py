"""
Retention Tracker - the engine's public operations.

Wires the strength model, quick-test engine, adaptive decay adjuster and
knowledge overview around one storage collaborator, one clock and one
per-skill lock registry. Callers pass an already-authenticated user id; the
tracker only compares it with record owners.

Usage:
    tracker = RetentionTracker(InMemoryStorage())
    skill = tracker.create_skill("u1", "Python", initial_proficiency=80)
    test = tracker.generate_test(skill.id, "u1")
    outcome = tracker.submit_test(test.id, "u1", {"q1": 1, "q2": 0}, total_time=40)
    tracker.get_knowledge_overview("u1")
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from config import Settings, get_settings
from src.retention.decay import AdaptiveDecayAdjuster
from src.retention.locks import SkillLockRegistry
from src.retention.models import (
    KnowledgeOverview,
    QuickTest,
    SkillView,
    SubmissionResult,
    TestPrompt,
    utc_now,
)
from src.retention.overview import KnowledgeOverviewAggregator
from src.retention.quick_test import QuickTestEngine
from src.retention.skills import SkillService

if TYPE_CHECKING:
    from src.db.storage import TrackerStorage


class RetentionTracker:
    def __init__(
        self,
        storage: TrackerStorage,
        clock: Callable[[], datetime] = utc_now,
        locks: SkillLockRegistry | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.storage = storage
        self.locks = locks or SkillLockRegistry()

        self.skills = SkillService(
            storage,
            locks=self.locks,
            clock=clock,
            default_half_life=settings.default_half_life,
            default_proficiency=settings.default_proficiency,
        )
        self.decay_adjuster = AdaptiveDecayAdjuster(storage)
        self.quick_tests = QuickTestEngine(
            storage, decay_adjuster=self.decay_adjuster, locks=self.locks, clock=clock
        )
        self.overview = KnowledgeOverviewAggregator(storage, clock=clock)

    # Skills
    def create_skill(
        self,
        user_id: str,
        name: str,
        category: str | None = None,
        initial_proficiency: int | None = None,
    ) -> SkillView:
        return self.skills.create_skill(user_id, name, category, initial_proficiency)

    def get_user_skills(self, user_id: str) -> list[SkillView]:
        return self.skills.get_user_skills(user_id)

    def get_skill(self, skill_id: str, user_id: str) -> SkillView:
        return self.skills.get_skill(skill_id, user_id)

    def mark_as_practiced(self, skill_id: str, user_id: str) -> SkillView:
        return self.skills.mark_as_practiced(skill_id, user_id)

    def delete_skill(self, skill_id: str, user_id: str) -> bool:
        return self.skills.delete_skill(skill_id, user_id)

    # Quick tests
    def generate_test(self, skill_id: str, user_id: str) -> TestPrompt:
        return self.quick_tests.generate_test(skill_id, user_id)

    def submit_test(self, test_id: str, user_id: str, answers: Any, total_time: Any) -> SubmissionResult:
        return self.quick_tests.submit_test(test_id, user_id, answers, total_time)

    def get_test_history(self, skill_id: str, user_id: str) -> list[QuickTest]:
        return self.quick_tests.get_test_history(skill_id, user_id)

    # Overview
    def get_knowledge_overview(self, user_id: str) -> KnowledgeOverview:
        return self.overview.overview(user_id)
