"""
Knowledge Overview Aggregator - the retention dashboard view.

Per skill: current strength, the five most recent completed tests, their
mean accuracy, and a retention diagnosis. The diagnosis starts from the
adaptive decay multiplier (performance factor) and is then overridden by
inactivity (time factor):

    multiplier < 0.8  -> Strong
    multiplier > 1.2  -> Critical
    otherwise         -> Stable

    days > 2 x half-life          -> Fading (always)
    days > half-life and Strong   -> Stable
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import fields
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from src.retention.models import (
    DEFAULT_HALF_LIFE,
    KnowledgeOverview,
    OverviewStats,
    QuickTest,
    RetentionStatus,
    SkillInsight,
    SkillView,
    utc_now,
)
from src.retention.strength import SkillStrengthModel, round_half_up

if TYPE_CHECKING:
    from src.db.storage import TrackerStorage


GREEN = "#10b981"
AMBER = "#f59e0b"
RED = "#ef4444"


class KnowledgeOverviewAggregator:
    """Combines skills, test history and the strength model."""

    RECENT_TESTS_PER_SKILL = 5
    RECENT_ACTIVITY_LIMIT = 10

    STRONG_MULTIPLIER_BELOW = 0.8
    CRITICAL_MULTIPLIER_ABOVE = 1.2

    NEEDS_ATTENTION_BELOW = 60
    STRONG_STRENGTH_FROM = 70

    def __init__(self, storage: TrackerStorage, clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self._clock = clock

    @classmethod
    def diagnose(
        cls, multiplier: float, days_since_practice: float, half_life: float
    ) -> tuple[RetentionStatus, str, str]:
        """Return (retention status, explanation, status color)."""
        status = RetentionStatus.STABLE
        explanation = "Regular practice is maintaining this skill."
        color = GREEN

        # Performance factor
        if multiplier < cls.STRONG_MULTIPLIER_BELOW:
            status = RetentionStatus.STRONG
            explanation = "Broad retention. Decay slowed by excellent test performance."
        elif multiplier > cls.CRITICAL_MULTIPLIER_ABOVE:
            status = RetentionStatus.CRITICAL
            explanation = "Retention struggling. Decay accelerated by recent low scores."
            color = RED

        # Time factor
        half_life = half_life or DEFAULT_HALF_LIFE
        if days_since_practice > half_life * 2:
            status = RetentionStatus.FADING
            explanation = "Fading due to inactivity. Has not been practiced recently."
            color = AMBER
        elif days_since_practice > half_life and status == RetentionStatus.STRONG:
            status = RetentionStatus.STABLE
            explanation = "Good retention, but starting to fade due to recent inactivity."
            color = GREEN

        return status, explanation, color

    @staticmethod
    def _most_recent_first(tests: list[QuickTest]) -> list[QuickTest]:
        # Stable sort keeps insertion order for equal completion times
        completed = [t for t in tests if t.is_completed]
        return sorted(completed, key=lambda t: t.completed_at, reverse=True)

    def _insight(self, skill: SkillView, recent_tests: list[QuickTest]) -> SkillInsight:
        avg_accuracy = (
            sum(t.accuracy or 0 for t in recent_tests) / len(recent_tests) if recent_tests else 0.0
        )
        status, explanation, color = self.diagnose(
            skill.adaptive_decay_multiplier,
            skill.days_since_last_practice,
            skill.half_life,
        )
        return SkillInsight(
            **{f.name: getattr(skill, f.name) for f in fields(SkillView)},
            recent_tests=recent_tests,
            avg_test_accuracy=avg_accuracy,
            retention_status=status,
            decay_explanation=explanation,
            status_color=color,
            total_tests=len(recent_tests),
        )

    @classmethod
    def _stats(cls, skills: list[SkillView], total_tests: int) -> OverviewStats:
        if not skills:
            return OverviewStats(total_tests=total_tests)
        strengths = [s.current_strength for s in skills]
        return OverviewStats(
            total_skills=len(skills),
            total_tests=total_tests,
            average_strength=round_half_up(sum(strengths) / len(strengths)),
            skills_needing_attention=sum(1 for v in strengths if v < cls.NEEDS_ATTENTION_BELOW),
            skills_strong=sum(1 for v in strengths if v >= cls.STRONG_STRENGTH_FROM),
        )

    def overview(self, user_id: str) -> KnowledgeOverview:
        now = self._clock()
        skills = [
            SkillStrengthModel.decorate(skill, now)
            for skill in self.storage.find_skills_by_user_id(user_id)
        ]
        completed = self._most_recent_first(self.storage.find_tests_by_user_id(user_id))

        tests_by_skill: dict[str, list[QuickTest]] = defaultdict(list)
        for test in completed:
            if len(tests_by_skill[test.skill_id]) < self.RECENT_TESTS_PER_SKILL:
                tests_by_skill[test.skill_id].append(test)

        insights = [self._insight(skill, tests_by_skill.get(skill.id, [])) for skill in skills]
        stats = self._stats(skills, len(completed))

        logger.debug(
            f"Overview for {user_id}: {stats.total_skills} skills, {stats.total_tests} tests, "
            f"average strength {stats.average_strength}"
        )
        return KnowledgeOverview(
            skills=insights,
            stats=stats,
            recent_activity=completed[: self.RECENT_ACTIVITY_LIMIT],
        )
