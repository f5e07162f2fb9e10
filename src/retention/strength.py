"""
Skill Strength Model - exponential half-life decay.

    strength = initial_proficiency × 0.5 ^ ((days / half_life) × multiplier)

The result is rounded half-up and floored at MIN_STRENGTH so a skill never
reads as completely forgotten.
"""

from __future__ import annotations

import math
from datetime import datetime

from src.retention.models import DEFAULT_HALF_LIFE, DEFAULT_MULTIPLIER, Skill, SkillView

MIN_STRENGTH = 10
SECONDS_PER_DAY = 86400.0


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


class SkillStrengthModel:
    """Pure computation of a skill's current retention."""

    @staticmethod
    def days_since_last_practice(skill: Skill, now: datetime) -> float:
        """Elapsed days since last practice; a future timestamp counts as 0."""
        elapsed = (now - skill.last_practiced_at).total_seconds() / SECONDS_PER_DAY
        return max(0.0, elapsed)

    @classmethod
    def current_strength(cls, skill: Skill, now: datetime) -> int:
        """Current strength in [MIN_STRENGTH, 100]."""
        days = cls.days_since_last_practice(skill, now)
        half_life = skill.half_life or DEFAULT_HALF_LIFE
        multiplier = skill.adaptive_decay_multiplier or DEFAULT_MULTIPLIER

        exponent = (days / half_life) * multiplier
        strength = skill.initial_proficiency * math.pow(0.5, exponent)

        return max(MIN_STRENGTH, round_half_up(strength))

    @classmethod
    def decorate(cls, skill: Skill, now: datetime) -> SkillView:
        return SkillView.from_skill(
            skill,
            current_strength=cls.current_strength(skill, now),
            days_since_last_practice=cls.days_since_last_practice(skill, now),
        )
