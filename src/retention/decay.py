"""
Adaptive Decay Adjuster - retunes a skill's decay parameters from quiz results.

Better performance slows decay (longer half-life, lower multiplier); worse
performance speeds it up. Two stages are applied in sequence:

Stage A (first matching branch only):
    accuracy >= 80 and confidence high   -> half-life x1.3 (cap 30), multiplier x0.8
    accuracy >= 60 and confidence != low -> half-life x1.1 (cap 30), multiplier x0.9
    accuracy < 50 or confidence low      -> half-life x0.8 (floor 3), multiplier x1.2
    otherwise                            -> unchanged

Stage B (always, response time in seconds per question):
    < 8  -> multiplier x0.95
    > 18 -> multiplier x1.1

The final multiplier is clamped to [0.5, 2.0].
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from src.retention.errors import NotFoundError
from src.retention.models import (
    DEFAULT_HALF_LIFE,
    DEFAULT_MULTIPLIER,
    HALF_LIFE_MAX,
    HALF_LIFE_MIN,
    Confidence,
    DecayAdjustment,
    SkillView,
)
from src.retention.strength import SkillStrengthModel

if TYPE_CHECKING:
    from src.db.storage import TrackerStorage


class AdaptiveDecayAdjuster:
    """Computes and persists new decay parameters after a quiz."""

    # Stage A accuracy thresholds (percent)
    EXCELLENT_ACCURACY = 80
    GOOD_ACCURACY = 60
    POOR_ACCURACY = 50

    # Stage B response-time thresholds (seconds per question)
    FAST_RESPONSE = 8
    SLOW_RESPONSE = 18

    def __init__(self, storage: TrackerStorage):
        self.storage = storage

    @classmethod
    def compute(
        cls,
        half_life: float,
        multiplier: float,
        accuracy: float,
        response_time: float,
        confidence: Confidence,
    ) -> DecayAdjustment:
        """Apply both stages to the current parameters. Pure."""
        half_life = half_life or DEFAULT_HALF_LIFE
        multiplier = multiplier or DEFAULT_MULTIPLIER

        # Stage A: accuracy and confidence
        if accuracy >= cls.EXCELLENT_ACCURACY and confidence == Confidence.HIGH:
            half_life = min(half_life * 1.3, HALF_LIFE_MAX)
            multiplier *= 0.8
        elif accuracy >= cls.GOOD_ACCURACY and confidence != Confidence.LOW:
            half_life = min(half_life * 1.1, HALF_LIFE_MAX)
            multiplier *= 0.9
        elif accuracy < cls.POOR_ACCURACY or confidence == Confidence.LOW:
            half_life = max(half_life * 0.8, HALF_LIFE_MIN)
            multiplier *= 1.2

        # Stage B: response time fine-tuning
        if response_time < cls.FAST_RESPONSE:
            multiplier *= 0.95
        elif response_time > cls.SLOW_RESPONSE:
            multiplier *= 1.1

        return DecayAdjustment(half_life=half_life, adaptive_decay_multiplier=multiplier)

    def adjust(
        self,
        skill_id: str,
        accuracy: float,
        response_time: float,
        confidence: Confidence,
        now: datetime,
    ) -> SkillView:
        """
        Recompute and store a skill's decay parameters.

        The caller is expected to hold the skill's lock.

        Raises:
            NotFoundError: skill does not exist
        """
        skill = self.storage.find_skill_by_id(skill_id)
        if skill is None:
            raise NotFoundError("Skill", skill_id)

        adjustment = self.compute(
            skill.half_life,
            skill.adaptive_decay_multiplier,
            accuracy,
            response_time,
            confidence,
        )
        updated = self.storage.update_skill(skill_id, adjustment)
        if updated is None:
            raise NotFoundError("Skill", skill_id)

        logger.info(
            f"Decay adjusted for skill {skill_id}: half_life {skill.half_life:.2f} -> "
            f"{updated.half_life:.2f}, multiplier {skill.adaptive_decay_multiplier:.3f} -> "
            f"{updated.adaptive_decay_multiplier:.3f}"
        )
        return SkillStrengthModel.decorate(updated, now)
