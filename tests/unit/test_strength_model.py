"""
Unit tests for SkillStrengthModel.

Tests:
- Exponential half-life decay formula
- Minimum strength floor
- Clamping of future practice timestamps
- Half-up rounding
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.retention.models import Skill, SkillView
from src.retention.strength import MIN_STRENGTH, SkillStrengthModel, round_half_up

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_skill(proficiency=80, days_ago=0.0, half_life=7.0, multiplier=1.0) -> Skill:
    return Skill(
        id="s1",
        owner_id="alice",
        name="Python",
        initial_proficiency=proficiency,
        last_practiced_at=NOW - timedelta(days=days_ago),
        half_life=half_life,
        adaptive_decay_multiplier=multiplier,
    )


class TestCurrentStrength:
    @pytest.mark.parametrize("proficiency", [10, 37, 50, 73, 100])
    def test_no_elapsed_time_keeps_initial_proficiency(self, proficiency):
        skill = make_skill(proficiency=proficiency)
        assert SkillStrengthModel.current_strength(skill, NOW) == proficiency

    def test_one_half_life_halves_strength(self):
        skill = make_skill(proficiency=80, days_ago=7)
        assert SkillStrengthModel.current_strength(skill, NOW) == 40

    def test_multiplier_scales_exponent(self):
        # 80 x 0.5^(7/7 x 2.0) = 20
        skill = make_skill(proficiency=80, days_ago=7, multiplier=2.0)
        assert SkillStrengthModel.current_strength(skill, NOW) == 20

    def test_slow_decay_multiplier(self):
        # 80 x 0.5^(14/7 x 0.5) = 40
        skill = make_skill(proficiency=80, days_ago=14, multiplier=0.5)
        assert SkillStrengthModel.current_strength(skill, NOW) == 40

    @pytest.mark.parametrize("days_ago", [60, 365, 10_000])
    def test_never_below_floor(self, days_ago):
        skill = make_skill(proficiency=100, days_ago=days_ago, half_life=3, multiplier=2.0)
        assert SkillStrengthModel.current_strength(skill, NOW) == MIN_STRENGTH

    def test_low_initial_proficiency_floored(self):
        skill = make_skill(proficiency=0)
        assert SkillStrengthModel.current_strength(skill, NOW) == MIN_STRENGTH

    def test_future_practice_counts_as_no_decay(self):
        skill = make_skill(proficiency=64, days_ago=-3)
        assert SkillStrengthModel.days_since_last_practice(skill, NOW) == 0.0
        assert SkillStrengthModel.current_strength(skill, NOW) == 64

    def test_rounds_half_up(self):
        # 25 x 0.5 = 12.5 -> 13
        skill = make_skill(proficiency=25, days_ago=7)
        assert SkillStrengthModel.current_strength(skill, NOW) == 13


class TestDaysSinceLastPractice:
    def test_fractional_days(self):
        skill = make_skill(days_ago=1.5)
        assert SkillStrengthModel.days_since_last_practice(skill, NOW) == pytest.approx(1.5)

    def test_decorate_adds_derived_fields(self):
        skill = make_skill(proficiency=80, days_ago=7)
        view = SkillStrengthModel.decorate(skill, NOW)

        assert isinstance(view, SkillView)
        assert view.id == skill.id
        assert view.name == "Python"
        assert view.current_strength == 40
        assert view.days_since_last_practice == pytest.approx(7.0)


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(12.49) == 12
    assert round_half_up(0.5) == 1
