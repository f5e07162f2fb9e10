"""Skill registration, lookup, practice marks and deletion."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from src.retention.errors import NotFoundError, UnauthorizedError
from src.retention.locks import SkillLockRegistry
from src.retention.models import (
    DEFAULT_CATEGORY,
    DEFAULT_HALF_LIFE,
    DEFAULT_MULTIPLIER,
    PracticeMark,
    Skill,
    SkillView,
    new_id,
    utc_now,
)
from src.retention.schemas import SkillCreate, parse
from src.retention.strength import SkillStrengthModel

if TYPE_CHECKING:
    from src.db.storage import TrackerStorage


class SkillService:
    def __init__(
        self,
        storage: TrackerStorage,
        locks: SkillLockRegistry | None = None,
        clock: Callable[[], datetime] = utc_now,
        default_half_life: float = DEFAULT_HALF_LIFE,
        default_proficiency: int = 50,
    ):
        self.storage = storage
        self.locks = locks or SkillLockRegistry()
        self._clock = clock
        self.default_half_life = default_half_life
        self.default_proficiency = default_proficiency

    def create_skill(
        self,
        user_id: str,
        name: str,
        category: str | None = None,
        initial_proficiency: int | None = None,
    ) -> SkillView:
        """
        Register a skill, practiced as of now.

        Raises:
            ValidationError: blank name or proficiency outside 0-100
        """
        data = parse(SkillCreate, name=name, category=category, initial_proficiency=initial_proficiency)
        now = self._clock()

        skill = Skill(
            id=new_id(),
            owner_id=user_id,
            name=data.name,
            category=data.category or DEFAULT_CATEGORY,
            initial_proficiency=(
                data.initial_proficiency
                if data.initial_proficiency is not None
                else self.default_proficiency
            ),
            last_practiced_at=now,
            half_life=self.default_half_life,
            adaptive_decay_multiplier=DEFAULT_MULTIPLIER,
            created_at=now,
            updated_at=now,
        )
        saved = self.storage.create_skill(skill)
        logger.info(f"Created skill {saved.name!r} ({saved.id}) for user {user_id}")
        return SkillStrengthModel.decorate(saved, now)

    def get_user_skills(self, user_id: str) -> list[SkillView]:
        now = self._clock()
        return [SkillStrengthModel.decorate(s, now) for s in self.storage.find_skills_by_user_id(user_id)]

    def get_skill(self, skill_id: str, user_id: str) -> SkillView:
        return SkillStrengthModel.decorate(self._load_owned(skill_id, user_id), self._clock())

    def mark_as_practiced(self, skill_id: str, user_id: str) -> SkillView:
        """Reset the decay clock for a skill the user just reviewed."""
        with self.locks.hold(skill_id):
            self._load_owned(skill_id, user_id)
            now = self._clock()
            updated = self.storage.update_skill(skill_id, PracticeMark(practiced_at=now))
            if updated is None:
                raise NotFoundError("Skill", skill_id)
        logger.info(f"Skill {skill_id} marked as practiced")
        return SkillStrengthModel.decorate(updated, now)

    def delete_skill(self, skill_id: str, user_id: str) -> bool:
        """Delete a skill together with its tests."""
        with self.locks.hold(skill_id):
            self._load_owned(skill_id, user_id)
            with self.storage.transaction():
                removed_tests = self.storage.delete_tests_by_skill_id(skill_id)
                deleted = self.storage.delete_skill(skill_id)
        self.locks.discard(skill_id)
        logger.info(f"Deleted skill {skill_id} and {removed_tests} tests")
        return deleted

    def _load_owned(self, skill_id: str, user_id: str) -> Skill:
        skill = self.storage.find_skill_by_id(skill_id)
        if skill is None:
            raise NotFoundError("Skill", skill_id)
        if skill.owner_id != user_id:
            logger.warning(f"User {user_id} denied access to skill {skill_id}")
            raise UnauthorizedError("Skill", skill_id, user_id)
        return skill
