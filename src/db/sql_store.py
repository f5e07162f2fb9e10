"""
SQLAlchemy storage collaborator.

Each call runs in its own ``session_scope`` unless a ``transaction()`` is
open on the current thread/context, in which case calls share that session
and commit together when it closes. Row reads inside a transaction use
SELECT ... FOR UPDATE so concurrent processes cannot read stale decay
parameters between their read and write.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from src.db.database import create_db_engine, get_session_factory, init_db, session_scope
from src.db.models import QuickTestRow, SkillRow
from src.db.storage import TrackerStorage
from src.retention.models import (
    Confidence,
    Question,
    QuickTest,
    Skill,
    SkillUpdate,
    TestCompletion,
    utc_now,
)


def _aware(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; stored values are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _skill_from_row(row: SkillRow) -> Skill:
    return Skill(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        category=row.category,
        initial_proficiency=row.initial_proficiency,
        last_practiced_at=_aware(row.last_practiced_at),
        half_life=row.half_life,
        adaptive_decay_multiplier=row.adaptive_decay_multiplier,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _test_from_row(row: QuickTestRow) -> QuickTest:
    return QuickTest(
        id=row.id,
        skill_id=row.skill_id,
        owner_id=row.owner_id,
        skill_name=row.skill_name,
        questions=[Question(**q) for q in row.questions or []],
        answers={str(k): int(v) for k, v in (row.answers or {}).items()},
        score=row.score,
        accuracy=row.accuracy,
        total_time=row.total_time,
        average_time_per_question=row.average_time_per_question,
        confidence=Confidence(row.confidence) if row.confidence else None,
        created_at=_aware(row.created_at),
        completed_at=_aware(row.completed_at),
    )


class SqlAlchemyStorage(TrackerStorage):
    def __init__(self, session_factory: sessionmaker[Session], clock=utc_now):
        self._session_factory = session_factory
        self._clock = clock
        self._active: ContextVar[Session | None] = ContextVar(
            f"skillfade_session_{id(self)}", default=None
        )

    @classmethod
    def from_url(cls, url: str | None = None, clock=utc_now) -> SqlAlchemyStorage:
        """Build a store on its own engine, creating tables if needed."""
        engine = create_db_engine(url)
        init_db(engine)
        return cls(get_session_factory(engine), clock=clock)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        active = self._active.get()
        if active is not None:
            yield active
            return
        with session_scope(self._session_factory) as session:
            yield session

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._active.get() is not None:
            yield
            return
        with session_scope(self._session_factory) as session:
            token = self._active.set(session)
            try:
                yield
            finally:
                self._active.reset(token)

    # ---------------------------------------------------------------- skills

    def _locking(self) -> bool:
        """Reads inside transaction() lock their row until commit."""
        return self._active.get() is not None

    def _skill_row(self, session: Session, skill_id: str) -> SkillRow | None:
        query = select(SkillRow).where(SkillRow.id == skill_id)
        if self._locking():
            query = query.with_for_update()
        return session.scalars(query).first()

    def create_skill(self, skill: Skill) -> Skill:
        with self._session() as session:
            row = SkillRow(
                id=skill.id,
                owner_id=skill.owner_id,
                name=skill.name,
                category=skill.category,
                initial_proficiency=skill.initial_proficiency,
                last_practiced_at=skill.last_practiced_at,
                half_life=skill.half_life,
                adaptive_decay_multiplier=skill.adaptive_decay_multiplier,
                created_at=skill.created_at,
                updated_at=skill.updated_at,
            )
            session.add(row)
            session.flush()
            return _skill_from_row(row)

    def find_skill_by_id(self, skill_id: str) -> Skill | None:
        with self._session() as session:
            row = self._skill_row(session, skill_id)
            return _skill_from_row(row) if row else None

    def find_skills_by_user_id(self, user_id: str) -> list[Skill]:
        with self._session() as session:
            rows = session.scalars(
                select(SkillRow).where(SkillRow.owner_id == user_id).order_by(SkillRow.seq)
            ).all()
            return [_skill_from_row(r) for r in rows]

    def update_skill(self, skill_id: str, update: SkillUpdate) -> Skill | None:
        with self._session() as session:
            row = self._skill_row(session, skill_id)
            if row is None:
                return None
            for name, value in update.changes().items():
                setattr(row, name, value)
            row.updated_at = self._clock()
            session.flush()
            return _skill_from_row(row)

    def delete_skill(self, skill_id: str) -> bool:
        with self._session() as session:
            row = self._skill_row(session, skill_id)
            if row is None:
                return False
            session.delete(row)
            session.flush()
            return True

    # ----------------------------------------------------------------- tests

    def _test_row(self, session: Session, test_id: str) -> QuickTestRow | None:
        query = select(QuickTestRow).where(QuickTestRow.id == test_id)
        if self._locking():
            query = query.with_for_update()
        return session.scalars(query).first()

    def create_test(self, test: QuickTest) -> QuickTest:
        with self._session() as session:
            row = QuickTestRow(
                id=test.id,
                skill_id=test.skill_id,
                owner_id=test.owner_id,
                skill_name=test.skill_name,
                questions=[q.to_dict() for q in test.questions],
                answers=dict(test.answers),
                created_at=test.created_at,
            )
            session.add(row)
            session.flush()
            return _test_from_row(row)

    def find_test_by_id(self, test_id: str) -> QuickTest | None:
        with self._session() as session:
            row = self._test_row(session, test_id)
            return _test_from_row(row) if row else None

    def update_test(self, test_id: str, completion: TestCompletion) -> QuickTest | None:
        with self._session() as session:
            row = self._test_row(session, test_id)
            if row is None:
                return None
            changes = completion.changes()
            changes["confidence"] = completion.confidence.value
            for name, value in changes.items():
                setattr(row, name, value)
            session.flush()
            return _test_from_row(row)

    def find_tests_by_skill_id(self, skill_id: str) -> list[QuickTest]:
        with self._session() as session:
            rows = session.scalars(
                select(QuickTestRow).where(QuickTestRow.skill_id == skill_id).order_by(QuickTestRow.seq)
            ).all()
            return [_test_from_row(r) for r in rows]

    def find_tests_by_user_id(self, user_id: str) -> list[QuickTest]:
        with self._session() as session:
            rows = session.scalars(
                select(QuickTestRow).where(QuickTestRow.owner_id == user_id).order_by(QuickTestRow.seq)
            ).all()
            return [_test_from_row(r) for r in rows]

    def delete_tests_by_skill_id(self, skill_id: str) -> int:
        with self._session() as session:
            result = session.execute(delete(QuickTestRow).where(QuickTestRow.skill_id == skill_id))
            logger.debug(f"Deleted {result.rowcount} tests for skill {skill_id}")
            return result.rowcount
