"""
Skill tracking models.

SQLAlchemy rows backing the SQL storage collaborator:
- SkillRow: a tracked skill and its decay parameters
- QuickTestRow: one generated quiz and, once submitted, its results

Both tables carry an autoincrement ``seq`` primary key so listings keep
insertion order; the public ``id`` is an opaque hex string.

Question JSON structure:
    [
        {"id": "q1", "text": "...", "options": ["A", "B", "C", "D"], "correct_index": 1},
        ...
    ]
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class SkillRow(Base):
    __tablename__ = "skills"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False, default="General")
    initial_proficiency: Mapped[int] = mapped_column(Integer, nullable=False)
    last_practiced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Decay model parameters
    half_life: Mapped[float] = mapped_column(Float, nullable=False, default=7.0)
    adaptive_decay_multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    tests: Mapped[list[QuickTestRow]] = relationship(
        back_populates="skill", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("initial_proficiency BETWEEN 0 AND 100", name="ck_skill_proficiency"),
        CheckConstraint("half_life BETWEEN 3 AND 30", name="ck_skill_half_life"),
        CheckConstraint("adaptive_decay_multiplier BETWEEN 0.5 AND 2.0", name="ck_skill_multiplier"),
    )

    def __repr__(self) -> str:
        return f"<SkillRow id={self.id} name={self.name!r} half_life={self.half_life}>"


class QuickTestRow(Base):
    __tablename__ = "quick_tests"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    skill_id: Mapped[str] = mapped_column(
        ForeignKey("skills.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    skill_name: Mapped[str] = mapped_column(Text, nullable=False, default="")

    questions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    answers: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Results (NULL until submitted)
    score: Mapped[int | None] = mapped_column(Integer)
    accuracy: Mapped[int | None] = mapped_column(Integer)
    total_time: Mapped[float | None] = mapped_column(Float)
    average_time_per_question: Mapped[float | None] = mapped_column(Float)
    confidence: Mapped[str | None] = mapped_column(Text)  # 'low', 'medium', 'high'

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    skill: Mapped[SkillRow] = relationship(back_populates="tests")

    __table_args__ = (
        Index("idx_quick_tests_owner_completed", "owner_id", "completed_at"),
    )

    def __repr__(self) -> str:
        return f"<QuickTestRow id={self.id} skill={self.skill_id} accuracy={self.accuracy}>"
