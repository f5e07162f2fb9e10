"""
Domain records for the retention engine.

Skills and quick tests are plain dataclasses handed to and from the storage
collaborator. Changes to stored records go through explicit update commands
(DecayAdjustment, PracticeMark, TestCompletion) so the decay clamps are
enforced in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union
from uuid import uuid4

# Decay parameter bounds
HALF_LIFE_MIN = 3.0
HALF_LIFE_MAX = 30.0
MULTIPLIER_MIN = 0.5
MULTIPLIER_MAX = 2.0

DEFAULT_HALF_LIFE = 7.0
DEFAULT_MULTIPLIER = 1.0
DEFAULT_CATEGORY = "General"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return {f.name: _jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class Confidence(str, Enum):
    """Response-speed classification of a quiz."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Performance(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    NEEDS_PRACTICE = "Needs Practice"


class RetentionStatus(str, Enum):
    """Qualitative diagnosis shown on the knowledge overview."""

    STRONG = "Strong"
    STABLE = "Stable"
    FADING = "Fading"
    CRITICAL = "Critical"


# =============================================================================
# Skills
# =============================================================================


@dataclass
class Skill:
    """A tracked competency and its decay parameters."""

    id: str
    owner_id: str
    name: str
    category: str = DEFAULT_CATEGORY
    initial_proficiency: int = 50  # 0-100, fixed at creation
    last_practiced_at: datetime = field(default_factory=utc_now)
    half_life: float = DEFAULT_HALF_LIFE  # days until strength halves
    adaptive_decay_multiplier: float = DEFAULT_MULTIPLIER
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class SkillView(Skill):
    """Skill decorated with values derived at read time (never persisted)."""

    current_strength: int = 0
    days_since_last_practice: float = 0.0

    @classmethod
    def from_skill(cls, skill: Skill, current_strength: int, days_since_last_practice: float) -> SkillView:
        base = {f.name: getattr(skill, f.name) for f in fields(Skill)}
        return cls(
            **base,
            current_strength=current_strength,
            days_since_last_practice=days_since_last_practice,
        )


@dataclass(frozen=True)
class DecayAdjustment:
    """New decay parameters for a skill, clamped to their bounds."""

    half_life: float
    adaptive_decay_multiplier: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "half_life", clamp(self.half_life, HALF_LIFE_MIN, HALF_LIFE_MAX))
        object.__setattr__(
            self,
            "adaptive_decay_multiplier",
            clamp(self.adaptive_decay_multiplier, MULTIPLIER_MIN, MULTIPLIER_MAX),
        )

    def changes(self) -> dict[str, Any]:
        return {
            "half_life": self.half_life,
            "adaptive_decay_multiplier": self.adaptive_decay_multiplier,
        }


@dataclass(frozen=True)
class PracticeMark:
    """Record that the skill was practiced, tested or reviewed."""

    practiced_at: datetime

    def changes(self) -> dict[str, Any]:
        return {"last_practiced_at": self.practiced_at}


SkillUpdate = Union[DecayAdjustment, PracticeMark]


# =============================================================================
# Quick tests
# =============================================================================


@dataclass
class QuestionPrompt:
    """A question as shown to the person taking the test."""

    id: str
    text: str
    options: list[str]

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class Question:
    id: str
    text: str
    options: list[str]
    correct_index: int

    def to_prompt(self) -> QuestionPrompt:
        return QuestionPrompt(id=self.id, text=self.text, options=list(self.options))

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class TestPrompt:
    """A freshly generated test with the correct answers stripped."""

    __test__ = False  # not a pytest class

    id: str
    skill_id: str
    skill_name: str
    questions: list[QuestionPrompt]
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class QuickTest:
    """One quiz instance tied to one skill and one user."""

    id: str
    skill_id: str
    owner_id: str
    skill_name: str
    questions: list[Question] = field(default_factory=list)
    answers: dict[str, int] = field(default_factory=dict)

    # Results, set once on submission
    score: int | None = None
    accuracy: int | None = None
    total_time: float | None = None
    average_time_per_question: float | None = None
    confidence: Confidence | None = None

    created_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def to_prompt(self) -> TestPrompt:
        return TestPrompt(
            id=self.id,
            skill_id=self.skill_id,
            skill_name=self.skill_name,
            questions=[q.to_prompt() for q in self.questions],
            created_at=self.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass(frozen=True)
class TestCompletion:
    """All result fields of a submitted test, written in one update."""

    __test__ = False

    answers: dict[str, int]
    score: int
    accuracy: int
    total_time: float
    average_time_per_question: float
    confidence: Confidence
    completed_at: datetime

    def changes(self) -> dict[str, Any]:
        return {
            "answers": dict(self.answers),
            "score": self.score,
            "accuracy": self.accuracy,
            "total_time": self.total_time,
            "average_time_per_question": self.average_time_per_question,
            "confidence": self.confidence,
            "completed_at": self.completed_at,
        }


@dataclass
class TestResults:
    """Summary returned alongside a submitted test."""

    __test__ = False

    score: int
    total_questions: int
    accuracy: int
    confidence: Confidence
    total_time: float
    average_time_per_question: float
    performance: Performance

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class SubmissionResult:
    test: QuickTest
    skill: SkillView
    results: TestResults

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


# =============================================================================
# Knowledge overview
# =============================================================================


@dataclass
class SkillInsight(SkillView):
    """Skill with its recent tests and retention diagnosis."""

    recent_tests: list[QuickTest] = field(default_factory=list)
    avg_test_accuracy: float = 0.0
    retention_status: RetentionStatus = RetentionStatus.STABLE
    decay_explanation: str = ""
    status_color: str = ""
    total_tests: int = 0


@dataclass
class OverviewStats:
    total_skills: int = 0
    total_tests: int = 0
    average_strength: int = 0
    skills_needing_attention: int = 0
    skills_strong: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)


@dataclass
class KnowledgeOverview:
    skills: list[SkillInsight]
    stats: OverviewStats
    recent_activity: list[QuickTest]

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(self)
