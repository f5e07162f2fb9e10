"""
Input schemas for engine operations.

Pydantic models validate caller-supplied fields; failures surface as the
engine's ValidationError so callers only deal with one error taxonomy.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, Field, StrictInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from src.retention.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class SkillCreate(BaseModel):
    """Fields accepted when a skill is registered."""

    name: str
    category: str | None = None
    initial_proficiency: int | None = Field(default=None, ge=0, le=100)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Skill name is required")
        return value

    @field_validator("category")
    @classmethod
    def blank_category_is_default(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class QuizSubmission(BaseModel):
    """
    Answers map (question id -> option index) and elapsed seconds.

    Both fields are strict: "1", True or 0.0 are rejected rather than coerced
    into an option index that could score.
    """

    answers: dict[str, StrictInt]
    total_time: float = Field(ge=0, allow_inf_nan=False, strict=True)


def _messages(exc: PydanticValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "input"
        messages.append(f"{location}: {err['msg']}")
    return messages


def parse(model: type[ModelT], **data: Any) -> ModelT:
    """Validate keyword data against a schema, raising the engine's ValidationError."""
    try:
        return model(**data)
    except PydanticValidationError as e:
        raise ValidationError(_messages(e)) from e
