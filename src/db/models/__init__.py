# SQLAlchemy models
from .base import Base
from .tracking import QuickTestRow, SkillRow

__all__ = [
    "Base",
    "SkillRow",
    "QuickTestRow",
]
