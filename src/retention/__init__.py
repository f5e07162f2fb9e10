"""
Retention Engine for skill decay tracking.

Provides:
- Exponential half-life strength model
- Quick recall tests and scoring
- Adaptive decay adjustment from test results
- Knowledge overview and retention diagnosis
"""

from src.retention.decay import AdaptiveDecayAdjuster
from src.retention.errors import (
    AlreadyCompletedError,
    NotFoundError,
    TrackerError,
    UnauthorizedError,
    ValidationError,
)
from src.retention.overview import KnowledgeOverviewAggregator
from src.retention.quick_test import QuickTestEngine
from src.retention.skills import SkillService
from src.retention.strength import SkillStrengthModel
from src.retention.tracker import RetentionTracker

__all__ = [
    "SkillStrengthModel",
    "QuickTestEngine",
    "AdaptiveDecayAdjuster",
    "KnowledgeOverviewAggregator",
    "SkillService",
    "RetentionTracker",
    "TrackerError",
    "NotFoundError",
    "UnauthorizedError",
    "AlreadyCompletedError",
    "ValidationError",
]
