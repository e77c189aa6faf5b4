"""
Study Module.

Provides:
- Retention scheduling (FSRS-style)
- StudyService tying scheduling and ranking to the database
"""

from logos_core.study.retention_engine import (
    FSRSConfig,
    FSRSScheduler,
    Rating,
    grade_response,
    retrievability,
    schedule_review,
)
from logos_core.study.study_service import StudyService

__all__ = [
    "FSRSConfig",
    "FSRSScheduler",
    "Rating",
    "grade_response",
    "retrievability",
    "schedule_review",
    "StudyService",
]
