"""
logos-core: scheduling core for an adaptive language-learning system.

Entry points:
- estimate_ability: theta from calibrated responses (2PL IRT)
- schedule_review / retrievability: FSRS-style retention
- compute_priority / compute_urgency: item ranking signals
- sequence_curriculum / pack_sessions: construct ordering and sessions
"""

from logos_core.adaptive.ability_estimator import estimate_ability
from logos_core.adaptive.curriculum_sequencer import pack_sessions, sequence_curriculum
from logos_core.adaptive.priority_ranker import compute_priority, compute_urgency
from logos_core.core.errors import (
    InsufficientData,
    InvariantViolation,
    LogosCoreError,
    NumericNonConvergence,
    StructuralAnomaly,
)
from logos_core.core.models import (
    CognitiveLoad,
    Construct,
    Item,
    ItemResponse,
    RetentionCard,
    Response,
    SessionPlan,
    ThetaEstimate,
)
from logos_core.study.retention_engine import retrievability, schedule_review

__version__ = "0.1.0"

__all__ = [
    "estimate_ability",
    "schedule_review",
    "retrievability",
    "compute_priority",
    "compute_urgency",
    "sequence_curriculum",
    "pack_sessions",
    "LogosCoreError",
    "InsufficientData",
    "NumericNonConvergence",
    "InvariantViolation",
    "StructuralAnomaly",
    "CognitiveLoad",
    "Construct",
    "Item",
    "ItemResponse",
    "RetentionCard",
    "Response",
    "SessionPlan",
    "ThetaEstimate",
]
