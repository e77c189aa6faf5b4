"""
Core Module - Shared domain models, errors and mastery stages.

Components:
- models: Items, retention cards, responses, constructs and their results
- errors: LogosCoreError taxonomy
- mastery: Mastery stages 0-4 and their promotion rules
- log_config: loguru sink setup for applications
"""

from logos_core.core.errors import (
    InsufficientData,
    InvariantViolation,
    LogosCoreError,
    NumericNonConvergence,
    StructuralAnomaly,
)
from logos_core.core.mastery import (
    MasteryStage,
    MasteryState,
    StageThresholds,
    determine_stage,
    update_mastery,
)
from logos_core.core.models import (
    CognitiveLoad,
    Construct,
    EstimationMethod,
    Item,
    ItemResponse,
    RetentionCard,
    Response,
    ScoredConstruct,
    SessionPlan,
    ThetaEstimate,
)

__all__ = [
    "LogosCoreError",
    "InsufficientData",
    "NumericNonConvergence",
    "InvariantViolation",
    "StructuralAnomaly",
    "MasteryStage",
    "MasteryState",
    "StageThresholds",
    "determine_stage",
    "update_mastery",
    "CognitiveLoad",
    "Construct",
    "EstimationMethod",
    "Item",
    "ItemResponse",
    "RetentionCard",
    "Response",
    "ScoredConstruct",
    "SessionPlan",
    "ThetaEstimate",
]
