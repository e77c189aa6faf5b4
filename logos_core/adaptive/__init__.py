"""
Adaptive Module.

- ability_estimator: 2PL IRT theta estimation and item selection
- priority_ranker: Additive item priority and review urgency
- curriculum_sequencer: Prerequisite-aware ordering and session packing
"""

from logos_core.adaptive.ability_estimator import (
    AbilityEstimator,
    IRTConfig,
    Quadrature,
    estimate_ability,
    estimate_theta_eap,
    probability_2pl,
    probability_3pl,
    select_item_kl,
    select_next_item,
)
from logos_core.adaptive.curriculum_sequencer import (
    CurriculumSequencer,
    OrderingMode,
    SequenceResult,
    SequencerConfig,
    pack_sessions,
    sequence_curriculum,
)
from logos_core.adaptive.priority_ranker import (
    PriorityRanker,
    PriorityResult,
    PriorityWeights,
    RankedItem,
    UrgencyConfig,
    compute_priority,
    compute_urgency,
)

__all__ = [
    "AbilityEstimator",
    "IRTConfig",
    "estimate_ability",
    "Quadrature",
    "estimate_theta_eap",
    "probability_2pl",
    "probability_3pl",
    "select_item_kl",
    "select_next_item",
    "CurriculumSequencer",
    "OrderingMode",
    "SequenceResult",
    "SequencerConfig",
    "pack_sessions",
    "sequence_curriculum",
    "PriorityRanker",
    "PriorityResult",
    "PriorityWeights",
    "RankedItem",
    "UrgencyConfig",
    "compute_priority",
    "compute_urgency",
]
