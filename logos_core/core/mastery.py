"""
Core Mastery Module.

Mastery stages (0-4) per learner per item/construct, derived from cue-free
and cue-assisted accuracy plus retention stability.

Design:
- MasteryStage: Ordinal learning-progress label
- StageThresholds: Named promotion thresholds
- MasteryState: Running accuracy counters + the item's retention card
- update_mastery: Fold one response into a MasteryState

The curriculum sequencer gates prerequisites on these stages.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import IntEnum

from logos_core.core.models import RetentionCard, Response


class MasteryStage(IntEnum):
    """
    Learning-progress stages.

    UNSEEN and MASTERED bracket the three actively-learning stages.
    """

    UNSEEN = 0
    RECOGNITION = 1  # succeeds with cues
    RECALL = 2  # succeeds without cues, inconsistently
    CONTROLLED = 3  # reliable cue-free recall, stable memory
    MASTERED = 4  # automatic, long-term stable, no scaffolding gap

    @property
    def is_active(self) -> bool:
        """Stages 1-3 are actively being learned."""
        return MasteryStage.RECOGNITION <= self <= MasteryStage.CONTROLLED

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.name.replace("_", " ").title()


@dataclass(frozen=True)
class StageThresholds:
    """Promotion thresholds for each stage."""

    stage1_cue_assisted_accuracy: float = 0.50
    stage2_cue_free_accuracy: float = 0.60
    stage2_cue_assisted_accuracy: float = 0.80
    stage3_cue_free_accuracy: float = 0.75
    stage3_stability: float = 7.0
    stage4_cue_free_accuracy: float = 0.90
    stage4_stability: float = 30.0
    stage4_max_gap: float = 0.10


DEFAULT_THRESHOLDS = StageThresholds()

CONSERVATIVE_THRESHOLDS = StageThresholds(
    stage1_cue_assisted_accuracy=0.60,
    stage2_cue_free_accuracy=0.70,
    stage2_cue_assisted_accuracy=0.85,
    stage3_cue_free_accuracy=0.85,
    stage3_stability=10.0,
    stage4_cue_free_accuracy=0.95,
    stage4_stability=45.0,
    stage4_max_gap=0.05,
)


@dataclass(frozen=True)
class MasteryState:
    """Per-learner mastery counters for one item or construct."""

    stage: MasteryStage = MasteryStage.UNSEEN
    card: RetentionCard | None = None
    cue_free_attempts: int = 0
    cue_free_correct: int = 0
    cue_assisted_attempts: int = 0
    cue_assisted_correct: int = 0
    last_response_at: datetime | None = None

    @property
    def exposure_count(self) -> int:
        return self.cue_free_attempts + self.cue_assisted_attempts

    @property
    def cue_free_accuracy(self) -> float:
        if self.cue_free_attempts == 0:
            return 0.0
        return self.cue_free_correct / self.cue_free_attempts

    @property
    def cue_assisted_accuracy(self) -> float:
        if self.cue_assisted_attempts == 0:
            return 0.0
        return self.cue_assisted_correct / self.cue_assisted_attempts

    @property
    def stability(self) -> float:
        return self.card.stability if self.card else 0.0


def scaffolding_gap(state: MasteryState) -> float:
    """How much better the learner does with cues than without (never negative)."""
    return max(0.0, state.cue_assisted_accuracy - state.cue_free_accuracy)


def determine_stage(
    state: MasteryState,
    thresholds: StageThresholds = DEFAULT_THRESHOLDS,
) -> MasteryStage:
    """Highest stage whose thresholds the state meets."""
    if state.exposure_count == 0:
        return MasteryStage.UNSEEN

    t = thresholds
    cue_free = state.cue_free_accuracy
    assisted = state.cue_assisted_accuracy
    stability = state.stability

    if (
        cue_free >= t.stage4_cue_free_accuracy
        and stability >= t.stage4_stability
        and scaffolding_gap(state) <= t.stage4_max_gap
    ):
        return MasteryStage.MASTERED
    if cue_free >= t.stage3_cue_free_accuracy and stability >= t.stage3_stability:
        return MasteryStage.CONTROLLED
    if cue_free >= t.stage2_cue_free_accuracy or assisted >= t.stage2_cue_assisted_accuracy:
        return MasteryStage.RECALL
    if assisted >= t.stage1_cue_assisted_accuracy or cue_free > 0:
        return MasteryStage.RECOGNITION
    return MasteryStage.UNSEEN


def recommended_cue_level(state: MasteryState) -> int:
    """
    Cue level (0-3) for the next prompt.

    Full cues for unseen items or a wide scaffolding gap; none once the gap
    has closed over enough attempts.
    """
    if state.exposure_count == 0:
        return 3
    gap = scaffolding_gap(state)
    if gap < 0.10 and state.exposure_count >= 5:
        return 0
    if gap < 0.20:
        return 1
    if gap < 0.30:
        return 2
    return 3


def update_mastery(
    state: MasteryState,
    response: Response,
    card: RetentionCard | None = None,
    thresholds: StageThresholds = DEFAULT_THRESHOLDS,
) -> MasteryState:
    """
    Fold a response into the mastery counters and re-derive the stage.

    Args:
        state: Current state
        response: The new response
        card: Retention card after this response was scheduled (optional)
    """
    correct = 1 if response.correct else 0
    if response.cue_level == 0:
        updated = replace(
            state,
            cue_free_attempts=state.cue_free_attempts + 1,
            cue_free_correct=state.cue_free_correct + correct,
        )
    else:
        updated = replace(
            state,
            cue_assisted_attempts=state.cue_assisted_attempts + 1,
            cue_assisted_correct=state.cue_assisted_correct + correct,
        )

    updated = replace(
        updated,
        card=card if card is not None else state.card,
        last_response_at=response.timestamp,
    )
    return replace(updated, stage=determine_stage(updated, thresholds))
