"""
Priority Ranker.

Combines item metadata, ability match and review history into a single
additive priority score, and separately scores review urgency.

Formula:
    P(i) = w_f·F(i) + w_m·M(i, θ) + w_r·R(i) + w_e·E(i) + w_n·N(i)

Where:
    F(i) = corpus frequency (0-1)
    M(i, θ) = difficulty match, exp(-(b - θ)² / 2σ²), peaks at b == θ
    R(i) = relational density (collocation hub score)
    E(i) = contextual contribution
    N(i) = novelty (1 for unseen items, decays with review count)

Terms are summed, never multiplied, so one weak signal cannot zero out an
otherwise strong candidate. Combining priority and urgency into a queue
is left to the caller.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from loguru import logger

from logos_core.core.models import Item, RetentionCard, days_between

# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass(frozen=True)
class PriorityWeights:
    """Weights for the additive priority terms."""

    frequency: float = 0.35
    difficulty_match: float = 0.25
    relational_density: float = 0.15
    contextual_contribution: float = 0.15
    novelty: float = 0.10
    difficulty_width: float = 1.0  # σ of the difficulty-match curve, in logits

    def __post_init__(self) -> None:
        if self.difficulty_width <= 0:
            raise ValueError("difficulty_width must be > 0")


class LearnerLevel(str, Enum):
    """Coarse learner level inferred from theta."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# Beginners lean on frequency; advanced learners on context and connections
LEVEL_WEIGHT_ADJUSTMENTS: dict[LearnerLevel, PriorityWeights] = {
    LearnerLevel.BEGINNER: PriorityWeights(
        frequency=0.45,
        difficulty_match=0.25,
        relational_density=0.10,
        contextual_contribution=0.10,
        novelty=0.10,
    ),
    LearnerLevel.INTERMEDIATE: PriorityWeights(),
    LearnerLevel.ADVANCED: PriorityWeights(
        frequency=0.20,
        difficulty_match=0.25,
        relational_density=0.20,
        contextual_contribution=0.25,
        novelty=0.10,
    ),
}


@dataclass(frozen=True)
class PriorityBreakdown:
    """Un-weighted term values of a priority calculation."""

    frequency: float = 0.0
    difficulty_match: float = 0.0
    relational_density: float = 0.0
    contextual_contribution: float = 0.0
    novelty: float = 0.0
    weights: PriorityWeights = field(default_factory=PriorityWeights)

    @property
    def total(self) -> float:
        """Weighted sum of all terms."""
        w = self.weights
        return (
            w.frequency * self.frequency
            + w.difficulty_match * self.difficulty_match
            + w.relational_density * self.relational_density
            + w.contextual_contribution * self.contextual_contribution
            + w.novelty * self.novelty
        )

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {
            "frequency": round(self.frequency, 3),
            "difficulty_match": round(self.difficulty_match, 3),
            "relational_density": round(self.relational_density, 3),
            "contextual_contribution": round(self.contextual_contribution, 3),
            "novelty": round(self.novelty, 3),
            "total": round(self.total, 3),
        }


@dataclass(frozen=True)
class PriorityResult:
    """Priority score for one item."""

    item_id: str
    score: float
    breakdown: PriorityBreakdown


@dataclass(frozen=True)
class UrgencyConfig:
    """Shape of the urgency curve."""

    overdue_cap: float = 3.0
    time_constant_days: float = 7.0
    future_penalty: float = 0.5
    new_item_urgency: float = 1.5

    def __post_init__(self) -> None:
        if self.overdue_cap <= 1.0:
            raise ValueError("overdue_cap must be > 1")
        if self.time_constant_days <= 0:
            raise ValueError("time_constant_days must be > 0")
        if not 0.0 <= self.future_penalty < 1.0:
            raise ValueError("future_penalty must be in [0, 1)")


@dataclass(frozen=True)
class RankedItem:
    """An item with both of its ranking signals."""

    item: Item
    priority: PriorityResult
    urgency: float


# =============================================================================
# LEVEL HELPERS
# =============================================================================


def infer_level(theta: float) -> LearnerLevel:
    """Beginner below -1, advanced from 1, intermediate in between."""
    if theta < -1.0:
        return LearnerLevel.BEGINNER
    if theta < 1.0:
        return LearnerLevel.INTERMEDIATE
    return LearnerLevel.ADVANCED


def get_weights_for_level(
    level: LearnerLevel | str,
    difficulty_width: float | None = None,
) -> PriorityWeights:
    """Weights tuned for a learner level, optionally with a custom match width."""
    weights = LEVEL_WEIGHT_ADJUSTMENTS[LearnerLevel(level)]
    if difficulty_width is not None:
        weights = replace(weights, difficulty_width=difficulty_width)
    return weights


# =============================================================================
# RANKER
# =============================================================================


class PriorityRanker:
    """
    Scores items for inclusion in a study session.

    Usage:
        ranker = PriorityRanker()
        result = ranker.compute_priority(item, theta=0.3, card=None)
        urgency = ranker.compute_urgency(card.next_review, now)
    """

    def __init__(
        self,
        weights: PriorityWeights | None = None,
        urgency: UrgencyConfig | None = None,
    ):
        self.weights = weights or PriorityWeights()
        self.urgency_config = urgency or UrgencyConfig()

    # =========================================================================
    # SIGNAL FUNCTIONS
    # =========================================================================

    def weights_for_theta(self, theta: float) -> PriorityWeights:
        """Level preset for theta, keeping this ranker's difficulty width."""
        return get_weights_for_level(infer_level(theta), self.weights.difficulty_width)

    def compute_difficulty_match(
        self,
        irt_difficulty: float,
        theta: float,
        width: float | None = None,
    ) -> float:
        """
        Bell-shaped match between item difficulty and ability.

        1.0 when b == theta, symmetric decay as the gap widens.
        """
        gap = irt_difficulty - theta
        width = width or self.weights.difficulty_width
        return math.exp(-(gap * gap) / (2.0 * width * width))

    def compute_novelty(self, card: RetentionCard | None) -> float:
        """
        Novelty signal N(i) = 1 / (1 + log(1 + reps)).

        Items never reviewed get the maximum.
        """
        if card is None or card.reps == 0:
            return 1.0
        return 1.0 / (1.0 + math.log(1.0 + card.reps))

    def compute_priority(
        self,
        item: Item,
        theta: float,
        card: RetentionCard | None = None,
        weights: PriorityWeights | None = None,
    ) -> PriorityResult:
        """
        Compute the additive priority of an item for a learner.

        Args:
            item: Item to score
            theta: Learner ability on the item's component
            card: Retention card, or None for unseen items
            weights: Override the ranker's weights (e.g. level-adjusted)

        Returns:
            PriorityResult with score and per-term breakdown
        """
        weights = weights or self.weights
        breakdown = PriorityBreakdown(
            frequency=item.frequency,
            difficulty_match=self.compute_difficulty_match(
                item.irt_difficulty, theta, weights.difficulty_width
            ),
            relational_density=item.relational_density,
            contextual_contribution=item.contextual_contribution,
            novelty=self.compute_novelty(card),
            weights=weights,
        )
        return PriorityResult(item_id=item.item_id, score=breakdown.total, breakdown=breakdown)

    def compute_urgency(self, next_review: datetime | None, now: datetime) -> float:
        """
        Review urgency from the due date.

        Overdue (now >= next_review): 1 + (cap - 1)(1 - e^(-d/τ)), strictly
        increasing in days overdue, never below 1.
        Not yet due: -penalty (1 - e^(d/τ)), in (-penalty, 0].
        Never reviewed: the configured new-item urgency.
        """
        cfg = self.urgency_config
        if next_review is None:
            return cfg.new_item_urgency

        overdue_days = days_between(next_review, now)
        tau = cfg.time_constant_days

        if overdue_days >= 0:
            return 1.0 + (cfg.overdue_cap - 1.0) * (1.0 - math.exp(-overdue_days / tau))
        return -cfg.future_penalty * (1.0 - math.exp(overdue_days / tau))

    # =========================================================================
    # BATCH COMPUTATION
    # =========================================================================

    def rank(
        self,
        items: Iterable[Item],
        theta: float,
        cards: Mapping[str, RetentionCard] | None = None,
        now: datetime | None = None,
        weights: PriorityWeights | None = None,
    ) -> list[RankedItem]:
        """
        Score a batch of items, highest priority first.

        Ties keep input order.
        """
        cards = cards or {}
        now = now or datetime.now()

        ranked = []
        for item in items:
            card = cards.get(item.item_id)
            ranked.append(
                RankedItem(
                    item=item,
                    priority=self.compute_priority(item, theta, card, weights),
                    urgency=self.compute_urgency(card.next_review if card else None, now),
                )
            )

        ranked.sort(key=lambda r: r.priority.score, reverse=True)
        return ranked

    def rerank(
        self,
        items: Iterable[Item],
        theta: float,
        cards: Mapping[str, RetentionCard] | None = None,
        weights: PriorityWeights | None = None,
    ) -> list[Item]:
        """
        Recompute priorities for a set of items.

        Every score is computed before any copy is returned, so a failure
        leaves the caller with no partially updated set.
        """
        cards = cards or {}
        items = list(items)
        scores = [
            self.compute_priority(item, theta, cards.get(item.item_id), weights).score
            for item in items
        ]
        logger.debug(f"Re-ranked {len(items)} items at theta={theta:.3f}")
        return [item.with_priority(score) for item, score in zip(items, scores)]


def get_top_priority_items(ranked: list[RankedItem], count: int) -> list[RankedItem]:
    """First `count` entries of an already ranked list."""
    return ranked[: max(0, count)]


# =============================================================================
# MODULE ENTRY POINTS
# =============================================================================


def _default_ranker() -> PriorityRanker:
    from config import get_settings

    settings = get_settings()
    return PriorityRanker(settings.get_priority_weights(), settings.get_urgency_config())


def compute_priority(item: Item, theta: float, card: RetentionCard | None = None) -> PriorityResult:
    """Priority with settings-derived weights."""
    return _default_ranker().compute_priority(item, theta, card)


def compute_urgency(next_review: datetime | None, now: datetime) -> float:
    """Urgency with settings-derived curve."""
    return _default_ranker().compute_urgency(next_review, now)
