"""
Retention Engine - FSRS-style spaced repetition.

Each item carries a memory model (stability S in days, difficulty D in
1-10). A review outcome is reduced to a 1-4 rating, which drives:

1. New cards - rating-indexed initial stability and difficulty
2. Recall (rating >= 2) - stability grows, more so when recall was hard
   (low retrievability at review time: the spacing effect)
3. Lapse (rating = 1) - stability shrinks multiplicatively, lapses += 1

Forgetting curve (power law):
    R(t) = (1 + t / (9 * S)) ^ -1

The next review is scheduled where R falls to the desired retention.

Based on:
- Wozniak (SM algorithms)
- Ye (FSRS algorithm)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum

from loguru import logger

from logos_core.core.errors import InvariantViolation
from logos_core.core.models import RetentionCard, Response, days_between


class Rating(IntEnum):
    """Coarse review quality."""

    AGAIN = 1  # Incorrect
    HARD = 2  # Correct with cues
    GOOD = 3  # Correct, unassisted, slow
    EASY = 4  # Correct, unassisted, fast


# =============================================================================
# FSRS CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class FSRSConfig:
    """
    Named FSRS constants.

    initial_stability must be strictly increasing so that
    S(Again) < S(Hard) < S(Good) < S(Easy) for new cards.
    """

    initial_stability: tuple[float, ...] = (0.4, 0.9, 2.4, 5.8)
    initial_difficulty: tuple[float, ...] = (7.5, 6.5, 5.0, 3.5)
    latency_threshold_ms: int = 3000
    desired_retention: float = 0.9
    maximum_interval_days: int = 365
    forgetting_factor: float = 9.0

    # Recall: S' = S * (1 + e^w * (11 - D) * S^-decay * (e^((1 - R) * k) - 1) * factor)
    stability_growth: float = 1.26
    stability_decay: float = 0.29
    retrievability_gain: float = 2.61
    hard_penalty: float = 0.5
    easy_bonus: float = 1.3
    minimum_recall_gain: float = 0.05

    # Lapse: S' = S * lapse_stability_factor * (1.1 - D / 10)
    lapse_stability_factor: float = 0.3

    difficulty_step: float = 0.6
    min_difficulty: float = 1.0
    max_difficulty: float = 10.0

    def __post_init__(self) -> None:
        if len(self.initial_stability) < 4 or len(self.initial_difficulty) < 4:
            raise ValueError("initial_stability and initial_difficulty need 4 entries")
        if any(a >= b for a, b in zip(self.initial_stability, self.initial_stability[1:])):
            raise ValueError("initial_stability must be strictly increasing")
        if not 0.0 < self.desired_retention < 1.0:
            raise ValueError("desired_retention must be in (0, 1)")
        if not 0.0 < self.lapse_stability_factor < 1.0:
            raise ValueError("lapse_stability_factor must be in (0, 1)")


# =============================================================================
# RATING DERIVATION
# =============================================================================


def grade_response(response: Response, config: FSRSConfig | None = None) -> Rating:
    """
    Convert a response to a rating.

    - incorrect                          -> Again
    - correct with any cue               -> Hard
    - correct, no cue, at/above latency  -> Good
    - correct, no cue, below latency     -> Easy
    """
    config = config or FSRSConfig()
    if not response.correct:
        return Rating.AGAIN
    if response.cue_level > 0:
        return Rating.HARD
    if response.response_time_ms >= config.latency_threshold_ms:
        return Rating.GOOD
    return Rating.EASY


# =============================================================================
# SCHEDULER
# =============================================================================


class FSRSScheduler:
    """
    Spaced repetition scheduler.

    Pure: every call takes the prior card and returns a new one. A rejected
    update raises InvariantViolation and leaves the caller's card as it was.
    """

    def __init__(self, config: FSRSConfig | None = None):
        self.config = config or FSRSConfig()

    def retrievability(self, card: RetentionCard, at: datetime) -> float:
        """Recall probability at time `at` (0.0 for never-reviewed cards)."""
        if card.last_review is None:
            return 0.0
        elapsed = max(0.0, days_between(card.last_review, at))
        return self._retrievability(card.stability, elapsed)

    def _retrievability(self, stability: float, elapsed_days: float) -> float:
        return 1.0 / (1.0 + elapsed_days / (self.config.forgetting_factor * stability))

    def next_interval(self, stability: float) -> int:
        """
        Days until R drops to the desired retention.

        Solves R = (1 + t / (9S))^-1 for t.
        """
        cfg = self.config
        interval = cfg.forgetting_factor * stability * (1.0 / cfg.desired_retention - 1.0)
        return max(1, min(cfg.maximum_interval_days, round(interval)))

    def schedule_review(
        self,
        card: RetentionCard | None,
        rating: int,
        now: datetime,
        item_id: str | None = None,
    ) -> RetentionCard:
        """
        Apply a review and return the updated card.

        Args:
            card: Current card, or None on first exposure
            rating: 1-4 (Again, Hard, Good, Easy)
            now: Review time
            item_id: Required when card is None

        Raises:
            ValueError: rating outside 1-4, or no item id for a new card
            InvariantViolation: prior or computed stability is not positive
        """
        if rating not in (1, 2, 3, 4):
            raise ValueError(f"rating must be 1-4, got {rating}")
        rating = Rating(rating)

        if card is None or card.reps == 0:
            return self._initialize(card, rating, now, item_id)

        if not (math.isfinite(card.stability) and card.stability > 0):
            self._reject(card, "prior stability not positive", stability=card.stability)

        r = self.retrievability(card, now)

        if rating == Rating.AGAIN:
            stability = self._next_forget_stability(card.difficulty, card.stability)
            lapses = card.lapses + 1
        else:
            stability = self._next_recall_stability(card.difficulty, card.stability, r, rating)
            lapses = card.lapses

        if not (math.isfinite(stability) and stability > 0):
            self._reject(card, "computed stability not positive", stability=stability)

        difficulty = self._next_difficulty(card.difficulty, rating)
        interval = self.next_interval(stability)

        logger.debug(
            f"Review {card.item_id}: rating={rating.name} R={r:.3f} "
            f"S {card.stability:.2f}->{stability:.2f} D {card.difficulty:.2f}->{difficulty:.2f} "
            f"next in {interval}d"
        )

        return RetentionCard(
            item_id=card.item_id,
            stability=stability,
            difficulty=difficulty,
            reps=card.reps + 1,
            lapses=lapses,
            last_review=now,
            next_review=now + timedelta(days=interval),
        )

    def _initialize(
        self,
        card: RetentionCard | None,
        rating: Rating,
        now: datetime,
        item_id: str | None,
    ) -> RetentionCard:
        """First exposure - use rating-indexed initial values."""
        item_id = card.item_id if card is not None else item_id
        if item_id is None:
            raise ValueError("item_id is required when scheduling a new card")

        stability = self.config.initial_stability[rating - 1]
        difficulty = self.config.initial_difficulty[rating - 1]
        interval = self.next_interval(stability)

        return RetentionCard(
            item_id=item_id,
            stability=stability,
            difficulty=difficulty,
            reps=1,
            lapses=1 if rating == Rating.AGAIN else 0,
            last_review=now,
            next_review=now + timedelta(days=interval),
        )

    def _next_recall_stability(self, d: float, s: float, r: float, rating: Rating) -> float:
        """Stability after successful recall; always strictly larger than s."""
        cfg = self.config
        factor = 1.0
        if rating == Rating.HARD:
            factor = cfg.hard_penalty
        elif rating == Rating.EASY:
            factor = cfg.easy_bonus

        gain = (
            math.exp(cfg.stability_growth)
            * (11.0 - d)
            * math.pow(s, -cfg.stability_decay)
            * (math.exp((1.0 - r) * cfg.retrievability_gain) - 1.0)
            * factor
        )
        return s * (1.0 + max(cfg.minimum_recall_gain, gain))

    def _next_forget_stability(self, d: float, s: float) -> float:
        """Stability after a lapse; always strictly smaller than s."""
        return s * self.config.lapse_stability_factor * (1.1 - d / 10.0)

    def _next_difficulty(self, d: float, rating: Rating) -> float:
        """Easy lowers difficulty, Hard raises it, a lapse raises it twice as much."""
        cfg = self.config
        if rating == Rating.AGAIN:
            new_d = d + 2 * cfg.difficulty_step
        else:
            new_d = d - cfg.difficulty_step * (rating - Rating.GOOD)
        return max(cfg.min_difficulty, min(cfg.max_difficulty, new_d))

    def _reject(self, card: RetentionCard, reason: str, **values) -> None:
        logger.error(f"Rejected review for {card.item_id}: {reason} {values}")
        raise InvariantViolation(
            f"Review rejected for {card.item_id}: {reason}", item_id=card.item_id, **values
        )


# =============================================================================
# MODULE ENTRY POINTS
# =============================================================================


def _default_scheduler() -> FSRSScheduler:
    from config import get_settings

    return FSRSScheduler(get_settings().get_fsrs_config())


def schedule_review(
    card: RetentionCard | None,
    rating: int,
    now: datetime,
    item_id: str | None = None,
) -> RetentionCard:
    """Schedule a review with settings-derived constants."""
    return _default_scheduler().schedule_review(card, rating, now, item_id=item_id)


def retrievability(card: RetentionCard, at: datetime) -> float:
    """Recall probability with settings-derived constants."""
    return _default_scheduler().retrievability(card, at)
