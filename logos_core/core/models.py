"""
Domain models for the scheduling core.

Plain dataclasses shared by the estimator, scheduler, ranker and
sequencer. Persistence lives in logos_core.db; these objects never touch
a database.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from logos_core.core.errors import InvariantViolation

THETA_MIN = -4.0
THETA_MAX = 4.0

SECONDS_PER_DAY = 86400


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def days_between(start: datetime, end: datetime) -> float:
    """
    Fractional days from start to end (negative if end is earlier).

    When only one side is timezone-aware, it is converted to UTC and the
    naive side is taken to be UTC as well.
    """
    if (start.tzinfo is None) != (end.tzinfo is None):
        start = _naive_utc(start)
        end = _naive_utc(end)
    return (end - start).total_seconds() / SECONDS_PER_DAY


def _check_unit_interval(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


# =============================================================================
# ITEMS AND ABILITY
# =============================================================================


@dataclass(frozen=True)
class Item:
    """A unit of study (vocabulary entry, pattern) with calibrated IRT parameters."""

    item_id: str
    frequency: float  # corpus-normalized
    relational_density: float  # collocation hub score
    contextual_contribution: float
    irt_difficulty: float  # b
    irt_discrimination: float = 1.0  # a
    priority: float = 0.0
    component: str | None = None  # linguistic dimension, e.g. "LEX", "MORPH"

    def __post_init__(self) -> None:
        _check_unit_interval("frequency", self.frequency)
        _check_unit_interval("relational_density", self.relational_density)
        _check_unit_interval("contextual_contribution", self.contextual_contribution)
        if not self.irt_discrimination > 0:
            raise ValueError(f"irt_discrimination must be > 0, got {self.irt_discrimination}")
        if not math.isfinite(self.irt_difficulty):
            raise ValueError(f"irt_difficulty must be finite, got {self.irt_difficulty}")

    def with_priority(self, priority: float) -> Item:
        """Return a copy carrying a recomputed priority."""
        return replace(self, priority=priority)


@dataclass(frozen=True)
class ItemResponse:
    """One scored response on a calibrated item, as consumed by the estimator."""

    a: float  # discrimination
    b: float  # difficulty
    correct: bool


class EstimationMethod(str, Enum):
    """How a theta estimate was obtained."""

    MLE = "mle"
    MLE_DAMPED = "mle_damped"
    CLOSED_FORM = "closed_form"
    BOUNDARY = "boundary"
    EAP = "eap"
    DEFAULT = "default"


@dataclass(frozen=True)
class ThetaEstimate:
    """Ability estimate for one learner/component pair."""

    theta: float
    standard_error: float
    method: EstimationMethod = EstimationMethod.MLE
    clamped: bool = False
    n_responses: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "theta": round(self.theta, 4),
            "standard_error": round(self.standard_error, 4),
            "method": self.method.value,
            "clamped": self.clamped,
            "n_responses": self.n_responses,
        }


# =============================================================================
# RETENTION
# =============================================================================


@dataclass(frozen=True)
class RetentionCard:
    """
    Memory state for one item.

    New -> Learning -> Review is implied by reps/lapses; there is no state enum.
    """

    item_id: str
    stability: float  # days, > 0
    difficulty: float  # 1 (easy) to 10 (hard)
    reps: int = 0
    lapses: int = 0
    last_review: datetime | None = None
    next_review: datetime | None = None

    def __post_init__(self) -> None:
        if not (math.isfinite(self.stability) and self.stability > 0):
            raise InvariantViolation(
                f"stability must be > 0 for item {self.item_id}",
                item_id=self.item_id,
                stability=self.stability,
            )
        if not 1.0 <= self.difficulty <= 10.0:
            raise InvariantViolation(
                f"difficulty must be in [1, 10] for item {self.item_id}",
                item_id=self.item_id,
                difficulty=self.difficulty,
            )
        if self.lapses < 0 or self.reps < self.lapses:
            raise InvariantViolation(
                f"reps ({self.reps}) must be >= lapses ({self.lapses}) >= 0 for item {self.item_id}",
                item_id=self.item_id,
                reps=self.reps,
                lapses=self.lapses,
            )


@dataclass(frozen=True)
class Response:
    """A single answered prompt. Write-once."""

    item_id: str
    correct: bool
    cue_level: int  # 0 = no assistance, 3 = full cues
    response_time_ms: int
    timestamp: datetime
    learner_id: str | None = None
    component: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.cue_level <= 3:
            raise ValueError(f"cue_level must be in 0..3, got {self.cue_level}")
        if self.response_time_ms < 0:
            raise ValueError(f"response_time_ms must be >= 0, got {self.response_time_ms}")


# =============================================================================
# CURRICULUM
# =============================================================================


@dataclass(frozen=True)
class CognitiveLoad:
    """Five-dimension cognitive load profile, each rated 1-5."""

    intrinsic: int = 1
    extraneous: int = 1
    germane: int = 1
    working_memory: int = 1
    processing: int = 1

    def __post_init__(self) -> None:
        for name, value in self.as_dict().items():
            if not 1 <= value <= 5:
                raise ValueError(f"cognitive load {name} must be in 1..5, got {value}")

    def as_dict(self) -> dict[str, int]:
        return {
            "intrinsic": self.intrinsic,
            "extraneous": self.extraneous,
            "germane": self.germane,
            "working_memory": self.working_memory,
            "processing": self.processing,
        }

    @property
    def total(self) -> int:
        return sum(self.as_dict().values())

    @property
    def mean(self) -> float:
        return self.total / 5


@dataclass(frozen=True)
class Construct:
    """A learnable pattern (e.g. a grammar rule) with prerequisite links."""

    construct_id: str
    complexity: float
    frequency: float
    cognitive_load: CognitiveLoad = field(default_factory=CognitiveLoad)
    prerequisites: frozenset[str] = frozenset()
    is_core: bool = False
    name: str = ""

    def __post_init__(self) -> None:
        _check_unit_interval("complexity", self.complexity)
        _check_unit_interval("frequency", self.frequency)
        if not isinstance(self.prerequisites, frozenset):
            object.__setattr__(self, "prerequisites", frozenset(self.prerequisites))


@dataclass(frozen=True)
class ConstructScoreBreakdown:
    """Per-term contributions to a construct's sequencing score."""

    frequency: float = 0.0
    simplicity: float = 0.0
    prerequisite: float = 0.0
    cognitive_load: float = 0.0
    core_bonus: float = 0.0
    mastery_factor: float = 1.0

    @property
    def base(self) -> float:
        return (
            self.frequency
            + self.simplicity
            + self.prerequisite
            + self.cognitive_load
            + self.core_bonus
        )

    @property
    def total(self) -> float:
        return self.base * self.mastery_factor

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {
            "frequency": round(self.frequency, 4),
            "simplicity": round(self.simplicity, 4),
            "prerequisite": round(self.prerequisite, 4),
            "cognitive_load": round(self.cognitive_load, 4),
            "core_bonus": round(self.core_bonus, 4),
            "mastery_factor": round(self.mastery_factor, 4),
            "total": round(self.total, 4),
        }


@dataclass(frozen=True)
class ScoredConstruct:
    """A construct with its sequencing score and readiness."""

    construct: Construct
    mastery_stage: int
    breakdown: ConstructScoreBreakdown
    ready_to_learn: bool
    unmet_prerequisites: frozenset[str] = frozenset()

    @property
    def construct_id(self) -> str:
        return self.construct.construct_id

    @property
    def score(self) -> float:
        return self.breakdown.total


@dataclass
class SessionPlan:
    """One bounded study session, in sequence order."""

    index: int
    constructs: list[ScoredConstruct] = field(default_factory=list)
    total_minutes: float = 0.0
    total_load: float = 0.0
    oversized: bool = False

    @property
    def construct_ids(self) -> list[str]:
        return [sc.construct_id for sc in self.constructs]
