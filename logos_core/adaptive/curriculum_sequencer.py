"""
Curriculum Sequencer.

Orders prerequisite-linked constructs (grammar patterns and the like) into
a learning path, then packs the path into bounded study sessions.

Ordering is a priority-guided topological sort:
- A construct is Ready once every in-set prerequisite is consumed or
  already at the required mastery stage
- The highest-scoring Ready construct is emitted next
- If nothing is Ready but constructs remain (a cycle), the rest are
  emitted by score alone and the result is flagged degraded

Readiness uses an explicit in-degree / dependents map, never recursion, so
cyclic data cannot loop.
"""
from __future__ import annotations

import heapq
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from logos_core.core.errors import StructuralAnomaly
from logos_core.core.mastery import MasteryStage
from logos_core.core.models import (
    Construct,
    ConstructScoreBreakdown,
    ScoredConstruct,
    SessionPlan,
)


class OrderingMode(str, Enum):
    """Which signal the caller wants to dominate the order."""

    FREQUENCY = "frequency"
    COMPLEXITY = "complexity"


@dataclass(frozen=True)
class SequencerConfig:
    """Scoring weights and gating for curriculum sequencing."""

    frequency_weight: float = 1.0
    simplicity_weight: float = 1.0
    prerequisite_weight: float = 0.5
    cognitive_load_weight: float = 0.5
    core_bonus: float = 0.5
    ordering: OrderingMode = OrderingMode.COMPLEXITY
    frequency_amplifier: float = 1.5
    active_learning_boost: float = 1.3
    mastered_penalty: float = 0.1
    exclude_mastered: bool = False
    prerequisite_stage: int = MasteryStage.RECALL
    minutes_per_construct: float = 5.0

    def __post_init__(self) -> None:
        if not 0 <= self.prerequisite_stage <= 4:
            raise ValueError("prerequisite_stage must be in 0..4")
        if self.minutes_per_construct <= 0:
            raise ValueError("minutes_per_construct must be > 0")


@dataclass
class SequenceResult:
    """Ordered constructs plus the degraded-mode diagnostic."""

    ordered: list[ScoredConstruct] = field(default_factory=list)
    degraded: bool = False
    unresolved_ids: list[str] = field(default_factory=list)
    excluded_ids: list[str] = field(default_factory=list)

    @property
    def anomaly(self) -> StructuralAnomaly | None:
        """The structural anomaly behind a degraded result, if any."""
        if not self.degraded:
            return None
        return StructuralAnomaly(self.unresolved_ids)

    @property
    def construct_ids(self) -> list[str]:
        return [sc.construct_id for sc in self.ordered]


class CurriculumSequencer:
    """
    Sequence constructs for learning.

    Usage:
        sequencer = CurriculumSequencer(SequencerConfig(ordering=OrderingMode.FREQUENCY))
        result = sequencer.sequence(constructs, {"past-simple": 2})
        sessions = sequencer.pack_sessions(result.ordered, time_budget=30, load_ceiling=12)
    """

    def __init__(self, config: SequencerConfig | None = None):
        self.config = config or SequencerConfig()

    # =========================================================================
    # SCORING
    # =========================================================================

    def score(
        self,
        construct: Construct,
        mastery_by_construct: Mapping[str, int],
    ) -> ScoredConstruct:
        """
        Score one construct.

        Additive base (frequency, simplicity, prerequisite, load, core bonus)
        scaled by a mastery factor: boosted for stages 1-3, demoted at 4.
        """
        cfg = self.config
        stage = MasteryStage(_stage_of(construct.construct_id, mastery_by_construct))
        unmet = self.unmet_prerequisites(construct, mastery_by_construct)

        frequency = cfg.frequency_weight * construct.frequency
        if cfg.ordering == OrderingMode.FREQUENCY:
            frequency *= cfg.frequency_amplifier

        if stage == MasteryStage.MASTERED:
            mastery_factor = cfg.mastered_penalty
        elif stage.is_active:
            mastery_factor = cfg.active_learning_boost
        else:
            mastery_factor = 1.0

        breakdown = ConstructScoreBreakdown(
            frequency=frequency,
            simplicity=cfg.simplicity_weight * (1.0 - construct.complexity),
            prerequisite=cfg.prerequisite_weight / (1.0 + len(unmet)),
            cognitive_load=cfg.cognitive_load_weight
            * (1.0 - (construct.cognitive_load.mean - 1.0) / 4.0),
            core_bonus=cfg.core_bonus if construct.is_core else 0.0,
            mastery_factor=mastery_factor,
        )

        return ScoredConstruct(
            construct=construct,
            mastery_stage=int(stage),
            breakdown=breakdown,
            ready_to_learn=not unmet,
            unmet_prerequisites=frozenset(unmet),
        )

    def unmet_prerequisites(
        self,
        construct: Construct,
        mastery_by_construct: Mapping[str, int],
    ) -> set[str]:
        """Prerequisites below the required mastery stage."""
        return {
            p
            for p in construct.prerequisites
            if _stage_of(p, mastery_by_construct) < self.config.prerequisite_stage
        }

    # =========================================================================
    # ORDERING
    # =========================================================================

    def sequence(
        self,
        constructs: Sequence[Construct],
        mastery_by_construct: Mapping[str, int] | None = None,
    ) -> SequenceResult:
        """
        Order constructs so prerequisites come first, best score first among Ready.

        Args:
            constructs: Constructs to order (ids must be unique)
            mastery_by_construct: Learner stage per construct id (missing = 0)

        Returns:
            SequenceResult; degraded=True when a cycle forced score-only ordering
        """
        mastery_by_construct = mastery_by_construct or {}
        result = SequenceResult()

        scored: list[ScoredConstruct] = []
        seen: set[str] = set()
        for construct in constructs:
            if construct.construct_id in seen:
                raise ValueError(f"Duplicate construct id: {construct.construct_id}")
            seen.add(construct.construct_id)

            sc = self.score(construct, mastery_by_construct)
            if self.config.exclude_mastered and sc.mastery_stage == MasteryStage.MASTERED:
                result.excluded_ids.append(sc.construct_id)
                continue
            scored.append(sc)

        # Arena: index per construct, edges only between in-set, unmet constructs
        index = {sc.construct_id: i for i, sc in enumerate(scored)}
        in_degree = [0] * len(scored)
        dependents: dict[int, list[int]] = defaultdict(list)

        for i, sc in enumerate(scored):
            for prereq_id in sc.unmet_prerequisites:
                j = index.get(prereq_id)
                if j is None:
                    continue  # not in this batch; reflected in ready_to_learn only
                in_degree[i] += 1
                dependents[j].append(i)

        ready = [(-scored[i].score, i) for i in range(len(scored)) if in_degree[i] == 0]
        heapq.heapify(ready)
        consumed = [False] * len(scored)

        while ready:
            _, i = heapq.heappop(ready)
            consumed[i] = True
            result.ordered.append(scored[i])
            for k in dependents[i]:
                in_degree[k] -= 1
                if in_degree[k] == 0:
                    heapq.heappush(ready, (-scored[k].score, k))

        if len(result.ordered) < len(scored):
            remaining = [i for i in range(len(scored)) if not consumed[i]]
            remaining.sort(key=lambda i: (-scored[i].score, i))
            result.degraded = True
            result.unresolved_ids = [scored[i].construct_id for i in remaining]
            logger.warning(
                f"{result.anomaly}; falling back to priority order for the remainder"
            )
            result.ordered.extend(scored[i] for i in remaining)

        logger.debug(
            f"Sequenced {len(result.ordered)} constructs "
            f"(excluded={len(result.excluded_ids)}, degraded={result.degraded})"
        )
        return result

    # =========================================================================
    # SESSION PACKING
    # =========================================================================

    def pack_sessions(
        self,
        ordered: Sequence[ScoredConstruct],
        time_budget: float,
        load_ceiling: float,
    ) -> list[SessionPlan]:
        """
        Split an ordered sequence into sessions in one greedy pass.

        A session closes when the next construct would push its minutes past
        time_budget or its summed mean load past load_ceiling. Order is kept.
        A construct that exceeds a limit on its own gets a session to itself,
        flagged oversized.
        """
        if time_budget <= 0 or load_ceiling <= 0:
            raise ValueError("time_budget and load_ceiling must be > 0")

        minutes = self.config.minutes_per_construct
        sessions: list[SessionPlan] = []
        current = SessionPlan(index=0)

        for sc in ordered:
            load = sc.construct.cognitive_load.mean
            fits = (
                current.total_minutes + minutes <= time_budget
                and current.total_load + load <= load_ceiling
            )
            if current.constructs and not fits:
                sessions.append(current)
                current = SessionPlan(index=len(sessions))

            current.constructs.append(sc)
            current.total_minutes += minutes
            current.total_load += load
            if current.total_minutes > time_budget or current.total_load > load_ceiling:
                current.oversized = True
                logger.debug(f"Construct {sc.construct_id} exceeds session limits on its own")

        if current.constructs:
            sessions.append(current)

        return sessions


def _stage_of(construct_id: str, mastery_by_construct: Mapping[str, int]) -> int:
    stage = int(mastery_by_construct.get(construct_id, 0))
    return max(0, min(4, stage))


# =============================================================================
# MODULE ENTRY POINTS
# =============================================================================


def sequence_curriculum(
    constructs: Sequence[Construct],
    mastery_by_construct: Mapping[str, int] | None = None,
    config: SequencerConfig | None = None,
) -> SequenceResult:
    """Sequence constructs; config defaults come from settings."""
    if config is None:
        from config import get_settings

        config = get_settings().get_sequencer_config()
    return CurriculumSequencer(config).sequence(constructs, mastery_by_construct)


def pack_sessions(
    ordered: Sequence[ScoredConstruct],
    time_budget: float | None = None,
    load_ceiling: float | None = None,
    config: SequencerConfig | None = None,
) -> list[SessionPlan]:
    """Pack an ordered sequence; missing limits come from settings."""
    if config is None or time_budget is None or load_ceiling is None:
        from config import get_settings

        settings = get_settings()
        config = config or settings.get_sequencer_config()
        time_budget = time_budget if time_budget is not None else settings.session_time_budget_minutes
        load_ceiling = load_ceiling if load_ceiling is not None else settings.session_load_ceiling
    return CurriculumSequencer(config).pack_sessions(ordered, time_budget, load_ceiling)
