"""
Study Service.

Wires the pure scheduling components to the persistence adapter:
- Record a response and reschedule its item's retention card
- Re-estimate a learner's ability on one component
- Re-rank every item of a component and persist the new priorities

Each operation runs in one transaction (session_scope), so a failure
leaves the stored cards and priorities as they were.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy.orm import Session

from logos_core.adaptive.ability_estimator import AbilityEstimator, IRTConfig
from logos_core.adaptive.priority_ranker import PriorityRanker, RankedItem
from logos_core.core.errors import InsufficientData, InvariantViolation
from logos_core.core.models import EstimationMethod, RetentionCard, Response, ThetaEstimate
from logos_core.db.database import session_scope
from logos_core.db.repositories import CardRepository, ItemRepository, ResponseRepository
from logos_core.study.retention_engine import FSRSScheduler, grade_response


class StudyService:
    """
    High-level study operations over a session factory.

    Usage:
        service = StudyService(get_session_factory())
        card = service.record_response(response, now)
        ranked = service.rerank_component("learner-1", "LEX", now)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        scheduler: FSRSScheduler | None = None,
        ranker: PriorityRanker | None = None,
        estimator: AbilityEstimator | None = None,
        history_window_days: int | None = None,
        level_adjusted_weights: bool | None = None,
    ):
        if scheduler is None or ranker is None or estimator is None:
            from config import get_settings

            settings = get_settings()
            scheduler = scheduler or FSRSScheduler(settings.get_fsrs_config())
            ranker = ranker or PriorityRanker(
                settings.get_priority_weights(), settings.get_urgency_config()
            )
            estimator = estimator or AbilityEstimator(settings.get_irt_config())
            if history_window_days is None:
                history_window_days = settings.irt_history_window_days
            if level_adjusted_weights is None:
                level_adjusted_weights = settings.priority_level_adjusted

        self.session_factory = session_factory
        self.scheduler = scheduler
        self.ranker = ranker
        self.estimator = estimator
        self.history_window_days = history_window_days
        self.level_adjusted_weights = bool(level_adjusted_weights)

    # =========================================================================
    # REVIEWS
    # =========================================================================

    def record_response(self, response: Response, now: datetime | None = None) -> RetentionCard | None:
        """
        Store a response and reschedule the item's card.

        A rejected update is logged and the stored card is kept; the
        response itself is still recorded.

        Returns:
            The card now stored for the item (None only if a first review
            was rejected)
        """
        now = now or response.timestamp
        rating = grade_response(response, self.scheduler.config)

        with session_scope(self.session_factory) as session:
            cards = CardRepository(session)
            prior = cards.get(response.item_id)

            try:
                updated = self.scheduler.schedule_review(prior, rating, now, item_id=response.item_id)
            except InvariantViolation as e:
                logger.error(f"Keeping prior card for {response.item_id}: {e} {e.values}")
                updated = None
            else:
                cards.save(updated)

            if response.learner_id is not None:
                ResponseRepository(session).record(response)
            else:
                logger.debug(
                    f"Response for {response.item_id} has no learner_id; not kept for re-estimation"
                )

        if updated is None:
            return prior

        logger.debug(
            f"Recorded {response.item_id} rating={rating.name} next_review={updated.next_review}"
        )
        return updated

    # =========================================================================
    # ABILITY
    # =========================================================================

    def estimate_theta(
        self,
        learner_id: str,
        component: str,
        since: datetime | None = None,
    ) -> ThetaEstimate:
        """Ability on one component from the learner's response history."""
        with session_scope(self.session_factory) as session:
            return self._estimate(session, learner_id, component, since)

    def _estimate(
        self,
        session: Session,
        learner_id: str,
        component: str,
        since: datetime | None,
    ) -> ThetaEstimate:
        responses = ResponseRepository(session).item_responses(learner_id, component, since)
        try:
            return self.estimator.estimate(responses)
        except InsufficientData as e:
            logger.info(f"{learner_id}/{component}: {e}; using default theta")
            return default_estimate(self.estimator.config, len(responses))

    # =========================================================================
    # RANKING
    # =========================================================================

    def rerank_component(
        self,
        learner_id: str,
        component: str,
        now: datetime | None = None,
    ) -> list[RankedItem]:
        """
        Recompute and persist priorities for every item of a component.

        The response window ends at `now` and spans history_window_days
        (the full history when unset). All priorities are written in one
        transaction.

        Returns:
            Items highest priority first, each with its urgency
        """
        now = now or datetime.now()
        since = None
        if self.history_window_days is not None:
            since = now - timedelta(days=self.history_window_days)

        with session_scope(self.session_factory) as session:
            items_repo = ItemRepository(session)
            items = items_repo.list_for_component(component)
            if not items:
                logger.warning(f"No items for component {component}")
                return []

            cards = CardRepository(session).get_many(item.item_id for item in items)
            estimate = self._estimate(session, learner_id, component, since)

            weights = None
            if self.level_adjusted_weights:
                weights = self.ranker.weights_for_theta(estimate.theta)

            updated = self.ranker.rerank(items, estimate.theta, cards, weights)
            items_repo.bulk_update_priorities(updated)
            ranked = self.ranker.rank(updated, estimate.theta, cards, now, weights)

        logger.info(
            f"Re-ranked {len(ranked)} {component} items for {learner_id} "
            f"(theta={estimate.theta:.3f}, method={estimate.method.value})"
        )
        return ranked


def default_estimate(config: IRTConfig, n_responses: int = 0) -> ThetaEstimate:
    """Placeholder estimate used while a learner has too few responses."""
    return ThetaEstimate(
        theta=0.0,
        standard_error=config.max_standard_error,
        method=EstimationMethod.DEFAULT,
        clamped=False,
        n_responses=n_responses,
    )
