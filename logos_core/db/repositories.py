"""
Repositories for items, retention cards and responses.

Each repository works inside a caller-owned Session; the surrounding
session_scope() decides the transaction boundary. Bulk writes check every
target before mutating any, so a failure leaves nothing half-applied.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from logos_core.core.models import Item, ItemResponse, RetentionCard, Response
from logos_core.db.models import ItemRecord, ResponseRecord, RetentionCardRecord


class ItemRepository:
    """Item catalog keyed by id."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, item_id: str) -> Item | None:
        record = self.session.get(ItemRecord, item_id)
        return record.to_domain() if record else None

    def add(self, item: Item) -> None:
        self.session.merge(ItemRecord.from_domain(item))

    def list_for_component(self, component: str) -> list[Item]:
        stmt = select(ItemRecord).where(ItemRecord.component == component).order_by(ItemRecord.item_id)
        return [record.to_domain() for record in self.session.scalars(stmt)]

    def bulk_update_priorities(self, items: Iterable[Item]) -> int:
        """
        Write new priorities for many items.

        Raises KeyError before any write if an item is unknown.
        """
        items = list(items)
        ids = [item.item_id for item in items]
        records = {
            r.item_id: r
            for r in self.session.scalars(select(ItemRecord).where(ItemRecord.item_id.in_(ids)))
        }
        missing = [item_id for item_id in ids if item_id not in records]
        if missing:
            raise KeyError(f"Unknown items: {', '.join(missing[:10])}")

        for item in items:
            records[item.item_id].priority = item.priority
        self.session.flush()
        logger.debug(f"Updated priorities for {len(items)} items")
        return len(items)


class CardRepository:
    """Retention card store: read by id, single and bulk writes."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, item_id: str) -> RetentionCard | None:
        record = self.session.get(RetentionCardRecord, item_id)
        return record.to_domain() if record else None

    def get_many(self, item_ids: Iterable[str]) -> dict[str, RetentionCard]:
        stmt = select(RetentionCardRecord).where(RetentionCardRecord.item_id.in_(list(item_ids)))
        return {record.item_id: record.to_domain() for record in self.session.scalars(stmt)}

    def save(self, card: RetentionCard) -> None:
        record = self.session.get(RetentionCardRecord, card.item_id)
        if record is None:
            record = RetentionCardRecord(item_id=card.item_id)
            self.session.add(record)
        record.apply(card)
        self.session.flush()

    def bulk_write(self, cards: Iterable[RetentionCard]) -> int:
        """Write many cards; cards are validated on construction, so this cannot half-fail on data."""
        cards = list(cards)
        existing = self.get_records([card.item_id for card in cards])
        for card in cards:
            record = existing.get(card.item_id)
            if record is None:
                record = RetentionCardRecord(item_id=card.item_id)
                self.session.add(record)
            record.apply(card)
        self.session.flush()
        return len(cards)

    def get_records(self, item_ids: list[str]) -> dict[str, RetentionCardRecord]:
        stmt = select(RetentionCardRecord).where(RetentionCardRecord.item_id.in_(item_ids))
        return {record.item_id: record for record in self.session.scalars(stmt)}


class ResponseRepository:
    """Write-once response log."""

    def __init__(self, session: Session):
        self.session = session

    def record(self, response: Response) -> None:
        if response.learner_id is None:
            raise ValueError("learner_id is required to record a response")
        self.session.add(
            ResponseRecord(
                learner_id=response.learner_id,
                item_id=response.item_id,
                component=response.component,
                correct=response.correct,
                cue_level=response.cue_level,
                response_time_ms=response.response_time_ms,
                responded_at=response.timestamp,
            )
        )
        self.session.flush()

    def history(
        self,
        learner_id: str,
        component: str | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[Response]:
        """Responses for a learner, oldest first, optionally scoped and windowed."""
        stmt = select(ResponseRecord).where(ResponseRecord.learner_id == learner_id)
        if component is not None:
            stmt = stmt.where(ResponseRecord.component == component)
        if since is not None:
            stmt = stmt.where(ResponseRecord.responded_at >= since)
        stmt = stmt.order_by(ResponseRecord.responded_at, ResponseRecord.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return [record.to_domain() for record in self.session.scalars(stmt)]

    def item_responses(
        self,
        learner_id: str,
        component: str | None = None,
        since: datetime | None = None,
    ) -> list[ItemResponse]:
        """History joined with item parameters, as consumed by the ability estimator."""
        stmt = (
            select(ResponseRecord.correct, ItemRecord.irt_discrimination, ItemRecord.irt_difficulty)
            .join(ItemRecord, ItemRecord.item_id == ResponseRecord.item_id)
            .where(ResponseRecord.learner_id == learner_id)
        )
        if component is not None:
            stmt = stmt.where(ResponseRecord.component == component)
        if since is not None:
            stmt = stmt.where(ResponseRecord.responded_at >= since)
        stmt = stmt.order_by(ResponseRecord.responded_at, ResponseRecord.id)
        return [
            ItemResponse(a=row.irt_discrimination, b=row.irt_difficulty, correct=row.correct)
            for row in self.session.execute(stmt)
        ]
