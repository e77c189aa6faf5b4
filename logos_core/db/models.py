"""
Scheduling Core Persistence Models.

SQLAlchemy models backing the collaborator stores:
- Items with their calibrated parameters and mutable priority
- Retention cards (one per item)
- Write-once responses, queried by learner/component/time window

Column types are portable so the same models run on PostgreSQL and SQLite.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from logos_core.core.models import Item, RetentionCard, Response


class Base(DeclarativeBase):
    pass


class ItemRecord(Base):
    """A study item and its latest priority score."""

    __tablename__ = "items"

    item_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    component: Mapped[str | None] = mapped_column(String(32), index=True)
    frequency: Mapped[float] = mapped_column(Float, default=0.0)
    relational_density: Mapped[float] = mapped_column(Float, default=0.0)
    contextual_contribution: Mapped[float] = mapped_column(Float, default=0.0)
    irt_difficulty: Mapped[float] = mapped_column(Float, default=0.0)
    irt_discrimination: Mapped[float] = mapped_column(Float, default=1.0)
    priority: Mapped[float] = mapped_column(Float, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ItemRecord {self.item_id} priority={self.priority}>"

    def to_domain(self) -> Item:
        return Item(
            item_id=self.item_id,
            frequency=self.frequency,
            relational_density=self.relational_density,
            contextual_contribution=self.contextual_contribution,
            irt_difficulty=self.irt_difficulty,
            irt_discrimination=self.irt_discrimination,
            priority=self.priority,
            component=self.component,
        )

    @classmethod
    def from_domain(cls, item: Item) -> ItemRecord:
        return cls(
            item_id=item.item_id,
            component=item.component,
            frequency=item.frequency,
            relational_density=item.relational_density,
            contextual_contribution=item.contextual_contribution,
            irt_difficulty=item.irt_difficulty,
            irt_discrimination=item.irt_discrimination,
            priority=item.priority,
        )


class RetentionCardRecord(Base):
    """FSRS memory state for one item."""

    __tablename__ = "retention_cards"

    item_id: Mapped[str] = mapped_column(
        ForeignKey("items.item_id", ondelete="CASCADE"), primary_key=True
    )
    stability: Mapped[float] = mapped_column(Float, nullable=False)
    difficulty: Mapped[float] = mapped_column(Float, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, default=0)
    lapses: Mapped[int] = mapped_column(Integer, default=0)
    last_review: Mapped[datetime | None] = mapped_column(DateTime)
    next_review: Mapped[datetime | None] = mapped_column(DateTime, index=True)

    def __repr__(self) -> str:
        return f"<RetentionCardRecord {self.item_id} S={self.stability} D={self.difficulty}>"

    def to_domain(self) -> RetentionCard:
        return RetentionCard(
            item_id=self.item_id,
            stability=self.stability,
            difficulty=self.difficulty,
            reps=self.reps,
            lapses=self.lapses,
            last_review=self.last_review,
            next_review=self.next_review,
        )

    def apply(self, card: RetentionCard) -> None:
        self.stability = card.stability
        self.difficulty = card.difficulty
        self.reps = card.reps
        self.lapses = card.lapses
        self.last_review = card.last_review
        self.next_review = card.next_review


class ResponseRecord(Base):
    """A single learner response."""

    __tablename__ = "responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    item_id: Mapped[str] = mapped_column(ForeignKey("items.item_id", ondelete="CASCADE"))
    component: Mapped[str | None] = mapped_column(String(32))
    correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    cue_level: Mapped[int] = mapped_column(Integer, default=0)
    response_time_ms: Mapped[int] = mapped_column(Integer, default=0)
    responded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_responses_learner_component_time", "learner_id", "component", "responded_at"),
    )

    def to_domain(self) -> Response:
        return Response(
            item_id=self.item_id,
            correct=self.correct,
            cue_level=self.cue_level,
            response_time_ms=self.response_time_ms,
            timestamp=self.responded_at,
            learner_id=self.learner_id,
            component=self.component,
        )
