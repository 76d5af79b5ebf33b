"""
Sale stage model.

One fundraising tranche with its own cap and per-user purchase bounds.
Stage ids are sequential and start at 0; stages are never deleted.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from tokensale.models.base import Base
from tokensale.models.types import TokenAmountType


class SaleStage(Base):
    """Sale stage - capped tranche of the sale."""

    __tablename__ = "sale_stages"
    __table_args__ = (
        CheckConstraint('cap > 0', name='check_stage_cap_positive'),
        CheckConstraint(
            'min_purchase >= 0', name='check_stage_min_purchase_non_negative'
        ),
        CheckConstraint(
            'max_purchase >= min_purchase',
            name='check_stage_max_not_below_min'
        ),
        CheckConstraint(
            'total_raised >= 0', name='check_stage_raised_non_negative'
        ),
        CheckConstraint(
            'total_raised <= cap', name='check_stage_raised_not_exceeds_cap'
        ),
    )

    # Sequential id assigned by the ledger (0, 1, 2, ...)
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False
    )

    cap: Mapped[int] = mapped_column(TokenAmountType, nullable=False)
    min_purchase: Mapped[int] = mapped_column(TokenAmountType, nullable=False)
    max_purchase: Mapped[int] = mapped_column(TokenAmountType, nullable=False)
    total_raised: Mapped[int] = mapped_column(
        TokenAmountType, default=0, nullable=False
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, index=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def remaining_capacity(self) -> int:
        """Amount the stage can still raise."""
        return self.cap - self.total_raised

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SaleStage(id={self.id}, cap={self.cap}, "
            f"total_raised={self.total_raised}, "
            f"min_purchase={self.min_purchase}, "
            f"max_purchase={self.max_purchase}, "
            f"is_active={self.is_active})>"
        )
