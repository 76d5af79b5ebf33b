"""
Sale settings model.

Single row holding the sale switch, the pointer to the active stage and
the sale-wide cap and total.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from tokensale.models.base import Base
from tokensale.models.types import TokenAmountType


SALE_SETTINGS_ID = 1


class SaleSettings(Base):
    """Sale-wide state owned by the stage ledger."""

    __tablename__ = "sale_settings"
    __table_args__ = (
        CheckConstraint('hard_cap > 0', name='check_sale_hard_cap_positive'),
        CheckConstraint(
            'total_raised <= hard_cap',
            name='check_sale_raised_not_exceeds_hard_cap'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, default=SALE_SETTINGS_ID
    )

    sale_active: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    current_stage_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("sale_stages.id"), nullable=True
    )

    hard_cap: Mapped[int] = mapped_column(TokenAmountType, nullable=False)
    total_raised: Mapped[int] = mapped_column(
        TokenAmountType, default=0, nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SaleSettings(sale_active={self.sale_active}, "
            f"current_stage_id={self.current_stage_id}, "
            f"hard_cap={self.hard_cap}, total_raised={self.total_raised})>"
        )
