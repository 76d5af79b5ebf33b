"""
Contribution models.

Cumulative stable-unit amounts per (stage, user) and per user across all
stages. Both only grow and are written only by the stage ledger.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from tokensale.models.base import Base
from tokensale.models.types import TokenAmountType


class StageContribution(Base):
    """User contribution within one stage."""

    __tablename__ = "stage_contributions"
    __table_args__ = (
        UniqueConstraint(
            'stage_id', 'user_address', name='uq_stage_contribution_user'
        ),
        CheckConstraint(
            'amount >= 0', name='check_stage_contribution_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    stage_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sale_stages.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    user_address: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(
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
            f"<StageContribution(stage_id={self.stage_id}, "
            f"user_address={self.user_address}, amount={self.amount})>"
        )


class UserContribution(Base):
    """User contribution across all stages."""

    __tablename__ = "user_contributions"
    __table_args__ = (
        CheckConstraint(
            'total_amount >= 0', name='check_user_contribution_non_negative'
        ),
    )

    user_address: Mapped[str] = mapped_column(String(42), primary_key=True)
    total_amount: Mapped[int] = mapped_column(
        TokenAmountType, default=0, nullable=False
    )

    first_contribution_at: Mapped[datetime] = mapped_column(
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

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserContribution(user_address={self.user_address}, "
            f"total_amount={self.total_amount})>"
        )
