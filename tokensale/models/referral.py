"""
Referral models.

ReferralLink: user -> direct (level 1) referrer, set once on the first
contribution.
ReferralAccount: per-address earnings and claims.
ReferralEarning: one row per credited earning.
ReferralSettings: program rates and the claim gate (single row).
"""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from tokensale.models.base import Base
from tokensale.models.types import TokenAmountType


REFERRAL_SETTINGS_ID = 1


class ReferralLink(Base):
    """Immutable link from a contributor to their direct referrer."""

    __tablename__ = "referral_links"
    __table_args__ = (
        CheckConstraint(
            'user_address <> referrer_address',
            name='check_referral_link_not_self'
        ),
    )

    user_address: Mapped[str] = mapped_column(String(42), primary_key=True)
    referrer_address: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralLink(user_address={self.user_address}, "
            f"referrer_address={self.referrer_address})>"
        )


class ReferralAccount(Base):
    """Referral earnings ledger for one address."""

    __tablename__ = "referral_accounts"
    __table_args__ = (
        CheckConstraint(
            'claimed <= total_earned',
            name='check_referral_claimed_not_exceeds_earned'
        ),
        CheckConstraint(
            'claimed >= 0', name='check_referral_claimed_non_negative'
        ),
    )

    address: Mapped[str] = mapped_column(String(42), primary_key=True)

    level1_earned: Mapped[int] = mapped_column(
        TokenAmountType, default=0, nullable=False
    )
    level2_earned: Mapped[int] = mapped_column(
        TokenAmountType, default=0, nullable=False
    )
    total_earned: Mapped[int] = mapped_column(
        TokenAmountType, default=0, nullable=False
    )
    claimed: Mapped[int] = mapped_column(
        TokenAmountType, default=0, nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def pending(self) -> int:
        """Earned but not yet claimed."""
        return self.total_earned - self.claimed

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralAccount(address={self.address}, "
            f"total_earned={self.total_earned}, claimed={self.claimed})>"
        )


class ReferralEarning(Base):
    """Single referral credit."""

    __tablename__ = "referral_earnings"
    __table_args__ = (
        CheckConstraint(
            'level IN (1, 2)', name='check_referral_earning_level'
        ),
        CheckConstraint(
            'amount > 0', name='check_referral_earning_positive'
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    referrer_address: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )
    referred_address: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    base_amount: Mapped[int] = mapped_column(TokenAmountType, nullable=False)
    amount: Mapped[int] = mapped_column(TokenAmountType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralEarning(id={self.id}, "
            f"referrer_address={self.referrer_address}, "
            f"level={self.level}, amount={self.amount})>"
        )


class ReferralSettings(Base):
    """Referral program configuration."""

    __tablename__ = "referral_settings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, default=REFERRAL_SETTINGS_ID
    )

    # Parts per ten thousand
    level1_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    level2_rate: Mapped[int] = mapped_column(Integer, nullable=False)

    claims_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
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
            f"<ReferralSettings(level1_rate={self.level1_rate}, "
            f"level2_rate={self.level2_rate}, "
            f"claims_enabled={self.claims_enabled})>"
        )
