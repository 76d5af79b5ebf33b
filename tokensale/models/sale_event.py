"""
Sale event model.

Append-only log of observable events for off-chain indexing. Rows are
written in the same transaction as the change they describe.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from tokensale.models.base import Base


class SaleEventType(StrEnum):
    """Kinds of sale events."""

    CONTRIBUTION_RECORDED = "contribution_recorded"
    STAGE_ADDED = "stage_added"
    STAGE_ACTIVATED = "stage_activated"
    STAGE_DEACTIVATED = "stage_deactivated"
    STAGE_UPDATED = "stage_updated"
    SALE_STATUS_CHANGED = "sale_status_changed"
    HARD_CAP_UPDATED = "hard_cap_updated"
    REFERRER_LINKED = "referrer_linked"
    REFERRAL_EARNING_CREDITED = "referral_earning_credited"
    REFERRAL_CLAIMED = "referral_claimed"
    REFERRAL_RATES_UPDATED = "referral_rates_updated"
    REFERRAL_CLAIMS_TOGGLED = "referral_claims_toggled"


class SaleEvent(Base):
    """Recorded sale event."""

    __tablename__ = "sale_events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    event_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )
    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<SaleEvent(id={self.id}, event_type={self.event_type})>"
