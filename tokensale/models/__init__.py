"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from tokensale.models.base import Base
from tokensale.models.contribution import StageContribution, UserContribution
from tokensale.models.referral import (
    ReferralAccount,
    ReferralEarning,
    ReferralLink,
    ReferralSettings,
)
from tokensale.models.sale_event import SaleEvent, SaleEventType
from tokensale.models.sale_settings import SaleSettings
from tokensale.models.sale_stage import SaleStage


__all__ = [
    # Base
    "Base",
    # Stage ledger
    "SaleStage",
    "SaleSettings",
    "StageContribution",
    "UserContribution",
    # Referral program
    "ReferralLink",
    "ReferralAccount",
    "ReferralEarning",
    "ReferralSettings",
    # Events
    "SaleEvent",
    "SaleEventType",
]
