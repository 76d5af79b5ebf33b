"""
Repositories package.

Data access layer over the sale models.
"""

from tokensale.repositories.base import BaseRepository
from tokensale.repositories.contribution_repository import (
    StageContributionRepository,
    UserContributionRepository,
)
from tokensale.repositories.referral_repository import (
    ReferralAccountRepository,
    ReferralEarningRepository,
    ReferralLinkRepository,
    ReferralSettingsRepository,
)
from tokensale.repositories.sale_event_repository import SaleEventRepository
from tokensale.repositories.sale_settings_repository import SaleSettingsRepository
from tokensale.repositories.sale_stage_repository import SaleStageRepository


__all__ = [
    "BaseRepository",
    "SaleStageRepository",
    "SaleSettingsRepository",
    "StageContributionRepository",
    "UserContributionRepository",
    "ReferralLinkRepository",
    "ReferralAccountRepository",
    "ReferralEarningRepository",
    "ReferralSettingsRepository",
    "SaleEventRepository",
]
