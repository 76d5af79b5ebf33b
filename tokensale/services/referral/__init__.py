"""
Referral program services.
"""

from tokensale.services.referral.accountant import (
    ReferralAccountant,
    ReferralCredit,
    ReferralSummary,
)

__all__ = ["ReferralAccountant", "ReferralCredit", "ReferralSummary"]
