"""
Configuration package.

Exports runtime settings and sale-wide constants.
"""

from tokensale.config.constants import (
    BASIS_POINTS,
    DEFAULT_FEE_TIERS,
    MAX_REFERRAL_RATE,
    NATIVE_TOKEN_ADDRESS,
    ZERO_ADDRESS,
)
from tokensale.config.settings import Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "BASIS_POINTS",
    "DEFAULT_FEE_TIERS",
    "MAX_REFERRAL_RATE",
    "NATIVE_TOKEN_ADDRESS",
    "ZERO_ADDRESS",
]
