"""
Validators package.

Provides address and amount validation shared by the sale services.
"""

from tokensale.validators.common import (
    is_null_address,
    normalize_address,
    normalize_optional_address,
    validate_positive_amount,
    validate_wallet_address,
)


__all__ = [
    "is_null_address",
    "normalize_address",
    "normalize_optional_address",
    "validate_positive_amount",
    "validate_wallet_address",
]
