"""
Exception handling utilities.

Defines the categorized error kinds raised by the sale ledger. Every
error carries a stable ``code`` equal to its class name so callers can
map failures without parsing messages.
"""


class TokenSaleError(Exception):
    """Base class for all sale errors."""

    default_message = "Token sale operation failed"

    def __init__(self, message: str | None = None, **context: object) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    @property
    def code(self) -> str:
        """Stable error code."""
        return type(self).__name__


# ========================================================================
# SALE STATE
# ========================================================================


class SaleStateError(TokenSaleError):
    """Sale or stage is not in a state that allows the operation."""


class SaleNotActive(SaleStateError):
    default_message = "Sale is not active"


class StageNotActive(SaleStateError):
    default_message = "No sale stage is active"


class InvalidStageId(SaleStateError):
    default_message = "Stage does not exist"


# ========================================================================
# AMOUNT BOUNDS
# ========================================================================


class AmountError(TokenSaleError):
    """Amount violates a cap or a purchase bound."""


class InvalidAmount(AmountError):
    default_message = "Amount must be positive"


class BelowMinimumPurchase(AmountError):
    default_message = "Stage contribution is below the minimum purchase"


class ExceedsMaximumPurchase(AmountError):
    default_message = "Stage contribution exceeds the maximum purchase"


class StageLimitExceeded(AmountError):
    default_message = "Stage cap would be exceeded"


class HardCapExceeded(AmountError):
    default_message = "Sale hard cap would be exceeded"


class InvalidLimits(AmountError):
    default_message = "Invalid cap or purchase limits"


# ========================================================================
# ROUTING
# ========================================================================


class RoutingError(TokenSaleError):
    """No way to price the payment token into the stable unit."""


class NoLiquidityRoute(RoutingError):
    default_message = "No liquidity pool for payment token"


# Name used by the exchange layer for the same condition
NoLiquidityPool = NoLiquidityRoute


# ========================================================================
# REFERRAL
# ========================================================================


class ReferralError(TokenSaleError):
    """Referral program rejected the operation."""


class ReferralClaimsDisabled(ReferralError):
    default_message = "Referral claims are disabled"


class NoEarningsToClaim(ReferralError):
    default_message = "No referral earnings to claim"


class InvalidReferralPercentage(ReferralError):
    default_message = "Referral rate out of range"


# ========================================================================
# INPUT VALIDITY
# ========================================================================


class InputError(TokenSaleError):
    """Request carries an invalid address or token."""


class InvalidAddress(InputError):
    default_message = "Invalid address"


class InvalidPaymentToken(InputError):
    default_message = "Payment token is not accepted"


# ========================================================================
# ACCESS AND EXECUTION
# ========================================================================


class Unauthorized(TokenSaleError):
    default_message = "Caller is not allowed to perform this operation"


class ReentrantCall(TokenSaleError):
    default_message = "Operation already in progress for this account"


class TransferFailed(TokenSaleError):
    default_message = "Token transfer failed"
