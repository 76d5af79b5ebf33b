"""
Fund movement: custody gateway and compensation of partial operations.
"""

from tokensale.services.funds.compensation import CompensationLog
from tokensale.services.funds.custody import TokenCustody, Web3TokenCustody

__all__ = ["CompensationLog", "TokenCustody", "Web3TokenCustody"]
