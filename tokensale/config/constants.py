"""
Sale constants.

Centralized constants shared by the ledger, referral and exchange layers.
"""

# ========================================================================
# ADDRESSES
# ========================================================================

# Null address, treated the same as "no address"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Sentinel used by wallets and aggregators for the chain's native asset.
# Native payments are never accepted.
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# ========================================================================
# REFERRAL CONSTANTS
# ========================================================================

# Rates are expressed in parts per ten thousand (100 = 1%)
BASIS_POINTS = 10000

# Upper bound for each referral level rate (20%)
MAX_REFERRAL_RATE = 2000

DEFAULT_LEVEL1_REFERRAL_RATE = 500  # 5%
DEFAULT_LEVEL2_REFERRAL_RATE = 200  # 2%

# ========================================================================
# EXCHANGE CONSTANTS
# ========================================================================

# Uniswap V3 fee tiers (hundredths of a bip), scanned in this order
DEFAULT_FEE_TIERS: tuple[int, ...] = (100, 500, 3000, 10000)

# ========================================================================
# SALE CONSTANTS
# ========================================================================

STABLE_TOKEN_DECIMALS = 18

# Sale-wide cap used when none is configured: 30 000 USDT
DEFAULT_SALE_HARD_CAP = 30_000 * 10**STABLE_TOKEN_DECIMALS

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

TX_RECEIPT_TIMEOUT = 120  # seconds
GAS_LIMIT_MULTIPLIER = 1.2
DEFAULT_SWAP_GAS_LIMIT = 400_000
DEFAULT_TRANSFER_GAS_LIMIT = 120_000
