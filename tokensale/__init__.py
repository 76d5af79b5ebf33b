"""
Staged token sale ledger.

Accepts stablecoin or swappable ERC-20 payments, records them against
capped sale stages and accrues two-level referral rewards.
"""

__version__ = "0.1.0"
