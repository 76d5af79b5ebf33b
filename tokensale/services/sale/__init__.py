"""
Sale orchestration: purchases, claims, admin operations and reads.
"""

from tokensale.services.sale.authorization import (
    Authorizer,
    allowlist_authorizer,
    require_admin,
)
from tokensale.services.sale.controller import PurchaseReceipt, SaleController
from tokensale.services.sale.guards import ReentrancyGuard

__all__ = [
    "Authorizer",
    "PurchaseReceipt",
    "ReentrancyGuard",
    "SaleController",
    "allowlist_authorizer",
    "require_admin",
]
