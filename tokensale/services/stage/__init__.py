"""
Stage ledger service.
"""

from tokensale.services.stage.ledger import ContributionResult, SaleState, StageLedger

__all__ = ["ContributionResult", "SaleState", "StageLedger"]
