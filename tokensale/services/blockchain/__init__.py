"""
Blockchain access for the sale.

Contract ABIs and the operator transaction sender shared by the web3
venue provider, swap executor and token custody.
"""

from tokensale.services.blockchain.transaction_sender import TransactionSender

__all__ = ["TransactionSender"]
