"""
Uniswap V3 venue provider.

Reads pools from the factory and their in-range liquidity.
"""

from eth_utils import to_checksum_address

from tokensale.config.constants import ZERO_ADDRESS
from tokensale.services.blockchain.constants import (
    UNISWAP_V3_FACTORY_ABI,
    UNISWAP_V3_POOL_ABI,
)
from tokensale.services.blockchain.transaction_sender import TransactionSender


class Web3VenueProvider:
    """Venue provider backed by a Uniswap V3 factory."""

    def __init__(self, sender: TransactionSender, factory_address: str) -> None:
        """
        Initialize venue provider.

        Args:
            sender: Transaction sender (used for read calls)
            factory_address: Uniswap V3 factory
        """
        self.sender = sender
        self.factory = sender.web3.eth.contract(
            address=to_checksum_address(factory_address),
            abi=UNISWAP_V3_FACTORY_ABI,
        )

    def _pool(self, venue: str):
        return self.sender.web3.eth.contract(
            address=to_checksum_address(venue), abi=UNISWAP_V3_POOL_ABI
        )

    async def get_venue(
        self, token_a: str, token_b: str, fee_tier: int
    ) -> str | None:
        """Pool address for the pair at ``fee_tier``, or None."""
        pool = await self.sender.read(
            self.factory.functions.getPool(
                to_checksum_address(token_a),
                to_checksum_address(token_b),
                fee_tier,
            )
        )
        if not pool or pool.lower() == ZERO_ADDRESS:
            return None
        return to_checksum_address(pool)

    async def depth(self, venue: str) -> int:
        """Pool in-range liquidity."""
        return int(await self.sender.read(self._pool(venue).functions.liquidity()))

    async def fee_tier(self, venue: str) -> int:
        """Pool fee tier."""
        return int(await self.sender.read(self._pool(venue).functions.fee()))
