"""
Exchange interfaces.

Value types exchanged with liquidity venues and the protocols the
exchange layer depends on. Web3 implementations live next to this
module; tests use in-memory fakes.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Venue:
    """Liquidity venue for a token pair at one fee tier."""

    address: str
    fee_tier: int
    depth: int


@dataclass(frozen=True)
class SwapRequest:
    """Exact-input single-venue swap."""

    token_in: str
    token_out: str
    fee_tier: int
    recipient: str
    amount_in: int
    minimum_out: int = 0
    price_limit: int = 0


class VenueProvider(Protocol):
    """Looks up venues and their depth."""

    async def get_venue(
        self, token_a: str, token_b: str, fee_tier: int
    ) -> str | None:
        """Venue address for the pair and tier, or None."""
        ...

    async def depth(self, venue: str) -> int:
        """Liquidity depth of a venue."""
        ...

    async def fee_tier(self, venue: str) -> int:
        """Fee tier of a venue."""
        ...


class SwapExecutor(Protocol):
    """Executes swaps against a venue."""

    async def swap_exact_input(self, request: SwapRequest) -> int:
        """Swap ``request.amount_in`` and return the amount received."""
        ...
