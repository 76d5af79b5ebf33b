"""
Route selector.

Picks the deepest venue for a token pair across the configured fee tiers.
"""

from loguru import logger

from tokensale.config.constants import DEFAULT_FEE_TIERS
from tokensale.services.exchange.interfaces import Venue, VenueProvider
from tokensale.utils.exceptions import InvalidAddress
from tokensale.validators.common import is_null_address


class RouteSelector:
    """Selects the venue with the greatest depth for a pair."""

    def __init__(
        self,
        venue_provider: VenueProvider,
        fee_tiers: tuple[int, ...] = DEFAULT_FEE_TIERS,
    ) -> None:
        """
        Initialize route selector.

        Args:
            venue_provider: Venue lookup
            fee_tiers: Fee tiers to probe, in order
        """
        self.venue_provider = venue_provider
        self.fee_tiers = tuple(fee_tiers)

    async def select_route(self, asset_in: str, asset_out: str) -> Venue | None:
        """
        Select the deepest venue for a pair.

        Tiers are probed in configured order. A venue only replaces the
        current best when its depth is strictly greater, so ties keep the
        earlier tier and zero-depth venues never win.

        Args:
            asset_in: Token being sold
            asset_out: Token being bought

        Returns:
            Best venue, or None when no venue has depth

        Raises:
            InvalidAddress: If either asset is null or both are the same
        """
        if is_null_address(asset_in) or is_null_address(asset_out):
            raise InvalidAddress("Route assets must be non-null")
        if asset_in.lower() == asset_out.lower():
            raise InvalidAddress(
                "Route assets must differ", asset=asset_in
            )

        best: Venue | None = None
        for tier in self.fee_tiers:
            address = await self.venue_provider.get_venue(asset_in, asset_out, tier)
            if is_null_address(address):
                continue

            depth = await self.venue_provider.depth(address)
            best_depth = best.depth if best else 0
            if depth > best_depth:
                best = Venue(address=address, fee_tier=tier, depth=depth)

        if best is None:
            logger.debug(
                "No route with liquidity",
                extra={"asset_in": asset_in, "asset_out": asset_out},
            )
        else:
            logger.debug(
                "Route selected",
                extra={
                    "asset_in": asset_in,
                    "asset_out": asset_out,
                    "venue": best.address,
                    "fee_tier": best.fee_tier,
                    "depth": str(best.depth),
                },
            )
        return best
