"""
Exchanger.

Converts a payment token into the stable unit through the deepest venue.
"""

from loguru import logger

from tokensale.services.exchange.interfaces import SwapExecutor, SwapRequest, Venue
from tokensale.services.exchange.route_selector import RouteSelector
from tokensale.utils.exceptions import NoLiquidityRoute
from tokensale.utils.security import mask_address
from tokensale.validators.common import normalize_address, validate_positive_amount


class Exchanger:
    """Swaps payment tokens into the stable token."""

    def __init__(
        self,
        route_selector: RouteSelector,
        swap_executor: SwapExecutor,
        stable_token: str,
    ) -> None:
        """
        Initialize exchanger.

        Args:
            route_selector: Venue selection
            swap_executor: Swap execution
            stable_token: Token every payment is converted into
        """
        self.route_selector = route_selector
        self.swap_executor = swap_executor
        self.stable_token = normalize_address(stable_token, "stable_token")

    async def find_route(self, asset_in: str) -> Venue:
        """
        Select the route for ``asset_in`` into the stable token.

        Raises:
            NoLiquidityRoute: If no venue has depth
        """
        route = await self.route_selector.select_route(asset_in, self.stable_token)
        if route is None:
            raise NoLiquidityRoute(asset_in=asset_in)
        return route

    async def convert(
        self,
        asset_in: str,
        amount_in: int,
        destination: str,
        route: Venue | None = None,
    ) -> int:
        """
        Swap ``amount_in`` of ``asset_in`` into the stable token.

        No output floor and no price limit are applied. When ``route`` is
        given it is used as-is.

        Args:
            asset_in: Token being sold
            amount_in: Amount of asset_in in base units
            destination: Recipient of the stable proceeds
            route: Previously selected venue

        Returns:
            Stable amount received

        Raises:
            InvalidAmount: If amount_in is not positive
            NoLiquidityRoute: If no route is given and none exists
        """
        validate_positive_amount(amount_in, "amount_in")
        if route is None:
            route = await self.find_route(asset_in)

        request = SwapRequest(
            token_in=asset_in,
            token_out=self.stable_token,
            fee_tier=route.fee_tier,
            recipient=destination,
            amount_in=amount_in,
            minimum_out=0,
            price_limit=0,
        )
        amount_out = await self.swap_executor.swap_exact_input(request)

        logger.info(
            "Payment token converted",
            extra={
                "asset_in": asset_in,
                "amount_in": str(amount_in),
                "amount_out": str(amount_out),
                "fee_tier": route.fee_tier,
                "destination": mask_address(destination),
            },
        )
        return amount_out
