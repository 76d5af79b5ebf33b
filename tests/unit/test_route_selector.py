"""Unit tests for route selection."""

import pytest

from tests.fakes import PAY_TOKEN, STABLE, FakeVenueProvider
from tokensale.config.constants import ZERO_ADDRESS
from tokensale.services.exchange.route_selector import RouteSelector
from tokensale.utils.exceptions import InvalidAddress


class TestSelectRoute:
    """Tests for RouteSelector.select_route."""

    @pytest.mark.asyncio
    async def test_picks_deepest_tier(self, venue_provider):
        """Depths {0, 50, 120, 80} pick the venue with depth 120."""
        for tier, depth in zip((100, 500, 3000, 10000), (0, 50, 120, 80)):
            venue_provider.add(PAY_TOKEN, STABLE, tier, depth)

        route = await RouteSelector(venue_provider).select_route(PAY_TOKEN, STABLE)

        assert route is not None
        assert route.fee_tier == 3000
        assert route.depth == 120

    @pytest.mark.asyncio
    async def test_all_zero_depth_returns_none(self, venue_provider):
        """Venues without depth never qualify."""
        for tier in (100, 500, 3000, 10000):
            venue_provider.add(PAY_TOKEN, STABLE, tier, 0)

        assert await RouteSelector(venue_provider).select_route(PAY_TOKEN, STABLE) is None

    @pytest.mark.asyncio
    async def test_no_venue_returns_none(self, venue_provider):
        """Missing venues are not an error."""
        assert await RouteSelector(venue_provider).select_route(PAY_TOKEN, STABLE) is None

    @pytest.mark.asyncio
    async def test_tie_keeps_first_tier(self, venue_provider):
        """Equal depth keeps the earlier tier."""
        venue_provider.add(PAY_TOKEN, STABLE, 500, 70)
        venue_provider.add(PAY_TOKEN, STABLE, 3000, 70)

        route = await RouteSelector(venue_provider).select_route(PAY_TOKEN, STABLE)

        assert route.fee_tier == 500

    @pytest.mark.asyncio
    async def test_probes_configured_tiers_in_order(self):
        """Only configured tiers are queried, in order."""
        provider = FakeVenueProvider()
        selector = RouteSelector(provider, fee_tiers=(3000, 500))

        await selector.select_route(PAY_TOKEN, STABLE)

        assert [tier for _, _, tier in provider.lookups] == [3000, 500]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "asset_in,asset_out",
        [
            (PAY_TOKEN, PAY_TOKEN),
            (PAY_TOKEN, PAY_TOKEN.lower()),
            (None, STABLE),
            (PAY_TOKEN, ZERO_ADDRESS),
        ],
    )
    async def test_invalid_pairs_rejected(self, venue_provider, asset_in, asset_out):
        """Identical or null assets raise InvalidAddress."""
        with pytest.raises(InvalidAddress):
            await RouteSelector(venue_provider).select_route(asset_in, asset_out)
