"""
Exchange layer: venue selection and conversion into the stable token.
"""

from tokensale.services.exchange.exchanger import Exchanger
from tokensale.services.exchange.interfaces import (
    SwapExecutor,
    SwapRequest,
    Venue,
    VenueProvider,
)
from tokensale.services.exchange.route_selector import RouteSelector

__all__ = [
    "Exchanger",
    "RouteSelector",
    "SwapExecutor",
    "SwapRequest",
    "Venue",
    "VenueProvider",
]
