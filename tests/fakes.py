"""In-memory doubles for the exchange and custody gateways."""

from eth_utils import to_checksum_address

from tokensale.services.exchange.interfaces import SwapRequest
from tokensale.utils.exceptions import TransferFailed


def address(byte: str) -> str:
    """Checksummed address made of one repeated byte, e.g. ``address("a1")``."""
    return to_checksum_address("0x" + byte * 20)


ADMIN = address("ad")
BUYER = address("b1")
OTHER_BUYER = address("b2")
REFERRER_1 = address("c1")
REFERRER_2 = address("c2")
STABLE = address("5a")
PAY_TOKEN = address("7e")
TREASURY = address("7a")
OPERATOR = address("0b")

# SQLite stores amounts as BIGINT, keep the cap well inside its range
TEST_HARD_CAP = 10**15


class FakeVenueProvider:
    """Venues registered per (pair, tier) with a fixed depth."""

    def __init__(self) -> None:
        self._venues: dict[tuple[str, str, int], str] = {}
        self._depths: dict[str, int] = {}
        self._tiers: dict[str, int] = {}
        self.lookups: list[tuple[str, str, int]] = []

    def add(self, token_a: str, token_b: str, fee_tier: int, depth: int) -> str:
        venue = to_checksum_address(
            "0x" + f"{len(self._venues) + 1:02x}" * 19 + f"{fee_tier % 256:02x}"
        )
        key_a = (token_a.lower(), token_b.lower(), fee_tier)
        key_b = (token_b.lower(), token_a.lower(), fee_tier)
        self._venues[key_a] = venue
        self._venues[key_b] = venue
        self._depths[venue] = depth
        self._tiers[venue] = fee_tier
        return venue

    async def get_venue(
        self, token_a: str, token_b: str, fee_tier: int
    ) -> str | None:
        self.lookups.append((token_a, token_b, fee_tier))
        return self._venues.get((token_a.lower(), token_b.lower(), fee_tier))

    async def depth(self, venue: str) -> int:
        return self._depths[venue]

    async def fee_tier(self, venue: str) -> int:
        return self._tiers[venue]


class FakeCustody:
    """
    Token balances kept in a dict.

    Methods named in ``failing`` report failure without moving funds.
    """

    def __init__(self, operator: str = OPERATOR) -> None:
        self.operator = operator
        self.balances: dict[tuple[str, str], int] = {}
        self.calls: list[tuple] = []
        self.failing: set[str] = set()

    def mint(self, token: str, holder: str, amount: int) -> None:
        key = (token.lower(), holder.lower())
        self.balances[key] = self.balances.get(key, 0) + amount

    def balance(self, token: str, holder: str) -> int:
        return self.balances.get((token.lower(), holder.lower()), 0)

    def _move(self, token: str, source: str, target: str, amount: int) -> bool:
        if self.balance(token, source) < amount:
            return False
        self.balances[(token.lower(), source.lower())] -= amount
        self.mint(token, target, amount)
        return True

    async def pull(self, token: str, owner: str, amount: int) -> bool:
        self.calls.append(("pull", token, owner, amount))
        if "pull" in self.failing:
            return False
        return self._move(token, owner, self.operator, amount)

    async def push(self, token: str, recipient: str, amount: int) -> bool:
        self.calls.append(("push", token, recipient, amount))
        if "push" in self.failing:
            return False
        return self._move(token, self.operator, recipient, amount)

    async def transfer_from(
        self, token: str, owner: str, recipient: str, amount: int
    ) -> bool:
        self.calls.append(("transfer_from", token, owner, recipient, amount))
        if "transfer_from" in self.failing:
            return False
        return self._move(token, owner, recipient, amount)


class FakeSwapExecutor:
    """Swaps at ``rate`` stable units per input unit through the custody."""

    def __init__(self, custody: FakeCustody | None = None, rate: int = 2) -> None:
        self.custody = custody
        self.rate = rate
        self.requests: list[SwapRequest] = []
        self.fail = False

    async def swap_exact_input(self, request: SwapRequest) -> int:
        self.requests.append(request)
        if self.fail:
            raise TransferFailed("swap reverted")

        amount_out = request.amount_in * self.rate
        if self.custody is not None:
            custody = self.custody
            if not custody._move(
                request.token_in, custody.operator, address("99"), request.amount_in
            ):
                raise TransferFailed("insufficient input balance")
            custody.mint(request.token_out, request.recipient, amount_out)
        return amount_out
