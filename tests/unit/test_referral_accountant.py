"""Unit tests for referral accounting."""

import pytest

from tests.fakes import BUYER, OTHER_BUYER, REFERRER_1, REFERRER_2, TEST_HARD_CAP
from tokensale.config.constants import MAX_REFERRAL_RATE, ZERO_ADDRESS
from tokensale.models.sale_event import SaleEventType
from tokensale.repositories.referral_repository import ReferralEarningRepository
from tokensale.repositories.sale_event_repository import SaleEventRepository
from tokensale.services.referral.accountant import ReferralAccountant
from tokensale.services.stage.ledger import StageLedger
from tokensale.utils.exceptions import (
    InvalidAmount,
    InvalidReferralPercentage,
    NoEarningsToClaim,
    ReferralClaimsDisabled,
)


@pytest.fixture
def accountant(session):
    """Accountant with 10% / 3% rates."""
    return ReferralAccountant(
        session, default_level1_rate=1000, default_level2_rate=300
    )


class TestCalculateEarning:
    """Tests for the earning formula."""

    @pytest.mark.parametrize(
        "amount,rate,expected",
        [
            (100, 1000, 10),
            (100, 300, 3),
            (99, 300, 2),
            (1, 2000, 0),
            (10**18, 500, 5 * 10**16),
        ],
    )
    def test_truncating_division(self, amount, rate, expected):
        """Remainders are dropped."""
        assert ReferralAccountant.calculate_earning(amount, rate) == expected


class TestCreditEarnings:
    """Tests for crediting both referral levels."""

    @pytest.mark.asyncio
    async def test_two_levels_credited(self, accountant):
        """100 at 10% / 3% credits 10 to level 1 and 3 to level 2."""
        credits = await accountant.credit_earnings(BUYER, 100, REFERRER_1, REFERRER_2)

        assert [(c.referrer, c.level, c.amount) for c in credits] == [
            (REFERRER_1, 1, 10),
            (REFERRER_2, 2, 3),
        ]
        first = await accountant.summary(REFERRER_1)
        second = await accountant.summary(REFERRER_2)
        assert (first.level1_earned, first.level2_earned, first.pending) == (10, 0, 10)
        assert (second.level1_earned, second.level2_earned, second.pending) == (0, 3, 3)

    @pytest.mark.asyncio
    async def test_level2_skipped_when_same_as_level1(self, accountant):
        """The same address never earns twice for one purchase."""
        credits = await accountant.credit_earnings(BUYER, 100, REFERRER_1, REFERRER_1)

        assert [(c.level, c.amount) for c in credits] == [(1, 10)]
        account = await accountant.get_account(REFERRER_1)
        assert account.total_earned == 10
        assert account.level2_earned == 0

    @pytest.mark.asyncio
    async def test_self_and_null_referrers_skipped(self, accountant):
        """Null or self referrers earn nothing."""
        assert await accountant.credit_earnings(BUYER, 100, BUYER, None) == []
        assert await accountant.credit_earnings(BUYER, 100, ZERO_ADDRESS, BUYER) == []
        assert await accountant.get_account(BUYER) is None

    @pytest.mark.asyncio
    async def test_zero_earning_not_credited(self, accountant, session):
        """Earnings rounding to zero create no rows."""
        credits = await accountant.credit_earnings(BUYER, 10, REFERRER_1, REFERRER_2)

        assert [c.level for c in credits] == [1]
        assert await ReferralEarningRepository(session).get_by_referrer(REFERRER_2) == []

    @pytest.mark.asyncio
    async def test_earning_rows_per_level(self, accountant, session):
        """Each credit is stored with its base amount and level."""
        await accountant.credit_earnings(BUYER, 100, REFERRER_1, REFERRER_2)
        await accountant.credit_earnings(OTHER_BUYER, 200, REFERRER_2, None)

        repo = ReferralEarningRepository(session)
        rows = await repo.get_by_referrer(REFERRER_2)
        assert [(r.level, r.base_amount, r.amount) for r in rows] == [(2, 100, 3), (1, 200, 20)]
        assert await repo.get_level_totals(REFERRER_2) == {1: 20, 2: 3}

    @pytest.mark.asyncio
    async def test_credit_event_carries_base_amount(self, accountant, session):
        """Earning events name both parties, the level and both amounts."""
        await accountant.credit_earnings(BUYER, 100, REFERRER_1, REFERRER_2)

        events = await SaleEventRepository(session).get_recent(
            SaleEventType.REFERRAL_EARNING_CREDITED.value
        )
        payloads = sorted((e.payload for e in events), key=lambda p: p["level"])
        assert payloads == [
            {
                "referrer": REFERRER_1,
                "referred": BUYER,
                "level": "1",
                "base_amount": "100",
                "amount": "10",
            },
            {
                "referrer": REFERRER_2,
                "referred": BUYER,
                "level": "2",
                "base_amount": "100",
                "amount": "3",
            },
        ]


class TestLinkReferrer:
    """Tests for first-contribution referrer linking."""

    @pytest.mark.asyncio
    async def test_link_set_once(self, accountant):
        """A second proposal never overwrites the link."""
        assert await accountant.maybe_link_referrer(BUYER, REFERRER_1) is True
        assert await accountant.maybe_link_referrer(BUYER, REFERRER_2) is False

        assert await accountant.referrer_of(BUYER) == REFERRER_1
        assert (await accountant.summary(REFERRER_1)).direct_referrals == 1

    @pytest.mark.asyncio
    async def test_no_link_after_first_contribution(self, accountant, session):
        """Users who already contributed cannot be linked."""
        ledger = StageLedger(session, default_hard_cap=TEST_HARD_CAP)
        stage = await ledger.add_stage(1000, 0, 1000)
        await ledger.activate(stage.id)
        await ledger.record(BUYER, 50)

        assert await accountant.maybe_link_referrer(BUYER, REFERRER_1) is False
        assert await accountant.referrer_of(BUYER) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("proposed", [None, ZERO_ADDRESS, BUYER])
    async def test_null_or_self_not_linked(self, accountant, proposed):
        """Null and self proposals are ignored."""
        assert await accountant.maybe_link_referrer(BUYER, proposed) is False
        assert await accountant.referrer_of(BUYER) is None


class TestClaim:
    """Tests for claiming earnings."""

    @pytest.mark.asyncio
    async def test_claim_disabled_keeps_pending(self, accountant):
        """Closed claims fail without touching the account."""
        await accountant.credit_earnings(BUYER, 100, REFERRER_1, None)

        with pytest.raises(ReferralClaimsDisabled):
            await accountant.claim(REFERRER_1)

        summary = await accountant.summary(REFERRER_1)
        assert (summary.claimed, summary.pending) == (0, 10)

    @pytest.mark.asyncio
    async def test_claim_releases_all_pending(self, accountant):
        """Claiming moves claimed up to total earned."""
        await accountant.set_claims_enabled(True)
        await accountant.credit_earnings(BUYER, 100, REFERRER_1, None)
        await accountant.credit_earnings(OTHER_BUYER, 300, REFERRER_1, None)

        assert await accountant.claim(REFERRER_1) == 40

        summary = await accountant.summary(REFERRER_1)
        assert (summary.total_earned, summary.claimed, summary.pending) == (40, 40, 0)
        with pytest.raises(NoEarningsToClaim):
            await accountant.claim(REFERRER_1)

    @pytest.mark.asyncio
    async def test_claim_without_account(self, accountant):
        """Addresses that never earned have nothing to claim."""
        await accountant.set_claims_enabled(True)

        with pytest.raises(NoEarningsToClaim):
            await accountant.claim(REFERRER_2)

    @pytest.mark.asyncio
    async def test_reverse_claim_restores_pending(self, accountant):
        """A reversed claim can be claimed again."""
        await accountant.set_claims_enabled(True)
        await accountant.credit_earnings(BUYER, 100, REFERRER_1, None)
        await accountant.claim(REFERRER_1)

        await accountant.reverse_claim(REFERRER_1, 10)

        summary = await accountant.summary(REFERRER_1)
        assert (summary.claimed, summary.pending) == (0, 10)
        assert await accountant.claim(REFERRER_1) == 10

    @pytest.mark.asyncio
    async def test_reverse_claim_bounded_by_claimed(self, accountant):
        """Nothing beyond the claimed amount can be reversed."""
        await accountant.credit_earnings(BUYER, 100, REFERRER_1, None)

        with pytest.raises(InvalidAmount):
            await accountant.reverse_claim(REFERRER_1, 1)
        with pytest.raises(InvalidAmount):
            await accountant.reverse_claim(REFERRER_2, 1)


class TestRates:
    """Tests for rate administration."""

    @pytest.mark.asyncio
    async def test_set_rates_applies_to_new_credits(self, accountant):
        """New rates are used for later credits."""
        await accountant.set_rates(2000, 0)

        credits = await accountant.credit_earnings(BUYER, 100, REFERRER_1, REFERRER_2)

        assert [(c.level, c.amount) for c in credits] == [(1, 20)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "level1,level2", [(MAX_REFERRAL_RATE + 1, 0), (0, MAX_REFERRAL_RATE + 1), (-1, 0)]
    )
    async def test_invalid_rates(self, accountant, level1, level2):
        """Rates outside 0..MAX_REFERRAL_RATE are rejected."""
        with pytest.raises(InvalidReferralPercentage):
            await accountant.set_rates(level1, level2)

        settings = await accountant.get_settings()
        assert (settings.level1_rate, settings.level2_rate) == (1000, 300)
