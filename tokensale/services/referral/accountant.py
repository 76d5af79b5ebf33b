"""
Referral accountant.

Two-level referral program credited in the stable unit:
- Level 1 referrer earns ``amount * level1_rate // 10000``
- Level 2 referrer earns ``amount * level2_rate // 10000``

Rates are basis points bounded by MAX_REFERRAL_RATE. Remainders of the
integer division are dropped. Earnings accumulate per referrer and are
claimed in full once claims are enabled.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from tokensale.config.constants import (
    BASIS_POINTS,
    DEFAULT_LEVEL1_REFERRAL_RATE,
    DEFAULT_LEVEL2_REFERRAL_RATE,
    MAX_REFERRAL_RATE,
)
from tokensale.models.referral import ReferralAccount, ReferralSettings
from tokensale.models.sale_event import SaleEventType
from tokensale.repositories.contribution_repository import UserContributionRepository
from tokensale.repositories.referral_repository import (
    ReferralAccountRepository,
    ReferralEarningRepository,
    ReferralLinkRepository,
    ReferralSettingsRepository,
)
from tokensale.services.base_service import BaseService
from tokensale.services.sale_events import SaleEventRecorder
from tokensale.utils.exceptions import (
    InvalidAmount,
    InvalidReferralPercentage,
    NoEarningsToClaim,
    ReferralClaimsDisabled,
)
from tokensale.utils.security import mask_address
from tokensale.validators.common import (
    normalize_address,
    normalize_optional_address,
)


@dataclass(frozen=True)
class ReferralCredit:
    """Single credited earning."""

    referrer: str
    level: int
    amount: int


@dataclass(frozen=True)
class ReferralSummary:
    """Referral position of one address."""

    address: str
    referrer: str | None
    level1_earned: int
    level2_earned: int
    total_earned: int
    claimed: int
    pending: int
    direct_referrals: int


class ReferralAccountant(BaseService):
    """Links referrers, credits earnings and releases claims."""

    def __init__(
        self,
        session: AsyncSession,
        default_level1_rate: int = DEFAULT_LEVEL1_REFERRAL_RATE,
        default_level2_rate: int = DEFAULT_LEVEL2_REFERRAL_RATE,
        default_claims_enabled: bool = False,
    ) -> None:
        """
        Initialize referral accountant.

        Args:
            session: Async database session
            default_level1_rate: Level 1 rate used when settings are first created
            default_level2_rate: Level 2 rate used when settings are first created
            default_claims_enabled: Claim gate used when settings are first created
        """
        super().__init__(session)
        self.default_level1_rate = default_level1_rate
        self.default_level2_rate = default_level2_rate
        self.default_claims_enabled = default_claims_enabled

        self.link_repo = ReferralLinkRepository(session)
        self.account_repo = ReferralAccountRepository(session)
        self.earning_repo = ReferralEarningRepository(session)
        self.settings_repo = ReferralSettingsRepository(session)
        self.user_contribution_repo = UserContributionRepository(session)
        self.events = SaleEventRecorder(session)

    @staticmethod
    def calculate_earning(amount: int, rate: int) -> int:
        """
        Earning for ``amount`` at ``rate`` basis points, rounded down.

        Examples:
            >>> ReferralAccountant.calculate_earning(100, 1000)
            10
            >>> ReferralAccountant.calculate_earning(99, 300)
            2
        """
        return amount * rate // BASIS_POINTS

    @staticmethod
    def _check_rate(rate: int, field: str) -> None:
        if isinstance(rate, bool) or not isinstance(rate, int):
            raise InvalidReferralPercentage(f"{field} must be an integer")
        if rate < 0 or rate > MAX_REFERRAL_RATE:
            raise InvalidReferralPercentage(
                f"{field} must be between 0 and {MAX_REFERRAL_RATE}",
                rate=rate,
            )

    async def get_settings(self, for_update: bool = False) -> ReferralSettings:
        """Program settings, created from defaults on first use."""
        return await self.settings_repo.get_or_create(
            self.default_level1_rate,
            self.default_level2_rate,
            claims_enabled=self.default_claims_enabled,
            for_update=for_update,
        )

    async def set_rates(self, level1_rate: int, level2_rate: int) -> ReferralSettings:
        """
        Change both referral rates.

        Raises:
            InvalidReferralPercentage: If a rate is negative or above the maximum
        """
        self._check_rate(level1_rate, "level1_rate")
        self._check_rate(level2_rate, "level2_rate")

        settings = await self.get_settings(for_update=True)
        settings.level1_rate = level1_rate
        settings.level2_rate = level2_rate
        await self.settings_repo.save(settings)

        await self.events.emit(
            SaleEventType.REFERRAL_RATES_UPDATED,
            level1_rate=level1_rate,
            level2_rate=level2_rate,
        )
        self.logger.info(
            "Referral rates updated",
            extra={"level1_rate": level1_rate, "level2_rate": level2_rate},
        )
        return settings

    async def set_claims_enabled(self, enabled: bool) -> ReferralSettings:
        """Open or close referral claims."""
        settings = await self.get_settings(for_update=True)
        settings.claims_enabled = enabled
        await self.settings_repo.save(settings)

        await self.events.emit(
            SaleEventType.REFERRAL_CLAIMS_TOGGLED, claims_enabled=enabled
        )
        self.logger.info(
            "Referral claims toggled", extra={"claims_enabled": enabled}
        )
        return settings

    async def referrer_of(self, user: str) -> str | None:
        """Stored direct referrer of a user."""
        return await self.link_repo.get_referrer(normalize_address(user, "user"))

    async def maybe_link_referrer(self, user: str, proposed: str | None) -> bool:
        """
        Link ``user`` to ``proposed`` on their first contribution.

        Nothing happens when the user already contributed, already has a
        referrer, or proposes a null address or themselves.

        Returns:
            True if a link was created
        """
        user = normalize_address(user, "user")
        proposed = normalize_optional_address(proposed, "level1_referrer")
        if proposed is None or proposed == user:
            return False

        if await self.user_contribution_repo.get_total(user) > 0:
            return False
        if await self.link_repo.get_referrer(user) is not None:
            return False

        await self.link_repo.create(user_address=user, referrer_address=proposed)

        await self.events.emit(
            SaleEventType.REFERRER_LINKED, user=user, referrer=proposed
        )
        self.logger.info(
            "Referrer linked",
            extra={
                "user": mask_address(user),
                "referrer": mask_address(proposed),
            },
        )
        return True

    async def _credit(
        self, referrer: str, referred: str, level: int, base_amount: int, amount: int
    ) -> ReferralCredit:
        account = await self.account_repo.get_or_create(referrer, for_update=True)
        if level == 1:
            account.level1_earned += amount
        else:
            account.level2_earned += amount
        account.total_earned += amount
        await self.account_repo.save(account)

        await self.earning_repo.create(
            referrer_address=referrer,
            referred_address=referred,
            level=level,
            base_amount=base_amount,
            amount=amount,
        )

        await self.events.emit(
            SaleEventType.REFERRAL_EARNING_CREDITED,
            referrer=referrer,
            referred=referred,
            level=level,
            base_amount=base_amount,
            amount=amount,
        )
        return ReferralCredit(referrer=referrer, level=level, amount=amount)

    async def credit_earnings(
        self,
        user: str,
        amount: int,
        level1_referrer: str | None,
        level2_referrer: str | None,
    ) -> list[ReferralCredit]:
        """
        Credit both referral levels for a contribution.

        The referrer pair is the one supplied with the purchase. A level is
        skipped when its referrer is null or the user, when the level 2
        referrer equals the level 1 referrer, or when the earning rounds
        down to zero.

        Args:
            user: Contributor
            amount: Contribution in stable units
            level1_referrer: Direct referrer
            level2_referrer: Referrer of the direct referrer

        Returns:
            Credits applied
        """
        user = normalize_address(user, "user")
        level1 = normalize_optional_address(level1_referrer, "level1_referrer")
        level2 = normalize_optional_address(level2_referrer, "level2_referrer")
        settings = await self.get_settings()

        credits: list[ReferralCredit] = []

        if level1 is not None and level1 != user:
            earning = self.calculate_earning(amount, settings.level1_rate)
            if earning > 0:
                credits.append(await self._credit(level1, user, 1, amount, earning))

        if level2 is not None and level2 != user and level2 != level1:
            earning = self.calculate_earning(amount, settings.level2_rate)
            if earning > 0:
                credits.append(await self._credit(level2, user, 2, amount, earning))

        if credits:
            self.logger.info(
                "Referral earnings credited",
                extra={
                    "user": mask_address(user),
                    "base_amount": str(amount),
                    "credits": [
                        (mask_address(c.referrer), c.level, str(c.amount))
                        for c in credits
                    ],
                },
            )
        return credits

    async def get_account(self, address: str) -> ReferralAccount | None:
        """Referral account of an address, if it ever earned."""
        return await self.account_repo.get_by_id(normalize_address(address))

    async def summary(self, address: str) -> ReferralSummary:
        """
        Referral position of an address.

        Returns:
            ReferralSummary with zeros for addresses that never earned
        """
        address = normalize_address(address)
        account = await self.account_repo.get_by_id(address)

        return ReferralSummary(
            address=address,
            referrer=await self.link_repo.get_referrer(address),
            level1_earned=account.level1_earned if account else 0,
            level2_earned=account.level2_earned if account else 0,
            total_earned=account.total_earned if account else 0,
            claimed=account.claimed if account else 0,
            pending=account.pending if account else 0,
            direct_referrals=await self.link_repo.count_referrals(address),
        )

    async def claim(self, user: str) -> int:
        """
        Release all pending earnings of ``user``.

        Returns:
            Amount released; the caller pays it out

        Raises:
            ReferralClaimsDisabled: If claims are closed
            NoEarningsToClaim: If nothing is pending
        """
        user = normalize_address(user, "user")
        settings = await self.get_settings()
        if not settings.claims_enabled:
            raise ReferralClaimsDisabled()

        account = await self.account_repo.get_by_id(user, for_update=True)
        pending = account.pending if account else 0
        if pending <= 0:
            raise NoEarningsToClaim(user=user)

        account.claimed = account.total_earned
        await self.account_repo.save(account)

        await self.events.emit(
            SaleEventType.REFERRAL_CLAIMED, user=user, amount=pending
        )
        self.logger.info(
            "Referral earnings claimed",
            extra={"user": mask_address(user), "amount": str(pending)},
        )
        return pending

    async def reverse_claim(self, user: str, amount: int) -> None:
        """
        Return ``amount`` of a committed claim to pending.

        Used when the payout of an already committed claim fails.
        """
        user = normalize_address(user, "user")
        account = await self.account_repo.get_by_id(user, for_update=True)
        if account is None or amount > account.claimed:
            raise InvalidAmount(
                "Claim reversal exceeds claimed earnings", user=user, amount=amount
            )

        account.claimed -= amount
        await self.account_repo.save(account)

        self.logger.warning(
            "Referral claim reversed",
            extra={"user": mask_address(user), "amount": str(amount)},
        )
