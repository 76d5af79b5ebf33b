"""
Referral repositories.

Data access layer for ReferralLink, ReferralAccount, ReferralEarning and
ReferralSettings models.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensale.models.referral import (
    REFERRAL_SETTINGS_ID,
    ReferralAccount,
    ReferralEarning,
    ReferralLink,
    ReferralSettings,
)
from tokensale.repositories.base import BaseRepository


class ReferralLinkRepository(BaseRepository[ReferralLink]):
    """Referral link repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral link repository."""
        super().__init__(ReferralLink, session)

    async def get_referrer(self, user_address: str) -> str | None:
        """
        Get direct referrer of a user.

        Returns:
            Referrer address or None
        """
        link = await self.get_by_id(user_address)
        return link.referrer_address if link else None

    async def count_referrals(self, referrer_address: str) -> int:
        """
        Count users directly referred by an address.

        Returns:
            Number of linked users
        """
        return await self.count(referrer_address=referrer_address)


class ReferralAccountRepository(BaseRepository[ReferralAccount]):
    """Referral account repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral account repository."""
        super().__init__(ReferralAccount, session)

    async def get_or_create(
        self, address: str, for_update: bool = False
    ) -> ReferralAccount:
        """
        Get referral account, creating an empty one on first credit.

        Args:
            address: Checksummed address
            for_update: Lock the row

        Returns:
            Referral account
        """
        account = await self.get_by_id(address, for_update=for_update)
        if account is not None:
            return account

        return await self.create(
            address=address,
            level1_earned=0,
            level2_earned=0,
            total_earned=0,
            claimed=0,
        )


class ReferralEarningRepository(BaseRepository[ReferralEarning]):
    """Referral earning repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral earning repository."""
        super().__init__(ReferralEarning, session)

    async def get_by_referrer(
        self, referrer_address: str, level: int | None = None
    ) -> list[ReferralEarning]:
        """
        Get earnings credited to a referrer.

        Args:
            referrer_address: Referrer address
            level: Optional level filter (1-2)

        Returns:
            Earnings in credit order
        """
        stmt = select(ReferralEarning).where(
            ReferralEarning.referrer_address == referrer_address
        )
        if level:
            stmt = stmt.where(ReferralEarning.level == level)
        stmt = stmt.order_by(ReferralEarning.id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_level_totals(self, referrer_address: str) -> dict[int, int]:
        """
        Get earned sums per level in a single query.

        Returns:
            Dict mapping level to sum {1: amount1, 2: amount2}
        """
        stmt = (
            select(
                ReferralEarning.level,
                func.coalesce(func.sum(ReferralEarning.amount), 0).label("total"),
            )
            .where(ReferralEarning.referrer_address == referrer_address)
            .group_by(ReferralEarning.level)
        )

        result = await self.session.execute(stmt)

        totals = {1: 0, 2: 0}
        for row in result.all():
            totals[row.level] = int(row.total)

        return totals


class ReferralSettingsRepository(BaseRepository[ReferralSettings]):
    """Repository for the referral program settings row."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral settings repository."""
        super().__init__(ReferralSettings, session)

    async def get_or_create(
        self,
        level1_rate: int,
        level2_rate: int,
        claims_enabled: bool = False,
        for_update: bool = False,
    ) -> ReferralSettings:
        """
        Get the settings row, creating it with the given defaults.

        Returns:
            Settings row
        """
        current = await self.get_by_id(REFERRAL_SETTINGS_ID, for_update=for_update)
        if current is not None:
            return current

        return await self.create(
            id=REFERRAL_SETTINGS_ID,
            level1_rate=level1_rate,
            level2_rate=level2_rate,
            claims_enabled=claims_enabled,
        )
