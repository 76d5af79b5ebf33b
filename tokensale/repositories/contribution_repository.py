"""
Contribution repositories.

Data access layer for StageContribution and UserContribution models.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensale.models.contribution import StageContribution, UserContribution
from tokensale.repositories.base import BaseRepository


class StageContributionRepository(BaseRepository[StageContribution]):
    """Per-stage contribution repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stage contribution repository."""
        super().__init__(StageContribution, session)

    async def get_for_user(
        self, stage_id: int, user_address: str, for_update: bool = False
    ) -> StageContribution | None:
        """
        Get contribution row for (stage, user).

        Args:
            stage_id: Stage ID
            user_address: Checksummed user address
            for_update: Lock the row

        Returns:
            Contribution row or None
        """
        stmt = select(StageContribution).where(
            StageContribution.stage_id == stage_id,
            StageContribution.user_address == user_address,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_amount(self, stage_id: int, user_address: str) -> int:
        """
        Get cumulative amount contributed by user in stage.

        Returns:
            Amount in base units (0 if none)
        """
        row = await self.get_for_user(stage_id, user_address)
        return row.amount if row else 0

    async def get_by_user(self, user_address: str) -> list[StageContribution]:
        """
        Get all stage contributions of a user.

        Returns:
            Contributions ordered by stage id
        """
        stmt = (
            select(StageContribution)
            .where(StageContribution.user_address == user_address)
            .order_by(StageContribution.stage_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class UserContributionRepository(BaseRepository[UserContribution]):
    """Global per-user contribution repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user contribution repository."""
        super().__init__(UserContribution, session)

    async def get_total(self, user_address: str) -> int:
        """
        Get user's total contribution across all stages.

        Returns:
            Amount in base units (0 if none)
        """
        row = await self.get_by_id(user_address)
        return row.total_amount if row else 0
