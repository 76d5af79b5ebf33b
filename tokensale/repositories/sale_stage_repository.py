"""
Sale stage repository.

Data access layer for SaleStage model.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensale.models.sale_stage import SaleStage
from tokensale.repositories.base import BaseRepository


class SaleStageRepository(BaseRepository[SaleStage]):
    """Sale stage repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize sale stage repository."""
        super().__init__(SaleStage, session)

    async def next_stage_id(self) -> int:
        """
        Get the id the next appended stage will receive.

        Returns:
            Current stage count (ids are 0-based and gap-free)
        """
        stmt = select(func.coalesce(func.max(SaleStage.id) + 1, 0))
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def list_ordered(self) -> list[SaleStage]:
        """
        Get all stages in id order.

        Returns:
            List of stages
        """
        stmt = select(SaleStage).order_by(SaleStage.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_stages(self) -> list[SaleStage]:
        """
        Get stages flagged active.

        The ledger keeps at most one, the list form lets it repair a
        pointer/flag mismatch.

        Returns:
            List of active stages
        """
        return await self.find_by(is_active=True)
