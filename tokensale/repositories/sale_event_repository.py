"""
Sale event repository.

Data access layer for SaleEvent model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensale.models.sale_event import SaleEvent
from tokensale.repositories.base import BaseRepository


class SaleEventRepository(BaseRepository[SaleEvent]):
    """Sale event repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize sale event repository."""
        super().__init__(SaleEvent, session)

    async def get_recent(
        self, event_type: str | None = None, limit: int = 100
    ) -> list[SaleEvent]:
        """
        Get most recent events, newest first.

        Args:
            event_type: Optional event type filter
            limit: Max number of events

        Returns:
            List of events
        """
        stmt = select(SaleEvent)
        if event_type:
            stmt = stmt.where(SaleEvent.event_type == event_type)
        stmt = stmt.order_by(SaleEvent.id.desc()).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
