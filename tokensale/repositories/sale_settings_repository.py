"""
Sale settings repository.

Data access layer for the single SaleSettings row.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from tokensale.models.sale_settings import SALE_SETTINGS_ID, SaleSettings
from tokensale.repositories.base import BaseRepository


class SaleSettingsRepository(BaseRepository[SaleSettings]):
    """Repository for sale-wide settings."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize sale settings repository."""
        super().__init__(SaleSettings, session)

    async def get_current(self, for_update: bool = False) -> SaleSettings | None:
        """Get the settings row, if seeded."""
        return await self.get_by_id(SALE_SETTINGS_ID, for_update=for_update)

    async def get_or_create(
        self, hard_cap: int, for_update: bool = False
    ) -> SaleSettings:
        """
        Get the settings row, creating it on first use.

        Args:
            hard_cap: Sale-wide cap used when the row is created
            for_update: Lock the row

        Returns:
            Settings row
        """
        current = await self.get_current(for_update=for_update)
        if current is not None:
            return current

        return await self.create(
            id=SALE_SETTINGS_ID,
            sale_active=False,
            current_stage_id=None,
            hard_cap=hard_cap,
            total_raised=0,
        )
