"""
Sale event recorder.

Writes observable events to the sale_events table inside the caller's
transaction and mirrors them to the log.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tokensale.models.sale_event import SaleEvent, SaleEventType
from tokensale.repositories.sale_event_repository import SaleEventRepository
from tokensale.services.base_service import BaseService


def _serialize(value: Any) -> Any:
    """Amounts are stored as strings so JSON consumers keep full precision."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return str(value)
    return value


class SaleEventRecorder(BaseService):
    """Records sale events."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize event recorder."""
        super().__init__(session)
        self.event_repo = SaleEventRepository(session)

    async def emit(self, event_type: SaleEventType, **payload: Any) -> SaleEvent:
        """
        Record an event.

        Args:
            event_type: Event kind
            **payload: Event fields

        Returns:
            Created event row
        """
        data = {key: _serialize(value) for key, value in payload.items()}
        event = await self.event_repo.create(
            event_type=event_type.value, payload=data
        )

        self.logger.debug(
            f"Sale event {event_type.value}",
            extra={"event_id": event.id, **data},
        )

        return event
