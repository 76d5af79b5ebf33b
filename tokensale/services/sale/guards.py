"""
Re-entrancy guard.

Rejects a second purchase or claim by an actor while one is in flight.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger

from tokensale.utils.exceptions import ReentrantCall
from tokensale.utils.security import mask_address


class ReentrancyGuard:
    """Tracks actors currently inside a guarded operation."""

    def __init__(self) -> None:
        self._active: set[str] = set()

    def is_entered(self, actor: str) -> bool:
        """True while ``actor`` is inside a guarded operation."""
        return actor.lower() in self._active

    @asynccontextmanager
    async def enter(self, actor: str) -> AsyncIterator[None]:
        """
        Hold the guard for ``actor`` for the duration of the block.

        Raises:
            ReentrantCall: If the actor already holds the guard
        """
        key = actor.lower()
        if key in self._active:
            logger.warning(
                "Re-entrant call rejected",
                extra={"actor": mask_address(actor)},
            )
            raise ReentrantCall(actor=actor)

        self._active.add(key)
        try:
            yield
        finally:
            self._active.discard(key)
