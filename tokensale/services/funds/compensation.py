"""
Compensation log.

Collects undo actions for fund movements that already happened so they
can be reversed when a later step of the same operation fails.
"""

from collections.abc import Awaitable, Callable

from loguru import logger


Compensation = Callable[[], Awaitable[bool]]


class CompensationLog:
    """Undo actions run in reverse registration order."""

    def __init__(self) -> None:
        self._actions: list[tuple[str, Compensation]] = []

    def __len__(self) -> int:
        return len(self._actions)

    def add(self, description: str, action: Compensation) -> None:
        """
        Register an undo action.

        Args:
            description: What the action undoes (for logs)
            action: Coroutine function returning True on success
        """
        self._actions.append((description, action))

    def clear(self) -> None:
        """Forget registered actions once the operation committed."""
        self._actions.clear()

    async def run(self) -> list[str]:
        """
        Run every action, newest first.

        A failing action is logged and does not stop the remaining ones.

        Returns:
            Descriptions of the actions that failed
        """
        failed: list[str] = []
        while self._actions:
            description, action = self._actions.pop()
            try:
                ok = await action()
            except Exception as e:
                logger.error(
                    f"Compensation raised: {description}",
                    extra={"error": str(e)},
                )
                failed.append(description)
                continue

            if ok:
                logger.warning(f"Compensation applied: {description}")
            else:
                logger.error(f"Compensation failed: {description}")
                failed.append(description)
        return failed
