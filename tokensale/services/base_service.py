"""
Base service class.

Provides common functionality for session-bound services: the shared
session and a logger bound to the service name.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


class BaseService:
    """
    Base service class.

    Services never commit on their own; the caller that opened the
    session decides whether the unit of work is committed or rolled back.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

