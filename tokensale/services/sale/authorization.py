"""
Administrative authorization.

The controller receives an ``Authorizer`` callable that answers whether an
address may run admin operations. ``require_admin`` wraps controller
methods whose first argument after ``self`` is the caller.
"""

from collections.abc import Awaitable, Callable, Iterable
from functools import wraps
from typing import Any, TypeVar

from eth_utils import is_address, to_checksum_address
from loguru import logger

from tokensale.utils.exceptions import Unauthorized
from tokensale.utils.security import mask_address

# Type variable for wrapped method return type
T = TypeVar("T")

Authorizer = Callable[[str], bool]


def allowlist_authorizer(addresses: Iterable[str]) -> Authorizer:
    """
    Build an authorizer that allows a fixed set of addresses.

    Args:
        addresses: Admin addresses (any case)

    Returns:
        Authorizer comparing checksummed addresses
    """
    allowed = frozenset(to_checksum_address(a) for a in addresses)

    def authorize(caller: str) -> bool:
        if not caller or not is_address(caller):
            return False
        return to_checksum_address(caller) in allowed

    return authorize


def require_admin(
    method: Callable[..., Awaitable[T]]
) -> Callable[..., Awaitable[T]]:
    """
    Decorator to require admin rights for a controller method.

    The instance must expose ``authorizer``. The check runs before any
    lock or session is taken.

    Raises:
        Unauthorized: If the caller is not allowed
    """

    @wraps(method)
    async def wrapper(self: Any, caller: str, *args: Any, **kwargs: Any) -> T:
        if not self.authorizer(caller):
            logger.warning(
                f"require_admin: access denied for {method.__name__}",
                extra={"caller": mask_address(caller)},
            )
            raise Unauthorized(operation=method.__name__, caller=caller)
        return await method(self, caller, *args, **kwargs)

    return wrapper
