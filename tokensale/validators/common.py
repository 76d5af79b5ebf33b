"""
Common validators for sale input.

``validate_wallet_address`` returns a tuple of (is_valid, error_message);
the ``normalize_*`` helpers raise sale errors and are used on the
service boundary.
"""

from eth_utils import is_address, to_checksum_address

from tokensale.config.constants import ZERO_ADDRESS
from tokensale.utils.exceptions import InvalidAddress, InvalidAmount


def validate_wallet_address(address: str | None) -> tuple[bool, str | None]:
    """
    Validate an EVM address.

    Args:
        address: Wallet or contract address

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, 'Address must start with 0x')
    """
    if not address or not isinstance(address, str):
        return False, "Address is empty"

    address = address.strip()

    if not address.startswith("0x"):
        return False, "Address must start with 0x"

    if len(address) != 42:
        return False, "Address must be 42 characters"

    if not is_address(address):
        return False, "Address has invalid characters or checksum"

    return True, None


def is_null_address(address: str | None) -> bool:
    """True for ``None``, empty strings and the zero address."""
    if not address:
        return True
    return address.strip().lower() == ZERO_ADDRESS


def normalize_address(address: str | None, field: str = "address") -> str:
    """
    Normalize a required address to checksum format.

    Raises:
        InvalidAddress: If the address is missing, malformed or zero
    """
    if is_null_address(address):
        raise InvalidAddress(f"{field} is required", field=field)

    is_valid, error = validate_wallet_address(address)
    if not is_valid:
        raise InvalidAddress(f"{field}: {error}", field=field)

    return to_checksum_address(address.strip())


def normalize_optional_address(
    address: str | None, field: str = "address"
) -> str | None:
    """Normalize an optional address; null addresses become ``None``."""
    if is_null_address(address):
        return None
    return normalize_address(address, field)


def validate_positive_amount(amount: int, field: str = "amount") -> int:
    """
    Check that an amount is a positive integer of base units.

    Raises:
        InvalidAmount: If the amount is not an int or not positive
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"{field} must be an integer", field=field)
    if amount <= 0:
        raise InvalidAmount(f"{field} must be positive", field=field)
    return amount
