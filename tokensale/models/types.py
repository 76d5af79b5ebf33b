"""
Standard type definitions for database models.

Token amounts are integers of base units (18 decimals for USDT on the
target chain), which overflow BIGINT, so PostgreSQL stores them as
NUMERIC(78, 0), wide enough for any uint256.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import BigInteger, Numeric
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine


class TokenAmountType(TypeDecorator):
    """
    Integer token amount.

    PostgreSQL: NUMERIC(78, 0), exact for uint256.
    Other dialects (SQLite in tests): BIGINT.
    Python side is always ``int``.
    """

    impl = Numeric(78, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(78, 0))
        return dialect.type_descriptor(BigInteger())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if dialect.name == "postgresql":
            return Decimal(int(value))
        return int(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> int | None:
        if value is None:
            return None
        return int(value)
