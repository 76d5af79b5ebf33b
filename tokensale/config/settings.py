"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from functools import lru_cache

from eth_utils import is_address, to_checksum_address
from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokensale.config.constants import (
    DEFAULT_FEE_TIERS,
    DEFAULT_LEVEL1_REFERRAL_RATE,
    DEFAULT_LEVEL2_REFERRAL_RATE,
    DEFAULT_SALE_HARD_CAP,
    MAX_REFERRAL_RATE,
    TX_RECEIPT_TIMEOUT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Blockchain
    rpc_url: str
    chain_id: int = Field(
        default=2046399126, gt=0, description="Target chain id (SKALE hub)"
    )
    operator_private_key: str = Field(
        ..., description="Key of the account that signs swaps and transfers"
    )
    tx_receipt_timeout: int = Field(
        default=TX_RECEIPT_TIMEOUT, ge=1,
        description="Seconds to wait for a transaction receipt"
    )

    # Contracts
    stable_token_address: str
    treasury_address: str
    swap_router_address: str
    factory_address: str
    fee_tiers: str = ",".join(str(tier) for tier in DEFAULT_FEE_TIERS)

    # Sale
    sale_hard_cap: int = Field(
        default=DEFAULT_SALE_HARD_CAP, gt=0,
        description="Sale-wide cap in stable token base units"
    )

    # Referral program
    level1_referral_rate: int = Field(
        default=DEFAULT_LEVEL1_REFERRAL_RATE, ge=0, le=MAX_REFERRAL_RATE,
        description="Level 1 referral rate in basis points"
    )
    level2_referral_rate: int = Field(
        default=DEFAULT_LEVEL2_REFERRAL_RATE, ge=0, le=MAX_REFERRAL_RATE,
        description="Level 2 referral rate in basis points"
    )
    referral_claims_enabled: bool = False

    # Admin
    admin_addresses: str = ""  # Comma-separated list

    # Application
    environment: str = "production"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        'stable_token_address',
        'treasury_address',
        'swap_router_address',
        'factory_address',
    )
    @classmethod
    def validate_eth_address(cls, v: str) -> str:
        """Validate Ethereum address format."""
        if not isinstance(v, str) or not v.startswith('0x') or len(v) != 42:
            raise ValueError(
                f'Invalid Ethereum address: {v}. '
                'Must start with 0x and be 42 characters long.'
            )
        if not is_address(v):
            raise ValueError(f'Invalid Ethereum address format: {v}')
        return to_checksum_address(v)

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql+asyncpg:// '
                'or sqlite+aiosqlite://'
            )
        return v

    @field_validator('fee_tiers')
    @classmethod
    def validate_fee_tiers(cls, v: str) -> str:
        """Validate comma-separated fee tiers."""
        tiers = [item.strip() for item in v.split(",") if item.strip()]
        if not tiers:
            raise ValueError('FEE_TIERS must list at least one fee tier')
        for tier in tiers:
            if not tier.isdigit() or int(tier) <= 0:
                raise ValueError(f'Invalid fee tier: {tier}')
        return ",".join(tiers)

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.database_url.startswith('sqlite'):
                raise ValueError(
                    'SQLite is not supported in production. '
                    'Set DATABASE_URL to a PostgreSQL database.'
                )
            if not self.get_admin_addresses():
                logger.warning(
                    'ADMIN_ADDRESSES is empty: every admin operation '
                    'will be rejected.'
                )
        return self

    def get_fee_tiers(self) -> tuple[int, ...]:
        """Parse fee tiers in configured order."""
        return tuple(int(tier) for tier in self.fee_tiers.split(","))

    def get_admin_addresses(self) -> list[str]:
        """Parse admin addresses from comma-separated string with error handling."""
        if not self.admin_addresses:
            return []

        result = []
        for item in self.admin_addresses.split(","):
            address = item.strip()
            if not address:
                continue
            if not is_address(address):
                logger.warning(f"Invalid admin address: {address}")
                continue
            result.append(to_checksum_address(address))
        return result


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
