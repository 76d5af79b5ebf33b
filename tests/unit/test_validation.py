"""Unit tests for validation utilities."""

import pytest

from tokensale.config.constants import ZERO_ADDRESS
from tokensale.utils.exceptions import InvalidAddress, InvalidAmount
from tokensale.utils.security import mask_address, mask_tx_hash
from tokensale.validators.common import (
    is_null_address,
    normalize_address,
    normalize_optional_address,
    validate_positive_amount,
    validate_wallet_address,
)


class TestWalletAddressValidation:
    """Tests for address format validation."""

    def test_empty_address_invalid(self):
        """Empty address should be invalid."""
        assert validate_wallet_address("") == (False, "Address is empty")

    def test_no_0x_prefix_invalid(self):
        """Address without 0x prefix should be invalid."""
        is_valid, error = validate_wallet_address("1" * 40)
        assert not is_valid
        assert "0x" in error

    def test_short_address_invalid(self):
        """Short address should be invalid."""
        assert not validate_wallet_address("0x1234")[0]

    def test_invalid_hex_characters(self):
        """Address with non-hex characters should be invalid."""
        assert not validate_wallet_address("0x" + "z" * 40)[0]

    @pytest.mark.parametrize(
        "address",
        [
            "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
            "0x" + "ab" * 20,
            "0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF",
        ],
    )
    def test_valid_addresses(self, address):
        """Various valid address formats should pass."""
        assert validate_wallet_address(address) == (True, None)


class TestNormalizeAddress:
    """Tests for address normalization."""

    def test_returns_checksum(self):
        """Lowercase input comes back checksummed."""
        address = "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"
        assert normalize_address(address) == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

    @pytest.mark.parametrize("address", [None, "", ZERO_ADDRESS, "0x1234"])
    def test_invalid_or_null_rejected(self, address):
        """Null and malformed addresses raise InvalidAddress."""
        with pytest.raises(InvalidAddress) as exc_info:
            normalize_address(address, "buyer")

        assert exc_info.value.context["field"] == "buyer"

    @pytest.mark.parametrize("address", [None, "", ZERO_ADDRESS])
    def test_optional_null_becomes_none(self, address):
        """Null optional addresses are None."""
        assert is_null_address(address)
        assert normalize_optional_address(address) is None


class TestPositiveAmount:
    """Tests for amount validation."""

    def test_positive_int_accepted(self):
        assert validate_positive_amount(10**30) == 10**30

    @pytest.mark.parametrize("amount", [0, -1, True, 1.5, "10"])
    def test_rejected(self, amount):
        """Zero, negatives and non-integers raise InvalidAmount."""
        with pytest.raises(InvalidAmount):
            validate_positive_amount(amount)


class TestMasking:
    """Tests for log masking helpers."""

    def test_mask_address(self):
        assert mask_address("0x1234567890abcdef1234567890abcdef12345678") == "0x1234...5678"
        assert mask_address(None) == "***"

    def test_mask_tx_hash(self, sample_transaction_hash):
        assert mask_tx_hash(sample_transaction_hash) == "0x12345678...abcdef"
