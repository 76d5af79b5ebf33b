"""Unit tests for the web3 gateways with mocked contracts."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.exceptions import ContractLogicError

from tests.fakes import BUYER, OPERATOR, PAY_TOKEN, STABLE, TREASURY
from tokensale.config.constants import ZERO_ADDRESS
from tokensale.services.blockchain.transaction_sender import TransactionSender
from tokensale.services.exchange.interfaces import SwapRequest
from tokensale.services.exchange.web3_swap import Web3SwapExecutor
from tokensale.services.exchange.web3_venues import Web3VenueProvider
from tokensale.services.funds.custody import Web3TokenCustody
from tokensale.utils.exceptions import TransferFailed


@pytest.fixture
def web3_mock(sample_transaction_hash):
    """Web3 double with a successful receipt."""
    web3 = MagicMock()
    web3.eth.get_transaction_count.return_value = 7
    web3.eth.gas_price = 100
    web3.eth.send_raw_transaction.return_value = bytes.fromhex(
        sample_transaction_hash[2:]
    )
    web3.eth.wait_for_transaction_receipt.return_value = {
        "status": 1,
        "blockNumber": 12345,
    }
    return web3


@pytest.fixture
def sender(web3_mock):
    account = MagicMock()
    account.address = OPERATOR
    account.sign_transaction.return_value = MagicMock(raw_transaction=b"signed")
    return TransactionSender(web3_mock, account, chain_id=2046399126)


@pytest.fixture
def contract_function():
    func = MagicMock()
    func.estimate_gas.return_value = 100_000
    func.build_transaction.side_effect = lambda tx: tx
    func.call.return_value = True
    return func


class TestTransactionSender:
    """Tests for TransactionSender."""

    @pytest.mark.asyncio
    async def test_send_builds_signs_and_waits(
        self, sender, web3_mock, contract_function, sample_transaction_hash
    ):
        receipt = await sender.send(contract_function, "transfer", 50_000)

        assert receipt["status"] == 1
        web3_mock.eth.wait_for_transaction_receipt.assert_called_once_with(
            sample_transaction_hash, timeout=sender.receipt_timeout
        )
        tx = contract_function.build_transaction.call_args[0][0]
        assert tx["nonce"] == 7
        assert tx["gas"] == 120_000
        assert tx["chainId"] == 2046399126
        assert tx["from"] == OPERATOR
        web3_mock.eth.send_raw_transaction.assert_called_once_with(b"signed")

    @pytest.mark.asyncio
    async def test_gas_estimation_fallback(self, sender, contract_function):
        contract_function.estimate_gas.side_effect = ContractLogicError("revert")

        await sender.send(contract_function, "transfer", 50_000)

        tx = contract_function.build_transaction.call_args[0][0]
        assert tx["gas"] == 60_000

    @pytest.mark.asyncio
    async def test_reverted_receipt_raises(
        self, sender, web3_mock, contract_function, sample_transaction_hash
    ):
        web3_mock.eth.wait_for_transaction_receipt.return_value = {"status": 0}

        with pytest.raises(TransferFailed) as exc_info:
            await sender.send(contract_function, "transfer", 50_000)

        assert exc_info.value.context["tx_hash"] == sample_transaction_hash

    @pytest.mark.asyncio
    async def test_simulation_revert_raises(self, sender, contract_function):
        contract_function.call.side_effect = ContractLogicError("insufficient allowance")

        with pytest.raises(TransferFailed):
            await sender.simulate(contract_function, "transferFrom")

        contract_function.call.assert_called_once_with({"from": OPERATOR})


def mocked_sender():
    sender = MagicMock()
    sender.address = OPERATOR
    sender.read = AsyncMock()
    sender.simulate = AsyncMock(return_value=True)
    sender.send = AsyncMock(return_value={"status": 1})
    return sender


class TestWeb3TokenCustody:
    """Tests for Web3TokenCustody."""

    @pytest.mark.asyncio
    async def test_pull_uses_transfer_from_to_operator(self):
        sender = mocked_sender()
        custody = Web3TokenCustody(sender)

        assert await custody.pull(PAY_TOKEN, BUYER, 10) is True

        functions = sender.web3.eth.contract.return_value.functions
        functions.transferFrom.assert_called_once_with(BUYER, OPERATOR, 10)
        sender.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_false_return_not_sent(self):
        sender = mocked_sender()
        sender.simulate.return_value = False

        assert await Web3TokenCustody(sender).push(STABLE, BUYER, 10) is False
        sender.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_transaction_reported(self):
        sender = mocked_sender()
        sender.send.side_effect = TransferFailed("reverted")

        assert await Web3TokenCustody(sender).transfer_from(
            STABLE, TREASURY, BUYER, 10
        ) is False


class TestWeb3VenueProvider:
    """Tests for Web3VenueProvider."""

    @pytest.mark.asyncio
    async def test_missing_pool_is_none(self):
        sender = mocked_sender()
        sender.read.return_value = ZERO_ADDRESS

        provider = Web3VenueProvider(sender, "0x" + "3d" * 20)

        assert await provider.get_venue(PAY_TOKEN, STABLE, 500) is None

    @pytest.mark.asyncio
    async def test_pool_and_depth(self):
        sender = mocked_sender()
        pool = "0x" + "9f" * 20
        sender.read.side_effect = [pool, 12345, 3000]
        provider = Web3VenueProvider(sender, "0x" + "3d" * 20)

        venue = await provider.get_venue(PAY_TOKEN, STABLE, 3000)

        assert venue.lower() == pool
        assert await provider.depth(venue) == 12345
        assert await provider.fee_tier(venue) == 3000


class TestWeb3SwapExecutor:
    """Tests for Web3SwapExecutor."""

    @pytest.mark.asyncio
    async def test_swap_returns_received_amount(self):
        """The mined Transfer to the recipient wins over the simulated quote."""
        sender = mocked_sender()
        sender.simulate.return_value = 987
        executor = Web3SwapExecutor(sender, "0x" + "3c" * 20)
        token = sender.web3.eth.contract.return_value
        token.events.Transfer.return_value.process_receipt.return_value = [
            {"args": {"from": "0x" + "9f" * 20, "to": TREASURY.lower(), "value": 950}},
            {"args": {"from": OPERATOR, "to": "0x" + "9f" * 20, "value": 100}},
        ]

        amount_out = await executor.swap_exact_input(
            SwapRequest(PAY_TOKEN, STABLE, 500, TREASURY, 100)
        )

        assert amount_out == 950
        params = executor.router.functions.exactInputSingle.call_args[0][0]
        assert params == (PAY_TOKEN, STABLE, 500, TREASURY, 100, 0, 0)
        sender.send.assert_awaited_once()
        token.events.Transfer.return_value.process_receipt.assert_called_once()

    @pytest.mark.asyncio
    async def test_swap_without_payout_raises(self):
        """A receipt with no Transfer to the recipient is a failed swap."""
        sender = mocked_sender()
        sender.simulate.return_value = 987
        executor = Web3SwapExecutor(sender, "0x" + "3c" * 20)
        token = sender.web3.eth.contract.return_value
        token.events.Transfer.return_value.process_receipt.return_value = []

        with pytest.raises(TransferFailed):
            await executor.swap_exact_input(
                SwapRequest(PAY_TOKEN, STABLE, 500, TREASURY, 100)
            )
