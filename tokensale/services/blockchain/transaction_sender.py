"""
Operator transaction sender.

Signs and sends contract calls from the operator account:
- Simulation with eth_call before anything is signed
- Nonce management under an asyncio lock
- Gas estimation with a fallback limit
- Waiting for the receipt and checking its status

Sent transactions return their receipt so callers can decode emitted logs.

Web3 calls are blocking, so every RPC round trip runs in an executor.
"""

import asyncio
from concurrent.futures import Executor
from typing import Any

from eth_account.signers.local import LocalAccount
from loguru import logger
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception
from web3.types import TxReceipt

from tokensale.config.constants import GAS_LIMIT_MULTIPLIER, TX_RECEIPT_TIMEOUT
from tokensale.utils.exceptions import TransferFailed
from tokensale.utils.security import mask_tx_hash


class TransactionSender:
    """
    Sends transactions on behalf of the operator account.
    """

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        chain_id: int,
        receipt_timeout: int = TX_RECEIPT_TIMEOUT,
        executor: Executor | None = None,
    ) -> None:
        """
        Initialize transaction sender.

        Args:
            web3: Web3 instance
            account: Operator account used for signing
            chain_id: Chain id put into every transaction
            receipt_timeout: Seconds to wait for a receipt
            executor: Optional executor for blocking RPC calls
        """
        self.web3 = web3
        self.account = account
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.executor = executor

        # Nonce lock for preventing race conditions in parallel transactions
        self._nonce_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        """Operator address."""
        return self.account.address

    async def run(self, func: Any, *args: Any) -> Any:
        """Run a blocking callable in the executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, lambda: func(*args))

    async def read(self, contract_function: Any) -> Any:
        """
        Call a view function.

        Args:
            contract_function: Bound web3 contract function

        Returns:
            Decoded return value
        """
        return await self.run(contract_function.call)

    async def simulate(self, contract_function: Any, description: str) -> Any:
        """
        Simulate a state-changing call from the operator account.

        Returns:
            Decoded return value of the simulated call

        Raises:
            TransferFailed: If the call would revert
        """
        try:
            return await self.run(
                contract_function.call, {"from": self.address}
            )
        except (ContractLogicError, Web3Exception) as e:
            logger.warning(
                f"Simulation failed: {description}",
                extra={"error": str(e)},
            )
            raise TransferFailed(
                f"{description} would revert", error=str(e)
            ) from e

    def _build_and_send(
        self, contract_function: Any, nonce: int, fallback_gas: int
    ) -> str:
        """
        Build, sign and broadcast a transaction.

        SYNC method - runs in executor.
        """
        try:
            gas_est = contract_function.estimate_gas({"from": self.address})
        except (Web3Exception, ContractLogicError) as e:
            logger.warning(f"Gas estimation failed: {e}")
            gas_est = fallback_gas

        txn = contract_function.build_transaction({
            "from": self.address,
            "gas": int(gas_est * GAS_LIMIT_MULTIPLIER),
            "gasPrice": self.web3.eth.gas_price,
            "nonce": nonce,
            "chainId": self.chain_id,
        })

        signed = self.account.sign_transaction(txn)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def send(
        self, contract_function: Any, description: str, fallback_gas: int
    ) -> TxReceipt:
        """
        Send a transaction and wait for a successful receipt.

        Args:
            contract_function: Bound web3 contract function
            description: Human readable action for logs and errors
            fallback_gas: Gas limit used when estimation fails

        Returns:
            Mined receipt with status 1

        Raises:
            TransferFailed: If sending fails, times out or the receipt reverted
        """
        try:
            async with self._nonce_lock:
                nonce = await self.run(
                    self.web3.eth.get_transaction_count, self.address, "pending"
                )
                tx_hash = await self.run(
                    self._build_and_send, contract_function, nonce, fallback_gas
                )

            logger.info(
                f"Transaction sent: {description}",
                extra={"tx_hash": mask_tx_hash(tx_hash), "nonce": nonce},
            )

            receipt = await self.run(
                lambda: self.web3.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self.receipt_timeout
                )
            )
        except (Web3Exception, ContractLogicError, TimeoutError) as e:
            logger.error(
                f"Transaction failed: {description}",
                extra={"error": str(e)},
            )
            raise TransferFailed(f"{description} failed", error=str(e)) from e

        if receipt.get("status") != 1:
            logger.error(
                f"Transaction reverted: {description}",
                extra={"tx_hash": mask_tx_hash(tx_hash)},
            )
            raise TransferFailed(
                f"{description} reverted", tx_hash=tx_hash
            )

        logger.info(
            f"Transaction confirmed: {description}",
            extra={
                "tx_hash": mask_tx_hash(tx_hash),
                "block": receipt.get("blockNumber"),
            },
        )
        return receipt
