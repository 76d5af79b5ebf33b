"""
Token custody.

Moves ERC-20 funds between participants, the operator (custody) account
and the treasury. Every method reports success as a bool; the sale
controller turns ``False`` into ``TransferFailed``.
"""

from typing import Protocol

from eth_utils import to_checksum_address
from loguru import logger

from tokensale.config.constants import DEFAULT_TRANSFER_GAS_LIMIT
from tokensale.services.blockchain.constants import ERC20_ABI
from tokensale.services.blockchain.transaction_sender import TransactionSender
from tokensale.utils.exceptions import TransferFailed
from tokensale.utils.security import mask_address


class TokenCustody(Protocol):
    """Fund movement capability."""

    async def pull(self, token: str, owner: str, amount: int) -> bool:
        """Move ``amount`` of ``token`` from ``owner`` into custody."""
        ...

    async def push(self, token: str, recipient: str, amount: int) -> bool:
        """Move ``amount`` of ``token`` from custody to ``recipient``."""
        ...

    async def transfer_from(
        self, token: str, owner: str, recipient: str, amount: int
    ) -> bool:
        """Move ``amount`` of ``token`` from ``owner`` to ``recipient``."""
        ...


class Web3TokenCustody:
    """
    Custody backed by the operator account.

    ``pull`` and ``transfer_from`` rely on ERC-20 allowances granted to
    the operator; ``push`` pays out of the operator balance.
    """

    def __init__(self, sender: TransactionSender) -> None:
        """
        Initialize custody.

        Args:
            sender: Operator transaction sender
        """
        self.sender = sender

    def _token(self, token: str):
        return self.sender.web3.eth.contract(
            address=to_checksum_address(token), abi=ERC20_ABI
        )

    async def _transact(self, contract_function, description: str) -> bool:
        """Simulate then send; a false return or revert is reported as False."""
        try:
            ok = await self.sender.simulate(contract_function, description)
            if ok is False:
                logger.error(
                    f"Token transfer rejected: {description}",
                    extra={"reason": "returned false"},
                )
                return False
            await self.sender.send(
                contract_function, description, DEFAULT_TRANSFER_GAS_LIMIT
            )
        except TransferFailed as e:
            logger.error(
                f"Token transfer failed: {description}",
                extra={"error": e.message, **e.context},
            )
            return False
        return True

    async def pull(self, token: str, owner: str, amount: int) -> bool:
        """Pull ``amount`` from ``owner`` into the operator account."""
        return await self.transfer_from(token, owner, self.sender.address, amount)

    async def push(self, token: str, recipient: str, amount: int) -> bool:
        """Pay ``amount`` from the operator account to ``recipient``."""
        func = self._token(token).functions.transfer(
            to_checksum_address(recipient), amount
        )
        return await self._transact(
            func, f"transfer to {mask_address(recipient)}"
        )

    async def transfer_from(
        self, token: str, owner: str, recipient: str, amount: int
    ) -> bool:
        """Move ``amount`` from ``owner`` to ``recipient`` via allowance."""
        func = self._token(token).functions.transferFrom(
            to_checksum_address(owner), to_checksum_address(recipient), amount
        )
        return await self._transact(
            func,
            f"transferFrom {mask_address(owner)} to {mask_address(recipient)}",
        )
