"""
SwapRouter02 swap executor.

Simulates exactInputSingle to catch reverts, then sends it from the
operator account. The amount received is read from the output token's
Transfer logs in the mined receipt, since the pool price can move between
simulation and execution. The operator must hold ``amount_in`` of the
input token and have approved the router.
"""

from eth_utils import to_checksum_address
from loguru import logger
from web3.logs import DISCARD
from web3.types import TxReceipt

from tokensale.config.constants import DEFAULT_SWAP_GAS_LIMIT
from tokensale.services.blockchain.constants import ERC20_ABI, SWAP_ROUTER_ABI
from tokensale.services.blockchain.transaction_sender import TransactionSender
from tokensale.services.exchange.interfaces import SwapRequest
from tokensale.utils.exceptions import TransferFailed


class Web3SwapExecutor:
    """Swap executor backed by SwapRouter02."""

    def __init__(self, sender: TransactionSender, router_address: str) -> None:
        """
        Initialize swap executor.

        Args:
            sender: Operator transaction sender
            router_address: SwapRouter02 address
        """
        self.sender = sender
        self.router = sender.web3.eth.contract(
            address=to_checksum_address(router_address), abi=SWAP_ROUTER_ABI
        )

    def _received_amount(
        self, receipt: TxReceipt, token_out: str, recipient: str
    ) -> int:
        """Sum of token_out Transfer logs paid to ``recipient``."""
        token = self.sender.web3.eth.contract(
            address=to_checksum_address(token_out), abi=ERC20_ABI
        )
        transfers = token.events.Transfer().process_receipt(receipt, errors=DISCARD)
        recipient = recipient.lower()
        return sum(
            int(log["args"]["value"])
            for log in transfers
            if log["args"]["to"].lower() == recipient
        )

    async def swap_exact_input(self, request: SwapRequest) -> int:
        """
        Execute an exact-input single-pool swap.

        Returns:
            Amount of token_out received by the recipient

        Raises:
            TransferFailed: If the swap would revert, reverted or paid
                nothing to the recipient
        """
        params = (
            to_checksum_address(request.token_in),
            to_checksum_address(request.token_out),
            request.fee_tier,
            to_checksum_address(request.recipient),
            request.amount_in,
            request.minimum_out,
            request.price_limit,
        )
        func = self.router.functions.exactInputSingle(params)

        quoted_out = await self.sender.simulate(func, "exactInputSingle")
        receipt = await self.sender.send(
            func, "exactInputSingle", DEFAULT_SWAP_GAS_LIMIT
        )

        amount_out = self._received_amount(
            receipt, request.token_out, request.recipient
        )
        if amount_out <= 0:
            raise TransferFailed(
                "Swap paid nothing to the recipient",
                token_out=request.token_out,
                recipient=request.recipient,
            )

        logger.info(
            "Swap executed",
            extra={
                "fee_tier": request.fee_tier,
                "amount_in": str(request.amount_in),
                "quoted_out": str(quoted_out),
                "amount_out": str(amount_out),
            },
        )
        return amount_out
