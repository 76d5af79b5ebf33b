"""
Sale controller.

Entry point for purchases, referral claims, admin operations and reads.

Every mutating operation runs under one asyncio lock and in its own
database session. Ledger and referral writes of an operation are
committed together; on failure the session is rolled back and fund
movements that already happened are undone through a compensation log.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokensale.config.constants import (
    DEFAULT_LEVEL1_REFERRAL_RATE,
    DEFAULT_LEVEL2_REFERRAL_RATE,
    DEFAULT_SALE_HARD_CAP,
    NATIVE_TOKEN_ADDRESS,
)
from tokensale.models.referral import ReferralSettings
from tokensale.models.sale_settings import SaleSettings
from tokensale.models.sale_stage import SaleStage
from tokensale.services.exchange.exchanger import Exchanger
from tokensale.services.funds.compensation import CompensationLog
from tokensale.services.funds.custody import TokenCustody
from tokensale.services.referral.accountant import (
    ReferralAccountant,
    ReferralCredit,
    ReferralSummary,
)
from tokensale.services.sale.authorization import Authorizer, require_admin
from tokensale.services.sale.guards import ReentrancyGuard
from tokensale.services.stage.ledger import SaleState, StageLedger
from tokensale.utils.exceptions import (
    InvalidPaymentToken,
    SaleNotActive,
    TransferFailed,
)
from tokensale.utils.security import mask_address
from tokensale.validators.common import (
    normalize_address,
    normalize_optional_address,
    validate_positive_amount,
)

T = TypeVar("T")


@dataclass(frozen=True)
class PurchaseReceipt:
    """Result of a completed purchase."""

    buyer: str
    payment_token: str
    amount_paid: int
    stable_amount: int
    stage_id: int
    referrer_linked: bool
    referral_credits: tuple[ReferralCredit, ...]


class SaleController:
    """
    Orchestrates the token sale.

    Collaborators are injected so the same controller runs against web3
    gateways in production and in-memory fakes in tests.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        exchanger: Exchanger,
        custody: TokenCustody,
        stable_token: str,
        treasury: str,
        authorizer: Authorizer,
        default_hard_cap: int = DEFAULT_SALE_HARD_CAP,
        default_level1_rate: int = DEFAULT_LEVEL1_REFERRAL_RATE,
        default_level2_rate: int = DEFAULT_LEVEL2_REFERRAL_RATE,
        default_claims_enabled: bool = False,
    ) -> None:
        """
        Initialize sale controller.

        Args:
            session_factory: Async session factory
            exchanger: Payment token conversion
            custody: Fund movement gateway
            stable_token: Stable unit token address
            treasury: Recipient of raised funds
            authorizer: Admin capability check
            default_hard_cap: Hard cap used when sale settings are first created
            default_level1_rate: Level 1 rate used when referral settings are first created
            default_level2_rate: Level 2 rate used when referral settings are first created
            default_claims_enabled: Claim gate used when referral settings are first created
        """
        self.session_factory = session_factory
        self.exchanger = exchanger
        self.custody = custody
        self.stable_token = normalize_address(stable_token, "stable_token")
        self.treasury = normalize_address(treasury, "treasury")
        self.authorizer = authorizer
        self.default_hard_cap = default_hard_cap
        self.default_level1_rate = default_level1_rate
        self.default_level2_rate = default_level2_rate
        self.default_claims_enabled = default_claims_enabled

        self.guard = ReentrancyGuard()
        self._lock = asyncio.Lock()
        self.logger = logger.bind(service=self.__class__.__name__)

    def _ledger(self, session: AsyncSession) -> StageLedger:
        return StageLedger(session, default_hard_cap=self.default_hard_cap)

    def _accountant(self, session: AsyncSession) -> ReferralAccountant:
        return ReferralAccountant(
            session,
            default_level1_rate=self.default_level1_rate,
            default_level2_rate=self.default_level2_rate,
            default_claims_enabled=self.default_claims_enabled,
        )

    async def initialize(self) -> None:
        """Create the settings rows from defaults if they do not exist yet."""
        async with self._lock:
            async with self.session_factory() as session:
                await self._ledger(session).get_sale_settings()
                await self._accountant(session).get_settings()
                await session.commit()

    # ------------------------------------------------------------------
    # Purchase
    # ------------------------------------------------------------------

    def _check_payment_token(self, payment_token: str | None) -> str:
        """
        Reject the native asset and normalize the token address.

        Raises:
            InvalidPaymentToken: For the native asset
            InvalidAddress: For malformed addresses
        """
        if payment_token is None or (
            isinstance(payment_token, str)
            and payment_token.strip().lower() == NATIVE_TOKEN_ADDRESS.lower()
        ):
            raise InvalidPaymentToken("Native asset is not accepted")
        return normalize_address(payment_token, "payment_token")

    async def purchase(
        self,
        buyer: str,
        payment_token: str | None,
        amount: int,
        level1_referrer: str | None = None,
        level2_referrer: str | None = None,
    ) -> PurchaseReceipt:
        """
        Buy into the active stage.

        Stable token payments go straight to the treasury. Any other token
        is pulled into custody and swapped into the stable token with the
        treasury as recipient; the stable proceeds are what is recorded.

        Args:
            buyer: Purchasing address
            payment_token: ERC-20 paid with
            amount: Amount of payment_token in base units
            level1_referrer: Direct referrer
            level2_referrer: Referrer of the direct referrer

        Returns:
            PurchaseReceipt

        Raises:
            ReentrantCall: If the buyer already has an operation in flight
            InvalidAddress, InvalidAmount, InvalidPaymentToken: On bad input
            SaleNotActive: If the sale is switched off
            NoLiquidityRoute: If the payment token cannot be converted
            TransferFailed: If a fund movement fails
            StageNotActive, StageLimitExceeded, BelowMinimumPurchase,
            ExceedsMaximumPurchase, HardCapExceeded: On ledger rejection
        """
        buyer = normalize_address(buyer, "buyer")
        async with self.guard.enter(buyer):
            async with self._lock:
                return await self._purchase(
                    buyer, payment_token, amount, level1_referrer, level2_referrer
                )

    async def _purchase(
        self,
        buyer: str,
        payment_token: str | None,
        amount: int,
        level1_referrer: str | None,
        level2_referrer: str | None,
    ) -> PurchaseReceipt:
        level1 = normalize_optional_address(level1_referrer, "level1_referrer")
        level2 = normalize_optional_address(level2_referrer, "level2_referrer")
        validate_positive_amount(amount)
        token = self._check_payment_token(payment_token)

        compensation = CompensationLog()

        async with self.session_factory() as session:
            ledger = self._ledger(session)
            accountant = self._accountant(session)

            try:
                if not await ledger.is_sale_active():
                    raise SaleNotActive()

                if token == self.stable_token:
                    stable_amount = await self._collect_stable(
                        ledger, buyer, amount, compensation
                    )
                else:
                    stable_amount = await self._collect_and_convert(
                        buyer, token, amount, compensation
                    )

                linked = await accountant.maybe_link_referrer(buyer, level1)
                result = await ledger.record(
                    buyer, stable_amount, source_token=token, source_amount=amount
                )
                credits = await accountant.credit_earnings(
                    buyer, stable_amount, level1, level2
                )

                await session.commit()
            except Exception as e:
                await session.rollback()
                if len(compensation):
                    self.logger.warning(
                        "Purchase failed after funds moved, compensating",
                        extra={
                            "buyer": mask_address(buyer),
                            "reason": type(e).__name__,
                        },
                    )
                    failed = await compensation.run()
                    if failed:
                        self.logger.error(
                            "Purchase compensation incomplete",
                            extra={"buyer": mask_address(buyer), "failed": failed},
                        )
                raise

        self.logger.info(
            "Purchase completed",
            extra={
                "buyer": mask_address(buyer),
                "payment_token": token,
                "amount_paid": str(amount),
                "stable_amount": str(stable_amount),
                "stage_id": result.stage_id,
            },
        )

        return PurchaseReceipt(
            buyer=buyer,
            payment_token=token,
            amount_paid=amount,
            stable_amount=stable_amount,
            stage_id=result.stage_id,
            referrer_linked=linked,
            referral_credits=tuple(credits),
        )

    async def _collect_stable(
        self,
        ledger: StageLedger,
        buyer: str,
        amount: int,
        compensation: CompensationLog,
    ) -> int:
        """Validate against the ledger, then move stable funds to the treasury."""
        await ledger.validate_record(buyer, amount)

        if not await self.custody.transfer_from(
            self.stable_token, buyer, self.treasury, amount
        ):
            raise TransferFailed(
                "Stable payment transfer failed", buyer=buyer, amount=amount
            )

        compensation.add(
            f"refund {amount} stable to {mask_address(buyer)}",
            lambda: self.custody.transfer_from(
                self.stable_token, self.treasury, buyer, amount
            ),
        )
        return amount

    async def _collect_and_convert(
        self,
        buyer: str,
        token: str,
        amount: int,
        compensation: CompensationLog,
    ) -> int:
        """Pull the payment token and swap it into the stable token."""
        route = await self.exchanger.find_route(token)

        if not await self.custody.pull(token, buyer, amount):
            raise TransferFailed(
                "Payment token transfer failed", buyer=buyer, token=token
            )

        compensation.add(
            f"return {amount} of {token} to {mask_address(buyer)}",
            lambda: self.custody.push(token, buyer, amount),
        )

        stable_amount = await self.exchanger.convert(
            token, amount, self.treasury, route=route
        )

        # The pulled token is gone; proceeds now sit in the treasury
        compensation.clear()
        if stable_amount > 0:
            compensation.add(
                f"refund {stable_amount} stable to {mask_address(buyer)}",
                lambda: self.custody.transfer_from(
                    self.stable_token, self.treasury, buyer, stable_amount
                ),
            )
        return stable_amount

    # ------------------------------------------------------------------
    # Referral claims
    # ------------------------------------------------------------------

    async def claim_referral_earnings(self, claimer: str) -> int:
        """
        Pay out all pending referral earnings of ``claimer``.

        Returns:
            Amount paid

        Raises:
            ReentrantCall: If the claimer already has an operation in flight
            ReferralClaimsDisabled: If claims are closed
            NoEarningsToClaim: If nothing is pending
            TransferFailed: If the payout fails
        """
        claimer = normalize_address(claimer, "claimer")
        async with self.guard.enter(claimer):
            async with self._lock:
                async with self.session_factory() as session:
                    accountant = self._accountant(session)
                    try:
                        amount = await accountant.claim(claimer)
                        await session.commit()
                    except Exception:
                        await session.rollback()
                        raise

                # The claim is committed before any tokens leave custody
                try:
                    paid = await self.custody.push(
                        self.stable_token, claimer, amount
                    )
                except Exception:
                    await self._reverse_claim(claimer, amount)
                    raise
                if not paid:
                    await self._reverse_claim(claimer, amount)
                    raise TransferFailed(
                        "Referral payout failed",
                        claimer=claimer,
                        amount=amount,
                    )

        self.logger.info(
            "Referral earnings paid",
            extra={"claimer": mask_address(claimer), "amount": str(amount)},
        )
        return amount

    async def _reverse_claim(self, claimer: str, amount: int) -> None:
        """Put an unpaid claim back to pending in a fresh transaction."""
        async with self.session_factory() as session:
            try:
                await self._accountant(session).reverse_claim(claimer, amount)
                await session.commit()
            except Exception as e:
                await session.rollback()
                self.logger.error(
                    "Claim reversal failed",
                    extra={
                        "claimer": mask_address(claimer),
                        "amount": str(amount),
                        "error": str(e),
                    },
                )

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    async def _run_admin(
        self,
        operation: Callable[[StageLedger, ReferralAccountant], Awaitable[T]],
    ) -> T:
        """Run an admin mutation under the lock in its own transaction."""
        async with self._lock:
            async with self.session_factory() as session:
                try:
                    result = await operation(
                        self._ledger(session), self._accountant(session)
                    )
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        return result

    @require_admin
    async def add_stage(
        self, caller: str, cap: int, min_purchase: int, max_purchase: int
    ) -> SaleStage:
        """Append a new inactive stage."""
        return await self._run_admin(
            lambda ledger, _: ledger.add_stage(cap, min_purchase, max_purchase)
        )

    @require_admin
    async def activate_stage(self, caller: str, stage_id: int) -> SaleStage:
        """Make ``stage_id`` the active stage."""
        return await self._run_admin(lambda ledger, _: ledger.activate(stage_id))

    @require_admin
    async def deactivate_current_stage(self, caller: str) -> SaleStage | None:
        """Leave the sale without an active stage."""
        return await self._run_admin(lambda ledger, _: ledger.deactivate_current())

    @require_admin
    async def update_stage(
        self,
        caller: str,
        stage_id: int,
        cap: int,
        min_purchase: int,
        max_purchase: int,
    ) -> SaleStage:
        """Change cap and purchase bounds of a stage."""
        return await self._run_admin(
            lambda ledger, _: ledger.update_stage(
                stage_id, cap, min_purchase, max_purchase
            )
        )

    @require_admin
    async def set_sale_active(self, caller: str, active: bool) -> SaleSettings:
        """Turn the sale on or off."""
        return await self._run_admin(
            lambda ledger, _: ledger.set_sale_active(active)
        )

    @require_admin
    async def set_hard_cap(self, caller: str, hard_cap: int) -> SaleSettings:
        """Change the sale-wide cap."""
        return await self._run_admin(lambda ledger, _: ledger.set_hard_cap(hard_cap))

    @require_admin
    async def set_referral_rates(
        self, caller: str, level1_rate: int, level2_rate: int
    ) -> ReferralSettings:
        """Change both referral rates."""
        return await self._run_admin(
            lambda _, accountant: accountant.set_rates(level1_rate, level2_rate)
        )

    @require_admin
    async def set_referral_claims_enabled(
        self, caller: str, enabled: bool
    ) -> ReferralSettings:
        """Open or close referral claims."""
        return await self._run_admin(
            lambda _, accountant: accountant.set_claims_enabled(enabled)
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _read(
        self,
        operation: Callable[[StageLedger, ReferralAccountant], Awaitable[T]],
    ) -> T:
        async with self.session_factory() as session:
            return await operation(self._ledger(session), self._accountant(session))

    async def get_stage(self, stage_id: int) -> SaleStage:
        return await self._read(lambda ledger, _: ledger.get_stage(stage_id))

    async def list_stages(self) -> list[SaleStage]:
        return await self._read(lambda ledger, _: ledger.list_stages())

    async def current_stage(self) -> SaleStage | None:
        return await self._read(lambda ledger, _: ledger.current_stage())

    async def stage_contribution(self, stage_id: int, user: str) -> int:
        return await self._read(
            lambda ledger, _: ledger.stage_contribution(stage_id, user)
        )

    async def user_total(self, user: str) -> int:
        return await self._read(lambda ledger, _: ledger.user_total(user))

    async def sale_state(self) -> SaleState:
        return await self._read(lambda ledger, _: ledger.sale_state())

    async def referral_summary(self, address: str) -> ReferralSummary:
        return await self._read(lambda _, accountant: accountant.summary(address))

    async def referrer_of(self, user: str) -> str | None:
        return await self._read(lambda _, accountant: accountant.referrer_of(user))
