"""
Stage ledger.

Owns sale stages, the active stage pointer, the sale switch and every
contribution counter. Stage state machine:

    created (inactive) -> active -> inactive

Exactly zero or one stage is active at any time. Contributions are only
recorded against the active stage and are bounded by the stage cap, the
per-user cumulative bounds of the stage and the sale-wide hard cap.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from tokensale.config.constants import DEFAULT_SALE_HARD_CAP
from tokensale.models.contribution import StageContribution, UserContribution
from tokensale.models.sale_event import SaleEventType
from tokensale.models.sale_settings import SaleSettings
from tokensale.models.sale_stage import SaleStage
from tokensale.repositories.contribution_repository import (
    StageContributionRepository,
    UserContributionRepository,
)
from tokensale.repositories.sale_settings_repository import SaleSettingsRepository
from tokensale.repositories.sale_stage_repository import SaleStageRepository
from tokensale.services.base_service import BaseService
from tokensale.services.sale_events import SaleEventRecorder
from tokensale.utils.exceptions import (
    BelowMinimumPurchase,
    ExceedsMaximumPurchase,
    HardCapExceeded,
    InvalidLimits,
    InvalidStageId,
    StageLimitExceeded,
    StageNotActive,
)
from tokensale.utils.security import mask_address
from tokensale.validators.common import (
    normalize_address,
    normalize_optional_address,
    validate_positive_amount,
)


@dataclass(frozen=True)
class ContributionResult:
    """Outcome of a recorded contribution."""

    stage_id: int
    amount: int
    stage_total_raised: int
    user_stage_total: int
    user_total: int
    first_contribution: bool


@dataclass(frozen=True)
class SaleState:
    """Snapshot of sale-wide state."""

    sale_active: bool
    current_stage_id: int | None
    hard_cap: int
    total_raised: int
    stage_count: int


class StageLedger(BaseService):
    """Stage state machine and contribution accounting."""

    def __init__(
        self,
        session: AsyncSession,
        default_hard_cap: int = DEFAULT_SALE_HARD_CAP,
    ) -> None:
        """
        Initialize stage ledger.

        Args:
            session: Async database session
            default_hard_cap: Sale-wide cap used when settings are first created
        """
        super().__init__(session)
        self.default_hard_cap = default_hard_cap
        self.stage_repo = SaleStageRepository(session)
        self.stage_contribution_repo = StageContributionRepository(session)
        self.user_contribution_repo = UserContributionRepository(session)
        self.settings_repo = SaleSettingsRepository(session)
        self.events = SaleEventRecorder(session)

    # ------------------------------------------------------------------
    # Sale-wide state
    # ------------------------------------------------------------------

    async def get_sale_settings(self, for_update: bool = False) -> SaleSettings:
        """Get sale settings, creating them on first use."""
        return await self.settings_repo.get_or_create(
            self.default_hard_cap, for_update=for_update
        )

    async def sale_state(self) -> SaleState:
        """
        Get sale-wide state snapshot.

        Returns:
            SaleState
        """
        settings = await self.get_sale_settings()
        return SaleState(
            sale_active=settings.sale_active,
            current_stage_id=settings.current_stage_id,
            hard_cap=settings.hard_cap,
            total_raised=settings.total_raised,
            stage_count=await self.stage_count(),
        )

    async def is_sale_active(self) -> bool:
        """True when the sale switch is on."""
        settings = await self.get_sale_settings()
        return settings.sale_active

    async def set_sale_active(self, active: bool) -> SaleSettings:
        """
        Turn the sale on or off.

        Args:
            active: New sale switch value

        Returns:
            Updated settings
        """
        settings = await self.get_sale_settings(for_update=True)
        settings.sale_active = active
        await self.settings_repo.save(settings)

        await self.events.emit(
            SaleEventType.SALE_STATUS_CHANGED, sale_active=active
        )
        self.logger.info("Sale status changed", extra={"sale_active": active})
        return settings

    async def set_hard_cap(self, hard_cap: int) -> SaleSettings:
        """
        Change the sale-wide cap.

        Raises:
            InvalidLimits: If the cap is not positive or below funds raised
        """
        settings = await self.get_sale_settings(for_update=True)
        if isinstance(hard_cap, bool) or not isinstance(hard_cap, int) or hard_cap <= 0:
            raise InvalidLimits("Hard cap must be a positive integer")
        if hard_cap < settings.total_raised:
            raise InvalidLimits(
                "Hard cap cannot be below funds already raised",
                hard_cap=hard_cap,
                total_raised=settings.total_raised,
            )

        old_cap = settings.hard_cap
        settings.hard_cap = hard_cap
        await self.settings_repo.save(settings)

        await self.events.emit(
            SaleEventType.HARD_CAP_UPDATED, old_cap=old_cap, new_cap=hard_cap
        )
        self.logger.info(
            "Sale hard cap updated",
            extra={"old_cap": str(old_cap), "new_cap": str(hard_cap)},
        )
        return settings

    # ------------------------------------------------------------------
    # Stage lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def _check_limits(cap: int, min_purchase: int, max_purchase: int) -> None:
        """
        Validate stage cap and purchase bounds.

        Raises:
            InvalidLimits: If cap is zero or bounds are inconsistent
        """
        for name, value in (
            ("cap", cap),
            ("min_purchase", min_purchase),
            ("max_purchase", max_purchase),
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidLimits(f"{name} must be an integer")
            if value < 0:
                raise InvalidLimits(f"{name} cannot be negative")

        if cap == 0:
            raise InvalidLimits("Stage cap must be positive")
        if max_purchase < min_purchase:
            raise InvalidLimits(
                "max_purchase cannot be below min_purchase",
                min_purchase=min_purchase,
                max_purchase=max_purchase,
            )

    async def stage_count(self) -> int:
        """Number of stages created so far."""
        return await self.stage_repo.count()

    async def get_stage(self, stage_id: int, for_update: bool = False) -> SaleStage:
        """
        Get stage by id.

        Raises:
            InvalidStageId: If the id is out of range
        """
        if isinstance(stage_id, bool) or not isinstance(stage_id, int) or stage_id < 0:
            raise InvalidStageId(stage_id=stage_id)

        stage = await self.stage_repo.get_by_id(stage_id, for_update=for_update)
        if stage is None:
            raise InvalidStageId(
                f"Stage {stage_id} does not exist", stage_id=stage_id
            )
        return stage

    async def list_stages(self) -> list[SaleStage]:
        """All stages in id order."""
        return await self.stage_repo.list_ordered()

    async def current_stage(self) -> SaleStage | None:
        """Active stage, or None when no stage is active."""
        settings = await self.get_sale_settings()
        if settings.current_stage_id is None:
            return None
        return await self.stage_repo.get_by_id(settings.current_stage_id)

    async def add_stage(
        self, cap: int, min_purchase: int, max_purchase: int
    ) -> SaleStage:
        """
        Append a new inactive stage.

        Args:
            cap: Maximum amount the stage may raise
            min_purchase: Minimum cumulative contribution per user
            max_purchase: Maximum cumulative contribution per user

        Returns:
            Created stage

        Raises:
            InvalidLimits: If cap is zero or max < min
        """
        self._check_limits(cap, min_purchase, max_purchase)

        # Lock settings so concurrent appends cannot pick the same id
        await self.get_sale_settings(for_update=True)
        stage_id = await self.stage_repo.next_stage_id()

        stage = await self.stage_repo.create(
            id=stage_id,
            cap=cap,
            min_purchase=min_purchase,
            max_purchase=max_purchase,
            total_raised=0,
            is_active=False,
        )

        await self.events.emit(
            SaleEventType.STAGE_ADDED,
            stage_id=stage.id,
            cap=cap,
            min_purchase=min_purchase,
            max_purchase=max_purchase,
        )
        self.logger.info(
            "Sale stage added",
            extra={
                "stage_id": stage.id,
                "cap": str(cap),
                "min_purchase": str(min_purchase),
                "max_purchase": str(max_purchase),
            },
        )
        return stage

    async def activate(self, stage_id: int) -> SaleStage:
        """
        Activate a stage, deactivating the current one.

        Args:
            stage_id: Stage to activate

        Returns:
            Activated stage

        Raises:
            InvalidStageId: If the id is out of range
        """
        stage = await self.get_stage(stage_id, for_update=True)
        settings = await self.get_sale_settings(for_update=True)

        previous_id = settings.current_stage_id
        for active in await self.stage_repo.get_active_stages():
            if active.id != stage.id:
                active.is_active = False
                await self.stage_repo.save(active)

        stage.is_active = True
        await self.stage_repo.save(stage)

        settings.current_stage_id = stage.id
        await self.settings_repo.save(settings)

        await self.events.emit(
            SaleEventType.STAGE_ACTIVATED,
            stage_id=stage.id,
            previous_stage_id=previous_id,
        )
        self.logger.info(
            "Sale stage activated",
            extra={"stage_id": stage.id, "previous_stage_id": previous_id},
        )
        return stage

    async def deactivate_current(self) -> SaleStage | None:
        """
        Deactivate the active stage without activating another.

        Returns:
            Deactivated stage, or None if no stage was active
        """
        settings = await self.get_sale_settings(for_update=True)

        deactivated: SaleStage | None = None
        for active in await self.stage_repo.get_active_stages():
            active.is_active = False
            await self.stage_repo.save(active)
            if active.id == settings.current_stage_id:
                deactivated = active

        stage_id = settings.current_stage_id
        settings.current_stage_id = None
        await self.settings_repo.save(settings)

        if stage_id is not None:
            await self.events.emit(
                SaleEventType.STAGE_DEACTIVATED, stage_id=stage_id
            )
            self.logger.info(
                "Sale stage deactivated", extra={"stage_id": stage_id}
            )

        return deactivated

    async def update_stage(
        self,
        stage_id: int,
        cap: int,
        min_purchase: int,
        max_purchase: int,
    ) -> SaleStage:
        """
        Change cap and purchase bounds of a stage.

        Raises:
            InvalidStageId: If the id is out of range
            InvalidLimits: If the new cap is below funds already raised
        """
        stage = await self.get_stage(stage_id, for_update=True)
        self._check_limits(cap, min_purchase, max_purchase)

        if cap < stage.total_raised:
            raise InvalidLimits(
                "Stage cap cannot be below funds already raised",
                stage_id=stage_id,
                cap=cap,
                total_raised=stage.total_raised,
            )

        stage.cap = cap
        stage.min_purchase = min_purchase
        stage.max_purchase = max_purchase
        await self.stage_repo.save(stage)

        await self.events.emit(
            SaleEventType.STAGE_UPDATED,
            stage_id=stage_id,
            cap=cap,
            min_purchase=min_purchase,
            max_purchase=max_purchase,
        )
        self.logger.info(
            "Sale stage updated",
            extra={
                "stage_id": stage_id,
                "cap": str(cap),
                "min_purchase": str(min_purchase),
                "max_purchase": str(max_purchase),
            },
        )
        return stage

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    async def stage_contribution(self, stage_id: int, user: str) -> int:
        """Cumulative amount contributed by user in stage."""
        await self.get_stage(stage_id)
        return await self.stage_contribution_repo.get_amount(
            stage_id, normalize_address(user, "user")
        )

    async def user_total(self, user: str) -> int:
        """Cumulative amount contributed by user across all stages."""
        return await self.user_contribution_repo.get_total(
            normalize_address(user, "user")
        )

    async def _active_stage_for_update(self) -> tuple[SaleStage, SaleSettings]:
        """
        Load the active stage and settings with row locks.

        Raises:
            StageNotActive: If no stage is active
        """
        settings = await self.get_sale_settings(for_update=True)
        if settings.current_stage_id is None:
            raise StageNotActive()

        stage = await self.stage_repo.get_by_id(
            settings.current_stage_id, for_update=True
        )
        if stage is None or not stage.is_active:
            raise StageNotActive()

        return stage, settings

    def _check_contribution(
        self,
        stage: SaleStage,
        settings: SaleSettings,
        user: str,
        amount: int,
        user_stage_amount: int,
    ) -> int:
        """
        Apply every bound to a prospective contribution.

        Returns:
            User's stage total after the contribution

        Raises:
            StageLimitExceeded: Stage cap would be passed
            BelowMinimumPurchase: User's stage total stays below the minimum
            ExceedsMaximumPurchase: User's stage total passes the maximum
            HardCapExceeded: Sale-wide cap would be passed
        """
        if stage.total_raised + amount > stage.cap:
            raise StageLimitExceeded(
                stage_id=stage.id,
                total_raised=stage.total_raised,
                amount=amount,
                cap=stage.cap,
            )

        new_user_stage_amount = user_stage_amount + amount
        if new_user_stage_amount < stage.min_purchase:
            raise BelowMinimumPurchase(
                stage_id=stage.id,
                user=user,
                cumulative=new_user_stage_amount,
                min_purchase=stage.min_purchase,
            )
        if new_user_stage_amount > stage.max_purchase:
            raise ExceedsMaximumPurchase(
                stage_id=stage.id,
                user=user,
                cumulative=new_user_stage_amount,
                max_purchase=stage.max_purchase,
            )

        if settings.total_raised + amount > settings.hard_cap:
            raise HardCapExceeded(
                total_raised=settings.total_raised,
                amount=amount,
                hard_cap=settings.hard_cap,
            )

        return new_user_stage_amount

    async def validate_record(self, user: str, amount: int) -> SaleStage:
        """
        Run every check ``record`` would run, without writing.

        Returns:
            Active stage the contribution would land in
        """
        user = normalize_address(user, "user")
        validate_positive_amount(amount)

        stage, settings = await self._active_stage_for_update()
        user_stage_amount = await self.stage_contribution_repo.get_amount(
            stage.id, user
        )
        self._check_contribution(stage, settings, user, amount, user_stage_amount)
        return stage

    async def record(
        self,
        user: str,
        amount: int,
        source_token: str | None = None,
        source_amount: int | None = None,
    ) -> ContributionResult:
        """
        Record a stable-unit contribution against the active stage.

        Args:
            user: Contributor address
            amount: Stable-unit amount
            source_token: Token the user paid with (for the event)
            source_amount: Amount of source token paid (for the event)

        Returns:
            ContributionResult

        Raises:
            InvalidAmount: If amount is not positive
            StageNotActive: If no stage is active
            StageLimitExceeded, BelowMinimumPurchase,
            ExceedsMaximumPurchase, HardCapExceeded: On bound violations
        """
        user = normalize_address(user, "user")
        validate_positive_amount(amount)

        stage, settings = await self._active_stage_for_update()

        stage_row = await self.stage_contribution_repo.get_for_user(
            stage.id, user, for_update=True
        )
        user_stage_amount = stage_row.amount if stage_row else 0

        try:
            new_user_stage_amount = self._check_contribution(
                stage, settings, user, amount, user_stage_amount
            )
        except Exception as e:
            self.logger.warning(
                "Contribution rejected",
                extra={
                    "user": mask_address(user),
                    "stage_id": stage.id,
                    "amount": str(amount),
                    "reason": type(e).__name__,
                },
            )
            raise

        # All checks passed; apply every counter together
        stage.total_raised += amount
        await self.stage_repo.save(stage)

        settings.total_raised += amount
        await self.settings_repo.save(settings)

        if stage_row is None:
            stage_row = StageContribution(
                stage_id=stage.id, user_address=user, amount=amount
            )
        else:
            stage_row.amount = new_user_stage_amount
        await self.stage_contribution_repo.save(stage_row)

        user_row = await self.user_contribution_repo.get_by_id(
            user, for_update=True
        )
        first_contribution = user_row is None
        if user_row is None:
            user_row = UserContribution(user_address=user, total_amount=amount)
        else:
            user_row.total_amount += amount
        await self.user_contribution_repo.save(user_row)

        await self.events.emit(
            SaleEventType.CONTRIBUTION_RECORDED,
            user=user,
            stage_id=stage.id,
            amount=amount,
            source_token=normalize_optional_address(source_token, "source_token"),
            source_amount=source_amount,
        )
        self.logger.info(
            "Contribution recorded",
            extra={
                "user": mask_address(user),
                "stage_id": stage.id,
                "amount": str(amount),
                "stage_total_raised": str(stage.total_raised),
            },
        )

        return ContributionResult(
            stage_id=stage.id,
            amount=amount,
            stage_total_raised=stage.total_raised,
            user_stage_total=stage_row.amount,
            user_total=user_row.total_amount,
            first_contribution=first_contribution,
        )
