"""
Referral ledger service.

The operations exposed to the signup flow, the deposit notification path
and the admin back office. Every public method is one unit of work: it
commits on success, rolls back on any error and is retried only when the
store is temporarily unavailable.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.settings import settings
from referral_ledger.models.enums import AuditAction, ReferralStatus
from referral_ledger.models.referral import Referral
from referral_ledger.models.referral_signup import ReferralSignup
from referral_ledger.repositories import (
    ReferralAuditRepository,
    ReferralCodeTaken,
    ReferralPaymentRepository,
    ReferralRepository,
    ReferralSignupRepository,
)
from referral_ledger.schemas.referral import (
    AuditEntryView,
    PaymentView,
    ProgramStats,
    ReferralLink,
    ReferralSummary,
    ReferralView,
    SignupView,
    TopEarner,
)
from referral_ledger.services.base_service import BaseService, log_operation, transaction
from referral_ledger.services.referral.aggregation import AggregationEngine
from referral_ledger.services.referral.code_generator import (
    CodeGenerator,
    build_referral_link,
)
from referral_ledger.services.referral.commission import (
    commission_for_deposit,
    quantize_money,
)
from referral_ledger.services.referral.export import (
    EXPORT_KINDS,
    payments_to_csv,
    referrals_to_csv,
    signups_to_csv,
)
from referral_ledger.services.referral.status import StatusEvent, next_status
from referral_ledger.utils.datetime_utils import utc_now, year_bounds
from referral_ledger.utils.db_decorators import with_storage_retry
from referral_ledger.utils.exceptions import (
    AlreadyExists,
    InactiveReferral,
    NotFound,
    SelfReferral,
    UnknownCode,
)
from referral_ledger.validators import (
    parse_event_date,
    parse_money,
    require_actor,
    validate_referral_code,
    validate_user_id,
)


class ReferralLedgerService(BaseService):
    """
    Referral and commission ledger.

    Writes that touch a signup or payment lock the parent referral row
    first, then recompute its aggregates from source rows in the same
    transaction. Concurrent callers must use separate sessions.
    """

    def __init__(
        self,
        session: AsyncSession,
        base_url: str | None = None,
        commission_rate: Decimal | None = None,
        code_max_attempts: int | None = None,
        retry_attempts: int | None = None,
        retry_base_delay: float | None = None,
        retry_max_delay: float | None = None,
    ) -> None:
        """
        Initialize ledger service.

        Args:
            session: Async database session owned by this service
            base_url: Site origin for referral links
            commission_rate: Advisory commission rate
            code_max_attempts: Code collision budget
            retry_attempts: StorageUnavailable attempts per operation
            retry_base_delay: First backoff delay (seconds)
            retry_max_delay: Backoff cap (seconds)
        """
        super().__init__(session)
        self.base_url = (base_url or settings.referral_base_url).rstrip("/")
        self.commission_rate = commission_rate or settings.referral_commission_rate
        self.code_max_attempts = code_max_attempts or settings.referral_code_max_attempts

        # Read by @with_storage_retry
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay

        self.referral_repo = ReferralRepository(session)
        self.signup_repo = ReferralSignupRepository(session)
        self.payment_repo = ReferralPaymentRepository(session)
        self.audit_repo = ReferralAuditRepository(session)
        self.aggregation = AggregationEngine(session)

    # ------------------------------------------------------------------
    # Referral links
    # ------------------------------------------------------------------

    @log_operation
    @with_storage_retry
    async def generate_link(self, user_id: str, seed: str | None = None) -> ReferralLink:
        """
        Get or create the referral of a user. Idempotent.

        Args:
            user_id: Owning user
            seed: Code seed, typically the first name

        Returns:
            ReferralLink with the user's (possibly pre-existing) code

        Raises:
            CodeGenerationExhausted: No free code found
            ValueError: Malformed user ID
        """
        user_id = self._require_user_id(user_id)
        generator = CodeGenerator(
            self.referral_repo.code_exists, max_attempts=self.code_max_attempts
        )

        while True:
            try:
                return await self._get_or_create_referral(user_id, seed, generator)
            except ReferralCodeTaken as e:
                self.logger.bind(user_id=user_id).info(
                    f"Referral code {e} taken concurrently, drawing another"
                )
            except AlreadyExists:
                # Lost the race to a concurrent generate_link for this user
                return await self._read_link(user_id)

    @transaction
    async def _get_or_create_referral(
        self, user_id: str, seed: str | None, generator: CodeGenerator
    ) -> ReferralLink:
        referral = await self.referral_repo.get_by_user_id(user_id)
        if referral is not None:
            return self._link_for(referral)

        code = await generator.generate(seed)
        referral = await self.referral_repo.create_for_user(user_id, code)

        self.logger.bind(user_id=user_id, referral_id=referral.id).info(
            f"Referral created for user {user_id}: {code}"
        )
        return self._link_for(referral)

    @transaction
    async def _read_link(self, user_id: str) -> ReferralLink:
        referral = await self.referral_repo.get_by_user_id(user_id)
        if referral is None:
            raise NotFound(f"No referral for user {user_id}")
        return self._link_for(referral)

    # ------------------------------------------------------------------
    # Signups and deposits
    # ------------------------------------------------------------------

    @log_operation
    @with_storage_retry
    @transaction
    async def record_signup(self, code: str, referred_user_id: str) -> int:
        """
        Attribute a newly registered user to the referral owning a code.

        Args:
            code: Referral code from the signup link (case-insensitive)
            referred_user_id: Newly registered user

        Returns:
            ID of the created signup

        Raises:
            UnknownCode: No referral owns the code
            InactiveReferral: Referral is suspended
            SelfReferral: Owner used their own code
            DuplicateSignup: User was already referred
        """
        referred_user_id = self._require_user_id(referred_user_id)

        is_valid, normalized, _ = validate_referral_code(code)
        if not is_valid:
            raise UnknownCode(f"Unknown referral code: {code!r}")

        referral = await self.referral_repo.get_by_code(normalized)
        if referral is None:
            raise UnknownCode(f"Unknown referral code: {normalized}")

        referral = await self._lock_referral(referral.id)
        if not referral.is_active:
            raise InactiveReferral(f"Referral {normalized} is suspended")
        if referral.user_id == referred_user_id:
            raise SelfReferral()

        signup = await self.signup_repo.create(
            referral_id=referral.id,
            referred_user_id=referred_user_id,
            signup_date=utc_now(),
        )
        totals = await self.aggregation.recompute(referral)

        self.logger.bind(
            referral_id=referral.id,
            signup_id=signup.id,
            total_referrals=totals.total_referrals,
        ).info(f"Signup recorded: {referred_user_id} via {normalized}")
        return signup.id

    @log_operation
    @with_storage_retry
    @transaction
    async def record_deposit(
        self,
        signup_id: int,
        amount: str | int | Decimal,
        deposit_date: date | datetime | str | None = None,
    ) -> SignupView:
        """
        Record the qualifying deposit of a referred user, exactly once.

        Args:
            signup_id: Signup ID
            amount: Deposit amount (positive)
            deposit_date: When the deposit happened (defaults to now)

        Returns:
            Updated signup with its advisory commission

        Raises:
            InvalidAmount: Amount is not a positive money value
            NotFound: Signup does not exist
            AlreadySet: Deposit already recorded
        """
        amount = parse_money(amount)
        when = parse_event_date(deposit_date, default=utc_now())

        signup = await self.signup_repo.get_by_id(signup_id)
        if signup is None:
            raise NotFound(f"Signup {signup_id} not found")

        referral = await self._lock_referral(signup.referral_id)
        signup = await self.signup_repo.set_deposit_once(signup_id, amount, when)

        if referral.initial_deposit is None:
            referral.initial_deposit = amount
            referral.deposit_date = when

        previous_status = referral.status
        referral.status = next_status(referral.status, StatusEvent.DEPOSIT_RECORDED).value
        await self.aggregation.recompute(referral)

        self.logger.bind(
            referral_id=referral.id,
            signup_id=signup_id,
            status_before=previous_status,
            status_after=referral.status,
        ).info(f"Deposit recorded on signup {signup_id}: {amount}")
        return self._signup_view(signup)

    # ------------------------------------------------------------------
    # Administrator mutations (audited)
    # ------------------------------------------------------------------

    @log_operation
    @with_storage_retry
    @transaction
    async def record_payment(
        self,
        referral_id: int,
        amount: str | int | Decimal,
        actor: str,
        payment_date: date | datetime | str | None = None,
        notes: str | None = None,
    ) -> PaymentView:
        """
        Record a commission payment made to the referral owner.

        Negative amounts are corrections of earlier payments.

        Args:
            referral_id: Referral ID
            amount: Signed, non-zero amount
            actor: Acting administrator
            payment_date: When the payment was made (defaults to now)
            notes: Administrator notes, also stored as the audit reason

        Returns:
            Recorded payment

        Raises:
            MissingActor: No administrator given
            InvalidAmount: Amount is zero or malformed
            NotFound: Referral does not exist
        """
        actor = require_actor(actor)
        amount = parse_money(amount, allow_negative=True)
        when = parse_event_date(payment_date, default=utc_now())

        referral = await self._lock_referral(referral_id)
        before = self._snapshot(referral)

        payment = await self.payment_repo.create(
            referral_id=referral.id,
            amount=amount,
            payment_date=when,
            notes=notes,
            recorded_by=actor,
        )
        referral.status = next_status(referral.status, StatusEvent.PAYMENT_RECORDED).value
        await self.aggregation.recompute(referral)

        after = self._snapshot(referral)
        after["payment_id"] = payment.id
        after["amount"] = str(amount)
        await self.audit_repo.record(
            referral_id=referral.id,
            actor=actor,
            action=AuditAction.PAYMENT_RECORDED,
            before=before,
            after=after,
            reason=notes,
        )

        self.logger.bind(
            referral_id=referral_id,
            payment_id=payment.id,
            total_earnings=str(referral.total_earnings),
        ).info(f"Payment recorded on referral {referral_id}: {amount} by {actor}")
        return PaymentView.model_validate(payment)

    @log_operation
    @with_storage_retry
    @transaction
    async def set_active(
        self,
        referral_id: int,
        is_active: bool,
        actor: str,
        reason: str | None = None,
    ) -> ReferralView:
        """
        Suspend or reactivate a referral. Status is left untouched.

        Args:
            referral_id: Referral ID
            is_active: New activation flag
            actor: Acting administrator
            reason: Justification

        Returns:
            Updated referral
        """
        actor = require_actor(actor)
        referral = await self._lock_referral(referral_id)

        if referral.is_active == is_active:
            return await self._referral_view(referral)

        before = self._snapshot(referral)
        referral.is_active = is_active
        await self.session.flush()

        await self.audit_repo.record(
            referral_id=referral.id,
            actor=actor,
            action=AuditAction.ACTIVATION_CHANGED,
            before=before,
            after=self._snapshot(referral),
            reason=reason,
        )

        self.logger.bind(referral_id=referral_id, reason=reason).info(
            f"Referral {referral_id} {'reactivated' if is_active else 'suspended'} by {actor}"
        )
        return await self._referral_view(referral)

    @log_operation
    @with_storage_retry
    @transaction
    async def complete_program(
        self,
        referral_id: int,
        actor: str,
        reason: str | None = None,
    ) -> ReferralView:
        """
        Close an earning referral program.

        Args:
            referral_id: Referral ID
            actor: Acting administrator
            reason: Justification

        Returns:
            Updated referral

        Raises:
            InvalidStatusTransition: Referral is not earning
        """
        actor = require_actor(actor)
        referral = await self._lock_referral(referral_id)

        before = self._snapshot(referral)
        referral.status = next_status(referral.status, StatusEvent.PROGRAM_COMPLETED).value
        await self.session.flush()

        await self.audit_repo.record(
            referral_id=referral.id,
            actor=actor,
            action=AuditAction.STATUS_COMPLETED,
            before=before,
            after=self._snapshot(referral),
            reason=reason,
        )

        self.logger.bind(referral_id=referral_id).info(
            f"Referral {referral_id} completed by {actor}"
        )
        return await self._referral_view(referral)

    @log_operation
    @with_storage_retry
    @transaction
    async def override_status(
        self,
        referral_id: int,
        status: ReferralStatus | str,
        actor: str,
        reason: str,
    ) -> ReferralView:
        """
        Force a referral into any status, including backwards.

        Args:
            referral_id: Referral ID
            status: Target status
            actor: Acting administrator
            reason: Mandatory justification

        Returns:
            Updated referral

        Raises:
            ValueError: Unknown status or empty reason
        """
        actor = require_actor(actor)
        target = ReferralStatus(status)
        if not reason or not reason.strip():
            raise ValueError("A reason is required to override a referral status")

        referral = await self._lock_referral(referral_id)
        before = self._snapshot(referral)
        referral.status = target.value
        await self.session.flush()

        await self.audit_repo.record(
            referral_id=referral.id,
            actor=actor,
            action=AuditAction.STATUS_OVERRIDE,
            before=before,
            after=self._snapshot(referral),
            reason=reason.strip(),
        )

        self.logger.bind(referral_id=referral_id, reason=reason).warning(
            f"Referral {referral_id} status overridden by {actor}: "
            f"{before['status']} -> {target.value}"
        )
        return await self._referral_view(referral)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @with_storage_retry
    @transaction
    async def get_summary(self, user_id: str) -> ReferralSummary:
        """
        Get a consistent snapshot of a user's referral program.

        Args:
            user_id: Owning user

        Returns:
            ReferralSummary with signups and payments newest first

        Raises:
            NotFound: User has no referral
            ValueError: Malformed user ID
        """
        user_id = self._require_user_id(user_id)
        await self._begin_snapshot()

        referral = await self.referral_repo.get_by_user_id(user_id)
        if referral is None:
            raise NotFound(f"No referral for user {user_id}")

        signups = await self.signup_repo.list_for_referral(referral.id)
        payments = await self.payment_repo.list_for_referral(referral.id)
        view = await self._referral_view(referral)

        return ReferralSummary(
            referral=view,
            link=view.referral_link,
            signups=[self._signup_view(s) for s in signups],
            payments=[PaymentView.model_validate(p) for p in payments],
        )

    @with_storage_retry
    @transaction
    async def get_referral(self, referral_id: int) -> ReferralView:
        """Get one referral by ID (admin)."""
        referral = await self.referral_repo.get_by_id(referral_id)
        if referral is None:
            raise NotFound(f"Referral {referral_id} not found")
        return await self._referral_view(referral)

    @with_storage_retry
    @transaction
    async def list_referrals(
        self,
        search: str | None = None,
        status: ReferralStatus | str | None = None,
        is_active: bool | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[ReferralView]:
        """
        Search referrals for the admin table, newest first.

        Args:
            search: Case-insensitive substring of code or user ID
            status: Status filter
            is_active: Suspension filter
            limit: Page size
            offset: Page offset

        Returns:
            List of referrals
        """
        referrals = await self.referral_repo.search(
            search=search,
            status=ReferralStatus(status) if status else None,
            is_active=is_active,
            limit=limit,
            offset=offset,
        )
        return [await self._referral_view(r) for r in referrals]

    @with_storage_retry
    @transaction
    async def get_program_stats(self) -> ProgramStats:
        """
        Get program-wide counters for the admin dashboard.

        Returns:
            ProgramStats
        """
        totals = await self.referral_repo.get_program_totals()
        signup_count, deposits = await self.signup_repo.get_deposit_totals()
        top = await self.referral_repo.get_top_earner()

        return ProgramStats(
            total_referrals=totals["total_referrals"],
            total_earnings=quantize_money(totals["total_earnings"]),
            active_referrals=totals["active_referrals"],
            pending_referrals=totals["pending_referrals"],
            total_signups=signup_count,
            total_deposits=quantize_money(deposits),
            top_earner=TopEarner(
                referral_id=top.id,
                user_id=top.user_id,
                referral_code=top.referral_code,
                total_earnings=quantize_money(top.total_earnings),
            ) if top else None,
        )

    @with_storage_retry
    @transaction
    async def get_audit_trail(self, referral_id: int) -> list[AuditEntryView]:
        """
        Get administrator actions on a referral, newest first.

        Raises:
            NotFound: Referral does not exist
        """
        if not await self.referral_repo.exists(id=referral_id):
            raise NotFound(f"Referral {referral_id} not found")

        entries = await self.audit_repo.list_for_referral(referral_id)
        return [AuditEntryView.model_validate(e) for e in entries]

    @with_storage_retry
    @transaction
    async def export_csv(self, kind: str) -> str:
        """
        Export ledger data as CSV.

        Args:
            kind: One of 'referrals', 'payments', 'signups'

        Returns:
            CSV text

        Raises:
            ValueError: Unknown export kind
        """
        if kind not in EXPORT_KINDS:
            raise ValueError(f"Unknown export kind: {kind}")

        await self._begin_snapshot()

        if kind == "referrals":
            referrals = await self.referral_repo.search()
            return referrals_to_csv(referrals, self.base_url)
        if kind == "payments":
            return payments_to_csv(await self.payment_repo.list_all())
        return signups_to_csv(await self.signup_repo.list_all())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_user_id(user_id: str) -> str:
        is_valid, value, error = validate_user_id(user_id)
        if not is_valid or value is None:
            raise ValueError(error)
        return value

    async def _lock_referral(self, referral_id: int) -> Referral:
        referral = await self.referral_repo.get_for_update(referral_id)
        if referral is None:
            raise NotFound(f"Referral {referral_id} not found")
        return referral

    async def _begin_snapshot(self) -> None:
        """Pin a repeatable-read snapshot for multi-query reads on PostgreSQL."""
        if self.dialect_name == "postgresql":
            await self.session.connection(
                execution_options={"isolation_level": "REPEATABLE READ"}
            )

    def _link_for(self, referral: Referral) -> ReferralLink:
        return ReferralLink(
            referral_id=referral.id,
            code=referral.referral_code,
            link=build_referral_link(self.base_url, referral.referral_code),
        )

    async def _current_ytd(self, referral: Referral) -> Decimal:
        """Stored YTD when it belongs to this year, else summed from payments."""
        year = utc_now().year
        if referral.ytd_year == year:
            return quantize_money(referral.year_to_date_earnings)

        since, until = year_bounds(year)
        ytd = await self.payment_repo.sum_for_referral(referral.id, since=since, until=until)
        return quantize_money(ytd)

    async def _referral_view(self, referral: Referral) -> ReferralView:
        return ReferralView(
            id=referral.id,
            user_id=referral.user_id,
            referral_code=referral.referral_code,
            referral_link=build_referral_link(self.base_url, referral.referral_code),
            status=referral.status,
            is_active=referral.is_active,
            total_referrals=referral.total_referrals,
            total_earnings=quantize_money(referral.total_earnings),
            year_to_date_earnings=await self._current_ytd(referral),
            initial_deposit=referral.initial_deposit,
            deposit_date=referral.deposit_date,
            created_at=referral.created_at,
            updated_at=referral.updated_at,
        )

    def _signup_view(self, signup: ReferralSignup) -> SignupView:
        commission = None
        if signup.deposit_amount is not None:
            commission = commission_for_deposit(signup.deposit_amount, self.commission_rate)

        return SignupView(
            id=signup.id,
            referral_id=signup.referral_id,
            referred_user_id=signup.referred_user_id,
            signup_date=signup.signup_date,
            deposit_amount=signup.deposit_amount,
            deposit_date=signup.deposit_date,
            commission=commission,
        )

    @staticmethod
    def _snapshot(referral: Referral) -> dict[str, Any]:
        """JSON-safe copy of the fields an admin action can change."""
        return {
            "status": str(referral.status),
            "is_active": bool(referral.is_active),
            "total_referrals": int(referral.total_referrals or 0),
            "total_earnings": str(quantize_money(referral.total_earnings or Decimal("0"))),
            "year_to_date_earnings": str(
                quantize_money(referral.year_to_date_earnings or Decimal("0"))
            ),
        }
