"""
DealLifecycleService -- applies deal status transitions to stored sales.

Responsibility:
    Persist the outcome of ``salesos_engines.lifecycle.plan_transition``:
    the status change and its side-effect fields for an accepted
    transition, or an error record plus the sale's error flag for a
    rejected one.  Also runs the month-end batches that lock paid sales
    and mark locked commissions paid.

Architecture position:
    Services -- imperative shell.  Flushes only; the caller commits.

Invariants enforced:
    - All-or-nothing: the fields of one transition (or the error record
      and flag of one rejection) are written inside a savepoint, so a
      failure leaves none of them applied.
    - A rejected transition never raises; it returns
      ``TransitionResult(success=False)``, even when the error record
      itself cannot be written.
    - The stored status is authoritative.  When it differs from the
      ``current`` the caller claims, the mismatch is logged and the
      transition is validated from the stored status, so no sale can skip
      a state.  Writes racing on one sale resolve as last write wins.

Failure modes:
    - SaleNotFoundError when the sale id does not exist.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from salesos_engines.lifecycle import (
    DealStatus,
    TransitionPlan,
    plan_transition,
    valid_next_states,
)
from salesos_kernel.domain.clock import Clock, SystemClock
from salesos_kernel.domain.errors import ErrorEntry, ErrorSeverity, ErrorTrigger, ErrorType
from salesos_kernel.exceptions import SaleNotFoundError
from salesos_kernel.logging_config import LogContext, get_logger
from salesos_kernel.models.sale import Sale
from salesos_kernel.services.base import BaseService
from salesos_services.error_recorder import ErrorRecorder

logger = get_logger("services.deal_lifecycle")

LIFECYCLE_SOURCE = "deal-lifecycle"


@dataclass(frozen=True)
class TransitionResult:
    success: bool
    sale_id: UUID | None = None
    new_status: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class BatchTransitionResult:
    """Outcome of moving a set of sales from one status to the next."""

    from_status: str
    to_status: str
    results: tuple[TransitionResult, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded


class DealLifecycleService(BaseService[Sale]):
    """Persists deal lifecycle transitions."""

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        error_recorder: ErrorRecorder | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._errors = error_recorder or ErrorRecorder(session, self._clock)

    @staticmethod
    def valid_next_states(status: DealStatus | str) -> list[str]:
        return [s.value for s in valid_next_states(status)]

    def _get_sale(self, sale_id: UUID) -> Sale:
        sale = self.session.get(Sale, sale_id)
        if sale is None:
            raise SaleNotFoundError(str(sale_id))
        return sale

    def transition(
        self,
        sale_id: UUID,
        current: DealStatus | str,
        next_status: DealStatus | str,
        payment_date: datetime | None = None,
        actor: str | None = None,
    ) -> TransitionResult:
        """
        Move a sale from ``current`` to ``next_status``.

        Args:
            sale_id: Sale to transition.
            current: Status the caller believes the sale is in.  The
                stored status wins when the two differ.
            next_status: Requested status.
            payment_date: Payment date from the accounting platform, used
                when moving to ``paid``.  Defaults to now.
            actor: Who requested the change, for logging.

        Returns:
            TransitionResult.  ``success=False`` with ``error`` set when the
            transition is not allowed or could not be written.

        Raises:
            SaleNotFoundError: If the sale doesn't exist.
        """
        sale = self._get_sale(sale_id)
        plan = plan_transition(current, next_status, self._clock.now(), payment_date)

        with LogContext.bind(sale_id=str(sale_id), actor_id=actor):
            logger.info(
                "lifecycle_transition_requested",
                extra={"from_status": plan.current, "to_status": plan.next_status},
            )
            if sale.status != plan.current:
                logger.warning(
                    "lifecycle_status_mismatch",
                    extra={"stored_status": sale.status, "claimed_status": plan.current},
                )
                plan = plan_transition(
                    sale.status, next_status, self._clock.now(), payment_date
                )

            if not plan.accepted:
                return self._reject(sale, plan)
            return self._apply(sale, plan)

    def _reject(self, sale: Sale, plan: TransitionPlan) -> TransitionResult:
        logger.warning(
            "lifecycle_transition_rejected",
            extra={
                "from_status": plan.current,
                "to_status": plan.next_status,
                "valid_next_states": list(plan.valid_next),
            },
        )
        entry = ErrorEntry(
            severity=ErrorSeverity.MEDIUM,
            source=LIFECYCLE_SOURCE,
            message=(plan.error,),
            timestamp=self._clock.now(),
            error_type=ErrorType.LIFECYCLE,
            triggered_by=ErrorTrigger.DEAL_LIFECYCLE,
            metadata={"sale_id": str(sale.id), **plan.metadata},
        )
        try:
            with self.session.begin_nested():
                self._errors.record(entry, sale.id)
                self._errors.flag_sale(sale.id, entry.message)
        except SQLAlchemyError:
            logger.error(
                "lifecycle_error_record_failed",
                extra={"from_status": plan.current, "to_status": plan.next_status},
                exc_info=True,
            )

        return TransitionResult(success=False, sale_id=sale.id, error=plan.error)

    def _apply(self, sale: Sale, plan: TransitionPlan) -> TransitionResult:
        try:
            with self.session.begin_nested():
                for column, value in plan.updates.items():
                    setattr(sale, column, value)
                self.session.flush()
        except SQLAlchemyError as exc:
            error = f"Failed to update sale status: {exc}"
            logger.error("lifecycle_transition_failed", extra={"error": error}, exc_info=True)
            return TransitionResult(success=False, sale_id=sale.id, error=error)

        logger.info(
            "lifecycle_transition_applied",
            extra={"from_status": plan.current, "to_status": plan.next_status},
        )
        return TransitionResult(success=True, sale_id=sale.id, new_status=plan.next_status)

    def _advance_all(
        self,
        from_status: DealStatus,
        to_status: DealStatus,
        sale_ids: Iterable[UUID] | None = None,
    ) -> BatchTransitionResult:
        stmt = select(Sale).where(
            Sale.status == from_status.value,
            Sale.deleted_at.is_(None),
        )
        if sale_ids is not None:
            stmt = stmt.where(Sale.id.in_(list(sale_ids)))
        stmt = stmt.order_by(Sale.created_at, Sale.sale_reference)
        sales = self.session.execute(stmt).scalars().all()

        results = tuple(
            self.transition(sale.id, from_status, to_status) for sale in sales
        )
        batch = BatchTransitionResult(
            from_status=from_status.value,
            to_status=to_status.value,
            results=results,
        )
        logger.info(
            "lifecycle_batch_completed",
            extra={
                "from_status": batch.from_status,
                "to_status": batch.to_status,
                "total": batch.total,
                "succeeded": batch.succeeded,
                "failed": batch.failed,
            },
        )
        return batch

    def lock_paid_sales(self) -> BatchTransitionResult:
        """Month-end: move every ``paid`` sale to ``locked``."""
        return self._advance_all(DealStatus.PAID, DealStatus.LOCKED)

    def pay_commissions(self, sale_ids: Iterable[UUID] | None = None) -> BatchTransitionResult:
        """Move ``locked`` sales (all, or those among ``sale_ids``) to ``commission_paid``."""
        return self._advance_all(DealStatus.LOCKED, DealStatus.COMMISSION_PAID, sale_ids)
