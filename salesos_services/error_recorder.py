"""
ErrorRecorder -- persistence and admin resolution of structured error entries.

Responsibility:
    Write ``ErrorEntry`` values to the ``errors`` table, flag the sale they
    belong to, and let operators resolve entries and clear sale flags once
    the underlying data is fixed.

Architecture position:
    Services -- imperative shell.  Flushes only; the caller commits.

Invariants enforced:
    - Resolving an entry never clears the sale's error flag; clearing the
      flag is a separate, explicit operator action.
    - resolved_by, resolved_at and resolved_notes are written together.

Failure modes:
    - ErrorRecordNotFoundError when resolving an unknown error id.
    - SaleNotFoundError when flagging or clearing an unknown sale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select

from salesos_kernel.domain.clock import Clock, SystemClock
from salesos_kernel.domain.errors import ErrorEntry
from salesos_kernel.exceptions import ErrorRecordNotFoundError, SaleNotFoundError
from salesos_kernel.logging_config import get_logger
from salesos_kernel.models.error_record import ErrorRecord
from salesos_kernel.models.sale import Sale
from salesos_kernel.services.base import BaseService

logger = get_logger("services.error_recorder")


@dataclass(frozen=True)
class ErrorRecordInfo:
    id: UUID
    sale_id: UUID | None
    error_type: str
    severity: str
    source: str
    message: tuple[str, ...]
    timestamp: datetime
    triggered_by: str
    metadata: dict[str, Any] = field(default_factory=dict)
    resolved: bool = False
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    resolved_notes: str | None = None


class ErrorRecorder(BaseService[ErrorRecord]):
    """Persists error entries and manages their resolution."""

    def __init__(self, session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def _to_dto(self, record: ErrorRecord) -> ErrorRecordInfo:
        return ErrorRecordInfo(
            id=record.id,
            sale_id=record.sale_id,
            error_type=record.error_type,
            severity=record.severity,
            source=record.source,
            message=tuple(record.message or ()),
            timestamp=record.timestamp,
            triggered_by=record.triggered_by,
            metadata=dict(record.error_metadata or {}),
            resolved=record.resolved,
            resolved_by=record.resolved_by,
            resolved_at=record.resolved_at,
            resolved_notes=record.resolved_notes,
        )

    def _get_sale(self, sale_id: UUID) -> Sale:
        sale = self.session.get(Sale, sale_id)
        if sale is None:
            raise SaleNotFoundError(str(sale_id))
        return sale

    def record(self, entry: ErrorEntry, sale_id: UUID | None = None) -> ErrorRecordInfo:
        """Persist one entry, optionally linked to a sale."""
        record = ErrorRecord(
            sale_id=sale_id,
            error_type=entry.error_type.value,
            severity=entry.severity.value,
            source=entry.source,
            message=list(entry.message),
            timestamp=entry.timestamp,
            triggered_by=entry.triggered_by.value,
            error_metadata=dict(entry.metadata),
            resolved=False,
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "error_recorded",
            extra={
                "error_id": str(record.id),
                "sale_id": str(sale_id) if sale_id else None,
                "error_type": record.error_type,
                "severity": record.severity,
                "source": record.source,
            },
        )
        return self._to_dto(record)

    def flag_sale(self, sale_id: UUID, messages: list[str] | tuple[str, ...]) -> None:
        """Set the sale's error flag and last-error message."""
        sale = self._get_sale(sale_id)
        sale.error_flag = True
        sale.error_message = list(messages)
        self.session.flush()

    def resolve_error(
        self,
        error_id: UUID,
        resolved_by: str,
        notes: str | None = None,
    ) -> ErrorRecordInfo:
        """
        Mark an entry resolved.

        Raises:
            ErrorRecordNotFoundError: If the entry doesn't exist.
        """
        record = self.session.get(ErrorRecord, error_id)
        if record is None:
            raise ErrorRecordNotFoundError(str(error_id))

        record.resolved = True
        record.resolved_by = resolved_by
        record.resolved_at = self._clock.now()
        record.resolved_notes = notes or None
        self.session.flush()

        logger.info(
            "error_resolved",
            extra={"error_id": str(error_id), "resolved_by": resolved_by},
        )
        return self._to_dto(record)

    def resolve_all_for_sale(self, sale_id: UUID, resolved_by: str) -> list[UUID]:
        """Resolve every open entry of a sale.  Returns the resolved ids."""
        resolved: list[UUID] = []
        for record in self._unresolved_records(sale_id):
            self.resolve_error(record.id, resolved_by, f"Bulk resolution for sale {sale_id}")
            resolved.append(record.id)
        return resolved

    def clear_sale_error_flag(self, sale_id: UUID) -> None:
        """
        Reset ``error_flag`` and empty ``error_message``.

        Raises:
            SaleNotFoundError: If the sale doesn't exist.
        """
        sale = self._get_sale(sale_id)
        sale.error_flag = False
        sale.error_message = []
        self.session.flush()
        logger.info("sale_error_flag_cleared", extra={"sale_id": str(sale_id)})

    def _unresolved_records(self, sale_id: UUID | None) -> list[ErrorRecord]:
        stmt = select(ErrorRecord).where(ErrorRecord.resolved == False)  # noqa: E712
        if sale_id is not None:
            stmt = stmt.where(ErrorRecord.sale_id == sale_id)
        stmt = stmt.order_by(ErrorRecord.timestamp)
        return list(self.session.execute(stmt).scalars().all())

    def list_unresolved(self, sale_id: UUID | None = None) -> list[ErrorRecordInfo]:
        return [self._to_dto(r) for r in self._unresolved_records(sale_id)]
