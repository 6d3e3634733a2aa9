"""
Module: salesos_kernel.models.error_record
Responsibility: ORM persistence for structured error entries raised by the
    economics, commission, VAT and lifecycle checks.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - message is always a JSON list of strings.
    - resolved_by / resolved_at / resolved_notes are only set together when
      an operator resolves the record.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from salesos_kernel.db.base import TimestampedBase, UUIDString


class ErrorRecord(TimestampedBase):
    """One persisted error entry, optionally tied to a sale."""

    __tablename__ = "errors"

    __table_args__ = (
        Index("idx_error_sale", "sale_id"),
        Index("idx_error_resolved", "resolved"),
    )

    sale_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    error_type: Mapped[str] = mapped_column(String(20), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    triggered_by: Mapped[str] = mapped_column(String(50), nullable=False)
    error_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ErrorRecord {self.error_type}/{self.severity}: {self.source}>"
