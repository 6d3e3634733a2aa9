"""
Module: salesos_kernel.models.sale
Responsibility: ORM persistence for a brokered sale and the denormalised
    snapshot of its economics and commission at the time of the last
    calculation.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, engines, or outer layers.

Invariants enforced:
    - Snapshot columns are written together from one economics/commission
      calculation; they are never recomputed on read.
    - status holds one of the deal lifecycle values (draft, invoiced, paid,
      locked, commission_paid).  Transition rules live in the lifecycle
      engine, not in the ORM.

Failure modes:
    - IntegrityError on duplicate sale_reference (uq_sale_reference).

Audit relevance:
    error_flag / error_message carry the last known validation, commission
    or lifecycle failure so operators can find sales needing review.  The
    full history is in the ``errors`` table.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from salesos_kernel.db.base import TimestampedBase


class Sale(TimestampedBase):
    """
    A single brokered sale.

    Contract:
        Buyer, supplier, shopper, introducer and commission band are plain
        references by id; the sale owns none of them.

    Guarantees:
        - sale_reference is unique when present.
        - commission_locked / commission_paid only become True through
          lifecycle transitions.

    Non-goals:
        - Physical deletion.  Rows are soft-deleted via deleted_at.
    """

    __tablename__ = "sales"

    __table_args__ = (
        UniqueConstraint("sale_reference", name="uq_sale_reference"),
        Index("idx_sale_status", "status"),
        Index("idx_sale_error_flag", "error_flag"),
    )

    sale_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sale_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    branding_theme: Mapped[str | None] = mapped_column(String(100), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="GBP")

    # References (no ownership)
    buyer_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    supplier_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shopper_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    introducer_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    commission_band_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Economics inputs
    sale_amount_inc_vat: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    buy_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    card_fees: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    shipping_cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    direct_costs: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    introducer_commission: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Economics snapshot
    sale_amount_ex_vat: Mapped[Decimal | None] = mapped_column(nullable=True)
    vat_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    gross_margin: Mapped[Decimal | None] = mapped_column(nullable=True)
    commissionable_margin: Mapped[Decimal | None] = mapped_column(nullable=True)
    gross_margin_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    commissionable_margin_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    vat_assumed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Commission snapshot
    commission_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    introducer_split: Mapped[Decimal | None] = mapped_column(nullable=True)
    shopper_split: Mapped[Decimal | None] = mapped_column(nullable=True)
    introducer_share_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    commission_rate_source: Mapped[str | None] = mapped_column(String(20), nullable=True)
    admin_override_commission_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    admin_override_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    xero_payment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    commission_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    commission_lock_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    commission_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    commission_paid_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Last known failure
    error_flag: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    error_message: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Sale {self.sale_reference or self.id}: {self.status}>"
