"""
SaleFinancialsService -- recompute and persist a sale's financial snapshot.

Responsibility:
    Run the economics and commission engines against a stored sale, write
    the snapshot columns back, and record structured error entries for
    anything an operator needs to review: commission failures, unresolved
    branding themes (VAT assumed), VAT mismatches and coerced inputs.

Architecture position:
    Services -- imperative shell.  Flushes only; the caller commits.

Invariants enforced:
    - The snapshot columns of one recalculation are written together in a
      savepoint, with its error entries and the sale flag.
    - Admin override percent and notes are inputs and are never overwritten
      by a recalculation.
    - A recalculation never clears an existing error flag; that is an
      explicit operator action (``ErrorRecorder.clear_sale_error_flag``).

Failure modes:
    - SaleNotFoundError when the sale id does not exist.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from salesos_engines.commission import (
    CommissionBand,
    CommissionInput,
    CommissionResult,
    calculate_commission,
    select_commission_band,
)
from salesos_engines.economics import (
    LEGACY_FALLBACK_VAT_PERCENT,
    SaleEconomics,
    compute_economics,
    normalize_economics_input,
)
from salesos_engines.vat import Unresolved, VATValidation, resolve_vat_rate, validate_vat
from salesos_kernel.domain.branding import BrandingThemeTable
from salesos_kernel.domain.clock import Clock, SystemClock
from salesos_kernel.domain.errors import ErrorEntry, ErrorSeverity, ErrorTrigger, ErrorType
from salesos_kernel.exceptions import SaleNotFoundError
from salesos_kernel.logging_config import LogContext, get_logger
from salesos_kernel.models.sale import Sale
from salesos_kernel.services.base import BaseService
from salesos_services.error_recorder import ErrorRecorder

logger = get_logger("services.sale_financials")

# Columns the commission engine reads but must not write back.
_COMMISSION_INPUT_COLUMNS = frozenset(
    {"admin_override_commission_percent", "admin_override_notes"}
)


@dataclass(frozen=True)
class RecalculationResult:
    sale_id: UUID
    economics: SaleEconomics
    commission: CommissionResult
    vat_check: VATValidation | None
    entries: tuple[ErrorEntry, ...] = ()

    @property
    def flagged(self) -> bool:
        return bool(self.entries)

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(line for entry in self.entries for line in entry.message)


class SaleFinancialsService(BaseService[Sale]):
    """Recalculates and persists sale economics and commission."""

    def __init__(
        self,
        session,
        themes: BrandingThemeTable,
        commission_bands: Sequence[CommissionBand] = (),
        clock: Clock | None = None,
        error_recorder: ErrorRecorder | None = None,
        fallback_vat_percent: Decimal = LEGACY_FALLBACK_VAT_PERCENT,
    ):
        super().__init__(session)
        self._themes = themes
        self._bands = tuple(commission_bands)
        self._clock = clock or SystemClock()
        self._errors = error_recorder or ErrorRecorder(session, self._clock)
        self._fallback_vat_percent = fallback_vat_percent

    def _get_sale(self, sale_id: UUID) -> Sale:
        sale = self.session.get(Sale, sale_id)
        if sale is None:
            raise SaleNotFoundError(str(sale_id))
        return sale

    def _economics_for(self, sale: Sale) -> SaleEconomics:
        inputs = normalize_economics_input(
            {
                "sale_amount_inc_vat": sale.sale_amount_inc_vat,
                "buy_price": sale.buy_price,
                "card_fees": sale.card_fees,
                "shipping_cost": sale.shipping_cost,
                "direct_costs": sale.direct_costs,
                "introducer_commission": sale.introducer_commission,
                "branding_theme": sale.branding_theme,
            }
        )
        return compute_economics(inputs, self._themes, self._fallback_vat_percent)

    def _entry(
        self,
        sale: Sale,
        error_type: ErrorType,
        severity: ErrorSeverity,
        source: str,
        triggered_by: ErrorTrigger,
        messages: Sequence[str],
        **metadata,
    ) -> ErrorEntry:
        return ErrorEntry(
            severity=severity,
            source=source,
            message=tuple(messages),
            timestamp=self._clock.now(),
            error_type=error_type,
            triggered_by=triggered_by,
            metadata={"sale_id": str(sale.id), **metadata},
        )

    def recalculate(
        self,
        sale_id: UUID,
        commission_band: CommissionBand | None = None,
        introducer_percent: Decimal | None = None,
    ) -> RecalculationResult:
        """
        Recompute economics and commission for a stored sale.

        Args:
            sale_id: Sale to recalculate.
            commission_band: Band to apply.  When None, the configured band
                whose range holds the commissionable margin is used.
            introducer_percent: Introducer's share of the commission.  When
                None, the sale's stored share is kept if it has an
                introducer.

        Returns:
            RecalculationResult with the error entries that were recorded.

        Raises:
            SaleNotFoundError: If the sale doesn't exist.
        """
        sale = self._get_sale(sale_id)

        with LogContext.bind(sale_id=str(sale_id)):
            economics = self._economics_for(sale)

            band = commission_band or select_commission_band(
                economics.commissionable_margin, self._bands
            )
            if introducer_percent is None and sale.introducer_id:
                introducer_percent = sale.introducer_share_percent

            commission = calculate_commission(
                CommissionInput(
                    commissionable_margin=economics.commissionable_margin,
                    commission_band_percent=band.commission_percent if band else None,
                    introducer_percent=introducer_percent,
                    admin_override_percent=sale.admin_override_commission_percent,
                    admin_override_notes=sale.admin_override_notes,
                )
            )

            vat_check = None
            if not economics.vat_assumed:
                vat_check = validate_vat(
                    sale.branding_theme,
                    economics.sale_amount_ex_vat,
                    economics.sale_amount_inc_vat,
                    self._themes,
                )

            entries = self._collect_entries(sale, economics, commission, vat_check)

            with self.session.begin_nested():
                for column, value in economics.to_record().items():
                    setattr(sale, column, value)
                for column, value in commission.to_record().items():
                    if column not in _COMMISSION_INPUT_COLUMNS:
                        setattr(sale, column, value)
                sale.commission_band_id = band.band_type if band else sale.commission_band_id
                self.session.flush()

                for entry in entries:
                    self._errors.record(entry, sale.id)
                if entries:
                    self._errors.flag_sale(
                        sale.id, [line for e in entries for line in e.message]
                    )

            logger.info(
                "sale_recalculated",
                extra={
                    "commissionable_margin": economics.commissionable_margin,
                    "commission_amount": commission.commission_amount,
                    "vat_assumed": economics.vat_assumed,
                    "error_entries": len(entries),
                },
            )

        return RecalculationResult(
            sale_id=sale.id,
            economics=economics,
            commission=commission,
            vat_check=vat_check,
            entries=tuple(entries),
        )

    def _collect_entries(
        self,
        sale: Sale,
        economics: SaleEconomics,
        commission: CommissionResult,
        vat_check: VATValidation | None,
    ) -> list[ErrorEntry]:
        entries: list[ErrorEntry] = []

        if economics.vat_assumed:
            entries.append(
                self._entry(
                    sale,
                    ErrorType.VAT,
                    ErrorSeverity.HIGH,
                    "economics",
                    ErrorTrigger.ECONOMICS,
                    [w for w in economics.warnings if "VAT assumed" in w],
                    branding_theme=sale.branding_theme,
                    assumed_vat_percent=str(economics.vat_rate),
                )
            )

        input_warnings = [w for w in economics.warnings if "VAT assumed" not in w]
        if input_warnings:
            entries.append(
                self._entry(
                    sale,
                    ErrorType.VALIDATION,
                    ErrorSeverity.LOW,
                    "economics",
                    ErrorTrigger.ECONOMICS,
                    input_warnings,
                )
            )

        if commission.errors:
            entries.append(
                self._entry(
                    sale,
                    ErrorType.COMMISSION,
                    ErrorSeverity.HIGH,
                    "commission-engine",
                    ErrorTrigger.COMMISSION_ENGINE,
                    commission.errors,
                    commissionable_margin=str(economics.commissionable_margin),
                )
            )
        if commission.warnings:
            entries.append(
                self._entry(
                    sale,
                    ErrorType.COMMISSION,
                    ErrorSeverity.LOW,
                    "commission-engine",
                    ErrorTrigger.COMMISSION_ENGINE,
                    commission.warnings,
                )
            )

        if vat_check is not None and not vat_check.is_valid:
            entries.append(
                self._entry(
                    sale,
                    ErrorType.VAT,
                    ErrorSeverity.MEDIUM,
                    "vat-check",
                    ErrorTrigger.VAT_CHECK,
                    [vat_check.message or "VAT mismatch"],
                    discrepancy=str(vat_check.discrepancy),
                )
            )

        return entries

    def fix_vat(self, sale_id: UUID, branding_theme: str) -> RecalculationResult | Unresolved:
        """
        Set a sale's branding theme and recalculate from its inc-VAT amount.

        The theme is stored as its platform GUID.  An unknown theme leaves
        the sale untouched and returns ``Unresolved``.

        Raises:
            SaleNotFoundError: If the sale doesn't exist.
        """
        sale = self._get_sale(sale_id)
        resolution = resolve_vat_rate(branding_theme, self._themes)
        if isinstance(resolution, Unresolved):
            logger.warning(
                "fix_vat_unknown_theme",
                extra={"sale_id": str(sale_id), "branding_theme": branding_theme},
            )
            return resolution

        previous = sale.branding_theme
        sale.branding_theme = resolution.mapping.theme_id
        self.session.flush()
        logger.info(
            "sale_branding_theme_changed",
            extra={
                "sale_id": str(sale_id),
                "previous_theme": previous,
                "branding_theme": resolution.mapping.name,
            },
        )
        return self.recalculate(sale_id)

    def check_vat(self, sale_id: UUID) -> VATValidation:
        """Validate the stored ex/inc-VAT amounts against the sale's theme."""
        sale = self._get_sale(sale_id)
        return validate_vat(
            sale.branding_theme,
            sale.sale_amount_ex_vat,
            sale.sale_amount_inc_vat,
            self._themes,
        )
