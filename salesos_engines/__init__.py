"""
Module: salesos_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines: VAT resolution, sale economics, commission,
    deal lifecycle, contact matching and implied costs.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import salesos_kernel domain types and logging.
    MUST NOT import salesos_config or salesos_services.

Invariants enforced:
    - Purity: engines never read the wall clock; timestamps are passed in.
    - Decimal-only arithmetic, rounded half-up to 2 dp at every step.
    - Data-quality problems are returned in results, never raised.

Usage:
    from salesos_engines import compute_economics, calculate_commission
    from salesos_engines import plan_transition, search_buyers
"""

from salesos_engines.commission import (
    CommissionBand,
    CommissionInput,
    CommissionResult,
    RateSource,
    calculate_commission,
    select_commission_band,
)
from salesos_engines.contact_matching import (
    ContactPerson,
    ExtendedContact,
    ScoredResult,
    is_buyer,
    is_supplier,
    levenshtein_distance,
    normalize_contact,
    score_field,
    search_buyers,
    search_contacts,
    search_suppliers,
)
from salesos_engines.economics import (
    MarginBreakdown,
    MarginResult,
    SaleEconomics,
    SaleEconomicsInput,
    calculate_commissionable_margin,
    calculate_ex_vat_with_rate,
    calculate_gross_margin,
    calculate_margin_percent,
    calculate_margins,
    compute_economics,
    normalize_economics_input,
)
from salesos_engines.implied_costs import (
    ImpliedCosts,
    ImpliedCostSettings,
    PaymentMethod,
    TradeItem,
    calculate_implied_costs,
)
from salesos_engines.lifecycle import (
    VALID_TRANSITIONS,
    DealStatus,
    TransitionPlan,
    can_transition,
    is_terminal_state,
    plan_transition,
    valid_next_states,
)
from salesos_engines.tracer import traced_engine
from salesos_engines.vat import (
    Unresolved,
    VATCalculation,
    VATResolution,
    VATValidation,
    calculate_vat,
    resolve_vat_rate,
    validate_vat,
)

__all__ = [
    # VAT
    "Unresolved",
    "VATCalculation",
    "VATResolution",
    "VATValidation",
    "calculate_vat",
    "resolve_vat_rate",
    "validate_vat",
    # Economics
    "MarginBreakdown",
    "MarginResult",
    "SaleEconomics",
    "SaleEconomicsInput",
    "calculate_commissionable_margin",
    "calculate_ex_vat_with_rate",
    "calculate_gross_margin",
    "calculate_margin_percent",
    "calculate_margins",
    "compute_economics",
    "normalize_economics_input",
    # Commission
    "CommissionBand",
    "CommissionInput",
    "CommissionResult",
    "RateSource",
    "calculate_commission",
    "select_commission_band",
    # Lifecycle
    "VALID_TRANSITIONS",
    "DealStatus",
    "TransitionPlan",
    "can_transition",
    "is_terminal_state",
    "plan_transition",
    "valid_next_states",
    # Contact matching
    "ContactPerson",
    "ExtendedContact",
    "ScoredResult",
    "is_buyer",
    "is_supplier",
    "levenshtein_distance",
    "normalize_contact",
    "score_field",
    "search_buyers",
    "search_contacts",
    "search_suppliers",
    # Implied costs
    "ImpliedCosts",
    "ImpliedCostSettings",
    "PaymentMethod",
    "TradeItem",
    "calculate_implied_costs",
    # Tracing
    "traced_engine",
]
