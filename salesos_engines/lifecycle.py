"""
salesos_engines.lifecycle -- Deal lifecycle state machine.

Responsibility:
    Define the fixed deal statuses and the transitions allowed between them,
    and plan the field updates an accepted transition implies.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The current time is
    passed in by the caller; persistence is done by
    ``salesos_services.deal_lifecycle``.

Invariants enforced:
    - Transition table (fixed):
        draft -> invoiced -> paid -> locked -> commission_paid
      Every other pair, including self-loops and skips, is rejected.
    - commission_paid is terminal.  A status with no listed transitions,
      including an unrecognised one, is terminal.
    - An accepted plan carries every side-effect field of its target status;
      a rejected plan carries none.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class DealStatus(str, Enum):
    """Status of a sale on its way to commission payout."""

    DRAFT = "draft"
    INVOICED = "invoiced"
    PAID = "paid"
    LOCKED = "locked"
    COMMISSION_PAID = "commission_paid"


VALID_TRANSITIONS: dict[DealStatus, tuple[DealStatus, ...]] = {
    DealStatus.DRAFT: (DealStatus.INVOICED,),
    DealStatus.INVOICED: (DealStatus.PAID,),
    DealStatus.PAID: (DealStatus.LOCKED,),
    DealStatus.LOCKED: (DealStatus.COMMISSION_PAID,),
    DealStatus.COMMISSION_PAID: (),
}


def _as_status(status: DealStatus | str | None) -> DealStatus | None:
    if isinstance(status, DealStatus):
        return status
    try:
        return DealStatus(status)
    except ValueError:
        return None


def _label(status: DealStatus | str | None) -> str:
    if isinstance(status, DealStatus):
        return status.value
    return str(status)


def valid_next_states(status: DealStatus | str | None) -> tuple[DealStatus, ...]:
    current = _as_status(status)
    if current is None:
        return ()
    return VALID_TRANSITIONS[current]


def can_transition(current: DealStatus | str | None, next_status: DealStatus | str | None) -> bool:
    target = _as_status(next_status)
    return target is not None and target in valid_next_states(current)


def is_terminal_state(status: DealStatus | str | None) -> bool:
    return not valid_next_states(status)


@dataclass(frozen=True)
class TransitionPlan:
    """Outcome of planning a transition.

    ``updates`` is the complete column mapping to apply when ``accepted``;
    it is empty for a rejection.
    """

    accepted: bool
    current: str
    next_status: str
    updates: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    valid_next: tuple[str, ...] = ()

    @property
    def metadata(self) -> dict[str, Any]:
        """Debugging context for a rejected transition."""
        return {
            "attempted_transition": {"from": self.current, "to": self.next_status},
            "valid_transitions_from": list(self.valid_next),
        }


def plan_transition(
    current: DealStatus | str | None,
    next_status: DealStatus | str | None,
    now: datetime,
    payment_date: datetime | None = None,
) -> TransitionPlan:
    """Validate a transition and compute the fields it sets.

    Args:
        current: Status the caller believes the sale is in.
        next_status: Requested status.
        now: Current time, used for lock and commission-paid timestamps and
            as the payment date when none is supplied.
        payment_date: Payment date reported by the accounting platform.

    Returns:
        TransitionPlan.  Never raises.
    """
    current_label = _label(current)
    next_label = _label(next_status)
    valid_next = tuple(s.value for s in valid_next_states(current))

    if not can_transition(current, next_status):
        return TransitionPlan(
            accepted=False,
            current=current_label,
            next_status=next_label,
            error=f"Invalid transition: {current_label} → {next_label}",
            valid_next=valid_next,
        )

    target = DealStatus(next_label)
    updates: dict[str, Any] = {"status": target.value}

    if target is DealStatus.PAID:
        updates["xero_payment_date"] = payment_date or now
    elif target is DealStatus.LOCKED:
        updates["commission_locked"] = True
        updates["commission_lock_date"] = now
    elif target is DealStatus.COMMISSION_PAID:
        updates["commission_paid"] = True
        updates["commission_paid_date"] = now

    return TransitionPlan(
        accepted=True,
        current=current_label,
        next_status=target.value,
        updates=updates,
        valid_next=valid_next,
    )
