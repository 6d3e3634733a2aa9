"""
Error entries -- structured, non-fatal error reports.

Responsibility:
    Value objects produced whenever validation, commission calculation, VAT
    checking or a lifecycle transition fails. They are handed to the error
    recorder (persisted to the ``errors`` table) instead of being raised.

Architecture position:
    Kernel > Domain -- pure, immutable, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Operator-facing urgency."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorType(str, Enum):
    """What kind of check produced the entry."""

    VALIDATION = "validation"
    COMMISSION = "commission"
    VAT = "vat"
    LIFECYCLE = "lifecycle"
    SYNC = "sync"


class ErrorTrigger(str, Enum):
    """Which component raised the entry."""

    ECONOMICS = "economics"
    COMMISSION_ENGINE = "commission_engine"
    VAT_CHECK = "vat_check"
    DEAL_LIFECYCLE = "deal_lifecycle"


@dataclass(frozen=True)
class ErrorEntry:
    """
    One structured error report.

    ``message`` is a tuple of human-readable lines so a single entry can
    carry every error collected by a calculation.
    """

    severity: ErrorSeverity
    source: str
    message: tuple[str, ...]
    timestamp: datetime
    error_type: ErrorType
    triggered_by: ErrorTrigger
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "source": self.source,
            "message": list(self.message),
            "timestamp": self.timestamp.isoformat(),
            "error_type": self.error_type.value,
            "triggered_by": self.triggered_by.value,
            "metadata": dict(self.metadata),
        }
