"""Persistence models for the Sales OS core."""

from salesos_kernel.models.error_record import ErrorRecord
from salesos_kernel.models.sale import Sale

__all__ = [
    "ErrorRecord",
    "Sale",
]
