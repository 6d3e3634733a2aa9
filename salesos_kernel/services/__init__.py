"""Service base classes for the Sales OS kernel."""

from salesos_kernel.services.base import BaseService

__all__ = ["BaseService"]
