"""
Sales OS Kernel

Shared foundation for the brokerage back-office core:
- Currency-safe Decimal arithmetic with round-per-step semantics
- Branding-theme (tax treatment) reference data
- Structured JSON logging and typed exceptions
- Persistence adapter for sales and error records
"""

__version__ = "0.1.0"
