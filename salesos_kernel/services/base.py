"""
BaseService -- abstract base for all Sales OS services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every persistence-backed service.  Concrete services receive a
    SQLAlchemy ``Session`` and persist via ``session.flush()`` --
    never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Every service in ``salesos_services/`` that writes rows extends this
    class.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback the outer transaction
      themselves.  The caller (route handler, batch job, or test harness)
      owns commit/rollback.  Savepoints opened with ``begin_nested()`` are
      allowed for all-or-nothing sub-steps.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from salesos_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for persistence-backed services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session):
        """
        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session
