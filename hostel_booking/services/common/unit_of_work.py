# hostel_booking/services/common/unit_of_work.py
"""
Unit of Work pattern implementation.

Provides transaction management and repository coordination
for the service layer with SQLAlchemy.
"""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_booking.core.exceptions import TransactionError
from hostel_booking.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

TRepository = TypeVar("TRepository", bound=BaseRepository)


class UnitOfWork(AbstractContextManager["UnitOfWork"]):
    """
    Unit of Work for one database transaction.

    Every read and write of a booking operation happens inside one
    UnitOfWork: it commits when the block exits cleanly and rolls back
    when it raises, so an operation is applied entirely or not at all.

    Usage:
        >>> with UnitOfWork(session_factory) as uow:
        ...     bookings = uow.get_repo(BookingRepository)
        ...     booking = bookings.find_by_reference("RV2610180042")
        ...     # Auto-commits on __exit__ if no exception
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        auto_commit: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._auto_commit = auto_commit

        self.session: Optional[Session] = None
        self._committed: bool = False
        self._rolled_back: bool = False
        self._repo_cache: Dict[Type[BaseRepository], BaseRepository] = {}

    # ------------------------------------------------------------------ #
    # Context manager protocol
    # ------------------------------------------------------------------ #

    def __enter__(self) -> "UnitOfWork":
        if self.session is not None:
            raise RuntimeError("UnitOfWork context already entered")

        self.session = self._session_factory()
        self._committed = False
        self._rolled_back = False
        self._repo_cache.clear()

        logger.debug("UnitOfWork session started")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        if self.session is None:
            return False

        try:
            if exc_type is None:
                if self._auto_commit and not self._committed and not self._rolled_back:
                    self.commit()
            elif not self._rolled_back:
                self.session.rollback()
                self._rolled_back = True
                logger.debug(f"UnitOfWork rolled back due to {exc_type.__name__}")
        finally:
            self.session.close()
            self.session = None
            self._repo_cache.clear()

        return False

    # ------------------------------------------------------------------ #
    # Transaction control
    # ------------------------------------------------------------------ #

    def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            RuntimeError: If called outside of context
            TransactionError: If commit fails
        """
        if self.session is None:
            raise RuntimeError("UnitOfWork.commit() called outside of context")

        if self._committed:
            logger.warning("commit() called on already-committed transaction")
            return

        if self._rolled_back:
            raise RuntimeError("Cannot commit a rolled-back transaction")

        try:
            self.session.commit()
            self._committed = True
            logger.debug("UnitOfWork committed")
        except SQLAlchemyError as exc:
            logger.error(f"Commit failed: {exc}")
            self.session.rollback()
            self._rolled_back = True
            raise TransactionError("Failed to commit transaction", exc) from exc

    def rollback(self) -> None:
        """Roll back the current transaction."""
        if self.session is None:
            raise RuntimeError("UnitOfWork.rollback() called outside of context")

        if self._rolled_back:
            return

        try:
            self.session.rollback()
            self._rolled_back = True
            self._committed = False
            logger.debug("UnitOfWork explicitly rolled back")
        except SQLAlchemyError as exc:
            logger.error(f"Rollback failed: {exc}")
            raise TransactionError("Failed to rollback transaction", exc) from exc

    # ------------------------------------------------------------------ #
    # Repository factory
    # ------------------------------------------------------------------ #

    def get_repo(self, repo_cls: Type[TRepository]) -> TRepository:
        """
        Get or create a repository bound to this UnitOfWork's session.

        Repositories are cached per UnitOfWork instance.
        """
        if self.session is None:
            raise RuntimeError("UnitOfWork.get_repo() called outside of context")

        if repo_cls not in self._repo_cache:
            self._repo_cache[repo_cls] = repo_cls(self.session)
        return self._repo_cache[repo_cls]  # type: ignore

    @property
    def is_active(self) -> bool:
        return self.session is not None

    @property
    def is_committed(self) -> bool:
        return self._committed
