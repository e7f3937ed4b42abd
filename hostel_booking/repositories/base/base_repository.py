"""
Base repository with standardized lookups and persistence helpers.

Repositories never commit; transaction boundaries belong to the
UnitOfWork that created the session.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hostel_booking.models.base import BaseModel

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository bound to one model and one session.

    Provides create, lookup and filter operations shared by all
    domain repositories.
    """

    def __init__(self, model: Type[ModelType], session: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Database session owned by the caller
        """
        self.model = model
        self.session = session

    # ==================== Create Operations ====================

    def add(self, entity: ModelType, flush: bool = True) -> ModelType:
        """
        Stage a new entity in the session.

        Flushing surfaces constraint violations immediately, inside the
        caller's transaction.
        """
        self.session.add(entity)
        if flush:
            self.session.flush()
        logger.debug(f"Staged {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, id: str) -> Optional[ModelType]:
        """Find entity by primary key."""
        return self.session.get(self.model, id)

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        order_by: Optional[Sequence[str]] = None,
    ) -> List[ModelType]:
        """
        Find entities matching criteria.

        Args:
            criteria: Column name to value; list/tuple values become IN filters
            skip: Number of records to skip
            limit: Maximum number of records
            order_by: Column names, prefix with - for descending
        """
        stmt = select(self.model)

        for key, value in criteria.items():
            column = getattr(self.model, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)

        for field in order_by or ():
            descending = field.startswith("-")
            column = getattr(self.model, field.lstrip("-"))
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        stmt = stmt.offset(skip).limit(limit)
        return list(self.session.scalars(stmt))

    def count(self, criteria: Optional[Dict[str, Any]] = None) -> int:
        """Count entities matching simple equality criteria."""
        stmt = select(func.count()).select_from(self.model)
        for key, value in (criteria or {}).items():
            stmt = stmt.where(getattr(self.model, key) == value)
        return self.session.scalar(stmt) or 0
