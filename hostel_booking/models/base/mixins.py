"""
SQLAlchemy model mixins for reusable functionality.
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates


class EmergencyContactMixin:
    """
    Mixin for emergency contact information.

    Provides standardized emergency contact fields.
    """

    emergency_contact_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Emergency contact full name"
    )
    emergency_contact_relationship: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Relationship to emergency contact"
    )
    emergency_contact_phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Emergency contact phone number"
    )

    @validates('emergency_contact_phone')
    def validate_emergency_phone(self, key: str, value: Optional[str]) -> Optional[str]:
        """Validate emergency contact phone."""
        if value is None:
            return value
        digits = value.replace(" ", "").replace("-", "")
        if len(digits.lstrip("+")) < 10:
            raise ValueError("Emergency contact phone must have at least 10 digits")
        return digits


class VersionMixin:
    """
    Mixin for optimistic version tracking.

    Conditional updates bump the version so concurrent writers can be
    detected after the fact.
    """

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Row version, incremented on every conditional update"
    )
