# --- File: hostel_booking/schemas/common/base.py ---
"""
Base schema classes with common fields and configurations.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "BaseCommand",
    "TimestampMixin",
    "BaseResponseSchema",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    All application-facing schemas inherit from this to get consistent
    behaviour (ORM loading, enum handling, whitespace stripping).
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        # Keep enums as Enum instances; callers can use `.value`.
        use_enum_values=False,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseCommand(BaseSchema):
    """Base schema for service-layer commands; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""

    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class BaseResponseSchema(BaseSchema, TimestampMixin):
    """Base schema for API responses of persisted entities."""

    id: str = Field(..., description="Unique identifier")
