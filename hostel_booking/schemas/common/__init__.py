from hostel_booking.schemas.common.base import (
    BaseCommand,
    BaseResponseSchema,
    BaseSchema,
    TimestampMixin,
)

__all__ = ["BaseCommand", "BaseResponseSchema", "BaseSchema", "TimestampMixin"]
