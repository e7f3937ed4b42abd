"""
Shared service-layer infrastructure.
"""

from hostel_booking.services.common.unit_of_work import UnitOfWork

__all__ = ["UnitOfWork"]
