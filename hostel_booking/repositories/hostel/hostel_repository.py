"""
Hostel repository.
"""

from sqlalchemy.orm import Session

from hostel_booking.models.hostel.hostel import Hostel
from hostel_booking.repositories.base.base_repository import BaseRepository


class HostelRepository(BaseRepository[Hostel]):
    """Lookups over hostel listings."""

    def __init__(self, session: Session):
        super().__init__(Hostel, session)
