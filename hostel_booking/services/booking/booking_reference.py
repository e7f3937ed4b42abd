# hostel_booking/services/booking/booking_reference.py
"""
Human-readable booking references: prefix + YYMMDD + four random digits.
"""

import secrets
from datetime import datetime
from typing import Callable

ReferenceGenerator = Callable[[datetime], str]


def generate_booking_reference(now: datetime, prefix: str = "RV") -> str:
    """
    Build a reference such as RV2610180042.

    Uniqueness is not guaranteed here; the unique index on
    booking_reference decides and the caller retries on collision.
    """
    return f"{prefix}{now:%y%m%d}{secrets.randbelow(10000):04d}"
