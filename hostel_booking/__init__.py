"""
Hostel booking engine.

Booking lifecycle, room inventory reconciliation, pricing, refunds and
payment verification for student hostel stays.
"""

__version__ = "0.1.0"
