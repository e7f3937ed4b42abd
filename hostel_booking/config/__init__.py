"""
Configuration package for the hostel booking engine.

This package contains the environment settings, database engine and
session factory, and logging setup.
"""

from hostel_booking.config.settings import Settings, get_settings, settings

__all__ = ['Settings', 'get_settings', 'settings']
