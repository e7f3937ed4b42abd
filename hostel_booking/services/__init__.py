"""
Service layer for the hostel booking engine.
"""
