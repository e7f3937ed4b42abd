"""
Pydantic schemas for commands and responses.
"""
