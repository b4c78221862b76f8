"""
User Management API

FastAPI service exposing token-protected CRUD operations over an in-memory
collection of user records.
"""

__version__ = "1.0.0"
