"""Database connection management for the local customer store."""

from followup.db.errors import ConnectionError, StoreError
from followup.db.pool import PostgresPool

__all__ = ["ConnectionError", "PostgresPool", "StoreError"]
