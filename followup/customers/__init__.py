"""Local customer data consumed by the report engine.

The relational store is an external collaborator; this package defines the
read/upsert interface the engine needs and its implementations.
"""

from followup.customers.models import (
    CustomerNote,
    CustomerUpsert,
    HandlingMetadata,
    LocalCustomer,
    UpsertResult,
    UserContext,
    UserRole,
)
from followup.customers.store import CustomerStore

__all__ = [
    "CustomerNote",
    "CustomerStore",
    "CustomerUpsert",
    "HandlingMetadata",
    "LocalCustomer",
    "UpsertResult",
    "UserContext",
    "UserRole",
]
