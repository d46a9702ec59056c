"""Customer store implementations."""

from followup.customers.stores.inmemory import InMemoryCustomerStore
from followup.customers.stores.postgres import PostgresCustomerStore

__all__ = ["InMemoryCustomerStore", "PostgresCustomerStore"]
