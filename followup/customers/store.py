"""CustomerStore abstract interface."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from followup.customers.models import (
    CustomerNote,
    CustomerUpsert,
    HandlingMetadata,
    LocalCustomer,
    UpsertResult,
    UserContext,
)


class CustomerStore(ABC):
    """Abstract interface over the local customer tables.

    Every multi-customer lookup takes a whole id set so that query
    latency stays bounded regardless of cache size.
    """

    @abstractmethod
    async def get_by_id(self, customer_id: int) -> LocalCustomer | None:
        """Get a customer by local id."""
        pass

    @abstractmethod
    async def can_access(self, user: UserContext, customer_id: int) -> bool:
        """Whether the user owns, manages, or administers the customer."""
        pass

    @abstractmethod
    async def get_latest_note(self, customer_id: int) -> CustomerNote | None:
        """Get the most recent note (highest id) of a customer."""
        pass

    @abstractmethod
    async def get_latest_notes(
        self, customer_ids: Iterable[int]
    ) -> dict[int, CustomerNote]:
        """Get the most recent note of each customer in the set."""
        pass

    @abstractmethod
    async def get_handling_metadata(
        self, customer_ids: Iterable[int]
    ) -> dict[int, HandlingMetadata]:
        """Get latest-note handling metadata for each customer in the set."""
        pass

    @abstractmethod
    async def resolve_customer_ids(self, external_ids: Iterable[str]) -> dict[str, int]:
        """Map external ids to local customer ids; unknown ids are omitted."""
        pass

    @abstractmethod
    async def find_eligible_customer_ids(
        self,
        *,
        managed_by: int | None = None,
        group_id: int | None = None,
    ) -> set[int]:
        """Ids whose latest note is managed by ``managed_by`` and/or that
        belong to ``group_id`` directly or through their latest note."""
        pass

    @abstractmethod
    async def upsert_by_external_id(
        self,
        records: Sequence[CustomerUpsert],
        created_by: int | None = None,
    ) -> UpsertResult:
        """Insert or update customers by external id.

        An existing customer keeps its ``created_by`` owner.
        """
        pass
