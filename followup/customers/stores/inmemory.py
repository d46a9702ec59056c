"""In-memory implementation of CustomerStore."""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from followup.customers.models import (
    CustomerNote,
    CustomerUpsert,
    HandlingMetadata,
    LocalCustomer,
    UpsertResult,
    UserContext,
)
from followup.customers.store import CustomerStore


class InMemoryCustomerStore(CustomerStore):
    """In-memory implementation of CustomerStore for testing and development."""

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._customers: dict[int, LocalCustomer] = {}
        self._notes: dict[int, CustomerNote] = {}
        self._users: dict[int, str] = {}
        self._groups: dict[int, str] = {}
        self._memberships: set[tuple[int, int]] = set()
        self._next_customer_id = 1

    # Seeding helpers

    def add_user(self, user_id: int, full_name: str) -> None:
        self._users[user_id] = full_name

    def add_group(self, group_id: int, name: str) -> None:
        self._groups[group_id] = name

    def assign_group(self, customer_id: int, group_id: int) -> None:
        """Record a direct customer_groups membership."""
        self._memberships.add((customer_id, group_id))

    def add_customer(self, customer: LocalCustomer) -> LocalCustomer:
        self._customers[customer.id] = customer
        self._next_customer_id = max(self._next_customer_id, customer.id + 1)
        return customer

    def add_note(self, note: CustomerNote) -> CustomerNote:
        self._notes[note.id] = note
        return note

    # CustomerStore

    async def get_by_id(self, customer_id: int) -> LocalCustomer | None:
        """Get a customer by local id."""
        return self._customers.get(customer_id)

    async def can_access(self, user: UserContext, customer_id: int) -> bool:
        """Whether the user owns, manages, or administers the customer."""
        customer = self._customers.get(customer_id)
        if customer is None:
            return False
        if user.is_admin or customer.created_by == user.user_id:
            return True
        latest = await self.get_latest_note(customer_id)
        return latest is not None and latest.managed_by == user.user_id

    async def get_latest_note(self, customer_id: int) -> CustomerNote | None:
        """Get the most recent note (highest id) of a customer."""
        notes = await self.get_latest_notes([customer_id])
        return notes.get(customer_id)

    async def get_latest_notes(
        self, customer_ids: Iterable[int]
    ) -> dict[int, CustomerNote]:
        """Get the most recent note of each customer in the set."""
        wanted = set(customer_ids)
        latest: dict[int, CustomerNote] = {}
        for note in self._notes.values():
            if note.customer_id not in wanted:
                continue
            current = latest.get(note.customer_id)
            if current is None or note.id > current.id:
                latest[note.customer_id] = note
        return latest

    async def get_handling_metadata(
        self, customer_ids: Iterable[int]
    ) -> dict[int, HandlingMetadata]:
        """Get latest-note handling metadata for each customer in the set."""
        latest = await self.get_latest_notes(customer_ids)
        return {
            customer_id: HandlingMetadata(
                customer_id=customer_id,
                manager_id=note.managed_by,
                manager_name=self._users.get(note.managed_by) if note.managed_by else None,
                group_id=note.group_id,
                group_name=self._groups.get(note.group_id) if note.group_id else None,
                payment_start_date=note.created_at.date(),
                payment_target_date=note.due_date,
            )
            for customer_id, note in latest.items()
        }

    async def resolve_customer_ids(self, external_ids: Iterable[str]) -> dict[str, int]:
        """Map external ids to local customer ids; unknown ids are omitted."""
        wanted = set(external_ids)
        return {
            customer.external_id: customer.id
            for customer in self._customers.values()
            if customer.external_id in wanted
        }

    async def find_eligible_customer_ids(
        self,
        *,
        managed_by: int | None = None,
        group_id: int | None = None,
    ) -> set[int]:
        """Ids matching the manager and/or group filter."""
        latest = await self.get_latest_notes(self._customers)
        eligible = set(self._customers)

        if managed_by is not None:
            eligible &= {
                customer_id
                for customer_id, note in latest.items()
                if note.managed_by == managed_by
            }

        if group_id is not None:
            direct = {cid for cid, gid in self._memberships if gid == group_id}
            via_note = {cid for cid, note in latest.items() if note.group_id == group_id}
            eligible &= direct | via_note

        return eligible

    async def upsert_by_external_id(
        self,
        records: Sequence[CustomerUpsert],
        created_by: int | None = None,
    ) -> UpsertResult:
        """Insert or update customers by external id, keeping existing owners."""
        result = UpsertResult()
        by_external_id = {
            customer.external_id: customer
            for customer in self._customers.values()
            if customer.external_id
        }
        seen: set[str] = set()

        for record in records:
            if record.external_id in seen:
                continue
            seen.add(record.external_id)

            existing = by_external_id.get(record.external_id)
            if existing is not None:
                existing.name = record.name
                existing.email = record.email
                existing.phone = record.phone
                existing.company = record.company
                if existing.created_by is None:
                    existing.created_by = created_by
                existing.updated_at = datetime.now(UTC)
                result.updated += 1
                continue

            customer = LocalCustomer(
                id=self._next_customer_id,
                external_id=record.external_id,
                name=record.name,
                email=record.email,
                phone=record.phone,
                company=record.company,
                created_by=created_by,
            )
            self.add_customer(customer)
            by_external_id[record.external_id] = customer
            result.inserted += 1

        return result
