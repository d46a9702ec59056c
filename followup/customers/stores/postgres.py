"""PostgreSQL implementation of CustomerStore.

Uses asyncpg for async database access. Reads go against the customers,
customer_notes, customer_groups, groups and users tables owned by the CRUD
service; the only write is the by-external-id upsert issued during sync.
"""

from collections.abc import Iterable, Sequence

import asyncpg

from followup.customers.models import (
    CustomerNote,
    CustomerUpsert,
    HandlingMetadata,
    LocalCustomer,
    UpsertResult,
    UserContext,
)
from followup.customers.store import CustomerStore
from followup.db.errors import ConnectionError
from followup.db.pool import PostgresPool
from followup.observability.logging import get_logger

logger = get_logger(__name__)

_CUSTOMER_COLUMNS = """
    id, external_id, name, email, phone, company, notes,
    created_by, created_at, updated_at
"""

_NOTE_COLUMNS = """
    n.id, n.customer_id, n.note, n.due_date, n.created_by,
    n.managed_by, n.group_id, n.action_type, n.created_at
"""

_LATEST_NOTES_SQL = f"""
    SELECT DISTINCT ON (n.customer_id) {_NOTE_COLUMNS}
    FROM customer_notes n
    WHERE n.customer_id = ANY($1::int[])
    ORDER BY n.customer_id, n.id DESC
"""

_HANDLING_SQL = """
    SELECT DISTINCT ON (n.customer_id)
           n.customer_id, n.managed_by, u.full_name AS manager_name,
           n.group_id, g.name AS group_name, n.created_at, n.due_date
    FROM customer_notes n
    LEFT JOIN users u ON u.id = n.managed_by
    LEFT JOIN groups g ON g.id = n.group_id
    WHERE n.customer_id = ANY($1::int[])
    ORDER BY n.customer_id, n.id DESC
"""

_ELIGIBLE_SQL = """
    WITH latest AS (
        SELECT DISTINCT ON (customer_id) customer_id, managed_by, group_id
        FROM customer_notes
        ORDER BY customer_id, id DESC
    )
    SELECT c.id
    FROM customers c
    LEFT JOIN latest l ON l.customer_id = c.id
    WHERE ($1::int IS NULL OR l.managed_by = $1::int)
      AND (
        $2::int IS NULL
        OR l.group_id = $2::int
        OR EXISTS (
            SELECT 1 FROM customer_groups cg
            WHERE cg.customer_id = c.id AND cg.group_id = $2::int
        )
      )
"""

_UPSERT_SQL = """
    INSERT INTO customers (external_id, name, email, phone, company, created_by)
    SELECT u.external_id, u.name, u.email, u.phone, u.company, $6::int
    FROM unnest($1::text[], $2::text[], $3::text[], $4::text[], $5::text[])
         AS u(external_id, name, email, phone, company)
    ON CONFLICT (external_id) DO UPDATE SET
        name = EXCLUDED.name,
        email = EXCLUDED.email,
        phone = EXCLUDED.phone,
        company = EXCLUDED.company,
        created_by = COALESCE(customers.created_by, EXCLUDED.created_by),
        updated_at = NOW()
    RETURNING (xmax = 0) AS inserted
"""


class PostgresCustomerStore(CustomerStore):
    """PostgreSQL implementation of CustomerStore."""

    def __init__(self, pool: PostgresPool) -> None:
        """Initialize with connection pool.

        Args:
            pool: PostgreSQL connection pool
        """
        self._pool = pool

    async def get_by_id(self, customer_id: int) -> LocalCustomer | None:
        """Get a customer by local id."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE id = $1",
                    customer_id,
                )
                return self._row_to_customer(row) if row else None
        except asyncpg.PostgresError as e:
            logger.error("postgres_get_customer_error", customer_id=customer_id, error=str(e))
            raise ConnectionError(f"Failed to get customer: {e}", cause=e) from e

    async def can_access(self, user: UserContext, customer_id: int) -> bool:
        """Whether the user owns, manages, or administers the customer."""
        try:
            async with self._pool.acquire() as conn:
                return bool(
                    await conn.fetchval(
                        """
                        SELECT EXISTS (
                            SELECT 1 FROM customers c
                            WHERE c.id = $1
                              AND (
                                $3::bool
                                OR c.created_by = $2
                                OR (
                                    SELECT n.managed_by FROM customer_notes n
                                    WHERE n.customer_id = c.id
                                    ORDER BY n.id DESC LIMIT 1
                                ) = $2
                              )
                        )
                        """,
                        customer_id,
                        user.user_id,
                        user.is_admin,
                    )
                )
        except asyncpg.PostgresError as e:
            logger.error("postgres_can_access_error", customer_id=customer_id, error=str(e))
            raise ConnectionError(f"Failed to check customer access: {e}", cause=e) from e

    async def get_latest_note(self, customer_id: int) -> CustomerNote | None:
        """Get the most recent note (highest id) of a customer."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {_NOTE_COLUMNS} FROM customer_notes n
                    WHERE n.customer_id = $1
                    ORDER BY n.id DESC LIMIT 1
                    """,
                    customer_id,
                )
                return self._row_to_note(row) if row else None
        except asyncpg.PostgresError as e:
            logger.error("postgres_latest_note_error", customer_id=customer_id, error=str(e))
            raise ConnectionError(f"Failed to get latest note: {e}", cause=e) from e

    async def get_latest_notes(
        self, customer_ids: Iterable[int]
    ) -> dict[int, CustomerNote]:
        """Get the most recent note of each customer in the set."""
        ids = sorted(set(customer_ids))
        if not ids:
            return {}
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(_LATEST_NOTES_SQL, ids)
                return {row["customer_id"]: self._row_to_note(row) for row in rows}
        except asyncpg.PostgresError as e:
            logger.error("postgres_latest_notes_error", count=len(ids), error=str(e))
            raise ConnectionError(f"Failed to get latest notes: {e}", cause=e) from e

    async def get_handling_metadata(
        self, customer_ids: Iterable[int]
    ) -> dict[int, HandlingMetadata]:
        """Get latest-note handling metadata for each customer in the set."""
        ids = sorted(set(customer_ids))
        if not ids:
            return {}
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(_HANDLING_SQL, ids)
        except asyncpg.PostgresError as e:
            logger.error("postgres_handling_metadata_error", count=len(ids), error=str(e))
            raise ConnectionError(f"Failed to get handling metadata: {e}", cause=e) from e

        return {
            row["customer_id"]: HandlingMetadata(
                customer_id=row["customer_id"],
                manager_id=row["managed_by"],
                manager_name=row["manager_name"],
                group_id=row["group_id"],
                group_name=row["group_name"],
                payment_start_date=row["created_at"].date() if row["created_at"] else None,
                payment_target_date=row["due_date"],
            )
            for row in rows
        }

    async def resolve_customer_ids(self, external_ids: Iterable[str]) -> dict[str, int]:
        """Map external ids to local customer ids; unknown ids are omitted."""
        ids = sorted(set(external_ids))
        if not ids:
            return {}
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    "SELECT id, external_id FROM customers WHERE external_id = ANY($1::text[])",
                    ids,
                )
                return {row["external_id"]: row["id"] for row in rows}
        except asyncpg.PostgresError as e:
            logger.error("postgres_resolve_ids_error", count=len(ids), error=str(e))
            raise ConnectionError(f"Failed to resolve customer ids: {e}", cause=e) from e

    async def find_eligible_customer_ids(
        self,
        *,
        managed_by: int | None = None,
        group_id: int | None = None,
    ) -> set[int]:
        """Ids matching the manager and/or group filter."""
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(_ELIGIBLE_SQL, managed_by, group_id)
                return {row["id"] for row in rows}
        except asyncpg.PostgresError as e:
            logger.error(
                "postgres_eligible_ids_error",
                managed_by=managed_by,
                group_id=group_id,
                error=str(e),
            )
            raise ConnectionError(f"Failed to find eligible customers: {e}", cause=e) from e

    async def upsert_by_external_id(
        self,
        records: Sequence[CustomerUpsert],
        created_by: int | None = None,
    ) -> UpsertResult:
        """Insert or update customers by external id, keeping existing owners."""
        unique: dict[str, CustomerUpsert] = {}
        for record in records:
            unique.setdefault(record.external_id, record)
        if not unique:
            return UpsertResult()

        batch = list(unique.values())
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    rows = await conn.fetch(
                        _UPSERT_SQL,
                        [r.external_id for r in batch],
                        [r.name for r in batch],
                        [r.email for r in batch],
                        [r.phone for r in batch],
                        [r.company for r in batch],
                        created_by,
                    )
        except asyncpg.PostgresError as e:
            logger.error("postgres_upsert_customers_error", count=len(batch), error=str(e))
            raise ConnectionError(f"Failed to upsert customers: {e}", cause=e) from e

        inserted = sum(1 for row in rows if row["inserted"])
        return UpsertResult(inserted=inserted, updated=len(rows) - inserted)

    @staticmethod
    def _row_to_customer(row: asyncpg.Record) -> LocalCustomer:
        return LocalCustomer(**dict(row))

    @staticmethod
    def _row_to_note(row: asyncpg.Record) -> CustomerNote:
        return CustomerNote(**dict(row))
