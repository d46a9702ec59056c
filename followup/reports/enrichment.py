"""Read-time enrichment of primary rows from the contact-info caches.

Contact report B is the most curated source, report A is a bulk fallback,
and the primary report's own name field is often stale. Each enrichment
field takes the first non-blank value in that order.
"""

from followup.reports.cache import ReportCache
from followup.reports.enums import ReportKind
from followup.reports.models import (
    CanonicalAccountRow,
    ContactEnrichmentRow,
    EnrichmentView,
)

ENRICHMENT_FIELDS: tuple[str, ...] = (
    "account_name",
    "contact_name",
    "email",
    "phone",
    "mobile_phone",
)


def find_contact(
    cache: ReportCache, kind: ReportKind, row: CanonicalAccountRow
) -> ContactEnrichmentRow | None:
    """Look up a contact row by account key, then by external id."""
    return cache.lookup_by_account_key(kind, row.account_key) or cache.lookup_by_external_id(
        kind, row.external_id
    )


def enrich(row: CanonicalAccountRow, cache: ReportCache) -> EnrichmentView:
    """Build the enrichment view for a primary row without touching the cache."""
    contact_b = find_contact(cache, ReportKind.CONTACTS_B, row)
    contact_a = find_contact(cache, ReportKind.CONTACTS_A, row)

    values: dict[str, str | None] = {}
    for field in ENRICHMENT_FIELDS:
        candidates = [
            getattr(contact_b, field, None),
            getattr(contact_a, field, None),
        ]
        if field == "account_name":
            candidates.append(row.account_name)
        values[field] = next((value for value in candidates if value), None)

    return EnrichmentView(**values)
