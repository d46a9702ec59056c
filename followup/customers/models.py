"""Local customer domain models.

These mirror the rows the relational store keeps about customers, their
notes and their group memberships. The report engine only reads them,
apart from the by-external-id upsert performed during sync.
"""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class UserRole(str, Enum):
    """Roles recognised by the access policy."""

    ADMIN = "admin"
    USER = "user"


class NoteActionType(str, Enum):
    """Kinds of customer notes."""

    NOTE = "note"
    TRANSFER = "transfer"


class UserContext(BaseModel):
    """Authenticated user as seen by the report service."""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(..., description="Local user id")
    role: UserRole = Field(default=UserRole.USER, description="Access role")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class LocalCustomer(BaseModel):
    """Customer row stored locally, keyed to upstream by external_id."""

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: int = Field(..., description="Local customer id")
    external_id: str | None = Field(default=None, description="Upstream account id")
    name: str = Field(..., description="Display name")
    email: str | None = Field(default=None, description="Email address")
    phone: str | None = Field(default=None, description="Phone number")
    company: str | None = Field(
        default=None, description="Company field, holds the upstream account key"
    )
    notes: str | None = Field(default=None, description="Free text")
    created_by: int | None = Field(default=None, description="Owning user")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update")


class CustomerNote(BaseModel):
    """Follow-up note recorded against a customer."""

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: int = Field(..., description="Note id, increasing with recency")
    customer_id: int = Field(..., description="Customer the note belongs to")
    note: str = Field(..., description="Note text")
    due_date: date | None = Field(default=None, description="Payment target date")
    created_by: int = Field(..., description="Author")
    managed_by: int | None = Field(default=None, description="Assigned manager")
    group_id: int | None = Field(default=None, description="Assigned group")
    action_type: NoteActionType = Field(default=NoteActionType.NOTE, description="Kind")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")


class HandlingMetadata(BaseModel):
    """Manager/group/date view derived from a customer's latest note."""

    model_config = ConfigDict(frozen=True)

    customer_id: int
    manager_id: int | None = None
    manager_name: str | None = None
    group_id: int | None = None
    group_name: str | None = None
    payment_start_date: date | None = None
    payment_target_date: date | None = None


class CustomerUpsert(BaseModel):
    """Customer fields written during sync, matched by external_id."""

    model_config = ConfigDict(frozen=True)

    external_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None


class UpsertResult(BaseModel):
    """Counts produced by a batch upsert."""

    inserted: int = 0
    updated: int = 0
