# This project was developed with assistance from AI tools.
"""Status registry, transition, and TAT schemas."""

import enum
from datetime import datetime
from decimal import Decimal

from leaddb.enums import DocumentsStatus, LeadStatus, OwnerRole, ProcessPhase
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import Pagination
from .error import EngineError


class StatusConfig(BaseModel):
    """Static metadata for one lead status."""

    model_config = ConfigDict(frozen=True)

    status: LeadStatus
    label: str
    short_label: str
    description: str
    phase: ProcessPhase
    step: int
    expected_tat_hours: float
    owner_role: OwnerRole
    student_action: str | None = None
    partner_action: str | None = None
    admin_action: str | None = None


class TATState(str, enum.Enum):
    ON_TRACK = "on_track"
    WARNING = "warning"
    BREACHED = "breached"


class TATInfo(BaseModel):
    """Turnaround-time assessment for a lead's current status."""

    status: LeadStatus
    expected_tat_hours: float
    hours_in_stage: float
    is_warning: bool
    is_breached: bool
    state: TATState
    remaining_label: str


class CompanionData(BaseModel):
    """Status-specific data that certain target statuses demand.

    Accepts both camelCase (wire) and snake_case names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    lan_number: str | None = Field(default=None, max_length=100)
    sanction_amount: Decimal | None = None
    sanction_date: datetime | None = None
    pd_call_scheduled_at: datetime | None = None
    pf_amount: Decimal | None = None
    pf_paid_at: datetime | None = None
    property_verification_status: str | None = None


class StatusTransitionRequest(BaseModel):
    """A requested status and/or documents-status change for one lead.

    ``lead_id`` may be omitted from HTTP bodies; the route fills it from the path.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    lead_id: str = ""
    status: LeadStatus | None = None
    documents_status: DocumentsStatus | None = None
    reason_code: str | None = None
    notes: str = ""
    additional_data: CompanionData = Field(default_factory=CompanionData)


class StatusHistoryEntry(BaseModel):
    """Append-only history row the caller persists with the change."""

    model_config = ConfigDict(frozen=True)

    lead_id: str
    old_status: LeadStatus
    new_status: LeadStatus
    old_documents_status: DocumentsStatus
    new_documents_status: DocumentsStatus
    reason_code: str | None = None
    notes: str | None = None
    changed_by: str
    timestamp: datetime


class AppliedChange(BaseModel):
    """Everything an accepted transition writes, applied as one unit."""

    model_config = ConfigDict(frozen=True)

    lead_id: str
    status: LeadStatus
    documents_status: DocumentsStatus
    status_changed: bool
    documents_status_changed: bool
    stage_started_at: datetime | None = Field(
        default=None,
        description="New stage start time; None when only the documents status changed.",
    )
    companion_updates: dict[str, object] = Field(default_factory=dict)
    history_entry: StatusHistoryEntry


class StatusTransitionResult(BaseModel):
    """Ok(applied change) or Err(structured reason) -- never both."""

    change: AppliedChange | None = None
    error: EngineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, change: AppliedChange) -> "StatusTransitionResult":
        return cls(change=change)

    @classmethod
    def failure(cls, error: EngineError) -> "StatusTransitionResult":
        return cls(error=error)


class BulkStatusRequest(BaseModel):
    """Move several leads to the same status, validated one by one."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    lead_ids: list[str] = Field(min_length=1, max_length=100)
    status: LeadStatus
    reason_code: str | None = None
    notes: str = ""


class BulkStatusItem(BaseModel):
    lead_id: str
    ok: bool
    error: EngineError | None = None


class BulkStatusResponse(BaseModel):
    results: list[BulkStatusItem]
    succeeded: int
    failed: int


class StatusHistoryItem(BaseModel):
    """A persisted history row as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    old_status: str | None
    new_status: str | None
    old_documents_status: str | None
    new_documents_status: str | None
    reason_code: str | None
    notes: str | None
    changed_by: str | None
    created_at: datetime


class StatusHistoryResponse(BaseModel):
    """Paginated status history for one lead."""

    data: list[StatusHistoryItem]
    pagination: Pagination
