# This project was developed with assistance from AI tools.
"""Lead status transition rules and turnaround-time tracking.

Validation is pure: it never touches the database. An accepted request
yields an ``AppliedChange`` that the lead repository writes atomically
together with its history entry.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Protocol

from leaddb.enums import DocumentsStatus, LeadStatus, PropertyVerificationStatus, UserRole
from pydantic.alias_generators import to_camel

from ..core.errors import ConfigurationError
from ..schemas.error import EngineError, ErrorCode
from ..schemas.status import (
    AppliedChange,
    CompanionData,
    StatusHistoryEntry,
    StatusTransitionRequest,
    StatusTransitionResult,
    TATInfo,
    TATState,
)
from .status_registry import get_status_config, next_statuses, resolve_status

logger = logging.getLogger(__name__)

NOTES_MIN_LENGTH = 10
NOTES_MAX_LENGTH = 150

# Fraction of the expected TAT after which a stage is flagged
TAT_WARNING_RATIO = 0.75

# Companion fields each target status demands, in the order they are checked
REQUIRED_COMPANIONS: dict[LeadStatus, tuple[str, ...]] = {
    LeadStatus.LOGGED_WITH_LENDER: ("lan_number",),
    LeadStatus.PD_SCHEDULED: ("pd_call_scheduled_at",),
    LeadStatus.SANCTIONED: ("sanction_amount", "sanction_date"),
    LeadStatus.PF_PAID: ("pf_amount", "pf_paid_at"),
    LeadStatus.PROPERTY_VERIFICATION: ("property_verification_status",),
}

# Amount fields must be strictly positive when demanded
_POSITIVE_AMOUNTS = {"sanction_amount", "pf_amount"}

REASON_CODE_GROUPS: dict[str, dict[str, str]] = {
    "positive": {
        "documents_received": "Documents received",
        "student_responsive": "Student responsive",
        "lender_approved": "Lender approved",
        "fast_tracked": "Fast-tracked by lender",
    },
    "drop_off": {
        "not_reachable": "Student not reachable",
        "not_interested": "Student not interested",
        "chose_competitor": "Chose another provider",
        "lender_rejected": "Rejected by lender",
        "insufficient_income": "Co-applicant income insufficient",
        "insufficient_collateral": "Insufficient collateral",
        "visa_rejected": "Visa rejected",
        "admission_deferred": "Admission deferred",
        "high_interest_rate": "Interest rate too high",
    },
    "neutral": {
        "awaiting_student": "Awaiting student",
        "awaiting_lender": "Awaiting lender",
        "data_correction": "Data correction",
        "other": "Other",
    },
}

_REASON_LABELS: dict[str, str] = {
    code: label for group in REASON_CODE_GROUPS.values() for code, label in group.items()
}


def is_known_reason(code: str) -> bool:
    return code in _REASON_LABELS


def is_drop_off_reason(code: str) -> bool:
    return code in REASON_CODE_GROUPS["drop_off"]


def reason_label(code: str) -> str:
    return _REASON_LABELS.get(code, code.replace("_", " ").capitalize())


class LeadState(Protocol):
    """Anything carrying a lead's id and current statuses (ORM row or snapshot)."""

    id: str
    status: LeadStatus
    documents_status: DocumentsStatus


def _ensure_tz(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware (UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _check_notes(notes: str) -> EngineError | None:
    length = len(notes.strip())
    if length < NOTES_MIN_LENGTH:
        return EngineError.validation(
            ErrorCode.NOTES_OUT_OF_BOUNDS,
            f"Admin notes are required. Please provide at least {NOTES_MIN_LENGTH} characters.",
            field="notes",
        )
    if length > NOTES_MAX_LENGTH:
        return EngineError.validation(
            ErrorCode.NOTES_OUT_OF_BOUNDS,
            f"Admin notes are too long. Maximum {NOTES_MAX_LENGTH} characters allowed.",
            field="notes",
        )
    return None


def _check_companions(target: LeadStatus, data: CompanionData) -> EngineError | None:
    for name in REQUIRED_COMPANIONS.get(target, ()):
        value = getattr(data, name)
        missing = value is None or (isinstance(value, str) and not value.strip())
        if not missing and name in _POSITIVE_AMOUNTS and value <= Decimal(0):
            missing = True
        if missing:
            wire_name = to_camel(name)
            return EngineError.validation(
                ErrorCode.MISSING_CONDITIONAL_FIELD,
                f"{wire_name} is required when moving to {target.value}.",
                field=wire_name,
            )

    if target != LeadStatus.PROPERTY_VERIFICATION:
        return None
    pv_status = data.property_verification_status
    if pv_status not in {s.value for s in PropertyVerificationStatus}:
        return EngineError.validation(
            ErrorCode.MISSING_CONDITIONAL_FIELD,
            f"propertyVerificationStatus must be one of "
            f"{[s.value for s in PropertyVerificationStatus]}.",
            field="propertyVerificationStatus",
        )
    return None


def _companion_updates(request: StatusTransitionRequest) -> dict[str, object]:
    """Only the companions the target status asks for are written."""
    data = request.additional_data
    return {
        name: getattr(data, name)
        for name in REQUIRED_COMPANIONS.get(request.status, ())
        if getattr(data, name) is not None
    }


def validate(
    request: StatusTransitionRequest,
    actor_role: UserRole,
    actor_id: str,
    current_status: LeadStatus,
    current_documents_status: DocumentsStatus,
    *,
    now: datetime | None = None,
) -> StatusTransitionResult:
    """Decide whether a requested status change is allowed.

    Args:
        request: Target status and/or documents status with companions.
        actor_role: Role of the user making the change.
        actor_id: Recorded as ``changed_by`` on the history entry.
        current_status: Lead's persisted status.
        current_documents_status: Lead's persisted documents status.
        now: Override current time (for testing).

    Returns:
        A result holding either the change to apply or the first rule the
        request breaks. Nothing is written.
    """
    if now is None:
        now = datetime.now(UTC)

    # Fails fast on schema drift before any rule is evaluated
    get_status_config(current_status)

    status_changed = request.status is not None and request.status != current_status
    docs_changed = (
        request.documents_status is not None
        and request.documents_status != current_documents_status
    )

    if not status_changed and not docs_changed:
        return _reject(
            request,
            EngineError.validation(
                ErrorCode.NO_CHANGE_REQUESTED,
                "Please make at least one status change before submitting.",
            ),
        )

    if actor_role in UserRole.admin_roles():
        error = _check_notes(request.notes)
        if error:
            return _reject(request, error)
    elif status_changed and request.status not in next_statuses(current_status):
        logger.warning(
            "Transition denied: lead=%s role=%s %s -> %s",
            request.lead_id,
            actor_role.value,
            current_status.value,
            request.status.value,
        )
        return _reject(
            request,
            EngineError.validation(
                ErrorCode.ILLEGAL_TRANSITION_FOR_ROLE,
                f"A {actor_role.value} cannot move a lead from "
                f"{current_status.value} to {request.status.value}.",
                field="status",
            ),
        )

    if request.reason_code and not is_known_reason(request.reason_code):
        return _reject(
            request,
            EngineError.validation(
                ErrorCode.UNKNOWN_REASON_CODE,
                f"Unknown reason code: {request.reason_code}",
                field="reasonCode",
            ),
        )

    if status_changed:
        error = _check_companions(request.status, request.additional_data)
        if error:
            return _reject(request, error)

    new_status = request.status if status_changed else current_status
    new_docs = request.documents_status if docs_changed else current_documents_status
    notes = request.notes.strip() or None

    history = StatusHistoryEntry(
        lead_id=request.lead_id,
        old_status=current_status,
        new_status=new_status,
        old_documents_status=current_documents_status,
        new_documents_status=new_docs,
        reason_code=request.reason_code,
        notes=notes,
        changed_by=actor_id,
        timestamp=now,
    )

    change = AppliedChange(
        lead_id=request.lead_id,
        status=new_status,
        documents_status=new_docs,
        status_changed=status_changed,
        documents_status_changed=docs_changed,
        stage_started_at=now if status_changed else None,
        companion_updates=_companion_updates(request) if status_changed else {},
        history_entry=history,
    )
    return StatusTransitionResult.success(change)


def _reject(request: StatusTransitionRequest, error: EngineError) -> StatusTransitionResult:
    logger.info(
        "Transition rejected for lead %s: %s", request.lead_id, error.code.value
    )
    return StatusTransitionResult.failure(error)


def validate_bulk(
    leads: Iterable[LeadState],
    target: LeadStatus,
    actor_role: UserRole,
    actor_id: str,
    *,
    reason_code: str | None = None,
    notes: str = "",
    now: datetime | None = None,
) -> dict[str, StatusTransitionResult]:
    """Validate moving several leads to ``target``, each independently.

    One lead's failure never blocks the others. Results keep input order.
    """
    if now is None:
        now = datetime.now(UTC)

    results: dict[str, StatusTransitionResult] = {}
    for lead in leads:
        request = StatusTransitionRequest(
            lead_id=lead.id,
            status=target,
            reason_code=reason_code,
            notes=notes,
        )
        try:
            results[lead.id] = validate(
                request,
                actor_role,
                actor_id,
                resolve_status(lead.status),
                lead.documents_status,
                now=now,
            )
        except ConfigurationError as exc:
            results[lead.id] = StatusTransitionResult.failure(exc.to_engine_error())
    return results


# ---------------------------------------------------------------------------
# Turnaround time
# ---------------------------------------------------------------------------


def hours_in_stage(stage_started_at: datetime, now: datetime) -> float:
    return max((_ensure_tz(now) - _ensure_tz(stage_started_at)).total_seconds() / 3600, 0.0)


def compute_tat(
    status: LeadStatus,
    stage_started_at: datetime,
    *,
    now: datetime | None = None,
) -> TATInfo:
    """Assess how long a lead has sat in its current status.

    Statuses with no expected TAT are never flagged.
    """
    if now is None:
        now = datetime.now(UTC)

    expected = get_status_config(status).expected_tat_hours
    hours = hours_in_stage(stage_started_at, now)
    is_warning = expected > 0 and hours > TAT_WARNING_RATIO * expected
    is_breached = expected > 0 and hours > expected

    if is_breached:
        state = TATState.BREACHED
    elif is_warning:
        state = TATState.WARNING
    else:
        state = TATState.ON_TRACK

    return TATInfo(
        status=status,
        expected_tat_hours=expected,
        hours_in_stage=round(hours, 2),
        is_warning=is_warning,
        is_breached=is_breached,
        state=state,
        remaining_label=format_tat_remaining(status, stage_started_at, now=now),
    )


def format_tat_remaining(
    status: LeadStatus,
    stage_started_at: datetime | None,
    *,
    now: datetime | None = None,
) -> str:
    """Short label such as "3h left", "2d left", "5h overdue" or "1d overdue".

    Empty when there is no start time or the status has no expected TAT.
    """
    if stage_started_at is None:
        return ""
    expected = get_status_config(status).expected_tat_hours
    if expected == 0:
        return ""
    if now is None:
        now = datetime.now(UTC)

    remaining = expected - hours_in_stage(stage_started_at, now)
    if remaining <= 0:
        over = abs(remaining)
        if over >= 24:
            return f"{int(over // 24)}d overdue"
        return f"{int(over)}h overdue"
    if remaining >= 24:
        return f"{int(remaining // 24)}d left"
    return f"{int(remaining)}h left"
