# This project was developed with assistance from AI tools.
"""Lead status registry.

Static metadata for the 22-step education-loan pipeline: phase, step order,
expected turnaround time and who owns the next move. Legacy status values
resolve here but are excluded from UI-facing listings.
"""

import enum
import logging

from leaddb.enums import LeadStatus, OwnerRole, ProcessPhase

from ..core.errors import ConfigurationError
from ..schemas.error import ErrorCode
from ..schemas.status import StatusConfig

logger = logging.getLogger(__name__)

S = LeadStatus
P = ProcessPhase

STATUS_CONFIG: dict[LeadStatus, StatusConfig] = {
    # -- Pre-login (steps 1-7) --
    S.LEAD_INTAKE: StatusConfig(
        status=S.LEAD_INTAKE,
        label="Lead Intake",
        short_label="Intake",
        description="Lead received from partner, initial data captured",
        phase=P.PRE_LOGIN,
        step=1,
        expected_tat_hours=0.5,
        owner_role=OwnerRole.RM,
        partner_action="Ensure complete student details are provided",
        admin_action="Assign to RM for first contact",
    ),
    S.FIRST_CONTACT: StatusConfig(
        status=S.FIRST_CONTACT,
        label="First Contact",
        short_label="Contacted",
        description="Student contacted, requirements discussed",
        phase=P.PRE_LOGIN,
        step=2,
        expected_tat_hours=0.5,
        owner_role=OwnerRole.RM,
        student_action="Respond to RM call/email with your details",
        admin_action="Complete requirement assessment",
    ),
    S.LENDERS_MAPPED: StatusConfig(
        status=S.LENDERS_MAPPED,
        label="Lenders Mapped",
        short_label="Mapped",
        description="2+ suitable lenders identified and shared with student",
        phase=P.PRE_LOGIN,
        step=3,
        expected_tat_hours=0.75,
        owner_role=OwnerRole.RM,
        student_action="Review lender options and select preferred lender",
        admin_action="Confirm lender mapping is accurate",
    ),
    S.CHECKLIST_SHARED: StatusConfig(
        status=S.CHECKLIST_SHARED,
        label="Checklist Shared",
        short_label="Checklist",
        description="Document checklist sent to student",
        phase=P.PRE_LOGIN,
        step=4,
        expected_tat_hours=0.75,
        owner_role=OwnerRole.RM,
        student_action="Review checklist and start gathering documents",
        partner_action="Follow up with student on document collection",
    ),
    S.DOCS_UPLOADING: StatusConfig(
        status=S.DOCS_UPLOADING,
        label="Uploading Documents",
        short_label="Uploading",
        description="Student is uploading required documents",
        phase=P.PRE_LOGIN,
        step=5,
        expected_tat_hours=48,
        owner_role=OwnerRole.STUDENT,
        student_action="Upload all required documents",
        partner_action="Assist student with document collection",
        admin_action="Follow up every 12 hours",
    ),
    S.DOCS_SUBMITTED: StatusConfig(
        status=S.DOCS_SUBMITTED,
        label="Documents Submitted",
        short_label="Submitted",
        description="All documents uploaded, awaiting verification",
        phase=P.PRE_LOGIN,
        step=6,
        expected_tat_hours=3,
        owner_role=OwnerRole.RM,
        admin_action="Verify documents within 3 hours",
    ),
    S.DOCS_VERIFIED: StatusConfig(
        status=S.DOCS_VERIFIED,
        label="Documents Verified",
        short_label="Verified",
        description="Documents verified, ready for lender login",
        phase=P.PRE_LOGIN,
        step=7,
        expected_tat_hours=4,
        owner_role=OwnerRole.RM,
        admin_action="Log case with lender same day",
    ),
    # -- With lender (steps 8-14) --
    S.LOGGED_WITH_LENDER: StatusConfig(
        status=S.LOGGED_WITH_LENDER,
        label="Logged with Lender",
        short_label="Logged",
        description="Case logged with lender, LAN generated",
        phase=P.WITH_LENDER,
        step=8,
        expected_tat_hours=0.5,
        owner_role=OwnerRole.RM,
        student_action="Await counselling call from RM",
        admin_action="Schedule student counselling",
    ),
    S.COUNSELLING_DONE: StatusConfig(
        status=S.COUNSELLING_DONE,
        label="Counselling Completed",
        short_label="Counselled",
        description="Student and co-applicant prepared for lender call",
        phase=P.WITH_LENDER,
        step=9,
        expected_tat_hours=0.5,
        owner_role=OwnerRole.RM,
        student_action="Be ready for lender PD call",
    ),
    S.PD_SCHEDULED: StatusConfig(
        status=S.PD_SCHEDULED,
        label="PD Scheduled",
        short_label="PD Scheduled",
        description="Personal Discussion call scheduled with lender",
        phase=P.WITH_LENDER,
        step=10,
        expected_tat_hours=48,
        owner_role=OwnerRole.LENDER,
        student_action="Attend PD call at scheduled time",
    ),
    S.PD_COMPLETED: StatusConfig(
        status=S.PD_COMPLETED,
        label="PD Completed",
        short_label="PD Done",
        description="Personal Discussion call completed successfully",
        phase=P.WITH_LENDER,
        step=11,
        expected_tat_hours=48,
        owner_role=OwnerRole.LENDER,
        admin_action="Monitor for additional document requests",
    ),
    S.ADDITIONAL_DOCS_PENDING: StatusConfig(
        status=S.ADDITIONAL_DOCS_PENDING,
        label="Additional Docs Pending",
        short_label="Add. Docs",
        description="Lender requested additional documents",
        phase=P.WITH_LENDER,
        step=12,
        expected_tat_hours=48,
        owner_role=OwnerRole.STUDENT,
        student_action="Upload additional documents requested",
        admin_action="Coordinate document collection",
    ),
    S.PROPERTY_VERIFICATION: StatusConfig(
        status=S.PROPERTY_VERIFICATION,
        label="Property Verification",
        short_label="Prop. Verify",
        description="Property verification in progress (secured loans)",
        phase=P.WITH_LENDER,
        step=13,
        expected_tat_hours=336,  # 14 days
        owner_role=OwnerRole.LENDER,
        student_action="Ensure property access for evaluator visit",
    ),
    S.CREDIT_ASSESSMENT: StatusConfig(
        status=S.CREDIT_ASSESSMENT,
        label="Credit Assessment",
        short_label="Credit Check",
        description="Lender credit team evaluating application",
        phase=P.WITH_LENDER,
        step=14,
        expected_tat_hours=96,
        owner_role=OwnerRole.LENDER,
        student_action="Await credit decision",
    ),
    # -- Sanction (steps 15-18) --
    S.SANCTIONED: StatusConfig(
        status=S.SANCTIONED,
        label="Sanctioned",
        short_label="Sanctioned",
        description="Loan approved, sanction amount confirmed",
        phase=P.SANCTION,
        step=15,
        expected_tat_hours=48,
        owner_role=OwnerRole.LENDER,
        student_action="Pay processing fee to proceed",
        admin_action="Communicate sanction details to student",
    ),
    S.PF_PENDING: StatusConfig(
        status=S.PF_PENDING,
        label="PF Pending",
        short_label="PF Pending",
        description="Awaiting processing fee payment",
        phase=P.SANCTION,
        step=16,
        expected_tat_hours=168,
        owner_role=OwnerRole.STUDENT,
        student_action="Pay processing fee online or at branch",
    ),
    S.PF_PAID: StatusConfig(
        status=S.PF_PAID,
        label="PF Paid",
        short_label="PF Paid",
        description="Processing fee received",
        phase=P.SANCTION,
        step=17,
        expected_tat_hours=24,
        owner_role=OwnerRole.LENDER,
        admin_action="Request sanction letter release",
    ),
    S.SANCTION_LETTER_ISSUED: StatusConfig(
        status=S.SANCTION_LETTER_ISSUED,
        label="Sanction Letter Issued",
        short_label="Letter Issued",
        description="Sanction letter released to student",
        phase=P.SANCTION,
        step=18,
        expected_tat_hours=24,
        owner_role=OwnerRole.LENDER,
        student_action="Use sanction letter for visa process",
    ),
    # -- Disbursement (steps 19-22) --
    S.DOCS_DISPATCHED: StatusConfig(
        status=S.DOCS_DISPATCHED,
        label="Docs Dispatched",
        short_label="Dispatched",
        description="Signed documents dispatched to lender",
        phase=P.DISBURSEMENT,
        step=19,
        expected_tat_hours=72,
        owner_role=OwnerRole.STUDENT,
        student_action="Sign and courier all documents",
    ),
    S.SECURITY_CREATION: StatusConfig(
        status=S.SECURITY_CREATION,
        label="Security Creation",
        short_label="Security",
        description="Security/lien creation in progress",
        phase=P.DISBURSEMENT,
        step=20,
        expected_tat_hours=168,
        owner_role=OwnerRole.LENDER,
        student_action="Submit original property documents if applicable",
    ),
    S.OPS_VERIFICATION: StatusConfig(
        status=S.OPS_VERIFICATION,
        label="Ops Verification",
        short_label="Ops Check",
        description="Final operations verification",
        phase=P.DISBURSEMENT,
        step=21,
        expected_tat_hours=48,
        owner_role=OwnerRole.OPS,
        admin_action="Monitor ops verification status",
    ),
    S.DISBURSED: StatusConfig(
        status=S.DISBURSED,
        label="Disbursed",
        short_label="Disbursed",
        description="Loan amount disbursed successfully",
        phase=P.DISBURSEMENT,
        step=22,
        expected_tat_hours=0,
        owner_role=OwnerRole.LENDER,
    ),
    # -- Terminal --
    S.REJECTED: StatusConfig(
        status=S.REJECTED,
        label="Rejected",
        short_label="Rejected",
        description="Application was rejected",
        phase=P.TERMINAL,
        step=-1,
        expected_tat_hours=0,
        owner_role=OwnerRole.LENDER,
    ),
    S.WITHDRAWN: StatusConfig(
        status=S.WITHDRAWN,
        label="Withdrawn",
        short_label="Withdrawn",
        description="Application withdrawn by student",
        phase=P.TERMINAL,
        step=-2,
        expected_tat_hours=0,
        owner_role=OwnerRole.STUDENT,
    ),
    # -- Legacy (pre-migration values still present in old rows) --
    S.NEW: StatusConfig(
        status=S.NEW,
        label="New",
        short_label="New",
        description="New lead (legacy)",
        phase=P.PRE_LOGIN,
        step=1,
        expected_tat_hours=0.5,
        owner_role=OwnerRole.RM,
    ),
    S.CONTACTED: StatusConfig(
        status=S.CONTACTED,
        label="Contacted",
        short_label="Contacted",
        description="Student contacted (legacy)",
        phase=P.PRE_LOGIN,
        step=2,
        expected_tat_hours=24,
        owner_role=OwnerRole.RM,
    ),
    S.IN_PROGRESS: StatusConfig(
        status=S.IN_PROGRESS,
        label="In Progress",
        short_label="In Progress",
        description="Application in progress (legacy)",
        phase=P.WITH_LENDER,
        step=8,
        expected_tat_hours=168,
        owner_role=OwnerRole.RM,
    ),
    S.DOCUMENT_REVIEW: StatusConfig(
        status=S.DOCUMENT_REVIEW,
        label="Document Review",
        short_label="Doc Review",
        description="Documents under review (legacy)",
        phase=P.PRE_LOGIN,
        step=6,
        expected_tat_hours=24,
        owner_role=OwnerRole.RM,
    ),
    S.APPROVED: StatusConfig(
        status=S.APPROVED,
        label="Approved",
        short_label="Approved",
        description="Application approved (legacy)",
        phase=P.SANCTION,
        step=15,
        expected_tat_hours=0,
        owner_role=OwnerRole.LENDER,
    ),
}

_PHASE_ORDER: dict[ProcessPhase, int] = {
    P.PRE_LOGIN: 1,
    P.WITH_LENDER: 2,
    P.SANCTION: 3,
    P.DISBURSEMENT: 4,
    P.TERMINAL: 5,
}

_LEGACY = LeadStatus.legacy_statuses()


class StudentStage(str, enum.Enum):
    """Simplified stages shown to students."""

    APPLICATION_RECEIVED = "application_received"
    DOCUMENT_COLLECTION = "document_collection"
    UNDER_REVIEW = "under_review"
    WITH_LENDER = "with_lender"
    APPROVED = "approved"
    DISBURSEMENT = "disbursement"
    COMPLETED = "completed"
    CLOSED = "closed"


_APPLICATION_RECEIVED = {
    S.LEAD_INTAKE,
    S.FIRST_CONTACT,
    S.LENDERS_MAPPED,
    S.CHECKLIST_SHARED,
    S.NEW,
    S.CONTACTED,
}
_DOCUMENT_COLLECTION = {S.DOCS_UPLOADING, S.DOCS_SUBMITTED}


def resolve_status(value: str | LeadStatus) -> LeadStatus:
    """Coerce a persisted value to a LeadStatus.

    Raises ConfigurationError for values outside the enum (schema drift).
    """
    try:
        return LeadStatus(value)
    except ValueError as exc:
        logger.error("Unknown lead status in persisted data: %r", value)
        raise ConfigurationError(
            ErrorCode.UNKNOWN_STATUS, f"Unknown lead status: {value!r}"
        ) from exc


def get_status_config(status: str | LeadStatus) -> StatusConfig:
    """Return registry metadata for a status. Unknown values are fatal."""
    resolved = resolve_status(status)
    config = STATUS_CONFIG.get(resolved)
    if config is None:
        logger.error("Lead status %s has no registry entry", resolved.value)
        raise ConfigurationError(
            ErrorCode.UNKNOWN_STATUS, f"No registry entry for status {resolved.value!r}"
        )
    return config


def phase_order(phase: ProcessPhase) -> int:
    return _PHASE_ORDER[phase]


def is_legacy(status: LeadStatus) -> bool:
    return status in _LEGACY


def is_terminal(status: LeadStatus) -> bool:
    return get_status_config(status).phase == P.TERMINAL


def ordered_statuses() -> list[LeadStatus]:
    """Active, non-legacy statuses in pipeline order."""
    active = [c for c in STATUS_CONFIG.values() if c.step > 0 and c.status not in _LEGACY]
    return [c.status for c in sorted(active, key=lambda c: c.step)]


def statuses_by_phase(phase: ProcessPhase) -> list[LeadStatus]:
    """Non-legacy statuses of one phase, by step."""
    in_phase = [c for c in STATUS_CONFIG.values() if c.phase == phase and c.status not in _LEGACY]
    return [c.status for c in sorted(in_phase, key=lambda c: abs(c.step))]


def listed_statuses() -> list[StatusConfig]:
    """UI-facing listing: every non-legacy status, phase by phase."""
    return [
        STATUS_CONFIG[status]
        for phase in sorted(_PHASE_ORDER, key=phase_order)
        for status in statuses_by_phase(phase)
    ]


def next_statuses(current: LeadStatus) -> list[LeadStatus]:
    """Statuses a non-admin may move a lead to from ``current``.

    The immediate successor in pipeline order, plus rejected and withdrawn.
    Terminal statuses have no successors. Legacy statuses only offer the
    terminal exits since they have no position in the ordered list.
    """
    if is_terminal(current):
        return []

    ordered = ordered_statuses()
    result: list[LeadStatus] = []
    if current in ordered:
        index = ordered.index(current)
        if index < len(ordered) - 1:
            result.append(ordered[index + 1])

    result.extend([S.REJECTED, S.WITHDRAWN])
    return result


def student_stage(status: LeadStatus) -> StudentStage:
    """Map an internal status to the simplified student-facing stage."""
    if status in LeadStatus.terminal_statuses():
        return StudentStage.CLOSED
    if status == S.DISBURSED:
        return StudentStage.COMPLETED

    phase = get_status_config(status).phase
    if phase == P.PRE_LOGIN:
        if status in _APPLICATION_RECEIVED:
            return StudentStage.APPLICATION_RECEIVED
        if status in _DOCUMENT_COLLECTION:
            return StudentStage.DOCUMENT_COLLECTION
        return StudentStage.UNDER_REVIEW
    if phase == P.WITH_LENDER:
        return StudentStage.WITH_LENDER
    if phase == P.SANCTION:
        return StudentStage.APPROVED
    if phase == P.DISBURSEMENT:
        return StudentStage.DISBURSEMENT
    return StudentStage.APPLICATION_RECEIVED


def partner_phase(status: LeadStatus) -> ProcessPhase:
    """Partners see the four pipeline phases (plus terminal)."""
    return get_status_config(status).phase
