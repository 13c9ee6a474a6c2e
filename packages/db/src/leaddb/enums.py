# This project was developed with assistance from AI tools.
"""
Domain enums for the education-loan lead lifecycle.

Shared domain types used by both SQLAlchemy models (leaddb package)
and Pydantic schemas (lead_engine package).
"""

import enum


class ProcessPhase(str, enum.Enum):
    PRE_LOGIN = "pre_login"
    WITH_LENDER = "with_lender"
    SANCTION = "sanction"
    DISBURSEMENT = "disbursement"
    TERMINAL = "terminal"


class LeadStatus(str, enum.Enum):
    # Pre-login
    LEAD_INTAKE = "lead_intake"
    FIRST_CONTACT = "first_contact"
    LENDERS_MAPPED = "lenders_mapped"
    CHECKLIST_SHARED = "checklist_shared"
    DOCS_UPLOADING = "docs_uploading"
    DOCS_SUBMITTED = "docs_submitted"
    DOCS_VERIFIED = "docs_verified"
    # With lender
    LOGGED_WITH_LENDER = "logged_with_lender"
    COUNSELLING_DONE = "counselling_done"
    PD_SCHEDULED = "pd_scheduled"
    PD_COMPLETED = "pd_completed"
    ADDITIONAL_DOCS_PENDING = "additional_docs_pending"
    PROPERTY_VERIFICATION = "property_verification"
    CREDIT_ASSESSMENT = "credit_assessment"
    # Sanction
    SANCTIONED = "sanctioned"
    PF_PENDING = "pf_pending"
    PF_PAID = "pf_paid"
    SANCTION_LETTER_ISSUED = "sanction_letter_issued"
    # Disbursement
    DOCS_DISPATCHED = "docs_dispatched"
    SECURITY_CREATION = "security_creation"
    OPS_VERIFICATION = "ops_verification"
    DISBURSED = "disbursed"
    # Terminal
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    # Legacy (pre-migration names, still resolvable)
    NEW = "new"
    CONTACTED = "contacted"
    IN_PROGRESS = "in_progress"
    DOCUMENT_REVIEW = "document_review"
    APPROVED = "approved"

    @classmethod
    def legacy_statuses(cls) -> frozenset["LeadStatus"]:
        """Pre-migration statuses hidden from UI listings."""
        return frozenset(
            {cls.NEW, cls.CONTACTED, cls.IN_PROGRESS, cls.DOCUMENT_REVIEW, cls.APPROVED}
        )

    @classmethod
    def terminal_statuses(cls) -> frozenset["LeadStatus"]:
        """Statuses where a lead is no longer active."""
        return frozenset({cls.REJECTED, cls.WITHDRAWN})


class DocumentsStatus(str, enum.Enum):
    PENDING = "pending"
    UPLOADED = "uploaded"
    VERIFIED = "verified"
    REJECTED = "rejected"
    RESUBMISSION_REQUIRED = "resubmission_required"


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    PARTNER = "partner"
    STUDENT = "student"

    @classmethod
    def admin_roles(cls) -> frozenset["UserRole"]:
        """Roles allowed to set any status (with mandatory notes)."""
        return frozenset({cls.SUPER_ADMIN, cls.ADMIN})


class OwnerRole(str, enum.Enum):
    RM = "rm"
    STUDENT = "student"
    LENDER = "lender"
    OPS = "ops"


class PropertyVerificationStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ISSUES_FOUND = "issues_found"


class AssignmentMode(str, enum.Enum):
    AI = "ai"
    AI_OVERRIDE = "ai_override"


class LenderGroup(str, enum.Enum):
    BEST_FIT = "best_fit"
    ALSO_CONSIDER = "also_consider"
    POSSIBLE_BUT_RISKY = "possible_but_risky"
    NOT_SUITABLE = "not_suitable"


class ProbabilityBand(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EligibilityCategory(str, enum.Enum):
    ELIGIBLE = "eligible"
    CONDITIONAL = "conditional"
    UNLIKELY = "unlikely"


class Relationship(str, enum.Enum):
    PARENT = "parent"
    SPOUSE = "spouse"
    SIBLING = "sibling"
    GUARDIAN = "guardian"
    OTHER = "other"
