# This project was developed with assistance from AI tools.
"""Lead completeness request/response schemas."""

import enum
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class FieldSection(str, enum.Enum):
    STUDENT = "student"
    STUDY = "study"
    CO_APPLICANT = "co_applicant"
    LEAD = "lead"


class CompletionField(BaseModel):
    """One entry in the fixed lead-completion field registry."""

    model_config = ConfigDict(frozen=True)

    key: str
    path: str
    display_name: str
    section: FieldSection
    is_required: bool
    is_conditionally_required: bool = False
    is_editable: bool = False


class MissingField(BaseModel):
    """A field that is null, blank, or a placeholder sentinel."""

    key: str
    display_name: str
    section: FieldSection
    is_required: bool
    is_editable: bool = False


class CompletionResult(BaseModel):
    """Completeness summary for a lead."""

    missing_required: list[MissingField]
    missing_optional: list[MissingField]
    completeness_score: int
    is_complete: bool
    total_fields: int
    filled_fields: int
    has_co_applicant: bool


# ---------------------------------------------------------------------------
# Lead snapshot (read-only view the evaluator walks by dotted path)
# ---------------------------------------------------------------------------


class StudentSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str | None = None
    phone: str | None = None
    email: str | None = None
    postal_code: str | int | None = None
    date_of_birth: datetime | None = None
    gender: str | None = None
    city: str | None = None
    state: str | None = None
    nationality: str | None = None
    street_address: str | None = None
    highest_qualification: str | None = None
    tenth_percentage: float | None = None
    twelfth_percentage: float | None = None
    bachelors_percentage: float | None = None
    bachelors_cgpa: float | None = None
    credit_score: int | None = None


class CoApplicantSnapshot(BaseModel):
    name: str | None = None
    relationship: str | None = None
    phone: str | None = None
    email: str | None = None
    salary: Decimal | None = None
    pin_code: str | int | None = None
    occupation: str | None = None
    employer: str | None = None
    employment_type: str | None = None
    employment_duration_years: float | None = None
    credit_score: int | None = None


class LeadSnapshot(BaseModel):
    """The subset of a lead the completeness evaluator reads.

    ``co_applicant`` is None when the co-applicant row was not loaded, which
    is distinct from ``co_applicant_id`` being None.
    """

    id: str | None = None
    student: StudentSnapshot | None = None
    co_applicant_id: str | None = None
    co_applicant: CoApplicantSnapshot | None = None
    study_destination: str | None = None
    loan_amount: Decimal | None = None
    intake_month: int | None = None
    intake_year: int | None = None
    loan_type: str | None = None
    partner_id: str | None = None


class SectionMissing(BaseModel):
    section: FieldSection
    fields: list[MissingField]


class CompletenessResponse(BaseModel):
    """Completeness result plus display helpers for the lead view."""

    lead_id: str
    result: CompletionResult
    summary: str
    tier: str
    by_section: list[SectionMissing]
