# This project was developed with assistance from AI tools.
"""Lead completeness evaluation.

Single registry of required and optional lead fields. Co-applicant fields
count only when the lead carries a real (non-placeholder) co-applicant.
The same evaluation drives the lead-completion gate and list annotations.
"""

import logging
from decimal import Decimal
from typing import Any

from leaddb import Lead

from ..schemas.completeness import (
    CoApplicantSnapshot,
    CompletionField,
    CompletionResult,
    FieldSection,
    LeadSnapshot,
    MissingField,
    SectionMissing,
    StudentSnapshot,
)

logger = logging.getLogger(__name__)

# Placeholder values written by quick-create flows before real data exists
PLACEHOLDER_CO_APPLICANT_NAME = "Co-Applicant"
PLACEHOLDER_PIN_CODE = "000000"

_PIN_FIELD_KEYS = {"student_postal_code", "co_applicant_pin_code"}


def _field(key, path, display_name, section, *, required, conditional=False, editable=False):
    return CompletionField(
        key=key,
        path=path,
        display_name=display_name,
        section=section,
        is_required=required,
        is_conditionally_required=conditional,
        is_editable=editable,
    )


STUDENT_REQUIRED_FIELDS: list[CompletionField] = [
    _field("student_name", "student.name", "Student Name", FieldSection.STUDENT, required=True),
    _field("student_phone", "student.phone", "Student Phone", FieldSection.STUDENT, required=True),
    _field("student_email", "student.email", "Student Email", FieldSection.STUDENT, required=True),
    _field(
        "student_postal_code", "student.postal_code", "Student PIN Code",
        FieldSection.STUDENT, required=True, editable=True,
    ),
]

STUDY_REQUIRED_FIELDS: list[CompletionField] = [
    _field("study_destination", "study_destination", "Study Destination", FieldSection.STUDY, required=True),
    _field("loan_amount", "loan_amount", "Loan Amount", FieldSection.STUDY, required=True),
    _field("intake_month", "intake_month", "Intake Month", FieldSection.STUDY, required=True),
    _field("intake_year", "intake_year", "Intake Year", FieldSection.STUDY, required=True),
]

CO_APPLICANT_REQUIRED_FIELDS: list[CompletionField] = [
    _field(
        key, path, label, FieldSection.CO_APPLICANT,
        required=True, conditional=True, editable=True,
    )
    for key, path, label in [
        ("co_applicant_name", "co_applicant.name", "Co-Applicant Name"),
        ("co_applicant_relationship", "co_applicant.relationship", "Relationship"),
        ("co_applicant_phone", "co_applicant.phone", "Co-Applicant Phone"),
        ("co_applicant_salary", "co_applicant.salary", "Co-Applicant Salary"),
        ("co_applicant_pin_code", "co_applicant.pin_code", "Co-Applicant PIN Code"),
    ]
]

OPTIONAL_FIELDS: list[CompletionField] = [
    *[
        _field(key, path, label, FieldSection.STUDENT, required=False, editable=True)
        for key, path, label in [
            ("student_dob", "student.date_of_birth", "Date of Birth"),
            ("student_gender", "student.gender", "Gender"),
            ("student_city", "student.city", "City"),
            ("student_state", "student.state", "State"),
            ("student_nationality", "student.nationality", "Nationality"),
            ("student_street_address", "student.street_address", "Street Address"),
            ("student_highest_qualification", "student.highest_qualification", "Highest Qualification"),
            ("student_tenth_percentage", "student.tenth_percentage", "10th Percentage"),
            ("student_twelfth_percentage", "student.twelfth_percentage", "12th Percentage"),
            ("student_bachelors_percentage", "student.bachelors_percentage", "Bachelor's Percentage"),
            ("student_bachelors_cgpa", "student.bachelors_cgpa", "Bachelor's CGPA"),
            ("student_credit_score", "student.credit_score", "Student Credit Score"),
        ]
    ],
    _field("loan_type", "loan_type", "Loan Type", FieldSection.STUDY, required=False),
    *[
        _field(
            key, path, label, FieldSection.CO_APPLICANT,
            required=False, conditional=True, editable=True,
        )
        for key, path, label in [
            ("co_applicant_email", "co_applicant.email", "Co-Applicant Email"),
            ("co_applicant_occupation", "co_applicant.occupation", "Co-Applicant Occupation"),
            ("co_applicant_employer", "co_applicant.employer", "Co-Applicant Employer"),
            ("co_applicant_employment_type", "co_applicant.employment_type", "Employment Type"),
            (
                "co_applicant_employment_duration",
                "co_applicant.employment_duration_years",
                "Employment Duration",
            ),
            ("co_applicant_credit_score", "co_applicant.credit_score", "Co-Applicant Credit Score"),
        ]
    ],
    _field("partner_id", "partner_id", "Partner Assignment", FieldSection.LEAD, required=False),
]


def is_placeholder(field_key: str, value: Any) -> bool:
    """True when ``value`` is a known placeholder for ``field_key``.

    PIN codes of "000000" (or numeric 0), the co-applicant name
    "Co-Applicant", and a co-applicant salary of exactly 0.
    """
    if field_key in _PIN_FIELD_KEYS:
        if isinstance(value, str):
            return value.strip() == PLACEHOLDER_PIN_CODE
        return not isinstance(value, bool) and value == 0
    if field_key == "co_applicant_name":
        return isinstance(value, str) and value.strip() == PLACEHOLDER_CO_APPLICANT_NAME
    if field_key == "co_applicant_salary":
        return isinstance(value, (int, float, Decimal)) and value == 0
    return False


def is_field_filled(field_key: str, value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return not is_placeholder(field_key, value)


def has_valid_co_applicant(lead: LeadSnapshot) -> bool:
    """True when the lead has a real co-applicant.

    A placeholder-named co-applicant still counts if it carries a salary
    or a relationship. When only the id is known (row not loaded) the
    co-applicant is assumed to exist.
    """
    if not lead.co_applicant_id:
        return False

    co_app = lead.co_applicant
    if co_app is None:
        return True

    name = (co_app.name or "").strip()
    if name and name != PLACEHOLDER_CO_APPLICANT_NAME:
        return True

    has_salary = co_app.salary is not None and co_app.salary > 0
    has_relationship = bool(co_app.relationship and co_app.relationship.strip())
    return has_salary or has_relationship


def required_fields(has_co_applicant: bool) -> list[CompletionField]:
    base = [*STUDENT_REQUIRED_FIELDS, *STUDY_REQUIRED_FIELDS]
    if has_co_applicant:
        return [*base, *CO_APPLICANT_REQUIRED_FIELDS]
    return base


def optional_fields(has_co_applicant: bool) -> list[CompletionField]:
    if has_co_applicant:
        return list(OPTIONAL_FIELDS)
    return [f for f in OPTIONAL_FIELDS if f.section != FieldSection.CO_APPLICANT]


def editable_fields() -> list[CompletionField]:
    """Fields shown in the complete-lead form when missing."""
    student_pin = next(f for f in STUDENT_REQUIRED_FIELDS if f.key == "student_postal_code")
    return [
        student_pin,
        *CO_APPLICANT_REQUIRED_FIELDS,
        *[f for f in OPTIONAL_FIELDS if f.is_editable],
    ]


def _read_path(lead: LeadSnapshot, path: str) -> Any:
    current: Any = lead
    for part in path.split("."):
        if current is None:
            return None
        current = getattr(current, part, None)
    return current


def _missing(field: CompletionField) -> MissingField:
    return MissingField(
        key=field.key,
        display_name=field.display_name,
        section=field.section,
        is_required=field.is_required,
        is_editable=field.is_editable,
    )


def evaluate(lead: LeadSnapshot) -> CompletionResult:
    """Compute missing fields and the completeness percentage for a lead.

    Pure and deterministic. The score rounds half up.
    """
    has_co_app = has_valid_co_applicant(lead)
    required = required_fields(has_co_app)
    optional = optional_fields(has_co_app)

    missing_required = [
        _missing(f) for f in required if not is_field_filled(f.key, _read_path(lead, f.path))
    ]
    missing_optional = [
        _missing(f) for f in optional if not is_field_filled(f.key, _read_path(lead, f.path))
    ]

    total = len(required) + len(optional)
    filled = total - len(missing_required) - len(missing_optional)
    score = (filled * 200 + total) // (2 * total) if total else 100

    return CompletionResult(
        missing_required=missing_required,
        missing_optional=missing_optional,
        completeness_score=score,
        is_complete=not missing_required,
        total_fields=total,
        filled_fields=filled,
        has_co_applicant=has_co_app,
    )


def missing_fields_by_section(result: CompletionResult) -> list[SectionMissing]:
    """Group missing required fields by form section, in section order."""
    grouped: list[SectionMissing] = []
    for section in FieldSection:
        fields = [f for f in result.missing_required if f.section == section]
        if fields:
            grouped.append(SectionMissing(section=section, fields=fields))
    return grouped


def missing_summary(result: CompletionResult) -> str:
    count = len(result.missing_required)
    if count == 0:
        return "All required fields complete"
    return f"{count} required field{'s' if count != 1 else ''} missing"


def completeness_tier(score: int) -> str:
    if score >= 90:
        return "high"
    if score >= 70:
        return "medium"
    return "low"


def snapshot_from_lead(lead: Lead) -> LeadSnapshot:
    """Build an evaluator snapshot from a Lead ORM row.

    ``student`` and ``co_applicant`` must already be loaded (selectinload);
    an unloaded co-applicant is passed through as None.
    """
    co_app = None
    if lead.co_applicant is not None:
        row = lead.co_applicant
        co_app = CoApplicantSnapshot(
            name=row.name,
            relationship=row.relationship_to_student,
            phone=row.phone,
            email=row.email,
            salary=row.salary,
            pin_code=row.pin_code,
            occupation=row.occupation,
            employer=row.employer,
            employment_type=row.employment_type,
            employment_duration_years=row.employment_duration_years,
            credit_score=row.credit_score,
        )

    return LeadSnapshot(
        id=lead.id,
        student=StudentSnapshot.model_validate(lead.student) if lead.student else None,
        co_applicant_id=lead.co_applicant_id,
        co_applicant=co_app,
        study_destination=lead.study_destination,
        loan_amount=lead.loan_amount,
        intake_month=lead.intake_month,
        intake_year=lead.intake_year,
        loan_type=lead.loan_type,
        partner_id=lead.partner_id,
    )
