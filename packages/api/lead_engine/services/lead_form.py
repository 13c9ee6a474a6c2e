# This project was developed with assistance from AI tools.
"""Multi-step lead creation form as a finite-state machine.

Steps run student -> study -> co_applicant -> review. Every reducer is a pure
function from one ``FormState`` to the next; nothing here touches storage.
Drafts are immutable values keyed by the applicant identity they belong to,
so a draft started for one student is never restored for another.
"""

import re
from collections.abc import Callable
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from leaddb.enums import Relationship, UserRole

from ..schemas.eligibility import MAX_LOAN_AMOUNT, MIN_LOAN_AMOUNT
from ..schemas.lead_form import Draft, FormState, FormStep
from .completeness import PLACEHOLDER_PIN_CODE

_STEP_ORDER: list[FormStep] = [
    FormStep.STUDENT,
    FormStep.STUDY,
    FormStep.CO_APPLICANT,
    FormStep.REVIEW,
]

STEP_FIELDS: dict[FormStep, list[str]] = {
    FormStep.STUDENT: ["student_name", "student_phone", "student_email", "student_postal_code"],
    FormStep.STUDY: ["study_destination", "loan_amount", "intake_month", "intake_year"],
    FormStep.CO_APPLICANT: [
        "co_applicant_name",
        "co_applicant_relationship",
        "co_applicant_phone",
        "co_applicant_salary",
        "co_applicant_pin_code",
    ],
    FormStep.REVIEW: [],
}


# ---------------------------------------------------------------------------
# Field validators: (is_valid, error_message, normalized_value)
# ---------------------------------------------------------------------------


def validate_phone(value: str) -> tuple[bool, str, str | None]:
    """Indian mobile number: 10 digits, optional +91 prefix."""
    digits = re.sub(r"[\s\-()]", "", value.strip())
    if digits.startswith("+91"):
        digits = digits[3:]
    if not re.fullmatch(r"\d{10}", digits):
        return False, "Phone number must be 10 digits", None
    return True, "", digits


def validate_email(value: str) -> tuple[bool, str, str | None]:
    """Basic email format validation."""
    value = value.strip().lower()
    if not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", value):
        return False, "Invalid email format", None
    return True, "", value


def validate_pin_code(value: str) -> tuple[bool, str, str | None]:
    digits = value.strip()
    if not re.fullmatch(r"\d{6}", digits):
        return False, "PIN code must be 6 digits", None
    if digits == PLACEHOLDER_PIN_CODE:
        return False, "PIN code appears invalid", None
    return True, "", digits


def _parse_amount(value: str) -> Decimal | None:
    cleaned = re.sub(r"[₹,\s]", "", value.strip())
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def validate_loan_amount(value: str) -> tuple[bool, str, str | None]:
    amount = _parse_amount(value)
    if amount is None:
        return False, "Could not parse loan amount", None
    if amount < MIN_LOAN_AMOUNT:
        return False, f"Loan amount must be at least {MIN_LOAN_AMOUNT:,}", None
    if amount > MAX_LOAN_AMOUNT:
        return False, f"Loan amount cannot exceed {MAX_LOAN_AMOUNT:,}", None
    return True, "", f"{amount:.2f}"


def validate_salary(value: str) -> tuple[bool, str, str | None]:
    """Monthly salary. Zero is allowed (non-earning co-applicant)."""
    amount = _parse_amount(value)
    if amount is None:
        return False, "Could not parse salary amount", None
    if amount < 0:
        return False, "Salary cannot be negative", None
    return True, "", f"{amount:.2f}"


def validate_intake_month(value: str) -> tuple[bool, str, str | None]:
    try:
        month = int(value.strip())
    except ValueError:
        return False, "Intake month must be a number", None
    if not 1 <= month <= 12:
        return False, "Intake month must be between 1 and 12", None
    return True, "", str(month)


def validate_intake_year(value: str) -> tuple[bool, str, str | None]:
    try:
        year = int(value.strip())
    except ValueError:
        return False, "Intake year must be a number", None
    if year < date.today().year:
        return False, "Intake year cannot be in the past", None
    return True, "", str(year)


def validate_relationship(value: str) -> tuple[bool, str, str | None]:
    normalized = value.strip().lower()
    valid = [r.value for r in Relationship]
    if normalized not in valid:
        return False, f"Unknown relationship. Valid: {', '.join(valid)}", None
    return True, "", normalized


_VALIDATORS: dict[str, Callable[[str], tuple[bool, str, str | None]]] = {
    "student_phone": validate_phone,
    "student_email": validate_email,
    "student_postal_code": validate_pin_code,
    "loan_amount": validate_loan_amount,
    "intake_month": validate_intake_month,
    "intake_year": validate_intake_year,
    "co_applicant_relationship": validate_relationship,
    "co_applicant_phone": validate_phone,
    "co_applicant_salary": validate_salary,
    "co_applicant_pin_code": validate_pin_code,
}


def validate_field(field_name: str, value: Any) -> tuple[bool, str, str | None]:
    """Validate a single field by name.

    Fields without a dedicated validator pass through stripped.
    """
    validator = _VALIDATORS.get(field_name)
    if validator is None:
        return True, "", value.strip() if isinstance(value, str) else value
    return validator(str(value))


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------


def update_field(state: FormState, field_name: str, value: Any) -> FormState:
    """Set one field and clear any error previously reported for it."""
    errors = {k: v for k, v in state.errors.items() if k != field_name}
    return state.model_copy(update={"data": {**state.data, field_name: value}, "errors": errors})


def validate_step(state: FormState) -> tuple[dict[str, str], dict[str, Any]]:
    """Return (errors, normalized values) for the fields of the current step."""
    errors: dict[str, str] = {}
    normalized: dict[str, Any] = {}
    for name in STEP_FIELDS[state.step]:
        value = state.data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors[name] = "This field is required"
            continue
        ok, error, clean = validate_field(name, value)
        if ok:
            normalized[name] = clean
        else:
            errors[name] = error
    return errors, normalized


def advance(state: FormState) -> FormState:
    """Move to the next step, or stay on this one with errors if it is invalid."""
    if state.step == FormStep.REVIEW:
        return state

    errors, normalized = validate_step(state)
    if errors:
        return state.model_copy(update={"errors": errors})

    next_step = _STEP_ORDER[_STEP_ORDER.index(state.step) + 1]
    return FormState(step=next_step, data={**state.data, **normalized}, errors={})


def go_back(state: FormState) -> FormState:
    index = _STEP_ORDER.index(state.step)
    if index == 0:
        return state
    return state.model_copy(update={"step": _STEP_ORDER[index - 1], "errors": {}})


def reset(state: FormState | None = None) -> FormState:
    return FormState()


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


def make_draft_key(role: UserRole, user_id: str, student_phone: str | None = None) -> str:
    """Scope a draft to the user filling the form and the applicant it is for."""
    ok, _, phone = validate_phone(student_phone or "")
    applicant = phone if ok else (re.sub(r"\D", "", student_phone or "") or "new")
    return f"lead-form:{role.value}:{user_id}:{applicant}"


def save_draft(scope_key: str, state: FormState, *, now: datetime | None = None) -> Draft:
    return Draft(scope_key=scope_key, state=state, saved_at=now or datetime.now(UTC))


def restore_draft(draft: Draft | None, scope_key: str) -> FormState | None:
    """Return the draft's state only if it belongs to ``scope_key``."""
    if draft is None or draft.scope_key != scope_key:
        return None
    return draft.state
