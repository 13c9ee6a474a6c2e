# This project was developed with assistance from AI tools.
"""Tests for the multi-step lead form machine and its validators."""

from datetime import date

import pytest
from leaddb.enums import UserRole

from lead_engine.schemas.lead_form import FormState, FormStep
from lead_engine.services.lead_form import (
    advance,
    go_back,
    make_draft_key,
    reset,
    restore_draft,
    save_draft,
    update_field,
    validate_email,
    validate_field,
    validate_intake_year,
    validate_loan_amount,
    validate_phone,
    validate_pin_code,
    validate_salary,
)

from .factories import NOW

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value,ok,normalized",
    [
        ("9876543210", True, "9876543210"),
        ("+91 98765-43210", True, "9876543210"),
        ("98765", False, None),
        ("98765432101", False, None),
    ],
)
def test_validate_phone(value, ok, normalized):
    is_valid, _, clean = validate_phone(value)
    assert is_valid is ok
    assert clean == normalized


def test_validate_email():
    assert validate_email(" Ananya@Example.com ") == (True, "", "ananya@example.com")
    assert not validate_email("ananya@")[0]


@pytest.mark.parametrize("value,ok", [("560001", True), ("000000", False), ("5600", False)])
def test_validate_pin_code(value, ok):
    assert validate_pin_code(value)[0] is ok


@pytest.mark.parametrize(
    "value,ok",
    [("100000", True), ("25,00,000", True), ("99999", False), ("10000001", False), ("lots", False)],
)
def test_validate_loan_amount(value, ok):
    assert validate_loan_amount(value)[0] is ok


def test_validate_salary_allows_zero_not_negative():
    assert validate_salary("0") == (True, "", "0.00")
    assert not validate_salary("-1")[0]


def test_validate_intake_year():
    this_year = date.today().year
    assert validate_intake_year(str(this_year))[0]
    assert not validate_intake_year(str(this_year - 1))[0]


def test_unknown_field_passes_through():
    assert validate_field("study_destination", "  Canada ") == (True, "", "Canada")


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------


def _student_step() -> FormState:
    state = FormState()
    for name, value in {
        "student_name": "Ananya Rao",
        "student_phone": "+91 9876543210",
        "student_email": "Ananya@Example.com",
        "student_postal_code": "560001",
    }.items():
        state = update_field(state, name, value)
    return state


def test_advance_with_valid_step_normalizes_and_moves_on():
    state = advance(_student_step())
    assert state.step == FormStep.STUDY
    assert state.errors == {}
    assert state.data["student_phone"] == "9876543210"
    assert state.data["student_email"] == "ananya@example.com"


def test_advance_with_invalid_step_stays_with_errors():
    state = update_field(_student_step(), "student_postal_code", "000000")
    state = update_field(state, "student_name", "")
    after = advance(state)
    assert after.step == FormStep.STUDENT
    assert set(after.errors) == {"student_postal_code", "student_name"}


def test_update_field_clears_its_error():
    state = advance(update_field(_student_step(), "student_email", "bad"))
    assert "student_email" in state.errors
    state = update_field(state, "student_email", "good@example.com")
    assert "student_email" not in state.errors


def test_reducers_do_not_mutate_input():
    before = _student_step()
    advance(before)
    assert before.step == FormStep.STUDENT


def test_full_flow_reaches_review_and_back():
    state = advance(_student_step())
    for name, value in {
        "study_destination": "Canada",
        "loan_amount": "2500000",
        "intake_month": "9",
        "intake_year": str(date.today().year + 1),
    }.items():
        state = update_field(state, name, value)
    state = advance(state)
    assert state.step == FormStep.CO_APPLICANT

    for name, value in {
        "co_applicant_name": "Ravi Rao",
        "co_applicant_relationship": "Parent",
        "co_applicant_phone": "9876500000",
        "co_applicant_salary": "85000",
        "co_applicant_pin_code": "560001",
    }.items():
        state = update_field(state, name, value)
    state = advance(state)
    assert state.step == FormStep.REVIEW
    assert state.data["co_applicant_relationship"] == "parent"
    assert advance(state) == state

    assert go_back(state).step == FormStep.CO_APPLICANT


def test_go_back_on_first_step_is_noop():
    state = FormState()
    assert go_back(state) is state


def test_reset():
    assert reset(advance(_student_step())) == FormState()


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


def test_draft_key_scoped_by_applicant():
    key_a = make_draft_key(UserRole.PARTNER, "p-1", "+91 98765 43210")
    key_b = make_draft_key(UserRole.PARTNER, "p-1", "9999999999")
    assert key_a == "lead-form:partner:p-1:9876543210"
    assert key_a == make_draft_key(UserRole.PARTNER, "p-1", "9876543210")
    assert key_a != key_b
    assert make_draft_key(UserRole.ADMIN, "a-1") == "lead-form:admin:a-1:new"


def test_draft_only_restores_for_its_scope():
    key = make_draft_key(UserRole.PARTNER, "p-1", "9876543210")
    draft = save_draft(key, _student_step(), now=NOW)
    assert draft.saved_at == NOW
    assert restore_draft(draft, key) == _student_step()
    assert restore_draft(draft, make_draft_key(UserRole.PARTNER, "p-2", "9876543210")) is None
    assert restore_draft(None, key) is None
