# This project was developed with assistance from AI tools.
"""Tests for the eligibility scorer and check service."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from leaddb.enums import EligibilityCategory, Relationship

from lead_engine.schemas.eligibility import EligibilityCheckRequest
from lead_engine.services.eligibility import (
    credit_points,
    run_eligibility_check,
    salary_points,
    score,
    university_points,
)
from lead_engine.services.scoring_config import DEFAULT_SCORING_CONFIG, parse_config

# ---------------------------------------------------------------------------
# Factor tables
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "uni_score,grade,points",
    [(95, "A", 40), (90, "A", 40), (75, "B", 32), (55, "C", 25), (40, "D", 18), (None, "C", 25)],
)
def test_university_points(uni_score, grade, points):
    assert university_points(uni_score) == (grade, points)


@pytest.mark.parametrize(
    "salary,points",
    [(120000, 35), (100000, 35), (80000, 28), (50000, 20), (30000, 12)],
)
def test_salary_points(salary, points):
    assert salary_points(Decimal(salary))[1] == points


@pytest.mark.parametrize("credit,bonus", [(None, 0), (600, 0), (650, 3), (749, 3), (800, 5)])
def test_credit_points(credit, bonus):
    assert credit_points(credit) == bonus


# ---------------------------------------------------------------------------
# score
# ---------------------------------------------------------------------------


def test_strong_applicant_is_eligible():
    result = score(95, 120000, 5000000)
    assert result.score == 90
    assert result.result_category == EligibilityCategory.ELIGIBLE
    assert result.estimated_loan_min == Decimal("4500000.00")
    assert result.estimated_loan_max == Decimal("5000000.00")
    assert (result.estimated_rate_min, result.estimated_rate_max) == (10.5, 11.5)


def test_weak_applicant_is_conditional():
    result = score(40, 30000, 2000000)
    assert result.score == 45
    assert result.result_category == EligibilityCategory.CONDITIONAL
    assert result.estimated_loan_min == Decimal("600000.00")
    assert result.estimated_loan_max == Decimal("1000000.00")


def test_below_conditional_is_unlikely():
    result = score(40, 30000, 2000000, relationship=Relationship.OTHER)
    assert result.score == 37
    assert result.result_category == EligibilityCategory.UNLIKELY
    assert result.estimated_loan_max == Decimal("0.00")


def test_credit_bonus_is_capped_and_total_clamped():
    result = score(95, 120000, 5000000, student_credit_score=800, co_applicant_credit_score=800)
    assert result.breakdown.credit_bonus.score == 10
    assert result.score == 100


def test_breakdown_sums_to_score():
    result = score(75, 80000, 3000000, relationship=Relationship.SIBLING, student_credit_score=700)
    b = result.breakdown
    assert result.score == (
        b.university.score + b.co_applicant_salary.score + b.relationship.score + b.credit_bonus.score
    )


def test_score_is_idempotent():
    assert score(75, 80000, 3000000) == score(75, 80000, 3000000)


def test_lender_count_and_version_carried_through():
    result = score(75, 80000, 3000000, lender_count=7)
    assert result.lender_count == 7
    assert result.config_version == DEFAULT_SCORING_CONFIG.version


def test_lender_specific_bands():
    config = parse_config(
        {
            "version": 3,
            "loan_bands": [
                {"min_score": 0, "loan_min_fraction": 0.0, "loan_max_fraction": 0.5,
                 "rate_min": 14.0, "rate_max": 16.0},
            ],
            "lender_bands": {
                "acme": [
                    {"min_score": 0, "loan_min_fraction": 0.2, "loan_max_fraction": 0.4,
                     "rate_min": 15.0, "rate_max": 17.0},
                ]
            },
        }
    )
    default = score(95, 120000, 1000000, config=config)
    acme = score(95, 120000, 1000000, config=config, lender_code="acme")
    unknown = score(95, 120000, 1000000, config=config, lender_code="nobody")
    assert default.estimated_loan_max == Decimal("500000.00")
    assert acme.estimated_loan_max == Decimal("400000.00")
    assert unknown.estimated_loan_max == default.estimated_loan_max
    assert default.config_version == "3"


# ---------------------------------------------------------------------------
# run_eligibility_check
# ---------------------------------------------------------------------------


def _check_request(**kwargs) -> EligibilityCheckRequest:
    fields = {
        "university_id": "uni-1",
        "loan_amount": Decimal("5000000"),
        "co_applicant_monthly_salary": Decimal("120000"),
    }
    fields.update(kwargs)
    return EligibilityCheckRequest(**fields)


@patch("lead_engine.services.eligibility.count_active_lenders", new_callable=AsyncMock)
@patch("lead_engine.services.eligibility.lookup_university", new_callable=AsyncMock)
async def test_run_eligibility_check_uses_directory(mock_lookup, mock_count):
    mock_lookup.return_value = MagicMock(score=95)
    mock_count.return_value = 12

    result = await run_eligibility_check(AsyncMock(), _check_request(), config=DEFAULT_SCORING_CONFIG)

    assert result.score == 90
    assert result.lender_count == 12
    mock_lookup.assert_awaited_once()


@patch("lead_engine.services.eligibility.count_active_lenders", new_callable=AsyncMock)
@patch("lead_engine.services.eligibility.lookup_university", new_callable=AsyncMock)
async def test_run_eligibility_check_unknown_university(mock_lookup, mock_count):
    mock_lookup.return_value = None
    mock_count.return_value = 0

    result = await run_eligibility_check(AsyncMock(), _check_request(), config=DEFAULT_SCORING_CONFIG)

    assert result.breakdown.university.label == "C"
    assert result.breakdown.university.score == 25


def test_request_bounds_enforced():
    with pytest.raises(ValueError):
        _check_request(loan_amount=Decimal("50000"))
    with pytest.raises(ValueError):
        _check_request(co_applicant_monthly_salary=Decimal("5000"))
