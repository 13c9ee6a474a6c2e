# This project was developed with assistance from AI tools.
"""Quick eligibility scoring.

Pure math in ``score``; ``run_eligibility_check`` only gathers directory
data around it. Points (max 100):

- University quality: up to 40
- Co-applicant monthly salary: up to 35
- Co-applicant relationship: up to 15
- Credit bonus: up to 10 (5 each for student and co-applicant)
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from leaddb.enums import EligibilityCategory, Relationship
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.eligibility import (
    EligibilityBreakdown,
    EligibilityCheckRequest,
    EligibilityResult,
    FactorScore,
    LoanBand,
    ScoringConfig,
)
from .directories import count_active_lenders, lookup_university
from .scoring_config import DEFAULT_SCORING_CONFIG, get_scoring_config

logger = logging.getLogger(__name__)

UNIVERSITY_MAX = 40
SALARY_MAX = 35
RELATIONSHIP_MAX = 15
CREDIT_BONUS_MAX = 10

# (minimum university score, grade, points), best first
UNIVERSITY_GRADES: list[tuple[float, str, int]] = [
    (90, "A", 40),
    (70, "B", 32),
    (50, "C", 25),
    (0, "D", 18),
]
# Grade used when the university is unknown or unscored
UNKNOWN_UNIVERSITY_GRADE = ("C", 25)

# (minimum monthly salary INR, points, label), best first
SALARY_BANDS: list[tuple[Decimal, int, str]] = [
    (Decimal("100000"), 35, "Above 1L"),
    (Decimal("75000"), 28, "75K-1L"),
    (Decimal("50000"), 20, "50K-75K"),
    (Decimal("0"), 12, "Below 50K"),
]

RELATIONSHIP_POINTS: dict[Relationship, int] = {
    Relationship.PARENT: 15,
    Relationship.SPOUSE: 12,
    Relationship.SIBLING: 10,
    Relationship.GUARDIAN: 10,
    Relationship.OTHER: 7,
}

# (minimum credit score, bonus points) per applicant, best first
CREDIT_BONUS: list[tuple[int, int]] = [(750, 5), (650, 3)]

_CENT = Decimal("0.01")


def university_points(university_score: float | None) -> tuple[str, int]:
    """Grade and points for a 0-100 university score."""
    if university_score is None:
        return UNKNOWN_UNIVERSITY_GRADE
    for minimum, grade, points in UNIVERSITY_GRADES:
        if university_score >= minimum:
            return grade, points
    return UNIVERSITY_GRADES[-1][1], UNIVERSITY_GRADES[-1][2]


def salary_points(monthly_salary: Decimal) -> tuple[str, int]:
    for minimum, points, label in SALARY_BANDS:
        if monthly_salary >= minimum:
            return label, points
    return SALARY_BANDS[-1][2], SALARY_BANDS[-1][1]


def credit_points(credit_score: int | None) -> int:
    if credit_score is None:
        return 0
    for minimum, bonus in CREDIT_BONUS:
        if credit_score >= minimum:
            return bonus
    return 0


def categorize(score: int, config: ScoringConfig) -> EligibilityCategory:
    if score >= config.thresholds.eligible:
        return EligibilityCategory.ELIGIBLE
    if score >= config.thresholds.conditional:
        return EligibilityCategory.CONDITIONAL
    return EligibilityCategory.UNLIKELY


def band_for(score: int, bands: list[LoanBand]) -> LoanBand:
    """Highest band whose ``min_score`` the score reaches."""
    for band in sorted(bands, key=lambda b: b.min_score, reverse=True):
        if score >= band.min_score:
            return band
    return min(bands, key=lambda b: b.min_score)


def score(
    university_score: float | None,
    co_applicant_monthly_salary: Decimal | int | float,
    requested_amount: Decimal | int | float,
    *,
    relationship: Relationship | None = None,
    student_credit_score: int | None = None,
    co_applicant_credit_score: int | None = None,
    lender_count: int = 0,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    lender_code: str | None = None,
) -> EligibilityResult:
    """Score an applicant and estimate the loan and rate range.

    The quick-check path passes no relationship, which scores as a parent.
    Pure and idempotent.
    """
    salary = Decimal(str(co_applicant_monthly_salary))
    amount = Decimal(str(requested_amount))

    grade, uni_points = university_points(university_score)
    salary_label, sal_points = salary_points(salary)
    rel = relationship or Relationship.PARENT
    rel_points = RELATIONSHIP_POINTS[rel]
    bonus = min(
        credit_points(student_credit_score) + credit_points(co_applicant_credit_score),
        CREDIT_BONUS_MAX,
    )

    total = max(0, min(100, uni_points + sal_points + rel_points + bonus))
    band = band_for(total, config.bands_for(lender_code))

    return EligibilityResult(
        score=total,
        result_category=categorize(total, config),
        breakdown=EligibilityBreakdown(
            university=FactorScore(score=uni_points, max_score=UNIVERSITY_MAX, label=grade),
            co_applicant_salary=FactorScore(
                score=sal_points, max_score=SALARY_MAX, label=salary_label
            ),
            relationship=FactorScore(score=rel_points, max_score=RELATIONSHIP_MAX, label=rel.value),
            credit_bonus=FactorScore(score=bonus, max_score=CREDIT_BONUS_MAX, label="credit"),
        ),
        estimated_loan_min=(amount * Decimal(str(band.loan_min_fraction))).quantize(
            _CENT, rounding=ROUND_HALF_UP
        ),
        estimated_loan_max=(amount * Decimal(str(band.loan_max_fraction))).quantize(
            _CENT, rounding=ROUND_HALF_UP
        ),
        estimated_rate_min=band.rate_min,
        estimated_rate_max=band.rate_max,
        lender_count=lender_count,
        config_version=config.version,
    )


async def run_eligibility_check(
    session: AsyncSession,
    request: EligibilityCheckRequest,
    *,
    config: ScoringConfig | None = None,
) -> EligibilityResult:
    """Look up directory data and score the request.

    Raises ConfigurationError if the scoring file is invalid.
    """
    if config is None:
        config = get_scoring_config()

    university_score = None
    if request.university_id:
        university = await lookup_university(session, request.university_id)
        if university is None:
            logger.info(
                "University %s not found, scoring as unknown", request.university_id
            )
        else:
            university_score = university.score

    lender_count = await count_active_lenders(session)

    result = score(
        university_score,
        request.co_applicant_monthly_salary,
        request.loan_amount,
        relationship=request.co_applicant_relationship,
        student_credit_score=request.student_credit_score,
        co_applicant_credit_score=request.co_applicant_credit_score,
        lender_count=lender_count,
        config=config,
        lender_code=request.lender_code,
    )
    logger.info(
        "Eligibility check: score=%d category=%s config=%s",
        result.score,
        result.result_category.value,
        config.version,
    )
    return result
