# This project was developed with assistance from AI tools.
"""Eligibility check request/response and scoring configuration schemas."""

from decimal import Decimal

from leaddb.enums import EligibilityCategory, Relationship
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Request bounds (INR)
MIN_LOAN_AMOUNT = Decimal("100000")
MAX_LOAN_AMOUNT = Decimal("10000000")
MIN_MONTHLY_SALARY = Decimal("10000")


class EligibilityCheckRequest(BaseModel):
    """Quick eligibility check inputs."""

    university_id: str | None = None
    loan_amount: Decimal = Field(ge=MIN_LOAN_AMOUNT, le=MAX_LOAN_AMOUNT)
    co_applicant_monthly_salary: Decimal = Field(ge=MIN_MONTHLY_SALARY)
    co_applicant_relationship: Relationship | None = None
    student_credit_score: int | None = Field(default=None, ge=300, le=900)
    co_applicant_credit_score: int | None = Field(default=None, ge=300, le=900)
    lender_code: str | None = Field(
        default=None,
        description="Use this lender's loan bands instead of the defaults.",
    )


class FactorScore(BaseModel):
    """Points earned for one scoring factor."""

    model_config = ConfigDict(frozen=True)

    score: int
    max_score: int
    label: str


class EligibilityBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    university: FactorScore
    co_applicant_salary: FactorScore
    relationship: FactorScore
    credit_bonus: FactorScore


class EligibilityResult(BaseModel):
    """Immutable outcome of one eligibility check."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    result_category: EligibilityCategory
    breakdown: EligibilityBreakdown
    estimated_loan_min: Decimal
    estimated_loan_max: Decimal
    estimated_rate_min: float
    estimated_rate_max: float
    lender_count: int
    config_version: str


# ---------------------------------------------------------------------------
# Scoring configuration
# ---------------------------------------------------------------------------


class LoanBand(BaseModel):
    """Loan fraction and rate range for scores at or above ``min_score``."""

    model_config = ConfigDict(frozen=True)

    min_score: int = Field(ge=0, le=100)
    loan_min_fraction: float = Field(ge=0, le=1)
    loan_max_fraction: float = Field(ge=0, le=1)
    rate_min: float = Field(ge=0)
    rate_max: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_ranges(self) -> "LoanBand":
        if self.loan_min_fraction > self.loan_max_fraction:
            raise ValueError(
                f"band {self.min_score}: loan_min_fraction exceeds loan_max_fraction"
            )
        if self.rate_min > self.rate_max:
            raise ValueError(f"band {self.min_score}: rate_min exceeds rate_max")
        return self


class CategoryThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    eligible: int = Field(default=65, ge=0, le=100)
    conditional: int = Field(default=45, ge=0, le=100)

    @model_validator(mode="after")
    def _check_order(self) -> "CategoryThresholds":
        if self.conditional > self.eligible:
            raise ValueError("conditional threshold exceeds eligible threshold")
        return self


class ScoringConfig(BaseModel):
    """Versioned thresholds and score-to-loan bands.

    Bands must be ordered so that a higher score never yields a smaller loan
    fraction or a higher rate ceiling. Lender overrides obey the same rule.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    thresholds: CategoryThresholds = Field(default_factory=CategoryThresholds)
    loan_bands: list[LoanBand] = Field(min_length=1)
    lender_bands: dict[str, list[LoanBand]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_bands(self) -> "ScoringConfig":
        _check_band_order("loan_bands", self.loan_bands)
        for code, bands in self.lender_bands.items():
            if not bands:
                raise ValueError(f"lender_bands.{code}: at least one band is required")
            _check_band_order(f"lender_bands.{code}", bands)
        return self

    def bands_for(self, lender_code: str | None = None) -> list[LoanBand]:
        """Bands for a lender, falling back to the defaults."""
        if lender_code and lender_code in self.lender_bands:
            return self.lender_bands[lender_code]
        return self.loan_bands


def _check_band_order(name: str, bands: list[LoanBand]) -> None:
    ordered = sorted(bands, key=lambda b: b.min_score, reverse=True)
    if ordered[-1].min_score != 0:
        raise ValueError(f"{name}: the lowest band must start at score 0")
    for higher, lower in zip(ordered, ordered[1:]):
        if higher.min_score == lower.min_score:
            raise ValueError(f"{name}: duplicate band at score {higher.min_score}")
        if (
            higher.loan_min_fraction < lower.loan_min_fraction
            or higher.loan_max_fraction < lower.loan_max_fraction
        ):
            raise ValueError(
                f"{name}: band {higher.min_score} allows a smaller loan than band {lower.min_score}"
            )
        if higher.rate_max > lower.rate_max:
            raise ValueError(
                f"{name}: band {higher.min_score} has a higher rate ceiling than band {lower.min_score}"
            )
