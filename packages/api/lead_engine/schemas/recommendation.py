# This project was developed with assistance from AI tools.
"""Lender recommendation schemas."""

import enum
from datetime import datetime

from leaddb.enums import AssignmentMode, LenderGroup, ProbabilityBand
from pydantic import BaseModel, ConfigDict, Field

from .error import EngineError


class Verdict(str, enum.Enum):
    DOABLE = "Doable"
    DOABLE_WITH_CONDITIONS = "Doable with conditions"
    POSSIBLE_BUT_RISKY = "Possible but risky"
    NOT_SUITABLE = "Not suitable"


class LenderEvaluation(BaseModel):
    """One lender as scored by the AI recommender. ``fit_score`` is never altered."""

    model_config = ConfigDict(frozen=True)

    lender_id: str
    lender_name: str = ""
    fit_score: int = Field(ge=0, le=100)
    probability_band: ProbabilityBand
    risk_flags: list[str] = Field(default_factory=list)
    group: LenderGroup | None = None
    justification: str = ""


class RecommendationGroups(BaseModel):
    best_fit: list[LenderEvaluation] = Field(default_factory=list)
    also_consider: list[LenderEvaluation] = Field(default_factory=list)
    possible_but_risky: list[LenderEvaluation] = Field(default_factory=list)
    not_suitable: list[LenderEvaluation] = Field(default_factory=list)


class ClassifyRequest(BaseModel):
    evaluations: list[LenderEvaluation]
    confidence_score: int = Field(ge=0, le=100)


class RecommendationSummary(BaseModel):
    """Grouped evaluations plus the human-review signals shown beside them."""

    groups: RecommendationGroups
    verdicts: dict[str, Verdict]
    top_pick: LenderEvaluation | None = None
    confidence_score: int
    confidence_band: ProbabilityBand
    needs_human_review: bool


class AcceptRequest(BaseModel):
    lender_id: str
    mode: AssignmentMode = AssignmentMode.AI


class AcceptanceRecord(BaseModel):
    """The human decision on a recommendation. Only accept actions create one."""

    model_config = ConfigDict(frozen=True)

    lead_id: str
    lender_id: str
    mode: AssignmentMode
    accepted_by: str
    accepted_at: datetime
    confidence_score: int
    needs_human_review: bool


class AcceptanceResult(BaseModel):
    record: AcceptanceRecord | None = None
    error: EngineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DeferResponse(BaseModel):
    lead_id: str
    deferred: bool = True
