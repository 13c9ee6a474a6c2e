# This project was developed with assistance from AI tools.
"""Lender recommendation grouping and the human acceptance contract.

The AI recommender scores lenders; this module only groups its output and
records what a human decides. Nothing here selects or rejects a lender on
its own, and low confidence flags a review without blocking acceptance.
"""

import logging
from datetime import UTC, datetime

from leaddb import Lead, LenderRecommendation
from leaddb.enums import AssignmentMode, LenderGroup, ProbabilityBand
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import UserContext
from ..schemas.error import EngineError, ErrorCode
from ..schemas.recommendation import (
    AcceptanceRecord,
    AcceptanceResult,
    LenderEvaluation,
    RecommendationGroups,
    RecommendationSummary,
    Verdict,
)
from .events import DomainEvent, EventType, emit

logger = logging.getLogger(__name__)

VERDICT_GROUPS: dict[Verdict, LenderGroup] = {
    Verdict.DOABLE: LenderGroup.BEST_FIT,
    Verdict.DOABLE_WITH_CONDITIONS: LenderGroup.ALSO_CONSIDER,
    Verdict.POSSIBLE_BUT_RISKY: LenderGroup.POSSIBLE_BUT_RISKY,
    Verdict.NOT_SUITABLE: LenderGroup.NOT_SUITABLE,
}
_GROUP_VERDICTS = {group: verdict for verdict, group in VERDICT_GROUPS.items()}

HIGH_CONFIDENCE = 85
MEDIUM_CONFIDENCE = 70


def verdict_of(evaluation: LenderEvaluation) -> Verdict:
    """Verdict for one lender. An upstream group tag wins over the score."""
    if evaluation.group is not None:
        return _GROUP_VERDICTS[evaluation.group]
    if evaluation.fit_score >= 80 and not evaluation.risk_flags:
        return Verdict.DOABLE
    if evaluation.fit_score >= 70:
        return Verdict.DOABLE_WITH_CONDITIONS
    if evaluation.fit_score >= 50:
        return Verdict.POSSIBLE_BUT_RISKY
    return Verdict.NOT_SUITABLE


def classify(
    evaluations: list[LenderEvaluation],
) -> tuple[RecommendationGroups, dict[str, Verdict]]:
    """Split evaluations into the four display groups, keeping input order."""
    groups = RecommendationGroups()
    verdicts: dict[str, Verdict] = {}
    for evaluation in evaluations:
        verdict = verdict_of(evaluation)
        verdicts[evaluation.lender_id] = verdict
        getattr(groups, VERDICT_GROUPS[verdict].value).append(evaluation)
    return groups, verdicts


def top_pick(groups: RecommendationGroups) -> LenderEvaluation | None:
    """First best-fit lender, else first also-consider lender, else None."""
    if groups.best_fit:
        return groups.best_fit[0]
    if groups.also_consider:
        return groups.also_consider[0]
    return None


def confidence_band(confidence: int) -> ProbabilityBand:
    if confidence >= HIGH_CONFIDENCE:
        return ProbabilityBand.HIGH
    if confidence >= MEDIUM_CONFIDENCE:
        return ProbabilityBand.MEDIUM
    return ProbabilityBand.LOW


def needs_human_review(confidence: int, threshold: int | None = None) -> bool:
    if threshold is None:
        threshold = settings.REVIEW_CONFIDENCE_THRESHOLD
    return confidence < threshold


def summarize(evaluations: list[LenderEvaluation], confidence: int) -> RecommendationSummary:
    groups, verdicts = classify(evaluations)
    return RecommendationSummary(
        groups=groups,
        verdicts=verdicts,
        top_pick=top_pick(groups),
        confidence_score=confidence,
        confidence_band=confidence_band(confidence),
        needs_human_review=needs_human_review(confidence),
    )


# ---------------------------------------------------------------------------
# Acceptance (pure decisions)
# ---------------------------------------------------------------------------


def accept_top_pick(
    lead_id: str,
    lender_id: str,
    evaluations: list[LenderEvaluation],
    confidence: int,
    actor_id: str,
    *,
    already_accepted: bool = False,
    now: datetime | None = None,
) -> AcceptanceResult:
    """Accept the AI's top pick (mode=ai)."""
    if already_accepted:
        return _already_accepted(lead_id)

    pick = top_pick(classify(evaluations)[0])
    if pick is None or pick.lender_id != lender_id:
        return AcceptanceResult(
            error=EngineError.validation(
                ErrorCode.NOT_TOP_PICK,
                f"Lender {lender_id} is not the current top pick.",
                field="lender_id",
            )
        )
    return _record(lead_id, lender_id, AssignmentMode.AI, confidence, actor_id, now)


def accept_alternative(
    lead_id: str,
    lender_id: str,
    evaluations: list[LenderEvaluation],
    confidence: int,
    actor_id: str,
    *,
    already_accepted: bool = False,
    now: datetime | None = None,
) -> AcceptanceResult:
    """Accept a lender other than the top pick (mode=ai_override)."""
    if already_accepted:
        return _already_accepted(lead_id)

    if lender_id not in {e.lender_id for e in evaluations}:
        return AcceptanceResult(
            error=EngineError.validation(
                ErrorCode.UNKNOWN_LENDER,
                f"Lender {lender_id} is not part of this recommendation.",
                field="lender_id",
            )
        )
    pick = top_pick(classify(evaluations)[0])
    if pick is not None and pick.lender_id == lender_id:
        return AcceptanceResult(
            error=EngineError.validation(
                ErrorCode.IS_TOP_PICK,
                f"Lender {lender_id} is the top pick; accept it as the AI recommendation.",
                field="lender_id",
            )
        )
    return _record(lead_id, lender_id, AssignmentMode.AI_OVERRIDE, confidence, actor_id, now)


def defer() -> None:
    """Postpone the decision. Records nothing."""
    return None


def _already_accepted(lead_id: str) -> AcceptanceResult:
    return AcceptanceResult(
        error=EngineError.validation(
            ErrorCode.ALREADY_ACCEPTED,
            f"A lender has already been accepted for lead {lead_id}.",
        )
    )


def _record(
    lead_id: str,
    lender_id: str,
    mode: AssignmentMode,
    confidence: int,
    actor_id: str,
    now: datetime | None,
) -> AcceptanceResult:
    review = needs_human_review(confidence)
    if review:
        logger.info(
            "Accepting low-confidence recommendation for lead %s (confidence=%d)",
            lead_id,
            confidence,
        )
    return AcceptanceResult(
        record=AcceptanceRecord(
            lead_id=lead_id,
            lender_id=lender_id,
            mode=mode,
            accepted_by=actor_id,
            accepted_at=now or datetime.now(UTC),
            confidence_score=confidence,
            needs_human_review=review,
        )
    )


# ---------------------------------------------------------------------------
# Recommendation store
# ---------------------------------------------------------------------------


async def get_latest_recommendation(
    session: AsyncSession,
    lead_id: str,
) -> LenderRecommendation | None:
    stmt = (
        select(LenderRecommendation)
        .where(LenderRecommendation.lead_id == lead_id)
        .order_by(LenderRecommendation.created_at.desc(), LenderRecommendation.id.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


def evaluations_of(recommendation: LenderRecommendation) -> list[LenderEvaluation]:
    return [LenderEvaluation.model_validate(e) for e in recommendation.evaluations or []]


async def accept_recommendation(
    session: AsyncSession,
    user: UserContext,
    lead_id: str,
    lender_id: str,
    mode: AssignmentMode,
) -> AcceptanceResult | None:
    """Record a human acceptance on the latest recommendation for a lead.

    Returns None if the lead has no recommendation.
    """
    recommendation = await get_latest_recommendation(session, lead_id)
    if recommendation is None:
        return None

    decide = accept_top_pick if mode == AssignmentMode.AI else accept_alternative
    outcome = decide(
        lead_id,
        lender_id,
        evaluations_of(recommendation),
        recommendation.confidence_score,
        user.user_id,
        already_accepted=recommendation.accepted_lender_id is not None,
    )
    if not outcome.ok:
        logger.info("Acceptance rejected for lead %s: %s", lead_id, outcome.error.code.value)
        return outcome

    record = outcome.record
    # Guarded write: a concurrent accept that committed first leaves no row to update
    claimed = await session.execute(
        update(LenderRecommendation)
        .where(
            LenderRecommendation.id == recommendation.id,
            LenderRecommendation.accepted_lender_id.is_(None),
        )
        .values(
            accepted_lender_id=record.lender_id,
            assignment_mode=record.mode,
            accepted_by=record.accepted_by,
            reviewed_at=record.accepted_at,
        )
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount == 0:
        await session.rollback()
        logger.info("Lender for lead %s was accepted concurrently", lead_id)
        return _already_accepted(lead_id)

    await session.execute(
        update(Lead)
        .where(Lead.id == lead_id)
        .values(lender_id=record.lender_id)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    logger.info(
        "Lender %s accepted for lead %s by %s (mode=%s)",
        record.lender_id,
        lead_id,
        user.user_id,
        record.mode.value,
    )

    await emit(
        DomainEvent(
            event_type=EventType.LENDER_ACCEPTED,
            lead_id=lead_id,
            actor_id=user.user_id,
            payload={
                "lender_id": record.lender_id,
                "mode": record.mode.value,
                "confidence_score": record.confidence_score,
                "needs_human_review": record.needs_human_review,
            },
        )
    )
    return outcome


async def defer_recommendation(
    session: AsyncSession,
    user: UserContext,
    lead_id: str,
) -> bool:
    """Defer the decision. Writes nothing; returns False if no recommendation."""
    recommendation = await get_latest_recommendation(session, lead_id)
    if recommendation is None:
        return False

    defer()
    await emit(
        DomainEvent(
            event_type=EventType.LENDER_DEFERRED,
            lead_id=lead_id,
            actor_id=user.user_id,
        )
    )
    return True
