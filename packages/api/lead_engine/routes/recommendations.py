# This project was developed with assistance from AI tools.
"""Lender recommendation routes.

Grouping is read-only. Only the accept route ever records a lender choice,
and only for an authenticated admin.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from leaddb import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import EngineHTTPError
from ..middleware.auth import CurrentUser, require_admin
from ..schemas.auth import UserContext
from ..schemas.recommendation import (
    AcceptanceRecord,
    AcceptRequest,
    ClassifyRequest,
    DeferResponse,
    RecommendationSummary,
)
from ..services import lead_repository
from ..services import recommendation as recommendation_service

router = APIRouter()


@router.post("/recommendations/classify", response_model=RecommendationSummary)
async def classify_recommendations(
    body: ClassifyRequest,
    _user: CurrentUser,
) -> RecommendationSummary:
    """Group lender evaluations into display buckets and pick the top lender."""
    return recommendation_service.summarize(body.evaluations, body.confidence_score)


async def _require_lead(session: AsyncSession, user: UserContext, lead_id: str) -> None:
    if await lead_repository.get_lead(session, user, lead_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")


@router.post(
    "/leads/{lead_id}/recommendation/accept",
    response_model=AcceptanceRecord,
    dependencies=[Depends(require_admin)],
)
async def accept_recommendation(
    lead_id: str,
    body: AcceptRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> AcceptanceRecord:
    await _require_lead(session, user, lead_id)
    outcome = await recommendation_service.accept_recommendation(
        session, user, lead_id, body.lender_id, body.mode
    )
    if outcome is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No recommendation found for this lead",
        )
    if not outcome.ok:
        raise EngineHTTPError(outcome.error)
    return outcome.record


@router.post(
    "/leads/{lead_id}/recommendation/defer",
    response_model=DeferResponse,
    dependencies=[Depends(require_admin)],
)
async def defer_recommendation(
    lead_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DeferResponse:
    await _require_lead(session, user, lead_id)
    if not await recommendation_service.defer_recommendation(session, user, lead_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No recommendation found for this lead",
        )
    return DeferResponse(lead_id=lead_id)
