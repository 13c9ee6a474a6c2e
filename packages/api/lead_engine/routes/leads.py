# This project was developed with assistance from AI tools.
"""Lead lifecycle routes: completeness, TAT, history and status transitions."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from leaddb import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConfigurationError, EngineHTTPError
from ..middleware.auth import CurrentUser, require_admin
from ..schemas import Pagination
from ..schemas.completeness import CompletenessResponse
from ..schemas.status import (
    AppliedChange,
    BulkStatusRequest,
    BulkStatusResponse,
    StatusHistoryItem,
    StatusHistoryResponse,
    StatusTransitionRequest,
    TATInfo,
)
from ..services import completeness as completeness_service
from ..services import lead_repository
from ..services.status_registry import resolve_status
from ..services.transition import compute_tat

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")


def _configuration_failure(exc: ConfigurationError) -> EngineHTTPError:
    logger.error("Configuration error: %s", exc.message)
    return EngineHTTPError(exc.to_engine_error())


@router.post(
    "/status/bulk",
    response_model=BulkStatusResponse,
    dependencies=[Depends(require_admin)],
)
async def bulk_update_status(
    body: BulkStatusRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> BulkStatusResponse:
    """Move several leads to one status. Each lead is validated on its own."""
    return await lead_repository.bulk_transition(session, user, body)


@router.get("/{lead_id}/completeness", response_model=CompletenessResponse)
async def get_completeness(
    lead_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CompletenessResponse:
    lead = await lead_repository.get_lead(session, user, lead_id, with_people=True)
    if lead is None:
        raise _not_found()

    result = completeness_service.evaluate(completeness_service.snapshot_from_lead(lead))
    return CompletenessResponse(
        lead_id=lead_id,
        result=result,
        summary=completeness_service.missing_summary(result),
        tier=completeness_service.completeness_tier(result.completeness_score),
        by_section=completeness_service.missing_fields_by_section(result),
    )


@router.get("/{lead_id}/tat", response_model=TATInfo)
async def get_tat(
    lead_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TATInfo:
    lead = await lead_repository.get_lead(session, user, lead_id)
    if lead is None:
        raise _not_found()
    try:
        return compute_tat(resolve_status(lead.status), lead.stage_started_at)
    except ConfigurationError as exc:
        raise _configuration_failure(exc) from exc


@router.get("/{lead_id}/history", response_model=StatusHistoryResponse)
async def get_history(
    lead_id: str,
    user: CurrentUser,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    session: AsyncSession = Depends(get_db),
) -> StatusHistoryResponse:
    found = await lead_repository.list_history(session, user, lead_id, offset=offset, limit=limit)
    if found is None:
        raise _not_found()

    rows, total = found
    return StatusHistoryResponse(
        data=[StatusHistoryItem.model_validate(r) for r in rows],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.post("/{lead_id}/status", response_model=AppliedChange)
async def update_status(
    lead_id: str,
    body: StatusTransitionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> AppliedChange:
    """Apply a status and/or documents-status change.

    422 with a structured code on a rule violation, 409 when another user
    changed the lead first.
    """
    try:
        result = await lead_repository.transition_lead(session, user, lead_id, body)
    except ConfigurationError as exc:
        raise _configuration_failure(exc) from exc

    if result is None:
        raise _not_found()
    if not result.ok:
        raise EngineHTTPError(result.error)
    return result.change
