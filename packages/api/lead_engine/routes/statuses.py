# This project was developed with assistance from AI tools.
"""Status registry routes (read-only)."""

from fastapi import APIRouter, HTTPException, status
from leaddb.enums import LeadStatus

from ..middleware.auth import CurrentUser
from ..schemas.status import StatusConfig
from ..services.status_registry import get_status_config, listed_statuses, next_statuses

router = APIRouter()


@router.get("", response_model=list[StatusConfig])
async def list_statuses(_user: CurrentUser) -> list[StatusConfig]:
    """UI-facing statuses in pipeline order. Legacy statuses are omitted."""
    return listed_statuses()


@router.get("/{status_value}/next", response_model=list[StatusConfig])
async def list_next_statuses(status_value: str, _user: CurrentUser) -> list[StatusConfig]:
    """Statuses a non-admin may move a lead to from ``status_value``."""
    try:
        current = LeadStatus(status_value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown status: {status_value}",
        ) from exc
    return [get_status_config(s) for s in next_statuses(current)]
