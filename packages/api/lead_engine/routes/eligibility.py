# This project was developed with assistance from AI tools.
"""Quick eligibility check route."""

import logging

from fastapi import APIRouter, Depends
from leaddb import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConfigurationError, EngineHTTPError
from ..middleware.auth import CurrentUser
from ..schemas.eligibility import EligibilityCheckRequest, EligibilityResult
from ..services.eligibility import run_eligibility_check

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/check", response_model=EligibilityResult)
async def check_eligibility(
    body: EligibilityCheckRequest,
    _user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> EligibilityResult:
    """Score a prospective loan. Advisory only; nothing is persisted."""
    try:
        return await run_eligibility_check(session, body)
    except ConfigurationError as exc:
        logger.error("Eligibility scoring config unusable: %s", exc.message)
        raise EngineHTTPError(exc.to_engine_error()) from exc
