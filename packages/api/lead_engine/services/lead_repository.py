# This project was developed with assistance from AI tools.
"""Lead persistence with optimistic concurrency.

A transition is written as one unit: a version-guarded UPDATE of the lead
plus an INSERT of its history row. If another writer bumped the version
first, nothing is written and the caller gets a stale-state error to
reload and retry by hand.
"""

import logging

from leaddb import Lead, LeadStatusHistory
from leaddb.enums import PropertyVerificationStatus
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from ..schemas.error import EngineError, ErrorCode
from ..schemas.status import (
    AppliedChange,
    BulkStatusItem,
    BulkStatusRequest,
    BulkStatusResponse,
    StatusTransitionRequest,
    StatusTransitionResult,
)
from .events import DomainEvent, EventType, emit
from .scope import apply_data_scope
from .status_registry import resolve_status
from .transition import validate, validate_bulk

logger = logging.getLogger(__name__)

# Lead columns a transition may write besides the statuses
_COMPANION_COLUMNS = {
    "lan_number",
    "sanction_amount",
    "sanction_date",
    "pd_call_scheduled_at",
    "pf_amount",
    "pf_paid_at",
    "property_verification_status",
}


async def get_lead(
    session: AsyncSession,
    user: UserContext,
    lead_id: str,
    *,
    with_people: bool = False,
) -> Lead | None:
    """Return a lead if visible to the current user.

    Returns None (which the route maps to 404) for out-of-scope leads
    rather than 403, to avoid leaking existence of resources.
    """
    stmt = select(Lead).where(Lead.id == lead_id)
    if with_people:
        stmt = stmt.options(selectinload(Lead.student), selectinload(Lead.co_applicant))
    stmt = apply_data_scope(stmt, user.data_scope)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_leads(
    session: AsyncSession,
    user: UserContext,
    lead_ids: list[str],
) -> list[Lead]:
    stmt = apply_data_scope(select(Lead).where(Lead.id.in_(lead_ids)), user.data_scope)
    result = await session.execute(stmt)
    return list(result.scalars().all())


def _companion_values(updates: dict[str, object]) -> dict[str, object]:
    values = {k: v for k, v in updates.items() if k in _COMPANION_COLUMNS}
    if "property_verification_status" in values:
        values["property_verification_status"] = PropertyVerificationStatus(
            values["property_verification_status"]
        )
    return values


async def apply_transition(
    session: AsyncSession,
    change: AppliedChange,
    expected_version: int,
) -> EngineError | None:
    """Write an accepted change and its history row atomically.

    Returns None on success, or a stale-state error when the lead's version
    no longer matches ``expected_version``. Never retries.
    """
    values: dict[str, object] = {
        "status": change.status.value,
        "documents_status": change.documents_status,
        "version": Lead.version + 1,
        **_companion_values(change.companion_updates),
    }
    if change.stage_started_at is not None:
        values["stage_started_at"] = change.stage_started_at

    stmt = (
        update(Lead)
        .where(Lead.id == change.lead_id, Lead.version == expected_version)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        await session.rollback()
        logger.info(
            "Stale transition for lead %s (expected version %d)",
            change.lead_id,
            expected_version,
        )
        return EngineError.stale_state(change.lead_id)

    entry = change.history_entry
    session.add(
        LeadStatusHistory(
            lead_id=entry.lead_id,
            old_status=entry.old_status.value,
            new_status=entry.new_status.value,
            old_documents_status=entry.old_documents_status.value,
            new_documents_status=entry.new_documents_status.value,
            reason_code=entry.reason_code,
            notes=entry.notes,
            changed_by=entry.changed_by,
            created_at=entry.timestamp,
        )
    )
    await session.commit()
    return None


async def _after_transition(user: UserContext, change: AppliedChange) -> None:
    if not change.status_changed:
        return
    entry = change.history_entry
    logger.info(
        "Lead %s moved %s -> %s by %s",
        change.lead_id,
        entry.old_status.value,
        entry.new_status.value,
        user.user_id,
    )
    await emit(
        DomainEvent(
            event_type=EventType.STATUS_CHANGED,
            lead_id=change.lead_id,
            actor_id=user.user_id,
            payload={
                "old_status": entry.old_status.value,
                "new_status": entry.new_status.value,
                "reason_code": entry.reason_code,
            },
        )
    )


async def transition_lead(
    session: AsyncSession,
    user: UserContext,
    lead_id: str,
    request: StatusTransitionRequest,
) -> StatusTransitionResult | None:
    """Validate and apply a status change for one lead.

    Returns None if the lead is not found or not visible to the user.
    Raises ConfigurationError if the lead carries an unknown status.
    """
    lead = await get_lead(session, user, lead_id)
    if lead is None:
        return None

    request = request.model_copy(update={"lead_id": lead_id})
    result = validate(
        request,
        user.role,
        user.user_id,
        resolve_status(lead.status),
        lead.documents_status,
    )
    if not result.ok:
        return result

    error = await apply_transition(session, result.change, lead.version)
    if error:
        return StatusTransitionResult.failure(error)

    await _after_transition(user, result.change)
    return result


async def bulk_transition(
    session: AsyncSession,
    user: UserContext,
    body: BulkStatusRequest,
) -> BulkStatusResponse:
    """Move several leads to one status. Each lead succeeds or fails alone."""
    leads = await get_leads(session, user, body.lead_ids)
    by_id = {lead.id: lead for lead in leads}
    versions = {lead.id: lead.version for lead in leads}

    outcomes = validate_bulk(
        leads,
        body.status,
        user.role,
        user.user_id,
        reason_code=body.reason_code,
        notes=body.notes,
    )

    items: list[BulkStatusItem] = []
    for lead_id in body.lead_ids:
        if lead_id not in by_id:
            items.append(
                BulkStatusItem(
                    lead_id=lead_id,
                    ok=False,
                    error=EngineError.validation(
                        ErrorCode.INVALID_INPUT, f"Lead {lead_id} not found.", field="leadIds"
                    ),
                )
            )
            continue

        outcome = outcomes[lead_id]
        if not outcome.ok:
            items.append(BulkStatusItem(lead_id=lead_id, ok=False, error=outcome.error))
            continue

        error = await apply_transition(session, outcome.change, versions[lead_id])
        if error:
            items.append(BulkStatusItem(lead_id=lead_id, ok=False, error=error))
            continue

        await _after_transition(user, outcome.change)
        items.append(BulkStatusItem(lead_id=lead_id, ok=True))

    succeeded = sum(1 for item in items if item.ok)
    return BulkStatusResponse(results=items, succeeded=succeeded, failed=len(items) - succeeded)


async def list_history(
    session: AsyncSession,
    user: UserContext,
    lead_id: str,
    *,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[LeadStatusHistory], int] | None:
    """Return a lead's status history, oldest first. None if lead not visible."""
    lead = await get_lead(session, user, lead_id)
    if lead is None:
        return None

    total = (
        await session.execute(
            select(func.count())
            .select_from(LeadStatusHistory)
            .where(LeadStatusHistory.lead_id == lead_id)
        )
    ).scalar() or 0

    stmt = (
        select(LeadStatusHistory)
        .where(LeadStatusHistory.lead_id == lead_id)
        .order_by(LeadStatusHistory.id)
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total
