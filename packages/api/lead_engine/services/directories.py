# This project was developed with assistance from AI tools.
"""University and lender directory lookups."""

import logging

from leaddb import Lender, University
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def lookup_university(session: AsyncSession, university_id: str) -> University | None:
    """Return the university, or None if not found."""
    result = await session.execute(select(University).where(University.id == university_id))
    return result.scalar_one_or_none()


async def list_active_lenders(session: AsyncSession) -> list[Lender]:
    """Active lenders, preferred first."""
    stmt = (
        select(Lender)
        .where(Lender.is_active.is_(True))
        .order_by(Lender.preferred_rank.asc().nulls_last(), Lender.name)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_active_lenders(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count()).select_from(Lender).where(Lender.is_active.is_(True))
    )
    return result.scalar() or 0
