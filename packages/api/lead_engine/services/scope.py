# This project was developed with assistance from AI tools.
"""Shared data scope filtering for lead queries.

Partners see only the leads they referred, students only their own lead,
and admins the full pipeline.
"""

from leaddb import Lead

from ..schemas.auth import DataScope


def apply_data_scope(stmt, scope: DataScope):
    """Apply data scope filtering to a select over ``Lead``."""
    if scope.own_data_only and scope.user_id:
        stmt = stmt.where(Lead.student_id == scope.user_id)
    elif scope.partner_id:
        stmt = stmt.where(Lead.partner_id == scope.partner_id)
    elif not scope.full_pipeline:
        # No recognised scope -- match nothing
        stmt = stmt.where(Lead.id.is_(None))
    return stmt
