# This project was developed with assistance from AI tools.
"""Multi-step lead form state."""

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FormStep(str, enum.Enum):
    STUDENT = "student"
    STUDY = "study"
    CO_APPLICANT = "co_applicant"
    REVIEW = "review"


class FormState(BaseModel):
    """Immutable snapshot of the form; reducers return a new one."""

    model_config = ConfigDict(frozen=True)

    step: FormStep = FormStep.STUDENT
    data: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)


class Draft(BaseModel):
    """A saved form state, scoped to one applicant identity."""

    model_config = ConfigDict(frozen=True)

    scope_key: str
    state: FormState
    saved_at: datetime
