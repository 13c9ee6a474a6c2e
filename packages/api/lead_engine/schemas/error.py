# This project was developed with assistance from AI tools.
"""Error schemas: RFC 7807 HTTP bodies and structured engine errors.

Engine operations never signal a rule violation by raising. They return an
``EngineError`` whose ``kind`` and ``code`` let callers render the exact
reason without string-matching ``message``.
"""

import enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    STALE_STATE = "stale_state"
    EXTERNAL_SERVICE = "external_service"
    CONFIGURATION = "configuration"


class ErrorCode(str, enum.Enum):
    # Validation (user-correctable)
    NO_CHANGE_REQUESTED = "no_change_requested"
    NOTES_OUT_OF_BOUNDS = "notes_out_of_bounds"
    MISSING_CONDITIONAL_FIELD = "missing_conditional_field"
    ILLEGAL_TRANSITION_FOR_ROLE = "illegal_transition_for_role"
    UNKNOWN_REASON_CODE = "unknown_reason_code"
    NOT_TOP_PICK = "not_top_pick"
    IS_TOP_PICK = "is_top_pick"
    UNKNOWN_LENDER = "unknown_lender"
    ALREADY_ACCEPTED = "already_accepted"
    INVALID_INPUT = "invalid_input"
    # Concurrency
    STALE_STATE = "stale_state"
    # External services
    CLASSIFICATION_UNAVAILABLE = "classification_unavailable"
    # Configuration drift
    UNKNOWN_STATUS = "unknown_status"
    INVALID_SCORING_CONFIG = "invalid_scoring_config"


class EngineError(BaseModel):
    """A structured, renderable engine failure."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    code: ErrorCode
    message: str
    field: str | None = None

    @classmethod
    def validation(
        cls, code: ErrorCode, message: str, field: str | None = None
    ) -> "EngineError":
        return cls(kind=ErrorKind.VALIDATION, code=code, message=message, field=field)

    @classmethod
    def stale_state(cls, lead_id: str) -> "EngineError":
        return cls(
            kind=ErrorKind.STALE_STATE,
            code=ErrorCode.STALE_STATE,
            message=(
                f"Lead {lead_id} was changed by someone else. "
                "Reload the lead and re-apply your change."
            ),
        )


class ErrorResponse(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See https://datatracker.ietf.org/doc/html/rfc7807
    """

    type: str = Field(
        default="about:blank",
        description="URI reference identifying the problem type.",
    )
    title: str = Field(description="Short human-readable summary of the problem.")
    status: int = Field(description="HTTP status code.")
    detail: str = Field(
        default="",
        description="Human-readable explanation specific to this occurrence.",
    )
    request_id: str = Field(
        default="",
        description="Correlation ID for tracing this request in logs.",
    )
    instance: str = Field(
        default="",
        description="URI reference identifying the specific occurrence of the problem.",
    )
    code: str | None = Field(
        default=None,
        description="Machine-readable engine error code, when the failure is a rule violation.",
    )
    field: str | None = Field(
        default=None,
        description="Request field the engine error refers to, if any.",
    )
