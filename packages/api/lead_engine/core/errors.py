# This project was developed with assistance from AI tools.
"""Exceptions for faults the engine cannot reason about, and the HTTP bridge."""

from fastapi import HTTPException, status

from ..schemas.error import EngineError, ErrorCode, ErrorKind


class ConfigurationError(RuntimeError):
    """Raised on data/schema drift: unknown persisted status, invalid scoring config.

    Callers at the engine boundary convert it with ``to_engine_error()`` so the
    reason code survives.
    """

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_engine_error(self) -> EngineError:
        return EngineError(kind=ErrorKind.CONFIGURATION, code=self.code, message=self.message)


_KIND_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.STALE_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.EXTERNAL_SERVICE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class EngineHTTPError(HTTPException):
    """HTTPException carrying a structured engine error.

    The app's handler renders it as RFC 7807 with ``code`` and ``field`` set.
    """

    def __init__(self, error: EngineError):
        super().__init__(status_code=_KIND_STATUS[error.kind], detail=error.message)
        self.error = error
