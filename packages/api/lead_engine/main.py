# This project was developed with assistance from AI tools.
"""FastAPI application for the lead pipeline engine.

Every error leaves as an RFC 7807 problem document. Engine rule failures
also carry their machine-readable ``code`` and offending ``field`` so the
UI can render the exact reason.
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import EngineHTTPError
from .routes import documents, eligibility, health, leads, recommendations, statuses
from .schemas.error import ErrorCode, ErrorResponse
from .services.scoring_config import get_scoring_config

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # A broken scoring file should stop startup, not the first eligibility check
    scoring = get_scoring_config()
    logger.info("%s starting with scoring config %s", settings.APP_NAME, scoring.version)
    yield
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title="Lead Pipeline API",
    description="Lead lifecycle and eligibility rules engine for education loans",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Reuse the caller's request id, or mint one, and echo it back."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


_PROBLEM_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get(
        REQUEST_ID_HEADER, str(uuid.uuid4())
    )


def problem_response(
    request: Request,
    status_code: int,
    detail: str,
    *,
    code: str | None = None,
    field: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render one RFC 7807 problem document."""
    body = ErrorResponse(
        type="about:blank",
        title=_PROBLEM_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=_request_id(request),
        code=code,
        field=field,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(EngineHTTPError)
async def engine_error_handler(request: Request, exc: EngineHTTPError):
    error = exc.error
    return problem_response(
        request, exc.status_code, error.message, code=error.code.value, field=error.field
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return problem_response(
        request, exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query params share the engine's invalid_input code."""
    errors = exc.errors()
    first_field = None
    if errors:
        loc = [str(part) for part in errors[0].get("loc", ()) if part not in ("body", "query")]
        first_field = ".".join(loc) or None
    return problem_response(
        request, 422, str(errors), code=ErrorCode.INVALID_INPUT.value, field=first_field
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception (request_id=%s)", _request_id(request))
    return problem_response(request, 500, "An unexpected error occurred.")


for router, prefix, tag in [
    (health.router, "/health", "health"),
    (statuses.router, "/api/statuses", "statuses"),
    (leads.router, "/api/leads", "leads"),
    (eligibility.router, "/api/eligibility", "eligibility"),
    (recommendations.router, "/api", "recommendations"),
    (documents.router, "/api", "documents"),
]:
    app.include_router(router, prefix=prefix, tags=[tag])


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Lead Pipeline API", "docs": "/docs"}
