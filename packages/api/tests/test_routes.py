# This project was developed with assistance from AI tools.
"""HTTP-level tests for the API routes and RFC 7807 error rendering."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from leaddb import get_db
from leaddb.enums import AssignmentMode, LeadStatus, UserRole

from lead_engine.core.errors import ConfigurationError
from lead_engine.main import app
from lead_engine.middleware.auth import get_current_user
from lead_engine.schemas.error import EngineError, ErrorCode
from lead_engine.schemas.recommendation import AcceptanceResult
from lead_engine.schemas.status import StatusTransitionResult

from .factories import make_mock_lead, make_user

GOOD_NOTES = "Lender confirmed sanction by email"


@pytest.fixture
def client_for():
    """Return a factory that builds a TestClient acting as the given role."""

    async def _fake_db():
        yield MagicMock()

    def _make(role: UserRole = UserRole.ADMIN) -> TestClient:
        user = make_user(role)
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_db] = _fake_db
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Health and registry
# ---------------------------------------------------------------------------


def test_health(client_for):
    resp = client_for().get("/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_list_statuses_hides_legacy(client_for):
    resp = client_for(UserRole.STUDENT).get("/api/statuses")
    assert resp.status_code == 200
    values = [s["status"] for s in resp.json()]
    assert LeadStatus.LEAD_INTAKE.value in values
    assert LeadStatus.APPROVED.value not in values


def test_request_id_is_echoed(client_for):
    resp = client_for().get("/api/statuses/nope/next", headers={"X-Request-ID": "req-123"})
    assert resp.headers["x-request-id"] == "req-123"
    assert resp.json()["request_id"] == "req-123"


def test_next_statuses_for_unknown_status_is_404(client_for):
    resp = client_for().get("/api/statuses/not_a_status/next")
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] == 404
    assert body["title"] == "Not Found"


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


@patch("lead_engine.services.lead_repository.transition_lead", new_callable=AsyncMock)
def test_transition_missing_lead_is_404(mock_transition, client_for):
    mock_transition.return_value = None
    resp = client_for().post(
        "/api/leads/nope/status", json={"status": "first_contact", "notes": GOOD_NOTES}
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Lead not found"


@patch("lead_engine.services.lead_repository.transition_lead", new_callable=AsyncMock)
def test_transition_rule_violation_is_422_with_code(mock_transition, client_for):
    mock_transition.return_value = StatusTransitionResult.failure(
        EngineError.validation(ErrorCode.NOTES_OUT_OF_BOUNDS, "Admin notes are required.", "notes")
    )
    resp = client_for().post("/api/leads/lead-1/status", json={"status": "first_contact"})

    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "notes_out_of_bounds"
    assert body["field"] == "notes"
    assert body["title"] == "Unprocessable Entity"


@patch("lead_engine.services.lead_repository.transition_lead", new_callable=AsyncMock)
def test_transition_stale_version_is_409(mock_transition, client_for):
    mock_transition.return_value = StatusTransitionResult.failure(EngineError.stale_state("lead-1"))
    resp = client_for().post(
        "/api/leads/lead-1/status", json={"status": "first_contact", "notes": GOOD_NOTES}
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "stale_state"


@patch("lead_engine.services.lead_repository.get_lead", new_callable=AsyncMock)
def test_transition_unknown_persisted_status_is_500(mock_get_lead, client_for):
    mock_get_lead.return_value = make_mock_lead(status="archived")
    resp = client_for().post(
        "/api/leads/lead-1/status", json={"status": "first_contact", "notes": GOOD_NOTES}
    )
    assert resp.status_code == 500
    assert resp.json()["code"] == "unknown_status"


@patch("lead_engine.services.lead_repository.get_lead", new_callable=AsyncMock)
def test_tat_for_unknown_persisted_status_is_500(mock_get_lead, client_for):
    mock_get_lead.return_value = make_mock_lead(status="archived")
    resp = client_for().get("/api/leads/lead-1/tat")
    assert resp.status_code == 500
    assert resp.json()["code"] == "unknown_status"



def test_transition_body_with_bad_enum_is_422(client_for):
    resp = client_for().post("/api/leads/lead-1/status", json={"status": "bogus"})
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_input"
    assert resp.json()["field"] == "status"


def test_bulk_forbidden_for_partner(client_for):
    resp = client_for(UserRole.PARTNER).post(
        "/api/leads/status/bulk",
        json={"leadIds": ["a"], "status": "withdrawn", "notes": GOOD_NOTES},
    )
    assert resp.status_code == 403


@patch("lead_engine.services.lead_repository.get_lead", new_callable=AsyncMock)
def test_tat_for_lead(mock_get_lead, client_for):
    mock_get_lead.return_value = make_mock_lead()
    resp = client_for().get("/api/leads/lead-1/tat")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "lead_intake"
    assert body["state"] in {"on_track", "warning", "breached"}


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


def test_eligibility_out_of_bounds_amount_is_422(client_for):
    resp = client_for().post(
        "/api/eligibility/check",
        json={"loan_amount": "10", "co_applicant_monthly_salary": "50000"},
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_input"


@patch("lead_engine.routes.eligibility.run_eligibility_check", new_callable=AsyncMock)
def test_eligibility_broken_config_is_500(mock_check, client_for):
    mock_check.side_effect = ConfigurationError(
        ErrorCode.INVALID_SCORING_CONFIG, "loan_bands must not be empty"
    )
    resp = client_for().post(
        "/api/eligibility/check",
        json={"loan_amount": "2500000", "co_applicant_monthly_salary": "80000"},
    )
    assert resp.status_code == 500
    assert resp.json()["code"] == "invalid_scoring_config"


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


def test_classify_recommendations(client_for):
    evaluations = [
        {"lender_id": "l-1", "fit_score": 88, "probability_band": "high"},
        {"lender_id": "l-2", "fit_score": 30, "probability_band": "low"},
    ]
    resp = client_for().post(
        "/api/recommendations/classify",
        json={"evaluations": evaluations, "confidence_score": 80},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["top_pick"]["lender_id"] == "l-1"
    assert body["needs_human_review"] is False


@patch("lead_engine.services.recommendation.accept_recommendation", new_callable=AsyncMock)
@patch("lead_engine.services.lead_repository.get_lead", new_callable=AsyncMock)
def test_accept_non_top_pick_is_422(mock_get_lead, mock_accept, client_for):
    mock_get_lead.return_value = make_mock_lead()
    mock_accept.return_value = AcceptanceResult(
        error=EngineError.validation(ErrorCode.NOT_TOP_PICK, "Lender l-2 is not the top pick.")
    )
    resp = client_for().post(
        "/api/leads/lead-1/recommendation/accept",
        json={"lender_id": "l-2", "mode": AssignmentMode.AI.value},
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "not_top_pick"


@patch("lead_engine.services.recommendation.accept_recommendation", new_callable=AsyncMock)
@patch("lead_engine.services.lead_repository.get_lead", new_callable=AsyncMock)
def test_accept_without_recommendation_is_404(mock_get_lead, mock_accept, client_for):
    mock_get_lead.return_value = make_mock_lead()
    mock_accept.return_value = None
    resp = client_for().post("/api/leads/lead-1/recommendation/accept", json={"lender_id": "l-1"})
    assert resp.status_code == 404


def test_accept_forbidden_for_student(client_for):
    resp = client_for(UserRole.STUDENT).post(
        "/api/leads/lead-1/recommendation/accept", json={"lender_id": "l-1"}
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Document classification
# ---------------------------------------------------------------------------


def test_pdf_upload_needs_manual_type(client_for):
    resp = client_for(UserRole.PARTNER).post(
        "/api/documents/classify",
        files=[
            ("files", ("offer.pdf", b"%PDF-1.4 test", "application/pdf")),
            ("files", ("notes.txt", b"hello", "text/plain")),
        ],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [f["state"] for f in body] == ["needs_manual_type", "needs_manual_type"]
    assert body[0]["filename"] == "offer.pdf"
    assert body[1]["result"]["red_flags"] == ["unsupported_format"]


def test_overlong_lan_number_is_422(client_for):
    resp = client_for().post(
        "/api/leads/lead-1/status",
        json={
            "status": "logged_with_lender",
            "notes": GOOD_NOTES,
            "additionalData": {"lanNumber": "L" * 101},
        },
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_input"
    assert resp.json()["field"] == "additionalData.lanNumber"
