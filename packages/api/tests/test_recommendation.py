# This project was developed with assistance from AI tools.
"""Tests for lender recommendation grouping and acceptance."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from leaddb.enums import AssignmentMode, LenderGroup, ProbabilityBand

from lead_engine.schemas.error import ErrorCode
from lead_engine.schemas.recommendation import Verdict
from lead_engine.services.recommendation import (
    accept_alternative,
    accept_recommendation,
    accept_top_pick,
    classify,
    confidence_band,
    defer_recommendation,
    needs_human_review,
    summarize,
    top_pick,
    verdict_of,
)

from .factories import NOW, make_evaluation, make_mock_session, make_user

# ---------------------------------------------------------------------------
# Verdicts and grouping
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "fit,flags,verdict",
    [
        (85, [], Verdict.DOABLE),
        (80, [], Verdict.DOABLE),
        (85, ["low_income"], Verdict.DOABLE_WITH_CONDITIONS),
        (72, ["low_income"], Verdict.DOABLE_WITH_CONDITIONS),
        (70, [], Verdict.DOABLE_WITH_CONDITIONS),
        (55, [], Verdict.POSSIBLE_BUT_RISKY),
        (50, ["collateral"], Verdict.POSSIBLE_BUT_RISKY),
        (30, [], Verdict.NOT_SUITABLE),
    ],
)
def test_verdict_from_score(fit, flags, verdict):
    assert verdict_of(make_evaluation(fit_score=fit, risk_flags=flags)) == verdict


def test_upstream_group_overrides_score():
    evaluation = make_evaluation(fit_score=30, group=LenderGroup.BEST_FIT)
    assert verdict_of(evaluation) == Verdict.DOABLE


def test_classify_keeps_input_order_and_scores():
    evals = [
        make_evaluation("a", 60),
        make_evaluation("b", 90),
        make_evaluation("c", 95),
        make_evaluation("d", 20),
    ]
    groups, verdicts = classify(evals)
    assert [e.lender_id for e in groups.best_fit] == ["b", "c"]
    assert [e.lender_id for e in groups.possible_but_risky] == ["a"]
    assert [e.lender_id for e in groups.not_suitable] == ["d"]
    assert verdicts["d"] == Verdict.NOT_SUITABLE
    assert [e.fit_score for e in groups.best_fit] == [90, 95]


def test_top_pick_prefers_best_fit_then_also_consider():
    groups, _ = classify([make_evaluation("a", 72), make_evaluation("b", 88)])
    assert top_pick(groups).lender_id == "b"

    groups, _ = classify([make_evaluation("a", 72), make_evaluation("b", 40)])
    assert top_pick(groups).lender_id == "a"

    groups, _ = classify([make_evaluation("a", 40)])
    assert top_pick(groups) is None


@pytest.mark.parametrize(
    "confidence,band",
    [(90, ProbabilityBand.HIGH), (85, ProbabilityBand.HIGH), (70, ProbabilityBand.MEDIUM),
     (69, ProbabilityBand.LOW)],
)
def test_confidence_band(confidence, band):
    assert confidence_band(confidence) == band


def test_needs_human_review_threshold():
    assert needs_human_review(60)
    assert not needs_human_review(70)
    assert needs_human_review(80, threshold=90)


def test_summarize():
    summary = summarize([make_evaluation("a", 85), make_evaluation("b", 40)], 60)
    assert summary.top_pick.lender_id == "a"
    assert summary.needs_human_review
    assert summary.confidence_band == ProbabilityBand.LOW


# ---------------------------------------------------------------------------
# Acceptance decisions
# ---------------------------------------------------------------------------

EVALS = [make_evaluation("a", 90), make_evaluation("b", 75), make_evaluation("c", 40)]


def test_accept_top_pick_records_ai_mode():
    result = accept_top_pick("lead-1", "a", EVALS, 88, "admin-1", now=NOW)
    assert result.ok
    assert result.record.mode == AssignmentMode.AI
    assert result.record.accepted_at == NOW
    assert not result.record.needs_human_review


def test_low_confidence_still_accepts_and_flags_review():
    result = accept_top_pick("lead-1", "a", EVALS, 60, "admin-1")
    assert result.ok
    assert result.record.needs_human_review


def test_accept_top_pick_rejects_other_lender():
    result = accept_top_pick("lead-1", "b", EVALS, 88, "admin-1")
    assert result.error.code == ErrorCode.NOT_TOP_PICK


def test_accept_alternative_records_override():
    result = accept_alternative("lead-1", "c", EVALS, 88, "admin-1")
    assert result.ok
    assert result.record.mode == AssignmentMode.AI_OVERRIDE


def test_accept_alternative_rejects_top_pick_and_unknown():
    assert accept_alternative("lead-1", "a", EVALS, 88, "x").error.code == ErrorCode.IS_TOP_PICK
    assert accept_alternative("lead-1", "zz", EVALS, 88, "x").error.code == ErrorCode.UNKNOWN_LENDER


def test_second_acceptance_rejected():
    result = accept_top_pick("lead-1", "a", EVALS, 88, "admin-1", already_accepted=True)
    assert result.error.code == ErrorCode.ALREADY_ACCEPTED


# ---------------------------------------------------------------------------
# Recommendation store
# ---------------------------------------------------------------------------


def _stored_recommendation(accepted_lender_id=None):
    return SimpleNamespace(
        id=1,
        lead_id="lead-1",
        evaluations=[e.model_dump(mode="json") for e in EVALS],
        confidence_score=88,
        accepted_lender_id=accepted_lender_id,
        assignment_mode=None,
        accepted_by=None,
        reviewed_at=None,
    )


@patch("lead_engine.services.recommendation.emit", new_callable=AsyncMock)
async def test_accept_recommendation_persists_and_emits(mock_emit):
    session = make_mock_session(scalar_one_or_none=_stored_recommendation(), rowcount=1)

    outcome = await accept_recommendation(
        session, make_user(), "lead-1", "a", AssignmentMode.AI
    )

    assert outcome.ok
    claim, assign = (c.args[0] for c in session.execute.call_args_list[1:])
    claim_sql = str(claim.compile())
    assert "lender_recommendations.accepted_lender_id IS NULL" in claim_sql
    params = claim.compile().params
    assert params["accepted_lender_id"] == "a"
    assert params["assignment_mode"] == AssignmentMode.AI
    assert params["accepted_by"] == "admin-user"
    assert assign.compile().params["lender_id"] == "a"
    session.commit.assert_awaited_once()
    assert mock_emit.await_args.args[0].event_type.value == "lender_accepted"


@patch("lead_engine.services.recommendation.emit", new_callable=AsyncMock)
async def test_concurrent_acceptance_loses_cleanly(mock_emit):
    # Loaded as unaccepted, but another admin's accept committed first
    session = make_mock_session(scalar_one_or_none=_stored_recommendation(), rowcount=0)

    outcome = await accept_recommendation(
        session, make_user(), "lead-1", "a", AssignmentMode.AI
    )

    assert outcome.error.code == ErrorCode.ALREADY_ACCEPTED
    # lookup plus the guarded claim; the lead is never touched
    assert session.execute.await_count == 2
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()
    mock_emit.assert_not_awaited()


@patch("lead_engine.services.recommendation.emit", new_callable=AsyncMock)
async def test_rejected_acceptance_writes_nothing(mock_emit):
    recommendation = _stored_recommendation(accepted_lender_id="b")
    session = make_mock_session(scalar_one_or_none=recommendation)

    outcome = await accept_recommendation(
        session, make_user(), "lead-1", "a", AssignmentMode.AI
    )

    assert outcome.error.code == ErrorCode.ALREADY_ACCEPTED
    assert recommendation.accepted_lender_id == "b"
    session.commit.assert_not_awaited()
    mock_emit.assert_not_awaited()


async def test_accept_without_recommendation_returns_none():
    session = make_mock_session(scalar_one_or_none=None)
    assert await accept_recommendation(session, make_user(), "lead-1", "a", AssignmentMode.AI) is None


@patch("lead_engine.services.recommendation.emit", new_callable=AsyncMock)
async def test_defer_writes_nothing(mock_emit):
    recommendation = _stored_recommendation()
    session = make_mock_session(scalar_one_or_none=recommendation)

    assert await defer_recommendation(session, make_user(), "lead-1")

    assert recommendation.accepted_lender_id is None
    session.commit.assert_not_awaited()
    assert mock_emit.await_args.args[0].event_type.value == "lender_deferred"
