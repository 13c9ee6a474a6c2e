# This project was developed with assistance from AI tools.
"""Tests for turnaround-time tracking."""

from datetime import datetime, timedelta

import pytest
from leaddb.enums import LeadStatus

from lead_engine.schemas.status import TATState
from lead_engine.services.transition import compute_tat, format_tat_remaining, hours_in_stage

from .factories import NOW


def _started(hours: float):
    return NOW - timedelta(hours=hours)


def test_forty_of_forty_eight_hours_is_warning():
    info = compute_tat(LeadStatus.SANCTIONED, _started(40), now=NOW)
    assert info.is_warning
    assert not info.is_breached
    assert info.state == TATState.WARNING
    assert info.hours_in_stage == 40


def test_fifty_of_forty_eight_hours_is_breached():
    info = compute_tat(LeadStatus.SANCTIONED, _started(50), now=NOW)
    assert info.is_breached
    assert info.state == TATState.BREACHED


def test_early_stage_is_on_track():
    info = compute_tat(LeadStatus.SANCTIONED, _started(10), now=NOW)
    assert not info.is_warning
    assert info.state == TATState.ON_TRACK


def test_exactly_at_expected_is_not_breached():
    info = compute_tat(LeadStatus.SANCTIONED, _started(48), now=NOW)
    assert info.is_warning
    assert not info.is_breached


def test_naive_start_time_treated_as_utc():
    naive = datetime(2026, 3, 1, 12, 0)
    assert hours_in_stage(naive, NOW) == 24


def test_future_start_time_clamps_to_zero():
    assert hours_in_stage(NOW + timedelta(hours=2), NOW) == 0


@pytest.mark.parametrize(
    "status,hours,label",
    [
        (LeadStatus.SANCTIONED, 45, "3h left"),
        (LeadStatus.DOCS_UPLOADING, 0, "2d left"),
        (LeadStatus.SANCTIONED, 53, "5h overdue"),
        (LeadStatus.SANCTIONED, 80, "1d overdue"),
    ],
)
def test_format_tat_remaining(status, hours, label):
    assert format_tat_remaining(status, _started(hours), now=NOW) == label


def test_format_tat_remaining_without_start():
    assert format_tat_remaining(LeadStatus.SANCTIONED, None, now=NOW) == ""


def test_compute_tat_includes_label():
    info = compute_tat(LeadStatus.SANCTIONED, _started(45), now=NOW)
    assert info.remaining_label == "3h left"
