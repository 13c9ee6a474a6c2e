# This project was developed with assistance from AI tools.
"""Tests for the scoring configuration loader."""

import os
from pathlib import Path

import pytest

from lead_engine.core.errors import ConfigurationError
from lead_engine.schemas.error import ErrorCode
from lead_engine.services.scoring_config import (
    clear_config_cache,
    get_scoring_config,
    load_config,
    parse_config,
)

_SHIPPED_CONFIG = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"

_VALID_YAML = """\
version: "test-1"
thresholds:
  eligible: 70
  conditional: 50
loan_bands:
  - { min_score: 70, loan_min_fraction: 0.8, loan_max_fraction: 1.0, rate_min: 11.0, rate_max: 12.0 }
  - { min_score: 0, loan_min_fraction: 0.0, loan_max_fraction: 0.5, rate_min: 13.0, rate_max: 15.0 }
"""


@pytest.fixture(autouse=True)
def _reset_cache():
    clear_config_cache()
    yield
    clear_config_cache()


def _band(min_score, lo=0.0, hi=0.5, rate_min=13.0, rate_max=15.0):
    return {
        "min_score": min_score,
        "loan_min_fraction": lo,
        "loan_max_fraction": hi,
        "rate_min": rate_min,
        "rate_max": rate_max,
    }


def test_shipped_config_is_valid():
    config = load_config(_SHIPPED_CONFIG)
    assert config.version == "2025.1"
    assert config.thresholds.eligible == 65
    assert "avanse" in config.lender_bands


def test_load_from_file(tmp_path):
    path = tmp_path / "scoring.yaml"
    path.write_text(_VALID_YAML)
    config = load_config(path)
    assert config.version == "test-1"
    assert config.thresholds.conditional == 50
    assert len(config.loan_bands) == 2


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_malformed_yaml_is_configuration_error(tmp_path):
    path = tmp_path / "scoring.yaml"
    path.write_text("version: [unclosed")
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(path)
    assert exc_info.value.code == ErrorCode.INVALID_SCORING_CONFIG


@pytest.mark.parametrize(
    "raw",
    [
        ["not", "a", "mapping"],
        {"loan_bands": [_band(0)]},
        {"version": "x", "loan_bands": []},
        {"version": "x", "loan_bands": [_band(40)]},
        {"version": "x", "loan_bands": [_band(0), _band(0)]},
        # higher band with a smaller loan fraction
        {"version": "x", "loan_bands": [_band(50, 0.1, 0.2), _band(0, 0.3, 0.5)]},
        # higher band with a higher rate ceiling
        {"version": "x", "loan_bands": [_band(50, rate_max=18.0), _band(0)]},
        {"version": "x", "loan_bands": [_band(0, lo=0.6, hi=0.5)]},
        {"version": "x", "thresholds": {"eligible": 40, "conditional": 60}, "loan_bands": [_band(0)]},
        {"version": "x", "loan_bands": [_band(0)], "lender_bands": {"acme": []}},
    ],
)
def test_invalid_configs_rejected(raw):
    with pytest.raises(ConfigurationError) as exc_info:
        parse_config(raw)
    assert exc_info.value.code == ErrorCode.INVALID_SCORING_CONFIG


def test_hot_reload_on_mtime_change(tmp_path):
    path = tmp_path / "scoring.yaml"
    path.write_text(_VALID_YAML)
    first = get_scoring_config(path)
    assert get_scoring_config(path) is first

    path.write_text(_VALID_YAML.replace("test-1", "test-2"))
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 10))

    assert get_scoring_config(path).version == "test-2"


def test_cached_config_survives_file_removal(tmp_path):
    path = tmp_path / "scoring.yaml"
    path.write_text(_VALID_YAML)
    first = get_scoring_config(path)
    path.unlink()
    assert get_scoring_config(path) is first
