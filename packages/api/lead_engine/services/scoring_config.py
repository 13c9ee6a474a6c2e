# This project was developed with assistance from AI tools.
"""Eligibility scoring configuration loader.

Reads config/scoring.yaml, validates it into a ``ScoringConfig`` (band
ordering, fraction and rate ranges), and supports mtime-based hot-reload so
band changes take effect without restarting the server.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..core.config import settings
from ..core.errors import ConfigurationError
from ..schemas.eligibility import CategoryThresholds, LoanBand, ScoringConfig
from ..schemas.error import ErrorCode

logger = logging.getLogger(__name__)

_cached_config: ScoringConfig | None = None
_cached_mtime: float = 0.0
_cached_path: Path | None = None

# Built-in bands, used when no configuration file is supplied
DEFAULT_SCORING_CONFIG = ScoringConfig(
    version="builtin",
    thresholds=CategoryThresholds(eligible=65, conditional=45),
    loan_bands=[
        LoanBand(min_score=80, loan_min_fraction=0.9, loan_max_fraction=1.0, rate_min=10.5, rate_max=11.5),
        LoanBand(min_score=65, loan_min_fraction=0.7, loan_max_fraction=0.9, rate_min=11.5, rate_max=12.5),
        LoanBand(min_score=50, loan_min_fraction=0.5, loan_max_fraction=0.7, rate_min=12.5, rate_max=13.5),
        LoanBand(min_score=40, loan_min_fraction=0.3, loan_max_fraction=0.5, rate_min=13.5, rate_max=14.5),
        LoanBand(min_score=0, loan_min_fraction=0.0, loan_max_fraction=0.0, rate_min=14.0, rate_max=16.0),
    ],
)


def parse_config(raw: Any, source: str = "<memory>") -> ScoringConfig:
    """Validate a parsed YAML tree. Raises ConfigurationError when invalid."""
    if not isinstance(raw, dict):
        raise ConfigurationError(
            ErrorCode.INVALID_SCORING_CONFIG, f"{source} must contain a mapping"
        )
    if "version" not in raw:
        raise ConfigurationError(
            ErrorCode.INVALID_SCORING_CONFIG, f"{source} must declare a 'version'"
        )
    raw = {**raw, "version": str(raw["version"])}
    try:
        return ScoringConfig.model_validate(raw)
    except ValidationError as exc:
        logger.error("Invalid scoring config %s: %s", source, exc)
        raise ConfigurationError(
            ErrorCode.INVALID_SCORING_CONFIG, f"Invalid scoring config {source}: {exc}"
        ) from exc


def load_config(path: Path | None = None) -> ScoringConfig:
    """Load and validate scoring.yaml from disk."""
    config_path = path or Path(settings.SCORING_CONFIG_PATH)
    if not config_path.exists():
        raise FileNotFoundError(f"Scoring config not found: {config_path}")

    try:
        raw = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as exc:
        logger.error("Scoring config %s is not valid YAML: %s", config_path, exc)
        raise ConfigurationError(
            ErrorCode.INVALID_SCORING_CONFIG, f"{config_path} is not valid YAML"
        ) from exc
    return parse_config(raw, str(config_path))


def get_scoring_config(path: Path | None = None) -> ScoringConfig:
    """Return cached config, reloading if the file's mtime has changed."""
    global _cached_config, _cached_mtime, _cached_path  # noqa: PLW0603
    config_path = path or Path(settings.SCORING_CONFIG_PATH)

    try:
        current_mtime = config_path.stat().st_mtime
    except FileNotFoundError:
        if _cached_config is not None and _cached_path == config_path:
            logger.warning("Scoring config disappeared, using cached config")
            return _cached_config
        raise

    if (
        _cached_config is None
        or _cached_path != config_path
        or current_mtime > _cached_mtime
    ):
        logger.info("Loading scoring config from %s", config_path)
        _cached_config = load_config(config_path)
        _cached_mtime = current_mtime
        _cached_path = config_path

    return _cached_config


def clear_config_cache() -> None:
    global _cached_config, _cached_mtime, _cached_path  # noqa: PLW0603
    _cached_config = None
    _cached_mtime = 0.0
    _cached_path = None
