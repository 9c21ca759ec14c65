"""
Engine-wide configuration defaults and environment overrides.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "MSA_"


@dataclass(frozen=True)
class EngineSettings:
    high_bucket_weight: float = 60.0
    medium_bucket_weight: float = 40.0
    default_haircut_pct: float = 10.0
    max_haircut_pct: float = 20.0
    hhi_delta_threshold: float = 200.0
    hhi_concentrated_threshold: float = 1800.0
    footprint_top_n: int = 50
    share_unit: str = "auto"
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS = EngineSettings()

_settings: Optional[EngineSettings] = None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s%s=%r (not a number)", ENV_PREFIX, name, raw)
        return default


def _env_int(name: str, default: int) -> int:
    value = _env_float(name, float(default))
    return int(value)


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def load_settings() -> EngineSettings:
    """Build settings from MSA_* environment variables.

    A local .env is loaded first without overriding variables that are
    already set. Unparsable values keep the default.
    """
    load_dotenv()
    return EngineSettings(
        high_bucket_weight=_env_float("HIGH_BUCKET_WEIGHT", DEFAULT_SETTINGS.high_bucket_weight),
        medium_bucket_weight=_env_float("MEDIUM_BUCKET_WEIGHT", DEFAULT_SETTINGS.medium_bucket_weight),
        default_haircut_pct=_env_float("DEFAULT_HAIRCUT_PCT", DEFAULT_SETTINGS.default_haircut_pct),
        max_haircut_pct=_env_float("MAX_HAIRCUT_PCT", DEFAULT_SETTINGS.max_haircut_pct),
        hhi_delta_threshold=_env_float("HHI_DELTA_THRESHOLD", DEFAULT_SETTINGS.hhi_delta_threshold),
        hhi_concentrated_threshold=_env_float(
            "HHI_CONCENTRATED_THRESHOLD", DEFAULT_SETTINGS.hhi_concentrated_threshold
        ),
        footprint_top_n=_env_int("FOOTPRINT_TOP_N", DEFAULT_SETTINGS.footprint_top_n),
        share_unit=_env_str("SHARE_UNIT", DEFAULT_SETTINGS.share_unit).lower(),
        log_level=_env_str("LOG_LEVEL", DEFAULT_SETTINGS.log_level).upper(),
    )


def get_settings() -> EngineSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
