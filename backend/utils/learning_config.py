"""Configuration for the learning stores and calibration thresholds.

Settings come from environment variables, read through resolver functions that
log a warning and fall back to the default on invalid values:
- INFRAGUARD_DATA_DIR: directory holding the persistent learning stores
- INFRAGUARD_STORE_BACKEND: "json" (default) or "memory"
- INFRAGUARD_CALIBRATION_CONFIG: optional path to a calibration JSON file
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("json", "memory")
CALIBRATION_SEVERITIES = ("critical", "high", "medium", "suppressed")


@dataclass(frozen=True)
class CalibrationConfig:
    """Thresholds used when recalibrating finding severity."""

    min_samples_for_calibration: int = 10
    ignore_rate_downgrade_1: float = 0.7
    ignore_rate_downgrade_2: float = 0.9
    fix_rate_upgrade: float = 0.5
    critical_min_severity: str = "medium"


DEFAULT_CALIBRATION_CONFIG = CalibrationConfig()


def _get_default_data_dir() -> Path:
    """Get the default data directory (backend/data)."""
    backend_dir = Path(__file__).resolve().parents[1]
    return backend_dir / "data"


def get_data_dir() -> Path:
    """Get the learning store data directory from INFRAGUARD_DATA_DIR.

    Returns:
        Configured directory, or backend/data if unset or blank.
    """
    raw = os.getenv("INFRAGUARD_DATA_DIR", "").strip()
    if not raw:
        return _get_default_data_dir()
    return Path(raw).expanduser()


def get_store_backend() -> str:
    """Get the store backend from INFRAGUARD_STORE_BACKEND.

    Returns:
        "json" or "memory". Defaults to "json" if unset or invalid.
    """
    raw = os.getenv("INFRAGUARD_STORE_BACKEND", "json").strip().lower()
    if raw in STORE_BACKENDS:
        return raw
    if raw == "":
        return "json"
    logger.warning("Invalid INFRAGUARD_STORE_BACKEND value '%s'. Falling back to 'json'.", raw)
    return "json"


def _require_rate(data: dict, key: str, file_name: str, default: float) -> float:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(
            f"'{file_name}': '{key}' must be a number, got {type(value).__name__}"
        )
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"'{file_name}': '{key}' must be between 0 and 1, got {value}")
    return float(value)


def validate_calibration_config(data: dict, file_name: str = "calibration config") -> CalibrationConfig:
    """Validate a parsed calibration config dictionary.

    Keys that are absent keep their default value.

    Args:
        data: Parsed JSON dictionary.
        file_name: Name used in error messages.

    Returns:
        CalibrationConfig.

    Raises:
        ValueError: If the structure or any value is invalid.
    """
    if not isinstance(data, dict):
        raise ValueError(f"'{file_name}': root must be an object, got {type(data).__name__}")

    if "version" not in data:
        raise ValueError(f"'{file_name}': missing required key 'version'")
    if data["version"] != "1.0":
        raise ValueError(
            f"'{file_name}': unsupported version '{data['version']}', expected '1.0'"
        )

    defaults = DEFAULT_CALIBRATION_CONFIG

    min_samples = data.get("min_samples_for_calibration", defaults.min_samples_for_calibration)
    if isinstance(min_samples, bool) or not isinstance(min_samples, int):
        raise ValueError(
            f"'{file_name}': 'min_samples_for_calibration' must be an integer, "
            f"got {type(min_samples).__name__}"
        )
    if min_samples < 1:
        raise ValueError(
            f"'{file_name}': 'min_samples_for_calibration' must be >= 1, got {min_samples}"
        )

    downgrade_1 = _require_rate(
        data, "ignore_rate_downgrade_1", file_name, defaults.ignore_rate_downgrade_1
    )
    downgrade_2 = _require_rate(
        data, "ignore_rate_downgrade_2", file_name, defaults.ignore_rate_downgrade_2
    )
    if downgrade_2 < downgrade_1:
        raise ValueError(
            f"'{file_name}': 'ignore_rate_downgrade_2' ({downgrade_2}) must be >= "
            f"'ignore_rate_downgrade_1' ({downgrade_1})"
        )
    fix_rate = _require_rate(data, "fix_rate_upgrade", file_name, defaults.fix_rate_upgrade)

    critical_min = data.get("critical_min_severity", defaults.critical_min_severity)
    if critical_min not in CALIBRATION_SEVERITIES[:-1]:
        raise ValueError(
            f"'{file_name}': 'critical_min_severity' must be one of "
            f"{list(CALIBRATION_SEVERITIES[:-1])}, got {critical_min!r}"
        )

    return CalibrationConfig(
        min_samples_for_calibration=min_samples,
        ignore_rate_downgrade_1=downgrade_1,
        ignore_rate_downgrade_2=downgrade_2,
        fix_rate_upgrade=fix_rate,
        critical_min_severity=critical_min,
    )


def load_calibration_config(path: Path) -> CalibrationConfig:
    """Load and validate a calibration config file.

    Raises:
        ValueError: If the file is missing, not valid JSON, or invalid.
    """
    if not path.exists():
        raise ValueError(f"Missing calibration config file at expected path: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Invalid JSON in '{path.name}': {e.msg} at line {e.lineno}, column {e.colno}"
        ) from e

    return validate_calibration_config(data, path.name)


def get_calibration_config() -> CalibrationConfig:
    """Resolve calibration thresholds from INFRAGUARD_CALIBRATION_CONFIG.

    An unset variable yields the defaults. An unreadable or invalid file is
    logged and also yields the defaults.
    """
    raw = os.getenv("INFRAGUARD_CALIBRATION_CONFIG", "").strip()
    if not raw:
        return DEFAULT_CALIBRATION_CONFIG

    try:
        return load_calibration_config(Path(raw).expanduser())
    except ValueError as exc:
        logger.warning("Ignoring calibration config: %s", exc)
        return DEFAULT_CALIBRATION_CONFIG
