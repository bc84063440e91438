"""Severity calibration from user interactions with findings.

Rules, with the default thresholds:
- ignore_rate >= 0.7 and total_shown >= 10: one step down
- ignore_rate >= 0.9 and total_shown >= 20: two steps down
- fix_rate >= 0.5 and total_shown >= 10: one step up, applied after any downgrade

A finding that started as critical never drops below critical_min_severity.
"""

from models.audit import Finding
from models.learning import (
    AntiPatternCalibration,
    AntiPatternInteraction,
    CalibratedFinding,
)
from utils.learning_config import (
    CALIBRATION_SEVERITIES,
    DEFAULT_CALIBRATION_CONFIG,
    CalibrationConfig,
)

# Finding severities that take part in calibration; low/info pass through
CALIBRATABLE_SEVERITIES = ("critical", "high", "medium")


def _shift(severity: str, steps: int) -> str:
    """Move severity by steps along CALIBRATION_SEVERITIES (positive = less severe)."""
    idx = CALIBRATION_SEVERITIES.index(severity) + steps
    idx = max(0, min(idx, len(CALIBRATION_SEVERITIES) - 1))
    return CALIBRATION_SEVERITIES[idx]


def compute_calibration_data(
    interactions: list[AntiPatternInteraction],
    severities: dict[str, str] | None = None,
    config: CalibrationConfig = DEFAULT_CALIBRATION_CONFIG,
) -> dict[str, AntiPatternCalibration]:
    """Aggregate interactions into per-finding ignore/fix statistics.

    total_shown is max(shown, ignored + fixed) so that histories recorded
    without "shown" events still produce sensible rates. Rates are 0 when
    nothing was shown.

    Args:
        interactions: Raw interactions, any order.
        severities: Declared severity per finding id. Ids missing from it are
            treated as medium.
        config: Calibration thresholds used for calibrated_severity.

    Returns:
        Mapping of finding id to its calibration statistics.
    """
    severities = severities or {}
    grouped: dict[str, list[AntiPatternInteraction]] = {}
    for interaction in interactions:
        grouped.setdefault(interaction.anti_pattern_id, []).append(interaction)

    result: dict[str, AntiPatternCalibration] = {}
    for anti_pattern_id, items in grouped.items():
        shown = sum(1 for i in items if i.action == "shown")
        ignored = sum(1 for i in items if i.action == "ignored")
        fixed = sum(1 for i in items if i.action == "fixed")
        total_shown = max(shown, ignored + fixed)

        stats = AntiPatternCalibration(
            anti_pattern_id=anti_pattern_id,
            total_shown=total_shown,
            ignored_count=ignored,
            fixed_count=fixed,
            ignore_rate=ignored / total_shown if total_shown > 0 else 0.0,
            fix_rate=fixed / total_shown if total_shown > 0 else 0.0,
            original_severity=severities.get(anti_pattern_id, "medium"),
            last_updated=max(i.timestamp for i in items),
        )
        if stats.original_severity in CALIBRATABLE_SEVERITIES:
            calibrated = calibrate_severity(stats.original_severity, stats, config)
        else:
            calibrated = stats.original_severity
        result[anti_pattern_id] = stats.model_copy(update={"calibrated_severity": calibrated})

    return result


def calibrate_severity(
    original_severity: str,
    calibration: AntiPatternCalibration | None,
    config: CalibrationConfig = DEFAULT_CALIBRATION_CONFIG,
) -> str:
    """Compute the calibrated severity for one finding.

    Args:
        original_severity: "critical", "high" or "medium".
        calibration: Statistics for this finding, or None if never shown.
        config: Calibration thresholds.

    Returns:
        One of "critical", "high", "medium", "suppressed".
    """
    if calibration is None or calibration.total_shown < config.min_samples_for_calibration:
        return original_severity

    severity = original_severity

    if (
        calibration.ignore_rate >= config.ignore_rate_downgrade_2
        and calibration.total_shown >= config.min_samples_for_calibration * 2
    ):
        severity = _shift(original_severity, 2)
    elif calibration.ignore_rate >= config.ignore_rate_downgrade_1:
        severity = _shift(original_severity, 1)

    if calibration.fix_rate >= config.fix_rate_upgrade:
        severity = _shift(severity, -1)

    if original_severity == "critical":
        floor = CALIBRATION_SEVERITIES.index(config.critical_min_severity)
        if CALIBRATION_SEVERITIES.index(severity) > floor:
            severity = config.critical_min_severity

    return severity


def calibrate_findings(
    findings: list[Finding],
    calibration_data: dict[str, AntiPatternCalibration],
    config: CalibrationConfig = DEFAULT_CALIBRATION_CONFIG,
) -> list[CalibratedFinding]:
    """Apply calibration to audit findings and drop suppressed ones.

    Low and info findings are outside the calibration scale and pass through
    with their severity unchanged.
    """
    calibrated: list[CalibratedFinding] = []

    for finding in findings:
        stats = calibration_data.get(finding.id)
        if finding.severity in CALIBRATABLE_SEVERITIES:
            new_severity = calibrate_severity(finding.severity, stats, config)
        else:
            new_severity = finding.severity

        if new_severity == "suppressed":
            continue

        calibrated.append(
            CalibratedFinding(
                id=finding.id,
                title=finding.title,
                original_severity=finding.severity,
                calibrated_severity=new_severity,
                ignore_rate=stats.ignore_rate if stats else 0.0,
                fix_rate=stats.fix_rate if stats else 0.0,
                total_shown=stats.total_shown if stats else 0,
                was_calibrated=new_severity != finding.severity,
            )
        )

    return calibrated


def compute_false_positive_rate(calibration_data: dict[str, AntiPatternCalibration]) -> float:
    """Total ignored over total shown across all findings (0 when nothing was shown)."""
    total_shown = sum(c.total_shown for c in calibration_data.values())
    total_ignored = sum(c.ignored_count for c in calibration_data.values())
    return total_ignored / total_shown if total_shown > 0 else 0.0


def get_suppressed_ids(
    findings: list[Finding],
    calibration_data: dict[str, AntiPatternCalibration],
    config: CalibrationConfig = DEFAULT_CALIBRATION_CONFIG,
) -> list[str]:
    """Return ids of findings whose calibrated severity is "suppressed"."""
    return [
        f.id
        for f in findings
        if f.severity in CALIBRATABLE_SEVERITIES
        and calibrate_severity(f.severity, calibration_data.get(f.id), config) == "suppressed"
    ]
