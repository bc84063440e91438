"""Tests for severity calibration from finding interactions."""

from datetime import datetime, timedelta, timezone

from models.audit import Finding
from models.learning import AntiPatternCalibration, AntiPatternInteraction
from utils.calibration_engine import (
    calibrate_findings,
    calibrate_severity,
    compute_calibration_data,
    compute_false_positive_rate,
    get_suppressed_ids,
)
from utils.learning_config import CalibrationConfig
from utils.security_rules import SECURITY_RULE_SEVERITIES


def make_stats(
    total_shown: int, ignored: int = 0, fixed: int = 0, anti_pattern_id: str = "NET-001"
) -> AntiPatternCalibration:
    return AntiPatternCalibration(
        anti_pattern_id=anti_pattern_id,
        total_shown=total_shown,
        ignored_count=ignored,
        fixed_count=fixed,
        ignore_rate=ignored / total_shown,
        fix_rate=fixed / total_shown,
        last_updated="2026-01-01T00:00:00+00:00",
    )


def make_interactions(anti_pattern_id: str, **counts: int) -> list[AntiPatternInteraction]:
    interactions = []
    for action, count in counts.items():
        for i in range(count):
            interactions.append(
                AntiPatternInteraction(
                    id=f"{anti_pattern_id}-{action}-{i}",
                    timestamp=f"2026-01-01T00:00:{i:02d}+00:00",
                    anti_pattern_id=anti_pattern_id,
                    action=action,
                    session_id="s1",
                )
            )
    return interactions


def make_finding(finding_id: str, severity: str) -> Finding:
    return Finding(
        id=finding_id,
        title=f"Finding {finding_id}",
        description="d",
        severity=severity,
        category="network-security",
        recommendation="r",
    )


def test_compute_calibration_data_rates():
    interactions = make_interactions("NET-001", shown=10, ignored=7, fixed=1)

    data = compute_calibration_data(interactions)

    stats = data["NET-001"]
    assert stats.total_shown == 10
    assert stats.ignored_count == 7
    assert stats.fixed_count == 1
    assert stats.ignore_rate == 0.7
    assert stats.fix_rate == 0.1
    assert stats.last_updated == datetime(2026, 1, 1, 0, 0, 9, tzinfo=timezone.utc)


def test_last_updated_compares_instants():
    interactions = [
        AntiPatternInteraction(
            id=f"i-{i}", timestamp=ts, anti_pattern_id="NET-001", action="shown", session_id="s1"
        )
        for i, ts in enumerate(["2026-01-01T01:00:00+00:00", "2026-01-01T09:00:00+09:00"])
    ]

    stats = compute_calibration_data(interactions)["NET-001"]

    assert stats.last_updated == datetime(2026, 1, 1, 1, 0, tzinfo=timezone.utc)
    assert stats.last_updated.utcoffset() == timedelta(0)


def test_calibration_data_uses_declared_severity():
    interactions = make_interactions("NET-001", ignored=25) + make_interactions("BP-001", ignored=25)

    data = compute_calibration_data(interactions, SECURITY_RULE_SEVERITIES)

    assert data["NET-001"].original_severity == "critical"
    assert data["NET-001"].calibrated_severity == "medium"
    # info findings are outside the calibration scale
    assert data["BP-001"].original_severity == "info"
    assert data["BP-001"].calibrated_severity == "info"

    config = CalibrationConfig(critical_min_severity="high")
    data = compute_calibration_data(interactions, SECURITY_RULE_SEVERITIES, config)
    assert data["NET-001"].calibrated_severity == "high"


def test_calibration_data_unknown_id_is_medium():
    data = compute_calibration_data(make_interactions("X-999", ignored=10))

    assert data["X-999"].original_severity == "medium"
    assert data["X-999"].calibrated_severity == "suppressed"


def test_total_shown_without_shown_events():
    data = compute_calibration_data(make_interactions("ACC-001", ignored=3, fixed=1))

    assert data["ACC-001"].total_shown == 4
    assert data["ACC-001"].ignore_rate == 0.75


def test_compute_calibration_data_groups_by_id():
    interactions = make_interactions("A", shown=2) + make_interactions("B", ignored=1)

    data = compute_calibration_data(interactions)

    assert set(data) == {"A", "B"}
    assert data["A"].ignore_rate == 0.0
    assert compute_calibration_data([]) == {}


def test_below_min_samples_is_unchanged():
    assert calibrate_severity("high", make_stats(9, ignored=9)) == "high"
    assert calibrate_severity("high", None) == "high"


def test_one_step_downgrade():
    assert calibrate_severity("high", make_stats(10, ignored=7)) == "medium"
    assert calibrate_severity("medium", make_stats(10, ignored=7)) == "suppressed"


def test_two_step_downgrade_needs_double_samples():
    assert calibrate_severity("high", make_stats(20, ignored=19)) == "suppressed"
    # Same rate with too few samples only moves one step
    assert calibrate_severity("high", make_stats(10, ignored=10)) == "medium"


def test_critical_respects_floor():
    assert calibrate_severity("critical", make_stats(20, ignored=20)) == "medium"

    config = CalibrationConfig(critical_min_severity="high")
    assert calibrate_severity("critical", make_stats(20, ignored=20), config) == "high"


def test_fix_rate_upgrade():
    assert calibrate_severity("medium", make_stats(10, fixed=5)) == "high"
    assert calibrate_severity("critical", make_stats(10, fixed=10)) == "critical"


def test_calibrate_findings_drops_suppressed():
    findings = [
        make_finding("NET-001", "critical"),
        make_finding("BP-001", "medium"),
        make_finding("BP-002", "low"),
        make_finding("NET-002", "high"),
    ]
    data = {
        "BP-001": make_stats(10, ignored=8, anti_pattern_id="BP-001"),
        "BP-002": make_stats(10, ignored=10, anti_pattern_id="BP-002"),
        "NET-002": make_stats(10, ignored=7, anti_pattern_id="NET-002"),
    }

    result = calibrate_findings(findings, data)

    assert [(f.id, f.calibrated_severity) for f in result] == [
        ("NET-001", "critical"),
        ("BP-002", "low"),
        ("NET-002", "medium"),
    ]
    assert [f.was_calibrated for f in result] == [False, False, True]
    assert result[2].original_severity == "high"
    assert result[2].ignore_rate == 0.7
    assert result[0].total_shown == 0
    assert get_suppressed_ids(findings, data) == ["BP-001"]


def test_custom_thresholds():
    config = CalibrationConfig(min_samples_for_calibration=2, ignore_rate_downgrade_1=0.5)

    assert calibrate_severity("high", make_stats(2, ignored=1), config) == "medium"


def test_false_positive_rate():
    data = {
        "A": make_stats(10, ignored=5, anti_pattern_id="A"),
        "B": make_stats(30, ignored=5, anti_pattern_id="B"),
    }

    assert compute_false_positive_rate(data) == 0.25
    assert compute_false_positive_rate({}) == 0.0
