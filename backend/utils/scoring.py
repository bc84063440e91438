"""Score aggregation for audit findings and compliance checks.

The two formulas are intentionally different: the audit score deducts a fixed
weight per finding (absolute risk), the compliance score is a coverage ratio
over applicable checks.
"""

import math

from models.audit import AuditSummary, Finding

SEVERITY_WEIGHTS: dict[str, int] = {
    "critical": 25,
    "high": 15,
    "medium": 8,
    "low": 3,
    "info": 1,
}


def _round_half_up(value: float) -> int:
    # round() uses banker's rounding; scores round .5 upwards
    return math.floor(value + 0.5)


def calculate_audit_score(findings: list[Finding]) -> int:
    """Compute the 0-100 security score for a set of findings.

    Args:
        findings: Findings from one audit run.

    Returns:
        100 minus the summed severity weights, clamped at 0.
    """
    deduction = sum(SEVERITY_WEIGHTS[f.severity] for f in findings)
    return max(0, 100 - deduction)


def calculate_compliance_score(passed: int, failed: int, partial: int) -> int:
    """Compute the 0-100 compliance coverage score.

    Not-applicable checks are not part of the denominator. When nothing is
    applicable the score is 100.
    """
    applicable = passed + failed + partial
    if applicable == 0:
        return 100
    return _round_half_up((passed + partial * 0.5) / applicable * 100)


def summarize_findings(findings: list[Finding], rule_count: int) -> AuditSummary:
    """Bucket findings by severity.

    Args:
        findings: Findings from one audit run.
        rule_count: Number of rules evaluated; rules without a finding count as passed.

    Returns:
        AuditSummary with per-severity counts.
    """
    counts = {severity: 0 for severity in SEVERITY_WEIGHTS}
    for finding in findings:
        counts[finding.severity] += 1

    return AuditSummary(**counts, passed=max(0, rule_count - len(findings)))
