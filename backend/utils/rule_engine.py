"""Rule engine for evaluating infrastructure specs.

Rules are statically authored predicate functions over an InfraSpec. They must
be pure and total: a rule that raises is a defect, so exceptions are not caught
here and propagate to the caller.

Two rule shapes share this engine:
- Rule: returns a Finding when violated, or None (used by the security audit).
- Requirement: always returns a CheckOutcome with a pass/fail/partial/
  not-applicable status (used by the compliance frameworks).
"""

from dataclasses import dataclass
from typing import Callable

from models.audit import SEVERITY_ORDER, ComplianceStatus, Finding, Severity
from models.infra import InfraSpec


@dataclass(frozen=True)
class Rule:
    """Security rule: returns a Finding when the spec violates it."""

    id: str
    title: str
    severity: Severity
    check: Callable[[InfraSpec], Finding | None]


@dataclass(frozen=True)
class CheckOutcome:
    """Outcome of a compliance requirement check."""

    status: ComplianceStatus
    details: str
    remediation: str | None = None


@dataclass(frozen=True)
class Requirement:
    """Compliance requirement with a classifying check."""

    id: str
    requirement: str
    description: str
    check: Callable[[InfraSpec], CheckOutcome]


def sort_findings(findings: list[Finding]) -> list[Finding]:
    """Sort findings by severity rank, critical first.

    Python's sort is stable, so findings of equal severity keep rule
    declaration order.

    Args:
        findings: Findings in rule declaration order.

    Returns:
        New list sorted by severity.
    """
    return sorted(findings, key=lambda f: SEVERITY_ORDER[f.severity])


def evaluate_rules(spec: InfraSpec, rules: list[Rule]) -> list[Finding]:
    """Evaluate every rule against a spec.

    Args:
        spec: The infrastructure spec to evaluate.
        rules: Ordered list of rules.

    Returns:
        Findings sorted by severity (ties in declaration order). Each rule
        contributes at most one finding.
    """
    findings: list[Finding] = []

    for rule in rules:
        finding = rule.check(spec)
        if finding is not None:
            findings.append(finding)

    return sort_findings(findings)


def evaluate_requirements(
    spec: InfraSpec, requirements: list[Requirement]
) -> list[tuple[Requirement, CheckOutcome]]:
    """Evaluate every compliance requirement against a spec, in order."""
    return [(req, req.check(spec)) for req in requirements]
