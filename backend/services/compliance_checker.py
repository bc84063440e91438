"""Compliance checking against the supported frameworks."""

from datetime import datetime, timezone

from models.audit import ComplianceCheck, ComplianceReport
from models.infra import InfraSpec
from utils.compliance_rules import (
    COMPLIANCE_REQUIREMENTS,
    FRAMEWORK_DESCRIPTIONS,
    FRAMEWORK_NAMES,
)
from utils.rule_engine import evaluate_requirements
from utils.scoring import calculate_compliance_score

# Order used when listing frameworks to clients
FRAMEWORK_DISPLAY_ORDER = ("isms-p", "k-isms", "iso27001", "pci-dss", "gdpr", "hipaa")


def get_framework_name(framework: str) -> str:
    """Return the display name of a framework.

    Raises:
        ValueError: If the framework is not supported.
    """
    if framework not in FRAMEWORK_NAMES:
        raise ValueError(f"Unknown compliance framework '{framework}'")
    return FRAMEWORK_NAMES[framework]


def get_available_frameworks() -> list[dict]:
    """List supported frameworks as {id, name, description} dictionaries."""
    return [
        {
            "id": framework,
            "name": FRAMEWORK_NAMES[framework].split(" (")[0],
            "description": FRAMEWORK_DESCRIPTIONS[framework],
        }
        for framework in FRAMEWORK_DISPLAY_ORDER
    ]


def check_compliance(spec: InfraSpec, framework: str) -> ComplianceReport:
    """Evaluate a spec against one compliance framework.

    Args:
        spec: Spec to check.
        framework: Framework id, e.g. "pci-dss".

    Returns:
        ComplianceReport with one check per requirement, in declaration order.

    Raises:
        ValueError: If the framework is not supported.
    """
    framework_name = get_framework_name(framework)
    requirements = COMPLIANCE_REQUIREMENTS[framework]

    checks: list[ComplianceCheck] = []
    counts = {"pass": 0, "fail": 0, "partial": 0, "not-applicable": 0}

    for requirement, outcome in evaluate_requirements(spec, requirements):
        checks.append(
            ComplianceCheck(
                id=requirement.id,
                framework=framework,
                requirement=requirement.requirement,
                description=requirement.description,
                status=outcome.status,
                details=outcome.details,
                remediation=outcome.remediation,
            )
        )
        counts[outcome.status] += 1

    return ComplianceReport(
        framework=framework,
        framework_name=framework_name,
        timestamp=datetime.now(timezone.utc).isoformat(),
        total_checks=len(requirements),
        passed=counts["pass"],
        failed=counts["fail"],
        partial=counts["partial"],
        not_applicable=counts["not-applicable"],
        score=calculate_compliance_score(counts["pass"], counts["fail"], counts["partial"]),
        checks=checks,
    )


def check_all_compliance(spec: InfraSpec) -> list[ComplianceReport]:
    """Evaluate a spec against every supported framework."""
    return [check_compliance(spec, framework) for framework in COMPLIANCE_REQUIREMENTS]
