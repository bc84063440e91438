"""Security audit service.

Runs the security rule set against a spec and packages findings, score and
summary into a SecurityAuditResult.
"""

from datetime import datetime, timezone

from models.audit import SecurityAuditResult
from models.infra import InfraSpec
from utils.rule_engine import Rule, evaluate_rules
from utils.scoring import calculate_audit_score, summarize_findings
from utils.security_rules import SECURITY_RULES


def run_security_audit(
    spec: InfraSpec,
    spec_name: str | None = None,
    rules: list[Rule] | None = None,
) -> SecurityAuditResult:
    """Audit an infrastructure spec.

    Args:
        spec: Spec to audit.
        spec_name: Display name for the report. Defaults to spec.name.
        rules: Rule set to evaluate. Defaults to SECURITY_RULES.

    Returns:
        SecurityAuditResult with findings sorted critical first.
    """
    rules = SECURITY_RULES if rules is None else rules
    findings = evaluate_rules(spec, rules)

    return SecurityAuditResult(
        timestamp=datetime.now(timezone.utc).isoformat(),
        spec_name=spec_name if spec_name is not None else spec.name,
        total_nodes=len(spec.nodes),
        total_connections=len(spec.connections),
        findings=findings,
        score=calculate_audit_score(findings),
        summary=summarize_findings(findings, len(rules)),
    )
