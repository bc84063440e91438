"""Data models for security audit, compliance and what-if results.

Results are created fresh on every evaluation and never mutated afterwards.
Report renderers consume these models directly, so field names and ordering
are part of the public contract.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["critical", "high", "medium", "low", "info"]

FindingCategory = Literal[
    "network-security",
    "access-control",
    "data-protection",
    "availability",
    "compliance",
    "best-practice",
]

ComplianceFramework = Literal["isms-p", "iso27001", "pci-dss", "gdpr", "hipaa", "k-isms"]

ComplianceStatus = Literal["pass", "fail", "partial", "not-applicable"]

# Rank used to order findings: critical first, info last
SEVERITY_ORDER: dict[str, int] = {
    "critical": 0,
    "high": 1,
    "medium": 2,
    "low": 3,
    "info": 4,
}


class Finding(BaseModel):
    """A single rule violation produced by the audit rule engine."""

    model_config = ConfigDict(frozen=True)

    id: str  # Stable rule id, e.g. "NET-001"
    title: str
    description: str
    severity: Severity
    category: FindingCategory
    affected_nodes: list[str] = Field(default_factory=list)
    recommendation: str
    references: list[str] = Field(default_factory=list)


class AuditSummary(BaseModel):
    """Finding counts per severity plus the number of rules that passed."""

    model_config = ConfigDict(frozen=True)

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0
    passed: int = 0


class SecurityAuditResult(BaseModel):
    """Complete result of one security audit run."""

    model_config = ConfigDict(frozen=True)

    timestamp: str  # ISO-8601 UTC
    spec_name: str | None = None
    total_nodes: int
    total_connections: int
    findings: list[Finding]
    score: int  # 0-100, higher is better
    summary: AuditSummary


class ComplianceCheck(BaseModel):
    """Outcome of one framework requirement."""

    model_config = ConfigDict(frozen=True)

    id: str
    framework: ComplianceFramework
    requirement: str
    description: str
    status: ComplianceStatus
    details: str
    remediation: str | None = None


class ComplianceReport(BaseModel):
    """Result of evaluating a spec against one compliance framework."""

    model_config = ConfigDict(frozen=True)

    framework: ComplianceFramework
    framework_name: str
    timestamp: str
    total_checks: int
    passed: int
    failed: int
    partial: int
    not_applicable: int
    score: int  # 0-100, coverage ratio of applicable checks
    checks: list[ComplianceCheck]


class WhatIfChange(BaseModel):
    """Describes the hypothetical change that was simulated."""

    model_config = ConfigDict(frozen=True)

    type: Literal["add", "remove", "modify"]
    node_type: str | None = None
    node_id: str | None = None
    description: str


class WhatIfImpact(BaseModel):
    """Predicted effect of a change on one dimension."""

    model_config = ConfigDict(frozen=True)

    category: Literal["security", "availability", "compliance", "cost"]
    severity: Literal["high", "medium", "low"]
    description: str


class WhatIfResult(BaseModel):
    """Forward-simulated impact of adding or removing one node."""

    model_config = ConfigDict(frozen=True)

    change: WhatIfChange
    impacts: list[WhatIfImpact] = Field(default_factory=list)
    risk_delta: int = 0  # Positive improves posture, negative worsens it
    recommendations: list[str] = Field(default_factory=list)
