"""What-if impact simulator.

Predicts the effect of adding or removing a single node by matching its type
against fixed lookup tables. The spec is never mutated and the rule engine is
not re-run, so a result is available in constant time per change.
"""

from models.audit import WhatIfChange, WhatIfImpact, WhatIfResult
from models.infra import InfraSpec

SECURITY_DEVICE_TYPES = ("firewall", "waf", "ids-ips", "nac", "dlp")
AUTH_TYPES = ("ldap-ad", "sso", "mfa", "iam")
AVAILABILITY_TYPES = ("load-balancer", "cdn", "backup")
COMPLIANCE_CRITICAL_TYPES = ("waf", "mfa", "firewall")

ADD_SECURITY_DELTA = 15
ADD_AUTH_DELTA = 12
ADD_AVAILABILITY_DELTA = 8
ADD_COMPLIANCE_DELTA = 10

REMOVE_SECURITY_DELTA = -25
REMOVE_AUTH_DELTA = -20
REMOVE_LOAD_BALANCER_DELTA = -15
REMOVE_BACKUP_DELTA = -20
REMOVE_COMPLIANCE_DELTA = -15


def analyze_what_if_add(spec: InfraSpec, node_type: str) -> WhatIfResult:
    """Simulate adding one node of the given type.

    Args:
        spec: Current infrastructure spec (read-only).
        node_type: Type of the hypothetical new node.

    Returns:
        WhatIfResult with impacts and a positive or zero risk delta.
    """
    impacts: list[WhatIfImpact] = []
    recommendations: list[str] = []
    risk_delta = 0

    if node_type in SECURITY_DEVICE_TYPES:
        impacts.append(
            WhatIfImpact(
                category="security",
                severity="high",
                description=f"Security posture improves: {node_type} strengthens threat defense",
            )
        )
        risk_delta += ADD_SECURITY_DELTA
        recommendations.append("Define integration policies with existing security devices")

    if node_type in AUTH_TYPES:
        impacts.append(
            WhatIfImpact(
                category="security",
                severity="high",
                description="Stronger authentication and authorization reduce unauthorized access risk",
            )
        )
        risk_delta += ADD_AUTH_DELTA

    if node_type in AVAILABILITY_TYPES:
        impacts.append(
            WhatIfImpact(
                category="availability",
                severity="medium",
                description="Availability improves: better failure handling",
            )
        )
        risk_delta += ADD_AVAILABILITY_DELTA

    impacts.append(
        WhatIfImpact(
            category="cost",
            severity="medium",
            description=f"Infrastructure cost expected to increase ({node_type} added)",
        )
    )

    if node_type == "waf" and spec.has_node_type("web-server"):
        impacts.append(
            WhatIfImpact(
                category="compliance",
                severity="high",
                description="Satisfies PCI DSS requirement 6.6",
            )
        )
        risk_delta += ADD_COMPLIANCE_DELTA

    if node_type == "mfa":
        impacts.append(
            WhatIfImpact(
                category="compliance",
                severity="high",
                description="Satisfies ISMS-P and PCI DSS MFA requirements",
            )
        )
        risk_delta += ADD_COMPLIANCE_DELTA

    return WhatIfResult(
        change=WhatIfChange(type="add", node_type=node_type, description=f"Add {node_type}"),
        impacts=impacts,
        risk_delta=risk_delta,
        recommendations=recommendations,
    )


def analyze_what_if_remove(spec: InfraSpec, node_id: str) -> WhatIfResult:
    """Simulate removing an existing node.

    An unknown node id is an expected query outcome and yields a result with
    no impacts and a zero delta.

    Args:
        spec: Current infrastructure spec (read-only).
        node_id: Id of the node to remove.

    Returns:
        WhatIfResult with impacts and a negative or zero risk delta.
    """
    node = spec.get_node(node_id)
    if node is None:
        return WhatIfResult(
            change=WhatIfChange(type="remove", node_id=node_id, description="Node not found"),
        )

    impacts: list[WhatIfImpact] = []
    recommendations: list[str] = []
    risk_delta = 0

    if node.type in SECURITY_DEVICE_TYPES:
        impacts.append(
            WhatIfImpact(
                category="security",
                severity="high",
                description=f"Critical security gap: removing {node.label} exposes the system to external attacks",
            )
        )
        risk_delta += REMOVE_SECURITY_DELTA
        recommendations.append("An alternative security control is required before removing this device")

    if node.type in AUTH_TYPES:
        impacts.append(
            WhatIfImpact(
                category="security",
                severity="high",
                description="Weaker authentication increases unauthorized access risk",
            )
        )
        risk_delta += REMOVE_AUTH_DELTA

    if node.type == "load-balancer":
        impacts.append(
            WhatIfImpact(
                category="availability",
                severity="high",
                description="Introduces a potential single point of failure (SPOF)",
            )
        )
        risk_delta += REMOVE_LOAD_BALANCER_DELTA

    if node.type == "backup":
        impacts.append(
            WhatIfImpact(
                category="availability",
                severity="high",
                description="Increases the risk of data loss",
            )
        )
        risk_delta += REMOVE_BACKUP_DELTA

    severed = [c for c in spec.connections if c.source == node_id or c.target == node_id]
    if severed:
        impacts.append(
            WhatIfImpact(
                category="availability",
                severity="medium",
                description=f"{len(severed)} connection path(s) will be broken",
            )
        )
        recommendations.append("Reroute the affected connection paths")

    if node.type in COMPLIANCE_CRITICAL_TYPES:
        impacts.append(
            WhatIfImpact(
                category="compliance",
                severity="high",
                description="May fail ISMS-P, PCI DSS and similar compliance requirements",
            )
        )
        risk_delta += REMOVE_COMPLIANCE_DELTA

    return WhatIfResult(
        change=WhatIfChange(
            type="remove",
            node_id=node_id,
            node_type=node.type,
            description=f"Remove {node.label} ({node.type})",
        ),
        impacts=impacts,
        risk_delta=risk_delta,
        recommendations=recommendations,
    )
