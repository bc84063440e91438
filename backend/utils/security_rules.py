"""Security audit rule set.

Rule id prefixes:
- NET-*: network security
- ACC-*: access control
- DATA-*: data protection
- AVAIL-*: availability
- COMP-*: compliance
- BP-*: best practice

Declaration order matters: it breaks ties between findings of equal severity.
"""

from models.audit import Finding
from models.infra import InfraSpec
from utils.rule_engine import Rule

EXTERNAL_TYPES = ("user", "internet")
FILTERING_TYPES = ("firewall", "waf", "ids-ips")
AUTH_TYPES = ("ldap-ad", "sso", "mfa", "iam")
APP_TYPES = ("web-server", "app-server")
STORAGE_TYPES = ("storage", "san-nas", "object-storage")
DATA_STORE_TYPES = ("db-server",) + STORAGE_TYPES


def _ids(nodes) -> list[str]:
    return [n.id for n in nodes]


# ============================================================================
# NETWORK SECURITY
# ============================================================================


def check_missing_firewall(spec: InfraSpec) -> Finding | None:
    """External access exists but nothing filters it."""
    if spec.has_node_type(*FILTERING_TYPES) or not spec.has_node_type(*EXTERNAL_TYPES):
        return None
    return Finding(
        id="NET-001",
        title="Missing Firewall",
        description="There is no firewall on the external access path.",
        severity="critical",
        category="network-security",
        affected_nodes=_ids(spec.nodes_of_type(*EXTERNAL_TYPES)),
        recommendation="Add a firewall to filter inbound external traffic.",
        references=["CIS Control 13", "NIST SP 800-41"],
    )


def check_missing_waf(spec: InfraSpec) -> Finding | None:
    """Web servers exist without a web application firewall."""
    web_servers = spec.nodes_of_type("web-server")
    if not web_servers or spec.has_node_type("waf"):
        return None
    return Finding(
        id="NET-002",
        title="Missing WAF for Web Tier",
        description="Web servers are deployed without a Web Application Firewall.",
        severity="high",
        category="network-security",
        affected_nodes=_ids(web_servers),
        recommendation="Add a WAF to defend against web attacks such as SQL injection and XSS.",
        references=["OWASP Top 10", "CIS Control 13"],
    )


def check_direct_database_access(spec: InfraSpec) -> Finding | None:
    """A database is wired directly to a user or the internet."""
    for db in spec.nodes_of_type("db-server"):
        for ext in spec.nodes_of_type(*EXTERNAL_TYPES):
            direct = any(
                (c.source == ext.id and c.target == db.id)
                or (c.source == db.id and c.target == ext.id)
                for c in spec.connections
            )
            if direct:
                return Finding(
                    id="NET-003",
                    title="Direct Database Access",
                    description="A database is directly reachable from an external node.",
                    severity="critical",
                    category="network-security",
                    affected_nodes=[db.id, ext.id],
                    recommendation=(
                        "Place the database in the internal network and only allow "
                        "access through application servers."
                    ),
                    references=["CIS Control 12", "PCI DSS Requirement 1.3"],
                )
    return None


def check_missing_load_balancer(spec: InfraSpec) -> Finding | None:
    """Several web servers without anything distributing traffic."""
    web_servers = spec.nodes_of_type("web-server")
    if len(web_servers) <= 1 or spec.has_node_type("load-balancer"):
        return None
    return Finding(
        id="NET-004",
        title="Missing Load Balancer",
        description="Multiple web servers are deployed without a load balancer.",
        severity="medium",
        category="availability",
        affected_nodes=_ids(web_servers),
        recommendation="Add a load balancer for traffic distribution and high availability.",
        references=["AWS Well-Architected Framework"],
    )


# ============================================================================
# ACCESS CONTROL
# ============================================================================


def check_missing_authentication(spec: InfraSpec) -> Finding | None:
    app_servers = spec.nodes_of_type(*APP_TYPES)
    if not app_servers or spec.has_node_type(*AUTH_TYPES):
        return None
    return Finding(
        id="ACC-001",
        title="Missing Authentication Layer",
        description="Application servers exist but no authentication system is present.",
        severity="high",
        category="access-control",
        affected_nodes=_ids(app_servers),
        recommendation="Add LDAP/AD, SSO or an IAM system to implement authentication.",
        references=["NIST SP 800-63", "CIS Control 6"],
    )


def check_missing_mfa(spec: InfraSpec) -> Finding | None:
    if spec.has_node_type("mfa") or not spec.has_node_type("sso", "vpn-gateway"):
        return None
    return Finding(
        id="ACC-002",
        title="No MFA Configured",
        description="SSO or VPN is present but multi-factor authentication is not configured.",
        severity="high",
        category="access-control",
        affected_nodes=_ids(spec.nodes_of_type("sso", "vpn-gateway")),
        recommendation="Add MFA (Multi-Factor Authentication) to strengthen authentication.",
        references=["NIST SP 800-63B", "CIS Control 6"],
    )


# ============================================================================
# DATA PROTECTION
# ============================================================================


def check_unencrypted_storage(spec: InfraSpec) -> Finding | None:
    """Storage nodes whose description does not mention encryption."""
    unencrypted = [
        n
        for n in spec.nodes_of_type(*DATA_STORE_TYPES)
        if "encrypt" not in (n.description or "").lower()
    ]
    if not unencrypted:
        return None
    return Finding(
        id="DATA-001",
        title="Missing Encryption for Data at Rest",
        description="Encryption is not specified for one or more data stores.",
        severity="medium",
        category="data-protection",
        affected_nodes=_ids(unencrypted),
        recommendation="Configure encryption for data at rest.",
        references=["PCI DSS Requirement 3.4", "GDPR Article 32"],
    )


def check_missing_dlp(spec: InfraSpec) -> Finding | None:
    data_stores = spec.nodes_of_type(*DATA_STORE_TYPES)
    if not data_stores or spec.has_node_type("dlp"):
        return None
    return Finding(
        id="DATA-002",
        title="Missing DLP",
        description="Data stores exist but there is no Data Loss Prevention solution.",
        severity="low",
        category="data-protection",
        affected_nodes=_ids(data_stores),
        recommendation="Consider a DLP solution to prevent sensitive data leakage.",
        references=["CIS Control 3"],
    )


def check_missing_backup(spec: InfraSpec) -> Finding | None:
    databases = spec.nodes_of_type("db-server")
    if not databases or spec.has_node_type("backup"):
        return None
    return Finding(
        id="DATA-003",
        title="Missing Backup",
        description="A database exists but there is no backup system.",
        severity="high",
        category="availability",
        affected_nodes=_ids(databases),
        recommendation="Add a backup system to prevent data loss.",
        references=["CIS Control 11", "ISO 27001 A.12.3"],
    )


# ============================================================================
# AVAILABILITY
# ============================================================================


def check_single_database(spec: InfraSpec) -> Finding | None:
    databases = spec.nodes_of_type("db-server")
    if len(databases) != 1:
        return None
    return Finding(
        id="AVAIL-001",
        title="Single Point of Failure - Database",
        description="Only one database is deployed, making it a single point of failure (SPOF).",
        severity="medium",
        category="availability",
        affected_nodes=_ids(databases),
        recommendation="Configure a database replica or cluster for high availability.",
        references=["AWS Well-Architected Framework - Reliability"],
    )


def check_missing_cdn(spec: InfraSpec) -> Finding | None:
    web_servers = spec.nodes_of_type("web-server")
    if spec.has_node_type("cdn") or not web_servers or not spec.has_node_type("internet"):
        return None
    return Finding(
        id="AVAIL-002",
        title="No CDN for Static Content",
        description="An internet-facing service is exposed without a CDN.",
        severity="low",
        category="availability",
        affected_nodes=_ids(web_servers),
        recommendation="Consider a CDN for static content delivery and DDoS mitigation.",
        references=["AWS CloudFront Best Practices"],
    )


# ============================================================================
# COMPLIANCE
# ============================================================================


def check_missing_ids_ips(spec: InfraSpec) -> Finding | None:
    firewalls = spec.nodes_of_type("firewall")
    if not firewalls or spec.has_node_type("ids-ips"):
        return None
    return Finding(
        id="COMP-001",
        title="Missing IDS/IPS",
        description="A firewall is present but there is no intrusion detection/prevention system.",
        severity="medium",
        category="compliance",
        affected_nodes=_ids(firewalls),
        recommendation="Add IDS/IPS to detect and block network threats.",
        references=["PCI DSS Requirement 11.4", "CIS Control 13"],
    )


def check_missing_nac(spec: InfraSpec) -> Finding | None:
    has_internal_network = any(
        n.zone == "internal" or n.type in ("app-server", "db-server") for n in spec.nodes
    )
    if spec.has_node_type("nac") or not has_internal_network:
        return None
    return Finding(
        id="COMP-002",
        title="Missing NAC",
        description="An internal network exists but there is no Network Access Control.",
        severity="low",
        category="compliance",
        affected_nodes=[],
        recommendation="Consider a NAC solution for network access control.",
        references=["CIS Control 1", "802.1X"],
    )


# ============================================================================
# BEST PRACTICE
# ============================================================================


def check_missing_cache(spec: InfraSpec) -> Finding | None:
    if (
        spec.has_node_type("cache")
        or not spec.has_node_type("db-server")
        or not spec.has_node_type(*APP_TYPES)
    ):
        return None
    return Finding(
        id="BP-001",
        title="Missing Cache Layer",
        description="There is no cache layer between the database and the application.",
        severity="info",
        category="best-practice",
        affected_nodes=[],
        recommendation="Consider a cache such as Redis or Memcached to improve performance.",
        references=["AWS ElastiCache Best Practices"],
    )


def check_missing_dns(spec: InfraSpec) -> Finding | None:
    if spec.has_node_type("dns") or len(spec.nodes_of_type(*APP_TYPES)) <= 1:
        return None
    return Finding(
        id="BP-002",
        title="No DNS Configured",
        description="A multi-server environment has no DNS configured.",
        severity="info",
        category="best-practice",
        affected_nodes=[],
        recommendation="Configure DNS for service discovery and load balancing.",
        references=["AWS Route 53 Best Practices"],
    )


SECURITY_RULES: list[Rule] = [
    Rule("NET-001", "Missing Firewall", "critical", check_missing_firewall),
    Rule("NET-002", "Missing WAF for Web Tier", "high", check_missing_waf),
    Rule("NET-003", "Direct Database Access", "critical", check_direct_database_access),
    Rule("NET-004", "Missing Load Balancer", "medium", check_missing_load_balancer),
    Rule("ACC-001", "Missing Authentication Layer", "high", check_missing_authentication),
    Rule("ACC-002", "No MFA Configured", "high", check_missing_mfa),
    Rule("DATA-001", "Missing Encryption for Data at Rest", "medium", check_unencrypted_storage),
    Rule("DATA-002", "Missing DLP", "low", check_missing_dlp),
    Rule("DATA-003", "Missing Backup", "high", check_missing_backup),
    Rule("AVAIL-001", "Single Point of Failure - Database", "medium", check_single_database),
    Rule("AVAIL-002", "No CDN for Static Content", "low", check_missing_cdn),
    Rule("COMP-001", "Missing IDS/IPS", "medium", check_missing_ids_ips),
    Rule("COMP-002", "Missing NAC", "low", check_missing_nac),
    Rule("BP-001", "Missing Cache Layer", "info", check_missing_cache),
    Rule("BP-002", "No DNS Configured", "info", check_missing_dns),
]

# Declared severity per rule id, used to seed severity calibration
SECURITY_RULE_SEVERITIES: dict[str, str] = {rule.id: rule.severity for rule in SECURITY_RULES}
