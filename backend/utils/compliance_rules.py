"""Compliance framework requirement sets.

Each framework is an ordered list of Requirements. Unlike security rules, a
requirement always classifies the spec as pass, fail, partial or
not-applicable, so reports can distinguish "good" from "inapplicable".
"""

from models.infra import InfraSpec
from utils.rule_engine import CheckOutcome, Requirement

DIRECTORY_AUTH_TYPES = ("ldap-ad", "sso", "iam")


def _has_encrypted_transport(spec: InfraSpec) -> bool:
    return any(c.flow_type == "encrypted" for c in spec.connections) or spec.has_node_type(
        "vpn-gateway"
    )


# ============================================================================
# ISMS-P
# ============================================================================


def _isms_p_access_control(spec: InfraSpec) -> CheckOutcome:
    has_firewall = spec.has_node_type("firewall")
    if has_firewall and spec.has_node_type("nac"):
        return CheckOutcome("pass", "Firewall and NAC are configured.")
    if has_firewall:
        return CheckOutcome("partial", "A firewall exists but NAC is missing.", "Introduce a NAC solution")
    return CheckOutcome("fail", "No access control devices found.", "Configure a firewall and NAC")


def _isms_p_user_authentication(spec: InfraSpec) -> CheckOutcome:
    has_auth = spec.has_node_type(*DIRECTORY_AUTH_TYPES)
    if has_auth and spec.has_node_type("mfa"):
        return CheckOutcome("pass", "An authentication system and MFA are configured.")
    if has_auth:
        return CheckOutcome("partial", "An authentication system exists but MFA is missing.", "Introduce MFA")
    return CheckOutcome("fail", "No authentication system found.", "Configure authentication and authorization")


def _isms_p_cryptography(spec: InfraSpec) -> CheckOutcome:
    if _has_encrypted_transport(spec):
        return CheckOutcome("pass", "Encrypted communication is configured.")
    return CheckOutcome(
        "partial", "Encrypted communication cannot be confirmed.", "Verify TLS/VPN configuration"
    )


def _isms_p_incident_response(spec: InfraSpec) -> CheckOutcome:
    has_ids = spec.has_node_type("ids-ips")
    has_waf = spec.has_node_type("waf")
    if has_ids and has_waf:
        return CheckOutcome("pass", "IDS/IPS and WAF are configured.")
    if has_ids or has_waf:
        return CheckOutcome(
            "partial", "Only part of the security monitoring is configured.", "Configure both IDS/IPS and WAF"
        )
    return CheckOutcome("fail", "No security monitoring devices found.", "Configure IDS/IPS and WAF")


def _isms_p_disaster_recovery(spec: InfraSpec) -> CheckOutcome:
    has_backup = spec.has_node_type("backup")
    has_redundancy = len(spec.nodes_of_type("db-server")) > 1
    if has_backup and has_redundancy:
        return CheckOutcome("pass", "Backup and redundancy are configured.")
    if has_backup:
        return CheckOutcome("partial", "Backup exists but there is no redundancy.", "Configure database redundancy")
    return CheckOutcome("fail", "No backup system found.", "Establish backup and recovery")


ISMS_P: list[Requirement] = [
    Requirement(
        "ISMS-P-2.6.1",
        "Access control policy",
        "Establish a policy to control access to information systems",
        _isms_p_access_control,
    ),
    Requirement(
        "ISMS-P-2.6.2",
        "User authentication",
        "Authenticate users when they access information systems",
        _isms_p_user_authentication,
    ),
    Requirement(
        "ISMS-P-2.7.1",
        "Cryptography policy",
        "Apply encryption to personal and critical information",
        _isms_p_cryptography,
    ),
    Requirement(
        "ISMS-P-2.9.1",
        "Incident response",
        "Build security incident detection and response capability",
        _isms_p_incident_response,
    ),
    Requirement(
        "ISMS-P-2.10.1",
        "Disaster recovery",
        "Plan disaster recovery and build a backup system",
        _isms_p_disaster_recovery,
    ),
]


# ============================================================================
# ISO 27001
# ============================================================================


def _iso_access_control(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type("firewall", "nac", "iam"):
        return CheckOutcome("pass", "Access control mechanisms are in place.")
    return CheckOutcome(
        "fail", "No access control mechanisms found.", "Implement access control policy and mechanisms"
    )


def _iso_cryptographic_controls(spec: InfraSpec) -> CheckOutcome:
    if _has_encrypted_transport(spec):
        return CheckOutcome("pass", "Cryptographic controls are implemented.")
    return CheckOutcome("partial", "Encryption status unclear.", "Verify encryption implementation")


def _iso_vulnerability_management(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type("ids-ips"):
        return CheckOutcome("pass", "Vulnerability detection system is in place.")
    return CheckOutcome("fail", "No vulnerability detection system.", "Implement IDS/IPS solution")


def _iso_network_controls(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type("firewall", "router", "switch-l3"):
        return CheckOutcome("pass", "Network controls are implemented.")
    return CheckOutcome(
        "fail", "No network controls found.", "Implement network segmentation and controls"
    )


def _iso_continuity(spec: InfraSpec) -> CheckOutcome:
    has_backup = spec.has_node_type("backup")
    has_lb = spec.has_node_type("load-balancer")
    if has_backup and has_lb:
        return CheckOutcome("pass", "Business continuity measures are in place.")
    if has_backup or has_lb:
        return CheckOutcome("partial", "Partial continuity measures.", "Implement full HA and backup")
    return CheckOutcome("fail", "No continuity measures.", "Implement backup and HA solutions")


ISO_27001: list[Requirement] = [
    Requirement(
        "A.9.1.1",
        "Access control policy",
        "An access control policy shall be established and maintained",
        _iso_access_control,
    ),
    Requirement(
        "A.10.1.1",
        "Cryptographic controls",
        "A policy on the use of cryptographic controls shall be developed",
        _iso_cryptographic_controls,
    ),
    Requirement(
        "A.12.6.1",
        "Management of technical vulnerabilities",
        "Information about technical vulnerabilities shall be obtained",
        _iso_vulnerability_management,
    ),
    Requirement(
        "A.13.1.1",
        "Network controls",
        "Networks shall be managed and controlled",
        _iso_network_controls,
    ),
    Requirement(
        "A.17.1.1",
        "Information security continuity",
        "Information security continuity shall be planned",
        _iso_continuity,
    ),
]


# ============================================================================
# PCI DSS
# ============================================================================


def _pci_firewall(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type("firewall"):
        return CheckOutcome("pass", "Firewall is configured.")
    return CheckOutcome("fail", "No firewall found.", "Install and configure firewall")


def _pci_render_pan_unreadable(spec: InfraSpec) -> CheckOutcome:
    if not spec.has_node_type("db-server"):
        return CheckOutcome("not-applicable", "No database in architecture.")
    if spec.has_node_type("dlp"):
        return CheckOutcome("partial", "DLP is configured.", "Verify data encryption at rest")
    return CheckOutcome("fail", "Data protection measures not visible.", "Implement data encryption")


def _pci_waf(spec: InfraSpec) -> CheckOutcome:
    if not spec.has_node_type("web-server"):
        return CheckOutcome("not-applicable", "No web server in architecture.")
    if spec.has_node_type("waf"):
        return CheckOutcome("pass", "WAF is configured.")
    return CheckOutcome("fail", "No WAF protecting web server.", "Install WAF")


def _pci_mfa(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type("mfa"):
        return CheckOutcome("pass", "MFA is configured.")
    return CheckOutcome("fail", "No MFA configured.", "Implement MFA for administrative access")


PCI_DSS: list[Requirement] = [
    Requirement(
        "PCI-1.1",
        "Install and maintain a firewall",
        "Install and maintain a firewall configuration to protect cardholder data",
        _pci_firewall,
    ),
    Requirement(
        "PCI-3.4",
        "Render PAN unreadable",
        "Render PAN unreadable anywhere it is stored",
        _pci_render_pan_unreadable,
    ),
    Requirement(
        "PCI-6.6",
        "Web application firewall",
        "Install a web application firewall in front of web applications",
        _pci_waf,
    ),
    Requirement(
        "PCI-8.3",
        "Multi-factor authentication",
        "Secure all individual non-console administrative access using MFA",
        _pci_mfa,
    ),
]


# ============================================================================
# GDPR
# ============================================================================


def _gdpr_security_of_processing(spec: InfraSpec) -> CheckOutcome:
    has_encryption = any(c.flow_type == "encrypted" for c in spec.connections)
    if has_encryption and spec.has_node_type("firewall"):
        return CheckOutcome("pass", "Encryption and access control are in place.")
    return CheckOutcome(
        "partial", "Partial security measures.", "Implement full encryption and access control"
    )


def _gdpr_breach_notification(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type("ids-ips"):
        return CheckOutcome("pass", "Breach detection capability exists.")
    return CheckOutcome("fail", "No breach detection system.", "Implement IDS/IPS for breach detection")


def _gdpr_protection_by_design(spec: InfraSpec) -> CheckOutcome:
    if not spec.has_node_type("db-server"):
        return CheckOutcome("not-applicable", "No database in architecture.")
    if spec.has_node_type("dlp"):
        return CheckOutcome("pass", "DLP for data protection is configured.")
    return CheckOutcome("partial", "Consider DLP implementation.", "Implement DLP solution")


GDPR: list[Requirement] = [
    Requirement(
        "GDPR-32",
        "Security of processing",
        "Implement appropriate technical measures to ensure security",
        _gdpr_security_of_processing,
    ),
    Requirement(
        "GDPR-33",
        "Notification of breaches",
        "Ability to detect and report personal data breaches",
        _gdpr_breach_notification,
    ),
    Requirement(
        "GDPR-25",
        "Data protection by design",
        "Implement data protection principles in system design",
        _gdpr_protection_by_design,
    ),
]


# ============================================================================
# HIPAA
# ============================================================================


def _hipaa_access_control(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type(*DIRECTORY_AUTH_TYPES) and spec.has_node_type("firewall"):
        return CheckOutcome("pass", "Access control mechanisms are in place.")
    return CheckOutcome("fail", "Insufficient access controls.", "Implement authentication and firewall")


def _hipaa_transmission_security(spec: InfraSpec) -> CheckOutcome:
    if _has_encrypted_transport(spec):
        return CheckOutcome("pass", "Transmission security is implemented.")
    return CheckOutcome("fail", "No transmission security visible.", "Implement TLS/VPN")


HIPAA: list[Requirement] = [
    Requirement(
        "HIPAA-164.312(a)",
        "Access Control",
        "Implement technical policies for electronic PHI access",
        _hipaa_access_control,
    ),
    Requirement(
        "HIPAA-164.312(e)",
        "Transmission Security",
        "Implement technical security measures for PHI transmission",
        _hipaa_transmission_security,
    ),
]


# ============================================================================
# K-ISMS
# ============================================================================


def _k_isms_network_security(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type("firewall"):
        return CheckOutcome("pass", "A firewall is configured.")
    return CheckOutcome("fail", "No firewall found.", "Configure a firewall")


def _k_isms_user_authentication(spec: InfraSpec) -> CheckOutcome:
    if spec.has_node_type("ldap-ad", "sso", "iam", "mfa"):
        return CheckOutcome("pass", "An authentication system is configured.")
    return CheckOutcome("fail", "No authentication system found.", "Configure an authentication system")


K_ISMS: list[Requirement] = [
    Requirement(
        "K-ISMS-2.5.1",
        "Network security",
        "Establish an access control policy for networks",
        _k_isms_network_security,
    ),
    Requirement(
        "K-ISMS-2.6.2",
        "User authentication",
        "Perform secure authentication when accessing information systems",
        _k_isms_user_authentication,
    ),
]


COMPLIANCE_REQUIREMENTS: dict[str, list[Requirement]] = {
    "isms-p": ISMS_P,
    "iso27001": ISO_27001,
    "pci-dss": PCI_DSS,
    "gdpr": GDPR,
    "hipaa": HIPAA,
    "k-isms": K_ISMS,
}

FRAMEWORK_NAMES: dict[str, str] = {
    "isms-p": "ISMS-P (Information Security Management System)",
    "iso27001": "ISO 27001",
    "pci-dss": "PCI DSS",
    "gdpr": "GDPR",
    "hipaa": "HIPAA",
    "k-isms": "K-ISMS",
}

FRAMEWORK_DESCRIPTIONS: dict[str, str] = {
    "isms-p": "Korean information security management system",
    "k-isms": "Korean information security management system (simplified)",
    "iso27001": "International information security standard",
    "pci-dss": "Payment card industry security standard",
    "gdpr": "EU data protection regulation",
    "hipaa": "US health information protection law",
}
