"""Shared fixtures for InfraGuard tests."""

import pytest

from models.infra import ConnectionSpec, InfraSpec, NodeSpec


@pytest.fixture
def secure_spec() -> InfraSpec:
    """A spec that satisfies every security rule."""
    nodes = [
        NodeSpec(id="inet", type="internet", label="Internet"),
        NodeSpec(id="cdn", type="cdn", label="CDN"),
        NodeSpec(id="fw", type="firewall", label="Firewall"),
        NodeSpec(id="waf", type="waf", label="WAF"),
        NodeSpec(id="ids", type="ids-ips", label="IDS"),
        NodeSpec(id="nac", type="nac", label="NAC"),
        NodeSpec(id="dlp", type="dlp", label="DLP"),
        NodeSpec(id="lb", type="load-balancer", label="LB"),
        NodeSpec(id="web1", type="web-server", label="Web 1"),
        NodeSpec(id="web2", type="web-server", label="Web 2"),
        NodeSpec(id="app", type="app-server", label="App", zone="internal"),
        NodeSpec(id="cache", type="cache", label="Cache"),
        NodeSpec(id="db1", type="db-server", label="DB primary", description="Encrypted at rest"),
        NodeSpec(id="db2", type="db-server", label="DB replica", description="encrypted replica"),
        NodeSpec(id="backup", type="backup", label="Backup"),
        NodeSpec(id="dns", type="dns", label="DNS"),
        NodeSpec(id="ldap", type="ldap-ad", label="LDAP"),
        NodeSpec(id="sso", type="sso", label="SSO"),
        NodeSpec(id="mfa", type="mfa", label="MFA"),
    ]
    connections = [
        ConnectionSpec(source="inet", target="cdn", flow_type="encrypted"),
        ConnectionSpec(source="cdn", target="fw", flow_type="encrypted"),
        ConnectionSpec(source="fw", target="waf"),
        ConnectionSpec(source="waf", target="lb"),
        ConnectionSpec(source="lb", target="web1"),
        ConnectionSpec(source="lb", target="web2"),
        ConnectionSpec(source="web1", target="app"),
        ConnectionSpec(source="app", target="db1"),
        ConnectionSpec(source="db1", target="db2", flow_type="sync"),
    ]
    return InfraSpec(name="secure", nodes=nodes, connections=connections)
