"""Data models for infrastructure topologies.

An InfraSpec is the read-only input shared by the audit, compliance, what-if and
spec-diff components. Connection endpoints are expected to reference existing
node ids, but nothing here enforces it: consumers must tolerate dangling edges.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Node type catalogue grouped by category
NODE_CATEGORIES: dict[str, tuple[str, ...]] = {
    "security": ("firewall", "waf", "ids-ips", "vpn-gateway", "nac", "dlp"),
    "network": ("router", "switch-l2", "switch-l3", "load-balancer", "sd-wan", "dns", "cdn"),
    "compute": ("web-server", "app-server", "db-server", "container", "vm", "kubernetes"),
    "cloud": ("aws-vpc", "azure-vnet", "gcp-network", "private-cloud"),
    "storage": ("san-nas", "object-storage", "backup", "cache", "storage"),
    "auth": ("ldap-ad", "sso", "mfa", "iam"),
    "telecom": ("central-office", "base-station", "olt", "customer-premise", "idc"),
    "wan": (
        "pe-router",
        "p-router",
        "mpls-network",
        "dedicated-line",
        "metro-ethernet",
        "corporate-internet",
        "vpn-service",
        "sd-wan-service",
        "private-5g",
        "core-network",
        "upf",
        "ring-network",
    ),
    "external": ("user", "internet"),
    "zone": ("zone",),
}

NodeType = Literal[
    "firewall", "waf", "ids-ips", "vpn-gateway", "nac", "dlp",
    "router", "switch-l2", "switch-l3", "load-balancer", "sd-wan", "dns", "cdn",
    "web-server", "app-server", "db-server", "container", "vm", "kubernetes",
    "aws-vpc", "azure-vnet", "gcp-network", "private-cloud",
    "san-nas", "object-storage", "backup", "cache", "storage",
    "ldap-ad", "sso", "mfa", "iam",
    "central-office", "base-station", "olt", "customer-premise", "idc",
    "pe-router", "p-router", "mpls-network", "dedicated-line", "metro-ethernet",
    "corporate-internet", "vpn-service", "sd-wan-service", "private-5g",
    "core-network", "upf", "ring-network",
    "user", "internet", "zone",
]

TierType = Literal["external", "dmz", "internal", "data"]

FlowType = Literal[
    "request",
    "response",
    "sync",
    "blocked",
    "encrypted",
    "wan-link",
    "wireless",
    "tunnel",
]


def get_node_category(node_type: str) -> str | None:
    """Return the category a node type belongs to, or None if unknown."""
    for category, types in NODE_CATEGORIES.items():
        if node_type in types:
            return category
    return None


class NodeSpec(BaseModel):
    """A single infrastructure component in the topology."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: NodeType
    label: str
    tier: TierType | None = None
    zone: str | None = None
    description: str | None = None


class ConnectionSpec(BaseModel):
    """A directed, typed link between two nodes."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    flow_type: FlowType | None = None
    label: str | None = None
    bidirectional: bool | None = None


class InfraSpec(BaseModel):
    """Graph of nodes and connections being analyzed."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    description: str | None = None
    nodes: list[NodeSpec] = Field(default_factory=list)
    connections: list[ConnectionSpec] = Field(default_factory=list)

    def nodes_of_type(self, *node_types: str) -> list[NodeSpec]:
        """Return nodes whose type is one of node_types, in declaration order."""
        return [n for n in self.nodes if n.type in node_types]

    def has_node_type(self, *node_types: str) -> bool:
        """Return True if at least one node has one of the given types."""
        return any(n.type in node_types for n in self.nodes)

    def get_node(self, node_id: str) -> NodeSpec | None:
        """Return the node with the given id, or None."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None
