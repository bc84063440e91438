"""Structural diff between two infrastructure specs.

Used to detect the corrections a user made to a generated spec. Nodes are
matched by id and connections by their directed "source→target" key, never by
array position, so permuting either list does not change the result.
"""

from models.infra import ConnectionSpec, InfraSpec, NodeSpec
from models.learning import DiffOperation, PlacementChange, SpecDiff

NODE_DIFF_FIELDS = ("type", "label", "tier", "zone", "description")
CONNECTION_DIFF_FIELDS = ("flow_type", "label")


def connection_key(conn: ConnectionSpec) -> str:
    """Directed key for a connection; a reversed edge gets a different key."""
    return f"{conn.source}→{conn.target}"


def _diff_node(original: NodeSpec, modified: NodeSpec) -> list[DiffOperation]:
    ops: list[DiffOperation] = []
    for field in NODE_DIFF_FIELDS:
        old_value = getattr(original, field)
        new_value = getattr(modified, field)
        if old_value != new_value:
            ops.append(
                DiffOperation(
                    type="modify-node",
                    node_id=modified.id,
                    node_type=modified.type,
                    field=field,
                    old_value=old_value,
                    new_value=new_value,
                )
            )
    return ops


def _diff_connections(
    original: list[ConnectionSpec], modified: list[ConnectionSpec]
) -> tuple[int, int, list[DiffOperation]]:
    """Diff two connection lists.

    Returns:
        Tuple of (added count, removed count, operations).
    """
    original_map = {connection_key(c): c for c in original}
    modified_map = {connection_key(c): c for c in modified}

    ops: list[DiffOperation] = []
    added = 0
    removed = 0

    for key in sorted(original_map.keys() - modified_map.keys()):
        conn = original_map[key]
        ops.append(DiffOperation(type="remove-connection", source=conn.source, target=conn.target))
        removed += 1

    for key in sorted(modified_map):
        conn = modified_map[key]
        orig = original_map.get(key)
        if orig is None:
            ops.append(DiffOperation(type="add-connection", source=conn.source, target=conn.target))
            added += 1
            continue

        for field in CONNECTION_DIFF_FIELDS:
            old_value = getattr(orig, field)
            new_value = getattr(conn, field)
            if old_value != new_value:
                ops.append(
                    DiffOperation(
                        type="modify-connection",
                        source=conn.source,
                        target=conn.target,
                        field=field,
                        old_value=old_value,
                        new_value=new_value,
                    )
                )

    return added, removed, ops


def compute_spec_diff(original: InfraSpec, modified: InfraSpec) -> SpecDiff:
    """Compute the structural diff from original to modified.

    Operations are emitted in a fixed order: node removals, node additions and
    modifications, then connection removals, connection additions and
    modifications. Each group is sorted by node id or connection key.

    Args:
        original: The generated spec.
        modified: The spec after user edits.

    Returns:
        SpecDiff. Diffing a spec against itself yields no operations.
    """
    original_nodes = {n.id: n for n in original.nodes}
    modified_nodes = {n.id: n for n in modified.nodes}

    operations: list[DiffOperation] = []
    placement_changes: list[PlacementChange] = []
    nodes_added = 0
    nodes_removed = 0
    nodes_modified = 0

    for node_id in sorted(original_nodes.keys() - modified_nodes.keys()):
        operations.append(
            DiffOperation(
                type="remove-node", node_id=node_id, node_type=original_nodes[node_id].type
            )
        )
        nodes_removed += 1

    for node_id in sorted(modified_nodes):
        mod_node = modified_nodes[node_id]
        orig_node = original_nodes.get(node_id)

        if orig_node is None:
            operations.append(
                DiffOperation(type="add-node", node_id=node_id, node_type=mod_node.type)
            )
            nodes_added += 1
            continue

        changes = _diff_node(orig_node, mod_node)
        if changes:
            operations.extend(changes)
            nodes_modified += 1

        if orig_node.tier != mod_node.tier:
            placement_changes.append(
                PlacementChange(
                    node_id=node_id,
                    node_type=mod_node.type,
                    from_tier=orig_node.tier,
                    to_tier=mod_node.tier,
                )
            )

    connections_added, connections_removed, connection_ops = _diff_connections(
        original.connections, modified.connections
    )
    operations.extend(connection_ops)

    return SpecDiff(
        operations=operations,
        nodes_added=nodes_added,
        nodes_removed=nodes_removed,
        nodes_modified=nodes_modified,
        connections_added=connections_added,
        connections_removed=connections_removed,
        placement_changes=placement_changes,
    )


def has_significant_changes(diff: SpecDiff) -> bool:
    """Return True if the diff has any structural node or connection change."""
    return (
        diff.nodes_added > 0
        or diff.nodes_removed > 0
        or diff.nodes_modified > 0
        or diff.connections_added > 0
        or diff.connections_removed > 0
    )


def compute_modification_score(diff: SpecDiff, original_node_count: int) -> float:
    """Estimate how much of the original spec was changed, from 0.0 to 1.0.

    A change count equal to the original node count scores 1.0.
    """
    if original_node_count == 0:
        return 0.0

    total_changes = (
        diff.nodes_added
        + diff.nodes_removed
        + diff.nodes_modified
        + diff.connections_added
        + diff.connections_removed
    )
    return min(1.0, total_changes / max(1, original_node_count))
