"""Structural consistency checks for a graph.

Only the wiring of the graph is checked here; the threat content of
properties is left alone.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .schemas import Graph


@dataclass
class GraphIssue:
    """A structural problem found in a graph."""
    severity: str  # 'error' or 'warning'
    code: str
    message: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None


def check_graph(graph: Graph) -> list[GraphIssue]:
    issues: list[GraphIssue] = []
    node_ids = {node.id for node in graph.nodes}

    for node in graph.nodes:
        if not (math.isfinite(node.position.x) and math.isfinite(node.position.y)):
            issues.append(GraphIssue(
                'error', 'NODE_INVALID_POSITION',
                f"Node '{node.name}' has a non-finite position",
                node.id, 'node',
            ))

    for edge in graph.edges:
        if edge.source not in node_ids:
            issues.append(GraphIssue(
                'warning', 'EDGE_UNKNOWN_SOURCE',
                f"Edge {edge.id} starts at unknown node {edge.source}",
                edge.id, 'edge',
            ))
        for target in edge.targets:
            if target not in node_ids:
                issues.append(GraphIssue(
                    'warning', 'EDGE_UNKNOWN_TARGET',
                    f"Edge {edge.id} ends at unknown node {target}",
                    edge.id, 'edge',
                ))
        if edge.source in edge.targets:
            issues.append(GraphIssue(
                'warning', 'EDGE_SELF_LOOP',
                f"Edge {edge.id} connects node {edge.source} to itself",
                edge.id, 'edge',
            ))
        if len(set(edge.targets)) != len(edge.targets):
            issues.append(GraphIssue(
                'warning', 'EDGE_DUPLICATE_TARGET',
                f"Edge {edge.id} lists the same target more than once",
                edge.id, 'edge',
            ))

    return issues


def has_errors(issues: list[GraphIssue]) -> bool:
    return any(issue.severity == 'error' for issue in issues)
