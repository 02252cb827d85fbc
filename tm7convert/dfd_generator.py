"""Data Flow Diagram (DFD) preview generator for decoded graphs."""

from dataclasses import dataclass, field
from graphviz import Digraph

from .schemas import Boundary, BoundaryKind, Edge, Graph, Node, NodeKind


@dataclass
class BoundaryCluster:
    """A rectangular boundary and the nodes placed inside it."""
    boundary: Boundary
    node_ids: list[str] = field(default_factory=list)


class DFDGenerator:
    """Generates Data Flow Diagrams from a threat model graph."""

    NODE_SHAPES = {
        NodeKind.PROCESS: 'ellipse',
        NodeKind.DATASTORE: 'cylinder',
        NodeKind.EXTERNAL_ENTITY: 'box',
        NodeKind.SERVICE: 'component',
    }

    BOUNDARY_COLORS = {
        BoundaryKind.TRUST_BOUNDARY: '#f8d7da',
        BoundaryKind.NETWORK_ZONE: '#cce5ff',
    }

    def __init__(self, graph: Graph):
        self.graph = graph
        self._node_map = graph.node_map()
        self._clusters = self._extract_clusters()

    def _extract_clusters(self) -> list[BoundaryCluster]:
        # Only rectangles enclose anything; line boundaries are left out.
        clusters = [BoundaryCluster(b) for b in self.graph.boundaries if b.shape == 'rectangle']
        for node in self.graph.nodes:
            for cluster in clusters:
                if self._contains(cluster.boundary, node):
                    cluster.node_ids.append(node.id)
                    break
        return clusters

    def _contains(self, boundary: Boundary, node: Node) -> bool:
        # Boundary position is the top-left corner; y grows upward.
        left, top = boundary.position.x, boundary.position.y
        return (left <= node.position.x <= left + boundary.bounds.width
                and top - boundary.bounds.height <= node.position.y <= top)

    def _clustered_ids(self) -> set[str]:
        return {node_id for cluster in self._clusters for node_id in cluster.node_ids}

    def _flows(self) -> list[tuple[Edge, str]]:
        return [(edge, target) for edge in self.graph.edges for target in edge.targets]

    def _edge_label(self, edge: Edge) -> str:
        label = edge.properties.get('Name') or edge.properties.get('DisplayName')
        return str(label) if label else edge.kind.value

    def generate(self, output_format: str = 'svg') -> tuple[str, Digraph]:
        graph = Digraph(
            name='DFD',
            comment=f'Data Flow Diagram: {self.graph.metadata.name}',
            format=output_format,
            engine='dot'
        )

        graph.attr(rankdir='LR', nodesep='0.8', ranksep='1.2', fontname='Arial', fontsize='12')
        graph.attr('node', fontname='Arial', fontsize='10')
        graph.attr('edge', fontname='Arial', fontsize='9')

        for index, cluster in enumerate(self._clusters):
            boundary = cluster.boundary
            with graph.subgraph(name=f'cluster_{index}') as subgraph:
                subgraph.attr(
                    label=boundary.name,
                    style='dashed',
                    color='red' if boundary.kind == BoundaryKind.TRUST_BOUNDARY else 'blue',
                    bgcolor=self.BOUNDARY_COLORS.get(boundary.kind, '#ffffff'),
                    fontsize='11',
                    fontcolor='#333333'
                )
                for node_id in cluster.node_ids:
                    self._add_node(subgraph, self._node_map[node_id])

        clustered = self._clustered_ids()
        for node in self.graph.nodes:
            if node.id not in clustered:
                self._add_node(graph, node)

        for edge, target in self._flows():
            graph.edge(edge.source, target, label=self._edge_label(edge), color='#666666')

        return graph.source, graph

    def _add_node(self, graph: Digraph, node: Node) -> None:
        graph.node(
            node.id,
            label=f'{node.name}\n[{node.kind.value}]',
            shape=self.NODE_SHAPES.get(node.kind, 'box'),
            style='filled',
            fillcolor='white',
            tooltip=node.name
        )

    def generate_dot(self) -> str:
        source, _ = self.generate()
        return source

    def render_to_file(self, output_path: str, output_format: str = 'svg') -> str:
        _, graph = self.generate(output_format)
        return graph.render(output_path, cleanup=True)

    def to_mermaid(self) -> str:
        lines = ['flowchart LR']
        for index, cluster in enumerate(self._clusters):
            lines.append(f'    subgraph B{index}["{self._safe_label(cluster.boundary.name)}"]')
            for node_id in cluster.node_ids:
                lines.append(f'        {self._mermaid_node(self._node_map[node_id])}')
            lines.append('    end')
        clustered = self._clustered_ids()
        for node in self.graph.nodes:
            if node.id not in clustered:
                lines.append(f'    {self._mermaid_node(node)}')
        for edge, target in self._flows():
            # Skip flows with undefined source or destination nodes
            if edge.source not in self._node_map or target not in self._node_map:
                continue
            label = self._safe_label(self._edge_label(edge))
            lines.append(f'    {self._mermaid_id(edge.source)} -->|{label}| {self._mermaid_id(target)}')
        return '\n'.join(lines)

    def _mermaid_node(self, node: Node) -> str:
        opening, closing = self._mermaid_shape(node.kind)
        return f'{self._mermaid_id(node.id)}{opening}"{self._safe_label(node.name)}"{closing}'

    def _mermaid_id(self, value: str) -> str:
        safe = ''.join(ch if ch.isalnum() else '_' for ch in value.strip())
        if not safe or safe[0].isdigit():
            return f'N_{safe}'
        return safe

    def _safe_label(self, text: str) -> str:
        """Escape special characters in Mermaid labels."""
        if not text:
            return ""
        return text.replace('"', "'").replace('(', '').replace(')', '').replace('[', '').replace(']', '').replace('|', '-').replace('<', '').replace('>', '')

    def _mermaid_shape(self, kind: NodeKind) -> tuple[str, str]:
        shapes = {
            NodeKind.PROCESS: ('((', '))'),
            NodeKind.DATASTORE: ('[(', ')]'),
            NodeKind.EXTERNAL_ENTITY: ('[', ']'),
            NodeKind.SERVICE: ('[[', ']]'),
        }
        return shapes.get(kind, ('[', ']'))
