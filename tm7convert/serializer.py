"""Serialization of the internal graph to .tm7 XML."""

import logging
import math
import uuid
from pathlib import Path
from typing import Any, Optional
from xml.sax.saxutils import escape

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from markupsafe import Markup

from . import registry
from .coordinates import NODE_HEIGHT, NODE_WIDTH, to_external
from .loader import TM7ParseError, load
from .properties import encode_properties
from .registry import SENTINEL_ID
from .schemas import Boundary, Edge, Graph, Node


logger = logging.getLogger(__name__)

_XML_ENTITIES = {'"': '&quot;', "'": '&apos;'}


class TM7ExportError(Exception):
    """Raised when a graph cannot be written as a well-formed .tm7 document."""
    pass


def generate_guid() -> str:
    """Random identifier in the tool's 8-4-4-4-12 form (version 4, RFC 4122 variant)."""
    return str(uuid.uuid4())


def xml_escape(value: Any) -> Markup:
    """Escape all five XML metacharacters as named entities."""
    return Markup(escape(str(value), _XML_ENTITIES))


def format_number(value: float) -> str:
    number = float(value)
    if not math.isfinite(number):
        raise TM7ExportError(f"Cannot write non-finite coordinate {number!r}")
    if number.is_integer():
        return str(int(number))
    return repr(number)


class TM7Serializer:
    """Writes a Graph into the .tm7 document skeleton."""

    TEMPLATE_NAME = 'skeleton.tm7.xml'
    NAME_KEY = 'Name'
    EDGE_TYPE_KEY = 'EdgeType'

    def __init__(self, template_dir: Optional[Path] = None):
        if template_dir is None:
            template_dir = Path(__file__).parent / 'templates'
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(['html', 'xml'])
        )
        self.env.filters['xml'] = xml_escape

    def serialize(self, graph: Graph) -> str:
        """Render the graph and verify the result is well-formed.

        Raises:
            TM7ExportError: when rendering fails or the output does not re-parse.
        """
        border_boundaries = []
        line_boundaries = []
        for boundary in graph.boundaries:
            view = self._boundary_view(boundary)
            if registry.boundary_shape(view['discriminator']) == 'line':
                line_boundaries.append(view)
            else:
                border_boundaries.append(view)

        context = {
            'sentinel': SENTINEL_ID,
            'surface_guid': generate_guid(),
            'meta': graph.metadata,
            'version': graph.metadata.version,
            'nodes': [self._node_view(node) for node in graph.nodes],
            'edges': [view for edge in graph.edges for view in self._edge_views(edge)],
            'border_boundaries': border_boundaries,
            'line_boundaries': line_boundaries,
        }
        _check_unique_keys('Borders', context['nodes'] + border_boundaries)
        _check_unique_keys('Lines', context['edges'] + line_boundaries)

        try:
            text = self.env.get_template(self.TEMPLATE_NAME).render(**context)
        except TemplateError as e:
            raise TM7ExportError(f'Failed to export to TM7 format: {e}') from e

        try:
            load(text)
        except TM7ParseError as e:
            raise TM7ExportError(f'Generated invalid XML: {e.message}') from e

        logger.info(
            f'Exported "{graph.metadata.name}": {len(context["nodes"])} nodes, '
            f'{len(context["edges"])} edge wrappers, {len(graph.boundaries)} boundaries'
        )
        return text

    def _entries(self, name: str, properties: dict[str, Any]) -> list[tuple[str, str]]:
        entries = [(self.NAME_KEY, name)]
        for entry in encode_properties(properties):
            if entry.name != self.NAME_KEY:
                entries.append((entry.name, entry.value))
        return entries

    def _node_view(self, node: Node) -> dict[str, Any]:
        left, top = to_external(node.position)
        return {
            'key': node.id,
            'discriminator': registry.node_discriminator(node.kind),
            'entries': self._entries(node.name, node.properties),
            'left': format_number(left),
            'top': format_number(top),
            'width': format_number(NODE_WIDTH),
            'height': format_number(NODE_HEIGHT),
        }

    def _edge_views(self, edge: Edge) -> list[dict[str, Any]]:
        # The tool only knows point-to-point flows: one wrapper per target.
        # A single-target edge keeps its own id so it survives a round trip.
        entries = [(self.EDGE_TYPE_KEY, edge.kind.value)] + [
            (entry.name, entry.value) for entry in encode_properties(edge.properties)
            if entry.name != self.EDGE_TYPE_KEY
        ]
        discriminator = registry.edge_discriminator(edge.kind)
        fan_out = len(edge.targets) > 1
        return [
            {
                'key': f'{edge.id}-{target}' if fan_out else edge.id,
                'discriminator': discriminator,
                'entries': entries,
                'source': edge.source,
                'target': target,
            }
            for target in edge.targets
        ]

    def _boundary_view(self, boundary: Boundary) -> dict[str, Any]:
        left, top = to_external(boundary.position)
        width = boundary.bounds.width
        return {
            'key': boundary.id,
            'discriminator': registry.boundary_discriminator(boundary.kind),
            'entries': self._entries(boundary.name, boundary.properties),
            'left': format_number(left),
            'top': format_number(top),
            'width': format_number(width),
            'height': format_number(boundary.bounds.height),
            'right': format_number(left + width),
            'handle_x': format_number(left + width / 2),
        }


def _check_unique_keys(section: str, views: list[dict[str, Any]]) -> None:
    # Borders and Lines are keyed dictionaries in the tool; a repeated key loses an element.
    seen: set[str] = set()
    for view in views:
        key = view['key']
        if key in seen:
            raise TM7ExportError(f"Duplicate {section} key '{key}' would overwrite another element")
        seen.add(key)


def serialize_graph(graph: Graph) -> str:
    """Render a Graph as .tm7 XML text."""
    return TM7Serializer().serialize(graph)
