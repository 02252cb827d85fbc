"""Extraction of the internal graph from a loaded .tm7 document."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence, TypeVar

from lxml import etree

from . import registry
from .coordinates import resolve_bounds, to_internal
from .loader import ParsedDocument, child, child_text, children, xsi_type
from .properties import decode_properties
from .registry import Aliases, SENTINEL_ID
from .schemas import Boundary, Edge, Graph, GraphMetadata, Node


logger = logging.getLogger(__name__)

T = TypeVar('T', Node, Edge, Boundary)


@dataclass
class Wrapper:
    """A key plus typed value pair from a ``Borders`` or ``Lines`` section."""
    key: str
    value: etree._Element
    discriminator: Optional[str]
    section: str


class TM7GraphExtractor:
    """Builds a Graph from a ParsedDocument, skipping elements it cannot read."""

    UNNAMED_NODE = 'Unnamed Node'
    UNNAMED_BOUNDARY = 'Trust Boundary'
    UNTITLED_MODEL = 'Untitled Threat Model'
    DEFAULT_VERSION = '1.0'
    NAME_KEYS = ('Name', 'DisplayName')

    # Applied only to line boundaries named like the stock "Internet Boundary"
    # stencil, which otherwise lands on top of the default node layout.
    NUDGE_SUBSTRING = 'Internet'
    NUDGE_OFFSET = 60.0

    def __init__(self, document: ParsedDocument):
        self.document = document

    def extract(self) -> Graph:
        graph = Graph(
            nodes=self.extract_nodes(),
            edges=self.extract_edges(),
            boundaries=self.extract_boundaries(),
            metadata=self.extract_metadata(),
        )
        logger.info(
            f'Extracted {len(graph.nodes)} nodes, {len(graph.edges)} edges, '
            f'{len(graph.boundaries)} boundaries from "{graph.metadata.name}"'
        )
        return graph

    # -- sections --

    def extract_nodes(self) -> list[Node]:
        wrappers = [w for w in self._wrappers(Aliases.BORDERS) if not registry.is_boundary(w.discriminator)]
        return self._collect(wrappers, self._build_node, 'node')

    def extract_edges(self) -> list[Edge]:
        wrappers = [w for w in self._wrappers(Aliases.LINES) if not registry.is_boundary(w.discriminator)]
        return self._collect(wrappers, self._build_edge, 'edge')

    def extract_boundaries(self) -> list[Boundary]:
        # Boundaries legally appear in either section.
        wrappers = [
            w for w in self._wrappers(Aliases.BORDERS) + self._wrappers(Aliases.LINES)
            if registry.is_boundary(w.discriminator)
        ]
        return self._collect(wrappers, self._build_boundary, 'boundary')

    def extract_metadata(self) -> GraphMetadata:
        meta = self.document.find(Aliases.META_INFORMATION)
        fields = {field: child_text(meta, aliases) or '' for field, aliases in Aliases.META_FIELDS.items()}
        fields['name'] = fields['name'] or self.UNTITLED_MODEL
        now = datetime.now(timezone.utc)
        return GraphMetadata(
            version=self.document.child_text(Aliases.VERSION) or self.DEFAULT_VERSION,
            created=now,
            modified=now,
            **fields,
        )

    # -- element builders --

    def _build_node(self, wrapper: Wrapper) -> Optional[Node]:
        kind = registry.node_kind(wrapper.discriminator)
        if kind is None:
            logger.warning(f'Unknown TM7 node type {wrapper.discriminator!r} for element {wrapper.key}')
            return None
        value = wrapper.value
        properties = decode_properties(child(value, Aliases.PROPERTIES))
        return Node(
            id=wrapper.key,
            kind=kind,
            name=self._name(properties, self.UNNAMED_NODE),
            position=to_internal(_number(value, Aliases.LEFT), _number(value, Aliases.TOP)),
            properties=properties,
        )

    def _build_edge(self, wrapper: Wrapper) -> Optional[Edge]:
        value = wrapper.value
        source = child_text(value, Aliases.SOURCE_GUID)
        target = child_text(value, Aliases.TARGET_GUID)
        if not source or not target or SENTINEL_ID in (source, target):
            logger.debug(f'Skipping edge {wrapper.key} without both endpoints ({source} -> {target})')
            return None
        kind = registry.edge_kind(wrapper.discriminator)
        if kind is None:
            logger.debug(f'Unmapped connector type {wrapper.discriminator!r}, using {registry.DEFAULT_EDGE_KIND.value}')
            kind = registry.DEFAULT_EDGE_KIND
        return Edge(
            id=wrapper.key,
            kind=kind,
            source=source,
            targets=[target],
            properties=decode_properties(child(value, Aliases.PROPERTIES)),
        )

    def _build_boundary(self, wrapper: Wrapper) -> Optional[Boundary]:
        value = wrapper.value
        shape = registry.boundary_shape(wrapper.discriminator)
        kind = registry.boundary_kind(wrapper.discriminator)
        properties = decode_properties(child(value, Aliases.PROPERTIES))
        name = self._name(properties, self.UNNAMED_BOUNDARY)

        left = _number(value, Aliases.LEFT, None)
        top = _number(value, Aliases.TOP, None)
        width = _number(value, Aliases.WIDTH)
        height = _number(value, Aliases.HEIGHT)
        if shape == 'line':
            source_x = _number(value, Aliases.SOURCE_X, None)
            if source_x is not None:
                if left is None:
                    left = source_x
                    top = _number(value, Aliases.SOURCE_Y)
                if width <= 0:
                    width = abs(_number(value, Aliases.TARGET_X) - source_x)

        position = to_internal(left or 0.0, top or 0.0)
        if shape == 'line' and self.NUDGE_SUBSTRING in name:
            position.y -= self.NUDGE_OFFSET

        return Boundary(
            id=wrapper.key,
            kind=kind,
            name=name,
            position=position,
            bounds=resolve_bounds(shape, width, height),
            properties=properties,
            shape=shape,
        )

    # -- helpers --

    def _wrappers(self, section_aliases: Sequence[str]) -> list[Wrapper]:
        wrappers = []
        for container in self.document.find_all(section_aliases):
            section = etree.QName(container).localname
            for element in children(container, Aliases.WRAPPER):
                wrapper = _read_wrapper(element, section)
                if wrapper is not None:
                    wrappers.append(wrapper)
        return wrappers

    def _collect(self, wrappers: list[Wrapper], build: Callable[[Wrapper], Optional[T]], label: str) -> list[T]:
        items: list[T] = []
        seen: set[str] = set()
        for wrapper in wrappers:
            try:
                item = build(wrapper)
            except Exception as e:
                logger.warning(f'Failed to parse {label} element {wrapper.key}: {e}')
                continue
            if item is None:
                continue
            if item.id in seen:
                logger.warning(f'Skipping duplicate {label} id {item.id}')
                continue
            seen.add(item.id)
            items.append(item)
        logger.debug(f'Extracted {len(items)} of {len(wrappers)} {label} candidates')
        return items

    def _name(self, properties: dict, fallback: str) -> str:
        for key in self.NAME_KEYS:
            value = properties.get(key)
            if value not in (None, ''):
                return str(value)
        return fallback


def _read_wrapper(element: etree._Element, section: str) -> Optional[Wrapper]:
    value = child(element, Aliases.VALUE)
    if value is None:
        logger.warning(f'Skipping {section} entry without a value element')
        return None
    key = child_text(element, Aliases.KEY) or child_text(value, Aliases.GUID)
    if not key:
        logger.warning(f'Skipping {section} entry without a key')
        return None
    discriminator = (
        xsi_type(value)
        or child_text(value, Aliases.GENERIC_TYPE_ID)
        or child_text(value, Aliases.TYPE_ID)
    )
    return Wrapper(key=key, value=value, discriminator=discriminator, section=section)


def _number(element: etree._Element, aliases: Sequence[str], default: Optional[float] = 0.0) -> Optional[float]:
    text = child_text(element, aliases)
    if not text:
        return default
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(f'non-finite {aliases[-1]}: {text}')
    return number


def extract_graph(document: ParsedDocument) -> Graph:
    """Build a Graph from a loaded .tm7 document."""
    return TM7GraphExtractor(document).extract()
