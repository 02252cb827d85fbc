"""Pydantic models for the internal threat model graph."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from pydantic import BaseModel, Field, field_validator, model_validator


class NodeKind(str, Enum):
    """Kinds of diagram elements a node can represent."""
    PROCESS = 'process'
    DATASTORE = 'datastore'
    EXTERNAL_ENTITY = 'external-entity'
    SERVICE = 'service'


class EdgeKind(str, Enum):
    """Kinds of data flows."""
    HTTPS = 'https'
    GRPC = 'grpc'


class BoundaryKind(str, Enum):
    """Kinds of boundaries drawn around or across nodes."""
    TRUST_BOUNDARY = 'trust-boundary'
    NETWORK_ZONE = 'network-zone'


BoundaryShape = Literal['line', 'rectangle']


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Position(BaseModel):
    """A point on the canvas. The vertical axis increases upward."""
    x: float = 0.0
    y: float = 0.0


class Size(BaseModel):
    """Width and height of a boundary."""
    width: float = Field(0.0, ge=0)
    height: float = Field(0.0, ge=0)


class Node(BaseModel):
    """A process, data store, external entity or service."""
    id: str
    kind: NodeKind
    name: str
    position: Position = Field(default_factory=Position)
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator('id')
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Node id cannot be empty')
        return v


class Edge(BaseModel):
    """A data flow from one source to one or more targets."""
    id: str
    kind: EdgeKind = EdgeKind.HTTPS
    source: str
    targets: list[str] = Field(..., min_length=1)
    properties: dict[str, Any] = Field(default_factory=dict)

    @field_validator('id')
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Edge id cannot be empty')
        return v


class Boundary(BaseModel):
    """A trust boundary line or a network zone rectangle."""
    id: str
    kind: BoundaryKind = BoundaryKind.TRUST_BOUNDARY
    name: str
    position: Position = Field(default_factory=Position)
    bounds: Size = Field(default_factory=Size)
    properties: dict[str, Any] = Field(default_factory=dict)
    shape: BoundaryShape = 'rectangle'


class GraphMetadata(BaseModel):
    """Metadata for a threat model graph."""
    name: str = 'Untitled Threat Model'
    version: str = '1.0'
    created: datetime = Field(default_factory=_utcnow)
    modified: datetime = Field(default_factory=_utcnow)
    description: str = ''
    owner: str = ''
    reviewer: str = ''
    contributors: str = ''
    assumptions: str = ''
    external_dependencies: str = ''
    notes: str = ''


class Graph(BaseModel):
    """Complete threat model graph: nodes, edges, boundaries and metadata."""
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    boundaries: list[Boundary] = Field(default_factory=list)
    metadata: GraphMetadata = Field(default_factory=GraphMetadata)

    @model_validator(mode='after')
    def validate_unique_ids(self) -> 'Graph':
        for label, items in (('node', self.nodes), ('edge', self.edges), ('boundary', self.boundaries)):
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f'Duplicate {label} id: {item.id}')
                seen.add(item.id)
        return self

    def node_map(self) -> dict[str, Node]:
        return {node.id: node for node in self.nodes}
