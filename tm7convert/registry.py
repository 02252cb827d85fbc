"""Lookup tables between .tm7 type discriminators and internal graph kinds.

The Threat Modeling Tool has written two element-naming conventions over its
lifetime: namespace-prefixed names (``a:Key``, ``b:Value``) and bare legacy
names (``Key``, ``Value``). Every logical field therefore resolves through an
alias tuple, qualified name first.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from .schemas import NodeKind, EdgeKind, BoundaryKind, BoundaryShape


XSI_NAMESPACE = 'http://www.w3.org/2001/XMLSchema-instance'
XSI_TYPE = f'{{{XSI_NAMESPACE}}}type'
XSI_NIL = f'{{{XSI_NAMESPACE}}}nil'

SENTINEL_ID = '00000000-0000-0000-0000-000000000000'


class Aliases:
    """Alias tuples per logical field, in lookup priority order."""
    ROOT = ('ThreatModel',)
    DRAWING_SURFACE = ('DrawingSurfaceModel',)
    BORDERS = ('Borders',)
    LINES = ('Lines',)
    META_INFORMATION = ('MetaInformation',)
    VERSION = ('Version',)

    WRAPPER = ('a:KeyValueOfguidanyType', 'KeyValueOfguidanyType')
    KEY = ('a:Key', 'Key')
    VALUE = ('a:Value', 'Value')

    GUID = ('Guid',)
    GENERIC_TYPE_ID = ('GenericTypeId',)
    TYPE_ID = ('TypeId',)
    PROPERTIES = ('Properties',)
    LEFT = ('Left',)
    TOP = ('Top',)
    WIDTH = ('Width',)
    HEIGHT = ('Height',)
    SOURCE_GUID = ('SourceGuid',)
    TARGET_GUID = ('TargetGuid',)
    SOURCE_X = ('SourceX',)
    SOURCE_Y = ('SourceY',)
    TARGET_X = ('TargetX',)
    TARGET_Y = ('TargetY',)

    ENTRY = ('a:anyType', 'anyType')
    ENTRY_NAME = ('b:Name', 'Name')
    ENTRY_DISPLAY_NAME = ('b:DisplayName', 'DisplayName')
    ENTRY_VALUE = ('b:Value', 'Value')
    ENTRY_SELECTED_INDEX = ('b:SelectedIndex', 'SelectedIndex')

    META_FIELDS = MappingProxyType({
        'name': ('ThreatModelName',),
        'description': ('HighLevelSystemDescription',),
        'owner': ('Owner',),
        'reviewer': ('Reviewer',),
        'contributors': ('Contributors',),
        'assumptions': ('Assumptions',),
        'external_dependencies': ('ExternalDependencies',),
        'notes': ('Notes',),
    })


class Discriminators:
    """Known .tm7 stencil, connector and boundary type names."""
    STENCIL_ELLIPSE = 'StencilEllipse'
    STENCIL_RECTANGLE = 'StencilRectangle'
    STENCIL_OPEN_RECTANGLE = 'StencilOpenRectangle'
    STENCIL_SERVICE = 'StencilService'
    CONNECTOR = 'Connector'
    LINE_BOUNDARY = 'LineBoundary'
    BORDER_BOUNDARY = 'BorderBoundary'


NODE_KINDS: Mapping[str, NodeKind] = MappingProxyType({
    Discriminators.STENCIL_ELLIPSE: NodeKind.EXTERNAL_ENTITY,
    Discriminators.STENCIL_RECTANGLE: NodeKind.PROCESS,
    Discriminators.STENCIL_OPEN_RECTANGLE: NodeKind.DATASTORE,
    Discriminators.STENCIL_SERVICE: NodeKind.SERVICE,
})

NODE_DISCRIMINATORS: Mapping[NodeKind, str] = MappingProxyType({
    kind: discriminator for discriminator, kind in NODE_KINDS.items()
})

DEFAULT_NODE_DISCRIMINATOR = Discriminators.STENCIL_RECTANGLE

EDGE_KINDS: Mapping[str, EdgeKind] = MappingProxyType({
    Discriminators.CONNECTOR: EdgeKind.HTTPS,
})

# Both edge kinds collapse to the one connector type the tool knows about.
EDGE_DISCRIMINATORS: Mapping[EdgeKind, str] = MappingProxyType({
    EdgeKind.HTTPS: Discriminators.CONNECTOR,
    EdgeKind.GRPC: Discriminators.CONNECTOR,
})

DEFAULT_EDGE_KIND = EdgeKind.HTTPS
DEFAULT_EDGE_DISCRIMINATOR = Discriminators.CONNECTOR

BOUNDARY_KINDS: Mapping[str, BoundaryKind] = MappingProxyType({
    Discriminators.LINE_BOUNDARY: BoundaryKind.TRUST_BOUNDARY,
    Discriminators.BORDER_BOUNDARY: BoundaryKind.NETWORK_ZONE,
})

BOUNDARY_DISCRIMINATORS: Mapping[BoundaryKind, str] = MappingProxyType({
    kind: discriminator for discriminator, kind in BOUNDARY_KINDS.items()
})

BOUNDARY_SHAPES: Mapping[str, BoundaryShape] = MappingProxyType({
    Discriminators.LINE_BOUNDARY: 'line',
    Discriminators.BORDER_BOUNDARY: 'rectangle',
})

DEFAULT_BOUNDARY_DISCRIMINATOR = Discriminators.LINE_BOUNDARY


def node_kind(discriminator: Optional[str]) -> Optional[NodeKind]:
    return NODE_KINDS.get(discriminator or '')


def node_discriminator(kind: NodeKind) -> str:
    return NODE_DISCRIMINATORS.get(kind, DEFAULT_NODE_DISCRIMINATOR)


def edge_kind(discriminator: Optional[str]) -> Optional[EdgeKind]:
    return EDGE_KINDS.get(discriminator or '')


def edge_discriminator(kind: EdgeKind) -> str:
    return EDGE_DISCRIMINATORS.get(kind, DEFAULT_EDGE_DISCRIMINATOR)


def boundary_kind(discriminator: Optional[str]) -> Optional[BoundaryKind]:
    return BOUNDARY_KINDS.get(discriminator or '')


def boundary_discriminator(kind: BoundaryKind) -> str:
    return BOUNDARY_DISCRIMINATORS.get(kind, DEFAULT_BOUNDARY_DISCRIMINATOR)


def boundary_shape(discriminator: Optional[str]) -> Optional[BoundaryShape]:
    return BOUNDARY_SHAPES.get(discriminator or '')


def is_boundary(discriminator: Optional[str]) -> bool:
    return (discriminator or '') in BOUNDARY_KINDS
