from pathlib import Path

import pytest

from tm7convert.schemas import (
    Boundary, BoundaryKind, Edge, EdgeKind, Graph, GraphMetadata, Node, NodeKind, Position, Size,
)


FIXTURES = Path(__file__).parent / 'fixtures'

SENTINEL = '00000000-0000-0000-0000-000000000000'

DOCUMENT_HEAD = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    '<ThreatModel xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:i="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns="http://schemas.microsoft.com/2003/10/Serialization/">'
)


def wrapper(key: str, discriminator: str, body: str = '') -> str:
    return (
        f'<KeyValueOfguidanyType><Key>{key}</Key>'
        f'<Value xsi:type="{discriminator}"><Guid>{key}</Guid>{body}</Value>'
        f'</KeyValueOfguidanyType>'
    )


def name_property(name: str) -> str:
    return (
        '<Properties><anyType xsi:type="StringToStringDictionaryEntry">'
        f'<Name>Name</Name><Value>{name}</Value></anyType></Properties>'
    )


def document(borders: str = '', lines: str = '', name: str = 'Test Model') -> str:
    return (
        f'{DOCUMENT_HEAD}<DrawingSurfaceList><DrawingSurfaceModel>'
        f'<Borders>{borders}</Borders><Lines>{lines}</Lines>'
        f'</DrawingSurfaceModel></DrawingSurfaceList>'
        f'<MetaInformation><ThreatModelName>{name}</ThreatModelName></MetaInformation>'
        f'</ThreatModel>'
    )


@pytest.fixture
def namespaced_text() -> str:
    return (FIXTURES / 'namespaced.tm7').read_text(encoding='utf-8')


@pytest.fixture
def legacy_text() -> str:
    return (FIXTURES / 'legacy.tm7').read_text(encoding='utf-8')


@pytest.fixture
def sample_graph() -> Graph:
    return Graph(
        nodes=[
            Node(id='n-web', kind=NodeKind.PROCESS, name='Web App',
                 position=Position(x=100, y=-50), properties={'encrypted': True, 'port': 443}),
            Node(id='n-db', kind=NodeKind.DATASTORE, name='Orders DB',
                 position=Position(x=400, y=-50)),
        ],
        edges=[
            Edge(id='e-1', kind=EdgeKind.HTTPS, source='n-web', targets=['n-db'],
                 properties={'Protocol': 'TLS'}),
        ],
        metadata=GraphMetadata(name='Sample'),
    )


@pytest.fixture
def boundary_graph(sample_graph: Graph) -> Graph:
    return sample_graph.model_copy(update={'boundaries': [
        Boundary(id='b-zone', kind=BoundaryKind.NETWORK_ZONE, name='DMZ',
                 position=Position(x=50, y=0), bounds=Size(width=500, height=200), shape='rectangle'),
        Boundary(id='b-line', kind=BoundaryKind.TRUST_BOUNDARY, name='Corp Boundary',
                 position=Position(x=250, y=20), bounds=Size(width=300, height=5), shape='line'),
    ]})
