import io

import pytest

from tm7convert.converter import TM7ParseError, decode, decode_file, encode, load_tm7, save_tm7
from tm7convert.schemas import NodeKind

from conftest import document


def test_round_trip_preserves_nodes_and_edges(sample_graph):
    graph = decode(encode(sample_graph))

    assert len(graph.nodes) == 2
    web = graph.node_map()['n-web']
    assert web.kind == NodeKind.PROCESS
    assert web.name == 'Web App'
    assert (web.position.x, web.position.y) == (100, -50)

    assert len(graph.edges) == 1
    edge = graph.edges[0]
    assert edge.id == 'e-1'
    assert edge.source == 'n-web'
    assert edge.targets == ['n-db']


def test_round_trip_is_lossy_for_scalars(sample_graph):
    web = decode(encode(sample_graph)).node_map()['n-web']
    # Booleans and numbers come back as their text form.
    assert web.properties['encrypted'] == 'true'
    assert web.properties['port'] == '443'


def test_round_trip_of_decoded_fixture(namespaced_text):
    original = decode(namespaced_text)
    again = decode(encode(original))
    assert {n.id: n.kind for n in again.nodes} == {n.id: n.kind for n in original.nodes}
    assert {n.id: n.name for n in again.nodes} == {n.id: n.name for n in original.nodes}
    assert {e.id: (e.source, e.targets) for e in again.edges} == {
        e.id: (e.source, e.targets) for e in original.edges
    }
    assert again.metadata.owner == 'Security Team'


def test_decode_file_accepts_binary_and_text(legacy_text):
    from_bytes = decode_file(io.BytesIO(legacy_text.encode('utf-8')))
    from_text = decode_file(io.StringIO(legacy_text))
    assert from_bytes.metadata.name == from_text.metadata.name == 'Payments'
    assert len(from_bytes.nodes) == len(from_text.nodes) == 2


def test_decode_file_accepts_byte_order_mark(legacy_text):
    graph = decode_file(io.BytesIO(b'\xef\xbb\xbf' + legacy_text.encode('utf-8')))
    assert graph.metadata.name == 'Payments'


def test_decode_propagates_parse_errors():
    with pytest.raises(TM7ParseError):
        decode('<ThreatModel>')


def test_load_tm7_names_untitled_model_after_file(tmp_path):
    path = tmp_path / 'checkout-flow.tm7'
    path.write_text(document(name=''), encoding='utf-8')
    assert load_tm7(path).metadata.name == 'checkout-flow'


def test_load_tm7_keeps_model_name(tmp_path):
    path = tmp_path / 'model.tm7'
    path.write_text(document(name='Named'), encoding='utf-8')
    assert load_tm7(str(path)).metadata.name == 'Named'


def test_save_tm7_creates_parent_directories(sample_graph, tmp_path):
    path = save_tm7(sample_graph, tmp_path / 'out' / 'sample.tm7')
    assert path.exists()
    assert load_tm7(path).node_map()['n-db'].name == 'Orders DB'
