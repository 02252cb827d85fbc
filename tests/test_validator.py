from tm7convert.schemas import Edge, Node, NodeKind, Position
from tm7convert.validator import check_graph, has_errors


def codes(issues):
    return sorted(issue.code for issue in issues)


def test_clean_graph_has_no_issues(sample_graph):
    assert check_graph(sample_graph) == []


def test_dangling_endpoints_are_warnings(sample_graph):
    sample_graph.edges.append(Edge(id='e-2', source='ghost', targets=['n-db', 'void']))
    issues = check_graph(sample_graph)
    assert codes(issues) == ['EDGE_UNKNOWN_SOURCE', 'EDGE_UNKNOWN_TARGET']
    assert all(issue.entity_id == 'e-2' for issue in issues)
    assert not has_errors(issues)


def test_self_loop_and_repeated_target(sample_graph):
    sample_graph.edges.append(Edge(id='e-loop', source='n-web', targets=['n-web', 'n-db', 'n-db']))
    assert codes(check_graph(sample_graph)) == ['EDGE_DUPLICATE_TARGET', 'EDGE_SELF_LOOP']


def test_non_finite_position_is_an_error(sample_graph):
    sample_graph.nodes.append(
        Node(id='n-bad', kind=NodeKind.PROCESS, name='Bad', position=Position(x=float('nan'), y=0)),
    )
    issues = check_graph(sample_graph)
    assert codes(issues) == ['NODE_INVALID_POSITION']
    assert issues[0].severity == 'error'
    assert has_errors(issues)
