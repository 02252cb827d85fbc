import pytest

from tm7convert.loader import ParseErrorKind, TM7ParseError, load, qualified_name
from tm7convert.registry import Aliases

from conftest import document


def test_load_minimal_document():
    doc = load('<ThreatModel />')
    assert qualified_name(doc.root) == 'ThreatModel'


def test_load_accepts_declaration_and_bom():
    text = '\ufeff<?xml version="1.0" encoding="utf-16"?>\n<ThreatModel><Version>1</Version></ThreatModel>'
    doc = load(text)
    assert doc.child_text(Aliases.VERSION) == '1'


def test_load_accepts_bytes():
    doc = load(document().encode('utf-8'))
    assert doc.find(Aliases.BORDERS) is not None


@pytest.mark.parametrize('text', [
    '',
    '   ',
    '<ThreatModel>',
    '<ThreatModel><Borders></ThreatModel>',
    'not xml at all',
])
def test_malformed_text_is_syntax_failure(text):
    with pytest.raises(TM7ParseError) as exc_info:
        load(text)
    assert exc_info.value.kind == ParseErrorKind.SYNTAX


def test_wrong_root_is_schema_failure():
    with pytest.raises(TM7ParseError) as exc_info:
        load('<mxfile><diagram /></mxfile>')
    assert exc_info.value.kind == ParseErrorKind.SCHEMA
    assert 'ThreatModel' in exc_info.value.message


def test_find_prefers_qualified_alias():
    text = (
        '<ThreatModel xmlns:a="urn:arrays">'
        '<Borders><KeyValueOfguidanyType><Key>legacy</Key></KeyValueOfguidanyType>'
        '<a:KeyValueOfguidanyType><a:Key>modern</a:Key></a:KeyValueOfguidanyType></Borders>'
        '</ThreatModel>'
    )
    doc = load(text)
    wrappers = doc.find_all(Aliases.WRAPPER)
    assert len(wrappers) == 1
    assert qualified_name(wrappers[0]) == 'a:KeyValueOfguidanyType'


def test_entities_are_not_expanded():
    text = (
        '<!DOCTYPE ThreatModel [<!ENTITY secret SYSTEM "file:///etc/passwd">]>'
        '<ThreatModel><Version>&secret;</Version></ThreatModel>'
    )
    doc = load(text)
    assert 'root:' not in (doc.child_text(Aliases.VERSION) or '')


def test_root_children_by_alias():
    doc = load('<ThreatModel><Notes>a</Notes><Version>2</Version><Notes>b</Notes></ThreatModel>')
    assert [el.text for el in doc.children(('Notes',))] == ['a', 'b']
    assert doc.children(('Missing',)) == []


def test_nil_element_reads_as_empty_text():
    doc = load(
        '<ThreatModel xmlns:i="http://www.w3.org/2001/XMLSchema-instance">'
        '<Version i:nil="true" /></ThreatModel>'
    )
    assert doc.child_text(Aliases.VERSION) == ''
    assert doc.child_text(('Missing',)) is None


def test_unencodable_text_is_syntax_failure():
    with pytest.raises(TM7ParseError) as exc_info:
        load('<ThreatModel><Version>\ud800</Version></ThreatModel>')
    assert exc_info.value.kind == ParseErrorKind.SYNTAX
