from lxml import etree

from tm7convert.properties import decode_properties, encode_properties

NAMESPACES = (
    'xmlns:a="http://schemas.microsoft.com/2003/10/Serialization/Arrays" '
    'xmlns:b="http://schemas.datacontract.org/2004/07/ThreatModeling.KnowledgeBase" '
    'xmlns:c="http://www.w3.org/2001/XMLSchema" '
    'xmlns:i="http://www.w3.org/2001/XMLSchema-instance"'
)


def properties(body: str) -> etree._Element:
    return etree.fromstring(f'<Properties {NAMESPACES}>{body}</Properties>')


def test_machine_name_is_preferred_over_display_name():
    element = properties(
        '<a:anyType i:type="b:StringDisplayAttribute">'
        '<b:DisplayName>Authentication</b:DisplayName><b:Name>authScheme</b:Name>'
        '<b:Value i:type="c:string">OAuth</b:Value></a:anyType>'
    )
    assert decode_properties(element) == {'authScheme': 'OAuth'}


def test_display_name_used_when_machine_name_is_empty():
    element = properties(
        '<a:anyType i:type="b:StringDisplayAttribute">'
        '<b:DisplayName>Name</b:DisplayName><b:Name /><b:Value i:type="c:string">Web Server</b:Value>'
        '</a:anyType>'
    )
    assert decode_properties(element) == {'Name': 'Web Server'}


def test_boolean_values_are_coerced():
    element = properties(
        '<a:anyType i:type="b:BooleanDisplayAttribute">'
        '<b:DisplayName>Out Of Scope</b:DisplayName><b:Name>oos</b:Name>'
        '<b:Value i:type="c:boolean">true</b:Value></a:anyType>'
        '<a:anyType i:type="b:BooleanDisplayAttribute">'
        '<b:DisplayName>Sanitizes Input</b:DisplayName><b:Name>sanitizes</b:Name>'
        '<b:Value i:type="c:boolean">false</b:Value></a:anyType>'
    )
    assert decode_properties(element) == {'oos': True, 'sanitizes': False}


def test_list_selection_is_parsed_as_index():
    element = properties(
        '<a:anyType i:type="b:ListDisplayAttribute">'
        '<b:DisplayName>Code Type</b:DisplayName><b:Name>codeType</b:Name>'
        '<b:Value i:type="a:ArrayOfstring"><a:string>Managed</a:string><a:string>Unmanaged</a:string></b:Value>'
        '<b:SelectedIndex>1</b:SelectedIndex></a:anyType>'
    )
    assert decode_properties(element) == {'codeType': 1}


def test_header_entry_keeps_empty_string():
    element = properties(
        '<a:anyType i:type="b:HeaderDisplayAttribute">'
        '<b:DisplayName>Generic Process</b:DisplayName><b:Name /><b:Value i:nil="true" /></a:anyType>'
    )
    assert decode_properties(element) == {'Generic Process': ''}


def test_entry_without_name_or_value_is_skipped():
    element = properties(
        '<a:anyType i:type="b:StringDisplayAttribute"><b:DisplayName /><b:Name /><b:Value /></a:anyType>'
        '<a:anyType i:type="b:StringDisplayAttribute">'
        '<b:DisplayName /><b:Name>kept</b:Name><b:Value i:type="c:string">yes</b:Value></a:anyType>'
    )
    assert decode_properties(element) == {'kept': 'yes'}


def test_legacy_dictionary_entries():
    element = etree.fromstring(
        '<Properties xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
        '<anyType xsi:type="StringToStringDictionaryEntry"><Name>DisplayName</Name><Value>API</Value></anyType>'
        '<anyType xsi:type="StringToBoolDictionaryEntry"><Name>Encrypted</Name><Value>true</Value></anyType>'
        '<anyType xsi:type="StringToStringDictionaryEntry"><Name>team</Name><Value /></anyType>'
        '</Properties>'
    )
    assert decode_properties(element) == {'DisplayName': 'API', 'Encrypted': True, 'team': ''}


def test_missing_properties_element_decodes_empty():
    assert decode_properties(None) == {}


def test_encode_scalars_as_plain_text():
    entries = encode_properties({'name': 'x', 'port': 443, 'ratio': 0.5, 'encrypted': True, 'off': False})
    assert [(e.name, e.value) for e in entries] == [
        ('name', 'x'), ('port', '443'), ('ratio', '0.5'), ('encrypted', 'true'), ('off', 'false'),
    ]
    assert all(e.value_kind == 'text' for e in entries)


def test_encode_drops_non_scalar_values():
    entries = encode_properties({'routes': ['/a', '/b'], 'meta': {'k': 'v'}, 'owner': None, 'kept': 'yes'})
    assert [e.name for e in entries] == ['kept']


def test_unreadable_selected_index_keeps_raw_text():
    element = properties(
        '<a:anyType i:type="b:ListDisplayAttribute">'
        '<b:DisplayName>Code Type</b:DisplayName><b:Name>codeType</b:Name>'
        '<b:Value i:type="a:ArrayOfstring"><a:string>Managed</a:string></b:Value>'
        '<b:SelectedIndex>first</b:SelectedIndex></a:anyType>'
    )
    assert decode_properties(element) == {'codeType': 'first'}
