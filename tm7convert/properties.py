"""Conversion between .tm7 property dictionaries and flat property records.

A .tm7 element keeps its properties as a list of typed entries. The newer
tool versions write display attributes::

    <a:anyType i:type="b:BooleanDisplayAttribute">
      <b:DisplayName>Out Of Scope</b:DisplayName>
      <b:Name>71f3d9aa-b8ef-4e54-8126-607a1d903103</b:Name>
      <b:Value i:type="c:boolean">false</b:Value>
    </a:anyType>

while older files use plain dictionary entries::

    <anyType xsi:type="StringToStringDictionaryEntry">
      <Name>DisplayName</Name>
      <Value>Web Server</Value>
    </anyType>
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from lxml import etree

from .loader import child, child_text, children, xsi_type
from .registry import Aliases


logger = logging.getLogger(__name__)

PropertyValue = Union[str, int, float, bool]

VALUE_KIND_TEXT = 'text'
VALUE_KIND_BOOLEAN = 'boolean'
VALUE_KIND_INDEXED = 'indexed'

_BOOLEAN_TYPES = {'boolean', 'BooleanDisplayAttribute', 'StringToBoolDictionaryEntry'}
_INDEXED_TYPES = {'ArrayOfstring', 'ListDisplayAttribute'}


@dataclass
class PropertyEntry:
    """One entry of a .tm7 property dictionary."""
    name: Optional[str]
    display_name: Optional[str]
    value: Optional[str]
    selected_index: Optional[str] = None
    value_kind: str = VALUE_KIND_TEXT

    @property
    def key(self) -> Optional[str]:
        return self.name or self.display_name or None


def _value_kind(entry_type: Optional[str], value_type: Optional[str], selected_index: Optional[str]) -> str:
    if value_type in _BOOLEAN_TYPES or entry_type in _BOOLEAN_TYPES:
        return VALUE_KIND_BOOLEAN
    if (value_type in _INDEXED_TYPES or entry_type in _INDEXED_TYPES) and selected_index is not None:
        return VALUE_KIND_INDEXED
    return VALUE_KIND_TEXT


def read_entry(element: etree._Element) -> PropertyEntry:
    """Read one ``anyType`` element into a ``PropertyEntry``."""
    value_element = child(element, Aliases.ENTRY_VALUE)
    selected_index = child_text(element, Aliases.ENTRY_SELECTED_INDEX)
    value = child_text(element, Aliases.ENTRY_VALUE)
    value_kind = _value_kind(xsi_type(element), xsi_type(value_element), selected_index)
    if value_kind == VALUE_KIND_INDEXED:
        # List values hold <a:string> children, not text.
        value = None
    return PropertyEntry(
        name=child_text(element, Aliases.ENTRY_NAME),
        display_name=child_text(element, Aliases.ENTRY_DISPLAY_NAME),
        value=value,
        selected_index=selected_index,
        value_kind=value_kind,
    )


def coerce_value(entry: PropertyEntry) -> PropertyValue:
    if entry.value_kind == VALUE_KIND_BOOLEAN:
        return (entry.value or '').strip().lower() == 'true'
    if entry.value_kind == VALUE_KIND_INDEXED:
        try:
            return int(entry.selected_index)
        except (TypeError, ValueError):
            logger.warning(f"Unreadable selected index {entry.selected_index!r} for property '{entry.key}'")
            return entry.selected_index or ''
    return entry.value or ''


def decode_properties(properties_element: Optional[etree._Element]) -> dict[str, PropertyValue]:
    """Flatten a ``Properties`` element into a key/value record.

    The machine name is preferred over the display name as the key. Entries
    with neither a name nor a value are skipped; a named entry with an empty
    value is kept as an empty string.
    """
    record: dict[str, PropertyValue] = {}
    for element in children(properties_element, Aliases.ENTRY):
        entry = read_entry(element)
        key = entry.key
        if not key:
            if entry.value or entry.selected_index:
                logger.debug(f'Skipping unnamed property entry with value {entry.value!r}')
            continue
        record[key] = coerce_value(entry)
    return record


def encode_value(value: Any) -> Optional[str]:
    """Render a scalar as entry text; ``None`` for values that cannot be encoded."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float, str)):
        return str(value)
    return None


def encode_properties(record: dict[str, Any]) -> list[PropertyEntry]:
    """Turn a property record into plain-text entries, dropping non-scalar values."""
    entries = []
    for key, value in record.items():
        text = encode_value(value)
        if text is None:
            logger.debug(f"Dropping non-scalar property '{key}' of type {type(value).__name__}")
            continue
        entries.append(PropertyEntry(name=str(key), display_name=None, value=text))
    return entries
