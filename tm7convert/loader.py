"""Loading of .tm7 XML text into a navigable element tree."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Sequence, Union

from lxml import etree

from .registry import Aliases, XSI_NIL, XSI_TYPE


logger = logging.getLogger(__name__)

_XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>')


class ParseErrorKind(str, Enum):
    """Why a document could not be loaded."""
    SYNTAX = 'syntax'
    SCHEMA = 'schema'


class TM7ParseError(Exception):
    """Raised when a .tm7 document is malformed or is not a threat model."""

    def __init__(self, message: str, kind: ParseErrorKind = ParseErrorKind.SYNTAX):
        super().__init__(message)
        self.message = message
        self.kind = kind


def _make_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)


def is_element(node) -> bool:
    # Comments and processing instructions carry a non-string tag in lxml.
    return isinstance(node.tag, str)


def qualified_name(element: etree._Element) -> str:
    """Return the element name as written, e.g. ``a:Key`` or ``Key``."""
    local = etree.QName(element).localname
    if element.prefix:
        return f'{element.prefix}:{local}'
    return local


def local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def elements(parent: etree._Element) -> Iterator[etree._Element]:
    return (child for child in parent if is_element(child))


def child(parent: Optional[etree._Element], aliases: Sequence[str]) -> Optional[etree._Element]:
    """First direct child matching the aliases, trying them in order."""
    if parent is None:
        return None
    for alias in aliases:
        for candidate in elements(parent):
            if qualified_name(candidate) == alias:
                return candidate
    return None


def children(parent: Optional[etree._Element], aliases: Sequence[str]) -> list[etree._Element]:
    """All direct children named by the first alias that matches anything."""
    if parent is None:
        return []
    for alias in aliases:
        matches = [c for c in elements(parent) if qualified_name(c) == alias]
        if matches:
            return matches
    return []


def child_text(parent: Optional[etree._Element], aliases: Sequence[str]) -> Optional[str]:
    """Text of the first matching child; ``None`` when the child is absent."""
    found = child(parent, aliases)
    if found is None:
        return None
    if found.get(XSI_NIL) == 'true':
        return ''
    return (found.text or '').strip()


def xsi_type(element: Optional[etree._Element]) -> Optional[str]:
    """The ``i:type`` / ``xsi:type`` attribute without its namespace prefix."""
    if element is None:
        return None
    value = element.get(XSI_TYPE)
    if not value:
        return None
    return value.rsplit(':', 1)[-1]


@dataclass
class ParsedDocument:
    """A loaded .tm7 document rooted at its ``ThreatModel`` element."""
    root: etree._Element

    def find_all(self, aliases: Sequence[str]) -> list[etree._Element]:
        """All descendants named by the first alias that matches anything."""
        for alias in aliases:
            matches = [el for el in self.root.iter() if is_element(el) and qualified_name(el) == alias]
            if matches:
                return matches
        return []

    def find(self, aliases: Sequence[str]) -> Optional[etree._Element]:
        found = self.find_all(aliases)
        return found[0] if found else None

    def child(self, aliases: Sequence[str]) -> Optional[etree._Element]:
        return child(self.root, aliases)

    def children(self, aliases: Sequence[str]) -> list[etree._Element]:
        return children(self.root, aliases)

    def child_text(self, aliases: Sequence[str]) -> Optional[str]:
        return child_text(self.root, aliases)


def load(text: Union[str, bytes]) -> ParsedDocument:
    """Parse .tm7 text into a ``ParsedDocument``.

    Raises:
        TM7ParseError: ``kind=SYNTAX`` when the text is not well-formed XML,
            ``kind=SCHEMA`` when the root element is not ``ThreatModel``.
    """
    if isinstance(text, str):
        # lxml refuses str input carrying an encoding declaration.
        text = _XML_DECLARATION.sub('', text.lstrip('\ufeff'), count=1)
        try:
            data = text.encode('utf-8')
        except UnicodeEncodeError as e:
            raise TM7ParseError(f'Invalid XML: text is not encodable as UTF-8 ({e.reason})', ParseErrorKind.SYNTAX) from e
    else:
        data = text

    if not data.strip():
        raise TM7ParseError('Invalid XML: document is empty', ParseErrorKind.SYNTAX)

    try:
        root = etree.fromstring(data, _make_parser())
    except etree.XMLSyntaxError as e:
        raise TM7ParseError(f'Invalid XML: {e}', ParseErrorKind.SYNTAX) from e

    if local_name(root) not in Aliases.ROOT:
        raise TM7ParseError(
            f'Invalid TM7 file: Missing ThreatModel root element (found {local_name(root)!r})',
            ParseErrorKind.SCHEMA,
        )

    logger.debug(f'Loaded TM7 document with root {qualified_name(root)}')
    return ParsedDocument(root=root)
