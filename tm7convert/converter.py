"""Entry points for reading and writing .tm7 threat models."""

import logging
from pathlib import Path
from typing import IO, Union

from .extractor import TM7GraphExtractor, extract_graph
from .loader import TM7ParseError, load
from .schemas import Graph
from .serializer import TM7ExportError, serialize_graph


logger = logging.getLogger(__name__)

TM7_SUFFIX = '.tm7'


def decode(text: Union[str, bytes]) -> Graph:
    """Convert .tm7 XML text into a Graph.

    Raises:
        TM7ParseError: if the text is not well-formed XML or lacks the
            ``ThreatModel`` root. Individual unreadable elements are skipped.
    """
    return extract_graph(load(text))


def encode(graph: Graph) -> str:
    """Convert a Graph into .tm7 XML text.

    Raises:
        TM7ExportError: if the generated document is not well-formed.
    """
    return serialize_graph(graph)


def decode_file(handle: IO) -> Graph:
    """Read a text or binary file object and decode its contents.

    Binary content is handed to the XML parser as is, so the document's own
    encoding declaration applies.
    """
    return decode(handle.read())


def load_tm7(path: Union[str, Path]) -> Graph:
    """Load a .tm7 file, naming an untitled model after the file."""
    path = Path(path)
    with open(path, 'rb') as f:
        graph = decode_file(f)
    if graph.metadata.name == TM7GraphExtractor.UNTITLED_MODEL:
        graph.metadata.name = path.stem
    logger.info(f'Loaded {path}')
    return graph


def save_tm7(graph: Graph, path: Union[str, Path]) -> Path:
    """Write a Graph to a .tm7 file and return the path written."""
    path = Path(path)
    text = encode(graph)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    logger.info(f'Wrote {path}')
    return path


__all__ = [
    'decode', 'encode', 'decode_file', 'load_tm7', 'save_tm7',
    'TM7ParseError', 'TM7ExportError', 'TM7_SUFFIX',
]
