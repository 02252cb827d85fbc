"""YAML and JSON interchange files for the internal graph."""

import json
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .schemas import Graph


YAML_SUFFIXES = ('.yaml', '.yml')
JSON_SUFFIXES = ('.json',)
GRAPH_SUFFIXES = YAML_SUFFIXES + JSON_SUFFIXES


class GraphFileError(Exception):
    """Raised when a graph file cannot be read, validated or written."""
    pass


def is_graph_file(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() in GRAPH_SUFFIXES


def load_graph(path: Union[str, Path]) -> Graph:
    """Load and validate a graph from a .yaml, .yml or .json file."""
    path = Path(path)
    if not is_graph_file(path):
        raise GraphFileError(f'Unsupported graph file type: {path.suffix or path.name}')
    try:
        with open(path, 'r', encoding='utf-8') as f:
            # JSON is valid YAML, so one loader covers both.
            data = yaml.safe_load(f)
    except OSError as e:
        raise GraphFileError(f'Cannot read {path}: {e}')
    except yaml.YAMLError as e:
        raise GraphFileError(f'Parse error in {path.name}: {e}')

    if not isinstance(data, dict):
        raise GraphFileError(f'{path.name} does not contain a graph mapping')
    try:
        return Graph.model_validate(data)
    except ValidationError as e:
        raise GraphFileError(f'Graph validation error in {path.name}: {e}')


def dump_graph(graph: Graph, path: Union[str, Path]) -> Path:
    """Write a graph as YAML or JSON depending on the file suffix."""
    path = Path(path)
    suffix = path.suffix.lower()
    data = graph.model_dump(mode='json')
    if suffix in YAML_SUFFIXES:
        content = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    elif suffix in JSON_SUFFIXES:
        content = json.dumps(data, indent=2, ensure_ascii=False) + '\n'
    else:
        raise GraphFileError(f'Unsupported graph file type: {suffix or path.name}')
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise GraphFileError(f'Cannot write {path}: {e}')
    return path
