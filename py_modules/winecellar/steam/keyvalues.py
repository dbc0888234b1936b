"""Text VDF access on top of the ValvePython vdf library.

Every navigation step fails with a MissingKeyError naming the absent segment,
so a version-skewed or hand-edited document is reported rather than crashing.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple, Union

import vdf

from ..errors import MissingKeyError, VdfParsingError

logger = logging.getLogger(__name__)

Node = Union[str, Dict[str, Any]]


def read_document(path: Union[str, Path]) -> Dict[str, Any]:
    """Read and parse a text VDF file.

    Raises:
        VdfParsingError: the file could not be read or is not valid VDF
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        raise VdfParsingError(str(path), str(e)) from e
    return parse_document(text, source=str(path))


def parse_document(text: str, source: str = "<string>") -> Dict[str, Any]:
    """Parse VDF text. Duplicate keys are merged, as Steam does."""
    try:
        return vdf.loads(text, mapper=dict, merge_duplicate_keys=True)
    except (SyntaxError, ValueError, TypeError) as e:
        raise VdfParsingError(source, str(e)) from e


def _lookup(node: Dict[str, Any], key: str, case_fallback: bool) -> Tuple[bool, Any]:
    if key in node:
        return True, node[key]
    if case_fallback:
        lowered = key.lower()
        if lowered in node:
            return True, node[lowered]
        for candidate, value in node.items():
            if candidate.lower() == lowered:
                return True, value
    return False, None


def get_nested(doc: Node, path: Sequence[str], case_fallback: bool = False) -> Node:
    """
    Walk a parsed document along path.

    Args:
        doc: Parsed document (or any object node of it)
        path: Keys from outermost to innermost
        case_fallback: Also accept a differently-cased key at each level
            (e.g. "Valve" vs "valve", "Apps" vs "apps")

    Returns:
        The node at the end of the path

    Raises:
        MissingKeyError: naming the first segment that is absent, or that
            could not be descended into because its parent is a string leaf
    """
    node = doc
    walked = []
    for key in path:
        walked.append(key)
        if not isinstance(node, dict):
            raise MissingKeyError(key, walked)
        found, node = _lookup(node, key, case_fallback)
        if not found:
            raise MissingKeyError(key, walked)
    return node


def get_object(doc: Node, path: Sequence[str], case_fallback: bool = False) -> Dict[str, Any]:
    """Like get_nested, but the target must be an object."""
    node = get_nested(doc, path, case_fallback)
    if not isinstance(node, dict):
        raise MissingKeyError(path[-1] if path else "<root>", list(path))
    return node


def get_str(node: Node, key: str, case_fallback: bool = False) -> str:
    """Return the string leaf under key, or raise MissingKeyError."""
    value = get_nested(node, [key], case_fallback)
    if not isinstance(value, str):
        raise MissingKeyError(key)
    return value


def first_child(node: Node, context: str = "<root>") -> Tuple[str, Dict[str, Any]]:
    """Return the first (key, object) pair of an object node."""
    if isinstance(node, dict):
        for key, value in node.items():
            if isinstance(value, dict):
                return key, value
            break
    raise MissingKeyError(f"{context}/*", [context])
