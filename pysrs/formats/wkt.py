"""
OGC Well-Known Text (WKT 1) import and export.

The parser is a recursive-descent reader of the ``KEYWORD[child, ...]``
grammar. Square brackets and parentheses are both accepted. Fragments whose
keyword is not a known WKT 1 keyword are checked for well-formedness and then
kept verbatim as ``OpaqueNode`` objects, so exporting to WKT reproduces them.
"""

import logging
from typing import List, Optional, Tuple

from ..exceptions import ExportError, ParseError
from ..tree.node import KNOWN_KEYWORDS, ROOT_KEYWORDS, OpaqueNode, SRSNode

logger = logging.getLogger(__name__)

MAX_DEPTH = 64

_OPEN = "[("
_CLOSE = "])"
_DELIMITERS = ",[]()"


class _WKTReader:
    """Cursor over WKT text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def error(self, message: str, pos: Optional[int] = None) -> ParseError:
        return ParseError(message, offset=self.pos if pos is None else pos, text=self.text)

    def skip_space(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos].isspace():
            self.pos += 1

    def peek(self) -> str:
        self.skip_space()
        if self.pos >= len(self.text):
            return ""
        return self.text[self.pos]

    def read_token(self) -> Tuple[str, bool]:
        """Read a quoted string or a bare token; return ``(text, quoted)``."""
        self.skip_space()
        text = self.text
        if self.pos >= len(text):
            raise self.error("Unexpected end of WKT")
        if text[self.pos] == '"':
            start = self.pos
            self.pos += 1
            chars: List[str] = []
            while True:
                if self.pos >= len(text):
                    raise self.error("Unterminated quoted string", start)
                char = text[self.pos]
                if char == '"':
                    # A doubled quote is an escaped quote character
                    if self.pos + 1 < len(text) and text[self.pos + 1] == '"':
                        chars.append('"')
                        self.pos += 2
                        continue
                    self.pos += 1
                    return "".join(chars), True
                chars.append(char)
                self.pos += 1
        start = self.pos
        while self.pos < len(text) and text[self.pos] not in _DELIMITERS and \
                not text[self.pos].isspace() and text[self.pos] != '"':
            self.pos += 1
        if self.pos == start:
            raise self.error(f"Unexpected character '{text[self.pos]}'")
        return text[start:self.pos], False

    def read_node(self, depth: int = 0) -> SRSNode:
        if depth > MAX_DEPTH:
            raise self.error("WKT nesting is too deep")
        self.skip_space()
        start = self.pos
        value, quoted = self.read_token()
        if self.peek() not in _OPEN or not self.peek():
            return SRSNode(value)
        if quoted:
            raise self.error("A quoted string cannot open a bracketed node")
        keyword = value.upper()
        opener = self.text[self.pos]
        self.pos += 1
        node = SRSNode(keyword if keyword in KNOWN_KEYWORDS else value)
        if self.peek() in _CLOSE and self.peek():
            raise self.error(f"Empty node '{value}'")
        while True:
            node.add_child(self.read_node(depth + 1))
            char = self.peek()
            if char == ",":
                self.pos += 1
                continue
            if char in _CLOSE and char:
                if _OPEN.index(opener) != _CLOSE.index(char):
                    raise self.error(f"Mismatched bracket closing '{value}'")
                self.pos += 1
                break
            if not char:
                raise self.error(f"Unexpected end of WKT inside '{value}'")
            raise self.error(f"Expected ',' or closing bracket inside '{value}'")
        if keyword not in KNOWN_KEYWORDS:
            logger.debug("Keeping unknown WKT keyword %s as an opaque node", value)
            return OpaqueNode(value, self.text[start:self.pos].strip())
        return node


def parse_wkt(text: str) -> SRSNode:
    """
    Parse WKT 1 text into a CRS tree.

    Parameters
    ----------
    text : str
        WKT text. Leading and trailing whitespace is ignored.

    Returns
    -------
    SRSNode
        The root node (GEOGCS, PROJCS, GEOCCS, COMPD_CS, LOCAL_CS or VERT_CS)

    Raises
    ------
    ParseError
        If the text is malformed or the root is not a coordinate system
    """
    if not isinstance(text, str):
        raise ParseError(f"WKT must be a string, got {type(text).__name__}")
    if not text.strip():
        raise ParseError("Empty WKT string")
    reader = _WKTReader(text)
    root = reader.read_node()
    reader.skip_space()
    if reader.pos < len(text):
        raise reader.error("Unexpected text after the end of the WKT definition")
    if root.is_opaque or root.kind not in ROOT_KEYWORDS:
        raise ParseError(
            f"'{root.value}' is not a supported WKT coordinate system keyword", offset=0, text=text
        )
    return root


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _format_leaf(node: SRSNode) -> str:
    return _quote(node.value) if node.needs_quoting() else node.value


def _compact(node: SRSNode) -> str:
    if node.is_opaque:
        return node.raw
    if not node.child_count:
        return _format_leaf(node)
    return node.value + "[" + ",".join(_compact(c) for c in node.children) + "]"


def _pretty(node: SRSNode, depth: int, indent: int) -> str:
    if node.is_opaque:
        return node.raw
    if not node.child_count:
        return _format_leaf(node)
    children = node.children
    parts = [node.value, "["]
    for index, child in enumerate(children):
        if child.child_count or child.is_opaque:
            parts.append("\n" + " " * (indent * (depth + 1)))
        parts.append(_pretty(child, depth + 1, indent))
        if index < len(children) - 1:
            parts.append(",")
    parts.append("]")
    return "".join(parts)


def _check_exportable(node: Optional[SRSNode]) -> SRSNode:
    if node is None:
        raise ExportError("Cannot export an empty spatial reference")
    return node


def format_wkt(node: SRSNode) -> str:
    """Single-line WKT for a CRS tree."""
    return _compact(_check_exportable(node))


def format_pretty_wkt(node: SRSNode, indent: int = 4, simplify: bool = False) -> str:
    """
    Multi-line WKT with nested nodes indented.

    Parameters
    ----------
    node : SRSNode
        Root of the tree
    indent : int, optional
        Spaces per nesting level (default: 4)
    simplify : bool, optional
        Drop AXIS, AUTHORITY and EXTENSION nodes from the output
    """
    node = _check_exportable(node)
    if simplify:
        node = node.clone()
        for keyword in ("AXIS", "AUTHORITY", "EXTENSION"):
            node.strip_nodes(keyword)
    return _pretty(node, 0, indent)
