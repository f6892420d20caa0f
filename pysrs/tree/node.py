"""
CRS node tree.

A CRS is held as a tree of ``SRSNode`` objects mirroring the bracketed WKT
grammar: interior nodes carry a keyword (GEOGCS, DATUM, PARAMETER, ...) and
leaf nodes carry attribute text (names, numbers, axis directions). Child
order is significant.

Unrecognised but well-formed fragments are kept as ``OpaqueNode`` objects
that remember their verbatim text.
"""

from typing import Iterator, List, Optional

KNOWN_KEYWORDS = frozenset((
    "GEOGCS", "DATUM", "SPHEROID", "PRIMEM", "UNIT", "PROJCS", "PROJECTION",
    "PARAMETER", "AUTHORITY", "AXIS", "GEOCCS", "VERT_CS", "VERT_DATUM",
    "COMPD_CS", "LOCAL_CS", "LOCAL_DATUM", "TOWGS84", "EXTENSION",
))

ROOT_KEYWORDS = frozenset(("GEOGCS", "PROJCS", "GEOCCS", "COMPD_CS", "LOCAL_CS", "VERT_CS"))

AXIS_DIRECTIONS = frozenset(("NORTH", "SOUTH", "EAST", "WEST", "UP", "DOWN", "OTHER"))


class SRSNode:
    """
    One node of a CRS tree.

    Parameters
    ----------
    value : str
        Keyword for interior nodes, attribute text for leaves
    children : iterable of SRSNode, optional
        Initial children, adopted in order
    """

    __slots__ = ("value", "_children", "parent")

    is_opaque = False

    def __init__(self, value: str, children=None):
        self.value = str(value)
        self._children: List["SRSNode"] = []
        self.parent: Optional["SRSNode"] = None
        for child in children or ():
            self.add_child(child)

    # Structure -----------------------------------------------------------

    @property
    def children(self) -> List["SRSNode"]:
        """A shallow copy of the child list."""
        return list(self._children)

    @property
    def child_count(self) -> int:
        return len(self._children)

    @property
    def is_leaf(self) -> bool:
        return not self._children and self.value.upper() not in KNOWN_KEYWORDS

    @property
    def kind(self) -> str:
        """Upper-cased keyword of the node."""
        return self.value.upper()

    @property
    def name(self) -> Optional[str]:
        """Text of the first child, which is the name of most CRS nodes."""
        if self._children and not self._children[0]._children:
            return self._children[0].value
        return None

    def get_child(self, index: int) -> Optional["SRSNode"]:
        if 0 <= index < len(self._children):
            return self._children[index]
        return None

    def _adopt(self, child: "SRSNode") -> None:
        if not isinstance(child, SRSNode):
            raise TypeError(f"child must be an SRSNode, got {type(child)}")
        if child.parent is not None:
            raise ValueError(
                f"Node '{child.value}' already belongs to '{child.parent.value}'; "
                "clone it before adding it elsewhere"
            )
        node = self
        while node is not None:
            if node is child:
                raise ValueError("A node cannot be added below itself")
            node = node.parent
        child.parent = self

    def add_child(self, child: "SRSNode") -> "SRSNode":
        """Append ``child`` and return it."""
        self._adopt(child)
        self._children.append(child)
        return child

    def insert_child(self, index: int, child: "SRSNode") -> "SRSNode":
        """Insert ``child`` at ``index`` and return it."""
        self._adopt(child)
        index = max(0, min(index, len(self._children)))
        self._children.insert(index, child)
        return child

    def remove_child(self, index: int) -> "SRSNode":
        """Detach and return the child at ``index``."""
        child = self._children.pop(index)
        child.parent = None
        return child

    def replace_child(self, index: int, child: "SRSNode") -> "SRSNode":
        """Replace the child at ``index`` with ``child``; return the old one."""
        old = self.remove_child(index)
        self.insert_child(index, child)
        return old

    def detach(self) -> "SRSNode":
        """Remove this node from its parent and return it."""
        if self.parent is not None:
            self.parent.remove_child(self.parent._children.index(self))
        return self

    def clear_children(self) -> None:
        for child in self._children:
            child.parent = None
        self._children = []

    def find_child(self, value: str, start: int = 0) -> int:
        """Index of the first direct child with keyword ``value``, or -1."""
        wanted = value.upper()
        for index in range(start, len(self._children)):
            if self._children[index].value.upper() == wanted:
                return index
        return -1

    def find_children(self, value: str) -> List["SRSNode"]:
        """All direct children whose keyword is ``value``."""
        wanted = value.upper()
        return [c for c in self._children if c.value.upper() == wanted]

    def get_node(self, value: str) -> Optional["SRSNode"]:
        """
        Find a node by keyword: this node, then its direct children, then a
        depth-first search of the subtree.
        """
        wanted = value.upper()
        if self._children and self.value.upper() == wanted:
            return self
        for child in self._children:
            if child.value.upper() == wanted and child._children:
                return child
        for child in self._children:
            found = child.get_node(value) if child._children else None
            if found is not None:
                return found
        return None

    def walk(self) -> Iterator["SRSNode"]:
        """Pre-order traversal of the subtree including this node."""
        yield self
        for child in self._children:
            yield from child.walk()

    def strip_nodes(self, value: str) -> int:
        """Remove every descendant with keyword ``value``; return the count."""
        wanted = value.upper()
        removed = 0
        for index in range(len(self._children) - 1, -1, -1):
            child = self._children[index]
            if child._children and child.value.upper() == wanted:
                self.remove_child(index)
                removed += 1
            else:
                removed += child.strip_nodes(value)
        return removed

    # Values --------------------------------------------------------------

    def child_value(self, index: int) -> Optional[str]:
        child = self.get_child(index)
        return child.value if child is not None else None

    def child_float(self, index: int, default: Optional[float] = None) -> Optional[float]:
        """Numeric value of the child at ``index``; ``default`` if absent or not numeric."""
        text = self.child_value(index)
        if text is None:
            return default
        try:
            return float(text)
        except ValueError:
            return default

    def set_child_value(self, index: int, value: str) -> None:
        """Set the text of the child at ``index``, appending leaves as needed."""
        while len(self._children) <= index:
            self.add_child(SRSNode(""))
        self._children[index].value = str(value)

    # Copies and comparison -----------------------------------------------

    def clone(self) -> "SRSNode":
        """Deep copy sharing no nodes with the original."""
        copy = SRSNode(self.value)
        for child in self._children:
            copy.add_child(child.clone())
        return copy

    def structurally_equal(self, other: "SRSNode") -> bool:
        """Exact structural and textual equality, case-insensitive on keywords."""
        if self.is_opaque or other.is_opaque:
            return self.is_opaque and other.is_opaque and self.raw == other.raw
        if self.value.upper() != other.value.upper():
            return False
        if len(self._children) != len(other._children):
            return False
        return all(a.structurally_equal(b) for a, b in zip(self._children, other._children))

    def needs_quoting(self) -> bool:
        """Whether the WKT writer quotes this leaf's value."""
        if self._children:
            return False
        parent = self.parent
        if parent is not None and parent.value.upper() == "AUTHORITY":
            return True
        if parent is not None and parent.value.upper() == "AXIS" and \
                parent._children and parent._children[0] is not self:
            return False
        text = self.value
        if not text:
            return True
        if text[0] in "eE":
            return True
        for char in text:
            if not (char.isdigit() or char in ".-+eE"):
                return True
        try:
            float(text)
        except ValueError:
            return True
        return False

    def __repr__(self) -> str:
        if not self._children:
            return f"SRSNode({self.value!r})"
        return f"SRSNode({self.value!r}, {len(self._children)} children)"


class OpaqueNode(SRSNode):
    """
    An unrecognised ``KEYWORD[...]`` fragment kept verbatim.

    Parameters
    ----------
    keyword : str
        The fragment's keyword
    raw : str
        The exact text of the fragment, keyword and brackets included
    """

    __slots__ = ("raw",)

    is_opaque = True

    def __init__(self, keyword: str, raw: str):
        super().__init__(keyword)
        self.raw = raw

    @property
    def is_leaf(self) -> bool:
        return False

    def add_child(self, child: SRSNode) -> SRSNode:
        raise TypeError("Opaque nodes cannot have children")

    def insert_child(self, index: int, child: SRSNode) -> SRSNode:
        raise TypeError("Opaque nodes cannot have children")

    def clone(self) -> "OpaqueNode":
        return OpaqueNode(self.value, self.raw)

    def get_node(self, value: str) -> Optional[SRSNode]:
        return None

    def needs_quoting(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"OpaqueNode({self.value!r}, {self.raw!r})"


def make_node(keyword: str, *values) -> SRSNode:
    """
    Build a node from a keyword and leaf values or child nodes.

    Examples
    --------
    >>> make_node("PARAMETER", "scale_factor", 0.9996)
    SRSNode('PARAMETER', 2 children)
    """
    node = SRSNode(keyword)
    for value in values:
        if isinstance(value, SRSNode):
            node.add_child(value)
        elif isinstance(value, float):
            node.add_child(SRSNode(format_number(value)))
        else:
            node.add_child(SRSNode(str(value)))
    return node


def format_number(value: float) -> str:
    """Shortest text that round-trips ``value``; integers lose the ``.0``."""
    value = float(value)
    if value == 0:
        return "0"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)
