"""
CRS node tree module for PySRS.

This module holds the canonical in-memory representation of a coordinate
reference system definition.
"""

from .node import (
    AXIS_DIRECTIONS,
    KNOWN_KEYWORDS,
    ROOT_KEYWORDS,
    OpaqueNode,
    SRSNode,
    format_number,
    make_node,
)

__all__ = [
    'AXIS_DIRECTIONS',
    'KNOWN_KEYWORDS',
    'ROOT_KEYWORDS',
    'OpaqueNode',
    'SRSNode',
    'format_number',
    'make_node',
]
