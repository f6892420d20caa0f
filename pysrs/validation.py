"""
Structural validation and repair of CRS trees.

``validate`` reports findings without touching the tree. ``fixup_ordering``
reorders children into the canonical order strict WKT consumers expect,
``fixup`` also inserts missing mandatory nodes with sentinel values, and
``strip_ct_params`` removes nodes that only matter to OGC coordinate
transformation services.

Findings are warnings by default. In strict mode (argument or
``config.settings.strict``) any finding raises ``InvalidCRSError``.
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from . import catalog, config
from .exceptions import InvalidCRSError, SRSWarning
from .tree.node import AXIS_DIRECTIONS, ROOT_KEYWORDS, SRSNode, make_node
from .units import DEGREE_TO_RADIANS, default_registry

logger = logging.getLogger(__name__)

SEVERITY_WARNING = "warning"

# Finding categories
STRUCTURE = "structure"
MISSING = "missing"
ORDERING = "ordering"
PARAMETER = "parameter"
UNIT = "unit"

# Canonical child order for each compound keyword. Leaf values always come
# first; keywords not listed sort after every listed one.
CANONICAL_ORDER: Dict[str, Sequence[str]] = {
    "PROJCS": ("GEOGCS", "PROJECTION", "PARAMETER", "UNIT", "AXIS", "EXTENSION", "AUTHORITY"),
    "GEOGCS": ("DATUM", "PRIMEM", "UNIT", "AXIS", "AUTHORITY"),
    "GEOCCS": ("DATUM", "PRIMEM", "UNIT", "AXIS", "AUTHORITY"),
    "DATUM": ("SPHEROID", "TOWGS84", "AUTHORITY"),
    "VERT_CS": ("VERT_DATUM", "UNIT", "AXIS", "AUTHORITY"),
    "LOCAL_CS": ("LOCAL_DATUM", "UNIT", "AXIS", "AUTHORITY"),
    "COMPD_CS": ("PROJCS", "GEOGCS", "VERT_CS", "AUTHORITY"),
    "SPHEROID": ("AUTHORITY",),
    "PRIMEM": ("AUTHORITY",),
    "UNIT": ("AUTHORITY",),
    "PROJECTION": ("AUTHORITY",),
    "PARAMETER": ("AUTHORITY",),
    "VERT_DATUM": ("AUTHORITY",),
    "LOCAL_DATUM": ("AUTHORITY",),
}

_UNORDERED_RANK = 1000


@dataclass(frozen=True)
class Finding:
    """One validation finding."""

    category: str
    message: str
    path: str = ""
    severity: str = SEVERITY_WARNING

    def __str__(self) -> str:
        where = f" [{self.path}]" if self.path else ""
        return f"{self.category}: {self.message}{where}"


@dataclass
class ValidationReport:
    """Findings produced by ``validate``."""

    findings: List[Finding] = field(default_factory=list)

    def add(self, category: str, message: str, path: str = "") -> None:
        self.findings.append(Finding(category, message, path))

    @property
    def is_valid(self) -> bool:
        """True when no structural finding was reported."""
        return not any(f.category == STRUCTURE for f in self.findings)

    @property
    def is_clean(self) -> bool:
        """True when no finding at all was reported."""
        return not self.findings

    def by_category(self, category: str) -> List[Finding]:
        return [f for f in self.findings if f.category == category]

    def raise_if_invalid(self, categories: Optional[Sequence[str]] = None) -> None:
        """Raise ``InvalidCRSError`` for findings in ``categories`` (all when None)."""
        selected = [
            f for f in self.findings if categories is None or f.category in categories
        ]
        if selected:
            raise InvalidCRSError("; ".join(str(f) for f in selected))

    def __len__(self) -> int:
        return len(self.findings)

    def __iter__(self):
        return iter(self.findings)


def _resolve_strict(strict: Optional[bool]) -> bool:
    return config.settings.strict if strict is None else strict


def canonical_rank(parent_kind: str, child: SRSNode) -> int:
    """Sort key of ``child`` within a ``parent_kind`` node."""
    if not child.child_count and not child.is_opaque:
        return -1
    order = CANONICAL_ORDER.get(parent_kind)
    if order is None or child.kind not in order:
        return _UNORDERED_RANK
    return order.index(child.kind)


def insert_ordered(parent: SRSNode, child: SRSNode) -> SRSNode:
    """Insert ``child`` into ``parent`` at its canonical position."""
    rank = canonical_rank(parent.kind, child)
    for index, existing in enumerate(parent.children):
        if canonical_rank(parent.kind, existing) > rank:
            return parent.insert_child(index, child)
    return parent.add_child(child)


def _is_number(text: Optional[str]) -> bool:
    if text is None:
        return False
    try:
        float(text)
    except ValueError:
        return False
    return True


def _path(node: SRSNode) -> str:
    parts = []
    while node is not None:
        parts.append(node.value)
        node = node.parent
    return "|".join(reversed(parts))


def _check_ordering(node: SRSNode, report: ValidationReport) -> None:
    if node.is_opaque:
        return
    ranks = [canonical_rank(node.kind, c) for c in node.children]
    if ranks != sorted(ranks):
        report.add(ORDERING, f"children of {node.kind} are not in canonical order", _path(node))
    for child in node.children:
        if child.child_count:
            _check_ordering(child, report)


def _check_unit(node: Optional[SRSNode], report: ValidationReport) -> None:
    if node is None:
        return
    if node.child_count < 2 or not _is_number(node.child_value(1)):
        report.add(STRUCTURE, "UNIT needs a name and a numeric factor", _path(node))
        return
    if node.child_float(1) <= 0:
        report.add(STRUCTURE, "UNIT factor must be positive", _path(node))
    if default_registry.lookup(node.name) is None:
        report.add(UNIT, f"unit '{node.name}' is not in the unit registry", _path(node))


def _check_datum(cs: SRSNode, report: ValidationReport) -> None:
    datums = cs.find_children("DATUM")
    if len(datums) != 1:
        report.add(STRUCTURE, f"{cs.kind} must contain exactly one DATUM", _path(cs))
        return
    datum = datums[0]
    spheroids = datum.find_children("SPHEROID")
    if len(spheroids) != 1:
        report.add(STRUCTURE, "DATUM must contain exactly one SPHEROID", _path(datum))
    else:
        spheroid = spheroids[0]
        if spheroid.child_count < 3 or not _is_number(spheroid.child_value(1)) or \
                not _is_number(spheroid.child_value(2)):
            report.add(STRUCTURE, "SPHEROID needs a name, semi-major axis and inverse flattening",
                       _path(spheroid))
        elif spheroid.child_float(1) <= 0 or spheroid.child_float(2) < 0:
            report.add(STRUCTURE, "SPHEROID axis must be positive and flattening non-negative",
                       _path(spheroid))
    for towgs84 in datum.find_children("TOWGS84"):
        values = [c.value for c in towgs84.children]
        if len(values) not in (3, 7) or not all(_is_number(v) for v in values):
            report.add(STRUCTURE, "TOWGS84 needs 3 or 7 numeric values", _path(towgs84))


def _check_primem_and_unit(cs: SRSNode, report: ValidationReport) -> None:
    primems = cs.find_children("PRIMEM")
    if not primems:
        report.add(MISSING, f"{cs.kind} has no PRIMEM", _path(cs))
    elif primems[0].child_count < 2 or not _is_number(primems[0].child_value(1)):
        report.add(STRUCTURE, "PRIMEM needs a name and a numeric longitude", _path(primems[0]))
    units = cs.find_children("UNIT")
    if not units:
        report.add(MISSING, f"{cs.kind} has no UNIT", _path(cs))
    else:
        _check_unit(units[0], report)


def _check_geogcs(cs: SRSNode, report: ValidationReport) -> None:
    _check_datum(cs, report)
    _check_primem_and_unit(cs, report)


def _check_projcs(cs: SRSNode, report: ValidationReport) -> None:
    geogs = cs.find_children("GEOGCS")
    if len(geogs) != 1:
        report.add(STRUCTURE, "PROJCS must contain exactly one GEOGCS", _path(cs))
    else:
        _check_geogcs(geogs[0], report)
    projections = cs.find_children("PROJECTION")
    if len(projections) != 1 or not projections[0].name:
        report.add(STRUCTURE, "PROJCS must contain exactly one named PROJECTION", _path(cs))
        method = None
    else:
        method = catalog.get_method(projections[0].name)
    for parm in cs.find_children("PARAMETER"):
        if parm.child_count < 2 or not _is_number(parm.child_value(1)):
            report.add(STRUCTURE, "PARAMETER needs a name and a numeric value", _path(parm))
        elif method is not None and method.parameter(parm.name) is None:
            report.add(PARAMETER, f"parameter '{parm.name}' is not used by {method.name}",
                       _path(parm))
    units = cs.find_children("UNIT")
    if not units:
        report.add(MISSING, "PROJCS has no linear UNIT", _path(cs))
    else:
        _check_unit(units[0], report)


def _check_generic(root: SRSNode, report: ValidationReport) -> None:
    for node in root.walk():
        if node.is_opaque:
            continue
        if node.kind == "AUTHORITY" and node.child_count:
            if node.child_count != 2:
                report.add(STRUCTURE, "AUTHORITY needs a name and a code", _path(node))
        elif node.kind == "AXIS" and node.child_count:
            if node.child_count != 2 or node.child_value(1).upper() not in AXIS_DIRECTIONS:
                report.add(STRUCTURE, "AXIS needs a name and a valid direction", _path(node))


def _check_cs(cs: SRSNode, report: ValidationReport) -> None:
    kind = cs.kind
    if kind == "GEOGCS":
        _check_geogcs(cs, report)
    elif kind == "PROJCS":
        _check_projcs(cs, report)
    elif kind == "GEOCCS":
        _check_datum(cs, report)
        _check_primem_and_unit(cs, report)
    elif kind == "VERT_CS":
        if len(cs.find_children("VERT_DATUM")) != 1:
            report.add(STRUCTURE, "VERT_CS must contain exactly one VERT_DATUM", _path(cs))
    elif kind == "COMPD_CS":
        systems = [c for c in cs.children if c.kind in ROOT_KEYWORDS and c.child_count]
        if len(systems) != 2 or systems[0].kind not in ("GEOGCS", "PROJCS") or \
                systems[1].kind != "VERT_CS":
            report.add(STRUCTURE,
                       "COMPD_CS must contain one horizontal CS followed by one VERT_CS",
                       _path(cs))
        for system in systems:
            _check_cs(system, report)


def validate(root: Optional[SRSNode], strict: Optional[bool] = None) -> ValidationReport:
    """
    Check a CRS tree against the structural rules of WKT 1.

    Parameters
    ----------
    root : SRSNode or None
        Tree to check
    strict : bool, optional
        Raise ``InvalidCRSError`` on any finding

    Returns
    -------
    ValidationReport
        All findings; ``report.is_valid`` is False for structural problems
    """
    report = ValidationReport()
    if root is None:
        report.add(STRUCTURE, "spatial reference is empty")
    elif root.is_opaque or root.kind not in ROOT_KEYWORDS:
        report.add(STRUCTURE, f"'{root.value}' is not a coordinate system keyword")
    else:
        if not root.name:
            report.add(STRUCTURE, f"{root.kind} has no name", root.value)
        _check_cs(root, report)
        _check_generic(root, report)
        _check_ordering(root, report)
    logger.debug("Validation produced %d finding(s)", len(report))
    if _resolve_strict(strict):
        report.raise_if_invalid()
    return report


def _report_repairs(operation: str, findings: List[Finding], strict: Optional[bool]) -> None:
    if not findings:
        return
    if _resolve_strict(strict):
        raise InvalidCRSError(f"{operation}: " + "; ".join(str(f) for f in findings))
    for finding in findings:
        logger.debug("%s repaired %s", operation, finding)
    warnings.warn(
        f"{operation} repaired {len(findings)} issue(s): "
        + "; ".join(str(f) for f in findings),
        SRSWarning,
        stacklevel=3,
    )


def _reorder(node: SRSNode) -> None:
    if node.is_opaque:
        return
    children = node.children
    ordered = sorted(children, key=lambda c: canonical_rank(node.kind, c))
    if ordered != children:
        node.clear_children()
        for child in ordered:
            node.add_child(child)
    for child in ordered:
        if child.child_count:
            _reorder(child)


def fixup_ordering(root: Optional[SRSNode], strict: Optional[bool] = None) -> List[Finding]:
    """
    Reorder children into canonical order.

    Returns the ordering findings that were repaired. In strict mode the tree
    is left untouched and ``InvalidCRSError`` is raised instead.
    """
    if root is None:
        return []
    report = ValidationReport()
    _check_ordering(root, report)
    findings = report.findings
    _report_repairs("fixup_ordering", findings, strict)
    if findings:
        _reorder(root)
    return findings


def _missing_nodes(root: SRSNode) -> List[Finding]:
    report = ValidationReport()
    for node in root.walk():
        if node.is_opaque:
            continue
        if node.kind in ("GEOGCS", "GEOCCS") and node.child_count:
            if not node.find_children("PRIMEM"):
                report.add(MISSING, f"{node.kind} has no PRIMEM", _path(node))
            if not node.find_children("UNIT"):
                report.add(MISSING, f"{node.kind} has no UNIT", _path(node))
        elif node.kind == "PROJCS" and node.child_count and not node.find_children("UNIT"):
            report.add(MISSING, "PROJCS has no linear UNIT", _path(node))
    return report.findings


def _insert_missing(root: SRSNode) -> None:
    for node in list(root.walk()):
        if node.is_opaque or not node.child_count:
            continue
        if node.kind in ("GEOGCS", "GEOCCS"):
            if not node.find_children("PRIMEM"):
                insert_ordered(node, make_node("PRIMEM", "Greenwich", 0.0))
            if not node.find_children("UNIT"):
                if node.kind == "GEOGCS":
                    insert_ordered(node, make_node("UNIT", "degree", DEGREE_TO_RADIANS))
                else:
                    insert_ordered(node, make_node("UNIT", "metre", 1.0))
        elif node.kind == "PROJCS" and not node.find_children("UNIT"):
            insert_ordered(node, make_node("UNIT", "metre", 1.0))


def fixup(root: Optional[SRSNode], strict: Optional[bool] = None) -> List[Finding]:
    """
    Insert missing mandatory nodes and fix child ordering.

    Missing PRIMEM nodes become ``PRIMEM["Greenwich",0]``, missing angular
    units become degrees and missing linear units become metres.

    Returns the findings that were repaired.
    """
    if root is None:
        return []
    findings = _missing_nodes(root)
    report = ValidationReport()
    _check_ordering(root, report)
    findings.extend(report.findings)
    _report_repairs("fixup", findings, strict)
    _insert_missing(root)
    _reorder(root)
    return findings


def strip_ct_params(root: Optional[SRSNode]) -> Optional[SRSNode]:
    """
    Remove AUTHORITY, TOWGS84, AXIS and EXTENSION nodes, opaque nodes, and
    the vertical part of a compound system.

    Returns the (possibly new) root.
    """
    if root is None:
        return None
    if root.kind == "COMPD_CS":
        horizontal = next(
            (c for c in root.children if c.kind in ("GEOGCS", "PROJCS") and c.child_count), None
        )
        if horizontal is not None:
            root = horizontal.detach()
    for keyword in ("AUTHORITY", "TOWGS84", "AXIS", "EXTENSION"):
        root.strip_nodes(keyword)
    for node in list(root.walk()):
        for index in range(node.child_count - 1, -1, -1):
            if node.get_child(index).is_opaque:
                node.remove_child(index)
    return root
