"""
SpatialReference: the handle around a CRS node tree.

The handle owns exactly one root node (or none while empty or after release)
and exposes attribute access, unit handling, predicates, CRS builders and the
import/export entry points of every supported format.
"""

import logging
import math
import re
import threading
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from . import authority, catalog, config, validation
from . import constants as C
from .exceptions import (
    ExportError,
    InvalidCRSError,
    ParameterNotFoundError,
    ParseError,
    UnsupportedCRSError,
)
from .projections import ProjectionSetterMixin
from .tree.node import ROOT_KEYWORDS, SRSNode, format_number, make_node
from .units import DEGREE_TO_RADIANS, default_registry

logger = logging.getLogger(__name__)

REL_TOLERANCE = 1e-9

_DATUM_EQUIVALENTS = {
    "wgs84": "wgs1984",
    "wgs72": "wgs1972",
    "nad83": "northamericandatum1983",
    "northamerican1983": "northamericandatum1983",
    "nad27": "northamericandatum1927",
    "northamerican1927": "northamericandatum1927",
}

_HORIZONTAL = ("GEOGCS", "PROJCS")


def normalize_datum_name(name: Optional[str]) -> str:
    """
    Comparison key for a datum name.

    Drops the ESRI ``D_`` prefix, case, and every non-alphanumeric character,
    then folds common synonyms (``WGS84`` and ``WGS_1984``, ``NAD83`` and
    ``North_American_Datum_1983``, ...) onto one key.
    """
    if not name:
        return ""
    text = name.strip()
    if text[:2].upper() == "D_":
        text = text[2:]
    key = re.sub(r"[^0-9a-z]", "", text.lower())
    return _DATUM_EQUIVALENTS.get(key, key)


def _is_wildcard_datum(key: str) -> bool:
    return key in ("", "unknown", "unnamed", "none") or key.startswith("notspecified")


def _close(a: Optional[float], b: Optional[float]) -> bool:
    if a is None or b is None:
        return a is b
    return math.isclose(a, b, rel_tol=REL_TOLERANCE, abs_tol=1e-12)


def _unit_factor_of(node: Optional[SRSNode], default: float) -> float:
    if node is None:
        return default
    unit = node.find_children("UNIT")
    if not unit:
        return default
    return unit[0].child_float(1, default)


def _towgs84_of(geog: SRSNode) -> Optional[Tuple[float, ...]]:
    datum = geog.get_node("DATUM")
    if datum is None:
        return None
    nodes = datum.find_children("TOWGS84")
    if not nodes:
        return None
    values = [c.value for c in nodes[0].children]
    try:
        coefficients = [float(v) for v in values]
    except ValueError:
        return None
    coefficients += [0.0] * (7 - len(coefficients))
    return tuple(coefficients[:7])


def _same_datum(a: SRSNode, b: SRSNode) -> bool:
    datum_a = a.get_node("DATUM")
    datum_b = b.get_node("DATUM")
    if datum_a is None or datum_b is None:
        return datum_a is datum_b
    key_a = normalize_datum_name(datum_a.name)
    key_b = normalize_datum_name(datum_b.name)
    if key_a != key_b and not (_is_wildcard_datum(key_a) or _is_wildcard_datum(key_b)):
        return False
    sph_a = datum_a.get_node("SPHEROID")
    sph_b = datum_b.get_node("SPHEROID")
    if sph_a is None or sph_b is None:
        return sph_a is sph_b
    if not _close(sph_a.child_float(1), sph_b.child_float(1)):
        return False
    if not _close(sph_a.child_float(2, 0.0), sph_b.child_float(2, 0.0)):
        return False
    shift_a = _towgs84_of(a)
    shift_b = _towgs84_of(b)
    if shift_a is not None and shift_b is not None:
        return all(_close(x, y) for x, y in zip(shift_a, shift_b))
    return True


def _same_geogcs(a: Optional[SRSNode], b: Optional[SRSNode]) -> bool:
    if a is None or b is None:
        return False
    if not _same_datum(a, b):
        return False
    angular_a = _unit_factor_of(a, DEGREE_TO_RADIANS)
    angular_b = _unit_factor_of(b, DEGREE_TO_RADIANS)
    if not _close(angular_a, angular_b):
        return False
    pm_a = a.find_children("PRIMEM")
    pm_b = b.find_children("PRIMEM")
    offset_a = pm_a[0].child_float(1, 0.0) * angular_a if pm_a else 0.0
    offset_b = pm_b[0].child_float(1, 0.0) * angular_b if pm_b else 0.0
    return _close(offset_a, offset_b)


def _normalized_parameters(projcs: SRSNode) -> Dict[str, float]:
    angular = _unit_factor_of(projcs.get_node("GEOGCS"), DEGREE_TO_RADIANS)
    linear = _unit_factor_of(projcs, 1.0)
    values = {}
    for parm in projcs.find_children("PARAMETER"):
        name = parm.name or ""
        raw = parm.child_float(1)
        if raw is None:
            continue
        if catalog.is_angular_parameter(name):
            raw *= angular
        elif catalog.is_linear_parameter(name):
            raw *= linear
        values[name.lower()] = raw
    return values


def _normalized_default(method: str, name: str) -> float:
    default = catalog.parameter_default(method, name)
    if catalog.is_angular_parameter(name):
        return default * DEGREE_TO_RADIANS
    return default


def _same_projcs(a: SRSNode, b: SRSNode) -> bool:
    if not _same_geogcs(a.get_node("GEOGCS"), b.get_node("GEOGCS")):
        return False
    proj_a = a.find_children("PROJECTION")
    proj_b = b.find_children("PROJECTION")
    method_a = catalog.canonical_method_name(proj_a[0].name) if proj_a else ""
    method_b = catalog.canonical_method_name(proj_b[0].name) if proj_b else ""
    if (method_a or "").lower() != (method_b or "").lower():
        return False
    if not _close(_unit_factor_of(a, 1.0), _unit_factor_of(b, 1.0)):
        return False
    params_a = _normalized_parameters(a)
    params_b = _normalized_parameters(b)
    for name in set(params_a) | set(params_b):
        default = _normalized_default(method_a, name)
        if not _close(params_a.get(name, default), params_b.get(name, default)):
            return False
    return True


def _same_vertcs(a: Optional[SRSNode], b: Optional[SRSNode]) -> bool:
    if a is None or b is None:
        return False
    datum_a = a.get_node("VERT_DATUM")
    datum_b = b.get_node("VERT_DATUM")
    if datum_a is None or datum_b is None:
        return datum_a is datum_b
    if normalize_datum_name(datum_a.name) != normalize_datum_name(datum_b.name):
        return False
    if datum_a.child_float(1) != datum_b.child_float(1):
        return False
    return _close(_unit_factor_of(a, 1.0), _unit_factor_of(b, 1.0))


def _same_cs(a: SRSNode, b: SRSNode) -> bool:
    if a.kind != b.kind:
        return False
    kind = a.kind
    if kind == "GEOGCS":
        return _same_geogcs(a, b)
    if kind == "PROJCS":
        return _same_projcs(a, b)
    if kind == "GEOCCS":
        return _same_datum(a, b) and _close(_unit_factor_of(a, 1.0), _unit_factor_of(b, 1.0))
    if kind == "VERT_CS":
        return _same_vertcs(a, b)
    if kind == "LOCAL_CS":
        return (a.name or "").lower() == (b.name or "").lower() and \
            _close(_unit_factor_of(a, 1.0), _unit_factor_of(b, 1.0))
    if kind == "COMPD_CS":
        parts_a = [c for c in a.children if c.kind in ROOT_KEYWORDS and c.child_count]
        parts_b = [c for c in b.children if c.kind in ROOT_KEYWORDS and c.child_count]
        return len(parts_a) == len(parts_b) and all(
            _same_cs(x, y) for x, y in zip(parts_a, parts_b)
        )
    return a.structurally_equal(b)


class SpatialReference(ProjectionSetterMixin):
    """
    A coordinate reference system definition.

    Parameters
    ----------
    definition : str, optional
        WKT text, or any string accepted by ``set_from_user_input``

    Examples
    --------
    >>> srs = SpatialReference()
    >>> srs.set_well_known_geog_cs("WGS84")
    >>> srs.set_utm(33, north=True)
    >>> srs.utm_zone()
    (33, True)
    """

    def __init__(self, definition: Optional[str] = None):
        self._root: Optional[SRSNode] = None
        self._ref_count = 1
        self._lock = threading.Lock()
        self._released = False
        if definition:
            self.set_from_user_input(definition)

    # Constructors ----------------------------------------------------------

    @classmethod
    def from_wkt(cls, wkt: str) -> "SpatialReference":
        srs = cls()
        srs.import_from_wkt(wkt)
        return srs

    @classmethod
    def from_proj4(cls, proj4: str) -> "SpatialReference":
        srs = cls()
        srs.import_from_proj4(proj4)
        return srs

    @classmethod
    def from_epsg(cls, code: int) -> "SpatialReference":
        srs = cls()
        srs.import_from_epsg(code)
        return srs

    @classmethod
    def from_epsga(cls, code: int) -> "SpatialReference":
        srs = cls()
        srs.import_from_epsga(code)
        return srs

    @classmethod
    def from_esri(cls, prj) -> "SpatialReference":
        srs = cls()
        srs.import_from_esri(prj)
        return srs

    @classmethod
    def from_xml(cls, xml: str) -> "SpatialReference":
        srs = cls()
        srs.import_from_xml(xml)
        return srs

    @classmethod
    def from_user_input(cls, definition: str) -> "SpatialReference":
        srs = cls()
        srs.set_from_user_input(definition)
        return srs

    @classmethod
    def from_node(cls, node: SRSNode) -> "SpatialReference":
        """Wrap a clone of ``node`` in a new handle."""
        srs = cls()
        srs._install(node.clone())
        return srs

    # Lifecycle -------------------------------------------------------------

    @property
    def reference_count(self) -> int:
        with self._lock:
            return self._ref_count

    @property
    def is_released(self) -> bool:
        return self._released

    def reference(self) -> int:
        """Add an owner; returns the new count."""
        with self._lock:
            if self._released:
                raise InvalidCRSError("Cannot reference a released spatial reference")
            self._ref_count += 1
            return self._ref_count

    def dereference(self) -> int:
        """Drop an owner without destroying the tree; returns the new count."""
        with self._lock:
            if self._ref_count > 0:
                self._ref_count -= 1
            return self._ref_count

    def release(self) -> int:
        """Drop an owner and destroy the tree when no owner is left."""
        with self._lock:
            if self._ref_count > 0:
                self._ref_count -= 1
            count = self._ref_count
            if count == 0:
                self._root = None
                self._released = True
        if count == 0:
            logger.debug("Released spatial reference %#x", id(self))
        return count

    def destroy(self) -> None:
        """Drop the tree regardless of the reference count."""
        with self._lock:
            self._root = None
            self._ref_count = 0
            self._released = True

    def __enter__(self) -> "SpatialReference":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()

    # Tree access -----------------------------------------------------------

    @property
    def root(self) -> Optional[SRSNode]:
        """The live root node, or None for an empty reference."""
        return self._root

    @property
    def is_empty(self) -> bool:
        return self._root is None

    def _install(self, node: Optional[SRSNode]) -> None:
        if self._released:
            raise InvalidCRSError("Spatial reference has been released")
        if node is not None and node.parent is not None:
            node = node.clone()
        self._root = node

    def _take_root(self) -> Optional[SRSNode]:
        node, self._root = self._root, None
        return node

    def _require_root(self) -> SRSNode:
        if self._released:
            raise InvalidCRSError("Spatial reference has been released")
        if self._root is None:
            raise InvalidCRSError("Spatial reference is empty")
        return self._root

    def attr_node(self, path: str) -> Optional[SRSNode]:
        """
        Find a node by keyword path.

        A single keyword (``"DATUM"``) searches the whole tree; a path such as
        ``"PROJCS|GEOGCS|DATUM"`` descends one keyword at a time.
        """
        if self._root is None or not path:
            return None
        tokens = [t for t in re.split(r"[|.]", path) if t]
        if len(tokens) == 1:
            return self._root.get_node(tokens[0])
        node = self._root
        for token in tokens:
            node = node.get_node(token)
            if node is None:
                return None
        return node

    def attr_value(self, path: str, child: int = 0) -> Tuple[Optional[str], bool]:
        """
        Value of a child of the node found by ``path``.

        Returns
        -------
        tuple
            ``(value, True)`` when present, ``(None, False)`` otherwise
        """
        node = self.attr_node(path)
        if node is None:
            return None, False
        value = node.child_value(child)
        if value is None:
            return None, False
        return value, True

    def set_attr_value(self, path: str, value: Optional[str] = None) -> None:
        """
        Set (or create) the node at ``path`` and give it ``value`` as child 0.

        Missing intermediate nodes are created. When the first keyword differs
        from the current root the tree is replaced by a new one.
        """
        if self._released:
            raise InvalidCRSError("Spatial reference has been released")
        tokens = [t for t in re.split(r"[|.]", path) if t]
        if not tokens:
            raise ValueError("Empty attribute path")
        if self._root is None or self._root.kind != tokens[0].upper():
            self._root = SRSNode(tokens[0].upper())
        node = self._root
        for token in tokens[1:]:
            index = node.find_child(token)
            if index < 0:
                node = validation.insert_ordered(node, SRSNode(token.upper()))
            else:
                node = node.get_child(index)
        if value is None:
            return
        first = node.get_child(0)
        if first is not None and not first.child_count:
            first.value = str(value)
        else:
            node.insert_child(0, SRSNode(str(value)))

    def _geogcs(self) -> Optional[SRSNode]:
        if self._root is None:
            return None
        return self._root.get_node("GEOGCS")

    def _projcs(self) -> Optional[SRSNode]:
        if self._root is None:
            return None
        return self._root.get_node("PROJCS")

    def _horizontal(self) -> Optional[SRSNode]:
        root = self._root
        if root is None:
            return None
        if root.kind == "COMPD_CS":
            for child in root.children:
                if child.kind in _HORIZONTAL and child.child_count:
                    return child
            return None
        return root

    # Predicates ------------------------------------------------------------

    def is_geographic(self) -> bool:
        horizontal = self._horizontal()
        return horizontal is not None and horizontal.kind == "GEOGCS"

    def is_projected(self) -> bool:
        horizontal = self._horizontal()
        return horizontal is not None and horizontal.kind == "PROJCS"

    def is_local(self) -> bool:
        return self._root is not None and self._root.kind == "LOCAL_CS"

    def is_geocentric(self) -> bool:
        return self._root is not None and self._root.kind == "GEOCCS"

    def is_vertical(self) -> bool:
        if self._root is None:
            return False
        if self._root.kind == "VERT_CS":
            return True
        return self._root.kind == "COMPD_CS" and bool(self._root.find_children("VERT_CS"))

    def is_compound(self) -> bool:
        return self._root is not None and self._root.kind == "COMPD_CS"

    def is_same(self, other: "SpatialReference") -> bool:
        """Semantic equality: same ellipsoid, datum, units, method and parameters."""
        if self._root is None or other._root is None:
            return self._root is None and other._root is None
        return _same_cs(self._root, other._root)

    def is_same_geog_cs(self, other: "SpatialReference") -> bool:
        return _same_geogcs(self._geogcs(), other._geogcs())

    def is_same_vert_cs(self, other: "SpatialReference") -> bool:
        mine = self._root.get_node("VERT_CS") if self._root is not None else None
        theirs = other._root.get_node("VERT_CS") if other._root is not None else None
        return _same_vertcs(mine, theirs)

    # Copies ----------------------------------------------------------------

    def clone(self) -> "SpatialReference":
        """Deep copy sharing no nodes with this reference."""
        copy = SpatialReference()
        if self._root is not None:
            copy._root = self._root.clone()
        return copy

    def clone_geog_cs(self) -> "SpatialReference":
        """New reference holding a copy of this system's GEOGCS."""
        geog = self._geogcs()
        if geog is None:
            raise InvalidCRSError("Spatial reference has no GEOGCS to clone")
        copy = SpatialReference()
        copy._root = geog.clone()
        return copy

    # Units -----------------------------------------------------------------

    def _unit_node(self, parent: Optional[SRSNode]) -> Optional[SRSNode]:
        if parent is None:
            return None
        units = parent.find_children("UNIT")
        return units[0] if units else None

    def _replace_unit(self, parent: SRSNode, name: str, factor: float) -> None:
        index = parent.find_child("UNIT")
        unit = make_node("UNIT", name, float(factor))
        known = default_registry.lookup(name)
        if known is not None and known.epsg and math.isclose(known.factor, factor,
                                                             rel_tol=REL_TOLERANCE):
            unit.add_child(make_node("AUTHORITY", "EPSG", str(known.epsg)))
        if index >= 0:
            parent.replace_child(index, unit)
        else:
            validation.insert_ordered(parent, unit)

    def angular_units(self) -> Tuple[str, float]:
        """``(name, radians per unit)`` of the GEOGCS, degrees when unset."""
        unit = self._unit_node(self._geogcs())
        if unit is None:
            return "degree", DEGREE_TO_RADIANS
        return unit.name, unit.child_float(1, DEGREE_TO_RADIANS)

    def set_angular_units(self, name: str, factor: float) -> None:
        geog = self._geogcs()
        if geog is None:
            raise InvalidCRSError("Angular units need a GEOGCS")
        if factor <= 0:
            raise ValueError(f"Unit factor must be positive, got {factor}")
        self._replace_unit(geog, name, factor)

    def _linear_target(self, target: Optional[str]) -> Optional[SRSNode]:
        if target:
            return self.attr_node(target)
        if self._root is None:
            return None
        for keyword in ("PROJCS", "LOCAL_CS", "GEOCCS", "VERT_CS"):
            node = self._root.get_node(keyword)
            if node is not None:
                return node
        return None

    def target_linear_units(self, target: Optional[str] = None) -> Tuple[str, float]:
        """
        Linear units of the ``target`` node (PROJCS, LOCAL_CS, GEOCCS or
        VERT_CS when None); ``("metre", 1.0)`` when unset.
        """
        unit = self._unit_node(self._linear_target(target))
        if unit is None:
            return "metre", 1.0
        return unit.name, unit.child_float(1, 1.0)

    def linear_units(self) -> Tuple[str, float]:
        return self.target_linear_units(None)

    def set_target_linear_units(self, target: Optional[str], name: str, factor: float) -> None:
        node = self._linear_target(target)
        if node is None:
            raise InvalidCRSError(f"No {target or 'projected, local or geocentric'} node "
                                  "to hold linear units")
        if factor <= 0:
            raise ValueError(f"Unit factor must be positive, got {factor}")
        self._replace_unit(node, name, factor)

    def set_linear_units(self, name: str, factor: float) -> None:
        self.set_target_linear_units(None, name, factor)

    def set_linear_units_and_update_parameters(self, name: str, factor: float) -> None:
        """
        Change the linear units and rescale linear parameters so their
        normalised values stay the same.
        """
        projcs = self._projcs()
        if projcs is not None:
            _, old_factor = self.linear_units()
            if factor <= 0:
                raise ValueError(f"Unit factor must be positive, got {factor}")
            for parm in projcs.find_children("PARAMETER"):
                if catalog.is_linear_parameter(parm.name or ""):
                    raw = parm.child_float(1, 0.0)
                    parm.set_child_value(1, format_number(raw * old_factor / factor))
        self.set_linear_units(name, factor)

    def prime_meridian(self) -> Tuple[str, float]:
        """``(name, offset)`` of the prime meridian; Greenwich when unset."""
        geog = self._geogcs()
        primem = geog.find_children("PRIMEM") if geog is not None else []
        if not primem:
            return "Greenwich", 0.0
        return primem[0].name, primem[0].child_float(1, 0.0)

    # Ellipsoid and datum ----------------------------------------------------

    def _spheroid(self) -> SRSNode:
        spheroid = self._root.get_node("SPHEROID") if self._root is not None else None
        if spheroid is None or spheroid.child_count < 3:
            raise InvalidCRSError("Spatial reference has no SPHEROID")
        return spheroid

    def semi_major_axis(self) -> float:
        return self._spheroid().child_float(1)

    def inverse_flattening(self) -> float:
        return self._spheroid().child_float(2)

    def semi_minor_axis(self) -> float:
        semi_major = self.semi_major_axis()
        inv_flattening = self.inverse_flattening()
        if inv_flattening == 0:
            return semi_major
        return semi_major * (1.0 - 1.0 / inv_flattening)

    def set_towgs84(self, dx: float, dy: float, dz: float, ex: float = 0.0, ey: float = 0.0,
                    ez: float = 0.0, ppm: float = 0.0) -> None:
        """Set the 7-parameter Bursa-Wolf shift of the datum to WGS84."""
        datum = self._root.get_node("DATUM") if self._root is not None else None
        if datum is None:
            raise InvalidCRSError("TOWGS84 needs a DATUM")
        node = make_node("TOWGS84", *(float(v) for v in (dx, dy, dz, ex, ey, ez, ppm)))
        index = datum.find_child("TOWGS84")
        if index >= 0:
            datum.replace_child(index, node)
        else:
            validation.insert_ordered(datum, node)

    def towgs84(self) -> Optional[Tuple[float, ...]]:
        """The 7 datum shift coefficients, or None when the datum has none."""
        geog = self._geogcs() or (self._root if self.is_geocentric() else None)
        if geog is None:
            return None
        return _towgs84_of(geog)

    # Authority -------------------------------------------------------------

    def _authority_target(self, target: Optional[str]) -> Optional[SRSNode]:
        if not target:
            return self._root
        return self.attr_node(target)

    def set_authority(self, target: Optional[str], authority: str, code: Union[int, str]) -> None:
        node = self._authority_target(target)
        if node is None:
            raise InvalidCRSError(f"No node '{target}' to attach an authority to")
        index = node.find_child("AUTHORITY")
        if index >= 0:
            node.remove_child(index)
        validation.insert_ordered(node, make_node("AUTHORITY", authority, str(code)))

    def _authority(self, target: Optional[str]) -> Optional[SRSNode]:
        node = self._authority_target(target)
        if node is None:
            return None
        found = node.find_children("AUTHORITY")
        return found[0] if found else None

    def authority_name(self, target: Optional[str] = None) -> Optional[str]:
        node = self._authority(target)
        return node.child_value(0) if node is not None else None

    def authority_code(self, target: Optional[str] = None) -> Optional[str]:
        node = self._authority(target)
        return node.child_value(1) if node is not None else None

    def _epsg_code(self, target: str) -> Optional[int]:
        if (self.authority_name(target) or "").upper() != "EPSG":
            return None
        code = self.authority_code(target)
        return int(code) if code and code.isdigit() else None

    def _first_axis_direction(self, cs: Optional[SRSNode], target: str) -> Optional[str]:
        if cs is None:
            return None
        axes = cs.find_children("AXIS")
        if axes:
            return (axes[0].child_value(1) or "").upper()
        code = self._epsg_code(target)
        if code is None:
            return None
        directions = authority.epsg_axis_directions(code)
        return directions[0] if directions else None

    def epsg_treats_as_lat_long(self) -> bool:
        """True for an EPSG geographic system whose authority axis order is lat/long."""
        if not self.is_geographic():
            return False
        direction = self._first_axis_direction(self._geogcs(), "GEOGCS")
        return direction in ("NORTH", "SOUTH")

    def epsg_treats_as_northing_easting(self) -> bool:
        """True for an EPSG projected system whose authority axis order is northing first."""
        if not self.is_projected():
            return False
        direction = self._first_axis_direction(self._projcs(), "PROJCS")
        return direction in ("NORTH", "SOUTH")

    def import_from_epsga(self, code: int) -> None:
        """Import an EPSG definition keeping the authority axis order."""
        from .formats.wkt import parse_wkt
        node = parse_wkt(authority.epsg_wkt(int(code)))
        self._install(node)
        logger.debug("Imported EPSG:%s with authority axes", code)

    def import_from_epsg(self, code: int) -> None:
        """
        Import an EPSG definition.

        Axis nodes are dropped when the authority order is latitude/longitude
        or northing/easting, so coordinates stay in x/y order.
        """
        self.import_from_epsga(code)
        if self.epsg_treats_as_lat_long() or self.epsg_treats_as_northing_easting():
            self._root.strip_nodes("AXIS")

    def auto_identify_epsg(self) -> int:
        """
        Find the EPSG code of this definition and record it as the root
        authority.

        Raises
        ------
        UnsupportedCRSError
            If no EPSG code matches
        """
        root = self._require_root()
        code = None
        zone, north = self.utm_zone()
        geog = self._geogcs()
        if zone and geog is not None:
            datum = normalize_datum_name(geog.get_node("DATUM").name
                                         if geog.get_node("DATUM") is not None else "")
            if datum == "wgs1984":
                code = (32600 if north else 32700) + zone
            elif datum == "northamericandatum1983" and north and zone <= 23:
                code = 26900 + zone
            elif datum == "northamericandatum1927" and north and zone <= 22:
                code = 26700 + zone
            if code is not None and self.authority_name("GEOGCS") is None:
                known = {"wgs1984": 4326, "northamericandatum1983": 4269,
                         "northamericandatum1927": 4267}[datum]
                self.set_authority("GEOGCS", "EPSG", known)
        elif self.is_geographic() and root.kind == "GEOGCS":
            for wkt, epsg in C.WELL_KNOWN_GEOGCS.values():
                if self.is_same_geog_cs(SpatialReference.from_wkt(wkt)):
                    code = epsg
                    break
        if code is None:
            from .formats.wkt import format_wkt
            code = authority.identify_epsg(format_wkt(root))
        if code is None:
            raise UnsupportedCRSError("No EPSG code matches this definition")
        self.set_authority(None, "EPSG", code)
        logger.debug("Identified definition as EPSG:%d", code)
        return code

    # Geographic, geocentric, local, vertical and compound builders --------

    def _place_geogcs(self, geog: SRSNode) -> None:
        root = self._root
        if root is None or root.kind == "GEOGCS":
            self._root = geog
            return
        if root.kind == "PROJCS":
            parent = root
        elif root.kind == "COMPD_CS":
            parent = self._horizontal()
            if parent is None:
                self._root.insert_child(1, geog)
                return
            if parent.kind == "GEOGCS":
                root.replace_child(root.children.index(parent), geog)
                return
        else:
            raise InvalidCRSError(f"Cannot place a GEOGCS in a {root.kind}")
        index = parent.find_child("GEOGCS")
        if index >= 0:
            parent.replace_child(index, geog)
        else:
            validation.insert_ordered(parent, geog)

    def set_geog_cs(
        self,
        geog_name: Optional[str],
        datum_name: Optional[str],
        spheroid_name: Optional[str],
        semi_major: float,
        inv_flattening: float,
        pm_name: Optional[str] = None,
        pm_offset: float = 0.0,
        angular_units: Optional[str] = None,
        convert_to_radians: float = 0.0,
    ) -> None:
        """
        Set the geographic coordinate system.

        Parameters
        ----------
        geog_name, datum_name, spheroid_name : str
            Names; None gives "unnamed"/"unknown"
        semi_major : float
            Semi-major axis in metres
        inv_flattening : float
            Inverse flattening, 0 for a sphere
        pm_name : str, optional
            Prime meridian name (default: Greenwich)
        pm_offset : float, optional
            Prime meridian offset in the angular unit
        angular_units : str, optional
            Angular unit name (default: degree)
        convert_to_radians : float, optional
            Radians per angular unit (default: degree's factor)
        """
        if semi_major <= 0:
            raise InvalidCRSError(f"Semi-major axis must be positive, got {semi_major}")
        if not convert_to_radians:
            convert_to_radians = DEGREE_TO_RADIANS
            angular_units = angular_units or "degree"
        geog = make_node(
            "GEOGCS",
            geog_name or "unnamed",
            make_node("DATUM", datum_name or "unknown",
                      make_node("SPHEROID", spheroid_name or "unnamed",
                                float(semi_major), float(inv_flattening))),
            make_node("PRIMEM", pm_name or "Greenwich", float(pm_offset)),
            make_node("UNIT", angular_units or "unnamed", float(convert_to_radians)),
        )
        self._place_geogcs(geog)

    def copy_geog_cs_from(self, other: "SpatialReference") -> None:
        geog = other._geogcs()
        if geog is None:
            raise InvalidCRSError("Source spatial reference has no GEOGCS")
        self._place_geogcs(geog.clone())

    def set_well_known_geog_cs(self, name: str) -> None:
        """
        Set a well known geographic system: WGS84, WGS72, NAD27, NAD83,
        CRS84, CRS83, CRS27 or ``EPSG:n`` for any geographic EPSG code.
        """
        from .formats.wkt import parse_wkt
        key = name.strip().upper().replace(" ", "")
        key = C.WELL_KNOWN_ALIASES.get(key, key)
        if key in C.WELL_KNOWN_GEOGCS:
            geog = parse_wkt(C.WELL_KNOWN_GEOGCS[key][0])
            if name.strip().upper().startswith("CRS"):
                geog.strip_nodes("AUTHORITY")
        elif key.startswith("EPSG:") and key[5:].isdigit():
            geog = parse_wkt(authority.epsg_wkt(int(key[5:])))
            if geog.kind != "GEOGCS":
                raise UnsupportedCRSError(f"{name} is not a geographic system")
            geog.strip_nodes("AXIS")
        else:
            raise UnsupportedCRSError(f"'{name}' is not a well known geographic system")
        self._place_geogcs(geog)

    def set_geocentric_cs(self, name: str) -> None:
        """Make this a GEOCCS, keeping the datum of an existing GEOGCS."""
        root = self._root
        if root is not None and root.kind == "GEOCCS":
            root.set_child_value(0, name)
            return
        if root is not None and root.kind != "GEOGCS":
            raise InvalidCRSError(f"Cannot turn a {root.kind} into a GEOCCS")
        geoccs = make_node("GEOCCS", name)
        if root is not None:
            for keyword in ("DATUM", "PRIMEM"):
                found = root.find_children(keyword)
                if found:
                    geoccs.add_child(found[0].clone())
            geoccs.add_child(make_node("UNIT", "metre", 1.0))
        self._root = geoccs

    def set_local_cs(self, name: str) -> None:
        root = self._root
        if root is None:
            self._root = make_node("LOCAL_CS", name)
        elif root.kind == "LOCAL_CS":
            root.set_child_value(0, name)
        else:
            raise InvalidCRSError(f"Cannot turn a {root.kind} into a LOCAL_CS")

    def set_vertical_cs(self, cs_name: str, datum_name: str,
                        datum_type: int = C.VERT_DATUM_TYPE_GEOID) -> None:
        """
        Set the vertical system. A horizontal root becomes a COMPD_CS holding
        the existing system and the new VERT_CS.
        """
        vert = make_node(
            "VERT_CS", cs_name or "unnamed",
            make_node("VERT_DATUM", datum_name or "unknown", str(int(datum_type))),
            make_node("UNIT", "metre", 1.0),
            make_node("AXIS", "Up", "UP"),
        )
        root = self._root
        if root is None or root.kind == "VERT_CS":
            self._root = vert
        elif root.kind in _HORIZONTAL:
            self._root = make_node("COMPD_CS", "unnamed", root, vert)
        elif root.kind == "COMPD_CS":
            index = root.find_child("VERT_CS")
            if index >= 0:
                root.replace_child(index, vert)
            else:
                validation.insert_ordered(root, vert)
        else:
            raise InvalidCRSError(f"Cannot add a vertical system to a {root.kind}")

    def set_compound_cs(self, name: str, horizontal: "SpatialReference",
                        vertical: "SpatialReference") -> None:
        if horizontal._root is None or horizontal._root.kind not in _HORIZONTAL:
            raise InvalidCRSError("Horizontal part must be a GEOGCS or PROJCS")
        if vertical._root is None or vertical._root.kind != "VERT_CS":
            raise InvalidCRSError("Vertical part must be a VERT_CS")
        self._install(make_node("COMPD_CS", name, horizontal._root.clone(),
                                vertical._root.clone()))

    # Projected systems -----------------------------------------------------

    def _ensure_projcs(self) -> SRSNode:
        projcs = self._projcs()
        if projcs is not None:
            return projcs
        root = self._root
        projcs = make_node("PROJCS", "unnamed")
        if root is None:
            self._root = projcs
        elif root.kind == "GEOGCS":
            self._root = projcs
            projcs.add_child(root)
        elif root.kind == "COMPD_CS":
            horizontal = self._horizontal()
            if horizontal is None:
                validation.insert_ordered(root, projcs)
            else:
                index = root.children.index(horizontal)
                root.remove_child(index)
                root.insert_child(index, projcs)
                projcs.add_child(horizontal)
        else:
            raise InvalidCRSError(f"Cannot build a projected system from a {root.kind}")
        return projcs

    def set_projected_cs(self, name: str) -> None:
        """Name the projected system, wrapping a GEOGCS root into a PROJCS."""
        self._ensure_projcs().set_child_value(0, name)

    def set_projection(self, method: str) -> None:
        """Set the PROJECTION method of the projected system."""
        projcs = self._ensure_projcs()
        index = projcs.find_child("PROJECTION")
        if index >= 0:
            projcs.get_child(index).set_child_value(0, method)
        else:
            validation.insert_ordered(projcs, make_node("PROJECTION", method))

    def projection_method(self) -> Optional[str]:
        projcs = self._projcs()
        if projcs is None:
            return None
        found = projcs.find_children("PROJECTION")
        return found[0].name if found else None

    def _parameter_node(self, name: str) -> Optional[SRSNode]:
        projcs = self._projcs()
        if projcs is None:
            return None
        wanted = name.lower()
        for parm in projcs.find_children("PARAMETER"):
            if (parm.name or "").lower() == wanted:
                return parm
        return None

    def find_projection_parameter(self, name: str) -> Tuple[Optional[float], bool]:
        """``(raw value, True)`` when the parameter is set, else ``(None, False)``."""
        parm = self._parameter_node(name)
        if parm is None:
            return None, False
        value = parm.child_float(1)
        if value is None:
            return None, False
        return value, True

    def projection_parameter(self, name: str, default: Optional[float] = None) -> float:
        """
        Raw value of a projection parameter, in the units stored in the tree.

        Raises
        ------
        ParameterNotFoundError
            If the parameter is absent and no default is given
        """
        value, found = self.find_projection_parameter(name)
        if found:
            return value
        if default is None:
            raise ParameterNotFoundError(f"Projection parameter '{name}' is not set")
        return default

    def set_projection_parameter(self, name: str, value: float) -> None:
        projcs = self._projcs()
        if projcs is None:
            raise InvalidCRSError("Projection parameters need a PROJCS")
        parm = self._parameter_node(name)
        if parm is not None:
            parm.set_child_value(1, format_number(value))
        else:
            validation.insert_ordered(projcs, make_node("PARAMETER", name, float(value)))

    def _parameter_factor(self, name: str) -> float:
        if catalog.is_angular_parameter(name):
            return self.angular_units()[1]
        if catalog.is_linear_parameter(name):
            return self.linear_units()[1]
        return 1.0

    def normalized_projection_parameter(self, name: str,
                                        default: Optional[float] = None) -> float:
        """
        Parameter value in SI units: radians for angles, metres for lengths.

        ``default`` is returned unchanged when the parameter is absent.
        """
        value, found = self.find_projection_parameter(name)
        if found:
            return value * self._parameter_factor(name)
        if default is None:
            raise ParameterNotFoundError(f"Projection parameter '{name}' is not set")
        return default

    def set_normalized_projection_parameter(self, name: str, value: float) -> None:
        self.set_projection_parameter(name, value / self._parameter_factor(name))

    # UTM and State Plane ---------------------------------------------------

    def set_utm(self, zone: int, north: bool = True) -> None:
        """Set a Universal Transverse Mercator projection for ``zone`` (1-60)."""
        if not 1 <= int(zone) <= 60:
            raise InvalidCRSError(f"UTM zone must be between 1 and 60, got {zone}")
        zone = int(zone)
        self.set_tm(0.0, zone * 6 - 183.0, 0.9996, 500000.0, 0.0 if north else 10000000.0)
        projcs = self._projcs()
        if (projcs.name or "unnamed") == "unnamed":
            hemisphere = "Northern" if north else "Southern"
            projcs.set_child_value(0, f"UTM Zone {zone}, {hemisphere} Hemisphere")
        if self._unit_node(projcs) is None:
            self.set_linear_units("metre", 1.0)

    def utm_zone(self) -> Tuple[int, bool]:
        """``(zone, north)`` for a UTM definition, ``(0, False)`` otherwise."""
        if not self.is_projected():
            return 0, False
        if (self.projection_method() or "").lower() != C.PT_TRANSVERSE_MERCATOR.lower():
            return 0, False
        to_degrees = 1.0 / DEGREE_TO_RADIANS
        if self.normalized_projection_parameter(C.PP_LATITUDE_OF_ORIGIN, 0.0) != 0.0:
            return 0, False
        if abs(self.projection_parameter(C.PP_SCALE_FACTOR, 1.0) - 0.9996) > 1e-12:
            return 0, False
        if abs(self.normalized_projection_parameter(C.PP_FALSE_EASTING, 0.0) - 500000.0) > 0.001:
            return 0, False
        false_northing = self.normalized_projection_parameter(C.PP_FALSE_NORTHING, 0.0)
        if false_northing != 0.0 and abs(false_northing - 10000000.0) > 0.001:
            return 0, False
        meridian = self.normalized_projection_parameter(C.PP_CENTRAL_MERIDIAN, 0.0) * to_degrees
        zone = (meridian + 186.0) / 6.0
        if abs(zone - int(zone) - 0.5) > 1e-5 or not -177.00001 <= meridian <= 177.000001:
            return 0, False
        return int(zone), false_northing == 0.0

    def set_state_plane(self, zone: int, nad83: bool = True, unit_name: Optional[str] = None,
                        factor: float = 0.0) -> None:
        """
        Set a US State Plane zone by USGS/FIPS zone number.

        NAD83 zones default to metres and NAD27 zones to US survey feet; pass
        ``unit_name`` and ``factor`` to override.
        """
        from .formats.wkt import parse_wkt
        node = parse_wkt(authority.state_plane_wkt(int(zone), nad83))
        self._install(node)
        if unit_name and factor > 0:
            self.set_linear_units_and_update_parameters(unit_name, factor)
        elif nad83 and not math.isclose(self.linear_units()[1], 1.0):
            self.set_linear_units_and_update_parameters("metre", 1.0)

    def set_state_plane_with_units(self, zone: int, nad83: bool, unit_name: str,
                                   factor: float) -> None:
        self.set_state_plane(zone, nad83, unit_name, factor)

    # Validation ------------------------------------------------------------

    def validate(self, strict: Optional[bool] = None) -> validation.ValidationReport:
        return validation.validate(self._root, strict=strict)

    def fixup(self, strict: Optional[bool] = None):
        return validation.fixup(self._root, strict=strict)

    def fixup_ordering(self, strict: Optional[bool] = None):
        return validation.fixup_ordering(self._root, strict=strict)

    def strip_ct_params(self) -> None:
        self._root = validation.strip_ct_params(self._root)

    # Import ----------------------------------------------------------------

    def import_from_wkt(self, wkt: str) -> None:
        from .formats.wkt import parse_wkt
        self._install(parse_wkt(wkt))
        logger.debug("Imported %s from WKT", self._root.kind)

    def import_from_proj4(self, proj4: str) -> None:
        from .formats.proj4 import parse_proj4
        self._install(parse_proj4(proj4))
        logger.debug("Imported %s from PROJ.4", self._root.kind)

    def import_from_esri(self, prj: Union[str, Sequence[str]]) -> None:
        """Import an ESRI .prj: ESRI-flavoured WKT or the legacy keyword form."""
        from .formats.esri import parse_esri
        self._install(parse_esri(prj))

    def import_from_usgs(self, proj_code: int, zone: int, params, datum: int,
                         packed_dms: Optional[bool] = None) -> None:
        from .formats.usgs import parse_usgs
        self._install(parse_usgs(proj_code, zone, params, datum, packed_dms=packed_dms))

    def import_from_pci(self, proj: str, units: Optional[str] = None, params=None) -> None:
        from .formats.pci import parse_pci
        self._install(parse_pci(proj, units, params))

    def import_from_xml(self, xml: str) -> None:
        from .formats.xml import parse_xml
        self._install(parse_xml(xml))

    def import_from_url(self, url: str, fetcher: Optional[Callable[[str], str]] = None) -> None:
        """
        Fetch a definition from ``url`` and import it with
        ``set_from_user_input``.

        Parameters
        ----------
        url : str
            Location of the definition
        fetcher : callable, optional
            ``fetcher(url) -> str``; the default uses requests
        """
        from .formats.xml import fetch_definition
        self.set_from_user_input(fetch_definition(url, fetcher))

    def import_from_erm(self, proj: str, datum: str, units: str) -> None:
        from .formats.erm import parse_erm
        self._install(parse_erm(proj, datum, units))

    def set_from_user_input(self, definition: str) -> None:
        """
        Import a definition in any recognised form: WKT, ESRI WKT, PROJ.4,
        GML, ``EPSG:n``, ``EPSGA:n``, OGC URNs and URLs, well known names, or
        anything else the authority table resolves.
        """
        if not isinstance(definition, str):
            raise ParseError(f"Definition must be a string, got {type(definition).__name__}")
        text = definition.strip()
        upper = text.upper()
        if not text:
            raise ParseError("Empty definition")
        if re.match(r"^[A-Z_]+\s*[\[(]", upper):
            if 'DATUM["D_' in upper or "DATUM['D_" in upper:
                self.import_from_esri(text)
            else:
                self.import_from_wkt(text)
        elif text.startswith("+") or upper.startswith("PROJ="):
            self.import_from_proj4(text)
        elif text.startswith("<"):
            self.import_from_xml(text)
        elif upper.startswith("EPSG:") and upper[5:].isdigit():
            self.import_from_epsg(int(upper[5:]))
        elif upper.startswith("EPSGA:") and upper[6:].isdigit():
            self.import_from_epsga(int(upper[6:]))
        elif upper.replace(" ", "") in C.WELL_KNOWN_GEOGCS or \
                upper.replace(" ", "") in C.WELL_KNOWN_ALIASES:
            self._root = None
            self.set_well_known_geog_cs(text)
        else:
            urn = re.match(r"^(?:URN:OGC:DEF:CRS:EPSG:[0-9.]*:|"
                           r"HTTPS?://WWW\.OPENGIS\.NET/DEF/CRS/EPSG/[0-9.]+/)(\d+)$", upper)
            if urn:
                self.import_from_epsga(int(urn.group(1)))
            elif re.match(r"^(URN:OGC:DEF:CRS:OGC:[0-9.]*:|"
                          r"HTTPS?://WWW\.OPENGIS\.NET/DEF/CRS/OGC/[0-9.]+/)CRS(84|83|27)$",
                          upper):
                self._root = None
                self.set_well_known_geog_cs(upper[-5:])
            else:
                from .formats.wkt import parse_wkt
                self._install(parse_wkt(authority.user_input_wkt(text)))

    # Export ----------------------------------------------------------------

    def _exportable(self) -> SRSNode:
        if self._released or self._root is None:
            raise ExportError("Cannot export an empty or released spatial reference")
        return self._root

    def export_to_wkt(self) -> str:
        from .formats.wkt import format_wkt
        return format_wkt(self._exportable())

    def export_to_pretty_wkt(self, simplify: bool = False, indent: Optional[int] = None) -> str:
        from .formats.wkt import format_pretty_wkt
        if indent is None:
            indent = config.settings.wkt_indent
        return format_pretty_wkt(self._exportable(), indent=indent, simplify=simplify)

    def export_to_proj4(self) -> str:
        from .formats.proj4 import format_proj4
        return format_proj4(self._exportable())

    def export_to_esri(self) -> str:
        from .formats.esri import format_esri
        return format_esri(self._exportable())

    def export_to_usgs(self) -> Tuple[int, int, np.ndarray, int]:
        from .formats.usgs import format_usgs
        return format_usgs(self._exportable())

    def export_to_pci(self) -> Tuple[str, str, np.ndarray]:
        from .formats.pci import format_pci
        return format_pci(self._exportable())

    def export_to_xml(self) -> str:
        from .formats.xml import format_xml
        return format_xml(self._exportable())

    def export_to_mi_coord_sys(self) -> str:
        from .formats.mapinfo import format_mapinfo
        return format_mapinfo(self._exportable())

    def export_to_erm(self) -> Tuple[str, str, str]:
        from .formats.erm import format_erm
        return format_erm(self._exportable())

    def morph_to_esri(self) -> None:
        from .formats.esri import morph_to_esri
        morph_to_esri(self._require_root())

    def morph_from_esri(self) -> None:
        from .formats.esri import morph_from_esri
        morph_from_esri(self._require_root())

    def __repr__(self) -> str:
        if self._released:
            return "<SpatialReference released>"
        if self._root is None:
            return "<SpatialReference empty>"
        return f"<SpatialReference {self._root.kind} {self._root.name!r}>"

    def __str__(self) -> str:
        if self._root is None:
            return ""
        return self.export_to_pretty_wkt()


def cleanup() -> None:
    """Release process-wide caches (authority table lookups)."""
    authority.cleanup()
    logger.debug("Cleared authority caches")
