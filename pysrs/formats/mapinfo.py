"""
MapInfo ``CoordSys`` clause export.

The clause is lossy: names, authorities and axis order are dropped and only
the projection, datum, unit and parameter values survive. There is no
importer.
"""

import logging
from typing import Dict, List, Tuple

from .. import constants as C
from ..catalog import canonical_method_name
from ..exceptions import ExportError, UnsupportedCRSError
from ..tree.node import SRSNode, format_number
from ..units import DEGREE_TO_RADIANS, LINEAR, default_registry

logger = logging.getLogger(__name__)

CUSTOM_DATUM = 999

_DATUMS = {"wgs1984": 104, "northamericandatum1983": 74, "northamericandatum1927": 62}

# MapInfo ellipsoid numbers for custom datums
_ELLIPSOIDS = {
    "WGS84": 28,
    "GRS80": 0,
    "clrk66": 7,
    "clrk80": 8,
    "intl": 4,
    "bessel": 10,
    "airy": 13,
    "krass": 3,
    "WGS72": 27,
    "aust_SA": 2,
}

_UNITS = {
    "m": "m",
    "km": "km",
    "cm": "cm",
    "mm": "mm",
    "ft": "ft",
    "us-ft": "survey ft",
    "yd": "yd",
    "mi": "mi",
    "kmi": "nmi",
    "ch": "ch",
    "link": "li",
}

LON, LAT = "lon", "lat"
SP1, SP2 = C.PP_STANDARD_PARALLEL_1, C.PP_STANDARD_PARALLEL_2
K, FE, FN = C.PP_SCALE_FACTOR, C.PP_FALSE_EASTING, C.PP_FALSE_NORTHING
AZ = C.PP_AZIMUTH

# method -> (MapInfo projection number, parameter layout)
_PROJECTIONS: Dict[str, Tuple[int, Tuple[str, ...]]] = {
    C.PT_CYLINDRICAL_EQUAL_AREA: (2, (LON, SP1)),
    C.PT_LAMBERT_CONFORMAL_CONIC_2SP: (3, (LON, LAT, SP1, SP2, FE, FN)),
    C.PT_EQUIDISTANT_CONIC: (6, (LON, LAT, SP1, SP2, FE, FN)),
    C.PT_HOTINE_OBLIQUE_MERCATOR: (7, (LON, LAT, AZ, K, FE, FN)),
    C.PT_TRANSVERSE_MERCATOR: (8, (LON, LAT, K, FE, FN)),
    C.PT_ALBERS_CONIC_EQUAL_AREA: (9, (LON, LAT, SP1, SP2, FE, FN)),
    C.PT_MERCATOR_1SP: (10, (LON,)),
    C.PT_MILLER_CYLINDRICAL: (11, (LON,)),
    C.PT_ROBINSON: (12, (LON,)),
    C.PT_MOLLWEIDE: (13, (LON,)),
    C.PT_ECKERT_IV: (14, (LON,)),
    C.PT_ECKERT_VI: (15, (LON,)),
    C.PT_SINUSOIDAL: (16, (LON,)),
    C.PT_GALL_STEREOGRAPHIC: (17, (LON,)),
    C.PT_NEW_ZEALAND_MAP_GRID: (18, (LON, LAT, FE, FN)),
    C.PT_LAMBERT_CONFORMAL_CONIC_2SP_BELGIUM: (19, (LON, LAT, SP1, SP2, FE, FN)),
    C.PT_STEREOGRAPHIC: (20, (LON, LAT, K, FE, FN)),
    C.PT_POLYCONIC: (27, (LON, LAT, FE, FN)),
    C.PT_AZIMUTHAL_EQUIDISTANT: (28, (LON, LAT)),
    C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA: (29, (LON, LAT)),
    C.PT_CASSINI_SOLDNER: (30, (LON, LAT, FE, FN)),
}

_LONGITUDES = (C.PP_CENTRAL_MERIDIAN, C.PP_LONGITUDE_OF_CENTER, C.PP_LONGITUDE_OF_ORIGIN)
_LATITUDES = (C.PP_LATITUDE_OF_ORIGIN, C.PP_LATITUDE_OF_CENTER)


def _units(srs) -> str:
    name, factor = srs.linear_units()
    unit = default_registry.find_by_factor(factor, LINEAR)
    if unit is None or unit.proj4 not in _UNITS:
        raise UnsupportedCRSError(f"MapInfo has no unit for '{name}'")
    return _UNITS[unit.proj4]


def _datum(srs, geog: SRSNode) -> str:
    from ..core import normalize_datum_name

    datum = geog.get_node("DATUM")
    key = normalize_datum_name(datum.name if datum is not None else "")
    if key in _DATUMS:
        return str(_DATUMS[key])
    ellipsoid = C.find_ellipsoid(srs.semi_major_axis(), srs.inverse_flattening())
    if ellipsoid is None or ellipsoid.proj4 not in _ELLIPSOIDS:
        raise UnsupportedCRSError(f"MapInfo has no ellipsoid number for datum '{datum.name}'")
    shift = srs.towgs84() or (0.0, 0.0, 0.0)
    values = [str(CUSTOM_DATUM), str(_ELLIPSOIDS[ellipsoid.proj4])]
    values.extend(format_number(v) for v in shift[:3])
    return ", ".join(values)


def _degrees(srs, names: Tuple[str, ...]) -> float:
    for name in names:
        value, found = srs.find_projection_parameter(name)
        if found:
            degrees = srs.normalized_projection_parameter(name) / DEGREE_TO_RADIANS
            return float(f"{degrees:.12f}")
    return 0.0


def format_mapinfo(node: SRSNode) -> str:
    """
    MapInfo ``CoordSys`` clause for a tree, without the leading ``CoordSys``
    keyword, e.g. ``Earth Projection 8, 104, "m", 15, 0, 0.9996, 500000, 0``.
    """
    from ..core import SpatialReference

    srs = SpatialReference.from_node(node)
    if srs.is_local():
        return f'NonEarth Units "{_units(srs)}"'
    geog = node.get_node("GEOGCS")
    if geog is None:
        raise ExportError(f"A {node.kind} cannot be expressed as a MapInfo CoordSys")
    datum = _datum(srs, geog)
    if not srs.is_projected():
        return f"Earth Projection 1, {datum}"

    method = canonical_method_name(srs.projection_method() or "")
    if method not in _PROJECTIONS:
        raise UnsupportedCRSError(f"Projection method '{method}' has no MapInfo equivalent")
    number, layout = _PROJECTIONS[method]
    values: List[str] = []
    for item in layout:
        if item == LON:
            value = _degrees(srs, _LONGITUDES)
        elif item == LAT:
            value = _degrees(srs, _LATITUDES)
        elif item in (SP1, SP2, AZ):
            value = _degrees(srs, (item,))
        elif item == K:
            value = srs.projection_parameter(K, 1.0)
        else:
            value = srs.projection_parameter(item, 0.0)
        values.append(format_number(value))
    clause = f'Earth Projection {number}, {datum}, "{_units(srs)}", ' + ", ".join(values)
    logger.debug("Exported %s as MapInfo projection %d", method, number)
    return clause
