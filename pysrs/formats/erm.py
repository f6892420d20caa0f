"""
ERMapper projection, datum and units triples.

ERMapper names systems with short keys: ``GEODETIC`` for geographic systems,
``NUTMzz``/``SUTMzz`` for UTM zones and ``RAW`` for ungeoreferenced data.
Anything else is accepted as ``EPSG:n``.
"""

import logging
import re
from typing import Tuple

from .. import authority
from ..exceptions import ParseError, UnsupportedCRSError
from ..tree.node import SRSNode
from ..units import INTL_FOOT_TO_METERS, US_FOOT_TO_METERS
from .wkt import parse_wkt

logger = logging.getLogger(__name__)

_DATUMS = ("WGS84", "WGS72", "NAD83", "NAD27")
_UTM = re.compile(r"^([NS])UTM(\d{1,2})$")


def _geog(srs, datum: str) -> None:
    key = datum.strip().upper()
    if key in _DATUMS:
        srs.set_well_known_geog_cs(key)
    elif key.startswith("EPSG:") and key[5:].isdigit():
        srs.set_well_known_geog_cs(key)
    else:
        raise UnsupportedCRSError(f"ERMapper datum '{datum}' is not supported")


def parse_erm(proj: str, datum: str, units: str) -> SRSNode:
    """
    Build a tree from an ERMapper ``(projection, datum, units)`` triple.

    ``RAW`` gives an empty LOCAL_CS; units are ``METERS``, ``FEET`` (US
    survey foot) or ``IFEET`` (international foot).
    """
    from ..core import SpatialReference

    if not proj:
        raise ParseError("Empty ERMapper projection")
    key = proj.strip().upper()
    srs = SpatialReference()
    if key == "RAW":
        srs.set_local_cs("RAW")
        return srs._take_root()

    match = _UTM.match(key)
    if key == "GEODETIC":
        _geog(srs, datum)
        return srs._take_root()
    if match:
        _geog(srs, datum)
        srs.set_utm(int(match.group(2)), match.group(1) == "N")
    elif key.startswith("EPSG:") and key[5:].isdigit():
        srs._install(parse_wkt(authority.epsg_wkt(int(key[5:]))))
        srs._root.strip_nodes("AXIS")
    else:
        raise UnsupportedCRSError(f"ERMapper projection '{proj}' is not supported")

    unit_key = (units or "METERS").strip().upper()
    if unit_key == "FEET":
        srs.set_linear_units_and_update_parameters("US survey foot", US_FOOT_TO_METERS)
    elif unit_key == "IFEET":
        srs.set_linear_units_and_update_parameters("foot", INTL_FOOT_TO_METERS)
    elif unit_key not in ("METERS", "METRES"):
        raise UnsupportedCRSError(f"ERMapper units '{units}' are not supported")
    logger.debug("Imported ERMapper %s/%s", proj, datum)
    return srs._take_root()


def _datum_key(srs) -> str:
    from ..core import normalize_datum_name

    geog = srs._geogcs()
    datum = geog.get_node("DATUM")
    key = normalize_datum_name(datum.name if datum is not None else "")
    for name in _DATUMS:
        if normalize_datum_name(name) == key:
            return name
    code = srs.authority_code("GEOGCS")
    if code and (srs.authority_name("GEOGCS") or "").upper() == "EPSG":
        return f"EPSG:{code}"
    raise UnsupportedCRSError(f"Datum '{datum.name if datum is not None else ''}' "
                              "has no ERMapper name")


def format_erm(node: SRSNode) -> Tuple[str, str, str]:
    """ERMapper ``(projection, datum, units)`` triple for a tree."""
    from ..core import SpatialReference

    srs = SpatialReference.from_node(node)
    if srs.is_local():
        return "RAW", "RAW", "METERS"
    if srs._geogcs() is None:
        raise UnsupportedCRSError(f"A {node.kind} has no ERMapper equivalent")
    datum = _datum_key(srs)
    if not srs.is_projected():
        return "GEODETIC", datum, "METERS"

    factor = srs.linear_units()[1]
    if abs(factor - US_FOOT_TO_METERS) < 1e-12:
        units = "FEET"
    elif abs(factor - INTL_FOOT_TO_METERS) < 1e-12:
        units = "IFEET"
    elif factor == 1.0:
        units = "METERS"
    else:
        raise UnsupportedCRSError(f"ERMapper has no units for factor {factor}")

    zone, north = srs.utm_zone()
    if zone:
        return f"{'N' if north else 'S'}UTM{zone:02d}", datum, units
    code = srs.authority_code("PROJCS")
    if code and (srs.authority_name("PROJCS") or "").upper() == "EPSG":
        return f"EPSG:{code}", datum, units
    raise UnsupportedCRSError("Projected system has no ERMapper name or EPSG code")
