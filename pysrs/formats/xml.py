"""
GML coordinate reference system documents and URL fetching.

Only ``GeographicCRS`` and ``ProjectedCRS`` documents are supported. Projection
methods and parameters are identified by EPSG codes in ``xlink:href`` URNs;
parameter values are written in degrees and metres and the projected unit is
carried by the ``uom`` of the Cartesian axes.
"""

import logging
import math
import xml.etree.ElementTree as ET
from typing import Callable, Dict, Optional, Tuple

import requests

from .. import config
from .. import constants as C
from ..exceptions import ParseError, UnsupportedCRSError
from ..tree.node import SRSNode, format_number
from ..units import ANGULAR, DEGREE_TO_RADIANS, LINEAR, default_registry

logger = logging.getLogger(__name__)

GML_NS = "http://www.opengis.net/gml"
XLINK_NS = "http://www.w3.org/1999/xlink"

METHOD_URN = "urn:ogc:def:method:EPSG::"
PARAMETER_URN = "urn:ogc:def:parameter:EPSG::"
UOM_URN = "urn:ogc:def:uom:EPSG::"
CRS_URN = "urn:ogc:def:crs:EPSG::"

UOM_METRE = 9001
UOM_DEGREE = 9102
UOM_UNITY = 9201

METHOD_CODES: Dict[str, int] = {
    C.PT_TRANSVERSE_MERCATOR: 9807,
    C.PT_TRANSVERSE_MERCATOR_SOUTH_ORIENTED: 9808,
    C.PT_LAMBERT_CONFORMAL_CONIC_1SP: 9801,
    C.PT_LAMBERT_CONFORMAL_CONIC_2SP: 9802,
    C.PT_LAMBERT_CONFORMAL_CONIC_2SP_BELGIUM: 9803,
    C.PT_MERCATOR_1SP: 9804,
    C.PT_MERCATOR_2SP: 9805,
    C.PT_CASSINI_SOLDNER: 9806,
    C.PT_OBLIQUE_STEREOGRAPHIC: 9809,
    C.PT_POLAR_STEREOGRAPHIC: 9810,
    C.PT_NEW_ZEALAND_MAP_GRID: 9811,
    C.PT_HOTINE_OBLIQUE_MERCATOR: 9812,
    C.PT_HOTINE_OBLIQUE_MERCATOR_AZIMUTH_CENTER: 9815,
    C.PT_TUNISIA_MINING_GRID: 9816,
    C.PT_POLYCONIC: 9818,
    C.PT_KROVAK: 9819,
    C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA: 9820,
    C.PT_ALBERS_CONIC_EQUAL_AREA: 9822,
    C.PT_EQUIRECTANGULAR: 1028,
}
_CODE_METHODS = {code: method for method, code in METHOD_CODES.items()}

PARAMETER_CODES: Dict[str, int] = {
    C.PP_LATITUDE_OF_ORIGIN: 8801,
    C.PP_CENTRAL_MERIDIAN: 8802,
    C.PP_SCALE_FACTOR: 8805,
    C.PP_FALSE_EASTING: 8806,
    C.PP_FALSE_NORTHING: 8807,
    C.PP_LATITUDE_OF_CENTER: 8811,
    C.PP_LONGITUDE_OF_CENTER: 8812,
    C.PP_AZIMUTH: 8813,
    C.PP_RECTIFIED_GRID_ANGLE: 8814,
    C.PP_STANDARD_PARALLEL_1: 8823,
    C.PP_STANDARD_PARALLEL_2: 8824,
    C.PP_PSEUDO_STD_PARALLEL_1: 8818,
}

# Methods whose origin is a false origin rather than a natural origin
_FALSE_ORIGIN_CODES = {
    C.PP_LATITUDE_OF_ORIGIN: 8821,
    C.PP_LATITUDE_OF_CENTER: 8821,
    C.PP_CENTRAL_MERIDIAN: 8822,
    C.PP_LONGITUDE_OF_CENTER: 8822,
    C.PP_FALSE_EASTING: 8826,
    C.PP_FALSE_NORTHING: 8827,
}
_FALSE_ORIGIN_METHODS = {
    C.PT_LAMBERT_CONFORMAL_CONIC_2SP: (C.PP_LATITUDE_OF_ORIGIN, C.PP_CENTRAL_MERIDIAN),
    C.PT_LAMBERT_CONFORMAL_CONIC_2SP_BELGIUM: (C.PP_LATITUDE_OF_ORIGIN, C.PP_CENTRAL_MERIDIAN),
    C.PT_ALBERS_CONIC_EQUAL_AREA: (C.PP_LATITUDE_OF_CENTER, C.PP_LONGITUDE_OF_CENTER),
}


def _parameter_code(method: str, parameter: str) -> Optional[int]:
    origin = _FALSE_ORIGIN_METHODS.get(method)
    if origin is not None and parameter in _FALSE_ORIGIN_CODES:
        if parameter in origin or parameter in (C.PP_FALSE_EASTING, C.PP_FALSE_NORTHING):
            return _FALSE_ORIGIN_CODES[parameter]
    return PARAMETER_CODES.get(parameter)


def _parameter_name(method: str, code: int) -> Optional[str]:
    origin = _FALSE_ORIGIN_METHODS.get(method)
    if origin is not None:
        false_origin = {8821: origin[0], 8822: origin[1],
                        8826: C.PP_FALSE_EASTING, 8827: C.PP_FALSE_NORTHING}
        if code in false_origin:
            return false_origin[code]
    for name, value in PARAMETER_CODES.items():
        if value == code:
            return name
    return None


def _gml(tag: str) -> str:
    return f"{{{GML_NS}}}{tag}"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _find(element: ET.Element, *path: str) -> Optional[ET.Element]:
    """Descend through children by local name, ignoring namespaces."""
    current = element
    for name in path:
        found = None
        for child in current:
            if _local(child.tag) == name:
                found = child
                break
        if found is None:
            return None
        current = found
    return current


def _text(element: ET.Element, *path: str, default: Optional[str] = None) -> Optional[str]:
    found = _find(element, *path)
    if found is None or found.text is None:
        return default
    return found.text.strip()


def _number(element: ET.Element, *path: str, default: Optional[float] = None) -> float:
    text = _text(element, *path)
    if text is None:
        if default is None:
            raise ParseError(f"GML element {'/'.join(path)} is missing")
        return default
    try:
        return float(text)
    except ValueError as exc:
        raise ParseError(f"GML element {'/'.join(path)} is not a number: {text!r}") from exc


def _urn_code(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    tail = value.rstrip("/").rsplit(":", 1)[-1].rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None


def _href(element: Optional[ET.Element]) -> Optional[str]:
    if element is None:
        return None
    return element.get(f"{{{XLINK_NS}}}href") or element.get("href")


def _uom_factor(element: Optional[ET.Element], kind: str) -> Tuple[str, float]:
    """Unit name and SI factor for an element's ``uom`` attribute."""
    default = ("degree", DEGREE_TO_RADIANS) if kind == ANGULAR else ("metre", 1.0)
    if element is None:
        return default
    code = _urn_code(element.get("uom") or element.get(_gml("uom")))
    if code is None or code == UOM_DEGREE:
        return default
    for unit in default_registry:
        if unit.epsg == code and unit.kind == kind:
            return unit.name, unit.factor
    raise UnsupportedCRSError(f"Unit of measure EPSG:{code} is not supported")


def _srs_authority(element: ET.Element) -> Optional[int]:
    name = _find(element, "srsID", "name")
    if name is None:
        return None
    space = name.get(_gml("codeSpace")) or name.get("codeSpace") or ""
    if "EPSG" not in space.upper():
        return None
    text = (name.text or "").strip()
    return int(text) if text.isdigit() else None


def _parse_geographic(element: ET.Element, srs) -> None:
    datum = _find(element, "usesGeodeticDatum", "GeodeticDatum")
    if datum is None:
        raise ParseError("GeographicCRS has no GeodeticDatum")
    ellipsoid = _find(datum, "usesEllipsoid", "Ellipsoid")
    if ellipsoid is None:
        raise ParseError("GeodeticDatum has no Ellipsoid")
    semi_major = _number(ellipsoid, "semiMajorAxis")
    inv_flattening = _number(ellipsoid, "secondDefiningParameter", "inverseFlattening",
                             default=0.0)
    if inv_flattening == 0.0 and \
            _find(ellipsoid, "secondDefiningParameter", "semiMinorAxis") is not None:
        semi_minor = _number(ellipsoid, "secondDefiningParameter", "semiMinorAxis")
        if semi_minor != semi_major:
            inv_flattening = semi_major / (semi_major - semi_minor)
    meridian = _find(datum, "usesPrimeMeridian", "PrimeMeridian")
    pm_name, pm_offset = "Greenwich", 0.0
    if meridian is not None:
        pm_name = _text(meridian, "meridianName", default=pm_name)
        pm_offset = _number(meridian, "greenwichLongitude", "angle", default=0.0)
    srs.set_geog_cs(
        _text(element, "srsName"),
        _text(datum, "datumName"),
        _text(ellipsoid, "ellipsoidName"),
        semi_major,
        inv_flattening,
        pm_name,
        pm_offset,
    )
    code = _srs_authority(element)
    if code is not None:
        srs.set_authority("GEOGCS", "EPSG", code)


def _parse_projected(element: ET.Element, srs) -> None:
    base = _find(element, "baseCRS", "GeographicCRS")
    if base is None:
        raise ParseError("ProjectedCRS has no baseCRS/GeographicCRS")
    _parse_geographic(base, srs)
    conversion = _find(element, "definedByConversion", "Conversion")
    if conversion is None:
        raise ParseError("ProjectedCRS has no Conversion")
    method_code = _urn_code(_href(_find(conversion, "usesMethod")))
    method = _CODE_METHODS.get(method_code)
    if method is None:
        raise UnsupportedCRSError(f"Projection method EPSG:{method_code} is not supported")
    srs.set_projected_cs(_text(element, "srsName") or "unnamed")
    srs.set_projection(method)
    for child in conversion:
        if _local(child.tag) != "usesValue":
            continue
        value = _find(child, "value")
        code = _urn_code(_href(_find(child, "valueOfParameter")))
        if value is None or code is None:
            raise ParseError("usesValue needs a value and a valueOfParameter")
        name = _parameter_name(method, code)
        if name is None:
            logger.warning("Skipping unknown projection parameter EPSG:%s", code)
            continue
        number = float((value.text or "").strip() or 0.0)
        if name in (C.PP_SCALE_FACTOR,):
            srs.set_projection_parameter(name, number)
        else:
            kind = ANGULAR if name not in (C.PP_FALSE_EASTING, C.PP_FALSE_NORTHING) else LINEAR
            _, factor = _uom_factor(value, kind)
            if kind == ANGULAR:
                factor = factor / DEGREE_TO_RADIANS
            srs._set_natural_parameter(name, number * factor)
    axis = _find(element, "usesCartesianCS", "CartesianCS", "usesAxis", "CoordinateSystemAxis")
    unit_name, factor = _uom_factor(axis, LINEAR)
    srs.set_linear_units_and_update_parameters(unit_name, factor)
    code = _srs_authority(element)
    if code is not None:
        srs.set_authority("PROJCS", "EPSG", code)


def parse_xml(text: str) -> SRSNode:
    """
    Build a tree from a GML ``GeographicCRS`` or ``ProjectedCRS`` document.

    Raises
    ------
    ParseError
        If the document is not well-formed or lacks required elements
    UnsupportedCRSError
        For other CRS kinds or unknown EPSG method codes
    """
    from ..core import SpatialReference

    try:
        element = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ParseError(f"Malformed GML: {exc}") from exc
    srs = SpatialReference()
    kind = _local(element.tag)
    if kind == "GeographicCRS":
        _parse_geographic(element, srs)
    elif kind == "ProjectedCRS":
        _parse_projected(element, srs)
    else:
        raise UnsupportedCRSError(f"GML element '{kind}' is not a supported CRS")
    logger.debug("Imported GML %s", kind)
    return srs._take_root()


def _sub(parent: ET.Element, tag: str, text: Optional[str] = None, **attrib) -> ET.Element:
    element = ET.SubElement(parent, _gml(tag), attrib)
    if text is not None:
        element.text = text
    return element


def _add_srs_id(element: ET.Element, node: SRSNode) -> None:
    index = node.find_child("AUTHORITY")
    authority = node.get_child(index) if index >= 0 else None
    if authority is not None and (authority.child_value(0) or "").upper() == "EPSG":
        srs_id = _sub(element, "srsID")
        _sub(srs_id, "name", authority.child_value(1), **{_gml("codeSpace"): CRS_URN})


def _uom(code: int) -> Dict[str, str]:
    return {"uom": f"{UOM_URN}{code}"}


def _geographic_element(parent: ET.Element, geog: SRSNode) -> ET.Element:
    element = _sub(parent, "GeographicCRS", **{_gml("id"): "pysrs-geographic"})
    _sub(element, "srsName", geog.name or "unnamed")
    _add_srs_id(element, geog)
    datum = geog.get_node("DATUM")
    spheroid = geog.get_node("SPHEROID")
    primem = geog.get_node("PRIMEM")
    if datum is None or spheroid is None:
        raise UnsupportedCRSError("GEOGCS needs a DATUM and SPHEROID for GML output")
    geodetic = _sub(_sub(element, "usesGeodeticDatum"), "GeodeticDatum")
    _sub(geodetic, "datumName", datum.name or "unknown")
    meridian = _sub(_sub(geodetic, "usesPrimeMeridian"), "PrimeMeridian")
    _sub(meridian, "meridianName", primem.name if primem is not None else "Greenwich")
    offset = primem.child_float(1, 0.0) if primem is not None else 0.0
    _sub(_sub(meridian, "greenwichLongitude"), "angle", format_number(offset), **_uom(UOM_DEGREE))
    ellipsoid = _sub(_sub(geodetic, "usesEllipsoid"), "Ellipsoid")
    _sub(ellipsoid, "ellipsoidName", spheroid.name or "unnamed")
    _sub(ellipsoid, "semiMajorAxis", format_number(spheroid.child_float(1)), **_uom(UOM_METRE))
    _sub(_sub(ellipsoid, "secondDefiningParameter"), "inverseFlattening",
         format_number(spheroid.child_float(2, 0.0)), **_uom(UOM_UNITY))
    return element


def format_xml(node: SRSNode) -> str:
    """GML document for a GEOGCS or PROJCS tree."""
    from ..catalog import canonical_method_name
    from ..core import SpatialReference

    ET.register_namespace("gml", GML_NS)
    ET.register_namespace("xlink", XLINK_NS)
    srs = SpatialReference.from_node(node)
    if node.kind == "GEOGCS":
        holder = ET.Element("holder")
        element = _geographic_element(holder, node)
        element.attrib.pop(_gml("id"), None)
        return ET.tostring(element, encoding="unicode")
    if node.kind != "PROJCS":
        raise UnsupportedCRSError(f"A {node.kind} cannot be written as GML")

    method = canonical_method_name(srs.projection_method() or "")
    method_code = METHOD_CODES.get(method)
    if method_code is None:
        raise UnsupportedCRSError(f"Projection method '{method}' has no EPSG method code")
    element = ET.Element(_gml("ProjectedCRS"))
    _sub(element, "srsName", node.name or "unnamed")
    _add_srs_id(element, node)
    _geographic_element(_sub(element, "baseCRS"), node.get_node("GEOGCS"))
    conversion = _sub(_sub(element, "definedByConversion"), "Conversion")
    _sub(conversion, "usesMethod", **{f"{{{XLINK_NS}}}href": f"{METHOD_URN}{method_code}"})
    for parm in node.find_children("PARAMETER"):
        name = (parm.name or "").lower()
        code = _parameter_code(method, name)
        if code is None:
            raise UnsupportedCRSError(f"Parameter '{parm.name}' has no EPSG code")
        if name == C.PP_SCALE_FACTOR:
            value, uom = srs.projection_parameter(name), UOM_UNITY
        elif name in (C.PP_FALSE_EASTING, C.PP_FALSE_NORTHING):
            value, uom = srs.normalized_projection_parameter(name), UOM_METRE
        else:
            value = srs.normalized_projection_parameter(name) / DEGREE_TO_RADIANS
            value, uom = float(f"{value:.12f}"), UOM_DEGREE
        uses = _sub(conversion, "usesValue")
        _sub(uses, "value", format_number(value), **_uom(uom))
        _sub(uses, "valueOfParameter", **{f"{{{XLINK_NS}}}href": f"{PARAMETER_URN}{code}"})

    unit_name, factor = srs.linear_units()
    unit = default_registry.lookup(unit_name)
    if unit is None or unit.epsg is None or not math.isclose(unit.factor, factor, rel_tol=1e-9):
        unit = default_registry.find_by_factor(factor, LINEAR)
    if unit is None or unit.epsg is None:
        raise UnsupportedCRSError(f"Linear unit '{unit_name}' has no EPSG code")
    cartesian = _sub(_sub(element, "usesCartesianCS"), "CartesianCS")
    _sub(cartesian, "csName", "Cartesian")
    for axis_name, abbrev, direction in (("Easting", "E", "east"), ("Northing", "N", "north")):
        axis = _sub(_sub(cartesian, "usesAxis"), "CoordinateSystemAxis", **_uom(unit.epsg))
        _sub(axis, "name", axis_name)
        _sub(axis, "axisAbbrev", abbrev)
        _sub(axis, "axisDirection", direction)
    logger.debug("Exported %s as GML", node.kind)
    return ET.tostring(element, encoding="unicode")


def fetch_definition(url: str, fetcher: Optional[Callable[[str], str]] = None) -> str:
    """
    Retrieve a definition document from ``url``.

    Parameters
    ----------
    url : str
        Location of the definition
    fetcher : callable, optional
        ``fetcher(url) -> str``; the default performs an HTTP GET with
        requests, bounded by ``config.settings.fetch_timeout``

    Raises
    ------
    ParseError
        If the fetch fails or returns an empty document
    """
    if not url:
        raise ParseError("Empty URL")
    try:
        if fetcher is not None:
            text = fetcher(url)
        else:
            response = requests.get(url, timeout=config.settings.fetch_timeout)
            response.raise_for_status()
            text = response.text
    except requests.RequestException as exc:
        raise ParseError(f"Could not fetch {url}: {exc}") from exc
    except (OSError, ValueError) as exc:
        raise ParseError(f"Could not fetch {url}: {exc}") from exc
    if not text or not text.strip():
        raise ParseError(f"Empty definition returned from {url}")
    logger.debug("Fetched %d characters from %s", len(text), url)
    return text
