"""
ESRI .prj support.

ESRI WKT differs from OGC WKT 1 mostly in names: ``GCS_`` and ``D_``
prefixes, underscores instead of spaces, different method names and Title
Case parameters. ``morph_to_esri`` and ``morph_from_esri`` rewrite a tree in
place between the two dialects. Older ``.prj`` files use a keyword/value
layout (``Projection UTM``, ``Zone 33``, ``Parameters`` ...) that is handled by
its own small parser.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .. import catalog
from .. import constants as C
from ..exceptions import ParseError, UnsupportedCRSError
from ..tree.node import SRSNode, make_node
from ..units import US_FOOT_TO_METERS, default_registry
from ..validation import strip_ct_params
from .wkt import format_wkt, parse_wkt

logger = logging.getLogger(__name__)

# Canonical method -> ESRI method
_METHOD_TO_ESRI: Dict[str, str] = {
    C.PT_ALBERS_CONIC_EQUAL_AREA: "Albers",
    C.PT_CASSINI_SOLDNER: "Cassini",
    C.PT_EQUIRECTANGULAR: "Equidistant_Cylindrical",
    C.PT_HOTINE_OBLIQUE_MERCATOR: "Hotine_Oblique_Mercator_Azimuth_Natural_Origin",
    C.PT_LAMBERT_CONFORMAL_CONIC_1SP: "Lambert_Conformal_Conic",
    C.PT_LAMBERT_CONFORMAL_CONIC_2SP: "Lambert_Conformal_Conic",
    C.PT_MERCATOR_1SP: "Mercator",
    C.PT_MERCATOR_2SP: "Mercator",
    C.PT_OBLIQUE_STEREOGRAPHIC: "Double_Stereographic",
    C.PT_VANDERGRINTEN: "Van_der_Grinten_I",
}

# Methods whose centre is written as Central_Meridian / Latitude_Of_Origin in ESRI
_CENTER_RENAMES: Dict[str, Tuple[Tuple[str, str], ...]] = {
    C.PT_ALBERS_CONIC_EQUAL_AREA: ((C.PP_LONGITUDE_OF_CENTER, C.PP_CENTRAL_MERIDIAN),
                                   (C.PP_LATITUDE_OF_CENTER, C.PP_LATITUDE_OF_ORIGIN)),
    C.PT_EQUIDISTANT_CONIC: ((C.PP_LONGITUDE_OF_CENTER, C.PP_CENTRAL_MERIDIAN),
                             (C.PP_LATITUDE_OF_CENTER, C.PP_LATITUDE_OF_ORIGIN)),
    C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA: ((C.PP_LONGITUDE_OF_CENTER, C.PP_CENTRAL_MERIDIAN),
                                        (C.PP_LATITUDE_OF_CENTER, C.PP_LATITUDE_OF_ORIGIN)),
    C.PT_AZIMUTHAL_EQUIDISTANT: ((C.PP_LONGITUDE_OF_CENTER, C.PP_CENTRAL_MERIDIAN),
                                 (C.PP_LATITUDE_OF_CENTER, C.PP_LATITUDE_OF_ORIGIN)),
    C.PT_MILLER_CYLINDRICAL: ((C.PP_LONGITUDE_OF_CENTER, C.PP_CENTRAL_MERIDIAN),
                              (C.PP_LATITUDE_OF_CENTER, C.PP_LATITUDE_OF_ORIGIN)),
    C.PT_ROBINSON: ((C.PP_LONGITUDE_OF_CENTER, C.PP_CENTRAL_MERIDIAN),),
    C.PT_SINUSOIDAL: ((C.PP_LONGITUDE_OF_CENTER, C.PP_CENTRAL_MERIDIAN),),
}

_GEOGCS_TO_ESRI = {
    "WGS 84": "GCS_WGS_1984",
    "WGS 72": "GCS_WGS_1972",
    "NAD83": "GCS_North_American_1983",
    "NAD27": "GCS_North_American_1927",
}
_GEOGCS_FROM_ESRI = {v.lower(): k for k, v in _GEOGCS_TO_ESRI.items()}

_DATUM_TO_ESRI = {
    C.DN_WGS84: "D_WGS_1984",
    C.DN_WGS72: "D_WGS_1972",
    C.DN_NAD83: "D_North_American_1983",
    C.DN_NAD27: "D_North_American_1927",
}
_DATUM_FROM_ESRI = {v.lower(): k for k, v in _DATUM_TO_ESRI.items()}

_SPHEROID_TO_ESRI = {
    "WGS 84": "WGS_1984",
    "WGS 72": "WGS_1972",
    "GRS 1980": "GRS_1980",
    "Clarke 1866": "Clarke_1866",
    "International 1924": "International_1924",
}
_SPHEROID_FROM_ESRI = {v.lower(): k for k, v in _SPHEROID_TO_ESRI.items()}

_UNIT_TO_ESRI = {
    "degree": "Degree",
    "radian": "Radian",
    "metre": "Meter",
    "foot": "Foot",
    "US survey foot": "Foot_US",
    "kilometre": "Kilometer",
}


def _esri_name(name: str) -> str:
    """Replace every run of non-alphanumeric characters by one underscore."""
    cleaned = re.sub(r"[^0-9A-Za-z]+", "_", name)
    return cleaned.strip("_") or name


def _title_case(name: str) -> str:
    return "_".join(part[:1].upper() + part[1:] for part in name.split("_"))


def _rename_parameter(projcs: SRSNode, old: str, new: str) -> None:
    for parm in projcs.find_children("PARAMETER"):
        if (parm.name or "").lower() == old.lower():
            parm.set_child_value(0, new)


def _has_parameter(projcs: SRSNode, name: str) -> bool:
    return any((p.name or "").lower() == name.lower() for p in projcs.find_children("PARAMETER"))


def _parameter_value(projcs: SRSNode, name: str) -> Optional[float]:
    for parm in projcs.find_children("PARAMETER"):
        if (parm.name or "").lower() == name.lower():
            return parm.child_float(1)
    return None


def _canonical_method(projcs: SRSNode) -> Optional[str]:
    """Canonical method of a PROJCS written in either dialect."""
    projection = projcs.find_children("PROJECTION")
    if not projection or not projection[0].name:
        return None
    name = projection[0].name
    lowered = name.lower()
    if lowered == "lambert_conformal_conic":
        if _has_parameter(projcs, C.PP_STANDARD_PARALLEL_2):
            return C.PT_LAMBERT_CONFORMAL_CONIC_2SP
        return C.PT_LAMBERT_CONFORMAL_CONIC_1SP
    if lowered == "mercator":
        if (_parameter_value(projcs, C.PP_STANDARD_PARALLEL_1) or 0.0) != 0.0:
            return C.PT_MERCATOR_2SP
        return C.PT_MERCATOR_1SP
    if lowered in ("stereographic_north_pole", "stereographic_south_pole"):
        return C.PT_POLAR_STEREOGRAPHIC
    return catalog.canonical_method_name(name)


def _remove_parameter(projcs: SRSNode, name: str) -> None:
    for parm in projcs.find_children("PARAMETER"):
        if (parm.name or "").lower() == name.lower():
            parm.detach()


def _morph_projcs_to_esri(projcs: SRSNode) -> None:
    method = _canonical_method(projcs)
    if method is None:
        return
    projection = projcs.find_children("PROJECTION")[0]
    esri_method = _METHOD_TO_ESRI.get(method, method)
    for old, new in _CENTER_RENAMES.get(method, ()):
        _rename_parameter(projcs, old, new)
    if method == C.PT_LAMBERT_CONFORMAL_CONIC_1SP:
        origin = _parameter_value(projcs, C.PP_LATITUDE_OF_ORIGIN)
        if origin is not None and not _has_parameter(projcs, C.PP_STANDARD_PARALLEL_1):
            projcs.insert_child(projcs.children.index(projection) + 1,
                                make_node("PARAMETER", C.PP_STANDARD_PARALLEL_1, float(origin)))
    elif method == C.PT_POLAR_STEREOGRAPHIC:
        latitude = _parameter_value(projcs, C.PP_LATITUDE_OF_ORIGIN)
        if latitude is None:
            latitude = _parameter_value(projcs, C.PP_STANDARD_PARALLEL_1) or 0.0
        esri_method = ("Stereographic_South_Pole" if latitude < 0
                       else "Stereographic_North_Pole")
        _rename_parameter(projcs, C.PP_LATITUDE_OF_ORIGIN, C.PP_STANDARD_PARALLEL_1)
    projection.set_child_value(0, esri_method)
    for parm in projcs.find_children("PARAMETER"):
        if parm.name:
            parm.set_child_value(0, _title_case(parm.name))
    if projcs.name:
        projcs.set_child_value(0, _esri_projcs_name(projcs.name))


def _esri_projcs_name(name: str) -> str:
    utm = re.match(r"^WGS 84 / UTM zone (\d+)([NS])$", name)
    if utm:
        return f"WGS_1984_UTM_Zone_{utm.group(1)}{utm.group(2)}"
    return _esri_name(name)


def _morph_names_to_esri(node: SRSNode) -> None:
    for child in node.walk():
        kind = child.kind
        if child.is_opaque or not child.child_count or not child.name:
            continue
        name = child.name
        if kind == "GEOGCS":
            if not name.startswith("GCS_"):
                child.set_child_value(0, _GEOGCS_TO_ESRI.get(name, "GCS_" + _esri_name(name)))
        elif kind == "DATUM":
            if not name.upper().startswith("D_"):
                child.set_child_value(0, _DATUM_TO_ESRI.get(name, "D_" + _esri_name(name)))
        elif kind == "SPHEROID":
            child.set_child_value(0, _SPHEROID_TO_ESRI.get(name, _esri_name(name)))
        elif kind == "UNIT":
            canonical = default_registry.canonical_name(name)
            child.set_child_value(0, _UNIT_TO_ESRI.get(canonical, _esri_name(name)))


def morph_to_esri(node: SRSNode) -> SRSNode:
    """
    Rewrite a tree into ESRI's WKT dialect, in place.

    AUTHORITY, TOWGS84, AXIS, EXTENSION and opaque nodes are removed. Applying
    the morph twice gives the same tree as applying it once.
    """
    if node.kind == "COMPD_CS":
        raise UnsupportedCRSError("ESRI WKT has no compound systems")
    strip_ct_params(node)
    for projcs in [n for n in node.walk() if n.kind == "PROJCS" and n.child_count]:
        _morph_projcs_to_esri(projcs)
    _morph_names_to_esri(node)
    return node


def _morph_projcs_from_esri(projcs: SRSNode) -> None:
    method = _canonical_method(projcs)
    if method is None:
        return
    for parm in projcs.find_children("PARAMETER"):
        if parm.name:
            parm.set_child_value(0, parm.name.lower())
    for old, new in _CENTER_RENAMES.get(method, ()):
        _rename_parameter(projcs, new, old)
    if method == C.PT_LAMBERT_CONFORMAL_CONIC_1SP:
        _remove_parameter(projcs, C.PP_STANDARD_PARALLEL_1)
    elif method == C.PT_LAMBERT_CONFORMAL_CONIC_2SP:
        scale = _parameter_value(projcs, C.PP_SCALE_FACTOR)
        if scale is not None and scale == 1.0:
            _remove_parameter(projcs, C.PP_SCALE_FACTOR)
    elif method == C.PT_POLAR_STEREOGRAPHIC:
        _rename_parameter(projcs, C.PP_STANDARD_PARALLEL_1, C.PP_LATITUDE_OF_ORIGIN)
    projcs.find_children("PROJECTION")[0].set_child_value(0, method)


def morph_from_esri(node: SRSNode) -> SRSNode:
    """Rewrite a tree from ESRI's WKT dialect to OGC WKT 1, in place."""
    for projcs in [n for n in node.walk() if n.kind == "PROJCS" and n.child_count]:
        _morph_projcs_from_esri(projcs)
    for child in node.walk():
        if child.is_opaque or not child.child_count or not child.name:
            continue
        name = child.name
        kind = child.kind
        if kind == "GEOGCS":
            if name.lower() in _GEOGCS_FROM_ESRI:
                child.set_child_value(0, _GEOGCS_FROM_ESRI[name.lower()])
            elif name.startswith("GCS_"):
                child.set_child_value(0, name[4:])
        elif kind == "DATUM":
            if name.lower() in _DATUM_FROM_ESRI:
                child.set_child_value(0, _DATUM_FROM_ESRI[name.lower()])
            elif name.upper().startswith("D_"):
                child.set_child_value(0, name[2:])
        elif kind == "SPHEROID":
            child.set_child_value(0, _SPHEROID_FROM_ESRI.get(name.lower(), name))
        elif kind == "UNIT":
            child.set_child_value(0, default_registry.canonical_name(name))
    return node


def format_esri(node: SRSNode) -> str:
    """ESRI WKT for a tree; the tree itself is left untouched."""
    return format_wkt(morph_to_esri(node.clone()))


# Legacy keyword .prj files ---------------------------------------------------

_LEGACY_DATUMS = {"NAD27": "NAD27", "NAD83": "NAD83", "WGS84": "WGS84", "WGS72": "WGS72"}
_LEGACY_SPHEROIDS = {
    "CLARKE1866": "clrk66",
    "GRS80": "GRS80",
    "GRS1980": "GRS80",
    "WGS84": "WGS84",
    "WGS72": "WGS72",
    "INT1909": "intl",
    "INTERNATIONAL1909": "intl",
    "CLARKE1880": "clrk80",
    "BESSEL": "bessel",
    "AIRY": "airy",
}


def _legacy_value(text: str, line: int) -> float:
    """Parse ``"DD MM SS.S"`` or a plain number from a parameter line."""
    fields = text.split("/*")[0].split()
    try:
        if len(fields) == 3:
            degrees, minutes, seconds = fields
            sign = -1.0 if degrees.strip().startswith("-") else 1.0
            return sign * (abs(float(degrees)) + float(minutes) / 60.0 + float(seconds) / 3600.0)
        if len(fields) == 1:
            return float(fields[0])
    except ValueError as exc:
        raise ParseError(f"Malformed parameter on line {line}: '{text.strip()}'") from exc
    raise ParseError(f"Malformed parameter on line {line}: '{text.strip()}'")


def _parse_legacy(lines: Sequence[str]) -> Tuple[Dict[str, str], List[float]]:
    keywords: Dict[str, str] = {}
    values: List[float] = []
    in_parameters = False
    for number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped:
            continue
        if in_parameters:
            if "/*" in stripped and not stripped.split("/*")[0].strip():
                continue
            values.append(_legacy_value(stripped, number))
            continue
        key, _, value = stripped.partition(" ")
        if key.upper() == "PARAMETERS":
            in_parameters = True
            continue
        keywords[key.upper()] = value.strip()
    if "PROJECTION" not in keywords:
        raise ParseError("ESRI .prj has no Projection line")
    return keywords, values


def _legacy_geog(srs, keywords: Dict[str, str]) -> None:
    datum = keywords.get("DATUM", "").upper().replace(" ", "")
    spheroid = keywords.get("SPHEROID", "").upper().replace(" ", "")
    if datum in _LEGACY_DATUMS:
        srs.set_well_known_geog_cs(_LEGACY_DATUMS[datum])
    elif spheroid in _LEGACY_SPHEROIDS:
        ellipsoid = C.ellipsoid_by_proj4(_LEGACY_SPHEROIDS[spheroid])
        srs.set_geog_cs("unknown", "unknown", ellipsoid.name, ellipsoid.semi_major,
                        ellipsoid.inv_flattening)
    else:
        if datum or spheroid:
            logger.debug("Unknown legacy datum %r / spheroid %r; assuming WGS84", datum, spheroid)
        srs.set_well_known_geog_cs("WGS84")


def _need(values: List[float], count: int, projection: str) -> List[float]:
    if len(values) < count:
        raise ParseError(f"{projection} needs {count} parameters, got {len(values)}")
    return values[:count]


def import_legacy_prj(lines: Sequence[str]) -> SRSNode:
    """Build a tree from a keyword-style ESRI .prj file."""
    from ..core import SpatialReference

    keywords, values = _parse_legacy(lines)
    projection = keywords["PROJECTION"].upper()
    srs = SpatialReference()
    _legacy_geog(srs, keywords)
    units = keywords.get("UNITS", "METERS").upper()
    if projection == "GEOGRAPHIC":
        return srs._take_root()
    nad83 = keywords.get("DATUM", "NAD83").upper() != "NAD27"
    if projection == "STATEPLANE":
        zone = keywords.get("FIPSZONE") or keywords.get("ZONE")
        if not zone:
            raise ParseError("STATEPLANE .prj needs a Zone or FIPSZone line")
        srs.set_state_plane(int(zone), nad83)
    elif projection == "UTM":
        zone = keywords.get("ZONE")
        if not zone:
            raise ParseError("UTM .prj needs a Zone line")
        zone_number = int(zone)
        # A negative zone or a negative latitude parameter means the southern hemisphere
        north = zone_number > 0 and not (values and values[0] < 0)
        srs.set_utm(abs(zone_number), north)
    elif projection in ("ALBERS", "LAMBERT", "EQUIDISTANT_CONIC"):
        sp1, sp2, cm, lat, fe, fn = _need(values, 6, projection)
        setter = {"ALBERS": srs.set_acea, "LAMBERT": srs.set_lcc,
                  "EQUIDISTANT_CONIC": srs.set_ec}[projection]
        setter(sp1, sp2, lat, cm, fe, fn)
    elif projection == "TRANSVERSE":
        scale, cm, lat, fe, fn = _need(values, 5, projection)
        srs.set_tm(lat, cm, scale, fe, fn)
    elif projection == "POLAR":
        cm, lat, fe, fn = _need(values, 4, projection)
        srs.set_ps(lat, cm, 1.0, fe, fn)
    else:
        raise UnsupportedCRSError(f"Legacy .prj projection '{projection}' is not supported")
    if units == "FEET":
        srs.set_linear_units_and_update_parameters("US survey foot", US_FOOT_TO_METERS)
    elif units in ("METERS", "METRES"):
        if srs.linear_units()[1] != 1.0:
            srs.set_linear_units_and_update_parameters("metre", 1.0)
    else:
        unit = default_registry.lookup(units)
        if unit is None:
            raise UnsupportedCRSError(f"Unknown legacy .prj units '{units}'")
        srs.set_linear_units_and_update_parameters(unit.name, unit.factor)
    return srs._take_root()


def parse_esri(prj: Union[str, Sequence[str]]) -> SRSNode:
    """
    Parse an ESRI .prj definition.

    Parameters
    ----------
    prj : str or sequence of str
        Whole file content or its lines

    Returns
    -------
    SRSNode
        The definition in OGC WKT 1 naming
    """
    if isinstance(prj, str):
        text = prj
    else:
        text = "\n".join(prj)
    if not text.strip():
        raise ParseError("Empty ESRI .prj definition")
    if re.match(r"^\s*[A-Za-z_]+\s*[\[(]", text):
        node = morph_from_esri(parse_wkt(text))
        logger.debug("Imported ESRI WKT %s", node.name)
        return node
    node = import_legacy_prj(text.splitlines())
    logger.debug("Imported legacy ESRI .prj %s", node.name)
    return node
