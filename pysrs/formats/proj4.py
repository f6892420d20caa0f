"""
PROJ.4 string import and export.

Keys the importer does not understand are kept in an
``EXTENSION["PROJ4_EXTRA", "..."]`` node and appended again on export, so a
string survives a round trip even when it carries options PySRS never
interprets. Projections PySRS has no method for are stored whole in an
``EXTENSION["PROJ4", "..."]`` node, which the exporter emits verbatim.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from .. import authority
from .. import constants as C
from ..exceptions import ExportError, ParseError, UnsupportedCRSError
from ..tree.node import SRSNode, format_number, make_node
from ..units import DEGREE_TO_RADIANS, default_registry
from ..validation import insert_ordered

logger = logging.getLogger(__name__)

EXTRA_EXTENSION = "PROJ4_EXTRA"
VERBATIM_EXTENSION = "PROJ4"
CUSTOM_METHOD = "custom_proj4"

# Prime meridians PROJ knows by name, in degrees east of Greenwich
PRIME_MERIDIANS: Dict[str, float] = {
    "greenwich": 0.0,
    "lisbon": -9.131906111111,
    "paris": 2.337229166667,
    "bogota": -74.080916666667,
    "madrid": -3.687938888889,
    "rome": 12.452333333333,
    "bern": 7.439583333333,
    "jakarta": 106.807719444444,
    "ferro": -17.666666666667,
    "brussels": 4.367975,
    "stockholm": 18.058277777778,
    "athens": 23.7163375,
    "oslo": 10.722916666667,
}

_HANDLED_KEYS = frozenset((
    "proj", "datum", "ellps", "a", "b", "rf", "f", "R", "towgs84", "pm",
    "lat_0", "lon_0", "lat_1", "lat_2", "lat_ts", "lon_1", "lon_2", "lonc",
    "k", "k_0", "x_0", "y_0", "alpha", "gamma", "h", "zone", "south",
    "units", "to_meter", "no_defs", "wktext", "type",
))

_DATUM_KEYS = {
    "wgs1984": "WGS84",
    "northamericandatum1983": "NAD83",
    "northamericandatum1927": "NAD27",
}


def _tokenize(text: str) -> List[Tuple[str, Optional[str]]]:
    tokens = []
    for raw in text.split():
        token = raw.lstrip("+")
        if not token:
            continue
        key, sep, value = token.partition("=")
        tokens.append((key, value if sep else None))
    return tokens


def _float(params: Dict[str, Optional[str]], key: str, default: float = 0.0) -> float:
    value = params.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ParseError(f"PROJ.4 parameter +{key} is not numeric: '{value}'") from exc


def _build_geog(srs, params: Dict[str, Optional[str]]) -> None:
    datum = (params.get("datum") or "").upper()
    if datum in C.PROJ4_DATUMS:
        srs.set_well_known_geog_cs(C.PROJ4_DATUMS[datum])
    else:
        if datum:
            logger.debug("Unknown PROJ.4 datum %s; using its ellipsoid only", datum)
        ellps = params.get("ellps")
        if ellps:
            ellipsoid = C.ellipsoid_by_proj4(ellps)
            if ellipsoid is None:
                raise UnsupportedCRSError(f"Unknown PROJ.4 ellipsoid '{ellps}'")
            name, a, rf = ellipsoid.name, ellipsoid.semi_major, ellipsoid.inv_flattening
        elif "a" in params or "R" in params:
            a = _float(params, "a") if "a" in params else _float(params, "R")
            if "rf" in params:
                rf = _float(params, "rf")
            elif "f" in params:
                f = _float(params, "f")
                rf = 1.0 / f if f else 0.0
            elif "b" in params:
                b = _float(params, "b")
                rf = a / (a - b) if a != b else 0.0
            else:
                rf = 0.0
            name = "unnamed"
        else:
            name, a, rf = "WGS 84", C.WGS84_SEMI_MAJOR, C.WGS84_INV_FLATTENING
        pm_name, pm_offset = "Greenwich", 0.0
        pm = params.get("pm")
        if pm:
            if pm.lower() in PRIME_MERIDIANS:
                pm_name, pm_offset = pm.capitalize(), PRIME_MERIDIANS[pm.lower()]
            else:
                pm_name, pm_offset = "unnamed", _float(params, "pm")
        srs.set_geog_cs("unknown", "unknown", name, a, rf, pm_name, pm_offset)
    towgs84 = params.get("towgs84")
    if towgs84:
        try:
            values = [float(v) for v in towgs84.split(",")]
        except ValueError as exc:
            raise ParseError(f"Malformed +towgs84 value '{towgs84}'") from exc
        if len(values) not in (3, 7):
            raise ParseError("+towgs84 needs 3 or 7 values")
        srs.set_towgs84(*values)


def _set_units(srs, params: Dict[str, Optional[str]]) -> None:
    if "to_meter" in params:
        factor = _float(params, "to_meter")
        known = default_registry.find_by_factor(factor, "linear")
        srs.set_linear_units(known.name if known else "unknown", factor)
        return
    code = params.get("units") or "m"
    unit = default_registry.from_proj4_units(code)
    if unit is None:
        raise UnsupportedCRSError(f"Unknown PROJ.4 units '{code}'")
    srs.set_linear_units(unit.name, unit.factor)


def _build_projection(srs, proj: str, params: Dict[str, Optional[str]], text: str) -> None:
    g = lambda key, default=0.0: _float(params, key, default)  # noqa: E731
    lat_0, lon_0 = g("lat_0"), g("lon_0")
    x_0, y_0 = g("x_0"), g("y_0")
    k = g("k", g("k_0", 1.0))
    if proj == "utm":
        if "zone" not in params:
            raise ParseError("+proj=utm needs +zone")
        srs.set_utm(int(g("zone")), north="south" not in params)
    elif proj == "tmerc":
        if (params.get("axis") or "").lower() == "wsu":
            srs.set_tmso(lat_0, lon_0, k, x_0, y_0)
        else:
            srs.set_tm(lat_0, lon_0, k, x_0, y_0)
    elif proj == "merc":
        if "lat_ts" in params:
            srs.set_mercator_2sp(g("lat_ts"), 0.0, lon_0, x_0, y_0)
        else:
            srs.set_mercator(lat_0, lon_0, k, x_0, y_0)
    elif proj == "lcc":
        lat_1 = g("lat_1", lat_0)
        if "lat_2" in params or lat_1 != lat_0:
            srs.set_lcc(lat_1, g("lat_2", lat_1), lat_0, lon_0, x_0, y_0)
        else:
            srs.set_lcc_1sp(lat_0, lon_0, k, x_0, y_0)
    elif proj == "aea":
        srs.set_acea(g("lat_1"), g("lat_2"), lat_0, lon_0, x_0, y_0)
    elif proj == "aeqd":
        srs.set_ae(lat_0, lon_0, x_0, y_0)
    elif proj == "cass":
        srs.set_cs(lat_0, lon_0, x_0, y_0)
    elif proj == "cea":
        srs.set_cea(g("lat_ts"), lon_0, x_0, y_0)
    elif proj == "bonne":
        srs.set_bonne(g("lat_1"), lon_0, x_0, y_0)
    elif re.fullmatch(r"eck[1-6]", proj):
        srs.set_eckert(int(proj[-1]), lon_0, x_0, y_0)
    elif proj == "eqdc":
        srs.set_ec(g("lat_1"), g("lat_2"), lat_0, lon_0, x_0, y_0)
    elif proj == "eqc":
        if "lat_ts" in params:
            srs.set_equirectangular_generalized(lat_0, lon_0, g("lat_ts"), x_0, y_0)
        else:
            srs.set_equirectangular(lat_0, lon_0, x_0, y_0)
    elif proj == "gall":
        srs.set_gs(lon_0, x_0, y_0)
    elif proj == "goode":
        srs.set_gh(lon_0, x_0, y_0)
    elif proj == "igh":
        srs.set_igh()
    elif proj == "geos":
        srs.set_geos(lon_0, g("h"), x_0, y_0)
    elif proj == "gstmerc":
        srs.set_gstm(lat_0, lon_0, k, x_0, y_0)
    elif proj == "gnom":
        srs.set_gnomonic(lat_0, lon_0, x_0, y_0)
    elif proj == "omerc":
        if "lat_1" in params and "lat_2" in params:
            srs.set_hom_2pno(lat_0, g("lat_1"), g("lon_1"), g("lat_2"), g("lon_2"), k, x_0, y_0)
        else:
            alpha = g("alpha")
            srs.set_hom(lat_0, g("lonc", lon_0), alpha, g("gamma", alpha), k, x_0, y_0)
    elif proj == "imw_p":
        srs.set_iwm_polyconic(g("lat_1"), g("lat_2"), lon_0, x_0, y_0)
    elif proj == "krovak":
        srs.set_krovak(lat_0, lon_0, g("alpha", 30.28813972222222), g("lat_ts", 78.5), k,
                       x_0, y_0)
    elif proj == "laea":
        srs.set_laea(lat_0, lon_0, x_0, y_0)
    elif proj == "mill":
        srs.set_mc(lat_0, lon_0, x_0, y_0)
    elif proj == "moll":
        srs.set_mollweide(lon_0, x_0, y_0)
    elif proj == "nzmg":
        srs.set_nzmg(lat_0, lon_0, x_0, y_0)
    elif proj == "sterea":
        srs.set_os(lat_0, lon_0, k, x_0, y_0)
    elif proj == "ortho":
        srs.set_orthographic(lat_0, lon_0, x_0, y_0)
    elif proj == "poly":
        srs.set_polyconic(lat_0, lon_0, x_0, y_0)
    elif proj == "stere":
        if abs(abs(lat_0) - 90.0) < 1e-9:
            srs.set_ps(g("lat_ts", lat_0), lon_0, k, x_0, y_0)
        else:
            srs.set_stereographic(lat_0, lon_0, k, x_0, y_0)
    elif proj == "robin":
        srs.set_robinson(lon_0, x_0, y_0)
    elif proj == "sinu":
        srs.set_sinusoidal(lon_0, x_0, y_0)
    elif proj == "somerc":
        srs.set_soc(lat_0, lon_0, x_0, y_0)
    elif proj == "vandg":
        srs.set_vdg(lon_0, x_0, y_0)
    else:
        logger.debug("No projection method for +proj=%s; keeping the string verbatim", proj)
        srs.set_projection(CUSTOM_METHOD)
        insert_ordered(srs.root, make_node("EXTENSION", VERBATIM_EXTENSION, text.strip()))


def parse_proj4(text: str) -> SRSNode:
    """
    Parse a PROJ.4 definition string into a CRS tree.

    Raises
    ------
    ParseError
        If the string has no ``+proj`` or a value is malformed
    UnsupportedCRSError
        For unknown ellipsoids or units
    """
    from ..core import SpatialReference
    from .wkt import parse_wkt

    if not isinstance(text, str) or not text.strip():
        raise ParseError("Empty PROJ.4 string")
    tokens = _tokenize(text)
    params: Dict[str, Optional[str]] = {}
    extras: List[str] = []
    for key, value in tokens:
        if key in params:
            continue
        params[key] = value
        if key not in _HANDLED_KEYS and not (key == "axis" and params.get("proj") == "tmerc") \
                and key != "init":
            extras.append(f"+{key}" if value is None else f"+{key}={value}")

    init = params.get("init")
    if init and init.lower().startswith("epsg:"):
        node = parse_wkt(authority.epsg_wkt(int(init[5:])))
        node.strip_nodes("AXIS")
        return node
    proj = params.get("proj")
    if not proj:
        raise ParseError("PROJ.4 string has no +proj")

    srs = SpatialReference()
    _build_geog(srs, params)
    if proj in ("longlat", "latlong", "lonlat", "latlon"):
        pass
    elif proj == "geocent":
        srs.set_geocentric_cs("Geocentric")
        _set_units(srs, params)
    else:
        srs.set_projected_cs("unnamed")
        _set_units(srs, params)
        _build_projection(srs, proj, params, text)
    if extras:
        insert_ordered(srs.root, make_node("EXTENSION", EXTRA_EXTENSION, " ".join(extras)))
        logger.debug("Kept unrecognised PROJ.4 keys: %s", extras)
    return srs._take_root()


def _fmt(value: float) -> str:
    return format_number(float(f"{value:.15g}"))


def _extension(node: SRSNode, name: str) -> Optional[str]:
    for child in node.find_children("EXTENSION"):
        if (child.name or "").upper() == name:
            return child.child_value(1)
    return None


def _datum_part(geog: SRSNode) -> List[str]:
    from ..core import normalize_datum_name

    parts = []
    datum = geog.get_node("DATUM")
    spheroid = geog.get_node("SPHEROID")
    if datum is None or spheroid is None:
        raise ExportError("PROJ.4 export needs a DATUM with a SPHEROID")
    towgs84 = None
    shifts = datum.find_children("TOWGS84")
    if shifts:
        towgs84 = [float(c.value) for c in shifts[0].children]
    key = normalize_datum_name(datum.name)
    a = spheroid.child_float(1)
    rf = spheroid.child_float(2, 0.0)
    well_known = _DATUM_KEYS.get(key)
    if well_known is not None:
        expected = C.ellipsoid_by_proj4("clrk66" if well_known == "NAD27" else
                                        "GRS80" if well_known == "NAD83" else "WGS84")
        if abs(expected.semi_major - a) > 0.01 or abs(expected.inv_flattening - rf) > 1e-6:
            well_known = None
    if well_known is not None:
        parts.append(f"+datum={well_known}")
    else:
        ellipsoid = C.find_ellipsoid(a, rf)
        if ellipsoid is not None and ellipsoid.proj4:
            parts.append(f"+ellps={ellipsoid.proj4}")
        elif rf == 0:
            parts.extend((f"+a={_fmt(a)}", f"+b={_fmt(a)}"))
        else:
            parts.extend((f"+a={_fmt(a)}", f"+rf={_fmt(rf)}"))
        if towgs84 is not None:
            if len(towgs84) == 7 and not any(towgs84[3:]):
                towgs84 = towgs84[:3]
            parts.append("+towgs84=" + ",".join(_fmt(v) for v in towgs84))
    primem = geog.find_children("PRIMEM")
    if primem:
        offset = primem[0].child_float(1, 0.0)
        if offset:
            name = (primem[0].name or "").lower()
            parts.append(f"+pm={name}" if name in PRIME_MERIDIANS else f"+pm={_fmt(offset)}")
    return parts


def _units_part(factor: float) -> str:
    code = default_registry.proj4_units(factor)
    if code is not None:
        return f"+units={code}"
    return f"+to_meter={_fmt(factor)}"


def _projection_part(srs) -> List[str]:
    method = srs.projection_method() or ""
    from ..catalog import canonical_method_name
    method = canonical_method_name(method)
    to_degrees = 1.0 / DEGREE_TO_RADIANS

    def deg(name: str, default: float = 0.0) -> str:
        value = srs.normalized_projection_parameter(name, default * DEGREE_TO_RADIANS)
        return _fmt(value * to_degrees)

    def lin(name: str, default: float = 0.0) -> str:
        return _fmt(srs.normalized_projection_parameter(name, default))

    def raw(name: str, default: float = 1.0) -> str:
        return _fmt(srs.projection_parameter(name, default))

    fe_fn = [f"+x_0={lin(C.PP_FALSE_EASTING)}", f"+y_0={lin(C.PP_FALSE_NORTHING)}"]
    origin = [f"+lat_0={deg(C.PP_LATITUDE_OF_ORIGIN)}", f"+lon_0={deg(C.PP_CENTRAL_MERIDIAN)}"]
    center = [f"+lat_0={deg(C.PP_LATITUDE_OF_CENTER)}", f"+lon_0={deg(C.PP_LONGITUDE_OF_CENTER)}"]
    scale = [f"+k={raw(C.PP_SCALE_FACTOR)}"]
    parallels = [f"+lat_1={deg(C.PP_STANDARD_PARALLEL_1)}",
                 f"+lat_2={deg(C.PP_STANDARD_PARALLEL_2)}"]
    cm = [f"+lon_0={deg(C.PP_CENTRAL_MERIDIAN)}"]

    if method == C.PT_TRANSVERSE_MERCATOR:
        zone, north = srs.utm_zone()
        if zone:
            return ["+proj=utm", f"+zone={zone}"] + ([] if north else ["+south"])
        return ["+proj=tmerc"] + origin + scale + fe_fn
    table = {
        C.PT_TRANSVERSE_MERCATOR_SOUTH_ORIENTED:
            lambda: ["+proj=tmerc"] + origin + scale + fe_fn + ["+axis=wsu"],
        C.PT_GAUSSSCHREIBERTMERCATOR: lambda: ["+proj=gstmerc"] + origin + scale + fe_fn,
        C.PT_MERCATOR_1SP: lambda: ["+proj=merc"] + cm + scale + fe_fn,
        C.PT_MERCATOR_2SP: lambda: ["+proj=merc", f"+lat_ts={deg(C.PP_STANDARD_PARALLEL_1)}"]
            + cm + fe_fn,
        C.PT_LAMBERT_CONFORMAL_CONIC_2SP: lambda: ["+proj=lcc"] + parallels + origin + fe_fn,
        C.PT_LAMBERT_CONFORMAL_CONIC_1SP:
            lambda: ["+proj=lcc", f"+lat_1={deg(C.PP_LATITUDE_OF_ORIGIN)}"] + origin + scale
            + fe_fn,
        C.PT_ALBERS_CONIC_EQUAL_AREA: lambda: ["+proj=aea"] + parallels + center + fe_fn,
        C.PT_EQUIDISTANT_CONIC: lambda: ["+proj=eqdc"] + parallels + center + fe_fn,
        C.PT_AZIMUTHAL_EQUIDISTANT: lambda: ["+proj=aeqd"] + center + fe_fn,
        C.PT_CASSINI_SOLDNER: lambda: ["+proj=cass"] + origin + fe_fn,
        C.PT_CYLINDRICAL_EQUAL_AREA:
            lambda: ["+proj=cea", f"+lat_ts={deg(C.PP_STANDARD_PARALLEL_1)}"] + cm + fe_fn,
        C.PT_BONNE: lambda: ["+proj=bonne", f"+lat_1={deg(C.PP_STANDARD_PARALLEL_1)}"] + cm
            + fe_fn,
        C.PT_EQUIRECTANGULAR:
            lambda: ["+proj=eqc", f"+lat_ts={deg(C.PP_STANDARD_PARALLEL_1)}"] + origin + fe_fn,
        C.PT_GALL_STEREOGRAPHIC: lambda: ["+proj=gall"] + cm + fe_fn,
        C.PT_GOODE_HOMOLOSINE: lambda: ["+proj=goode"] + cm + fe_fn,
        C.PT_IGH: lambda: ["+proj=igh"],
        C.PT_GEOSTATIONARY_SATELLITE:
            lambda: ["+proj=geos"] + cm + [f"+h={lin(C.PP_SATELLITE_HEIGHT)}"] + fe_fn,
        C.PT_GNOMONIC: lambda: ["+proj=gnom"] + origin + fe_fn,
        C.PT_HOTINE_OBLIQUE_MERCATOR: lambda: [
            "+proj=omerc", f"+lat_0={deg(C.PP_LATITUDE_OF_CENTER)}",
            f"+lonc={deg(C.PP_LONGITUDE_OF_CENTER)}", f"+alpha={deg(C.PP_AZIMUTH)}",
            f"+gamma={deg(C.PP_RECTIFIED_GRID_ANGLE)}"] + scale + fe_fn,
        C.PT_HOTINE_OBLIQUE_MERCATOR_TWO_POINT_NATURAL_ORIGIN: lambda: [
            "+proj=omerc", f"+lat_0={deg(C.PP_LATITUDE_OF_CENTER)}",
            f"+lat_1={deg(C.PP_LATITUDE_OF_POINT_1)}", f"+lon_1={deg(C.PP_LONGITUDE_OF_POINT_1)}",
            f"+lat_2={deg(C.PP_LATITUDE_OF_POINT_2)}", f"+lon_2={deg(C.PP_LONGITUDE_OF_POINT_2)}",
        ] + scale + fe_fn,
        C.PT_IMW_POLYCONIC: lambda: [
            "+proj=imw_p", f"+lat_1={deg(C.PP_LATITUDE_OF_1ST_POINT)}",
            f"+lat_2={deg(C.PP_LATITUDE_OF_2ND_POINT)}"] + cm + fe_fn,
        C.PT_KROVAK: lambda: ["+proj=krovak"] + center + [
            f"+alpha={deg(C.PP_AZIMUTH)}", f"+lat_ts={deg(C.PP_PSEUDO_STD_PARALLEL_1)}"]
            + scale + fe_fn,
        C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA: lambda: ["+proj=laea"] + center + fe_fn,
        C.PT_MILLER_CYLINDRICAL: lambda: ["+proj=mill"] + center + fe_fn,
        C.PT_MOLLWEIDE: lambda: ["+proj=moll"] + cm + fe_fn,
        C.PT_NEW_ZEALAND_MAP_GRID: lambda: ["+proj=nzmg"] + origin + fe_fn,
        C.PT_OBLIQUE_STEREOGRAPHIC: lambda: ["+proj=sterea"] + origin + scale + fe_fn,
        C.PT_ORTHOGRAPHIC: lambda: ["+proj=ortho"] + origin + fe_fn,
        C.PT_POLYCONIC: lambda: ["+proj=poly"] + origin + fe_fn,
        C.PT_POLAR_STEREOGRAPHIC: lambda: [
            "+proj=stere",
            "+lat_0=" + ("-90" if float(deg(C.PP_LATITUDE_OF_ORIGIN)) < 0 else "90"),
            f"+lat_ts={deg(C.PP_LATITUDE_OF_ORIGIN)}", f"+lon_0={deg(C.PP_CENTRAL_MERIDIAN)}",
        ] + scale + fe_fn,
        C.PT_STEREOGRAPHIC: lambda: ["+proj=stere"] + origin + scale + fe_fn,
        C.PT_ROBINSON: lambda: ["+proj=robin", f"+lon_0={deg(C.PP_LONGITUDE_OF_CENTER)}"]
            + fe_fn,
        C.PT_SINUSOIDAL: lambda: ["+proj=sinu", f"+lon_0={deg(C.PP_LONGITUDE_OF_CENTER)}"]
            + fe_fn,
        C.PT_SWISS_OBLIQUE_CYLINDRICAL: lambda: ["+proj=somerc"] + center + fe_fn,
        C.PT_VANDERGRINTEN: lambda: ["+proj=vandg"] + cm + fe_fn,
    }
    if method in (C.PT_ECKERT_I, C.PT_ECKERT_II, C.PT_ECKERT_III, C.PT_ECKERT_IV,
                  C.PT_ECKERT_V, C.PT_ECKERT_VI):
        number = ("I", "II", "III", "IV", "V", "VI").index(method.split("_")[1]) + 1
        return [f"+proj=eck{number}"] + cm + fe_fn
    builder = table.get(method)
    if builder is None:
        raise UnsupportedCRSError(f"Projection method '{method}' has no PROJ.4 equivalent")
    return builder()


def format_proj4(node: SRSNode) -> str:
    """
    PROJ.4 definition of a CRS tree.

    Raises
    ------
    ExportError
        For empty trees and systems without a datum (local, vertical)
    UnsupportedCRSError
        For projection methods PROJ.4 cannot express
    """
    from ..core import SpatialReference

    if node is None:
        raise ExportError("Cannot export an empty spatial reference")
    horizontal = node
    if node.kind == "COMPD_CS":
        horizontal = next((c for c in node.children if c.kind in ("GEOGCS", "PROJCS")), None)
        if horizontal is None:
            raise ExportError("Compound system has no horizontal part")
    verbatim = _extension(horizontal, VERBATIM_EXTENSION)
    if verbatim is not None:
        return verbatim
    kind = horizontal.kind
    if kind not in ("GEOGCS", "PROJCS", "GEOCCS"):
        raise ExportError(f"A {kind} cannot be expressed in PROJ.4")
    srs = SpatialReference.from_node(horizontal)
    if kind == "GEOGCS":
        parts = ["+proj=longlat"] + _datum_part(horizontal)
    elif kind == "GEOCCS":
        parts = ["+proj=geocent"] + _datum_part(horizontal) + [_units_part(srs.linear_units()[1])]
    else:
        geog = horizontal.get_node("GEOGCS")
        if geog is None:
            raise ExportError("PROJCS has no GEOGCS")
        parts = _projection_part(srs) + _datum_part(geog) + \
            [_units_part(srs.linear_units()[1])]
    extra = _extension(horizontal, EXTRA_EXTENSION)
    if extra:
        parts.append(extra)
    parts.append("+no_defs")
    text = " ".join(parts)
    logger.debug("Exported PROJ.4 string %s", text)
    return text
