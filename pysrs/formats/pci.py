"""
PCI projection strings.

A PCI definition is a 16-character projection string, a units string and 17
parameters. The projection string carries the projection name in its first
columns and an optional datum (``Dnnn``) or ellipsoid (``Ennn``) code in its
last four.

Parameter layout
----------------
====  =====================================
0     semi-major axis
1     semi-minor axis
2     reference longitude
3     reference latitude
4     first standard parallel
5     second standard parallel
6     false easting
7     false northing
8     scale factor
9     height
10    longitude of the first point
11    latitude of the first point
12    longitude of the second point
13    latitude of the second point
14    azimuth
15    Landsat number
16    Landsat path
====  =====================================
"""

import logging
from typing import Optional, Tuple

import numpy as np

from .. import constants as C
from ..exceptions import UnsupportedCRSError
from ..tree.node import SRSNode
from ..units import INTL_FOOT_TO_METERS, US_FOOT_TO_METERS, DEGREE_TO_RADIANS
from .usgs import GCTP_SPHEROIDS, check_parameters, set_geog_from_spheroid_code, spheroid_code

logger = logging.getLogger(__name__)

PCI_PARAMETER_COUNT = 17
PROJ_STRING_LENGTH = 16

# Datum codes with a fixed meaning
_PCI_DATUMS = {"D000": "WGS84", "D-01": "NAD27", "D-02": "NAD83"}
_DATUM_CODES = {"WGS84": "D000", "NAD27": "D-01", "NAD83": "D-02"}
_GCTP_DATUMS = {12: "WGS84", 0: "NAD27", 8: "NAD83"}

_PCI_TO_METHOD = {
    "ACEA": C.PT_ALBERS_CONIC_EQUAL_AREA,
    "AE": C.PT_AZIMUTHAL_EQUIDISTANT,
    "CASS": C.PT_CASSINI_SOLDNER,
    "EC": C.PT_EQUIDISTANT_CONIC,
    "ER": C.PT_EQUIRECTANGULAR,
    "GNO": C.PT_GNOMONIC,
    "LAEA": C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA,
    "LCC": C.PT_LAMBERT_CONFORMAL_CONIC_2SP,
    "LCC_1SP": C.PT_LAMBERT_CONFORMAL_CONIC_1SP,
    "MC": C.PT_MILLER_CYLINDRICAL,
    "MER": C.PT_MERCATOR_1SP,
    "OG": C.PT_ORTHOGRAPHIC,
    "OM": C.PT_HOTINE_OBLIQUE_MERCATOR,
    "PC": C.PT_POLYCONIC,
    "PS": C.PT_POLAR_STEREOGRAPHIC,
    "ROB": C.PT_ROBINSON,
    "SG": C.PT_STEREOGRAPHIC,
    "SIN": C.PT_SINUSOIDAL,
    "TM": C.PT_TRANSVERSE_MERCATOR,
    "VDG": C.PT_VANDERGRINTEN,
}
_METHOD_TO_PCI = {method: name for name, method in _PCI_TO_METHOD.items()}
_METHOD_TO_PCI[C.PT_HOTINE_OBLIQUE_MERCATOR_TWO_POINT_NATURAL_ORIGIN] = "OM"


def _split(proj: str) -> Tuple[str, str]:
    """Projection name and the trailing datum/ellipsoid code."""
    text = (proj or "").upper()
    code = text[12:16].strip() if len(text) > 12 else ""
    if not code:
        for token in text.split()[1:]:
            if token[:1] in ("D", "E") and len(token) == 4:
                code = token
    name = text.split()[0] if text.split() else ""
    return name, code


def _apply_datum(srs, code: str, params: np.ndarray) -> None:
    if code in _PCI_DATUMS:
        srs.set_well_known_geog_cs(_PCI_DATUMS[code])
        return
    spheroid = None
    if code[:1] == "E":
        try:
            spheroid = int(code[1:])
        except ValueError:
            logger.warning("Ignoring malformed PCI ellipsoid code %r", code)
    if spheroid is None and params[0] <= 0:
        srs.set_well_known_geog_cs("WGS84")
        return
    set_geog_from_spheroid_code(srs, spheroid, float(params[0]), float(params[1]))


def parse_pci(proj: str, units: Optional[str] = None, params=None) -> SRSNode:
    """
    Build a tree from a PCI projection string.

    Parameters
    ----------
    proj : str
        Projection string such as ``"UTM    11   D000"`` or ``"LONG/LAT    D-02"``
    units : str, optional
        ``METRE``, ``FEET`` (US survey foot), ``INTL FEET`` or ``DEGREE``
    params : array-like, optional
        Exactly 17 values; zeros when omitted

    Raises
    ------
    ParameterArrayLengthError
        If ``params`` is given with a length other than 17
    UnsupportedCRSError
        If the projection name is unknown
    """
    from ..core import SpatialReference

    if params is None:
        p = np.zeros(PCI_PARAMETER_COUNT, dtype=np.float64)
    else:
        p = check_parameters(params, PCI_PARAMETER_COUNT, "PCI")
    name, code = _split(proj)
    srs = SpatialReference()

    if name in ("METER", "METRE", "FEET"):
        srs.set_local_cs(name)
        if name == "FEET":
            srs.set_linear_units("US survey foot", US_FOOT_TO_METERS)
        else:
            srs.set_linear_units("metre", 1.0)
        return srs._take_root()

    _apply_datum(srs, code, p)
    if name == "LONG/LAT":
        return srs._take_root()

    fe, fn = float(p[6]), float(p[7])
    scale = float(p[8]) or 1.0
    if name == "UTM":
        text = proj.upper()
        try:
            zone = int(text[5:9].strip() or "0")
        except ValueError:
            zone = int(text.split()[1]) if len(text.split()) > 1 else 0
        north = zone >= 0
        marker = text[10:11] if len(text) > 10 else ""
        if marker == "S" and text[9:10] == " " and text[11:12] in (" ", ""):
            north = False
        elif marker.isalpha() and marker < "N":
            # MGRS latitude band
            north = False
        srs.set_utm(abs(zone), north)
    elif name in ("SPCS", "SPIF", "SPAF"):
        zone = abs(int(proj[5:9].strip() or "0"))
        nad83 = code != "D-01"
        if name == "SPIF":
            srs.set_state_plane(zone, nad83, "foot", INTL_FOOT_TO_METERS)
        elif name == "SPAF":
            srs.set_state_plane(zone, nad83, "US survey foot", US_FOOT_TO_METERS)
        else:
            srs.set_state_plane(zone, nad83)
        return srs._take_root()
    elif name == "ACEA":
        srs.set_acea(p[4], p[5], p[3], p[2], fe, fn)
    elif name == "AE":
        srs.set_ae(p[3], p[2], fe, fn)
    elif name == "CASS":
        srs.set_cs(p[3], p[2], fe, fn)
    elif name == "EC":
        srs.set_ec(p[4], p[5], p[3], p[2], fe, fn)
    elif name == "ER":
        srs.set_equirectangular(p[3], p[2], fe, fn)
    elif name == "GNO":
        srs.set_gnomonic(p[3], p[2], fe, fn)
    elif name == "LAEA":
        srs.set_laea(p[3], p[2], fe, fn)
    elif name == "LCC":
        srs.set_lcc(p[4], p[5], p[3], p[2], fe, fn)
    elif name == "LCC_1SP":
        srs.set_lcc_1sp(p[3], p[2], scale, fe, fn)
    elif name == "MC":
        srs.set_mc(p[3], p[2], fe, fn)
    elif name == "MER":
        srs.set_mercator(p[3], p[2], scale, fe, fn)
    elif name == "OG":
        srs.set_orthographic(p[3], p[2], fe, fn)
    elif name == "OM":
        if p[14] != 0:
            srs.set_hom(p[3], p[2], p[14], p[14], scale, fe, fn)
        else:
            srs.set_hom_2pno(p[3], p[11], p[10], p[13], p[12], scale, fe, fn)
    elif name == "PC":
        srs.set_polyconic(p[3], p[2], fe, fn)
    elif name == "PS":
        srs.set_ps(p[3], p[2], scale, fe, fn)
    elif name == "ROB":
        srs.set_robinson(p[2], fe, fn)
    elif name == "SG":
        srs.set_stereographic(p[3], p[2], scale, fe, fn)
    elif name == "SIN":
        srs.set_sinusoidal(p[2], fe, fn)
    elif name == "TM":
        srs.set_tm(p[3], p[2], scale, fe, fn)
    elif name == "VDG":
        srs.set_vdg(p[2], fe, fn)
    else:
        raise UnsupportedCRSError(f"PCI projection '{name}' is not supported")

    unit_key = (units or "METRE").strip().upper()
    if unit_key in ("FEET", "FOOT", "US FEET"):
        srs.set_linear_units_and_update_parameters("US survey foot", US_FOOT_TO_METERS)
    elif unit_key in ("INTL FEET", "INTL FOOT"):
        srs.set_linear_units_and_update_parameters("foot", INTL_FOOT_TO_METERS)
    logger.debug("Imported PCI projection %s", name)
    return srs._take_root()


def _datum_code(geog: SRSNode, params: np.ndarray) -> str:
    code, semi_major, semi_minor = spheroid_code(geog)
    if code in _GCTP_DATUMS:
        return _DATUM_CODES[_GCTP_DATUMS[code]]
    if code in GCTP_SPHEROIDS:
        return f"E{code:03d}"
    params[0], params[1] = semi_major, semi_minor
    return ""


def _units_string(srs) -> str:
    name, factor = srs.linear_units()
    if abs(factor - US_FOOT_TO_METERS) < 1e-12:
        return "FEET"
    if abs(factor - INTL_FOOT_TO_METERS) < 1e-12:
        return "INTL FEET"
    if factor != 1.0:
        raise UnsupportedCRSError(f"PCI has no code for the linear unit '{name}'")
    return "METRE"


def format_pci(node: SRSNode) -> Tuple[str, str, np.ndarray]:
    """
    PCI definition of a tree.

    Returns
    -------
    tuple
        ``(proj, units, params)``: a 16-character projection string, the
        units string and exactly 17 float64 values
    """
    from ..catalog import canonical_method_name
    from ..core import SpatialReference

    srs = SpatialReference.from_node(node)
    params = np.zeros(PCI_PARAMETER_COUNT, dtype=np.float64)
    if srs.is_local():
        units = _units_string(srs)
        name = "METER" if units == "METRE" else "FEET"
        return name.ljust(PROJ_STRING_LENGTH), units, params
    geog = node.get_node("GEOGCS")
    if geog is None:
        raise UnsupportedCRSError(f"A {node.kind} has no PCI equivalent")
    datum = _datum_code(geog, params)
    if not srs.is_projected():
        return "LONG/LAT".ljust(12) + datum.ljust(4), "DEGREE", params

    units = _units_string(srs)
    zone, north = srs.utm_zone()
    if zone:
        proj = f"UTM  {zone:4d}" + ("   " if north else " S ") + datum.ljust(4)
        return proj, units, params

    method = canonical_method_name(srs.projection_method() or "")
    pci_name = _METHOD_TO_PCI.get(method)
    if pci_name is None:
        raise UnsupportedCRSError(f"Projection method '{method}' has no PCI equivalent")

    def degrees(parameter: str) -> float:
        value = srs.normalized_projection_parameter(parameter, 0.0) / DEGREE_TO_RADIANS
        return float(f"{value:.12f}")

    for parameter in (C.PP_CENTRAL_MERIDIAN, C.PP_LONGITUDE_OF_CENTER):
        if srs.find_projection_parameter(parameter)[1]:
            params[2] = degrees(parameter)
    for parameter in (C.PP_LATITUDE_OF_ORIGIN, C.PP_LATITUDE_OF_CENTER):
        if srs.find_projection_parameter(parameter)[1]:
            params[3] = degrees(parameter)
    params[4] = degrees(C.PP_STANDARD_PARALLEL_1)
    params[5] = degrees(C.PP_STANDARD_PARALLEL_2)
    params[6] = srs.normalized_projection_parameter(C.PP_FALSE_EASTING, 0.0)
    params[7] = srs.normalized_projection_parameter(C.PP_FALSE_NORTHING, 0.0)
    params[8] = srs.projection_parameter(C.PP_SCALE_FACTOR, 0.0)
    if method == C.PT_HOTINE_OBLIQUE_MERCATOR:
        params[14] = degrees(C.PP_AZIMUTH)
    elif method == C.PT_HOTINE_OBLIQUE_MERCATOR_TWO_POINT_NATURAL_ORIGIN:
        params[10] = degrees(C.PP_LONGITUDE_OF_POINT_1)
        params[11] = degrees(C.PP_LATITUDE_OF_POINT_1)
        params[12] = degrees(C.PP_LONGITUDE_OF_POINT_2)
        params[13] = degrees(C.PP_LATITUDE_OF_POINT_2)
    proj = pci_name.ljust(12) + datum.ljust(4)
    logger.debug("Exported %s as PCI projection %s", method, pci_name)
    return proj, units, params
