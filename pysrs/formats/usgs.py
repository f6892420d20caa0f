"""
USGS GCTP projection definitions.

A GCTP definition is a projection code, a zone, a 15-element parameter array
and a spheroid code. Angles in the array are packed DMS (``DDDMMMSSS.SS``)
unless ``packed_dms`` is turned off, lengths are metres.
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np

from .. import config
from .. import constants as C
from ..exceptions import ParameterArrayLengthError, ParseError, UnsupportedCRSError
from ..tree.node import SRSNode
from ..units import DEGREE_TO_RADIANS

logger = logging.getLogger(__name__)

USGS_PARAMETER_COUNT = 15

# GCTP projection codes
GEO, UTM, SPCS, ALBERS, LAMCC, MERCAT, PS, POLYC, EQUIDC, TM = range(10)
STEREO, LAMAZ, AZMEQD, GNOMON, ORTHO, GVNSP, SNSOID, EQRECT, MILLER, VGRINT = range(10, 20)
HOM, ROBIN, SOM, ALASKA, GOOD, MOLL, IMOLL, HAMMER, WAGIV, WAGVII, OBEQA = range(20, 31)

# GCTP spheroid codes -> PROJ.4 ellipsoid code of the same figure
GCTP_SPHEROIDS = {
    0: "clrk66",
    1: "clrk80",
    2: "bessel",
    3: "GRS67",
    4: "intl",
    5: "WGS72",
    6: "evrst30",
    7: "WGS66",
    8: "GRS80",
    9: "airy",
    10: "evrst48",
    11: "mod_airy",
    12: "WGS84",
    14: "aust_SA",
    15: "krass",
    16: "hough",
    17: "fschr60",
    18: "fschr68",
    19: "sphere",
}

# Spheroid codes that also imply a datum
_DATUM_SPHEROIDS = {0: "NAD27", 8: "NAD83", 12: "WGS84"}


def unpack_dms(value: float) -> float:
    """Packed ``DDDMMMSSS.SS`` to decimal degrees."""
    sign = -1.0 if value < 0 else 1.0
    value = abs(value)
    degrees = math.floor(value / 1e6)
    minutes = math.floor((value - degrees * 1e6) / 1e3)
    seconds = value - degrees * 1e6 - minutes * 1e3
    return sign * (degrees + minutes / 60.0 + seconds / 3600.0)


def pack_dms(value: float) -> float:
    """Decimal degrees to packed ``DDDMMMSSS.SS``."""
    sign = -1.0 if value < 0 else 1.0
    value = abs(value)
    degrees = math.floor(value)
    minutes = math.floor((value - degrees) * 60.0)
    seconds = round(((value - degrees) * 60.0 - minutes) * 60.0, 7)
    if seconds >= 60.0:
        seconds -= 60.0
        minutes += 1
    if minutes >= 60:
        minutes -= 60
        degrees += 1
    return sign * (degrees * 1e6 + minutes * 1e3 + seconds)


def check_parameters(params, expected: int, fmt: str) -> np.ndarray:
    """Coerce ``params`` to a float64 vector of exactly ``expected`` values."""
    if params is None:
        raise ParameterArrayLengthError(fmt, expected, 0)
    try:
        array = np.asarray(params, dtype=np.float64).ravel()
    except (TypeError, ValueError) as exc:
        raise ParseError(f"{fmt} parameters must be numeric") from exc
    if array.shape[0] != expected:
        raise ParameterArrayLengthError(fmt, expected, array.shape[0])
    return array


def set_geog_from_spheroid_code(srs, code: Optional[int], semi_major: float,
                                semi_minor: float) -> None:
    """
    Set the GEOGCS of ``srs`` from a GCTP-style spheroid code, falling back to
    explicit axes when the code is unknown.
    """
    if code in _DATUM_SPHEROIDS:
        srs.set_well_known_geog_cs(_DATUM_SPHEROIDS[code])
        return
    if code in GCTP_SPHEROIDS:
        ellipsoid = C.ellipsoid_by_proj4(GCTP_SPHEROIDS[code])
        srs.set_geog_cs("unknown", "unknown", ellipsoid.name, ellipsoid.semi_major,
                        ellipsoid.inv_flattening)
        return
    if semi_major > 0:
        if semi_minor > 1.0:
            inv_flattening = semi_major / (semi_major - semi_minor) \
                if semi_major != semi_minor else 0.0
        elif 0.0 < semi_minor < 1.0:
            # GCTP accepts eccentricity squared in place of the semi-minor axis
            flattening = 1.0 - math.sqrt(1.0 - semi_minor)
            inv_flattening = 1.0 / flattening
        else:
            inv_flattening = 0.0
        srs.set_geog_cs("unknown", "unknown", "unnamed", semi_major, inv_flattening)
        return
    logger.debug("No usable spheroid (code %s); assuming WGS84", code)
    srs.set_well_known_geog_cs("WGS84")


def spheroid_code(geog: SRSNode) -> Tuple[int, float, float]:
    """``(code, semi_major, semi_minor)``; code is -1 for a custom spheroid."""
    from ..core import normalize_datum_name

    datum = geog.get_node("DATUM")
    spheroid = geog.get_node("SPHEROID")
    if spheroid is None:
        raise UnsupportedCRSError("Definition has no SPHEROID")
    a = spheroid.child_float(1)
    rf = spheroid.child_float(2, 0.0)
    b = a if rf == 0 else a * (1.0 - 1.0 / rf)
    key = normalize_datum_name(datum.name if datum is not None else "")
    for code, name in _DATUM_SPHEROIDS.items():
        ellipsoid = C.ellipsoid_by_proj4(GCTP_SPHEROIDS[code])
        if key == normalize_datum_name(name) and \
                abs(ellipsoid.semi_major - a) < 0.01 and abs(ellipsoid.inv_flattening - rf) < 1e-6:
            return code, a, b
    for code, proj4 in GCTP_SPHEROIDS.items():
        ellipsoid = C.ellipsoid_by_proj4(proj4)
        if abs(ellipsoid.semi_major - a) < 0.01 and abs(ellipsoid.inv_flattening - rf) < 1e-6:
            return code, a, b
    return -1, a, b


def parse_usgs(proj_code: int, zone: int, params, datum: int,
               packed_dms: Optional[bool] = None) -> SRSNode:
    """
    Build a tree from a USGS GCTP definition.

    Parameters
    ----------
    proj_code : int
        GCTP projection code (0 geographic, 1 UTM, 2 State Plane, ...)
    zone : int
        UTM or State Plane zone; a negative UTM zone is in the southern hemisphere
    params : array-like
        Exactly 15 projection parameters
    datum : int
        GCTP spheroid code, or a negative value to use ``params[0:2]``;
        UTM zone 0 reads its point from the same slots, so it needs a
        standard code
    packed_dms : bool, optional
        Angles are packed DMS (default from ``config.settings.usgs_packed_dms``)

    Raises
    ------
    ParameterArrayLengthError
        If ``params`` does not hold exactly 15 values
    ParseError
        If a UTM zone of 0 is combined with a custom spheroid
    """
    from ..core import SpatialReference

    p = check_parameters(params, USGS_PARAMETER_COUNT, "USGS")
    if packed_dms is None:
        packed_dms = config.settings.usgs_packed_dms
    angle = (lambda i: unpack_dms(p[i])) if packed_dms else (lambda i: float(p[i]))

    spheroid = int(datum) if datum is not None and datum >= 0 else None
    proj_code = int(proj_code)
    if proj_code == UTM and int(zone) == 0 and spheroid is None:
        # params[0:2] cannot be both the spheroid axes and the zone point
        raise ParseError("USGS UTM zone 0 needs a standard spheroid code")

    srs = SpatialReference()
    set_geog_from_spheroid_code(srs, spheroid, float(p[0]), float(p[1]))
    fe, fn = float(p[6]), float(p[7])
    if proj_code == GEO:
        return srs._take_root()
    if proj_code == UTM:
        zone = int(zone)
        north = zone >= 0
        if zone == 0:
            longitude, latitude = angle(0), angle(1)
            zone = int(math.floor((longitude + 180.0) / 6.0)) + 1
            north = latitude >= 0
        srs.set_utm(abs(zone), north)
    elif proj_code == SPCS:
        srs.set_state_plane(abs(int(zone)), nad83=datum != 0)
    elif proj_code == ALBERS:
        srs.set_acea(angle(2), angle(3), angle(5), angle(4), fe, fn)
    elif proj_code == LAMCC:
        srs.set_lcc(angle(2), angle(3), angle(5), angle(4), fe, fn)
    elif proj_code == MERCAT:
        srs.set_mercator(angle(5), angle(4), 1.0, fe, fn)
    elif proj_code == PS:
        srs.set_ps(angle(5), angle(4), 1.0, fe, fn)
    elif proj_code == POLYC:
        srs.set_polyconic(angle(5), angle(4), fe, fn)
    elif proj_code == EQUIDC:
        if p[8] != 0:
            srs.set_ec(angle(2), angle(3), angle(5), angle(4), fe, fn)
        else:
            srs.set_ec(angle(2), angle(2), angle(5), angle(4), fe, fn)
    elif proj_code == TM:
        srs.set_tm(angle(5), angle(4), float(p[2]) or 1.0, fe, fn)
    elif proj_code == STEREO:
        srs.set_stereographic(angle(5), angle(4), 1.0, fe, fn)
    elif proj_code == LAMAZ:
        srs.set_laea(angle(5), angle(4), fe, fn)
    elif proj_code == AZMEQD:
        srs.set_ae(angle(5), angle(4), fe, fn)
    elif proj_code == GNOMON:
        srs.set_gnomonic(angle(5), angle(4), fe, fn)
    elif proj_code == ORTHO:
        srs.set_orthographic(angle(5), angle(4), fe, fn)
    elif proj_code == SNSOID:
        srs.set_sinusoidal(angle(4), fe, fn)
    elif proj_code == EQRECT:
        srs.set_equirectangular_generalized(0.0, angle(4), angle(5), fe, fn)
    elif proj_code == MILLER:
        srs.set_mc(0.0, angle(4), fe, fn)
    elif proj_code == VGRINT:
        srs.set_vdg(angle(4), fe, fn)
    elif proj_code == HOM:
        scale = float(p[2]) or 1.0
        if p[12] != 0:
            srs.set_hom(angle(5), angle(4), angle(3), angle(3), scale, fe, fn)
        else:
            srs.set_hom_2pno(angle(5), angle(9), angle(8), angle(11), angle(10), scale, fe, fn)
    elif proj_code == ROBIN:
        srs.set_robinson(angle(4), fe, fn)
    elif proj_code == GOOD:
        srs.set_igh()
    elif proj_code == MOLL:
        srs.set_mollweide(angle(4), fe, fn)
    else:
        raise UnsupportedCRSError(f"GCTP projection code {proj_code} is not supported")
    if srs.is_projected() and srs.linear_units()[1] != 1.0 and proj_code != SPCS:
        srs.set_linear_units_and_update_parameters("metre", 1.0)
    logger.debug("Imported GCTP projection %d", proj_code)
    return srs._take_root()


def format_usgs(node: SRSNode, packed_dms: Optional[bool] = None
                ) -> Tuple[int, int, np.ndarray, int]:
    """
    GCTP definition of a tree.

    Returns
    -------
    tuple
        ``(proj_code, zone, params, datum)`` where ``params`` always has 15
        float64 values
    """
    from ..core import SpatialReference

    if packed_dms is None:
        packed_dms = config.settings.usgs_packed_dms
    srs = SpatialReference.from_node(node)
    geog = node.get_node("GEOGCS")
    if geog is None:
        raise UnsupportedCRSError(f"A {node.kind} cannot be expressed as a GCTP definition")
    params = np.zeros(USGS_PARAMETER_COUNT, dtype=np.float64)
    datum, semi_major, semi_minor = spheroid_code(geog)
    if datum < 0:
        params[0], params[1] = semi_major, semi_minor

    to_degrees = 1.0 / DEGREE_TO_RADIANS

    def put_angle(index: int, name: str) -> None:
        degrees = srs.normalized_projection_parameter(name, 0.0) * to_degrees
        degrees = float(f"{degrees:.12f}")
        params[index] = pack_dms(degrees) if packed_dms else degrees

    def put_linear(index: int, name: str) -> None:
        params[index] = srs.normalized_projection_parameter(name, 0.0)

    if not srs.is_projected():
        return GEO, 0, params, datum
    from ..catalog import canonical_method_name
    method = canonical_method_name(srs.projection_method() or "")
    zone = 0
    put_linear(6, C.PP_FALSE_EASTING)
    put_linear(7, C.PP_FALSE_NORTHING)
    utm_zone, north = srs.utm_zone()
    if utm_zone:
        params[6] = params[7] = 0.0
        return UTM, utm_zone if north else -utm_zone, params, datum
    if method == C.PT_ALBERS_CONIC_EQUAL_AREA or method == C.PT_EQUIDISTANT_CONIC:
        code = ALBERS if method == C.PT_ALBERS_CONIC_EQUAL_AREA else EQUIDC
        put_angle(2, C.PP_STANDARD_PARALLEL_1)
        put_angle(3, C.PP_STANDARD_PARALLEL_2)
        put_angle(4, C.PP_LONGITUDE_OF_CENTER)
        put_angle(5, C.PP_LATITUDE_OF_CENTER)
        if code == EQUIDC:
            params[8] = 1.0
    elif method == C.PT_LAMBERT_CONFORMAL_CONIC_2SP:
        code = LAMCC
        put_angle(2, C.PP_STANDARD_PARALLEL_1)
        put_angle(3, C.PP_STANDARD_PARALLEL_2)
        put_angle(4, C.PP_CENTRAL_MERIDIAN)
        put_angle(5, C.PP_LATITUDE_OF_ORIGIN)
    elif method in (C.PT_MERCATOR_1SP, C.PT_POLAR_STEREOGRAPHIC, C.PT_POLYCONIC,
                    C.PT_STEREOGRAPHIC, C.PT_GNOMONIC, C.PT_ORTHOGRAPHIC):
        code = {C.PT_MERCATOR_1SP: MERCAT, C.PT_POLAR_STEREOGRAPHIC: PS,
                C.PT_POLYCONIC: POLYC, C.PT_STEREOGRAPHIC: STEREO,
                C.PT_GNOMONIC: GNOMON, C.PT_ORTHOGRAPHIC: ORTHO}[method]
        put_angle(4, C.PP_CENTRAL_MERIDIAN)
        put_angle(5, C.PP_LATITUDE_OF_ORIGIN)
    elif method == C.PT_TRANSVERSE_MERCATOR:
        code = TM
        params[2] = srs.projection_parameter(C.PP_SCALE_FACTOR, 1.0)
        put_angle(4, C.PP_CENTRAL_MERIDIAN)
        put_angle(5, C.PP_LATITUDE_OF_ORIGIN)
    elif method in (C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA, C.PT_AZIMUTHAL_EQUIDISTANT):
        code = LAMAZ if method == C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA else AZMEQD
        put_angle(4, C.PP_LONGITUDE_OF_CENTER)
        put_angle(5, C.PP_LATITUDE_OF_CENTER)
    elif method in (C.PT_SINUSOIDAL, C.PT_ROBINSON):
        code = SNSOID if method == C.PT_SINUSOIDAL else ROBIN
        put_angle(4, C.PP_LONGITUDE_OF_CENTER)
    elif method in (C.PT_VANDERGRINTEN, C.PT_MOLLWEIDE):
        code = VGRINT if method == C.PT_VANDERGRINTEN else MOLL
        put_angle(4, C.PP_CENTRAL_MERIDIAN)
    elif method == C.PT_EQUIRECTANGULAR:
        code = EQRECT
        put_angle(4, C.PP_CENTRAL_MERIDIAN)
        put_angle(5, C.PP_STANDARD_PARALLEL_1)
    elif method == C.PT_MILLER_CYLINDRICAL:
        code = MILLER
        put_angle(4, C.PP_LONGITUDE_OF_CENTER)
    elif method == C.PT_HOTINE_OBLIQUE_MERCATOR:
        code = HOM
        params[2] = srs.projection_parameter(C.PP_SCALE_FACTOR, 1.0)
        put_angle(3, C.PP_AZIMUTH)
        put_angle(4, C.PP_LONGITUDE_OF_CENTER)
        put_angle(5, C.PP_LATITUDE_OF_CENTER)
        params[12] = 1.0
    elif method == C.PT_HOTINE_OBLIQUE_MERCATOR_TWO_POINT_NATURAL_ORIGIN:
        code = HOM
        params[2] = srs.projection_parameter(C.PP_SCALE_FACTOR, 1.0)
        put_angle(5, C.PP_LATITUDE_OF_CENTER)
        put_angle(8, C.PP_LONGITUDE_OF_POINT_1)
        put_angle(9, C.PP_LATITUDE_OF_POINT_1)
        put_angle(10, C.PP_LONGITUDE_OF_POINT_2)
        put_angle(11, C.PP_LATITUDE_OF_POINT_2)
    elif method == C.PT_IGH:
        code = GOOD
    else:
        raise UnsupportedCRSError(f"Projection method '{method}' has no GCTP equivalent")
    logger.debug("Exported %s as GCTP projection %d", method, code)
    return code, zone, params, datum
