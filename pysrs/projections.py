"""
Projection method setters.

Each setter selects a projection method and writes its parameters. Angles are
given in degrees and lengths in metres; they are stored in the angular unit
of the GEOGCS and the linear unit of the PROJCS. A GEOGCS root is wrapped in
a PROJCS first. Calling a setter twice with the same arguments leaves the
tree unchanged.
"""

import math
from typing import Iterable, Tuple

from . import catalog
from . import constants as C
from .exceptions import InvalidCRSError
from .units import DEGREE_TO_RADIANS

_ECKERT = {
    1: C.PT_ECKERT_I,
    2: C.PT_ECKERT_II,
    3: C.PT_ECKERT_III,
    4: C.PT_ECKERT_IV,
    5: C.PT_ECKERT_V,
    6: C.PT_ECKERT_VI,
}

_TM_VARIANTS = (
    C.PT_TRANSVERSE_MERCATOR,
    C.PT_TRANSVERSE_MERCATOR_SOUTH_ORIENTED,
    C.PT_GAUSSSCHREIBERTMERCATOR,
)


class ProjectionSetterMixin:
    """Projection setters for ``SpatialReference``."""

    def _set_natural_parameter(self, name: str, value: float) -> None:
        """Store a parameter given in degrees or metres."""
        if catalog.is_angular_parameter(name):
            factor = self.angular_units()[1]
            if not math.isclose(factor, DEGREE_TO_RADIANS, rel_tol=1e-12):
                value = value * DEGREE_TO_RADIANS / factor
        elif catalog.is_linear_parameter(name):
            factor = self.linear_units()[1]
            if factor != 1.0:
                value = value / factor
        self.set_projection_parameter(name, float(value))

    def _set_projection_with(self, method: str, parameters: Iterable[Tuple[str, float]]) -> None:
        current = self.projection_method()
        if current is not None and current.lower() != method.lower():
            # Parameters of the previous method do not carry over
            for parm in self._projcs().find_children("PARAMETER"):
                parm.detach()
        self.set_projection(method)
        for name, value in parameters:
            self._set_natural_parameter(name, value)

    def set_acea(self, std_p1, std_p2, center_lat, center_long, false_easting, false_northing):
        """Albers Conic Equal Area."""
        self._set_projection_with(C.PT_ALBERS_CONIC_EQUAL_AREA, (
            (C.PP_STANDARD_PARALLEL_1, std_p1),
            (C.PP_STANDARD_PARALLEL_2, std_p2),
            (C.PP_LATITUDE_OF_CENTER, center_lat),
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_ae(self, center_lat, center_long, false_easting, false_northing):
        """Azimuthal Equidistant."""
        self._set_projection_with(C.PT_AZIMUTHAL_EQUIDISTANT, (
            (C.PP_LATITUDE_OF_CENTER, center_lat),
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_bonne(self, std_p1, central_meridian, false_easting, false_northing):
        self._set_projection_with(C.PT_BONNE, (
            (C.PP_STANDARD_PARALLEL_1, std_p1),
            (C.PP_CENTRAL_MERIDIAN, central_meridian),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_cea(self, std_p1, central_meridian, false_easting, false_northing):
        """Cylindrical Equal Area."""
        self._set_projection_with(C.PT_CYLINDRICAL_EQUAL_AREA, (
            (C.PP_STANDARD_PARALLEL_1, std_p1),
            (C.PP_CENTRAL_MERIDIAN, central_meridian),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_cs(self, center_lat, center_long, false_easting, false_northing):
        """Cassini-Soldner."""
        self._set_projection_with(C.PT_CASSINI_SOLDNER, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_ec(self, std_p1, std_p2, center_lat, center_long, false_easting, false_northing):
        """Equidistant Conic."""
        self._set_projection_with(C.PT_EQUIDISTANT_CONIC, (
            (C.PP_STANDARD_PARALLEL_1, std_p1),
            (C.PP_STANDARD_PARALLEL_2, std_p2),
            (C.PP_LATITUDE_OF_CENTER, center_lat),
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_eckert(self, variation: int, central_meridian, false_easting, false_northing):
        """
        Eckert I to VI.

        Parameters
        ----------
        variation : int
            Eckert variant, 1 to 6
        """
        if variation not in _ECKERT:
            raise InvalidCRSError(f"Eckert variation must be between 1 and 6, got {variation}")
        self._set_projection_with(_ECKERT[variation], (
            (C.PP_CENTRAL_MERIDIAN, central_meridian),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_equirectangular(self, center_lat, center_long, false_easting, false_northing):
        self._set_projection_with(C.PT_EQUIRECTANGULAR, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_equirectangular_generalized(self, center_lat, center_long, pseudo_std_parallel,
                                        false_easting, false_northing):
        """Equirectangular with an explicit standard parallel."""
        self._set_projection_with(C.PT_EQUIRECTANGULAR, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_STANDARD_PARALLEL_1, pseudo_std_parallel),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_gs(self, central_meridian, false_easting, false_northing):
        """Gall Stereographic."""
        self._set_projection_with(C.PT_GALL_STEREOGRAPHIC, (
            (C.PP_CENTRAL_MERIDIAN, central_meridian),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_gh(self, central_meridian, false_easting, false_northing):
        """Goode Homolosine."""
        self._set_projection_with(C.PT_GOODE_HOMOLOSINE, (
            (C.PP_CENTRAL_MERIDIAN, central_meridian),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_igh(self):
        """Interrupted Goode Homolosine (no parameters)."""
        self._set_projection_with(C.PT_IGH, ())

    def set_geos(self, central_meridian, satellite_height, false_easting, false_northing):
        """Geostationary satellite view; ``satellite_height`` in metres."""
        self._set_projection_with(C.PT_GEOSTATIONARY_SATELLITE, (
            (C.PP_CENTRAL_MERIDIAN, central_meridian),
            (C.PP_SATELLITE_HEIGHT, satellite_height),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_gstm(self, center_lat, center_long, scale, false_easting, false_northing):
        """Gauss-Schreiber Transverse Mercator."""
        self._set_projection_with(C.PT_GAUSSSCHREIBERTMERCATOR, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_gnomonic(self, center_lat, center_long, false_easting, false_northing):
        self._set_projection_with(C.PT_GNOMONIC, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_hom(self, center_lat, center_long, azimuth, rect_to_skew, scale,
                false_easting, false_northing):
        """
        Hotine Oblique Mercator defined by a centre point and azimuth.

        Parameters
        ----------
        center_lat, center_long : float
            Centre of the projection in degrees
        azimuth : float
            Azimuth of the initial line in degrees
        rect_to_skew : float
            Angle from rectified to skewed grid in degrees
        scale : float
            Scale factor on the initial line
        false_easting, false_northing : float
            Offsets in metres
        """
        self._set_projection_with(C.PT_HOTINE_OBLIQUE_MERCATOR, (
            (C.PP_LATITUDE_OF_CENTER, center_lat),
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_AZIMUTH, azimuth),
            (C.PP_RECTIFIED_GRID_ANGLE, rect_to_skew),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_hom_2pno(self, center_lat, lat1, long1, lat2, long2, scale,
                     false_easting, false_northing):
        """Hotine Oblique Mercator defined by two points on the initial line."""
        self._set_projection_with(C.PT_HOTINE_OBLIQUE_MERCATOR_TWO_POINT_NATURAL_ORIGIN, (
            (C.PP_LATITUDE_OF_CENTER, center_lat),
            (C.PP_LATITUDE_OF_POINT_1, lat1),
            (C.PP_LONGITUDE_OF_POINT_1, long1),
            (C.PP_LATITUDE_OF_POINT_2, lat2),
            (C.PP_LONGITUDE_OF_POINT_2, long2),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_iwm_polyconic(self, lat1, lat2, center_long, false_easting, false_northing):
        """International Map of the World Polyconic."""
        self._set_projection_with(C.PT_IMW_POLYCONIC, (
            (C.PP_LATITUDE_OF_1ST_POINT, lat1),
            (C.PP_LATITUDE_OF_2ND_POINT, lat2),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_krovak(self, center_lat, center_long, azimuth, pseudo_std_parallel, scale,
                   false_easting, false_northing):
        self._set_projection_with(C.PT_KROVAK, (
            (C.PP_LATITUDE_OF_CENTER, center_lat),
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_AZIMUTH, azimuth),
            (C.PP_PSEUDO_STD_PARALLEL_1, pseudo_std_parallel),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_laea(self, center_lat, center_long, false_easting, false_northing):
        """Lambert Azimuthal Equal-Area."""
        self._set_projection_with(C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA, (
            (C.PP_LATITUDE_OF_CENTER, center_lat),
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_lcc(self, std_p1, std_p2, center_lat, center_long, false_easting, false_northing):
        """Lambert Conformal Conic with two standard parallels."""
        self._set_projection_with(C.PT_LAMBERT_CONFORMAL_CONIC_2SP, (
            (C.PP_STANDARD_PARALLEL_1, std_p1),
            (C.PP_STANDARD_PARALLEL_2, std_p2),
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_lcc_1sp(self, center_lat, center_long, scale, false_easting, false_northing):
        """Lambert Conformal Conic with one standard parallel and a scale factor."""
        self._set_projection_with(C.PT_LAMBERT_CONFORMAL_CONIC_1SP, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_lccb(self, std_p1, std_p2, center_lat, center_long, false_easting, false_northing):
        """Lambert Conformal Conic, Belgian variant."""
        self._set_projection_with(C.PT_LAMBERT_CONFORMAL_CONIC_2SP_BELGIUM, (
            (C.PP_STANDARD_PARALLEL_1, std_p1),
            (C.PP_STANDARD_PARALLEL_2, std_p2),
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_mc(self, center_lat, center_long, false_easting, false_northing):
        """Miller Cylindrical."""
        self._set_projection_with(C.PT_MILLER_CYLINDRICAL, (
            (C.PP_LATITUDE_OF_CENTER, center_lat),
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_mercator(self, center_lat, center_long, scale, false_easting, false_northing):
        self._set_projection_with(C.PT_MERCATOR_1SP, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_mercator_2sp(self, std_p1, center_lat, center_long, false_easting, false_northing):
        self._set_projection_with(C.PT_MERCATOR_2SP, (
            (C.PP_STANDARD_PARALLEL_1, std_p1),
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_mollweide(self, central_meridian, false_easting, false_northing):
        self._set_projection_with(C.PT_MOLLWEIDE, (
            (C.PP_CENTRAL_MERIDIAN, central_meridian),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_nzmg(self, center_lat, center_long, false_easting, false_northing):
        """New Zealand Map Grid."""
        self._set_projection_with(C.PT_NEW_ZEALAND_MAP_GRID, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_os(self, origin_lat, central_meridian, scale, false_easting, false_northing):
        """Oblique Stereographic."""
        self._set_projection_with(C.PT_OBLIQUE_STEREOGRAPHIC, (
            (C.PP_LATITUDE_OF_ORIGIN, origin_lat),
            (C.PP_CENTRAL_MERIDIAN, central_meridian),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_orthographic(self, center_lat, center_long, false_easting, false_northing):
        self._set_projection_with(C.PT_ORTHOGRAPHIC, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_polyconic(self, center_lat, center_long, false_easting, false_northing):
        self._set_projection_with(C.PT_POLYCONIC, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_ps(self, center_lat, center_long, scale, false_easting, false_northing):
        """Polar Stereographic."""
        self._set_projection_with(C.PT_POLAR_STEREOGRAPHIC, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_robinson(self, center_long, false_easting, false_northing):
        self._set_projection_with(C.PT_ROBINSON, (
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_sinusoidal(self, center_long, false_easting, false_northing):
        self._set_projection_with(C.PT_SINUSOIDAL, (
            (C.PP_LONGITUDE_OF_CENTER, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_stereographic(self, center_lat, center_long, scale, false_easting, false_northing):
        self._set_projection_with(C.PT_STEREOGRAPHIC, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_soc(self, latitude_of_origin, central_meridian, false_easting, false_northing):
        """Swiss Oblique Cylindrical."""
        self._set_projection_with(C.PT_SWISS_OBLIQUE_CYLINDRICAL, (
            (C.PP_LATITUDE_OF_CENTER, latitude_of_origin),
            (C.PP_LONGITUDE_OF_CENTER, central_meridian),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_tm(self, center_lat, center_long, scale, false_easting, false_northing):
        """Transverse Mercator."""
        self._set_projection_with(C.PT_TRANSVERSE_MERCATOR, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_tm_variant(self, variant_name: str, center_lat, center_long, scale,
                       false_easting, false_northing):
        """Transverse Mercator under one of its variant method names."""
        method = catalog.canonical_method_name(variant_name)
        if method not in _TM_VARIANTS:
            raise InvalidCRSError(f"'{variant_name}' is not a Transverse Mercator variant")
        self._set_projection_with(method, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_tmg(self, center_lat, center_long, false_easting, false_northing):
        """Tunisia Mining Grid."""
        self._set_projection_with(C.PT_TUNISIA_MINING_GRID, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_tmso(self, center_lat, center_long, scale, false_easting, false_northing):
        """Transverse Mercator, south oriented."""
        self._set_projection_with(C.PT_TRANSVERSE_MERCATOR_SOUTH_ORIENTED, (
            (C.PP_LATITUDE_OF_ORIGIN, center_lat),
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_SCALE_FACTOR, scale),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))

    def set_vdg(self, center_long, false_easting, false_northing):
        """Van der Grinten."""
        self._set_projection_with(C.PT_VANDERGRINTEN, (
            (C.PP_CENTRAL_MERIDIAN, center_long),
            (C.PP_FALSE_EASTING, false_easting),
            (C.PP_FALSE_NORTHING, false_northing),
        ))
