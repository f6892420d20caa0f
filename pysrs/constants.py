"""
Well-known names used throughout PySRS.

Projection method names (``PT_*``), projection parameter names (``PP_*``),
reference ellipsoids and the well-known geographic systems that can be built
without consulting an authority table.
"""

from typing import Dict, NamedTuple, Optional, Tuple

# Projection methods
PT_ALBERS_CONIC_EQUAL_AREA = "Albers_Conic_Equal_Area"
PT_AZIMUTHAL_EQUIDISTANT = "Azimuthal_Equidistant"
PT_CASSINI_SOLDNER = "Cassini_Soldner"
PT_CYLINDRICAL_EQUAL_AREA = "Cylindrical_Equal_Area"
PT_BONNE = "Bonne"
PT_ECKERT_I = "Eckert_I"
PT_ECKERT_II = "Eckert_II"
PT_ECKERT_III = "Eckert_III"
PT_ECKERT_IV = "Eckert_IV"
PT_ECKERT_V = "Eckert_V"
PT_ECKERT_VI = "Eckert_VI"
PT_EQUIDISTANT_CONIC = "Equidistant_Conic"
PT_EQUIRECTANGULAR = "Equirectangular"
PT_GALL_STEREOGRAPHIC = "Gall_Stereographic"
PT_GAUSSSCHREIBERTMERCATOR = "Gauss_Schreiber_Transverse_Mercator"
PT_GEOSTATIONARY_SATELLITE = "Geostationary_Satellite"
PT_GOODE_HOMOLOSINE = "Goode_Homolosine"
PT_IGH = "Interrupted_Goode_Homolosine"
PT_GNOMONIC = "Gnomonic"
PT_HOTINE_OBLIQUE_MERCATOR = "Hotine_Oblique_Mercator"
PT_HOTINE_OBLIQUE_MERCATOR_AZIMUTH_CENTER = "Hotine_Oblique_Mercator_Azimuth_Center"
PT_HOTINE_OBLIQUE_MERCATOR_TWO_POINT_NATURAL_ORIGIN = \
    "Hotine_Oblique_Mercator_Two_Point_Natural_Origin"
PT_IMW_POLYCONIC = "International_Map_of_the_World_Polyconic"
PT_KROVAK = "Krovak"
PT_LAMBERT_AZIMUTHAL_EQUAL_AREA = "Lambert_Azimuthal_Equal_Area"
PT_LAMBERT_CONFORMAL_CONIC_1SP = "Lambert_Conformal_Conic_1SP"
PT_LAMBERT_CONFORMAL_CONIC_2SP = "Lambert_Conformal_Conic_2SP"
PT_LAMBERT_CONFORMAL_CONIC_2SP_BELGIUM = "Lambert_Conformal_Conic_2SP_Belgium"
PT_MILLER_CYLINDRICAL = "Miller_Cylindrical"
PT_MERCATOR_1SP = "Mercator_1SP"
PT_MERCATOR_2SP = "Mercator_2SP"
PT_MOLLWEIDE = "Mollweide"
PT_NEW_ZEALAND_MAP_GRID = "New_Zealand_Map_Grid"
PT_OBLIQUE_STEREOGRAPHIC = "Oblique_Stereographic"
PT_ORTHOGRAPHIC = "Orthographic"
PT_POLAR_STEREOGRAPHIC = "Polar_Stereographic"
PT_POLYCONIC = "Polyconic"
PT_ROBINSON = "Robinson"
PT_SINUSOIDAL = "Sinusoidal"
PT_STEREOGRAPHIC = "Stereographic"
PT_SWISS_OBLIQUE_CYLINDRICAL = "Swiss_Oblique_Cylindrical"
PT_TRANSVERSE_MERCATOR = "Transverse_Mercator"
PT_TRANSVERSE_MERCATOR_SOUTH_ORIENTED = "Transverse_Mercator_South_Orientated"
PT_TUNISIA_MINING_GRID = "Tunisia_Mining_Grid"
PT_VANDERGRINTEN = "VanDerGrinten"

# Projection parameters
PP_CENTRAL_MERIDIAN = "central_meridian"
PP_SCALE_FACTOR = "scale_factor"
PP_STANDARD_PARALLEL_1 = "standard_parallel_1"
PP_STANDARD_PARALLEL_2 = "standard_parallel_2"
PP_PSEUDO_STD_PARALLEL_1 = "pseudo_standard_parallel_1"
PP_LONGITUDE_OF_CENTER = "longitude_of_center"
PP_LATITUDE_OF_CENTER = "latitude_of_center"
PP_LONGITUDE_OF_ORIGIN = "longitude_of_origin"
PP_LATITUDE_OF_ORIGIN = "latitude_of_origin"
PP_FALSE_EASTING = "false_easting"
PP_FALSE_NORTHING = "false_northing"
PP_AZIMUTH = "azimuth"
PP_LONGITUDE_OF_POINT_1 = "longitude_of_point_1"
PP_LATITUDE_OF_POINT_1 = "latitude_of_point_1"
PP_LONGITUDE_OF_POINT_2 = "longitude_of_point_2"
PP_LATITUDE_OF_POINT_2 = "latitude_of_point_2"
PP_LATITUDE_OF_1ST_POINT = "latitude_of_1st_point"
PP_LATITUDE_OF_2ND_POINT = "latitude_of_2nd_point"
PP_RECTIFIED_GRID_ANGLE = "rectified_grid_angle"
PP_SATELLITE_HEIGHT = "satellite_height"

# Datum names
DN_WGS84 = "WGS_1984"
DN_WGS72 = "WGS_1972"
DN_NAD83 = "North_American_Datum_1983"
DN_NAD27 = "North_American_Datum_1927"

# Authority of the default vertical datum type (OGC 2005 "geoid-based")
VERT_DATUM_TYPE_GEOID = 2005

WGS84_SEMI_MAJOR = 6378137.0
WGS84_INV_FLATTENING = 298.257223563


class Ellipsoid(NamedTuple):
    """Reference ellipsoid. ``inv_flattening`` is 0 for a sphere."""

    name: str
    semi_major: float
    inv_flattening: float
    proj4: Optional[str] = None
    epsg: Optional[int] = None

    @property
    def semi_minor(self) -> float:
        if self.inv_flattening == 0:
            return self.semi_major
        return self.semi_major * (1.0 - 1.0 / self.inv_flattening)


ELLIPSOIDS: Tuple[Ellipsoid, ...] = (
    Ellipsoid("WGS 84", 6378137.0, 298.257223563, "WGS84", 7030),
    Ellipsoid("GRS 1980", 6378137.0, 298.257222101, "GRS80", 7019),
    Ellipsoid("WGS 72", 6378135.0, 298.26, "WGS72", 7043),
    Ellipsoid("Clarke 1866", 6378206.4, 294.978698213898, "clrk66", 7008),
    Ellipsoid("Clarke 1880 (RGS)", 6378249.145, 293.465, "clrk80", 7012),
    Ellipsoid("International 1924", 6378388.0, 297.0, "intl", 7022),
    Ellipsoid("Bessel 1841", 6377397.155, 299.1528128, "bessel", 7004),
    Ellipsoid("Airy 1830", 6377563.396, 299.3249646, "airy", 7001),
    Ellipsoid("Airy Modified 1849", 6377340.189, 299.3249646, "mod_airy", 7002),
    Ellipsoid("Krassowsky 1940", 6378245.0, 298.3, "krass", 7024),
    Ellipsoid("Everest 1830 (1937 Adjustment)", 6377276.345, 300.8017, "evrst30", 7015),
    Ellipsoid("Everest 1830 Modified", 6377304.063, 300.8017, "evrst48", 7018),
    Ellipsoid("Australian National Spheroid", 6378160.0, 298.25, "aust_SA", 7003),
    Ellipsoid("GRS 1967", 6378160.0, 298.247167427, "GRS67", 7036),
    Ellipsoid("WGS 66", 6378145.0, 298.25, "WGS66", None),
    Ellipsoid("Hough 1960", 6378270.0, 297.0, "hough", 7053),
    Ellipsoid("Fischer (Mercury Datum) 1960", 6378166.0, 298.3, "fschr60", None),
    Ellipsoid("Fischer 1968", 6378150.0, 298.3, "fschr68", None),
    Ellipsoid("Sphere", 6370997.0, 0.0, "sphere", 7047),
)


def find_ellipsoid(semi_major: float, inv_flattening: float) -> Optional[Ellipsoid]:
    """Known ellipsoid matching the given parameters, or None."""
    for ellipsoid in ELLIPSOIDS:
        if abs(ellipsoid.semi_major - semi_major) < 0.01 and \
                abs(ellipsoid.inv_flattening - inv_flattening) < 1e-6:
            return ellipsoid
    return None


def ellipsoid_by_proj4(code: str) -> Optional[Ellipsoid]:
    """Known ellipsoid for a PROJ.4 ``+ellps=`` code."""
    for ellipsoid in ELLIPSOIDS:
        if ellipsoid.proj4 is not None and ellipsoid.proj4.lower() == code.lower():
            return ellipsoid
    return None


WGS84_WKT = (
    'GEOGCS["WGS 84",DATUM["WGS_1984",SPHEROID["WGS 84",6378137,298.257223563,'
    'AUTHORITY["EPSG","7030"]],AUTHORITY["EPSG","6326"]],'
    'PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.0174532925199433,AUTHORITY["EPSG","9122"]],'
    'AUTHORITY["EPSG","4326"]]'
)

WGS72_WKT = (
    'GEOGCS["WGS 72",DATUM["WGS_1972",SPHEROID["WGS 72",6378135,298.26,'
    'AUTHORITY["EPSG","7043"]],TOWGS84[0,0,4.5,0,0,0.554,0.2263],'
    'AUTHORITY["EPSG","6322"]],PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.0174532925199433,AUTHORITY["EPSG","9122"]],'
    'AUTHORITY["EPSG","4322"]]'
)

NAD27_WKT = (
    'GEOGCS["NAD27",DATUM["North_American_Datum_1927",'
    'SPHEROID["Clarke 1866",6378206.4,294.978698213898,AUTHORITY["EPSG","7008"]],'
    'AUTHORITY["EPSG","6267"]],PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.0174532925199433,AUTHORITY["EPSG","9122"]],'
    'AUTHORITY["EPSG","4267"]]'
)

NAD83_WKT = (
    'GEOGCS["NAD83",DATUM["North_American_Datum_1983",'
    'SPHEROID["GRS 1980",6378137,298.257222101,AUTHORITY["EPSG","7019"]],'
    'TOWGS84[0,0,0,0,0,0,0],AUTHORITY["EPSG","6269"]],'
    'PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.0174532925199433,AUTHORITY["EPSG","9122"]],'
    'AUTHORITY["EPSG","4269"]]'
)

# Key: normalised well-known name -> (WKT, EPSG geographic code)
WELL_KNOWN_GEOGCS: Dict[str, Tuple[str, int]] = {
    "WGS84": (WGS84_WKT, 4326),
    "WGS72": (WGS72_WKT, 4322),
    "NAD27": (NAD27_WKT, 4267),
    "NAD83": (NAD83_WKT, 4269),
}

# OGC CRS84/83/27 are longitude/latitude ordered variants
WELL_KNOWN_ALIASES: Dict[str, str] = {
    "CRS84": "WGS84",
    "CRS83": "NAD83",
    "CRS27": "NAD27",
    "EPSG:4326": "WGS84",
    "EPSG:4322": "WGS72",
    "EPSG:4267": "NAD27",
    "EPSG:4269": "NAD83",
}

# PROJ.4 +datum= codes -> well-known key
PROJ4_DATUMS: Dict[str, str] = {
    "WGS84": "WGS84",
    "NAD83": "NAD83",
    "NAD27": "NAD27",
}
