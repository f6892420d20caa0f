"""
Projection parameter catalog.

An immutable table of the projection methods PySRS knows about. Each method
lists its parameters in order, with a user-facing label, a value type and a
default. The catalog is only used for introspection and for filling in
defaults during comparisons; it is never mutated at runtime.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from . import constants as C

# Value types
TYPE_LONGITUDE = "Long"
TYPE_LATITUDE = "Lat"
TYPE_ANGLE = "Angle"
TYPE_RATIO = "Ratio"
TYPE_LINEAR = "m"
TYPE_INTEGER = "Integer"


class ParameterInfo(NamedTuple):
    """User-facing description of a projection parameter."""

    user_name: str
    value_type: str
    default: float


@dataclass(frozen=True)
class ParameterDescriptor:
    """A parameter definition: name, label, value type and default."""

    name: str
    user_name: str
    value_type: str
    default: float

    @property
    def info(self) -> ParameterInfo:
        return ParameterInfo(self.user_name, self.value_type, self.default)


@dataclass(frozen=True)
class ProjectionMethodDescriptor:
    """A projection method and its ordered parameter list."""

    name: str
    user_name: str
    parameters: Tuple[ParameterDescriptor, ...]

    @property
    def parameter_names(self) -> List[str]:
        return [p.name for p in self.parameters]

    def parameter(self, name: str) -> Optional[ParameterDescriptor]:
        for param in self.parameters:
            if param.name.lower() == name.lower():
                return param
        return None


_PARAMETERS: Dict[str, ParameterDescriptor] = {
    p.name: p for p in (
        ParameterDescriptor(C.PP_CENTRAL_MERIDIAN, "Central Meridian", TYPE_LONGITUDE, 0.0),
        ParameterDescriptor(C.PP_SCALE_FACTOR, "Scale Factor", TYPE_RATIO, 1.0),
        ParameterDescriptor(C.PP_STANDARD_PARALLEL_1, "Standard Parallel 1", TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_STANDARD_PARALLEL_2, "Standard Parallel 2", TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_PSEUDO_STD_PARALLEL_1, "Pseudo Standard Parallel 1",
                            TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_LONGITUDE_OF_CENTER, "Longitude of Center", TYPE_LONGITUDE, 0.0),
        ParameterDescriptor(C.PP_LATITUDE_OF_CENTER, "Latitude of Center", TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_LONGITUDE_OF_ORIGIN, "Longitude of Origin", TYPE_LONGITUDE, 0.0),
        ParameterDescriptor(C.PP_LATITUDE_OF_ORIGIN, "Latitude of Origin", TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_FALSE_EASTING, "False Easting", TYPE_LINEAR, 0.0),
        ParameterDescriptor(C.PP_FALSE_NORTHING, "False Northing", TYPE_LINEAR, 0.0),
        ParameterDescriptor(C.PP_AZIMUTH, "Azimuth", TYPE_ANGLE, 0.0),
        ParameterDescriptor(C.PP_LONGITUDE_OF_POINT_1, "Longitude of Point 1", TYPE_LONGITUDE, 0.0),
        ParameterDescriptor(C.PP_LATITUDE_OF_POINT_1, "Latitude of Point 1", TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_LONGITUDE_OF_POINT_2, "Longitude of Point 2", TYPE_LONGITUDE, 0.0),
        ParameterDescriptor(C.PP_LATITUDE_OF_POINT_2, "Latitude of Point 2", TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_LATITUDE_OF_1ST_POINT, "Latitude of 1st Point", TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_LATITUDE_OF_2ND_POINT, "Latitude of 2nd Point", TYPE_LATITUDE, 0.0),
        ParameterDescriptor(C.PP_RECTIFIED_GRID_ANGLE, "Rectified Grid Angle", TYPE_ANGLE, 0.0),
        ParameterDescriptor(C.PP_SATELLITE_HEIGHT, "Satellite Height", TYPE_LINEAR, 35785831.0),
    )
}

_FE_FN = (C.PP_FALSE_EASTING, C.PP_FALSE_NORTHING)
_CM_FE_FN = (C.PP_CENTRAL_MERIDIAN,) + _FE_FN
_ORIGIN = (C.PP_LATITUDE_OF_ORIGIN, C.PP_CENTRAL_MERIDIAN)
_CENTER = (C.PP_LATITUDE_OF_CENTER, C.PP_LONGITUDE_OF_CENTER)
_TWO_PARALLELS = (C.PP_STANDARD_PARALLEL_1, C.PP_STANDARD_PARALLEL_2)

# (method name, user name, parameter names)
_METHODS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    (C.PT_TRANSVERSE_MERCATOR, "Transverse Mercator",
     _ORIGIN + (C.PP_SCALE_FACTOR,) + _FE_FN),
    (C.PT_TRANSVERSE_MERCATOR_SOUTH_ORIENTED, "Transverse Mercator (South Oriented)",
     _ORIGIN + (C.PP_SCALE_FACTOR,) + _FE_FN),
    (C.PT_TUNISIA_MINING_GRID, "Tunisia Mining Grid", _ORIGIN + _FE_FN),
    (C.PT_ALBERS_CONIC_EQUAL_AREA, "Albers Conic Equal Area",
     _TWO_PARALLELS + _CENTER + _FE_FN),
    (C.PT_AZIMUTHAL_EQUIDISTANT, "Azimuthal Equidistant", _CENTER + _FE_FN),
    (C.PT_CASSINI_SOLDNER, "Cassini/Soldner", _ORIGIN + _FE_FN),
    (C.PT_CYLINDRICAL_EQUAL_AREA, "Cylindrical Equal Area",
     (C.PP_STANDARD_PARALLEL_1,) + _CM_FE_FN),
    (C.PT_BONNE, "Bonne", (C.PP_STANDARD_PARALLEL_1,) + _CM_FE_FN),
    (C.PT_ECKERT_I, "Eckert I", _CM_FE_FN),
    (C.PT_ECKERT_II, "Eckert II", _CM_FE_FN),
    (C.PT_ECKERT_III, "Eckert III", _CM_FE_FN),
    (C.PT_ECKERT_IV, "Eckert IV", _CM_FE_FN),
    (C.PT_ECKERT_V, "Eckert V", _CM_FE_FN),
    (C.PT_ECKERT_VI, "Eckert VI", _CM_FE_FN),
    (C.PT_EQUIDISTANT_CONIC, "Equidistant Conic", _TWO_PARALLELS + _CENTER + _FE_FN),
    (C.PT_EQUIRECTANGULAR, "Equirectangular",
     _ORIGIN + (C.PP_STANDARD_PARALLEL_1,) + _FE_FN),
    (C.PT_GALL_STEREOGRAPHIC, "Gall Stereographic", _CM_FE_FN),
    (C.PT_GAUSSSCHREIBERTMERCATOR, "Gauss-Schreiber Transverse Mercator",
     _ORIGIN + (C.PP_SCALE_FACTOR,) + _FE_FN),
    (C.PT_GEOSTATIONARY_SATELLITE, "Geostationary Satellite",
     (C.PP_CENTRAL_MERIDIAN, C.PP_SATELLITE_HEIGHT) + _FE_FN),
    (C.PT_GOODE_HOMOLOSINE, "Goode Homolosine", _CM_FE_FN),
    (C.PT_IGH, "Interrupted Goode Homolosine", ()),
    (C.PT_GNOMONIC, "Gnomonic", _ORIGIN + _FE_FN),
    (C.PT_HOTINE_OBLIQUE_MERCATOR, "Oblique Mercator",
     _CENTER + (C.PP_AZIMUTH, C.PP_RECTIFIED_GRID_ANGLE, C.PP_SCALE_FACTOR) + _FE_FN),
    (C.PT_HOTINE_OBLIQUE_MERCATOR_AZIMUTH_CENTER, "Oblique Mercator (Azimuth Center)",
     _CENTER + (C.PP_AZIMUTH, C.PP_RECTIFIED_GRID_ANGLE, C.PP_SCALE_FACTOR) + _FE_FN),
    (C.PT_HOTINE_OBLIQUE_MERCATOR_TWO_POINT_NATURAL_ORIGIN, "Hotine Oblique Mercator Two Point",
     (C.PP_LATITUDE_OF_CENTER, C.PP_LATITUDE_OF_POINT_1, C.PP_LONGITUDE_OF_POINT_1,
      C.PP_LATITUDE_OF_POINT_2, C.PP_LONGITUDE_OF_POINT_2, C.PP_SCALE_FACTOR) + _FE_FN),
    (C.PT_IMW_POLYCONIC, "International Map of the World Polyconic",
     (C.PP_LATITUDE_OF_1ST_POINT, C.PP_LATITUDE_OF_2ND_POINT) + _CM_FE_FN),
    (C.PT_KROVAK, "Krovak",
     _CENTER + (C.PP_AZIMUTH, C.PP_PSEUDO_STD_PARALLEL_1, C.PP_SCALE_FACTOR) + _FE_FN),
    (C.PT_LAMBERT_AZIMUTHAL_EQUAL_AREA, "Lambert Azimuthal Equal-Area", _CENTER + _FE_FN),
    (C.PT_LAMBERT_CONFORMAL_CONIC_1SP, "Lambert Conformal Conic (1SP)",
     _ORIGIN + (C.PP_SCALE_FACTOR,) + _FE_FN),
    (C.PT_LAMBERT_CONFORMAL_CONIC_2SP, "Lambert Conformal Conic (2SP)",
     _TWO_PARALLELS + _ORIGIN + _FE_FN),
    (C.PT_LAMBERT_CONFORMAL_CONIC_2SP_BELGIUM, "Lambert Conformal Conic (2SP - Belgium)",
     _TWO_PARALLELS + _ORIGIN + _FE_FN),
    (C.PT_MILLER_CYLINDRICAL, "Miller Cylindrical", _CENTER + _FE_FN),
    (C.PT_MERCATOR_1SP, "Mercator (1SP)", _ORIGIN + (C.PP_SCALE_FACTOR,) + _FE_FN),
    (C.PT_MERCATOR_2SP, "Mercator (2SP)", (C.PP_STANDARD_PARALLEL_1,) + _ORIGIN + _FE_FN),
    (C.PT_MOLLWEIDE, "Mollweide", _CM_FE_FN),
    (C.PT_NEW_ZEALAND_MAP_GRID, "New Zealand Map Grid", _ORIGIN + _FE_FN),
    (C.PT_OBLIQUE_STEREOGRAPHIC, "Oblique Stereographic",
     _ORIGIN + (C.PP_SCALE_FACTOR,) + _FE_FN),
    (C.PT_ORTHOGRAPHIC, "Orthographic", _ORIGIN + _FE_FN),
    (C.PT_POLYCONIC, "Polyconic", _ORIGIN + _FE_FN),
    (C.PT_POLAR_STEREOGRAPHIC, "Polar Stereographic",
     _ORIGIN + (C.PP_SCALE_FACTOR,) + _FE_FN),
    (C.PT_ROBINSON, "Robinson", (C.PP_LONGITUDE_OF_CENTER,) + _FE_FN),
    (C.PT_SINUSOIDAL, "Sinusoidal", (C.PP_LONGITUDE_OF_CENTER,) + _FE_FN),
    (C.PT_STEREOGRAPHIC, "Stereographic", _ORIGIN + (C.PP_SCALE_FACTOR,) + _FE_FN),
    (C.PT_SWISS_OBLIQUE_CYLINDRICAL, "Swiss Oblique Cylindrical", _CENTER + _FE_FN),
    (C.PT_VANDERGRINTEN, "Van Der Grinten", _CM_FE_FN),
)

_CATALOG: Dict[str, ProjectionMethodDescriptor] = {
    name.lower(): ProjectionMethodDescriptor(
        name, user_name, tuple(_PARAMETERS[p] for p in params)
    )
    for name, user_name, params in _METHODS
}


def projection_methods() -> Iterator[str]:
    """
    Iterate over the names of all known projection methods.

    Each call returns a fresh iterator, so the sequence can be restarted.
    """
    for name, _, _ in _METHODS:
        yield name


def get_method(method: str) -> Optional[ProjectionMethodDescriptor]:
    """Descriptor for ``method`` (case-insensitive), or None."""
    if not method:
        return None
    return _CATALOG.get(method.lower())


def parameter_list(method: str) -> Tuple[List[str], str]:
    """
    Ordered parameter names of a method and its user-facing name.

    Returns an empty list and an empty name for unknown methods.
    """
    descriptor = get_method(method)
    if descriptor is None:
        return [], ""
    return descriptor.parameter_names, descriptor.user_name


def parameter_info(method: str, parameter: str) -> Tuple[Optional[ParameterInfo], bool]:
    """
    Look up one parameter of one method.

    Returns
    -------
    tuple
        ``(ParameterInfo, True)`` when found, ``(None, False)`` otherwise
    """
    descriptor = get_method(method)
    if descriptor is None:
        return None, False
    param = descriptor.parameter(parameter)
    if param is None:
        return None, False
    return param.info, True


def parameter_default(method: str, parameter: str, fallback: float = 0.0) -> float:
    """Default value of a parameter, ``fallback`` when the catalog has none."""
    info, found = parameter_info(method, parameter)
    if found:
        return info.default
    param = _PARAMETERS.get(parameter.lower())
    return param.default if param is not None else fallback


def is_angular_parameter(name: str) -> bool:
    """True for parameters expressed in the geographic angular unit."""
    lowered = name.lower()
    return (
        lowered.startswith("longitude")
        or lowered.startswith("latitude")
        or lowered in (C.PP_CENTRAL_MERIDIAN, C.PP_AZIMUTH, C.PP_RECTIFIED_GRID_ANGLE)
        or lowered.startswith("standard_parallel")
        or lowered.startswith("pseudo_standard_parallel")
    )


def is_linear_parameter(name: str) -> bool:
    """True for parameters expressed in the projected linear unit."""
    lowered = name.lower()
    return (
        lowered.startswith("false_")
        or lowered in (C.PP_SATELLITE_HEIGHT, "perspective_point_height")
    )


# Alternative method names seen in ESRI and older OGC WKT, keyed by the
# canonical name. Used when comparing and when morphing to and from ESRI.
METHOD_ALIASES: Dict[str, Tuple[str, ...]] = {
    C.PT_ALBERS_CONIC_EQUAL_AREA: ("Albers",),
    C.PT_CASSINI_SOLDNER: ("Cassini",),
    C.PT_EQUIRECTANGULAR: ("Equidistant_Cylindrical", "Plate_Carree"),
    C.PT_HOTINE_OBLIQUE_MERCATOR: ("Hotine_Oblique_Mercator_Azimuth_Natural_Origin",
                                   "Oblique_Mercator"),
    C.PT_LAMBERT_CONFORMAL_CONIC_2SP: ("Lambert_Conformal_Conic",),
    C.PT_MERCATOR_1SP: ("Mercator",),
    C.PT_OBLIQUE_STEREOGRAPHIC: ("Double_Stereographic",),
    C.PT_TRANSVERSE_MERCATOR: ("Gauss_Kruger",),
    C.PT_VANDERGRINTEN: ("Van_der_Grinten_I",),
    C.PT_GOODE_HOMOLOSINE: ("Goode_Homolosine_Land",),
    C.PT_POLAR_STEREOGRAPHIC: ("Stereographic_North_Pole", "Stereographic_South_Pole"),
}

_ALIAS_TO_CANONICAL: Dict[str, str] = {
    alias.lower(): canonical
    for canonical, aliases in METHOD_ALIASES.items()
    for alias in aliases
}


def method_aliases(method: str) -> Tuple[str, ...]:
    """Alternative names of a canonical method (empty for unknown methods)."""
    descriptor = get_method(method)
    if descriptor is None:
        return ()
    return METHOD_ALIASES.get(descriptor.name, ())


def canonical_method_name(method: str) -> str:
    """Resolve an alias to its canonical method name; unknown names pass through."""
    if not method:
        return method
    descriptor = get_method(method)
    if descriptor is not None:
        return descriptor.name
    return _ALIAS_TO_CANONICAL.get(method.lower(), method)
