"""
Unit registry for PySRS.

Angular units convert to radians, linear units convert to meters. The
registry is advisory: unknown unit names found in legacy files are accepted
with whatever factor the caller supplies, and only strict lookups reject them.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import UnitUnknownError
from . import config

ANGULAR = "angular"
LINEAR = "linear"

DEGREE_TO_RADIANS = 0.0174532925199433
US_FOOT_TO_METERS = 0.304800609601219
INTL_FOOT_TO_METERS = 0.3048

# Relative tolerance used when matching a factor against known units
FACTOR_TOLERANCE = 1e-9


@dataclass(frozen=True)
class UnitDefinition:
    """A named unit with its conversion factor to the SI base unit."""

    name: str
    factor: float
    kind: str
    aliases: Tuple[str, ...] = field(default_factory=tuple)
    proj4: Optional[str] = None
    epsg: Optional[int] = None


def _key(name: str) -> str:
    return name.strip().lower().replace("_", " ").replace("-", " ")


class UnitRegistry:
    """
    Lookup table of angular and linear units.

    Parameters
    ----------
    strict : bool, optional
        Default strictness for ``unit_factor``. When None the library
        setting ``config.settings.strict`` is used.
    """

    def __init__(self, strict: Optional[bool] = None):
        self._units: Dict[str, UnitDefinition] = {}
        self._ordered: List[UnitDefinition] = []
        self.strict = strict

    def register(
        self,
        name: str,
        factor: float,
        kind: str,
        aliases: Iterable[str] = (),
        proj4: Optional[str] = None,
        epsg: Optional[int] = None,
    ) -> UnitDefinition:
        """Register a unit under its name and aliases."""
        if kind not in (ANGULAR, LINEAR):
            raise ValueError(f"kind must be '{ANGULAR}' or '{LINEAR}', got '{kind}'")
        if factor <= 0:
            raise ValueError(f"Unit factor must be positive, got {factor}")
        unit = UnitDefinition(name, float(factor), kind, tuple(aliases), proj4, epsg)
        for alias in (name,) + unit.aliases:
            self._units[_key(alias)] = unit
        if proj4:
            self._units[_key(proj4)] = unit
        self._ordered.append(unit)
        return unit

    def lookup(self, name: Optional[str]) -> Optional[UnitDefinition]:
        """Return the unit registered under ``name`` or any alias, else None."""
        if not name:
            return None
        return self._units.get(_key(name))

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __iter__(self):
        return iter(self._ordered)

    def unit_factor(
        self, name: str, default: Optional[float] = None, strict: Optional[bool] = None
    ) -> Optional[float]:
        """
        Conversion factor of a unit to radians or meters.

        Parameters
        ----------
        name : str
            Unit name or alias
        default : float, optional
            Value returned for unknown units in non-strict mode
        strict : bool, optional
            Raise ``UnitUnknownError`` for unknown units

        Returns
        -------
        float or None
            The factor, or ``default`` when the unit is unknown
        """
        unit = self.lookup(name)
        if unit is not None:
            return unit.factor
        if strict is None:
            strict = self.strict if self.strict is not None else config.settings.strict
        if strict:
            raise UnitUnknownError(f"Unknown unit '{name}'")
        return default

    def canonical_name(self, name: str) -> str:
        """Canonical name for a unit, or ``name`` unchanged if unknown."""
        unit = self.lookup(name)
        return unit.name if unit is not None else name

    def find_by_factor(self, factor: float, kind: str) -> Optional[UnitDefinition]:
        """First registered unit of ``kind`` whose factor matches ``factor``."""
        for unit in self._ordered:
            if unit.kind == kind and abs(unit.factor - factor) <= FACTOR_TOLERANCE * unit.factor:
                return unit
        return None

    def proj4_units(self, factor: float) -> Optional[str]:
        """PROJ.4 ``+units=`` code for a linear factor, if one exists."""
        unit = self.find_by_factor(factor, LINEAR)
        if unit is not None:
            return unit.proj4
        return None

    def from_proj4_units(self, code: str) -> Optional[UnitDefinition]:
        """Linear unit for a PROJ.4 ``+units=`` code."""
        for unit in self._ordered:
            if unit.proj4 == code:
                return unit
        return None


def _build_default_registry() -> UnitRegistry:
    registry = UnitRegistry()
    # Angular
    registry.register("degree", DEGREE_TO_RADIANS, ANGULAR,
                      aliases=("Degree", "degrees", "deg", "DEGREE"), epsg=9122)
    registry.register("radian", 1.0, ANGULAR, aliases=("Radian", "rad"), epsg=9101)
    registry.register("grad", 0.015707963267949, ANGULAR, aliases=("gon", "Grad"), epsg=9105)
    registry.register("arc-minute", 0.000290888208665722, ANGULAR,
                      aliases=("minute", "Minute"), epsg=9103)
    registry.register("arc-second", 4.84813681109536e-06, ANGULAR,
                      aliases=("second", "Second", "SECOND"), epsg=9104)
    # Linear; order matters for find_by_factor
    registry.register("metre", 1.0, LINEAR,
                      aliases=("Meter", "meter", "meters", "metres", "METERS", "METRE"),
                      proj4="m", epsg=9001)
    registry.register("kilometre", 1000.0, LINEAR,
                      aliases=("Kilometer", "kilometer", "kilometers"), proj4="km", epsg=9036)
    registry.register("decimetre", 0.1, LINEAR, aliases=("Decimeter", "decimeter"), proj4="dm")
    registry.register("centimetre", 0.01, LINEAR, aliases=("Centimeter", "centimeter"), proj4="cm")
    registry.register("millimetre", 0.001, LINEAR, aliases=("Millimeter", "millimeter"), proj4="mm")
    registry.register("foot", INTL_FOOT_TO_METERS, LINEAR,
                      aliases=("Foot", "international foot", "INTL FEET", "Foot_International"),
                      proj4="ft", epsg=9002)
    registry.register("US survey foot", US_FOOT_TO_METERS, LINEAR,
                      aliases=("Foot_US", "US Foot", "foot_us", "Foot (US survey)", "FEET", "us-ft"),
                      proj4="us-ft", epsg=9003)
    registry.register("yard", 0.9144, LINEAR, aliases=("Yard", "yd"), proj4="yd", epsg=9096)
    registry.register("US survey mile", 1609.34721869444, LINEAR, aliases=("us-mi",), proj4="us-mi")
    registry.register("mile", 1609.344, LINEAR, aliases=("Statute_Mile", "Mile", "mi"), proj4="mi")
    registry.register("nautical mile", 1852.0, LINEAR,
                      aliases=("Nautical_Mile", "kmi"), proj4="kmi", epsg=9030)
    registry.register("link", 0.201168, LINEAR, aliases=("Link", "Link_Clarke"), proj4="link")
    registry.register("chain", 20.1168, LINEAR, aliases=("Chain", "Chain_Clarke"), proj4="ch")
    registry.register("fathom", 1.8288, LINEAR, aliases=("Fathom",), proj4="fath")
    return registry


default_registry = _build_default_registry()


def unit_factor(name: str, default: Optional[float] = None, strict: Optional[bool] = None) -> Optional[float]:
    """Conversion factor of ``name`` in the default registry."""
    return default_registry.unit_factor(name, default=default, strict=strict)
