"""
Authority table lookups backed by pyproj.

Every function returns WKT 1 text or plain values so the rest of the library
never holds pyproj objects. Results are cached; ``cleanup`` clears the caches.
"""

import logging
import re
from functools import lru_cache
from typing import List, Optional, Tuple

from pyproj import CRS
from pyproj.database import query_crs_info
from pyproj.enums import PJType, WktVersion
from pyproj.exceptions import CRSError

from .exceptions import UnsupportedCRSError

logger = logging.getLogger(__name__)

# Minimum confidence accepted when identifying a definition against EPSG
IDENTIFY_MIN_CONFIDENCE = 70


def _to_wkt1(crs: CRS, description: str) -> str:
    wkt = crs.to_wkt(WktVersion.WKT1_GDAL)
    if not wkt:
        raise UnsupportedCRSError(f"{description} cannot be expressed as WKT 1")
    return wkt


@lru_cache(maxsize=256)
def epsg_wkt(code: int) -> str:
    """
    WKT 1 definition of an EPSG code, axes included.

    Raises
    ------
    UnsupportedCRSError
        If the code is not in the EPSG table
    """
    try:
        crs = CRS.from_epsg(int(code))
    except CRSError as exc:
        raise UnsupportedCRSError(f"EPSG code {code} is not in the authority table") from exc
    logger.debug("Resolved EPSG:%s to %s", code, crs.name)
    return _to_wkt1(crs, f"EPSG:{code}")


@lru_cache(maxsize=256)
def epsg_axis_directions(code: int) -> Tuple[str, ...]:
    """Axis directions of an EPSG system in authority order, upper-cased."""
    try:
        crs = CRS.from_epsg(int(code))
    except CRSError as exc:
        raise UnsupportedCRSError(f"EPSG code {code} is not in the authority table") from exc
    return tuple(axis.direction.upper() for axis in crs.axis_info)


@lru_cache(maxsize=128)
def identify_epsg(wkt: str) -> Optional[int]:
    """EPSG code matching a WKT definition, or None when nothing matches."""
    try:
        crs = CRS.from_wkt(wkt)
    except CRSError as exc:
        logger.debug("Authority table rejected definition: %s", exc)
        return None
    return crs.to_epsg(min_confidence=IDENTIFY_MIN_CONFIDENCE)


def user_input_wkt(text: str) -> str:
    """
    WKT 1 for any definition the authority table understands
    (``"ESRI:102003"``, ``"IGNF:LAMB93"``, URNs, ...).
    """
    try:
        crs = CRS.from_user_input(text)
    except CRSError as exc:
        raise UnsupportedCRSError(f"Authority table cannot resolve '{text}'") from exc
    return _to_wkt1(crs, repr(text))


@lru_cache(maxsize=1)
def _esri_state_plane_names() -> Tuple[Tuple[str, str], ...]:
    infos = query_crs_info(auth_name="ESRI", pj_types=PJType.PROJECTED_CRS)
    return tuple(
        (info.code, info.name) for info in infos if "StatePlane" in info.name
    )


def _state_plane_pattern(zone: int, nad83: bool) -> "re.Pattern":
    datum = "1983" if nad83 else "1927"
    return re.compile(
        rf"^NAD_{datum}_StatePlane_.*_FIPS_{zone:04d}(_Feet|_Meters|_Feet_Intl)?$"
    )


def state_plane_candidates(zone: int, nad83: bool = True) -> List[Tuple[str, str]]:
    """ESRI ``(code, name)`` pairs for a State Plane FIPS zone."""
    pattern = _state_plane_pattern(zone, nad83)
    return [(code, name) for code, name in _esri_state_plane_names() if pattern.match(name)]


@lru_cache(maxsize=128)
def state_plane_wkt(zone: int, nad83: bool = True) -> str:
    """
    WKT 1 of a US State Plane zone given its USGS/FIPS zone number.

    Metre variants are preferred for NAD83 and US foot variants for NAD27,
    matching the historical definitions of each datum's zones.

    Raises
    ------
    UnsupportedCRSError
        If the zone is unknown to the authority table
    """
    candidates = state_plane_candidates(zone, nad83)
    if not candidates:
        raise UnsupportedCRSError(
            f"State Plane zone {zone} ({'NAD83' if nad83 else 'NAD27'}) is not in the "
            "authority table"
        )

    def preference(item: Tuple[str, str]) -> int:
        name = item[1]
        if nad83:
            return 0 if not name.endswith("_Feet") and not name.endswith("_Feet_Intl") else 1
        return 0 if not name.endswith("_Meters") else 1

    code, name = sorted(candidates, key=preference)[0]
    logger.debug("State Plane zone %d resolved to ESRI:%s (%s)", zone, code, name)
    return _to_wkt1(CRS.from_authority("ESRI", code), f"ESRI:{code}")


def cleanup() -> None:
    """Forget every cached authority lookup."""
    for cached in (epsg_wkt, epsg_axis_directions, identify_epsg,
                   _esri_state_plane_names, state_plane_wkt):
        cached.cache_clear()
