"""
Spatial reference discovery for xarray and pandas objects.

This module finds CRS definitions attached to labelled data:
- ``crs_wkt`` / ``spatial_ref`` / ``proj4`` / ``epsg`` attributes
- CF ``grid_mapping`` variables
- latitude/longitude coordinate names, which imply WGS 84 with a warning

and moves coordinates between the systems it finds.
"""

import logging
import warnings
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd
import xarray as xr

from ..core import SpatialReference
from ..exceptions import IncompatibleCRSError, SRSError, SRSWarning
from ..transform import CoordinateTransform

logger = logging.getLogger(__name__)

SRSLike = Union[SpatialReference, str, int]

# Attribute names checked in order
CRS_ATTRIBUTES = ('crs_wkt', 'spatial_ref', 'crs', 'proj4', 'proj4_params', 'epsg')

LAT_NAMES = ('lat', 'latitude')
LON_NAMES = ('lon', 'longitude', 'lng')


def as_spatial_reference(value: SRSLike) -> SpatialReference:
    """
    Coerce ``value`` to a SpatialReference.

    Integers are EPSG codes; strings go through ``set_from_user_input``.
    """
    if isinstance(value, SpatialReference):
        return value
    if isinstance(value, (int, np.integer)):
        return SpatialReference.from_epsg(int(value))
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return SpatialReference.from_epsg(int(text))
        return SpatialReference.from_user_input(text)
    raise TypeError(f"Cannot build a spatial reference from {type(value).__name__}")


class CRSManager:
    """
    Finds and applies spatial references on labelled data.

    The policy is "strict but helpful": explicit CRS attributes always win,
    WGS 84 is assumed for latitude/longitude coordinates without one, and
    anything else is an error.
    """

    def __init__(self):
        self.wgs84 = SpatialReference("WGS84")

    def detect_coordinate_system_type(self, srs: Optional[SpatialReference]) -> str:
        """
        Kind of system: 'geographic', 'projected', 'local', 'geocentric',
        'other', or 'unknown' when ``srs`` is None or empty.
        """
        if srs is None or srs.is_empty:
            return "unknown"
        if srs.is_geographic():
            return "geographic"
        if srs.is_projected():
            return "projected"
        if srs.is_local():
            return "local"
        if srs.is_geocentric():
            return "geocentric"
        return "other"

    def _from_attrs(self, attrs: Dict[str, Any]) -> Optional[SpatialReference]:
        for name in CRS_ATTRIBUTES:
            if name not in attrs:
                continue
            value = attrs[name]
            if name == 'proj4_params' and isinstance(value, str):
                value = value if value.startswith('+') else '+' + value
            try:
                return as_spatial_reference(value)
            except (SRSError, TypeError) as exc:
                logger.debug("Ignoring unusable '%s' attribute: %s", name, exc)
        return None

    def parse_srs_from_xarray(self, ds: Union[xr.Dataset, xr.DataArray]
                              ) -> Optional[SpatialReference]:
        """
        Spatial reference attached to an xarray object, or None.

        Looks at, in order: a ``crs`` or ``spatial_ref`` coordinate, the
        object's own attributes, and the variable named by ``grid_mapping``.
        """
        for coord_name in ('crs', 'spatial_ref'):
            if coord_name in ds.coords:
                srs = self._from_attrs(ds.coords[coord_name].attrs)
                if srs is not None:
                    return srs

        grid_mapping = ds.attrs.get('grid_mapping')
        attrs = {k: v for k, v in ds.attrs.items() if k != 'grid_mapping'}
        srs = self._from_attrs(attrs)
        if srs is not None:
            return srs

        if isinstance(ds, xr.Dataset) and grid_mapping is None:
            for var in ds.data_vars.values():
                if 'grid_mapping' in var.attrs:
                    grid_mapping = var.attrs['grid_mapping']
                    break
        if grid_mapping is not None:
            variables = ds.variables if isinstance(ds, xr.Dataset) else ds.coords
            if grid_mapping in variables:
                return self._from_attrs(variables[grid_mapping].attrs)
        return None

    def parse_srs_from_dataframe(self, df: pd.DataFrame) -> Optional[SpatialReference]:
        """Spatial reference of a DataFrame from its attrs or lat/lon column names."""
        srs = self._from_attrs(getattr(df, 'attrs', {}) or {})
        if srs is not None:
            return srs
        lat_cols = [c for c in df.columns if str(c).lower() in LAT_NAMES]
        lon_cols = [c for c in df.columns if str(c).lower() in LON_NAMES]
        if lat_cols and lon_cols:
            warnings.warn(
                f"Columns '{lon_cols[0]}' and '{lat_cols[0]}' look geographic but no CRS "
                f"was provided. Assuming WGS 84.",
                SRSWarning
            )
            return self.wgs84.clone()
        return None

    def validate_coordinate_arrays(self, x_coords: np.ndarray, y_coords: np.ndarray,
                                   srs: Optional[SpatialReference] = None) -> bool:
        """
        True if the arrays have the same shape, are finite and, for a
        geographic system, lie within longitude/latitude bounds.
        """
        x_coords = np.asarray(x_coords, dtype=np.float64)
        y_coords = np.asarray(y_coords, dtype=np.float64)
        if x_coords.shape != y_coords.shape:
            return False
        if not (np.all(np.isfinite(x_coords)) and np.all(np.isfinite(y_coords))):
            return False
        if srs is not None and srs.is_geographic():
            if np.any(np.abs(x_coords) > 360) or np.any(np.abs(y_coords) > 90):
                return False
        return True

    def detect_srs_from_coordinates(self, x_coords: np.ndarray, y_coords: np.ndarray,
                                    x_name: str = 'x', y_name: str = 'y'
                                    ) -> Optional[SpatialReference]:
        """
        WGS 84 when the coordinate names are longitude/latitude and the values
        are in range, else None.
        """
        is_lat_lon = x_name.lower() in LON_NAMES and y_name.lower() in LAT_NAMES
        if not is_lat_lon:
            return None
        x_coords = np.asarray(x_coords, dtype=np.float64)
        y_coords = np.asarray(y_coords, dtype=np.float64)
        if np.nanmax(np.abs(x_coords)) <= 360 and np.nanmax(np.abs(y_coords)) <= 90:
            warnings.warn(
                f"Coordinates named '{x_name}' and '{y_name}' appear to be geographic "
                f"but no explicit CRS was provided. Assuming WGS 84 (EPSG:4326).",
                SRSWarning
            )
            return self.wgs84.clone()
        raise ValueError(
            f"Coordinate variables '{x_name}' and '{y_name}' suggest latitude/longitude "
            f"but their values are outside the geographic range. Provide an explicit CRS."
        )

    def get_srs_from_source(self, source: Any, x_coords: np.ndarray, y_coords: np.ndarray,
                            x_name: str = 'x', y_name: str = 'y') -> SpatialReference:
        """
        Spatial reference of ``source`` by the "strict but helpful" policy.

        Raises
        ------
        ValueError
            If no CRS is attached and the coordinates are not clearly geographic
        """
        srs = None
        if isinstance(source, (xr.Dataset, xr.DataArray)):
            srs = self.parse_srs_from_xarray(source)
        elif isinstance(source, pd.DataFrame):
            srs = self.parse_srs_from_dataframe(source)
        if srs is not None:
            return srs
        srs = self.detect_srs_from_coordinates(x_coords, y_coords, x_name, y_name)
        if srs is not None:
            return srs
        raise ValueError(
            f"No coordinate reference system found for coordinates '{x_name}' and "
            f"'{y_name}'. Provide explicit CRS information."
        )

    def transform_coordinates(self, x_coords: np.ndarray, y_coords: np.ndarray,
                              source: SRSLike, target: SRSLike) -> Tuple[np.ndarray, np.ndarray]:
        """Transform coordinate arrays from ``source`` to ``target``."""
        source_srs, target_srs = self.ensure_srs_compatibility(
            as_spatial_reference(source), as_spatial_reference(target)
        )
        with CoordinateTransform(source_srs, target_srs) as transform:
            x_out, y_out = transform.transform(x_coords, y_coords)
        return x_out, y_out

    def ensure_srs_compatibility(self, source: Optional[SpatialReference],
                                 target: Optional[SpatialReference]
                                 ) -> Tuple[SpatialReference, SpatialReference]:
        """Both systems, or ``IncompatibleCRSError`` if either is missing."""
        if source is None or source.is_empty:
            raise IncompatibleCRSError("Source CRS must be defined for coordinate transformation")
        if target is None or target.is_empty:
            raise IncompatibleCRSError("Target CRS must be defined for coordinate transformation")
        return source, target

    def to_attrs(self, srs: SpatialReference) -> Dict[str, Any]:
        """CF-style attributes describing ``srs`` for a grid mapping variable."""
        wkt = srs.export_to_wkt()
        attrs: Dict[str, Any] = {'crs_wkt': wkt, 'spatial_ref': wkt}
        code = srs.authority_code()
        if code and (srs.authority_name() or '').upper() == 'EPSG':
            attrs['epsg'] = int(code)
        return attrs


# Global instance for convenience
crs_manager = CRSManager()
