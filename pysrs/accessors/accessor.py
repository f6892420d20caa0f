"""
PySRS accessor implementation.

This module implements the xarray accessor that provides the .srs interface.
"""

import logging
from typing import Optional, Union

import numpy as np
import xarray as xr

from ..core import SpatialReference
from ..crs.crs_manager import SRSLike, as_spatial_reference, crs_manager
from ..transform import CoordinateTransform

logger = logging.getLogger(__name__)


@xr.register_dataset_accessor("srs")
@xr.register_dataarray_accessor("srs")
class SRSAccessor:
    """
    xarray accessor for spatial reference handling.

    This accessor provides methods for:
    - reading the spatial reference attached to a dataset or array
    - attaching a spatial reference as a CF grid mapping variable
    - transforming the horizontal coordinates to another system
    """

    def __init__(self, xarray_obj: Union[xr.Dataset, xr.DataArray]):
        self._obj = xarray_obj

    @property
    def spatial_reference(self) -> Optional[SpatialReference]:
        """The attached spatial reference, or None if none is found."""
        return crs_manager.parse_srs_from_xarray(self._obj)

    def write_crs(self, srs: SRSLike, grid_mapping_name: str = "spatial_ref"
                  ) -> Union[xr.Dataset, xr.DataArray]:
        """
        Attach ``srs`` as a scalar grid mapping coordinate.

        Parameters
        ----------
        srs : SpatialReference, str or int
            The system; strings and EPSG codes are resolved first
        grid_mapping_name : str, optional
            Name of the grid mapping coordinate (default: 'spatial_ref')

        Returns
        -------
        xr.Dataset or xr.DataArray
            A copy with the coordinate added and ``grid_mapping`` set on the
            array or on every data variable
        """
        srs = as_spatial_reference(srs)
        attrs = crs_manager.to_attrs(srs)
        obj = self._obj.assign_coords(
            {grid_mapping_name: xr.Variable((), np.int32(0), attrs=attrs)}
        )
        if isinstance(obj, xr.DataArray):
            obj.attrs = dict(obj.attrs, grid_mapping=grid_mapping_name)
        else:
            for name in obj.data_vars:
                obj[name].attrs = dict(obj[name].attrs, grid_mapping=grid_mapping_name)
        return obj

    def transform_coords(self, target: SRSLike, x: str = "x", y: str = "y",
                         x_out: Optional[str] = None, y_out: Optional[str] = None
                         ) -> Union[xr.Dataset, xr.DataArray]:
        """
        Add the coordinates ``x``/``y`` expressed in ``target``.

        One-dimensional ``x`` and ``y`` are expanded to a 2-D grid first. The
        results are added as coordinates named ``x_out``/``y_out`` (default:
        ``x`` and ``y`` with a ``_target`` suffix).

        Raises
        ------
        ValueError
            If the source system cannot be determined
        """
        obj = self._obj
        if x not in obj.coords or y not in obj.coords:
            raise KeyError(f"Coordinates '{x}' and '{y}' are required")
        x_values = obj.coords[x]
        y_values = obj.coords[y]
        source = crs_manager.get_srs_from_source(obj, x_values.values, y_values.values, x, y)
        target_srs = as_spatial_reference(target)
        if x_values.ndim == 1 and y_values.ndim == 1 and x_values.dims != y_values.dims:
            y_grid, x_grid = xr.broadcast(y_values, x_values)
        else:
            x_grid, y_grid = x_values, y_values
        with CoordinateTransform(source, target_srs) as transform:
            x_new, y_new = transform.transform(x_grid.values, y_grid.values)
        x_out = x_out or f"{x}_target"
        y_out = y_out or f"{y}_target"
        logger.debug("Added transformed coordinates %s/%s", x_out, y_out)
        return obj.assign_coords({
            x_out: (x_grid.dims, x_new),
            y_out: (y_grid.dims, y_new),
        })
