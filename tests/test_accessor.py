"""
Tests for the xarray ``.srs`` accessor.
"""

import numpy as np
import pytest

import pysrs  # noqa: F401
from pysrs.exceptions import SRSWarning


class TestSRSAccessor:
    """Test reading, writing and transforming through ``.srs``."""

    def test_no_spatial_reference(self, projected_dataarray):
        assert projected_dataarray.srs.spatial_reference is None

    def test_write_crs_dataarray(self, projected_dataarray, utm33n):
        """write_crs adds a grid mapping coordinate and leaves the input alone."""
        written = projected_dataarray.srs.write_crs(utm33n)
        assert 'spatial_ref' in written.coords
        assert written.attrs['grid_mapping'] == 'spatial_ref'
        assert 'spatial_ref' not in projected_dataarray.coords
        assert 'grid_mapping' not in projected_dataarray.attrs
        assert written.srs.spatial_reference.is_same(utm33n)

    def test_write_crs_dataset(self, geographic_dataset, wgs84):
        written = geographic_dataset.srs.write_crs("EPSG:4326", grid_mapping_name="crs")
        assert written['temperature'].attrs['grid_mapping'] == 'crs'
        assert written.coords['crs'].attrs['epsg'] == 4326
        assert written.srs.spatial_reference.is_geographic()

    def test_transform_coords_projected(self, projected_dataarray, utm33n):
        """1-D x/y are expanded to a grid before transforming."""
        da = projected_dataarray.srs.write_crs(utm33n)
        out = da.srs.transform_coords("WGS84")
        assert out.coords['x_target'].dims == ('y', 'x')
        assert out.coords['x_target'].shape == (3, 5)
        # x = 500000 is the central meridian of zone 33
        assert out.coords['x_target'].values[0, 2] == pytest.approx(15.0, abs=1e-9)
        assert out.coords['y_target'].values[0, 2] == pytest.approx(0.0, abs=1e-9)
        assert np.all(out.coords['y_target'].values[2] > 0.0)

    def test_transform_coords_geographic_fallback(self, geographic_dataset):
        """lon/lat coordinates without a CRS are taken as WGS 84."""
        with pytest.warns(SRSWarning):
            out = geographic_dataset.srs.transform_coords(
                32633, x='lon', y='lat', x_out='easting', y_out='northing'
            )
        assert out.coords['easting'].dims == ('lat', 'lon')
        assert out.coords['easting'].values.shape == (4, 6)
        # lon 14 and 16 sit either side of the zone 33 central meridian
        eastings = out.coords['easting'].values
        assert np.all(eastings[:, 2] < 500000.0)
        assert np.all(eastings[:, 3] > 500000.0)
        assert eastings[0, 2] == pytest.approx(1000000.0 - eastings[0, 3], abs=1e-3)

    def test_transform_coords_missing(self, projected_dataarray, utm33n):
        da = projected_dataarray.srs.write_crs(utm33n)
        with pytest.raises(KeyError):
            da.srs.transform_coords("WGS84", x='lon', y='lat')

    def test_transform_coords_without_crs(self, projected_dataarray):
        with pytest.raises(ValueError):
            projected_dataarray.srs.transform_coords("WGS84")
