"""
Tests for spatial reference discovery on xarray and pandas objects.
"""

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from pysrs import SpatialReference
from pysrs.constants import WGS84_WKT
from pysrs.crs.crs_manager import CRSManager, as_spatial_reference
from pysrs.exceptions import IncompatibleCRSError, SRSWarning


class TestAsSpatialReference:
    """Test coercion of user values."""

    def test_passthrough(self, wgs84):
        assert as_spatial_reference(wgs84) is wgs84

    def test_strings(self, wgs84):
        assert as_spatial_reference("WGS84").is_same(wgs84)
        assert as_spatial_reference(WGS84_WKT).is_same(wgs84)

    def test_epsg_codes(self):
        """Integers and digit strings are EPSG codes."""
        assert as_spatial_reference(32633).utm_zone() == (33, True)
        assert as_spatial_reference(" 4326 ").is_geographic()
        assert as_spatial_reference(np.int64(4326)).is_geographic()

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            as_spatial_reference(4326.0)
        with pytest.raises(TypeError):
            as_spatial_reference(None)


class TestCRSManager:
    """Test the CRSManager class functionality."""

    def test_crs_detection_from_xarray_with_crs_coord(self, geographic_dataset, wgs84):
        """Test CRS detection from xarray with CRS coordinate."""
        crs_manager = CRSManager()
        ds = geographic_dataset.assign_coords(crs=([], 1))
        ds.coords['crs'].attrs['crs_wkt'] = WGS84_WKT

        detected = crs_manager.parse_srs_from_xarray(ds)
        assert detected is not None
        assert detected.is_same(wgs84)
        assert detected.authority_code() == "4326"

    def test_crs_detection_from_xarray_with_attrs(self, geographic_dataset):
        """Test CRS detection from xarray attributes."""
        crs_manager = CRSManager()
        geographic_dataset.attrs['crs'] = 'EPSG:4326'

        detected = crs_manager.parse_srs_from_xarray(geographic_dataset)
        assert detected is not None
        assert detected.is_geographic()

    def test_crs_detection_from_grid_mapping(self, projected_dataarray, utm33n):
        """Test CRS detection through a CF grid_mapping variable."""
        crs_manager = CRSManager()
        ds = projected_dataarray.to_dataset()
        ds['transverse_mercator'] = xr.Variable(
            (), 0, attrs={'spatial_ref': utm33n.export_to_wkt()}
        )
        ds['elevation'].attrs['grid_mapping'] = 'transverse_mercator'

        detected = crs_manager.parse_srs_from_xarray(ds)
        assert detected is not None
        assert detected.utm_zone() == (33, True)

    def test_unusable_attribute_is_skipped(self, geographic_dataset):
        """A broken attribute falls through to the next candidate."""
        crs_manager = CRSManager()
        geographic_dataset.attrs['crs_wkt'] = 'GEOGCS["broken"'
        geographic_dataset.attrs['proj4'] = '+proj=longlat +datum=WGS84'

        detected = crs_manager.parse_srs_from_xarray(geographic_dataset)
        assert detected is not None
        assert detected.is_geographic()

    def test_no_crs_on_xarray(self, projected_dataarray):
        assert CRSManager().parse_srs_from_xarray(projected_dataarray) is None

    def test_crs_detection_from_dataframe(self, point_dataframe):
        """Test CRS detection from DataFrame attrs."""
        crs_manager = CRSManager()
        point_dataframe.attrs = {'crs': 'EPSG:32633'}

        detected = crs_manager.parse_srs_from_dataframe(point_dataframe)
        assert detected is not None
        assert detected.is_projected()

    def test_dataframe_lat_lon_columns_assume_wgs84(self, point_dataframe, wgs84):
        """Latitude/longitude columns imply WGS 84 with a warning."""
        crs_manager = CRSManager()
        with pytest.warns(SRSWarning, match="Assuming WGS 84"):
            detected = crs_manager.parse_srs_from_dataframe(point_dataframe)
        assert detected.is_same(wgs84)
        assert detected is not crs_manager.wgs84

    def test_dataframe_without_crs(self):
        df = pd.DataFrame({'easting': [1.0], 'northing': [2.0]})
        assert CRSManager().parse_srs_from_dataframe(df) is None

    def test_detect_coordinate_system_type(self, wgs84, utm33n, local_cs):
        """Test coordinate system type detection."""
        crs_manager = CRSManager()
        geocentric = wgs84.clone()
        geocentric.set_geocentric_cs("ECEF")
        vertical = SpatialReference()
        vertical.set_vertical_cs("height", "geoid")

        assert crs_manager.detect_coordinate_system_type(wgs84) == 'geographic'
        assert crs_manager.detect_coordinate_system_type(utm33n) == 'projected'
        assert crs_manager.detect_coordinate_system_type(local_cs) == 'local'
        assert crs_manager.detect_coordinate_system_type(geocentric) == 'geocentric'
        assert crs_manager.detect_coordinate_system_type(vertical) == 'other'
        assert crs_manager.detect_coordinate_system_type(None) == 'unknown'
        assert crs_manager.detect_coordinate_system_type(SpatialReference()) == 'unknown'

    def test_validate_coordinate_arrays(self, wgs84, utm33n):
        """Test coordinate array validation."""
        crs_manager = CRSManager()
        x = np.array([-10.0, 0.0, 10.0])
        y = np.array([40.0, 45.0, 50.0])

        assert crs_manager.validate_coordinate_arrays(x, y, wgs84)
        assert not crs_manager.validate_coordinate_arrays(x, y[:2], wgs84)
        assert not crs_manager.validate_coordinate_arrays(x, np.array([40.0, np.nan, 50.0]))
        assert not crs_manager.validate_coordinate_arrays(x, y + 100.0, wgs84)
        assert crs_manager.validate_coordinate_arrays(x * 1e5, y * 1e5, utm33n)

    def test_detect_srs_from_coordinates(self):
        """Test the lat/lon fallback."""
        crs_manager = CRSManager()
        lon = np.linspace(-10, 10, 5)
        lat = np.linspace(40, 50, 4)

        with pytest.warns(SRSWarning):
            detected = crs_manager.detect_srs_from_coordinates(lon, lat, 'lon', 'lat')
        assert detected.is_geographic()
        assert crs_manager.detect_srs_from_coordinates(lon, lat, 'x', 'y') is None
        with pytest.raises(ValueError):
            crs_manager.detect_srs_from_coordinates(lon * 100, lat, 'longitude', 'latitude')

    def test_get_srs_from_source(self, geographic_dataset, projected_dataarray):
        """Test the strict but helpful policy."""
        crs_manager = CRSManager()
        with pytest.warns(SRSWarning):
            srs = crs_manager.get_srs_from_source(
                geographic_dataset,
                geographic_dataset['lon'].values,
                geographic_dataset['lat'].values,
                'lon', 'lat',
            )
        assert srs.is_geographic()

        with pytest.raises(ValueError, match="No coordinate reference system"):
            crs_manager.get_srs_from_source(
                projected_dataarray,
                projected_dataarray['x'].values,
                projected_dataarray['y'].values,
            )

    def test_transform_coordinates(self):
        """Test coordinate transformation between EPSG codes."""
        crs_manager = CRSManager()
        x, y = crs_manager.transform_coordinates(
            np.array([15.0, 15.0]), np.array([0.0, 10.0]), 'WGS84', 32633
        )
        assert x[0] == pytest.approx(500000.0, abs=1e-3)
        assert y[1] > 1.0e6

    def test_ensure_srs_compatibility(self, wgs84):
        crs_manager = CRSManager()
        assert crs_manager.ensure_srs_compatibility(wgs84, wgs84) == (wgs84, wgs84)
        with pytest.raises(IncompatibleCRSError):
            crs_manager.ensure_srs_compatibility(None, wgs84)
        with pytest.raises(IncompatibleCRSError):
            crs_manager.ensure_srs_compatibility(wgs84, SpatialReference())

    def test_to_attrs(self, wgs84, utm33n):
        crs_manager = CRSManager()
        attrs = crs_manager.to_attrs(wgs84)
        assert attrs['crs_wkt'] == WGS84_WKT
        assert attrs['spatial_ref'] == WGS84_WKT
        assert attrs['epsg'] == 4326
        assert 'epsg' not in crs_manager.to_attrs(utm33n)
