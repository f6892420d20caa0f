"""
Test fixtures for PySRS.

This module contains shared fixtures: spatial references built from the
well known definitions and small xarray/pandas objects carrying them.
"""

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from pysrs import SpatialReference
from pysrs.constants import NAD27_WKT, WGS84_WKT


UTM_WKT = (
    'PROJCS["WGS 84 / UTM zone 33N",GEOGCS["WGS 84",DATUM["WGS_1984",'
    'SPHEROID["WGS 84",6378137,298.257223563,AUTHORITY["EPSG","7030"]],'
    'AUTHORITY["EPSG","6326"]],PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.0174532925199433,AUTHORITY["EPSG","9122"]],'
    'AUTHORITY["EPSG","4326"]],PROJECTION["Transverse_Mercator"],'
    'PARAMETER["latitude_of_origin",0],PARAMETER["central_meridian",15],'
    'PARAMETER["scale_factor",0.9996],PARAMETER["false_easting",500000],'
    'PARAMETER["false_northing",0],UNIT["metre",1,AUTHORITY["EPSG","9001"]],'
    'AXIS["Easting",EAST],AXIS["Northing",NORTH],AUTHORITY["EPSG","32633"]]'
)


@pytest.fixture
def utm_wkt():
    """WKT of EPSG:32633 as GDAL writes it, with axes and authorities."""
    return UTM_WKT


@pytest.fixture
def wgs84():
    """Geographic WGS 84 without axis nodes."""
    return SpatialReference.from_wkt(WGS84_WKT)


@pytest.fixture
def nad27():
    """Geographic NAD27 (Clarke 1866, no TOWGS84)."""
    return SpatialReference.from_wkt(NAD27_WKT)


@pytest.fixture
def utm33n(wgs84):
    """WGS 84 / UTM zone 33N built with the setters."""
    srs = wgs84.clone()
    srs.set_utm(33, north=True)
    return srs


@pytest.fixture
def local_cs():
    """A local engineering system in metres."""
    srs = SpatialReference()
    srs.set_local_cs("Site grid")
    srs.set_linear_units("metre", 1.0)
    return srs


@pytest.fixture
def geographic_dataset():
    """Dataset on a small lon/lat grid with no CRS attached."""
    lons = np.linspace(10, 20, 6)
    lats = np.linspace(-5, 5, 4)
    data = np.random.rand(4, 6)
    return xr.Dataset(
        {'temperature': (['lat', 'lon'], data)},
        coords={'lon': lons, 'lat': lats},
    )


@pytest.fixture
def projected_dataarray():
    """DataArray on an x/y grid in metres with no CRS attached."""
    x = np.linspace(400000, 600000, 5)
    y = np.linspace(0, 100000, 3)
    return xr.DataArray(
        np.random.rand(3, 5),
        dims=['y', 'x'],
        coords={'x': x, 'y': y},
        name='elevation',
    )


@pytest.fixture
def point_dataframe():
    """DataFrame of points with latitude/longitude columns."""
    return pd.DataFrame({
        'latitude': [40.0, 41.0, 42.0],
        'longitude': [-10.0, -9.0, -8.0],
        'value': [1.0, 2.0, 3.0],
    })
