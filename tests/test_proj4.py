"""
Tests for PROJ.4 import and export.
"""

import pytest

from pysrs import SpatialReference
from pysrs.exceptions import ExportError, ParseError, UnsupportedCRSError
from pysrs.formats.proj4 import CUSTOM_METHOD, format_proj4, parse_proj4
from pysrs.units import US_FOOT_TO_METERS


class TestProj4Export:
    """Test PROJ.4 strings produced from trees."""

    def test_utm(self, utm33n):
        assert utm33n.export_to_proj4() == "+proj=utm +zone=33 +datum=WGS84 +units=m +no_defs"

    def test_geographic(self, wgs84, nad27):
        assert wgs84.export_to_proj4() == "+proj=longlat +datum=WGS84 +no_defs"
        assert nad27.export_to_proj4() == "+proj=longlat +datum=NAD27 +no_defs"

    def test_towgs84_is_shortened(self, nad27):
        """Seven-term shifts without rotation or scale export three values."""
        nad27.set_attr_value("DATUM", "Custom")
        nad27.set_towgs84(-8.0, 160.0, 176.0)
        assert nad27.export_to_proj4() == \
            "+proj=longlat +ellps=clrk66 +towgs84=-8,160,176 +no_defs"

    def test_local_cannot_be_exported(self, local_cs):
        with pytest.raises(ExportError):
            local_cs.export_to_proj4()

    def test_empty(self):
        with pytest.raises(ExportError):
            format_proj4(None)

    def test_compound_exports_horizontal_part(self, utm33n):
        utm33n.set_vertical_cs("EGM96 height", "EGM96 geoid")
        assert utm33n.export_to_proj4().startswith("+proj=utm +zone=33 ")


class TestProj4Import:
    """Test PROJ.4 parsing."""

    @pytest.mark.parametrize("text", [
        "+proj=utm +zone=33 +south +datum=WGS84 +units=m +no_defs",
        "+proj=lcc +lat_1=33 +lat_2=45 +lat_0=39 +lon_0=-96 +x_0=0 +y_0=0 "
        "+datum=NAD83 +units=m +no_defs",
        "+proj=tmerc +lat_0=0 +lon_0=9 +k=1 +x_0=500000 +y_0=0 +ellps=intl "
        "+units=us-ft +no_defs",
        "+proj=geocent +datum=WGS84 +units=m +no_defs",
        "+proj=robin +lon_0=0 +x_0=0 +y_0=0 +datum=WGS84 +units=m +no_defs",
    ])
    def test_round_trip(self, text):
        assert SpatialReference.from_proj4(text).export_to_proj4() == text

    def test_false_easting_is_in_metres(self):
        """+x_0 stays in metres whatever +units says."""
        srs = SpatialReference.from_proj4(
            "+proj=tmerc +lat_0=0 +lon_0=9 +k=1 +x_0=500000 +y_0=0 +ellps=intl +units=us-ft")
        assert srs.linear_units()[1] == US_FOOT_TO_METERS
        assert srs.projection_parameter("false_easting") == \
            pytest.approx(500000.0 / US_FOOT_TO_METERS)

    def test_utm_zone(self):
        srs = SpatialReference("+proj=utm +zone=18 +datum=NAD83")
        assert srs.utm_zone() == (18, True)
        assert srs.attr_value("DATUM") == ("North_American_Datum_1983", True)

    def test_unknown_keys_are_kept(self):
        """Options without a meaning in the tree come back on export."""
        text = "+proj=utm +zone=33 +datum=WGS84 +units=m +over +foo=bar +no_defs"
        srs = SpatialReference.from_proj4(text)
        extension = srs.root.get_node("EXTENSION")
        assert extension.child_value(1) == "+over +foo=bar"
        assert srs.export_to_proj4() == text

    def test_unknown_projection_is_verbatim(self):
        text = "+proj=healpix +lon_0=0 +ellps=WGS84 +no_defs"
        srs = SpatialReference.from_proj4(text)
        assert srs.projection_method() == CUSTOM_METHOD
        assert srs.export_to_proj4() == text

    def test_ellipsoid_parameters(self):
        srs = SpatialReference.from_proj4("+proj=longlat +a=6371000 +b=6371000 +no_defs")
        assert srs.semi_major_axis() == 6371000.0
        assert srs.inverse_flattening() == 0.0
        assert srs.export_to_proj4() == "+proj=longlat +a=6371000 +b=6371000 +no_defs"

    def test_prime_meridian(self):
        srs = SpatialReference.from_proj4("+proj=longlat +ellps=intl +pm=paris")
        name, offset = srs.prime_meridian()
        assert name == "Paris"
        assert offset == pytest.approx(2.337229166667)
        assert "+pm=paris" in srs.export_to_proj4()

    def test_init_epsg(self):
        srs = SpatialReference.from_proj4("+init=epsg:4326")
        assert srs.is_geographic()
        assert srs.root.get_node("AXIS") is None

    @pytest.mark.parametrize("text, error", [
        ("", ParseError),
        ("+lat_0=10 +lon_0=5", ParseError),
        ("+proj=utm +datum=WGS84", ParseError),
        ("+proj=longlat +towgs84=1,2", ParseError),
        ("+proj=tmerc +lat_0=north", ParseError),
        ("+proj=longlat +ellps=nosuch", UnsupportedCRSError),
        ("+proj=merc +datum=WGS84 +units=furlong", UnsupportedCRSError),
    ])
    def test_errors(self, text, error):
        with pytest.raises(error):
            parse_proj4(text)
