"""
Tests for GML, URL fetching, MapInfo and ERMapper definitions.
"""

import pytest
import requests

from pysrs import SpatialReference, override
from pysrs.constants import WGS84_WKT
from pysrs.exceptions import ExportError, ParseError, UnsupportedCRSError
from pysrs.formats import xml as gml
from pysrs.formats.erm import format_erm, parse_erm
from pysrs.formats.mapinfo import format_mapinfo
from pysrs.units import US_FOOT_TO_METERS


class FakeResponse:
    """Minimal stand-in for a requests response."""

    def __init__(self, text, status=200):
        self.text = text
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


class TestGML:
    """Test GML documents."""

    def test_geographic_round_trip(self, wgs84):
        text = wgs84.export_to_xml()
        assert "GeographicCRS" in text
        assert "inverseFlattening" in text
        srs = SpatialReference.from_xml(text)
        assert srs.is_same(wgs84)
        assert srs.authority_code("GEOGCS") == "4326"

    def test_projected_round_trip(self, utm33n):
        text = utm33n.export_to_xml()
        assert "urn:ogc:def:method:EPSG::9807" in text
        srs = SpatialReference.from_xml(text)
        assert srs.is_same(utm33n)
        assert srs.utm_zone() == (33, True)

    def test_projected_feet(self, utm33n):
        """The axis unit of measure carries the linear unit."""
        utm33n.set_linear_units_and_update_parameters("US survey foot", US_FOOT_TO_METERS)
        srs = SpatialReference.from_xml(utm33n.export_to_xml())
        assert srs.linear_units()[1] == pytest.approx(US_FOOT_TO_METERS)
        assert srs.is_same(utm33n)

    def test_detected_by_user_input(self, wgs84):
        assert SpatialReference.from_user_input(wgs84.export_to_xml()).is_same(wgs84)

    def test_unsupported(self, local_cs, wgs84):
        with pytest.raises(UnsupportedCRSError):
            local_cs.export_to_xml()
        with pytest.raises(UnsupportedCRSError):
            gml.parse_xml('<gml:VerticalCRS xmlns:gml="http://www.opengis.net/gml"/>')
        wgs84.set_robinson(0.0, 0.0, 0.0)
        with pytest.raises(UnsupportedCRSError):
            wgs84.export_to_xml()

    @pytest.mark.parametrize("text", [
        "<gml:GeographicCRS",
        '<gml:GeographicCRS xmlns:gml="http://www.opengis.net/gml"/>',
        '<gml:ProjectedCRS xmlns:gml="http://www.opengis.net/gml"/>',
    ])
    def test_malformed(self, text):
        with pytest.raises(ParseError):
            gml.parse_xml(text)


class TestFetch:
    """Test URL imports."""

    def test_injected_fetcher(self, wgs84):
        seen = []

        def fetcher(url):
            seen.append(url)
            return WGS84_WKT

        srs = SpatialReference()
        srs.import_from_url("http://example.test/4326.wkt", fetcher=fetcher)
        assert seen == ["http://example.test/4326.wkt"]
        assert srs.is_same(wgs84)

    def test_fetcher_errors_become_parse_errors(self):
        def broken(url):
            raise OSError("connection refused")

        with pytest.raises(ParseError):
            gml.fetch_definition("http://example.test/", broken)
        with pytest.raises(ParseError):
            gml.fetch_definition("http://example.test/", lambda url: "  ")
        with pytest.raises(ParseError):
            gml.fetch_definition("", lambda url: WGS84_WKT)

    def test_requests_default(self, monkeypatch, wgs84):
        """The default fetcher uses requests with the configured timeout."""
        calls = []

        def fake_get(url, timeout):
            calls.append((url, timeout))
            return FakeResponse(WGS84_WKT)

        monkeypatch.setattr(gml.requests, "get", fake_get)
        with override(fetch_timeout=5):
            srs = SpatialReference()
            srs.import_from_url("http://example.test/wgs84")
        assert calls == [("http://example.test/wgs84", 5)]
        assert srs.is_same(wgs84)

    def test_requests_http_error(self, monkeypatch):
        monkeypatch.setattr(gml.requests, "get",
                            lambda url, timeout: FakeResponse("", status=404))
        with pytest.raises(ParseError):
            gml.fetch_definition("http://example.test/missing")


class TestMapInfo:
    """Test MapInfo CoordSys clauses."""

    def test_geographic(self, wgs84, nad27):
        assert wgs84.export_to_mi_coord_sys() == "Earth Projection 1, 104"
        assert nad27.export_to_mi_coord_sys() == "Earth Projection 1, 62"

    def test_utm(self, utm33n):
        assert utm33n.export_to_mi_coord_sys() == \
            'Earth Projection 8, 104, "m", 15, 0, 0.9996, 500000, 0'

    def test_custom_datum(self):
        srs = SpatialReference()
        srs.set_geog_cs("Custom", "Custom datum", "International 1924", 6378388.0, 297.0)
        srs.set_towgs84(-87.0, -98.0, -121.0)
        assert srs.export_to_mi_coord_sys() == "Earth Projection 1, 999, 4, -87, -98, -121"

    def test_lcc_feet(self, nad27):
        nad27.set_lcc(33.0, 45.0, 39.0, -96.0, 0.0, 0.0)
        nad27.set_linear_units("US survey foot", US_FOOT_TO_METERS)
        assert format_mapinfo(nad27.root) == \
            'Earth Projection 3, 62, "survey ft", -96, 39, 33, 45, 0, 0'

    def test_local(self, local_cs):
        assert local_cs.export_to_mi_coord_sys() == 'NonEarth Units "m"'

    def test_unsupported(self, utm33n):
        utm33n.set_geos(0.0, 35785831.0, 0.0, 0.0)
        with pytest.raises(UnsupportedCRSError):
            utm33n.export_to_mi_coord_sys()
        with pytest.raises(ExportError):
            SpatialReference().export_to_mi_coord_sys()


class TestERMapper:
    """Test ERMapper triples."""

    def test_export(self, wgs84, utm33n, local_cs):
        assert wgs84.export_to_erm() == ("GEODETIC", "WGS84", "METERS")
        assert utm33n.export_to_erm() == ("NUTM33", "WGS84", "METERS")
        assert local_cs.export_to_erm() == ("RAW", "RAW", "METERS")

    def test_southern_utm(self, utm33n):
        srs = SpatialReference.from_node(parse_erm("SUTM33", "WGS84", "METERS"))
        assert srs.utm_zone() == (33, False)
        assert not srs.is_same(utm33n)

    def test_round_trip_feet(self, nad27):
        nad27.set_utm(5)
        nad27.set_linear_units_and_update_parameters("US survey foot", US_FOOT_TO_METERS)
        triple = format_erm(nad27.root)
        assert triple == ("NUTM05", "NAD27", "FEET")
        srs = SpatialReference()
        srs.import_from_erm(*triple)
        assert srs.is_same(nad27)

    def test_raw(self):
        assert SpatialReference.from_node(parse_erm("RAW", "RAW", "METERS")).is_local()

    @pytest.mark.parametrize("triple, error", [
        (("", "WGS84", "METERS"), ParseError),
        (("NUTM33", "OSGB36", "METERS"), UnsupportedCRSError),
        (("NUTM33", "WGS84", "FURLONGS"), UnsupportedCRSError),
        (("LAMBERT", "WGS84", "METERS"), UnsupportedCRSError),
    ])
    def test_errors(self, triple, error):
        with pytest.raises(error):
            parse_erm(*triple)

    def test_projection_without_name(self, wgs84):
        wgs84.set_robinson(0.0, 0.0, 0.0)
        with pytest.raises(UnsupportedCRSError):
            wgs84.export_to_erm()
