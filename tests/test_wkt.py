"""
Tests for WKT import and export.
"""

import pytest

from pysrs import SpatialReference
from pysrs.constants import WGS84_WKT
from pysrs.exceptions import ExportError, ParseError
from pysrs.formats.wkt import format_pretty_wkt, format_wkt, parse_wkt

class TestWKTParsing:
    """Test the WKT reader."""

    def test_round_trip_geographic(self):
        """Well-formed WKT exports back to identical text."""
        assert format_wkt(parse_wkt(WGS84_WKT)) == WGS84_WKT

    def test_round_trip_projected(self, utm_wkt):
        assert format_wkt(parse_wkt(utm_wkt)) == utm_wkt

    def test_parentheses_and_whitespace(self):
        """Round brackets and surrounding whitespace are accepted."""
        text = '  GEOGCS ( "g" , DATUM("d", SPHEROID("s", 6378137, 298.257223563)),' \
               ' PRIMEM("Greenwich", 0), UNIT("degree", 0.0174532925199433) )  '
        root = parse_wkt(text)
        assert root.kind == "GEOGCS"
        assert root.get_node("SPHEROID").child_value(2) == "298.257223563"

    def test_unknown_keyword_is_opaque(self):
        """Unknown fragments survive a round trip verbatim."""
        text = WGS84_WKT[:-1] + ',VENDOR_EXT["flavour",SUB["a",1],2]]'
        root = parse_wkt(text)
        opaque = root.get_child(root.child_count - 1)
        assert opaque.is_opaque
        assert opaque.value == "VENDOR_EXT"
        assert opaque.raw == 'VENDOR_EXT["flavour",SUB["a",1],2]'
        assert format_wkt(root) == text

    def test_escaped_quotes(self):
        text = 'LOCAL_CS["say ""hi""",UNIT["metre",1]]'
        root = parse_wkt(text)
        assert root.name == 'say "hi"'
        assert format_wkt(root) == text

    @pytest.mark.parametrize("text", [
        'GEOGCS["WGS 84"',
        'GEOGCS["WGS 84"]]',
        'GEOGCS["WGS 84",DATUM["x")]',
        'GEOGCS["unterminated]',
        'GEOGCS[]',
        'NOT_A_CS["x"]',
        '',
    ])
    def test_malformed_wkt(self, text):
        with pytest.raises(ParseError):
            parse_wkt(text)

    def test_parse_error_reports_offset(self):
        """The error carries the offset and line of the problem."""
        text = 'GEOGCS["WGS 84",\nDATUM["x",SPHEROID["s",1,2]],]'
        with pytest.raises(ParseError) as info:
            parse_wkt(text)
        assert info.value.offset is not None
        assert info.value.offset > text.index("\n")
        assert info.value.line == 2

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_wkt("GEOGCS[")


class TestWKTExport:
    """Test the WKT writers."""

    def test_pretty_wkt_indents(self):
        root = parse_wkt(WGS84_WKT)
        pretty = format_pretty_wkt(root, indent=2)
        lines = pretty.splitlines()
        assert lines[0] == 'GEOGCS["WGS 84",'
        assert lines[1].startswith('  DATUM["WGS_1984",')
        assert lines[2].startswith('    SPHEROID[')
        assert parse_wkt(pretty).structurally_equal(root)

    def test_pretty_wkt_simplify(self, utm_wkt):
        """Simplified output drops authorities and axes but not the tree's own nodes."""
        root = parse_wkt(utm_wkt)
        simple = format_pretty_wkt(root, simplify=True)
        assert "AUTHORITY" not in simple
        assert "AXIS" not in simple
        assert root.get_node("AUTHORITY") is not None

    def test_export_empty(self):
        with pytest.raises(ExportError):
            format_wkt(None)
        with pytest.raises(ExportError):
            SpatialReference().export_to_wkt()

    def test_spatial_reference_wkt_methods(self, utm_wkt):
        srs = SpatialReference.from_wkt(utm_wkt)
        assert srs.export_to_wkt() == utm_wkt
        assert srs.export_to_pretty_wkt(indent=3).splitlines()[1].startswith("   GEOGCS[")
        assert str(srs).startswith('PROJCS["WGS 84 / UTM zone 33N",')
