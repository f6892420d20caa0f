"""
Tests for the ESRI WKT dialect and legacy .prj files.
"""

import pytest

from pysrs import SpatialReference
from pysrs.exceptions import ParseError, UnsupportedCRSError
from pysrs.formats.esri import format_esri, morph_from_esri, morph_to_esri, parse_esri
from pysrs.formats.wkt import parse_wkt
from pysrs.units import US_FOOT_TO_METERS

LEGACY_UTM = """Projection    UTM
Zone          33
Datum         WGS84
Spheroid      WGS84
Units         METERS
Zunits        NO
Xshift        0.0
Yshift        0.0
Parameters
"""

LEGACY_LAMBERT = [
    "Projection LAMBERT",
    "Datum      NAD83",
    "Spheroid   GRS80",
    "Units      FEET",
    "Parameters",
    "33 0 0.0 /* 1st standard parallel",
    "45 0 0.0 /* 2nd standard parallel",
    "-96 30 0.0 /* central meridian",
    "39 0 0.0 /* latitude of projection's origin",
    "0.0 /* false easting (meters)",
    "0.0 /* false northing (meters)",
]


class TestMorph:
    """Test the in-place dialect rewrite."""

    def test_names(self, utm_wkt):
        """Datum, spheroid, unit and system names use ESRI spellings."""
        text = format_esri(parse_wkt(utm_wkt))
        assert text.startswith('PROJCS["WGS_1984_UTM_Zone_33N",GEOGCS["GCS_WGS_1984",'
                               'DATUM["D_WGS_1984",SPHEROID["WGS_1984",6378137,298.257223563]]')
        assert 'UNIT["Degree",0.0174532925199433]' in text
        assert 'PARAMETER["Central_Meridian",15]' in text
        assert text.endswith('UNIT["Meter",1]]')

    def test_strips_authority_towgs84_and_axis(self):
        srs = SpatialReference("WGS72")
        srs.morph_to_esri()
        text = srs.export_to_wkt()
        assert "TOWGS84" not in text
        assert "AUTHORITY" not in text
        assert srs.attr_value("DATUM") == ("D_WGS_1972", True)

    def test_idempotent(self, utm33n):
        once = morph_to_esri(utm33n.root.clone())
        twice = morph_to_esri(morph_to_esri(utm33n.root.clone()))
        assert twice.structurally_equal(once)

    def test_round_trip(self, utm33n):
        """Morphing there and back gives an equivalent system."""
        copy = utm33n.clone()
        copy.morph_to_esri()
        copy.morph_from_esri()
        assert copy.is_same(utm33n)
        assert copy.attr_value("DATUM") == ("WGS_1984", True)
        assert copy.linear_units() == ("metre", 1.0)

    def test_export_leaves_tree_untouched(self, utm33n):
        utm33n.export_to_esri()
        assert utm33n.root.get_node("AUTHORITY") is not None
        assert utm33n.attr_value("GEOGCS") == ("WGS 84", True)

    def test_lcc_1sp_gains_standard_parallel(self, wgs84):
        wgs84.set_lcc_1sp(45.0, 10.0, 0.99, 0.0, 0.0)
        morphed = morph_to_esri(wgs84.root.clone())
        assert morphed.get_node("PROJECTION").name == "Lambert_Conformal_Conic"
        names = [p.name for p in morphed.find_children("PARAMETER")]
        assert "Standard_Parallel_1" in names
        restored = SpatialReference.from_node(morph_from_esri(morphed))
        assert restored.projection_method() == "Lambert_Conformal_Conic_1SP"
        assert restored.find_projection_parameter("standard_parallel_1") == (None, False)
        assert restored.is_same(wgs84)

    def test_polar_stereographic(self, wgs84):
        wgs84.set_ps(-71.0, 0.0, 1.0, 0.0, 0.0)
        morphed = morph_to_esri(wgs84.root.clone())
        assert morphed.get_node("PROJECTION").name == "Stereographic_South_Pole"
        assert SpatialReference.from_node(morph_from_esri(morphed)).is_same(wgs84)

    def test_compound_is_rejected(self, utm33n):
        utm33n.set_vertical_cs("EGM96 height", "EGM96 geoid")
        with pytest.raises(UnsupportedCRSError):
            utm33n.export_to_esri()


class TestParseESRI:
    """Test ESRI WKT and legacy .prj import."""

    def test_esri_wkt(self, utm33n):
        srs = SpatialReference.from_esri(utm33n.export_to_esri())
        assert srs.is_same(utm33n)
        assert srs.utm_zone() == (33, True)

    def test_legacy_utm(self):
        srs = SpatialReference.from_esri(LEGACY_UTM)
        assert srs.utm_zone() == (33, True)
        assert srs.attr_value("DATUM") == ("WGS_1984", True)

    def test_legacy_negative_zone_is_south(self):
        srs = SpatialReference.from_esri(LEGACY_UTM.replace("Zone          33",
                                                            "Zone          -33"))
        assert srs.utm_zone() == (33, False)

    def test_legacy_lambert_feet(self):
        """Degree-minute-second parameters and feet are read."""
        srs = SpatialReference.from_esri(LEGACY_LAMBERT)
        assert srs.projection_method() == "Lambert_Conformal_Conic_2SP"
        assert srs.projection_parameter("central_meridian") == pytest.approx(-96.5)
        assert srs.projection_parameter("standard_parallel_2") == pytest.approx(45.0)
        assert srs.linear_units() == ("US survey foot", US_FOOT_TO_METERS)
        assert srs.attr_value("DATUM") == ("North_American_Datum_1983", True)

    def test_legacy_geographic(self, wgs84):
        srs = SpatialReference.from_esri(["Projection GEOGRAPHIC", "Datum WGS84",
                                          "Units DD", "Parameters"])
        assert srs.is_same(wgs84)

    @pytest.mark.parametrize("prj, error", [
        ("", ParseError),
        ("Datum WGS84\nUnits METERS", ParseError),
        ("Projection UTM\nDatum WGS84", ParseError),
        ("Projection TRANSVERSE\nParameters\n0.9996\n15 0 0", ParseError),
        ("Projection TRANSVERSE\nParameters\n0.9996\n15 0 x\n0\n0\n0", ParseError),
        ("Projection MOLLWEIDE\nParameters", UnsupportedCRSError),
    ])
    def test_legacy_errors(self, prj, error):
        with pytest.raises(error):
            parse_esri(prj)
