"""
Tests for SpatialReference: attribute access, builders, units, comparison,
lifecycle and validation.
"""

import math

import pytest

from pysrs import SpatialReference, authority, override
from pysrs.constants import NAD83_WKT, WGS84_WKT
from pysrs.exceptions import (
    ExportError,
    InvalidCRSError,
    ParameterNotFoundError,
    SRSWarning,
)
from pysrs.units import DEGREE_TO_RADIANS, US_FOOT_TO_METERS
from pysrs.validation import MISSING, ORDERING, PARAMETER

STATE_PLANE_FEET_WKT = (
    'PROJCS["NAD83 / Test zone (ftUS)",GEOGCS["NAD83",DATUM["North_American_Datum_1983",'
    'SPHEROID["GRS 1980",6378137,298.257222101]],PRIMEM["Greenwich",0],'
    'UNIT["degree",0.0174532925199433]],PROJECTION["Lambert_Conformal_Conic_2SP"],'
    'PARAMETER["standard_parallel_1",40],PARAMETER["standard_parallel_2",41.6666666666667],'
    'PARAMETER["latitude_of_origin",39.3333333333333],PARAMETER["central_meridian",-122],'
    'PARAMETER["false_easting",6561666.666666666],PARAMETER["false_northing",1640416.666666667],'
    'UNIT["US survey foot",0.304800609601219]]'
)

NO_PRIMEM_WKT = (
    'GEOGCS["g",DATUM["d",SPHEROID["s",6378137,298.257223563]],'
    'UNIT["degree",0.0174532925199433]]'
)


class TestAttributeAccess:
    """Test path-based attribute access."""

    def test_attr_value(self, wgs84):
        assert wgs84.attr_value("GEOGCS|DATUM") == ("WGS_1984", True)
        assert wgs84.attr_value("SPHEROID", 1) == ("6378137", True)
        assert wgs84.attr_value("DATUM|TOWGS84") == (None, False)
        assert wgs84.attr_node("PROJCS") is None

    def test_set_attr_value_replaces_child_zero(self, wgs84):
        """Setting a value keeps the rest of the node."""
        wgs84.set_attr_value("GEOGCS|DATUM", "Renamed")
        assert wgs84.attr_value("DATUM") == ("Renamed", True)
        assert wgs84.attr_node("DATUM").get_node("SPHEROID") is not None

    def test_set_attr_value_creates_path(self):
        srs = SpatialReference()
        srs.set_attr_value("PROJCS|GEOGCS|DATUM", "Custom")
        assert srs.root.kind == "PROJCS"
        assert srs.attr_value("PROJCS|GEOGCS|DATUM") == ("Custom", True)

    def test_set_attr_value_empty_path(self):
        with pytest.raises(ValueError):
            SpatialReference().set_attr_value("")


class TestBuilders:
    """Test CRS builders and projection setters."""

    def test_well_known_geographic(self):
        srs = SpatialReference()
        srs.set_well_known_geog_cs("NAD83")
        assert srs.is_geographic()
        assert srs.authority_code("GEOGCS") == "4269"
        assert srs.towgs84() == (0.0,) * 7

    def test_crs84_has_no_authority(self):
        srs = SpatialReference("CRS84")
        assert srs.is_geographic()
        assert srs.authority_name() is None

    def test_unknown_well_known_name(self):
        from pysrs.exceptions import UnsupportedCRSError
        with pytest.raises(UnsupportedCRSError):
            SpatialReference().set_well_known_geog_cs("Mars2000")

    def test_set_geog_cs(self):
        srs = SpatialReference()
        srs.set_geog_cs("My GCS", "My datum", "Sphere", 6371000.0, 0.0)
        assert srs.semi_major_axis() == 6371000.0
        assert srs.semi_minor_axis() == 6371000.0
        assert srs.angular_units() == ("degree", DEGREE_TO_RADIANS)
        assert srs.prime_meridian() == ("Greenwich", 0.0)
        with pytest.raises(InvalidCRSError):
            srs.set_geog_cs("x", "x", "x", -1.0, 0.0)

    def test_ellipsoid_axes(self, wgs84):
        assert wgs84.semi_major_axis() == 6378137.0
        assert wgs84.inverse_flattening() == 298.257223563
        assert wgs84.semi_minor_axis() == pytest.approx(6356752.314245, abs=1e-3)

    def test_set_utm(self, utm33n):
        """UTM wraps the GEOGCS and records a recognisable zone."""
        assert utm33n.is_projected()
        assert utm33n.utm_zone() == (33, True)
        assert utm33n.projection_parameter("central_meridian") == 15.0
        assert utm33n.projection_parameter("scale_factor") == 0.9996
        assert utm33n.linear_units() == ("metre", 1.0)
        assert utm33n.root.name == "UTM Zone 33, Northern Hemisphere"

    def test_set_utm_south(self, wgs84):
        wgs84.set_utm(56, north=False)
        assert wgs84.utm_zone() == (56, False)
        assert wgs84.projection_parameter("false_northing") == 10000000.0

    def test_set_utm_rejects_bad_zone(self, wgs84):
        with pytest.raises(InvalidCRSError):
            wgs84.set_utm(61)

    def test_setter_is_idempotent(self, wgs84):
        wgs84.set_lcc(33.0, 45.0, 39.0, -96.0, 0.0, 0.0)
        first = wgs84.export_to_wkt()
        wgs84.set_lcc(33.0, 45.0, 39.0, -96.0, 0.0, 0.0)
        assert wgs84.export_to_wkt() == first

    def test_changing_method_clears_parameters(self, utm33n):
        """Parameters of the previous method do not survive a method change."""
        utm33n.set_robinson(10.0, 0.0, 0.0)
        assert utm33n.projection_method() == "Robinson"
        assert utm33n.find_projection_parameter("scale_factor") == (None, False)
        assert utm33n.projection_parameter("longitude_of_center") == 10.0

    def test_parameter_lookup(self, utm33n):
        with pytest.raises(ParameterNotFoundError):
            utm33n.projection_parameter("azimuth")
        with pytest.raises(KeyError):
            utm33n.normalized_projection_parameter("azimuth")
        assert utm33n.projection_parameter("azimuth", 45.0) == 45.0
        assert utm33n.normalized_projection_parameter("central_meridian") == \
            pytest.approx(15.0 * DEGREE_TO_RADIANS)

    def test_normalized_parameter_round_trip(self, utm33n):
        utm33n.set_normalized_projection_parameter("central_meridian", math.radians(21.0))
        assert utm33n.projection_parameter("central_meridian") == pytest.approx(21.0)
        assert utm33n.utm_zone() == (34, True)

    def test_geocentric(self, wgs84):
        wgs84.set_geocentric_cs("Earth centred")
        assert wgs84.is_geocentric()
        assert wgs84.linear_units() == ("metre", 1.0)
        assert wgs84.attr_value("GEOCCS|DATUM") == ("WGS_1984", True)

    def test_vertical_makes_compound(self, wgs84):
        wgs84.set_vertical_cs("NAVD88 height", "North American Vertical Datum 1988")
        assert wgs84.is_compound()
        assert wgs84.is_vertical()
        assert wgs84.is_geographic()
        assert wgs84.validate().is_valid

    def test_compound_from_parts(self, utm33n):
        vertical = SpatialReference()
        vertical.set_vertical_cs("EGM96 height", "EGM96 geoid")
        compound = SpatialReference()
        compound.set_compound_cs("UTM + EGM96", utm33n, vertical)
        assert compound.is_projected()
        assert compound.is_same_vert_cs(vertical)
        with pytest.raises(InvalidCRSError):
            compound.set_compound_cs("bad", vertical, utm33n)

    def test_local_cs(self, local_cs):
        assert local_cs.is_local()
        assert not local_cs.is_projected()
        with pytest.raises(InvalidCRSError):
            local_cs.set_utm(33)

    def test_towgs84(self, nad27):
        assert nad27.towgs84() is None
        nad27.set_towgs84(-8.0, 160.0, 176.0)
        assert nad27.towgs84() == (-8.0, 160.0, 176.0, 0.0, 0.0, 0.0, 0.0)
        assert nad27.validate().is_valid

    def test_linear_units_need_a_projected_node(self, wgs84):
        with pytest.raises(InvalidCRSError):
            wgs84.set_linear_units("metre", 1.0)


class TestUnits:
    """Test unit changes and normalisation."""

    def test_units_update_parameters(self, utm33n):
        """Raw values change, normalised values do not."""
        utm33n.set_linear_units_and_update_parameters("US survey foot", US_FOOT_TO_METERS)
        assert utm33n.linear_units() == ("US survey foot", US_FOOT_TO_METERS)
        assert utm33n.projection_parameter("false_easting") == \
            pytest.approx(500000.0 / US_FOOT_TO_METERS)
        assert utm33n.normalized_projection_parameter("false_easting") == \
            pytest.approx(500000.0)
        assert utm33n.utm_zone() == (33, True)

    def test_plain_unit_change_keeps_raw_values(self, utm33n):
        utm33n.set_linear_units("foot", 0.3048)
        assert utm33n.projection_parameter("false_easting") == 500000.0

    def test_setters_take_metres(self, wgs84):
        """Projection setters convert metres into the current linear unit."""
        wgs84.set_tm(0.0, 9.0, 1.0, 0.0, 0.0)
        wgs84.set_linear_units("foot", 0.3048)
        wgs84.set_tm(0.0, 9.0, 1.0, 304.8, 0.0)
        assert wgs84.projection_parameter("false_easting") == pytest.approx(1000.0)

    def test_angular_units_in_grads(self, wgs84):
        wgs84.set_angular_units("grad", 0.015707963267949)
        wgs84.set_tm(0.0, 9.0, 1.0, 0.0, 0.0)
        assert wgs84.projection_parameter("central_meridian") == pytest.approx(10.0)
        assert wgs84.normalized_projection_parameter("central_meridian") == \
            pytest.approx(math.radians(9.0))


class TestComparison:
    """Test copies and semantic equality."""

    def test_clone_is_independent(self, utm33n):
        copy = utm33n.clone()
        copy.set_utm(34)
        assert utm33n.utm_zone() == (33, True)
        assert copy.utm_zone() == (34, True)
        assert not utm33n.is_same(copy)

    def test_clone_geog_cs(self, utm33n, wgs84):
        geog = utm33n.clone_geog_cs()
        assert geog.is_geographic()
        assert geog.is_same(wgs84)

    def test_same_ignores_names_and_authorities(self, utm33n, utm_wkt):
        """Unit names and authorities do not affect equality."""
        authority_form = SpatialReference.from_wkt(utm_wkt)
        assert utm33n.is_same(authority_form)
        renamed = utm33n.clone()
        renamed.set_linear_units("Meter", 1.0)
        assert utm33n.is_same(renamed)

    def test_same_detects_unit_change(self, utm33n):
        feet = utm33n.clone()
        feet.set_linear_units_and_update_parameters("US survey foot", US_FOOT_TO_METERS)
        assert not utm33n.is_same(feet)

    def test_datum_synonyms(self, wgs84):
        other = SpatialReference()
        other.set_geog_cs("WGS84", "WGS84", "WGS84", 6378137.0, 298.257223563)
        assert wgs84.is_same_geog_cs(other)
        nad83 = SpatialReference.from_wkt(NAD83_WKT)
        assert not wgs84.is_same_geog_cs(nad83)

    def test_empty_references(self):
        assert SpatialReference().is_same(SpatialReference())


class TestLifecycle:
    """Test reference counting and release."""

    def test_reference_counting(self):
        srs = SpatialReference("WGS84")
        assert srs.reference_count == 1
        assert srs.reference() == 2
        assert srs.dereference() == 1
        assert srs.release() == 0
        assert srs.is_released
        assert srs.root is None

    def test_released_reference_is_unusable(self):
        srs = SpatialReference("WGS84")
        srs.release()
        with pytest.raises(InvalidCRSError):
            srs.reference()
        with pytest.raises(ExportError):
            srs.export_to_wkt()
        with pytest.raises(InvalidCRSError):
            srs.import_from_wkt(WGS84_WKT)

    def test_context_manager_releases(self):
        with SpatialReference("WGS84") as srs:
            assert srs.is_geographic()
        assert srs.is_released

    def test_repr(self, utm33n):
        assert "PROJCS" in repr(utm33n)
        assert repr(SpatialReference()) == "<SpatialReference empty>"


class TestUserInput:
    """Test the catch-all importer."""

    def test_wkt_and_proj4(self, wgs84):
        assert SpatialReference.from_user_input(WGS84_WKT).is_same(wgs84)
        assert SpatialReference.from_user_input("+proj=longlat +datum=WGS84 +no_defs") \
            .is_same(wgs84)

    def test_esri_wkt_is_detected(self, wgs84):
        esri = ('GEOGCS["GCS_WGS_1984",DATUM["D_WGS_1984",SPHEROID["WGS_1984",6378137,'
                '298.257223563]],PRIMEM["Greenwich",0],UNIT["Degree",0.0174532925199433]]')
        srs = SpatialReference.from_user_input(esri)
        assert srs.attr_value("DATUM") == ("WGS_1984", True)
        assert srs.root.name == "WGS 84"
        assert srs.is_same(wgs84)

    def test_ogc_urn_crs84(self):
        srs = SpatialReference.from_user_input("urn:ogc:def:crs:OGC:1.3:CRS84")
        assert srs.is_geographic()

    def test_rejects_non_strings(self):
        from pysrs.exceptions import ParseError
        with pytest.raises(ParseError):
            SpatialReference().set_from_user_input(4326)
        with pytest.raises(ParseError):
            SpatialReference().set_from_user_input("   ")


class TestAuthority:
    """Test EPSG lookups backed by the pyproj database."""

    def test_import_from_epsg_strips_lat_long_axes(self):
        srs = SpatialReference.from_epsg(4326)
        assert srs.is_geographic()
        assert srs.root.get_node("AXIS") is None
        assert srs.epsg_treats_as_lat_long()

    def test_import_from_epsga_keeps_axes(self):
        srs = SpatialReference.from_epsga(4326)
        assert srs.root.get_node("AXIS") is not None
        assert srs.epsg_treats_as_lat_long()

    def test_projected_epsg(self):
        srs = SpatialReference("EPSG:32633")
        assert srs.utm_zone() == (33, True)
        assert not srs.epsg_treats_as_northing_easting()

    def test_auto_identify_utm(self, utm33n):
        """UTM on a well known datum is identified without the database."""
        assert utm33n.auto_identify_epsg() == 32633
        assert utm33n.authority_code() == "32633"
        assert utm33n.authority_code("GEOGCS") == "4326"

    def test_auto_identify_geographic(self):
        srs = SpatialReference()
        srs.set_geog_cs("x", "WGS_1984", "WGS 84", 6378137.0, 298.257223563)
        assert srs.auto_identify_epsg() == 4326

    def test_unknown_code(self):
        from pysrs.exceptions import UnsupportedCRSError
        with pytest.raises(UnsupportedCRSError):
            SpatialReference.from_epsg(999999)


class TestStatePlane:
    """Test State Plane zones with a stubbed authority table."""

    @pytest.fixture(autouse=True)
    def feet_zone(self, monkeypatch):
        monkeypatch.setattr(authority, "state_plane_wkt",
                            lambda zone, nad83=True: STATE_PLANE_FEET_WKT)

    def test_nad83_defaults_to_metres(self):
        srs = SpatialReference()
        srs.set_state_plane(401, nad83=True)
        assert srs.linear_units() == ("metre", 1.0)
        assert srs.projection_parameter("false_easting") == pytest.approx(2000000.0, abs=1e-3)

    def test_nad27_keeps_feet(self):
        srs = SpatialReference()
        srs.set_state_plane(401, nad83=False)
        assert srs.linear_units()[1] == US_FOOT_TO_METERS
        assert srs.normalized_projection_parameter("false_easting") == \
            pytest.approx(2000000.0, abs=1e-3)

    def test_explicit_units(self):
        srs = SpatialReference()
        srs.set_state_plane_with_units(401, True, "foot", 0.3048)
        assert srs.linear_units() == ("foot", 0.3048)
        assert srs.projection_parameter("false_easting") == \
            pytest.approx(2000000.0 / 0.3048, abs=1e-3)


class TestValidation:
    """Test validation and repair."""

    def test_valid_trees_are_clean(self, wgs84, utm33n):
        assert wgs84.validate().is_clean
        assert utm33n.validate().is_clean

    def test_missing_primem(self):
        srs = SpatialReference.from_wkt(NO_PRIMEM_WKT)
        report = srs.validate(strict=False)
        assert report.is_valid
        assert [f.category for f in report] == [MISSING]

    def test_fixup_inserts_primem(self):
        srs = SpatialReference.from_wkt(NO_PRIMEM_WKT)
        with pytest.warns(SRSWarning):
            repaired = srs.fixup(strict=False)
        assert len(repaired) == 1
        assert srs.root.find_child("PRIMEM") == 2
        assert srs.validate(strict=False).is_clean

    def test_fixup_strict_raises_and_keeps_tree(self):
        srs = SpatialReference.from_wkt(NO_PRIMEM_WKT)
        with pytest.raises(InvalidCRSError):
            srs.fixup(strict=True)
        assert srs.root.find_child("PRIMEM") == -1

    def test_fixup_ordering_uses_settings(self):
        text = ('GEOGCS["g",DATUM["d",SPHEROID["s",6378137,298.257223563]],'
                'UNIT["degree",0.0174532925199433],PRIMEM["Greenwich",0]]')
        srs = SpatialReference.from_wkt(text)
        with override(strict=True):
            with pytest.raises(InvalidCRSError):
                srs.fixup_ordering()
        with pytest.warns(SRSWarning):
            findings = srs.fixup_ordering()
        assert [f.category for f in findings] == [ORDERING]
        assert srs.root.find_child("PRIMEM") < srs.root.find_child("UNIT")

    def test_fixup_ordering_puts_extension_before_authority(self, utm33n):
        text = utm33n.export_to_wkt()[:-1] + \
            ',AUTHORITY["EPSG","32633"],EXTENSION["PROJ4","+proj=utm +zone=33 +datum=WGS84"]]'
        srs = SpatialReference.from_wkt(text)
        with pytest.warns(SRSWarning):
            findings = srs.fixup_ordering()
        assert [f.category for f in findings] == [ORDERING]
        assert srs.root.find_child("EXTENSION") < srs.root.find_child("AUTHORITY")
        assert srs.export_to_wkt().endswith(
            'EXTENSION["PROJ4","+proj=utm +zone=33 +datum=WGS84"],AUTHORITY["EPSG","32633"]]')

    def test_structural_problem(self, utm33n):
        utm33n.root.get_node("PROJECTION").detach()
        report = utm33n.validate(strict=False)
        assert not report.is_valid
        with pytest.raises(InvalidCRSError):
            utm33n.validate(strict=True)

    def test_foreign_parameter(self, utm33n):
        utm33n.set_projection_parameter("azimuth", 30.0)
        report = utm33n.validate(strict=False)
        assert report.is_valid
        assert len(report.by_category(PARAMETER)) == 1

    def test_strip_ct_params(self, utm_wkt):
        srs = SpatialReference.from_wkt(utm_wkt)
        srs.strip_ct_params()
        text = srs.export_to_wkt()
        assert "AUTHORITY" not in text
        assert "AXIS" not in text
        assert srs.utm_zone() == (33, True)
