"""
Tests for the USGS GCTP and PCI fixed-array formats.
"""

import numpy as np
import pytest

from pysrs import SpatialReference, override
from pysrs.config import Settings
from pysrs.exceptions import (
    ExportError,
    ParameterArrayLengthError,
    ParseError,
    UnsupportedCRSError,
)
from pysrs.formats.pci import PCI_PARAMETER_COUNT, format_pci, parse_pci
from pysrs.formats.usgs import (
    LAMCC,
    UTM,
    USGS_PARAMETER_COUNT,
    format_usgs,
    pack_dms,
    parse_usgs,
    unpack_dms,
)
from pysrs.units import US_FOOT_TO_METERS


class TestPackedDMS:
    """Test DDDMMMSSS.SS packing."""

    @pytest.mark.parametrize("degrees, packed", [
        (15.5, 15030000.0),
        (-96.0, -96000000.0),
        (0.0, 0.0),
        (45.2575, 45015027.0),
    ])
    def test_pack(self, degrees, packed):
        assert pack_dms(degrees) == pytest.approx(packed)
        assert unpack_dms(packed) == pytest.approx(degrees)

    def test_seconds_carry_into_minutes(self):
        """Rounding never produces 60 seconds."""
        packed = pack_dms(10.0 + 59.0 / 60.0 + 59.99999999 / 3600.0)
        assert packed == pytest.approx(11000000.0)


class TestUSGS:
    """Test GCTP definitions."""

    def test_utm_export(self, utm33n):
        code, zone, params, datum = utm33n.export_to_usgs()
        assert (code, zone, datum) == (UTM, 33, 12)
        assert params.shape == (USGS_PARAMETER_COUNT,)
        assert params.dtype == np.float64
        assert not params.any()

    def test_southern_zone_is_negative(self, wgs84):
        wgs84.set_utm(56, north=False)
        assert wgs84.export_to_usgs()[1] == -56
        srs = SpatialReference()
        srs.import_from_usgs(UTM, -56, np.zeros(15), 12)
        assert srs.utm_zone() == (56, False)

    def test_utm_zone_from_point(self):
        """Zone 0 picks the zone of the longitude/latitude in params[0:2]."""
        params = np.zeros(15)
        params[0], params[1] = pack_dms(15.5), pack_dms(-10.0)
        srs = SpatialReference.from_node(parse_usgs(UTM, 0, params, 12))
        assert srs.utm_zone() == (33, False)

    def test_utm_zone_from_point_needs_standard_spheroid(self):
        """params[0:2] cannot hold both the point and a custom spheroid."""
        params = np.zeros(15)
        params[0], params[1] = pack_dms(15.5), pack_dms(-10.0)
        with pytest.raises(ParseError):
            parse_usgs(UTM, 0, params, -1)

    def test_lcc_round_trip(self, wgs84):
        wgs84.set_lcc(33.0, 45.0, 39.0, -96.0, 0.0, 0.0)
        code, zone, params, datum = wgs84.export_to_usgs()
        assert code == LAMCC
        assert params[2] == pytest.approx(33000000.0)
        assert params[4] == pytest.approx(-96000000.0)
        restored = SpatialReference()
        restored.import_from_usgs(code, zone, params, datum)
        assert restored.is_same(wgs84)

    def test_unpacked_degrees(self, wgs84):
        wgs84.set_lcc(33.0, 45.0, 39.0, -96.0, 0.0, 0.0)
        with override(usgs_packed_dms=False):
            params = wgs84.export_to_usgs()[2]
        assert params[2] == pytest.approx(33.0)
        assert params[5] == pytest.approx(39.0)

    def test_packed_dms_from_environment(self, monkeypatch):
        monkeypatch.delenv("PYSRS_USGS_PACKED_DMS", raising=False)
        assert Settings.from_environment().usgs_packed_dms
        monkeypatch.setenv("PYSRS_USGS_PACKED_DMS", "0")
        assert not Settings.from_environment().usgs_packed_dms

    def test_custom_spheroid(self):
        """Unknown spheroids are written to params[0:2] with datum -1."""
        srs = SpatialReference()
        srs.set_geog_cs("Sphere", "Sphere", "Sphere", 6371000.0, 0.0)
        code, zone, params, datum = format_usgs(srs.root)
        assert datum == -1
        assert params[0] == params[1] == 6371000.0
        restored = SpatialReference.from_node(parse_usgs(code, zone, params, datum))
        assert restored.semi_major_axis() == 6371000.0
        assert restored.inverse_flattening() == 0.0

    @pytest.mark.parametrize("params", [None, np.zeros(14), np.zeros(16), [0.0] * 3])
    def test_wrong_length(self, params):
        with pytest.raises(ParameterArrayLengthError) as info:
            parse_usgs(UTM, 33, params, 12)
        assert info.value.expected == USGS_PARAMETER_COUNT

    def test_unsupported(self, local_cs):
        with pytest.raises(UnsupportedCRSError):
            parse_usgs(99, 0, np.zeros(15), 12)
        with pytest.raises(UnsupportedCRSError):
            local_cs.export_to_usgs()


class TestPCI:
    """Test PCI projection strings."""

    def test_utm_export(self, utm33n):
        proj, units, params = utm33n.export_to_pci()
        assert proj == "UTM    33   D000"
        assert len(proj) == 16
        assert units == "METRE"
        assert params.shape == (PCI_PARAMETER_COUNT,)

    def test_geographic_export(self, nad27):
        proj, units, params = nad27.export_to_pci()
        assert proj == "LONG/LAT    D-01"
        assert units == "DEGREE"

    def test_south_marker(self, wgs84):
        wgs84.set_utm(33, north=False)
        assert wgs84.export_to_pci()[0] == "UTM    33 S D000"
        srs = SpatialReference()
        srs.import_from_pci("UTM    33 S D000")
        assert srs.utm_zone() == (33, False)

    def test_mgrs_band(self):
        """Band letters before N are in the southern hemisphere."""
        south = SpatialReference.from_node(parse_pci("UTM    33 K D000"))
        north = SpatialReference.from_node(parse_pci("UTM    33 T D000"))
        assert south.utm_zone() == (33, False)
        assert north.utm_zone() == (33, True)

    def test_feet(self, utm33n):
        utm33n.set_linear_units_and_update_parameters("US survey foot", US_FOOT_TO_METERS)
        proj, units, params = utm33n.export_to_pci()
        assert units == "FEET"
        restored = SpatialReference.from_node(parse_pci(proj, units, params))
        assert restored.is_same(utm33n)

    def test_transverse_mercator_round_trip(self, wgs84):
        wgs84.set_tm(0.0, 10.0, 0.9996, 500000.0, 0.0)
        proj, units, params = wgs84.export_to_pci()
        assert proj == "TM          D000"
        assert params[2] == 10.0
        assert params[6] == 500000.0
        assert params[8] == 0.9996
        assert SpatialReference.from_node(parse_pci(proj, units, params)).is_same(wgs84)

    def test_local(self, local_cs):
        proj, units, params = local_cs.export_to_pci()
        assert proj.strip() == "METER"
        assert units == "METRE"
        assert SpatialReference.from_node(parse_pci(proj)).is_local()

    def test_wrong_length(self):
        with pytest.raises(ParameterArrayLengthError) as info:
            parse_pci("TM          D000", "METRE", np.zeros(5))
        assert (info.value.expected, info.value.actual) == (PCI_PARAMETER_COUNT, 5)

    def test_length_error_is_parse_and_export_error(self):
        with pytest.raises(ExportError):
            parse_pci("TM          D000", "METRE", np.zeros(18))

    def test_unknown_projection(self):
        with pytest.raises(UnsupportedCRSError):
            parse_pci("NOPE        D000")

    def test_unknown_units(self, utm33n):
        utm33n.set_linear_units("kilometre", 1000.0)
        with pytest.raises(UnsupportedCRSError):
            format_pci(utm33n.root)
