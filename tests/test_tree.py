"""
Tests for the CRS node tree, the unit registry and the projection catalog.
"""

import pytest

from pysrs import catalog
from pysrs.constants import PP_FALSE_EASTING, PP_SCALE_FACTOR, PT_TRANSVERSE_MERCATOR
from pysrs.exceptions import UnitUnknownError
from pysrs.tree import OpaqueNode, SRSNode
from pysrs.tree.node import format_number, make_node
from pysrs.units import (
    DEGREE_TO_RADIANS,
    INTL_FOOT_TO_METERS,
    LINEAR,
    US_FOOT_TO_METERS,
    UnitRegistry,
    default_registry,
)


class TestSRSNode:
    """Test node structure operations."""

    def test_add_and_find_children(self):
        """Children keep insertion order and are found by keyword."""
        datum = make_node("DATUM", "WGS_1984",
                          make_node("SPHEROID", "WGS 84", 6378137.0, 298.257223563))
        assert datum.child_count == 2
        assert datum.name == "WGS_1984"
        assert datum.find_child("spheroid") == 1
        assert datum.find_child("TOWGS84") == -1
        assert datum.get_node("SPHEROID").child_value(1) == "6378137"

    def test_node_cannot_have_two_parents(self):
        """Adding an attached node elsewhere is rejected."""
        parent = SRSNode("DATUM")
        child = parent.add_child(SRSNode("WGS_1984"))
        other = SRSNode("GEOGCS")
        with pytest.raises(ValueError):
            other.add_child(child)
        other.add_child(child.clone())
        assert other.child_count == 1

    def test_node_cannot_be_added_below_itself(self):
        """Cycles are rejected."""
        root = SRSNode("GEOGCS")
        datum = root.add_child(SRSNode("DATUM"))
        root.detach()
        with pytest.raises(ValueError):
            datum.add_child(root)

    def test_remove_and_replace(self):
        """Removed nodes are detached and can be reused."""
        node = make_node("UNIT", "metre", 1.0)
        old = node.replace_child(1, SRSNode("0.3048"))
        assert old.parent is None
        assert old.value == "1"
        assert node.child_value(1) == "0.3048"
        removed = node.remove_child(0)
        assert removed.parent is None
        assert node.child_count == 1

    def test_clone_is_deep(self):
        """A clone shares no nodes with the original."""
        original = make_node("PROJECTION", "Transverse_Mercator")
        copy = original.clone()
        copy.set_child_value(0, "Mercator_1SP")
        assert original.name == "Transverse_Mercator"
        assert copy.structurally_equal(original) is False

    def test_strip_nodes(self):
        """strip_nodes removes every matching descendant."""
        root = make_node(
            "GEOGCS", "x",
            make_node("DATUM", "d", make_node("AUTHORITY", "EPSG", "6326")),
            make_node("AUTHORITY", "EPSG", "4326"),
        )
        assert root.strip_nodes("AUTHORITY") == 2
        assert root.get_node("AUTHORITY") is None

    def test_walk_is_preorder(self):
        root = make_node("UNIT", "metre", 1.0)
        assert [n.value for n in root.walk()] == ["UNIT", "metre", "1"]

    def test_opaque_node_keeps_text(self):
        """Opaque nodes refuse children and clone their raw text."""
        node = OpaqueNode("VENDOR", 'VENDOR["x",1]')
        with pytest.raises(TypeError):
            node.add_child(SRSNode("y"))
        copy = node.clone()
        assert copy.raw == 'VENDOR["x",1]'
        assert copy.structurally_equal(node)

    def test_format_number(self):
        assert format_number(6378137.0) == "6378137"
        assert format_number(0.0) == "0"
        assert format_number(0.9996) == "0.9996"


class TestUnitRegistry:
    """Test unit lookups and strictness."""

    def test_lookup_aliases(self):
        assert default_registry.lookup("Meter").name == "metre"
        assert default_registry.lookup("Foot_US").factor == US_FOOT_TO_METERS
        assert default_registry.canonical_name("DEGREE") == "degree"

    def test_unit_factor_unknown(self):
        """Unknown units give the default unless strict."""
        assert default_registry.unit_factor("furlong", default=201.168, strict=False) == 201.168
        with pytest.raises(UnitUnknownError):
            default_registry.unit_factor("furlong", strict=True)

    def test_unit_unknown_error_is_a_key_error(self):
        with pytest.raises(KeyError):
            default_registry.unit_factor("furlong", strict=True)

    def test_find_by_factor_and_proj4(self):
        """Factors map back to units and PROJ.4 codes."""
        assert default_registry.find_by_factor(INTL_FOOT_TO_METERS, LINEAR).name == "foot"
        assert default_registry.proj4_units(US_FOOT_TO_METERS) == "us-ft"
        assert default_registry.proj4_units(1.0) == "m"
        assert default_registry.from_proj4_units("km").factor == 1000.0
        assert default_registry.lookup("degree").factor == DEGREE_TO_RADIANS

    def test_register_rejects_bad_input(self):
        registry = UnitRegistry(strict=True)
        with pytest.raises(ValueError):
            registry.register("bad", 0.0, LINEAR)
        with pytest.raises(ValueError):
            registry.register("bad", 1.0, "volume")
        registry.register("rod", 5.0292, LINEAR, aliases=("perch",))
        assert registry.unit_factor("perch") == 5.0292


class TestCatalog:
    """Test the projection method catalog."""

    def test_projection_methods_restart(self):
        """Each call gives a fresh iterator."""
        first = list(catalog.projection_methods())
        second = list(catalog.projection_methods())
        assert first == second
        assert PT_TRANSVERSE_MERCATOR in first

    def test_parameter_list(self):
        names, user_name = catalog.parameter_list(PT_TRANSVERSE_MERCATOR)
        assert user_name == "Transverse Mercator"
        assert names == ["latitude_of_origin", "central_meridian", "scale_factor",
                         "false_easting", "false_northing"]
        assert catalog.parameter_list("No_Such_Method") == ([], "")

    def test_parameter_info(self):
        info, found = catalog.parameter_info(PT_TRANSVERSE_MERCATOR, PP_SCALE_FACTOR)
        assert found
        assert info.default == 1.0
        assert info.value_type == catalog.TYPE_RATIO
        assert catalog.parameter_info(PT_TRANSVERSE_MERCATOR, "azimuth") == (None, False)

    def test_parameter_kinds(self):
        assert catalog.is_linear_parameter(PP_FALSE_EASTING)
        assert catalog.is_angular_parameter("central_meridian")
        assert not catalog.is_angular_parameter(PP_SCALE_FACTOR)

    def test_canonical_method_name(self):
        """ESRI aliases resolve to canonical names."""
        assert catalog.canonical_method_name("Gauss_Kruger") == PT_TRANSVERSE_MERCATOR
        assert catalog.canonical_method_name("transverse_mercator") == PT_TRANSVERSE_MERCATOR
        assert catalog.canonical_method_name("Something_Else") == "Something_Else"
