"""Unit tests for the ports module."""

import pytest

from flowcanvas.graph import NodeData
from flowcanvas.models import Point
from flowcanvas.ports import (
    NODE_HEIGHT,
    NODE_WIDTH,
    PORT_SPACING,
    PortGeometry,
    compute_port_offsets,
    port_offsets,
)


class TestConstants:
    """Tests for the default geometry constants."""

    def test_defaults(self):
        """Test the default box and spacing."""
        assert NODE_WIDTH == 200
        assert NODE_HEIGHT == 100
        assert PORT_SPACING == 20


class TestPortOffsets:
    """Tests for port_offsets."""

    def test_no_ports(self):
        """Test that zero ports give no offsets."""
        assert port_offsets(0, 0) == []

    def test_single_port_is_centred(self):
        """Test that a lone port sits on the midpoint."""
        assert port_offsets(1, 0) == [Point(0, 0)]

    def test_two_ports(self):
        """Test two ports straddle the midpoint."""
        assert port_offsets(2, 0) == [Point(0, -10), Point(0, 10)]

    def test_three_ports(self):
        """Test three ports at the default spacing."""
        assert port_offsets(3, 200) == [
            Point(200, -20),
            Point(200, 0),
            Point(200, 20),
        ]

    def test_custom_spacing(self):
        """Test that spacing scales the offsets."""
        assert port_offsets(2, 0, spacing=30) == [Point(0, -15), Point(0, 15)]

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 7])
    def test_symmetric_about_midpoint(self, count):
        """Test that offsets are centred on zero."""
        ys = [p.y for p in port_offsets(count, 0)]
        assert sum(ys) == pytest.approx(0)
        assert ys == [-y for y in reversed(ys)]

    @pytest.mark.parametrize("count", [2, 3, 5])
    def test_monotonic_in_index(self, count):
        """Test that offsets grow with port index at constant spacing."""
        ys = [p.y for p in port_offsets(count, 0)]
        assert all(b - a == pytest.approx(PORT_SPACING) for a, b in zip(ys, ys[1:]))


class TestComputePortOffsets:
    """Tests for compute_port_offsets."""

    def test_sides(self):
        """Test inputs on the left edge and outputs on the right edge."""
        offsets = compute_port_offsets(2, 3)
        assert all(p.x == 0 for p in offsets.inputs)
        assert all(p.x == NODE_WIDTH for p in offsets.outputs)
        assert len(offsets.inputs) == 2
        assert len(offsets.outputs) == 3

    def test_reference_box(self):
        """Test the single-port offsets of a 200x100 box."""
        offsets = compute_port_offsets(1, 1, width=200, height=100, spacing=20)
        assert offsets.outputs == [Point(200, 0)]
        assert offsets.inputs == [Point(0, 0)]

    def test_measured_width_moves_outputs(self):
        """Test that a wider box pushes outputs right."""
        offsets = compute_port_offsets(1, 1, width=320, height=80)
        assert offsets.outputs == [Point(320, 0)]
        assert offsets.inputs == [Point(0, 0)]

    def test_negative_counts_rejected(self):
        """Test that negative port counts raise ValueError."""
        with pytest.raises(ValueError):
            compute_port_offsets(-1, 0)


class TestPortGeometry:
    """Tests for PortGeometry."""

    def test_for_node(self):
        """Test offsets for a node's port counts."""
        geometry = PortGeometry()
        node = NodeData("A", inputs=2, outputs=1)
        offsets = geometry.for_node(node)
        assert offsets.inputs == [Point(0, -10), Point(0, 10)]
        assert offsets.outputs == [Point(200, 0)]

    def test_spacing_setting(self):
        """Test that the bound spacing is used."""
        geometry = PortGeometry(spacing=40)
        offsets = geometry.for_node(NodeData("A", inputs=2), width=150)
        assert offsets.inputs == [Point(0, -20), Point(0, 20)]
