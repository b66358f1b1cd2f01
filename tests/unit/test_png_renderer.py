"""Tests for the PNG renderer."""

import os

from PIL import Image

from flowcanvas.models import DiagramSnapshot, NodeProps, NodeView, Point, PortOffsets
from flowcanvas.png_renderer import PNGRenderer, render_to_png


class TestRender:
    """Tests for drawing snapshots."""

    def test_render_chain(self, make_controller, chain_nodes, chain_edges, tmp_path):
        """Test that a laid out chain is drawn at the expected size."""
        controller = make_controller(chain_nodes, chain_edges)
        output = tmp_path / "chain.png"

        path = PNGRenderer().render(controller.snapshot(), str(output))

        assert path == str(output)
        with Image.open(path) as img:
            assert img.format == "PNG"
            # 950 x 100 diagram plus a 40 unit margin on each side, at 2x
            assert img.size == (2061, 361)

    def test_render_scale(self, make_controller, chain_nodes, chain_edges, tmp_path):
        """Test that scale 1 halves the image."""
        controller = make_controller(chain_nodes, chain_edges)
        path = PNGRenderer(scale=1).render(controller.snapshot(), str(tmp_path / "s.png"))
        with Image.open(path) as img:
            assert img.size == (1031, 181)

    def test_render_empty(self, tmp_path):
        """Test that an empty diagram still produces an image."""
        path = PNGRenderer().render(DiagramSnapshot(), str(tmp_path / "empty.png"))
        with Image.open(path) as img:
            assert img.size == (161, 161)

    def test_render_pending_edge(self, make_controller, two_nodes, tmp_path):
        """Test drawing while a connection is being dragged."""
        controller = make_controller(two_nodes)
        controller.output_press("A", 0)
        controller.pointer_move(400, 300)

        path = PNGRenderer().render(controller.snapshot(), str(tmp_path / "pending.png"))

        assert os.path.exists(path)
        with Image.open(path) as img:
            # The pending end at (400, 300) widens the bounds
            assert img.size == (int((400 + 80) * 2) + 1, int((300 + 80) * 2) + 1)

    def test_multiline_label(self, tmp_path):
        """Test that labels with newlines render."""
        view = NodeView(
            id="A",
            label="first\nsecond",
            position=Point(0, 50),
            width=200,
            height=100,
            offsets=PortOffsets(inputs=[Point(0, 0)]),
        )
        path = PNGRenderer().render(DiagramSnapshot(nodes=[view]), str(tmp_path / "ml.png"))
        assert os.path.exists(path)

    def test_render_to_png(self, make_controller, chain_nodes, chain_edges, tmp_path):
        """Test the convenience function."""
        controller = make_controller(chain_nodes, chain_edges)
        path = render_to_png(controller, str(tmp_path / "out.png"), margin=10)
        with Image.open(path) as img:
            assert img.size == (int((950 + 20) * 2) + 1, int((100 + 20) * 2) + 1)


class TestMeasure:
    """Tests for measuring node boxes."""

    def test_short_label_gets_minimum_box(self, make_controller, two_nodes):
        """Test that small labels use the minimum box."""
        controller = make_controller(two_nodes)
        sizes = PNGRenderer().measure(controller)

        assert sizes == {"A": (120, 60), "B": (120, 60)}
        assert controller.size_of("A") == (120, 60)

    def test_long_label_widens_box(self, make_controller):
        """Test that a long label grows the box."""
        controller = make_controller([NodeProps("A", data={"label": "x" * 80}, outputs=1)])
        width, _ = PNGRenderer().measure(controller)["A"]
        assert width > 120

    def test_many_ports_grow_box(self, make_controller):
        """Test that port rows set a minimum height."""
        controller = make_controller([NodeProps("A", inputs=5)])
        _, height = PNGRenderer().measure(controller)["A"]
        assert height == 120

    def test_measure_moves_edges(self, make_controller, two_nodes):
        """Test that measured widths move output ports."""
        controller = make_controller(two_nodes)
        controller.output_press("A", 0)
        controller.input_release("B", 0)
        PNGRenderer().measure(controller)

        assert controller.offsets_of("A").outputs == [Point(120, 0)]
        assert controller.edge_positions["edge_A:0_B:0"].start == Point(120, 50)

    def test_measure_label(self):
        """Test that more lines make a taller block."""
        renderer = PNGRenderer()
        _, one = renderer.measure_label("a")
        _, two = renderer.measure_label("a\nb")
        assert two > one
