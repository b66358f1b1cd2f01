"""Integration tests for complete editing sessions.

These tests drive a controller the way a host application does: the
application owns the node and edge lists, applies every reported change and
syncs the lists back.
"""

from PIL import Image

from flowcanvas import (
    EdgeProps,
    Idle,
    InteractionController,
    NodeProps,
    PNGRenderer,
    Point,
    Vector,
)


class Application:
    """Minimal host keeping the authoritative lists."""

    def __init__(self, nodes, edges=()):
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.controller = InteractionController(
            self.nodes,
            self.edges,
            on_nodes_change=self.set_nodes,
            on_edges_change=self.set_edges,
        )

    def set_nodes(self, nodes):
        self.nodes = nodes
        self.controller.sync(self.nodes, self.edges)

    def set_edges(self, edges):
        self.edges = edges
        self.controller.sync(self.nodes, self.edges)

    def drag(self, node_id, to_x, to_y):
        """Drag a node by grabbing its position anchor."""
        start = self.controller.position_of(node_id)
        self.controller.node_press(node_id, start.x, start.y)
        self.controller.pointer_move(to_x, to_y)
        self.controller.node_release(node_id)


class TestConnectScenario:
    """Connecting two nodes by dragging from an output to an input."""

    def test_connect_a_to_b(self):
        """Test the edge geometry for A at (0, 0) and B at (300, 0)."""
        app = Application(
            [NodeProps("A", outputs=1), NodeProps("B", inputs=1)]
        )
        app.drag("A", 0, 0)
        app.drag("B", 300, 0)

        controller = app.controller
        assert controller.offsets_of("A").outputs == [Point(200, 0)]
        assert controller.offsets_of("B").inputs == [Point(0, 0)]

        controller.output_press("A", 0)
        controller.pointer_move(290, 5)
        edge_id = controller.input_release("B", 0)

        assert edge_id == "edge_A:0_B:0"
        assert app.edges == [EdgeProps("edge_A:0_B:0", "A", 0, "B", 0)]
        assert controller.edge_positions[edge_id] == Vector(200, 0, 300, 0)

    def test_edge_follows_dragged_nodes(self):
        """Test that a committed edge tracks both of its nodes."""
        app = Application(
            [NodeProps("A", outputs=1), NodeProps("B", inputs=1)]
        )
        app.controller.output_press("A", 0)
        app.controller.input_release("B", 0)

        app.drag("B", 600, 400)
        app.drag("A", 50, 50)

        assert app.controller.edge_positions["edge_A:0_B:0"] == Vector(250, 50, 600, 400)

    def test_abandoned_connections(self):
        """Test that empty-canvas and same-node drops change nothing."""
        app = Application(
            [NodeProps("A", inputs=1, outputs=1), NodeProps("B", inputs=1)]
        )
        controller = app.controller

        controller.output_press("A", 0)
        controller.pointer_move(900, 900)
        controller.mouse_up()

        controller.output_press("A", 0)
        assert controller.input_release("A", 0) is None

        assert app.edges == []
        assert isinstance(controller.state, Idle)
        assert controller.active_edges() == []


class TestDeleteScenario:
    """Deleting nodes and edges."""

    def _app(self, branching_nodes, branching_edges):
        return Application(branching_nodes, branching_edges)

    def test_delete_node_removes_its_edges(self, branching_nodes, branching_edges):
        """Test that every edge touching the node goes with it."""
        app = self._app(branching_nodes, branching_edges)
        app.controller.delete_node("Start")

        assert [n.id for n in app.nodes] == ["Process1", "Process2", "End"]
        assert [e.id for e in app.edges] == [
            "edge_Process1:0_End:0",
            "edge_Process2:0_End:1",
        ]
        assert set(app.controller.positions) == {"Process1", "Process2", "End"}
        assert app.controller.consistency_errors() == []

    def test_delete_edge_keeps_nodes(self, branching_nodes, branching_edges):
        """Test that deleting an edge leaves ports and positions alone."""
        app = self._app(branching_nodes, branching_edges)
        controller = app.controller
        positions = controller.positions

        controller.delete_edge("edge_Start:1_Process2:0")

        assert [e.id for e in app.edges] == [
            "edge_Start:0_Process1:0",
            "edge_Process1:0_End:0",
            "edge_Process2:0_End:1",
        ]
        assert controller.positions == positions
        assert controller.node_data("Start").outputs == 2
        assert controller.node_data("Process2").inputs == 1
        assert controller.layout_count == 1


class TestRelayoutScenario:
    """When the diagram is laid out again."""

    def test_node_count_change_relayouts(self):
        """Test that adding nodes relayouts but dragging does not."""
        app = Application([NodeProps("A", outputs=1)])
        controller = app.controller
        assert controller.layout_count == 1

        app.nodes = app.nodes + [NodeProps("B", inputs=1)]
        assert controller.sync(app.nodes, app.edges)
        assert controller.layout_count == 2

        app.drag("B", 500, 500)
        assert controller.layout_count == 2
        assert controller.position_of("B") == Point(500, 500)

    def test_edge_only_change_keeps_layout(self):
        """Test that edge changes never relayout."""
        app = Application([NodeProps("A", outputs=1), NodeProps("B", inputs=1)])
        app.drag("B", 700, 0)

        app.controller.output_press("A", 0)
        app.controller.input_release("B", 0)

        assert app.controller.layout_count == 1
        assert app.controller.position_of("B") == Point(700, 0)


class TestRenderSession:
    """Measuring and drawing an edited diagram."""

    def test_measure_edit_render(self, branching_nodes, branching_edges, tmp_path):
        """Test a full measure, edit and render cycle."""
        app = Application(branching_nodes, branching_edges)
        renderer = PNGRenderer()
        renderer.measure(app.controller)

        app.controller.delete_edge("edge_Process2:0_End:1")
        app.controller.output_press("Process2", 0)
        app.controller.pointer_move(480, 120)

        path = renderer.render(app.controller.snapshot(), str(tmp_path / "session.png"))
        with Image.open(path) as img:
            assert img.format == "PNG"
        assert app.controller.consistency_errors() == []
