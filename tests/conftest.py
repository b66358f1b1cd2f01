"""Pytest configuration and shared fixtures for flowcanvas tests."""

import pytest

from flowcanvas import EdgeProps, InteractionController, NodeProps, NetworkXLayout


@pytest.fixture
def two_nodes():
    """Node A with one output feeding node B with one input."""
    return [
        NodeProps("A", data={"label": "Source"}, outputs=1),
        NodeProps("B", data={"label": "Sink"}, inputs=1),
    ]


@pytest.fixture
def chain_nodes():
    """Linear chain A -> B -> C -> D of one-in/one-out nodes."""
    return [
        NodeProps("A", outputs=1),
        NodeProps("B", inputs=1, outputs=1),
        NodeProps("C", inputs=1, outputs=1),
        NodeProps("D", inputs=1),
    ]


@pytest.fixture
def chain_edges():
    """Edges of the linear chain."""
    return [
        EdgeProps("edge_A:0_B:0", "A", 0, "B", 0),
        EdgeProps("edge_B:0_C:0", "B", 0, "C", 0),
        EdgeProps("edge_C:0_D:0", "C", 0, "D", 0),
    ]


@pytest.fixture
def branching_nodes():
    """Start fans out to two processes which merge into End."""
    return [
        NodeProps("Start", outputs=2),
        NodeProps("Process1", inputs=1, outputs=1),
        NodeProps("Process2", inputs=1, outputs=1),
        NodeProps("End", inputs=2),
    ]


@pytest.fixture
def branching_edges():
    """Edges of the branching graph."""
    return [
        EdgeProps("edge_Start:0_Process1:0", "Start", 0, "Process1", 0),
        EdgeProps("edge_Start:1_Process2:0", "Start", 1, "Process2", 0),
        EdgeProps("edge_Process1:0_End:0", "Process1", 0, "End", 0),
        EdgeProps("edge_Process2:0_End:1", "Process2", 0, "End", 1),
    ]


@pytest.fixture
def cyclic_nodes():
    """Three nodes wired in a loop."""
    return [
        NodeProps("A", inputs=1, outputs=1),
        NodeProps("B", inputs=1, outputs=1),
        NodeProps("C", inputs=1, outputs=1),
    ]


@pytest.fixture
def cyclic_edges():
    """Edges A -> B -> C -> A."""
    return [
        EdgeProps("edge_A:0_B:0", "A", 0, "B", 0),
        EdgeProps("edge_B:0_C:0", "B", 0, "C", 0),
        EdgeProps("edge_C:0_A:0", "C", 0, "A", 0),
    ]


@pytest.fixture
def layout_engine():
    """Default NetworkXLayout instance."""
    return NetworkXLayout()


@pytest.fixture
def recorder():
    """Collects every notification a controller sends."""

    class Recorder:
        def __init__(self):
            self.nodes = []
            self.edges = []
            self.layout_errors = []

        def on_nodes_change(self, nodes):
            self.nodes.append(nodes)

        def on_edges_change(self, edges):
            self.edges.append(edges)

        def on_layout_error(self, error):
            self.layout_errors.append(error)

    return Recorder()


@pytest.fixture
def make_controller(recorder):
    """Factory building a controller wired to the recorder."""

    def factory(nodes, edges=(), **kwargs):
        return InteractionController(
            nodes,
            list(edges),
            on_nodes_change=recorder.on_nodes_change,
            on_edges_change=recorder.on_edges_change,
            on_layout_error=recorder.on_layout_error,
            **kwargs,
        )

    return factory
