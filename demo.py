#!/usr/bin/env python3
"""
Demo script for flowcanvas.

Walks through a scripted editing session: layout, dragging nodes, dragging
new connections, deleting edges and nodes, and rendering PNG snapshots of
each step.
"""

import logging
import sys

from flowcanvas import EdgeProps, InteractionController, NodeProps, PNGRenderer


def print_header(title):
    """Print a formatted header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70 + "\n")


class DemoApp:
    """Host application holding the node and edge lists."""

    def __init__(self, nodes, edges):
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.controller = InteractionController(
            self.nodes,
            self.edges,
            on_nodes_change=self.set_nodes,
            on_edges_change=self.set_edges,
            on_layout_error=lambda error: print(f"  Layout error: {error}"),
            debug=True,
        )
        self.renderer = PNGRenderer()

    def set_nodes(self, nodes):
        print(f"  -> application received {len(nodes)} nodes")
        self.nodes = nodes
        self.controller.sync(self.nodes, self.edges)

    def set_edges(self, edges):
        print(f"  -> application received {len(edges)} edges")
        self.edges = edges
        self.controller.sync(self.nodes, self.edges)

    def show(self, filename):
        for node_id, point in self.controller.positions.items():
            print(f"  {node_id:<10} at ({point.x:g}, {point.y:g})")
        for edge_id, vector in self.controller.snapshot().edges.items():
            print(
                f"  {edge_id:<28} ({vector.x0:g}, {vector.y0:g}) -> "
                f"({vector.x1:g}, {vector.y1:g})"
            )
        path = self.renderer.render(self.controller.snapshot(), filename)
        print(f"\n  Saved {path}")


def build_app():
    nodes = [
        NodeProps("load", data={"label": "Load CSV"}, outputs=1),
        NodeProps("clean", data={"label": "Clean"}, inputs=1, outputs=2),
        NodeProps("stats", data={"label": "Summary\nstatistics"}, inputs=1, outputs=1),
        NodeProps("plot", data={"label": "Plot"}, inputs=1),
        NodeProps("report", data={"label": "Report"}, inputs=2),
    ]
    edges = [
        EdgeProps("edge_load:0_clean:0", "load", 0, "clean", 0),
        EdgeProps("edge_clean:0_stats:0", "clean", 0, "stats", 0),
        EdgeProps("edge_clean:1_plot:0", "clean", 1, "plot", 0),
    ]
    return DemoApp(nodes, edges)


def demo_1(app):
    """Demo 1: Initial layout"""
    print_header("Demo 1: Initial Layout")
    app.renderer.measure(app.controller)
    app.show("demo_1_layout.png")


def demo_2(app):
    """Demo 2: Dragging a node"""
    print_header("Demo 2: Dragging 'plot' Down")
    start = app.controller.position_of("plot")
    app.controller.node_press("plot", start.x + 10, start.y)
    app.controller.pointer_move(start.x + 10, start.y + 150)
    app.controller.node_release("plot")
    app.show("demo_2_drag.png")


def demo_3(app):
    """Demo 3: Connecting ports"""
    print_header("Demo 3: Connecting 'stats' to 'report'")
    app.controller.output_press("stats", 0)
    target = app.controller.position_of("report")
    app.controller.pointer_move(target.x, target.y)
    edge_id = app.controller.input_release("report", 0)
    print(f"  Committed: {edge_id}")

    print("\n  Trying the same connection again:")
    app.controller.output_press("stats", 0)
    print(f"  Committed: {app.controller.input_release('report', 0)}")
    app.show("demo_3_connect.png")


def demo_4(app):
    """Demo 4: Deleting"""
    print_header("Demo 4: Deleting an Edge, then a Node")
    app.controller.delete_edge("edge_clean:1_plot:0")
    app.controller.delete_node("plot")
    app.show("demo_4_delete.png")


def main():
    """Main demo function."""
    logging.basicConfig(level=logging.WARNING)

    print("\n" + "=" * 70)
    print("  FLOWCANVAS - DEMONSTRATION")
    print("=" * 70)

    app = build_app()
    for demo_func in (demo_1, demo_2, demo_3, demo_4):
        demo_func(app)

    print_header("Interaction Trace")
    print(app.controller.get_trace().summary())


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nDemo interrupted. Goodbye!")
        sys.exit(0)
