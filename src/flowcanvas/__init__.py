"""
flowcanvas - Interactive node-and-edge flow diagrams

A Python library for laying out flow diagrams with a layered left-to-right
layout and editing them interactively: dragging nodes, dragging new
connections between ports, and deleting nodes and edges.

Example:
    >>> from flowcanvas import EdgeProps, InteractionController, NodeProps
    >>> nodes = [NodeProps("A", outputs=1), NodeProps("B", inputs=1)]
    >>> controller = InteractionController(nodes, [], on_edges_change=print)
    >>> controller.output_press("A", 0)
    True
    >>> controller.input_release("B", 0)  # prints the new edge list
    ...

Debug Mode Example:
    >>> controller = InteractionController(nodes, [], debug=True)
    >>> controller.node_press("A", 10, 10)
    True
    >>> print(controller.get_trace().summary())
"""

from .controller import (
    DraggingNode,
    DraggingPendingEdge,
    FlowChart,
    Idle,
    InteractionController,
)
from .edges import edge_vector, incident_edge_updates, initial_edge_geometry
from .graph import (
    DuplicateEdge,
    EdgeEndpoints,
    GraphError,
    GraphModel,
    InvalidPortIndex,
    NodeData,
    UnknownNode,
    get_edge_id,
)
from .layout import (
    LayoutEngine,
    LayoutError,
    LayoutResult,
    NetworkXLayout,
    NodeLayout,
    compute_layout,
)
from .models import (
    DiagramSnapshot,
    EdgeProps,
    NodeProps,
    NodeView,
    PendingEdge,
    Point,
    PortOffsets,
    Vector,
)
from .png_renderer import PNGRenderer, render_to_png
from .ports import PortGeometry, compute_port_offsets, port_offsets
from .tracer import InteractionTrace, StructuralChange, TransitionRecord

__version__ = "0.1.0"

__all__ = [
    # Main API
    "InteractionController",
    "FlowChart",
    "Idle",
    "DraggingNode",
    "DraggingPendingEdge",
    # Models
    "Point",
    "Vector",
    "PortOffsets",
    "NodeProps",
    "EdgeProps",
    "PendingEdge",
    "NodeView",
    "DiagramSnapshot",
    # Graph
    "GraphModel",
    "NodeData",
    "EdgeEndpoints",
    "get_edge_id",
    "GraphError",
    "UnknownNode",
    "InvalidPortIndex",
    "DuplicateEdge",
    # Layout
    "NetworkXLayout",
    "LayoutEngine",
    "LayoutResult",
    "NodeLayout",
    "LayoutError",
    "compute_layout",
    # Geometry
    "PortGeometry",
    "compute_port_offsets",
    "port_offsets",
    "edge_vector",
    "incident_edge_updates",
    "initial_edge_geometry",
    # Rendering
    "PNGRenderer",
    "render_to_png",
    # Debug/Tracing
    "InteractionTrace",
    "TransitionRecord",
    "StructuralChange",
]
