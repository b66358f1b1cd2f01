"""
Data models for flow diagrams.

This module contains the value types shared by every layer of the package:
plain geometry (points and line vectors), the node and edge descriptions the
surrounding application supplies, and the read-only snapshot handed to a
renderer.

Classes:
    Point: A 2D coordinate.
    Vector: A straight segment between two points (an edge on screen).
    PortOffsets: Node-relative offsets of every input and output port.
    NodeProps: Application-facing description of a node.
    EdgeProps: Application-facing description of an edge.
    PendingEdge: The edge currently being dragged out of an output port.
    NodeView: Geometry of one node inside a DiagramSnapshot.
    DiagramSnapshot: Everything a renderer needs to draw one frame.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Point:
    """A 2D coordinate in canvas units."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Vector:
    """
    A straight segment from (x0, y0) to (x1, y1).

    Edges are always drawn as straight lines, so a Vector is the complete
    on-screen geometry of an edge.
    """

    x0: float = 0.0
    y0: float = 0.0
    x1: float = 0.0
    y1: float = 0.0

    @classmethod
    def between(cls, start: Point, end: Point) -> "Vector":
        return cls(start.x, start.y, end.x, end.y)

    @property
    def start(self) -> Point:
        return Point(self.x0, self.y0)

    @property
    def end(self) -> Point:
        return Point(self.x1, self.y1)

    def with_start(self, start: Point) -> "Vector":
        """Return a copy with a new start point and the same end point."""
        return Vector(start.x, start.y, self.x1, self.y1)

    def with_end(self, end: Point) -> "Vector":
        """Return a copy with a new end point and the same start point."""
        return Vector(self.x0, self.y0, end.x, end.y)


@dataclass
class PortOffsets:
    """
    Port offsets of a single node, relative to the node's position.

    Attributes:
        inputs: One offset per input port, indexed by port index.
        outputs: One offset per output port, indexed by port index.
    """

    inputs: List[Point] = field(default_factory=list)
    outputs: List[Point] = field(default_factory=list)

    def copy(self) -> "PortOffsets":
        return PortOffsets(list(self.inputs), list(self.outputs))


@dataclass
class NodeProps:
    """
    A node as supplied by the application.

    Attributes:
        id: Opaque node identifier.
        position: Advisory position; replaced by the layout on every
                  structural change.
        data: Opaque payload. The renderer draws ``data["label"]`` if present.
        inputs: Number of input ports.
        outputs: Number of output ports.
        deletable: Whether the user may delete this node.
    """

    id: str
    position: Point = field(default_factory=Point)
    data: Dict[str, Any] = field(default_factory=dict)
    inputs: int = 0
    outputs: int = 0
    deletable: bool = True

    @property
    def label(self) -> str:
        return str(self.data.get("label", self.id))

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "NodeProps":
        """
        Build a NodeProps from a plain mapping.

        Accepts ``position`` as a mapping with ``x``/``y`` keys and an
        optional ``actions`` mapping whose ``delete`` flag sets
        ``deletable``.
        """
        position = raw.get("position") or {}
        actions = raw.get("actions") or {}
        return cls(
            id=str(raw["id"]),
            position=Point(float(position.get("x", 0)), float(position.get("y", 0))),
            data=dict(raw.get("data") or {}),
            inputs=int(raw.get("inputs", 0)),
            outputs=int(raw.get("outputs", 0)),
            deletable=bool(actions.get("delete", True)),
        )


@dataclass
class EdgeProps:
    """An edge as supplied to, and reported back to, the application."""

    id: str
    source_node: str
    source_output: int
    target_node: str
    target_input: int

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EdgeProps":
        """Build an EdgeProps from a mapping using the camelCase wire keys."""
        return cls(
            id=str(raw["id"]),
            source_node=str(raw["sourceNode"]),
            source_output=int(raw["sourceOutput"]),
            target_node=str(raw["targetNode"]),
            target_input=int(raw["targetInput"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sourceNode": self.source_node,
            "sourceOutput": self.source_output,
            "targetNode": self.target_node,
            "targetInput": self.target_input,
        }


@dataclass
class PendingEdge:
    """
    Live preview of an edge dragged out of an output port.

    Attributes:
        position: Segment from the source port to the pointer.
        source_node: Index of the source node.
        source_output: Output port index on the source node.
    """

    position: Vector
    source_node: int
    source_output: int

    @property
    def preview_endpoint(self) -> Point:
        return self.position.end


@dataclass(frozen=True)
class NodeView:
    """Geometry of one node as seen by a renderer."""

    id: str
    label: str
    position: Point
    width: float
    height: float
    offsets: PortOffsets


@dataclass
class DiagramSnapshot:
    """
    Read-only view of the diagram at one instant.

    Attributes:
        nodes: Node geometry in node-index order.
        edges: Active edge vectors keyed by edge id.
        pending: The pending edge segment, if a connection is being dragged.
    """

    nodes: List[NodeView] = field(default_factory=list)
    edges: Dict[str, Vector] = field(default_factory=dict)
    pending: Optional[Vector] = None
