"""
Port position calculation.

Ports sit on the left (inputs) and right (outputs) sides of a node box,
evenly spaced and centred on the node's vertical midpoint. Offsets are
relative to the node position, so they survive dragging unchanged and only
need recomputing when port counts or the measured box size change.
"""

from typing import List

from .graph import NodeData
from .models import Point, PortOffsets

# Default uniform node box, in canvas units
NODE_WIDTH = 200
NODE_HEIGHT = 100

# Vertical distance between neighbouring ports
PORT_SPACING = 20


def port_offsets(count: int, x: float, spacing: float = PORT_SPACING) -> List[Point]:
    """
    Offsets for ``count`` ports stacked along one side of a node.

    The i-th port (0-indexed) sits at ``(i + 1) * spacing - (count + 1) *
    spacing / 2``, which centres the column of ports on y = 0.

    Args:
        count: Number of ports on this side.
        x: Horizontal offset shared by every port on this side.
        spacing: Vertical distance between neighbouring ports.

    Returns:
        One Point per port, in port index order.
    """
    half_span = (count + 1) * spacing / 2
    return [Point(x, (index + 1) * spacing - half_span) for index in range(count)]


def compute_port_offsets(
    inputs: int,
    outputs: int,
    width: float = NODE_WIDTH,
    height: float = NODE_HEIGHT,
    spacing: float = PORT_SPACING,
) -> PortOffsets:
    """
    Compute offsets for every port of a node.

    Inputs lie on the left edge (x = 0), outputs on the right edge
    (x = width). ``height`` does not move the ports because node positions
    are anchored at the vertical midpoint; it is accepted so measured box
    geometry can be passed through unchanged.

    Raises:
        ValueError: If a port count is negative.
    """
    if inputs < 0 or outputs < 0:
        raise ValueError(f"Port counts must be non-negative, got {inputs}/{outputs}")
    return PortOffsets(
        inputs=port_offsets(inputs, 0, spacing),
        outputs=port_offsets(outputs, width, spacing),
    )


class PortGeometry:
    """
    Port offset calculator bound to one spacing setting.

    Attributes:
        spacing: Vertical distance between neighbouring ports.
    """

    def __init__(self, spacing: float = PORT_SPACING):
        self.spacing = spacing

    def for_node(
        self,
        node: NodeData,
        width: float = NODE_WIDTH,
        height: float = NODE_HEIGHT,
    ) -> PortOffsets:
        """Offsets for a node drawn as a ``width`` x ``height`` box."""
        return compute_port_offsets(
            node.inputs, node.outputs, width, height, self.spacing
        )
