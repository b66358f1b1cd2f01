"""
Edge geometry derivation.

An edge's on-screen segment is fully determined by its two endpoint nodes'
positions and the offsets of the ports it connects. The functions here
derive those segments without mutating any of their inputs; the caller
decides what to store.

The hot path is incident_edge_updates(), called on every pointer move while
a node is dragged. It walks only the dragged node's cached edge id lists, so
its cost is proportional to the node's degree rather than the edge count.
"""

from typing import Dict, Mapping, Sequence

from .graph import EdgeEndpoints, GraphModel, NodeData
from .models import Point, PortOffsets, Vector


def output_anchor(position: Point, offsets: PortOffsets, index: int) -> Point:
    """Absolute position of an output port."""
    return position + offsets.outputs[index]


def input_anchor(position: Point, offsets: PortOffsets, index: int) -> Point:
    """Absolute position of an input port."""
    return position + offsets.inputs[index]


def edge_vector(
    endpoints: EdgeEndpoints,
    source_position: Point,
    source_offsets: PortOffsets,
    target_position: Point,
    target_offsets: PortOffsets,
) -> Vector:
    """
    Segment from an edge's output port to its input port.

    Args:
        endpoints: The ports the edge connects.
        source_position: Position of the source node.
        source_offsets: Port offsets of the source node.
        target_position: Position of the target node.
        target_offsets: Port offsets of the target node.

    Returns:
        The edge's absolute start and end as a Vector.
    """
    return Vector.between(
        output_anchor(source_position, source_offsets, endpoints.output_index),
        input_anchor(target_position, target_offsets, endpoints.input_index),
    )


def incident_edge_updates(
    node: NodeData,
    position: Point,
    offsets: PortOffsets,
    endpoints: Mapping[str, EdgeEndpoints],
    geometry: Mapping[str, Vector],
    actives: Mapping[str, bool],
) -> Dict[str, Vector]:
    """
    New segments for the edges touching a node that has moved.

    Only active edges are updated. Incoming edges get a new end point and
    outgoing edges a new start point; the far end of each segment is taken
    unchanged from ``geometry``.

    Args:
        node: The node whose position or port offsets changed.
        position: The node's current position.
        offsets: The node's current port offsets.
        endpoints: Edge endpoint table.
        geometry: Current edge segments.
        actives: Active flag per edge id.

    Returns:
        Replacement segments keyed by edge id.
    """
    updates: Dict[str, Vector] = {}

    for edge_id in node.edges_in:
        if not actives.get(edge_id):
            continue
        current = updates.get(edge_id, geometry.get(edge_id, Vector()))
        anchor = input_anchor(position, offsets, endpoints[edge_id].input_index)
        updates[edge_id] = current.with_end(anchor)

    for edge_id in node.edges_out:
        if not actives.get(edge_id):
            continue
        # A self-loop already has its new end point from the loop above
        current = updates.get(edge_id, geometry.get(edge_id, Vector()))
        anchor = output_anchor(position, offsets, endpoints[edge_id].output_index)
        updates[edge_id] = current.with_start(anchor)

    return updates


def initial_edge_geometry(
    model: GraphModel,
    positions: Sequence[Point],
    offsets: Sequence[PortOffsets],
) -> Dict[str, Vector]:
    """
    Segments for every connected edge of a freshly built model.

    Args:
        model: The graph; node indices match ``positions`` and ``offsets``.
        positions: Position per node index.
        offsets: Port offsets per node index.

    Returns:
        One segment per connected edge id.
    """
    geometry: Dict[str, Vector] = {}
    for edge_id in model.connected_edges():
        endpoints = model.endpoints[edge_id]
        source = model.index_of(endpoints.out_node_id)
        target = model.index_of(endpoints.in_node_id)
        geometry[edge_id] = edge_vector(
            endpoints,
            positions[source],
            offsets[source],
            positions[target],
            offsets[target],
        )
    return geometry
