"""
Interaction state machine for flow diagrams.

The InteractionController owns every piece of mutable diagram state: node
positions, port offsets, edge segments and edge active flags. It turns
pointer events delivered by a renderer into node drags and drag-to-connect
gestures, and reports structural changes (edge added or removed, node
removed) to the surrounding application as complete node or edge lists.

The application stays the source of truth for the node and edge lists. It
feeds updated lists back through sync(); only a change in node count
triggers a fresh layout.

States:
    Idle: No gesture in progress.
    DraggingNode: A node follows the pointer.
    DraggingPendingEdge: A new edge is being dragged out of an output port.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .edges import (
    edge_vector,
    incident_edge_updates,
    initial_edge_geometry,
    output_anchor,
)
from .graph import DuplicateEdge, GraphError, GraphModel, NodeData, UnknownNode
from .layout import NODE_SEPARATION, RANK_SEPARATION, LayoutError, NetworkXLayout
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
from .ports import NODE_HEIGHT, NODE_WIDTH, PORT_SPACING, PortGeometry
from .tracer import InteractionTrace

logger = logging.getLogger(__name__)

NodesListener = Callable[[List[NodeProps]], None]
EdgesListener = Callable[[List[EdgeProps]], None]
LayoutErrorListener = Callable[[LayoutError], None]


@dataclass(frozen=True)
class Idle:
    """No gesture in progress."""


@dataclass(frozen=True)
class DraggingNode:
    """
    A node is being dragged.

    Attributes:
        node_index: Index of the dragged node.
        pointer_offset: Pointer position minus node position at press time.
    """

    node_index: int
    pointer_offset: Point


@dataclass(frozen=True)
class DraggingPendingEdge:
    """A connection is being dragged out of an output port."""

    source_node: int
    source_output: int


InteractionState = Union[Idle, DraggingNode, DraggingPendingEdge]

IDLE = Idle()


class InteractionController:
    """
    Owns diagram geometry and interprets pointer gestures.

    Example:
        >>> nodes = [NodeProps("A", outputs=1), NodeProps("B", inputs=1)]
        >>> controller = InteractionController(nodes, [])
        >>> controller.output_press("A", 0)
        True
        >>> controller.pointer_move(260, 40)
        >>> controller.input_release("B", 0)
        'edge_A:0_B:0'
    """

    def __init__(
        self,
        nodes: Sequence[NodeProps],
        edges: Sequence[EdgeProps],
        on_nodes_change: Optional[NodesListener] = None,
        on_edges_change: Optional[EdgesListener] = None,
        on_layout_error: Optional[LayoutErrorListener] = None,
        node_width: float = NODE_WIDTH,
        node_height: float = NODE_HEIGHT,
        port_spacing: float = PORT_SPACING,
        rank_separation: float = RANK_SEPARATION,
        node_separation: float = NODE_SEPARATION,
        measure_on_layout: bool = True,
        debug: bool = False,
    ):
        """
        Initialize the controller and run the first layout.

        Args:
            nodes: Initial node list.
            edges: Initial edge list.
            on_nodes_change: Called with the new node list after a deletion.
            on_edges_change: Called with the new edge list after any edge
                             change.
            on_layout_error: Called when a layout pass fails.
            node_width: Uniform node box width used for layout.
            node_height: Uniform node box height used for layout.
            port_spacing: Vertical distance between neighbouring ports.
            rank_separation: Horizontal gap between layout layers.
            node_separation: Vertical gap between nodes in a layer.
            measure_on_layout: Mount every node with the uniform box right
                               after layout, activating its edges. Disable
                               when a renderer reports measured geometry.
            debug: Record an InteractionTrace of every handler call.
        """
        self.node_width = node_width
        self.node_height = node_height
        self.measure_on_layout = measure_on_layout

        self.layout_engine = NetworkXLayout(
            node_width=node_width,
            node_height=node_height,
            rank_separation=rank_separation,
            node_separation=node_separation,
            port_spacing=port_spacing,
        )
        self.port_geometry = PortGeometry(port_spacing)

        self._nodes_listeners: List[NodesListener] = []
        self._edges_listeners: List[EdgesListener] = []
        self._layout_error_listeners: List[LayoutErrorListener] = []
        if on_nodes_change is not None:
            self.add_nodes_listener(on_nodes_change)
        if on_edges_change is not None:
            self.add_edges_listener(on_edges_change)
        if on_layout_error is not None:
            self.add_layout_error_listener(on_layout_error)

        self.trace: Optional[InteractionTrace] = InteractionTrace() if debug else None

        self.state: InteractionState = IDLE
        self.pending_edge: Optional[PendingEdge] = None
        self.layout_count = 0
        self.layout_error: Optional[LayoutError] = None

        # Last lists supplied by (or reported to) the application
        self._nodes: List[NodeProps] = list(nodes)
        self._edges: List[EdgeProps] = list(edges)

        # Derived state, indexed like self._model.nodes
        self._model = GraphModel()
        self._positions: List[Point] = []
        self._offsets: List[PortOffsets] = []
        self._sizes: List[Tuple[float, float]] = []
        self._edge_positions: Dict[str, Vector] = {}
        self._edge_actives: Dict[str, bool] = {}

        self._rebuild()

    # ------------------------------------------------------------------
    # Listeners

    def add_nodes_listener(self, listener: NodesListener) -> None:
        self._nodes_listeners.append(listener)

    def add_edges_listener(self, listener: EdgesListener) -> None:
        self._edges_listeners.append(listener)

    def add_layout_error_listener(self, listener: LayoutErrorListener) -> None:
        self._layout_error_listeners.append(listener)

    # ------------------------------------------------------------------
    # Structural sync

    def sync(self, nodes: Sequence[NodeProps], edges: Sequence[EdgeProps]) -> bool:
        """
        Accept updated node and edge lists from the application.

        A full re-layout runs only when the node count differs from the
        derived node count; any gesture in progress is then abandoned.

        Returns:
            True if the diagram was re-laid out.
        """
        self._nodes = list(nodes)
        self._edges = list(edges)

        if len(self._nodes) == len(self._model):
            return False

        if not isinstance(self.state, Idle):
            logger.debug("Node count changed mid-gesture, resetting to idle")
        self._rebuild()
        return True

    def _rebuild(self) -> None:
        """Re-derive every piece of geometry from the current props."""
        previous = {
            node.id: self._positions[index]
            for index, node in enumerate(self._model.nodes)
        }

        try:
            result = self.layout_engine.layout(self._nodes, self._edges)
        except LayoutError as exc:
            logger.warning("Layout failed, using fallback positions: %s", exc)
            self.layout_error = exc
            model = GraphModel.from_props(self._nodes, self._edges, strict=False)
            positions = [
                previous.get(node.id, node.position) for node in self._nodes
            ]
            offsets = [
                self.port_geometry.for_node(node, self.node_width, self.node_height)
                for node in model.nodes
            ]
        else:
            self.layout_error = None
            model = GraphModel.from_props(self._nodes, self._edges)
            positions = [result.nodes[node.id].point for node in self._nodes]
            offsets = [result.nodes[node.id].offsets for node in self._nodes]

        self._model = model
        self._positions = positions
        self._sizes = [(self.node_width, self.node_height)] * len(model)
        self._offsets = offsets
        self._edge_positions = initial_edge_geometry(
            model, self._positions, self._offsets
        )
        self._edge_actives = {edge_id: False for edge_id in model.endpoints}
        self.state = IDLE
        self.pending_edge = None
        self.layout_count += 1

        if self.measure_on_layout:
            for index in range(len(model)):
                self._mount(index, self._offsets[index])

        if self.trace is not None:
            self.trace.add_change("layout", len(model))

        if self.layout_error is not None:
            for listener in list(self._layout_error_listeners):
                listener(self.layout_error)

    # ------------------------------------------------------------------
    # Mount-time geometry

    def report_node_geometry(self, node_id: str, width: float, height: float) -> None:
        """
        Accept the measured box size of a rendered node.

        Port offsets are recomputed for the new size and every edge touching
        the node becomes active with fresh geometry.

        Raises:
            UnknownNode: If the node is not part of the diagram.
        """
        index = self._model.index_of(node_id)
        node = self._model.nodes[index]
        self._sizes[index] = (width, height)
        self._mount(index, self.port_geometry.for_node(node, width, height))

    def mount_node(self, node_id: str, offsets: PortOffsets) -> None:
        """
        Accept port offsets measured by a renderer.

        Raises:
            UnknownNode: If the node is not part of the diagram.
            ValueError: If the offsets do not match the node's port counts.
        """
        index = self._model.index_of(node_id)
        node = self._model.nodes[index]
        if len(offsets.inputs) != node.inputs or len(offsets.outputs) != node.outputs:
            raise ValueError(
                f"Node {node_id} has {node.inputs}/{node.outputs} ports, got "
                f"{len(offsets.inputs)}/{len(offsets.outputs)} offsets"
            )
        self._mount(index, offsets.copy())

    def _mount(self, index: int, offsets: PortOffsets) -> None:
        self._offsets[index] = offsets
        node = self._model.nodes[index]
        for edge_id in node.edges_in + node.edges_out:
            self._edge_actives[edge_id] = True
        self._refresh_incident_edges(index)

    # ------------------------------------------------------------------
    # Node drag

    def node_press(self, node_id: str, x: float, y: float) -> bool:
        """
        Start dragging a node.

        The offset between pointer and node position is kept so the node
        does not jump to the pointer.

        Returns:
            True if a drag started.
        """
        before = self.state
        if not isinstance(self.state, Idle):
            self._record("node_press", before, "ignored: gesture in progress")
            return False

        try:
            index = self._model.index_of(node_id)
        except UnknownNode:
            logger.debug("Press on unknown node %s", node_id)
            self._record("node_press", before, f"unknown node {node_id}")
            return False

        self.state = DraggingNode(index, Point(x, y) - self._positions[index])
        self._record("node_press", before, node_id)
        return True

    def node_release(self, node_id: str) -> None:
        """End a node drag."""
        before = self.state
        if isinstance(self.state, DraggingNode):
            self.state = IDLE
        self._record("node_release", before, node_id)

    def pointer_move(self, x: float, y: float) -> None:
        """
        Track the pointer.

        While dragging a node, its position follows the pointer and the
        segments of its active edges are updated. While dragging a
        connection, the preview endpoint follows the pointer.
        """
        before = self.state
        state = self.state
        pointer = Point(x, y)

        if isinstance(state, DraggingNode):
            self._positions[state.node_index] = pointer - state.pointer_offset
            self._refresh_incident_edges(state.node_index)
        elif isinstance(state, DraggingPendingEdge) and self.pending_edge is not None:
            self.pending_edge.position = self.pending_edge.position.with_end(pointer)

        self._record("pointer_move", before, f"({x}, {y})")

    def _refresh_incident_edges(self, index: int) -> None:
        self._edge_positions.update(
            incident_edge_updates(
                self._model.nodes[index],
                self._positions[index],
                self._offsets[index],
                self._model.endpoints,
                self._edge_positions,
                self._edge_actives,
            )
        )

    # ------------------------------------------------------------------
    # Drag-to-connect

    def output_press(self, node_id: str, output_index: int) -> bool:
        """
        Start dragging a new connection out of an output port.

        Returns:
            True if a pending edge was created.
        """
        before = self.state
        if not isinstance(self.state, Idle):
            self._record("output_press", before, "ignored: gesture in progress")
            return False

        try:
            index = self._model.index_of(node_id)
        except UnknownNode:
            logger.debug("Press on output of unknown node %s", node_id)
            self._record("output_press", before, f"unknown node {node_id}")
            return False

        if not 0 <= output_index < self._model.nodes[index].outputs:
            logger.debug("Press on missing output %s:%s", node_id, output_index)
            self._record("output_press", before, "invalid output")
            return False

        anchor = output_anchor(
            self._positions[index], self._offsets[index], output_index
        )
        self.pending_edge = PendingEdge(Vector.between(anchor, anchor), index, output_index)
        self.state = DraggingPendingEdge(index, output_index)
        self._record("output_press", before, f"{node_id}:{output_index}")
        return True

    def input_release(self, node_id: str, input_index: int) -> Optional[str]:
        """
        Drop the pending connection on an input port.

        Dropping on another node's input commits a new edge unless the same
        ports are already connected or the port does not exist. Dropping on
        the source node's own input abandons the connection. The controller
        is idle afterwards in every case.

        Returns:
            The id of the new edge, or None if nothing was committed.
        """
        before = self.state
        state = self.state
        if not isinstance(state, DraggingPendingEdge):
            self._record("input_release", before, "ignored: no pending edge")
            return None

        edge_id = None
        detail = ""
        try:
            target = self._model.index_of(node_id)
            if target == state.source_node:
                detail = "same node"
            else:
                edge_id = self._commit_edge(
                    state.source_node, state.source_output, target, input_index
                )
                detail = f"committed {edge_id}"
        except DuplicateEdge as exc:
            logger.debug("Discarding duplicate edge %s", exc)
            detail = "duplicate"
        except GraphError as exc:
            logger.debug("Rejected connection: %s", exc)
            detail = f"rejected: {exc}"

        self.pending_edge = None
        self.state = IDLE
        self._record("input_release", before, detail)

        if edge_id is not None:
            self._edges = self.active_edges()
            self._notify_edges(self._edges)
        return edge_id

    def _commit_edge(
        self, source: int, output_index: int, target: int, input_index: int
    ) -> str:
        source_node = self._model.nodes[source]
        target_node = self._model.nodes[target]
        edge_id = self._model.add_edge(
            source_node.id, output_index, target_node.id, input_index
        )
        self._edge_actives[edge_id] = True
        self._edge_positions[edge_id] = edge_vector(
            self._model.endpoints[edge_id],
            self._positions[source],
            self._offsets[source],
            self._positions[target],
            self._offsets[target],
        )
        return edge_id

    def mouse_up(self) -> None:
        """Global pointer-up: drop any pending edge and return to idle."""
        before = self.state
        self.pending_edge = None
        self.state = IDLE
        self._record("mouse_up", before)

    # ------------------------------------------------------------------
    # Deletion

    def delete_node(self, node_id: str) -> bool:
        """
        Ask the application to remove a node and every edge touching it.

        The edge list is reported first, then the node list. Derived state
        is untouched until the application syncs the new lists.

        Returns:
            True if notifications were sent.
        """
        node = next((n for n in self._nodes if n.id == node_id), None)
        if node is None:
            logger.debug("Delete requested for unknown node %s", node_id)
            return False
        if not node.deletable:
            logger.debug("Node %s is not deletable", node_id)
            return False

        edges = [
            edge
            for edge in self._edges
            if edge.source_node != node_id and edge.target_node != node_id
        ]
        nodes = [n for n in self._nodes if n.id != node_id]
        self._nodes = nodes
        self._edges = edges
        self._record("delete_node", self.state, node_id)

        # Listeners may sync() in between, so report the lists computed here
        self._notify_edges(edges)
        self._notify_nodes(nodes)
        return True

    def delete_edge(self, edge_id: str) -> bool:
        """
        Remove an edge from the diagram.

        The edge is marked inactive and dropped from both endpoint caches;
        its endpoint record is kept.

        Returns:
            True if the edge was active and the application was notified.
        """
        if edge_id not in self._model.endpoints:
            logger.debug("Delete requested for unknown edge %s", edge_id)
            return False
        if not self._edge_actives.get(edge_id):
            logger.debug("Edge %s is already inactive", edge_id)
            return False

        self._model.detach_edge(edge_id)
        self._edge_actives[edge_id] = False
        self._record("delete_edge", self.state, edge_id)

        self._edges = self.active_edges()
        self._notify_edges(self._edges)
        return True

    # ------------------------------------------------------------------
    # Notifications

    def _notify_edges(self, edges: List[EdgeProps]) -> None:
        if self.trace is not None:
            self.trace.add_change("edges", len(edges))
        for listener in list(self._edges_listeners):
            listener(list(edges))

    def _notify_nodes(self, nodes: List[NodeProps]) -> None:
        if self.trace is not None:
            self.trace.add_change("nodes", len(nodes))
        for listener in list(self._nodes_listeners):
            listener(list(nodes))

    def _record(self, event: str, before: InteractionState, detail: str = "") -> None:
        logger.debug("%s: %s -> %s %s", event, before, self.state, detail)
        if self.trace is not None:
            self.trace.add_transition(
                event, type(before).__name__, type(self.state).__name__, detail
            )

    # ------------------------------------------------------------------
    # Read access

    @property
    def nodes(self) -> List[NodeProps]:
        """The last node list supplied by or reported to the application."""
        return list(self._nodes)

    @property
    def edges(self) -> List[EdgeProps]:
        """The last edge list supplied by or reported to the application."""
        return list(self._edges)

    def active_edges(self) -> List[EdgeProps]:
        """Every edge whose active flag is set."""
        return [
            self._model.endpoints[edge_id].to_props(edge_id)
            for edge_id, active in self._edge_actives.items()
            if active
        ]

    def is_active(self, edge_id: str) -> bool:
        return self._edge_actives.get(edge_id, False)

    def node_data(self, node_id: str) -> NodeData:
        """A copy of a node's derived data, incident lists included."""
        edges_in, edges_out = self._model.incident_edges(node_id)
        return replace(
            self._model.node(node_id), edges_in=edges_in, edges_out=edges_out
        )

    def position_of(self, node_id: str) -> Point:
        return self._positions[self._model.index_of(node_id)]

    def offsets_of(self, node_id: str) -> PortOffsets:
        return self._offsets[self._model.index_of(node_id)].copy()

    def size_of(self, node_id: str) -> Tuple[float, float]:
        return self._sizes[self._model.index_of(node_id)]

    @property
    def positions(self) -> Dict[str, Point]:
        return {
            node.id: self._positions[index]
            for index, node in enumerate(self._model.nodes)
        }

    @property
    def edge_positions(self) -> Dict[str, Vector]:
        """Current segment of every edge with recorded geometry."""
        return dict(self._edge_positions)

    def consistency_errors(self) -> List[str]:
        """Invariant violations in the derived graph; empty when consistent."""
        return self._model.consistency_errors()

    def snapshot(self) -> DiagramSnapshot:
        """Capture everything a renderer needs to draw the current frame."""
        views = []
        for index, node in enumerate(self._model.nodes):
            width, height = self._sizes[index]
            views.append(
                NodeView(
                    id=node.id,
                    label=str(node.data.get("label", node.id)),
                    position=self._positions[index],
                    width=width,
                    height=height,
                    offsets=self._offsets[index].copy(),
                )
            )

        return DiagramSnapshot(
            nodes=views,
            edges={
                edge_id: vector
                for edge_id, vector in self._edge_positions.items()
                if self._edge_actives.get(edge_id)
            },
            pending=self.pending_edge.position if self.pending_edge else None,
        )

    def get_trace(self) -> Optional[InteractionTrace]:
        """The debug trace, or None when debug mode is off."""
        return self.trace


FlowChart = InteractionController
