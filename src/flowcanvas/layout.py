"""
Layout module using networkx for layered left-to-right graph layout.

Uses networkx for:
- Graph representation
- Cycle detection
- Topological sorting / layer assignment

Layers become columns from left to right; nodes within a layer are ordered
with the barycenter heuristic and stacked vertically. Every node is treated
as the same fixed-size box whatever its port count.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

import networkx as nx

from .models import EdgeProps, NodeProps, Point, PortOffsets
from .ports import NODE_HEIGHT, NODE_WIDTH, PORT_SPACING, compute_port_offsets

logger = logging.getLogger(__name__)

# Horizontal gap between neighbouring layers (columns)
RANK_SEPARATION = 50

# Vertical gap between neighbouring nodes of one layer
NODE_SEPARATION = 50


class LayoutError(Exception):
    """Raised when a graph cannot be laid out."""

    pass


@dataclass
class NodeLayout:
    """Represents a node's layout information."""

    id: str
    layer: int = 0
    position: int = 0  # Position within layer
    x: float = 0.0  # Left edge
    y: float = 0.0  # Vertical midpoint
    width: float = 0.0
    height: float = 0.0
    offsets: PortOffsets = field(default_factory=PortOffsets)

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass
class LayoutResult:
    """Result of the layout algorithm."""

    nodes: Dict[str, NodeLayout] = field(default_factory=dict)
    layers: List[List[str]] = field(default_factory=list)
    edges: List[Tuple[str, str]] = field(default_factory=list)
    back_edges: Set[Tuple[str, str]] = field(default_factory=set)
    has_cycles: bool = False

    def positions(self) -> Dict[str, Point]:
        """Node positions keyed by node id."""
        return {node_id: node.point for node_id, node in self.nodes.items()}


class NetworkXLayout:
    """
    Layered graph layout using networkx.

    For DAGs: longest-path layering over a topological order.
    For cyclic graphs: identifies back edges, ignores them for layering,
    then lays out the remaining DAG.
    """

    def __init__(
        self,
        node_width: float = NODE_WIDTH,
        node_height: float = NODE_HEIGHT,
        rank_separation: float = RANK_SEPARATION,
        node_separation: float = NODE_SEPARATION,
        port_spacing: float = PORT_SPACING,
        margin: float = 0,
    ):
        """
        Initialize the layout engine.

        Args:
            node_width: Width of the uniform node box.
            node_height: Height of the uniform node box.
            rank_separation: Horizontal gap between layers.
            node_separation: Vertical gap between nodes in one layer.
            port_spacing: Vertical distance between neighbouring ports.
            margin: Offset applied to every coordinate.
        """
        self.node_width = node_width
        self.node_height = node_height
        self.rank_separation = rank_separation
        self.node_separation = node_separation
        self.port_spacing = port_spacing
        self.margin = margin
        self.graph: nx.DiGraph = None
        self.back_edges: Set[Tuple[str, str]] = set()

    def layout(
        self,
        nodes: Sequence[NodeProps],
        edges: Sequence[EdgeProps],
    ) -> LayoutResult:
        """
        Compute layout for the given nodes and edges.

        Args:
            nodes: Nodes to place; their advisory positions are ignored.
            edges: Edges between the nodes; port indices only matter for
                   validation.

        Returns:
            LayoutResult with node positions, port offsets and layers

        Raises:
            LayoutError: If the graph is malformed or networkx rejects it.
        """
        self._validate(nodes, edges)

        connections = []
        for edge in edges:
            pair = (edge.source_node, edge.target_node)
            if pair not in connections:
                connections.append(pair)

        # Build networkx graph
        self.graph = nx.DiGraph()
        self.graph.add_nodes_from(node.id for node in nodes)
        self.graph.add_edges_from(connections)
        self.back_edges = set()

        try:
            has_cycles = not nx.is_directed_acyclic_graph(self.graph)
            if has_cycles:
                self._break_cycles()

            layers = self._assign_layers()
            layers = self._order_layers(layers)
        except nx.NetworkXException as exc:
            raise LayoutError(f"Layout failed: {exc}") from exc

        result = LayoutResult()
        result.has_cycles = has_cycles
        result.back_edges = set(self.back_edges)
        result.layers = layers
        result.edges = connections

        ports = {node.id: (node.inputs, node.outputs) for node in nodes}
        for node_id, (layer_idx, pos_idx, point) in self._assign_coordinates(
            layers
        ).items():
            inputs, outputs = ports[node_id]
            result.nodes[node_id] = NodeLayout(
                id=node_id,
                layer=layer_idx,
                position=pos_idx,
                x=point.x,
                y=point.y,
                width=self.node_width,
                height=self.node_height,
                offsets=compute_port_offsets(
                    inputs,
                    outputs,
                    self.node_width,
                    self.node_height,
                    self.port_spacing,
                ),
            )

        logger.debug(
            "Laid out %d nodes in %d layers (cycles: %s)",
            len(result.nodes),
            len(layers),
            has_cycles,
        )
        return result

    def _validate(self, nodes: Sequence[NodeProps], edges: Sequence[EdgeProps]) -> None:
        """Reject graphs that cannot be drawn."""
        ports: Dict[str, Tuple[int, int]] = {}
        for node in nodes:
            if node.id in ports:
                raise LayoutError(f"Duplicate node id: {node.id}")
            if node.inputs < 0 or node.outputs < 0:
                raise LayoutError(f"Negative port count on node {node.id}")
            ports[node.id] = (node.inputs, node.outputs)

        for edge in edges:
            if edge.source_node not in ports:
                raise LayoutError(
                    f"Edge {edge.id} starts at unknown node {edge.source_node}"
                )
            if edge.target_node not in ports:
                raise LayoutError(
                    f"Edge {edge.id} ends at unknown node {edge.target_node}"
                )
            if not 0 <= edge.source_output < ports[edge.source_node][1]:
                raise LayoutError(
                    f"Edge {edge.id} uses missing output {edge.source_output}"
                )
            if not 0 <= edge.target_input < ports[edge.target_node][0]:
                raise LayoutError(
                    f"Edge {edge.id} uses missing input {edge.target_input}"
                )

    def _break_cycles(self) -> None:
        """
        Identify back edges so the rest of the graph forms a DAG.
        Uses DFS, starting from nodes without predecessors. The traversal
        keeps an explicit stack so long paths do not hit the recursion limit.
        """
        visited = set()
        rec_stack = set()

        def dfs(start):
            visited.add(start)
            rec_stack.add(start)
            stack = [(start, iter(list(self.graph.successors(start))))]

            while stack:
                node, successors = stack[-1]
                for successor in successors:
                    if successor not in visited:
                        visited.add(successor)
                        rec_stack.add(successor)
                        stack.append(
                            (successor, iter(list(self.graph.successors(successor))))
                        )
                        break
                    if successor in rec_stack:
                        # Back edge (self-loops included)
                        self.back_edges.add((node, successor))
                else:
                    stack.pop()
                    rec_stack.remove(node)

        roots = [n for n in self.graph.nodes() if self.graph.in_degree(n) == 0]
        for root in roots:
            if root not in visited:
                dfs(root)

        # Nodes only reachable through cycles
        for node in self.graph.nodes():
            if node not in visited:
                dfs(node)

    def _assign_layers(self) -> List[List[str]]:
        """
        Assign nodes to layers using longest path method.
        """
        working_graph = self.graph.copy()
        working_graph.remove_edges_from(self.back_edges)

        node_layer: Dict[str, int] = {}
        for node in nx.topological_sort(working_graph):
            predecessors = list(working_graph.predecessors(node))
            if not predecessors:
                node_layer[node] = 0
            else:
                node_layer[node] = max(node_layer[p] for p in predecessors) + 1

        if not node_layer:
            return []

        max_layer = max(node_layer.values())
        layers: List[List[str]] = [[] for _ in range(max_layer + 1)]

        # Input order inside each layer before crossing reduction
        for node in self.graph.nodes():
            layers[node_layer[node]].append(node)

        return layers

    def _order_layers(self, layers: List[List[str]]) -> List[List[str]]:
        """
        Order nodes within each layer to minimize edge crossings.
        Uses barycenter heuristic.
        """
        if len(layers) <= 1:
            return layers

        working_graph = self.graph.copy()
        working_graph.remove_edges_from(self.back_edges)

        for _ in range(4):
            # Forward pass
            for i in range(1, len(layers)):
                layers[i] = self._order_layer_by_barycenter(
                    layers[i], layers[i - 1], working_graph, use_predecessors=True
                )

            # Backward pass
            for i in range(len(layers) - 2, -1, -1):
                layers[i] = self._order_layer_by_barycenter(
                    layers[i], layers[i + 1], working_graph, use_predecessors=False
                )

        return layers

    def _order_layer_by_barycenter(
        self,
        layer: List[str],
        ref_layer: List[str],
        graph: nx.DiGraph,
        use_predecessors: bool,
    ) -> List[str]:
        """
        Order nodes by barycenter (average position of connected nodes).
        """
        ref_positions = {node: i for i, node in enumerate(ref_layer)}
        own_positions = {node: i for i, node in enumerate(layer)}

        def barycenter(node: str) -> float:
            if use_predecessors:
                neighbors = graph.predecessors(node)
            else:
                neighbors = graph.successors(node)

            positions = [ref_positions[n] for n in neighbors if n in ref_positions]

            if not positions:
                # Nodes unconnected to the reference layer keep their slot
                return own_positions[node]

            return sum(positions) / len(positions)

        return sorted(layer, key=barycenter)

    def _assign_coordinates(
        self, layers: List[List[str]]
    ) -> Dict[str, Tuple[int, int, Point]]:
        """
        Place layers as columns and stack each layer's nodes vertically.

        Every column is centred against the tallest one. Positions are the
        node's left edge and vertical midpoint.
        """
        pitch = self.node_height + self.node_separation
        column_heights = [
            len(layer) * self.node_height + (len(layer) - 1) * self.node_separation
            for layer in layers
        ]
        max_height = max(column_heights) if column_heights else 0

        placed: Dict[str, Tuple[int, int, Point]] = {}
        for layer_idx, layer in enumerate(layers):
            x = self.margin + layer_idx * (self.node_width + self.rank_separation)
            top = self.margin + (max_height - column_heights[layer_idx]) / 2

            for pos_idx, node_id in enumerate(layer):
                y = top + pos_idx * pitch + self.node_height / 2
                placed[node_id] = (layer_idx, pos_idx, Point(float(x), float(y)))

        return placed


def compute_layout(
    nodes: Sequence[NodeProps],
    edges: Sequence[EdgeProps],
    **kwargs,
) -> LayoutResult:
    """
    Lay out a diagram with a fresh NetworkXLayout.

    Args:
        nodes: Nodes to place.
        edges: Edges between them.
        **kwargs: Passed to NetworkXLayout.

    Returns:
        LayoutResult for the graph.
    """
    return NetworkXLayout(**kwargs).layout(nodes, edges)


LayoutEngine = NetworkXLayout
