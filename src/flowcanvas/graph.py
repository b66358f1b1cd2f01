"""
Graph module for flow diagrams.

Provides the geometry-free graph model: nodes with port counts, the endpoint
table of every edge ever recorded, and the per-node incident edge lists that
make drag updates proportional to a node's degree.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from .models import EdgeProps, NodeProps

logger = logging.getLogger(__name__)


class GraphError(Exception):
    """Base class for graph consistency errors."""

    pass


class UnknownNode(GraphError, KeyError):
    """Raised when a node id is not part of the graph."""

    pass


class InvalidPortIndex(GraphError):
    """Raised when an edge references a port outside a node's port count."""

    pass


class DuplicateEdge(GraphError):
    """Raised when an edge with the same endpoints is already connected."""

    pass


def get_edge_id(
    out_node_id: str, output_index: int, in_node_id: str, input_index: int
) -> str:
    """
    Return the deterministic id of the edge between two ports.

    Two edges with the same source node/port and target node/port always
    produce the same id.
    """
    return f"edge_{out_node_id}:{output_index}_{in_node_id}:{input_index}"


@dataclass
class NodeData:
    """
    A node with its cached incident edge ids.

    Attributes:
        id: Node identifier.
        data: Opaque application payload.
        inputs: Number of input ports.
        outputs: Number of output ports.
        edges_in: Ids of edges whose target is this node.
        edges_out: Ids of edges whose source is this node.
    """

    id: str
    data: Dict[str, Any] = field(default_factory=dict)
    inputs: int = 0
    outputs: int = 0
    edges_in: List[str] = field(default_factory=list)
    edges_out: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class EdgeEndpoints:
    """Source and target ports of one edge."""

    out_node_id: str
    output_index: int
    in_node_id: str
    input_index: int

    def to_props(self, edge_id: str) -> EdgeProps:
        return EdgeProps(
            id=edge_id,
            source_node=self.out_node_id,
            source_output=self.output_index,
            target_node=self.in_node_id,
            target_input=self.input_index,
        )


class GraphModel:
    """
    Node list, edge endpoint table and incident edge caches.

    The endpoint table keeps every edge ever recorded, including edges that
    were later detached; only the incident lists say which edges are
    currently connected.
    """

    def __init__(self):
        self.nodes: List[NodeData] = []
        self.endpoints: Dict[str, EdgeEndpoints] = {}
        self._index: Dict[str, int] = {}

    @classmethod
    def from_props(
        cls,
        nodes: Sequence[NodeProps],
        edges: Sequence[EdgeProps],
        strict: bool = True,
    ) -> "GraphModel":
        """
        Build a model from the application's node and edge lists.

        Args:
            nodes: Nodes in display order.
            edges: Edges; their ids are kept as supplied.
            strict: Raise on malformed edges instead of skipping them.

        Returns:
            A populated GraphModel.

        Raises:
            GraphError: If ``strict`` and an edge references an unknown node
                        or an out-of-range port.
        """
        model = cls()
        for node in nodes:
            model.add_node(node)

        for edge in edges:
            if edge.id in model.endpoints:
                logger.warning("Skipping repeated edge id %s", edge.id)
                continue
            endpoints = EdgeEndpoints(
                edge.source_node,
                edge.source_output,
                edge.target_node,
                edge.target_input,
            )
            try:
                model._check_ports(
                    edge.source_node,
                    edge.source_output,
                    edge.target_node,
                    edge.target_input,
                )
            except GraphError:
                if strict:
                    raise
                logger.warning("Skipping malformed edge %s", edge.id)
                continue
            if model.has_edge(edge.id, endpoints):
                logger.warning("Skipping repeated connection %s", edge.id)
                continue
            model._connect(edge.id, endpoints)

        return model

    def add_node(self, node: NodeProps) -> NodeData:
        """Append a node with empty incident lists; negative counts become 0."""
        if node.inputs < 0 or node.outputs < 0:
            logger.warning("Clamping negative port counts on node %s", node.id)
        data = NodeData(
            id=node.id,
            data=node.data,
            inputs=max(node.inputs, 0),
            outputs=max(node.outputs, 0),
        )
        self._index[node.id] = len(self.nodes)
        self.nodes.append(data)
        return data

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._index

    def index_of(self, node_id: str) -> int:
        """Return the index of a node; raises UnknownNode."""
        try:
            return self._index[node_id]
        except KeyError:
            raise UnknownNode(node_id) from None

    def node(self, node_id: str) -> NodeData:
        return self.nodes[self.index_of(node_id)]

    def has_edge(self, edge_id: str, endpoints: EdgeEndpoints) -> bool:
        """
        Check whether the ports in ``endpoints`` are already connected.

        Both the source's outgoing list and the target's incoming list are
        consulted by id, so a half-recorded edge still counts as present.
        The source's outgoing edges are also compared by port, which catches
        the same connection recorded under an application-supplied id.
        """
        source = self.node(endpoints.out_node_id)
        target = self.node(endpoints.in_node_id)
        if edge_id in source.edges_out:
            return True
        if edge_id in target.edges_in:
            return True
        return any(self.endpoints.get(e) == endpoints for e in source.edges_out)

    def add_edge(
        self,
        out_node_id: str,
        output_index: int,
        in_node_id: str,
        input_index: int,
    ) -> str:
        """
        Connect an output port to an input port.

        Everything is validated before either incident list is touched.

        Returns:
            The id of the new edge.

        Raises:
            UnknownNode: If either node is not in the graph.
            InvalidPortIndex: If either port index is out of range.
            DuplicateEdge: If the same ports are already connected.
        """
        self._check_ports(out_node_id, output_index, in_node_id, input_index)
        edge_id = get_edge_id(out_node_id, output_index, in_node_id, input_index)
        endpoints = EdgeEndpoints(out_node_id, output_index, in_node_id, input_index)

        if self.has_edge(edge_id, endpoints):
            raise DuplicateEdge(edge_id)

        self._connect(edge_id, endpoints)
        return edge_id

    def detach_edge(self, edge_id: str) -> EdgeEndpoints:
        """
        Remove an edge from both endpoint caches.

        The endpoint record is kept so the id can still be resolved.

        Raises:
            KeyError: If the edge was never recorded.
        """
        endpoints = self.endpoints[edge_id]
        if endpoints.out_node_id in self._index:
            source = self.node(endpoints.out_node_id)
            source.edges_out = [e for e in source.edges_out if e != edge_id]
        if endpoints.in_node_id in self._index:
            target = self.node(endpoints.in_node_id)
            target.edges_in = [e for e in target.edges_in if e != edge_id]
        return endpoints

    def incident_edges(self, node_id: str) -> Tuple[List[str], List[str]]:
        """Return copies of a node's (incoming, outgoing) edge ids."""
        node = self.node(node_id)
        return list(node.edges_in), list(node.edges_out)

    def connected_edges(self) -> Iterator[str]:
        """Yield every currently connected edge id once."""
        for node in self.nodes:
            yield from node.edges_out

    def consistency_errors(self) -> List[str]:
        """
        Describe every violation of the incident list invariants.

        An empty list means every incoming id targets its node, every
        outgoing id starts at its node, and each connected edge appears in
        both of its endpoints' lists.
        """
        problems = []
        for node in self.nodes:
            for edge_id in node.edges_in:
                endpoints = self.endpoints.get(edge_id)
                if endpoints is None or endpoints.in_node_id != node.id:
                    problems.append(f"{edge_id} listed as incoming on {node.id}")
                elif edge_id not in self.node(endpoints.out_node_id).edges_out:
                    problems.append(f"{edge_id} missing from {endpoints.out_node_id}")
            for edge_id in node.edges_out:
                endpoints = self.endpoints.get(edge_id)
                if endpoints is None or endpoints.out_node_id != node.id:
                    problems.append(f"{edge_id} listed as outgoing on {node.id}")
                elif edge_id not in self.node(endpoints.in_node_id).edges_in:
                    problems.append(f"{edge_id} missing from {endpoints.in_node_id}")
        return problems

    def _check_ports(
        self,
        out_node_id: str,
        output_index: int,
        in_node_id: str,
        input_index: int,
    ) -> None:
        source = self.node(out_node_id)
        target = self.node(in_node_id)
        if not 0 <= output_index < source.outputs:
            raise InvalidPortIndex(
                f"Output {output_index} out of range for node {out_node_id} "
                f"({source.outputs} outputs)"
            )
        if not 0 <= input_index < target.inputs:
            raise InvalidPortIndex(
                f"Input {input_index} out of range for node {in_node_id} "
                f"({target.inputs} inputs)"
            )

    def _connect(self, edge_id: str, endpoints: EdgeEndpoints) -> None:
        self.endpoints[edge_id] = endpoints
        self.node(endpoints.out_node_id).edges_out.append(edge_id)
        self.node(endpoints.in_node_id).edges_in.append(edge_id)
