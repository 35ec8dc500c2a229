"""
Graph Store - the single owner of the current nodes and edges.

This module implements:
- O(1) node/edge lookups via index dictionaries
- Monotonic id allocation (ids are never reused, even after deletion)
- Referential integrity: edges are validated on insert and removed
  together with their endpoint nodes
- Immutable snapshots for readers
- Change callbacks, fired once per successful mutation
"""

import logging
from typing import Callable, Iterable, Optional

from .config import DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH
from .errors import InvalidEdge
from .models import Edge, EdgeStyle, GraphSnapshot, Node, NodeKind, Point, default_ports

logger = logging.getLogger(__name__)


class GraphStore:
    """
    Holds the graph and enforces its structural invariants.

    Node and edge objects are frozen; every change replaces the stored object,
    so snapshots taken earlier stay valid and unchanged.
    """

    def __init__(
        self,
        default_width: float = DEFAULT_NODE_WIDTH,
        default_height: float = DEFAULT_NODE_HEIGHT,
        next_node_id: int = 1,
        next_edge_id: int = 1,
    ):
        """
        Args:
            default_width: Width given to nodes added without one
            default_height: Height given to nodes added without one
            next_node_id: First node counter value (continues another store's ids)
            next_edge_id: First edge counter value
        """
        self._default_width = default_width
        self._default_height = default_height
        self._next_node = next_node_id
        self._next_edge = next_edge_id
        self._on_change_callbacks: list[Callable[[], None]] = []

        # O(1) lookup indexes (dicts keep insertion order)
        self._node_index: dict[str, Node] = {}          # node_id -> Node
        self._edge_index: dict[str, Edge] = {}          # edge_id -> Edge
        self._edges_by_node: dict[str, set[str]] = {}   # node_id -> set of edge_ids

    # --- Id allocation ---

    def _allocate_node_id(self) -> str:
        node_id = f"node-{self._next_node}"
        self._next_node += 1
        return node_id

    def _allocate_edge_id(self) -> str:
        edge_id = f"edge-{self._next_edge}"
        self._next_edge += 1
        return edge_id

    # --- Index Management ---

    def _index_edge(self, edge: Edge):
        self._edge_index[edge.id] = edge
        self._edges_by_node.setdefault(edge.source, set()).add(edge.id)
        self._edges_by_node.setdefault(edge.target, set()).add(edge.id)

    def _unindex_edge(self, edge: Edge):
        self._edge_index.pop(edge.id, None)
        if edge.source in self._edges_by_node:
            self._edges_by_node[edge.source].discard(edge.id)
        if edge.target in self._edges_by_node:
            self._edges_by_node[edge.target].discard(edge.id)

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[], None]):
        """Register a callback for graph changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        for callback in self._on_change_callbacks:
            callback()

    # --- Properties ---

    @property
    def node_count(self) -> int:
        return len(self._node_index)

    @property
    def edge_count(self) -> int:
        return len(self._edge_index)

    @property
    def next_node_id(self) -> int:
        """Counter value the next added node will get."""
        return self._next_node

    @property
    def next_edge_id(self) -> int:
        return self._next_edge

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_index

    # --- Node Operations ---

    def add_node(
        self,
        kind: NodeKind,
        x: float = 0,
        y: float = 0,
        width: Optional[float] = None,
        height: Optional[float] = None,
        inputs: Optional[int] = None,
        outputs: Optional[int] = None,
        label: str = "",
        content: str = "",
        sub_content: str = "",
        tags: Iterable[str] = (),
    ) -> str:
        """Add a node and return its newly allocated id."""
        kind = NodeKind(kind)
        default_inputs, default_outputs = default_ports(kind)

        # Validate before allocating so a bad request does not burn an id
        node = Node(
            id="pending",
            kind=kind,
            x=x,
            y=y,
            width=self._default_width if width is None else width,
            height=self._default_height if height is None else height,
            inputs=default_inputs if inputs is None else inputs,
            outputs=default_outputs if outputs is None else outputs,
            label=label,
            content=content,
            sub_content=sub_content,
            tags=tuple(tags),
        )
        node = node.model_copy(update={"id": self._allocate_node_id()})

        self._node_index[node.id] = node
        self._notify_change()
        return node.id

    def remove_node(self, node_id: str) -> bool:
        """Delete a node and all connected edges."""
        node = self._node_index.pop(node_id, None)
        if node is None:
            return False

        incident = list(self._edges_by_node.pop(node_id, set()))
        for edge_id in incident:
            edge = self._edge_index.get(edge_id)
            if edge:
                self._unindex_edge(edge)
        logger.debug("Removed %s and %d incident edges", node_id, len(incident))

        self._notify_change()
        return True

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(1) lookup)."""
        return self._node_index.get(node_id)

    def move_node(self, node_id: str, x: float, y: float) -> Optional[Node]:
        """Move a node to an absolute graph position."""
        node = self._node_index.get(node_id)
        if node is None:
            return None
        if node.x == x and node.y == y:
            return node

        node = node.model_copy(update={"x": x, "y": y})
        self._node_index[node_id] = node
        self._notify_change()
        return node

    def set_positions(self, positions: dict[str, Point]) -> int:
        """
        Write many node positions in one mutation.

        Ids that are not in the store are ignored. Returns the number of
        nodes whose position was written.
        """
        moved = 0
        for node_id, point in positions.items():
            node = self._node_index.get(node_id)
            if node is None:
                continue
            self._node_index[node_id] = node.model_copy(update={"x": point.x, "y": point.y})
            moved += 1

        if moved:
            self._notify_change()
        return moved

    # --- Edge Operations ---

    def add_edge(
        self,
        source: str,
        target: str,
        style: EdgeStyle = EdgeStyle.MANUAL,
        label: str = "",
    ) -> str:
        """
        Add an edge between two existing nodes and return its id.

        Raises InvalidEdge (leaving the store untouched) for self-loops,
        missing endpoints, or endpoints without the needed port.
        """
        if source == target:
            raise InvalidEdge(source, target, "self-loops are not allowed")

        source_node = self._node_index.get(source)
        if source_node is None:
            raise InvalidEdge(source, target, f"source node not found: {source}")
        target_node = self._node_index.get(target)
        if target_node is None:
            raise InvalidEdge(source, target, f"target node not found: {target}")

        if source_node.outputs == 0:
            raise InvalidEdge(source, target, f"{source} has no output ports")
        if target_node.inputs == 0:
            raise InvalidEdge(source, target, f"{target} has no input ports")

        edge = Edge(
            id=self._allocate_edge_id(),
            source=source,
            target=target,
            style=EdgeStyle(style),
            label=label,
        )
        self._index_edge(edge)
        self._notify_change()
        return edge.id

    def remove_edge(self, edge_id: str) -> bool:
        """Delete an edge."""
        edge = self._edge_index.get(edge_id)
        if edge is None:
            return False

        self._unindex_edge(edge)
        self._notify_change()
        return True

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        """Get an edge by ID (O(1) lookup)."""
        return self._edge_index.get(edge_id)

    def edges_for_node(self, node_id: str) -> list[Edge]:
        """Get all edges connected to a node, in insertion order."""
        edge_ids = self._edges_by_node.get(node_id)
        if not edge_ids:
            return []
        return [e for eid, e in self._edge_index.items() if eid in edge_ids]

    # --- Bulk ---

    def clear(self):
        """Drop every node and edge. Id counters keep running."""
        if not self._node_index and not self._edge_index:
            return
        self._node_index.clear()
        self._edge_index.clear()
        self._edges_by_node.clear()
        self._notify_change()

    def snapshot(self) -> GraphSnapshot:
        """Get an immutable view of the current graph."""
        return GraphSnapshot(
            nodes=tuple(self._node_index.values()),
            edges=tuple(self._edge_index.values()),
        )
