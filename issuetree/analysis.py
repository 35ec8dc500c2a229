"""
Graph analysis - structural queries and summarization.

Used by the layout engine (connected components) and by the backend to
describe the current graph.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Iterable

from .models import Edge, GraphSnapshot, Node


@dataclass
class ConnectedComponent:
    """A weakly connected component of the graph."""
    node_ids: list[str] = field(default_factory=list)
    edge_count: int = 0

    @property
    def size(self) -> int:
        return len(self.node_ids)


@dataclass
class NodeConnectionInfo:
    """Connection information for a single node."""
    node_id: str
    label: str
    incoming: int = 0   # Edges pointing to this node
    outgoing: int = 0   # Edges pointing from this node

    @property
    def total(self) -> int:
        return self.incoming + self.outgoing


@dataclass
class GraphSummary:
    """Complete summary of a graph's structure."""
    total_nodes: int
    total_edges: int
    nodes_by_kind: dict[str, int]
    edges_by_style: dict[str, int]
    tags_in_use: list[str]
    connected_components: int
    most_connected_nodes: list[NodeConnectionInfo]
    orphan_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_nodes": self.total_nodes,
            "total_edges": self.total_edges,
            "nodes_by_kind": self.nodes_by_kind,
            "edges_by_style": self.edges_by_style,
            "tags_in_use": self.tags_in_use,
            "connected_components": self.connected_components,
            "most_connected_nodes": [
                {
                    "id": n.node_id,
                    "label": n.label,
                    "connections": n.total,
                    "incoming": n.incoming,
                    "outgoing": n.outgoing
                }
                for n in self.most_connected_nodes
            ],
            "orphan_count": self.orphan_count
        }


def find_connected_components(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
) -> list[ConnectedComponent]:
    """
    Find weakly connected components using BFS.

    Components are returned in discovery order (the insertion order of their
    first node) and list their node ids in insertion order, so the result is
    stable for a given graph. Edges touching nodes outside `nodes` are ignored.

    Args:
        nodes: Nodes to partition
        edges: Edges between them (direction is ignored)

    Returns:
        List of ConnectedComponent objects
    """
    order = {node.id: i for i, node in enumerate(nodes)}
    if not order:
        return []

    adjacency: dict[str, list[str]] = {nid: [] for nid in order}
    inner_edges: list[Edge] = []
    for edge in edges:
        if edge.source in order and edge.target in order:
            adjacency[edge.source].append(edge.target)
            adjacency[edge.target].append(edge.source)
            inner_edges.append(edge)

    component_of: dict[str, int] = {}
    components: list[ConnectedComponent] = []

    for start_node in order:
        if start_node in component_of:
            continue

        index = len(components)
        members: list[str] = []
        queue = deque([start_node])
        component_of[start_node] = index

        while queue:
            current = queue.popleft()
            members.append(current)
            for neighbor in adjacency[current]:
                if neighbor not in component_of:
                    component_of[neighbor] = index
                    queue.append(neighbor)

        members.sort(key=order.__getitem__)
        components.append(ConnectedComponent(node_ids=members))

    for edge in inner_edges:
        components[component_of[edge.source]].edge_count += 1

    return components


def calculate_node_connections(snapshot: GraphSnapshot) -> dict[str, NodeConnectionInfo]:
    """
    Calculate connection counts for all nodes.

    Returns:
        Dictionary mapping node_id to NodeConnectionInfo
    """
    connections: dict[str, NodeConnectionInfo] = {}
    for node in snapshot.nodes:
        connections[node.id] = NodeConnectionInfo(node_id=node.id, label=node.label)

    for edge in snapshot.edges:
        if edge.source in connections:
            connections[edge.source].outgoing += 1
        if edge.target in connections:
            connections[edge.target].incoming += 1

    return connections


def summarize_graph(snapshot: GraphSnapshot, top_n: int = 5) -> GraphSummary:
    """
    Generate a summary of a graph snapshot.

    Args:
        snapshot: The graph to summarize
        top_n: Number of top connected nodes to include
    """
    kind_counts: dict[str, int] = defaultdict(int)
    all_tags: set[str] = set()
    for node in snapshot.nodes:
        kind_counts[node.kind.value] += 1
        all_tags.update(node.tags)

    style_counts: dict[str, int] = defaultdict(int)
    for edge in snapshot.edges:
        style_counts[edge.style.value] += 1

    components = find_connected_components(snapshot.nodes, snapshot.edges)
    connections = calculate_node_connections(snapshot)

    # sorted() is stable, so ties keep insertion order
    sorted_by_connections = sorted(
        connections.values(),
        key=lambda x: x.total,
        reverse=True
    )
    most_connected = [n for n in sorted_by_connections[:top_n] if n.total > 0]
    orphan_count = sum(1 for n in connections.values() if n.total == 0)

    return GraphSummary(
        total_nodes=len(snapshot.nodes),
        total_edges=len(snapshot.edges),
        nodes_by_kind=dict(kind_counts),
        edges_by_style=dict(style_counts),
        tags_in_use=sorted(all_tags),
        connected_components=len(components),
        most_connected_nodes=most_connected,
        orphan_count=orphan_count
    )
