"""
Layered (Sugiyama-style) layout for directed acyclic graphs.

Phases:
  1. Rank assignment: longest path from any source node
  2. Ordering within a rank: barycenter of predecessors in the previous rank
  3. Coordinate assignment: cumulative node sizes plus nodesep / ranksep

Each weakly connected component is laid out on its own and the components
are placed side by side in discovery order. The layout is a pure function
of (nodes, edges, config): the same topology and insertion order always
produce bit-identical coordinates. Positions are top-left corners.
"""

import heapq
import logging
from typing import Iterable, Optional, Sequence

from .analysis import find_connected_components
from .config import Direction, LayoutConfig
from .errors import CyclicGraph
from .models import Edge, Node, Point
from .store import GraphStore

logger = logging.getLogger(__name__)


def assign_ranks(nodes: Sequence[Node], edges: Iterable[Edge]) -> dict[str, int]:
    """
    Assign each node the length of the longest path reaching it from a source.

    Nodes are processed in topological order, breaking ties by insertion
    order. Edges with an endpoint outside `nodes` are ignored.

    Raises:
        CyclicGraph: if some nodes cannot be ordered because of a cycle
    """
    order = {node.id: i for i, node in enumerate(nodes)}
    ids = [node.id for node in nodes]

    successors: dict[str, list[str]] = {nid: [] for nid in ids}
    in_degree: dict[str, int] = {nid: 0 for nid in ids}
    for edge in edges:
        if edge.source in order and edge.target in order:
            successors[edge.source].append(edge.target)
            in_degree[edge.target] += 1

    ready = [order[nid] for nid in ids if in_degree[nid] == 0]
    heapq.heapify(ready)

    ranks: dict[str, int] = {nid: 0 for nid in ids}
    processed = 0
    while ready:
        node_id = ids[heapq.heappop(ready)]
        processed += 1
        for child in successors[node_id]:
            if ranks[child] < ranks[node_id] + 1:
                ranks[child] = ranks[node_id] + 1
            in_degree[child] -= 1
            if in_degree[child] == 0:
                heapq.heappush(ready, order[child])

    if processed < len(ids):
        raise CyclicGraph([nid for nid in ids if in_degree[nid] > 0])

    return ranks


def order_ranks(
    node_ids: Sequence[str],
    ranks: dict[str, int],
    edges: Iterable[Edge],
) -> list[list[str]]:
    """
    Group nodes into ranks and order each rank to reduce crossings.

    Rank 0 keeps insertion order. Every later rank is sorted by the mean
    position of each node's predecessors in the rank above, ties broken by
    insertion order.

    Args:
        node_ids: Nodes to order, in insertion order
        ranks: Rank of every node in node_ids
        edges: Edges of the graph

    Returns:
        One list of node ids per rank
    """
    order = {nid: i for i, nid in enumerate(node_ids)}
    if not order:
        return []

    predecessors: dict[str, list[str]] = {nid: [] for nid in node_ids}
    for edge in edges:
        if edge.source in order and edge.target in order:
            preds = predecessors[edge.target]
            if edge.source not in preds:  # Parallel edges count once
                preds.append(edge.source)

    layers: list[list[str]] = [[] for _ in range(max(ranks[nid] for nid in node_ids) + 1)]
    for nid in node_ids:
        layers[ranks[nid]].append(nid)

    for r in range(1, len(layers)):
        above = {nid: i for i, nid in enumerate(layers[r - 1])}

        def barycenter(nid: str) -> tuple[float, int]:
            positions = [above[p] for p in predecessors[nid] if p in above]
            if not positions:
                return (float("inf"), order[nid])
            return (sum(positions) / len(positions), order[nid])

        layers[r].sort(key=barycenter)

    return layers


def _node_size(node: Node, config: LayoutConfig) -> tuple[float, float]:
    if config.uniform_size:
        return (config.node_width, config.node_height)
    return (node.width, node.height)


def _place_component(
    layers: list[list[str]],
    sizes: dict[str, tuple[float, float]],
    config: LayoutConfig,
) -> tuple[dict[str, tuple[float, float]], float]:
    """
    Place one component in (cross, main) coordinates.

    The main axis runs across ranks (down for TB, right for LR); the cross
    axis runs along a rank. Returns the positions and the cross extent.
    """
    horizontal = config.direction == Direction.LEFT_TO_RIGHT

    def cross_len(nid: str) -> float:
        width, height = sizes[nid]
        return height if horizontal else width

    def main_len(nid: str) -> float:
        width, height = sizes[nid]
        return width if horizontal else height

    extents = [
        sum(cross_len(nid) for nid in layer) + config.nodesep * (len(layer) - 1)
        for layer in layers
    ]
    widest = max(extents) if extents else 0.0

    placed: dict[str, tuple[float, float]] = {}
    main = 0.0
    for layer, extent in zip(layers, extents):
        cross = (widest - extent) / 2 if config.center_ranks else 0.0
        for nid in layer:
            placed[nid] = (cross, main)
            cross += cross_len(nid) + config.nodesep
        main += max(main_len(nid) for nid in layer) + config.ranksep

    return placed, widest


def layered_layout(
    nodes: Sequence[Node],
    edges: Iterable[Edge],
    config: Optional[LayoutConfig] = None,
) -> dict[str, Point]:
    """
    Compute overlap-free positions for a DAG.

    Args:
        nodes: Nodes to lay out, in insertion order
        edges: Edges between them (edges leaving the node set are ignored)
        config: Layout options

    Returns:
        Mapping of node id to top-left position

    Raises:
        CyclicGraph: if the graph is not acyclic
    """
    config = config or LayoutConfig()
    nodes = list(nodes)
    edges = list(edges)
    if not nodes:
        return {}

    ranks = assign_ranks(nodes, edges)
    sizes = {node.id: _node_size(node, config) for node in nodes}

    cross_positions: dict[str, tuple[float, float]] = {}
    cross_offset = 0.0
    for component in find_connected_components(nodes, edges):
        layers = order_ranks(component.node_ids, ranks, edges)
        placed, extent = _place_component(layers, sizes, config)
        for nid, (cross, main) in placed.items():
            cross_positions[nid] = (cross + cross_offset, main)
        cross_offset += extent + config.nodesep

    horizontal = config.direction == Direction.LEFT_TO_RIGHT
    raw: dict[str, tuple[float, float]] = {}
    for node in nodes:
        cross, main = cross_positions[node.id]
        raw[node.id] = (main, cross) if horizontal else (cross, main)

    # Translate so the bounding box starts at the configured origin
    min_x = min(x for x, _ in raw.values())
    min_y = min(y for _, y in raw.values())
    return {
        nid: Point(x - min_x + config.origin_x, y - min_y + config.origin_y)
        for nid, (x, y) in raw.items()
    }


def layout_bounds(
    positions: dict[str, Point],
    nodes: Iterable[Node],
    config: Optional[LayoutConfig] = None,
) -> Optional[tuple[float, float, float, float]]:
    """Get the bounding box (x, y, right, bottom) of a layout result."""
    config = config or LayoutConfig()
    boxes = []
    for node in nodes:
        point = positions.get(node.id)
        if point is None:
            continue
        width, height = _node_size(node, config)
        boxes.append((point.x, point.y, point.x + width, point.y + height))

    if not boxes:
        return None
    return (
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )


def apply_layout(
    store: GraphStore,
    config: Optional[LayoutConfig] = None,
    node_ids: Optional[Iterable[str]] = None,
) -> dict[str, Point]:
    """
    Lay out the store's graph and write the positions back.

    Only nodes in `node_ids` (all nodes if None) are laid out and moved;
    every other node keeps its position. On CyclicGraph nothing is written.

    Returns:
        The positions that were written
    """
    snapshot = store.snapshot()
    nodes = list(snapshot.nodes)
    if node_ids is not None:
        selected = set(node_ids)
        nodes = [n for n in nodes if n.id in selected]

    positions = layered_layout(nodes, snapshot.edges, config)
    store.set_positions(positions)
    logger.info("Layout placed %d nodes", len(positions))
    return positions
