"""
Editor Session - the single writer for one graph, viewport and controller.

This module implements:
- One graph open at a time, in either free-form or auto-layout mode
- Building the issue tree from an analysis result (build, lay out, swap in)
- Structural edits, layout passes, viewport changes and pointer events
- Change callbacks, fired after every mutation, for real-time sync

Everything runs synchronously on the caller's thread; the backend calls in
from the event loop only.
"""

import logging
from typing import Any, Callable, Optional

from issuetree import (
    BuildOptions,
    EditorConfig,
    EditorMode,
    GraphSnapshot,
    GraphStore,
    HitInfo,
    HitTarget,
    InteractionController,
    LayoutConfig,
    Node,
    Edge,
    NodeKind,
    Point,
    PointerEvent,
    EventType,
    ViewportState,
    ViewportTransform,
    apply_layout,
    build_graph,
    layout_bounds,
    parse_analysis,
    render_payload,
    summarize_graph,
    validate_graph,
)
from issuetree.interaction import InteractionState, describe_state
from issuetree.models import EdgeStyle, PointerEventRequest
from issuetree.validation import validation_summary

logger = logging.getLogger(__name__)


def pointer_event_from_request(request: PointerEventRequest) -> PointerEvent:
    """Convert a wire-level pointer event. Raises ValueError on unknown enums."""
    return PointerEvent(
        type=EventType(request.type),
        x=request.x,
        y=request.y,
        hit=HitInfo(node_id=request.node_id, target=HitTarget(request.target)),
        delta=request.delta,
    )


class EditorSession:
    """
    Owns the graph store, the viewport and the interaction controller.

    Structural edits (adding or removing nodes and edges) are only accepted
    in free-form mode. In auto-layout mode the graph comes from the builder
    and only positions and the viewport change.
    """

    def __init__(self, config: Optional[EditorConfig] = None):
        self._config = config or EditorConfig()
        self._on_change_callbacks: list[Callable[[], None]] = []
        self._store: GraphStore
        self._viewport = ViewportTransform(self._config.viewport)
        self._controller: InteractionController
        self._install(self._new_store(None), self._config.mode)

    # --- Wiring ---

    def _new_store(self, previous: Optional[GraphStore]) -> GraphStore:
        """Create an empty store whose ids continue after `previous`."""
        counters = {}
        if previous is not None:
            counters = {
                "next_node_id": previous.next_node_id,
                "next_edge_id": previous.next_edge_id,
            }
        return GraphStore(
            default_width=self._config.layout.node_width,
            default_height=self._config.layout.node_height,
            **counters,
        )

    def _install(self, store: GraphStore, mode: EditorMode):
        """Make `store` the current graph. The previous one is dropped."""
        store.on_change(self._notify_change)
        self._store = store
        self._controller = InteractionController(store, self._viewport, mode)

    # --- Properties ---

    @property
    def config(self) -> EditorConfig:
        return self._config

    @property
    def mode(self) -> EditorMode:
        return self._controller.mode

    @property
    def store(self) -> GraphStore:
        return self._store

    @property
    def viewport(self) -> ViewportTransform:
        return self._viewport

    @property
    def interaction_state(self) -> InteractionState:
        return self._controller.state

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[], None]):
        """Register a callback for graph or viewport changes."""
        self._on_change_callbacks.append(callback)

    def off_change(self, callback: Callable[[], None]):
        """Unregister a callback added with on_change."""
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _notify_change(self):
        for callback in self._on_change_callbacks:
            callback()

    def _require_free_form(self):
        if self.mode != EditorMode.FREE_FORM:
            raise ValueError(f"Structural edits are disabled in {self.mode.value} mode")

    # --- Graph lifecycle ---

    def new_graph(self, mode: Optional[EditorMode] = None) -> GraphSnapshot:
        """Start an empty graph."""
        mode = EditorMode(mode) if mode is not None else EditorMode.FREE_FORM
        self._install(self._new_store(self._store), mode)
        self._viewport.reset()
        self._notify_change()
        logger.info("Started new %s graph", mode.value)
        return self._store.snapshot()

    def load_analysis(
        self,
        data: Any,
        options: Optional[BuildOptions] = None,
    ) -> GraphSnapshot:
        """
        Replace the graph with the issue tree for an analysis result.

        The tree is built and laid out in a fresh store that only replaces the
        current one once complete, so MalformedInput leaves the open graph as
        it was. Ids continue after the current graph's, so an id from an
        earlier graph never resolves to a node of the new one.
        """
        result = parse_analysis(data)
        store = build_graph(result, self._new_store(self._store), options)
        apply_layout(store, self._config.layout)

        self._install(store, EditorMode.AUTO_LAYOUT)
        self._viewport.reset()
        self._notify_change()
        logger.info("Loaded analysis with %d pillars", len(result.pillars))
        return store.snapshot()

    def relayout(self, overrides: Optional[dict] = None) -> dict[str, Point]:
        """
        Re-run the layered layout over the whole graph.

        This overwrites every node position, including nodes the user dragged.
        Raises CyclicGraph (positions untouched) if the graph has a cycle.
        """
        config = self._config.layout
        if overrides:
            updates = {k: v for k, v in overrides.items() if v is not None}
            config = LayoutConfig.model_validate({**config.model_dump(), **updates})
        return apply_layout(self._store, config)

    # --- Node Operations ---

    def add_node(self, kind: NodeKind, **fields) -> Node:
        """Add a node (free-form mode only)."""
        self._require_free_form()
        node_id = self._store.add_node(kind, **fields)
        return self._store.get_node(node_id)

    def remove_node(self, node_id: str) -> bool:
        """Delete a node and its edges (free-form mode only)."""
        self._require_free_form()
        return self._store.remove_node(node_id)

    def move_node(self, node_id: str, x: float, y: float) -> Optional[Node]:
        return self._store.move_node(node_id, x, y)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._store.get_node(node_id)

    # --- Edge Operations ---

    def add_edge(
        self,
        source: str,
        target: str,
        style: EdgeStyle = EdgeStyle.MANUAL,
        label: str = "",
    ) -> Edge:
        """Add an edge (free-form mode only). Raises InvalidEdge."""
        self._require_free_form()
        edge_id = self._store.add_edge(source, target, style=style, label=label)
        return self._store.get_edge(edge_id)

    def remove_edge(self, edge_id: str) -> bool:
        self._require_free_form()
        return self._store.remove_edge(edge_id)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self._store.get_edge(edge_id)

    # --- Viewport ---

    def _viewport_changed(self, before: ViewportState) -> ViewportState:
        after = self._viewport.state
        if after != before:
            self._notify_change()
        return after

    def zoom(
        self,
        anchor: Point,
        delta: Optional[float] = None,
        level: Optional[float] = None,
    ) -> ViewportState:
        """Zoom around a screen anchor, by delta or to an absolute level."""
        before = self._viewport.state
        if level is not None:
            self._viewport.zoom_to(level, anchor)
        elif delta is not None:
            self._viewport.zoom_by(delta, anchor)
        return self._viewport_changed(before)

    def pan(self, dx: float, dy: float) -> ViewportState:
        before = self._viewport.state
        self._viewport.pan_by(Point(dx, dy))
        return self._viewport_changed(before)

    def fit_view(self, screen_width: float, screen_height: float, padding: float = 40) -> ViewportState:
        """Fit every node on a screen of the given size."""
        snapshot = self._store.snapshot()
        if not snapshot.nodes:
            return self._viewport.state
        bounds = layout_bounds(
            {n.id: n.position for n in snapshot.nodes},
            snapshot.nodes,
            self._config.layout.model_copy(update={"uniform_size": False}),
        )
        before = self._viewport.state
        self._viewport.fit_bounds(bounds, screen_width, screen_height, padding)
        return self._viewport_changed(before)

    # --- Interaction ---

    def handle_pointer(self, event: PointerEvent) -> InteractionState:
        """Feed a pointer event to the interaction controller."""
        before = self._viewport.state
        state = self._controller.handle(event)
        self._viewport_changed(before)
        return state

    def cancel_interaction(self) -> InteractionState:
        return self._controller.cancel()

    # --- Reporting ---

    def get_state(self) -> dict:
        """Get the full current state for API responses."""
        snapshot = self._store.snapshot()
        return {
            "mode": self.mode.value,
            "graph": render_payload(snapshot, self._viewport.state),
            "interaction": describe_state(self._controller.state),
            "node_count": len(snapshot.nodes),
            "edge_count": len(snapshot.edges),
        }

    def validate(self) -> dict:
        issues = validate_graph(self._store.snapshot())
        return {
            "issues": [issue.to_dict() for issue in issues],
            "summary": validation_summary(issues),
        }

    def summarize(self) -> dict:
        return summarize_graph(self._store.snapshot()).to_dict()


# Global instance for the application
editor_session = EditorSession(EditorConfig.from_env())
