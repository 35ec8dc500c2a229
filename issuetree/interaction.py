"""
Interaction Controller - pointer-driven state machine over the graph store.

States:
- Idle
- DraggingNode: a node follows the pointer, keeping the grab offset
- ConnectingEdge: an edge is being drawn from a node's output port
- PanningCanvas: the canvas follows the pointer

Only one gesture is active at a time. Gesture-start events arriving while a
gesture is active are ignored. Rejected connections (self-loops, missing
ports) are absorbed: the controller returns to Idle and the store is left
untouched.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from .config import EditorMode
from .errors import InvalidEdge
from .models import EdgeStyle, NodeKind, Point
from .store import GraphStore
from .viewport import ViewportTransform

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    POINTER_DOWN = "pointer_down"
    POINTER_MOVE = "pointer_move"
    POINTER_UP = "pointer_up"
    POINTER_LEAVE = "pointer_leave"
    POINTER_CANCEL = "pointer_cancel"
    DOUBLE_CLICK = "double_click"
    WHEEL = "wheel"


class HitTarget(str, Enum):
    """What part of the canvas was under the pointer."""
    NONE = "none"
    BODY = "body"
    INPUT_PORT = "input_port"
    OUTPUT_PORT = "output_port"


@dataclass(frozen=True)
class HitInfo:
    node_id: Optional[str] = None
    target: HitTarget = HitTarget.NONE


NO_HIT = HitInfo()


@dataclass(frozen=True)
class PointerEvent:
    type: EventType
    x: float
    y: float
    hit: HitInfo = NO_HIT
    delta: float = 0.0  # Wheel zoom delta

    @property
    def screen(self) -> Point:
        return Point(self.x, self.y)


# --- States ---

@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class DraggingNode:
    node_id: str
    grab_offset: Point
    origin: Point   # Restored on cancel unless the node was moved elsewhere
    current: Point  # Last position written by this drag
    name = "dragging_node"


@dataclass(frozen=True)
class ConnectingEdge:
    source_node_id: str
    name = "connecting_edge"


@dataclass(frozen=True)
class PanningCanvas:
    last_screen: Point
    name = "panning_canvas"


InteractionState = Union[Idle, DraggingNode, ConnectingEdge, PanningCanvas]

IDLE = Idle()

_GESTURE_STARTS = (EventType.POINTER_DOWN, EventType.DOUBLE_CLICK)
_CANCELS = (EventType.POINTER_LEAVE, EventType.POINTER_CANCEL)


def describe_state(state: InteractionState) -> dict:
    """Convert a state to a JSON-serializable dict."""
    result: dict = {"state": state.name}
    if isinstance(state, DraggingNode):
        result["node_id"] = state.node_id
        result["grab_offset"] = state.grab_offset.to_dict()
    elif isinstance(state, ConnectingEdge):
        result["source_node_id"] = state.source_node_id
    return result


class InteractionController:
    """
    Translates pointer events into graph mutations.

    The controller writes node positions only while dragging, and creates
    edges only when a connection gesture completes on a valid input port.
    """

    def __init__(
        self,
        store: GraphStore,
        viewport: ViewportTransform,
        mode: EditorMode = EditorMode.FREE_FORM,
    ):
        self._store = store
        self._viewport = viewport
        self._mode = EditorMode(mode)
        self._state: InteractionState = IDLE

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def allows_structural_edits(self) -> bool:
        return self._mode == EditorMode.FREE_FORM

    # --- Dispatch ---

    def handle(self, event: PointerEvent) -> InteractionState:
        """Feed one pointer event through the state machine."""
        if event.type == EventType.WHEEL:
            self._viewport.zoom_by(event.delta, event.screen)
            return self._state

        if event.type in _CANCELS:
            return self.cancel()

        if event.type in _GESTURE_STARTS and not isinstance(self._state, (Idle, ConnectingEdge)):
            return self._state

        state = self._state
        if isinstance(state, Idle):
            self._state = self._from_idle(event)
        elif isinstance(state, DraggingNode):
            self._state = self._from_dragging(state, event)
        elif isinstance(state, ConnectingEdge):
            self._state = self._from_connecting(state, event)
        elif isinstance(state, PanningCanvas):
            self._state = self._from_panning(state, event)
        return self._state

    def cancel(self) -> InteractionState:
        """Abort the active gesture without committing anything."""
        state = self._state
        if isinstance(state, DraggingNode):
            node = self._store.get_node(state.node_id)
            # A position written by someone else mid-drag is newer than origin
            if node is not None and node.position == state.current:
                self._store.move_node(state.node_id, state.origin.x, state.origin.y)
        elif isinstance(state, ConnectingEdge):
            logger.debug("Connection from %s discarded", state.source_node_id)
        self._state = IDLE
        return self._state

    # --- Transitions ---

    def _from_idle(self, event: PointerEvent) -> InteractionState:
        hit = event.hit

        if event.type == EventType.DOUBLE_CLICK:
            if hit.node_id and self.allows_structural_edits:
                self._store.remove_node(hit.node_id)
            return IDLE

        if event.type != EventType.POINTER_DOWN:
            return IDLE

        if hit.node_id is None or hit.target == HitTarget.NONE:
            return PanningCanvas(last_screen=event.screen)

        node = self._store.get_node(hit.node_id)
        if node is None:
            return IDLE

        if hit.target == HitTarget.BODY:
            pointer = self._viewport.screen_to_graph(event.screen)
            return DraggingNode(
                node_id=node.id,
                grab_offset=pointer - node.position,
                origin=node.position,
                current=node.position,
            )

        if hit.target == HitTarget.OUTPUT_PORT:
            if node.outputs > 0 and self.allows_structural_edits:
                return ConnectingEdge(source_node_id=node.id)
            return IDLE

        # Pressing an input port starts nothing
        return IDLE

    def _from_dragging(self, state: DraggingNode, event: PointerEvent) -> InteractionState:
        if event.type == EventType.POINTER_MOVE:
            if not self._store.has_node(state.node_id):
                return IDLE
            position = self._viewport.screen_to_graph(event.screen) - state.grab_offset
            self._store.move_node(state.node_id, position.x, position.y)
            return replace(state, current=position)

        if event.type == EventType.POINTER_UP:
            return IDLE

        return state

    def _from_connecting(self, state: ConnectingEdge, event: PointerEvent) -> InteractionState:
        hit = event.hit

        if event.type in (EventType.POINTER_DOWN, EventType.POINTER_UP):
            if hit.target == HitTarget.INPUT_PORT and hit.node_id is not None:
                self._complete_connection(state.source_node_id, hit.node_id)
                return IDLE

            if event.type == EventType.POINTER_UP:
                # Releasing over the originating port arms click-to-connect
                if hit.target == HitTarget.OUTPUT_PORT and hit.node_id == state.source_node_id:
                    return state
                logger.debug("Connection from %s released off target", state.source_node_id)
                return IDLE

        # Other pointer-downs and double clicks are ignored mid-gesture
        return state

    def _from_panning(self, state: PanningCanvas, event: PointerEvent) -> InteractionState:
        if event.type == EventType.POINTER_MOVE:
            self._viewport.pan_by(event.screen - state.last_screen)
            return PanningCanvas(last_screen=event.screen)

        if event.type == EventType.POINTER_UP:
            return IDLE

        return state

    def _complete_connection(self, source: str, target: str):
        if source == target:
            logger.debug("Ignored self-connection on %s", source)
            return
        try:
            edge_id = self._store.add_edge(source, target, style=EdgeStyle.MANUAL)
        except InvalidEdge as e:
            logger.debug("Connection rejected: %s", e)
            return
        logger.debug("Connected %s -> %s as %s", source, target, edge_id)

    # --- Direct actions ---

    def create_node(self, kind: NodeKind, screen: Point, **payload) -> Optional[str]:
        """
        Add a single node at the graph point under the cursor.

        Only allowed in free-form mode while no gesture is active.
        """
        if not self.allows_structural_edits or not isinstance(self._state, Idle):
            return None
        position = self._viewport.screen_to_graph(screen)
        return self._store.add_node(kind, x=position.x, y=position.y, **payload)
