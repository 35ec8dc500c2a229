"""
Core data models for the issue tree graph.

These models define the canonical schema shared by the store, the layout
engine, the interaction controller and the HTTP backend:
- Nodes with a closed semantic kind, a position, a box size and port counts
- Edges connecting nodes (source/target naming, cosmetic style only)
- Viewport state and immutable graph snapshots
- The hierarchical analysis result consumed by the graph builder

Nodes and edges are frozen. The store replaces an object whenever it
changes, so a snapshot handed to a reader can never be mutated under it.

Field Naming Convention:
- Hierarchical input uses camelCase on the wire (rootProblem, pillars, ...)
- The field names produced by the upstream analysis prompt (core_problem,
  analysis_pillars, metrics, initiatives, ...) are accepted and converted
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import DEFAULT_NODE_HEIGHT, DEFAULT_NODE_WIDTH


class NodeKind(str, Enum):
    """Semantic role of a node; drives presentation hints and port defaults."""
    PROBLEM = "problem"
    HYPOTHESIS = "hypothesis"
    PILLAR = "pillar"
    EVIDENCE = "evidence"
    RISK = "risk"
    SOLUTION = "solution"
    # Workflow editor variant
    TRIGGER = "trigger"
    ACTION = "action"


class EdgeStyle(str, Enum):
    """Cosmetic line hint for edges. Carries no semantic weight."""
    STRUCTURE = "structure"  # problem -> hypothesis -> pillar
    EVIDENCE = "evidence"
    SOLUTION = "solution"
    RISK = "risk"
    MANUAL = "manual"        # Drawn by the user


# (inputs, outputs) for kinds that differ from the 1/1 default
_PORT_DEFAULTS: dict[NodeKind, tuple[int, int]] = {
    NodeKind.TRIGGER: (0, 1),
}


def default_ports(kind: NodeKind) -> tuple[int, int]:
    """Get the default (inputs, outputs) port counts for a node kind."""
    return _PORT_DEFAULTS.get(NodeKind(kind), (1, 1))


@dataclass(frozen=True)
class Point:
    """A 2D point or offset, in graph or screen space depending on context."""
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Point":
        return Point(self.x * factor, self.y * factor)

    def __truediv__(self, factor: float) -> "Point":
        return Point(self.x / factor, self.y / factor)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


class Node(BaseModel):
    """A node in the graph."""
    model_config = ConfigDict(frozen=True)

    id: str
    kind: NodeKind
    x: float = 0
    y: float = 0
    width: float = Field(default=DEFAULT_NODE_WIDTH, gt=0)
    height: float = Field(default=DEFAULT_NODE_HEIGHT, gt=0)
    inputs: int = Field(default=1, ge=0)
    outputs: int = Field(default=1, ge=0)
    # Payload, consumed only by the presentation layer
    label: str = ""
    content: str = ""
    sub_content: str = ""
    tags: tuple[str, ...] = ()

    @property
    def position(self) -> Point:
        """Top-left corner in graph space."""
        return Point(self.x, self.y)

    def center(self) -> tuple[float, float]:
        """Get the center point of the node."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (x, y, right, bottom)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class Edge(BaseModel):
    """A directed edge between two nodes."""
    model_config = ConfigDict(frozen=True)

    id: str
    source: str  # Source node ID
    target: str  # Target node ID
    style: EdgeStyle = EdgeStyle.MANUAL
    label: str = ""


class ViewportState(BaseModel):
    """Pan offset (screen pixels) and zoom factor of the canvas."""
    model_config = ConfigDict(frozen=True)

    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0


class GraphSnapshot(BaseModel):
    """
    Immutable view of the graph at one point in time.

    Nodes and edges are kept in insertion order, which the layout engine
    relies on for tie-breaking.
    """
    model_config = ConfigDict(frozen=True)

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n) - use GraphStore for indexed access)."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "nodes": [n.model_dump(mode="json") for n in self.nodes],
            "edges": [e.model_dump(mode="json") for e in self.edges],
        }


# --- Hierarchical analysis result (builder input) ---

def _rename_keys(data: Any, renames: dict[str, str]) -> Any:
    """Convert upstream field names to canonical ones, without overriding."""
    if isinstance(data, dict):
        data = dict(data)
        for old, new in renames.items():
            if old in data and new not in data:
                data[new] = data.pop(old)
    return data


class Initiative(BaseModel):
    """A proposed solution hanging off a pillar."""
    model_config = ConfigDict(extra="ignore")

    title: str
    description: str = ""
    impact: str = ""
    difficulty: str = ""


class AnalysisPillar(BaseModel):
    """One workstream of the analysis with its evidence and solutions."""
    model_config = ConfigDict(extra="ignore")

    category: str
    goal: str
    evidence: list[str] = Field(default_factory=list)
    solutions: list[Initiative] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def convert_upstream_fields(cls, data: Any) -> Any:
        """Accept 'metrics' for evidence and 'initiatives' for solutions."""
        return _rename_keys(data, {"metrics": "evidence", "initiatives": "solutions"})

    @field_validator("evidence", "solutions", mode="before")
    @classmethod
    def none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class AnalysisResult(BaseModel):
    """
    The hierarchical result produced by the upstream analysis collaborator.

    root problem -> hypothesis -> pillars -> (evidence, solutions)
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    root_problem: str = Field(alias="rootProblem")
    hypothesis: str
    pillars: list[AnalysisPillar] = Field(default_factory=list)
    title: str = ""
    risks: list[str] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def convert_upstream_fields(cls, data: Any) -> Any:
        """Convert the analysis prompt's field names to canonical ones."""
        return _rename_keys(data, {
            "core_problem": "rootProblem",
            "analysis_pillars": "pillars",
            "diagram_title": "title",
            "implementation_risks": "risks",
        })

    @field_validator("pillars", "risks", mode="before")
    @classmethod
    def none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# --- API Request/Response Models ---

class CreateNodeRequest(BaseModel):
    """Request to create a new node."""
    kind: NodeKind = NodeKind.ACTION
    x: float = 0
    y: float = 0
    width: Optional[float] = None
    height: Optional[float] = None
    inputs: Optional[int] = None
    outputs: Optional[int] = None
    label: str = ""
    content: str = ""
    sub_content: str = ""
    tags: list[str] = Field(default_factory=list)


class MoveNodeRequest(BaseModel):
    """Request to move a node to an absolute graph position."""
    x: float
    y: float


class CreateEdgeRequest(BaseModel):
    """Request to create a new edge."""
    source: str = ""
    target: str = ""
    style: EdgeStyle = EdgeStyle.MANUAL
    label: str = ""

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert 'from'/'to' fields to 'source'/'target'."""
        return _rename_keys(data, {"from": "source", "to": "target"})


class LayoutRequest(BaseModel):
    """Request to re-run the layout, optionally overriding some options."""
    nodesep: Optional[float] = None
    ranksep: Optional[float] = None
    direction: Optional[str] = None
    center_ranks: Optional[bool] = None


class ZoomRequest(BaseModel):
    """Zoom relative (delta) or absolute (level) around a screen anchor."""
    delta: Optional[float] = None
    level: Optional[float] = None
    anchor_x: float = 0
    anchor_y: float = 0


class PanRequest(BaseModel):
    """Pan the viewport by a screen-space delta."""
    dx: float = 0
    dy: float = 0


class FitRequest(BaseModel):
    """Fit the whole graph into a screen of the given size."""
    screen_width: float = Field(gt=0)
    screen_height: float = Field(gt=0)
    padding: float = 40


class PointerEventRequest(BaseModel):
    """A pointer event forwarded by the presentation layer."""
    type: str
    x: float = 0
    y: float = 0
    node_id: Optional[str] = None
    target: str = "none"  # none, body, input_port, output_port
    delta: float = 0      # Wheel zoom delta
