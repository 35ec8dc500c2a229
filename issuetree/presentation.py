"""
Presentation hints - the one place where node kinds and edge styles are
mapped to icons, colours and line styles.

The core never draws anything. It resolves hints once, here, and hands the
renderer a JSON-ready payload so that kind dispatch is not scattered across
rendering code.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from .models import EdgeStyle, GraphSnapshot, NodeKind, ViewportState


@dataclass(frozen=True)
class NodeHints:
    icon: str        # Icon name in the renderer's icon set
    accent: str      # Icon / border colour
    background: str


@dataclass(frozen=True)
class EdgeHints:
    line: str                 # "smoothstep" or "default" (bezier)
    color: str = "#9ca3af"
    width: float = 1.0
    dash: Optional[str] = None
    arrow: bool = False


NODE_HINTS: dict[NodeKind, NodeHints] = {
    NodeKind.PROBLEM: NodeHints(icon="alert-triangle", accent="#dc2626", background="#fef2f2"),
    NodeKind.HYPOTHESIS: NodeHints(icon="lightbulb", accent="#16a34a", background="#f0fdf4"),
    NodeKind.PILLAR: NodeHints(icon="target", accent="#2563eb", background="#ffffff"),
    NodeKind.EVIDENCE: NodeHints(icon="file-text", accent="#64748b", background="#f8fafc"),
    NodeKind.RISK: NodeHints(icon="shield-alert", accent="#ea580c", background="#fff7ed"),
    NodeKind.SOLUTION: NodeHints(icon="rocket", accent="#9333ea", background="#faf5ff"),
    NodeKind.TRIGGER: NodeHints(icon="zap", accent="#ca8a04", background="#fefce8"),
    NodeKind.ACTION: NodeHints(icon="play", accent="#0f766e", background="#f0fdfa"),
}

EDGE_HINTS: dict[EdgeStyle, EdgeHints] = {
    EdgeStyle.STRUCTURE: EdgeHints(line="smoothstep", arrow=True),
    EdgeStyle.EVIDENCE: EdgeHints(line="default"),
    EdgeStyle.SOLUTION: EdgeHints(line="smoothstep", color="#9333ea", width=2, dash="5,5"),
    EdgeStyle.RISK: EdgeHints(line="default", color="#ea580c", dash="2,4"),
    EdgeStyle.MANUAL: EdgeHints(line="smoothstep", arrow=True),
}


def node_hints(kind: NodeKind) -> NodeHints:
    return NODE_HINTS[NodeKind(kind)]


def edge_hints(style: EdgeStyle) -> EdgeHints:
    return EDGE_HINTS[EdgeStyle(style)]


def render_payload(snapshot: GraphSnapshot, viewport: ViewportState) -> dict:
    """
    Build the renderer's view of the graph: every node and edge with its
    resolved hints, plus the viewport transform.
    """
    nodes = []
    for node in snapshot.nodes:
        data = node.model_dump(mode="json")
        data["hints"] = asdict(node_hints(node.kind))
        nodes.append(data)

    edges = []
    for edge in snapshot.edges:
        data = edge.model_dump(mode="json")
        data["hints"] = asdict(edge_hints(edge.style))
        edges.append(data)

    return {
        "nodes": nodes,
        "edges": edges,
        "viewport": viewport.model_dump(),
    }
