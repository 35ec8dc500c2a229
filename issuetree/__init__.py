"""
Issue Tree Core - graph model, builder, viewport, interaction and layout.

This package provides the editing and layout engine shared by the backend
API and the CLI, ensuring a single source of truth for all graph logic.
"""

from .config import (
    Direction,
    EditorMode,
    LayoutConfig,
    ViewportConfig,
    EditorConfig,
)

from .errors import IssueTreeError, MalformedInput, InvalidEdge, CyclicGraph

from .models import (
    # Enums
    NodeKind,
    EdgeStyle,
    # Core models
    Point,
    Node,
    Edge,
    ViewportState,
    GraphSnapshot,
    # Builder input
    AnalysisResult,
    AnalysisPillar,
    Initiative,
)

from .store import GraphStore
from .builder import BuildOptions, build_graph, parse_analysis
from .viewport import ViewportTransform
from .interaction import (
    EventType,
    HitTarget,
    HitInfo,
    PointerEvent,
    Idle,
    DraggingNode,
    ConnectingEdge,
    PanningCanvas,
    InteractionController,
)
from .layout import assign_ranks, layered_layout, apply_layout, layout_bounds
from .validation import validate_graph, ValidationIssue, IssueSeverity
from .analysis import summarize_graph, find_connected_components
from .presentation import render_payload

__all__ = [
    # Config
    "Direction",
    "EditorMode",
    "LayoutConfig",
    "ViewportConfig",
    "EditorConfig",
    # Errors
    "IssueTreeError",
    "MalformedInput",
    "InvalidEdge",
    "CyclicGraph",
    # Models
    "NodeKind",
    "EdgeStyle",
    "Point",
    "Node",
    "Edge",
    "ViewportState",
    "GraphSnapshot",
    "AnalysisResult",
    "AnalysisPillar",
    "Initiative",
    # Store & builder
    "GraphStore",
    "BuildOptions",
    "build_graph",
    "parse_analysis",
    # Viewport & interaction
    "ViewportTransform",
    "EventType",
    "HitTarget",
    "HitInfo",
    "PointerEvent",
    "Idle",
    "DraggingNode",
    "ConnectingEdge",
    "PanningCanvas",
    "InteractionController",
    # Layout
    "assign_ranks",
    "layered_layout",
    "apply_layout",
    "layout_bounds",
    # Validation
    "validate_graph",
    "ValidationIssue",
    "IssueSeverity",
    # Analysis
    "summarize_graph",
    "find_connected_components",
    # Presentation
    "render_payload",
]
