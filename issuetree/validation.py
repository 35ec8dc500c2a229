"""
Graph validation - check a snapshot for structural issues.

The store already refuses to create most of these problems; validation is
for graphs that arrive from elsewhere and for reporting (e.g. a free-form
graph that picked up a cycle and can no longer be auto-laid out).
"""

from dataclasses import dataclass
from enum import Enum

from .errors import CyclicGraph
from .layout import assign_ranks
from .models import GraphSnapshot


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Broken invariant
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a graph."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.edge_id:
            result["edge_id"] = self.edge_id
        return result


def validate_graph(snapshot: GraphSnapshot) -> list[ValidationIssue]:
    """
    Validate a graph and return a list of issues.

    Checks for:
    - Empty graph - INFO
    - Dangling edge references - ERROR
    - Self-referencing edges - ERROR
    - Edges leaving a node without outputs / entering one without inputs - ERROR
    - Cycles (auto-layout will refuse the graph) - WARNING
    - Orphan nodes (no connections) - WARNING
    - Nodes without a label - WARNING
    - Parallel edges (same source->target) - INFO
    """
    issues: list[ValidationIssue] = []

    if not snapshot.nodes:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Graph has no nodes"
        ))
        return issues

    nodes = {n.id: n for n in snapshot.nodes}

    valid_edges = []
    for edge in snapshot.edges:
        dangling = False
        if edge.source not in nodes:
            dangling = True
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent source node: {edge.source}",
                edge_id=edge.id
            ))
        if edge.target not in nodes:
            dangling = True
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent target node: {edge.target}",
                edge_id=edge.id
            ))
        if dangling:
            continue

        if edge.source == edge.target:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message="Self-referencing edge (node points to itself)",
                edge_id=edge.id,
                node_id=edge.source
            ))
            continue

        if nodes[edge.source].outputs == 0:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge leaves {edge.source}, which has no output ports",
                edge_id=edge.id,
                node_id=edge.source
            ))
        if nodes[edge.target].inputs == 0:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge enters {edge.target}, which has no input ports",
                edge_id=edge.id,
                node_id=edge.target
            ))
        valid_edges.append(edge)

    try:
        assign_ranks(snapshot.nodes, valid_edges)
    except CyclicGraph as e:
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"{e} (auto-layout is unavailable)"
        ))

    connected: set[str] = set()
    for edge in valid_edges:
        connected.add(edge.source)
        connected.add(edge.target)

    orphans = [n for n in snapshot.nodes if n.id not in connected]
    if orphans and len(snapshot.nodes) > 1:
        labels = [f"{n.label or n.kind.value} ({n.id})" for n in orphans]
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Orphan nodes (no connections): {', '.join(labels)}"
        ))

    for node in snapshot.nodes:
        if not node.label.strip():
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Node has an empty label",
                node_id=node.id
            ))

    seen_pairs: set[tuple[str, str]] = set()
    for edge in valid_edges:
        pair = (edge.source, edge.target)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message=f"Parallel edge from {edge.source} to {edge.target}",
                edge_id=edge.id
            ))
        else:
            seen_pairs.add(pair)

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Returns:
        Dictionary with counts by severity
    """
    errors = len([i for i in issues if i.severity == IssueSeverity.ERROR])
    return {
        "total": len(issues),
        "errors": errors,
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": errors == 0
    }
