"""
Error taxonomy for the graph engine.

Structural errors (MalformedInput, CyclicGraph) are reported to the caller.
InvalidEdge is raised by the store but absorbed by the interaction
controller, since it comes from ordinary gestures such as connecting a
node to itself. Out-of-range zoom is clamped and never raised.
"""


class IssueTreeError(Exception):
    """Base class for all graph engine errors."""


class MalformedInput(IssueTreeError, ValueError):
    """The hierarchical result handed to the builder is missing required fields."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class InvalidEdge(IssueTreeError, ValueError):
    """An edge would be a self-loop, dangle, or use a port the node lacks."""

    def __init__(self, source: str, target: str, reason: str):
        super().__init__(f"Invalid edge {source} -> {target}: {reason}")
        self.source = source
        self.target = target
        self.reason = reason


class CyclicGraph(IssueTreeError):
    """The layout input contains a directed cycle.

    node_ids lists every node that could not be ranked: the nodes on a cycle
    and everything downstream of one.
    """

    def __init__(self, node_ids: list[str]):
        preview = ", ".join(node_ids[:5])
        if len(node_ids) > 5:
            preview += ", ..."
        super().__init__(f"Graph contains a cycle involving: {preview}")
        self.node_ids = node_ids
