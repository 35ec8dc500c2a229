"""
Graph Builder - expand a hierarchical analysis result into nodes and edges.

The expansion is depth-first (problem, hypothesis, then each pillar followed
by its evidence and its solutions), so the same input always produces the
same ids in the same order when built into a fresh store.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError

from .errors import MalformedInput
from .models import AnalysisResult, EdgeStyle, NodeKind
from .store import GraphStore

logger = logging.getLogger(__name__)


@dataclass
class BuildOptions:
    """Knobs for the builder."""
    evidence_limit: Optional[int] = None  # Keep only the first N evidence items per pillar
    include_risks: bool = False           # Add implementation risks under the problem node


def parse_analysis(data: Union[AnalysisResult, dict, Any]) -> AnalysisResult:
    """
    Validate raw hierarchical data.

    Raises MalformedInput when a required string field is missing or has the
    wrong type. Array fields that are absent or null become empty lists.
    """
    if isinstance(data, AnalysisResult):
        return data
    if not isinstance(data, dict):
        raise MalformedInput(f"Expected an object, got {type(data).__name__}")

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        errors = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        details = "; ".join(f"{err['loc']}: {err['msg']}" for err in errors)
        raise MalformedInput(f"Malformed analysis result: {details}", errors) from e


def _solution_content(title: str, description: str) -> str:
    return f"{title}: {description}" if description else title


def build_graph(
    data: Union[AnalysisResult, dict],
    store: Optional[GraphStore] = None,
    options: Optional[BuildOptions] = None,
) -> GraphStore:
    """
    Build the issue tree for an analysis result.

    Input is fully validated before the first node is added, so a malformed
    result never leaves a partial graph behind.

    Args:
        data: AnalysisResult or the raw dict from the upstream collaborator
        store: Store to populate (a new one is created if None)
        options: Builder options

    Returns:
        The populated store
    """
    result = parse_analysis(data)
    options = options or BuildOptions()
    store = store if store is not None else GraphStore()

    problem_id = store.add_node(
        NodeKind.PROBLEM, label="Core Problem", content=result.root_problem
    )
    hypothesis_id = store.add_node(
        NodeKind.HYPOTHESIS, label="Hypothesis", content=result.hypothesis
    )
    store.add_edge(problem_id, hypothesis_id, style=EdgeStyle.STRUCTURE)

    for pillar in result.pillars:
        pillar_id = store.add_node(
            NodeKind.PILLAR, label=pillar.category, content=pillar.goal
        )
        store.add_edge(hypothesis_id, pillar_id, style=EdgeStyle.STRUCTURE)

        evidence = pillar.evidence
        if options.evidence_limit is not None:
            evidence = evidence[:options.evidence_limit]
        for item in evidence:
            evidence_id = store.add_node(NodeKind.EVIDENCE, label="Evidence", content=item)
            store.add_edge(pillar_id, evidence_id, style=EdgeStyle.EVIDENCE)

        for solution in pillar.solutions:
            solution_id = store.add_node(
                NodeKind.SOLUTION,
                label="Solution",
                content=_solution_content(solution.title, solution.description),
                sub_content=solution.impact,
                tags=[solution.difficulty] if solution.difficulty else [],
            )
            store.add_edge(pillar_id, solution_id, style=EdgeStyle.SOLUTION)

    if options.include_risks:
        for risk in result.risks:
            risk_id = store.add_node(NodeKind.RISK, label="Risk", content=risk)
            store.add_edge(problem_id, risk_id, style=EdgeStyle.RISK)

    logger.info(
        "Built issue tree with %d nodes and %d edges from %d pillars",
        store.node_count, store.edge_count, len(result.pillars),
    )
    return store
