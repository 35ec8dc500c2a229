"""
Tests for graph validation and structural analysis.
"""

from issuetree import (
    Edge,
    GraphSnapshot,
    IssueSeverity,
    Node,
    NodeKind,
    build_graph,
    find_connected_components,
    summarize_graph,
    validate_graph,
)
from issuetree.analysis import calculate_node_connections
from issuetree.validation import validation_summary


def _messages(issues, severity):
    return [i.message for i in issues if i.severity == severity]


# ============================================================
# Validation
# ============================================================

class TestValidateGraph:

    def test_empty_graph(self):
        issues = validate_graph(GraphSnapshot())
        assert len(issues) == 1
        assert issues[0].severity == IssueSeverity.INFO

    def test_built_tree_is_clean(self, analysis_data):
        issues = validate_graph(build_graph(analysis_data).snapshot())
        assert issues == []
        assert validation_summary(issues)["valid"] is True

    def test_dangling_edge(self):
        snapshot = GraphSnapshot(
            nodes=(Node(id="n1", kind=NodeKind.ACTION, label="A"),),
            edges=(Edge(id="e1", source="n1", target="n2"),),
        )
        issues = validate_graph(snapshot)
        errors = [i for i in issues if i.severity == IssueSeverity.ERROR]
        assert len(errors) == 1
        assert errors[0].edge_id == "e1"
        assert "n2" in errors[0].message

    def test_self_loop(self):
        snapshot = GraphSnapshot(
            nodes=(Node(id="n1", kind=NodeKind.ACTION, label="A"),),
            edges=(Edge(id="e1", source="n1", target="n1"),),
        )
        errors = _messages(validate_graph(snapshot), IssueSeverity.ERROR)
        assert errors == ["Self-referencing edge (node points to itself)"]

    def test_port_violation(self):
        snapshot = GraphSnapshot(
            nodes=(
                Node(id="n1", kind=NodeKind.ACTION, label="A"),
                Node(id="n2", kind=NodeKind.TRIGGER, label="T", inputs=0),
            ),
            edges=(Edge(id="e1", source="n1", target="n2"),),
        )
        errors = _messages(validate_graph(snapshot), IssueSeverity.ERROR)
        assert errors == ["Edge enters n2, which has no input ports"]

    def test_cycle_warning(self, store):
        a = store.add_node(NodeKind.ACTION, label="A")
        b = store.add_node(NodeKind.ACTION, label="B")
        store.add_edge(a, b)
        store.add_edge(b, a)
        warnings = _messages(validate_graph(store.snapshot()), IssueSeverity.WARNING)
        assert len(warnings) == 1
        assert warnings[0].endswith("(auto-layout is unavailable)")

    def test_orphans_and_empty_labels(self, store):
        store.add_node(NodeKind.ACTION, label="A")
        unnamed = store.add_node(NodeKind.ACTION)
        issues = validate_graph(store.snapshot())
        warnings = [i for i in issues if i.severity == IssueSeverity.WARNING]
        assert warnings[0].message.startswith("Orphan nodes")
        assert warnings[1].node_id == unnamed
        summary = validation_summary(issues)
        assert summary["warnings"] == 2
        assert summary["valid"] is True

    def test_single_node_is_not_orphan(self, store):
        store.add_node(NodeKind.PROBLEM, label="Only")
        assert validate_graph(store.snapshot()) == []

    def test_parallel_edges(self, store):
        a = store.add_node(NodeKind.ACTION, label="A")
        b = store.add_node(NodeKind.ACTION, label="B")
        store.add_edge(a, b)
        second = store.add_edge(a, b)
        issues = validate_graph(store.snapshot())
        assert [(i.severity, i.edge_id) for i in issues] == [(IssueSeverity.INFO, second)]

    def test_issue_to_dict(self):
        snapshot = GraphSnapshot(
            nodes=(Node(id="n1", kind=NodeKind.ACTION, label="A"),),
            edges=(Edge(id="e1", source="n1", target="n1"),),
        )
        assert validate_graph(snapshot)[0].to_dict() == {
            "type": "error",
            "message": "Self-referencing edge (node points to itself)",
            "node_id": "n1",
            "edge_id": "e1",
        }


# ============================================================
# Analysis
# ============================================================

class TestConnectedComponents:

    def test_discovery_order(self, store):
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        c = store.add_node(NodeKind.ACTION)
        d = store.add_node(NodeKind.ACTION)
        store.add_edge(c, a)
        store.add_edge(b, d)
        snapshot = store.snapshot()
        components = find_connected_components(snapshot.nodes, snapshot.edges)
        assert [comp.node_ids for comp in components] == [[a, c], [b, d]]
        assert [comp.edge_count for comp in components] == [1, 1]

    def test_empty(self):
        assert find_connected_components([], []) == []


class TestSummarizeGraph:

    def test_summary_of_built_tree(self, analysis_data):
        summary = summarize_graph(build_graph(analysis_data).snapshot()).to_dict()
        assert summary["total_nodes"] == 10
        assert summary["total_edges"] == 9
        assert summary["nodes_by_kind"]["evidence"] == 4
        assert summary["edges_by_style"] == {"structure": 3, "evidence": 4, "solution": 2}
        assert summary["tags_in_use"] == ["Low", "Medium"]
        assert summary["connected_components"] == 1
        assert summary["orphan_count"] == 0
        top = summary["most_connected_nodes"]
        assert [n["id"] for n in top[:3]] == ["node-3", "node-7", "node-2"]
        assert top[0]["connections"] == 4

    def test_node_connections(self, store):
        a = store.add_node(NodeKind.ACTION, label="A")
        b = store.add_node(NodeKind.ACTION, label="B")
        store.add_edge(a, b)
        connections = calculate_node_connections(store.snapshot())
        assert (connections[a].outgoing, connections[a].incoming) == (1, 0)
        assert connections[b].total == 1

    def test_orphans_not_listed_as_connected(self, store):
        store.add_node(NodeKind.ACTION)
        summary = summarize_graph(store.snapshot())
        assert summary.most_connected_nodes == []
        assert summary.orphan_count == 1
