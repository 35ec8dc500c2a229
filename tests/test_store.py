"""
Tests for the graph store: id allocation, referential integrity,
edge validation and change notification.
"""

import random

import pytest
from pydantic import ValidationError

from issuetree import EdgeStyle, GraphStore, InvalidEdge, NodeKind, Point


# ============================================================
# Nodes
# ============================================================

class TestNodes:
    """Adding, moving and removing nodes."""

    def test_ids_are_monotonic(self, store):
        first = store.add_node(NodeKind.ACTION)
        second = store.add_node(NodeKind.ACTION)
        assert (first, second) == ("node-1", "node-2")

    def test_ids_not_reused_after_delete(self, store):
        first = store.add_node(NodeKind.ACTION)
        store.remove_node(first)
        assert store.add_node(NodeKind.ACTION) == "node-2"

    def test_counters_can_start_later(self):
        store = GraphStore(next_node_id=5, next_edge_id=3)
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        assert (a, b) == ("node-5", "node-6")
        assert store.add_edge(a, b) == "edge-3"
        assert (store.next_node_id, store.next_edge_id) == (7, 4)

    def test_default_ports_by_kind(self, store):
        trigger = store.get_node(store.add_node(NodeKind.TRIGGER))
        action = store.get_node(store.add_node(NodeKind.ACTION))
        assert (trigger.inputs, trigger.outputs) == (0, 1)
        assert (action.inputs, action.outputs) == (1, 1)

    def test_default_size(self, store):
        node = store.get_node(store.add_node(NodeKind.PROBLEM))
        assert (node.width, node.height) == (280, 150)

    def test_store_level_default_size(self):
        store = GraphStore(default_width=100, default_height=40)
        node = store.get_node(store.add_node(NodeKind.ACTION))
        assert (node.width, node.height) == (100, 40)

    def test_invalid_node_does_not_burn_id(self, store):
        with pytest.raises(ValidationError):
            store.add_node(NodeKind.ACTION, width=0)
        assert store.node_count == 0
        assert store.add_node(NodeKind.ACTION) == "node-1"

    def test_unknown_kind_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_node("widget")

    def test_move_node(self, store):
        node_id = store.add_node(NodeKind.ACTION, x=10, y=20)
        moved = store.move_node(node_id, 30, 40)
        assert moved.position == Point(30, 40)
        assert store.get_node(node_id).position == Point(30, 40)

    def test_move_missing_node(self, store):
        assert store.move_node("node-99", 1, 1) is None

    def test_remove_missing_node(self, store):
        assert store.remove_node("node-99") is False

    def test_remove_node_cascades_edges(self, store):
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        c = store.add_node(NodeKind.ACTION)
        store.add_edge(a, b)
        store.add_edge(b, c)
        store.add_edge(a, c)

        assert store.remove_node(b) is True

        assert store.edge_count == 1
        assert [e.target for e in store.edges_for_node(a)] == [c]
        assert store.edges_for_node(b) == []

    def test_snapshot_is_not_affected_by_later_changes(self, store):
        node_id = store.add_node(NodeKind.ACTION, x=0, y=0)
        before = store.snapshot()
        store.move_node(node_id, 50, 50)
        assert before.get_node(node_id).position == Point(0, 0)
        assert store.snapshot().get_node(node_id).position == Point(50, 50)

    def test_snapshot_keeps_insertion_order(self, store):
        ids = [store.add_node(NodeKind.ACTION) for _ in range(4)]
        store.move_node(ids[0], 5, 5)
        assert store.snapshot().node_ids() == ids


# ============================================================
# Edges
# ============================================================

class TestEdges:
    """Edge validation and lookup."""

    def test_add_edge(self, store):
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        edge_id = store.add_edge(a, b, style=EdgeStyle.STRUCTURE, label="causes")
        edge = store.get_edge(edge_id)
        assert edge_id == "edge-1"
        assert (edge.source, edge.target, edge.style, edge.label) == (a, b, EdgeStyle.STRUCTURE, "causes")

    def test_self_loop_rejected(self, store):
        a = store.add_node(NodeKind.ACTION)
        with pytest.raises(InvalidEdge) as exc_info:
            store.add_edge(a, a)
        assert exc_info.value.source == a
        assert store.edge_count == 0

    def test_self_loop_does_not_burn_id(self, store):
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        with pytest.raises(InvalidEdge):
            store.add_edge(a, a)
        assert store.add_edge(a, b) == "edge-1"

    def test_missing_endpoint_rejected(self, store):
        a = store.add_node(NodeKind.ACTION)
        with pytest.raises(InvalidEdge):
            store.add_edge(a, "node-42")
        with pytest.raises(InvalidEdge):
            store.add_edge("node-42", a)
        assert store.edge_count == 0

    def test_target_without_inputs_rejected(self, store):
        action = store.add_node(NodeKind.ACTION)
        trigger = store.add_node(NodeKind.TRIGGER)
        with pytest.raises(InvalidEdge) as exc_info:
            store.add_edge(action, trigger)
        assert "no input ports" in str(exc_info.value)

    def test_source_without_outputs_rejected(self, store):
        sink = store.add_node(NodeKind.ACTION, outputs=0)
        target = store.add_node(NodeKind.ACTION)
        with pytest.raises(InvalidEdge):
            store.add_edge(sink, target)

    def test_invalid_edge_is_value_error(self, store):
        a = store.add_node(NodeKind.ACTION)
        with pytest.raises(ValueError):
            store.add_edge(a, a)

    def test_parallel_edges_allowed(self, store):
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        store.add_edge(a, b)
        store.add_edge(a, b)
        assert store.edge_count == 2

    def test_remove_edge(self, store):
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        edge_id = store.add_edge(a, b)
        assert store.remove_edge(edge_id) is True
        assert store.remove_edge(edge_id) is False
        assert store.edges_for_node(a) == []

    def test_edges_for_node_in_insertion_order(self, store):
        a, b, c = (store.add_node(NodeKind.ACTION) for _ in range(3))
        e1 = store.add_edge(a, b)
        e2 = store.add_edge(c, a)
        e3 = store.add_edge(a, c)
        assert [e.id for e in store.edges_for_node(a)] == [e1, e2, e3]


# ============================================================
# Integrity under random edits
# ============================================================

class TestReferentialIntegrity:
    """Every edge endpoint exists after any sequence of mutations."""

    def test_random_mutation_sequence(self, store):
        rng = random.Random(7)
        for _ in range(300):
            op = rng.random()
            node_ids = store.snapshot().node_ids()
            if op < 0.35 or len(node_ids) < 2:
                kind = rng.choice([NodeKind.ACTION, NodeKind.TRIGGER, NodeKind.PILLAR])
                store.add_node(kind)
            elif op < 0.75:
                try:
                    store.add_edge(rng.choice(node_ids), rng.choice(node_ids))
                except InvalidEdge:
                    pass
            elif op < 0.9:
                store.remove_node(rng.choice(node_ids))
            else:
                edges = store.snapshot().edges
                if edges:
                    store.remove_edge(rng.choice(edges).id)

            snapshot = store.snapshot()
            present = set(snapshot.node_ids())
            for edge in snapshot.edges:
                assert edge.source in present
                assert edge.target in present
                assert edge.source != edge.target


# ============================================================
# Change notification
# ============================================================

class TestChangeCallbacks:
    """Callbacks fire once per successful mutation."""

    @pytest.fixture
    def calls(self, store):
        calls = []
        store.on_change(lambda: calls.append(1))
        return calls

    def test_add_and_remove_notify(self, store, calls):
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        store.add_edge(a, b)
        store.remove_node(a)
        assert len(calls) == 4

    def test_rejected_edge_does_not_notify(self, store, calls):
        a = store.add_node(NodeKind.ACTION)
        with pytest.raises(InvalidEdge):
            store.add_edge(a, a)
        assert len(calls) == 1

    def test_move_to_same_position_does_not_notify(self, store, calls):
        a = store.add_node(NodeKind.ACTION, x=5, y=5)
        store.move_node(a, 5, 5)
        assert len(calls) == 1

    def test_set_positions_notifies_once(self, store, calls):
        a = store.add_node(NodeKind.ACTION)
        b = store.add_node(NodeKind.ACTION)
        written = store.set_positions({a: Point(1, 2), b: Point(3, 4), "node-99": Point(0, 0)})
        assert written == 2
        assert len(calls) == 3
        assert store.get_node(b).position == Point(3, 4)

    def test_clear_keeps_counters(self, store, calls):
        store.add_node(NodeKind.ACTION)
        store.clear()
        assert store.node_count == 0
        assert store.add_node(NodeKind.ACTION) == "node-2"
        assert len(calls) == 3
