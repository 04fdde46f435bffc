"""Tests for the workflow graph index: adjacency, reachability, cycles, paths."""

import pytest

from flowlab.exceptions import WalkBudgetExceeded, WorkflowValidationError
from flowlab.workflows.graph import WorkflowIndex


# ── Indexing ─────────────────────────────────────────────────────────────────


def test_single_trigger(phone_graph, catalog):
    """The only trigger node is exposed as `trigger`."""
    index = WorkflowIndex(phone_graph, catalog)
    assert index.triggers == ["t1"]
    assert index.trigger.type == "contact.created"


def test_multiple_triggers_have_no_single_trigger(build_graph, catalog):
    """With two triggers, `trigger` is None and both are listed."""
    graph = build_graph([("t1", "contact.created", {}), ("t2", "form.submitted", {})])
    index = WorkflowIndex(graph, catalog)
    assert index.triggers == ["t1", "t2"]
    assert index.trigger is None


def test_duplicate_ids_first_wins(build_graph, catalog):
    """A repeated node id keeps the first node and records the duplicate."""
    graph = build_graph([("t1", "contact.created", {}), ("a", "tag.add", {"tag": "x"}), ("a", "sms.send", {})])
    index = WorkflowIndex(graph, catalog)
    assert index.nodes["a"].type == "tag.add"
    assert index.duplicate_ids == ["a"]


def test_branch_adjacency(phone_graph, catalog):
    """Logic nodes are keyed by branch label; others by None."""
    index = WorkflowIndex(phone_graph, catalog)
    assert index.successor("t1") == "check_phone"
    assert index.successor("check_phone", "true") == "sms1"
    assert index.successor("check_phone", "else") == "email1"
    assert index.successor("sms1") is None


def test_branch_labels_are_normalized(build_graph, catalog):
    """Branch labels are trimmed and lower-cased on load."""
    graph = build_graph(
        [("t1", "contact.created", {}), ("if1", "if_else", {}), ("a", "tag.add", {})],
        [("t1", "if1"), ("if1", "a", " TRUE ")],
    )
    index = WorkflowIndex(graph, catalog)
    assert index.successor("if1", "true") == "a"


def test_malformed_edges_are_recorded(build_graph, catalog):
    """Orphaned, conflicting and unlabeled edges land in their own lists."""
    graph = build_graph(
        [("t1", "contact.created", {}), ("if1", "if_else", {}), ("a", "tag.add", {}), ("b", "tag.add", {})],
        [
            ("ghost", "a"),
            ("t1", "if1"),
            ("t1", "a"),
            ("if1", "a"),
            ("if1", "b", "maybe"),
        ],
    )
    index = WorkflowIndex(graph, catalog)
    assert [c.source for c in index.orphaned] == ["ghost"]
    assert [(c.source, c.target) for c in index.conflicting] == [("t1", "a")]
    assert [c.branch for c in index.unlabeled] == [None, "maybe"]


def test_dangling_connections(build_graph, catalog):
    """Edges into missing nodes are reported as dangling."""
    graph = build_graph([("t1", "contact.created", {})], [("t1", "nowhere")])
    index = WorkflowIndex(graph, catalog)
    assert [c.target for c in index.dangling_connections()] == ["nowhere"]
    assert index.successors("t1") == []


# ── Reachability & cycles ────────────────────────────────────────────────────


def test_reachable_bfs_order(phone_graph, catalog):
    """Reachable nodes come out breadth-first, true branch before else."""
    index = WorkflowIndex(phone_graph, catalog)
    assert index.reachable() == ["t1", "check_phone", "sms1", "email1"]


def test_unreachable_nodes(build_graph, catalog):
    """Nodes not connected to the trigger are unreachable."""
    graph = build_graph([("t1", "contact.created", {}), ("a", "tag.add", {})])
    assert WorkflowIndex(graph, catalog).unreachable() == ["a"]


def test_find_cycle(build_graph, catalog):
    """A directed cycle is found and returned in walk order."""
    graph = build_graph(
        [("t1", "contact.created", {}), ("a", "tag.add", {}), ("b", "sms.send", {})],
        [("t1", "a"), ("a", "b"), ("b", "a")],
    )
    assert WorkflowIndex(graph, catalog).find_cycle() == ["a", "b"]


def test_find_cycle_from_roots(build_graph, catalog):
    """Roots limit the search to cycles a walk from them can enter."""
    graph = build_graph(
        [("x", "tag.add", {}), ("y", "tag.add", {}), ("t1", "contact.created", {}), ("a", "tag.add", {}), ("b", "sms.send", {})],
        [("x", "y"), ("y", "x"), ("t1", "a"), ("a", "b"), ("b", "a")],
    )
    index = WorkflowIndex(graph, catalog)
    assert index.find_cycle() == ["x", "y"]
    assert index.find_cycle(index.reachable()) == ["a", "b"]
    assert index.find_cycle(["ghost"]) is None


def test_find_cycle_none_for_dag(phone_graph, catalog):
    assert WorkflowIndex(phone_graph, catalog).find_cycle() is None


# ── Terminal paths ───────────────────────────────────────────────────────────


def test_terminal_paths_per_branch(phone_graph, catalog):
    """One path per branch, each recording the branch taken at the logic node."""
    paths = WorkflowIndex(phone_graph, catalog).terminal_paths(100)
    assert [[s.node_id for s in p] for p in paths] == [
        ["t1", "check_phone", "sms1"],
        ["t1", "check_phone", "email1"],
    ]
    assert paths[0][1].branch == "true"
    assert paths[1][1].branch == "else"


def test_unconnected_branch_ends_path_at_logic_node(half_branch_graph, catalog):
    """An unconnected else branch is a stop at the logic node."""
    paths = WorkflowIndex(half_branch_graph, catalog).terminal_paths(100)
    assert [s.node_id for s in paths[1]] == ["t1", "check_phone"]
    assert paths[1][-1].branch == "else"


def test_terminal_paths_cycle_raises(build_graph, catalog):
    """Path enumeration raises WorkflowValidationError on a cycle."""
    graph = build_graph(
        [("t1", "contact.created", {}), ("a", "tag.add", {}), ("b", "sms.send", {})],
        [("t1", "a"), ("a", "b"), ("b", "a")],
    )
    with pytest.raises(WorkflowValidationError, match="[Cc]ycle") as exc_info:
        WorkflowIndex(graph, catalog).terminal_paths(100)
    assert exc_info.value.node_ids == ["a", "b"]


def test_terminal_paths_budget(phone_graph, catalog):
    """Exceeding the step budget raises WalkBudgetExceeded."""
    with pytest.raises(WalkBudgetExceeded) as exc_info:
        WorkflowIndex(phone_graph, catalog).terminal_paths(2)
    assert exc_info.value.budget == 2


def test_no_trigger_no_paths(build_graph, catalog):
    graph = build_graph([("a", "tag.add", {})])
    assert WorkflowIndex(graph, catalog).terminal_paths(100) == []
