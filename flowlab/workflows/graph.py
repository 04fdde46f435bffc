"""
Arena index over a WorkflowGraph for traversal and path enumeration.

Nodes are held by id and edges in an adjacency map keyed by
(node_id, branch_label); nothing holds a reference to another node, so a
malformed cyclic graph is just data.  Every method is a pure read and can be
used from the rule checker, the simulator and the CLI alike.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional

from flowlab.catalog import NodeCatalog, default_catalog
from flowlab.exceptions import WalkBudgetExceeded, WorkflowValidationError
from flowlab.types import (
    BranchLabel,
    NodeKind,
    PathStep,
    WorkflowConnection,
    WorkflowGraph,
    WorkflowNode,
)

Path = tuple[PathStep, ...]

_DEFAULT_BRANCHES = [BranchLabel.TRUE.value, BranchLabel.ELSE.value]


class WorkflowIndex:
    """
    Read-only view of a WorkflowGraph.

    Malformed input is recorded rather than rejected: duplicate node ids
    (first wins), edges from missing nodes, a second edge for an occupied
    (node, branch) slot, and logic edges with a missing or unknown label all
    land in their own lists so diagnostics can report them.
    """

    def __init__(self, graph: WorkflowGraph, catalog: Optional[NodeCatalog] = None) -> None:
        self.graph = graph
        self.catalog = catalog or default_catalog()

        self.nodes: dict[str, WorkflowNode] = {}
        self.duplicate_ids: list[str] = []
        for node in graph.nodes:
            if node.id in self.nodes:
                self.duplicate_ids.append(node.id)
                continue
            self.nodes[node.id] = node

        self.adjacency: dict[tuple[str, Optional[str]], str] = {}
        self.indexed: list[WorkflowConnection] = []
        self.orphaned: list[WorkflowConnection] = []      # source node missing
        self.conflicting: list[WorkflowConnection] = []   # slot already taken
        self.unlabeled: list[WorkflowConnection] = []     # logic edge without a declared label
        for conn in graph.connections:
            if conn.source not in self.nodes:
                self.orphaned.append(conn)
                continue
            if self.is_logic(conn.source):
                if conn.branch not in self.branches_of(conn.source):
                    self.unlabeled.append(conn)
                    continue
                slot = (conn.source, conn.branch)
            else:
                slot = (conn.source, None)
            if slot in self.adjacency:
                self.conflicting.append(conn)
                continue
            self.adjacency[slot] = conn.target
            self.indexed.append(conn)

    # ── Node lookups ──────────────────────────────────────────────────────────

    def kind(self, node_id: str) -> Optional[NodeKind]:
        """Catalog kind of a node; None for unknown node types or ids."""
        node = self.nodes.get(node_id)
        return self.catalog.kind_of(node.type) if node else None

    def is_logic(self, node_id: str) -> bool:
        return self.kind(node_id) == NodeKind.LOGIC

    def branches_of(self, node_id: str) -> list[str]:
        """Declared branch labels of a logic node, in walk order."""
        node = self.nodes.get(node_id)
        if node is None or not self.is_logic(node_id):
            return []
        definition = self.catalog.find(node.type)
        return list(definition.branches) if definition and definition.branches else list(_DEFAULT_BRANCHES)

    @property
    def triggers(self) -> list[str]:
        """Trigger node ids in declaration order."""
        return [nid for nid in self.nodes if self.kind(nid) == NodeKind.TRIGGER]

    @property
    def trigger(self) -> Optional[WorkflowNode]:
        """The single trigger node, or None when there are zero or several."""
        triggers = self.triggers
        return self.nodes[triggers[0]] if len(triggers) == 1 else None

    # ── Edges ─────────────────────────────────────────────────────────────────

    def successor(self, node_id: str, branch: Optional[str] = None) -> Optional[str]:
        """Target id of the edge leaving node_id (through `branch` for logic nodes)."""
        if self.is_logic(node_id):
            return self.adjacency.get((node_id, branch))
        return self.adjacency.get((node_id, None))

    def slots(self, node_id: str) -> list[tuple[Optional[str], Optional[str]]]:
        """(branch, target_id) for every outgoing slot, connected or not."""
        if self.is_logic(node_id):
            return [(label, self.adjacency.get((node_id, label))) for label in self.branches_of(node_id)]
        return [(None, self.adjacency.get((node_id, None)))]

    def successors(self, node_id: str) -> list[str]:
        """Existing target node ids, in slot order."""
        return [t for _, t in self.slots(node_id) if t is not None and t in self.nodes]

    def connected_branches(self, node_id: str) -> list[str]:
        """Branch labels of a logic node whose edge reaches an existing node."""
        return [
            label for label, target in self.slots(node_id)
            if label is not None and target is not None and target in self.nodes
        ]

    def unconnected_branches(self, node_id: str) -> list[str]:
        """Declared branch labels of a logic node with no edge at all."""
        return [label for label, target in self.slots(node_id) if label is not None and target is None]

    def dangling_connections(self) -> list[WorkflowConnection]:
        """Indexed edges whose target node does not exist."""
        return [conn for conn in self.indexed if conn.target not in self.nodes]

    # ── Traversal ─────────────────────────────────────────────────────────────

    def reachable(self) -> list[str]:
        """Node ids reachable from any trigger (triggers included), BFS order."""
        visited: list[str] = []
        seen: set[str] = set()
        queue: deque[str] = deque(self.triggers)
        while queue:
            node_id = queue.popleft()
            if node_id in seen:
                continue
            seen.add(node_id)
            visited.append(node_id)
            for child in self.successors(node_id):
                if child not in seen:
                    queue.append(child)
        return visited

    def unreachable(self) -> list[str]:
        reached = set(self.reachable())
        return [nid for nid in self.nodes if nid not in reached]

    def find_cycle(self, roots: Optional[Iterable[str]] = None) -> Optional[list[str]]:
        """
        Return the node ids of one directed cycle, or None if there is none.

        The search starts from `roots` (every node when omitted), so passing the
        reachable nodes only finds cycles a walk can actually enter.  Iterative
        DFS so a hand-built cyclic graph cannot exhaust the interpreter stack.
        """
        done: set[str] = set()
        for start in (self.nodes if roots is None else roots):
            if start not in self.nodes or start in done:
                continue
            trail = [start]
            on_trail = {start}
            stack = [iter(self.successors(start))]
            while stack:
                child = next(stack[-1], None)
                if child is None:
                    finished = trail.pop()
                    on_trail.discard(finished)
                    done.add(finished)
                    stack.pop()
                    continue
                if child in on_trail:
                    return trail[trail.index(child):]
                if child not in done:
                    trail.append(child)
                    on_trail.add(child)
                    stack.append(iter(self.successors(child)))
        return None

    def terminal_paths(self, max_steps: int) -> list[Path]:
        """
        Enumerate every walk from a trigger to a stop.

        A walk stops at a node with no outgoing edge, at an unconnected branch
        of a logic node, or at an edge whose target is missing.  Each PathStep
        records the branch label taken when leaving a logic node.  Paths come
        out depth-first with branches in declared order, so the result is
        deterministic.

        Raises:
            WorkflowValidationError: if a walk revisits a node (cycle).
            WalkBudgetExceeded:      if more than max_steps nodes are visited
                                     in total.
        """
        paths: list[Path] = []
        steps = 0
        for root in self.triggers:
            stack: list[tuple[str, Path, frozenset[str]]] = [(root, (), frozenset())]
            while stack:
                node_id, prefix, on_path = stack.pop()
                steps += 1
                if steps > max_steps:
                    raise WalkBudgetExceeded(
                        f"Path enumeration exceeded {max_steps} steps",
                        steps=steps,
                        budget=max_steps,
                    )
                node = self.nodes[node_id]
                on_path = on_path | {node_id}
                pending = []
                for branch, target in self.slots(node_id):
                    path = prefix + (PathStep(node_id=node_id, node_type=node.type, branch=branch),)
                    if target is None or target not in self.nodes:
                        paths.append(path)
                    elif target in on_path:
                        cycle = [s.node_id for s in path]
                        cycle = cycle[cycle.index(target):]
                        raise WorkflowValidationError(
                            f"Cycle detected in workflow graph. Involved node IDs: {cycle}",
                            violations=[f"Cycle includes nodes: {cycle}"],
                            node_ids=cycle,
                        )
                    else:
                        pending.append((target, path, on_path))
                # LIFO: push in reverse so the first branch is walked first
                stack.extend(reversed(pending))
        return paths
