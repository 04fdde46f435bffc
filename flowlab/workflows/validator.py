"""
RuleChecker: static requirement checks against a learner's workflow graph.

Every requirement in a scenario is evaluated, even after earlier ones fail,
so the learner gets the full issue list in one shot.  Nothing here raises to
the caller: engine-side errors (unknown requirement kinds, cycles, runaway
graphs) are folded into Issue records.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from flowlab.catalog import NodeCatalog, default_catalog
from flowlab.config import config
from flowlab.exceptions import (
    ScenarioConfigurationError,
    UnknownRequirementError,
    WorkflowValidationError,
)
from flowlab.types import (
    BranchCountAtLeast,
    ForbidNodeType,
    Issue,
    IssueCategory,
    IssueSeverity,
    MustContainIfElse,
    MustHaveNode,
    NodeConfigRequired,
    NodeKind,
    NodeOrder,
    PathMustInclude,
    RequireStopPath,
    Requirement,
    RequirementType,
    TriggerConfigEquals,
    TriggerIs,
    ValidationResult,
    WorkflowGraph,
)

from .conditions import is_blank, is_known_condition, normalize_value
from .graph import Path, WorkflowIndex

logger = logging.getLogger(__name__)

_requirement_adapter: TypeAdapter = TypeAdapter(Requirement)


def _is_missing(value: Any) -> bool:
    if isinstance(value, (dict, list, tuple)):
        return not value
    return is_blank(value)


def _is_subsequence(sequence: Sequence[str], types: Sequence[str]) -> bool:
    remaining = iter(types)
    return all(t in remaining for t in sequence)


class _CheckContext:
    """Per-check cache so path enumeration runs at most once per graph."""

    def __init__(self, index: WorkflowIndex, max_steps: int) -> None:
        self.index = index
        self.catalog = index.catalog
        self.max_steps = max_steps
        self._reachable: Optional[list[str]] = None
        self._paths: Optional[list[Path]] = None

    @property
    def reachable(self) -> list[str]:
        if self._reachable is None:
            self._reachable = self.index.reachable()
        return self._reachable

    def reachable_of_type(self, node_type: str) -> list[str]:
        return sorted(nid for nid in self.reachable if self.index.nodes[nid].type == node_type)

    def paths(self) -> list[Path]:
        if self._paths is None:
            self._paths = self.index.terminal_paths(self.max_steps)
        return self._paths

    def label(self, node_type: str) -> str:
        return self.catalog.label_for(node_type)

    def field_label(self, node_type: str, key: str) -> str:
        definition = self.catalog.find(node_type)
        if definition:
            for f in definition.config_fields:
                if f.key == key:
                    return f.label
        return key


# ── Requirement handlers ──────────────────────────────────────────────────────
# Each takes (context, requirement) and returns the issues it found.


def _single_trigger(ctx: _CheckContext, missing_message: str) -> tuple[Optional[str], list[Issue]]:
    triggers = ctx.index.triggers
    if not triggers:
        return None, [Issue(message=missing_message)]
    if len(triggers) > 1:
        return None, [
            Issue(message=f"Only one trigger is allowed; remove '{extra}'", node_id=extra)
            for extra in triggers[1:]
        ]
    return triggers[0], []


def _check_trigger_is(ctx: _CheckContext, req: TriggerIs) -> list[Issue]:
    trigger_id, issues = _single_trigger(ctx, f"Add a trigger: this workflow should start with {ctx.label(req.value)}")
    if trigger_id is None:
        return issues
    node = ctx.index.nodes[trigger_id]
    if node.type != req.value:
        return [Issue(
            message=f"The trigger is {ctx.label(node.type)}; it should be {ctx.label(req.value)}",
            node_id=trigger_id,
        )]
    return []


def _check_trigger_config_equals(ctx: _CheckContext, req: TriggerConfigEquals) -> list[Issue]:
    trigger_id, issues = _single_trigger(ctx, "Add a trigger before configuring it")
    if trigger_id is None:
        return issues
    node = ctx.index.nodes[trigger_id]
    actual = node.config.get(req.field)
    label = ctx.field_label(node.type, req.field)
    if _is_missing(actual):
        return [Issue(
            message=f"Set the trigger's {label} to '{normalize_value(req.value)}'",
            node_id=trigger_id,
            field_key=req.field,
        )]
    if normalize_value(actual) != normalize_value(req.value):
        return [Issue(
            message=f"The trigger's {label} is '{normalize_value(actual)}'; it should be '{normalize_value(req.value)}'",
            node_id=trigger_id,
            field_key=req.field,
        )]
    return []


def _check_must_have_node(ctx: _CheckContext, req: MustHaveNode) -> list[Issue]:
    if ctx.reachable_of_type(req.value):
        return []
    detached = sorted(nid for nid, n in ctx.index.nodes.items() if n.type == req.value)
    if detached:
        return [Issue(
            message=f"{ctx.label(req.value)} is not connected to the trigger",
            node_id=detached[0],
        )]
    return [Issue(message=f"Add a {ctx.label(req.value)} step")]


def _check_forbid_node_type(ctx: _CheckContext, req: ForbidNodeType) -> list[Issue]:
    return [
        Issue(message=f"Remove the {ctx.label(req.value)} step; it is not allowed here", node_id=nid)
        for nid in ctx.reachable_of_type(req.value)
    ]


def _check_node_config_required(ctx: _CheckContext, req: NodeConfigRequired) -> list[Issue]:
    fields = req.fields or ctx.catalog.required_fields(req.node_type)
    issues = []
    for nid in ctx.reachable_of_type(req.node_type):
        node = ctx.index.nodes[nid]
        for key in fields:
            if _is_missing(node.config.get(key)):
                issues.append(Issue(
                    message=f"{ctx.label(req.node_type)} is missing {ctx.field_label(req.node_type, key)}",
                    category=IssueCategory.CONFIGURATION,
                    node_id=nid,
                    field_key=key,
                ))
    return issues


def _check_node_order(ctx: _CheckContext, req: NodeOrder) -> list[Issue]:
    if not req.sequence:
        return []
    for path in ctx.paths():
        if _is_subsequence(req.sequence, [s.node_type for s in path]):
            return []
    order = " -> ".join(ctx.label(t) for t in req.sequence)
    return [Issue(message=f"No path runs these steps in order: {order}")]


def _check_must_contain_if_else(ctx: _CheckContext, req: MustContainIfElse) -> list[Issue]:
    found = [nid for nid in ctx.reachable if ctx.index.kind(nid) == NodeKind.LOGIC]
    if len(found) >= req.min_count:
        return []
    if req.min_count == 1:
        return [Issue(message="Add an If/Else step to split the workflow")]
    return [Issue(message=f"Add at least {req.min_count} If/Else steps (found {len(found)})")]


def _check_branch_count_at_least(ctx: _CheckContext, req: BranchCountAtLeast) -> list[Issue]:
    issues = []
    for nid in sorted(ctx.index.nodes):
        if ctx.index.kind(nid) != NodeKind.LOGIC:
            continue
        connected = ctx.index.connected_branches(nid)
        if len(connected) >= req.count:
            continue
        missing = [b for b in ctx.index.branches_of(nid) if b not in connected]
        message = f"If/Else '{nid}' has {len(connected)} connected path(s); it needs at least {req.count}"
        if missing:
            message += f". Connect the {' and '.join(missing)} path"
        issues.append(Issue(message=message, node_id=nid))
    return issues


def _check_path_must_include(ctx: _CheckContext, req: PathMustInclude) -> list[Issue]:
    paths = ctx.paths()
    if not paths:
        return [Issue(message="Add a trigger so the workflow has a path to check")]
    if req.branch:
        branch = req.branch.strip().lower()
        paths = [p for p in paths if any(s.branch == branch for s in p)]
        if not paths:
            return [Issue(message=f"No path goes through a '{branch}' branch")]

    issues: list[Issue] = []
    seen: set[tuple[str, str]] = set()
    for path in paths:
        types = {s.node_type for s in path}
        missing = [t for t in req.node_types if t not in types]
        if not missing:
            continue
        last = path[-1]
        where = f"The {last.branch} path of '{last.node_id}'" if last.branch else f"The path ending at '{last.node_id}'"
        message = f"{where} is missing {', '.join(ctx.label(t) for t in missing)}"
        if (last.node_id, message) in seen:
            continue
        seen.add((last.node_id, message))
        issues.append(Issue(message=message, node_id=last.node_id))
    return issues


def _check_require_stop_path(ctx: _CheckContext, req: RequireStopPath) -> list[Issue]:
    reached = set(ctx.reachable)
    issues = []
    for conn in ctx.index.dangling_connections():
        if conn.source not in reached:
            continue
        via = f" ({conn.branch} path)" if conn.branch else ""
        issues.append(Issue(
            message=f"'{conn.source}'{via} connects to a step that does not exist: '{conn.target}'",
            node_id=conn.source,
        ))
    for nid in sorted(reached):
        if ctx.index.kind(nid) != NodeKind.LOGIC:
            continue
        for branch in ctx.index.unconnected_branches(nid):
            issues.append(Issue(message=f"The {branch} path of '{nid}' is not connected", node_id=nid))
    cycle = ctx.index.find_cycle(ctx.reachable)
    if cycle:
        issues.append(Issue(
            message=f"The workflow loops back on itself ({' -> '.join(cycle)} -> {cycle[0]}) and never stops",
            node_id=cycle[0],
        ))
    return issues


_HANDLERS: dict[RequirementType, Callable[[_CheckContext, Any], list[Issue]]] = {
    RequirementType.TRIGGER_IS: _check_trigger_is,
    RequirementType.TRIGGER_CONFIG_EQUALS: _check_trigger_config_equals,
    RequirementType.MUST_HAVE_NODE: _check_must_have_node,
    RequirementType.FORBID_NODE_TYPE: _check_forbid_node_type,
    RequirementType.NODE_CONFIG_REQUIRED: _check_node_config_required,
    RequirementType.NODE_ORDER: _check_node_order,
    RequirementType.MUST_CONTAIN_IF_ELSE: _check_must_contain_if_else,
    RequirementType.BRANCH_COUNT_AT_LEAST: _check_branch_count_at_least,
    RequirementType.PATH_MUST_INCLUDE: _check_path_must_include,
    RequirementType.REQUIRE_STOP_PATH: _check_require_stop_path,
}

_unhandled = set(RequirementType) - set(_HANDLERS)
if _unhandled:
    raise ScenarioConfigurationError(
        f"No rule handler for requirement kinds: {sorted(t.value for t in _unhandled)}"
    )


def _raw_type(requirement: Any) -> Any:
    if isinstance(requirement, Mapping):
        return requirement.get("type")
    return getattr(requirement, "type", None)


def _requirement_kind(raw_type: Any) -> Optional[RequirementType]:
    try:
        return RequirementType(raw_type)
    except ValueError:
        return None


def _coerce(requirement: Any) -> Any:
    """Validate a raw mapping into its requirement model; models pass through."""
    if not isinstance(requirement, Mapping):
        return requirement
    try:
        return _requirement_adapter.validate_python(requirement)
    except ValidationError as exc:
        raise ScenarioConfigurationError(
            f"Requirement '{requirement.get('type')}' is malformed: {exc.error_count()} field error(s)",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


class RuleChecker:
    """
    Evaluates scenario requirements against a workflow graph.

    Usage::

        checker = RuleChecker(catalog)
        result = checker.check(graph, scenario.requirements)
        for issue in result.issues:
            print(issue.node_id, issue.message)

    Issues come out in requirement order, and by node id within a
    requirement, so the same graph always yields the same list.
    Requirements may be models or raw mappings; a malformed mapping is
    reported as a scenario_config issue.
    """

    def __init__(self, catalog: Optional[NodeCatalog] = None, max_walk_steps: Optional[int] = None) -> None:
        self.catalog = catalog or default_catalog()
        self.max_walk_steps = max_walk_steps if max_walk_steps is not None else config.max_walk_steps

    def check(self, graph: WorkflowGraph, requirements: Sequence[Any]) -> ValidationResult:
        ctx = _CheckContext(WorkflowIndex(graph, self.catalog), self.max_walk_steps)
        issues: list[Issue] = []

        for requirement in requirements:
            raw_type = _raw_type(requirement)
            kind = _requirement_kind(raw_type)
            tag = kind.value if kind else str(raw_type)
            try:
                if kind is None:
                    raise UnknownRequirementError(
                        f"Unknown requirement type '{raw_type}'",
                        requirement_type=str(raw_type),
                    )
                found = _HANDLERS[kind](ctx, _coerce(requirement))
            except WorkflowValidationError as exc:
                first = exc.node_ids[0] if exc.node_ids else None
                found = [Issue(
                    message=f"The workflow loops back on itself at '{first}'; its paths cannot be checked",
                    category=IssueCategory.STRUCTURE,
                    node_id=first,
                )]
            except ScenarioConfigurationError as exc:
                logger.warning("Requirement '%s' could not be evaluated: %s", tag, exc)
                found = [Issue(message=str(exc), category=IssueCategory.SCENARIO_CONFIG)]

            found = sorted(found, key=lambda i: i.node_id or "")
            issues.extend(i.model_copy(update={"requirement": tag}) for i in found)
            logger.debug("Requirement '%s': %d issue(s)", tag, len(found))

        passed = not any(i.severity == IssueSeverity.ERROR for i in issues)
        return ValidationResult(passed=passed, issues=issues)


def check(
    graph: WorkflowGraph,
    requirements: Sequence[Any],
    catalog: Optional[NodeCatalog] = None,
    max_walk_steps: Optional[int] = None,
) -> ValidationResult:
    """Evaluate requirements against a graph. See RuleChecker."""
    return RuleChecker(catalog, max_walk_steps).check(graph, requirements)


# ── Structural diagnostics ────────────────────────────────────────────────────


def inspect_structure(graph: WorkflowGraph, catalog: Optional[NodeCatalog] = None) -> list[Issue]:
    """
    Scenario-independent diagnostics for a workflow graph.

    Errors: missing or multiple triggers, duplicate node ids, unknown node
    types, connections from or to missing steps, more than one next step on
    a non-logic node, duplicate or unknown branch labels, cycles, and
    unsupported If/Else conditions.  Warnings: steps the trigger never
    reaches and If/Else steps without a condition.
    """
    index = WorkflowIndex(graph, catalog)
    issues: list[Issue] = []

    def add(message: str, node_id: Optional[str] = None, **kwargs) -> None:
        kwargs.setdefault("category", IssueCategory.STRUCTURE)
        issues.append(Issue(message=message, node_id=node_id, **kwargs))

    triggers = index.triggers
    if not triggers:
        add("Workflow has no trigger")
    for extra in triggers[1:]:
        add(f"Only one trigger is allowed; '{extra}' is a second trigger", extra)

    for dup in index.duplicate_ids:
        add(f"Two steps share the id '{dup}'", dup)

    for nid, node in index.nodes.items():
        if node.type not in index.catalog:
            add(f"Step '{nid}' has unknown type '{node.type}'", nid)

    for conn in index.orphaned:
        add(f"Connection from missing step '{conn.source}' to '{conn.target}'", None)
    for conn in index.dangling_connections():
        add(f"'{conn.source}' connects to missing step '{conn.target}'", conn.source)
    for conn in index.conflicting:
        if conn.branch:
            add(f"If/Else '{conn.source}' has more than one '{conn.branch}' path", conn.source)
        else:
            add(f"'{conn.source}' has more than one next step", conn.source)
    for conn in index.unlabeled:
        label = f"'{conn.branch}'" if conn.branch else "no branch label"
        add(f"Connection from If/Else '{conn.source}' to '{conn.target}' has {label}", conn.source)

    cycle = index.find_cycle()
    if cycle:
        add(f"Workflow contains a cycle: {' -> '.join(cycle)} -> {cycle[0]}", cycle[0])

    for nid, node in index.nodes.items():
        if index.kind(nid) != NodeKind.LOGIC:
            continue
        condition = node.config.get("condition")
        if _is_missing(condition):
            add(
                f"If/Else '{nid}' has no condition",
                nid,
                category=IssueCategory.CONFIGURATION,
                severity=IssueSeverity.WARNING,
                field_key="condition",
            )
        elif not is_known_condition(condition):
            add(
                f"If/Else '{nid}' uses an unsupported condition",
                nid,
                category=IssueCategory.SCENARIO_CONFIG,
                field_key="condition",
            )

    if triggers:
        for nid in index.unreachable():
            add(f"Step '{nid}' is not connected to the trigger", nid, severity=IssueSeverity.WARNING)

    return issues
