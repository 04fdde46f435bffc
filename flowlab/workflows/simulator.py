"""
Execution simulator: walks a workflow for one synthetic trigger event and
records the side effects its actions would produce.

Nothing is sent or stored.  Each action contributes one effect built from its
literal config values, logic nodes pick a branch by evaluating their
condition against the event's record, and the walk is bounded by a step
budget so a malformed graph cannot loop forever.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from flowlab.catalog import NodeCatalog, default_catalog
from flowlab.config import config
from flowlab.types import (
    BranchLabel,
    EffectTrace,
    EffectType,
    FieldSet,
    Issue,
    IssueCategory,
    IssueSeverity,
    MessageSent,
    NodeDefinition,
    NodeKind,
    NotificationSent,
    PathStep,
    SimulationEvent,
    TagAdded,
    TagRemoved,
    TaskCreated,
    TraceStatus,
    WebhookFired,
    WorkflowGraph,
    WorkflowNode,
)

from .conditions import evaluate, is_known_condition
from .graph import WorkflowIndex

logger = logging.getLogger(__name__)


def _text(config_values: dict[str, Any], key: str) -> str:
    value = config_values.get(key)
    return "" if value is None else str(value)


def build_effect(node: WorkflowNode, definition: NodeDefinition) -> Optional[Any]:
    """Effect record for one action node, or None if the type produces none."""
    cfg = node.config
    effect = definition.effect
    if effect == EffectType.MESSAGE_SENT:
        return MessageSent(
            node_id=node.id,
            channel=definition.channel or _text(cfg, "channel"),
            subject=_text(cfg, "subject"),
            body=_text(cfg, "body"),
        )
    if effect == EffectType.TAG_ADDED:
        return TagAdded(node_id=node.id, tag=_text(cfg, "tag"))
    if effect == EffectType.TAG_REMOVED:
        return TagRemoved(node_id=node.id, tag=_text(cfg, "tag"))
    if effect == EffectType.FIELD_SET:
        return FieldSet(node_id=node.id, field_key=_text(cfg, "fieldKey"), value=cfg.get("value"))
    if effect == EffectType.TASK_CREATED:
        return TaskCreated(node_id=node.id, title=_text(cfg, "title"))
    if effect == EffectType.NOTIFICATION_SENT:
        return NotificationSent(node_id=node.id, message=_text(cfg, "message"))
    if effect == EffectType.WEBHOOK_FIRED:
        return WebhookFired(node_id=node.id, url=_text(cfg, "url"), method=_text(cfg, "method") or "POST")
    return None


class Simulator:
    """
    Runs one synthetic event through a workflow graph.

    Usage::

        trace = Simulator(catalog).simulate(graph, SimulationEvent(
            trigger_type="contact.created", record={"phone": "+15551234"},
        ))
        [e.type for e in trace.effects]   # ["message_sent"]
    """

    def __init__(self, catalog: Optional[NodeCatalog] = None, max_walk_steps: Optional[int] = None) -> None:
        self.catalog = catalog or default_catalog()
        self.max_walk_steps = max_walk_steps if max_walk_steps is not None else config.max_walk_steps

    def simulate(self, graph: WorkflowGraph, event: SimulationEvent) -> EffectTrace:
        index = WorkflowIndex(graph, self.catalog)
        trace = EffectTrace(trigger_type=event.trigger_type)

        trigger = index.trigger
        if trigger is None:
            trace.status = TraceStatus.TRIGGER_MISMATCH
            trace.diagnostics.append(Issue(
                message=f"Workflow needs exactly one trigger (found {len(index.triggers)})",
                category=IssueCategory.STRUCTURE,
            ))
            return trace
        if event.trigger_type is not None and trigger.type != event.trigger_type:
            logger.debug("Event '%s' does not fire trigger '%s'", event.trigger_type, trigger.type)
            trace.status = TraceStatus.TRIGGER_MISMATCH
            return trace

        budget = min(len(index.nodes) + 1, self.max_walk_steps)
        record = event.record
        previous: Optional[str] = None
        current: Optional[str] = trigger.id
        steps = 0

        while current is not None:
            steps += 1
            if steps > budget:
                logger.warning("Walk stopped after %d steps at '%s'", budget, current)
                trace.status = TraceStatus.BUDGET_EXCEEDED
                trace.diagnostics.append(Issue(
                    message=f"Graph too complex or contains a cycle; walk stopped after {budget} steps",
                    category=IssueCategory.SCENARIO_CONFIG,
                    node_id=current,
                ))
                break

            node = index.nodes.get(current)
            if node is None:
                trace.diagnostics.append(Issue(
                    message=f"'{previous}' connects to a step that does not exist: '{current}'",
                    category=IssueCategory.STRUCTURE,
                    node_id=previous,
                ))
                break

            kind = index.kind(current)
            branch: Optional[str] = None
            if kind == NodeKind.LOGIC:
                condition = node.config.get("condition")
                if not is_known_condition(condition):
                    trace.diagnostics.append(Issue(
                        message=f"If/Else '{node.id}' has an unsupported or missing condition; taking the else path",
                        category=IssueCategory.SCENARIO_CONFIG,
                        node_id=node.id,
                        field_key="condition",
                    ))
                matched = evaluate(condition, record)
                branch = BranchLabel.TRUE.value if matched else BranchLabel.ELSE.value
            elif kind == NodeKind.ACTION:
                effect = build_effect(node, self.catalog.get(node.type))
                if effect is not None:
                    trace.effects.append(effect)
            elif kind is None:
                trace.diagnostics.append(Issue(
                    message=f"Step '{node.id}' has unknown type '{node.type}' and was skipped",
                    category=IssueCategory.STRUCTURE,
                    severity=IssueSeverity.WARNING,
                    node_id=node.id,
                ))

            trace.path.append(PathStep(node_id=node.id, node_type=node.type, branch=branch))
            logger.debug("Step %d: %s (%s)%s", steps, node.id, node.type, f" -> {branch}" if branch else "")
            previous, current = current, index.successor(current, branch)

        logger.info(
            "Simulated %d step(s), %d effect(s), status=%s",
            len(trace.path), len(trace.effects), trace.status.value,
        )
        return trace


def simulate(
    graph: WorkflowGraph,
    event: SimulationEvent,
    catalog: Optional[NodeCatalog] = None,
    max_walk_steps: Optional[int] = None,
) -> EffectTrace:
    """Simulate one event against a graph. See Simulator."""
    return Simulator(catalog, max_walk_steps).simulate(graph, event)
