"""Learner-facing text derived from scenarios: requirement summaries and field hints."""

from __future__ import annotations

from typing import Any, Optional

from flowlab.catalog import NodeCatalog, default_catalog
from flowlab.types import FieldHint, ScenarioDefinition

from .conditions import is_blank, normalize_value

HintsByNode = dict[str, dict[str, FieldHint]]


def summarize_requirement(requirement: Any, catalog: Optional[NodeCatalog] = None) -> str:
    """One-line checklist text for a requirement, e.g. "Trigger is Contact Created"."""
    catalog = catalog or default_catalog()
    label = catalog.label_for
    kind = getattr(requirement, "type", None)

    if kind == "triggerIs":
        return f"Trigger is {label(requirement.value)}"
    if kind == "triggerConfigEquals":
        return f"Trigger field {requirement.field} equals {requirement.value}"
    if kind == "mustHaveNode":
        return f"Includes {label(requirement.value)}"
    if kind == "forbidNodeType":
        return f"Does not include {label(requirement.value)}"
    if kind == "nodeConfigRequired":
        fields = requirement.fields or catalog.required_fields(requirement.node_type)
        return f"{label(requirement.node_type)} has {', '.join(fields)}"
    if kind == "nodeOrder":
        return "Order: " + " -> ".join(label(t) for t in requirement.sequence)
    if kind == "mustContainIfElse":
        return f"Has at least {requirement.min_count} If/Else step"
    if kind == "branchCountAtLeast":
        return f"If/Else has at least {requirement.count} paths"
    if kind == "pathMustInclude":
        summary = f"Includes {', '.join(label(t) for t in requirement.node_types)}"
        return f"{summary} on the {requirement.branch} path" if requirement.branch else summary
    if kind == "requireStopPath":
        return "Each path ends when there are no more steps"
    return "Requirement"


def expected_field_hints(scenario: ScenarioDefinition) -> HintsByNode:
    """
    Collect, per node type and config field, the values the scenario's test
    cases expect, so the editor can show them next to the field.

    Values are stringified, blanks dropped and duplicates merged in first-seen
    order; the first note recorded for a field sticks.

    Returns:
        {"sms.send": {"body": FieldHint(label=..., values=["Welcome"], note=...)}, ...}
    """
    hints: HintsByNode = {}

    def collect(node_type: str, key: str, label: str, values: list[Any], note: Optional[str] = None) -> None:
        cleaned = [normalize_value(v) for v in values if not is_blank(v)]
        if not cleaned:
            return
        by_field = hints.setdefault(node_type, {})
        existing = by_field.get(key)
        if existing is None:
            by_field[key] = FieldHint(label=label, values=list(dict.fromkeys(cleaned)), note=note)
            return
        existing.values = list(dict.fromkeys([*existing.values, *cleaned]))
        if existing.note is None:
            existing.note = note

    for test_case in scenario.test_cases:
        expect = test_case.expect
        for message in expect.messages:
            channel = message.channel.lower()
            if channel == "sms":
                collect("sms.send", "body", "Expected text to include", message.contains,
                        "Use these words somewhere in the SMS.")
            elif channel == "email":
                collect("email.send", "body", "Expected text to include", message.contains,
                        "Use these words somewhere in the email.")
                collect("email.send", "subject", "Suggested keyword", message.contains,
                        "Short is ok. Use a key word from the body.")
        collect("tag.add", "tag", "Expected tag", expect.tags_added)
        collect("tag.remove", "tag", "Expected tag to remove", expect.tags_removed)
        collect("field.update", "fieldKey", "Expected field name", [f.field_key for f in expect.fields_equal])
        collect("field.update", "value", "Expected value", [f.value for f in expect.fields_equal])
        for task in [*expect.tasks_created, *expect.system_tasks_created]:
            collect("task.create", "title", "Expected words", task.contains)
        for notification in [*expect.notifications, *expect.system_notifications]:
            collect("user.notify", "message", "Expected words", notification.contains)
        for webhook in expect.webhooks_fired:
            collect("webhook.send", "url", "Expected URL contains", webhook.url_contains)

    return hints
