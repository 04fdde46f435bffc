"""Node catalog — the registry of node types a learner can place in a workflow.

The catalog is owned by the editor: it defines, per node type, the config
fields and which effect an action produces. The engine only reads it.
"""

from typing import Optional

from flowlab.exceptions import NodeCatalogError
from flowlab.types import (
    BranchLabel,
    ConfigField,
    EffectType,
    FieldType,
    NodeDefinition,
    NodeKind,
)


class NodeCatalog:
    """Central registry of node definitions, keyed by node type."""

    def __init__(self, definitions: Optional[list[NodeDefinition]] = None):
        self._definitions: dict[str, NodeDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: NodeDefinition) -> None:
        """Register (or replace) a node definition."""
        self._definitions[definition.type] = definition

    def get(self, node_type: str) -> NodeDefinition:
        """Get the definition for a node type.

        Raises:
            NodeCatalogError: if the type is not registered
        """
        if node_type not in self._definitions:
            raise NodeCatalogError(f"Node type '{node_type}' not found in catalog", node_type=node_type)
        return self._definitions[node_type]

    def find(self, node_type: str) -> Optional[NodeDefinition]:
        """Like get(), but returns None for unknown types."""
        return self._definitions.get(node_type)

    def kind_of(self, node_type: str) -> Optional[NodeKind]:
        definition = self._definitions.get(node_type)
        return definition.kind if definition else None

    def required_fields(self, node_type: str) -> list[str]:
        """Keys of the required config fields of a node type (empty if unknown)."""
        definition = self._definitions.get(node_type)
        if definition is None:
            return []
        return [f.key for f in definition.config_fields if f.required]

    def label_for(self, node_type: str) -> str:
        """Display name for a node type, falling back to the raw type."""
        definition = self._definitions.get(node_type)
        return definition.label if definition else node_type

    def list_definitions(self, kind: Optional[NodeKind] = None) -> list[NodeDefinition]:
        """List registered definitions, optionally filtered by kind."""
        return [d for d in self._definitions.values() if kind is None or d.kind == kind]

    def __contains__(self, node_type: str) -> bool:
        return node_type in self._definitions


# ── Built-in definitions ──────────────────────────────────────────────────────

_BRANCHES = [BranchLabel.TRUE.value, BranchLabel.ELSE.value]

DEFAULT_DEFINITIONS: list[NodeDefinition] = [
    # Triggers
    NodeDefinition(
        type="contact.created", kind=NodeKind.TRIGGER, label="Contact Created",
        description="Starts when a new contact is added.",
    ),
    NodeDefinition(
        type="form.submitted", kind=NodeKind.TRIGGER, label="Form Submitted",
        description="Starts when a contact submits a form.",
        config_fields=[ConfigField(key="formName", label="Form", required=True)],
    ),
    NodeDefinition(
        type="contact.tagged", kind=NodeKind.TRIGGER, label="Contact Tag Added",
        description="Starts when a tag is added to a contact.",
        config_fields=[ConfigField(key="tag", label="Tag", required=True)],
    ),
    NodeDefinition(
        type="appointment.booked", kind=NodeKind.TRIGGER, label="Appointment Booked",
        description="Starts when a contact books an appointment.",
        config_fields=[ConfigField(key="calendar", label="Calendar")],
    ),
    NodeDefinition(
        type="opportunity.stage_changed", kind=NodeKind.TRIGGER, label="Pipeline Stage Changed",
        description="Starts when an opportunity moves to another pipeline stage.",
        config_fields=[
            ConfigField(key="pipeline", label="Pipeline", required=True),
            ConfigField(key="stage", label="Stage", required=True),
        ],
    ),
    # Actions
    NodeDefinition(
        type="sms.send", kind=NodeKind.ACTION, label="Send SMS",
        description="Sends a text message to the contact.",
        effect=EffectType.MESSAGE_SENT, channel="sms",
        config_fields=[
            ConfigField(key="body", label="Message", type=FieldType.TEXTAREA, required=True),
        ],
    ),
    NodeDefinition(
        type="email.send", kind=NodeKind.ACTION, label="Send Email",
        description="Sends an email to the contact.",
        effect=EffectType.MESSAGE_SENT, channel="email",
        config_fields=[
            ConfigField(key="subject", label="Subject", required=True),
            ConfigField(key="body", label="Body", type=FieldType.TEXTAREA, required=True),
            ConfigField(key="fromName", label="From name"),
        ],
    ),
    NodeDefinition(
        type="tag.add", kind=NodeKind.ACTION, label="Add Tag",
        description="Adds a tag to the contact.",
        effect=EffectType.TAG_ADDED,
        config_fields=[ConfigField(key="tag", label="Tag", required=True)],
    ),
    NodeDefinition(
        type="tag.remove", kind=NodeKind.ACTION, label="Remove Tag",
        description="Removes a tag from the contact.",
        effect=EffectType.TAG_REMOVED,
        config_fields=[ConfigField(key="tag", label="Tag", required=True)],
    ),
    NodeDefinition(
        type="field.update", kind=NodeKind.ACTION, label="Update Contact Field",
        description="Sets a contact field to a value.",
        effect=EffectType.FIELD_SET,
        config_fields=[
            ConfigField(key="fieldKey", label="Field", required=True),
            ConfigField(key="value", label="Value", required=True),
        ],
    ),
    NodeDefinition(
        type="task.create", kind=NodeKind.ACTION, label="Create Task",
        description="Creates a follow-up task for a team member.",
        effect=EffectType.TASK_CREATED,
        config_fields=[
            ConfigField(key="title", label="Title", required=True),
            ConfigField(key="assignee", label="Assign to"),
            ConfigField(key="dueInDays", label="Due in (days)", type=FieldType.NUMBER),
        ],
    ),
    NodeDefinition(
        type="user.notify", kind=NodeKind.ACTION, label="Internal Notification",
        description="Notifies a team member.",
        effect=EffectType.NOTIFICATION_SENT,
        config_fields=[
            ConfigField(key="message", label="Message", type=FieldType.TEXTAREA, required=True),
            ConfigField(key="channel", label="Channel", type=FieldType.SELECT, options=["app", "email", "sms"]),
        ],
    ),
    NodeDefinition(
        type="webhook.send", kind=NodeKind.ACTION, label="Webhook",
        description="Sends the contact's data to another system.",
        effect=EffectType.WEBHOOK_FIRED,
        config_fields=[
            ConfigField(key="url", label="URL", required=True, placeholder="https://"),
            ConfigField(key="method", label="Method", type=FieldType.SELECT, options=["POST", "GET", "PUT"]),
        ],
    ),
    # Logic
    NodeDefinition(
        type="if_else", kind=NodeKind.LOGIC, label="If/Else",
        description="Splits the workflow into a true path and an else path.",
        branches=_BRANCHES,
        config_fields=[
            ConfigField(key="condition", label="Condition", type=FieldType.CONDITION, required=True),
        ],
    ),
]


def default_catalog() -> NodeCatalog:
    """Fresh catalog with the built-in node types."""
    return NodeCatalog([d.model_copy(deep=True) for d in DEFAULT_DEFINITIONS])
