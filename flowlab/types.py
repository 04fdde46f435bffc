"""All shared types, enums, and type aliases. Everything imports from here."""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
)


# ── Enums ──────────────────────────────────────────────────────────────

class NodeKind(str, Enum):
    TRIGGER = "trigger"
    ACTION = "action"
    LOGIC = "logic"     # if/else

class BranchLabel(str, Enum):
    TRUE = "true"
    ELSE = "else"

class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    NUMBER = "number"
    BOOLEAN = "boolean"
    CONDITION = "condition"   # if/else condition editor

class RequirementType(str, Enum):
    TRIGGER_IS = "triggerIs"
    TRIGGER_CONFIG_EQUALS = "triggerConfigEquals"
    MUST_HAVE_NODE = "mustHaveNode"
    FORBID_NODE_TYPE = "forbidNodeType"
    NODE_CONFIG_REQUIRED = "nodeConfigRequired"
    NODE_ORDER = "nodeOrder"
    MUST_CONTAIN_IF_ELSE = "mustContainIfElse"
    BRANCH_COUNT_AT_LEAST = "branchCountAtLeast"
    PATH_MUST_INCLUDE = "pathMustInclude"
    REQUIRE_STOP_PATH = "requireStopPath"

class ConditionType(str, Enum):
    FIELD_EXISTS = "fieldExists"
    FIELD_EQUALS = "fieldEquals"

class EffectType(str, Enum):
    MESSAGE_SENT = "message_sent"
    TAG_ADDED = "tag_added"
    TAG_REMOVED = "tag_removed"
    FIELD_SET = "field_set"
    TASK_CREATED = "task_created"
    NOTIFICATION_SENT = "notification_sent"
    WEBHOOK_FIRED = "webhook_fired"

class TraceStatus(str, Enum):
    COMPLETED = "completed"
    TRIGGER_MISMATCH = "trigger_mismatch"   # test case did not fire
    BUDGET_EXCEEDED = "budget_exceeded"     # walk aborted, possible cycle

class IssueCategory(str, Enum):
    REQUIREMENT = "requirement"
    STRUCTURE = "structure"
    CONFIGURATION = "configuration"
    SCENARIO_CONFIG = "scenario_config"     # authoring defect, not a learner mistake

class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


def _listify(value: Any) -> Any:
    """Accept a bare string wherever a list of strings is expected."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class _Frozen(BaseModel):
    """Immutable input model. Accepts both snake_case names and camelCase aliases."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ── Node catalog ───────────────────────────────────────────────────────

class ConfigField(BaseModel):
    """One configurable field of a node type."""
    key: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    options: list[str] = Field(default_factory=list)     # select fields only
    placeholder: Optional[str] = None
    helper: Optional[str] = None

class NodeDefinition(BaseModel):
    """Catalog entry for a node type."""
    type: str                           # "sms.send", "contact.created", "if_else"
    kind: NodeKind
    label: str                          # display name shown to the learner
    description: str = ""
    config_fields: list[ConfigField] = Field(default_factory=list)
    effect: Optional[EffectType] = None     # actions only
    channel: Optional[str] = None           # message actions: "sms", "email"
    branches: list[str] = Field(default_factory=list)  # logic only, in walk order


# ── Workflow graph ─────────────────────────────────────────────────────

class WorkflowNode(_Frozen):
    id: str
    type: str
    config: dict[str, Any] = Field(default_factory=dict)

class WorkflowConnection(_Frozen):
    """Directed edge. `branch` is set only when the source is a logic node."""
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    branch: Optional[str] = None

    @field_validator("branch", mode="before")
    @classmethod
    def normalize_branch(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

class WorkflowGraph(_Frozen):
    id: Optional[str] = None
    nodes: list[WorkflowNode] = Field(default_factory=list)
    connections: list[WorkflowConnection] = Field(
        default_factory=list,
        validation_alias=AliasChoices("connections", "edges"),
    )


# ── Conditions ─────────────────────────────────────────────────────────

class Condition(_Frozen):
    """If/else condition, stored on a logic node as config["condition"]."""
    type: str                           # ConditionType value; anything else is unknown
    field: str = ""
    value: Any = None
    negate: bool = False


# ── Requirements (closed tagged union on `type`) ──────────────────────

class TriggerIs(_Frozen):
    type: Literal["triggerIs"] = "triggerIs"
    value: str

class TriggerConfigEquals(_Frozen):
    type: Literal["triggerConfigEquals"] = "triggerConfigEquals"
    field: str
    value: Any = None

class MustHaveNode(_Frozen):
    type: Literal["mustHaveNode"] = "mustHaveNode"
    value: str

class ForbidNodeType(_Frozen):
    type: Literal["forbidNodeType"] = "forbidNodeType"
    value: str

class NodeConfigRequired(_Frozen):
    type: Literal["nodeConfigRequired"] = "nodeConfigRequired"
    node_type: str = Field(alias="nodeType")
    fields: list[str] = Field(default_factory=list)   # empty → catalog's required fields

class NodeOrder(_Frozen):
    type: Literal["nodeOrder"] = "nodeOrder"
    sequence: list[str]

class MustContainIfElse(_Frozen):
    type: Literal["mustContainIfElse"] = "mustContainIfElse"
    min_count: int = Field(default=1, alias="minCount")

class BranchCountAtLeast(_Frozen):
    type: Literal["branchCountAtLeast"] = "branchCountAtLeast"
    count: int

class PathMustInclude(_Frozen):
    type: Literal["pathMustInclude"] = "pathMustInclude"
    node_types: list[str] = Field(alias="nodeTypes")
    branch: Optional[str] = None        # only paths leaving a logic node through this label

    @field_validator("node_types", mode="before")
    @classmethod
    def listify_node_types(cls, v):
        return _listify(v)

class RequireStopPath(_Frozen):
    type: Literal["requireStopPath"] = "requireStopPath"

class UnknownRequirement(_Frozen):
    """Any requirement kind the checker does not know. Reported, never evaluated."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")
    type: str


_REQUIREMENT_TAGS = frozenset(t.value for t in RequirementType)


def _requirement_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    kind = getattr(kind, "value", kind)
    return kind if kind in _REQUIREMENT_TAGS else "unknown"


Requirement = Annotated[
    Union[
        Annotated[TriggerIs, Tag("triggerIs")],
        Annotated[TriggerConfigEquals, Tag("triggerConfigEquals")],
        Annotated[MustHaveNode, Tag("mustHaveNode")],
        Annotated[ForbidNodeType, Tag("forbidNodeType")],
        Annotated[NodeConfigRequired, Tag("nodeConfigRequired")],
        Annotated[NodeOrder, Tag("nodeOrder")],
        Annotated[MustContainIfElse, Tag("mustContainIfElse")],
        Annotated[BranchCountAtLeast, Tag("branchCountAtLeast")],
        Annotated[PathMustInclude, Tag("pathMustInclude")],
        Annotated[RequireStopPath, Tag("requireStopPath")],
        Annotated[UnknownRequirement, Tag("unknown")],
    ],
    Discriminator(_requirement_tag),
]


# ── Test cases & expected outcomes ─────────────────────────────────────

class SimulationEvent(_Frozen):
    """Synthetic trigger event: which trigger fired plus the contact record."""
    trigger_type: Optional[str] = Field(default=None, alias="triggerType")
    record: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("record", "contact"),
    )

class ExpectedMessage(_Frozen):
    channel: str                        # "sms" | "email"
    contains: list[str] = Field(default_factory=list)

    @field_validator("contains", mode="before")
    @classmethod
    def listify_contains(cls, v):
        return _listify(v)

class ExpectedText(_Frozen):
    """Task title / notification message substrings."""
    contains: list[str] = Field(default_factory=list)

    @field_validator("contains", mode="before")
    @classmethod
    def listify_contains(cls, v):
        return _listify(v)

class ExpectedField(_Frozen):
    field_key: str = Field(alias="fieldKey")
    value: Any = None

class ExpectedWebhook(_Frozen):
    url_contains: list[str] = Field(default_factory=list, alias="urlContains")

    @field_validator("url_contains", mode="before")
    @classmethod
    def listify_url(cls, v):
        return _listify(v)

class ExpectedOutcome(_Frozen):
    messages: list[ExpectedMessage] = Field(default_factory=list)
    tags_added: list[str] = Field(default_factory=list, alias="tagsAdded")
    tags_removed: list[str] = Field(default_factory=list, alias="tagsRemoved")
    fields_equal: list[ExpectedField] = Field(default_factory=list, alias="fieldsEqual")
    tasks_created: list[ExpectedText] = Field(default_factory=list, alias="tasksCreated")
    system_tasks_created: list[ExpectedText] = Field(default_factory=list, alias="systemTasksCreated")
    notifications: list[ExpectedText] = Field(default_factory=list)
    system_notifications: list[ExpectedText] = Field(default_factory=list, alias="systemNotifications")
    webhooks_fired: list[ExpectedWebhook] = Field(default_factory=list, alias="webhooksFired")

    @field_validator("tags_added", "tags_removed", mode="before")
    @classmethod
    def listify_tags(cls, v):
        return _listify(v)

class TestCase(_Frozen):
    __test__ = False    # not a pytest class

    name: str
    description: str = ""
    event: SimulationEvent = Field(
        default_factory=SimulationEvent,
        validation_alias=AliasChoices("event", "input"),
    )
    expect: ExpectedOutcome = Field(default_factory=ExpectedOutcome)


# ── Scenarios ──────────────────────────────────────────────────────────

class AllowedNodes(_Frozen):
    triggers: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    logic: list[str] = Field(default_factory=list)

    def all_types(self) -> list[str]:
        return [*self.triggers, *self.actions, *self.logic]

class ScenarioDefinition(_Frozen):
    """Lesson content for one workflow: static requirements + dynamic test cases."""
    module_id: Optional[str] = Field(default=None, alias="moduleId")
    title: str = ""
    objectives: list[str] = Field(default_factory=list)
    allowed_nodes: Optional[AllowedNodes] = Field(default=None, alias="allowedNodes")
    requirements: list[Requirement] = Field(default_factory=list)
    test_cases: list[TestCase] = Field(default_factory=list, alias="testCases")

class BundleWorkflow(_Frozen):
    workflow_id: str = Field(alias="workflowId")
    scenario: ScenarioDefinition

class ScenarioBundle(_Frozen):
    """Multi-workflow lesson: each sub-workflow is built and checked on its own."""
    module_id: Optional[str] = Field(default=None, alias="moduleId")
    title: str = ""
    workflows: list[BundleWorkflow] = Field(default_factory=list)


# ── Effects (simulation output) ────────────────────────────────────────

class MessageSent(_Frozen):
    type: Literal["message_sent"] = "message_sent"
    node_id: str
    channel: str
    body: str = ""
    subject: str = ""

class TagAdded(_Frozen):
    type: Literal["tag_added"] = "tag_added"
    node_id: str
    tag: str

class TagRemoved(_Frozen):
    type: Literal["tag_removed"] = "tag_removed"
    node_id: str
    tag: str

class FieldSet(_Frozen):
    type: Literal["field_set"] = "field_set"
    node_id: str
    field_key: str
    value: Any = None

class TaskCreated(_Frozen):
    type: Literal["task_created"] = "task_created"
    node_id: str
    title: str

class NotificationSent(_Frozen):
    type: Literal["notification_sent"] = "notification_sent"
    node_id: str
    message: str

class WebhookFired(_Frozen):
    type: Literal["webhook_fired"] = "webhook_fired"
    node_id: str
    url: str
    method: str = "POST"


Effect = Annotated[
    Union[MessageSent, TagAdded, TagRemoved, FieldSet, TaskCreated, NotificationSent, WebhookFired],
    Field(discriminator="type"),
]


# ── Results ────────────────────────────────────────────────────────────

class Issue(_Frozen):
    """One finding, located so the editor can focus the offending node/field."""
    message: str
    category: IssueCategory = IssueCategory.REQUIREMENT
    severity: IssueSeverity = IssueSeverity.ERROR
    requirement: Optional[str] = None       # requirement kind that produced it
    node_id: Optional[str] = None
    field_key: Optional[str] = None
    workflow_id: Optional[str] = None       # bundles only

class ValidationResult(BaseModel):
    passed: bool
    issues: list[Issue] = Field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]

class PathStep(_Frozen):
    node_id: str
    node_type: str
    branch: Optional[str] = None        # label taken when leaving a logic node

class EffectTrace(BaseModel):
    """Ordered record of one simulation run. Built fresh per run, never persisted."""
    status: TraceStatus = TraceStatus.COMPLETED
    trigger_type: Optional[str] = None
    effects: list[Effect] = Field(default_factory=list)
    path: list[PathStep] = Field(default_factory=list)
    diagnostics: list[Issue] = Field(default_factory=list)

    @property
    def fired(self) -> bool:
        return self.status != TraceStatus.TRIGGER_MISMATCH

class AssertionResult(BaseModel):
    kind: EffectType
    label: str                          # "sms containing 'Welcome'"
    passed: bool
    reason: Optional[str] = None        # "not found", "test case did not fire"
    expected: dict[str, Any] = Field(default_factory=dict)
    observed: list[dict[str, Any]] = Field(default_factory=list)   # same-kind effects, for diffs

class ComparisonResult(BaseModel):
    passed: bool
    status: TraceStatus
    assertions: list[AssertionResult] = Field(default_factory=list)

    @property
    def failures(self) -> list[AssertionResult]:
        return [a for a in self.assertions if not a.passed]

class TestCaseResult(BaseModel):
    __test__ = False

    name: str
    passed: bool
    trace: EffectTrace
    comparison: ComparisonResult
    workflow_id: Optional[str] = None

class SimulationReport(BaseModel):
    passed: bool
    results: list[TestCaseResult] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)   # e.g. bundle workflow not built


# ── Learner hints ──────────────────────────────────────────────────────

class FieldHint(BaseModel):
    """Values the test cases expect for one config field of a node type."""
    label: str                          # "Expected tag"
    values: list[str] = Field(default_factory=list)
    note: Optional[str] = None
