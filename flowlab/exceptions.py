"""Typed exception hierarchy. Every error FlowLab can raise.

Engine operations (check, simulate, compare) never let these escape: they
are raised internally and folded into Issue records. Only the file loader
and NodeCatalog.get raise to callers.
"""


class FlowLabError(Exception):
    """Base exception for all FlowLab errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


# ── Workflow graph ──────────────────────────────────────────────────────────


class WorkflowError(FlowLabError):
    """Base exception for workflow graph errors."""
    pass


class WorkflowValidationError(WorkflowError):
    """Workflow graph is structurally invalid (cycles, dangling edges, etc.)."""
    def __init__(self, message: str, violations: list = None, node_ids: list = None, **kwargs):
        super().__init__(message, **kwargs)
        self.violations = violations or []
        self.node_ids = node_ids or []


# ── Scenario authoring ──────────────────────────────────────────────────────


class ScenarioConfigurationError(FlowLabError):
    """Defect in scenario authoring or the editor, not a learner mistake."""
    pass


class UnknownRequirementError(ScenarioConfigurationError):
    """A requirement kind the rule checker has no handler for."""
    def __init__(self, message: str, requirement_type: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.requirement_type = requirement_type


class WalkBudgetExceeded(ScenarioConfigurationError):
    """A graph walk took more steps than its budget allows (possible cycle)."""
    def __init__(self, message: str, steps: int = 0, budget: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.steps = steps
        self.budget = budget


class NodeCatalogError(FlowLabError):
    """Node type is not registered in the catalog."""
    def __init__(self, message: str, node_type: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.node_type = node_type


class ScenarioLoadError(FlowLabError):
    """Graph or scenario file could not be read or does not match the schema."""
    def __init__(self, message: str, path: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
