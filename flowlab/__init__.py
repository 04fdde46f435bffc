"""FlowLab — validation and dry-run simulation for learner-built automation workflows.

Usage:
    from flowlab import ScenarioRunner, load_graph, load_scenario

    runner = ScenarioRunner()
    graph = load_graph("my_workflow.json")
    scenario = load_scenario("welcome.yaml")
    runner.validate(graph, scenario).passed
    runner.simulate(graph, scenario).passed
"""

from flowlab.types import (
    WorkflowGraph, WorkflowNode, WorkflowConnection, Condition,
    ScenarioDefinition, ScenarioBundle, TestCase, SimulationEvent, ExpectedOutcome,
    Issue, ValidationResult, EffectTrace, ComparisonResult, TestCaseResult, SimulationReport,
    NodeKind, EffectType, TraceStatus, IssueCategory, IssueSeverity, RequirementType,
)
from flowlab.exceptions import (
    FlowLabError, WorkflowValidationError, ScenarioConfigurationError,
    UnknownRequirementError, WalkBudgetExceeded, NodeCatalogError, ScenarioLoadError,
)
from flowlab.catalog import NodeCatalog, default_catalog
from flowlab.config import load_graph, load_scenario
from flowlab.workflows import ScenarioRunner, check, compare, evaluate, inspect_structure, simulate
from flowlab.version import __version__

__all__ = [
    "WorkflowGraph", "WorkflowNode", "WorkflowConnection", "Condition",
    "ScenarioDefinition", "ScenarioBundle", "TestCase", "SimulationEvent", "ExpectedOutcome",
    "Issue", "ValidationResult", "EffectTrace", "ComparisonResult", "TestCaseResult", "SimulationReport",
    "NodeKind", "EffectType", "TraceStatus", "IssueCategory", "IssueSeverity", "RequirementType",
    "FlowLabError", "WorkflowValidationError", "ScenarioConfigurationError",
    "UnknownRequirementError", "WalkBudgetExceeded", "NodeCatalogError", "ScenarioLoadError",
    "NodeCatalog", "default_catalog",
    "load_graph", "load_scenario",
    "ScenarioRunner", "check", "compare", "evaluate", "inspect_structure", "simulate",
    "__version__",
]
