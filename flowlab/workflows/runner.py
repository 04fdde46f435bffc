"""
ScenarioRunner — runs a lesson scenario (or a bundle of them) against the
learner's workflow graph(s).

Glue over the engine: RuleChecker for static requirements, Simulator plus
compare() for test cases.  Pure and synchronous; the same runner can be
shared across threads.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from flowlab.catalog import NodeCatalog, default_catalog
from flowlab.config import FlowLabConfig, config as default_config
from flowlab.types import (
    Issue,
    IssueCategory,
    IssueSeverity,
    RequirementType,
    ScenarioBundle,
    ScenarioDefinition,
    SimulationReport,
    TestCase,
    TestCaseResult,
    ValidationResult,
    WorkflowGraph,
)

from .comparator import compare
from .graph import WorkflowIndex
from .simulator import Simulator
from .validator import RuleChecker, inspect_structure

logger = logging.getLogger(__name__)

ALLOWED_NODES = "allowedNodes"


def _passed(issues: list[Issue]) -> bool:
    return not any(i.severity == IssueSeverity.ERROR for i in issues)


class ScenarioRunner:
    """
    Validates and simulates workflows against lesson scenarios.

    Args:
        catalog: NodeCatalog used for node kinds, labels and effects.
                 The built-in catalog is used if not supplied.
        config:  FlowLabConfig instance.  The module-level config is used if
                 not supplied.
    """

    def __init__(
        self,
        catalog: Optional[NodeCatalog] = None,
        config: Optional[FlowLabConfig] = None,
    ) -> None:
        self._catalog = catalog or default_catalog()
        self._config = config or default_config
        self._checker = RuleChecker(self._catalog, self._config.max_walk_steps)
        self._simulator = Simulator(self._catalog, self._config.max_walk_steps)

    @property
    def catalog(self) -> NodeCatalog:
        return self._catalog

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _allowed_node_issues(self, graph: WorkflowGraph, scenario: ScenarioDefinition) -> list[Issue]:
        if scenario.allowed_nodes is None:
            return []
        allowed = set(scenario.allowed_nodes.all_types())
        issues = [
            Issue(
                message=f"{self._catalog.label_for(node.type)} is not available in this lesson",
                requirement=ALLOWED_NODES,
                node_id=node.id,
            )
            for node in graph.nodes
            if node.type not in allowed
        ]
        return sorted(issues, key=lambda i: i.node_id or "")

    def default_trigger(self, graph: WorkflowGraph, scenario: ScenarioDefinition) -> Optional[str]:
        """Trigger type for test cases that do not name one.

        The scenario's triggerIs requirement wins; otherwise the graph's own
        single trigger.
        """
        for req in scenario.requirements:
            if req.type == RequirementType.TRIGGER_IS.value:
                return req.value
        trigger = WorkflowIndex(graph, self._catalog).trigger
        return trigger.type if trigger else None

    # ── Single workflow ───────────────────────────────────────────────────────

    def validate(self, graph: WorkflowGraph, scenario: ScenarioDefinition) -> ValidationResult:
        """
        Requirement issues, then allowed-node issues, then structural
        diagnostics, in one result.
        """
        issues = list(self._checker.check(graph, scenario.requirements).issues)
        issues.extend(self._allowed_node_issues(graph, scenario))
        issues.extend(inspect_structure(graph, self._catalog))
        result = ValidationResult(passed=_passed(issues), issues=issues)
        logger.info(
            "Validated '%s': %d error(s), %d warning(s)",
            scenario.title or scenario.module_id or graph.id,
            len(result.errors),
            len(result.warnings),
        )
        return result

    def run_test_case(
        self,
        graph: WorkflowGraph,
        test_case: TestCase,
        default_trigger: Optional[str] = None,
    ) -> TestCaseResult:
        event = test_case.event
        if event.trigger_type is None and default_trigger:
            event = event.model_copy(update={"trigger_type": default_trigger})
        trace = self._simulator.simulate(graph, event)
        comparison = compare(trace, test_case.expect)
        logger.debug("Test case '%s': %s", test_case.name, "passed" if comparison.passed else "failed")
        return TestCaseResult(name=test_case.name, passed=comparison.passed, trace=trace, comparison=comparison)

    def simulate(self, graph: WorkflowGraph, scenario: ScenarioDefinition) -> SimulationReport:
        """Run every test case of a scenario. Passes when all of them pass."""
        trigger = self.default_trigger(graph, scenario)
        results = [self.run_test_case(graph, tc, trigger) for tc in scenario.test_cases]
        report = SimulationReport(passed=all(r.passed for r in results), results=results)
        logger.info(
            "Simulated %d test case(s): %d passed",
            len(results), sum(1 for r in results if r.passed),
        )
        return report

    # ── Bundles ───────────────────────────────────────────────────────────────

    def _missing_workflow(self, workflow_id: str) -> Issue:
        return Issue(
            message=f"Workflow '{workflow_id}' has not been built yet",
            category=IssueCategory.STRUCTURE,
            workflow_id=workflow_id,
        )

    def validate_bundle(
        self,
        graphs: Mapping[str, WorkflowGraph],
        bundle: ScenarioBundle,
    ) -> ValidationResult:
        """Validate each sub-workflow on its own; issues carry workflow_id."""
        issues: list[Issue] = []
        for item in bundle.workflows:
            graph = graphs.get(item.workflow_id)
            if graph is None:
                issues.append(self._missing_workflow(item.workflow_id))
                continue
            result = self.validate(graph, item.scenario)
            issues.extend(i.model_copy(update={"workflow_id": item.workflow_id}) for i in result.issues)
        return ValidationResult(passed=_passed(issues), issues=issues)

    def simulate_bundle(
        self,
        graphs: Mapping[str, WorkflowGraph],
        bundle: ScenarioBundle,
    ) -> SimulationReport:
        """Run every sub-workflow's test cases; results carry workflow_id."""
        results: list[TestCaseResult] = []
        issues: list[Issue] = []
        for item in bundle.workflows:
            graph = graphs.get(item.workflow_id)
            if graph is None:
                issues.append(self._missing_workflow(item.workflow_id))
                continue
            report = self.simulate(graph, item.scenario)
            results.extend(r.model_copy(update={"workflow_id": item.workflow_id}) for r in report.results)
        passed = all(r.passed for r in results) and _passed(issues)
        return SimulationReport(passed=passed, results=results, issues=issues)
