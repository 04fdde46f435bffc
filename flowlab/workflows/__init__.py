"""flowlab.workflows — Rule checking, simulation and comparison for learner workflows."""

from .comparator import compare
from .conditions import evaluate
from .graph import WorkflowIndex
from .hints import expected_field_hints, summarize_requirement
from .runner import ScenarioRunner
from .simulator import Simulator, simulate
from .validator import RuleChecker, check, inspect_structure

__all__ = [
    "check", "simulate", "compare", "evaluate", "inspect_structure",
    "RuleChecker", "Simulator", "ScenarioRunner", "WorkflowIndex",
    "summarize_requirement", "expected_field_hints",
]
