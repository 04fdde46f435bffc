"""Test fixtures: catalog, sample graphs, sample scenarios.

All tests should use these fixtures for consistency.
"""

import pytest

from flowlab.catalog import default_catalog
from flowlab.config import FlowLabConfig
from flowlab.types import ScenarioDefinition, WorkflowGraph
from flowlab.workflows import ScenarioRunner


def make_graph(nodes, connections=()):
    """Build a WorkflowGraph from (id, type, config) tuples and (from, to, branch) tuples."""
    return WorkflowGraph.model_validate({
        "id": "wf-test",
        "nodes": [{"id": nid, "type": ntype, "config": cfg or {}} for nid, ntype, cfg in nodes],
        "connections": [
            {"from": c[0], "to": c[1], "branch": c[2] if len(c) > 2 else None} for c in connections
        ],
    })


PHONE_CONDITION = {"type": "fieldExists", "field": "phone"}


@pytest.fixture
def config():
    """Test configuration with safe defaults."""
    return FlowLabConfig(debug=True, log_level="DEBUG", max_walk_steps=500)


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def runner(catalog, config):
    return ScenarioRunner(catalog=catalog, config=config)


@pytest.fixture
def phone_graph():
    """trigger → if_else(phone exists) {true → SMS, else → email}."""
    return make_graph(
        [
            ("t1", "contact.created", {}),
            ("check_phone", "if_else", {"condition": PHONE_CONDITION}),
            ("sms1", "sms.send", {"body": "Welcome to the studio!"}),
            ("email1", "email.send", {"subject": "Welcome", "body": "Glad you joined us."}),
        ],
        [
            ("t1", "check_phone"),
            ("check_phone", "sms1", "true"),
            ("check_phone", "email1", "else"),
        ],
    )


@pytest.fixture
def half_branch_graph():
    """Same as phone_graph but the else branch is left unconnected."""
    return make_graph(
        [
            ("t1", "contact.created", {}),
            ("check_phone", "if_else", {"condition": PHONE_CONDITION}),
            ("sms1", "sms.send", {"body": "Welcome to the studio!"}),
        ],
        [
            ("t1", "check_phone"),
            ("check_phone", "sms1", "true"),
        ],
    )


@pytest.fixture
def linear_graph():
    """trigger → tag.add → sms.send → task.create."""
    return make_graph(
        [
            ("t1", "form.submitted", {"formName": "Free Trial"}),
            ("tag1", "tag.add", {"tag": "trial"}),
            ("sms1", "sms.send", {"body": "Thanks for signing up"}),
            ("task1", "task.create", {"title": "Call new trial member"}),
        ],
        [("t1", "tag1"), ("tag1", "sms1"), ("sms1", "task1")],
    )


@pytest.fixture
def phone_scenario():
    """Lesson scenario for the phone branching workflow."""
    return ScenarioDefinition.model_validate({
        "moduleId": "m-branching",
        "title": "Welcome by SMS or email",
        "allowedNodes": {
            "triggers": ["contact.created"],
            "actions": ["sms.send", "email.send"],
            "logic": ["if_else"],
        },
        "requirements": [
            {"type": "triggerIs", "value": "contact.created"},
            {"type": "mustContainIfElse"},
            {"type": "branchCountAtLeast", "count": 2},
            {"type": "pathMustInclude", "nodeTypes": ["sms.send"], "branch": "true"},
            {"type": "pathMustInclude", "nodeTypes": ["email.send"], "branch": "else"},
            {"type": "requireStopPath"},
        ],
        "testCases": [
            {
                "name": "has phone",
                "event": {"record": {"firstName": "Ana", "phone": "+15551234"}},
                "expect": {"messages": [{"channel": "sms", "contains": ["welcome"]}]},
            },
            {
                "name": "no phone",
                "event": {"record": {"firstName": "Ben", "phone": "  "}},
                "expect": {"messages": [{"channel": "email", "contains": ["Welcome"]}]},
            },
        ],
    })


@pytest.fixture
def build_graph():
    """Factory fixture wrapping make_graph()."""
    return make_graph
