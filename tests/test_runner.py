"""Tests for ScenarioRunner, bundles and learner hints."""

from flowlab.types import (
    IssueCategory,
    MustHaveNode,
    ScenarioBundle,
    ScenarioDefinition,
    TraceStatus,
)
from flowlab.workflows.hints import expected_field_hints, summarize_requirement


# ── Single scenario ──────────────────────────────────────────────────────────


def test_phone_scenario_end_to_end(runner, phone_graph, phone_scenario):
    """The reference branching workflow passes validation and both test cases."""
    assert runner.validate(phone_graph, phone_scenario).passed
    report = runner.simulate(phone_graph, phone_scenario)
    assert report.passed
    assert [r.name for r in report.results] == ["has phone", "no phone"]
    assert [e.channel for e in report.results[0].trace.effects] == ["sms"]
    assert [e.channel for e in report.results[1].trace.effects] == ["email"]


def test_sms_expectation_fails_on_no_phone_run(runner, phone_graph, phone_scenario):
    """Asserting an SMS on the no-phone run fails with 'not found'."""
    case = phone_scenario.test_cases[1].model_copy(update={"expect": phone_scenario.test_cases[0].expect})
    result = runner.run_test_case(phone_graph, case, "contact.created")
    assert not result.passed
    assert result.comparison.failures[0].reason == "not found"


def test_default_trigger_comes_from_trigger_is(runner, phone_graph, phone_scenario):
    """Test cases without a triggerType fire the scenario's triggerIs type."""
    assert runner.default_trigger(phone_graph, phone_scenario) == "contact.created"
    report = runner.simulate(phone_graph, phone_scenario)
    assert all(r.trace.trigger_type == "contact.created" for r in report.results)


def test_default_trigger_falls_back_to_graph(runner, linear_graph):
    scenario = ScenarioDefinition.model_validate({"testCases": [{"name": "signup", "expect": {"tagsAdded": ["trial"]}}]})
    assert runner.default_trigger(linear_graph, scenario) == "form.submitted"
    assert runner.simulate(linear_graph, scenario).passed


def test_wrong_trigger_test_case_did_not_fire(runner, phone_graph, phone_scenario):
    """Every assertion of a test case for another trigger fails with 'test case did not fire'."""
    case = phone_scenario.test_cases[0].model_copy(update={
        "event": phone_scenario.test_cases[0].event.model_copy(update={"trigger_type": "form.submitted"}),
    })
    result = runner.run_test_case(phone_graph, case)
    assert result.trace.status == TraceStatus.TRIGGER_MISMATCH
    assert [a.reason for a in result.comparison.assertions] == ["test case did not fire"]


def test_validate_orders_requirement_allowed_structure(runner, build_graph, phone_scenario):
    """Requirement issues come first, then allowed-node issues, then structure."""
    graph = build_graph(
        [
            ("t1", "contact.created", {}),
            ("check_phone", "if_else", {"condition": {"type": "fieldExists", "field": "phone"}}),
            ("sms1", "sms.send", {"body": "Welcome"}),
            ("email1", "email.send", {"subject": "Welcome", "body": "Hi"}),
            ("hook", "webhook.send", {"url": "https://x.test"}),
        ],
        [("t1", "check_phone"), ("check_phone", "sms1", "true"), ("check_phone", "email1", "else")],
    )
    scenario = phone_scenario.model_copy(update={
        "requirements": [*phone_scenario.requirements, MustHaveNode(value="tag.add")],
    })
    result = runner.validate(graph, scenario)
    assert not result.passed
    assert [i.requirement for i in result.issues] == ["mustHaveNode", "allowedNodes", None]
    assert result.issues[1].node_id == "hook"
    assert result.issues[-1].category == IssueCategory.STRUCTURE
    assert result.issues[-1].node_id == "hook"
    assert result.warnings == [result.issues[-1]]


# ── Bundles ──────────────────────────────────────────────────────────────────


def _bundle(phone_scenario):
    follow_up = ScenarioDefinition.model_validate({
        "title": "Trial follow-up",
        "requirements": [{"type": "triggerIs", "value": "form.submitted"}],
        "testCases": [{"name": "signup", "expect": {"tasksCreated": [{"contains": "call"}]}}],
    })
    return ScenarioBundle.model_validate({
        "moduleId": "m-bundle",
        "workflows": [
            {"workflowId": "welcome", "scenario": phone_scenario},
            {"workflowId": "follow_up", "scenario": follow_up},
        ],
    })


def test_bundle_stamps_workflow_ids(runner, phone_graph, linear_graph, phone_scenario):
    """Each sub-workflow runs on its own graph and results carry its id."""
    bundle = _bundle(phone_scenario)
    graphs = {"welcome": phone_graph, "follow_up": linear_graph}
    assert runner.validate_bundle(graphs, bundle).passed
    report = runner.simulate_bundle(graphs, bundle)
    assert report.passed
    assert [(r.workflow_id, r.name) for r in report.results] == [
        ("welcome", "has phone"), ("welcome", "no phone"), ("follow_up", "signup"),
    ]


def test_bundle_missing_graph_is_an_issue(runner, phone_graph, phone_scenario):
    bundle = _bundle(phone_scenario)
    result = runner.validate_bundle({"welcome": phone_graph}, bundle)
    assert not result.passed
    assert [(i.workflow_id, i.category) for i in result.issues] == [("follow_up", IssueCategory.STRUCTURE)]

    report = runner.simulate_bundle({"welcome": phone_graph}, bundle)
    assert not report.passed
    assert report.issues[0].workflow_id == "follow_up"


def test_bundle_issue_workflow_ids(runner, half_branch_graph, linear_graph, phone_scenario):
    result = runner.validate_bundle({"welcome": half_branch_graph, "follow_up": linear_graph}, _bundle(phone_scenario))
    assert not result.passed
    assert {i.workflow_id for i in result.errors} == {"welcome"}


# ── Hints ────────────────────────────────────────────────────────────────────


def test_summarize_requirements(phone_scenario, catalog):
    summaries = [summarize_requirement(r, catalog) for r in phone_scenario.requirements]
    assert summaries == [
        "Trigger is Contact Created",
        "Has at least 1 If/Else step",
        "If/Else has at least 2 paths",
        "Includes Send SMS on the true path",
        "Includes Send Email on the else path",
        "Each path ends when there are no more steps",
    ]


def test_expected_field_hints_merge_and_dedupe():
    """Hints are grouped by node type and field, merged across test cases."""
    scenario = ScenarioDefinition.model_validate({
        "testCases": [
            {"name": "a", "expect": {
                "messages": [{"channel": "email", "contains": ["Welcome"]}],
                "tagsAdded": ["trial", " "],
                "fieldsEqual": [{"fieldKey": "vip", "value": True}],
            }},
            {"name": "b", "expect": {
                "messages": [{"channel": "email", "contains": ["Welcome", "class"]}],
                "tagsAdded": ["trial"],
                "systemNotifications": [{"contains": "new member"}],
            }},
        ],
    })
    hints = expected_field_hints(scenario)
    assert hints["email.send"]["body"].values == ["Welcome", "class"]
    assert hints["email.send"]["subject"].label == "Suggested keyword"
    assert hints["tag.add"]["tag"].values == ["trial"]
    assert hints["field.update"]["value"].values == ["true"]
    assert hints["user.notify"]["message"].values == ["new member"]
    assert "sms.send" not in hints
