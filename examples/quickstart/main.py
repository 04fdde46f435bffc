"""FlowLab Quickstart — Check and dry-run a learner workflow in memory.

Builds the "welcome by SMS or email" workflow in code, then:
- checks it against the lesson's requirements
- simulates both test cases (contact with and without a phone number)
- shows what goes wrong when the else branch is left unconnected

Run:
    python examples/quickstart/main.py
"""

from flowlab import ScenarioDefinition, ScenarioRunner, WorkflowGraph

SCENARIO = {
    "moduleId": "quickstart",
    "title": "Welcome by SMS or email",
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
            "event": {"record": {"firstName": "Ben"}},
            "expect": {"messages": [{"channel": "email", "contains": ["welcome"]}]},
        },
    ],
}

NODES = [
    {"id": "t1", "type": "contact.created"},
    {"id": "check_phone", "type": "if_else", "config": {"condition": {"type": "fieldExists", "field": "phone"}}},
    {"id": "sms1", "type": "sms.send", "config": {"body": "Welcome to the studio!"}},
    {"id": "email1", "type": "email.send", "config": {"subject": "Welcome", "body": "Glad you joined us."}},
]


def _report(label: str, runner: ScenarioRunner, graph: WorkflowGraph, scenario: ScenarioDefinition) -> None:
    print(f"\n── {label} ──")
    validation = runner.validate(graph, scenario)
    print(f"check:    {'PASS' if validation.passed else 'FAIL'}")
    for issue in validation.issues:
        print(f"  [{issue.severity.value}] {issue.node_id or '-'}: {issue.message}")

    report = runner.simulate(graph, scenario)
    print(f"simulate: {'PASS' if report.passed else 'FAIL'}")
    for result in report.results:
        effects = ", ".join(f"{e.type}({getattr(e, 'channel', '')})" for e in result.trace.effects) or "no effects"
        print(f"  {result.name}: {'pass' if result.passed else 'fail'}  [{effects}]")
        for failure in result.comparison.failures:
            print(f"    ✗ {failure.label}: {failure.reason}")


def main() -> None:
    runner = ScenarioRunner()
    scenario = ScenarioDefinition.model_validate(SCENARIO)

    complete = WorkflowGraph.model_validate({
        "nodes": NODES,
        "connections": [
            {"from": "t1", "to": "check_phone"},
            {"from": "check_phone", "to": "sms1", "branch": "true"},
            {"from": "check_phone", "to": "email1", "branch": "else"},
        ],
    })
    _report("Complete workflow", runner, complete, scenario)

    half_built = WorkflowGraph.model_validate({
        "nodes": NODES[:3],
        "connections": [
            {"from": "t1", "to": "check_phone"},
            {"from": "check_phone", "to": "sms1", "branch": "true"},
        ],
    })
    _report("Else branch not connected", runner, half_built, scenario)


if __name__ == "__main__":
    main()
