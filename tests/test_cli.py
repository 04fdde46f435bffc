"""Tests for the flowlab CLI."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from flowlab.cli.main import app
from flowlab.version import __version__

FIXTURES = Path(__file__).parent / "fixtures"
PHONE_GRAPH = str(FIXTURES / "phone_graph.json")
WELCOME = str(FIXTURES / "welcome_scenario.yaml")


@pytest.fixture
def cli():
    return CliRunner()


def invoke(cli, *args):
    return cli.invoke(app, list(args), env={"COLUMNS": "200"})


@pytest.fixture
def half_branch_file(tmp_path):
    """phone_graph.json with the else edge removed."""
    raw = json.loads(Path(PHONE_GRAPH).read_text(encoding="utf-8"))
    raw["edges"] = [e for e in raw["edges"] if e.get("branch") != "else"]
    path = tmp_path / "half.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    return str(path)


def test_version(cli):
    result = invoke(cli, "--version")
    assert result.exit_code == 0
    assert __version__ in result.output


# ── check ────────────────────────────────────────────────────────────────────


def test_check_passes(cli):
    result = invoke(cli, "check", PHONE_GRAPH, WELCOME)
    assert result.exit_code == 0, result.output
    assert "ALL CHECKS PASSED" in result.output
    assert "Trigger is Contact Created" in result.output


def test_check_fails_with_exit_code(cli, half_branch_file):
    """A failing check lists the issues and exits 1."""
    result = invoke(cli, "check", half_branch_file, WELCOME)
    assert result.exit_code == 1
    assert "check_phone" in result.output
    assert "ISSUE(S) TO FIX" in result.output


def test_check_json_output(cli):
    result = invoke(cli, "check", PHONE_GRAPH, WELCOME, "--format", "json")
    assert result.exit_code == 0
    assert '"passed": true' in result.output


def test_check_missing_file(cli):
    result = invoke(cli, "check", "nope.json", WELCOME)
    assert result.exit_code == 2
    assert "Could not load input" in result.output


def test_check_bundle(cli):
    result = invoke(cli, "check", str(FIXTURES / "bundle_graphs.json"), str(FIXTURES / "bundle_scenario.yaml"))
    assert result.exit_code == 0, result.output


# ── simulate ─────────────────────────────────────────────────────────────────


def test_simulate_all_cases(cli):
    result = invoke(cli, "simulate", PHONE_GRAPH, WELCOME)
    assert result.exit_code == 0, result.output
    assert "2/2 test case(s) passed" in result.output


def test_simulate_single_case_with_trace(cli):
    result = invoke(cli, "simulate", PHONE_GRAPH, WELCOME, "--case", "no phone", "--trace")
    assert result.exit_code == 0, result.output
    assert "1/1 test case(s) passed" in result.output
    assert "check_phone[else]" in result.output


def test_simulate_unknown_case(cli):
    result = invoke(cli, "simulate", PHONE_GRAPH, WELCOME, "--case", "nobody")
    assert result.exit_code == 2


def test_simulate_failure_exit_code(cli, half_branch_file):
    """The no-phone case sends nothing on a half-built graph and fails."""
    result = invoke(cli, "simulate", half_branch_file, WELCOME)
    assert result.exit_code == 1
    assert "1/2 test case(s) passed" in result.output


def test_simulate_bundle(cli):
    result = invoke(cli, "simulate", str(FIXTURES / "bundle_graphs.json"), str(FIXTURES / "bundle_scenario.yaml"))
    assert result.exit_code == 0, result.output
    assert "2/2 test case(s) passed" in result.output


# ── catalog / config ─────────────────────────────────────────────────────────


def test_catalog_lists_node_types(cli):
    result = invoke(cli, "catalog")
    assert result.exit_code == 0
    assert "sms.send" in result.output
    assert "if_else" in result.output


def test_catalog_filter_by_kind(cli):
    result = invoke(cli, "catalog", "--kind", "logic")
    assert result.exit_code == 0
    assert "if_else" in result.output
    assert "sms.send" not in result.output


def test_catalog_unknown_kind(cli):
    assert invoke(cli, "catalog", "--kind", "robot").exit_code == 2


def test_config_show(cli):
    result = invoke(cli, "config")
    assert result.exit_code == 0
    assert "max_walk_steps" in result.output
    assert "FLOWLAB_" in result.output
