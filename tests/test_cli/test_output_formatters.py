"""Tests for the terminal, JSON and SARIF formatters."""

import dataclasses
import io
import json

import pytest
from rich.console import Console

from anchor_audit.cli.formatters.json import JSONFormatter, format_json
from anchor_audit.cli.formatters.sarif import SARIFFormatter
from anchor_audit.cli.formatters.terminal import TerminalFormatter


@pytest.fixture
def diagnostics(rule_engine):
    return [
        rule_engine.create_diagnostic("ANCHOR-000", "Found #[derive(Accounts)] struct: Swap", "lib.rs", 3),
        rule_engine.create_diagnostic(
            "ANCHOR-002",
            "Duplicate `Account<Vault>` fields in struct `Swap`: `a` (lib.rs:4), `b` (lib.rs:5).",
            "lib.rs", 4,
        ),
        rule_engine.create_diagnostic(
            "ANCHOR-010",
            "Seed prefix `b\"vault\"` reused across structs [A, B]: A::x (lib.rs:9), B::y (lib.rs:20)",
            "lib.rs", 9,
        ),
    ]


def render(diagnostics, **options):
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, no_color=True, highlight=False)
    TerminalFormatter(console=console, **options).format_diagnostics(diagnostics, "programs/", 1)
    return buffer.getvalue()


class TestTerminalFormatter:
    """Tests for TerminalFormatter."""

    def test_renders_diagnostics(self, diagnostics):
        output = render(diagnostics)

        assert "Anchor Audit Report" in output
        assert "[ERROR] Duplicate `Account<Vault>` fields in struct `Swap`" in output
        assert "[WARNING] Seed prefix `b\"vault\"` reused across structs [A, B]" in output
        assert "(lib.rs:9)" in output
        assert "Found #[derive(Accounts)]" not in output
        assert "Summary: ERROR: 1 | WARNING: 1 | INFO: 1" in output

    def test_verbose_shows_info_and_fix(self, diagnostics):
        output = render(diagnostics, verbose=True)
        assert "[INFO] Found #[derive(Accounts)] struct: Swap (lib.rs:3)" in output
        assert "Fix:" in output

    def test_no_findings(self, diagnostics):
        output = render(diagnostics[:1])
        assert "No warnings or errors found." in output
        assert "Info diagnostics hidden" in output

    def test_quiet(self, diagnostics):
        output = render(diagnostics, quiet=True)
        assert "Anchor Audit Report" not in output
        assert "Summary" not in output
        assert "[ERROR]" in output

    def test_quiet_without_findings_prints_nothing(self, diagnostics):
        assert render(diagnostics[:1], quiet=True) == ""

    def test_suppressed_hidden(self, diagnostics):
        suppressed = [dataclasses.replace(d, suppressed=True) for d in diagnostics]
        output = render(suppressed)
        assert "[ERROR]" not in output
        assert "SUPPRESSED: 3" in output


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_structure(self, diagnostics):
        data = JSONFormatter().format(diagnostics, "programs/", 2)

        assert data["scan_path"] == "programs/"
        assert data["scanned_files"] == 2
        assert [d["rule_id"] for d in data["diagnostics"]] == ["ANCHOR-000", "ANCHOR-002", "ANCHOR-010"]
        assert data["summary"] == {
            "total": 3,
            "actionable": 2,
            "suppressed": 0,
            "by_severity": {"info": 1, "error": 1, "warning": 1},
            "by_rule": {"ANCHOR-000": 1, "ANCHOR-002": 1, "ANCHOR-010": 1},
        }

    def test_format_json_is_valid(self, diagnostics):
        data = json.loads(format_json(diagnostics, pretty=False))
        assert len(data["diagnostics"]) == 3

    def test_save(self, diagnostics, tmp_path):
        path = tmp_path / "out.json"
        JSONFormatter().save(diagnostics, path)
        assert json.loads(path.read_text(encoding="utf-8"))["summary"]["total"] == 3


class TestSARIFFormatter:
    """Tests for SARIFFormatter."""

    def test_rules_and_results(self, diagnostics, rule_engine):
        sarif = SARIFFormatter(rule_definitions=rule_engine.rules).format(diagnostics)
        run = sarif["runs"][0]

        rules = {r["id"]: r for r in run["tool"]["driver"]["rules"]}
        assert set(rules) == {"ANCHOR-000", "ANCHOR-002", "ANCHOR-010"}
        assert rules["ANCHOR-002"]["helpUri"] == rule_engine.get_rule("ANCHOR-002")["remediation"]["reference_url"]
        assert "external/cwe/cwe-345" in rules["ANCHOR-002"]["properties"]["tags"]
        assert rules["ANCHOR-000"]["defaultConfiguration"]["level"] == "note"
        assert rules["ANCHOR-010"]["fullDescription"]["text"].startswith("The same first seed")

        assert [r["ruleId"] for r in run["results"]] == ["ANCHOR-000", "ANCHOR-002", "ANCHOR-010"]

    def test_suppressions(self, diagnostics):
        suppressed = dataclasses.replace(diagnostics[1], suppressed=True, suppressed_reason="accepted")
        result, = SARIFFormatter().format([suppressed])["runs"][0]["results"]
        assert result["suppressions"] == [{"kind": "external", "justification": "accepted"}]
