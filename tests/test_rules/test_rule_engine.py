"""Tests for the rule engine and diagnostic sink."""

import pytest
from pathlib import Path

from anchor_core.models.risk import Severity, Category
from anchor_core.rules.loader import BUILTIN_RULES_DIR, RuleLoader

from anchor_audit.rules.engine import DiagnosticSink, RuleEngine


BUILTIN_IDS = [f"ANCHOR-{n:03d}" for n in range(12)] + ["ANCHOR-900"]


class TestRuleLoader:
    """Tests for RuleLoader."""

    def test_builtin_rules(self):
        rules = RuleLoader().load_all_rules()
        assert sorted(rules) == BUILTIN_IDS

    def test_builtin_rules_are_valid(self):
        rules = RuleLoader([BUILTIN_RULES_DIR]).load_all_rules()
        for rule in rules.values():
            assert rule["severity"] in RuleLoader.VALID_SEVERITIES
            Category(rule["category"])

    def test_invalid_rules_skipped(self, tmp_path):
        (tmp_path / "custom.yaml").write_text(
            "rules:\n"
            "  - id: CUSTOM-001\n"
            "    title: Missing category\n"
            "    severity: warning\n"
            "  - id: CUSTOM-002\n"
            "    title: Bad severity\n"
            "    severity: critical\n"
            "    category: structure\n"
            "  - id: CUSTOM-003\n"
            "    title: Fine\n"
            "    severity: WARNING\n"
            "    category: structure\n",
            encoding="utf-8",
        )
        rules = RuleLoader([tmp_path]).load_all_rules()
        assert list(rules) == ["CUSTOM-003"]
        assert rules["CUSTOM-003"]["severity"] == "warning"

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("rules: [\n", encoding="utf-8")
        assert RuleLoader([tmp_path]).load_rule_file(path) == {}

    def test_missing_directory(self, tmp_path):
        assert RuleLoader([tmp_path / "nope"]).load_all_rules() == {}


class TestRuleEngine:
    """Tests for RuleEngine."""

    @pytest.fixture
    def engine(self):
        return RuleEngine()

    def test_lazy_load(self, engine):
        assert "ANCHOR-005" in engine.rules

    def test_unknown_rule(self, engine):
        with pytest.raises(KeyError):
            engine.get_rule("ANCHOR-999")

    def test_create_diagnostic(self, engine):
        diagnostic = engine.create_diagnostic(
            "ANCHOR-005",
            "`invoke_signed` in `withdraw` is missing a bump in its signer seeds.",
            "lib.rs",
            21,
            snippet="invoke_signed(&ix, &accounts, &[&[b\"vault\"]])?;",
            column=13,
            metadata={"callee": "invoke_signed"},
        )

        assert diagnostic.rule_id == "ANCHOR-005"
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.category == Category.PDA_DERIVATION
        assert diagnostic.location.start_column == 13
        assert diagnostic.remediation is not None
        assert diagnostic.metadata == {"callee": "invoke_signed"}

    def test_override_from_additional_dir(self, tmp_path):
        (tmp_path / "overrides.yaml").write_text(
            "rules:\n"
            "  - id: ANCHOR-004\n"
            "    title: CPI\n"
            "    severity: error\n"
            "    category: cross_program_invocation\n",
            encoding="utf-8",
        )
        engine = RuleEngine()
        engine.load_rules(additional_dirs=[tmp_path])

        assert engine.get_rule("ANCHOR-004")["severity"] == "error"
        diagnostic = engine.create_diagnostic("ANCHOR-004", "CPI", "lib.rs", 1)
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.remediation is None

    def test_builtin_dir_path(self):
        assert Path(BUILTIN_RULES_DIR, "anchor.yaml").exists()


class TestDiagnosticSink:
    """Tests for DiagnosticSink."""

    def test_report_preserves_order(self, rule_engine):
        sink = DiagnosticSink(rule_engine)
        sink.report("ANCHOR-004", "second", "lib.rs", 20)
        sink.report("ANCHOR-000", "first", "lib.rs", 1, struct="Deposit")

        assert [d.message for d in sink] == ["second", "first"]
        assert len(sink) == 2
        assert sink.diagnostics[1].metadata == {"struct": "Deposit"}

    def test_diagnostics_is_a_copy(self, rule_engine):
        sink = DiagnosticSink(rule_engine)
        sink.report("ANCHOR-000", "x", "lib.rs", 1)
        sink.diagnostics.clear()
        assert len(sink) == 1

    def test_extend(self, rule_engine):
        other = DiagnosticSink(rule_engine)
        other.report("ANCHOR-008", "a", "lib.rs", 3)
        sink = DiagnosticSink(rule_engine)
        sink.extend(other.diagnostics)
        assert [d.rule_id for d in sink] == ["ANCHOR-008"]
