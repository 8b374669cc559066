"""Tests for .anchor-audit.yaml loading, ignore rules and baselines."""

import json

import pytest
import yaml

from anchor_core.models.diagnostic import Diagnostic
from anchor_core.models.risk import Severity, Category, Location
from anchor_audit.config.ignore import (
    AuditConfig,
    IgnoreManager,
    create_default_config,
    filter_by_baseline,
    load_baseline,
    save_baseline,
)


def make_diagnostic(rule_id="ANCHOR-003", file_path="programs/vault/src/lib.rs", line=42) -> Diagnostic:
    return Diagnostic(
        rule_id=rule_id,
        title="Risky init_if_needed",
        message="`init_if_needed` on `vault` in struct `Withdraw` may reinitialize an existing account.",
        severity=Severity.WARNING,
        category=Category.REINITIALIZATION,
        location=Location(file_path=file_path, start_line=line),
    )


class TestIgnoreManager:
    """Tests for IgnoreManager."""

    @pytest.fixture
    def manager(self):
        return IgnoreManager()

    def write_config(self, directory, data, name=".anchor-audit.yaml"):
        path = directory / name
        path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data, encoding="utf-8")
        return path

    def test_no_config(self, manager, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert manager.load(tmp_path) is False
        assert manager.config is None
        assert manager.get_exclude_patterns() == []
        assert manager.should_ignore("ANCHOR-001", "lib.rs") is None

    def test_load_full_config(self, manager, tmp_path):
        path = self.write_config(tmp_path, {
            "scan": {"exclude": ["tests/**"], "min_severity": "warning", "fail_on": "error"},
            "seeds": {"scope": "project"},
            "handlers": {"include_instruction_handlers": True},
            "heuristics": {"signer_types": ["Signer", "Authority"], "default_context_name": "c"},
            "ignore": [{"rule_id": "ANCHOR-003", "paths": ["migrations/*.rs"], "reason": "guarded"}],
        })

        assert manager.load(tmp_path)
        config = manager.config
        assert manager.loaded_from == path.resolve()
        assert config.scan.exclude == ["tests/**"]
        assert config.scan.min_severity == "warning"
        assert config.scan.fail_on == "error"
        assert config.seed_scope == "project"
        assert config.include_instruction_handlers is True
        assert config.heuristics.signer_types == frozenset({"Signer", "Authority"})
        assert config.heuristics.default_context_name == "c"
        assert config.ignore_rules[0].reason == "guarded"

    def test_load_from_file_target(self, manager, tmp_path):
        self.write_config(tmp_path, {"scan": {"exclude": ["target/**"]}})
        source = tmp_path / "lib.rs"
        source.write_text("", encoding="utf-8")
        assert manager.load(source)
        assert manager.get_exclude_patterns() == ["target/**"]

    def test_alternate_filename(self, manager, tmp_path):
        self.write_config(tmp_path, {"seeds": {"scope": "project"}}, name="anchor-audit.yaml")
        assert manager.load(tmp_path)
        assert manager.config.seed_scope == "project"

    def test_empty_sections(self, manager, tmp_path):
        self.write_config(tmp_path, "scan:\nseeds:\nignore:\n")
        assert manager.load_file(tmp_path / ".anchor-audit.yaml")
        assert manager.config.scan.exclude == []
        assert manager.config.seed_scope == "file"
        assert manager.config.ignore_rules == []

    def test_invalid_seed_scope_falls_back(self, manager, tmp_path):
        self.write_config(tmp_path, {"seeds": {"scope": "workspace"}})
        assert manager.load(tmp_path)
        assert manager.config.seed_scope == "file"

    def test_malformed_yaml(self, manager, tmp_path):
        path = self.write_config(tmp_path, "scan: [unclosed\n")
        assert manager.load_file(path) is False
        assert manager.config is None

    def test_unknown_heuristics_key_ignored(self, manager, tmp_path):
        self.write_config(tmp_path, {"heuristics": {"not_a_key": "x", "cpi_functions": "swap"}})
        assert manager.load(tmp_path)
        assert manager.config.heuristics.cpi_functions == frozenset({"swap"})

    def test_should_ignore_by_rule_and_path(self, manager, tmp_path):
        self.write_config(tmp_path, {"ignore": [
            {"rule_id": "ANCHOR-003", "paths": ["programs/*/src/lib.rs"], "reason": "migration"},
        ]})
        manager.load(tmp_path)

        assert manager.should_ignore("ANCHOR-003", "programs/vault/src/lib.rs") == "migration"
        assert manager.should_ignore("ANCHOR-003", "programs/vault/src/other.rs") is None
        assert manager.should_ignore("ANCHOR-001", "programs/vault/src/lib.rs") is None

    def test_absolute_paths_relative_to_project(self, manager, tmp_path):
        self.write_config(tmp_path, {"ignore": [{"rule_id": "*", "paths": ["tests/**"]}]})
        manager.load(tmp_path)
        assert manager.should_ignore("ANCHOR-009", str(tmp_path.resolve() / "tests" / "helpers.rs"))
        assert manager.should_ignore("ANCHOR-009", str(tmp_path.resolve() / "src" / "lib.rs")) is None

    def test_apply_to_diagnostic(self, manager, tmp_path):
        path = self.write_config(tmp_path, {"ignore": [{"rule_id": "ANCHOR-003"}]})
        manager.load(tmp_path)

        original = make_diagnostic()
        suppressed = manager.apply_to_diagnostic(original)

        assert suppressed is not original
        assert suppressed.suppressed
        assert suppressed.suppressed_by == str(path.resolve())
        assert not original.suppressed
        assert not suppressed.is_actionable()

    def test_apply_to_unmatched_diagnostic(self, manager, tmp_path):
        self.write_config(tmp_path, {"ignore": [{"rule_id": "ANCHOR-003"}]})
        manager.load(tmp_path)
        diagnostic = make_diagnostic(rule_id="ANCHOR-002")
        assert manager.apply_to_diagnostic(diagnostic) is diagnostic


class TestDefaultConfig:
    """Tests for the init template."""

    def test_template_loads(self, tmp_path):
        (tmp_path / ".anchor-audit.yaml").write_text(create_default_config(), encoding="utf-8")
        manager = IgnoreManager()
        assert manager.load(tmp_path)
        assert manager.config.seed_scope == "file"
        assert "tests/**" in manager.config.scan.exclude
        assert manager.config.ignore_rules == []

    def test_audit_config_defaults(self):
        config = AuditConfig()
        assert config.seed_scope == "file"
        assert config.include_instruction_handlers is False
        assert config.scan.min_severity == "info"

    def test_template_presets(self, tmp_path):
        (tmp_path / ".anchor-audit.yaml").write_text(
            create_default_config("project", include_instruction_handlers=True), encoding="utf-8"
        )
        manager = IgnoreManager()
        assert manager.load(tmp_path)
        assert manager.config.seed_scope == "project"
        assert manager.config.include_instruction_handlers is True


class TestBaseline:
    """Tests for baseline files."""

    def test_round_trip_filters_known(self, tmp_path):
        baseline_path = tmp_path / "baseline.json"
        known = make_diagnostic(line=42)
        save_baseline([known], baseline_path)

        data = json.loads(baseline_path.read_text(encoding="utf-8"))
        assert data["fingerprints"] == [known.fingerprint()]

        new = make_diagnostic(line=50)
        assert filter_by_baseline([known, new], load_baseline(baseline_path)) == [new]

    def test_unreadable_baseline(self, tmp_path):
        path = tmp_path / "baseline.json"
        path.write_text("not json", encoding="utf-8")
        assert load_baseline(path) == set()
        assert load_baseline(tmp_path / "missing.json") == set()
