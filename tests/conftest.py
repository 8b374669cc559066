"""Pytest configuration and shared fixtures."""

import textwrap
from pathlib import Path

import pytest

from anchor_audit.analyzer import AnchorAnalyzer
from anchor_audit.parsing import SourceUnit
from anchor_audit.rules.engine import RuleEngine


@pytest.fixture
def fixtures_path() -> Path:
    """Return the path to test fixtures."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def programs_path(fixtures_path: Path) -> Path:
    """Return the path to the Anchor program fixtures."""
    return fixtures_path / "programs"


@pytest.fixture(scope="session")
def rule_engine() -> RuleEngine:
    """Rule engine loaded with the builtin rules."""
    engine = RuleEngine()
    engine.load_rules()
    return engine


@pytest.fixture
def parse():
    """Parse dedented Rust source into a SourceUnit."""
    def _parse(source: str, file_path: str = "lib.rs") -> SourceUnit:
        return SourceUnit.from_source(textwrap.dedent(source), file_path)
    return _parse


@pytest.fixture
def analyze(rule_engine):
    """Analyze dedented Rust source and return its diagnostics."""
    def _analyze(source: str, file_path: str = "lib.rs", **options):
        analyzer = AnchorAnalyzer(engine=rule_engine, **options)
        return analyzer.analyze_source(textwrap.dedent(source), file_path)
    return _analyze


@pytest.fixture
def line_of():
    """1-based line of the first line of ``source`` containing ``needle``."""
    def _line_of(source: str, needle: str) -> int:
        for number, line in enumerate(textwrap.dedent(source).splitlines(), start=1):
            if needle in line:
                return number
        raise AssertionError(f"{needle!r} not found in source")
    return _line_of
