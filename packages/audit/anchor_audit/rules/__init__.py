"""Rule engine and diagnostic sink."""

from anchor_audit.rules.engine import RuleEngine, DiagnosticSink

__all__ = ["RuleEngine", "DiagnosticSink"]
