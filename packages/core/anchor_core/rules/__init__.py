"""Rule catalogue loading for anchor-audit."""

from anchor_core.rules.loader import RuleLoader, BUILTIN_RULES_DIR

__all__ = ["RuleLoader", "BUILTIN_RULES_DIR"]
