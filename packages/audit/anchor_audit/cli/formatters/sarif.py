"""SARIF 2.1.0 output formatter for GitHub Code Scanning."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from anchor_core.models.diagnostic import Diagnostic
from anchor_core.models.risk import Severity
from anchor_audit.version import __version__


class SARIFFormatter:
    """
    SARIF 2.1.0 formatter for GitHub Code Scanning.

    Produces SARIF-compliant JSON output that can be uploaded to
    GitHub's code scanning feature.
    """

    SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"
    SARIF_VERSION = "2.1.0"

    def __init__(
        self,
        tool_name: str = "anchor-audit",
        rule_definitions: Optional[Dict[str, Dict[str, Any]]] = None
    ):
        self.tool_name = tool_name
        self.rule_definitions = rule_definitions or {}

    def format(self, diagnostics: List[Diagnostic]) -> Dict[str, Any]:
        """
        Format diagnostics as SARIF.

        Args:
            diagnostics: List of diagnostics to format

        Returns:
            SARIF document as dictionary
        """
        rules = self._extract_rules(diagnostics)
        results = [self._diagnostic_to_result(d) for d in diagnostics]

        return {
            "$schema": self.SARIF_SCHEMA,
            "version": self.SARIF_VERSION,
            "runs": [{
                "tool": {
                    "driver": {
                        "name": self.tool_name,
                        "version": __version__,
                        "rules": rules
                    }
                },
                "results": results
            }]
        }

    def format_to_string(self, diagnostics: List[Diagnostic], indent: int = 2) -> str:
        """Format diagnostics as SARIF JSON string."""
        return json.dumps(self.format(diagnostics), indent=indent)

    def save(self, diagnostics: List[Diagnostic], output_path: Path):
        """Save diagnostics as SARIF file."""
        output_path.write_text(self.format_to_string(diagnostics), encoding="utf-8")

    def _extract_rules(self, diagnostics: List[Diagnostic]) -> List[Dict[str, Any]]:
        """Extract unique rules from diagnostics."""
        rules_map: Dict[str, Dict[str, Any]] = {}

        for diagnostic in diagnostics:
            if diagnostic.rule_id in rules_map:
                continue

            definition = self.rule_definitions.get(diagnostic.rule_id, {})
            description = str(definition.get("description") or diagnostic.title).strip()
            rule: Dict[str, Any] = {
                "id": diagnostic.rule_id,
                "name": diagnostic.title,
                "shortDescription": {"text": diagnostic.title},
                "fullDescription": {"text": description},
                "defaultConfiguration": {
                    "level": self._severity_to_level(diagnostic.severity)
                },
                "properties": {
                    "security-severity": self._severity_to_score(diagnostic.severity)
                }
            }

            if diagnostic.remediation:
                rule["help"] = {
                    "text": diagnostic.remediation.description,
                    "markdown": diagnostic.remediation.description
                }
                if diagnostic.remediation.reference_url:
                    rule["helpUri"] = diagnostic.remediation.reference_url

            tags = []
            if diagnostic.cwe_id:
                tags.append(f"external/cwe/{diagnostic.cwe_id.lower()}")
            tags.append(diagnostic.category.value)
            rule["properties"]["tags"] = tags

            rules_map[diagnostic.rule_id] = rule

        return list(rules_map.values())

    def _diagnostic_to_result(self, diagnostic: Diagnostic) -> Dict[str, Any]:
        """Convert a Diagnostic to a SARIF result."""
        result = diagnostic.to_sarif()

        if diagnostic.suppressed:
            result["suppressions"] = [{
                "kind": "external",
                "justification": diagnostic.suppressed_reason or "Suppressed by configuration"
            }]

        return result

    def _severity_to_level(self, severity: Severity) -> str:
        """Map severity to SARIF level."""
        mapping = {
            Severity.ERROR: "error",
            Severity.WARNING: "warning",
            Severity.INFO: "note",
        }
        return mapping[severity]

    def _severity_to_score(self, severity: Severity) -> str:
        """Map severity to security-severity score (1.0-10.0)."""
        mapping = {
            Severity.ERROR: "8.0",
            Severity.WARNING: "5.0",
            Severity.INFO: "1.0",
        }
        return mapping[severity]


def format_sarif(diagnostics: List[Diagnostic]) -> str:
    """Convenience function to format diagnostics as SARIF."""
    return SARIFFormatter().format_to_string(diagnostics)
