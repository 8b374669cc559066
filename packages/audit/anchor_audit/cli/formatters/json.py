"""JSON output formatter."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from anchor_core.models.diagnostic import Diagnostic
from anchor_audit.version import __version__


class JSONFormatter:
    """JSON output formatter for scan results."""

    def __init__(self, pretty: bool = True):
        self.pretty = pretty

    def format(
        self,
        diagnostics: List[Diagnostic],
        scan_path: str = "",
        scanned_files: int = 0
    ) -> Dict[str, Any]:
        """
        Format diagnostics as JSON.

        Args:
            diagnostics: List of diagnostics to format, in emission order
            scan_path: Path that was scanned
            scanned_files: Number of files scanned

        Returns:
            JSON-serializable dictionary
        """
        return {
            "version": __version__,
            "scan_timestamp": datetime.now(timezone.utc).isoformat(),
            "scan_path": scan_path,
            "scanned_files": scanned_files,
            "summary": self._create_summary(diagnostics),
            "diagnostics": [d.to_dict() for d in diagnostics],
        }

    def format_to_string(
        self,
        diagnostics: List[Diagnostic],
        scan_path: str = "",
        scanned_files: int = 0
    ) -> str:
        """Format diagnostics as JSON string."""
        data = self.format(diagnostics, scan_path, scanned_files)
        indent = 2 if self.pretty else None
        return json.dumps(data, indent=indent, default=str)

    def save(
        self,
        diagnostics: List[Diagnostic],
        output_path: Path,
        scan_path: str = "",
        scanned_files: int = 0
    ):
        """Save diagnostics as JSON file."""
        output_path.write_text(
            self.format_to_string(diagnostics, scan_path, scanned_files),
            encoding="utf-8"
        )

    def _create_summary(self, diagnostics: List[Diagnostic]) -> Dict[str, Any]:
        """Create summary statistics."""
        by_severity: Dict[str, int] = {}
        by_rule: Dict[str, int] = {}
        for d in diagnostics:
            if d.suppressed:
                continue
            by_severity[d.severity.value] = by_severity.get(d.severity.value, 0) + 1
            by_rule[d.rule_id] = by_rule.get(d.rule_id, 0) + 1

        return {
            "total": len(diagnostics),
            "actionable": sum(1 for d in diagnostics if d.is_actionable()),
            "suppressed": sum(1 for d in diagnostics if d.suppressed),
            "by_severity": by_severity,
            "by_rule": by_rule,
        }


def format_json(
    diagnostics: List[Diagnostic],
    scan_path: str = "",
    scanned_files: int = 0,
    pretty: bool = True
) -> str:
    """Convenience function to format diagnostics as JSON."""
    return JSONFormatter(pretty=pretty).format_to_string(diagnostics, scan_path, scanned_files)
