"""Diagnostic model for Anchor audit results."""

import hashlib
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from anchor_core.models.risk import Severity, Category, Location


@dataclass(frozen=True)
class Remediation:
    """Remediation guidance for a diagnostic."""
    description: str
    code_example: Optional[str] = None
    reference_url: Optional[str] = None


@dataclass(frozen=True)
class Diagnostic:
    """
    A single analysis result.

    Diagnostics are immutable once created. Suppression by configuration
    produces a new instance via ``dataclasses.replace``.
    """
    rule_id: str                      # e.g., "ANCHOR-005"
    title: str
    message: str
    severity: Severity
    category: Category
    location: Location

    suppressed: bool = False
    suppressed_reason: Optional[str] = None
    suppressed_by: Optional[str] = None  # config file path

    cwe_id: Optional[str] = None      # e.g., "CWE-284"
    remediation: Optional[Remediation] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def file(self) -> str:
        return self.location.file_path

    @property
    def line(self) -> int:
        return self.location.start_line

    def render(self) -> str:
        """Render as ``[SEVERITY] message (file:line)``."""
        return f"[{self.severity.label}] {self.message} ({self.file}:{self.line})"

    def is_actionable(self, min_severity: Severity = Severity.WARNING) -> bool:
        """
        Determine if this diagnostic requires user attention.

        Structural Info diagnostics and suppressed diagnostics are not
        actionable under the default threshold.
        """
        return not self.suppressed and self.severity >= min_severity

    def fingerprint(self) -> str:
        """Compute a stable fingerprint for baselines and deduplication."""
        components = [
            self.rule_id,
            self.location.file_path,
            str(self.location.start_line),
            self.message[:50],
        ]
        raw = "|".join(components)
        return hashlib.sha256(raw.encode()).hexdigest()[:16]

    def to_sarif(self) -> Dict[str, Any]:
        """Convert to SARIF 2.1.0 result format."""
        result: Dict[str, Any] = {
            "ruleId": self.rule_id,
            "level": self._severity_to_sarif_level(),
            "message": {"text": self.message},
            "locations": [{
                "physicalLocation": {
                    "artifactLocation": {"uri": self.location.file_path},
                    "region": {
                        "startLine": self.location.start_line,
                        "endLine": self.location.end_line
                    }
                }
            }],
            "fingerprints": {"primary": self.fingerprint()},
        }

        region = result["locations"][0]["physicalLocation"]["region"]
        if self.location.start_column is not None:
            region["startColumn"] = self.location.start_column

        if self.cwe_id:
            result["properties"] = {"cwe": self.cwe_id}

        return result

    def _severity_to_sarif_level(self) -> str:
        mapping = {
            Severity.ERROR: "error",
            Severity.WARNING: "warning",
            Severity.INFO: "note",
        }
        return mapping[self.severity]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "rule_id": self.rule_id,
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "location": {
                "file_path": self.location.file_path,
                "start_line": self.location.start_line,
                "end_line": self.location.end_line,
                "start_column": self.location.start_column,
                "snippet": self.location.snippet,
            },
            "suppressed": self.suppressed,
            "suppressed_reason": self.suppressed_reason,
            "suppressed_by": self.suppressed_by,
            "cwe_id": self.cwe_id,
            "remediation": {
                "description": self.remediation.description,
                "code_example": self.remediation.code_example,
                "reference_url": self.remediation.reference_url,
            } if self.remediation else None,
            "metadata": self.metadata,
        }


def filter_by_severity(diagnostics: List[Diagnostic], min_severity: Severity) -> List[Diagnostic]:
    """Keep diagnostics at or above ``min_severity``, preserving order."""
    return [d for d in diagnostics if d.severity >= min_severity]
