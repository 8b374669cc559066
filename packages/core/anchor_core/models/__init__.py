"""Core data models for anchor-audit."""

from anchor_core.models.diagnostic import Diagnostic, Remediation, filter_by_severity
from anchor_core.models.risk import Severity, Category, Location

__all__ = [
    "Diagnostic",
    "Remediation",
    "filter_by_severity",
    "Severity",
    "Category",
    "Location",
]
