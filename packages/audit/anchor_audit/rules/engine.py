"""Rule engine: turns detector findings into diagnostics."""

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from anchor_core.models.diagnostic import Diagnostic, Remediation
from anchor_core.models.risk import Severity, Category, Location
from anchor_core.rules.loader import RuleLoader

logger = logging.getLogger(__name__)


class RuleEngine:
    """
    Rule metadata store.

    Loads rule definitions from YAML and stamps their title, severity,
    category, CWE and remediation onto each diagnostic a detector reports.
    """

    def __init__(self, rules_dirs: Optional[List[Path]] = None):
        """
        Initialize the rule engine.

        Args:
            rules_dirs: List of directories containing rule files
        """
        self.loader = RuleLoader(rules_dirs)
        self._rules: Dict[str, Dict[str, Any]] = {}

    def load_rules(self, additional_dirs: Optional[List[Path]] = None):
        """Load rules from all configured directories."""
        if additional_dirs:
            for d in additional_dirs:
                self.loader.add_rules_directory(d)

        self._rules = self.loader.load_all_rules()
        logger.info(f"Loaded {len(self._rules)} rules")

    @property
    def rules(self) -> Dict[str, Dict[str, Any]]:
        if not self._rules:
            self.load_rules()
        return self._rules

    def get_rule(self, rule_id: str) -> Dict[str, Any]:
        """
        Look up a rule definition.

        Raises:
            KeyError: if no loaded rule has this id
        """
        try:
            return self.rules[rule_id]
        except KeyError:
            raise KeyError(f"Unknown rule id: {rule_id}") from None

    def create_diagnostic(
        self,
        rule_id: str,
        message: str,
        file_path: str,
        line: int,
        snippet: Optional[str] = None,
        column: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Diagnostic:
        """Create a Diagnostic for ``rule_id`` at ``file_path:line``."""
        rule = self.get_rule(rule_id)

        remediation_data = rule.get('remediation') or {}
        remediation = None
        if remediation_data:
            remediation = Remediation(
                description=str(remediation_data.get('description', '')).strip(),
                code_example=remediation_data.get('code_example'),
                reference_url=remediation_data.get('reference_url'),
            )

        return Diagnostic(
            rule_id=rule['id'],
            title=rule['title'],
            message=message,
            severity=Severity(rule['severity']),
            category=Category(rule['category'].lower()),
            location=Location(
                file_path=file_path,
                start_line=line,
                end_line=line,
                start_column=column,
                snippet=snippet,
            ),
            cwe_id=rule.get('cwe_id'),
            remediation=remediation,
            metadata=dict(metadata or {}),
        )


class DiagnosticSink:
    """
    Ordered collector for diagnostics.

    Detectors report into a sink and never format output themselves;
    emission order is traversal order.
    """

    def __init__(self, engine: RuleEngine):
        self.engine = engine
        self._diagnostics: List[Diagnostic] = []

    def report(
        self,
        rule_id: str,
        message: str,
        file_path: str,
        line: int,
        snippet: Optional[str] = None,
        column: Optional[int] = None,
        **metadata: Any
    ) -> Diagnostic:
        diagnostic = self.engine.create_diagnostic(
            rule_id, message, file_path, line,
            snippet=snippet, column=column, metadata=metadata,
        )
        self.emit(diagnostic)
        return diagnostic

    def emit(self, diagnostic: Diagnostic):
        logger.debug(f"{diagnostic.rule_id}: {diagnostic.render()}")
        self._diagnostics.append(diagnostic)

    def extend(self, diagnostics: List[Diagnostic]):
        for diagnostic in diagnostics:
            self.emit(diagnostic)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)
