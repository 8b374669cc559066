"""init_if_needed check (ANCHOR-003)."""

from anchor_audit.analysis.symbols import AccountsStruct
from anchor_audit.checks.base import StructCheck
from anchor_audit.parsing import SourceUnit
from anchor_audit.rules.engine import DiagnosticSink


class InitIfNeededCheck(StructCheck):
    """Flags every field constrained with ``init_if_needed``."""

    name = "init_if_needed Check"
    rule_id = "ANCHOR-003"

    def check(self, unit: SourceUnit, accounts_struct: AccountsStruct, sink: DiagnosticSink):
        for account in accounts_struct.fields:
            if not account.constraints.init_if_needed:
                continue
            line = account.attribute_line or account.line
            sink.report(
                self.rule_id,
                f"`init_if_needed` on `{account.name}` in struct `{accounts_struct.name}` "
                f"may reinitialize an existing account. Use with caution!",
                unit.file_path,
                line,
                snippet=unit.line_text(line),
                struct=accounts_struct.name,
                field=account.name,
            )
