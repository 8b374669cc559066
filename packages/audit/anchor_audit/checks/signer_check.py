"""Missing signer check (ANCHOR-001)."""

from anchor_audit.analysis.symbols import AccountsStruct
from anchor_audit.analysis.types import strip_wrappers, type_base_name
from anchor_audit.checks.base import StructCheck
from anchor_audit.parsing import SourceUnit
from anchor_audit.rules.engine import DiagnosticSink


class SignerCheck(StructCheck):
    """
    Flags accounts structs in which no field is typed as a signer.

    The check is struct-wide and type based: it says the struct has no
    signer at all, not which account should have been one. A bare
    ``#[account(signer)]`` constraint does not count.
    """

    name = "Signer Check"
    rule_id = "ANCHOR-001"

    def check(self, unit: SourceUnit, accounts_struct: AccountsStruct, sink: DiagnosticSink):
        for account in accounts_struct.fields:
            inner = strip_wrappers(unit, account.type_node, self.heuristics.container_wrappers)
            if type_base_name(unit, inner) in self.heuristics.signer_types:
                return

        signer_names = " or ".join(f"`{name}`" for name in sorted(self.heuristics.signer_types))
        sink.report(
            self.rule_id,
            f"Struct `{accounts_struct.name}` is missing a {signer_names} type "
            f"on one or more accounts.",
            unit.file_path,
            accounts_struct.line,
            snippet=unit.line_text(accounts_struct.line),
            struct=accounts_struct.name,
        )
