"""Duplicate account type check (ANCHOR-002)."""

from typing import Dict, List

from anchor_audit.analysis.symbols import AccountField, AccountsStruct
from anchor_audit.analysis.types import logical_account_type
from anchor_audit.checks.base import StructCheck
from anchor_audit.parsing import SourceUnit
from anchor_audit.rules.engine import DiagnosticSink


class DuplicateAccountCheck(StructCheck):
    """
    Flags structs where two or more fields deserialize the same account type.

    ``Account<'info, Vault>`` and ``Box<Account<'info, Vault>>`` both resolve
    to ``Vault``; one diagnostic is reported per duplicated type, at the
    first field that binds it.
    """

    name = "Duplicate Account Check"
    rule_id = "ANCHOR-002"

    def check(self, unit: SourceUnit, accounts_struct: AccountsStruct, sink: DiagnosticSink):
        by_type: Dict[str, List[AccountField]] = {}
        for account in accounts_struct.fields:
            logical = logical_account_type(
                unit,
                account.type_node,
                self.heuristics.account_wrappers,
                self.heuristics.container_wrappers,
            )
            if logical:
                by_type.setdefault(logical, []).append(account)

        for logical, accounts in by_type.items():
            if len(accounts) < 2:
                continue
            wrapper = sorted(self.heuristics.account_wrappers)[0]
            locations = ", ".join(
                f"`{a.name}` ({unit.file_path}:{a.line})" for a in accounts
            )
            sink.report(
                self.rule_id,
                f"Duplicate `{wrapper}<{logical}>` fields in struct `{accounts_struct.name}`: "
                f"{locations}. Consider using a separate `#[derive(Accounts)]` struct.",
                unit.file_path,
                accounts[0].line,
                snippet=unit.line_text(accounts[0].line),
                struct=accounts_struct.name,
                account_type=logical,
                fields=[a.name for a in accounts],
            )
