"""Remaining accounts check (ANCHOR-008)."""

from typing import Optional

from tree_sitter import Node

from anchor_audit.checks.base import HandlerCheck


class RemainingAccountsCheck(HandlerCheck):
    """Flags every read of ``ctx.remaining_accounts``."""

    name = "Remaining Accounts Check"
    rule_id = "ANCHOR-008"

    def on_field_access(self, node: Node, base: Optional[Node], field_name: str):
        if field_name != self.heuristics.remaining_accounts_field:
            return
        if base is None or base.type != "identifier" or self.unit.text(base) != self.receiver:
            return
        self.report(
            f"Usage of `{self.receiver}.{field_name}` in `{self.handler.name}`. "
            f"Ensure you check length/order before indexing.",
            node,
        )
