"""Reallocation check (ANCHOR-009)."""

from typing import List, Optional

from tree_sitter import Node

from anchor_audit.checks.base import HandlerCheck


class ReallocCheck(HandlerCheck):
    """Flags ``.realloc(...)`` method calls and free ``realloc(...)`` calls."""

    name = "Realloc Check"
    rule_id = "ANCHOR-009"

    def on_method_call(self, node: Node, receiver: Optional[Node], method: str, args: List[Node]):
        if method not in self.heuristics.realloc_functions:
            return
        account = "<expr>"
        if receiver is not None and receiver.type == "field_expression":
            account = self.unit.text(receiver.child_by_field_name("field"))
        self.report(
            f"Call to `.{method}()` on `{account}` in `{self.handler.name}`. "
            f"Make sure to handle rent-exemption and re-serialization.",
            node,
            account=account,
        )

    def on_call(self, node: Node, name: str, path: str, args: List[Node]):
        if name not in self.heuristics.realloc_functions:
            return
        self.report(
            f"Free-function `{name}()` called in `{self.handler.name}`. "
            f"Make sure to handle rent-exemption and re-serialization.",
            node,
        )
