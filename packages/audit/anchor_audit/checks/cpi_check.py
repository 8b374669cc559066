"""Cross-program invocation checks (ANCHOR-004, ANCHOR-005)."""

from typing import List, Optional

from tree_sitter import Node

from anchor_audit.analysis.walker import unwrap_reference
from anchor_audit.checks.base import HandlerCheck
from anchor_audit.parsing import significant_children

BUMP_RULE_ID = "ANCHOR-005"

# Position of the signer-seeds argument in `invoke_signed(ix, accounts, seeds)`
SIGNER_SEEDS_ARG = 2


class CpiCheck(HandlerCheck):
    """
    Flags calls to known CPI primitives.

    For path calls to ``invoke_signed`` the signer-seeds argument is also
    inspected: every seed slice must end with a bump, so a literal slice
    with fewer than two elements is an error. At most one such error is
    reported per call.
    """

    name = "CPI Check"
    rule_id = "ANCHOR-004"

    def on_call(self, node: Node, name: str, path: str, args: List[Node]):
        if name not in self.heuristics.cpi_functions:
            return
        self._report_cpi(node, name)
        if name in self.heuristics.signed_invoke_functions:
            self._check_signer_seeds(node, name, args)

    def on_method_call(self, node: Node, receiver: Optional[Node], method: str, args: List[Node]):
        if method in self.heuristics.cpi_functions:
            self._report_cpi(node, method)

    def _report_cpi(self, node: Node, name: str):
        self.report(
            f"CPI `{name}` in `{self.handler.name}`. "
            f"Consider `.reload()?` on affected accounts.",
            node,
            callee=name,
        )

    def _check_signer_seeds(self, node: Node, name: str, args: List[Node]):
        if len(args) <= SIGNER_SEEDS_ARG:
            return
        outer = _array_literal(args[SIGNER_SEEDS_ARG])
        if outer is None:
            return

        for seed_slice in significant_children(outer):
            inner = _array_literal(seed_slice)
            if inner is None:
                continue
            if len(significant_children(inner)) < 2:
                self.report(
                    f"`{name}` in `{self.handler.name}` is missing a bump in its signer seeds. "
                    f"Make sure each seed slice ends with the bump value.",
                    node,
                    rule_id=BUMP_RULE_ID,
                    callee=name,
                )
                return


def _array_literal(node: Optional[Node]) -> Optional[Node]:
    """The element-list array behind an optional ``&``; repeat arrays are skipped."""
    node = unwrap_reference(node)
    if node is None or node.type != "array_expression":
        return None
    if node.child_by_field_name("length") is not None:
        return None
    return node
