"""Mutable borrow and mutation checks (ANCHOR-006, ANCHOR-007)."""

from typing import Optional

from tree_sitter import Node

from anchor_audit.analysis.walker import accounts_chain
from anchor_audit.checks.base import HandlerCheck

MUTATION_RULE_ID = "ANCHOR-007"


class MutBorrowCheck(HandlerCheck):
    """
    Cross-checks account accesses in a handler against its bound struct.

    ``&mut ctx.accounts.x`` requires ``x`` to be ``mut``; assigning through
    ``ctx.accounts.x[.more]`` requires ``x`` to be ``mut``, ``init`` or
    ``init_if_needed``. When the bound struct is unknown both sets are
    empty and every such access is reported.
    """

    name = "Mutable Borrow Check"
    rule_id = "ANCHOR-006"

    def on_reference(self, node: Node, target: Optional[Node], mutable: bool):
        if not mutable:
            return
        chain = self._account_chain(target)
        if chain is None or len(chain) != 3:
            return
        account = chain[2]
        if account in self.symbols.mutable_set(self.handler.bound_struct):
            return
        self.report(
            f"`{account}` is mutably borrowed in `{self.handler.name}` but not declared "
            f"`mut` in {self._struct_label()}. Please add `#[account(mut)]` to `{account}`.",
            node,
            account=account,
            struct=self.handler.bound_struct,
        )

    def on_assignment(self, node: Node, target: Optional[Node], compound: bool):
        chain = self._account_chain(target)
        if chain is None:
            return
        account = chain[2]
        bound = self.handler.bound_struct
        if account in self.symbols.mutable_set(bound) or account in self.symbols.initialized_set(bound):
            return
        self.report(
            f"`{account}` is mutated in `{self.handler.name}` but not declared "
            f"`mut` in {self._struct_label()}. Please add `#[account(mut)]` to `{account}`.",
            node,
            rule_id=MUTATION_RULE_ID,
            account=account,
            struct=bound,
            compound=compound,
        )

    def _account_chain(self, node: Optional[Node]):
        return accounts_chain(self.unit, node, self.receiver, self.heuristics)

    def _struct_label(self) -> str:
        if self.handler.bound_struct:
            return f"`{self.handler.bound_struct}`"
        return "the (unresolved) accounts struct"
