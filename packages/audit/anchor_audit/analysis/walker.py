"""
Shared traversal over handler bodies.

``BodyWalker`` descends depth-first through every named child of a body so
that all statement and expression forms (blocks, ``if``/``else``, ``match``
arms and guards, loops, closures, ``?``, ``let`` initializers, ...) are
reached. Nested items, macro invocations and attributes are not entered.

Detectors subclass it and override the ``on_*`` hooks; the walker owns
recursion, so a hook cannot stop the descent into a branch.
"""

import logging
from typing import List, Optional, Tuple

from tree_sitter import Node

from anchor_audit.analysis.attributes import last_segment
from anchor_audit.analysis.heuristics import Heuristics, DEFAULT_HEURISTICS
from anchor_audit.analysis.types import type_arguments, type_base_name
from anchor_audit.parsing import SourceUnit, significant_children

logger = logging.getLogger(__name__)

SKIPPED_KINDS = frozenset({
    "function_item",
    "function_signature_item",
    "struct_item",
    "enum_item",
    "union_item",
    "impl_item",
    "trait_item",
    "mod_item",
    "foreign_mod_item",
    "use_declaration",
    "extern_crate_declaration",
    "const_item",
    "static_item",
    "type_item",
    "macro_definition",
    "macro_invocation",
    "attribute_item",
    "inner_attribute_item",
    "line_comment",
    "block_comment",
})


class BodyWalker:
    """Pre-order walker with one hook per expression concern."""

    def __init__(self, unit: SourceUnit, heuristics: Heuristics = DEFAULT_HEURISTICS):
        self.unit = unit
        self.heuristics = heuristics

    def walk(self, node: Optional[Node]):
        """Visit ``node`` and everything reachable below it, in source order."""
        if node is None:
            return
        stack = [node]
        while stack:
            current = stack.pop()
            if current is not node and current.type in SKIPPED_KINDS:
                continue
            self._dispatch(current)
            stack.extend(reversed(current.named_children))

    def _dispatch(self, node: Node):
        kind = node.type
        if kind == "call_expression":
            self._dispatch_call(node)
        elif kind == "reference_expression":
            mutable = any(child.type == "mutable_specifier" for child in node.children)
            self.on_reference(node, node.child_by_field_name("value"), mutable)
        elif kind == "assignment_expression":
            self.on_assignment(node, node.child_by_field_name("left"), False)
        elif kind == "compound_assignment_expr":
            self.on_assignment(node, node.child_by_field_name("left"), True)
        elif kind == "field_expression":
            field_node = node.child_by_field_name("field")
            self.on_field_access(node, node.child_by_field_name("value"), self.unit.text(field_node))

    def _dispatch_call(self, node: Node):
        function = node.child_by_field_name("function")
        args = significant_children(node.child_by_field_name("arguments"))

        # `invoke_signed::<T>(...)` / `x.realloc::<T>(...)`
        if function is not None and function.type == "generic_function":
            function = function.child_by_field_name("function")
        if function is None:
            return

        if function.type == "field_expression":
            self.on_method_call(
                node,
                function.child_by_field_name("value"),
                self.unit.text(function.child_by_field_name("field")),
                args,
            )
            return

        path = callee_path(self.unit, function)
        if path is not None:
            self.on_call(node, last_segment(path), path, args)

    # ── Hooks ────────────────────────────────────────────────────────────

    def on_call(self, node: Node, name: str, path: str, args: List[Node]):
        """Path call ``a::b::name(args)``."""

    def on_method_call(self, node: Node, receiver: Optional[Node], method: str, args: List[Node]):
        """Method call ``receiver.method(args)``."""

    def on_reference(self, node: Node, target: Optional[Node], mutable: bool):
        """``&target`` or ``&mut target``."""

    def on_assignment(self, node: Node, target: Optional[Node], compound: bool):
        """``target = ...`` or ``target op= ...``."""

    def on_field_access(self, node: Node, base: Optional[Node], field_name: str):
        """``base.field_name``."""


def callee_path(unit: SourceUnit, node: Optional[Node]) -> Optional[str]:
    """Path text of a call's function, or None if it is not a plain path."""
    if node is None:
        return None
    if node.type in ("identifier", "scoped_identifier"):
        return "".join(unit.text(node).split())
    return None


def field_chain(unit: SourceUnit, node: Optional[Node]) -> Optional[List[str]]:
    """
    ``ctx.accounts.vault.amount`` -> ``["ctx", "accounts", "vault", "amount"]``.

    Returns None unless the expression is an identifier followed only by
    named field accesses.
    """
    names: List[str] = []
    while node is not None and node.type == "field_expression":
        field_node = node.child_by_field_name("field")
        if field_node is None or field_node.type != "field_identifier":
            return None
        names.append(unit.text(field_node))
        node = node.child_by_field_name("value")

    if node is None or node.type not in ("identifier", "self"):
        return None
    names.append(unit.text(node))
    names.reverse()
    return names


def accounts_chain(
    unit: SourceUnit,
    node: Optional[Node],
    receiver: str,
    heuristics: Heuristics = DEFAULT_HEURISTICS
) -> Optional[List[str]]:
    """
    Field chain of a ``<receiver>.accounts.<field>[...]`` expression,
    or None if ``node`` is not such a chain. ``chain[2]`` is the account.
    """
    chain = field_chain(unit, node)
    if not chain or len(chain) < 3:
        return None
    if chain[0] != receiver or chain[1] != heuristics.accounts_field:
        return None
    return chain


def unwrap_reference(node: Optional[Node]) -> Optional[Node]:
    """Strip leading ``&`` / ``&mut`` and parentheses from an expression."""
    while node is not None and node.type in ("reference_expression", "parenthesized_expression"):
        if node.type == "reference_expression":
            node = node.child_by_field_name("value")
        else:
            inner = significant_children(node)
            node = inner[0] if inner else None
    return node


# ── Handler context resolution ───────────────────────────────────────────────


def resolve_handler_context(
    unit: SourceUnit,
    function: Node,
    heuristics: Heuristics = DEFAULT_HEURISTICS
) -> Tuple[str, str]:
    """
    Find the handler's context parameter.

    Returns ``(receiver_name, bound_struct)``. The receiver is the context
    parameter's pattern, falling back to the configured default name; the
    bound struct is the first type argument of ``Context<...>``, or ``""``
    when it cannot be resolved.
    """
    parameters = function.child_by_field_name("parameters")
    for parameter in significant_children(parameters):
        if parameter.type != "parameter":
            continue
        type_node = parameter.child_by_field_name("type")
        while type_node is not None and type_node.type == "reference_type":
            type_node = type_node.child_by_field_name("type")
        if type_node is None or type_node.type != "generic_type":
            continue
        if type_base_name(unit, type_node) not in heuristics.context_types:
            continue

        pattern = parameter.child_by_field_name("pattern")
        receiver = _pattern_name(unit, pattern) or heuristics.default_context_name
        args = type_arguments(type_node)
        bound = type_base_name(unit, args[0]) if args else None
        return receiver, bound or ""

    return heuristics.default_context_name, ""


def parameter_names(unit: SourceUnit, function: Node) -> List[str]:
    """Binding names of a function's parameters, in declaration order."""
    names = []
    for parameter in significant_children(function.child_by_field_name("parameters")):
        if parameter.type == "self_parameter":
            names.append("self")
        elif parameter.type == "parameter":
            names.append(_pattern_name(unit, parameter.child_by_field_name("pattern")) or "_")
    return names


def _pattern_name(unit: SourceUnit, pattern: Optional[Node]) -> Optional[str]:
    # `ctx`, `mut ctx`
    if pattern is None:
        return None
    if pattern.type == "identifier":
        return unit.text(pattern)
    if pattern.type == "mut_pattern":
        for child in pattern.named_children:
            if child.type == "identifier":
                return unit.text(child)
    return None
