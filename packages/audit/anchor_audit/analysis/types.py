"""Type-node helpers: base names, generic arguments and wrapper stripping."""

from typing import AbstractSet, List, Optional

from tree_sitter import Node

from anchor_audit.parsing import SourceUnit, significant_children

_NON_TYPE_ARGUMENTS = frozenset({"lifetime", "type_binding", "trait_bounds"})


def type_base_name(unit: SourceUnit, node: Optional[Node]) -> Optional[str]:
    """
    Last path segment of a type, ignoring generic arguments.

    ``Signer<'info>`` -> ``Signer``; ``anchor_lang::prelude::Signer`` -> ``Signer``.
    """
    if node is None:
        return None
    kind = node.type
    if kind == "generic_type":
        return type_base_name(unit, node.child_by_field_name("type"))
    if kind in ("type_identifier", "primitive_type", "identifier"):
        return unit.text(node)
    if kind == "scoped_type_identifier":
        return unit.text(node.child_by_field_name("name"))
    return None


def type_arguments(node: Optional[Node]) -> List[Node]:
    """Type arguments of a generic type, lifetimes excluded."""
    if node is None or node.type != "generic_type":
        return []
    args = node.child_by_field_name("type_arguments")
    return [child for child in significant_children(args) if child.type not in _NON_TYPE_ARGUMENTS]


def strip_wrappers(
    unit: SourceUnit,
    node: Optional[Node],
    containers: AbstractSet[str] = frozenset()
) -> Optional[Node]:
    """
    Peel reference, array/slice, single-element tuple (parenthesized) and
    container (``Box<T>``) layers until a bare type remains.
    """
    while node is not None:
        kind = node.type
        if kind == "reference_type":
            node = node.child_by_field_name("type")
        elif kind == "array_type":
            node = node.child_by_field_name("element")
        elif kind == "tuple_type":
            elements = significant_children(node)
            if len(elements) != 1:
                return node
            node = elements[0]
        elif kind == "generic_type" and type_base_name(unit, node) in containers:
            args = type_arguments(node)
            if not args:
                return node
            node = args[0]
        else:
            return node
    return None


def logical_account_type(
    unit: SourceUnit,
    type_node: Optional[Node],
    account_wrappers: AbstractSet[str],
    containers: AbstractSet[str]
) -> Optional[str]:
    """
    The account's logical type: ``Box<Account<'info, Vault>>`` -> ``Vault``.

    Returns None when the field is not a typed-account wrapper.
    """
    inner = strip_wrappers(unit, type_node, containers)
    if inner is None or inner.type != "generic_type":
        return None
    if type_base_name(unit, inner) not in account_wrappers:
        return None
    args = type_arguments(inner)
    if not args:
        return None
    return type_base_name(unit, args[0])
