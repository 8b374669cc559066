"""Struct classifier: recognizes accounts structs and parses their fields."""

import logging
from typing import List, Optional

from tree_sitter import Node

from anchor_audit.analysis.attributes import (
    AccountConstraints,
    derives,
    find_attributes,
    parse_account_constraints,
)
from anchor_audit.analysis.heuristics import Heuristics, DEFAULT_HEURISTICS
from anchor_audit.analysis.symbols import AccountField, AccountsStruct
from anchor_audit.parsing import SourceUnit, iter_items_with_attributes

logger = logging.getLogger(__name__)


def is_accounts_struct(
    unit: SourceUnit,
    item: Node,
    attributes: List[Node],
    heuristics: Heuristics = DEFAULT_HEURISTICS
) -> bool:
    """True for a ``struct_item`` whose derive list carries the accounts marker."""
    return item.type == "struct_item" and derives(unit, attributes, heuristics.accounts_derive)


def classify_struct(
    unit: SourceUnit,
    item: Node,
    attributes: List[Node],
    heuristics: Heuristics = DEFAULT_HEURISTICS
) -> Optional[AccountsStruct]:
    """
    Classify a struct item.

    Returns None for anything that is not an accounts struct; such structs
    never reach the symbol table or the per-struct detectors.
    """
    if not is_accounts_struct(unit, item, attributes, heuristics):
        return None

    name_node = item.child_by_field_name("name")
    accounts_struct = AccountsStruct(
        name=unit.text(name_node),
        line=unit.line_of(name_node if name_node is not None else item),
    )

    body = item.child_by_field_name("body")
    if body is None or body.type != "field_declaration_list":
        # Unit and tuple structs have no named accounts
        return accounts_struct

    for declaration, field_attributes in iter_items_with_attributes(body):
        if declaration.type != "field_declaration":
            continue
        accounts_struct.fields.append(
            _classify_field(unit, declaration, field_attributes, heuristics)
        )

    logger.debug(
        f"Classified accounts struct {accounts_struct.name} "
        f"with {len(accounts_struct.fields)} fields"
    )
    return accounts_struct


def _classify_field(
    unit: SourceUnit,
    declaration: Node,
    attributes: List[Node],
    heuristics: Heuristics
) -> AccountField:
    name_node = declaration.child_by_field_name("name")
    type_node = declaration.child_by_field_name("type")

    account_attributes = find_attributes(unit, attributes, heuristics.account_attribute)
    constraints = AccountConstraints()
    for _, arguments in account_attributes:
        constraints = constraints.merge(parse_account_constraints(arguments or ""))

    attribute_line = None
    if account_attributes:
        seeded = [
            attr for attr, arguments in account_attributes
            if parse_account_constraints(arguments or "").seeds is not None
        ]
        attribute_line = unit.line_of(seeded[0] if seeded else account_attributes[0][0])

    return AccountField(
        name=unit.text(name_node),
        line=unit.line_of(name_node if name_node is not None else declaration),
        type_text=unit.text(type_node),
        type_node=type_node,
        has_account_attribute=bool(account_attributes),
        attribute_line=attribute_line,
        constraints=constraints,
    )
