"""Symbol table built by the struct classifier and read by handler detectors."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from tree_sitter import Node

from anchor_audit.analysis.attributes import AccountConstraints


@dataclass
class AccountField:
    """One named field of an accounts struct."""
    name: str
    line: int
    type_text: str
    type_node: Optional[Node] = None
    has_account_attribute: bool = False
    attribute_line: Optional[int] = None
    constraints: AccountConstraints = field(default_factory=AccountConstraints)


@dataclass
class AccountsStruct:
    """A struct carrying ``#[derive(Accounts)]``."""
    name: str
    line: int
    fields: List[AccountField] = field(default_factory=list)


@dataclass(frozen=True)
class SeedUsage:
    """First seed of a field's ``seeds = [...]`` list, with where it was declared."""
    struct_name: str
    field_name: str
    prefix: str
    file_path: str
    line: int
    seeds: tuple = ()


@dataclass
class HandlerFunction:
    """An instruction handler and the accounts struct its context is bound to."""
    name: str
    line: int
    body: Optional[Node]
    parameters: List[str] = field(default_factory=list)
    context_name: Optional[str] = None
    bound_struct: str = ""


class SymbolTable:
    """
    Per-file table of accounts structs.

    A field name is in ``mutable_fields[struct]`` iff its constraints have
    ``mutable``, and in ``initialized_fields[struct]`` iff they have ``init``
    or ``init_if_needed``. Unknown struct names resolve to empty sets.
    """

    def __init__(self):
        self.structs: Dict[str, AccountsStruct] = {}
        self.mutable_fields: Dict[str, Set[str]] = {}
        self.initialized_fields: Dict[str, Set[str]] = {}
        self.seed_usages: List[SeedUsage] = []

    def add_struct(self, accounts_struct: AccountsStruct, file_path: str):
        """Record a classified struct and collect its seed usages."""
        name = accounts_struct.name
        self.structs[name] = accounts_struct
        self.mutable_fields[name] = {
            f.name for f in accounts_struct.fields if f.constraints.mutable
        }
        self.initialized_fields[name] = {
            f.name for f in accounts_struct.fields if f.constraints.initialized
        }

        for account in accounts_struct.fields:
            seeds = account.constraints.seeds
            if not seeds:
                continue
            self.seed_usages.append(SeedUsage(
                struct_name=name,
                field_name=account.name,
                prefix=seeds[0],
                file_path=file_path,
                line=account.attribute_line or account.line,
                seeds=tuple(seeds),
            ))

    def mutable_set(self, struct_name: str) -> Set[str]:
        return self.mutable_fields.get(struct_name, set())

    def initialized_set(self, struct_name: str) -> Set[str]:
        return self.initialized_fields.get(struct_name, set())

    def __contains__(self, struct_name: str) -> bool:
        return struct_name in self.structs

    def __len__(self) -> int:
        return len(self.structs)
