"""
PDA seed checks.

ANCHOR-010 groups every collected seed usage by its first seed. A group
that spans more than one struct and more than one field name marks a PDA
namespace shared by logically distinct derivations.

ANCHOR-011 flags two fields of one struct with identical seed lists; both
derive the same address.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from anchor_audit.analysis.symbols import AccountField, AccountsStruct, SeedUsage
from anchor_audit.checks.base import StructCheck
from anchor_audit.parsing import SourceUnit
from anchor_audit.rules.engine import DiagnosticSink

logger = logging.getLogger(__name__)

CROSS_STRUCT_RULE_ID = "ANCHOR-010"


def _unique(values: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def find_prefix_collisions(usages: Sequence[SeedUsage]) -> List[Tuple[str, List[SeedUsage]]]:
    """
    Group usages by prefix, in first-seen order, and keep the colliding groups.

    A group collides when it has more than one distinct field name and more
    than one distinct struct name.
    """
    groups: Dict[str, List[SeedUsage]] = {}
    for usage in usages:
        groups.setdefault(usage.prefix, []).append(usage)

    collisions = []
    for prefix, group in groups.items():
        fields = _unique([u.field_name for u in group])
        structs = _unique([u.struct_name for u in group])
        if len(fields) > 1 and len(structs) > 1:
            collisions.append((prefix, group))
    return collisions


def check_cross_struct_seeds(usages: Sequence[SeedUsage], sink: DiagnosticSink) -> int:
    """Report one warning per colliding prefix group. Returns the number reported."""
    collisions = find_prefix_collisions(usages)
    for prefix, group in collisions:
        structs = sorted(_unique([u.struct_name for u in group]))
        details = ", ".join(
            f"{u.struct_name}::{u.field_name} ({u.file_path}:{u.line})" for u in group
        )
        first = group[0]
        sink.report(
            CROSS_STRUCT_RULE_ID,
            f"Seed prefix `{prefix}` reused across structs [{', '.join(structs)}]: {details}",
            first.file_path,
            first.line,
            prefix=prefix,
            structs=structs,
            usages=[f"{u.struct_name}::{u.field_name}" for u in group],
        )
    logger.debug(f"Seed cross-reference: {len(usages)} usages, {len(collisions)} collisions")
    return len(collisions)


class IdenticalSeedsCheck(StructCheck):
    """Flags fields of one struct whose full seed lists are identical."""

    name = "Identical Seeds Check"
    rule_id = "ANCHOR-011"

    def check(self, unit: SourceUnit, accounts_struct: AccountsStruct, sink: DiagnosticSink):
        by_seeds: Dict[Tuple[str, ...], List[AccountField]] = {}
        for account in accounts_struct.fields:
            seeds = account.constraints.seeds
            if seeds:
                by_seeds.setdefault(tuple(seeds), []).append(account)

        for seeds, accounts in by_seeds.items():
            if len(accounts) < 2:
                continue
            details = ", ".join(
                f"`{a.name}` @ {unit.file_path}:{a.attribute_line or a.line}" for a in accounts
            )
            first_line = accounts[0].attribute_line or accounts[0].line
            sink.report(
                self.rule_id,
                f"Duplicate `seeds = [{', '.join(seeds)}]` in struct "
                f"`{accounts_struct.name}` on: {details}",
                unit.file_path,
                first_line,
                snippet=unit.line_text(first_line),
                struct=accounts_struct.name,
                fields=[a.name for a in accounts],
            )
