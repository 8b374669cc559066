"""
Attribute parsing for Anchor macros.

``#[derive(...)]``, ``#[program]`` and ``#[account(...)]`` arguments are
token trees, not expressions, so they are handled as text: the argument list
is split at top-level commas (brackets, parentheses, braces and string
literals respected) and each entry becomes either a bare key (``mut``) or a
``key = value`` pair (``seeds = [b"vault", user.key().as_ref()]``).
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from tree_sitter import Node

from anchor_audit.parsing import SourceUnit, find_child_of_type

_PATH_RE = re.compile(r"^\s*((?:::)?[A-Za-z_]\w*(?:\s*::\s*[A-Za-z_]\w*)*)\s*(.*)$", re.S)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}


@dataclass
class AccountConstraints:
    """Constraint set of one field, parsed from its ``#[account(...)]`` attributes."""
    keys: List[str] = field(default_factory=list)
    mutable: bool = False
    signer: bool = False
    init: bool = False
    init_if_needed: bool = False
    seeds: Optional[List[str]] = None

    @property
    def initialized(self) -> bool:
        return self.init or self.init_if_needed

    def merge(self, other: "AccountConstraints") -> "AccountConstraints":
        """Combine constraints from two attributes on the same field."""
        return AccountConstraints(
            keys=self.keys + [k for k in other.keys if k not in self.keys],
            mutable=self.mutable or other.mutable,
            signer=self.signer or other.signer,
            init=self.init or other.init,
            init_if_needed=self.init_if_needed or other.init_if_needed,
            seeds=other.seeds if other.seeds is not None else self.seeds,
        )


def last_segment(path: str) -> str:
    """``anchor_lang::prelude::Accounts`` -> ``Accounts``."""
    return path.rsplit("::", 1)[-1].strip()


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """
    Split ``text`` on ``separator`` where it is not nested inside brackets
    or a string literal. Entries are stripped; empty entries are dropped.
    """
    parts: List[str] = []
    depth = 0
    in_string = False
    escaped = False
    current: List[str] = []

    for ch in text:
        if in_string:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(0, depth - 1)
        elif ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    parts.append("".join(current).strip())
    return [p for p in parts if p]


def normalize_token(text: str) -> str:
    """
    Canonical spelling of a token sequence: whitespace outside string
    literals is dropped, except a single space between two word characters.
    """
    out: List[str] = []
    in_string = False
    escaped = False
    pending_space = False

    for ch in text.strip():
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch.isspace():
            pending_space = True
            continue

        if pending_space and out and _is_word(out[-1]) and _is_word(ch):
            out.append(" ")
        pending_space = False

        if ch == '"':
            in_string = True
        out.append(ch)

    return "".join(out)


def _is_word(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def split_key_value(entry: str) -> Tuple[str, Optional[str]]:
    """
    ``seeds = [a, b]`` -> ``("seeds", "[a, b]")``; ``mut`` -> ``("mut", None)``.

    Comparison operators (``==``, ``!=``, ``<=``, ``>=``) and ``=>`` are not
    treated as the key separator. A bare key loses its custom error:
    ``mut @ ErrorCode::NotMutable`` -> ``("mut", None)``.
    """
    depth = 0
    in_string = False
    for i, ch in enumerate(entry):
        if in_string:
            if ch == '"' and entry[i - 1] != "\\":
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(0, depth - 1)
        elif ch == "=" and depth == 0:
            prev_ch = entry[i - 1] if i > 0 else ""
            next_ch = entry[i + 1] if i + 1 < len(entry) else ""
            if prev_ch in "=!<>" or next_ch in "=>":
                continue
            return normalize_token(entry[:i]), entry[i + 1:].strip()
    bare = split_top_level(entry, "@")
    return normalize_token(bare[0] if bare else ""), None


def parse_seed_list(value: str) -> List[str]:
    """Parse ``[b"vault", user.key().as_ref()]`` into normalized seed tokens."""
    value = value.strip()
    if value.startswith("&"):
        value = value[1:].strip()
    if value.startswith("[") and value.endswith("]"):
        return [normalize_token(s) for s in split_top_level(value[1:-1])]
    return [normalize_token(value)] if value else []


def parse_account_constraints(arguments: str) -> AccountConstraints:
    """Parse the argument text of one ``#[account(...)]`` attribute."""
    constraints = AccountConstraints()
    for entry in split_top_level(arguments):
        key, value = split_key_value(entry)
        if not key:
            continue
        constraints.keys.append(key)

        if key == "mut":
            constraints.mutable = True
        elif key == "signer":
            constraints.signer = True
        elif key == "init":
            constraints.init = True
        elif key == "init_if_needed":
            constraints.init_if_needed = True
        elif key == "seeds" and value is not None:
            constraints.seeds = parse_seed_list(value)

    return constraints


# ── Attribute nodes ──────────────────────────────────────────────────────────


def attribute_parts(unit: SourceUnit, attribute_item: Node) -> Tuple[str, Optional[str]]:
    """
    Returns ``(path, arguments)`` for an ``attribute_item`` node.

    ``#[account(mut, signer)]`` -> ``("account", "mut, signer")``;
    ``#[program]`` -> ``("program", None)``.
    """
    attribute = find_child_of_type(attribute_item, "attribute")
    text = unit.text(attribute) if attribute is not None else unit.text(attribute_item)[2:-1]
    match = _PATH_RE.match(text)
    if not match:
        return "", None

    path = re.sub(r"\s+", "", match.group(1))
    rest = match.group(2).strip()
    if rest[:1] in _OPENERS and rest[-1:] == _OPENERS[rest[0]]:
        return path, rest[1:-1]
    return path, None


def find_attributes(unit: SourceUnit, attributes: Iterable[Node], name: str) -> List[Tuple[Node, Optional[str]]]:
    """All attributes whose path ends with ``name``, with their arguments."""
    found = []
    for attr in attributes:
        path, arguments = attribute_parts(unit, attr)
        if path and last_segment(path) == name:
            found.append((attr, arguments))
    return found


def has_attribute(unit: SourceUnit, attributes: Iterable[Node], name: str) -> bool:
    return bool(find_attributes(unit, attributes, name))


def derives(unit: SourceUnit, attributes: Iterable[Node], marker: str) -> bool:
    """True if any ``#[derive(...)]`` attribute lists ``marker``."""
    for _, arguments in find_attributes(unit, attributes, "derive"):
        if arguments and any(last_segment(d) == marker for d in split_top_level(arguments)):
            return True
    return False
