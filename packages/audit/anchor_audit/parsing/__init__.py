"""Rust parsing front end."""

from anchor_audit.parsing.rust_parser import (
    RustParseError,
    SourceUnit,
    find_child_of_type,
    iter_items_with_attributes,
    significant_children,
)

__all__ = [
    "RustParseError",
    "SourceUnit",
    "find_child_of_type",
    "iter_items_with_attributes",
    "significant_children",
]
