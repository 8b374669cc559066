"""
Rust front end built on tree-sitter.

Turns source text into a ``SourceUnit``: the file path, the raw bytes and
the concrete syntax tree produced by tree-sitter-rust. tree-sitter never
raises on malformed input; it inserts ERROR/MISSING nodes instead, so a tree
carrying any such node is reported as a ``RustParseError``.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import tree_sitter_rust as tsrust
from tree_sitter import Language, Parser, Node, Tree

logger = logging.getLogger(__name__)

RUST_LANGUAGE = Language(tsrust.language())
_parser = Parser(RUST_LANGUAGE)

COMMENT_KINDS = frozenset({"line_comment", "block_comment"})
ATTRIBUTE_KINDS = frozenset({"attribute_item", "inner_attribute_item"})


class RustParseError(Exception):
    """Raised when a Rust file cannot be read or parsed."""

    def __init__(
        self,
        file_path: str,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None
    ):
        self.file_path = file_path
        self.message = message
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.message} at line {self.line}, column {self.column}"
        return self.message


class SourceUnit:
    """One parsed Rust file. Read-only input for the whole analysis."""

    def __init__(self, file_path: str, source: str, tree: Tree):
        self.file_path = file_path
        self.source = source
        self.code_bytes = source.encode("utf-8")
        self.tree = tree
        self._lines: Optional[List[str]] = None

    @classmethod
    def from_source(cls, source: str, file_path: str = "<memory>") -> "SourceUnit":
        """
        Parse Rust source text.

        Raises:
            RustParseError: if the syntax tree contains error or missing nodes
        """
        tree = _parser.parse(source.encode("utf-8"))
        if tree.root_node.has_error:
            bad = _first_error_node(tree.root_node)
            if bad is not None:
                line, column = bad.start_point[0] + 1, bad.start_point[1] + 1
                kind = f"missing `{bad.type}`" if bad.is_missing else "syntax error"
                raise RustParseError(file_path, kind, line, column)
            raise RustParseError(file_path, "syntax error")
        return cls(file_path, source, tree)

    @classmethod
    def from_file(cls, path: Path) -> "SourceUnit":
        """
        Read and parse a Rust file.

        Raises:
            RustParseError: if the file cannot be decoded, read or parsed
        """
        try:
            source = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise RustParseError(str(path), f"encoding error: {e.reason}") from e
        except OSError as e:
            raise RustParseError(str(path), f"read error: {e.strerror or e}") from e
        return cls.from_source(source, str(path))

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Optional[Node]) -> str:
        """Returns source text of a node as UTF-8 string."""
        if node is None:
            return ""
        return self.code_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="ignore")

    def line_of(self, node: Node) -> int:
        """1-based line of the node's first byte."""
        return node.start_point[0] + 1

    def column_of(self, node: Node) -> int:
        """1-based column of the node's first byte."""
        return node.start_point[1] + 1

    def line_text(self, line: int) -> str:
        """Returns the raw line text (1-based)."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1].strip()
        return ""


def _first_error_node(root: Node) -> Optional[Node]:
    """Depth-first search for the first ERROR or MISSING node."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


def find_child_of_type(node: Node, kind: str) -> Optional[Node]:
    for child in node.children:
        if child.type == kind:
            return child
    return None


def significant_children(node: Optional[Node]) -> List[Node]:
    """Named children without comments and attributes."""
    if node is None:
        return []
    return [
        child for child in node.named_children
        if child.type not in COMMENT_KINDS and child.type not in ATTRIBUTE_KINDS
    ]


def iter_items_with_attributes(container: Optional[Node]) -> Iterator[Tuple[Node, List[Node]]]:
    """
    Yield ``(item, attributes)`` for the items of a source file, declaration
    list or field list.

    tree-sitter-rust attaches outer attributes as preceding siblings rather
    than children, so they are gathered here and handed to the next item.
    Doc comments between attributes and the item are ignored.
    """
    if container is None:
        return
    pending: List[Node] = []
    for child in container.named_children:
        if child.type == "attribute_item":
            pending.append(child)
        elif child.type in COMMENT_KINDS or child.type == "inner_attribute_item":
            continue
        else:
            yield child, pending
            pending = []
