"""Severity, category and location models."""

from enum import Enum
from dataclasses import dataclass
from typing import Optional


def _normalize_path(path: str) -> str:
    """Normalize path to use forward slashes for cross-platform consistency."""
    return path.replace("\\", "/")


class Severity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def label(self) -> str:
        """Upper-case label used in rendered diagnostics."""
        return self.value.upper()

    @classmethod
    def from_string(cls, value: str) -> "Severity":
        """Parse a severity name case-insensitively."""
        return cls(value.strip().lower())

    def __lt__(self, other: "Severity") -> bool:
        order = [Severity.INFO, Severity.WARNING, Severity.ERROR]
        return order.index(self) < order.index(other)

    def __le__(self, other: "Severity") -> bool:
        return self == other or self < other

    def __gt__(self, other: "Severity") -> bool:
        return not self <= other

    def __ge__(self, other: "Severity") -> bool:
        return not self < other


class Category(Enum):
    """Categories for Anchor security diagnostics."""
    STRUCTURE = "structure"
    ACCESS_CONTROL = "access_control"
    ACCOUNT_CONFUSION = "account_confusion"
    REINITIALIZATION = "reinitialization"
    CROSS_PROGRAM_INVOCATION = "cross_program_invocation"
    PDA_DERIVATION = "pda_derivation"
    MUTABILITY = "mutability"
    UNCHECKED_ACCOUNTS = "unchecked_accounts"
    REALLOCATION = "reallocation"
    PARSE = "parse"


@dataclass(frozen=True)
class Location:
    """Code location for a diagnostic."""
    file_path: str
    start_line: int
    end_line: Optional[int] = None
    start_column: Optional[int] = None
    snippet: Optional[str] = None

    def __post_init__(self):
        """Normalize file_path to use forward slashes for cross-platform consistency."""
        object.__setattr__(self, "file_path", _normalize_path(self.file_path))
        if self.end_line is None:
            object.__setattr__(self, "end_line", self.start_line)
