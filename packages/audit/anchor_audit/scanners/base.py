"""Base scanner interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

from anchor_core.models.diagnostic import Diagnostic


@dataclass
class ScanResult:
    """Diagnostics produced for one source file."""
    source_file: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class BaseScanner(ABC):
    """Abstract base class for all scanners."""

    name: str = "BaseScanner"

    @abstractmethod
    def scan(self, path: Path) -> Sequence[ScanResult]:
        """
        Scan the given path and return results.

        Args:
            path: Path to scan (file or directory)

        Returns:
            Sequence of scan results
        """
        pass
