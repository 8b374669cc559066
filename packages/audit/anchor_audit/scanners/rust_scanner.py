"""Rust source scanner: discovers ``.rs`` files and runs the analyzer on each."""

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from anchor_core.models.diagnostic import Diagnostic

from anchor_audit.analyzer import AnchorAnalyzer
from anchor_audit.parsing import RustParseError
from anchor_audit.scanners.base import BaseScanner, ScanResult

logger = logging.getLogger(__name__)


@dataclass
class RustScanResult(ScanResult):
    """Scan result for one Rust file."""
    parse_error: Optional[str] = None


class RustScanner(BaseScanner):
    """
    Rust scanner for Anchor programs.

    Files are analyzed one at a time; a file that cannot be read or parsed
    yields a single parse-failure diagnostic and the scan continues.
    """

    name = "Rust Scanner"

    SKIP_DIRS = {'target', '.git', 'node_modules', '.anchor', 'test-ledger'}

    def __init__(
        self,
        analyzer: Optional[AnchorAnalyzer] = None,
        exclude_patterns: Optional[List[str]] = None
    ):
        """
        Initialize the Rust scanner.

        Args:
            analyzer: Analyzer to run on each file (default configuration if None)
            exclude_patterns: Glob patterns to exclude from scanning (e.g., "tests/**")
        """
        self.analyzer = analyzer or AnchorAnalyzer()
        self.exclude_patterns = exclude_patterns or []

    def scan(self, path: Path) -> List[RustScanResult]:
        """
        Scan a path for Rust files and analyze them.

        In project seed scope, cross-file seed diagnostics are attached to
        the result of the file holding the first usage of the prefix.

        Args:
            path: File or directory to scan

        Returns:
            List of scan results, one per file, in path order
        """
        self.analyzer.begin_run()
        results = [self._scan_file(rs_file) for rs_file in self._find_rust_files(path)]

        trailing = self.analyzer.finish()
        if trailing:
            by_file = {r.source_file: r for r in results}
            for diagnostic in trailing:
                result = by_file.get(diagnostic.file)
                if result is None:
                    result = RustScanResult(source_file=diagnostic.file)
                    by_file[diagnostic.file] = result
                    results.append(result)
                result.diagnostics.append(diagnostic)

        return results

    def scan_diagnostics(self, path: Path) -> List[Diagnostic]:
        """Scan and flatten every file's diagnostics into one ordered list."""
        diagnostics: List[Diagnostic] = []
        for result in self.scan(path):
            diagnostics.extend(result.diagnostics)
        return diagnostics

    def _find_rust_files(self, path: Path) -> List[Path]:
        """Find all Rust files to scan."""
        if path.is_file():
            return [path] if path.suffix == '.rs' else []

        rust_files = []
        for rs_file in sorted(path.rglob('*.rs')):
            rel_path = str(rs_file.relative_to(path))

            if self._should_exclude(rel_path):
                continue

            rel_parts = rs_file.relative_to(path).parts[:-1]
            if any(part in self.SKIP_DIRS for part in rel_parts):
                continue

            # Skip hidden directories
            if any(part.startswith('.') for part in rel_parts):
                continue

            rust_files.append(rs_file)

        return rust_files

    def _should_exclude(self, rel_path: str) -> bool:
        """Check if a relative path matches any exclude pattern."""
        normalized_path = rel_path.replace('\\', '/')

        for pattern in self.exclude_patterns:
            normalized_pattern = pattern.replace('\\', '/')

            if fnmatch.fnmatch(normalized_path, normalized_pattern):
                return True

            # Handle "tests/**" style patterns
            if normalized_pattern.endswith('/**'):
                prefix = normalized_pattern[:-3]
                if normalized_path.startswith(prefix + '/') or normalized_path == prefix:
                    return True

            # Handle "**/mock_*.rs" style patterns
            if normalized_pattern.startswith('**/'):
                suffix_pattern = normalized_pattern[3:]
                if fnmatch.fnmatch(Path(normalized_path).name, suffix_pattern):
                    return True
                if fnmatch.fnmatch(normalized_path, suffix_pattern):
                    return True

        return False

    def _scan_file(self, file_path: Path) -> RustScanResult:
        """Scan a single Rust file."""
        try:
            diagnostics = self.analyzer.analyze_file(file_path)
        except RustParseError as e:
            logger.warning(f"Failed to parse {file_path}: {e}")
            return RustScanResult(
                source_file=str(file_path),
                diagnostics=[self.analyzer.parse_failure(e)],
                parse_error=str(e),
            )

        return RustScanResult(source_file=str(file_path), diagnostics=diagnostics)
