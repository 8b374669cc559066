"""
Project configuration management.

Handles:
- Loading .anchor-audit.yaml configuration
- Rule-level and path-level ignore rules
- Heuristic name overrides and analysis options
- Baseline scanning support
"""

import fnmatch
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Set

import yaml

from anchor_core.models.diagnostic import Diagnostic

from anchor_audit.analysis.heuristics import Heuristics

logger = logging.getLogger(__name__)


@dataclass
class IgnoreRule:
    """Single ignore rule definition."""
    rule_id: Optional[str] = None        # Rule ID to ignore, e.g., "ANCHOR-001"
    paths: List[str] = field(default_factory=list)  # Glob path patterns
    reason: str = ""


@dataclass
class ScanConfig:
    """Scan configuration."""
    exclude: List[str] = field(default_factory=list)
    min_severity: str = "info"
    fail_on: Optional[str] = None


@dataclass
class AuditConfig:
    """Contents of an .anchor-audit.yaml file."""
    ignore_rules: List[IgnoreRule] = field(default_factory=list)
    scan: ScanConfig = field(default_factory=ScanConfig)
    heuristics: Heuristics = field(default_factory=Heuristics)

    # "file" or "project"
    seed_scope: str = "file"
    include_instruction_handlers: bool = False


class IgnoreManager:
    """
    Manager for ignore rules and project configuration.

    Loads configuration from .anchor-audit.yaml and marks matching
    diagnostics as suppressed.
    """

    CONFIG_FILENAMES = ['.anchor-audit.yaml', '.anchor-audit.yml', 'anchor-audit.yaml']

    def __init__(self):
        self.config: Optional[AuditConfig] = None
        self._loaded_from: Optional[Path] = None
        self._base_path: Optional[Path] = None  # Base path for relative path matching

    @property
    def loaded_from(self) -> Optional[Path]:
        return self._loaded_from

    def load(self, project_path: Path) -> bool:
        """
        Load configuration from project path.

        Searches for config in:
        1. The scan target directory (project_path, or its parent for a file)
        2. Current working directory (if different)
        3. Parent directories up to filesystem root

        Args:
            project_path: Root path of the project to scan

        Returns:
            True if configuration was loaded successfully
        """
        project_path = project_path.resolve()
        if project_path.is_file():
            project_path = project_path.parent
        cwd = Path.cwd().resolve()

        search_paths: List[Path] = [project_path]
        if cwd != project_path:
            search_paths.append(cwd)

        parent = project_path.parent
        while parent != parent.parent:
            if parent not in search_paths:
                search_paths.append(parent)
            parent = parent.parent

        for search_path in search_paths:
            for filename in self.CONFIG_FILENAMES:
                config_path = search_path / filename
                if config_path.exists():
                    self._base_path = project_path
                    return self.load_file(config_path)

        return False

    def load_file(self, path: Path) -> bool:
        """Load configuration from a specific file."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.warning(f"Failed to parse {path}: {e}")
            return False
        except OSError as e:
            logger.warning(f"Error loading {path}: {e}")
            return False

        if not data or not isinstance(data, dict):
            return False

        ignore_rules = []
        for rule_data in data.get('ignore') or []:
            ignore_rules.append(IgnoreRule(
                rule_id=rule_data.get('rule_id'),
                paths=rule_data.get('paths') or [],
                reason=rule_data.get('reason', '')
            ))

        # Handle None values from YAML
        scan_data = data.get('scan') or {}
        scan_config = ScanConfig(
            exclude=scan_data.get('exclude') or [],
            min_severity=scan_data.get('min_severity') or 'info',
            fail_on=scan_data.get('fail_on')
        )

        seeds_data = data.get('seeds') or {}
        seed_scope = seeds_data.get('scope') or 'file'
        if seed_scope not in ('file', 'project'):
            logger.warning(f"Unknown seeds.scope '{seed_scope}' in {path}, using 'file'")
            seed_scope = 'file'

        handlers_data = data.get('handlers') or {}

        self.config = AuditConfig(
            ignore_rules=ignore_rules,
            scan=scan_config,
            heuristics=Heuristics.from_dict(data.get('heuristics')),
            seed_scope=seed_scope,
            include_instruction_handlers=bool(handlers_data.get('include_instruction_handlers', False)),
        )
        self._loaded_from = path
        if self._base_path is None:
            self._base_path = path.resolve().parent
        logger.debug(f"Loaded config from {path}")
        return True

    def get_exclude_patterns(self) -> List[str]:
        """Get the list of exclude patterns from scan config."""
        if self.config and self.config.scan:
            return self.config.scan.exclude
        return []

    def should_ignore(self, rule_id: str, file_path: str) -> Optional[str]:
        """
        Check if a diagnostic should be ignored.

        Args:
            rule_id: The rule ID (e.g., "ANCHOR-003")
            file_path: Path of the file where the diagnostic was reported

        Returns:
            Ignore reason if should be ignored, None otherwise
        """
        if not self.config:
            return None

        rel_path = self._get_relative_path(file_path)

        for ignore in self.config.ignore_rules:
            # Match rule ID if specified (support "*" as wildcard for all rules)
            if ignore.rule_id and ignore.rule_id != "*" and ignore.rule_id != rule_id:
                continue

            if ignore.paths and not self._match_any_pattern(rel_path, ignore.paths):
                continue

            return ignore.reason or f"Suppressed by config ({self._loaded_from})"

        return None

    def _get_relative_path(self, file_path: str) -> str:
        """
        Convert a file path to a relative path for pattern matching.

        If the file_path is absolute and within the base_path,
        returns the relative portion. Otherwise returns the original path.
        """
        file_path_obj = Path(file_path)
        if file_path_obj.is_absolute() and self._base_path:
            try:
                return str(file_path_obj.relative_to(self._base_path))
            except ValueError:
                pass
        return file_path

    def _match_any_pattern(self, path: str, patterns: List[str]) -> bool:
        """
        Check if a path matches any of the given glob patterns.

        Uses forward slashes for cross-platform consistency.
        """
        normalized_path = path.replace('\\', '/')

        for pattern in patterns:
            normalized_pattern = pattern.replace('\\', '/')

            if fnmatch.fnmatch(normalized_path, normalized_pattern):
                return True

            # For patterns like "tests/**", also match exact prefix "tests/"
            if normalized_pattern.endswith('/**'):
                prefix = normalized_pattern[:-3]
                if normalized_path.startswith(prefix + '/') or normalized_path == prefix:
                    return True

            # For patterns like "**/mod.rs", match against filename
            if normalized_pattern.startswith('**/'):
                suffix_pattern = normalized_pattern[3:]
                if fnmatch.fnmatch(Path(normalized_path).name, suffix_pattern):
                    return True

        return False

    def apply_to_diagnostic(self, diagnostic: Diagnostic) -> Diagnostic:
        """
        Apply ignore rules to a diagnostic.

        Returns:
            The diagnostic itself, or a suppressed copy if an ignore rule matches
        """
        ignore_reason = self.should_ignore(diagnostic.rule_id, diagnostic.file)
        if not ignore_reason:
            return diagnostic
        return replace(
            diagnostic,
            suppressed=True,
            suppressed_reason=ignore_reason,
            suppressed_by=str(self._loaded_from) if self._loaded_from else None,
        )


# Baseline scanning support

def save_baseline(diagnostics: List[Diagnostic], output_path: Path):
    """
    Save diagnostics as a baseline file.

    Args:
        diagnostics: List of diagnostics to save as baseline
        output_path: Path to save the baseline file
    """
    baseline = {
        "version": "1.0",
        "created_at": datetime.now(timezone.utc).isoformat(),
        "fingerprints": [d.fingerprint() for d in diagnostics]
    }
    output_path.write_text(json.dumps(baseline, indent=2), encoding="utf-8")


def load_baseline(baseline_path: Path) -> Set[str]:
    """
    Load fingerprints from a baseline file.

    Returns:
        Set of fingerprints from the baseline (empty if unreadable)
    """
    try:
        data = json.loads(baseline_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load baseline from {baseline_path}: {e}")
        return set()
    return set(data.get("fingerprints", []))


def filter_by_baseline(diagnostics: List[Diagnostic], baseline: Set[str]) -> List[Diagnostic]:
    """Keep only diagnostics whose fingerprint is not in the baseline."""
    return [d for d in diagnostics if d.fingerprint() not in baseline]


def create_default_config(seed_scope: str = "file", include_instruction_handlers: bool = False) -> str:
    """
    Create a default .anchor-audit.yaml configuration template.

    Args:
        seed_scope: Initial value of ``seeds.scope``
        include_instruction_handlers: Initial value of
            ``handlers.include_instruction_handlers``

    Returns:
        YAML string with default configuration
    """
    handlers = "true" if include_instruction_handlers else "false"
    return f'''# anchor-audit configuration

# Scan settings
scan:
  exclude:
    - "target/**"
    - "tests/**"
    - "node_modules/**"
  min_severity: info
  # Exit non-zero when a diagnostic at or above this severity is found
  # fail_on: error

# PDA seed prefix cross-reference: per "file" or across the whole "project"
seeds:
  scope: {seed_scope}

# Also check free `handler` / `handle_*` functions taking a Context<T>
handlers:
  include_instruction_handlers: {handlers}

# Recognized names (all optional)
# heuristics:
#   signer_types: [Signer]
#   account_wrappers: [Account]
#   container_wrappers: [Box]
#   cpi_functions: [invoke, invoke_signed, transfer, mint_to, burn]

# Ignore rules
ignore:
  # Example: accept init_if_needed in the migration instructions
  # - rule_id: ANCHOR-003
  #   paths:
  #     - "programs/*/src/instructions/migrate.rs"
  #   reason: "Migration re-runs are guarded by a version field"
'''
