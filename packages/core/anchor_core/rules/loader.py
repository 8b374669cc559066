"""YAML rule loader for anchor-audit."""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional
import yaml

logger = logging.getLogger(__name__)

BUILTIN_RULES_DIR = Path(__file__).parent / "builtin"


class RuleLoader:
    """
    Loader for YAML rule files.

    Discovers and parses .yaml files from a rules directory. Later
    directories override rules with the same id from earlier ones.
    """

    VALID_SEVERITIES = {'error', 'warning', 'info'}
    REQUIRED_FIELDS = ['id', 'title', 'severity', 'category']

    def __init__(self, rules_dirs: Optional[List[Path]] = None):
        """
        Initialize the rule loader.

        Args:
            rules_dirs: List of directories to search for rules.
                        If None, only the builtin rules directory is used.
        """
        self.rules_dirs = list(rules_dirs) if rules_dirs is not None else [BUILTIN_RULES_DIR]

    def add_rules_directory(self, path: Path):
        """Add a directory to search for rules."""
        if path.exists() and path.is_dir():
            self.rules_dirs.append(path)
        else:
            logger.warning(f"Rules directory does not exist: {path}")

    def load_all_rules(self) -> Dict[str, Dict[str, Any]]:
        """
        Load all rules from configured directories.

        Returns:
            Dictionary mapping rule_id to rule definition.
        """
        all_rules: Dict[str, Dict[str, Any]] = {}

        for rules_dir in self.rules_dirs:
            rules = self._load_rules_from_directory(rules_dir)
            all_rules.update(rules)

        return all_rules

    def load_rule_file(self, file_path: Path) -> Dict[str, Dict[str, Any]]:
        """
        Load rules from a single YAML file.

        Args:
            file_path: Path to the YAML rule file

        Returns:
            Dictionary mapping rule_id to rule definition
        """
        rules: Dict[str, Dict[str, Any]] = {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parse error in {file_path}: {e}")
            return rules
        except OSError as e:
            logger.error(f"Error loading {file_path}: {e}")
            return rules

        if not data or 'rules' not in data:
            logger.warning(f"No rules found in {file_path}")
            return rules

        for rule in data['rules']:
            rule_id = rule.get('id')
            if not rule_id:
                logger.warning(f"Rule without id in {file_path}")
                continue

            if not self._validate_rule(rule, file_path):
                continue

            rule['severity'] = rule['severity'].lower()
            rule['_source_file'] = str(file_path)
            rules[rule_id] = rule

        return rules

    def _load_rules_from_directory(self, rules_dir: Path) -> Dict[str, Dict[str, Any]]:
        """Load all rules from a directory."""
        rules: Dict[str, Dict[str, Any]] = {}

        if not rules_dir.exists():
            logger.warning(f"Rules directory does not exist: {rules_dir}")
            return rules

        for pattern in ("**/*.yaml", "**/*.yml"):
            for rule_file in sorted(rules_dir.glob(pattern)):
                rules.update(self.load_rule_file(rule_file))

        return rules

    def _validate_rule(self, rule: Dict[str, Any], source_file: Path) -> bool:
        """
        Validate a rule definition has required fields.

        Returns True if valid, False otherwise.
        """
        for field in self.REQUIRED_FIELDS:
            if field not in rule:
                logger.warning(
                    f"Rule missing required field '{field}' in {source_file}"
                )
                return False

        if str(rule.get('severity', '')).lower() not in self.VALID_SEVERITIES:
            logger.warning(
                f"Invalid severity '{rule.get('severity')}' in rule {rule['id']}"
            )
            return False

        return True
