"""
Recognized-name heuristics.

anchor-audit has no type information: signers, context wrappers, typed
account wrappers and CPI primitives are all recognized by the last segment
of their path. Every such name lives here so it can be overridden from the
``heuristics`` section of ``.anchor-audit.yaml``.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet, Optional

logger = logging.getLogger(__name__)


def _names(*values: str) -> FrozenSet[str]:
    return frozenset(values)


@dataclass(frozen=True)
class Heuristics:
    """Names used to recognize Anchor constructs."""
    accounts_derive: str = "Accounts"
    account_attribute: str = "account"
    program_attribute: str = "program"

    signer_types: FrozenSet[str] = field(default_factory=lambda: _names("Signer"))
    context_types: FrozenSet[str] = field(default_factory=lambda: _names("Context"))
    account_wrappers: FrozenSet[str] = field(default_factory=lambda: _names("Account"))
    container_wrappers: FrozenSet[str] = field(default_factory=lambda: _names("Box"))

    cpi_functions: FrozenSet[str] = field(
        default_factory=lambda: _names("invoke", "invoke_signed", "transfer", "mint_to", "burn")
    )
    signed_invoke_functions: FrozenSet[str] = field(default_factory=lambda: _names("invoke_signed"))
    realloc_functions: FrozenSet[str] = field(default_factory=lambda: _names("realloc"))

    accounts_field: str = "accounts"
    remaining_accounts_field: str = "remaining_accounts"
    default_context_name: str = "ctx"

    # Free functions treated as instruction handlers outside the program module
    handler_names: FrozenSet[str] = field(default_factory=lambda: _names("handler"))
    handler_prefixes: FrozenSet[str] = field(default_factory=lambda: _names("handle_"))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Heuristics":
        """
        Build heuristics from a config mapping, keeping defaults for
        anything not given. Unknown keys are logged and ignored.
        """
        base = cls()
        if not data:
            return base

        known = {f.name: f for f in fields(cls)}
        overrides: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Unknown heuristics key '{key}' ignored")
                continue
            current = getattr(base, key)
            if isinstance(current, frozenset):
                if isinstance(value, str):
                    value = [value]
                overrides[key] = frozenset(str(v) for v in value or [])
            else:
                overrides[key] = str(value)

        return replace(base, **overrides)

    def is_handler_name(self, name: str) -> bool:
        return name in self.handler_names or any(
            name.startswith(prefix) for prefix in self.handler_prefixes
        )


DEFAULT_HEURISTICS = Heuristics()
