"""anchor-audit: static analysis for Anchor (Solana) programs."""

from anchor_audit.version import __version__

__all__ = ["__version__"]
