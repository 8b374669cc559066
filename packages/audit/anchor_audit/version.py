"""Version information for anchor-audit."""

__version__ = "0.4.0"
