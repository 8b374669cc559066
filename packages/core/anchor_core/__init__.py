"""Shared models and rule catalogue for anchor-audit."""
