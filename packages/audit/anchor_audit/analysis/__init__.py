"""Semantic analysis: struct classification, symbol table and body walking."""
