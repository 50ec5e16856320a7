"""Unified diff parsing, CI build information, diff sources and comment writers for reviewing linter results."""

__version__ = "0.1.0"

__all__ = ["cienv", "comment", "diffservice", "udiff"]