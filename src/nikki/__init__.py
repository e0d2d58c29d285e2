"""Nikki — a local-first journal store with fuzzy search and filtering."""

__version__ = "0.1.0"
