"""Sigil: a notation interpreter for references, operators and JSON-like structures."""

__version__ = "0.1.0"
