"""Anonymized candidate screening with a token-gated PII vault."""

__version__ = "0.1.0"
