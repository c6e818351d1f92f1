"""Extraction adapters turning candidate documents into attributes."""

from __future__ import annotations

from .document import AttributeExtractor, DocumentExtractionAdapter
from .heuristic import DEFAULT_SKILL_VOCABULARY, HeuristicAttributeExtractor
from .text import SUPPORTED_SUFFIXES, extract_text, normalize_text

__all__ = [
    "AttributeExtractor",
    "DEFAULT_SKILL_VOCABULARY",
    "DocumentExtractionAdapter",
    "HeuristicAttributeExtractor",
    "SUPPORTED_SUFFIXES",
    "extract_text",
    "normalize_text",
]
