"""Composition of text extraction and attribute extraction."""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from ..schemas import Document, ExtractedAttributes
from .text import extract_text


@runtime_checkable
class AttributeExtractor(Protocol):
    """Text-to-attributes contract.

    Implementations split resume text into a ``PiiRecord`` and PII-free
    professional fields, raising ``ExtractionFailed`` on unusable input.
    """

    def extract(self, text: str) -> ExtractedAttributes:
        """Return identity and professional attributes for one resume text."""


class DocumentExtractionAdapter:
    """Extraction adapter: raw document -> text -> identity and professional attributes."""

    def __init__(
        self,
        attribute_extractor: AttributeExtractor,
        *,
        text_extractor: Callable[[Document], str] = extract_text,
    ) -> None:
        self._attributes = attribute_extractor
        self._text = text_extractor

    def extract(self, document: Document) -> ExtractedAttributes:
        return self._attributes.extract(self._text(document))
