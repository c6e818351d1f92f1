"""Adapter contracts consumed by the candidate pipeline."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ..schemas import Document, JobProfile, ProfessionalAttributes


@runtime_checkable
class ExtractionAdapter(Protocol):
    """Turns one raw document into identity and professional attributes.

    Implementations may be plain or ``async`` callables. They raise
    ``ExtractionFailed`` and must keep identity fields inside ``pii``.
    """

    def extract(self, document: Document) -> Any:
        """Return ``ExtractedAttributes`` (or an equivalent mapping)."""


@runtime_checkable
class ScoringAdapter(Protocol):
    """Scores a professional profile against the active job profile."""

    def score(self, job: JobProfile, profile: ProfessionalAttributes) -> Any:
        """Return ``ScoreResult`` (or an equivalent mapping); raise ``ScoringFailed``."""
