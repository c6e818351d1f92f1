"""Pydantic schema definitions for candidate, job and document records."""

from __future__ import annotations

from .candidate import (
    Candidate,
    ExtractedAttributes,
    HiddenCandidate,
    PiiRecord,
    ProfessionalAttributes,
    ProfessionalProfile,
    RevealedCandidate,
    ScoreResult,
    Token,
)
from .document import Document
from .job import JobProfile

__all__ = [
    "Candidate",
    "Document",
    "ExtractedAttributes",
    "HiddenCandidate",
    "JobProfile",
    "PiiRecord",
    "ProfessionalAttributes",
    "ProfessionalProfile",
    "RevealedCandidate",
    "ScoreResult",
    "Token",
]
