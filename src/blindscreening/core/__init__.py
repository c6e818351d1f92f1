"""Core anonymization, matching and selection components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .matching import BatchResult, CandidatePipeline, DocumentFailure, alias_for_index
from .protocols import ExtractionAdapter, ScoringAdapter
from .selection import SelectionRegistry, ShortlistEntry
from .session import ScreeningSession
from .vault import Vault
from .evaluators import SkillCoverageScorer

__all__ = [
    "BatchResult",
    "CandidatePipeline",
    "DocumentFailure",
    "ExtractionAdapter",
    "ScoringAdapter",
    "ScreeningSession",
    "SelectionRegistry",
    "ShortlistEntry",
    "SkillCoverageScorer",
    "Vault",
    "alias_for_index",
]
