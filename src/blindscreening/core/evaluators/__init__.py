"""Scoring adapter implementations for the matching pipeline."""

from .skill_coverage import SkillCoverageConfig, SkillCoverageScorer

__all__ = [
    "SkillCoverageConfig",
    "SkillCoverageScorer",
]
