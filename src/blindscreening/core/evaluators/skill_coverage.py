"""Offline scoring adapter based on required-skill coverage."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from rapidfuzz import fuzz

from ...schemas import JobProfile, ProfessionalAttributes, ScoreResult


@dataclass
class SkillCoverageConfig:
    """Configuration for skill coverage scoring."""

    min_similarity: float = 85.0
    requirement_weight: float = 0.25


class SkillCoverageScorer:
    """Score a professional profile by how many required skills it covers.

    Required skills are matched against listed skills (fuzzy) and against the
    summary (whole word). Free-text requirements add a smaller weighted share
    when the job profile lists any.
    """

    def __init__(self, *, config: SkillCoverageConfig | None = None) -> None:
        self._config = config or SkillCoverageConfig()

    def score(self, job: JobProfile, profile: ProfessionalAttributes) -> ScoreResult:
        required = list(job.required_skills)
        if not required:
            return ScoreResult(value=0, rationale="Job profile lists no required skills.")

        matched = [skill for skill in required if self._has_skill(profile, skill)]
        missing = [skill for skill in required if skill not in matched]
        coverage = len(matched) / len(required)

        requirement_ratio = self._requirement_ratio(job.requirements, profile.summary)
        if requirement_ratio is None:
            combined = coverage
        else:
            weight = min(max(self._config.requirement_weight, 0.0), 1.0)
            combined = (1.0 - weight) * coverage + weight * requirement_ratio

        value = int(round(min(max(combined, 0.0), 1.0) * 100))
        return ScoreResult(value=value, rationale=_rationale(matched, missing, len(required)))

    def _has_skill(self, profile: ProfessionalAttributes, skill: str) -> bool:
        needle = skill.casefold()
        for candidate_skill in profile.skills:
            if candidate_skill.casefold() == needle:
                return True
            if fuzz.ratio(needle, candidate_skill.casefold()) >= self._config.min_similarity:
                return True
        return _mentions(profile.summary, skill)

    def _requirement_ratio(self, requirements: Sequence[str], summary: str) -> float | None:
        if not requirements or not summary:
            return None
        summary_lower = summary.casefold()
        hits = sum(
            1
            for requirement in requirements
            if fuzz.partial_ratio(requirement.casefold(), summary_lower) >= self._config.min_similarity
        )
        return hits / len(requirements)


def _mentions(text: str, skill: str) -> bool:
    if not text:
        return False
    pattern = rf"(?<![\w+#]){re.escape(skill)}(?![\w+#])"
    return re.search(pattern, text, flags=re.IGNORECASE) is not None


def _rationale(matched: list[str], missing: list[str], total: int) -> str:
    parts = [f"Matched {len(matched)} of {total} required skills"]
    if matched:
        parts.append("covered: " + ", ".join(matched))
    if missing:
        parts.append("missing: " + ", ".join(missing))
    return "; ".join(parts) + "."
