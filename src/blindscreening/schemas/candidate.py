"""Candidate records split into PII and professional halves.

A candidate exists in exactly one of two variants. ``HiddenCandidate`` has no
attribute that can hold identity data; only ``RevealedCandidate`` carries a
``PiiRecord``. Code that needs identity has to hold the revealed variant.
"""

from __future__ import annotations

from typing import Annotated, Literal, NewType, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Token = NewType("Token", str)


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        cleaned = value.strip()
        key = cleaned.casefold()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


class PiiRecord(BaseModel):
    """Personally identifying data for one candidate document."""

    name: str | None = Field(default=None, repr=False)
    email: str | None = Field(default=None, repr=False)
    phone: str | None = Field(default=None, repr=False)
    document_id: str = Field(default="", repr=False)
    source_file: str | None = Field(default=None, repr=False)

    model_config = ConfigDict(extra="forbid", frozen=True)

    def identity_strings(self) -> list[str]:
        return [value for value in (self.name, self.email, self.phone) if value]


class ExtractedAttributes(BaseModel):
    """Extraction adapter output with identity kept apart from skills."""

    pii: PiiRecord
    skills: list[str] = Field(default_factory=list)
    summary: str = ""

    model_config = ConfigDict(extra="forbid")

    @field_validator("skills")
    @classmethod
    def _normalize_skills(cls, value: list[str]) -> list[str]:
        return _dedupe(value)


class ScoreResult(BaseModel):
    """Scoring adapter output."""

    value: int = Field(ge=0, le=100)
    rationale: str = ""

    model_config = ConfigDict(extra="ignore")


class ProfessionalAttributes(BaseModel):
    """Scoring input: the professional half of an extraction, nothing else."""

    skills: tuple[str, ...] = ()
    summary: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)

    def scored(self, result: ScoreResult) -> "ProfessionalProfile":
        return ProfessionalProfile(
            skills=self.skills,
            summary=self.summary,
            score=result.value,
            rationale=result.rationale,
        )


class ProfessionalProfile(BaseModel):
    """PII-free attributes used for ranking."""

    skills: tuple[str, ...] = ()
    summary: str = ""
    score: int = Field(ge=0, le=100)
    rationale: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)


class HiddenCandidate(BaseModel):
    """Anonymized candidate as produced by the pipeline."""

    status: Literal["hidden"] = "hidden"
    token: Token = Field(repr=False)
    alias: str
    profile: ProfessionalProfile

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def revealed(self) -> bool:
        return False

    @property
    def label(self) -> str:
        return self.alias

    def with_identity(self, pii: PiiRecord) -> "RevealedCandidate":
        return RevealedCandidate(
            token=self.token,
            alias=self.alias,
            profile=self.profile,
            pii=pii,
        )


class RevealedCandidate(BaseModel):
    """Candidate whose identity was revealed through the selection registry."""

    status: Literal["revealed"] = "revealed"
    token: Token = Field(repr=False)
    alias: str
    profile: ProfessionalProfile
    pii: PiiRecord

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def revealed(self) -> bool:
        return True

    @property
    def label(self) -> str:
        # An unnamed record keeps its alias rather than borrowing email or phone.
        return self.pii.name or f"{self.alias} (name not provided)"


Candidate = Annotated[
    Union[HiddenCandidate, RevealedCandidate],
    Field(discriminator="status"),
]
