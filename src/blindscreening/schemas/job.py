from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .candidate import _dedupe


class JobProfile(BaseModel):
    """Immutable requirements derived once from a job description."""

    title: str
    required_skills: tuple[str, ...] = ()
    experience: str = ""
    qualifications: str = ""
    requirements: tuple[str, ...] = ()
    responsibilities: tuple[str, ...] = ()

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("required_skills", mode="before")
    @classmethod
    def _ordered_skill_set(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            return tuple(_dedupe([str(item) for item in value if item]))
        return value

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    def describe(self) -> dict[str, object]:
        """Plain mapping used in prompts and output metadata."""
        return self.model_dump(mode="json")
