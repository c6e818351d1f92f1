"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class PipelineConfig(BaseModel):
    max_workers: int = Field(default=4, ge=1)
    document_timeout: float | None = Field(default=60.0, gt=0)
    alias_prefix: str = "Candidate"


class ExtractionConfig(BaseModel):
    mode: Literal["heuristic", "llm"] = "heuristic"
    skill_vocabulary: list[str] | None = None


class ScoringConfig(BaseModel):
    mode: Literal["coverage", "llm"] = "coverage"
    min_similarity: float = Field(default=85.0, ge=0, le=100)


class LLMConfig(BaseModel):
    endpoint: str | None = None
    model: str = "gemini-2.5-flash"
    api_key_env: str = "GEMINI_API_KEY"
    timeout: float = 30.0


class AppConfig(BaseModel):
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    def to_settings(self) -> dict[str, Any]:
        return self.model_dump()


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValueError("Config must be a mapping")
    return AppConfig.model_validate(raw)


def load_config_file(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        return load_config(yaml.safe_load(handle))
