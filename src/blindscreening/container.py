"""Dependency injection container for the screening system."""

from __future__ import annotations

import os

from dependency_injector import containers, providers

from .adapters import DocumentExtractionAdapter, HeuristicAttributeExtractor
from .core import ScreeningSession, SkillCoverageScorer
from .core.evaluators import SkillCoverageConfig
from .llm import GenerativeClient, LLMAttributeExtractor, LLMJobAnalyzer, LLMScoringAdapter
from .pipeline import ScreeningPipeline
from .schemas.config import AppConfig


class ScreeningContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    api_key = providers.Callable(os.environ.get, config.llm.api_key_env)

    llm_client = providers.Singleton(
        GenerativeClient,
        endpoint=config.llm.endpoint,
        api_key=api_key,
        model=config.llm.model,
        timeout=config.llm.timeout,
    )

    attribute_extractor = providers.Selector(
        config.extraction.mode,
        heuristic=providers.Singleton(
            HeuristicAttributeExtractor,
            skill_vocabulary=config.extraction.skill_vocabulary,
        ),
        llm=providers.Singleton(LLMAttributeExtractor, client=llm_client),
    )

    extraction_adapter = providers.Singleton(
        DocumentExtractionAdapter,
        attribute_extractor=attribute_extractor,
    )

    scoring_adapter = providers.Selector(
        config.scoring.mode,
        coverage=providers.Singleton(
            SkillCoverageScorer,
            config=providers.Factory(
                SkillCoverageConfig,
                min_similarity=config.scoring.min_similarity,
            ),
        ),
        llm=providers.Singleton(LLMScoringAdapter, client=llm_client),
    )

    job_analyzer = providers.Factory(LLMJobAnalyzer, client=llm_client)

    session = providers.Factory(
        ScreeningSession,
        extractor=extraction_adapter,
        scorer=scoring_adapter,
        max_workers=config.pipeline.max_workers,
        document_timeout=config.pipeline.document_timeout,
        alias_prefix=config.pipeline.alias_prefix,
    )

    pipeline = providers.Factory(
        ScreeningPipeline,
        session_factory=session.provider,
    )


def create_container(*, settings: dict | None = None) -> ScreeningContainer:
    """Instantiate container with validated settings over the defaults."""

    app_config = AppConfig.model_validate(settings or {})
    container = ScreeningContainer()
    container.config.from_dict(app_config.to_settings())
    return container
