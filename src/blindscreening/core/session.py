"""Session scope owning one vault, one batch and its selection registry."""

from __future__ import annotations

from typing import Sequence

import structlog

from ..schemas import Document, JobProfile
from .matching import BatchResult, CandidatePipeline
from .protocols import ExtractionAdapter, ScoringAdapter
from .selection import AuditSink, SelectionRegistry
from .vault import Vault


class ScreeningSession:
    """Explicitly scoped screening run.

    The session constructs its own :class:`Vault`, holds at most one batch,
    and purges every PII record when closed.
    """

    def __init__(
        self,
        *,
        extractor: ExtractionAdapter,
        scorer: ScoringAdapter,
        max_workers: int = 4,
        document_timeout: float | None = 60.0,
        alias_prefix: str = "Candidate",
        audit: AuditSink | None = None,
    ) -> None:
        self._vault = Vault()
        self._pipeline = CandidatePipeline(
            vault=self._vault,
            extractor=extractor,
            scorer=scorer,
            max_workers=max_workers,
            document_timeout=document_timeout,
            alias_prefix=alias_prefix,
        )
        self._audit = audit
        self._registry: SelectionRegistry | None = None
        self._result: BatchResult | None = None
        self._closed = False
        self._logger = structlog.get_logger(__name__)

    @property
    def vault(self) -> Vault:
        return self._vault

    @property
    def registry(self) -> SelectionRegistry:
        if self._registry is None:
            raise RuntimeError("No batch has been processed in this session")
        return self._registry

    @property
    def result(self) -> BatchResult:
        if self._result is None:
            raise RuntimeError("No batch has been processed in this session")
        return self._result

    @property
    def closed(self) -> bool:
        return self._closed

    def run(self, documents: Sequence[Document], job: JobProfile) -> BatchResult:
        self._check_open()
        return self._accept(self._pipeline.run(documents, job))

    async def process(self, documents: Sequence[Document], job: JobProfile) -> BatchResult:
        self._check_open()
        return self._accept(await self._pipeline.process(documents, job))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._registry is not None:
            self._registry.clear()
        purged = self._vault.purge()
        self._logger.info("session.closed", purged=purged)

    def __enter__(self) -> "ScreeningSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Session is closed")
        if self._result is not None:
            raise RuntimeError("Session already holds a batch; open a new session")

    def _accept(self, result: BatchResult) -> BatchResult:
        self._result = result
        self._registry = SelectionRegistry(self._vault, result.candidates, audit=self._audit)
        return result
