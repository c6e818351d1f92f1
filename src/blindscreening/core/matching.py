"""Batch candidate pipeline: extraction, vault custody and scoring."""

from __future__ import annotations

import asyncio
import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

import structlog
from pydantic import ValidationError

from ..errors import AdapterTimeout, DocumentProcessingError, ExtractionFailed, ScoringFailed
from ..schemas import (
    Document,
    ExtractedAttributes,
    HiddenCandidate,
    JobProfile,
    PiiRecord,
    ProfessionalAttributes,
    ScoreResult,
)
from .protocols import ExtractionAdapter, ScoringAdapter
from .vault import Vault

REDACTED = "[redacted]"


@dataclass(slots=True)
class DocumentFailure:
    """A document excluded from the batch and the reason why."""

    document_id: str
    reason: str
    stage: str


@dataclass(slots=True)
class BatchResult:
    """Ranked anonymized candidates plus per-document failures."""

    candidates: list[HiddenCandidate]
    failures: list[DocumentFailure] = field(default_factory=list)
    total: int = 0

    @property
    def processed(self) -> int:
        return len(self.candidates)

    @property
    def summary(self) -> str:
        return f"{self.processed} of {self.total} documents processed"


def alias_for_index(index: int, prefix: str = "Candidate") -> str:
    """Return ``"<prefix> A"`` for 0, ``"<prefix> Z"`` for 25, ``"<prefix> AA"`` for 26."""
    if index < 0:
        raise ValueError("index must be non-negative")
    letters = ""
    number = index + 1
    while number:
        number, remainder = divmod(number - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return f"{prefix} {letters}"


class CandidatePipeline:
    """Run every document through extract -> store -> score -> assemble.

    Documents are processed concurrently up to ``max_workers``. A failure in
    one document never aborts the batch. Token issuance and candidate assembly
    form one unit: a token whose candidate is never delivered is discarded
    from the vault again.
    """

    def __init__(
        self,
        *,
        vault: Vault,
        extractor: ExtractionAdapter,
        scorer: ScoringAdapter,
        max_workers: int = 4,
        document_timeout: float | None = 60.0,
        alias_prefix: str = "Candidate",
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if document_timeout is not None and document_timeout <= 0:
            raise ValueError("document_timeout must be positive")
        self._vault = vault
        self._extractor = extractor
        self._scorer = scorer
        self._max_workers = max_workers
        self._timeout = document_timeout
        self._alias_prefix = alias_prefix
        self._logger = structlog.get_logger(__name__)

    def run(self, documents: Sequence[Document], job: JobProfile) -> BatchResult:
        """Synchronous entrypoint; must not be called from a running event loop."""
        return asyncio.run(self.process(documents, job))

    async def process(self, documents: Sequence[Document], job: JobProfile) -> BatchResult:
        documents = list(documents)
        semaphore = asyncio.Semaphore(self._max_workers)
        tasks = [
            asyncio.ensure_future(self._guarded(semaphore, index, document, job))
            for index, document in enumerate(documents)
        ]
        self._logger.info(
            "pipeline.started",
            documents=len(documents),
            max_workers=self._max_workers,
            job_title=job.title,
        )

        ranked: list[tuple[int, HiddenCandidate]] = []
        failures: list[tuple[int, DocumentFailure]] = []
        try:
            for next_done in asyncio.as_completed(tasks):
                index, outcome = await next_done
                if isinstance(outcome, DocumentFailure):
                    failures.append((index, outcome))
                else:
                    ranked.append((index, outcome))
        except asyncio.CancelledError:
            await self._abandon(tasks)
            raise

        ranked.sort(key=lambda item: (-item[1].profile.score, item[0]))
        failures.sort(key=lambda item: item[0])
        result = BatchResult(
            candidates=[candidate for _, candidate in ranked],
            failures=[failure for _, failure in failures],
            total=len(documents),
        )
        self._logger.info(
            "pipeline.completed",
            processed=result.processed,
            failed=len(result.failures),
            total=result.total,
        )
        return result

    async def _abandon(self, tasks: list[asyncio.Future]) -> None:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        discarded = 0
        for task in tasks:
            if task.cancelled() or task.exception() is not None:
                continue
            _, outcome = task.result()
            if isinstance(outcome, HiddenCandidate):
                self._vault.discard(outcome.token)
                discarded += 1
        self._logger.warning("pipeline.cancelled", discarded_tokens=discarded)

    async def _guarded(
        self,
        semaphore: asyncio.Semaphore,
        index: int,
        document: Document,
        job: JobProfile,
    ) -> tuple[int, HiddenCandidate | DocumentFailure]:
        async with semaphore:
            return index, await self._process_document(index, document, job)

    async def _process_document(
        self,
        index: int,
        document: Document,
        job: JobProfile,
    ) -> HiddenCandidate | DocumentFailure:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout if self._timeout is not None else None
        stage = "extraction"
        try:
            raw = await self._call("extraction", self._extractor.extract, deadline, document)
            extracted = _coerce_extraction(raw)
            pii = extracted.pii.model_copy(
                update={
                    "document_id": extracted.pii.document_id or document.document_id,
                    "source_file": extracted.pii.source_file or document.filename,
                }
            )
            attributes = _professional_attributes(extracted, pii)

            stage = "scoring"
            token = self._vault.store(pii)
            try:
                raw_score = await self._call("scoring", self._scorer.score, deadline, job, attributes)
                profile = attributes.scored(_coerce_score(raw_score))
                candidate = HiddenCandidate(
                    token=token,
                    alias=alias_for_index(index, self._alias_prefix),
                    profile=profile,
                )
            except BaseException:
                self._vault.discard(token)
                raise
        except DocumentProcessingError as exc:
            return self._failure(index, document, exc.reason, exc.stage)
        except Exception as exc:  # noqa: BLE001
            # Unexpected adapter errors may quote document content; keep the type only.
            return self._failure(index, document, f"unexpected {type(exc).__name__}", stage)

        self._logger.info(
            "pipeline.document_processed",
            index=index,
            alias=candidate.alias,
            score=candidate.profile.score,
        )
        return candidate

    async def _call(
        self,
        stage: str,
        func: Callable[..., Any],
        deadline: float | None,
        *args: Any,
    ) -> Any:
        if inspect.iscoroutinefunction(func):
            awaitable: Awaitable[Any] = func(*args)
        else:
            awaitable = asyncio.to_thread(func, *args)
        if deadline is None:
            return await awaitable
        loop = asyncio.get_running_loop()
        call = asyncio.ensure_future(awaitable)
        try:
            done, _ = await asyncio.wait({call}, timeout=max(deadline - loop.time(), 0.0))
        except BaseException:
            call.cancel()
            raise
        if call not in done:
            call.cancel()
            await asyncio.gather(call, return_exceptions=True)
            raise AdapterTimeout(stage, self._timeout)
        # Exceptions raised by the adapter itself, TimeoutError included, pass through as-is.
        return call.result()

    def _failure(self, index: int, document: Document, reason: str, stage: str) -> DocumentFailure:
        self._logger.warning("pipeline.document_failed", index=index, stage=stage, reason=reason)
        return DocumentFailure(document_id=document.document_id, reason=reason, stage=stage)


def _coerce_extraction(raw: Any) -> ExtractedAttributes:
    if isinstance(raw, ExtractedAttributes):
        return raw
    try:
        return ExtractedAttributes.model_validate(raw)
    except ValidationError as exc:
        raise ExtractionFailed(f"malformed extraction result ({exc.error_count()} errors)") from None


def _coerce_score(raw: Any) -> ScoreResult:
    if isinstance(raw, ScoreResult):
        return raw
    try:
        return ScoreResult.model_validate(raw)
    except ValidationError as exc:
        raise ScoringFailed(f"malformed score result ({exc.error_count()} errors)") from None


def _professional_attributes(extracted: ExtractedAttributes, pii: PiiRecord) -> ProfessionalAttributes:
    """Build the scoring input, masking any of the candidate's own identity strings."""
    identities = pii.identity_strings()
    skills: list[str] = []
    for skill in extracted.skills:
        cleaned = _scrub(skill, identities).strip()
        if cleaned and cleaned != REDACTED and cleaned not in skills:
            skills.append(cleaned)
    return ProfessionalAttributes(
        skills=tuple(skills),
        summary=_scrub(extracted.summary, identities).strip(),
    )


def _scrub(text: str, identities: list[str]) -> str:
    for identity in sorted(identities, key=len, reverse=True):
        text = re.sub(rf"(?<!\w){re.escape(identity)}(?!\w)", REDACTED, text, flags=re.IGNORECASE)
    return text
