"""Screening run assembly: loading inputs, running a session, writing outputs."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

import pendulum
import structlog
from pydantic import ValidationError

from . import __version__
from .adapters import SUPPORTED_SUFFIXES
from .core import BatchResult, ScreeningSession, ShortlistEntry
from .errors import DocumentLoadError
from .export import ExportFormat, render_shortlist, score_band
from .schemas import Document, JobProfile, PiiRecord


class DocumentLoader:
    """Load candidate documents from files and directories.

    Document ids are positional (``doc-001`` ...) so that file names, which
    often contain a candidate's name, never travel with the anonymized data.
    """

    def __init__(self, suffixes: Iterable[str] = SUPPORTED_SUFFIXES):
        self._suffixes = tuple(suffixes)

    def expand(self, paths: Sequence[Path]) -> list[Path]:
        expanded: list[Path] = []
        for path in paths:
            if path.is_dir():
                expanded.extend(
                    sorted(
                        child
                        for child in path.iterdir()
                        if child.is_file() and child.suffix.lower() in self._suffixes
                    )
                )
            else:
                expanded.append(path)
        return expanded

    def load(self, paths: Sequence[Path]) -> list[Document]:
        documents: list[Document] = []
        errors: list[str] = []
        for idx, path in enumerate(self.expand(paths), start=1):
            document_id = f"doc-{idx:03d}"
            try:
                documents.append(Document.from_path(path, document_id=document_id))
            except OSError as exc:
                errors.append(f"{document_id}: unreadable ({exc.strerror or type(exc).__name__})")
        if errors:
            raise DocumentLoadError(errors, documents)
        return documents


class JobLoader:
    """Load job profiles produced by job-description analysis."""

    def load(self, path: Path) -> JobProfile:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid job JSON: {exc}") from exc
        if isinstance(data, dict) and "skills" in data and "required_skills" not in data:
            data = {**data, "required_skills": data["skills"]}
        try:
            return JobProfile.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid job profile: {exc.error_count()} errors") from exc


class OutputWriter:
    """Persist screening outcomes."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def write_text(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")


@dataclass(slots=True)
class ScreeningReport:
    """What a run hands back to the caller before its session is purged."""

    batch: BatchResult
    results: list[dict]
    revealed: dict[str, PiiRecord] = field(default_factory=dict)
    shortlist: list[ShortlistEntry] = field(default_factory=list)
    load_errors: list[str] = field(default_factory=list)


class ScreeningPipeline:
    """End-to-end screening orchestrator around one :class:`ScreeningSession`."""

    def __init__(
        self,
        *,
        session_factory: Callable[..., ScreeningSession],
        document_loader: DocumentLoader | None = None,
        job_loader: JobLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._documents = document_loader or DocumentLoader()
        self._jobs = job_loader or JobLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        document_paths: Sequence[Path],
        job_path: Path,
        output_path: Path,
        audit_logger: AuditLogger | None = None,
        select: Sequence[str] = (),
        reveal: Sequence[str] = (),
        export_path: Path | None = None,
        export_format: ExportFormat = "text",
        session_options: dict[str, Any] | None = None,
    ) -> ScreeningReport:
        job = self._jobs.load(job_path)
        load_errors: list[str] = []
        try:
            documents = self._documents.load(document_paths)
        except DocumentLoadError as exc:
            documents = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("documents.partial_load", errors=len(exc.errors))

        with self._session_factory(audit=audit_logger, **(session_options or {})) as session:
            batch = session.run(documents, job)
            registry = session.registry

            for alias in select:
                registry.select(registry.find_by_alias(alias).token)
            revealed: dict[str, PiiRecord] = {}
            for alias in reveal:
                revealed[alias] = registry.reveal(registry.find_by_alias(alias).token)

            shortlist = registry.export_selection() if (select or export_path) else []
            results = [
                {
                    "rank": rank,
                    "alias": candidate.alias,
                    "score": candidate.profile.score,
                    "band": score_band(candidate.profile.score),
                    "skills": list(candidate.profile.skills),
                    "summary": candidate.profile.summary,
                    "rationale": candidate.profile.rationale,
                    "selected": registry.is_selected(candidate.token),
                    "revealed": candidate.revealed,
                }
                for rank, candidate in enumerate(registry.candidates(), start=1)
            ]

        metadata = {
            "job_title": job.title,
            "summary": batch.summary,
            "document_count": batch.total,
            "candidate_count": batch.processed,
            "failures": [asdict(failure) for failure in batch.failures],
            "errors": load_errors,
            "timestamp": pendulum.now().to_iso8601_string(),
            "app_version": __version__,
        }
        self._writer.write(output_path, {"metadata": metadata, "results": results})
        if export_path is not None:
            self._writer.write_text(export_path, render_shortlist(shortlist, export_format))

        self._logger.info(
            "screening.completed",
            processed=batch.processed,
            total=batch.total,
            selected=len(shortlist),
            revealed=len(revealed),
        )
        return ScreeningReport(
            batch=batch,
            results=results,
            revealed=revealed,
            shortlist=shortlist,
            load_errors=load_errors,
        )
