"""Typer CLI entrypoint for anonymized candidate screening."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import ValidationError

from .adapters import extract_text
from .container import create_container
from .errors import ScreeningError
from .logging import configure_logging
from .pipeline import AuditLogger, OutputWriter
from .schemas import Document
from .schemas.config import load_config_file

app = typer.Typer(help="Blind candidate screening CLI.")


def _load_settings(config: Optional[Path]) -> dict[str, Any]:
    if not config:
        return {}
    try:
        app_config = load_config_file(config)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid config: {exc.error_count()} errors", param_name="config") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc
    return app_config.to_settings()


@app.command()
def run(
    documents: List[Path] = typer.Option(..., "--documents", "-d", exists=True, readable=True, help="Candidate documents or directories."),
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job profile JSON path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path (anonymized results only).",
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
    select: List[str] = typer.Option([], "--select", help="Alias to add to the shortlist (repeatable)."),
    reveal: List[str] = typer.Option([], "--reveal", help="Alias whose identity to reveal (repeatable)."),
    export: Optional[Path] = typer.Option(None, dir_okay=False, help="Shortlist export path."),
    export_format: str = typer.Option("text", help="Shortlist format: text or csv."),
    workers: Optional[int] = typer.Option(None, min=1, help="Concurrent documents."),
    timeout: Optional[float] = typer.Option(None, min=0.1, help="Per-document timeout in seconds."),
) -> None:
    """Screen candidate documents against a job profile."""
    if export_format not in ("text", "csv"):
        raise typer.BadParameter("Export format must be 'text' or 'csv'", param_name="export_format")
    settings = _load_settings(config)

    configure_logging(log_level)

    container = create_container(settings=settings)
    pipeline = container.pipeline()
    audit_logger = AuditLogger(audit_log) if audit_log else None
    session_options: dict[str, Any] = {}
    if workers is not None:
        session_options["max_workers"] = workers
    if timeout is not None:
        session_options["document_timeout"] = timeout

    try:
        report = pipeline.run(
            document_paths=documents,
            job_path=job,
            output_path=output,
            audit_logger=audit_logger,
            select=select,
            reveal=reveal,
            export_path=export,
            export_format=export_format,  # type: ignore[arg-type]
            session_options=session_options,
        )
    except (ScreeningError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"{report.batch.summary}. Results saved to {output}.")
    for failure in report.batch.failures:
        typer.echo(f"  failed {failure.document_id} ({failure.stage}): {failure.reason}")
    for alias, pii in report.revealed.items():
        contact = ", ".join(value for value in (pii.email, pii.phone) if value)
        line = f"Revealed {alias}: {pii.name or '(name not provided)'}" + (f" <{contact}>" if contact else "")
        if pii.source_file:
            line += f" [{pii.source_file}]"
        typer.echo(line)
    if export:
        typer.echo(f"Shortlist of {len(report.shortlist)} exported to {export}.")


@app.command("analyze-job")
def analyze_job(
    job_document: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job description document."),
    output: Path = typer.Option(..., dir_okay=False, resolve_path=True, help="Job profile JSON output path."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Turn a job description into a job profile JSON."""
    settings = _load_settings(config)
    configure_logging(log_level)

    container = create_container(settings=settings)
    analyzer = container.job_analyzer()
    try:
        text = extract_text(Document.from_path(job_document))
        profile = analyzer.analyze(text)
    except ScreeningError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    OutputWriter().write(output, profile.describe())
    typer.echo(f"Job profile '{profile.title}' saved to {output}.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
