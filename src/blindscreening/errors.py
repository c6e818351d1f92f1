"""Error taxonomy for vault, pipeline and selection failures.

Messages never carry PII or token values.
"""

from __future__ import annotations


class ScreeningError(Exception):
    """Base class for all screening errors."""


class UnknownToken(ScreeningError, LookupError):
    """Raised when a token was never issued by the vault or has been purged."""

    def __init__(self) -> None:
        super().__init__("Token is not known to this vault")


class UnknownCandidate(ScreeningError, LookupError):
    """Raised when the selection registry has no candidate for a token."""

    def __init__(self) -> None:
        super().__init__("No candidate is registered for this token")


class AlreadyRevealed(ScreeningError):
    """Raised by strict reveals of a candidate that is already revealed."""

    def __init__(self, alias: str) -> None:
        super().__init__(f"{alias} has already been revealed")
        self.alias = alias


class DocumentProcessingError(ScreeningError):
    """Per-document failure, recoverable by excluding the document."""

    stage = "processing"

    def __init__(self, reason: str, *, stage: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        if stage is not None:
            self.stage = stage


class ExtractionFailed(DocumentProcessingError):
    stage = "extraction"


class ScoringFailed(DocumentProcessingError):
    stage = "scoring"


class AdapterTimeout(DocumentProcessingError):
    """An adapter call exceeded the per-document timeout."""

    def __init__(self, stage: str, timeout: float) -> None:
        super().__init__(f"{stage} timed out after {timeout:g}s", stage=stage)
        self.timeout = timeout


class JobAnalysisFailed(ScreeningError):
    """Raised when a job description cannot be turned into a JobProfile."""


class DocumentLoadError(ValueError):
    """Raised when document loading encounters unreadable inputs."""

    def __init__(self, errors: list[str], partial: list):
        super().__init__("Document loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Document loading failed: {self.errors}"


class LLMRequestError(ScreeningError):
    """Raised when the generative-language service call or its JSON reply fails."""
