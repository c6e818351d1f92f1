"""Shortlist rendering for download/export."""

from __future__ import annotations

import csv
import io
from typing import Literal, Sequence

from .core.selection import ShortlistEntry

ExportFormat = Literal["text", "csv"]
ScoreBand = Literal["high", "medium", "low"]

SHORTLIST_HEADER = "Hiring Assistant Shortlist:"


def score_band(score: int) -> ScoreBand:
    """Badge band used in comparison views."""
    if score >= 90:
        return "high"
    if score >= 75:
        return "medium"
    return "low"


def render_shortlist(entries: Sequence[ShortlistEntry], fmt: ExportFormat = "text") -> str:
    if fmt == "text":
        lines = [f"- {entry.label}: {entry.score}% Match" for entry in entries]
        return "\n".join([SHORTLIST_HEADER, "", *lines]) + "\n"
    if fmt == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["candidate", "score", "revealed"])
        for entry in entries:
            writer.writerow([entry.label, entry.score, "yes" if entry.revealed else "no"])
        return buffer.getvalue()
    raise ValueError(f"Unsupported export format: {fmt!r}")


__all__ = ["ExportFormat", "SHORTLIST_HEADER", "render_shortlist", "score_band"]
