"""Raw document to normalized text."""

from __future__ import annotations

import io
import re
import unicodedata

import docx

from ..errors import ExtractionFailed
from ..pdf_utils import extract_markdown
from ..schemas import Document

SUPPORTED_SUFFIXES: tuple[str, ...] = (".pdf", ".docx", ".txt", ".md")

MAX_TEXT_CHARS = 50_000

_INLINE_SPACE_RE = re.compile(r"[ \t\u00a0]+")
_BLANK_RUN_RE = re.compile(r"\n\s*\n(?:\s*\n)+")


def extract_text(document: Document) -> str:
    """Return normalized text for a PDF, DOCX or plain-text document.

    Raises ``ExtractionFailed`` for unsupported formats, unreadable content
    and documents without any text.
    """
    suffix = document.suffix
    if suffix not in SUPPORTED_SUFFIXES:
        raise ExtractionFailed(f"unsupported document format '{suffix or 'none'}'")

    try:
        if suffix == ".pdf":
            raw = extract_markdown(document.content)
        elif suffix == ".docx":
            raw = _docx_text(document.content)
        else:
            raw = _decode(document.content)
    except ExtractionFailed:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ExtractionFailed(f"could not read {suffix} content ({type(exc).__name__})") from None

    text = normalize_text(raw)
    if not text:
        raise ExtractionFailed("document contains no extractable text")
    return text


def normalize_text(text: str, *, max_chars: int = MAX_TEXT_CHARS) -> str:
    text = unicodedata.normalize("NFC", text or "")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _INLINE_SPACE_RE.sub(" ", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    text = "\n".join(line.strip() for line in text.split("\n")).strip()
    if len(text) > max_chars:
        text = text[:max_chars]
    return text


def _docx_text(content: bytes) -> str:
    parsed = docx.Document(io.BytesIO(content))
    parts = [paragraph.text for paragraph in parsed.paragraphs if paragraph.text.strip()]
    for table in parsed.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def _decode(content: bytes) -> str:
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ExtractionFailed("text document is not valid UTF-8 or CP-1252")
