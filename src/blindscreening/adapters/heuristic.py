"""Offline attribute extraction from resume text using simple rules."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from ..errors import ExtractionFailed
from ..schemas import ExtractedAttributes, PiiRecord

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"(?<![\w+])\+?\d[\d \t().-]{5,}\d(?![\w])")
YEAR_RANGE_RE = re.compile(r"^\d{4}\s*[-–]\s*\d{4}$")
NAME_WORD_RE = re.compile(r"[^\W\d_](?:[^\W\d_]|['’.-])*")
HEADING_RE = re.compile(r"^#{1,6}\s*|^\*\*|\*\*$|:$")
BULLET_RE = re.compile(r"^[-*•·]\s?")

SUMMARY_HEADINGS = {"summary", "profile", "professional summary", "about", "about me", "objective"}
SKILL_HEADINGS = {"skills", "technical skills", "core skills", "key skills", "competencies"}
SECTION_WORDS = SUMMARY_HEADINGS | SKILL_HEADINGS | {
    "experience",
    "work experience",
    "employment",
    "education",
    "projects",
    "certifications",
    "languages",
    "contact",
    "references",
}

DEFAULT_SKILL_VOCABULARY: tuple[str, ...] = (
    "Python",
    "Go",
    "Java",
    "JavaScript",
    "TypeScript",
    "C++",
    "C#",
    "Rust",
    "SQL",
    "PostgreSQL",
    "MySQL",
    "MongoDB",
    "Redis",
    "React",
    "Node.js",
    "Django",
    "Flask",
    "FastAPI",
    "AWS",
    "GCP",
    "Azure",
    "Docker",
    "Kubernetes",
    "Terraform",
    "Linux",
    "Git",
    "Machine Learning",
    "Data Analysis",
    "Project Management",
    "Agile",
    "Scrum",
    "Communication",
    "Leadership",
    "Teamwork",
)

NAME_PARTICLES = {
    "al",
    "bin",
    "binti",
    "da",
    "das",
    "de",
    "del",
    "della",
    "den",
    "der",
    "di",
    "do",
    "dos",
    "du",
    "el",
    "ibn",
    "la",
    "le",
    "ter",
    "van",
    "von",
    "y",
    "zu",
}

SUMMARY_MAX_CHARS = 600
# Header lines shorter than this only reach the summary when they name a skill.
HEADER_PROSE_WORDS = 6


class HeuristicAttributeExtractor:
    """Rule-based extractor for plain resume text.

    Identity comes from the first lines of the document (name) and anywhere
    in the text (email, phone). Skills are matched against a vocabulary. The
    summary is built from lines that carry no identity data.
    """

    def __init__(self, *, skill_vocabulary: Sequence[str] | None = None, header_lines: int = 5) -> None:
        self._vocabulary = list(skill_vocabulary or DEFAULT_SKILL_VOCABULARY)
        self._skill_patterns = [(skill, _skill_pattern(skill)) for skill in self._vocabulary]
        self._header_lines = header_lines

    def extract(self, text: str) -> ExtractedAttributes:
        lines = [line.strip() for line in text.splitlines()]
        content = [line for line in lines if line]
        if not content:
            raise ExtractionFailed("document contains no extractable text")

        email_match = EMAIL_RE.search(text)
        phone = _find_phone(EMAIL_RE.sub(" ", text))
        name = self._find_name(content)

        pii = PiiRecord(
            name=name,
            email=email_match.group(0) if email_match else None,
            phone=phone,
        )
        identities = pii.identity_strings()

        return ExtractedAttributes(
            pii=pii,
            skills=self._find_skills(text),
            summary=self._build_summary(content, identities),
        )

    def _find_name(self, content: Sequence[str]) -> str | None:
        for line in content[: self._header_lines]:
            cleaned = _strip_markup(line)
            if cleaned.casefold() in SECTION_WORDS:
                continue
            if EMAIL_RE.search(cleaned) or any(char.isdigit() for char in cleaned):
                continue
            if _looks_like_name(cleaned):
                return cleaned
        return None

    def _find_skills(self, text: str) -> list[str]:
        return [skill for skill, pattern in self._skill_patterns if pattern.search(text)]

    def _header_indexes(self, content: Sequence[str]) -> set[int]:
        """Positions of the leading lines before the first section heading."""
        header: set[int] = set()
        for index, line in enumerate(content):
            if len(header) >= self._header_lines or _strip_markup(line).casefold() in SECTION_WORDS:
                break
            header.add(index)
        return header

    def _is_professional(self, text: str) -> bool:
        if _looks_like_name(text):
            return False
        if any(pattern.search(text) for _, pattern in self._skill_patterns):
            return True
        return len(text.split()) >= HEADER_PROSE_WORDS

    def _build_summary(self, content: Sequence[str], identities: Iterable[str]) -> str:
        identity_patterns = [_word_pattern(identity) for identity in identities if identity]
        header = self._header_indexes(content)
        sections = _sections(content)
        preferred = next((sections[key] for key in sections if key in SUMMARY_HEADINGS), None)
        candidates = preferred if preferred else [item for items in sections.values() for item in items]

        kept: list[str] = []
        length = 0
        for index, line in candidates:
            text = _strip_markup(line)
            if not text or text.casefold() in SECTION_WORDS:
                continue
            if any(pattern.search(text) for pattern in identity_patterns):
                continue
            if EMAIL_RE.search(text) or _find_phone(text):
                continue
            if index in header and not self._is_professional(text):
                continue
            kept.append(text)
            length += len(text) + 1
            if length >= SUMMARY_MAX_CHARS:
                break
        return " ".join(kept)[:SUMMARY_MAX_CHARS].strip()


def _sections(content: Sequence[str]) -> dict[str, list[tuple[int, str]]]:
    sections: dict[str, list[tuple[int, str]]] = {"": []}
    current = ""
    for index, line in enumerate(content):
        heading = _strip_markup(line).casefold()
        if heading in SECTION_WORDS:
            current = heading
            sections.setdefault(current, [])
            continue
        sections[current].append((index, line))
    return sections


def _looks_like_name(line: str) -> bool:
    """Two to six capitalised words, lowercase particles allowed in between."""
    words = line.split()
    if not 2 <= len(words) <= 6:
        return False
    for position, word in enumerate(words):
        if not NAME_WORD_RE.fullmatch(word):
            return False
        inner = 0 < position < len(words) - 1
        if word[0].isupper():
            continue
        if not (inner and word in NAME_PARTICLES):
            return False
    return True


def _word_pattern(value: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(value)}(?!\w)", re.IGNORECASE)


def _strip_markup(line: str) -> str:
    line = BULLET_RE.sub("", line.strip())
    return HEADING_RE.sub("", line).strip().strip("*").strip()


def _find_phone(text: str) -> str | None:
    for match in PHONE_RE.finditer(text):
        value = match.group(0).strip()
        digits = sum(char.isdigit() for char in value)
        if 7 <= digits <= 15 and not YEAR_RANGE_RE.match(value):
            return value
    return None


def _skill_pattern(skill: str) -> re.Pattern[str]:
    # Short names such as "Go" or "SQL" only match as written.
    flags = re.IGNORECASE if len(skill) > 3 else 0
    return re.compile(rf"(?<![\w+#.]){re.escape(skill)}(?![\w+#])", flags)
