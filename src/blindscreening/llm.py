"""Generative-language service client and the adapters built on it."""

from __future__ import annotations

import json
import re
from typing import Any
from urllib import error, request

import structlog
from pydantic import ValidationError

from .errors import ExtractionFailed, JobAnalysisFailed, LLMRequestError, ScoringFailed
from .schemas import ExtractedAttributes, JobProfile, PiiRecord, ProfessionalAttributes, ScoreResult

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

JOB_PROMPT = """Extract information from the following Job Description and return it as a JSON object with this exact structure:
{{
    "title": "Clear Job Title",
    "skills": ["Skill 1", "Skill 2"],
    "requirements": ["Requirement 1", "Requirement 2"],
    "responsibilities": ["Responsibility 1", "Responsibility 2"],
    "experience": "Brief summary of experience needed",
    "qualifications": "Brief summary of qualifications needed"
}}
Return ONLY the valid JSON object.

Job Description:
{text}
"""

RESUME_PROMPT = """Extract information from the following Resume/CV and return it as a JSON object with this exact structure:
{{
    "realName": "Full Name",
    "email": "Email address",
    "phone": "Phone number",
    "skills": ["Skill 1", "Skill 2"],
    "summary": "Brief professional summary extracted from the CV, without the candidate's name or contact details"
}}
Return ONLY the valid JSON object.

CV Content:
{text}
"""

FIT_PROMPT = """Act as an expert recruiter. Compare the following Job Description against the Candidate's Resume Summary.

Job Description:
{job}

Candidate Summary & Skills:
{profile}

Return a JSON object with:
{{
    "score": 0-100 integer,
    "justification": "One sentence explaining the score"
}}
Return ONLY valid JSON.
"""


def parse_json_reply(text: str) -> Any:
    """Decode a model reply, tolerating markdown code fences around the JSON."""
    cleaned = _FENCE_RE.sub("", text or "").strip()
    if not cleaned:
        raise LLMRequestError("empty model reply")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise LLMRequestError(f"model reply is not valid JSON ({exc.msg})") from None


class GenerativeClient:
    """Simple HTTP client for a generateContent-style API."""

    def __init__(
        self,
        endpoint: str | None = None,
        api_key: str | None = None,
        *,
        model: str = "gemini-2.5-flash",
        timeout: float = 30.0,
    ):
        self._endpoint = endpoint or f"{DEFAULT_BASE_URL}/{model}:generateContent"
        self._api_key = api_key
        self._timeout = timeout
        self._logger = structlog.get_logger(__name__)

    def generate(self, prompt: str) -> str:
        if not self._api_key:
            raise LLMRequestError("missing API key for the generative-language service")
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json", "x-goog-api-key": self._api_key}

        req = request.Request(self._endpoint, data=data, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self._timeout) as resp:
                body = json.loads(resp.read().decode("utf-8") or "{}")
        except error.HTTPError as exc:
            self._logger.warning("llm.request_failed", status=exc.code)
            raise LLMRequestError(f"service returned HTTP {exc.code}") from None
        except (error.URLError, TimeoutError) as exc:
            self._logger.warning("llm.request_failed", error=type(exc).__name__)
            raise LLMRequestError(f"service unreachable ({type(exc).__name__})") from None
        except json.JSONDecodeError:
            raise LLMRequestError("service returned a non-JSON body") from None

        try:
            return body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise LLMRequestError("service reply has no candidate text") from None

    def generate_json(self, prompt: str) -> Any:
        return parse_json_reply(self.generate(prompt))


class LLMAttributeExtractor:
    """Attribute extractor delegating to the generative-language service."""

    def __init__(self, client: GenerativeClient) -> None:
        self._client = client

    def extract(self, text: str) -> ExtractedAttributes:
        try:
            reply = self._client.generate_json(RESUME_PROMPT.format(text=text))
        except LLMRequestError as exc:
            raise ExtractionFailed(str(exc)) from None
        if not isinstance(reply, dict):
            raise ExtractionFailed("model reply is not a JSON object")
        skills = reply.get("skills") or []
        if not isinstance(skills, list):
            raise ExtractionFailed("model reply has malformed skills")
        return ExtractedAttributes(
            pii=PiiRecord(
                name=_optional_str(reply.get("realName") or reply.get("name")),
                email=_optional_str(reply.get("email")),
                phone=_optional_str(reply.get("phone")),
            ),
            skills=[str(skill) for skill in skills if skill],
            summary=str(reply.get("summary") or ""),
        )


class LLMScoringAdapter:
    """Scoring adapter asking the model for a 0-100 fit score."""

    def __init__(self, client: GenerativeClient) -> None:
        self._client = client

    def score(self, job: JobProfile, profile: ProfessionalAttributes) -> ScoreResult:
        prompt = FIT_PROMPT.format(
            job=json.dumps(job.describe(), ensure_ascii=False),
            profile=json.dumps(profile.model_dump(mode="json"), ensure_ascii=False),
        )
        try:
            reply = self._client.generate_json(prompt)
        except LLMRequestError as exc:
            raise ScoringFailed(str(exc)) from None
        if not isinstance(reply, dict):
            raise ScoringFailed("model reply is not a JSON object")
        try:
            return ScoreResult(
                value=reply.get("score"),
                rationale=str(reply.get("justification") or reply.get("rationale") or ""),
            )
        except ValidationError:
            raise ScoringFailed("model reply has no integer score in 0-100") from None


class LLMJobAnalyzer:
    """Turn job description text into a :class:`JobProfile`."""

    def __init__(self, client: GenerativeClient) -> None:
        self._client = client

    def analyze(self, text: str) -> JobProfile:
        if not text.strip():
            raise JobAnalysisFailed("job description is empty")
        try:
            reply = self._client.generate_json(JOB_PROMPT.format(text=text))
        except LLMRequestError as exc:
            raise JobAnalysisFailed(str(exc)) from None
        if not isinstance(reply, dict):
            raise JobAnalysisFailed("model reply is not a JSON object")
        try:
            return JobProfile(
                title=str(reply.get("title") or ""),
                required_skills=reply.get("skills") or [],
                experience=str(reply.get("experience") or ""),
                qualifications=str(reply.get("qualifications") or ""),
                requirements=reply.get("requirements") or [],
                responsibilities=reply.get("responsibilities") or [],
            )
        except ValidationError as exc:
            raise JobAnalysisFailed(f"model reply does not describe a job ({exc.error_count()} errors)") from None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
