from __future__ import annotations

import asyncio
from typing import Any

import pytest

from blindscreening.core import CandidatePipeline, SelectionRegistry, Vault, alias_for_index
from blindscreening.errors import ExtractionFailed, ScoringFailed
from blindscreening.schemas import (
    Document,
    ExtractedAttributes,
    HiddenCandidate,
    JobProfile,
    PiiRecord,
    ProfessionalAttributes,
)


def build_document(document_id: str) -> Document:
    return Document(document_id=document_id, filename=f"{document_id.lower()}.txt", content=b"resume")


def build_extraction(document_id: str, *, name: str | None = None, summary: str | None = None) -> ExtractedAttributes:
    name = name or f"Person {document_id}"
    return ExtractedAttributes(
        pii=PiiRecord(name=name, email=f"{document_id.lower()}@example.com", phone="+1 555 0100"),
        skills=["Go", "SQL"],
        summary=summary or f"profile {document_id}",
    )


class StubExtractor:
    def __init__(self, outcomes: dict[str, Any]):
        self._outcomes = outcomes
        self.calls: list[str] = []

    def extract(self, document: Document) -> Any:
        self.calls.append(document.document_id)
        outcome = self._outcomes[document.document_id]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class StubScorer:
    """Scores keyed by the profile summary."""

    def __init__(self, scores: dict[str, Any]):
        self._scores = scores
        self.profiles: list[ProfessionalAttributes] = []

    def score(self, job: JobProfile, profile: ProfessionalAttributes) -> Any:
        self.profiles.append(profile)
        outcome = self._scores[profile.summary]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, dict):
            return outcome
        return {"value": outcome, "rationale": f"scored {outcome}"}


class AsyncStubScorer(StubScorer):
    def __init__(self, scores: dict[str, Any], delays: dict[str, float]):
        super().__init__(scores)
        self._delays = delays
        self.active = 0
        self.peak = 0

    async def score(self, job: JobProfile, profile: ProfessionalAttributes) -> Any:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self._delays.get(profile.summary, 0.0))
            return StubScorer.score(self, job, profile)
        finally:
            self.active -= 1


JOB = JobProfile(title="Backend Engineer", required_skills=["Go", "SQL"])


def build_pipeline(vault: Vault, extractor: Any, scorer: Any, **kwargs: Any) -> CandidatePipeline:
    return CandidatePipeline(vault=vault, extractor=extractor, scorer=scorer, **kwargs)


def test_alias_for_index_is_bijective_base26():
    assert alias_for_index(0) == "Candidate A"
    assert alias_for_index(25) == "Candidate Z"
    assert alias_for_index(26) == "Candidate AA"
    assert alias_for_index(27, "Applicant") == "Applicant AB"


def test_ranks_by_score_then_submission_order():
    ids = ["D1", "D2", "D3"]
    vault = Vault()
    extractor = StubExtractor({doc_id: build_extraction(doc_id) for doc_id in ids})
    scorer = StubScorer({"profile D1": 80, "profile D2": 95, "profile D3": 80})

    result = build_pipeline(vault, extractor, scorer).run([build_document(i) for i in ids], JOB)

    assert [candidate.alias for candidate in result.candidates] == ["Candidate B", "Candidate A", "Candidate C"]
    assert [candidate.profile.score for candidate in result.candidates] == [95, 80, 80]
    assert [vault.retrieve(c.token).document_id for c in result.candidates] == ["D2", "D1", "D3"]
    assert result.summary == "3 of 3 documents processed"


def test_failures_are_isolated_and_reported_in_input_order():
    ids = ["D1", "D2", "D3", "D4", "D5"]
    vault = Vault()
    extractor = StubExtractor(
        {
            "D1": build_extraction("D1"),
            "D2": ExtractionFailed("no text layer"),
            "D3": build_extraction("D3"),
            "D4": build_extraction("D4"),
            "D5": RuntimeError("parser crashed on Person D5"),
        }
    )
    scorer = StubScorer(
        {
            "profile D1": 70,
            "profile D3": ScoringFailed("model refused"),
            "profile D4": {"value": 150, "rationale": "out of range"},
        }
    )

    result = build_pipeline(vault, extractor, scorer).run([build_document(i) for i in ids], JOB)

    assert result.total == 5
    assert result.processed == 1
    assert [c.alias for c in result.candidates] == ["Candidate A"]
    assert [(f.document_id, f.stage) for f in result.failures] == [
        ("D2", "extraction"),
        ("D3", "scoring"),
        ("D4", "scoring"),
        ("D5", "extraction"),
    ]
    assert result.failures[0].reason == "no text layer"
    assert result.failures[2].reason.startswith("malformed score result")
    assert result.failures[3].reason == "unexpected RuntimeError"
    assert all("Person" not in failure.reason for failure in result.failures)
    # tokens issued before a scoring failure are rolled back
    assert len(vault) == 1


def test_extraction_result_mapping_is_validated():
    vault = Vault()
    extractor = StubExtractor(
        {
            "D1": {"pii": {"name": "Ann Lee"}, "skills": ["Go"], "summary": "profile D1"},
            "D2": {"skills": ["Go"], "summary": "profile D2"},
        }
    )
    scorer = StubScorer({"profile D1": 60})

    result = build_pipeline(vault, extractor, scorer).run([build_document("D1"), build_document("D2")], JOB)

    assert result.processed == 1
    assert result.failures[0].document_id == "D2"
    assert result.failures[0].stage == "extraction"
    assert result.failures[0].reason.startswith("malformed extraction result")


def test_candidates_carry_no_pii_and_summary_is_scrubbed():
    vault = Vault()
    extraction = build_extraction(
        "D1",
        name="Jane Roe",
        summary="Jane Roe builds Go services; reach jane at d1@example.com",
    )
    extractor = StubExtractor({"D1": extraction})

    class EchoScorer:
        def __init__(self) -> None:
            self.seen: list[ProfessionalAttributes] = []

        def score(self, job: JobProfile, profile: ProfessionalAttributes) -> dict:
            self.seen.append(profile)
            return {"value": 88, "rationale": "ok"}

    scorer = EchoScorer()
    result = build_pipeline(vault, extractor, scorer).run([build_document("D1")], JOB)

    candidate = result.candidates[0]
    assert isinstance(candidate, HiddenCandidate)
    assert not candidate.revealed
    assert not hasattr(candidate, "pii")
    dumped = candidate.model_dump_json()
    assert "Jane Roe" not in dumped
    assert "d1@example.com" not in dumped
    assert scorer.seen[0].summary == "[redacted] builds Go services; reach jane at [redacted]"
    assert vault.retrieve(candidate.token).document_id == "D1"


def test_document_timeout_is_a_per_document_failure():
    vault = Vault()

    class SlowExtractor(StubExtractor):
        async def extract(self, document: Document) -> Any:
            if document.document_id == "D2":
                await asyncio.sleep(5)
            return StubExtractor.extract(self, document)

    extractor = SlowExtractor({"D1": build_extraction("D1"), "D2": build_extraction("D2")})
    scorer = StubScorer({"profile D1": 50, "profile D2": 90})

    result = build_pipeline(vault, extractor, scorer, document_timeout=0.1).run(
        [build_document("D1"), build_document("D2")], JOB
    )

    assert [c.alias for c in result.candidates] == ["Candidate A"]
    assert result.failures[0].document_id == "D2"
    assert result.failures[0].stage == "extraction"
    assert "timed out" in result.failures[0].reason


def test_scoring_timeout_discards_issued_token():
    vault = Vault()
    extractor = StubExtractor({"D1": build_extraction("D1")})
    scorer = AsyncStubScorer({"profile D1": 90}, delays={"profile D1": 5})

    result = build_pipeline(vault, extractor, scorer, document_timeout=0.1).run([build_document("D1")], JOB)

    assert result.processed == 0
    assert result.failures[0].stage == "scoring"
    assert len(vault) == 0


def test_worker_count_does_not_change_ranking():
    ids = [f"D{n}" for n in range(1, 9)]
    scores = {f"profile D{n}": value for n, value in zip(range(1, 9), [70, 90, 70, 55, 90, 100, 55, 70])}
    delays = {f"profile D{n}": 0.01 * ((9 - n) % 4) for n in range(1, 9)}

    def ranking(workers: int) -> list[tuple[str, int, tuple[str, ...]]]:
        vault = Vault()
        extractor = StubExtractor({doc_id: build_extraction(doc_id) for doc_id in ids})
        scorer = AsyncStubScorer(scores, delays)
        result = build_pipeline(vault, extractor, scorer, max_workers=workers).run(
            [build_document(i) for i in ids], JOB
        )
        assert scorer.peak <= workers
        return [(c.alias, c.profile.score, c.profile.skills) for c in result.candidates]

    sequential = ranking(1)
    assert sequential == ranking(4)
    assert [alias for alias, _, _ in sequential[:3]] == ["Candidate F", "Candidate B", "Candidate E"]


def test_cancelling_batch_leaves_no_orphan_tokens():
    vault = Vault()
    blocker = asyncio.Event()

    class BlockingExtractor(StubExtractor):
        async def extract(self, document: Document) -> Any:
            if document.document_id == "D3":
                await blocker.wait()
            return StubExtractor.extract(self, document)

    extractor = BlockingExtractor({doc_id: build_extraction(doc_id) for doc_id in ("D1", "D2", "D3")})
    scorer = AsyncStubScorer({"profile D1": 60, "profile D2": 70, "profile D3": 80}, delays={})
    pipeline = build_pipeline(vault, extractor, scorer, max_workers=3, document_timeout=None)

    async def scenario() -> None:
        task = asyncio.create_task(
            pipeline.process([build_document("D1"), build_document("D2"), build_document("D3")], JOB)
        )
        for _ in range(200):
            if len(vault) >= 2 and scorer.active == 0:
                break
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.05)
        assert len(vault) == 2
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert len(vault) == 0


def test_rejects_invalid_pool_settings():
    with pytest.raises(ValueError):
        CandidatePipeline(vault=Vault(), extractor=None, scorer=None, max_workers=0)
    with pytest.raises(ValueError):
        CandidatePipeline(vault=Vault(), extractor=None, scorer=None, document_timeout=0)


class CapturingScorer:
    def __init__(self) -> None:
        self.seen: list[ProfessionalAttributes] = []

    def score(self, job: JobProfile, profile: ProfessionalAttributes) -> dict:
        self.seen.append(profile)
        return {"value": 70, "rationale": "ok"}


def test_identity_scrub_only_masks_whole_words():
    extraction = ExtractedAttributes(
        pii=PiiRecord(name="Li", email="li@example.com"),
        skills=["Linux", "Go", "Li"],
        summary="Linux kernel and Go libraries, work led by Li.",
    )
    scorer = CapturingScorer()

    result = build_pipeline(Vault(), StubExtractor({"D1": extraction}), scorer).run([build_document("D1")], JOB)

    assert result.processed == 1
    assert scorer.seen[0].skills == ("Linux", "Go")
    assert scorer.seen[0].summary == "Linux kernel and Go libraries, work led by [redacted]."
    assert result.candidates[0].profile.skills == ("Linux", "Go")


def test_source_file_is_kept_in_vault_until_reveal():
    vault = Vault()
    result = build_pipeline(vault, StubExtractor({"D1": build_extraction("D1")}), CapturingScorer()).run(
        [build_document("D1")], JOB
    )

    candidate = result.candidates[0]
    assert "d1.txt" not in candidate.model_dump_json()
    assert vault.retrieve(candidate.token).source_file == "d1.txt"

    registry = SelectionRegistry(vault, result.candidates)
    assert registry.reveal(candidate.token).source_file == "d1.txt"


def test_timeout_raised_by_adapter_is_not_a_deadline_failure():
    extractor = StubExtractor({"D1": TimeoutError("upstream gave up")})

    result = build_pipeline(Vault(), extractor, CapturingScorer(), document_timeout=5).run(
        [build_document("D1")], JOB
    )

    failure = result.failures[0]
    assert failure.stage == "extraction"
    assert failure.reason == "unexpected TimeoutError"
