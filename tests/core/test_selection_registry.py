from __future__ import annotations

import pytest

from blindscreening.core import SelectionRegistry, ShortlistEntry, Vault
from blindscreening.errors import AlreadyRevealed, UnknownCandidate, UnknownToken
from blindscreening.schemas import HiddenCandidate, PiiRecord, ProfessionalProfile, RevealedCandidate, Token


class MemoryAudit:
    def __init__(self) -> None:
        self.records: list[dict] = []

    def append(self, record: dict) -> None:
        self.records.append(record)


def build_registry(scores: list[int], audit: MemoryAudit | None = None) -> tuple[SelectionRegistry, Vault, list[HiddenCandidate]]:
    vault = Vault()
    candidates: list[HiddenCandidate] = []
    for index, score in enumerate(scores):
        pii = PiiRecord(
            name=f"Real Name {index}",
            email=f"person{index}@example.com",
            phone=None,
            document_id=f"doc-{index:03d}",
        )
        candidates.append(
            HiddenCandidate(
                token=vault.store(pii),
                alias=f"Candidate {chr(ord('A') + index)}",
                profile=ProfessionalProfile(skills=("Go",), summary="", score=score, rationale=""),
            )
        )
    return SelectionRegistry(vault, candidates, audit=audit), vault, candidates


def test_initial_state_is_unselected_and_hidden():
    registry, _, candidates = build_registry([90, 70])

    for candidate in candidates:
        assert registry.is_selected(candidate.token) is False
        assert registry.is_revealed(candidate.token) is False
    assert registry.selection_count == 0
    assert registry.export_selection() == []


def test_select_and_deselect_are_idempotent():
    registry, _, candidates = build_registry([90, 70])
    token = candidates[0].token

    registry.select(token)
    registry.select(token)
    assert registry.selection_count == 1
    assert registry.selected_tokens() == [token]

    registry.deselect(token)
    registry.deselect(token)
    assert registry.selection_count == 0
    assert registry.is_selected(token) is False


def test_unknown_candidate_is_reported_not_crashing():
    registry, _, _ = build_registry([90])
    stale = Token("not-a-real-token")

    for operation in (registry.select, registry.deselect, registry.reveal, registry.get):
        with pytest.raises(UnknownCandidate):
            operation(stale)
    with pytest.raises(UnknownCandidate):
        registry.find_by_alias("Candidate Z")


def test_reveal_is_monotonic_and_repeatable():
    registry, vault, candidates = build_registry([90])
    token = candidates[0].token

    first = registry.reveal(token)
    second = registry.reveal(token)

    assert first == second == vault.retrieve(token)
    assert registry.is_revealed(token) is True
    revealed = registry.get(token)
    assert isinstance(revealed, RevealedCandidate)
    assert revealed.pii.name == "Real Name 0"

    registry.select(token)
    registry.deselect(token)
    assert registry.is_revealed(token) is True


def test_strict_reveal_raises_already_revealed():
    registry, _, candidates = build_registry([90])
    token = candidates[0].token
    registry.reveal(token)

    with pytest.raises(AlreadyRevealed):
        registry.reveal(token, strict=True)
    assert registry.is_revealed(token) is True


def test_reveal_propagates_unknown_token_after_purge():
    registry, vault, candidates = build_registry([90])
    vault.purge()

    with pytest.raises(UnknownToken):
        registry.reveal(candidates[0].token)
    assert registry.is_revealed(candidates[0].token) is False


def test_selection_and_reveal_are_independent():
    registry, _, candidates = build_registry([90, 80])
    registry.reveal(candidates[1].token)

    assert registry.is_selected(candidates[1].token) is False
    assert registry.export_selection() == []


def test_export_lists_identity_only_for_revealed_candidates():
    registry, _, candidates = build_registry([95, 80, 60])
    registry.select(candidates[2].token)
    registry.select(candidates[0].token)
    registry.reveal(candidates[0].token)

    entries = registry.export_selection()

    assert entries == [
        ShortlistEntry(label="Real Name 0", score=95, revealed=True),
        ShortlistEntry(label="Candidate C", score=60, revealed=False),
    ]
    # export never reveals
    assert registry.is_revealed(candidates[2].token) is False


def test_revealed_candidate_without_name_keeps_alias():
    vault = Vault()
    token = vault.store(PiiRecord(name=None, email="anon@example.com", document_id="doc-001"))
    candidate = HiddenCandidate(
        token=token,
        alias="Candidate A",
        profile=ProfessionalProfile(score=77),
    )
    registry = SelectionRegistry(vault, [candidate])
    registry.select(token)
    registry.reveal(token)

    [entry] = registry.export_selection()
    assert entry.label == "Candidate A (name not provided)"
    assert "anon@example.com" not in entry.label


def test_audit_records_actions_without_pii_or_tokens():
    audit = MemoryAudit()
    registry, _, candidates = build_registry([90], audit=audit)
    token = candidates[0].token

    registry.select(token)
    registry.reveal(token)
    registry.reveal(token)
    registry.export_selection()

    assert [record["action"] for record in audit.records] == ["select", "reveal", "reveal_repeated", "export"]
    assert audit.records[0]["alias"] == "Candidate A"
    rendered = repr(audit.records)
    assert token not in rendered
    assert "Real Name" not in rendered
    assert "person0@example.com" not in rendered


def test_registry_rejects_revealed_input():
    vault = Vault()
    token = vault.store(PiiRecord(name="X Y"))
    revealed = HiddenCandidate(token=token, alias="Candidate A", profile=ProfessionalProfile(score=1)).with_identity(
        vault.retrieve(token)
    )
    with pytest.raises(ValueError):
        SelectionRegistry(vault, [revealed])
