"""Reviewer selection and reveal state over anonymized candidates."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

import pendulum
import structlog

from ..errors import AlreadyRevealed, UnknownCandidate
from ..schemas import Candidate, HiddenCandidate, PiiRecord, RevealedCandidate, Token
from .vault import Vault


class AuditSink(Protocol):
    def append(self, record: dict) -> None: ...


@dataclass(slots=True, frozen=True)
class ShortlistEntry:
    """One exported line: real name for revealed candidates, alias otherwise."""

    label: str
    score: int
    revealed: bool


class SelectionRegistry:
    """Tracks selected and revealed candidates of one batch.

    Selection and reveal are independent. Selection toggles freely; reveal is
    one-way and replaces the hidden variant of a candidate with its revealed
    variant. Identity is only ever obtained through :meth:`reveal`.
    """

    def __init__(
        self,
        vault: Vault,
        candidates: Iterable[HiddenCandidate],
        *,
        audit: AuditSink | None = None,
    ) -> None:
        self._vault = vault
        self._order: list[Token] = []
        self._candidates: dict[Token, Candidate] = {}
        for candidate in candidates:
            if candidate.revealed:
                raise ValueError("registry must start from hidden candidates")
            self._order.append(candidate.token)
            self._candidates[candidate.token] = candidate
        self._selected: set[Token] = set()
        self._audit = audit
        self._lock = threading.Lock()
        self._logger = structlog.get_logger(__name__)

    # queries -------------------------------------------------------------

    def candidates(self) -> list[Candidate]:
        """All candidates in ranking order."""
        with self._lock:
            return [self._candidates[token] for token in self._order]

    def get(self, token: Token) -> Candidate:
        with self._lock:
            return self._lookup(token)

    def find_by_alias(self, alias: str) -> Candidate:
        with self._lock:
            for token in self._order:
                candidate = self._candidates[token]
                if candidate.alias == alias:
                    return candidate
        raise UnknownCandidate()

    def is_selected(self, token: Token) -> bool:
        with self._lock:
            self._lookup(token)
            return token in self._selected

    def is_revealed(self, token: Token) -> bool:
        with self._lock:
            return self._lookup(token).revealed

    def selected_tokens(self) -> list[Token]:
        with self._lock:
            return [token for token in self._order if token in self._selected]

    @property
    def selection_count(self) -> int:
        with self._lock:
            return len(self._selected)

    # transitions ---------------------------------------------------------

    def select(self, token: Token) -> None:
        with self._lock:
            candidate = self._lookup(token)
            self._selected.add(token)
        self._record("select", candidate.alias)

    def deselect(self, token: Token) -> None:
        with self._lock:
            candidate = self._lookup(token)
            self._selected.discard(token)
        self._record("deselect", candidate.alias)

    def reveal(self, token: Token, *, strict: bool = False) -> PiiRecord:
        """Expose a candidate's identity.

        Repeated reveals return the same record unless ``strict`` is set, in
        which case ``AlreadyRevealed`` is raised. ``UnknownToken`` from the
        vault propagates unchanged.
        """
        with self._lock:
            candidate = self._lookup(token)
        if isinstance(candidate, RevealedCandidate):
            if strict:
                raise AlreadyRevealed(candidate.alias)
            self._record("reveal_repeated", candidate.alias)
            return candidate.pii

        pii = self._vault.retrieve(token)
        with self._lock:
            current = self._candidates[token]
            if isinstance(current, HiddenCandidate):
                current = current.with_identity(pii)
                self._candidates[token] = current
        self._record("reveal", current.alias)
        self._logger.info("selection.revealed", alias=current.alias)
        return current.pii

    def export_selection(self) -> list[ShortlistEntry]:
        """Selected candidates in ranking order.

        Revealed candidates are listed by identity, hidden ones by alias.
        Export never reveals anyone.
        """
        entries: list[ShortlistEntry] = []
        with self._lock:
            for token in self._order:
                if token not in self._selected:
                    continue
                candidate = self._candidates[token]
                if isinstance(candidate, RevealedCandidate):
                    entries.append(ShortlistEntry(candidate.label, candidate.profile.score, True))
                else:
                    entries.append(ShortlistEntry(candidate.alias, candidate.profile.score, False))
        self._record("export", None, entries=len(entries))
        return entries

    def clear(self) -> None:
        with self._lock:
            self._order.clear()
            self._candidates.clear()
            self._selected.clear()

    # internals -----------------------------------------------------------

    def _lookup(self, token: Token) -> Candidate:
        try:
            return self._candidates[token]
        except KeyError:
            raise UnknownCandidate() from None

    def _record(self, action: str, alias: str | None, **extra: Any) -> None:
        self._logger.debug("selection.action", action=action, alias=alias, **extra)
        if self._audit is None:
            return
        record: dict[str, Any] = {
            "action": action,
            "alias": alias,
            "timestamp": pendulum.now("UTC").to_iso8601_string(),
        }
        record.update(extra)
        self._audit.append(record)
