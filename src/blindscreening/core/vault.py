"""Token-gated custody of candidate PII."""

from __future__ import annotations

import secrets
import threading

import structlog

from ..errors import UnknownToken
from ..schemas import PiiRecord, Token

TOKEN_BYTES = 16


class Vault:
    """Sole holder of PII records, addressed by opaque random tokens.

    Tokens come from :mod:`secrets` and carry no relation to the record they
    denote. A single lock guards the table; every operation is a dictionary
    lookup so the lock is never held for long.
    """

    def __init__(self, *, token_bytes: int = TOKEN_BYTES) -> None:
        if token_bytes < TOKEN_BYTES:
            raise ValueError(f"token_bytes must be at least {TOKEN_BYTES}")
        self._token_bytes = token_bytes
        self._records: dict[Token, PiiRecord] = {}
        self._lock = threading.Lock()
        self._logger = structlog.get_logger(__name__)

    def store(self, pii: PiiRecord) -> Token:
        with self._lock:
            token = Token(secrets.token_urlsafe(self._token_bytes))
            while token in self._records:
                token = Token(secrets.token_urlsafe(self._token_bytes))
            self._records[token] = pii
            return token

    def retrieve(self, token: Token) -> PiiRecord:
        with self._lock:
            try:
                return self._records[token]
            except KeyError:
                raise UnknownToken() from None

    def discard(self, token: Token) -> None:
        """Drop a token whose candidate was never assembled."""
        with self._lock:
            self._records.pop(token, None)

    def purge(self) -> int:
        with self._lock:
            count = len(self._records)
            self._records.clear()
        self._logger.info("vault.purged", records=count)
        return count

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
