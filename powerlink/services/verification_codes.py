"""Keyed verification-code store with expiry, injected into password reset."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from powerlink.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredCode:
    code: str
    issued_at: datetime


class VerificationCodeStore(Protocol):
    """Storage for one pending verification code per key (email)."""

    def put(self, key: str, code: str) -> None: ...

    def get(self, key: str) -> str | None: ...

    def discard(self, key: str) -> None: ...


class InMemoryVerificationCodeStore:
    """Process-local store; codes expire `ttl` after issue.

    One instance per process is enough for a single worker. Multi-process
    deployments should pass a shared store implementing VerificationCodeStore.
    """

    def __init__(self, ttl: timedelta = timedelta(minutes=15), clock: Clock | None = None):
        self.ttl = ttl
        self.clock = clock or SystemClock()
        self._codes: dict[str, StoredCode] = {}

    def put(self, key: str, code: str) -> None:
        self._codes[key.lower()] = StoredCode(code=code, issued_at=self.clock.now())

    def get(self, key: str) -> str | None:
        """Return the live code for key; expired codes are dropped."""
        stored = self._codes.get(key.lower())
        if stored is None:
            return None
        if self.clock.now() - stored.issued_at > self.ttl:
            logger.debug("Verification code for %s expired", key)
            del self._codes[key.lower()]
            return None
        return stored.code

    def discard(self, key: str) -> None:
        self._codes.pop(key.lower(), None)

    def __len__(self) -> int:
        return len(self._codes)


__all__ = ["InMemoryVerificationCodeStore", "StoredCode", "VerificationCodeStore"]
