"""Session handler interface definitions.

Defines the SessionHandler abstract class used by session stores to
persist and retrieve raw session payloads. Handlers deal in bytes only;
encoding, flash aging and encryption live in the stores above them.
"""
from __future__ import annotations
from abc import ABC, abstractmethod


class SessionHandler(ABC):
    """Abstract session handler.

    Implementations are keyed by the opaque session id and must not apply
    any session policy of their own.
    """

    @abstractmethod
    def read(self, session_id: str) -> bytes:
        """Return the stored payload for `session_id`.

        Must return ``b""`` when nothing is stored, never raise KeyError.
        """

    @abstractmethod
    def write(self, session_id: str, data: bytes) -> None:
        """Persist `data` for `session_id`, replacing any previous payload.

        The write must be durable before returning.
        """

    @abstractmethod
    def destroy(self, session_id: str) -> None:
        """Remove the payload for `session_id`. No-op when absent."""

    @abstractmethod
    def gc(self, max_lifetime: int) -> int:
        """Remove payloads last written more than `max_lifetime` seconds ago.

        Best-effort: payloads that cannot be inspected are skipped. Returns
        the number of payloads removed.
        """


class NullSessionHandler(SessionHandler):
    """Handler that stores nothing. Reads are always empty."""

    def read(self, session_id: str) -> bytes:
        return b""

    def write(self, session_id: str, data: bytes) -> None:
        return

    def destroy(self, session_id: str) -> None:
        return

    def gc(self, max_lifetime: int) -> int:
        return 0
