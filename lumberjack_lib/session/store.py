"""In-memory session state backed by a SessionHandler.

A `Store` is created per request: `start()` hydrates it from the handler,
callers mutate it, and `save()` ages flash data and writes it back.

Flash aging works on two generations of keys. Keys flashed since the last
save are "new"; on `save()` the previous "old" keys are dropped from the
attributes, then the "new" keys become "old". A flashed value therefore
survives exactly one further save. Both generations are persisted next to
the attributes so aging carries across requests.
"""
from __future__ import annotations
import logging
import secrets
from collections.abc import Mapping
from typing import Any, Iterable, Optional, Union

from .handler import SessionHandler
from .serializer import JSONSessionSerializer, SessionDecodeError, SessionPayload, SessionSerializer

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Return a fresh random session id (40 hex characters)."""
    return secrets.token_hex(20)


class Store:
    def __init__(
        self,
        name: str,
        handler: SessionHandler,
        session_id: Optional[str] = None,
        serializer: Optional[SessionSerializer] = None,
    ) -> None:
        self._name = name
        self._id = session_id or generate_session_id()
        self.handler = handler
        self.serializer = serializer or JSONSessionSerializer()
        self.attributes: dict[str, Any] = {}
        self.flash_new: set[str] = set()
        self.flash_old: set[str] = set()
        self._started = False

    # Lifecycle

    def start(self) -> bool:
        """Load the session from the handler.

        Missing or undecodable payloads start an empty session. Handler I/O
        errors propagate.
        """
        self.load_payload(self.handler.read(self._id))
        return True

    def load_payload(self, data: bytes) -> None:
        """Replace the current state with the decoded `data`."""
        self._started = True
        self.attributes = {}
        self.flash_new = set()
        self.flash_old = set()
        if not data:
            return
        try:
            payload = self.serializer.load(data)
        except SessionDecodeError as e:
            logger.warning("Discarding undecodable session %s: %s", self._id, e)
            return
        self.apply_payload(payload)

    def save(self) -> None:
        """Age flash data and write the session through the handler.

        The aged state is only applied once the write succeeded, so a failed
        save can be retried without aging flash data twice.
        """
        payload = self.aged_payload()
        self.handler.write(self._id, self.serializer.dump(payload))
        self.apply_payload(payload)

    def aged_payload(self) -> SessionPayload:
        """Return the state as it is after flash aging, leaving `self` untouched."""
        attributes = {k: v for k, v in self.attributes.items() if k not in self.flash_old}
        return SessionPayload(attributes=attributes, flash_new=[], flash_old=list(self.flash_new))

    def apply_payload(self, payload: SessionPayload) -> None:
        self.attributes = dict(payload.attributes)
        self.flash_new = set(payload.flash_new)
        self.flash_old = set(payload.flash_old)

    def is_started(self) -> bool:
        return self._started

    # Accessors

    def get_name(self) -> str:
        return self._name

    def get_id(self) -> str:
        return self._id

    def get_handler(self) -> SessionHandler:
        return self.handler

    # Attributes

    def all(self) -> dict[str, Any]:
        return dict(self.attributes)

    def has(self, key: str) -> bool:
        return key in self.attributes

    def missing(self, key: str) -> bool:
        return not self.has(key)

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def put(self, key: Union[str, Mapping], value: Any = None) -> None:
        """Set a single key, or every key of a mapping passed as `key`."""
        if isinstance(key, Mapping):
            for k, v in key.items():
                self.attributes[k] = v
            return
        self.attributes[key] = value

    def push(self, key: str, value: Any) -> None:
        current = self.attributes.get(key)
        if isinstance(current, list):
            current.append(value)
        else:
            # absent or not a list: start a new one
            self.attributes[key] = [value]

    def pull(self, key: str, default: Any = None) -> Any:
        value = self.get(key, default)
        self.forget(key)
        return value

    def forget(self, keys: Union[str, Iterable[str]]) -> None:
        if isinstance(keys, str):
            keys = [keys]
        for key in keys:
            self.attributes.pop(key, None)

    def flush(self) -> None:
        """Remove every attribute and all flash tracking."""
        self.attributes = {}
        self.flash_new = set()
        self.flash_old = set()

    def increment(self, key: str, amount: int = 1) -> Any:
        value = self.get(key, 0) + amount
        self.put(key, value)
        return value

    def decrement(self, key: str, amount: int = 1) -> Any:
        return self.increment(key, -amount)

    # Flash data

    def flash(self, key: str, value: Any) -> None:
        self.put(key, value)
        self.flash_new.add(key)
        self.flash_old.discard(key)

    def now(self, key: str, value: Any) -> None:
        """Flash a value for the current lifecycle only."""
        self.put(key, value)
        self.flash_old.add(key)
        self.flash_new.discard(key)

    def reflash(self) -> None:
        """Keep all old flash data for one more lifecycle."""
        self.flash_new |= self.flash_old
        self.flash_old = set()

    def keep(self, keys: Union[str, Iterable[str]]) -> None:
        """Keep the given old flash keys for one more lifecycle."""
        if isinstance(keys, str):
            keys = [keys]
        for key in keys:
            self.flash_new.add(key)
            self.flash_old.discard(key)
