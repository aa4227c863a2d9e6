"""Session store that encrypts its payload at rest.

Wraps a plain `Store` and forwards every operation to it. Only the
persistence boundary differs: bytes read from the handler are decrypted
before decoding, and encoded bytes are encrypted before writing.
"""
from __future__ import annotations
import logging
from typing import Any, Iterable, Mapping, Union

from lumberjack_lib.encryption import DecryptError, EncrypterProtocol

from .handler import SessionHandler
from .store import Store

logger = logging.getLogger(__name__)


class EncryptedStore:
    def __init__(self, store: Store, encrypter: EncrypterProtocol) -> None:
        self._store = store
        self._encrypter = encrypter
        self._tampered = False

    def start(self) -> bool:
        """Load and decrypt the session.

        A payload that fails to decrypt is treated like a missing session:
        the store starts empty and `tamper_detected()` reports True.
        """
        self._tampered = False
        raw = self._store.get_handler().read(self._store.get_id())
        data = b""
        if raw:
            try:
                data = self._encrypter.decrypt(raw)
            except DecryptError as e:
                self._tampered = True
                logger.warning("Discarding session %s that failed to decrypt: %s", self._store.get_id(), e)
        self._store.load_payload(data)
        return True

    def save(self) -> None:
        payload = self._store.aged_payload()
        data = self._encrypter.encrypt(self._store.serializer.dump(payload))
        self._store.get_handler().write(self._store.get_id(), data)
        self._store.apply_payload(payload)

    def tamper_detected(self) -> bool:
        """True when the last `start()` discarded a payload that failed to decrypt."""
        return self._tampered

    def get_encrypter(self) -> EncrypterProtocol:
        return self._encrypter

    def get_store(self) -> Store:
        return self._store

    def is_started(self) -> bool:
        return self._store.is_started()

    def get_name(self) -> str:
        return self._store.get_name()

    def get_id(self) -> str:
        return self._store.get_id()

    def get_handler(self) -> SessionHandler:
        return self._store.get_handler()

    def all(self) -> dict[str, Any]:
        return self._store.all()

    def has(self, key: str) -> bool:
        return self._store.has(key)

    def missing(self, key: str) -> bool:
        return self._store.missing(key)

    def get(self, key: str, default: Any = None) -> Any:
        return self._store.get(key, default)

    def put(self, key: Union[str, Mapping], value: Any = None) -> None:
        self._store.put(key, value)

    def push(self, key: str, value: Any) -> None:
        self._store.push(key, value)

    def pull(self, key: str, default: Any = None) -> Any:
        return self._store.pull(key, default)

    def forget(self, keys: Union[str, Iterable[str]]) -> None:
        self._store.forget(keys)

    def flush(self) -> None:
        self._store.flush()

    def increment(self, key: str, amount: int = 1) -> Any:
        return self._store.increment(key, amount)

    def decrement(self, key: str, amount: int = 1) -> Any:
        return self._store.decrement(key, amount)

    def flash(self, key: str, value: Any) -> None:
        self._store.flash(key, value)

    def now(self, key: str, value: Any) -> None:
        self._store.now(key, value)

    def reflash(self) -> None:
        self._store.reflash()

    def keep(self, keys: Union[str, Iterable[str]]) -> None:
        self._store.keep(keys)
