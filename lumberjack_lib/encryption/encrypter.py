from __future__ import annotations
import base64
import binascii
import json
import logging
import os
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

KEY_PREFIX = "base64:"


class DecryptError(ValueError):
    """Raised when a payload cannot be decrypted (tampered, truncated or foreign key)."""


class FernetEncrypter:
    """Encrypter built on Fernet (symmetric, authenticated).

    Notes:
    - Fernet is AES-CBC + HMAC-SHA256 via the cryptography library, so any
      modification of the ciphertext fails to decrypt rather than yielding
      garbage.
    - Provide either `key` (a Fernet key) or `password` (a passphrase). In
      password mode every payload carries its own random salt and the KDF
      params, framed as JSON, so the key can be re-derived on decrypt.
    - Key rotation is not handled here; one encrypter holds one key.
    """

    def __init__(
        self,
        *,
        key: bytes | str | None = None,
        password: str | None = None,
        iterations: int = 390000,
    ) -> None:
        if key is None and password is None:
            raise ValueError("FernetEncrypter requires either `key` or `password`")
        self._fernet = Fernet(key) if key is not None else None
        self._password = password
        self._iterations = iterations

    @staticmethod
    def generate_key() -> bytes:
        return Fernet.generate_key()

    def _derive_key(self, password: str, salt: bytes, iterations: int) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=iterations,
        )
        return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))

    def encrypt(self, data: bytes) -> bytes:
        """Encrypt `data`, returning a framed JSON blob."""
        if self._password is not None:
            salt = os.urandom(16)
            f = Fernet(self._derive_key(self._password, salt, self._iterations))
            frame: dict[str, Any] = {
                "v": 1,
                "mode": "password",
                "kdf": "pbkdf2",
                "iterations": self._iterations,
                "salt": base64.urlsafe_b64encode(salt).decode("ascii"),
                "ct": f.encrypt(data).decode("ascii"),
            }
        else:
            frame = {"v": 1, "mode": "key", "ct": self._fernet.encrypt(data).decode("ascii")}
        return json.dumps(frame).encode("utf-8")

    def decrypt(self, data: bytes) -> bytes:
        """Parse the frame, derive the key if needed and decrypt.

        Raises DecryptError for anything that does not authenticate.
        """
        try:
            frame = json.loads(bytes(data).decode("utf-8"))
        except ValueError as e:
            raise DecryptError("ciphertext frame is not valid JSON") from e
        if not isinstance(frame, dict) or frame.get("v") != 1:
            raise DecryptError("unknown ciphertext frame format")

        mode = frame.get("mode")
        try:
            token = str(frame["ct"]).encode("ascii")
            if mode == "password":
                if self._password is None:
                    raise DecryptError("encrypter was not configured with a password")
                salt = base64.urlsafe_b64decode(str(frame["salt"]).encode("ascii"))
                iterations = int(frame.get("iterations", self._iterations))
                f = Fernet(self._derive_key(self._password, salt, iterations))
                return f.decrypt(token)
            if mode == "key":
                if self._fernet is None:
                    raise DecryptError("encrypter was not configured with a key")
                return self._fernet.decrypt(token)
        except DecryptError:
            raise
        except InvalidToken as e:
            raise DecryptError("ciphertext failed authentication") from e
        except (KeyError, TypeError, ValueError) as e:
            raise DecryptError(f"malformed ciphertext frame: {e}") from e

        raise DecryptError(f"unknown ciphertext mode {mode!r}")


def create_encrypter(config: Any) -> FernetEncrypter:
    """Build an encrypter from the `app.key` configuration value.

    A value prefixed with ``base64:`` (or any valid Fernet key) is used as
    the key directly; anything else is treated as a passphrase.
    """
    raw = config.get("app.key")
    if not raw:
        raise ValueError("Session encryption is enabled but `app.key` is not configured")
    raw = str(raw)
    if raw.startswith(KEY_PREFIX):
        return FernetEncrypter(key=raw[len(KEY_PREFIX):])
    try:
        return FernetEncrypter(key=raw)
    except (ValueError, binascii.Error):
        logger.debug("app.key is not a Fernet key; deriving one from the passphrase")
        return FernetEncrypter(password=raw, iterations=int(config.get("app.key_iterations", 390000)))
