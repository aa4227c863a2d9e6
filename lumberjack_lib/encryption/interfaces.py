from typing import Protocol, runtime_checkable


@runtime_checkable
class EncrypterProtocol(Protocol):
    """Symmetric encrypter used to protect persisted session payloads.

    `decrypt` must raise `lumberjack_lib.encryption.DecryptError` when the
    input does not authenticate.
    """

    def encrypt(self, data: bytes) -> bytes: ...

    def decrypt(self, data: bytes) -> bytes: ...
