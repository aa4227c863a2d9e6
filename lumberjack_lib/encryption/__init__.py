"""Payload encryption used by encrypted session stores."""

from .encrypter import DecryptError, FernetEncrypter, create_encrypter
from .interfaces import EncrypterProtocol

__all__ = ["DecryptError", "FernetEncrypter", "create_encrypter", "EncrypterProtocol"]
