"""
Session Management Module
Provides session stores, storage handlers and the driver manager.
"""
from .handler import SessionHandler, NullSessionHandler
from .file_handler import FileSessionHandler
from .memory_handler import MemorySessionHandler
from .serializer import JSONSessionSerializer, SessionDecodeError, SessionPayload
from .store import Store, generate_session_id
from .encrypted_store import EncryptedStore
from .manager import SessionManager
from .interfaces import SessionHandlerProtocol, SessionStoreProtocol

__all__ = [
    "SessionHandler",
    "NullSessionHandler",
    "FileSessionHandler",
    "MemorySessionHandler",
    "JSONSessionSerializer",
    "SessionDecodeError",
    "SessionPayload",
    "Store",
    "generate_session_id",
    "EncryptedStore",
    "SessionManager",
    "SessionHandlerProtocol",
    "SessionStoreProtocol",
]
