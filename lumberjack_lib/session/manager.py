from __future__ import annotations
import logging
import threading
from typing import Callable, Optional, Union

from lumberjack_lib.config.config import DEFAULT_COOKIE, DEFAULT_DRIVER
from lumberjack_lib.services.container import ServiceContainer

from .encrypted_store import EncryptedStore
from .file_handler import FileSessionHandler
from .handler import SessionHandler
from .memory_handler import MemorySessionHandler
from .store import Store, generate_session_id

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[], SessionHandler]
SessionStore = Union[Store, EncryptedStore]


class SessionManager:
    """Builds and caches session stores by driver name.

    Configuration and the encrypter are resolved from the service container
    under the `config` and `encrypter` keys. Built-in drivers are `file` and
    `array`; others can be added with `extend`. At most one store is built
    per driver name for the lifetime of the manager.
    """

    def __init__(self, container: ServiceContainer, session_id: Optional[str] = None) -> None:
        self._container = container
        self._session_id = session_id or generate_session_id()
        self._custom_creators: dict[str, HandlerFactory] = {}
        self._drivers: dict[str, SessionStore] = {}
        # reentrant: a factory may call driver() for another name
        self._lock = threading.RLock()

    def _config(self):
        return self._container.get("config")

    def get_default_driver(self) -> str:
        return self._config().get("session.driver", DEFAULT_DRIVER)

    def get_session_id(self) -> str:
        return self._session_id

    def driver(self, name: Optional[str] = None) -> SessionStore:
        name = name or self.get_default_driver()
        with self._lock:
            if name not in self._drivers:
                self._drivers[name] = self._create_driver(name)
            return self._drivers[name]

    def extend(self, name: str, factory: HandlerFactory) -> "SessionManager":
        """Register a zero-argument handler factory under `name`."""
        with self._lock:
            self._custom_creators[name] = factory
            self._drivers.pop(name, None)
        return self

    def get_drivers(self) -> dict[str, SessionStore]:
        return dict(self._drivers)

    def _create_driver(self, name: str) -> SessionStore:
        if name in self._custom_creators:
            handler = self._custom_creators[name]()
        elif name == "file":
            handler = self._create_file_handler()
        elif name == "array":
            handler = MemorySessionHandler()
        else:
            raise ValueError(f"Driver [{name}] not supported.")
        logger.debug("Creating session driver %s with %s", name, type(handler).__name__)
        return self._build_session(handler)

    def _create_file_handler(self) -> FileSessionHandler:
        return FileSessionHandler(self._config().get("session.files", "data/sessions"))

    def _build_session(self, handler: SessionHandler) -> SessionStore:
        config = self._config()
        store = Store(config.get("session.cookie", DEFAULT_COOKIE), handler, self._session_id)
        if config.get("session.encrypt", False):
            return EncryptedStore(store, self._container.get("encrypter"))
        return store
