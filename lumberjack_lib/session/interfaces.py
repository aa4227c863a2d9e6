from typing import Protocol, Any, Iterable, Union, runtime_checkable


@runtime_checkable
class SessionHandlerProtocol(Protocol):
    """Handler protocol mirroring `lumberjack_lib.session.handler.SessionHandler`.

    Custom drivers registered through `SessionManager.extend` only need to
    provide these methods; subclassing the abstract base is optional.
    """

    def read(self, session_id: str) -> bytes: ...

    def write(self, session_id: str, data: bytes) -> None: ...

    def destroy(self, session_id: str) -> None: ...

    def gc(self, max_lifetime: int) -> int: ...


@runtime_checkable
class SessionStoreProtocol(Protocol):
    """Public surface shared by `Store` and `EncryptedStore`."""

    def start(self) -> bool: ...

    def save(self) -> None: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def put(self, key: Any, value: Any = None) -> None: ...

    def push(self, key: str, value: Any) -> None: ...

    def has(self, key: str) -> bool: ...

    def pull(self, key: str, default: Any = None) -> Any: ...

    def forget(self, keys: Union[str, Iterable[str]]) -> None: ...

    def all(self) -> dict[str, Any]: ...

    def flash(self, key: str, value: Any) -> None: ...

    def get_name(self) -> str: ...

    def get_id(self) -> str: ...

    def get_handler(self) -> SessionHandlerProtocol: ...
