from dataclasses import dataclass, field
from typing import Any, Protocol
import json


class SessionDecodeError(ValueError):
    """Raised when a stored payload cannot be decoded into session state."""


@dataclass
class SessionPayload:
    attributes: dict[str, Any] = field(default_factory=dict)
    flash_new: list[str] = field(default_factory=list)
    flash_old: list[str] = field(default_factory=list)


class SessionSerializer(Protocol):
    """Serialize/deserialize session state for handlers that store bytes.

    Implementations must be symmetric: `dump` -> bytes, `load` <- bytes,
    and `load` must raise `SessionDecodeError` on anything it cannot read.
    """

    def dump(self, payload: SessionPayload) -> bytes: ...

    def load(self, data: bytes) -> SessionPayload: ...


def _check_keys(value: Any, path: str) -> None:
    """Raise TypeError on any non-string mapping key below `value`.

    `json.dumps` would coerce int, float, bool and None keys to strings,
    so the value read back would not be the value stored.
    """
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"session data keys must be str, got {type(k).__name__} key {k!r} at {path}")
            _check_keys(v, f"{path}.{k}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_keys(item, f"{path}[{i}]")


class JSONSessionSerializer:
    """Canonical, versioned JSON encoding of session state.

    Frame layout::

        {"attributes": {...}, "flash": {"new": [...], "old": [...]}, "v": 1}

    Keys are sorted and separators compact so identical state always
    produces identical bytes. Attribute values must be JSON-compatible
    (str, int, float, bool, None, list, dict with str keys); anything else
    raises TypeError on `dump`.
    """

    VERSION = 1

    def dump(self, payload: SessionPayload) -> bytes:
        _check_keys(payload.attributes, "attributes")
        frame = {
            "v": self.VERSION,
            "attributes": payload.attributes,
            "flash": {"new": sorted(payload.flash_new), "old": sorted(payload.flash_old)},
        }
        return json.dumps(frame, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    def load(self, data: bytes) -> SessionPayload:
        if not data:
            raise SessionDecodeError("empty payload")
        try:
            frame = json.loads(bytes(data).decode("utf-8"))
        except ValueError as e:
            # UnicodeDecodeError and JSONDecodeError are both ValueErrors
            raise SessionDecodeError(f"payload is not valid JSON: {e}") from e

        if not isinstance(frame, dict):
            raise SessionDecodeError("payload is not a JSON object")
        if frame.get("v") != self.VERSION:
            raise SessionDecodeError(f"unsupported payload version {frame.get('v')!r}")

        attributes = frame.get("attributes")
        flash = frame.get("flash", {})
        if not isinstance(attributes, dict) or not isinstance(flash, dict):
            raise SessionDecodeError("malformed payload frame")
        flash_new = flash.get("new", [])
        flash_old = flash.get("old", [])
        if not isinstance(flash_new, list) or not isinstance(flash_old, list):
            raise SessionDecodeError("malformed flash tracking")
        if not all(isinstance(k, str) for k in flash_new + flash_old):
            raise SessionDecodeError("flash keys must be strings")

        return SessionPayload(attributes=attributes, flash_new=flash_new, flash_old=flash_old)

    def dumps_attributes(self, attributes: dict[str, Any]) -> bytes:
        """Encode a bare attribute mapping with no flash tracking."""
        return self.dump(SessionPayload(attributes=dict(attributes)))
