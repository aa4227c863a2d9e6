from __future__ import annotations
import copy
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("config")
DEFAULT_COOKIE = "lumberjack"
DEFAULT_DRIVER = "file"


def load_yaml_file(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class Config:
    """Dotted-key configuration repository.

    Each YAML file in the config directory becomes a top-level key named
    after the file, so `config/session.yml` is reachable as `session.*`.
    """

    def __init__(self, items: Optional[dict[str, Any]] = None) -> None:
        self._items: dict[str, Any] = copy.deepcopy(items) if items else {}

    @classmethod
    def from_directory(cls, path: str | Path = CONFIG_PATH) -> "Config":
        path = Path(path)
        items: dict[str, Any] = {}
        if path.is_dir():
            for f in sorted(path.iterdir()):
                if f.suffix in (".yml", ".yaml") and f.is_file():
                    items[f.stem] = load_yaml_file(f)
                    logger.debug("Loaded config file %s", f)
        else:
            logger.warning("Config directory %s not found; using defaults", path)
        return cls(items)

    def get(self, key: str, default: Any = None) -> Any:
        cur: Any = self._items
        for part in key.split("."):
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur

    def has(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def set(self, key: str, value: Any) -> None:
        parts = key.split(".")
        cur = self._items
        for p in parts[:-1]:
            if p not in cur or not isinstance(cur[p], dict):
                cur[p] = {}
            cur = cur[p]
        cur[parts[-1]] = value

    def all(self) -> dict[str, Any]:
        return copy.deepcopy(self._items)


class SessionSettings(BaseModel):
    driver: str = DEFAULT_DRIVER
    cookie: str = DEFAULT_COOKIE
    encrypt: bool = False
    files: str = "data/sessions"
    # minutes
    lifetime: int = 120

    @classmethod
    def from_config(cls, config: Any) -> "SessionSettings":
        return cls(
            driver=config.get("session.driver", DEFAULT_DRIVER),
            cookie=config.get("session.cookie", DEFAULT_COOKIE),
            encrypt=bool(config.get("session.encrypt", False)),
            files=config.get("session.files", "data/sessions"),
            lifetime=config.get("session.lifetime", 120),
        )
