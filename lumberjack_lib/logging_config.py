from __future__ import annotations
import logging
from typing import Any, Optional


def configure_logging(config: Optional[Any] = None) -> logging.Logger:
    """Configure root logging for the session tooling.

    Reads the level from `app.log_level` when a config is given, resets the
    root handlers and applies the shared format. Returns a module logger
    for the caller.
    """
    DEFAULT_LOG_LEVEL = logging.WARNING

    _lvl = config.get("app.log_level") if config is not None else None
    if isinstance(_lvl, str):
        _numeric = getattr(logging, _lvl.upper(), None)
        if isinstance(_numeric, int):
            DEFAULT_LOG_LEVEL = _numeric

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=DEFAULT_LOG_LEVEL, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logger = logging.getLogger(__name__)
    logger.debug("Log level set to: %s", logging.getLevelName(DEFAULT_LOG_LEVEL))

    # Keep known noisy libraries quiet by default
    logging.getLogger('cryptography').setLevel(logging.WARNING)

    return logger
