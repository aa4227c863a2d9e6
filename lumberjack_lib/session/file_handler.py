"""File-backed session handler.

Stores each session payload as raw bytes under `<directory>/<session_id>`.
Writes are atomic: the payload goes to a temporary file which is fsynced
and then renamed over the target. Concurrent writers for the same id are
last-write-wins unless callers hold `lock(session_id)` around their
read-modify-write cycle.
"""
from __future__ import annotations
import logging
import os
import re
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .handler import SessionHandler

try:
    import fcntl
except ImportError:
    fcntl = None

logger = logging.getLogger(__name__)

_VALID_ID = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
LOCK_SUFFIX = ".lock"
TMP_SUFFIX = ".tmp"


class FileSessionHandler(SessionHandler):
    def __init__(self, directory: str | Path = "./data/sessions") -> None:
        # The directory is created lazily on first write.
        self.directory = Path(directory)

    def _path_for(self, session_id: str) -> Path:
        if not isinstance(session_id, str) or not _VALID_ID.match(session_id):
            raise ValueError(f"Invalid session id {session_id!r}")
        return self.directory / session_id

    def read(self, session_id: str) -> bytes:
        path = self._path_for(session_id)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return b""

    def write(self, session_id: str, data: bytes) -> None:
        path = self._path_for(session_id)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{session_id}.", suffix=TMP_SUFFIX, dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(bytes(data))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Wrote session %s (%d bytes)", session_id, len(data))

    def destroy(self, session_id: str) -> None:
        path = self._path_for(session_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        logger.debug("Destroyed session %s", session_id)

    def exists(self, session_id: str) -> bool:
        return self._path_for(session_id).is_file()

    def gc(self, max_lifetime: int) -> int:
        """Remove session files older than `max_lifetime` seconds.

        Lock sidecars are removed too once they are past the cutoff and
        their session file is gone. They are not counted in the result.
        """
        if not self.directory.is_dir():
            return 0
        cutoff = time.time() - max_lifetime
        removed = 0
        lock_files = []
        for entry in self.directory.iterdir():
            if entry.name.endswith(LOCK_SUFFIX):
                lock_files.append(entry)
                continue
            try:
                if not entry.is_file() or entry.stat().st_mtime >= cutoff:
                    continue
                entry.unlink()
                removed += 1
            except OSError:
                logger.debug("Skipping session file %s during gc", entry, exc_info=True)
        for entry in lock_files:
            self._remove_stale_lock(entry, cutoff)
        if removed:
            logger.info("Session gc removed %d expired session(s) from %s", removed, self.directory)
        return removed

    def _remove_stale_lock(self, lock_path: Path, cutoff: float) -> None:
        session_path = lock_path.with_name(lock_path.name[: -len(LOCK_SUFFIX)])
        try:
            if session_path.exists() or lock_path.stat().st_mtime >= cutoff:
                return
            with open(lock_path, "a+") as f:
                if fcntl is not None:
                    # raises if someone holds the lock right now
                    fcntl.flock(f, fcntl.LOCK_EX | fcntl.LOCK_NB)
                lock_path.unlink()
        except OSError:
            logger.debug("Skipping lock file %s during gc", lock_path, exc_info=True)
            return
        logger.debug("Removed stale lock file %s", lock_path)

    @contextmanager
    def lock(self, session_id: str) -> Iterator[None]:
        """Hold an exclusive advisory lock for `session_id`.

        Uses `fcntl.flock` on a sidecar lock file where available; on
        platforms without `fcntl` the block runs unlocked. Taking the lock
        refreshes the sidecar's mtime so `gc` leaves it alone.
        """
        path = self._path_for(session_id)
        lock_path = path.with_name(path.name + LOCK_SUFFIX)
        self.directory.mkdir(parents=True, exist_ok=True)
        while True:
            f = open(lock_path, "a+")
            if fcntl is None or _is_current(f, lock_path):
                break
            # gc unlinked the sidecar between our open and flock
            f.close()
        try:
            os.utime(lock_path, None)
            yield
        finally:
            if fcntl is not None:
                fcntl.flock(f, fcntl.LOCK_UN)
            f.close()


def _is_current(f, lock_path: Path) -> bool:
    """Lock `f` and report whether it is still the file at `lock_path`."""
    fcntl.flock(f, fcntl.LOCK_EX)
    try:
        current = os.stat(lock_path)
    except FileNotFoundError:
        return False
    held = os.fstat(f.fileno())
    return (held.st_dev, held.st_ino) == (current.st_dev, current.st_ino)
