"""FileCache: one file per fingerprint in the temporary directory.

An entry is created empty on first lookup. A non-empty entry is a hit and
is replayed as-is forever: there is no expiry and no cleanup, the files
simply accumulate in the temp directory.

There is no locking either. Two helpers opening the same notification at
the same time will both miss, both run the review tool and both append to
the same file, leaving their output interleaved.
"""

from __future__ import annotations

import logging
import os
import tempfile

from ashmail_store.base import BaseCache

logger = logging.getLogger(__name__)

CACHE_PREFIX = "ash-mailcap-cache."


class CacheEntry:
    """An open cache file, usable as a write sink for the review tool output.

    Write errors are logged once and further writes are dropped, so a full
    disk never interrupts the review itself.
    """

    def __init__(self, path: str, handle):
        self.path = path
        self._handle = handle
        self._broken = False

    def __enter__(self) -> CacheEntry:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def is_hit(self) -> bool:
        try:
            return os.fstat(self._handle.fileno()).st_size > 0
        except OSError as e:
            logger.warning("can't stat cache file %s: %s", self.path, e)
            return False

    def read(self) -> bytes | None:
        """Return the whole entry, or None if it can't be read."""
        try:
            self._handle.seek(0)
            return self._handle.read()
        except OSError as e:
            logger.warning("can't read cache file %s: %s", self.path, e)
            return None

    def write(self, data: bytes) -> None:
        if self._broken:
            return
        try:
            self._handle.write(data)
            self._handle.flush()
        except OSError as e:
            self._broken = True
            logger.warning("can't write cache file %s, output is no longer recorded: %s", self.path, e)

    def flush(self) -> None:
        # write() already flushes every chunk.
        pass

    def close(self) -> None:
        try:
            self._handle.close()
        except OSError as e:
            logger.warning("can't close cache file %s: %s", self.path, e)


class FileCache(BaseCache):
    """Stores each entry at ``<directory>/ash-mailcap-cache.<fingerprint>``."""

    def __init__(self, directory: str | None = None):
        self.directory = directory or tempfile.gettempdir()

    def path_for(self, fingerprint: str) -> str:
        return os.path.join(self.directory, CACHE_PREFIX + fingerprint)

    def open(self, fingerprint: str) -> CacheEntry | None:
        path = self.path_for(fingerprint)
        try:
            handle = open(path, "a+b")
        except OSError as e:
            logger.warning("can't open cache file %s: %s", path, e)
            return None
        logger.debug("Opened cache file %s", path)
        return CacheEntry(path, handle)
