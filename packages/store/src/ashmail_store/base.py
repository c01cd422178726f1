"""Abstract cache interface.

The dispatcher depends on BaseCache, not on a concrete backend, so turning
the cache off is a matter of handing it a NoOpCache instead of a FileCache.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ashmail_store.file import CacheEntry


class BaseCache(ABC):
    """Captured review tool output, keyed by reference fingerprint."""

    @abstractmethod
    def open(self, fingerprint: str) -> CacheEntry | None:
        """Return the entry for ``fingerprint``, creating it empty if needed.

        Returns None when caching is disabled or the entry can't be opened;
        never raises.
        """
