"""No-op cache, the default when caching is not requested.

Every lookup misses and nothing is recorded, so the review tool keeps its
terminal to itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ashmail_store.base import BaseCache

if TYPE_CHECKING:
    from ashmail_store.file import CacheEntry


class NoOpCache(BaseCache):
    def open(self, fingerprint: str) -> CacheEntry | None:
        return None
