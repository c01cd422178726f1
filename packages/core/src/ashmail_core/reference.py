"""Comment reference extraction and fingerprinting.

Stash notification e-mails carry a link of the form

    http://stash.example.com/projects/P/repos/R/pull-requests/7/overview?commentId=42

The extractor pulls the first such link out of arbitrary text and returns
it together with the comment id. The fingerprint of that pair names the
cache entry for the review tool output.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass

COMMENT_LINK_PATTERN = (
    r"https?://[^/\s]+/(?:projects|users)/[^/\s]+/repos/[^/\s]+/"
    r"pull-requests/\d+/overview\?commentId=(\d+)"
)

_FINGERPRINT_SEPARATOR = "\x00"


@dataclass(frozen=True)
class CommentReference:
    """A review comment mentioned in a notification."""

    review_url: str
    comment_id: str

    def fingerprint(self) -> str:
        return fingerprint([self.review_url, self.comment_id])


class ReferenceExtractor:
    """Finds the first review comment link in a block of text.

    The pattern is compiled once per extractor; build one at startup and
    pass it to whatever needs it.
    """

    def __init__(self, pattern: str = COMMENT_LINK_PATTERN):
        self._regex = re.compile(pattern)

    def extract(self, text: str) -> CommentReference | None:
        """Return the first reference in ``text`` or None when there is none."""
        match = self._regex.search(text)
        if match is None:
            return None
        return CommentReference(review_url=match.group(0), comment_id=match.group(1))


def fingerprint(parts: list[str]) -> str:
    """Stable hex digest of ``parts``, order-sensitive.

    Each part is prefixed with its length, so no choice of part contents
    can make two different lists encode to the same string.
    """
    encoded = _FINGERPRINT_SEPARATOR.join(f"{len(part)}:{part}" for part in parts)
    hasher = hashlib.md5(usedforsecurity=False)
    hasher.update(encoded.encode("utf-8"))
    return hasher.hexdigest()
