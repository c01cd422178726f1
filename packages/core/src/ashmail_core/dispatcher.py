"""Control flow of one helper invocation.

    text ─▶ extract ─┬─ no link ─▶ fallback command (or fail)
                     └─ link ─▶ cache hit? ─┬─ yes ─▶ replay cached output
                                            └─ no ──▶ wrapper + review tool (+ record)

Each step runs once, in order; the only thing shared with other
invocations is the cache directory.
"""

from __future__ import annotations

import enum
import logging
import sys
from typing import TYPE_CHECKING

from ashmail_core.delegate import (
    DEFAULT_REVIEW_COMMAND,
    OutcomeKind,
    report_review_outcome,
    run_fallback,
    run_review_tool,
)
from ashmail_core.reference import ReferenceExtractor
from ashmail_core.wrapper import WrapperError, editor_wrapper

if TYPE_CHECKING:
    from ashmail_core.reference import CommentReference
    from ashmail_core.template import EditorTemplate
    from ashmail_store.base import BaseCache
    from ashmail_store.file import CacheEntry

logger = logging.getLogger(__name__)


class ExitCode(enum.IntEnum):
    OK = 0
    # 1 and 2 belong to click: fatal setup errors and usage errors.
    FALLBACK_FAILED = 3
    NO_REFERENCE = 4
    FALLBACK_START_FAILED = 5


class Dispatcher:
    """Handles one notification from start to exit status."""

    def __init__(
        self,
        template: EditorTemplate,
        cache: BaseCache,
        extractor: ReferenceExtractor | None = None,
        fallback: str | None = None,
        review_command: str = DEFAULT_REVIEW_COMMAND,
        temp_dir: str | None = None,
    ):
        self.template = template
        self.cache = cache
        self.extractor = extractor or ReferenceExtractor()
        self.fallback = fallback
        self.review_command = review_command
        self.temp_dir = temp_dir

    def dispatch(self, text: str) -> ExitCode:
        reference = self.extractor.extract(text)
        if reference is None:
            return self._no_reference()

        logger.debug("Found comment %s in %s", reference.comment_id, reference.review_url)

        entry = self.cache.open(reference.fingerprint())
        if entry is None:
            self.delegate(reference)
            return ExitCode.OK

        with entry:
            if entry.is_hit():
                cached = entry.read()
                if cached is not None:
                    self.replay(cached)
                    return ExitCode.OK
                # Unreadable entry: run the tool without recording into it.
                self.delegate(reference)
            else:
                self.delegate(reference, entry)
        return ExitCode.OK

    def replay(self, cached: bytes) -> None:
        logger.debug("Replaying %d cached bytes", len(cached))
        try:
            sys.stdout.buffer.write(cached)
            sys.stdout.buffer.flush()
        except OSError as e:
            logger.warning("can't replay cached review output: %s", e)

    def delegate(self, reference: CommentReference, entry: CacheEntry | None = None) -> None:
        """Open the review tool on ``reference``; failures are logged, never raised."""
        try:
            with editor_wrapper(self.template, reference, self.temp_dir) as editor_path:
                outcome = run_review_tool(
                    reference.review_url,
                    editor_path,
                    cache=entry,
                    command=self.review_command,
                )
        except WrapperError as e:
            logger.error("%s", e)
            return
        report_review_outcome(outcome, self.review_command)

    def _no_reference(self) -> ExitCode:
        if not self.fallback:
            logger.error("specified file does not contain a link to a comment")
            return ExitCode.NO_REFERENCE

        outcome = run_fallback(self.fallback)
        if outcome.kind is OutcomeKind.START_FAILED:
            logger.error("can't start external command: %s", outcome.error)
            return ExitCode.FALLBACK_START_FAILED
        if not outcome.succeeded:
            logger.error("error running external program: %s", outcome.describe())
            return ExitCode.FALLBACK_FAILED
        return ExitCode.OK
