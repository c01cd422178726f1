"""Disposable editor wrapper for the review tool.

The review tool opens ``$EDITOR <files...>`` to show a review. Pointing
``EDITOR`` at a freshly rendered script lets that script open the real
editor already scrolled to the comment from the notification.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager

from ashmail_core.reference import CommentReference
from ashmail_core.template import EditorTemplate, TemplateError

logger = logging.getLogger(__name__)

WRAPPER_PREFIX = "ash-mailcap-editor."
_EXECUTABLE_MODE = 0o777


class WrapperError(Exception):
    """Raised when the wrapper script cannot be created."""


def template_bindings(reference: CommentReference) -> dict[str, str]:
    return {"CommentID": reference.comment_id, "ReviewURL": reference.review_url}


@contextmanager
def editor_wrapper(
    template: EditorTemplate,
    reference: CommentReference,
    temp_dir: str | None = None,
) -> Iterator[str]:
    """Render ``template`` into a new executable file and yield its path.

    The file is removed on every way out of the block, including a
    rendering failure halfway through.
    """
    try:
        fd, path = tempfile.mkstemp(prefix=WRAPPER_PREFIX, dir=temp_dir)
    except OSError as e:
        raise WrapperError(f"can't create temporary file: {e}") from e

    try:
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                os.chmod(path, _EXECUTABLE_MODE)
                f.write(template.render(template_bindings(reference)))
        except (OSError, TemplateError) as e:
            raise WrapperError(f"can't prepare editor wrapper <{path}>: {e}") from e
        logger.debug("Rendered editor wrapper %s from %s", path, template.source)
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
