"""Editor wrapper templates.

Templates use the placeholder syntax of the Go templates the helper has
always accepted, so existing wrapper files keep working:

    exec vim "+/\\[{{.CommentID}}@[0-9]\\+\\]" "${@}"

Only two variables exist, ``CommentID`` and ``ReviewURL``. Go trim markers
(``{{- .CommentID -}}``) eat the whitespace next to the action and Go
comments (``{{/* ... */}}``) render as nothing. Anything else between
``{{`` and ``}}`` is rejected when the template is parsed, not when it is
rendered.
"""

from __future__ import annotations

import re
from pathlib import Path

DEFAULT_EDITOR_WRAPPER = """\
#!/bin/sh

exec vim "+/\\[{{.CommentID}}@[0-9]\\+\\]" "${@}"
"""

TEMPLATE_VARIABLES = ("CommentID", "ReviewURL")

_ACTION = re.compile(r"\{\{(-\s)?(.*?)(\s-)?\}\}", re.DOTALL)
_PLACEHOLDER = re.compile(r"\s*\.?(\w+)\s*")
_COMMENT = re.compile(r"\s*/\*.*?\*/\s*", re.DOTALL)
_SPACE = " \t\r\n"


class TemplateError(Exception):
    """Raised when a wrapper template cannot be parsed or rendered."""


class EditorTemplate:
    """A parsed wrapper template: literal chunks interleaved with variable names."""

    def __init__(self, chunks: list[str], names: list[str], source: str = "<default>"):
        self._chunks = chunks
        self._names = names
        self.source = source

    @classmethod
    def parse(cls, text: str, source: str = "<string>") -> EditorTemplate:
        chunks: list[str] = []
        names: list[str] = []
        literal = ""
        trim_next = False
        pos = 0
        for action in _ACTION.finditer(text):
            trim_left, body, trim_right = action.groups()
            segment = text[pos : action.start()]
            if trim_next:
                segment = segment.lstrip(_SPACE)
            literal += segment
            if trim_left:
                literal = literal.rstrip(_SPACE)
            trim_next = trim_right is not None
            pos = action.end()

            if _COMMENT.fullmatch(body):
                continue
            placeholder = _PLACEHOLDER.fullmatch(body)
            if placeholder is None or placeholder.group(1) not in TEMPLATE_VARIABLES:
                line = text.count("\n", 0, action.start()) + 1
                raise TemplateError(f"{source}:{line}: unsupported template action {action.group(0)!r}")
            chunks.append(literal)
            names.append(placeholder.group(1))
            literal = ""

        tail = text[pos:]
        if "{{" in tail:
            line = text.count("\n", 0, pos + tail.index("{{")) + 1
            raise TemplateError(f"{source}:{line}: unclosed template action")
        if trim_next:
            tail = tail.lstrip(_SPACE)
        chunks.append(literal + tail)
        return cls(chunks, names, source=source)

    @classmethod
    def default(cls) -> EditorTemplate:
        return cls.parse(DEFAULT_EDITOR_WRAPPER, source="<default>")

    @classmethod
    def from_file(cls, path: str | Path) -> EditorTemplate:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateError(f"can't read template file {path}: {e}") from e
        return cls.parse(text, source=str(path))

    def render(self, bindings: dict[str, str]) -> str:
        parts = [self._chunks[0]]
        for name, chunk in zip(self._names, self._chunks[1:]):
            if name not in bindings:
                raise TemplateError(f"{self.source}: no value for {name}")
            parts.append(bindings[name])
            parts.append(chunk)
        return "".join(parts)
