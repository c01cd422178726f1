"""Tests for editor wrapper templates."""

import pytest

from ashmail_core.template import DEFAULT_EDITOR_WRAPPER, EditorTemplate, TemplateError

BINDINGS = {"CommentID": "42", "ReviewURL": "http://stash.local/projects/P/repos/R/pull-requests/7/overview?commentId=42"}


class TestDefaultTemplate:
    def test_renders_comment_id_into_search_pattern(self):
        rendered = EditorTemplate.default().render(BINDINGS)
        assert 'exec vim "+/\\[42@[0-9]\\+\\]" "${@}"' in rendered

    def test_is_shell_script(self):
        rendered = EditorTemplate.default().render(BINDINGS)
        assert rendered.startswith("#!/bin/sh\n")

    def test_forwards_arguments(self):
        assert '"${@}"' in DEFAULT_EDITOR_WRAPPER


class TestParse:
    def test_both_variables(self):
        template = EditorTemplate.parse("{{.ReviewURL}} {{.CommentID}}")
        assert template.render(BINDINGS) == f"{BINDINGS['ReviewURL']} 42"

    def test_whitespace_and_missing_dot_allowed(self):
        template = EditorTemplate.parse("[{{ .CommentID }}|{{CommentID}}]")
        assert template.render(BINDINGS) == "[42|42]"

    def test_text_without_actions_is_unchanged(self):
        assert EditorTemplate.parse("#!/bin/sh\nexec nano \"$@\"\n").render(BINDINGS) == "#!/bin/sh\nexec nano \"$@\"\n"

    def test_repeated_variable(self):
        assert EditorTemplate.parse("{{.CommentID}}-{{.CommentID}}").render(BINDINGS) == "42-42"

    def test_unknown_variable_rejected(self):
        with pytest.raises(TemplateError, match="unsupported"):
            EditorTemplate.parse("{{.Author}}")

    def test_go_pipeline_rejected(self):
        with pytest.raises(TemplateError):
            EditorTemplate.parse('{{.CommentID | printf "%q"}}')

    def test_unclosed_action_rejected(self):
        with pytest.raises(TemplateError, match="line 2|:2:"):
            EditorTemplate.parse("#!/bin/sh\nexec vim {{.CommentID")

    def test_error_mentions_source(self):
        with pytest.raises(TemplateError, match="wrapper.tmpl"):
            EditorTemplate.parse("{{.Nope}}", source="wrapper.tmpl")


class TestGoTemplateSyntax:
    def test_trim_markers_strip_adjacent_whitespace(self):
        template = EditorTemplate.parse("id:  \n{{- .CommentID -}}\n  ;")
        assert template.render(BINDINGS) == "id:42;"

    def test_left_trim_only(self):
        assert EditorTemplate.parse("a \t{{- .CommentID }} b").render(BINDINGS) == "a42 b"

    def test_right_trim_only(self):
        assert EditorTemplate.parse("a {{.CommentID -}}\n\n b").render(BINDINGS) == "a 42b"

    def test_trimmed_wrapper_file(self):
        template = EditorTemplate.parse(
            "#!/bin/sh\n\n"
            "exec vim \"+/\\[\n"
            "    {{- .CommentID -}}\n"
            "    @[0-9]\\+\\]\" \"${@}\"\n"
        )
        assert template.render(BINDINGS) == EditorTemplate.default().render(BINDINGS)

    def test_comment_renders_nothing(self):
        template = EditorTemplate.parse("#!/bin/sh\n{{/* jump to the comment */}}exec vim +/{{.CommentID}}\n")
        assert template.render(BINDINGS) == "#!/bin/sh\nexec vim +/42\n"

    def test_trimmed_comment(self):
        template = EditorTemplate.parse("a\n{{- /* note */ -}}\nb")
        assert template.render(BINDINGS) == "ab"

    def test_multiline_comment(self):
        template = EditorTemplate.parse("{{/*\n  CommentID and ReviewURL\n*/}}{{.CommentID}}")
        assert template.render(BINDINGS) == "42"

    def test_dash_without_space_is_not_a_trim_marker(self):
        with pytest.raises(TemplateError):
            EditorTemplate.parse("{{-.CommentID}}")


class TestRender:
    def test_missing_binding(self):
        with pytest.raises(TemplateError, match="ReviewURL"):
            EditorTemplate.parse("{{.ReviewURL}}").render({"CommentID": "1"})


class TestFromFile:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "wrapper.tmpl"
        path.write_text("#!/bin/sh\nexec vim +/{{.CommentID}} \"$@\"\n")
        template = EditorTemplate.from_file(path)
        assert template.source == str(path)
        assert "+/42 " in template.render(BINDINGS)

    def test_missing_file(self, tmp_path):
        with pytest.raises(TemplateError, match="can't read template file"):
            EditorTemplate.from_file(tmp_path / "missing.tmpl")
