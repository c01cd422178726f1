"""Tests for comment link extraction and fingerprints."""

import hashlib

import pytest

from ashmail_core.reference import CommentReference, ReferenceExtractor, fingerprint

URL = "http://stash.local/projects/P/repos/R/pull-requests/7/overview?commentId=42"


@pytest.fixture
def extractor():
    return ReferenceExtractor()


class TestExtract:
    def test_extracts_url_and_comment_id(self, extractor):
        ref = extractor.extract(f"Alice commented on your pull request:\n\n{URL}\n")
        assert ref == CommentReference(review_url=URL, comment_id="42")

    def test_user_repositories(self, extractor):
        url = "http://stash.local/users/alice/repos/dotfiles/pull-requests/3/overview?commentId=9001"
        ref = extractor.extract(f"see {url}")
        assert ref.review_url == url
        assert ref.comment_id == "9001"

    def test_first_match_wins(self, extractor):
        second = URL.replace("commentId=42", "commentId=43")
        ref = extractor.extract(f"{URL}\n{second}\n")
        assert ref.comment_id == "42"

    def test_url_rebuilt_from_fields(self, extractor):
        ref = extractor.extract(f"<a href=\"{URL}\">view</a>")
        assert ref.review_url.endswith(f"commentId={ref.comment_id}")
        assert ref.review_url == URL

    def test_no_link_returns_none(self, extractor):
        assert extractor.extract("no url here") is None

    def test_overview_without_comment_is_not_a_reference(self, extractor):
        assert extractor.extract("http://stash.local/projects/P/repos/R/pull-requests/7/overview") is None

    def test_other_section_is_not_a_reference(self, extractor):
        assert extractor.extract("http://stash.local/projects/P/repos/R/pull-requests/7/diff?commentId=1") is None

    def test_custom_pattern(self):
        extractor = ReferenceExtractor(pattern=r"https://review\.example/c/(\d+)")
        ref = extractor.extract("go to https://review.example/c/12 now")
        assert ref == CommentReference(review_url="https://review.example/c/12", comment_id="12")


class TestFingerprint:
    def test_deterministic(self):
        assert fingerprint([URL, "42"]) == fingerprint([URL, "42"])

    def test_lowercase_hex_fixed_length(self):
        digest = fingerprint([URL, "42"])
        assert len(digest) == 32
        assert digest == digest.lower()
        int(digest, 16)

    def test_order_sensitive(self):
        assert fingerprint(["a", "b"]) != fingerprint(["b", "a"])

    def test_different_comments_differ(self):
        assert fingerprint([URL, "42"]) != fingerprint([URL, "43"])

    def test_parts_length_prefixed(self):
        assert fingerprint(["a", "bc"]) == hashlib.md5(b"1:a\x002:bc").hexdigest()

    @pytest.mark.parametrize(
        "first, second",
        [
            (["_", ""], ["", "_"]),
            (["a_", "_b"], ["a", "__b"]),
            (["a__b", "c"], ["a", "b__c"]),
            (["a\x00", "b"], ["a", "\x00b"]),
        ],
    )
    def test_separator_characters_in_parts(self, first, second):
        assert fingerprint(first) != fingerprint(second)

    @pytest.mark.parametrize("a, b", [("_", ""), ("x_", "_x"), ("__", "_")])
    def test_order_sensitive_with_underscores(self, a, b):
        assert fingerprint([a, b]) != fingerprint([b, a])

    def test_reference_fingerprint(self):
        ref = CommentReference(review_url=URL, comment_id="42")
        assert ref.fingerprint() == fingerprint([URL, "42"])
