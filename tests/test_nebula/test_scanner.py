"""Unit tests for nebula.scanner."""

import pytest

from nebula.scanner import extract_references, extract_tags, normalize_title

# ---------------------------------------------------------------------------
# extract_tags
# ---------------------------------------------------------------------------


class TestExtractTags:
    def test_single_tag(self):
        assert extract_tags("Filed under #work today") == {"work"}

    def test_tag_at_start_of_text(self):
        assert extract_tags("#inbox first") == {"inbox"}

    def test_tag_after_newline(self):
        assert extract_tags("line one\n#second line") == {"second"}

    def test_lowercased_and_deduplicated(self):
        assert extract_tags("#Work and #work and #WORK") == {"work"}

    def test_hyphen_and_underscore(self):
        assert extract_tags("#open-source #snake_case #v2") == {"open-source", "snake_case", "v2"}

    def test_token_stops_at_punctuation(self):
        assert extract_tags("Done #today, then #tomorrow.") == {"today", "tomorrow"}

    def test_hash_not_preceded_by_whitespace(self):
        assert extract_tags("issue#12 and https://example.com/page#section") == set()

    def test_hash_followed_by_non_token(self):
        assert extract_tags("a # heading and #! and #") == set()

    def test_heading_marker_is_not_a_tag(self):
        assert extract_tags("## Heading") == set()

    def test_empty_text(self):
        assert extract_tags("") == set()


# ---------------------------------------------------------------------------
# extract_references
# ---------------------------------------------------------------------------


class TestExtractReferences:
    def test_single_reference(self):
        assert extract_references("See [[Getting Started]] first.") == ["Getting Started"]

    def test_order_and_duplicates_kept(self):
        assert extract_references("[[Z]] [[A]] [[Z]]") == ["Z", "A", "Z"]

    def test_target_trimmed(self):
        assert extract_references("[[  Padded Title \t]]") == ["Padded Title"]

    def test_empty_marker_yields_empty_target(self):
        assert extract_references("[[]]") == [""]

    def test_whitespace_marker_yields_empty_target(self):
        assert extract_references("[[ ]]") == [""]

    def test_first_closing_bracket_pair_wins(self):
        assert extract_references("[[a]] b]]") == ["a"]

    def test_unterminated_marker_ignored(self):
        assert extract_references("[[never closed") == []

    def test_nested_brackets_not_special(self):
        assert extract_references("[[[x]]") == ["[x"]

    def test_target_may_span_lines(self):
        assert extract_references("[[two\nlines]]") == ["two\nlines"]

    def test_empty_text(self):
        assert extract_references("") == []


# ---------------------------------------------------------------------------
# normalize_title
# ---------------------------------------------------------------------------


class TestNormalizeTitle:
    def test_trim_and_lowercase(self):
        assert normalize_title("  Project Plan ") == "project plan"

    def test_none_is_empty(self):
        assert normalize_title(None) == ""

    def test_whitespace_is_empty(self):
        assert normalize_title(" \t\n") == ""


# ---------------------------------------------------------------------------
# Purity
# ---------------------------------------------------------------------------

SAMPLES = [
    "",
    "Alpha #work links [[Beta]] and [[beta]]",
    "#a #b [[c]] [[c]] #a",
    "```\n#not-special [[still counted]]\n```",
    "[[ ]] [[]] #-_- #x#y",
]


@pytest.mark.parametrize("text", SAMPLES)
def test_extractors_are_idempotent(text):
    assert extract_tags(text) == extract_tags(text)
    assert extract_references(text) == extract_references(text)


def test_concrete_scenario_tags_and_references():
    text = "Alpha #work links [[Beta]] and [[beta]]"
    assert extract_tags(text) == {"work"}
    assert extract_references(text) == ["Beta", "beta"]
