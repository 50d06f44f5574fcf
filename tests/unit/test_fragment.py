"""Unit tests for text-fragment deep links."""

from urllib.parse import unquote

import pytest

from kbsearch.retrieval.fragment import build_fragment, build_mdx_path, deep_link, slugify


class TestBuildFragment:
    """Fragments are the first words of the visible chunk text, encoded."""

    def test_first_eight_words(self):
        text = "one two three four five six seven eight nine ten"
        assert build_fragment(text) == "one%20two%20three%20four%20five%20six%20seven%20eight"

    def test_markup_stripped_before_counting(self):
        text = "## Why it fails\n\nAgents **confidently** rewrite [working code](http://x) today"
        assert unquote(build_fragment(text)) == "Why it fails Agents confidently rewrite working code"

    def test_fewer_than_eight_words(self):
        assert build_fragment("Just three words") == "Just%20three%20words"

    @pytest.mark.parametrize("text", ["", "   \n\t ", "```\ncode only\n```", "![img](x.png)"])
    def test_empty_when_no_words(self, text):
        assert build_fragment(text) == ""

    def test_delimiters_are_encoded(self):
        fragment = build_fragment("state-of-the-art tools, rules & checks")
        assert "-" not in fragment
        assert "," not in fragment
        assert "&" not in fragment
        assert unquote(fragment) == "state-of-the-art tools, rules & checks"

    def test_no_raw_whitespace_and_at_most_eight_words(self):
        text = "A  paragraph\nsplit across\tlines with   odd spacing and more words after"
        fragment = build_fragment(text)
        assert fragment
        assert not any(ch.isspace() for ch in fragment)
        assert len(unquote(fragment).split()) <= 8

    def test_custom_word_count(self):
        assert unquote(build_fragment("a b c d e", max_words=3)) == "a b c"


class TestDeepLink:
    def test_appends_fragment(self):
        assert deep_link("/kb/articles/x-1234", "hello%20world") == "/kb/articles/x-1234#:~:text=hello%20world"

    def test_omits_anchor_for_empty_fragment(self):
        assert deep_link("/kb/articles/x-1234", "") == "/kb/articles/x-1234"


class TestMdxPath:
    def test_slug_and_id_prefix(self):
        path = build_mdx_path("Vibe Coding: Pitfalls & Fixes!", "7f3a9c21-0000-4000")
        assert path == "/kb/articles/vibe-coding-pitfalls-fixes-7f3a9c21"

    def test_slug_is_capped_at_sixty_chars(self):
        assert len(slugify("word " * 40)) == 60

    def test_empty_title(self):
        assert build_mdx_path("", "abcdef123456") == "/kb/articles/-abcdef12"
