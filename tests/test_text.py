"""Unit tests for text cleaning, tokenizing and stemming helpers."""

from threaddigest.text import (
    build_ngrams,
    filter_tokens,
    normalize,
    normalize_content,
    split_sentences,
    stem,
    strip_formatting,
    tokenize,
)


class TestStem:
    def test_short_tokens_untouched(self) -> None:
        assert stem("ship") == "ship"
        assert stem("bus") == "bus"
        assert stem("eta") == "eta"

    def test_ing_and_ers(self) -> None:
        assert stem("running") == "runn"
        assert stem("builders") == "build"

    def test_ed_and_es(self) -> None:
        assert stem("shipped") == "shipp"
        assert stem("boxes") == "box"
        assert stem("states") == "stat"

    def test_trailing_s(self) -> None:
        assert stem("roads") == "road"
        assert stem("process") == "proces"

    def test_rule_order_prefers_three_char_suffix(self) -> None:
        # "ers" wins over the trailing "s" rule.
        assert stem("owners") == "own"


class TestStripFormatting:
    def test_links_mentions_and_code(self) -> None:
        text = "see https://example.com/a and <@123> in <#456> `code`"
        assert strip_formatting(text) == "see [link] and member in channel"

    def test_nickname_mention(self) -> None:
        assert strip_formatting("ping <@!42> now") == "ping member now"

    def test_fenced_block_removed(self) -> None:
        assert strip_formatting("before ```\nx = 1\n``` after") == "before after"

    def test_quoted_lines_removed(self) -> None:
        assert strip_formatting("> quoted reply\nreal text") == "real text"


class TestSentences:
    def test_split_keeps_delimiters(self) -> None:
        assert split_sentences("Hello there. How are you? Fine!") == [
            "Hello there.",
            "How are you?",
            "Fine!",
        ]

    def test_tail_without_delimiter(self) -> None:
        assert split_sentences("First. and the rest") == ["First.", "and the rest"]

    def test_empty(self) -> None:
        assert split_sentences("   ") == []


class TestNormalize:
    def test_keeps_link_placeholder(self) -> None:
        assert normalize("Budget: $5M [link]!") == "budget 5m [link]"

    def test_tokenize(self) -> None:
        assert tokenize("budget 5m [link]") == ["budget", "5m", "[link]"]

    def test_index_normalization(self) -> None:
        assert normalize_content("Public   Consultation, today!") == "public consultation today"

    def test_filter_tokens(self) -> None:
        tokens = ["the", "grid", "x", "a" * 25, "roadmap", "team"]
        assert filter_tokens(tokens) == ["grid", "roadmap"]

    def test_ngrams(self) -> None:
        assert build_ngrams(["a", "b", "c"]) == ["a_b", "b_c", "a_b_c"]
        assert build_ngrams(["solo"]) == []
