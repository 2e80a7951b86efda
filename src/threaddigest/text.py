"""Text cleaning, tokenizing and stemming shared by extraction and summaries."""

from __future__ import annotations

import re

# Decision-making vocabulary; matches anywhere in a word, case-insensitively.
DECISION_VERB_RE = re.compile(
    r"(decide|decided|approve|approved|ship|shipping|shipped|blocked|blocker|eta|owner)",
    re.IGNORECASE,
)

LINK_TOKEN = "[link]"

_CODE_BLOCK_RE = re.compile(r"```.*?```", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`[^`]+`")
_QUOTE_LINE_RE = re.compile(r"^>.*$", re.MULTILINE)
_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)
_USER_MENTION_RE = re.compile(r"<@!?\d+>")
_CHANNEL_MENTION_RE = re.compile(r"<#[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_SPLIT_RE = re.compile(r"([.!?])")
_NON_TOKEN_CHARS_RE = re.compile(r"[^a-z0-9\[\]\s]")
_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9\[\]]+")
_PUNCT_RE = re.compile(r"[^\w\s]")

STOPWORDS: frozenset[str] = frozenset({
    "a", "about", "after", "again", "against", "all", "am", "an", "and", "any",
    "are", "as", "at", "be", "because", "been", "before", "being", "below",
    "between", "both", "but", "by", "can", "did", "do", "does", "doing", "down",
    "during", "each", "few", "for", "from", "further", "had", "has", "have",
    "having", "he", "her", "here", "hers", "herself", "him", "himself", "his",
    "how", "i", "if", "in", "into", "is", "it", "its", "itself", "just", "me",
    "more", "most", "my", "myself", "no", "nor", "not", "now", "of", "off", "on",
    "once", "only", "or", "other", "our", "ours", "ourselves", "out", "over",
    "own", "same", "she", "should", "so", "some", "such", "than", "that", "the",
    "their", "theirs", "them", "themselves", "then", "there", "these", "they",
    "this", "those", "through", "to", "too", "under", "until", "up", "very",
    "was", "we", "were", "what", "when", "where", "which", "while", "who",
    "whom", "why", "with", "you", "your", "yours", "yourself", "yourselves",
    # community-specific filler
    "ai", "canada", "builds", "project", "team",
})

MIN_TOKEN_LEN = 2
MAX_TOKEN_LEN = 24


def normalize_content(content: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace (index-time form)."""
    return _WHITESPACE_RE.sub(" ", _PUNCT_RE.sub(" ", content.lower())).strip()


def strip_formatting(content: str) -> str:
    """Remove code and quotes, and replace links and mentions with placeholders."""
    text = _CODE_BLOCK_RE.sub(" ", content)
    text = _INLINE_CODE_RE.sub(" ", text)
    text = _QUOTE_LINE_RE.sub(" ", text)
    text = _URL_RE.sub(f" {LINK_TOKEN} ", text)
    text = _USER_MENTION_RE.sub(" member ", text)
    text = _CHANNEL_MENTION_RE.sub(" channel ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def split_sentences(content: str) -> list[str]:
    """Split on ``.``, ``!`` and ``?``, keeping the delimiter on its sentence."""
    sentences: list[str] = []
    buffer = ""
    for part in _SENTENCE_SPLIT_RE.split(content):
        buffer += part
        if part in (".", "!", "?"):
            trimmed = buffer.strip()
            if trimmed:
                sentences.append(trimmed)
            buffer = ""
    tail = buffer.strip()
    if tail:
        sentences.append(tail)
    return sentences


def normalize(text: str) -> str:
    """Lowercase and keep only ``[a-z0-9]``, square brackets and single spaces."""
    return _WHITESPACE_RE.sub(" ", _NON_TOKEN_CHARS_RE.sub(" ", text.lower())).strip()


def tokenize(text: str) -> list[str]:
    return [token for token in _TOKEN_SPLIT_RE.split(text) if token]


def stem(token: str) -> str:
    """Strip one common suffix: ``ing``/``ers``, then ``ed``/``es``, then ``s``."""
    if len(token) <= 4:
        return token
    if token.endswith(("ing", "ers")):
        return token[:-3]
    if token.endswith(("ed", "es")):
        return token[:-2]
    if token.endswith("s"):
        return token[:-1]
    return token


def filter_tokens(tokens: list[str]) -> list[str]:
    return [
        token
        for token in tokens
        if MIN_TOKEN_LEN <= len(token) <= MAX_TOKEN_LEN and token not in STOPWORDS
    ]


def build_ngrams(tokens: list[str]) -> list[str]:
    """Adjacent bigrams followed by adjacent trigrams, joined with ``_``."""
    bigrams = [f"{a}_{b}" for a, b in zip(tokens, tokens[1:])]
    trigrams = [f"{a}_{b}_{c}" for a, b, c in zip(tokens, tokens[1:], tokens[2:])]
    return bigrams + trigrams
