"""Deterministic extractive summaries using sentence scoring and MMR selection."""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from threaddigest.models import IndexedMessage, SummaryResult
from threaddigest.taxonomy import TopicTaxonomy
from threaddigest.text import (
    DECISION_VERB_RE,
    LINK_TOKEN,
    build_ngrams,
    filter_tokens,
    normalize,
    split_sentences,
    stem,
    strip_formatting,
    tokenize,
)

logger = logging.getLogger(__name__)

NO_ACTIVITY = "No notable discussion captured in this window."

MAX_SENTENCES = 4
CHARACTER_LIMIT = 380
BULLET_PREVIEW = 180
FALLBACK_MESSAGES = 3
MMR_LAMBDA = 0.72

_TOPIC_BOOST = 1.2
_LEAD_BONUS = 0.2
_LEAD_SENTENCES = 3
_DECISION_BONUS = 0.6
_LATE_DECISION_BONUS = 0.3
_DIGIT_BONUS = 0.2
_LINK_BONUS = 0.2


@dataclass(frozen=True)
class SentenceDoc:
    id: str
    author: str
    original: str
    normalized: str
    tokens: tuple[str, ...]
    ngrams: tuple[str, ...]
    tf: Counter[str]
    unique_tokens: frozenset[str]
    length: int
    position: int
    timestamp: datetime


def format_bullet(sentence: str, author: str) -> str:
    trimmed = " ".join(sentence.split())
    if len(trimmed) > BULLET_PREVIEW:
        trimmed = f"{trimmed[:BULLET_PREVIEW - 3]}…"
    return f"• {author}: {trimmed}"


def jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def build_sentence_docs(messages: Sequence[IndexedMessage]) -> list[SentenceDoc]:
    """Split every message into scored-ready sentences, in message order."""
    docs: list[SentenceDoc] = []
    for message in messages:
        for sentence in split_sentences(strip_formatting(message.content)):
            normalized = normalize(sentence)
            if not normalized:
                continue
            tokens = filter_tokens([stem(t) for t in tokenize(normalized)])
            ngrams = build_ngrams(tokens)
            combined = tokens + ngrams
            if not combined:
                continue
            docs.append(
                SentenceDoc(
                    id=message.id,
                    author=message.author_username,
                    original=sentence.strip(),
                    normalized=normalized,
                    tokens=tuple(tokens),
                    ngrams=tuple(ngrams),
                    tf=Counter(combined),
                    unique_tokens=frozenset(combined),
                    length=len(combined),
                    position=len(docs),
                    timestamp=message.timestamp,
                )
            )
    return docs


def document_frequency(docs: Sequence[SentenceDoc]) -> Counter[str]:
    df: Counter[str] = Counter()
    for doc in docs:
        df.update(doc.unique_tokens)
    return df


class ExtractiveSummarizer:
    """Reduces one thread's messages to at most four bullet lines.

    Sentences are scored by TF-IDF with a topic boost plus positional,
    decision, digit and link bonuses, then picked with Maximal Marginal
    Relevance so near-duplicate sentences do not crowd the summary.
    """

    def __init__(self, taxonomy: TopicTaxonomy | None = None) -> None:
        self._taxonomy = taxonomy if taxonomy is not None else TopicTaxonomy()

    # ── public ──────────────────────────────────────────────────────────

    def summarize(self, messages: Sequence[IndexedMessage], topic: str) -> SummaryResult:
        if not messages:
            return SummaryResult(summary=NO_ACTIVITY)

        docs = build_sentence_docs(messages)
        if not docs:
            logger.debug("No usable sentences for topic %s; using raw fallback", topic)
            return self._fallback(messages)

        topic_tokens = self.topic_tokens(topic)
        df = document_frequency(docs)
        scores = [
            self._score_sentence(doc, df, len(docs), topic_tokens, index)
            for index, doc in enumerate(docs)
        ]

        selected = self._select_mmr(docs, scores, MAX_SENTENCES)
        capped = self._enforce_character_limit(docs, selected, CHARACTER_LIMIT)
        return self._format(capped)

    def topic_tokens(self, topic: str) -> frozenset[str]:
        """Stemmed tokens from the topic's keywords, bigrams and label."""
        info = self._taxonomy.find(topic)
        entries = [*(info.keywords if info else ()), *(info.bigrams if info else ()), topic]
        return frozenset(stem(token) for entry in entries for token in tokenize(entry.lower()))

    # ── private ─────────────────────────────────────────────────────────

    @staticmethod
    def _score_sentence(
        doc: SentenceDoc,
        df: Counter[str],
        total: int,
        topic_tokens: frozenset[str],
        index: int,
    ) -> float:
        score = 0.0
        for term, count in doc.tf.items():
            tf = count / doc.length
            idf = math.log((total + 1) / (df.get(term, 1) + 1)) + 1
            boost = _TOPIC_BOOST if term in topic_tokens else 1.0
            score += tf * idf * boost

        if index < _LEAD_SENTENCES:
            score += _LEAD_BONUS
        if DECISION_VERB_RE.search(doc.normalized):
            score += _DECISION_BONUS
            if index >= total - 2:
                score += _LATE_DECISION_BONUS
        if any(ch.isdigit() for ch in doc.original):
            score += _DIGIT_BONUS
        if LINK_TOKEN in doc.normalized:
            score += _LINK_BONUS
        return score

    @staticmethod
    def _select_mmr(docs: list[SentenceDoc], scores: list[float], max_items: int) -> list[int]:
        """Indices picked by MMR, returned in original sentence order."""
        candidates = sorted(range(len(docs)), key=lambda i: scores[i], reverse=True)
        selected: list[int] = []

        while candidates and len(selected) < max_items:
            best = candidates[0]
            best_score = -math.inf
            for candidate in candidates:
                redundancy = max(
                    (jaccard(docs[candidate].unique_tokens, docs[s].unique_tokens) for s in selected),
                    default=0.0,
                )
                mmr = MMR_LAMBDA * scores[candidate] - (1 - MMR_LAMBDA) * redundancy
                if mmr > best_score:
                    best_score = mmr
                    best = candidate
            selected.append(best)
            candidates.remove(best)

        return sorted(selected)

    @staticmethod
    def _enforce_character_limit(
        docs: list[SentenceDoc], selected: list[int], limit: int
    ) -> list[SentenceDoc]:
        chosen: list[SentenceDoc] = []
        total = 0
        for index in selected:
            if len(chosen) >= MAX_SENTENCES:
                break
            projected = total + len(docs[index].original)
            # The first sentence is always kept.
            if projected > limit and chosen:
                break
            chosen.append(docs[index])
            total = projected
        return chosen

    @staticmethod
    def _format(sentences: list[SentenceDoc]) -> SummaryResult:
        bullets = [format_bullet(s.original, s.author) for s in sentences]
        return SummaryResult(
            summary="\n".join(bullets) or NO_ACTIVITY,
            selected_ids=[s.id for s in sentences],
        )

    @staticmethod
    def _fallback(messages: Sequence[IndexedMessage]) -> SummaryResult:
        top = list(messages[:FALLBACK_MESSAGES])
        bullets = [format_bullet(m.content, m.author_username) for m in top]
        return SummaryResult(
            summary="\n".join(bullets) or NO_ACTIVITY,
            selected_ids=[m.id for m in top],
        )
