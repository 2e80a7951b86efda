"""Aggregate keyword-tagged messages into per-thread features."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from functools import partial, reduce

from threaddigest import config
from threaddigest.models import IndexedMessage, Reaction, ThreadFeature, Topic, TopicHitMetric
from threaddigest.taxonomy import TopicTaxonomy
from threaddigest.text import DECISION_VERB_RE, normalize_content

logger = logging.getLogger(__name__)

# Unlisted emoji weigh 1.
REACTION_WEIGHTS: dict[str, float] = {
    "👍": 2.0,
    "✅": 2.0,
    "🔥": 2.0,
    "💡": 1.5,
    "❤️": 1.5,
    "🎉": 1.5,
    "😂": 0.75,
}


def reaction_weight(reactions: Iterable[Reaction]) -> float:
    return sum(REACTION_WEIGHTS.get(r.emoji, 1.0) * r.count for r in reactions)


def count_decision_verbs(content: str) -> int:
    if not content:
        return 0
    return len(DECISION_VERB_RE.findall(content))


def topic_hits_for(message: IndexedMessage, topics: Sequence[Topic]) -> list[TopicHitMetric]:
    """Keyword and bigram hits of *message* for every topic it touches."""
    normalized = message.normalized_content or normalize_content(message.content)
    hits: list[TopicHitMetric] = []
    for topic in topics:
        keyword_hits = sum(1 for kw in message.matched_keywords if kw in topic.keywords)
        bigram_hits = 0
        if normalized:
            bigram_hits = sum(1 for bg in topic.bigrams if bg.lower() in normalized)
        if keyword_hits or bigram_hits:
            hits.append(
                TopicHitMetric(
                    slug=topic.slug,
                    keyword_hits=keyword_hits,
                    bigram_hits=bigram_hits,
                    boost=topic.boost,
                )
            )
    return hits


def _merge_hits(
    existing: tuple[TopicHitMetric, ...], new: list[TopicHitMetric]
) -> tuple[TopicHitMetric, ...]:
    merged = {hit.slug: hit for hit in existing}
    for hit in new:
        prior = merged.get(hit.slug)
        if prior is None:
            merged[hit.slug] = hit
        else:
            # Boost stays as first copied from the topic.
            merged[hit.slug] = prior.model_copy(
                update={
                    "keyword_hits": prior.keyword_hits + hit.keyword_hits,
                    "bigram_hits": prior.bigram_hits + hit.bigram_hits,
                }
            )
    return tuple(merged.values())


@dataclass(frozen=True)
class _ThreadAccumulator:
    key: str
    guild_id: str
    channel_id: str
    thread_id: str | None
    parent_channel_id: str | None
    first_message_at: datetime
    last_message_at: datetime
    participants: frozenset[str] = frozenset()
    message_count: int = 0
    link_count: int = 0
    reaction_weighted: float = 0.0
    decision_verb_hits: int = 0
    topic_hits: tuple[TopicHitMetric, ...] = ()
    keywords: tuple[str, ...] = ()
    messages: tuple[IndexedMessage, ...] = ()

    @classmethod
    def seed(cls, message: IndexedMessage) -> _ThreadAccumulator:
        return cls(
            key=message.group_key,
            guild_id=message.guild_id,
            channel_id=message.channel_id,
            thread_id=message.thread_id,
            parent_channel_id=message.parent_channel_id,
            first_message_at=message.timestamp,
            last_message_at=message.timestamp,
        )

    def absorb(
        self, message: IndexedMessage, topics: Sequence[Topic], cap: int
    ) -> _ThreadAccumulator:
        new_keywords = tuple(
            kw for kw in dict.fromkeys(message.matched_keywords) if kw not in self.keywords
        )
        messages = self.messages
        if len(messages) < cap:
            messages = (*messages, message)
        return replace(
            self,
            participants=self.participants | {message.participant},
            message_count=self.message_count + 1,
            link_count=self.link_count + message.link_count,
            reaction_weighted=self.reaction_weighted + reaction_weight(message.reactions),
            decision_verb_hits=self.decision_verb_hits + count_decision_verbs(message.content),
            topic_hits=_merge_hits(self.topic_hits, topic_hits_for(message, topics)),
            keywords=self.keywords + new_keywords,
            messages=messages,
            first_message_at=min(self.first_message_at, message.timestamp),
            last_message_at=max(self.last_message_at, message.timestamp),
        )

    def to_feature(self) -> ThreadFeature:
        return ThreadFeature(
            key=self.key,
            guild_id=self.guild_id,
            channel_id=self.channel_id,
            thread_id=self.thread_id,
            parent_channel_id=self.parent_channel_id,
            participants=self.participants,
            message_count=self.message_count,
            reaction_weighted=self.reaction_weighted,
            topic_hits=self.topic_hits,
            link_count=self.link_count,
            decision_verb_hits=self.decision_verb_hits,
            first_message_at=self.first_message_at,
            last_message_at=self.last_message_at,
            matched_keywords=self.keywords,
            messages=self.messages,
        )


def _fold(
    groups: dict[str, _ThreadAccumulator],
    message: IndexedMessage,
    *,
    topics: Sequence[Topic],
    cap: int,
) -> dict[str, _ThreadAccumulator]:
    key = message.group_key
    acc = groups.get(key) or _ThreadAccumulator.seed(message)
    return {**groups, key: acc.absorb(message, topics, cap)}


def extract_features(
    messages: Iterable[IndexedMessage],
    topics: TopicTaxonomy | Iterable[Topic],
    *,
    max_messages_per_thread: int = config.MESSAGES_PER_THREAD,
    limit: int | None = config.MAX_MESSAGES,
) -> list[ThreadFeature]:
    """Group *messages* by thread (else channel) and aggregate their signals.

    Messages are processed oldest first; features come back in the order
    their thread was first seen. Only the first ``max_messages_per_thread``
    messages of each thread are kept for summarisation.
    """
    ordered = sorted(messages, key=lambda m: m.timestamp)
    if limit is not None:
        ordered = ordered[:limit]
    if not ordered:
        return []

    topic_list = topics.list() if isinstance(topics, TopicTaxonomy) else list(topics)
    fold = partial(_fold, topics=topic_list, cap=max(0, max_messages_per_thread))
    groups: dict[str, _ThreadAccumulator] = reduce(fold, ordered, {})

    features = [acc.to_feature() for acc in groups.values()]
    logger.info("Extracted %d thread features from %d messages", len(features), len(ordered))
    return features
