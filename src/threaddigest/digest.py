"""Digest orchestration: extract → score → cluster → count → summarise."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime, timedelta

from threaddigest import config
from threaddigest.cache import SummaryCache
from threaddigest.channels import ChannelWeights
from threaddigest.cluster import analyze_themes
from threaddigest.counter import count_topics
from threaddigest.features import extract_features
from threaddigest.instrumentation import log_clusters, log_thread_scores
from threaddigest.models import (
    DigestEntry,
    DigestResult,
    DigestStats,
    IndexedMessage,
    SummaryResult,
    ThemeAnalysis,
    ThreadCluster,
    ThreadScore,
    ThreadScoreSnapshot,
    TokenUsage,
    TopicCount,
    TopicWeight,
    as_utc,
)
from threaddigest.rank import rank
from threaddigest.summarize import ExtractiveSummarizer
from threaddigest.taxonomy import TopicTaxonomy, configured_taxonomy

logger = logging.getLogger(__name__)

# Rewrites an extractive pre-pass (e.g. through an LLM); owned by the caller.
SummaryEnhancer = Callable[[list[IndexedMessage], str], SummaryResult]

_ENHANCER_MESSAGES = 8
_ESCALATION_CHANNELS = 3
_ESCALATION_DECISIONS = 2
_HEADER_THEMES = 3


def primary_topic(scored: ThreadScore) -> str:
    """Heaviest topic slug, else the first matched keyword, else ``discussion``."""
    feature = scored.feature
    hits = sorted(feature.topic_hits, key=lambda h: h.count_weight * h.boost, reverse=True)
    if hits:
        return hits[0].slug
    if feature.matched_keywords:
        return feature.matched_keywords[0]
    return "discussion"


def topic_weights(scored: ThreadScore, limit: int = 3) -> list[TopicWeight]:
    hits = sorted(
        scored.feature.topic_hits, key=lambda h: h.count_weight * h.boost, reverse=True
    )
    return [TopicWeight(slug=h.slug, weight=h.score_weight) for h in hits[:limit]]


def detect_escalations(top_topics: list[TopicCount], clusters: list[ThreadCluster]) -> list[str]:
    """Topics spreading across channels with repeated decision language."""
    escalations: list[str] = []
    for topic in top_topics:
        channel_count = 0
        decision_hits = 0
        for cluster in clusters:
            members = [
                m for m in cluster.members
                if any(hit.slug == topic.slug for hit in m.feature.topic_hits)
            ]
            channel_count += len({m.feature.channel_id for m in members})
            decision_hits += sum(m.feature.decision_verb_hits for m in members)
        if channel_count >= _ESCALATION_CHANNELS and decision_hits >= _ESCALATION_DECISIONS:
            escalations.append(f"{topic.slug} ↑")
    return escalations


def header_lines(
    top_topics: list[TopicCount], analysis: ThemeAnalysis, enhanced: bool
) -> list[str]:
    if not top_topics and not analysis.clusters:
        return []

    lines: list[str] = []
    if top_topics:
        topic_line = ", ".join(f"{t.slug} ({t.count})" for t in top_topics)
        lines.append(f"Top topics this window: {topic_line}")

    escalations = detect_escalations(top_topics, analysis.clusters)
    if escalations:
        lines.append(f"Escalate: {', '.join(escalations)}")

    themes = [c for c in analysis.clusters if len(c.members) >= 2][:_HEADER_THEMES]
    if themes:
        lines.append("Themes: " + " · ".join(f"{c.label} ({len(c.members)})" for c in themes))

    mode = "Enhanced with extractive pre-pass" if enhanced else "Extractive only"
    lines.append(f"Summaries: {mode}")
    return lines


def empty_digest(keywords: Sequence[str]) -> DigestResult:
    return DigestResult(
        empty=True,
        title="No New Activity",
        header_lines=[
            "No messages found matching your keywords in the specified time period.",
            f"Your keywords: {', '.join(keywords)}",
            "Try broadening your search or checking back later.",
        ],
    )


class DigestBuilder:
    """Runs the full ranking and summarisation pass for one guild."""

    def __init__(
        self,
        taxonomy: TopicTaxonomy | None = None,
        *,
        enhancer: SummaryEnhancer | None = None,
        cache: SummaryCache | None = None,
        max_threads: int = config.MAX_THREADS,
        messages_per_thread: int = config.MESSAGES_PER_THREAD,
    ) -> None:
        self._taxonomy = taxonomy if taxonomy is not None else configured_taxonomy()
        self._summarizer = ExtractiveSummarizer(self._taxonomy)
        self._enhancer = enhancer
        self._cache = cache if cache is not None else SummaryCache()
        self._max_threads = max_threads
        self._messages_per_thread = messages_per_thread

    # ── public ──────────────────────────────────────────────────────────

    def build(
        self,
        messages: Iterable[IndexedMessage],
        *,
        keywords: Sequence[str] = (),
        weights: ChannelWeights | Mapping[str, object] | None = None,
        guild_id: str = "",
        now: datetime | None = None,
        summary_ttl: timedelta | None = None,
    ) -> DigestResult:
        now = as_utc(now) if now else datetime.now(UTC)
        try:
            return self._build(messages, keywords, weights, guild_id, now, summary_ttl)
        except Exception:
            logger.exception("Failed to generate digest [guild=%s]", guild_id)
            raise

    # ── private ─────────────────────────────────────────────────────────

    def _build(
        self,
        messages: Iterable[IndexedMessage],
        keywords: Sequence[str],
        weights: ChannelWeights | Mapping[str, object] | None,
        guild_id: str,
        now: datetime,
        summary_ttl: timedelta | None,
    ) -> DigestResult:
        features = extract_features(
            messages, self._taxonomy, max_messages_per_thread=self._messages_per_thread
        )
        if not features:
            logger.info("No matching activity [guild=%s]", guild_id)
            return empty_digest(keywords)

        if not isinstance(weights, ChannelWeights):
            weights = ChannelWeights(weights, guild_id=guild_id)

        scored = rank(features, weights, now)
        log_thread_scores(guild_id, scored)

        analysis = analyze_themes(scored)
        log_clusters(guild_id, analysis.clusters)

        top_topics = count_topics(scored)
        top_scores = scored[: self._max_threads]

        entries: list[DigestEntry] = []
        usage = TokenUsage()
        cost = 0.0
        for s in top_scores:
            entry, entry_usage, entry_cost = self._entry(s, summary_ttl)
            entries.append(entry)
            usage = TokenUsage(
                input=usage.input + entry_usage.input,
                output=usage.output + entry_usage.output,
            )
            cost += entry_cost

        total_messages = sum(s.feature.message_count for s in top_scores)
        logger.info(
            "Digest generated [guild=%s]: %d threads, %d messages, cost=%.4f",
            guild_id,
            len(top_scores),
            total_messages,
            cost,
        )

        return DigestResult(
            header_lines=header_lines(top_topics, analysis, self._enhancer is not None),
            entries=entries,
            themes=analysis,
            stats=DigestStats(
                message_count=total_messages,
                topic_count=len(top_scores),
                tokens_used=usage,
                cost=cost,
                thread_scores=[
                    ThreadScoreSnapshot(
                        key=s.feature.key,
                        score=round(s.score, 2),
                        participants=s.feature.unique_participants,
                        messages=s.feature.message_count,
                        decision_verb_hits=s.feature.decision_verb_hits,
                    )
                    for s in top_scores
                ],
                top_topics=top_topics,
                cluster_labels=[c.label for c in analysis.clusters],
            ),
        )

    def _entry(
        self, scored: ThreadScore, summary_ttl: timedelta | None
    ) -> tuple[DigestEntry, TokenUsage, float]:
        feature = scored.feature
        topic = primary_topic(scored)
        messages = list(feature.messages)

        extractive = self._summarizer.summarize(messages, topic)
        summary = extractive.summary
        usage = TokenUsage()
        cost = 0.0

        if self._enhancer is not None:
            selected = set(extractive.selected_ids)
            curated = [m for m in messages if m.id in selected] if selected else messages
            curated = curated[:_ENHANCER_MESSAGES]
            enhanced = self._enhance(self._enhancer, curated, topic, summary_ttl)
            if enhanced is not None:
                summary = enhanced.summary or summary
                usage = enhanced.tokens_used
                cost = enhanced.cost

        entry = DigestEntry(
            key=feature.key,
            primary_topic=topic,
            channel_id=feature.channel_id,
            thread_id=feature.thread_id,
            message_count=feature.message_count,
            score=scored.score,
            topics=topic_weights(scored),
            summary=summary,
            selected_ids=extractive.selected_ids,
            jump_url=messages[0].jump_url if messages else None,
            last_message_at=feature.last_message_at,
        )
        return entry, usage, cost

    def _enhance(
        self,
        enhancer: SummaryEnhancer,
        messages: list[IndexedMessage],
        topic: str,
        summary_ttl: timedelta | None,
    ) -> SummaryResult | None:
        ids = [m.id for m in messages]
        cached = self._cache.get(ids, topic)
        if cached is not None:
            return cached.to_result(ids)

        try:
            result = enhancer(messages, topic)
        except Exception:
            logger.exception("Summary enhancer failed [topic=%s]; keeping extractive summary", topic)
            return None

        if result.summary:
            self._cache.set(ids, topic, result, ttl=summary_ttl)
        return result


def build_digest(
    messages: Iterable[IndexedMessage],
    taxonomy: TopicTaxonomy | None = None,
    *,
    keywords: Sequence[str] = (),
    weights: ChannelWeights | Mapping[str, object] | None = None,
    guild_id: str = "",
    now: datetime | None = None,
    max_threads: int = config.MAX_THREADS,
) -> DigestResult:
    """One-shot extractive digest with a throwaway builder."""
    builder = DigestBuilder(taxonomy, max_threads=max_threads)
    return builder.build(messages, keywords=keywords, weights=weights, guild_id=guild_id, now=now)
