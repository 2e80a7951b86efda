"""Topic frequency roll-up for digest headers."""

from __future__ import annotations

from collections import Counter

from threaddigest.models import ThreadScore, TopicCount


def count_topics(scores: list[ThreadScore], limit: int = 3) -> list[TopicCount]:
    """Top *limit* topic slugs by ``keyword_hits + 2 * bigram_hits`` across threads."""
    totals: Counter[str] = Counter()
    for scored in scores:
        for hit in scored.feature.topic_hits:
            totals[hit.slug] += hit.count_weight

    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [TopicCount(slug=slug, count=count) for slug, count in ranked]
