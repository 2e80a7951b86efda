"""Group scored threads into themes by shared topic and keyword vocabulary."""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Mapping

from threaddigest.models import ThemeAnalysis, ThreadCluster, ThreadScore, TokenCount

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.2
LABEL_SEPARATOR = " · "
_CLUSTER_TOKENS = 2
_GLOBAL_TOKENS = 10


def build_vector(scored: ThreadScore) -> Counter[str]:
    """Sparse token weights: topic slugs by hit weight, keywords by presence."""
    vector: Counter[str] = Counter()
    for hit in scored.feature.topic_hits:
        weight = hit.score_weight
        if weight > 0:
            vector[hit.slug] += weight
    for keyword in scored.feature.matched_keywords:
        vector[keyword] += 1
    return vector


def cosine_similarity(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """Cosine of two sparse vectors; 0 when either has no weight."""
    dot = sum(weight * b.get(token, 0.0) for token, weight in a.items())
    norm_a = math.sqrt(sum(w * w for w in a.values()))
    norm_b = math.sqrt(sum(w * w for w in b.values()))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    # Float error can push identical vectors a hair past 1.
    return max(0.0, min(1.0, dot / (norm_a * norm_b)))


def _top_tokens(totals: Counter[str], take: int) -> list[tuple[str, float]]:
    # Stable on ties: first-inserted token wins.
    return sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:take]


def cluster_label(members: list[ThreadScore]) -> str:
    """Join the two heaviest topic slugs, or ``general`` when there are none."""
    weights: Counter[str] = Counter()
    for member in members:
        for hit in member.feature.topic_hits:
            weights[hit.slug] += hit.count_weight
    top = [slug for slug, _ in _top_tokens(weights, 2)]
    return LABEL_SEPARATOR.join(top) if top else "general"


def analyze_themes(scores: list[ThreadScore]) -> ThemeAnalysis:
    """Greedy single-pass clustering over *scores* in their given order.

    Each unvisited thread seeds a cluster and absorbs every later unvisited
    thread whose cosine similarity to the seed reaches the threshold. This is
    order-dependent: a thread joins the first seed it resembles even if a
    later seed would fit it better.
    """
    if not scores:
        return ThemeAnalysis()

    vectors = [build_vector(s) for s in scores]
    global_counts: Counter[str] = Counter()
    for vector in vectors:
        global_counts.update(vector)

    clusters: list[ThreadCluster] = []
    visited: set[int] = set()

    for i, seed in enumerate(vectors):
        if i in visited:
            continue
        visited.add(i)
        members = [i]
        for j in range(i + 1, len(scores)):
            if j in visited:
                continue
            if cosine_similarity(seed, vectors[j]) >= SIMILARITY_THRESHOLD:
                members.append(j)
                visited.add(j)

        member_scores = [scores[idx] for idx in members]
        totals: Counter[str] = Counter()
        for idx in members:
            totals.update(vectors[idx])

        clusters.append(
            ThreadCluster(
                id=f"cluster-{i}",
                label=cluster_label(member_scores),
                members=member_scores,
                top_tokens=[token for token, _ in _top_tokens(totals, _CLUSTER_TOKENS)],
            )
        )

    global_top = [
        TokenCount(token=token, count=count)
        for token, count in _top_tokens(global_counts, _GLOBAL_TOKENS)
    ]
    logger.info("Clustered %d threads into %d themes", len(scores), len(clusters))
    return ThemeAnalysis(clusters=clusters, global_top_tokens=global_top)
