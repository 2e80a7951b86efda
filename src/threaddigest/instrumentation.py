"""Structured log snapshots of ranking and clustering results."""

from __future__ import annotations

import json
import logging
from typing import Any

from threaddigest.models import ThreadCluster, ThreadScore

logger = logging.getLogger(__name__)

_SNAPSHOT_SIZE = 5


def score_snapshot(scores: list[ThreadScore]) -> list[dict[str, Any]]:
    return [
        {
            "key": s.feature.key,
            "score": round(s.score, 2),
            "participants": s.feature.unique_participants,
            "messages": s.feature.message_count,
            "reactions": round(s.breakdown.reactions, 2),
            "decisionVerbHits": s.feature.decision_verb_hits,
            "topTopics": [hit.slug for hit in s.feature.topic_hits][:3],
        }
        for s in scores[:_SNAPSHOT_SIZE]
    ]


def cluster_snapshot(clusters: list[ThreadCluster]) -> list[dict[str, Any]]:
    return [
        {
            "id": c.id,
            "label": c.label,
            "members": len(c.members),
            "topTokens": c.top_tokens,
        }
        for c in clusters
    ]


def log_thread_scores(guild_id: str, scores: list[ThreadScore]) -> None:
    logger.info(
        "Digest scoring snapshot [guild=%s]: %s",
        guild_id,
        json.dumps(score_snapshot(scores), ensure_ascii=False),
    )


def log_clusters(guild_id: str, clusters: list[ThreadCluster]) -> None:
    logger.info(
        "Digest theme clusters [guild=%s]: %s",
        guild_id,
        json.dumps(cluster_snapshot(clusters), ensure_ascii=False),
    )
