"""Heuristic relevance scoring for thread features."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import UTC, datetime

from threaddigest.channels import ChannelWeights
from threaddigest.models import ScoreBreakdown, ThreadFeature, ThreadScore, as_utc

logger = logging.getLogger(__name__)

# ── Weights (tuneable) ─────────────────────────────────────────────────────
_W_PARTICIPANT = 1.2
_W_REACTION = 0.8
_W_TOPIC = 1.3
_W_LINKS = 1.1
_W_DECISION = 1.4
_LINK_BONUS = 2
_DECISION_POINTS = 3
_DECAY_HOURS = 72.0


def topic_hit_score(feature: ThreadFeature) -> float:
    return sum(hit.score_weight for hit in feature.topic_hits)


def breakdown(feature: ThreadFeature, now: datetime) -> ScoreBreakdown:
    """Weighted signal terms for one feature; decay grows linearly without a cap."""
    hours_since_last = (as_utc(now) - feature.last_message_at).total_seconds() / 3600
    return ScoreBreakdown(
        participants=_W_PARTICIPANT * feature.unique_participants,
        message_count=math.log1p(feature.message_count),
        reactions=_W_REACTION * feature.reaction_weighted,
        topic_hits=_W_TOPIC * topic_hit_score(feature),
        links=_W_LINKS * (_LINK_BONUS if feature.has_links else 0),
        decisions=_W_DECISION * feature.decision_verb_hits * _DECISION_POINTS,
        time_decay=max(0.0, hours_since_last / _DECAY_HOURS),
    )


def score(feature: ThreadFeature, multiplier: float = 1.0, now: datetime | None = None) -> ThreadScore:
    """Compute the ranking score for a single thread."""
    terms = breakdown(feature, now or datetime.now(UTC))
    return ThreadScore(
        feature=feature,
        score=terms.raw_score * multiplier,
        multiplier=multiplier,
        breakdown=terms,
    )


def rank(
    features: list[ThreadFeature],
    weights: ChannelWeights | Mapping[str, object] | None = None,
    now: datetime | None = None,
) -> list[ThreadScore]:
    """Score and sort features descending; ties keep extraction order."""
    if not isinstance(weights, ChannelWeights):
        weights = ChannelWeights(weights)
    now = as_utc(now) if now else datetime.now(UTC)

    scored = [score(f, weights.multiplier(f.channel_id), now) for f in features]
    ranked = sorted(scored, key=lambda s: s.score, reverse=True)
    logger.info(
        "Ranked %d threads; top score=%.2f", len(ranked), ranked[0].score if ranked else 0
    )
    return ranked
