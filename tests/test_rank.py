"""Unit tests for thread scoring."""

import math
from datetime import UTC, datetime, timedelta

import pytest

from threaddigest.channels import ChannelWeights
from threaddigest.features import extract_features
from threaddigest.models import IndexedMessage, ThreadFeature, TopicHitMetric
from threaddigest.rank import rank, score

NOW = datetime(2024, 1, 2, 12, 0, tzinfo=UTC)


def _feature(
    key: str = "t1",
    channel_id: str = "c1",
    participants: int = 1,
    messages: int = 1,
    reactions: float = 0.0,
    hits: tuple[TopicHitMetric, ...] = (),
    links: int = 0,
    decisions: int = 0,
    hours_ago: float = 0.0,
) -> ThreadFeature:
    last = NOW - timedelta(hours=hours_ago)
    return ThreadFeature(
        key=key,
        channel_id=channel_id,
        participants=frozenset(f"u{i}" for i in range(participants)),
        message_count=messages,
        reaction_weighted=reactions,
        topic_hits=hits,
        link_count=links,
        decision_verb_hits=decisions,
        first_message_at=last,
        last_message_at=last,
    )


class TestScore:
    def test_reference_example(self) -> None:
        result = score(_feature(participants=4, messages=5), now=NOW)
        assert result.score == pytest.approx(4.8 + math.log(6))
        assert result.score == pytest.approx(6.59, abs=0.01)

    def test_breakdown_terms(self) -> None:
        hit = TopicHitMetric(slug="policy", keyword_hits=2, bigram_hits=1, boost=1.5)
        result = score(
            _feature(reactions=5, hits=(hit,), links=2, decisions=1, hours_ago=36),
            now=NOW,
        )
        b = result.breakdown
        assert b.reactions == pytest.approx(4.0)
        assert b.topic_hits == pytest.approx(1.3 * (2 * 2 + 1 * 4) * 1.5)
        assert b.links == pytest.approx(2.2)
        assert b.decisions == pytest.approx(4.2)
        assert b.time_decay == pytest.approx(0.5)

    def test_score_matches_breakdown_times_multiplier(self) -> None:
        hit = TopicHitMetric(slug="energy", keyword_hits=1)
        result = score(
            _feature(participants=3, messages=7, reactions=2, hits=(hit,), decisions=2, hours_ago=100),
            multiplier=2.5,
            now=NOW,
        )
        b = result.breakdown
        expected = (
            b.participants + b.message_count + b.reactions + b.topic_hits + b.links + b.decisions
            - b.time_decay
        ) * 2.5
        assert result.score == pytest.approx(expected)
        assert result.multiplier == 2.5

    def test_time_decay_is_unbounded(self) -> None:
        result = score(_feature(hours_ago=720), now=NOW)
        assert result.breakdown.time_decay == pytest.approx(10.0)
        assert result.score < 0

    def test_future_message_has_no_decay(self) -> None:
        result = score(_feature(hours_ago=-5), now=NOW)
        assert result.breakdown.time_decay == 0.0


class TestRank:
    def test_higher_score_first(self) -> None:
        quiet = _feature(key="quiet", participants=1)
        busy = _feature(key="busy", participants=6, decisions=2)
        ranked = rank([quiet, busy], now=NOW)
        assert [s.feature.key for s in ranked] == ["busy", "quiet"]

    def test_ties_keep_extraction_order(self) -> None:
        features = [_feature(key=k) for k in ("a", "b", "c")]
        ranked = rank(features, now=NOW)
        assert [s.feature.key for s in ranked] == ["a", "b", "c"]

    def test_channel_multipliers(self) -> None:
        muted = _feature(key="muted", channel_id="noisy", participants=5)
        other = _feature(key="other", channel_id="quiet", participants=2)
        ranked = rank([muted, other], {"noisy": 0}, now=NOW)
        assert ranked[0].feature.key == "other"
        assert ranked[1].score == 0.0
        assert ranked[0].multiplier == 1.0

    def test_multiplier_is_clamped(self) -> None:
        feature = _feature(participants=1)
        [result] = rank([feature], ChannelWeights({"c1": 50}), now=NOW)
        assert result.multiplier == 5.0

    def test_empty_list(self) -> None:
        assert rank([], now=NOW) == []


class TestNaiveTimestamps:
    def test_naive_feature_times_are_read_as_utc(self) -> None:
        last = NOW.replace(tzinfo=None) - timedelta(hours=36)
        feature = ThreadFeature(
            key="t1", channel_id="c1", first_message_at=last, last_message_at=last
        )
        [result] = rank([feature], now=NOW)
        assert feature.last_message_at.tzinfo is UTC
        assert result.breakdown.time_decay == pytest.approx(0.5)

    def test_naive_now_matches_aware_now(self) -> None:
        feature = _feature(participants=3, hours_ago=12)
        [aware] = rank([feature], now=NOW)
        [naive] = rank([feature], now=NOW.replace(tzinfo=None))
        assert naive.score == pytest.approx(aware.score)

    def test_naive_messages_rank_with_default_clock(self) -> None:
        message = IndexedMessage(
            id="1",
            author_username="alice",
            channel_id="c1",
            timestamp=datetime(2024, 1, 1, 12),
        )
        ranked = rank(extract_features([message], []))
        assert [s.feature.key for s in ranked] == ["c1"]
