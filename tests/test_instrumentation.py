"""Unit tests for digest log snapshots."""

import logging
from datetime import UTC, datetime

import pytest

from threaddigest.instrumentation import cluster_snapshot, log_clusters, log_thread_scores, score_snapshot
from threaddigest.models import ScoreBreakdown, ThreadCluster, ThreadFeature, ThreadScore, TopicHitMetric

_T0 = datetime(2024, 1, 1, tzinfo=UTC)


def _make(key: str, score: float) -> ThreadScore:
    feature = ThreadFeature(
        key=key,
        channel_id="c",
        participants=frozenset({"a", "b"}),
        message_count=3,
        decision_verb_hits=1,
        topic_hits=tuple(TopicHitMetric(slug=s, keyword_hits=1) for s in ("p", "q", "r", "s")),
        first_message_at=_T0,
        last_message_at=_T0,
    )
    return ThreadScore(feature=feature, score=score, breakdown=ScoreBreakdown(reactions=1.234))


class TestSnapshots:
    def test_score_snapshot_top_five(self) -> None:
        snapshot = score_snapshot([_make(str(i), 10.0 / (i + 1)) for i in range(7)])
        assert len(snapshot) == 5
        assert snapshot[0] == {
            "key": "0",
            "score": 10.0,
            "participants": 2,
            "messages": 3,
            "reactions": 1.23,
            "decisionVerbHits": 1,
            "topTopics": ["p", "q", "r"],
        }

    def test_cluster_snapshot(self) -> None:
        cluster = ThreadCluster(id="cluster-0", label="p · q", members=[_make("a", 1)], top_tokens=["p"])
        assert cluster_snapshot([cluster]) == [
            {"id": "cluster-0", "label": "p · q", "members": 1, "topTokens": ["p"]}
        ]

    def test_log_lines(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="threaddigest.instrumentation"):
            log_thread_scores("g1", [_make("a", 1.0)])
            log_clusters("g1", [])
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("Digest scoring snapshot [guild=g1]") for m in messages)
        assert "Digest theme clusters [guild=g1]: []" in messages
