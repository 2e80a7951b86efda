"""Unit tests for channel weight multipliers."""

import pytest

from threaddigest.channels import ChannelWeights, clamp_weight


class TestClampWeight:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (2, 2.0),
            ("2.5", 2.5),
            (7, 5.0),
            (-1, 0.0),
            ("abc", 1.0),
            (None, 1.0),
            (float("nan"), 1.0),
            (float("inf"), 1.0),
        ],
    )
    def test_values(self, raw: object, expected: float) -> None:
        assert clamp_weight(raw) == expected


class TestChannelWeights:
    def test_default_for_unlisted_channel(self) -> None:
        weights = ChannelWeights({"c1": 3})
        assert weights.multiplier("c1") == 3.0
        assert weights.multiplier("c2") == 1.0

    def test_with_weight_returns_new_snapshot(self) -> None:
        base = ChannelWeights({"c1": 3}, guild_id="g1")
        updated = base.with_weight("c2", 9)
        assert updated.multiplier("c2") == 5.0
        assert base.multiplier("c2") == 1.0
        assert updated.guild_id == "g1"
        assert updated.as_dict() == {"c1": 3.0, "c2": 5.0}

    def test_empty(self) -> None:
        assert len(ChannelWeights()) == 0
