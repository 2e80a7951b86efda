"""Per-channel weight multipliers applied to thread scores."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from types import MappingProxyType

logger = logging.getLogger(__name__)

MIN_WEIGHT = 0.0
MAX_WEIGHT = 5.0
DEFAULT_WEIGHT = 1.0


def clamp_weight(value: object) -> float:
    """Coerce *value* to a multiplier in ``[0, 5]``; junk becomes the default."""
    try:
        weight = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_WEIGHT
    if not math.isfinite(weight):
        return DEFAULT_WEIGHT
    return max(MIN_WEIGHT, min(MAX_WEIGHT, weight))


class ChannelWeights:
    """Read-only snapshot of one guild's channel multipliers."""

    def __init__(self, multipliers: Mapping[str, object] | None = None, guild_id: str = "") -> None:
        self.guild_id = guild_id
        cleaned: dict[str, float] = {}
        for channel_id, raw in (multipliers or {}).items():
            weight = clamp_weight(raw)
            if weight != raw:
                logger.debug("Clamped weight for channel %s: %r → %.2f", channel_id, raw, weight)
            cleaned[str(channel_id)] = weight
        self._multipliers = MappingProxyType(cleaned)

    def multiplier(self, channel_id: str) -> float:
        return self._multipliers.get(channel_id, DEFAULT_WEIGHT)

    def with_weight(self, channel_id: str, weight: object) -> ChannelWeights:
        """Return a new snapshot with *channel_id* set to *weight*."""
        updated = dict(self._multipliers)
        updated[channel_id] = clamp_weight(weight)
        return ChannelWeights(updated, guild_id=self.guild_id)

    def as_dict(self) -> dict[str, float]:
        return dict(self._multipliers)

    def __len__(self) -> int:
        return len(self._multipliers)
