"""Topic taxonomy snapshots and the YAML loader that builds them."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from threaddigest import config
from threaddigest.models import Topic

logger = logging.getLogger(__name__)

_DEFAULT_TOPICS: list[dict[str, Any]] = [
    {
        "slug": "policy",
        "keywords": [
            "policy", "bill", "regulation", "legislation", "permit",
            "permitting", "ministerial",
        ],
        "bigrams": [
            "environmental assessment", "impact assessment", "public consultation",
        ],
        "boost": 1.2,
    },
    {
        "slug": "energy",
        "keywords": [
            "pipeline", "transmission", "grid", "hydro", "nuclear", "uranium",
            "oil", "lng", "gas",
        ],
        "bigrams": ["natural resources", "power purchase"],
        "boost": 1.1,
    },
    {
        "slug": "builder-mp",
        "keywords": ["builder-mp", "milestone", "release", "deploy", "rollback", "bugfix"],
        "bigrams": ["feature flag", "release notes"],
        "boost": 1.3,
    },
]


class TaxonomyError(Exception):
    """Raised when a taxonomy file cannot be interpreted at all."""


class TopicTaxonomy:
    """Immutable, slug-indexed set of topics used for one digest run."""

    def __init__(self, topics: Iterable[Topic] = ()) -> None:
        by_slug: dict[str, Topic] = {}
        for topic in topics:
            by_slug[topic.slug] = topic
        self._topics = by_slug

    @classmethod
    def default(cls) -> TopicTaxonomy:
        return cls(Topic(**entry) for entry in _DEFAULT_TOPICS)

    def list(self) -> list[Topic]:
        return list(self._topics.values())

    def find(self, slug: str) -> Topic | None:
        return self._topics.get(slug.strip().lower())

    def with_topic(self, topic: Topic) -> TopicTaxonomy:
        """Return a copy with *topic* added or replaced."""
        return TopicTaxonomy([*self._topics.values(), topic])

    def without(self, slug: str) -> TopicTaxonomy:
        normalized = slug.strip().lower()
        return TopicTaxonomy(t for t in self._topics.values() if t.slug != normalized)

    def __len__(self) -> int:
        return len(self._topics)

    def __contains__(self, slug: object) -> bool:
        return isinstance(slug, str) and slug.strip().lower() in self._topics


def _entries(cfg: Any) -> list[dict[str, Any]]:
    """Flatten either ``topics: {slug: {...}}`` or ``topics: [{slug: ...}]``."""
    raw = cfg.get("topics", {}) if isinstance(cfg, dict) else cfg
    if isinstance(raw, dict):
        return [
            {"slug": slug, **(spec if isinstance(spec, dict) else {})}
            for slug, spec in raw.items()
        ]
    if isinstance(raw, list):
        return [entry for entry in raw if isinstance(entry, dict)]
    raise TaxonomyError(f"Unsupported taxonomy layout: {type(raw).__name__}")


def load_topics(topics_path: Path) -> TopicTaxonomy:
    """Parse a topics YAML file into a :class:`TopicTaxonomy`.

    Each topic may declare ``keywords``, ``bigrams`` and ``boost``; missing
    lists are treated as empty and a missing boost as ``1.0``. Entries that
    fail validation are skipped with a warning.
    """
    if not topics_path.exists():
        logger.warning("Taxonomy file not found, using empty taxonomy: %s", topics_path)
        return TopicTaxonomy()

    with open(topics_path, encoding="utf-8") as fh:
        cfg: Any = yaml.safe_load(fh) or {}

    topics: list[Topic] = []
    for entry in _entries(cfg):
        try:
            topics.append(Topic(**entry))
        except (TypeError, ValidationError) as exc:
            logger.warning("Skipping malformed topic %r: %s", entry.get("slug"), exc)

    logger.info("Loaded %d topics from %s", len(topics), topics_path)
    return TopicTaxonomy(topics)


def configured_taxonomy() -> TopicTaxonomy:
    """Taxonomy from ``DIGEST_TOPICS_PATH`` when set, else the built-in defaults."""
    if config.TOPICS_PATH is not None:
        return load_topics(config.TOPICS_PATH)
    return TopicTaxonomy.default()
