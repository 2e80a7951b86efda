"""Digest ranking and summarisation engine for keyword-tagged chat threads."""

from threaddigest.cluster import analyze_themes
from threaddigest.counter import count_topics
from threaddigest.digest import DigestBuilder, build_digest
from threaddigest.features import extract_features
from threaddigest.rank import rank
from threaddigest.summarize import ExtractiveSummarizer

__all__ = [
    "DigestBuilder",
    "ExtractiveSummarizer",
    "analyze_themes",
    "build_digest",
    "count_topics",
    "extract_features",
    "rank",
]
