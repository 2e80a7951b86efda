"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Digest sizing ──────────────────────────────────────────────────────────
MAX_THREADS: int = int(os.getenv("DIGEST_MAX_THREADS", "9"))
MESSAGES_PER_THREAD: int = int(os.getenv("DIGEST_MESSAGES_PER_THREAD", "50"))
MAX_MESSAGES: int = int(os.getenv("DIGEST_MAX_MESSAGES", "500"))

# ── Summary cache ──────────────────────────────────────────────────────────
SUMMARY_CACHE_TTL_HOURS: float = float(os.getenv("SUMMARY_CACHE_TTL_HOURS", "6"))

# ── Taxonomy ───────────────────────────────────────────────────────────────
_topics_path = os.getenv("DIGEST_TOPICS_PATH", "")
TOPICS_PATH: Path | None = Path(_topics_path) if _topics_path else None

# ── Logging ────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


def setup_logging(level: str | None = None) -> None:
    """Install a stderr handler for the orchestration process."""
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
