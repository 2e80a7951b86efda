"""Domain models used across the digest engine."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_JUMP_URL = "https://discord.com/channels/{guild}/{channel}/{message}"


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC; aware values pass through."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


class Reaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    emoji: str
    count: int = 0


class IndexedMessage(BaseModel):
    """A stored chat message already tagged with the keywords it matched."""

    model_config = ConfigDict(frozen=True)

    id: str
    author_username: str
    author_id: str = ""
    content: str = ""
    normalized_content: str = ""
    guild_id: str = ""
    channel_id: str
    thread_id: str | None = None
    parent_channel_id: str | None = None
    timestamp: datetime
    matched_keywords: tuple[str, ...] = ()
    reactions: tuple[Reaction, ...] = ()
    link_count: int = 0

    @field_validator("matched_keywords", "reactions", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return () if value is None else value

    @field_validator("timestamp")
    @classmethod
    def _naive_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def group_key(self) -> str:
        """Thread id when the message lives in a thread, else the channel id."""
        return self.thread_id or self.channel_id

    @property
    def participant(self) -> str:
        return self.author_id or self.author_username

    @property
    def jump_url(self) -> str | None:
        if not self.guild_id:
            return None
        return _JUMP_URL.format(guild=self.guild_id, channel=self.group_key, message=self.id)


class Topic(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    keywords: tuple[str, ...] = ()
    bigrams: tuple[str, ...] = ()
    boost: float = 1.0

    @field_validator("slug")
    @classmethod
    def _lower_slug(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("keywords", "bigrams", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return () if value is None else value

    @field_validator("boost", mode="before")
    @classmethod
    def _default_boost(cls, value: object) -> object:
        return 1.0 if value is None else value


class TopicHitMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    keyword_hits: int = 0
    bigram_hits: int = 0
    boost: float = 1.0

    @property
    def score_weight(self) -> float:
        """Weight used by scoring and theme vectors."""
        return (self.keyword_hits * 2 + self.bigram_hits * 4) * self.boost

    @property
    def count_weight(self) -> int:
        """Weight used by topic counts and cluster labels."""
        return self.keyword_hits + self.bigram_hits * 2


class ThreadFeature(BaseModel):
    """Aggregated signals for one discussion unit (thread or channel)."""

    model_config = ConfigDict(frozen=True)

    key: str
    guild_id: str = ""
    channel_id: str
    thread_id: str | None = None
    parent_channel_id: str | None = None
    participants: frozenset[str] = frozenset()
    message_count: int = 0
    reaction_weighted: float = 0.0
    topic_hits: tuple[TopicHitMetric, ...] = ()
    link_count: int = 0
    decision_verb_hits: int = 0
    first_message_at: datetime
    last_message_at: datetime
    matched_keywords: tuple[str, ...] = ()
    messages: tuple[IndexedMessage, ...] = ()

    @field_validator("first_message_at", "last_message_at")
    @classmethod
    def _naive_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def unique_participants(self) -> int:
        return len(self.participants)

    @property
    def has_links(self) -> bool:
        return self.link_count >= 2


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    participants: float = 0.0
    message_count: float = 0.0
    reactions: float = 0.0
    topic_hits: float = 0.0
    links: float = 0.0
    decisions: float = 0.0
    time_decay: float = 0.0

    @property
    def raw_score(self) -> float:
        return (
            self.participants
            + self.message_count
            + self.reactions
            + self.topic_hits
            + self.links
            + self.decisions
            - self.time_decay
        )


class ThreadScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    feature: ThreadFeature
    score: float
    multiplier: float = 1.0
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)


class ThreadCluster(BaseModel):
    id: str
    label: str = "general"
    members: list[ThreadScore] = Field(default_factory=list)
    top_tokens: list[str] = Field(default_factory=list)


class TokenCount(BaseModel):
    token: str
    count: float


class ThemeAnalysis(BaseModel):
    clusters: list[ThreadCluster] = Field(default_factory=list)
    global_top_tokens: list[TokenCount] = Field(default_factory=list)


class TopicCount(BaseModel):
    slug: str
    count: int


class TopicWeight(BaseModel):
    slug: str
    weight: float


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0


class SummaryResult(BaseModel):
    summary: str
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    selected_ids: list[str] = Field(default_factory=list)


class DigestEntry(BaseModel):
    """One summarized discussion unit in a digest."""

    key: str
    primary_topic: str
    channel_id: str
    thread_id: str | None = None
    message_count: int = 0
    score: float = 0.0
    topics: list[TopicWeight] = Field(default_factory=list)
    summary: str = ""
    selected_ids: list[str] = Field(default_factory=list)
    jump_url: str | None = None
    last_message_at: datetime | None = None


class ThreadScoreSnapshot(BaseModel):
    key: str
    score: float
    participants: int
    messages: int
    decision_verb_hits: int


class DigestStats(BaseModel):
    message_count: int = 0
    topic_count: int = 0
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    thread_scores: list[ThreadScoreSnapshot] = Field(default_factory=list)
    top_topics: list[TopicCount] = Field(default_factory=list)
    cluster_labels: list[str] = Field(default_factory=list)


class DigestResult(BaseModel):
    empty: bool = False
    title: str = "Digest Highlights"
    header_lines: list[str] = Field(default_factory=list)
    entries: list[DigestEntry] = Field(default_factory=list)
    themes: ThemeAnalysis = Field(default_factory=ThemeAnalysis)
    stats: DigestStats = Field(default_factory=DigestStats)
