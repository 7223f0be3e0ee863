"""
Content and cluster data models.

These models represent the raw material of the analysis: normalized content
items handed over by platform connectors, and the clusters the engine
groups them into.

Hierarchy: RawContent → (embed) → ContentItem → ContentCluster → ClusterMatch
"""

import math
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .base import Platform


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are assumed to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EngagementMetrics(BaseModel):
    """
    Engagement counters for one content item.

    normalized_score is platform-independent (0-100) and is computed by the
    upstream normalizer. The analyzer uses it as-is and never re-derives it
    from the raw counters.
    """
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    normalized_score: float = Field(default=0.0, ge=0.0, le=100.0)

    class Config:
        frozen = True


class RawContent(BaseModel):
    """Content as delivered by a platform connector, before embedding."""
    id: str
    platform: Platform = Platform.OTHER
    published_at: datetime
    engagement: EngagementMetrics = Field(default_factory=EngagementMetrics)
    title: str = ""
    text: str = ""

    class Config:
        frozen = True

    @field_validator("published_at")
    @classmethod
    def _normalize_tz(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def embedding_text(self) -> str:
        """Text sent to the embedding provider: title and body."""
        parts = [p.strip() for p in (self.title, self.text) if p and p.strip()]
        return "\n".join(parts)


class ContentItem(BaseModel):
    """
    A normalized, embedded piece of existing content.

    Immutable for the duration of an analysis. Clusters hold references to
    these objects, never copies.
    """
    id: str
    platform: Platform = Platform.OTHER
    published_at: datetime
    engagement: EngagementMetrics = Field(default_factory=EngagementMetrics)
    embedding: List[float]
    title: str = ""

    class Config:
        frozen = True

    @field_validator("published_at")
    @classmethod
    def _normalize_tz(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    @property
    def has_usable_embedding(self) -> bool:
        """False for empty, zero-magnitude or non-finite vectors."""
        if not self.embedding:
            return False
        if not all(math.isfinite(v) for v in self.embedding):
            return False
        return any(v != 0.0 for v in self.embedding)

    @classmethod
    def from_raw(cls, raw: RawContent, embedding: List[float]) -> "ContentItem":
        return cls(
            id=raw.id,
            platform=raw.platform,
            published_at=raw.published_at,
            engagement=raw.engagement,
            embedding=embedding,
            title=raw.title,
        )


class ContentCluster(BaseModel):
    """
    Density-based group of semantically similar content.

    Membership is decided once per analysis. The centroid is the mean of
    the member embeddings, computed after membership is final.
    """
    id: int
    centroid: List[float]
    members: List[ContentItem] = Field(default_factory=list)
    size: int = 0
    average_engagement: float = Field(default=0.0, ge=0.0, le=100.0)

    class Config:
        frozen = True

    @property
    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]


class ClusterMatch(BaseModel):
    """Best cluster for an idea embedding, with its centroid similarity."""
    cluster: ContentCluster
    similarity: float = Field(ge=-1.0, le=1.0)

    class Config:
        frozen = True


class SimilarContent(BaseModel):
    """One entry of the top-N most similar existing content."""
    id: str
    platform: Platform = Platform.OTHER
    title: str = ""
    similarity: float = Field(ge=-1.0, le=1.0)
    normalized_score: float = Field(default=0.0, ge=0.0, le=100.0)
    cluster_id: Optional[int] = None

    class Config:
        frozen = True
