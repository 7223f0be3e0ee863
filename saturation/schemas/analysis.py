"""
Analysis output models.

TimeSeriesPoint / EngagementTrend are produced by the Trend Analyzer,
Recommendation by the Recommendation Engine, and AnalysisResult is the
single immutable object returned by the pipeline coordinator.
"""

import datetime as dt
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .base import LifecycleStage, RecommendationAction, RecommendationRule
from .content import SimilarContent


class TimeSeriesPoint(BaseModel):
    """Aggregate engagement for one period of a cluster's trend window."""
    date: dt.date
    aggregate_engagement: float = Field(default=0.0, ge=0.0)
    content_count: int = Field(default=0, ge=0)

    class Config:
        frozen = True


class EngagementTrend(BaseModel):
    """
    Engagement trajectory of an idea-space.

    slope: least-squares slope of aggregate engagement per period, relative
           to the mean aggregate engagement (+0.1 = +10% per period).
    volatility: standard deviation of period-over-period deltas.
    """
    average_engagement: float = Field(default=0.0, ge=0.0, le=100.0)
    slope: float = 0.0
    volatility: float = Field(default=0.0, ge=0.0)
    points: List[TimeSeriesPoint] = Field(default_factory=list)

    class Config:
        frozen = True

    @field_validator("points")
    @classmethod
    def _chronological(cls, v: List[TimeSeriesPoint]) -> List[TimeSeriesPoint]:
        for earlier, later in zip(v, v[1:]):
            if later.date < earlier.date:
                raise ValueError("time series points must be in chronological order")
        return v


class Recommendation(BaseModel):
    """Create / Modify / Avoid decision with its rationale."""
    action: RecommendationAction
    confidence: float = Field(ge=0.0, le=100.0)
    reasoning: str = Field(min_length=10)
    suggestions: List[str] = Field(default_factory=list)
    rule: RecommendationRule = RecommendationRule.DEFAULT

    class Config:
        frozen = True


class AnalysisResult(BaseModel):
    """
    Outcome of one idea analysis.

    Created once per request by the pipeline coordinator and immutable once
    returned. Persisting it is the caller's responsibility.
    """
    saturation_score: float = Field(ge=0.0, le=100.0)
    novelty_score: float = Field(ge=0.0, le=100.0)
    lifecycle_stage: LifecycleStage
    recommendation: Recommendation
    similar_content: List[SimilarContent] = Field(default_factory=list)
    engagement_trend: EngagementTrend = Field(default_factory=EngagementTrend)

    # Diagnostics
    matched_cluster_id: Optional[int] = None
    matched_cluster_similarity: Optional[float] = None
    cluster_count: int = 0
    noise_count: int = 0
    content_count: int = 0
    degraded: bool = False
    analyzed_at: Optional[dt.datetime] = None

    class Config:
        frozen = True
