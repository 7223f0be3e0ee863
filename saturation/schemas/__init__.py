"""
Schemas package: all data models for the content saturation analyzer.

Models are organized by domain in submodules:
  - base.py: Platform, LifecycleStage, RecommendationAction, RecommendationRule
  - content.py: EngagementMetrics, RawContent, ContentItem, ContentCluster,
                ClusterMatch, SimilarContent
  - analysis.py: TimeSeriesPoint, EngagementTrend, Recommendation, AnalysisResult
"""

# base.py: enums
from saturation.schemas.base import (
    Platform, LifecycleStage, RecommendationAction, RecommendationRule,
)

# content.py: content and cluster models
from saturation.schemas.content import (
    EngagementMetrics, RawContent, ContentItem, ContentCluster,
    ClusterMatch, SimilarContent,
)

# analysis.py: analysis output models
from saturation.schemas.analysis import (
    TimeSeriesPoint, EngagementTrend, Recommendation, AnalysisResult,
)

__all__ = [
    # base
    "Platform", "LifecycleStage", "RecommendationAction", "RecommendationRule",
    # content
    "EngagementMetrics", "RawContent", "ContentItem", "ContentCluster",
    "ClusterMatch", "SimilarContent",
    # analysis
    "TimeSeriesPoint", "EngagementTrend", "Recommendation", "AnalysisResult",
]
