"""
Analysis engine: is this idea-space saturated or still open?

Pipeline (AnalysisPipeline):
  similarity → DBSCAN clustering → saturation/novelty → trend + lifecycle → recommendation

Modules:
  - similarity.py: cosine similarity, RELATED_THRESHOLD / MATCH_THRESHOLD
  - clustering.py: DBSCAN over cosine distance, best-cluster lookup
  - scoring.py: saturation and novelty scores
  - lifecycle.py: engagement trend, lifecycle stage rules
  - recommendation.py: Create / Modify / Avoid rule chain
  - pipeline.py: run_analysis_core (sync, pure) and analyze_idea (async)
"""

from saturation.analysis.similarity import (
    MATCH_THRESHOLD, RELATED_THRESHOLD, similarity, similarity_matrix, similarities_to,
)
from saturation.analysis.clustering import (
    assign_to_cluster, cluster, cluster_content, find_most_similar_cluster,
)
from saturation.analysis.scoring import (
    calculate_novelty_score, calculate_saturation_score, recent_volume_boost,
)
from saturation.analysis.lifecycle import analyze_engagement_trend, detect_lifecycle_stage
from saturation.analysis.recommendation import explain_recommendation, generate_recommendation
from saturation.analysis.pipeline import AnalysisPipeline, analyze_idea, run_analysis_core

__all__ = [
    "MATCH_THRESHOLD", "RELATED_THRESHOLD", "similarity", "similarity_matrix", "similarities_to",
    "assign_to_cluster", "cluster", "cluster_content", "find_most_similar_cluster",
    "calculate_novelty_score", "calculate_saturation_score", "recent_volume_boost",
    "analyze_engagement_trend", "detect_lifecycle_stage",
    "explain_recommendation", "generate_recommendation",
    "AnalysisPipeline", "analyze_idea", "run_analysis_core",
]
