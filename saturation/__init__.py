"""
Content Saturation Analyzer.

Predicts, for a proposed content idea, whether its idea-space is already
crowded or still open, and recommends Create / Modify / Avoid.

Layers:
  schemas/   pydantic data models
  analysis/  similarity, clustering, scoring, lifecycle, recommendation, pipeline
  tools/     embedding provider client
"""

from saturation.analysis.pipeline import AnalysisPipeline, analyze_idea, run_analysis_core
from saturation.schemas import AnalysisResult, ContentItem, RawContent

__version__ = "1.0.0"

__all__ = [
    "AnalysisPipeline", "analyze_idea", "run_analysis_core",
    "AnalysisResult", "ContentItem", "RawContent",
]
