"""
AnalysisPipeline: sequences the analysis engine for one idea.

  Stage 1 (Validate):   embedding dimensions, empty landscape short-circuit
  Stage 2 (Similarity): idea vs. every content item, top-N similar content
  Stage 3 (Cluster):    DBSCAN over content, best cluster for the idea
  Stage 4 (Score):      saturation + novelty
  Stage 5 (Trend):      engagement trend + lifecycle stage
  Stage 6 (Recommend):  Create / Modify / Avoid

Each request gets its own pipeline instance and nothing is shared between
requests. The stages are synchronous and deterministic: the same embeddings
and content produce an identical AnalysisResult. Cancellation is checked
between stages only.

analyze_idea() is the async entry point that fans embedding calls out to
the provider, joins, and then runs the synchronous core.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from saturation.analysis.clustering import cluster_content, find_most_similar_cluster
from saturation.analysis.lifecycle import analyze_engagement_trend, detect_lifecycle_stage
from saturation.analysis.recommendation import (
    empty_landscape_recommendation,
    generate_recommendation,
)
from saturation.analysis.scoring import (
    calculate_novelty_score,
    calculate_saturation_score,
    clamp_score,
)
from saturation.analysis.similarity import ensure_same_dimension, similarities_to
from saturation.config import Settings, get_settings
from saturation.errors import AnalysisCancelledError
from saturation.schemas.analysis import AnalysisResult, EngagementTrend
from saturation.schemas.base import LifecycleStage
from saturation.schemas.content import ClusterMatch, ContentItem, RawContent, SimilarContent
from saturation.tools.embeddings import EmbeddingProvider

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """
    One analysis run over an idea embedding and a batch of content.

    Args:
        settings: Threshold snapshot for this run (defaults to get_settings()).
        cancel_event: Anything with ``is_set()`` (threading.Event,
            asyncio.Event). Checked before each stage.
    """

    def __init__(self, settings: Optional[Settings] = None, cancel_event: Any = None):
        self.settings = settings or get_settings()
        self.cancel_event = cancel_event
        self.timings: Dict[str, float] = {}

    def _check_cancelled(self, stage: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.info(f"Analysis cancelled before stage '{stage}'")
            raise AnalysisCancelledError(stage)

    def _resolve_as_of(self, items: List[ContentItem], as_of: Optional[datetime]) -> datetime:
        """Window end for recency maths; defaults to the newest item so runs stay pure."""
        if as_of is None:
            return max(item.published_at for item in items)
        if as_of.tzinfo is None:
            return as_of.replace(tzinfo=timezone.utc)
        return as_of.astimezone(timezone.utc)

    # ── Stages ─────────────────────────────────────────────────────────────

    def _stage_similarity(
        self,
        idea_embedding: Sequence[float],
        items: List[ContentItem],
    ) -> np.ndarray:
        """Idea-vs-item similarities; unusable embeddings score 0."""
        sims = similarities_to(idea_embedding, [item.embedding for item in items])
        usable = np.array([item.has_usable_embedding for item in items], dtype=bool)
        dropped = int(np.sum(~usable))
        if dropped:
            logger.debug(f"Similarity: {dropped}/{len(items)} items without a usable embedding scored 0")
        return np.where(usable & np.isfinite(sims), sims, 0.0)

    def _top_similar(
        self,
        items: List[ContentItem],
        sims: np.ndarray,
        cluster_of: Dict[str, int],
    ) -> List[SimilarContent]:
        """Top-N items by similarity (desc), ties by input order, no duplicate ids."""
        order = sorted(range(len(items)), key=lambda i: (-float(sims[i]), i))
        seen = set()
        top: List[SimilarContent] = []
        for i in order:
            item = items[i]
            if item.id in seen or not item.has_usable_embedding:
                continue
            seen.add(item.id)
            top.append(SimilarContent(
                id=item.id,
                platform=item.platform,
                title=item.title,
                similarity=float(sims[i]),
                normalized_score=item.engagement.normalized_score,
                cluster_id=cluster_of.get(item.id),
            ))
            if len(top) >= self.settings.top_similar_limit:
                break
        return top

    def _stage_cluster(
        self,
        idea_embedding: Sequence[float],
        items: List[ContentItem],
    ) -> Tuple[Optional[ClusterMatch], Dict[str, Any], Dict[str, int]]:
        clusters, _, metrics = cluster_content(
            items,
            threshold=self.settings.related_threshold,
            min_neighbors=self.settings.cluster_min_neighbors,
        )
        match = None
        if clusters:
            match = find_most_similar_cluster(
                idea_embedding, clusters, threshold=self.settings.match_threshold,
            )
        cluster_of = {m.id: c.id for c in clusters for m in c.members}
        return match, metrics, cluster_of

    def _stage_trend(
        self,
        match: Optional[ClusterMatch],
        items: List[ContentItem],
        sims: np.ndarray,
        as_of: datetime,
    ) -> Tuple[EngagementTrend, LifecycleStage]:
        if match is not None:
            members = list(match.cluster.members)
        else:
            # No cluster: fall back to the content directly related to the idea
            members = [
                item for item, sim in zip(items, sims)
                if float(sim) > self.settings.related_threshold
            ]
        trend = analyze_engagement_trend(
            members,
            window_days=self.settings.trend_window_days,
            as_of=as_of,
            bucket_days=self.settings.trend_bucket_days,
        )
        return trend, detect_lifecycle_stage(trend, len(members))

    # ── Entry point ────────────────────────────────────────────────────────

    def run(
        self,
        idea_embedding: Sequence[float],
        content_items: List[ContentItem],
        as_of: Optional[datetime] = None,
    ) -> AnalysisResult:
        t_start = time.time()
        items = list(content_items)

        self._check_cancelled("validate")
        ensure_same_dimension(
            (item.embedding for item in items),
            expected=len(idea_embedding),
            context="idea vs content",
        )

        if not items:
            logger.info("No existing content for this idea, returning empty-landscape result")
            return AnalysisResult(
                saturation_score=0.0,
                novelty_score=100.0,
                lifecycle_stage=LifecycleStage.EMERGING,
                recommendation=empty_landscape_recommendation(),
                analyzed_at=self._resolve_as_of(items, as_of) if as_of else None,
            )

        as_of = self._resolve_as_of(items, as_of)

        self._check_cancelled("similarity")
        t = time.time()
        sims = self._stage_similarity(idea_embedding, items)
        max_similarity = float(sims.max()) if len(sims) else 0.0
        self.timings["similarity"] = time.time() - t

        self._check_cancelled("cluster")
        t = time.time()
        match, metrics, cluster_of = self._stage_cluster(idea_embedding, items)
        self.timings["cluster"] = time.time() - t

        self._check_cancelled("score")
        matched = match.cluster if match is not None else None
        saturation = calculate_saturation_score(
            matched,
            len(items),
            as_of,
            recent_days=self.settings.recent_window_days,
            window_days=self.settings.trend_window_days,
        )
        novelty = calculate_novelty_score(max_similarity, matched.size if matched else 0)

        self._check_cancelled("trend")
        t = time.time()
        trend, stage = self._stage_trend(match, items, sims, as_of)
        self.timings["trend"] = time.time() - t

        self._check_cancelled("recommend")
        recommendation = generate_recommendation(saturation, novelty, stage)

        result = AnalysisResult(
            saturation_score=clamp_score(saturation),
            novelty_score=clamp_score(novelty),
            lifecycle_stage=stage,
            recommendation=recommendation,
            similar_content=self._top_similar(items, sims, cluster_of),
            engagement_trend=trend,
            matched_cluster_id=matched.id if matched else None,
            matched_cluster_similarity=match.similarity if match else None,
            cluster_count=metrics.get("n_clusters", 0),
            noise_count=metrics.get("noise_count", 0),
            content_count=len(items),
            degraded=bool(metrics.get("degraded", False)),
            analyzed_at=as_of,
        )

        self.timings["total"] = time.time() - t_start
        logger.info(
            f"Analysis complete: {len(items)} items, {result.cluster_count} clusters, "
            f"matched={result.matched_cluster_id}, saturation={result.saturation_score:.1f}, "
            f"novelty={result.novelty_score:.1f}, stage={stage.value}, "
            f"action={recommendation.action.value}"
            f"{' (degraded)' if result.degraded else ''} "
            f"in {self.timings['total']:.3f}s"
        )
        return result


def run_analysis_core(
    idea_embedding: Sequence[float],
    content_items: List[ContentItem],
    as_of: Optional[datetime] = None,
    settings: Optional[Settings] = None,
    cancel_event: Any = None,
) -> AnalysisResult:
    """Analyze one idea against embedded content. No I/O, no persistence."""
    pipeline = AnalysisPipeline(settings=settings, cancel_event=cancel_event)
    return pipeline.run(idea_embedding, content_items, as_of=as_of)


async def analyze_idea(
    idea_text: str,
    contents: List[RawContent],
    embedder: EmbeddingProvider,
    as_of: Optional[datetime] = None,
    settings: Optional[Settings] = None,
    cancel_event: Any = None,
) -> AnalysisResult:
    """
    Embed an idea and its competing content, then run the analysis core.

    Embedding calls are independent per item, so they are fanned out
    concurrently (bounded by EMBEDDING_MAX_CONCURRENT) and joined before
    clustering starts. The cancel event is checked before each embedding
    call; the first failure or cancellation cancels the calls still pending.
    """
    settings = settings or get_settings()
    pipeline = AnalysisPipeline(settings=settings, cancel_event=cancel_event)
    semaphore = asyncio.Semaphore(max(1, settings.embedding_max_concurrent))

    async def _embed_one(text: str) -> List[float]:
        async with semaphore:
            pipeline._check_cancelled("embed")
            return await embedder.get_embedding(text)

    t = time.time()
    texts = [idea_text] + [c.embedding_text for c in contents]
    tasks = [asyncio.ensure_future(_embed_one(text)) for text in texts]
    try:
        embeddings = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
    logger.info(f"Embedded idea + {len(contents)} content items in {time.time() - t:.2f}s")

    idea_embedding = embeddings[0]
    items = [ContentItem.from_raw(raw, emb) for raw, emb in zip(contents, embeddings[1:])]

    return pipeline.run(idea_embedding, items, as_of=as_of)
