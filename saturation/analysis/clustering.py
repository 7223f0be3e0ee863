"""
Density-based clustering of retrieved content.

Pipeline: embeddings -> cosine distance matrix -> DBSCAN -> ContentCluster list

DBSCAN runs on a precomputed cosine distance matrix (1 - similarity) with
eps derived from the relatedness threshold (0.7 similarity => 0.3
distance). Points are visited in input order, so the partition is
deterministic for a given input list. Noise points (reachable from no
core point) end up in no cluster, which gives member exclusivity for free.

Degradation: when fewer than 2 items carry a usable embedding, or DBSCAN
itself fails, no clusters are formed. The caller treats that as "no
similar cluster" rather than an error. Dimension mismatches still raise.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from sklearn.cluster import DBSCAN

from saturation.analysis.similarity import (
    MATCH_THRESHOLD,
    RELATED_THRESHOLD,
    ensure_same_dimension,
    similarities_to,
    similarity_matrix,
)
from saturation.schemas.content import ClusterMatch, ContentCluster, ContentItem

logger = logging.getLogger(__name__)

DEFAULT_MIN_NEIGHBORS = 3
MIN_CLUSTERABLE_ITEMS = 2


def _empty_metrics(n_items: int, n_usable: int, reason: str) -> Dict[str, Any]:
    return {
        "n_clusters": 0,
        "noise_count": n_usable,
        "n_items": n_items,
        "n_usable": n_usable,
        "degraded": True,
        "reason": reason,
        "cluster_sizes": [],
    }


def _build_cluster(cluster_id: int, members: List[ContentItem]) -> ContentCluster:
    """Freeze a finalized member list into a ContentCluster."""
    matrix = np.asarray([m.embedding for m in members], dtype=np.float64)
    centroid = matrix.mean(axis=0)
    avg_engagement = sum(m.engagement.normalized_score for m in members) / len(members)
    return ContentCluster(
        id=cluster_id,
        centroid=[float(v) for v in centroid],
        members=members,
        size=len(members),
        average_engagement=min(100.0, max(0.0, avg_engagement)),
    )


def cluster_content(
    items: List[ContentItem],
    threshold: float = RELATED_THRESHOLD,
    min_neighbors: int = DEFAULT_MIN_NEIGHBORS,
) -> Tuple[List[ContentCluster], int, Dict[str, Any]]:
    """Cluster content items with DBSCAN over cosine distance.

    Args:
        items: Content in pipeline order. Order decides cluster numbering
            and border-point assignment.
        threshold: Similarity threshold; DBSCAN eps = 1 - threshold.
        min_neighbors: DBSCAN min_samples (the point itself counts).

    Returns (clusters, noise_count, metrics). metrics["degraded"] is True
    when clustering could not run.
    """
    n_items = len(items)
    t_start = time.time()

    # Mismatched dimensions are a provider misconfiguration, never degraded
    ensure_same_dimension((item.embedding for item in items), context="cluster")

    usable = [item for item in items if item.has_usable_embedding]
    dropped = n_items - len(usable)
    if dropped:
        logger.debug(f"Clustering: dropped {dropped}/{n_items} items without a usable embedding")

    if len(usable) < MIN_CLUSTERABLE_ITEMS:
        logger.warning(
            f"Clustering skipped: {len(usable)} usable items "
            f"(need {MIN_CLUSTERABLE_ITEMS}), running in similarity-only mode"
        )
        return [], len(usable), _empty_metrics(n_items, len(usable), "insufficient_content")

    eps = max(1e-9, 1.0 - threshold)
    sim = similarity_matrix([item.embedding for item in usable])
    distances = np.clip(1.0 - sim, 0.0, 2.0)

    try:
        labels = DBSCAN(
            eps=eps,
            min_samples=max(1, min_neighbors),
            metric="precomputed",
        ).fit_predict(distances)
    except ValueError as e:
        logger.warning(f"DBSCAN failed ({e}), running in similarity-only mode")
        return [], len(usable), _empty_metrics(n_items, len(usable), "dbscan_failed")

    # Renumber clusters by first member appearance in input order
    label_map: Dict[int, int] = {}
    grouped: Dict[int, List[ContentItem]] = {}
    for item, label in zip(usable, labels):
        label = int(label)
        if label == -1:
            continue
        if label not in label_map:
            label_map[label] = len(label_map)
            grouped[label_map[label]] = []
        grouped[label_map[label]].append(item)

    clusters = [_build_cluster(cid, grouped[cid]) for cid in range(len(grouped))]
    noise_count = int(np.sum(labels == -1))
    cluster_sizes = sorted((c.size for c in clusters), reverse=True)

    metrics = {
        "n_clusters": len(clusters),
        "noise_count": noise_count,
        "n_items": n_items,
        "n_usable": len(usable),
        "degraded": False,
        "reason": "",
        "eps": round(eps, 4),
        "min_neighbors": min_neighbors,
        "cluster_sizes": cluster_sizes,
        "total_time_s": round(time.time() - t_start, 3),
    }

    logger.info(
        f"DBSCAN: {len(usable)} items → {len(clusters)} clusters, "
        f"{noise_count} noise ({noise_count * 100 // max(len(usable), 1)}%), "
        f"eps={eps:.2f}, min_neighbors={min_neighbors}, "
        f"sizes={cluster_sizes[:5]}{'...' if len(cluster_sizes) > 5 else ''}"
    )

    return clusters, noise_count, metrics


def cluster(
    items: List[ContentItem],
    threshold: float = RELATED_THRESHOLD,
    min_neighbors: int = DEFAULT_MIN_NEIGHBORS,
) -> List[ContentCluster]:
    """Group content into density-based clusters. Empty list = no clusters."""
    clusters, _, _ = cluster_content(items, threshold=threshold, min_neighbors=min_neighbors)
    return clusters


def _best_cluster_index(
    embedding: Sequence[float],
    clusters: List[ContentCluster],
) -> Tuple[Optional[int], float]:
    """Index and similarity of the closest centroid.

    Ties on similarity prefer the larger cluster, then the earlier one.
    """
    if not clusters:
        return None, 0.0

    sims = similarities_to(embedding, [c.centroid for c in clusters])
    best_idx: Optional[int] = None
    best_sim = -np.inf
    for idx, (c, sim) in enumerate(zip(clusters, sims)):
        sim = float(sim)
        if best_idx is None or sim > best_sim or (
            sim == best_sim and c.size > clusters[best_idx].size
        ):
            best_idx = idx
            best_sim = sim
    return best_idx, float(best_sim)


def assign_to_cluster(
    embedding: Sequence[float],
    clusters: List[ContentCluster],
    threshold: float = RELATED_THRESHOLD,
) -> Optional[int]:
    """Index of the cluster an embedding belongs to, or None if none is related."""
    idx, sim = _best_cluster_index(embedding, clusters)
    if idx is None or sim <= threshold:
        return None
    return idx


def find_most_similar_cluster(
    idea_embedding: Sequence[float],
    clusters: List[ContentCluster],
    threshold: float = MATCH_THRESHOLD,
) -> Optional[ClusterMatch]:
    """Best-matching cluster for an idea, or None when the idea is novel."""
    idx, sim = _best_cluster_index(idea_embedding, clusters)
    if idx is None:
        return None
    if sim <= threshold:
        logger.debug(f"Best centroid similarity {sim:.3f} <= {threshold}, idea classified novel")
        return None
    return ClusterMatch(cluster=clusters[idx], similarity=sim)
