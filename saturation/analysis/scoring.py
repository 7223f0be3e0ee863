"""
Saturation and novelty scoring.

SATURATION (0-100): how crowded the idea's matched cluster is.
  saturation = min(100, cluster_size / 2 + recent_volume_boost * 20)
  recent_volume_boost = members published in the last 30 days
                        / members published in the last 90 days
  No matched cluster => 0. A 200+ member cluster saturates on size alone.

NOVELTY (0-100): semantic originality against existing content.
  novelty = clamp(100 - max_similarity * 100, 0, 100)
  max_similarity 0.3 => 70, 0.5 => 50, > 0.9 => < 10.
  Negative similarity clamps to 100.

Both scores are non-decreasing / strictly decreasing in their inputs, so
novelty and saturation move in opposite directions as an idea gets closer
to a large cluster.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from saturation.schemas.content import ContentCluster

logger = logging.getLogger(__name__)

RECENT_WINDOW_DAYS = 30
VOLUME_WINDOW_DAYS = 90
SIZE_WEIGHT = 0.5
BOOST_WEIGHT = 20.0


def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a score into its documented range."""
    return max(low, min(high, float(value)))


def recent_volume_boost(
    cluster: Optional[ContentCluster],
    as_of: datetime,
    recent_days: int = RECENT_WINDOW_DAYS,
    window_days: int = VOLUME_WINDOW_DAYS,
) -> float:
    """Share of the cluster's last-90-day output that landed in the last 30 days.

    Returns 0.0 with no cluster or no member inside the 90-day window.
    """
    if cluster is None or not cluster.members:
        return 0.0

    recent_start = as_of - timedelta(days=recent_days)
    window_start = as_of - timedelta(days=window_days)

    in_window = 0
    in_recent = 0
    for member in cluster.members:
        published = member.published_at
        if published > as_of or published <= window_start:
            continue
        in_window += 1
        if published > recent_start:
            in_recent += 1

    if in_window == 0:
        return 0.0
    return in_recent / in_window


def calculate_saturation_score(
    matched_cluster: Optional[ContentCluster],
    total_content_count: int,
    as_of: datetime,
    recent_days: int = RECENT_WINDOW_DAYS,
    window_days: int = VOLUME_WINDOW_DAYS,
) -> float:
    """Saturation score for the idea's matched cluster, in [0, 100]."""
    if matched_cluster is None or total_content_count <= 0:
        return 0.0

    boost = recent_volume_boost(matched_cluster, as_of, recent_days, window_days)
    raw = matched_cluster.size * SIZE_WEIGHT + boost * BOOST_WEIGHT
    score = clamp_score(raw)

    logger.debug(
        f"Saturation: cluster={matched_cluster.id} size={matched_cluster.size} "
        f"of {total_content_count} items, boost={boost:.3f} → {score:.2f}"
    )
    return score


def calculate_novelty_score(max_similarity: float, cluster_size: int = 0) -> float:
    """Novelty score from the idea's highest similarity to existing content."""
    score = clamp_score(100.0 - max_similarity * 100.0)
    logger.debug(
        f"Novelty: max_similarity={max_similarity:.3f}, cluster_size={cluster_size} → {score:.2f}"
    )
    return score
