"""
Engagement trend and lifecycle stage for an idea-space.

Measures how a cluster's engagement behaves over time: is it growing,
flat, or fading? Combined with content volume this places the idea-space
in one of four lifecycle stages.

TREND:
  points:      Weekly buckets across a 90-day window ending at as_of,
               oldest first. Each bucket sums normalized engagement. A
               partial oldest bucket is scaled to a full week for the fit.
  slope:       Least-squares slope of (bucket index, aggregate engagement),
               divided by mean aggregate engagement so the value is a
               relative change per period (+0.1 = +10%/week).
  volatility:  Standard deviation of period-over-period deltas.

LIFECYCLE (evaluated in precedence order, first match wins):
  volume >= 100 and slope < -0.05        -> DECLINING
  volume >= 150 and |slope| < 0.05       -> PEAK
  50 <= volume < 150 and slope > 0.05    -> GROWING
  volume < 50 and slope > 0.1            -> EMERGING
  otherwise: volume < 50 -> EMERGING, slope > 0.05 -> GROWING, else PEAK
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Union

import numpy as np

from saturation.schemas.analysis import EngagementTrend, TimeSeriesPoint
from saturation.schemas.base import LifecycleStage
from saturation.schemas.content import ContentCluster, ContentItem

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 90
DEFAULT_BUCKET_DAYS = 7

EMERGING_MAX_VOLUME = 50
GROWING_MAX_VOLUME = 150
PEAK_MIN_VOLUME = 150
DECLINING_MIN_VOLUME = 100

EMERGING_MIN_SLOPE = 0.1
GROWING_MIN_SLOPE = 0.05
PEAK_MAX_ABS_SLOPE = 0.05
DECLINING_MAX_SLOPE = -0.05


def _members(source: Union[ContentCluster, Sequence[ContentItem], None]) -> List[ContentItem]:
    if source is None:
        return []
    if isinstance(source, ContentCluster):
        return list(source.members)
    return list(source)


def _least_squares_slope(values: np.ndarray) -> float:
    """Slope of values against their index: Σ(x-x̄)(y-ȳ) / Σ(x-x̄)²."""
    n = len(values)
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=np.float64)
    x_centered = x - x.mean()
    denominator = float(np.sum(x_centered ** 2))
    if denominator == 0:
        return 0.0
    return float(np.sum(x_centered * (values - values.mean())) / denominator)


def analyze_engagement_trend(
    cluster: Union[ContentCluster, Sequence[ContentItem], None],
    window_days: int = DEFAULT_WINDOW_DAYS,
    as_of: Optional[datetime] = None,
    bucket_days: int = DEFAULT_BUCKET_DAYS,
) -> EngagementTrend:
    """
    Bucket member engagement into a fixed cadence and fit a trend line.

    Args:
        cluster: A ContentCluster, or a plain list of items (used when the
            idea matched no cluster).
        window_days: Length of the analysis window ending at as_of.
        as_of: Window end. Defaults to the newest member's publish time.
        bucket_days: Bucket width (weekly by default).

    Edge cases:
    - No members → empty trend (no points, zero slope and volatility)
    - Members outside the window are ignored; future-dated members too
    - All engagement zero → slope 0 (no relative change to measure)
    """
    members = _members(cluster)
    if not members:
        return EngagementTrend()

    if as_of is None:
        as_of = max(m.published_at for m in members)

    window_days = max(1, window_days)
    bucket_days = max(1, min(bucket_days, window_days))
    n_buckets = math.ceil(window_days / bucket_days)
    bucket_span = timedelta(days=bucket_days)
    window_start = as_of - timedelta(days=window_days)

    totals = np.zeros(n_buckets, dtype=np.float64)
    counts = [0] * n_buckets
    windowed_scores: List[float] = []

    for m in members:
        age = as_of - m.published_at
        if age < timedelta(0) or age >= timedelta(days=window_days):
            continue
        idx = n_buckets - 1 - int(age / bucket_span)
        totals[idx] += m.engagement.normalized_score
        counts[idx] += 1
        windowed_scores.append(m.engagement.normalized_score)

    points = []
    for idx in range(n_buckets):
        bucket_start = max(window_start, as_of - (n_buckets - idx) * bucket_span)
        points.append(TimeSeriesPoint(
            date=bucket_start.date(),
            aggregate_engagement=float(totals[idx]),
            content_count=counts[idx],
        ))

    # The oldest bucket is shorter when the window is not a whole number of
    # buckets; scale every bucket to a full bucket_days before fitting.
    lengths = np.array([
        min(window_days, (n_buckets - idx) * bucket_days) - (n_buckets - 1 - idx) * bucket_days
        for idx in range(n_buckets)
    ], dtype=np.float64)
    rates = totals * bucket_days / lengths

    mean_total = float(rates.mean())
    raw_slope = _least_squares_slope(rates)
    slope = raw_slope / mean_total if mean_total > 0 else 0.0

    deltas = np.diff(rates)
    volatility = float(np.std(deltas)) if len(deltas) else 0.0

    average = sum(windowed_scores) / len(windowed_scores) if windowed_scores else 0.0

    logger.debug(
        f"Engagement trend: {len(windowed_scores)}/{len(members)} members in "
        f"{window_days}d window, {n_buckets} buckets, slope={slope:.4f} "
        f"(raw {raw_slope:.3f}), volatility={volatility:.3f}"
    )

    return EngagementTrend(
        average_engagement=min(100.0, max(0.0, average)),
        slope=slope,
        volatility=volatility,
        points=points,
    )


def detect_lifecycle_stage(trend: EngagementTrend, content_volume: int) -> LifecycleStage:
    """Classify the lifecycle stage from content volume and engagement slope.

    Precedence when several rules hold: DECLINING > PEAK > GROWING > EMERGING.
    """
    slope = trend.slope
    volume = content_volume

    if volume >= DECLINING_MIN_VOLUME and slope < DECLINING_MAX_SLOPE:
        return LifecycleStage.DECLINING
    if volume >= PEAK_MIN_VOLUME and abs(slope) < PEAK_MAX_ABS_SLOPE:
        return LifecycleStage.PEAK
    if EMERGING_MAX_VOLUME <= volume < GROWING_MAX_VOLUME and slope > GROWING_MIN_SLOPE:
        return LifecycleStage.GROWING
    if volume < EMERGING_MAX_VOLUME and slope > EMERGING_MIN_SLOPE:
        return LifecycleStage.EMERGING

    # No rule matched (e.g. volume=70, slope=0.03)
    if volume < EMERGING_MAX_VOLUME:
        stage = LifecycleStage.EMERGING
    elif slope > GROWING_MIN_SLOPE:
        stage = LifecycleStage.GROWING
    else:
        stage = LifecycleStage.PEAK
    logger.debug(f"Lifecycle: no rule for volume={volume}, slope={slope:.4f}, defaulting to {stage.value}")
    return stage
