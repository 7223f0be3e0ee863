"""Tests for saturation and novelty scores."""

import pytest

from saturation.analysis.scoring import (
    calculate_novelty_score,
    calculate_saturation_score,
    recent_volume_boost,
)
from saturation.schemas import ContentCluster


@pytest.fixture
def make_cluster(make_item):
    def _make(ages, cluster_id=0):
        members = [
            make_item(f"c{cluster_id}-{i}", [1.0, 0.0], days_ago=age)
            for i, age in enumerate(ages)
        ]
        return ContentCluster(
            id=cluster_id,
            centroid=[1.0, 0.0],
            members=members,
            size=len(members),
            average_engagement=50.0,
        )

    return _make


def test_no_matched_cluster_scores_zero(as_of):
    assert calculate_saturation_score(None, 500, as_of) == 0.0


def test_empty_landscape_scores_zero(make_cluster, as_of):
    assert calculate_saturation_score(make_cluster([1, 2, 3]), 0, as_of) == 0.0


def test_recent_volume_boost(make_cluster, as_of):
    # 3 in the last 30 days, 1 more inside 90 days, 1 outside the window
    c = make_cluster([10, 11, 12, 60, 120])
    assert recent_volume_boost(c, as_of) == pytest.approx(0.75)
    assert calculate_saturation_score(c, 5, as_of) == pytest.approx(5 * 0.5 + 0.75 * 20)


def test_boost_zero_when_nothing_in_window(make_cluster, as_of):
    c = make_cluster([100, 200])
    assert recent_volume_boost(c, as_of) == 0.0
    assert calculate_saturation_score(c, 2, as_of) == pytest.approx(1.0)


def test_large_cluster_saturates(make_cluster, as_of):
    c = make_cluster([200] * 201)
    assert calculate_saturation_score(c, 201, as_of) >= 80
    recent = make_cluster([1] * 201)
    assert calculate_saturation_score(recent, 201, as_of) == 100.0


@pytest.mark.parametrize("smaller,larger", [(2, 3), (10, 40), (50, 150), (150, 400)])
def test_saturation_non_decreasing_in_size(make_cluster, as_of, smaller, larger):
    small = calculate_saturation_score(make_cluster([5] * smaller), larger, as_of)
    large = calculate_saturation_score(make_cluster([5] * larger), larger, as_of)
    assert small <= large
    assert 0.0 <= small <= 100.0
    assert 0.0 <= large <= 100.0


@pytest.mark.parametrize(
    "max_similarity,expected",
    [(0.3, 70.0), (0.49, 51.0), (0.5, 50.0), (1.0, 0.0), (0.0, 100.0)],
)
def test_novelty_values(max_similarity, expected):
    assert calculate_novelty_score(max_similarity) == pytest.approx(expected)


def test_novelty_thresholds():
    assert calculate_novelty_score(0.29) > 70
    assert calculate_novelty_score(0.91) < 30
    assert calculate_novelty_score(-0.5) == 100.0


def test_novelty_strictly_decreasing():
    sims = [i / 20 for i in range(21)]
    scores = [calculate_novelty_score(s) for s in sims]
    assert all(a > b for a, b in zip(scores, scores[1:]))


@pytest.mark.parametrize("size", [4, 10, 60])
def test_saturation_non_decreasing_in_recent_volume(make_cluster, as_of, size):
    boosts = []
    scores = []
    # Move members from 60 days ago into the last 30 days, one at a time
    for recent in range(size + 1):
        c = make_cluster([10] * recent + [60] * (size - recent))
        boosts.append(recent_volume_boost(c, as_of))
        scores.append(calculate_saturation_score(c, size, as_of))

    assert boosts[0] == 0.0
    assert boosts[-1] == pytest.approx(1.0)
    assert all(a <= b for a, b in zip(boosts, boosts[1:]))
    assert all(a <= b for a, b in zip(scores, scores[1:]))
