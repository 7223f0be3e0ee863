"""Shared fixtures for analyzer tests."""

from datetime import datetime, timedelta, timezone

import pytest

from saturation.config import Settings
from saturation.schemas import EngagementMetrics, ContentItem, Platform

AS_OF = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def settings():
    """Default thresholds, independent of any local .env."""
    return Settings(_env_file=None)


@pytest.fixture
def make_item():
    """Factory for ContentItem with sensible defaults."""

    def _make(
        item_id,
        embedding,
        days_ago=1.0,
        score=50.0,
        platform=Platform.YOUTUBE,
        title="",
    ):
        return ContentItem(
            id=str(item_id),
            platform=platform,
            published_at=AS_OF - timedelta(days=days_ago),
            engagement=EngagementMetrics(views=1000, likes=100, normalized_score=score),
            embedding=list(embedding),
            title=title or f"Content {item_id}",
        )

    return _make


@pytest.fixture
def two_topic_items(make_item):
    """Five items around axis 0, four around axis 1, two isolated points."""
    items = []
    for k in range(5):
        items.append(make_item(f"a{k}", [1.0, 0.02 * k, 0.0, 0.0], days_ago=5 + k))
    for k in range(4):
        items.append(make_item(f"b{k}", [0.02 * k, 1.0, 0.0, 0.0], days_ago=40 + k))
    items.append(make_item("noise1", [0.0, 0.0, 1.0, 0.0]))
    items.append(make_item("noise2", [0.0, 0.0, 0.0, 1.0]))
    return items
