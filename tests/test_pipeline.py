"""End-to-end tests for the analysis pipeline."""

import asyncio
import threading
from datetime import timedelta

import pytest

from saturation.analysis.pipeline import AnalysisPipeline, analyze_idea, run_analysis_core
from saturation.errors import AnalysisCancelledError, DimensionMismatchError, EmbeddingProviderError
from saturation.schemas import (
    EngagementMetrics,
    LifecycleStage,
    RawContent,
    RecommendationAction,
    RecommendationRule,
)


@pytest.fixture
def crowded_items(make_item):
    """169 near-identical items, 13 per weekly bucket, flat engagement."""
    items = []
    k = 0
    for week in range(13):
        for j in range(13):
            items.append(make_item(
                f"crowd-{k}",
                [1.0, 0.001 * k, 0.0, 0.0],
                days_ago=7 * (12 - week) + 1 + 0.1 * j,
                score=50.0,
            ))
            k += 1
    return items


def test_empty_landscape(settings):
    result = run_analysis_core([0.1, 0.2, 0.3], [], settings=settings)
    assert result.saturation_score == 0.0
    assert result.novelty_score == 100.0
    assert result.lifecycle_stage == LifecycleStage.EMERGING
    assert result.recommendation.action == RecommendationAction.CREATE
    assert result.recommendation.rule == RecommendationRule.EMPTY_LANDSCAPE
    assert result.similar_content == []
    assert result.analyzed_at is None


def test_dimension_mismatch_raises(make_item, settings):
    items = [make_item("x", [1.0, 0.0, 0.0])]
    with pytest.raises(DimensionMismatchError):
        run_analysis_core([1.0, 0.0], items, settings=settings)


def test_single_item_degrades_without_failing(make_item, settings):
    items = [make_item("only", [1.0, 0.0, 0.0])]
    result = run_analysis_core([1.0, 0.0, 0.0], items, settings=settings)
    assert result.degraded is True
    assert result.matched_cluster_id is None
    assert result.saturation_score == 0.0
    assert result.novelty_score == pytest.approx(0.0)
    assert [s.id for s in result.similar_content] == ["only"]


def test_crowded_space_is_avoided(crowded_items, settings, as_of):
    result = run_analysis_core([1.0, 0.0, 0.0, 0.0], crowded_items, as_of=as_of, settings=settings)

    assert result.cluster_count == 1
    assert result.matched_cluster_id == 0
    assert result.lifecycle_stage == LifecycleStage.PEAK
    assert result.saturation_score > 70
    assert result.novelty_score < 10
    assert result.recommendation.action == RecommendationAction.AVOID
    assert len(result.engagement_trend.points) == 13
    assert abs(result.engagement_trend.slope) < 0.05


def test_novel_idea_is_created(two_topic_items, settings):
    result = run_analysis_core([0.0, 0.0, -1.0, 0.0], two_topic_items, settings=settings)
    assert result.matched_cluster_id is None
    assert result.saturation_score == 0.0
    assert result.novelty_score == pytest.approx(100.0)
    assert result.lifecycle_stage == LifecycleStage.EMERGING
    assert result.recommendation.action == RecommendationAction.CREATE
    assert result.cluster_count == 2


def test_top_similar_sorted_and_unique(two_topic_items, make_item, settings):
    items = list(two_topic_items) + [make_item("a0", [0.9, 0.1, 0.0, 0.0])]
    result = run_analysis_core([1.0, 0.0, 0.0, 0.0], items, settings=settings)

    ids = [s.id for s in result.similar_content]
    sims = [s.similarity for s in result.similar_content]
    assert len(ids) == 5
    assert len(set(ids)) == 5
    assert sims == sorted(sims, reverse=True)
    assert ids[0] == "a0"
    assert sims[0] == pytest.approx(1.0)
    assert all(s.cluster_id == 0 for s in result.similar_content)


def test_top_similar_limit_setting(two_topic_items, settings):
    limited = settings.model_copy(update={"top_similar_limit": 2})
    result = run_analysis_core([1.0, 0.0, 0.0, 0.0], two_topic_items, settings=limited)
    assert len(result.similar_content) == 2


def test_analysis_is_deterministic(two_topic_items, settings):
    idea = [0.8, 0.3, 0.1, 0.0]
    first = run_analysis_core(idea, two_topic_items, settings=settings)
    second = run_analysis_core(idea, two_topic_items, settings=settings)
    assert first.model_dump_json() == second.model_dump_json()


def test_as_of_defaults_to_newest_item(two_topic_items, settings, as_of):
    result = run_analysis_core([1.0, 0.0, 0.0, 0.0], two_topic_items, settings=settings)
    assert result.analyzed_at == as_of - timedelta(days=1)


def test_cancel_before_first_stage(two_topic_items, settings):
    event = threading.Event()
    event.set()
    with pytest.raises(AnalysisCancelledError) as exc:
        run_analysis_core([1.0, 0.0, 0.0, 0.0], two_topic_items, settings=settings, cancel_event=event)
    assert exc.value.stage == "validate"


class _CancelAfter:
    """Reports cancelled from the n-th check onwards."""

    def __init__(self, n):
        self.n = n
        self.calls = 0

    def is_set(self):
        self.calls += 1
        return self.calls >= self.n


def test_cancel_between_stages(two_topic_items, settings):
    pipeline = AnalysisPipeline(settings=settings, cancel_event=_CancelAfter(3))
    with pytest.raises(AnalysisCancelledError) as exc:
        pipeline.run([1.0, 0.0, 0.0, 0.0], two_topic_items)
    assert exc.value.stage == "cluster"
    assert "similarity" in pipeline.timings
    assert "cluster" not in pipeline.timings


class _FakeEmbedder:
    """Keyword lookup in place of a real embedding model."""

    VECTORS = {
        "cooking": [1.0, 0.0, 0.0],
        "travel": [0.0, 1.0, 0.0],
    }

    def __init__(self):
        self.calls = []

    async def get_embedding(self, text):
        self.calls.append(text)
        for keyword, vector in self.VECTORS.items():
            if keyword in text.lower():
                return list(vector)
        return [0.0, 0.0, 1.0]


def test_analyze_idea_embeds_and_runs(settings, as_of):
    contents = [
        RawContent(
            id=f"r{i}",
            published_at=as_of - timedelta(days=i + 1),
            engagement=EngagementMetrics(normalized_score=60.0),
            title=f"Quick cooking recipe #{i}",
        )
        for i in range(6)
    ]
    contents.append(RawContent(id="t0", published_at=as_of, title="Travel vlog"))

    embedder = _FakeEmbedder()
    result = asyncio.run(analyze_idea(
        "Cooking for students", contents, embedder, as_of=as_of, settings=settings,
    ))

    assert len(embedder.calls) == len(contents) + 1
    assert embedder.calls[0] == "Cooking for students"
    assert result.content_count == 7
    assert result.matched_cluster_id == 0
    assert result.novelty_score == pytest.approx(0.0)
    assert result.similar_content[0].id == "r0"


@pytest.mark.parametrize("bad_value", [float("nan"), float("inf")])
def test_non_finite_embedding_is_dropped(make_item, settings, bad_value):
    items = [make_item(f"ok{k}", [1.0, 0.01 * k, 0.0]) for k in range(4)]
    items.insert(2, make_item("bad", [bad_value, 0.0, 0.0]))

    result = run_analysis_core([1.0, 0.0, 0.0], items, settings=settings)

    assert result.cluster_count == 1
    assert result.matched_cluster_id == 0
    assert result.novelty_score == pytest.approx(0.0)
    assert "bad" not in [s.id for s in result.similar_content]
    assert all(-1.0 <= s.similarity <= 1.0 for s in result.similar_content)
    assert result.content_count == 5


class _SlowEmbedder(_FakeEmbedder):
    """Yields to the event loop before answering, like a real provider."""

    def __init__(self, on_call=None):
        super().__init__()
        self.on_call = on_call

    async def get_embedding(self, text):
        if self.on_call is not None:
            self.on_call(text)
        vector = await super().get_embedding(text)
        await asyncio.sleep(0)
        return vector


def _raw_contents(as_of, n=5):
    return [
        RawContent(id=f"r{i}", published_at=as_of - timedelta(days=i + 1), title=f"Cooking tip {i}")
        for i in range(n)
    ]


def test_analyze_idea_cancelled_before_embedding(settings, as_of):
    event = threading.Event()
    event.set()
    embedder = _SlowEmbedder()

    with pytest.raises(AnalysisCancelledError) as exc:
        asyncio.run(analyze_idea(
            "Cooking", _raw_contents(as_of), embedder, settings=settings, cancel_event=event,
        ))
    assert exc.value.stage == "embed"
    assert embedder.calls == []


def test_analyze_idea_cancelled_during_embedding(settings, as_of):
    event = threading.Event()
    embedder = _SlowEmbedder(on_call=lambda text: event.set())
    serial = settings.model_copy(update={"embedding_max_concurrent": 1})

    with pytest.raises(AnalysisCancelledError) as exc:
        asyncio.run(analyze_idea(
            "Cooking", _raw_contents(as_of), embedder, settings=serial, cancel_event=event,
        ))
    assert exc.value.stage == "embed"
    assert embedder.calls == ["Cooking"]


def test_analyze_idea_embedding_failure_stops_pending_calls(settings, as_of):
    def fail_on_idea(text):
        if text == "Cooking":
            raise EmbeddingProviderError("provider down")

    embedder = _SlowEmbedder(on_call=fail_on_idea)
    serial = settings.model_copy(update={"embedding_max_concurrent": 1})
    contents = _raw_contents(as_of, n=8)

    with pytest.raises(EmbeddingProviderError):
        asyncio.run(analyze_idea("Cooking", contents, embedder, settings=serial))
    assert len(embedder.calls) < len(contents)
