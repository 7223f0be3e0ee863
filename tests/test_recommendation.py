"""Tests for the Create / Modify / Avoid rule chain."""

import pytest

from saturation.analysis.recommendation import (
    confidence_from_margin,
    empty_landscape_recommendation,
    generate_recommendation,
    select_rule,
)
from saturation.schemas import LifecycleStage, RecommendationAction, RecommendationRule

CREATE = RecommendationAction.CREATE
MODIFY = RecommendationAction.MODIFY
AVOID = RecommendationAction.AVOID


@pytest.mark.parametrize(
    "saturation,novelty,stage,action,rule",
    [
        (80, 20, LifecycleStage.PEAK, AVOID, RecommendationRule.SATURATED_AND_MATURE),
        (50, 40, LifecycleStage.GROWING, MODIFY, RecommendationRule.MODERATE_SATURATION),
        (20, 75, LifecycleStage.EMERGING, CREATE, RecommendationRule.NOVEL_AND_RISING),
        (90, 10, LifecycleStage.DECLINING, AVOID, RecommendationRule.SATURATED_AND_MATURE),
        # High saturation but still rising is not an Avoid
        (85, 30, LifecycleStage.GROWING, CREATE, RecommendationRule.DEFAULT),
        (10, 30, LifecycleStage.PEAK, CREATE, RecommendationRule.DEFAULT),
        # Band edges are inclusive
        (40, 50, LifecycleStage.PEAK, MODIFY, RecommendationRule.MODERATE_SATURATION),
        (70, 50, LifecycleStage.PEAK, MODIFY, RecommendationRule.MODERATE_SATURATION),
    ],
)
def test_rule_chain(saturation, novelty, stage, action, rule):
    rec = generate_recommendation(saturation, novelty, stage)
    assert rec.action == action
    assert rec.rule == rule


def test_novelty_rule_wins_over_modify_band():
    # saturation 55 is in the Modify band but rule 1 comes first
    rec = generate_recommendation(55, 65, LifecycleStage.GROWING)
    assert rec.action == CREATE
    assert rec.rule == RecommendationRule.NOVEL_AND_RISING


def test_reasoning_names_scores():
    rec = generate_recommendation(80, 20, LifecycleStage.PEAK)
    assert len(rec.reasoning) >= 10
    assert "80.0" in rec.reasoning
    assert "20.0" in rec.reasoning
    assert "peak" in rec.reasoning
    assert rec.suggestions


def test_confidence_grows_with_margin():
    rule = RecommendationRule.SATURATED_AND_MATURE
    values = [confidence_from_margin(rule, m) for m in (0, 5, 10, 20, 30, 60)]
    assert values[0] == pytest.approx(50.0)
    assert values[-1] == pytest.approx(100.0)
    assert all(a <= b for a, b in zip(values, values[1:]))


@pytest.mark.parametrize("stage", list(LifecycleStage))
@pytest.mark.parametrize("saturation", [0, 25, 40, 55, 70, 71, 100])
@pytest.mark.parametrize("novelty", [0, 45, 61, 100])
def test_confidence_in_range(saturation, novelty, stage):
    rec = generate_recommendation(saturation, novelty, stage)
    assert 0.0 <= rec.confidence <= 100.0


def test_select_rule_margin():
    rule, margin = select_rule(50, 40, LifecycleStage.PEAK)
    assert rule == RecommendationRule.MODERATE_SATURATION
    assert margin == pytest.approx(10.0)


def test_out_of_range_scores_are_clamped():
    rec = generate_recommendation(150, -20, LifecycleStage.PEAK)
    assert rec.action == AVOID
    assert rec.confidence == pytest.approx(100.0)


def test_empty_landscape_recommendation():
    rec = empty_landscape_recommendation()
    assert rec.action == CREATE
    assert rec.rule == RecommendationRule.EMPTY_LANDSCAPE
    assert rec.confidence == 100.0
    assert "no existing content" in rec.reasoning
