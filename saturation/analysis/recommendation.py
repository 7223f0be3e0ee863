"""
Create / Modify / Avoid recommendation from scores and lifecycle stage.

Rule chain (first match wins):
  1. novelty > 60 and stage in {EMERGING, GROWING}     -> CREATE
  2. saturation > 70 and stage in {PEAK, DECLINING}    -> AVOID
  3. 40 <= saturation <= 70                            -> MODIFY
  4. otherwise                                         -> CREATE

Confidence grows with the distance of the deciding score from the rule's
boundary: 50 at the boundary, 100 once the margin covers the rule's span.
"""

import logging
from typing import List, Tuple

from saturation.analysis.scoring import clamp_score
from saturation.schemas.analysis import Recommendation
from saturation.schemas.base import LifecycleStage, RecommendationAction, RecommendationRule

logger = logging.getLogger(__name__)

NOVELTY_CREATE_MIN = 60.0
SATURATION_AVOID_MIN = 70.0
MODIFY_BAND = (40.0, 70.0)

RISING_STAGES = frozenset({LifecycleStage.EMERGING, LifecycleStage.GROWING})
MATURE_STAGES = frozenset({LifecycleStage.PEAK, LifecycleStage.DECLINING})

# Score distance at which confidence reaches 100, per rule
_CONFIDENCE_SPAN = {
    RecommendationRule.NOVEL_AND_RISING: 40.0,
    RecommendationRule.SATURATED_AND_MATURE: 30.0,
    RecommendationRule.MODERATE_SATURATION: 15.0,
    RecommendationRule.DEFAULT: 40.0,
}

_ACTION_FOR_RULE = {
    RecommendationRule.NOVEL_AND_RISING: RecommendationAction.CREATE,
    RecommendationRule.SATURATED_AND_MATURE: RecommendationAction.AVOID,
    RecommendationRule.MODERATE_SATURATION: RecommendationAction.MODIFY,
    RecommendationRule.DEFAULT: RecommendationAction.CREATE,
    RecommendationRule.EMPTY_LANDSCAPE: RecommendationAction.CREATE,
}


def select_rule(saturation: float, novelty: float, stage: LifecycleStage) -> Tuple[RecommendationRule, float]:
    """Pick the first matching rule and the deciding score's margin from its boundary."""
    low, high = MODIFY_BAND

    if novelty > NOVELTY_CREATE_MIN and stage in RISING_STAGES:
        return RecommendationRule.NOVEL_AND_RISING, novelty - NOVELTY_CREATE_MIN
    if saturation > SATURATION_AVOID_MIN and stage in MATURE_STAGES:
        return RecommendationRule.SATURATED_AND_MATURE, saturation - SATURATION_AVOID_MIN
    if low <= saturation <= high:
        return RecommendationRule.MODERATE_SATURATION, min(saturation - low, high - saturation)

    # Default arm: how far saturation sits outside the Modify band
    margin = low - saturation if saturation < low else saturation - high
    return RecommendationRule.DEFAULT, margin


def confidence_from_margin(rule: RecommendationRule, margin: float) -> float:
    """Map a rule margin to a confidence in [0, 100]."""
    if rule == RecommendationRule.EMPTY_LANDSCAPE:
        return 100.0
    span = _CONFIDENCE_SPAN[rule]
    return clamp_score(50.0 + 50.0 * min(1.0, max(0.0, margin) / span))


def explain_recommendation(
    rule: RecommendationRule,
    saturation: float,
    novelty: float,
    stage: LifecycleStage,
) -> str:
    """Human-readable rationale naming the triggering rule and the scores."""
    scores = f"saturation {saturation:.1f}/100, novelty {novelty:.1f}/100, stage {stage.value}"

    if rule == RecommendationRule.NOVEL_AND_RISING:
        return (
            f"Create: novelty is above {NOVELTY_CREATE_MIN:.0f} and the idea-space is "
            f"{stage.value}, so there is room for a fresh take ({scores})."
        )
    if rule == RecommendationRule.SATURATED_AND_MATURE:
        return (
            f"Avoid: saturation is above {SATURATION_AVOID_MIN:.0f} and the idea-space is "
            f"already at the {stage.value} stage ({scores})."
        )
    if rule == RecommendationRule.MODERATE_SATURATION:
        return (
            f"Modify: saturation sits in the {MODIFY_BAND[0]:.0f}-{MODIFY_BAND[1]:.0f} band, "
            f"so the idea needs a distinct angle to stand out ({scores})."
        )
    if rule == RecommendationRule.EMPTY_LANDSCAPE:
        return f"Create: no existing content was found for this idea ({scores})."
    return (
        f"Create: no saturation or novelty rule applied, and saturation is outside "
        f"the {MODIFY_BAND[0]:.0f}-{MODIFY_BAND[1]:.0f} band ({scores})."
    )


def build_suggestions(
    action: RecommendationAction,
    stage: LifecycleStage,
    saturation: float,
    novelty: float,
) -> List[str]:
    """Ordered, actionable suggestions for the chosen action."""
    suggestions: List[str] = []

    if action == RecommendationAction.CREATE:
        if stage == LifecycleStage.EMERGING:
            suggestions.append("Publish early to establish a reference piece before the space fills up")
        elif stage == LifecycleStage.GROWING:
            suggestions.append("Move quickly: engagement in this space is still rising")
        if novelty >= 80:
            suggestions.append("Explain the core concept clearly; the audience may not have seen it before")
        if saturation < 20:
            suggestions.append("Use broad discovery keywords; little competing content targets them yet")
        suggestions.append("Track early engagement to confirm demand before investing in a series")
    elif action == RecommendationAction.MODIFY:
        suggestions.append("Study the top similar content and target the angle it leaves uncovered")
        suggestions.append("Narrow the idea to a specific audience, format or platform")
        if novelty < 40:
            suggestions.append("Combine the idea with an adjacent topic to raise its originality")
        if stage in MATURE_STAGES:
            suggestions.append("Lead with a contrarian or updated take; the space is no longer growing")
    else:
        suggestions.append("Pick a different idea or a clearly differentiated sub-topic")
        if stage == LifecycleStage.DECLINING:
            suggestions.append("Audience interest is fading; revisit only with a new development")
        else:
            suggestions.append("Only proceed with a unique data source, format or expertise")
        suggestions.append("Look for gaps in the emerging edges of this cluster instead")

    return suggestions


def generate_recommendation(
    saturation: float,
    novelty: float,
    stage: LifecycleStage,
) -> Recommendation:
    """Create / Modify / Avoid decision with confidence, rationale and suggestions."""
    saturation = clamp_score(saturation)
    novelty = clamp_score(novelty)

    rule, margin = select_rule(saturation, novelty, stage)
    action = _ACTION_FOR_RULE[rule]
    confidence = confidence_from_margin(rule, margin)

    logger.info(
        f"Recommendation: {action.value} via {rule.value} "
        f"(saturation={saturation:.1f}, novelty={novelty:.1f}, stage={stage.value}, "
        f"confidence={confidence:.1f})"
    )

    return Recommendation(
        action=action,
        confidence=confidence,
        reasoning=explain_recommendation(rule, saturation, novelty, stage),
        suggestions=build_suggestions(action, stage, saturation, novelty),
        rule=rule,
    )


def empty_landscape_recommendation() -> Recommendation:
    """Recommendation used when there is no existing content at all."""
    stage = LifecycleStage.EMERGING
    rule = RecommendationRule.EMPTY_LANDSCAPE
    return Recommendation(
        action=RecommendationAction.CREATE,
        confidence=confidence_from_margin(rule, 0.0),
        reasoning=explain_recommendation(rule, 0.0, 100.0, stage),
        suggestions=build_suggestions(RecommendationAction.CREATE, stage, 0.0, 100.0),
        rule=rule,
    )
