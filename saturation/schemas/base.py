"""
Common enums used across the analyzer.

These define the vocabulary of the system: where content comes from,
which lifecycle stage an idea-space is in, and what to do about it.
"""

from enum import Enum


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS - Classification Types
# ══════════════════════════════════════════════════════════════════════════════

class Platform(str, Enum):
    """Platform a piece of content was published on."""
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    REDDIT = "reddit"
    BLOG = "blog"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        # Connectors may send "YouTube", "x", ...: fold case and map the rest to OTHER
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "x":
                return cls.TWITTER
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.OTHER


class LifecycleStage(str, Enum):
    """Trend lifecycle stage classification."""
    EMERGING = "emerging"
    GROWING = "growing"
    PEAK = "peak"
    DECLINING = "declining"


class RecommendationAction(str, Enum):
    """Final decision for a proposed idea."""
    CREATE = "create"
    MODIFY = "modify"
    AVOID = "avoid"


class RecommendationRule(str, Enum):
    """Which rule of the recommendation chain fired."""
    NOVEL_AND_RISING = "novel_and_rising"
    SATURATED_AND_MATURE = "saturated_and_mature"
    MODERATE_SATURATION = "moderate_saturation"
    DEFAULT = "default"
    EMPTY_LANDSCAPE = "empty_landscape"
