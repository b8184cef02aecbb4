"""Engagement score record produced by each analysis cycle."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

INVALID_IMAGE_RECOMMENDATION = "Invalid image data. Please ensure the camera is working correctly."
UNREADABLE_RECOMMENDATION = "Could not analyze expression. Please try again or check camera."
UNAVAILABLE_RECOMMENDATION = "AI model is temporarily unavailable. Will retry automatically."


class EngagementScores(BaseModel):
    """Immutable snapshot of one engagement estimate.

    Attributes:
        engagement_score: Estimated engagement level (0-100).
        attention_score: Estimated attention level (0-100).
        confusion_score: Estimated confusion level (0-100).
        teaching_recommendation: Short, actionable advice derived from the scores.
        available: False when the record is a fallback rather than a model estimate.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    engagement_score: float = Field(default=0.0, ge=0, le=100, alias="engagementScore")
    attention_score: float = Field(default=0.0, ge=0, le=100, alias="attentionScore")
    confusion_score: float = Field(default=0.0, ge=0, le=100, alias="confusionScore")
    teaching_recommendation: str = Field(default="", alias="teachingRecommendation")
    available: bool = True

    @classmethod
    def zero(cls) -> "EngagementScores":
        """Return the all-zero scores shown while monitoring is off."""
        return cls()

    @classmethod
    def fallback(cls, recommendation: str) -> "EngagementScores":
        """Return a zero-score record carrying an advisory message."""
        return cls(teaching_recommendation=recommendation, available=False)

    @classmethod
    def unavailable(cls) -> "EngagementScores":
        return cls.fallback(UNAVAILABLE_RECOMMENDATION)

    def score_dict(self) -> dict:
        """Return the three scores keyed the way the browser expects them."""
        return {
            "engagementScore": self.engagement_score,
            "attentionScore": self.attention_score,
            "confusionScore": self.confusion_score,
        }
