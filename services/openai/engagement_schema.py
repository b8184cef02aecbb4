"""Schema definitions for the engagement reporting tool."""

from typing import Any, Dict

FUNCTION_NAME = "report_engagement"

_SCORE = {"type": "number", "minimum": 0, "maximum": 100}

FUNCTION_DEFINITION: Dict[str, Any] = {
    "type": "function",
    "name": FUNCTION_NAME,
    "description": "Return engagement, attention, and confusion scores with a teaching recommendation.",
    "parameters": {
        "type": "object",
        "properties": {
            "engagementScore": {**_SCORE, "description": "Estimated engagement level (0-100)."},
            "attentionScore": {**_SCORE, "description": "Estimated attention level (0-100)."},
            "confusionScore": {**_SCORE, "description": "Estimated confusion level (0-100)."},
            "teachingRecommendation": {
                "type": "string",
                "description": "A brief, actionable teaching recommendation based on the scores.",
            },
        },
        "required": ["engagementScore", "attentionScore", "confusionScore", "teachingRecommendation"],
        "additionalProperties": False,
    },
    "strict": True,
}
