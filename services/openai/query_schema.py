"""Schema definitions for the learner query answering tool."""

from typing import Any, Dict

FUNCTION_NAME = "answer_learning_query"

FUNCTION_DEFINITION: Dict[str, Any] = {
    "type": "function",
    "name": FUNCTION_NAME,
    "description": "Return the explanation for the learner and an optional chart description.",
    "parameters": {
        "type": "object",
        "properties": {
            "text_response": {
                "type": "string",
                "description": "The explanation shown and read aloud to the learner.",
            },
            "chart_prompt": {
                "type": "string",
                "description": "Description of a helpful chart, or an empty string when no chart is needed.",
            },
        },
        "required": ["text_response", "chart_prompt"],
        "additionalProperties": False,
    },
    "strict": True,
}
