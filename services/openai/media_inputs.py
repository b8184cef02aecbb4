"""Utilities to build multimodal input payloads for the Responses API."""

from typing import Any, Dict, List, Optional


def _message(role: str, part: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "message", "role": role, "content": [part]}


def text_part(text: str) -> Dict[str, Any]:
    return {"type": "input_text", "text": text}


def image_part(image_url: str) -> Dict[str, Any]:
    return {"type": "input_image", "image_url": image_url}


def build_inputs(
    system_prompt: str,
    user_prompt: str,
    *,
    text_input: Optional[str] = None,
    image_url: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Build the Responses API input array, one user message per modality.

    The learner's text and image (when present) follow the task prompt as
    separate messages so the model never confuses instructions with input.

    Args:
        system_prompt: Instructions for the system role.
        user_prompt: Task description sent ahead of the user's own input.
        text_input: Optional free text from the learner.
        image_url: Optional image as a `data:image/...;base64,` URI.
    """
    inputs = [_message("system", text_part(system_prompt)), _message("user", text_part(user_prompt))]
    if text_input:
        inputs.append(_message("user", text_part(text_input)))
    if image_url:
        inputs.append(_message("user", image_part(image_url)))
    return inputs
