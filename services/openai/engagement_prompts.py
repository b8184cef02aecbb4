"""Prompt builders for facial-expression engagement analysis."""


def build_system_prompt() -> str:
    """Return the system prompt for the engagement estimator."""
    return (
        "You are an expert in educational psychology and facial expression analysis. "
        "You estimate how a student is doing from a single webcam frame and stay "
        "conservative when the evidence is weak."
    )


def build_user_prompt() -> str:
    """Return the user prompt describing the scoring task."""
    return (
        "Analyze the provided image of a student's face from a live camera feed. "
        "Based on their facial expression, estimate their current level of engagement, "
        "attention, and confusion as percentages (0-100). "
        "Also provide a brief, actionable teaching recommendation derived from these scores.\n\n"
        "Consider the following cues:\n"
        "- Engagement cues: eye contact with screen/content, alert posture, positive expressions "
        "(slight smile, nodding).\n"
        "- Attention cues: focused gaze, minimal signs of distraction.\n"
        "- Confusion cues: furrowed brow, squinting, head tilt, slightly parted lips, glazed or "
        "wandering eyes.\n\n"
        "If the image is unclear, or no face is clearly visible, return scores of 0 and a "
        "recommendation to check camera positioning. Keep the recommendation concise."
    )
