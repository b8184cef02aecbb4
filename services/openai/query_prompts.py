"""Prompt builders for learner queries and chart rendering."""


def build_system_prompt() -> str:
    """Return the system prompt for the tutoring assistant."""
    return (
        "You are a patient, encouraging tutor for students. "
        "Explain concepts clearly and accurately at the learner's level, "
        "using short paragraphs and concrete examples."
    )


def build_user_prompt(text_present: bool, image_present: bool) -> str:
    """Return the user prompt tailored to the modalities supplied."""
    supplements = []
    if text_present:
        supplements.append("question")
    if image_present:
        supplements.append("image")
    subject = " and ".join(supplements) if supplements else "input"

    return (
        f"Answer the learner's {subject} below with a clear explanation. "
        "If a chart would help the learner understand the answer, describe the chart to draw in "
        "chart_prompt: its type, axes, labels, and the data to plot. When the question has no "
        "specific data, make up sample data that satisfies it. Never include personally identifying "
        "information. Leave chart_prompt empty when a chart would not help."
    )


def build_chart_prompt(chart_request: str) -> str:
    """Return the image generation prompt for a chart description."""
    return (
        "Draw a clean, readable educational chart on a white background with labeled axes and a title. "
        f"Chart to draw: {chart_request}"
    )
