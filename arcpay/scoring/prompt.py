"""Prompt and response helpers shared by the model-backed scorers."""

import re
from typing import Optional

from arcpay.schema import ContentItem, UserPreferences

SYSTEM_PROMPT_JSON = "You are a content analyst. Respond only in JSON format."
SYSTEM_PROMPT_TEXT = "You are a content analyst. Provide quality and relevance scores (0-1)."


def build_analysis_prompt(content: ContentItem, preferences: UserPreferences) -> str:
    price = "" if content.price is None else f"{content.price}"
    return (
        "Analyze this content and provide scores:\n\n"
        "Content:\n"
        f"- Title: {content.title}\n"
        f"- Type: {content.type}\n"
        f"- Description: {content.description}\n"
        f"- Tags: {', '.join(content.tags)}\n"
        f"- Price: ${price}\n\n"
        f"User Interests: {', '.join(preferences.interests)}\n\n"
        "Provide JSON with:\n"
        "{\n"
        '  "qualityScore": 0-1,\n'
        '  "relevanceScore": 0-1,\n'
        '  "detectedTopics": ["topic1", "topic2"],\n'
        '  "estimatedValue": suggested USD price,\n'
        '  "summary": brief summary\n'
        "}"
    )


def extract_score(text: str, label: str) -> Optional[float]:
    """Pull 'quality: 0.8' style scores out of free text."""
    m = re.search(rf"{label}[:\s]+([0-9]*\.?[0-9]+)", text or "", re.IGNORECASE)
    if not m:
        return None
    return float(m.group(1))


def clamp_score(value: float) -> float:
    return max(0.0, min(1.0, value))
