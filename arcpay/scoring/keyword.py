"""
Keyword-overlap scorer: the fallback when no model is configured or a model
call fails. Quality is fixed; relevance is the share of interests hit.
"""

from arcpay.schema import Analysis, ContentItem, UserPreferences

FALLBACK_QUALITY = 0.7
FALLBACK_VALUE = 0.25


class KeywordScorer:
    """Scores content by matching its tags and title against user interests."""

    name = "keyword"

    def analyze(self, content: ContentItem, preferences: UserPreferences) -> Analysis:
        interests = [i.lower() for i in preferences.interests]
        keywords = [t.lower() for t in content.tags] + [content.title.lower()]

        matches = sum(
            1 for k in keywords if any(k in uk or uk in k for uk in interests)
        )
        relevance = min(matches / max(len(interests), 1), 1.0)

        return Analysis(
            quality_score=FALLBACK_QUALITY,
            relevance_score=relevance,
            detected_topics=list(content.tags),
            estimated_value=content.price or FALLBACK_VALUE,
            summary=content.description or "No summary available",
        )
