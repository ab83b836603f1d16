"""
OpenAI-compatible chat completions scorer.

Any HTTP, decoding or schema failure falls back to the keyword heuristic, so
a model outage lowers decision quality instead of failing the request.
"""

import json
import logging
import math
from typing import Any, Dict, Optional

import requests

from arcpay.errors import ScorerError
from arcpay.schema import Analysis, ContentItem, UserPreferences
from arcpay.scoring.keyword import FALLBACK_QUALITY, FALLBACK_VALUE, KeywordScorer
from arcpay.scoring.prompt import SYSTEM_PROMPT_JSON, build_analysis_prompt, clamp_score

logger = logging.getLogger(__name__)

FALLBACK_RELEVANCE = 0.5


class OpenAIScorer:
    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4-turbo-preview",
        timeout: float = 30.0,
        fallback: Optional[KeywordScorer] = None,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._model = model
        self._timeout = timeout
        self._fallback = fallback or KeywordScorer()
        self._session = session or requests.Session()

    def analyze(self, content: ContentItem, preferences: UserPreferences) -> Analysis:
        try:
            data = self._complete(build_analysis_prompt(content, preferences))
        except ScorerError as e:
            logger.warning("OpenAI analysis failed for %s, using keyword fallback: %s", content.content_id, e)
            return self._fallback.analyze(content, preferences)
        return self._to_analysis(data, content)

    def _complete(self, prompt: str) -> Dict[str, Any]:
        try:
            r = self._session.post(
                self._url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self._model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT_JSON},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": 0.7,
                    "max_tokens": 500,
                    "response_format": {"type": "json_object"},
                },
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ScorerError(f"OpenAI request failed: {e}") from e
        if not r.ok:
            raise ScorerError(f"OpenAI API error: {r.status_code}")
        try:
            content = (r.json().get("choices") or [{}])[0].get("message", {}).get("content", "")
            data = json.loads(content)
        except (ValueError, AttributeError, IndexError) as e:
            raise ScorerError(f"Unparseable OpenAI response: {e}") from e
        if not isinstance(data, dict):
            raise ScorerError("OpenAI response is not a JSON object")
        return data

    @staticmethod
    def _to_analysis(data: Dict[str, Any], content: ContentItem) -> Analysis:
        def number(key: str, default: float) -> float:
            try:
                value = float(data.get(key) or default)
            except (TypeError, ValueError):
                return default
            return value if math.isfinite(value) else default

        topics = data.get("detectedTopics")
        if not isinstance(topics, list) or not topics:
            topics = list(content.tags)
        return Analysis(
            quality_score=clamp_score(number("qualityScore", FALLBACK_QUALITY)),
            relevance_score=clamp_score(number("relevanceScore", FALLBACK_RELEVANCE)),
            detected_topics=[str(t) for t in topics],
            estimated_value=max(number("estimatedValue", content.price or FALLBACK_VALUE), 0.0),
            summary=str(data.get("summary") or "No summary available"),
        )
