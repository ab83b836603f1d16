"""
Cloudflare Workers AI scorer (edge inference over the REST API).

The Llama chat model answers in free text, so scores are pulled out with a
regex and default to 0.7 quality / 0.5 relevance when missing.
"""

import logging
from typing import Optional

import requests

from arcpay.config import DEFAULT_WORKERS_AI_MODEL
from arcpay.errors import ScorerError
from arcpay.schema import Analysis, ContentItem, UserPreferences
from arcpay.scoring.keyword import FALLBACK_QUALITY, FALLBACK_VALUE, KeywordScorer
from arcpay.scoring.llm import FALLBACK_RELEVANCE
from arcpay.scoring.prompt import SYSTEM_PROMPT_TEXT, build_analysis_prompt, clamp_score, extract_score
from arcpay.storage import CLOUDFLARE_API_URL

logger = logging.getLogger(__name__)

SUMMARY_CHARS = 200


class WorkersAIScorer:
    name = "workers_ai"

    def __init__(
        self,
        account_id: str,
        api_token: str,
        model: str = DEFAULT_WORKERS_AI_MODEL,
        timeout: float = 30.0,
        fallback: Optional[KeywordScorer] = None,
        session: Optional[requests.Session] = None,
    ):
        self._url = f"{CLOUDFLARE_API_URL}/accounts/{account_id}/ai/run/{model}"
        self._api_token = api_token
        self._timeout = timeout
        self._fallback = fallback or KeywordScorer()
        self._session = session or requests.Session()

    def analyze(self, content: ContentItem, preferences: UserPreferences) -> Analysis:
        try:
            text = self._run(build_analysis_prompt(content, preferences))
        except ScorerError as e:
            logger.warning("Workers AI analysis failed for %s, using keyword fallback: %s", content.content_id, e)
            return self._fallback.analyze(content, preferences)

        quality = extract_score(text, "quality") or FALLBACK_QUALITY
        relevance = extract_score(text, "relevance") or FALLBACK_RELEVANCE
        return Analysis(
            quality_score=clamp_score(quality),
            relevance_score=clamp_score(relevance),
            detected_topics=list(content.tags),
            estimated_value=content.price or FALLBACK_VALUE,
            summary=text[:SUMMARY_CHARS],
        )

    def _run(self, prompt: str) -> str:
        try:
            r = self._session.post(
                self._url,
                headers={"Authorization": f"Bearer {self._api_token}"},
                json={
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT_TEXT},
                        {"role": "user", "content": prompt},
                    ]
                },
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ScorerError(f"Workers AI request failed: {e}") from e
        if not r.ok:
            raise ScorerError(f"Workers AI error: {r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            raise ScorerError(f"Unparseable Workers AI response: {e}") from e
        if not data.get("success", True):
            raise ScorerError(f"Workers AI error: {data.get('errors')}")
        return str((data.get("result") or {}).get("response") or "")
