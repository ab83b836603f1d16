"""
Content scorers: Workers AI (edge), OpenAI, or keyword heuristic (no key needed).
"""

from typing import Protocol

from arcpay.config import ArcPayConfig
from arcpay.schema import Analysis, ContentItem, UserPreferences
from arcpay.scoring.keyword import KeywordScorer
from arcpay.scoring.llm import OpenAIScorer
from arcpay.scoring.workers_ai import WorkersAIScorer


class Scorer(Protocol):
    name: str

    def analyze(self, content: ContentItem, preferences: UserPreferences) -> Analysis: ...


def get_scorer(config: ArcPayConfig) -> Scorer:
    """
    Single entry point: returns the scorer for this deployment.

    Workers AI if enabled and Cloudflare credentials are set, else OpenAI if
    OPENAI_API_KEY is set, else the keyword heuristic.
    """
    if config.workers_ai_configured:
        return WorkersAIScorer(
            account_id=config.cloudflare_account_id,
            api_token=config.cloudflare_api_token,
            model=config.workers_ai_model,
            timeout=config.http_timeout,
        )
    if config.openai_api_key:
        return OpenAIScorer(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            model=config.llm_model,
            timeout=config.http_timeout,
        )
    return KeywordScorer()


__all__ = [
    "Scorer",
    "KeywordScorer",
    "OpenAIScorer",
    "WorkersAIScorer",
    "get_scorer",
]
