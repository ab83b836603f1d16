"""
Configuration for the Arc Pay backend.

Values come from the environment (and a .env file in the working directory,
loaded with override=False so real env vars win). Build one ArcPayConfig at
startup and pass it to the services; nothing reads os.environ after that.

Circle:      CIRCLE_API_KEY, CIRCLE_ENTITY_SECRET (ENTITY_SECRET accepted),
             CIRCLE_API_URL, CIRCLE_BLOCKCHAIN, USDC_ADDRESS
OpenAI:      OPENAI_API_KEY, OPENAI_BASE_URL, ARCPAY_LLM_MODEL
Workers AI:  CLOUDFLARE_ACCOUNT_ID, CLOUDFLARE_API_TOKEN, ARCPAY_WORKERS_AI_MODEL,
             ARCPAY_USE_WORKERS_AI
Workers KV:  ARCPAY_KV_PREFERENCES_NAMESPACE, ARCPAY_KV_HISTORY_NAMESPACE,
             ARCPAY_KV_SUBSCRIPTIONS_NAMESPACE
Decisions:   MIN_QUALITY_SCORE, PAYMENT_THRESHOLD, ARCPAY_DEFAULT_DAILY_BUDGET,
             ARCPAY_DEFAULT_MONTHLY_LIMIT
Service:     ENVIRONMENT, ARCPAY_HOST, ARCPAY_PORT, ARCPAY_LOG_LEVEL,
             ARCPAY_HTTP_TIMEOUT, ARCPAY_SANDBOX_BALANCE
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Circle env names
CIRCLE_API_KEY = "CIRCLE_API_KEY"
CIRCLE_ENTITY_SECRET = "CIRCLE_ENTITY_SECRET"
CIRCLE_ENTITY_SECRET_LEGACY = "ENTITY_SECRET"

# Arbitrum Sepolia USDC
DEFAULT_USDC_ADDRESS = "0x75faf114eafb1BDbe2F0316DF893fd58CE46AA4d"
DEFAULT_WORKERS_AI_MODEL = "@cf/meta/llama-2-7b-chat-int8"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _load_dotenv(env_file: Optional[Path] = None) -> None:
    """Load .env from cwd (or the given file) without overriding real env vars."""
    load_dotenv(env_file or Path.cwd() / ".env", override=False)


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = _env(name)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


class ArcPayConfig(BaseModel):
    """Explicit configuration object passed to every service constructor."""

    environment: str = Field("development", description="Deployment label reported by /health")

    # Decision defaults (used when the user has not set their own)
    min_quality_score: float = Field(0.7, ge=0.0, le=1.0)
    payment_threshold: float = Field(0.10, ge=0.0, description="Minimum USD amount worth paying")
    default_max_daily_budget: float = Field(5.0, ge=0.0)
    default_monthly_limit: float = Field(100.0, ge=0.0)

    # Circle Programmable Wallets
    circle_api_key: Optional[str] = None
    circle_entity_secret: Optional[str] = None
    circle_api_url: str = "https://api.circle.com/v1"
    circle_blockchain: str = "ARB-SEPOLIA"
    usdc_address: str = DEFAULT_USDC_ADDRESS
    sandbox_starting_balance: float = Field(10.0, ge=0.0, description="USDC credited to new sandbox wallets")

    # Content scoring
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4-turbo-preview"
    cloudflare_account_id: Optional[str] = None
    cloudflare_api_token: Optional[str] = None
    use_workers_ai: bool = False
    workers_ai_model: str = DEFAULT_WORKERS_AI_MODEL

    # Workers KV namespaces (in-memory stores when unset)
    kv_preferences_namespace: Optional[str] = None
    kv_history_namespace: Optional[str] = None
    kv_subscriptions_namespace: Optional[str] = None

    # Service
    host: str = "0.0.0.0"
    port: int = 8787
    log_level: str = "INFO"
    http_timeout: float = Field(30.0, gt=0.0)

    @property
    def circle_configured(self) -> bool:
        """True if Circle config is present (use Circle Wallets for payments)."""
        return bool(self.circle_api_key)

    @property
    def cloudflare_configured(self) -> bool:
        return bool(self.cloudflare_account_id and self.cloudflare_api_token)

    @property
    def workers_ai_configured(self) -> bool:
        return self.use_workers_ai and self.cloudflare_configured

    @property
    def kv_configured(self) -> bool:
        return self.cloudflare_configured and bool(
            self.kv_preferences_namespace and self.kv_history_namespace and self.kv_subscriptions_namespace
        )

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "ArcPayConfig":
        """Build config from the environment, loading .env first."""
        _load_dotenv(env_file)
        return cls(
            environment=_env("ENVIRONMENT", "development"),
            min_quality_score=_env_float("MIN_QUALITY_SCORE", 0.7),
            payment_threshold=_env_float("PAYMENT_THRESHOLD", 0.10),
            default_max_daily_budget=_env_float("ARCPAY_DEFAULT_DAILY_BUDGET", 5.0),
            default_monthly_limit=_env_float("ARCPAY_DEFAULT_MONTHLY_LIMIT", 100.0),
            circle_api_key=_env(CIRCLE_API_KEY) or None,
            circle_entity_secret=(_env(CIRCLE_ENTITY_SECRET) or _env(CIRCLE_ENTITY_SECRET_LEGACY)) or None,
            circle_api_url=_env("CIRCLE_API_URL", "https://api.circle.com/v1").rstrip("/"),
            circle_blockchain=_env("CIRCLE_BLOCKCHAIN", "ARB-SEPOLIA"),
            usdc_address=_env("USDC_ADDRESS", DEFAULT_USDC_ADDRESS),
            sandbox_starting_balance=_env_float("ARCPAY_SANDBOX_BALANCE", 10.0),
            openai_api_key=_env("OPENAI_API_KEY") or None,
            openai_base_url=_env("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            llm_model=_env("ARCPAY_LLM_MODEL", "gpt-4-turbo-preview"),
            cloudflare_account_id=_env("CLOUDFLARE_ACCOUNT_ID") or None,
            cloudflare_api_token=_env("CLOUDFLARE_API_TOKEN") or None,
            use_workers_ai=_env_bool("ARCPAY_USE_WORKERS_AI"),
            workers_ai_model=_env("ARCPAY_WORKERS_AI_MODEL", DEFAULT_WORKERS_AI_MODEL),
            kv_preferences_namespace=_env("ARCPAY_KV_PREFERENCES_NAMESPACE") or None,
            kv_history_namespace=_env("ARCPAY_KV_HISTORY_NAMESPACE") or None,
            kv_subscriptions_namespace=_env("ARCPAY_KV_SUBSCRIPTIONS_NAMESPACE") or None,
            host=_env("ARCPAY_HOST", "0.0.0.0"),
            port=int(_env("ARCPAY_PORT", "8787")),
            log_level=_env("ARCPAY_LOG_LEVEL", "INFO").upper(),
            http_timeout=_env_float("ARCPAY_HTTP_TIMEOUT", 30.0),
        )


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for the CLI and server entry points."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
